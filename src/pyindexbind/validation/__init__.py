"""
pyindexbind Validation Package

Post-bind validation of value graphs:
- Strategies enumerating the children of each node
- Validator providers and the validator cache
- The visitor walking the graph, and the ObjectValidator entry point
"""

from pyindexbind.validation.strategies import (
    ValidationEntry,
    ValidationStrategy,
    DefaultComplexObjectValidationStrategy,
    DefaultCollectionValidationStrategy,
    ExplicitIndexCollectionValidationStrategy,
)
from pyindexbind.validation.providers import (
    ModelValidationResult,
    ModelValidationContext,
    ModelValidator,
    FunctionValidator,
    ValidatorItem,
    ValidatorProviderContext,
    ModelValidatorProvider,
    DefaultModelValidatorProvider,
    FunctionValidatorProvider,
    CompositeModelValidatorProvider,
    default_validator_providers,
)
from pyindexbind.validation.cache import ValidatorCache
from pyindexbind.validation.validators import Required, Range, Length, Pattern
from pyindexbind.validation.visitor import ValidationVisitor
from pyindexbind.validation.object_validator import ObjectValidator

__all__ = [
    "ValidationEntry",
    "ValidationStrategy",
    "DefaultComplexObjectValidationStrategy",
    "DefaultCollectionValidationStrategy",
    "ExplicitIndexCollectionValidationStrategy",
    "ModelValidationResult",
    "ModelValidationContext",
    "ModelValidator",
    "FunctionValidator",
    "ValidatorItem",
    "ValidatorProviderContext",
    "ModelValidatorProvider",
    "DefaultModelValidatorProvider",
    "FunctionValidatorProvider",
    "CompositeModelValidatorProvider",
    "default_validator_providers",
    "ValidatorCache",
    "Required",
    "Range",
    "Length",
    "Pattern",
    "ValidationVisitor",
    "ObjectValidator",
]
