"""
pyindexbind Object Validator
Entry point for validating a bound value graph
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from pyindexbind.context import ValidationStateMap
from pyindexbind.error_sink import ErrorSink
from pyindexbind.errors import ConfigurationError
from pyindexbind.types import TypeDescriptor, TypeRegistry
from pyindexbind.validation.cache import ValidatorCache
from pyindexbind.validation.providers import (
    CompositeModelValidatorProvider,
    ModelValidatorProvider,
)
from pyindexbind.validation.visitor import ValidationVisitor


class ObjectValidator:
    """
    Validates value graphs with a shared validator cache.

    Args:
        registry: Describes models passed without a descriptor
        providers: Validator provider chain, asked in order

    Raises:
        ConfigurationError: If no providers are given
    """

    def __init__(self, registry: TypeRegistry, providers: Sequence[ModelValidatorProvider]) -> None:
        if not providers:
            raise ConfigurationError.no_validator_providers()
        self.registry = registry
        self.provider = CompositeModelValidatorProvider(providers)
        self.cache = ValidatorCache()

    async def validate(
        self,
        error_sink: ErrorSink,
        validation_state: Optional[ValidationStateMap],
        prefix: str,
        model: Any,
        descriptor: Optional[TypeDescriptor] = None,
    ) -> bool:
        """
        Validate ``model`` found at ``prefix``, writing into ``error_sink``.

        Returns:
            True if the graph is valid
        """
        if descriptor is None and model is not None:
            descriptor = self.registry.describe(type(model))
        visitor = ValidationVisitor(error_sink, self.provider, self.cache, validation_state)
        return await visitor.validate(descriptor, prefix, model)
