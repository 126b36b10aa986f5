"""
pyindexbind

Binds flat, multi-valued, string-keyed data (form fields, query strings)
addressed by dotted/bracketed paths such as ``Addresses[Key1].City.Name``
into typed nested value graphs, then validates those graphs and reports
field errors under the same paths.
"""

from __future__ import annotations

#==============================================================================
# Paths
#==============================================================================

from pyindexbind.paths import (
    INDEX_KEY_NAME,
    create_property_path,
    create_index_path,
    create_index_key,
    is_prefix_match,
)

#==============================================================================
# Type Descriptors
#==============================================================================

from pyindexbind.types import (
    TypeKind,
    BindingSource,
    FORM,
    QUERY,
    CUSTOM,
    BODY,
    SERVICES,
    PropertyDescriptor,
    TypeDescriptor,
    scalar_type,
    complex_type,
    collection_type,
    property_descriptor,
    TypeRegistry,
    create_type_registry,
)

#==============================================================================
# Value Stores
#==============================================================================

from pyindexbind.stores import (
    ValueResult,
    ValueStore,
    DictValueStore,
    ElementalValueStore,
    CompositeValueStore,
    with_overlay,
    from_form_pairs,
    from_query_string,
)

#==============================================================================
# Errors
#==============================================================================

from pyindexbind.errors import (
    ErrorCodes,
    BindingError,
    ConfigurationError,
    FieldConversionError,
    MissingRequiredValueError,
    ValidationError,
    TooManyErrorsError,
    MessageProvider,
    DEFAULT_MESSAGES,
)

from pyindexbind.error_sink import (
    ErrorSink,
    FieldEntry,
    FieldError,
    FieldValidationState,
)

#==============================================================================
# Binding
#==============================================================================

from pyindexbind.context import (
    BindingContext,
    BindingInfo,
    BindingResult,
    ValidationStateEntry,
    ValidationStateMap,
    create_binding_context,
)

from pyindexbind.converters import (
    ScalarConverter,
    InvariantConverter,
)

from pyindexbind.binders import (
    ModelBinder,
    SimpleTypeBinder,
    CollectionBinder,
    ComplexTypeBinder,
    BinderProvider,
    default_binder_providers,
)

from pyindexbind.factory import (
    BinderProviderContext,
    ModelBinderFactory,
)

#==============================================================================
# Validation
#==============================================================================

from pyindexbind.validation import (
    ModelValidator,
    ModelValidationContext,
    ModelValidationResult,
    ModelValidatorProvider,
    ObjectValidator,
    ValidationVisitor,
    ValidatorCache,
    Required,
    Range,
    Length,
    Pattern,
)

#==============================================================================
# Entry Point
#==============================================================================

from pyindexbind.options import BinderOptions

from pyindexbind.binder import (
    IndexModelBinder,
    create_index_model_binder,
)


__version__ = "0.1.0"

__all__ = [
    # Paths
    "INDEX_KEY_NAME",
    "create_property_path",
    "create_index_path",
    "create_index_key",
    "is_prefix_match",
    # Type descriptors
    "TypeKind",
    "BindingSource",
    "FORM",
    "QUERY",
    "CUSTOM",
    "BODY",
    "SERVICES",
    "PropertyDescriptor",
    "TypeDescriptor",
    "scalar_type",
    "complex_type",
    "collection_type",
    "property_descriptor",
    "TypeRegistry",
    "create_type_registry",
    # Value stores
    "ValueResult",
    "ValueStore",
    "DictValueStore",
    "ElementalValueStore",
    "CompositeValueStore",
    "with_overlay",
    "from_form_pairs",
    "from_query_string",
    # Errors
    "ErrorCodes",
    "BindingError",
    "ConfigurationError",
    "FieldConversionError",
    "MissingRequiredValueError",
    "ValidationError",
    "TooManyErrorsError",
    "MessageProvider",
    "DEFAULT_MESSAGES",
    "ErrorSink",
    "FieldEntry",
    "FieldError",
    "FieldValidationState",
    # Binding
    "BindingContext",
    "BindingInfo",
    "BindingResult",
    "ValidationStateEntry",
    "ValidationStateMap",
    "create_binding_context",
    "ScalarConverter",
    "InvariantConverter",
    "ModelBinder",
    "SimpleTypeBinder",
    "CollectionBinder",
    "ComplexTypeBinder",
    "BinderProvider",
    "default_binder_providers",
    "BinderProviderContext",
    "ModelBinderFactory",
    # Validation
    "ModelValidator",
    "ModelValidationContext",
    "ModelValidationResult",
    "ModelValidatorProvider",
    "ObjectValidator",
    "ValidationVisitor",
    "ValidatorCache",
    "Required",
    "Range",
    "Length",
    "Pattern",
    # Entry point
    "BinderOptions",
    "IndexModelBinder",
    "create_index_model_binder",
    "__version__",
]
