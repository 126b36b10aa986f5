"""
pyindexbind Binders Package

Recursive-descent binders for the three target shapes:
- Scalars, converted from one raw string
- Collections, bound in simple, explicit-index or ordinal-scan mode
- Complex objects, bound property by property
"""

from pyindexbind.binders.base import (
    ModelBinder,
    NoOpBinder,
    PlaceholderBinder,
    NO_OP_BINDER,
)
from pyindexbind.binders.simple import SimpleTypeBinder
from pyindexbind.binders.collection import CollectionBinder, CollectionResult
from pyindexbind.binders.complex import ComplexTypeBinder, can_update_property
from pyindexbind.binders.providers import (
    BinderProvider,
    SimpleTypeBinderProvider,
    CollectionBinderProvider,
    ComplexTypeBinderProvider,
    default_binder_providers,
)

__all__ = [
    "ModelBinder",
    "NoOpBinder",
    "PlaceholderBinder",
    "NO_OP_BINDER",
    "SimpleTypeBinder",
    "CollectionBinder",
    "CollectionResult",
    "ComplexTypeBinder",
    "can_update_property",
    "BinderProvider",
    "SimpleTypeBinderProvider",
    "CollectionBinderProvider",
    "ComplexTypeBinderProvider",
    "default_binder_providers",
]
