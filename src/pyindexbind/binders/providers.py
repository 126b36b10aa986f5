"""
pyindexbind Binder Providers
Choose a binder for a descriptor; the factory asks providers in order
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TYPE_CHECKING

from pyindexbind.binders.base import ModelBinder
from pyindexbind.binders.collection import CollectionBinder
from pyindexbind.binders.complex import ComplexTypeBinder
from pyindexbind.binders.simple import SimpleTypeBinder
from pyindexbind.converters import InvariantConverter
from pyindexbind.types import PropertyDescriptor

if TYPE_CHECKING:
    from pyindexbind.factory import BinderProviderContext


#==============================================================================
# Provider Interface
#==============================================================================

class BinderProvider(ABC):
    """Creates binders for the descriptors it understands"""

    @abstractmethod
    def get_binder(self, context: "BinderProviderContext") -> Optional[ModelBinder]:
        """
        Create a binder for ``context.descriptor``.

        Returns:
            A binder, or None to let the next provider try
        """


#==============================================================================
# Default Providers
#==============================================================================

class SimpleTypeBinderProvider(BinderProvider):
    """Scalars"""

    def get_binder(self, context: "BinderProviderContext") -> Optional[ModelBinder]:
        if not context.descriptor.is_scalar:
            return None
        converter = context.options.converter or InvariantConverter()
        return SimpleTypeBinder(converter)


class CollectionBinderProvider(BinderProvider):
    """Collections whose destination can be produced from a list"""

    def get_binder(self, context: "BinderProviderContext") -> Optional[ModelBinder]:
        descriptor = context.descriptor
        if not descriptor.is_collection or descriptor.element_type is None:
            return None
        if descriptor.model_type is tuple:
            return None
        if descriptor.model_type is not None and not descriptor.can_construct \
                and not CollectionBinder.can_create_instance(descriptor.model_type):
            return None

        element_binder = context.create_binder(descriptor.element_type)
        return CollectionBinder(element_binder, context.options.max_ordinal_index)


class ComplexTypeBinderProvider(BinderProvider):
    """Objects with properties"""

    def get_binder(self, context: "BinderProviderContext") -> Optional[ModelBinder]:
        descriptor = context.descriptor
        if not descriptor.is_complex:
            return None

        property_binders: Dict[PropertyDescriptor, ModelBinder] = {}
        for prop in descriptor.properties:
            property_binders[prop] = context.create_binder(prop.type)
        return ComplexTypeBinder(property_binders)


def default_binder_providers() -> List[BinderProvider]:
    """Default provider chain: simple, collection, complex"""
    return [
        SimpleTypeBinderProvider(),
        CollectionBinderProvider(),
        ComplexTypeBinderProvider(),
    ]
