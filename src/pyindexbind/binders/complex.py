"""
pyindexbind Complex Type Binder
Binds objects property by property
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pyindexbind.binders.base import ModelBinder
from pyindexbind.context import BindingContext, BindingResult
from pyindexbind.error_sink import FieldValidationState
from pyindexbind.errors import ConfigurationError, MissingRequiredValueError
from pyindexbind.paths import create_property_path
from pyindexbind.types import PropertyDescriptor

logger = logging.getLogger(__name__)


def can_update_property(prop: PropertyDescriptor) -> bool:
    """
    Check whether a property can receive bound data.

    Read-only properties still qualify when they hold a mutable object that
    can be bound in place.
    """
    if not prop.is_read_only:
        return True
    target = prop.type
    return not target.is_scalar and target.model_type is not tuple


class ComplexTypeBinder(ModelBinder):
    """
    Binder for complex targets.

    Args:
        property_binders: Binder for every property of the descriptor
    """

    def __init__(self, property_binders: Mapping[PropertyDescriptor, ModelBinder]) -> None:
        self.property_binders = dict(property_binders)
        self._can_construct_checked = False

    async def bind_model(self, context: BindingContext) -> BindingResult:
        if not self.can_create_model(context):
            logger.debug(f"Skipping '{context.model_name}': no bindable data for {context.descriptor.name}")
            return BindingResult.failed()

        model = context.model
        if model is None:
            model = self.create_model(context)

        sink = context.error_sink
        for prop in context.descriptor.properties:
            if not self.can_bind_property(context, prop):
                continue

            # bind into existing objects in place
            existing: Any = None
            if not prop.type.is_scalar and prop.type.model_type is not tuple:
                existing = prop.get_value(model)

            field_name = prop.field_name
            model_name = create_property_path(context.model_name, field_name)
            child = context.enter_nested_scope(
                prop.type,
                field_name=field_name,
                model_name=model_name,
                model=existing,
                binding_source=prop.binding_source,
                binder_model_name=prop.binder_name,
            )
            result = await self.property_binders[prop].bind_model(child)

            if result.is_model_set:
                self.set_property(context, model, model_name, prop, result)
            elif prop.is_required:
                message = sink.messages.missing_bind_required_value(field_name)
                sink.try_add_error(model_name, message, MissingRequiredValueError(message, model_name))

        return BindingResult.success(model)

    #---------------------------------------------------------------------------
    # Eligibility
    #---------------------------------------------------------------------------

    def can_bind_property(self, context: BindingContext, prop: PropertyDescriptor) -> bool:
        descriptor_filter = context.descriptor.property_filter
        if descriptor_filter is not None and not descriptor_filter(prop):
            return False
        if context.property_filter is not None and not context.property_filter(prop):
            return False
        if not prop.binding_allowed:
            return False
        return can_update_property(prop)

    def can_create_model(self, context: BindingContext) -> bool:
        """
        Decide whether this object should be bound at all.

        Top-level objects always are. Nested objects are bound when a
        bindable property has data in the store, or when every bindable
        property is fed by a greedy source the store cannot see.
        """
        source = context.binding_source
        if not context.is_top_level and source is not None and source.is_greedy:
            return False
        if context.is_top_level:
            return True
        return self._can_value_bind_any_property(context)

    def _can_value_bind_any_property(self, context: BindingContext) -> bool:
        has_bindable = False
        has_store_bindable = False

        for prop in context.descriptor.properties:
            if not self.can_bind_property(context, prop):
                continue
            has_bindable = True
            if prop.is_greedy:
                continue

            has_store_bindable = True
            field_name = prop.field_name
            child = context.enter_nested_scope(
                prop.type,
                field_name=field_name,
                model_name=create_property_path(context.model_name, field_name),
                binding_source=prop.binding_source,
            )
            if child.value_store.contains_prefix(child.model_name):
                return True

        return has_bindable and not has_store_bindable

    #---------------------------------------------------------------------------
    # Construction and Assignment
    #---------------------------------------------------------------------------

    def create_model(self, context: BindingContext) -> Any:
        """
        Construct a default instance.

        Raises:
            ConfigurationError: If the descriptor has no default factory
        """
        descriptor = context.descriptor
        if not self._can_construct_checked:
            if not descriptor.can_construct:
                if context.is_top_level:
                    raise ConfigurationError.no_parameterless_constructor(descriptor.name)
                raise ConfigurationError.no_parameterless_constructor(
                    descriptor.name,
                    context.model_name,
                    descriptor.container_name,
                )
            self._can_construct_checked = True
        return descriptor.create_instance()

    def set_property(
        self,
        context: BindingContext,
        model: Any,
        model_name: str,
        prop: PropertyDescriptor,
        result: BindingResult,
    ) -> None:
        if prop.is_read_only:
            return
        try:
            prop.set_value(model, result.model)
        except Exception as e:
            sink = context.error_sink
            if sink.get_field_validation_state(model_name) is not FieldValidationState.INVALID:
                sink.try_add_exception(model_name, e, prop.type)
