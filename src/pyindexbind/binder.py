"""
pyindexbind Index Model Binder
Top-level entry point: bind a value store into a typed graph, then validate it

Example:

    binder = create_index_model_binder()
    sink = binder.create_error_sink()
    store = DictValueStore({"Name": "x", "Addresses.index": ["K1"], "Addresses[K1].Street": "s"})
    result = binder.bind_model_sync(store, sink, Person)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

from pyindexbind.binders.providers import default_binder_providers
from pyindexbind.context import BindingInfo, BindingResult, create_binding_context
from pyindexbind.error_sink import ErrorSink
from pyindexbind.factory import ModelBinderFactory
from pyindexbind.options import BinderOptions
from pyindexbind.stores import ValueStore
from pyindexbind.types import TypeDescriptor, TypeRegistry, create_type_registry
from pyindexbind.validation.object_validator import ObjectValidator
from pyindexbind.validation.providers import default_validator_providers

logger = logging.getLogger(__name__)


#==============================================================================
# Index Model Binder
#==============================================================================

class IndexModelBinder:
    """
    Binds and validates models.

    The binder factory and the validator cache are shared by every call;
    each call gets its own contexts and cycle-detection state.

    Args:
        registry: Describes annotations passed instead of descriptors
        object_validator: Validator run after a successful bind
        options: Binder options
    """

    def __init__(
        self,
        registry: TypeRegistry,
        object_validator: ObjectValidator,
        options: Optional[BinderOptions] = None,
    ) -> None:
        self.registry = registry
        self.object_validator = object_validator
        self.options = options or BinderOptions()
        providers = self.options.binder_providers
        if providers is None:
            providers = default_binder_providers()
        self.factory = ModelBinderFactory(providers, self.options)

    def create_error_sink(self) -> ErrorSink:
        """Create an ErrorSink with the configured ceiling and messages"""
        return ErrorSink(self.options.max_model_errors, self.options.messages)

    def describe(self, target: Union[TypeDescriptor, Any]) -> TypeDescriptor:
        if isinstance(target, TypeDescriptor):
            return target
        return self.registry.describe(target)

    async def bind_model(
        self,
        store: ValueStore,
        error_sink: ErrorSink,
        descriptor: Union[TypeDescriptor, Any],
        binding_info: Optional[BindingInfo] = None,
        name: str = "",
        value: Any = None,
    ) -> BindingResult:
        """
        Bind ``descriptor`` from ``store`` and validate the result.

        The model name is the binding-info or descriptor override if there
        is one, else ``name`` when the store has data under it, else the
        empty prefix.

        Args:
            store: Source of raw values
            error_sink: Receives raw values, errors and validation states
            descriptor: Target descriptor, or an annotation to describe
            binding_info: Overrides for this bind
            name: Preferred model name
            value: Existing instance to bind into

        Returns:
            The binding result; unset when nothing was bound

        Raises:
            ConfigurationError: On setup mistakes
        """
        descriptor = self.describe(descriptor)
        binder = self.factory.create_binder(descriptor, cache_token=descriptor, binding_info=binding_info)

        context = create_binding_context(store, error_sink, descriptor, binding_info, name)
        override = (binding_info.binder_model_name if binding_info else None) or descriptor.binder_name
        if override is not None:
            model_name = override
        elif name and context.value_store.contains_prefix(name):
            model_name = name
        else:
            model_name = ""
        context = context.with_model_name(model_name).with_model(value)

        logger.debug(f"Binding {descriptor.name} at '{model_name}'")
        result = await binder.bind_model(context)

        if result.is_model_set:
            await self.object_validator.validate(
                error_sink,
                context.validation_state,
                model_name,
                result.model,
                descriptor,
            )
        return result

    def bind_model_sync(
        self,
        store: ValueStore,
        error_sink: ErrorSink,
        descriptor: Union[TypeDescriptor, Any],
        binding_info: Optional[BindingInfo] = None,
        name: str = "",
        value: Any = None,
    ) -> BindingResult:
        """Run ``bind_model`` to completion on a new event loop"""
        return asyncio.run(self.bind_model(store, error_sink, descriptor, binding_info, name, value))


#==============================================================================
# Default Wiring
#==============================================================================

def create_index_model_binder(
    options: Optional[BinderOptions] = None,
    registry: Optional[TypeRegistry] = None,
) -> IndexModelBinder:
    """Create an IndexModelBinder with the default providers"""
    options = options or BinderOptions()
    if registry is None:
        registry = create_type_registry()
    validator_providers = options.validator_providers
    if validator_providers is None:
        validator_providers = default_validator_providers()
    return IndexModelBinder(registry, ObjectValidator(registry, validator_providers), options)
