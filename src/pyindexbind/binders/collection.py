"""
pyindexbind Collection Binder
Binds sequences and sets in simple, explicit-index or ordinal-scan mode

    simple:         Tags=a&Tags=b                      direct values at the path
    explicit index: Items.index=K1&Items[K1].Name=x     tokens listed under .index
    ordinal scan:   Items[0].Name=x&Items[1].Name=y     probe [0], [1], ... until a miss
"""

from __future__ import annotations

import collections.abc
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from pyindexbind.binders.base import ModelBinder
from pyindexbind.context import BindingContext, BindingResult, ValidationStateEntry
from pyindexbind.paths import create_index_key, create_index_path
from pyindexbind.stores import ElementalValueStore, ValueResult, with_overlay
from pyindexbind.types import TypeDescriptor, accepts_list, is_constructible_collection
from pyindexbind.validation.strategies import (
    ExplicitIndexCollectionValidationStrategy,
    ValidationStrategy,
)

logger = logging.getLogger(__name__)


@dataclass
class CollectionResult:
    """Elements bound by one mode, with the strategy to validate them by"""
    model: List[Any]
    validation_strategy: Optional[ValidationStrategy] = None


def _cast_or_default(value: Any, element: TypeDescriptor) -> Any:
    return element.empty_value if value is None else value


class CollectionBinder(ModelBinder):
    """
    Binder for collection targets.

    Args:
        element_binder: Binder used for every element
        max_ordinal_index: Highest index an ordinal scan probes, None for
            no limit other than the first miss
    """

    def __init__(self, element_binder: ModelBinder, max_ordinal_index: Optional[int] = None) -> None:
        self.element_binder = element_binder
        self.max_ordinal_index = max_ordinal_index

    async def bind_model(self, context: BindingContext) -> BindingResult:
        descriptor = context.descriptor
        model = context.model
        model_name = context.model_name

        if not context.value_store.contains_prefix(model_name):
            if context.is_top_level:
                if model is None:
                    model = self.create_empty_collection(descriptor)
                return BindingResult.success(model)
            return BindingResult.failed()

        values = context.value_store.get_value(model_name)
        if values.found:
            logger.debug(f"Binding '{model_name}' as a simple collection of {len(values)} values")
            result = await self.bind_simple_collection(context, values)
        else:
            result = await self.bind_complex_collection(context)

        if model is None:
            model = self.convert_to_collection_type(descriptor, result.model)
        else:
            self.copy_to_model(model, result.model)

        if result.validation_strategy is not None:
            context.validation_state.add(model, ValidationStateEntry(strategy=result.validation_strategy))

        if values.found:
            context.error_sink.set_model_value_from_result(model_name, values)

        return BindingResult.success(model)

    #---------------------------------------------------------------------------
    # Modes
    #---------------------------------------------------------------------------

    async def bind_simple_collection(self, context: BindingContext, values: ValueResult) -> CollectionResult:
        """Bind each direct value as one element, keeping only successes"""
        element = context.descriptor.element_type
        bound: List[Any] = []

        for value in values:
            child = context.enter_nested_scope(
                element,
                field_name=context.field_name,
                model_name=context.model_name,
            )
            overlay = ElementalValueStore(context.model_name, value, values.locale)
            child = child.with_value_store(with_overlay(overlay, child.value_store))

            result = await self.element_binder.bind_model(child)
            if result.is_model_set:
                bound.append(_cast_or_default(result.model, element))

        return CollectionResult(bound)

    async def bind_complex_collection(self, context: BindingContext) -> CollectionResult:
        """Bind elements addressed by explicit index tokens or by ordinal"""
        index_result = context.value_store.get_value(create_index_key(context.model_name))
        tokens = list(index_result) if index_result.found else None
        return await self.bind_complex_collection_from_indexes(context, tokens)

    async def bind_complex_collection_from_indexes(
        self,
        context: BindingContext,
        index_names: Optional[Sequence[str]],
    ) -> CollectionResult:
        """
        Bind ``[token]`` children.

        With explicit tokens every token occupies a slot, failed ones holding
        the element's empty value. Without tokens ``[0]``, ``[1]``, ... are
        probed until the first one that does not bind.
        """
        element = context.descriptor.element_type
        is_finite = index_names is not None
        if is_finite:
            logger.debug(f"Binding '{context.model_name}' from {len(index_names)} explicit indexes")
            names = iter(index_names)
        else:
            logger.debug(f"Binding '{context.model_name}' by ordinal scan")
            names = map(str, self._ordinals())

        bound: List[Any] = []
        for index_name in names:
            child = context.enter_nested_scope(
                element,
                field_name=index_name,
                model_name=create_index_path(context.model_name, index_name),
            )
            result = await self.element_binder.bind_model(child)

            if not result.is_model_set and not is_finite:
                break
            bound.append(_cast_or_default(result.model if result.is_model_set else None, element))

        strategy = ExplicitIndexCollectionValidationStrategy(index_names) if is_finite else None
        return CollectionResult(bound, strategy)

    def _ordinals(self):
        if self.max_ordinal_index is None:
            index = 0
            while True:
                yield index
                index += 1
        else:
            yield from range(self.max_ordinal_index + 1)

    #---------------------------------------------------------------------------
    # Destination
    #---------------------------------------------------------------------------

    @staticmethod
    def can_create_instance(target_type: type) -> bool:
        return is_constructible_collection(target_type)

    def create_empty_collection(self, descriptor: TypeDescriptor) -> Any:
        if descriptor.model_type is None or accepts_list(descriptor.model_type):
            return []
        return descriptor.create_instance()

    def convert_to_collection_type(self, descriptor: TypeDescriptor, bound: List[Any]) -> Any:
        if descriptor.model_type is None or accepts_list(descriptor.model_type):
            return bound
        target = descriptor.create_instance()
        self.copy_to_model(target, bound)
        return target

    def copy_to_model(self, target: Any, bound: List[Any]) -> None:
        """Clear ``target`` and refill it; immutable targets are left alone"""
        if isinstance(target, collections.abc.MutableSequence):
            target.clear()
            target.extend(bound)
        elif isinstance(target, collections.abc.MutableSet):
            target.clear()
            for item in bound:
                target.add(item)
