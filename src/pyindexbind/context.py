"""
pyindexbind Binding Context
Immutable cursor carried through recursive binding

A BindingContext never changes after creation. Entering a nested scope
derives a child context from its parent and hands it to the child binder, so
the parent's state is untouched when the child returns, whether it returned
normally or raised. The nesting stack is the call stack itself and is
balanced on every exit path.

Only the ErrorSink and the ValidationStateMap are shared by all contexts of
one bind call.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Optional,
    Tuple,
    TYPE_CHECKING,
)

from pyindexbind.error_sink import ErrorSink
from pyindexbind.stores import CompositeValueStore, ValueStore
from pyindexbind.types import BindingSource, PropertyDescriptor, TypeDescriptor

if TYPE_CHECKING:
    from pyindexbind.validation.strategies import ValidationStrategy


#==============================================================================
# Binding Info and Result
#==============================================================================

@dataclass(frozen=True)
class BindingInfo:
    """Caller overrides for a top-level bind"""
    binder_model_name: Optional[str] = None
    binding_source: Optional[BindingSource] = None
    property_filter: Optional[Callable[[PropertyDescriptor], bool]] = None


@dataclass(frozen=True)
class BindingResult:
    """Outcome of one binder invocation; unset means untouched, not failed"""
    is_model_set: bool = False
    model: Any = None

    @staticmethod
    def failed() -> "BindingResult":
        return _FAILED

    @staticmethod
    def success(model: Any) -> "BindingResult":
        return BindingResult(True, model)


_FAILED = BindingResult()


#==============================================================================
# Validation State
#==============================================================================

@dataclass
class ValidationStateEntry:
    """
    Per-instance validation overrides registered during binding.

    Attributes:
        key: Path to validate the instance under, if different
        descriptor: Descriptor to validate the instance with, if different
        strategy: Child enumeration strategy
        suppress_validation: Skip the instance and its subtree
    """
    key: Optional[str] = None
    descriptor: Optional[TypeDescriptor] = None
    strategy: Optional["ValidationStrategy"] = None
    suppress_validation: bool = False


class ValidationStateMap:
    """
    ValidationStateEntry lookup by instance identity.

    Two equal instances at different identities are distinct keys. The map
    keeps a reference to each registered instance so its identity cannot be
    reused while the entry exists.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, Tuple[Any, ValidationStateEntry]] = {}

    def add(self, instance: Any, entry: ValidationStateEntry) -> None:
        self._entries[id(instance)] = (instance, entry)

    def get(self, instance: Any) -> Optional[ValidationStateEntry]:
        if instance is None:
            return None
        item = self._entries.get(id(instance))
        if item is None or item[0] is not instance:
            return None
        return item[1]

    def __contains__(self, instance: Any) -> bool:
        return self.get(instance) is not None

    def __len__(self) -> int:
        return len(self._entries)


#==============================================================================
# Binding Context
#==============================================================================

def filter_value_store(store: ValueStore, source: Optional[BindingSource]) -> ValueStore:
    """Narrow a store to a non-greedy binding source"""
    if source is None or source.is_greedy:
        return store
    return store.filter(source) or CompositeValueStore()


@dataclass(frozen=True)
class BindingContext:
    """
    Scoped binding state.

    Attributes:
        descriptor: Shape of the value being bound
        model_name: Full path of the value being bound
        field_name: Last segment of the path
        value_store: Store view for this scope
        original_value_store: Unfiltered store the bind started from
        error_sink: Shared ErrorSink of this bind call
        validation_state: Shared ValidationStateMap of this bind call
        model: Pre-existing value to bind into, if any
        binder_model_name: Model name override of the descriptor
        binding_source: Binding source of this scope
        property_filter: Predicate excluding properties from binding
        is_top_level: True only for the root scope
        depth: Nesting depth (root = 0)
    """
    descriptor: TypeDescriptor
    model_name: str
    field_name: str
    value_store: ValueStore
    original_value_store: ValueStore
    error_sink: ErrorSink
    validation_state: ValidationStateMap
    model: Any = None
    binder_model_name: Optional[str] = None
    binding_source: Optional[BindingSource] = None
    property_filter: Optional[Callable[[PropertyDescriptor], bool]] = None
    is_top_level: bool = False
    depth: int = 0

    def enter_nested_scope(
        self,
        descriptor: TypeDescriptor,
        field_name: str,
        model_name: str,
        model: Any = None,
        binding_source: Optional[BindingSource] = None,
        binder_model_name: Optional[str] = None,
    ) -> "BindingContext":
        """
        Derive the context for a child value.

        Args:
            descriptor: Shape of the child
            field_name: Last path segment of the child
            model_name: Full path of the child
            model: Pre-existing child value to bind into
            binding_source: Member-level source, overriding the descriptor's
            binder_model_name: Member-level name override

        Returns:
            A new context; this context is unchanged
        """
        source = binding_source or descriptor.binding_source
        value_store = self.value_store
        if source is not None and not source.is_greedy:
            value_store = filter_value_store(self.original_value_store, source)

        return dataclasses.replace(
            self,
            descriptor=descriptor,
            field_name=field_name,
            model_name=model_name,
            model=model,
            value_store=value_store,
            binder_model_name=binder_model_name or descriptor.binder_name,
            binding_source=source,
            property_filter=descriptor.property_filter,
            is_top_level=False,
            depth=self.depth + 1,
        )

    def with_value_store(self, store: ValueStore) -> "BindingContext":
        return dataclasses.replace(self, value_store=store)

    def with_model(self, model: Any) -> "BindingContext":
        return dataclasses.replace(self, model=model)

    def with_model_name(self, model_name: str) -> "BindingContext":
        return dataclasses.replace(self, model_name=model_name)


def create_binding_context(
    value_store: ValueStore,
    error_sink: ErrorSink,
    descriptor: TypeDescriptor,
    binding_info: Optional[BindingInfo],
    model_name: str,
    validation_state: Optional[ValidationStateMap] = None,
) -> BindingContext:
    """
    Create the root context of a bind call.

    Binding-info overrides win over the descriptor's own settings. The root
    field name and model name are the same.
    """
    info = binding_info or BindingInfo()
    binder_model_name = info.binder_model_name or descriptor.binder_name
    source = info.binding_source or descriptor.binding_source
    property_filter = info.property_filter or descriptor.property_filter
    name = binder_model_name or model_name

    return BindingContext(
        descriptor=descriptor,
        model_name=name,
        field_name=name,
        value_store=filter_value_store(value_store, source),
        original_value_store=value_store,
        error_sink=error_sink,
        validation_state=validation_state if validation_state is not None else ValidationStateMap(),
        binder_model_name=binder_model_name,
        binding_source=source,
        property_filter=property_filter,
        is_top_level=True,
        depth=0,
    )
