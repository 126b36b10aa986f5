"""Tests for collection binding in simple, explicit-index and ordinal-scan modes."""

from __future__ import annotations

from typing import List, Set

from conftest import Address, Person, bind_with, run
from pyindexbind import (
    BinderOptions,
    CollectionBinder,
    DictValueStore,
    ErrorSink,
    ModelBinderFactory,
    create_binding_context,
    default_binder_providers,
)
from pyindexbind.validation import ExplicitIndexCollectionValidationStrategy


def make_factory(**options) -> ModelBinderFactory:
    return ModelBinderFactory(default_binder_providers(), BinderOptions(**options))


#==============================================================================
# Explicit Index Mode
#==============================================================================

def test_explicit_indexes_bind_in_token_order(registry) -> None:
    store = DictValueStore({
        "addresses.index": ["Key1", "Key2"],
        "addresses[Key1].street": "Street1",
        "addresses[Key2].street": "Street2",
        "addresses[0].street": "ignored",
    })

    result, sink, context = bind_with(make_factory(), registry.describe(Person), store)

    addresses = result.model.addresses
    assert [a.street for a in addresses] == ["Street1", "Street2"]
    assert "addresses[Key1].street" in sink
    assert "addresses[Key2].street" in sink
    assert "addresses[0].street" not in sink

    entry = context.validation_state.get(addresses)
    assert isinstance(entry.strategy, ExplicitIndexCollectionValidationStrategy)
    assert entry.strategy.index_names == ("Key1", "Key2")


def test_failed_explicit_slot_holds_empty_value(registry) -> None:
    store = DictValueStore({
        "addresses.index": ["Key1", "Key2"],
        "addresses[Key1].street": "Street1",
    })

    result, _, _ = bind_with(make_factory(), registry.describe(Person), store)

    addresses = result.model.addresses
    assert len(addresses) == 2
    assert addresses[0].street == "Street1"
    assert addresses[1] is None


#==============================================================================
# Ordinal Scan Mode
#==============================================================================

def test_ordinal_scan_stops_at_first_gap(registry) -> None:
    store = DictValueStore({
        "addresses[0].street": "a",
        "addresses[1].street": "b",
        "addresses[3].street": "d",
    })

    result, _, context = bind_with(make_factory(), registry.describe(Person), store)

    addresses = result.model.addresses
    assert [a.street for a in addresses] == ["a", "b"]
    assert addresses not in context.validation_state


def test_ordinal_scan_respects_max_index(registry) -> None:
    store = DictValueStore({
        "addresses[0].street": "a",
        "addresses[1].street": "b",
        "addresses[2].street": "c",
    })

    result, _, _ = bind_with(make_factory(max_ordinal_index=1), registry.describe(Person), store)

    assert [a.street for a in result.model.addresses] == ["a", "b"]


def test_ordinal_scan_of_scalars(registry) -> None:
    store = DictValueStore({"numbers[0]": "1", "numbers[1]": "2"})

    result, _, _ = bind_with(make_factory(), registry.describe(List[int]), store, name="numbers")

    assert result.model == [1, 2]


#==============================================================================
# Simple Mode
#==============================================================================

def test_direct_values_bind_as_simple_collection(registry) -> None:
    store = DictValueStore({"tags": ["a", "b"]})

    result, sink, _ = bind_with(make_factory(), registry.describe(List[str]), store, name="tags")

    assert result.model == ["a", "b"]
    assert sink["tags"].raw_value == ["a", "b"]
    assert sink["tags"].attempted_value == "a,b"


def test_unconvertible_simple_values_are_dropped(registry) -> None:
    store = DictValueStore({"numbers": ["1", "x", "3"]})

    result, sink, _ = bind_with(make_factory(), registry.describe(List[int]), store, name="numbers")

    assert result.model == [1, 3]
    assert sink.error_count == 1
    assert sink["numbers"].errors[0].message == "The value 'x' is not valid for numbers."


def test_direct_values_win_over_index_tokens(registry) -> None:
    store = DictValueStore({
        "tags": "direct",
        "tags.index": "k",
        "tags[k]": "indexed",
    })

    result, _, _ = bind_with(make_factory(), registry.describe(List[str]), store, name="tags")

    assert result.model == ["direct"]


#==============================================================================
# Destination
#==============================================================================

def test_top_level_collection_without_data_is_empty(registry) -> None:
    result, _, _ = bind_with(make_factory(), registry.describe(List[str]), DictValueStore({}))

    assert result.is_model_set
    assert result.model == []


def test_nested_collection_without_data_is_left_alone(registry) -> None:
    result, _, _ = bind_with(make_factory(), registry.describe(Person), DictValueStore({"name": "x"}))

    assert result.model.name == "x"
    assert result.model.addresses == []


def test_set_destination(registry) -> None:
    store = DictValueStore({"tags": ["a", "b", "a"]})

    result, _, _ = bind_with(make_factory(), registry.describe(Set[str]), store, name="tags")

    assert isinstance(result.model, set)
    assert result.model == {"a", "b"}


def test_existing_collection_is_refilled_in_place(registry) -> None:
    descriptor = registry.describe(Person)
    existing = [Address(street="old")]
    person = Person(name="p", addresses=existing)
    store = DictValueStore({"addresses[0].street": "new", "addresses[1].street": "newer"})

    sink = ErrorSink()
    context = create_binding_context(store, sink, descriptor, None, "").with_model(person)
    binder = make_factory().create_binder(descriptor, cache_token=descriptor)
    result = run(binder.bind_model(context))

    assert result.model is person
    assert person.addresses is existing
    assert [a.street for a in existing] == ["new", "newer"]


def test_destination_types_the_binder_can_create() -> None:
    assert CollectionBinder.can_create_instance(list)
    assert CollectionBinder.can_create_instance(set)
    assert not CollectionBinder.can_create_instance(tuple)
    assert not CollectionBinder.can_create_instance(frozenset)
