"""Tests for property-by-property binding of complex objects."""

from __future__ import annotations

import types
from dataclasses import dataclass, field
from typing import Optional

import pytest

from conftest import Address, City, bind_with, run
from pyindexbind import (
    BODY,
    QUERY,
    BinderOptions,
    BindingInfo,
    CompositeValueStore,
    ConfigurationError,
    DictValueStore,
    ErrorCodes,
    ErrorSink,
    FieldConversionError,
    MissingRequiredValueError,
    ModelBinderFactory,
    ScalarConverter,
    ValidationError,
    complex_type,
    create_binding_context,
    default_binder_providers,
    property_descriptor,
    scalar_type,
)


@dataclass
class Account:
    email: Optional[str] = field(default=None, metadata={"bind_name": "EmailAddress", "required": True})
    nickname: Optional[str] = None


@dataclass
class Profile:
    name: Optional[str] = None
    created_by: Optional[str] = field(default=None, metadata={"read_only": True})
    home: City = field(default_factory=City, metadata={"read_only": True})


@dataclass
class Point:
    x: int
    y: int = 0


@dataclass
class Shape:
    origin: Optional[Point] = None


@dataclass
class Upload:
    payload: Optional[str] = field(default=None, metadata={"binding_source": BODY})


@dataclass
class Request:
    upload: Optional[Upload] = None


@dataclass
class Search:
    term: Optional[str] = field(default=None, metadata={"binding_source": QUERY})
    page: int = 0


@dataclass
class Item:
    name: Optional[str] = None
    code: int = 0


class LookupConverter(ScalarConverter):
    def convert(self, value, descriptor, locale):
        if descriptor.model_type is int:
            return {"one": 1}[value]
        return value


@pytest.fixture
def factory() -> ModelBinderFactory:
    return ModelBinderFactory(default_binder_providers())


def test_scalar_properties_are_bound(factory, registry) -> None:
    store = DictValueStore({"Name": "Yalova", "Latitude": "40.65", "Longitude": "29.27"})

    result, sink, _ = bind_with(factory, registry.describe(City), store)

    assert result.model == City(name="Yalova", latitude=40.65, longitude=29.27)
    assert sink.error_count == 0
    assert len(sink) == 3


def test_nested_object_without_data_stays_unset(factory, registry) -> None:
    result, _, _ = bind_with(factory, registry.describe(Address), DictValueStore({"street": "s"}))

    assert result.model.street == "s"
    assert result.model.city is None


def test_nested_object_with_data_is_created(factory, registry) -> None:
    store = DictValueStore({"city.name": "Yalova"})

    result, _, _ = bind_with(factory, registry.describe(Address), store)

    assert result.model.city == City(name="Yalova")


def test_top_level_object_is_created_without_data(factory, registry) -> None:
    result, sink, _ = bind_with(factory, registry.describe(City), DictValueStore({}))

    assert result.model == City()
    assert len(sink) == 0


def test_missing_required_property_is_reported_under_bind_name(factory, registry) -> None:
    store = DictValueStore({"nickname": "n"})

    result, sink, _ = bind_with(factory, registry.describe(Account), store)

    assert result.model.nickname == "n"
    error = sink["EmailAddress"].errors[0]
    assert error.message == "A value for the 'EmailAddress' property was not provided."
    assert isinstance(error.exception, MissingRequiredValueError)


def test_bind_name_overrides_path_segment(factory, registry) -> None:
    store = DictValueStore({"emailaddress": "a@b.c", "email": "wrong"})

    result, sink, _ = bind_with(factory, registry.describe(Account), store)

    assert result.model.email == "a@b.c"
    assert sink.is_valid


def test_read_only_properties(factory, registry) -> None:
    store = DictValueStore({"name": "n", "created_by": "x", "home.name": "Bursa"})
    descriptor = registry.describe(Profile)
    profile = Profile()
    home = profile.home

    sink = ErrorSink()
    context = create_binding_context(store, sink, descriptor, None, "").with_model(profile)
    binder = factory.create_binder(descriptor, cache_token=descriptor)
    run(binder.bind_model(context))

    assert profile.name == "n"
    assert profile.created_by is None
    assert "created_by" not in sink
    assert profile.home is home
    assert home.name == "Bursa"


def test_setter_failure_is_recorded_with_cause(factory) -> None:
    def reject(instance, value):
        raise ValueError("size is out of stock")

    descriptor = complex_type(
        "Box",
        [property_descriptor("size", scalar_type(int), setter=reject)],
        factory=types.SimpleNamespace,
    )

    result, sink, _ = bind_with(factory, descriptor, DictValueStore({"size": "3"}))

    assert result.is_model_set
    error = sink["size"].errors[0]
    assert error.message == "size is out of stock"
    assert isinstance(error.exception, ValidationError)
    assert isinstance(error.exception.__cause__, ValueError)


def test_setter_failure_raised_from_none_keeps_its_own_message(factory) -> None:
    def even_only(instance, value):
        try:
            {}["internal"]
        except KeyError:
            raise ValueError("age must be even") from None

    descriptor = complex_type(
        "Person",
        [property_descriptor("age", scalar_type(int), setter=even_only)],
        factory=types.SimpleNamespace,
    )

    result, sink, _ = bind_with(factory, descriptor, DictValueStore({"age": "3"}))

    assert result.is_model_set
    error = sink["age"].errors[0]
    assert error.message == "age must be even"
    assert isinstance(error.exception.__cause__, ValueError)


def test_converter_lookup_failure_does_not_abort_binding(registry) -> None:
    factory = ModelBinderFactory(default_binder_providers(), BinderOptions(converter=LookupConverter()))
    store = DictValueStore({"Name": "x", "Code": "two"})

    result, sink, _ = bind_with(factory, registry.describe(Item), store)

    assert result.is_model_set
    assert result.model.name == "x"
    assert result.model.code == 0
    error = sink["code"].errors[0]
    assert error.message == "The value 'two' is not valid for code."
    assert isinstance(error.exception, FieldConversionError)
    assert isinstance(error.exception.__cause__, KeyError)


def test_top_level_type_without_default_constructor_fails(factory, registry) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        bind_with(factory, registry.describe(Point), DictValueStore({"x": "1"}))

    assert exc_info.value.code is ErrorCodes.NO_PARAMETERLESS_CONSTRUCTOR
    assert "Top-level" in str(exc_info.value)


def test_nested_type_without_default_constructor_fails(factory, registry) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        bind_with(factory, registry.describe(Shape), DictValueStore({"origin.x": "1"}))

    assert exc_info.value.code is ErrorCodes.NO_PARAMETERLESS_CONSTRUCTOR
    assert "'origin'" in str(exc_info.value)


def test_nested_type_without_default_constructor_is_fine_without_data(factory, registry) -> None:
    result, _, _ = bind_with(factory, registry.describe(Shape), DictValueStore({"other": "1"}))

    assert result.model.origin is None


def test_object_fed_only_by_greedy_sources_is_still_created(factory, registry) -> None:
    result, _, _ = bind_with(factory, registry.describe(Request), DictValueStore({"other": "1"}))

    assert isinstance(result.model.upload, Upload)
    assert result.model.upload.payload is None


def test_binding_info_property_filter(factory, registry) -> None:
    descriptor = registry.describe(Address)
    store = DictValueStore({"zip": "34000", "street": "s"})
    info = BindingInfo(property_filter=lambda prop: prop.name != "street")

    sink = ErrorSink()
    context = create_binding_context(store, sink, descriptor, info, "")
    binder = factory.create_binder(descriptor, cache_token=descriptor)
    result = run(binder.bind_model(context))

    assert result.model.zip == 34000
    assert result.model.street is None


def test_property_binding_source_filters_stores(factory, registry) -> None:
    store = CompositeValueStore([
        DictValueStore({"term": "from-form", "page": "2"}),
        DictValueStore({"term": "from-query"}, binding_source=QUERY),
    ])

    result, _, _ = bind_with(factory, registry.describe(Search), store)

    assert result.model.term == "from-query"
    assert result.model.page == 2


def test_prefixed_model_name(factory, registry) -> None:
    store = DictValueStore({"city.name": "Yalova", "city.latitude": "40.65"})

    result, sink, _ = bind_with(factory, registry.describe(City), store, name="city")

    assert result.model.name == "Yalova"
    assert result.model.latitude == 40.65
    assert "city.name" in sink
