"""Tests for the validation visitor and the built-in validators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from conftest import Person, run
from pyindexbind import (
    ConfigurationError,
    ErrorCodes,
    ErrorSink,
    FieldValidationState,
    Length,
    ModelValidationResult,
    ModelValidator,
    ObjectValidator,
    Pattern,
    Range,
    Required,
    TooManyErrorsError,
    ValidationError,
    ValidationStateEntry,
    ValidationStateMap,
    ValidationVisitor,
    ValidatorCache,
    complex_type,
    create_type_registry,
    property_descriptor,
    scalar_type,
)
from pyindexbind.validation import CompositeModelValidatorProvider, default_validator_providers


def required():
    return field(default=None, metadata={"validators": (Required(),)})


@dataclass
class Form:
    a: Optional[str] = required()
    b: Optional[str] = required()
    c: Optional[str] = required()


@dataclass
class Limits:
    age: int = field(default=0, metadata={"validators": (Range(0, 120),)})
    code: Optional[str] = field(default=None, metadata={"validators": (Length(2, 4),)})
    zip: Optional[str] = field(default=None, metadata={"validators": (Pattern(r"\d{5}"),)})
    tags: List[str] = field(default_factory=list, metadata={"validators": (Required(),)})


class Node:
    def __init__(self, name=None):
        self.name = name
        self.next = None


def validate(model, descriptor=None, sink=None, state=None, prefix=""):
    validator = ObjectValidator(create_type_registry(), default_validator_providers())
    sink = sink if sink is not None else ErrorSink()
    return run(validator.validate(sink, state, prefix, model, descriptor)), sink


#==============================================================================
# Traversal
#==============================================================================

def test_reference_cycle_terminates_and_validates_each_instance_once() -> None:
    calls = []
    node = complex_type(
        "Node",
        [
            property_descriptor("name", scalar_type(str)),
            property_descriptor("next", lambda: node),
        ],
        factory=Node,
        validators=(calls.append,),
    )
    first, second = Node("a"), Node("b")
    first.next = second
    second.next = first

    is_valid, sink = validate(first, node)

    assert is_valid
    assert calls == [second, first]
    assert sink.error_count == 0


def test_errors_are_recorded_under_member_paths() -> None:
    is_valid, sink = validate(Form(a="x"), prefix="form")

    assert not is_valid
    assert sink["form.b"].errors[0].message == "The b field is required."
    assert isinstance(sink["form.c"].errors[0].exception, ValidationError)
    assert "form.a" not in sink


def test_validator_results_are_appended_to_node_path() -> None:
    class StreetCheck(ModelValidator):
        def validate(self, context):
            return [ModelValidationResult("street", "Street is not deliverable")]

    registry = create_type_registry()
    address = registry.describe(Person).properties[1].type.element_type
    descriptor = address.with_details(validator_metadata=(StreetCheck(),))

    is_valid, sink = validate(address.model_type(street="s"), descriptor, prefix="home")

    assert not is_valid
    assert sink["home.street"].errors[0].message == "Street is not deliverable"


def test_validation_is_idempotent_on_one_sink() -> None:
    sink = ErrorSink()
    form = Form(a="x", b="y")

    first, _ = validate(form, sink=sink)
    second, _ = validate(form, sink=sink)

    assert not first and not second
    assert sink.error_count == 1
    assert len(sink["c"].errors) == 1


def test_validation_marks_bound_entries_valid() -> None:
    sink = ErrorSink()
    sink.set_model_value("a", "x", "x")

    is_valid, _ = validate(Form(a="x", b="y", c="z"), sink=sink)

    assert is_valid
    assert sink.get_validation_state("a") is FieldValidationState.VALID
    assert len(sink) == 1


def test_invalid_node_skips_its_own_validators_but_visits_children(registry) -> None:
    calls = []
    descriptor = registry.describe(Form).with_details(validator_metadata=(calls.append,))
    sink = ErrorSink()
    sink.add_error("form", "Form was rejected upstream")

    is_valid, _ = validate(Form(a="x"), descriptor, sink=sink, prefix="form")

    assert not is_valid
    assert calls == []
    assert len(sink["form"].errors) == 1
    assert sink["form.b"].errors[0].message == "The b field is required."
    assert sink["form.c"].errors[0].message == "The c field is required."
    assert "form.a" not in sink


def test_none_model_marks_existing_entry_valid() -> None:
    sink = ErrorSink()
    sink.set_model_value("person", "", "")

    is_valid, _ = validate(None, create_type_registry().describe(Person), sink=sink, prefix="person")

    assert is_valid
    assert sink.get_validation_state("person") is FieldValidationState.VALID


def test_visitor_accepts_none_model_without_key_or_descriptor() -> None:
    sink = ErrorSink()
    sink.set_model_value("", "", "")
    provider = CompositeModelValidatorProvider(default_validator_providers())
    visitor = ValidationVisitor(sink, provider, ValidatorCache())

    assert run(visitor.validate(None, None, None))
    assert sink.get_validation_state("") is FieldValidationState.VALID


#==============================================================================
# Error Ceiling
#==============================================================================

def test_error_ceiling_skips_remaining_subtrees() -> None:
    sink = ErrorSink(max_errors=2)
    sink.set_model_value("c", "", "")

    is_valid, _ = validate(Form(), sink=sink)

    assert not is_valid
    assert sink.error_count == 2
    assert isinstance(sink[""].errors[0].exception, TooManyErrorsError)
    assert "b" not in sink
    assert sink.get_validation_state("c") is FieldValidationState.SKIPPED


#==============================================================================
# Validation State Overrides
#==============================================================================

def test_suppressed_instance_is_skipped() -> None:
    form = Form()
    sink = ErrorSink()
    sink.set_model_value("form.a", "", "")
    state = ValidationStateMap()
    state.add(form, ValidationStateEntry(key="form", suppress_validation=True))

    is_valid, _ = validate(form, sink=sink, state=state, prefix="form")

    assert is_valid
    assert sink.error_count == 0
    assert sink.get_validation_state("form.a") is FieldValidationState.SKIPPED


def test_state_entry_overrides_key() -> None:
    form = Form(a="x", b="y")
    state = ValidationStateMap()
    state.add(form, ValidationStateEntry(key="renamed"))

    _, sink = validate(form, state=state, prefix="form")

    assert "renamed.c" in sink
    assert "form.c" not in sink


def test_children_excluded_from_validation_are_skipped(registry) -> None:
    descriptor = registry.describe(Form).with_details(validate_children=False)
    sink = ErrorSink()
    sink.set_model_value("a", "", "")

    is_valid, _ = validate(Form(), descriptor, sink=sink)

    assert is_valid
    assert sink.error_count == 0
    assert sink.get_validation_state("a") is FieldValidationState.SKIPPED


#==============================================================================
# Validators
#==============================================================================

def test_validator_exception_is_recorded_for_node() -> None:
    def explode(value):
        raise RuntimeError("validator blew up")

    descriptor = complex_type(
        "Box",
        [property_descriptor("size", scalar_type(int, validators=(explode,)))],
        factory=Node,
    )
    box = Node()
    box.size = 3

    is_valid, sink = validate(box, descriptor)

    assert not is_valid
    error = sink["size"].errors[0]
    assert error.message == "validator blew up"
    assert isinstance(error.exception.__cause__, RuntimeError)


def test_async_function_validator() -> None:
    async def check(value):
        return None if value == "ok" else "Value must be ok"

    descriptor = scalar_type(str, validators=(check,))

    is_valid, sink = validate("nope", descriptor, prefix="status")

    assert not is_valid
    assert sink["status"].errors[0].message == "Value must be ok"


def test_false_result_uses_default_message() -> None:
    descriptor = scalar_type(int, validators=(lambda value: value > 0,))

    _, sink = validate(-1, descriptor, prefix="order.count")

    assert sink["order.count"].errors[0].message == "The value for count is invalid."


def test_builtin_validators() -> None:
    model = Limits(age=150, code="abcde", zip="12a45", tags=[])

    is_valid, sink = validate(model)

    assert not is_valid
    assert sink["age"].errors[0].message == "The field age must be between 0 and 120."
    assert sink["code"].errors[0].message == "The field code must have a length between 2 and 4."
    assert "regular expression" in sink["zip"].errors[0].message
    assert sink["tags"].errors[0].message == "The tags field is required."


def test_builtin_validators_pass_valid_values() -> None:
    is_valid, sink = validate(Limits(age=30, code="ab", zip="34000", tags=["x"]))

    assert is_valid
    assert sink.error_count == 0


def test_validator_requires_providers() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        ObjectValidator(create_type_registry(), [])
    assert exc_info.value.code is ErrorCodes.NO_VALIDATOR_PROVIDERS
