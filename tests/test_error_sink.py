"""Tests for the ErrorSink: raw values, error ceiling and monotonic states."""

from __future__ import annotations

from pyindexbind import (
    ErrorSink,
    FieldConversionError,
    FieldValidationState,
    TooManyErrorsError,
    ValidationError,
    ValueResult,
    scalar_type,
)
from pyindexbind.errors import unwrap_exception


def test_single_raw_value_is_unwrapped() -> None:
    sink = ErrorSink()
    sink.set_model_value_from_result("Age", ValueResult(("42",)))
    sink.set_model_value_from_result("Tags", ValueResult(("a", "b")))

    assert sink["age"].raw_value == "42"
    assert sink["age"].attempted_value == "42"
    assert sink["Tags"].raw_value == ["a", "b"]
    assert sink["Tags"].attempted_value == "a,b"
    assert sink.error_count == 0
    assert sink.is_valid


def test_error_ceiling_records_one_root_entry() -> None:
    sink = ErrorSink(max_errors=3)

    assert sink.try_add_error("a", "first")
    assert sink.try_add_error("b", "second")
    assert not sink.try_add_error("c", "third")
    assert not sink.try_add_error("d", "fourth")

    assert sink.error_count == 3
    assert sink.has_reached_max_errors
    assert "c" not in sink
    root_errors = sink[""].errors
    assert len(root_errors) == 1
    assert isinstance(root_errors[0].exception, TooManyErrorsError)
    assert "(3)" in root_errors[0].message


def test_invalid_state_never_reverts() -> None:
    sink = ErrorSink()
    sink.set_model_value("x", "1", "1")
    sink.add_error("x", "bad")

    sink.mark_valid("x")
    sink.mark_skipped("x")

    assert sink.get_validation_state("x") is FieldValidationState.INVALID


def test_skipped_is_terminal_for_mark_valid() -> None:
    sink = ErrorSink()
    sink.set_model_value("p.a", "1", "1")
    sink.set_model_value("p.b", "2", "2")

    sink.mark_skipped("p")
    sink.mark_valid("p.a")

    assert sink.get_validation_state("p.a") is FieldValidationState.SKIPPED
    assert sink.get_validation_state("p.b") is FieldValidationState.SKIPPED


def test_mark_valid_ignores_unknown_keys() -> None:
    sink = ErrorSink()
    sink.mark_valid("nowhere")
    assert len(sink) == 0


def test_field_state_aggregates_subtree() -> None:
    sink = ErrorSink()
    sink.set_model_value("p.a", "1", "1")
    sink.set_model_value("p.b", "2", "2")
    sink.set_model_value("q", "3", "3")

    assert sink.get_field_validation_state("p") is FieldValidationState.UNVALIDATED
    sink.mark_valid("p.a")
    sink.mark_valid("p.b")
    assert sink.get_field_validation_state("p") is FieldValidationState.VALID

    sink.add_error("p.b", "bad")
    assert sink.get_field_validation_state("p") is FieldValidationState.INVALID
    assert sink.get_field_validation_state("q") is FieldValidationState.UNVALIDATED
    assert sink.get_field_validation_state("missing") is FieldValidationState.UNVALIDATED


def test_conversion_exception_uses_attempted_value_message() -> None:
    sink = ErrorSink()
    sink.set_model_value("age", "abc", "abc")

    assert sink.try_add_exception("age", FieldConversionError("bad"), scalar_type(int))

    assert sink["age"].errors[0].message == "The value 'abc' is not valid for int."


def test_foreign_exception_is_recorded_as_validation_error() -> None:
    sink = ErrorSink()
    cause = ValueError("boom")

    sink.try_add_exception("name", cause)

    error = sink["name"].errors[0]
    assert error.message == "boom"
    assert isinstance(error.exception, ValidationError)
    assert error.exception.__cause__ is cause


def test_errors_iterates_in_recording_order() -> None:
    sink = ErrorSink()
    sink.add_error("a", "one")
    sink.add_error("b", "two")
    sink.add_error("a", "three")

    assert [(key, e.message) for key, e in sink.errors()] == [
        ("a", "one"),
        ("a", "three"),
        ("b", "two"),
    ]


def test_suppressed_context_is_not_unwrapped() -> None:
    try:
        try:
            {}["internal"]
        except KeyError:
            raise ValueError("age must be even") from None
    except ValueError as e:
        suppressed = e

    assert unwrap_exception(suppressed) is suppressed

    sink = ErrorSink()
    sink.try_add_exception("age", suppressed)

    error = sink["age"].errors[0]
    assert error.message == "age must be even"
    assert error.exception.__cause__ is suppressed


def test_explicit_cause_and_implicit_context_are_unwrapped() -> None:
    inner = KeyError("internal")
    outer = ValueError("outer")
    outer.__cause__ = inner
    assert unwrap_exception(outer) is inner

    try:
        try:
            {}["internal"]
        except KeyError:
            raise ValueError("outer")
    except ValueError as e:
        assert isinstance(unwrap_exception(e), KeyError)
