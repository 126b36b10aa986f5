# pyindexbind Error Types
# Configuration failures and field-level error kinds for binding and validation

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


#==============================================================================
# Error Codes
#==============================================================================

class ErrorCodes(str, Enum):
    """Error code constants for binding and validation errors"""

    # Setup errors (raised)
    CONFIGURATION_ERROR = "ConfigurationError"
    NO_PARAMETERLESS_CONSTRUCTOR = "NoParameterlessConstructor"
    COULD_NOT_CREATE_BINDER = "CouldNotCreateBinder"
    NO_BINDER_PROVIDERS = "NoBinderProviders"
    NO_VALIDATOR_PROVIDERS = "NoValidatorProviders"

    # Field errors (recorded in the ErrorSink)
    FIELD_CONVERSION = "FieldConversion"
    VALUE_MUST_NOT_BE_NULL = "ValueMustNotBeNull"
    MISSING_REQUIRED_VALUE = "MissingRequiredValue"
    VALIDATION_ERROR = "ValidationError"
    TOO_MANY_ERRORS = "TooManyErrors"


#==============================================================================
# Base Error Class
#==============================================================================

class BindingError(Exception):
    """Base exception class for all pyindexbind errors"""

    def __init__(self, code: ErrorCodes, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return self.message


#==============================================================================
# Configuration Errors
#==============================================================================

class ConfigurationError(BindingError):
    """
    A setup mistake detected while binding or validating.

    Configuration errors are never recorded per field; they abort the whole
    operation and surface to the caller synchronously.
    """

    def __init__(self, code: ErrorCodes, message: str):
        super().__init__(code, message)

    #---------------------------------------------------------------------------
    # Static factory methods for common errors
    #---------------------------------------------------------------------------

    @staticmethod
    def no_parameterless_constructor(
        type_name: str,
        model_name: Optional[str] = None,
        container: Optional[str] = None,
    ) -> "ConfigurationError":
        """Create an error for a complex type without a default factory"""
        if model_name is None:
            message = (
                f"Could not create an instance of type '{type_name}'. "
                "Top-level bound types must have a default factory."
            )
        else:
            where = f" on '{container}'" if container else ""
            message = (
                f"Could not create an instance of type '{type_name}' for "
                f"'{model_name}'{where}. Bound property types must have a "
                "default factory."
            )
        return ConfigurationError(ErrorCodes.NO_PARAMETERLESS_CONSTRUCTOR, message)

    @staticmethod
    def could_not_create_binder(type_name: str) -> "ConfigurationError":
        """Create an error for a descriptor no provider could bind"""
        return ConfigurationError(
            ErrorCodes.COULD_NOT_CREATE_BINDER,
            f"Could not create a model binder for model object of type '{type_name}'.",
        )

    @staticmethod
    def no_binder_providers() -> "ConfigurationError":
        """Create an error for a factory built without providers"""
        return ConfigurationError(
            ErrorCodes.NO_BINDER_PROVIDERS,
            "At least one binder provider is required to create model binders.",
        )

    @staticmethod
    def no_validator_providers() -> "ConfigurationError":
        """Create an error for a validator built without providers"""
        return ConfigurationError(
            ErrorCodes.NO_VALIDATOR_PROVIDERS,
            "At least one validator provider is required to validate models.",
        )


#==============================================================================
# Field Errors
#==============================================================================

class FieldConversionError(BindingError):
    """A raw value could not be converted to the target scalar type"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(ErrorCodes.FIELD_CONVERSION, message, path)


class MissingRequiredValueError(BindingError):
    """A required property never received a value"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(ErrorCodes.MISSING_REQUIRED_VALUE, message, path)


class ValidationError(BindingError):
    """A validator rejected a bound value"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(ErrorCodes.VALIDATION_ERROR, message, path)


class TooManyErrorsError(BindingError):
    """The ErrorSink reached its configured error ceiling"""

    def __init__(self, message: str):
        super().__init__(ErrorCodes.TOO_MANY_ERRORS, message, "")


def unwrap_exception(exc: BaseException) -> BaseException:
    """
    Return the most specific exception behind a wrapper.

    An explicit cause (``raise ... from inner``) is preferred, then the
    implicit context unless it was suppressed with ``from None``, so a setter
    that re-raises still reports the original problem.
    """
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return exc


#==============================================================================
# Message Provider
#==============================================================================

@dataclass(frozen=True)
class MessageProvider:
    """Templates for the messages recorded by binders"""
    missing_bind_required_value_template: str = (
        "A value for the '{0}' property was not provided."
    )
    value_must_not_be_null_template: str = "The value '{0}' is invalid."
    attempted_value_is_invalid_template: str = "The value '{0}' is not valid for {1}."
    too_many_errors_template: str = "The maximum number of allowed model errors ({0}) has been reached."

    def missing_bind_required_value(self, field_name: str) -> str:
        return self.missing_bind_required_value_template.format(field_name)

    def value_must_not_be_null(self, value: Any) -> str:
        return self.value_must_not_be_null_template.format(value)

    def attempted_value_is_invalid(self, value: Any, field_name: str) -> str:
        return self.attempted_value_is_invalid_template.format(value, field_name)

    def too_many_errors(self, max_errors: int) -> str:
        return self.too_many_errors_template.format(max_errors)


DEFAULT_MESSAGES = MessageProvider()
