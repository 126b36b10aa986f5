"""
pyindexbind Error Sink
Path-keyed record of raw values, field errors and validation states

Every path touched by binding or validation gets a FieldEntry. Entry states
only move forward: an INVALID entry never becomes VALID or UNVALIDATED again,
and a SKIPPED entry is left alone by later validation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Tuple,
    TYPE_CHECKING,
)

from pyindexbind.errors import (
    DEFAULT_MESSAGES,
    BindingError,
    FieldConversionError,
    MessageProvider,
    TooManyErrorsError,
    ValidationError,
    unwrap_exception,
)
from pyindexbind.paths import is_prefix_match

if TYPE_CHECKING:
    from pyindexbind.stores import ValueResult
    from pyindexbind.types import TypeDescriptor

logger = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 200


#==============================================================================
# Entry Types
#==============================================================================

class FieldValidationState(str, Enum):
    """Validation progress of one path"""
    UNVALIDATED = "unvalidated"
    VALID = "valid"
    INVALID = "invalid"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FieldError:
    """One error recorded against a path"""
    message: str
    exception: Optional[BaseException] = None


@dataclass
class FieldEntry:
    """Everything known about one path"""
    raw_value: Any = None
    attempted_value: Optional[str] = None
    errors: List[FieldError] = field(default_factory=list)
    validation_state: FieldValidationState = FieldValidationState.UNVALIDATED


#==============================================================================
# Error Sink
#==============================================================================

class ErrorSink:
    """
    Collection of FieldEntry objects keyed by model path.

    Args:
        max_errors: Error ceiling; once reached a single "too many errors"
            entry is recorded at the root key and further errors are refused
        messages: Message templates
    """

    def __init__(self, max_errors: int = DEFAULT_MAX_ERRORS, messages: MessageProvider = DEFAULT_MESSAGES) -> None:
        if max_errors < 1:
            raise ValueError("max_errors must be at least 1")
        self.max_errors = max_errors
        self.messages = messages
        self._entries: Dict[str, FieldEntry] = {}
        self._keys: Dict[str, str] = {}
        self._error_count = 0
        self._max_errors_recorded = False

    #---------------------------------------------------------------------------
    # Mapping Protocol
    #---------------------------------------------------------------------------

    def _lookup(self, key: str) -> Optional[str]:
        return self._keys.get(key.casefold())

    def get(self, key: str) -> Optional[FieldEntry]:
        actual = self._lookup(key)
        return self._entries[actual] if actual is not None else None

    def __getitem__(self, key: str) -> FieldEntry:
        entry = self.get(key)
        if entry is None:
            raise KeyError(key)
        return entry

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def items(self) -> List[Tuple[str, FieldEntry]]:
        return list(self._entries.items())

    def _get_or_add(self, key: str) -> FieldEntry:
        actual = self._lookup(key)
        if actual is not None:
            return self._entries[actual]
        entry = FieldEntry()
        self._keys[key.casefold()] = key
        self._entries[key] = entry
        return entry

    #---------------------------------------------------------------------------
    # Raw Values
    #---------------------------------------------------------------------------

    def set_model_value(self, key: str, raw_value: Any, attempted_value: Optional[str]) -> None:
        """Record the input that was attempted for a path"""
        entry = self._get_or_add(key)
        entry.raw_value = raw_value
        entry.attempted_value = attempted_value

    def set_model_value_from_result(self, key: str, result: "ValueResult") -> None:
        """Record a store lookup result; single values are kept unwrapped"""
        raw: Any = result.first_value if len(result) == 1 else list(result.values)
        self.set_model_value(key, raw, str(result))

    #---------------------------------------------------------------------------
    # Errors
    #---------------------------------------------------------------------------

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def is_valid(self) -> bool:
        return self._error_count == 0

    @property
    def has_reached_max_errors(self) -> bool:
        return self._error_count >= self.max_errors

    def _record(self, key: str, error: FieldError) -> None:
        entry = self._get_or_add(key)
        entry.errors.append(error)
        entry.validation_state = FieldValidationState.INVALID
        self._error_count += 1

    def _ensure_max_errors_recorded(self) -> None:
        if self._max_errors_recorded:
            return
        message = self.messages.too_many_errors(self.max_errors)
        logger.warning(message)
        self._record("", FieldError(message, TooManyErrorsError(message)))
        self._max_errors_recorded = True

    def try_add_error(self, key: str, message: str, exception: Optional[BaseException] = None) -> bool:
        """
        Record an error unless the ceiling has been reached.

        Returns:
            True if the error was recorded
        """
        if self._error_count >= self.max_errors - 1:
            self._ensure_max_errors_recorded()
            return False
        self._record(key, FieldError(message, exception))
        return True

    def add_error(self, key: str, message: str) -> None:
        """Record an error, subject to the ceiling"""
        self.try_add_error(key, message)

    def try_add_exception(
        self,
        key: str,
        exception: BaseException,
        descriptor: Optional["TypeDescriptor"] = None,
    ) -> bool:
        """
        Record an exception as a field error.

        Conversion failures are reported with the attempted-value message
        when the attempted value is known; anything else uses the exception
        text. Foreign exceptions are recorded as a ValidationError caused by
        the original.
        """
        exception = unwrap_exception(exception)
        entry = self.get(key)
        if isinstance(exception, FieldConversionError) and entry is not None \
                and entry.attempted_value is not None:
            name = descriptor.name if descriptor is not None else key
            message = self.messages.attempted_value_is_invalid(entry.attempted_value, name)
        else:
            message = str(exception) or type(exception).__name__
        if not isinstance(exception, BindingError):
            wrapped = ValidationError(message, key)
            wrapped.__cause__ = exception
            exception = wrapped
        return self.try_add_error(key, message, exception)

    def errors(self) -> Iterator[Tuple[str, FieldError]]:
        """Iterate over (path, error) pairs in recording order"""
        for key, entry in self._entries.items():
            for error in entry.errors:
                yield key, error

    #---------------------------------------------------------------------------
    # Validation States
    #---------------------------------------------------------------------------

    def get_validation_state(self, key: str) -> FieldValidationState:
        """State of exactly ``key``"""
        entry = self.get(key)
        return entry.validation_state if entry is not None else FieldValidationState.UNVALIDATED

    def get_field_validation_state(self, key: str) -> FieldValidationState:
        """
        State of ``key`` and everything below it.

        INVALID if any entry is invalid, UNVALIDATED if any entry is
        unvalidated (or none exist), VALID otherwise.
        """
        entries = [entry for _, entry in self.find_keys_with_prefix(key)]
        if not entries:
            return FieldValidationState.UNVALIDATED
        states = {entry.validation_state for entry in entries}
        if FieldValidationState.INVALID in states:
            return FieldValidationState.INVALID
        if FieldValidationState.UNVALIDATED in states:
            return FieldValidationState.UNVALIDATED
        return FieldValidationState.VALID

    def mark_valid(self, key: str) -> None:
        """Mark an existing entry as checked and clean"""
        entry = self.get(key)
        if entry is None:
            return
        if entry.validation_state in (FieldValidationState.UNVALIDATED, FieldValidationState.VALID):
            entry.validation_state = FieldValidationState.VALID

    def mark_skipped(self, prefix: str) -> None:
        """Mark every non-invalid entry at or below ``prefix`` as skipped"""
        for _, entry in self.find_keys_with_prefix(prefix):
            if entry.validation_state is not FieldValidationState.INVALID:
                entry.validation_state = FieldValidationState.SKIPPED

    def find_keys_with_prefix(self, prefix: str) -> List[Tuple[str, FieldEntry]]:
        return [(key, entry) for key, entry in self._entries.items() if is_prefix_match(prefix, key)]

    def __repr__(self) -> str:
        return f"ErrorSink({len(self)} entries, {self.error_count} errors)"
