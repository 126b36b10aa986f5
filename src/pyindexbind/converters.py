"""
pyindexbind Scalar Converters
Pluggable conversion of raw strings into scalar values

A converter receives the raw (non-blank) string, the target descriptor and
the locale reported by the store. ``convert`` may return an awaitable; the
scalar binder awaits it before moving on.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional

from pyindexbind.errors import ConfigurationError, ErrorCodes
from pyindexbind.types import TypeDescriptor


#==============================================================================
# Converter Interface
#==============================================================================

class ScalarConverter(ABC):
    """Converts raw strings to scalar values"""

    @abstractmethod
    def convert(self, value: str, descriptor: TypeDescriptor, locale: Optional[str]) -> Any:
        """
        Convert ``value`` to ``descriptor.model_type``.

        Raises:
            ValueError: If the value is not valid for the target
            ConfigurationError: If the target type is not supported
        """


#==============================================================================
# Invariant Converter
#==============================================================================

_TRUE = "true"
_FALSE = "false"


def parse_bool(value: str) -> bool:
    folded = value.strip().casefold()
    if folded == _TRUE:
        return True
    if folded == _FALSE:
        return False
    raise ValueError(f"'{value}' is not a valid boolean")


def parse_enum(enum_type: type, value: str) -> enum.Enum:
    """Parse an enum member by name (case-insensitive) or by value"""
    text = value.strip()
    for member in enum_type:
        if member.name.casefold() == text.casefold():
            return member
    for member in enum_type:
        if str(member.value) == text:
            return member
    raise ValueError(f"'{value}' is not a valid {enum_type.__name__}")


def _strip(parser: Callable[[str], Any]) -> Callable[[str], Any]:
    return lambda value: parser(value.strip())


DEFAULT_PARSERS: Dict[type, Callable[[str], Any]] = {
    int: _strip(int),
    float: _strip(float),
    bool: parse_bool,
    decimal.Decimal: _strip(decimal.Decimal),
    datetime.date: _strip(datetime.date.fromisoformat),
    datetime.datetime: _strip(datetime.datetime.fromisoformat),
    datetime.time: _strip(datetime.time.fromisoformat),
    uuid.UUID: _strip(uuid.UUID),
}


class InvariantConverter(ScalarConverter):
    """
    Locale-independent converter.

    Numbers use ``.`` as the decimal separator and dates use ISO 8601,
    whatever locale the store reports. Extra parsers can be supplied per
    target type.
    """

    def __init__(self, parsers: Optional[Mapping[type, Callable[[str], Any]]] = None) -> None:
        self._parsers: Dict[type, Callable[[str], Any]] = dict(DEFAULT_PARSERS)
        if parsers:
            self._parsers.update(parsers)

    def convert(self, value: str, descriptor: TypeDescriptor, locale: Optional[str]) -> Any:
        target = descriptor.model_type
        if target is str:
            return value

        parser = self._parsers.get(target)
        if parser is not None:
            return parser(value)

        if isinstance(target, type) and issubclass(target, enum.Enum):
            return parse_enum(target, value)

        raise ConfigurationError(
            ErrorCodes.CONFIGURATION_ERROR,
            f"No converter is registered for type '{descriptor.name}'.",
        )
