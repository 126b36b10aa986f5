"""
pyindexbind Built-in Validators
Frozen, reusable ModelValidator implementations

Attach them through field metadata (``validators``) or a class-level
``__validators__`` tuple. Apart from Required, validators pass None values
through untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Optional

from pyindexbind.validation.providers import (
    ModelValidationContext,
    ModelValidationResult,
    ModelValidator,
)


def _fail(message: str) -> List[ModelValidationResult]:
    return [ModelValidationResult("", message)]


@dataclass(frozen=True)
class Required(ModelValidator):
    """Value must be present; blank strings and empty collections do not count"""
    message: str = "The {0} field is required."

    def validate(self, context: ModelValidationContext) -> List[ModelValidationResult]:
        value = context.model
        missing = value is None
        if isinstance(value, str):
            missing = not value.strip()
        elif context.descriptor.is_collection and value is not None:
            missing = len(value) == 0
        return _fail(self.message.format(context.display_name)) if missing else []


@dataclass(frozen=True)
class Range(ModelValidator):
    """Value must lie within [minimum, maximum]"""
    minimum: Optional[Any] = None
    maximum: Optional[Any] = None
    message: str = "The field {0} must be between {1} and {2}."

    def validate(self, context: ModelValidationContext) -> List[ModelValidationResult]:
        value = context.model
        if value is None:
            return []
        if (self.minimum is not None and value < self.minimum) or \
                (self.maximum is not None and value > self.maximum):
            return _fail(self.message.format(context.display_name, self.minimum, self.maximum))
        return []


@dataclass(frozen=True)
class Length(ModelValidator):
    """Length of a string or collection must lie within [min_length, max_length]"""
    min_length: int = 0
    max_length: Optional[int] = None
    message: str = "The field {0} must have a length between {1} and {2}."

    def validate(self, context: ModelValidationContext) -> List[ModelValidationResult]:
        value = context.model
        if value is None:
            return []
        length = len(value)
        if length < self.min_length or (self.max_length is not None and length > self.max_length):
            return _fail(self.message.format(context.display_name, self.min_length, self.max_length))
        return []


@dataclass(frozen=True)
class Pattern(ModelValidator):
    """String value must fully match a regular expression"""
    regex: str
    message: str = "The field {0} must match the regular expression '{1}'."

    def validate(self, context: ModelValidationContext) -> List[ModelValidationResult]:
        value = context.model
        if value is None:
            return []
        if re.fullmatch(self.regex, str(value)) is None:
            return _fail(self.message.format(context.display_name, self.regex))
        return []
