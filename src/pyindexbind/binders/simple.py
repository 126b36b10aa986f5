"""
pyindexbind Simple Type Binder
Binds one scalar value from the value store
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

from pyindexbind.binders.base import ModelBinder
from pyindexbind.context import BindingContext, BindingResult
from pyindexbind.converters import ScalarConverter
from pyindexbind.errors import (
    BindingError,
    ConfigurationError,
    ErrorCodes,
    FieldConversionError,
)

logger = logging.getLogger(__name__)


class SimpleTypeBinder(ModelBinder):
    """
    Binder for scalar targets.

    The raw value is recorded in the ErrorSink whenever one is found, so the
    attempted input survives a failed conversion.
    """

    def __init__(self, converter: ScalarConverter) -> None:
        self.converter = converter

    async def bind_model(self, context: BindingContext) -> BindingResult:
        key = context.model_name
        result = context.value_store.get_value(key)
        if not result.found:
            return BindingResult.failed()

        sink = context.error_sink
        descriptor = context.descriptor
        sink.set_model_value_from_result(key, result)

        value = result.first_value
        model: Any
        if value is None or not value.strip():
            if descriptor.model_type is str and not descriptor.convert_empty_string_to_null:
                model = value
            else:
                model = None
        else:
            try:
                model = self.converter.convert(value, descriptor, result.locale)
                if inspect.isawaitable(model):
                    model = await model
            except ConfigurationError:
                raise
            except Exception as e:
                logger.debug(f"Conversion of '{key}' to {descriptor.name} failed: {e!r}")
                message = sink.messages.attempted_value_is_invalid(value, context.field_name)
                error = FieldConversionError(message, key)
                error.__cause__ = e
                sink.try_add_error(key, message, error)
                return BindingResult.failed()

        if model is None and not descriptor.accepts_none:
            message = sink.messages.value_must_not_be_null(str(result))
            sink.try_add_error(key, message, BindingError(ErrorCodes.VALUE_MUST_NOT_BE_NULL, message, key))
            return BindingResult.failed()

        return BindingResult.success(model)
