"""
pyindexbind Options
Explicit configuration for binder and validator wiring
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, TYPE_CHECKING

from pyindexbind.error_sink import DEFAULT_MAX_ERRORS
from pyindexbind.errors import DEFAULT_MESSAGES, MessageProvider

if TYPE_CHECKING:
    from pyindexbind.binders.providers import BinderProvider
    from pyindexbind.converters import ScalarConverter
    from pyindexbind.validation.providers import ModelValidatorProvider


#==============================================================================
# Binder Options
#==============================================================================

@dataclass
class BinderOptions:
    """
    Options for binding and validation.

    Attributes:
        binder_providers: Ordered binder providers (None for the defaults)
        validator_providers: Ordered validator providers (None for the defaults)
        max_model_errors: Error ceiling of ErrorSinks created by the entrypoint
        max_ordinal_index: Highest index probed by an ordinal scan, None for
            no limit other than the first miss
        messages: Message templates
        converter: Scalar converter (None for InvariantConverter)
    """
    binder_providers: Optional[List["BinderProvider"]] = None
    validator_providers: Optional[List["ModelValidatorProvider"]] = None
    max_model_errors: int = DEFAULT_MAX_ERRORS
    max_ordinal_index: Optional[int] = None
    messages: MessageProvider = DEFAULT_MESSAGES
    converter: Optional["ScalarConverter"] = None
