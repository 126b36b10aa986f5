"""
pyindexbind Binder Interface
Base class for binders plus the no-op and placeholder binders
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from pyindexbind.context import BindingContext, BindingResult
from pyindexbind.errors import ConfigurationError, ErrorCodes


#==============================================================================
# Model Binder
#==============================================================================

class ModelBinder(ABC):
    """
    Produces a value for the path held by a BindingContext.

    Binders never raise for per-field problems: those go to the context's
    ErrorSink and the binder returns an unset result. Only
    ConfigurationError propagates.
    """

    @abstractmethod
    async def bind_model(self, context: BindingContext) -> BindingResult:
        """Bind the value at ``context.model_name``"""


class NoOpBinder(ModelBinder):
    """Binder for targets excluded from binding; always leaves the result unset"""

    async def bind_model(self, context: BindingContext) -> BindingResult:
        return BindingResult.failed()

    def __repr__(self) -> str:
        return "NoOpBinder()"


NO_OP_BINDER = NoOpBinder()


class PlaceholderBinder(ModelBinder):
    """
    Indirection installed while a self-referential descriptor is still being
    resolved. Forwards to ``inner`` once the real binder exists.
    """

    def __init__(self) -> None:
        self.inner: Optional[ModelBinder] = None

    async def bind_model(self, context: BindingContext) -> BindingResult:
        if self.inner is None:
            raise ConfigurationError(
                ErrorCodes.COULD_NOT_CREATE_BINDER,
                f"Binder for '{context.descriptor.name}' was never resolved.",
            )
        return await self.inner.bind_model(context)

    def __repr__(self) -> str:
        return f"PlaceholderBinder(inner={type(self.inner).__name__})"
