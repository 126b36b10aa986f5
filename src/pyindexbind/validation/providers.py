"""
pyindexbind Validator Providers
Attach validators to the validator metadata of a descriptor

A descriptor's ``validator_metadata`` becomes one ValidatorItem per entry.
Providers run in a fixed order and each may fill in the validator of any
item still missing one.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Iterable,
    List,
    Optional,
    Sequence,
    TYPE_CHECKING,
)

from pyindexbind.types import TypeDescriptor

if TYPE_CHECKING:
    from pyindexbind.error_sink import ErrorSink


#==============================================================================
# Validators
#==============================================================================

@dataclass(frozen=True)
class ModelValidationResult:
    """One validation failure; ``member_name`` is appended to the node path"""
    member_name: str
    message: str


@dataclass(frozen=True)
class ModelValidationContext:
    """
    What a validator sees.

    Attributes:
        error_sink: ErrorSink of the validate call
        descriptor: Descriptor of the node
        container: Object holding the node, None at the root
        model: The node's value
        key: The node's path
    """
    error_sink: "ErrorSink"
    descriptor: TypeDescriptor
    container: Any
    model: Any
    key: str

    @property
    def display_name(self) -> str:
        """Last path segment, or the descriptor name at the root"""
        if not self.key:
            return self.descriptor.name
        return self.key.rsplit(".", 1)[-1]


class ModelValidator(ABC):
    """Validates one node; may be a coroutine"""

    @abstractmethod
    def validate(self, context: ModelValidationContext) -> Iterable[ModelValidationResult]:
        """Return the failures for ``context.model`` (empty when valid)"""


class FunctionValidator(ModelValidator):
    """
    Adapts a plain callable taking the node value.

    The callable returns None or True when the value is valid, a message
    string or False when it is not, or an iterable of ModelValidationResult.
    Coroutine functions are supported.
    """

    DEFAULT_MESSAGE = "The value for {0} is invalid."

    def __init__(self, fn: Callable[[Any], Any]) -> None:
        self.fn = fn

    def validate(self, context: ModelValidationContext) -> Any:
        outcome = self.fn(context.model)
        if inspect.isawaitable(outcome):
            return self._finish_async(outcome, context)
        return self._to_results(outcome, context)

    async def _finish_async(self, outcome: Any, context: ModelValidationContext) -> List[ModelValidationResult]:
        return self._to_results(await outcome, context)

    def _to_results(self, outcome: Any, context: ModelValidationContext) -> List[ModelValidationResult]:
        if outcome is None or outcome is True:
            return []
        if outcome is False:
            return [ModelValidationResult("", self.DEFAULT_MESSAGE.format(context.display_name))]
        if isinstance(outcome, str):
            return [ModelValidationResult("", outcome)]
        return list(outcome)

    def __repr__(self) -> str:
        return f"FunctionValidator({getattr(self.fn, '__name__', self.fn)!r})"


#==============================================================================
# Provider Context
#==============================================================================

@dataclass
class ValidatorItem:
    """
    One entry of a descriptor's validator metadata.

    Attributes:
        validator_metadata: The raw metadata entry
        validator: Validator attached by a provider, if any
        is_reusable: The validator may be cached and shared
    """
    validator_metadata: Any
    validator: Optional[ModelValidator] = None
    is_reusable: bool = False


@dataclass
class ValidatorProviderContext:
    descriptor: TypeDescriptor
    results: List[ValidatorItem] = field(default_factory=list)


#==============================================================================
# Providers
#==============================================================================

class ModelValidatorProvider(ABC):
    @abstractmethod
    def create_validators(self, context: ValidatorProviderContext) -> None:
        """Attach validators to items of ``context.results`` still lacking one"""


class DefaultModelValidatorProvider(ModelValidatorProvider):
    """Metadata that already is a ModelValidator is used as is"""

    def create_validators(self, context: ValidatorProviderContext) -> None:
        for item in context.results:
            if item.validator is not None:
                continue
            if isinstance(item.validator_metadata, ModelValidator):
                item.validator = item.validator_metadata
                item.is_reusable = True


class FunctionValidatorProvider(ModelValidatorProvider):
    """
    Wraps plain callables in FunctionValidator.

    Args:
        is_reusable: Whether wrapped validators may be cached; when False a
            fresh wrapper is created for every validate call
    """

    def __init__(self, is_reusable: bool = True) -> None:
        self.is_reusable = is_reusable

    def create_validators(self, context: ValidatorProviderContext) -> None:
        for item in context.results:
            if item.validator is not None:
                continue
            metadata = item.validator_metadata
            if callable(metadata) and not isinstance(metadata, (ModelValidator, type)):
                item.validator = FunctionValidator(metadata)
                item.is_reusable = self.is_reusable


class CompositeModelValidatorProvider(ModelValidatorProvider):
    """Runs a fixed list of providers in order"""

    def __init__(self, providers: Sequence[ModelValidatorProvider]) -> None:
        self.providers: List[ModelValidatorProvider] = list(providers)

    def create_validators(self, context: ValidatorProviderContext) -> None:
        for provider in self.providers:
            if all(item.validator is not None for item in context.results):
                return
            provider.create_validators(context)


def default_validator_providers() -> List[ModelValidatorProvider]:
    return [DefaultModelValidatorProvider(), FunctionValidatorProvider()]
