"""
pyindexbind Validation Visitor
Recursive walk over a bound value graph

The visitor descends through collections and complex objects, runs each
node's validators and records their results in the ErrorSink. Instances
that are already open on the current path are not entered again, so graphs
with reference cycles terminate. Once the ErrorSink reaches its error
ceiling, remaining subtrees are marked skipped.

One visitor serves one validate call; its open-instance set must not be
shared across calls.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, List, Optional

from pyindexbind.context import ValidationStateMap
from pyindexbind.error_sink import ErrorSink, FieldValidationState
from pyindexbind.errors import ValidationError
from pyindexbind.paths import create_property_path
from pyindexbind.types import TypeDescriptor
from pyindexbind.validation.cache import ValidatorCache
from pyindexbind.validation.providers import (
    ModelValidationContext,
    ModelValidationResult,
    ModelValidatorProvider,
)
from pyindexbind.validation.strategies import (
    DEFAULT_COLLECTION_STRATEGY,
    DEFAULT_COMPLEX_STRATEGY,
    ValidationStrategy,
)

logger = logging.getLogger(__name__)


class ValidationVisitor:
    """
    Visits a value graph and validates every node.

    Args:
        error_sink: Receives errors and validation states
        validator_provider: Provider chain resolving node validators
        validator_cache: Shared validator cache
        validation_state: Per-instance overrides registered during binding
    """

    def __init__(
        self,
        error_sink: ErrorSink,
        validator_provider: ModelValidatorProvider,
        validator_cache: ValidatorCache,
        validation_state: Optional[ValidationStateMap] = None,
    ) -> None:
        self.error_sink = error_sink
        self.validator_provider = validator_provider
        self.validator_cache = validator_cache
        self.validation_state = validation_state
        self._open: Dict[int, Any] = {}

    async def validate(self, descriptor: Optional[TypeDescriptor], key: Optional[str], model: Any) -> bool:
        """
        Validate ``model`` at ``key``.

        Returns:
            True if the node and all its descendants are valid
        """
        if model is None:
            self.error_sink.mark_valid(key or "")
            return True
        return await self._visit(descriptor, key, model, None)

    #---------------------------------------------------------------------------
    # Traversal
    #---------------------------------------------------------------------------

    async def _visit(
        self,
        descriptor: TypeDescriptor,
        key: Optional[str],
        model: Any,
        container: Any,
    ) -> bool:
        guarded = model is not None and not descriptor.is_scalar
        if guarded:
            if id(model) in self._open:
                logger.debug(f"Instance at '{key}' is already being validated")
                return True
            self._open[id(model)] = model

        try:
            entry = self.validation_state.get(model) if self.validation_state is not None else None
            strategy: Optional[ValidationStrategy] = None
            if entry is not None:
                key = entry.key if entry.key is not None else key
                descriptor = entry.descriptor or descriptor
                strategy = entry.strategy
            key = key or ""

            sink = self.error_sink
            if sink.has_reached_max_errors:
                sink.mark_skipped(key)
                return False
            if entry is not None and entry.suppress_validation:
                if entry.key is not None:
                    sink.mark_skipped(entry.key)
                return True

            if descriptor.is_collection:
                return await self._visit_complex_type(
                    descriptor, key, model, container, strategy or DEFAULT_COLLECTION_STRATEGY
                )
            if descriptor.is_complex:
                return await self._visit_complex_type(
                    descriptor, key, model, container, strategy or DEFAULT_COMPLEX_STRATEGY
                )
            return await self._visit_simple_type(descriptor, key, model, container)
        finally:
            if guarded:
                del self._open[id(model)]

    async def _visit_complex_type(
        self,
        descriptor: TypeDescriptor,
        key: str,
        model: Any,
        container: Any,
        strategy: ValidationStrategy,
    ) -> bool:
        is_valid = True
        if model is not None and descriptor.validate_children:
            is_valid = await self._visit_children(strategy, descriptor, key, model)
        elif model is not None:
            self.error_sink.mark_skipped(key)

        if is_valid and not self.error_sink.has_reached_max_errors:
            is_valid = await self._validate_node(descriptor, key, model, container)
        return is_valid

    async def _visit_simple_type(
        self,
        descriptor: TypeDescriptor,
        key: str,
        model: Any,
        container: Any,
    ) -> bool:
        if self.error_sink.has_reached_max_errors:
            self.error_sink.mark_skipped(key)
            return False
        return await self._validate_node(descriptor, key, model, container)

    async def _visit_children(
        self,
        strategy: ValidationStrategy,
        descriptor: TypeDescriptor,
        key: str,
        model: Any,
    ) -> bool:
        is_valid = True
        for child in strategy.get_children(descriptor, key, model):
            child_valid = await self._visit(child.descriptor, child.key, child.model, model)
            is_valid = is_valid and child_valid
        return is_valid

    #---------------------------------------------------------------------------
    # Node Validation
    #---------------------------------------------------------------------------

    async def _validate_node(
        self,
        descriptor: TypeDescriptor,
        key: str,
        model: Any,
        container: Any,
    ) -> bool:
        sink = self.error_sink
        # VALID and SKIPPED nodes are done; INVALID ones are not re-checked
        if sink.get_validation_state(key) is FieldValidationState.UNVALIDATED:
            validators = self.validator_cache.get_validators(descriptor, self.validator_provider)
            if validators:
                context = ModelValidationContext(sink, descriptor, container, model, key)
                results: List[ModelValidationResult] = []
                for validator in validators:
                    try:
                        outcome = validator.validate(context)
                        if inspect.isawaitable(outcome):
                            outcome = await outcome
                        results.extend(outcome or ())
                    except Exception as e:
                        if sink.get_field_validation_state(key) is not FieldValidationState.INVALID:
                            sink.try_add_exception(key, e)

                for result in results:
                    path = create_property_path(key, result.member_name)
                    sink.try_add_error(path, result.message, ValidationError(result.message, path))

        if sink.get_field_validation_state(key) is FieldValidationState.INVALID:
            return False
        sink.mark_valid(key)
        return True
