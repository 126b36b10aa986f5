"""
pyindexbind Validator Cache
Memoizes the validators of each descriptor
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pyindexbind.types import TypeDescriptor
from pyindexbind.validation.providers import (
    ModelValidator,
    ModelValidatorProvider,
    ValidatorItem,
    ValidatorProviderContext,
)


@dataclass(frozen=True)
class _CacheEntry:
    """Either the final validator list or the items to re-run providers on"""
    validators: Optional[Tuple[ModelValidator, ...]] = None
    items: Optional[Tuple[ValidatorItem, ...]] = None


class ValidatorCache:
    """
    Validators per descriptor identity.

    When every validator of a descriptor is reusable the list itself is
    cached. Otherwise the items are cached and each lookup re-runs the
    providers for the non-reusable items only. Concurrent inserts keep the
    first entry stored.
    """

    def __init__(self) -> None:
        self._entries: Dict[TypeDescriptor, _CacheEntry] = {}

    def get_validators(
        self,
        descriptor: TypeDescriptor,
        provider: ModelValidatorProvider,
    ) -> List[ModelValidator]:
        entry = self._entries.get(descriptor)
        if entry is not None:
            return self._from_entry(entry, descriptor, provider)

        items = [ValidatorItem(metadata) for metadata in descriptor.validator_metadata]
        self._execute_provider(provider, descriptor, items)
        validators = self._extract_validators(items)

        all_cached = True
        for item in items:
            if not item.is_reusable:
                item.validator = None
                all_cached = False

        if all_cached:
            entry = _CacheEntry(validators=tuple(validators))
        else:
            entry = _CacheEntry(items=tuple(items))
        self._entries.setdefault(descriptor, entry)
        return validators

    def _from_entry(
        self,
        entry: _CacheEntry,
        descriptor: TypeDescriptor,
        provider: ModelValidatorProvider,
    ) -> List[ModelValidator]:
        if entry.validators is not None:
            return list(entry.validators)

        items = [
            item if item.is_reusable else ValidatorItem(item.validator_metadata)
            for item in entry.items
        ]
        self._execute_provider(provider, descriptor, items)
        return self._extract_validators(items)

    @staticmethod
    def _execute_provider(
        provider: ModelValidatorProvider,
        descriptor: TypeDescriptor,
        items: List[ValidatorItem],
    ) -> None:
        provider.create_validators(ValidatorProviderContext(descriptor, items))

    @staticmethod
    def _extract_validators(items: List[ValidatorItem]) -> List[ModelValidator]:
        return [item.validator for item in items if item.validator is not None]

    def __contains__(self, descriptor: TypeDescriptor) -> bool:
        return descriptor in self._entries

    def __len__(self) -> int:
        return len(self._entries)
