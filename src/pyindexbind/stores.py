"""
pyindexbind Value Stores
Flat, multi-valued, string-keyed data sources consumed by binders

Keys are compared case-insensitively, as submitted form field names are.
Stores compose: a CompositeValueStore asks each member in order and the first
member that finds a key wins, so an overlay placed in front of a base store
takes precedence over it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)
from urllib.parse import parse_qsl

from pyindexbind.paths import is_prefix_match
from pyindexbind.types import FORM, QUERY, BindingSource


#==============================================================================
# Value Result
#==============================================================================

@dataclass(frozen=True)
class ValueResult:
    """Ordered raw values found for one key, with their locale"""
    values: Tuple[str, ...] = ()
    locale: Optional[str] = None

    @property
    def found(self) -> bool:
        return len(self.values) > 0

    @property
    def first_value(self) -> Optional[str]:
        return self.values[0] if self.values else None

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __str__(self) -> str:
        return ",".join(self.values)


NONE = ValueResult()


def _as_values(raw: Union[str, Sequence[str], None]) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,)
    return tuple(str(v) for v in raw)


def _key_prefixes(folded: str) -> Iterator[str]:
    """Yield every path prefix of ``folded`` that ends at a segment boundary"""
    for i, char in enumerate(folded):
        if i and char in ".[":
            yield folded[:i]
    yield folded


#==============================================================================
# Value Store Interface
#==============================================================================

class ValueStore(ABC):
    """
    A flat data source addressed by model paths.

    Stores may be tagged with the BindingSource they serve; ``filter`` then
    narrows a store to the members able to feed a given source.
    """

    binding_source: Optional[BindingSource] = None

    @abstractmethod
    def contains_prefix(self, prefix: str) -> bool:
        """Check whether any key lies at or below ``prefix``"""

    @abstractmethod
    def get_value(self, key: str) -> ValueResult:
        """Look up all values stored under exactly ``key``"""

    def filter(self, source: BindingSource) -> Optional["ValueStore"]:
        """
        Narrow this store to ``source``.

        Returns:
            self when the store may feed ``source``, None otherwise
        """
        if self.binding_source is None or source.can_accept(self.binding_source):
            return self
        return None


#==============================================================================
# Dictionary Store
#==============================================================================

class DictValueStore(ValueStore):
    """Store backed by a mapping of key -> value or list of values"""

    def __init__(
        self,
        data: Mapping[str, Union[str, Sequence[str], None]],
        locale: Optional[str] = None,
        binding_source: Optional[BindingSource] = FORM,
    ) -> None:
        self._values: Dict[str, Tuple[str, ...]] = {}
        self._prefixes: Set[str] = set()
        for key, raw in data.items():
            folded = key.casefold()
            self._prefixes.update(_key_prefixes(folded))
            self._values[folded] = self._values.get(folded, ()) + _as_values(raw)
        self.locale = locale
        self.binding_source = binding_source

    def contains_prefix(self, prefix: str) -> bool:
        if not prefix:
            return bool(self._values)
        return prefix.casefold() in self._prefixes

    def get_value(self, key: str) -> ValueResult:
        values = self._values.get(key.casefold())
        if not values:
            return NONE
        return ValueResult(values, self.locale)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DictValueStore({len(self)} keys, source={self.binding_source})"


#==============================================================================
# Elemental Store
#==============================================================================

class ElementalValueStore(ValueStore):
    """Single-value overlay used to bind one element of a simple collection"""

    def __init__(self, name: str, value: str, locale: Optional[str] = None) -> None:
        self.name = name
        self.value = value
        self.locale = locale

    def contains_prefix(self, prefix: str) -> bool:
        return is_prefix_match(prefix, self.name)

    def get_value(self, key: str) -> ValueResult:
        if key.casefold() == self.name.casefold():
            return ValueResult((self.value,), self.locale)
        return NONE


#==============================================================================
# Composite Store
#==============================================================================

class CompositeValueStore(ValueStore):
    """Ordered composition of stores; earlier members take precedence"""

    def __init__(self, stores: Iterable[ValueStore] = ()) -> None:
        self._stores: List[ValueStore] = list(stores)

    @property
    def stores(self) -> List[ValueStore]:
        return list(self._stores)

    def with_overlay(self, overlay: ValueStore) -> "CompositeValueStore":
        """Return a new composite with ``overlay`` in front of this one"""
        return CompositeValueStore([overlay, *self._stores])

    def contains_prefix(self, prefix: str) -> bool:
        return any(store.contains_prefix(prefix) for store in self._stores)

    def get_value(self, key: str) -> ValueResult:
        for store in self._stores:
            result = store.get_value(key)
            if result.found:
                return result
        return NONE

    def filter(self, source: BindingSource) -> Optional[ValueStore]:
        kept = [s for s in (store.filter(source) for store in self._stores) if s is not None]
        return CompositeValueStore(kept)

    def __len__(self) -> int:
        return len(self._stores)


def with_overlay(overlay: ValueStore, base: ValueStore) -> CompositeValueStore:
    """Place ``overlay`` in front of ``base``"""
    if isinstance(base, CompositeValueStore):
        return base.with_overlay(overlay)
    return CompositeValueStore([overlay, base])


#==============================================================================
# Convenience Constructors
#==============================================================================

def from_form_pairs(
    pairs: Iterable[Tuple[str, str]],
    locale: Optional[str] = None,
    binding_source: Optional[BindingSource] = FORM,
) -> DictValueStore:
    """Build a store from ordered (key, value) pairs; repeated keys accumulate"""
    data: Dict[str, List[str]] = {}
    for key, value in pairs:
        data.setdefault(key, []).append(value)
    return DictValueStore(data, locale=locale, binding_source=binding_source)


def from_query_string(
    query: str,
    locale: Optional[str] = None,
    binding_source: Optional[BindingSource] = QUERY,
) -> DictValueStore:
    """Build a store from urlencoded text (``a=1&b=2&b=3``)"""
    return from_form_pairs(
        parse_qsl(query.lstrip("?"), keep_blank_values=True),
        locale=locale,
        binding_source=binding_source,
    )
