"""
pyindexbind Validation Strategies
Policies deciding which (key, value) children a node exposes to validation
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Sequence, Tuple

from pyindexbind.paths import create_index_path, create_property_path
from pyindexbind.types import TypeDescriptor


@dataclass(frozen=True)
class ValidationEntry:
    """One child to visit"""
    descriptor: TypeDescriptor
    key: str
    model: Any


class ValidationStrategy(ABC):
    @abstractmethod
    def get_children(self, descriptor: TypeDescriptor, key: str, model: Any) -> Iterator[ValidationEntry]:
        """Enumerate the children of ``model`` found at ``key``"""


class DefaultComplexObjectValidationStrategy(ValidationStrategy):
    """Every property flagged for child validation, in declared order"""

    def get_children(self, descriptor: TypeDescriptor, key: str, model: Any) -> Iterator[ValidationEntry]:
        for prop in descriptor.properties:
            if not prop.validate_children:
                continue
            yield ValidationEntry(
                prop.type,
                create_property_path(key, prop.field_name),
                prop.get_value(model),
            )


class DefaultCollectionValidationStrategy(ValidationStrategy):
    """Elements at ``[0]`` .. ``[N-1]``"""

    def get_children(self, descriptor: TypeDescriptor, key: str, model: Any) -> Iterator[ValidationEntry]:
        element = descriptor.element_type
        for index, item in enumerate(model):
            yield ValidationEntry(element, create_index_path(key, index), item)


class ExplicitIndexCollectionValidationStrategy(ValidationStrategy):
    """Elements at the literal index tokens they were bound from"""

    def __init__(self, index_names: Sequence[str]) -> None:
        self.index_names: Tuple[str, ...] = tuple(index_names)

    def get_children(self, descriptor: TypeDescriptor, key: str, model: Any) -> Iterator[ValidationEntry]:
        element = descriptor.element_type
        for index_name, item in zip(self.index_names, model):
            yield ValidationEntry(element, create_index_path(key, index_name), item)

    def __repr__(self) -> str:
        return f"ExplicitIndexCollectionValidationStrategy({list(self.index_names)})"


DEFAULT_COMPLEX_STRATEGY = DefaultComplexObjectValidationStrategy()
DEFAULT_COLLECTION_STRATEGY = DefaultCollectionValidationStrategy()
