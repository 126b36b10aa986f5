"""
pyindexbind Type Descriptors
Immutable shape descriptions of bind targets (scalar, complex, collection)

Descriptors are created once per distinct target, shared read-only across all
bind and validate calls, and compared by identity. Self-referential shapes
(a tree node holding a list of itself) are expressed through lazy references:
a property or collection element may point at a zero-argument callable that
returns the descriptor, so describing a type never recurses.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import decimal
import enum
import functools
import inspect
import logging
import types as pytypes
import typing
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Tuple,
    Union,
)

from pyindexbind.errors import ConfigurationError, ErrorCodes

logger = logging.getLogger(__name__)


#==============================================================================
# Kinds and Binding Sources
#==============================================================================

class TypeKind(str, Enum):
    """Shape of a bind target"""
    SCALAR = "scalar"
    COMPLEX = "complex"
    COLLECTION = "collection"


@dataclass(frozen=True)
class BindingSource:
    """
    Where a value may come from.

    A greedy source populates its target exclusively (a request body, a
    service container); value stores never feed greedy targets.
    """
    id: str
    is_greedy: bool = False

    def can_accept(self, other: Optional["BindingSource"]) -> bool:
        """Check whether a store tagged ``other`` may feed this source"""
        return other is None or other.id == self.id


FORM = BindingSource("form")
QUERY = BindingSource("query")
CUSTOM = BindingSource("custom")
BODY = BindingSource("body", is_greedy=True)
SERVICES = BindingSource("services", is_greedy=True)


DescriptorRef = Union["TypeDescriptor", Callable[[], "TypeDescriptor"]]


def _resolve_ref(ref: Optional[DescriptorRef]) -> Optional["TypeDescriptor"]:
    if ref is None or isinstance(ref, TypeDescriptor):
        return ref
    return ref()


#==============================================================================
# Property Descriptor
#==============================================================================

@dataclass(frozen=True, eq=False)
class PropertyDescriptor:
    """
    A bindable member of a complex type.

    Attributes:
        name: Attribute name on the owning instance
        type_ref: Descriptor of the member, or a callable returning it
        binder_name: Path segment override (defaults to ``name``)
        getter: Reads the member from an instance (defaults to getattr)
        setter: Writes the member (defaults to setattr)
        is_required: Record MissingRequiredValue when never bound
        is_read_only: Bound values are not assigned
        binding_source: Exclusive source for this member, if any
        binding_allowed: False excludes the member from binding
        validate_children: False excludes the member from validation
    """
    name: str
    type_ref: DescriptorRef
    binder_name: Optional[str] = None
    getter: Optional[Callable[[Any], Any]] = None
    setter: Optional[Callable[[Any, Any], None]] = None
    is_required: bool = False
    is_read_only: bool = False
    binding_source: Optional[BindingSource] = None
    binding_allowed: bool = True
    validate_children: bool = True
    _resolved: Optional["TypeDescriptor"] = field(default=None, init=False, repr=False)

    @property
    def type(self) -> "TypeDescriptor":
        """The member's descriptor, resolved on first access"""
        if self._resolved is None:
            object.__setattr__(self, "_resolved", _resolve_ref(self.type_ref))
        return self._resolved

    @property
    def field_name(self) -> str:
        """Path segment used for this member"""
        return self.binder_name or self.name

    @property
    def is_greedy(self) -> bool:
        return self.binding_source is not None and self.binding_source.is_greedy

    def get_value(self, instance: Any) -> Any:
        if self.getter is not None:
            return self.getter(instance)
        return getattr(instance, self.name, None)

    def set_value(self, instance: Any, value: Any) -> None:
        if self.setter is not None:
            self.setter(instance, value)
        else:
            setattr(instance, self.name, value)


#==============================================================================
# Type Descriptor
#==============================================================================

@dataclass(frozen=True, eq=False)
class TypeDescriptor:
    """
    Static shape of a bind target.

    Attributes:
        name: Display name used in messages
        kind: Scalar, complex or collection
        model_type: The Python type produced, if known
        element_ref: Collection element descriptor (or callable)
        properties: Ordered members of a complex type
        is_nullable: None is an acceptable value
        is_reference_type: None is acceptable without being declared nullable
        is_read_only: The target itself may not be replaced
        is_required: Validation-level requiredness flag
        binder_name: Model name override when bound at top level
        binding_source: Exclusive source for this target, if any
        validator_metadata: Raw validator items, resolved by providers
        factory: Default-construction closure, None when unavailable
        empty_value: Value used for a collection slot that failed to bind
        convert_empty_string_to_null: Blank input yields None for strings
        validate_children: Visit members or elements during validation
        binding_allowed: False resolves to a no-op binder
        property_filter: Optional predicate excluding members from binding
        container_name: Owning type name for per-property descriptors
    """
    name: str
    kind: TypeKind
    model_type: Optional[type] = None
    element_ref: Optional[DescriptorRef] = None
    properties: Tuple[PropertyDescriptor, ...] = ()
    is_nullable: bool = False
    is_reference_type: bool = False
    is_read_only: bool = False
    is_required: bool = False
    binder_name: Optional[str] = None
    binding_source: Optional[BindingSource] = None
    validator_metadata: Tuple[Any, ...] = ()
    factory: Optional[Callable[[], Any]] = None
    empty_value: Any = None
    convert_empty_string_to_null: bool = True
    validate_children: bool = True
    binding_allowed: bool = True
    property_filter: Optional[Callable[[PropertyDescriptor], bool]] = None
    container_name: Optional[str] = None
    _element: Optional["TypeDescriptor"] = field(default=None, init=False, repr=False)

    @property
    def is_scalar(self) -> bool:
        return self.kind is TypeKind.SCALAR

    @property
    def is_complex(self) -> bool:
        return self.kind is TypeKind.COMPLEX

    @property
    def is_collection(self) -> bool:
        return self.kind is TypeKind.COLLECTION

    @property
    def element_type(self) -> Optional["TypeDescriptor"]:
        """Collection element descriptor, resolved on first access"""
        if self._element is None and self.element_ref is not None:
            object.__setattr__(self, "_element", _resolve_ref(self.element_ref))
        return self._element

    @property
    def accepts_none(self) -> bool:
        """Whether None is a legal bound value"""
        return self.is_nullable or self.is_reference_type or not self.is_scalar

    @property
    def can_construct(self) -> bool:
        return self.factory is not None

    def create_instance(self) -> Any:
        """
        Construct a default instance.

        Raises:
            ConfigurationError: If the descriptor carries no factory
        """
        if self.factory is None:
            raise ConfigurationError.no_parameterless_constructor(self.name)
        return self.factory()

    def with_details(self, **changes: Any) -> "TypeDescriptor":
        """Derive a new descriptor with some attributes replaced"""
        return dataclasses.replace(self, **changes)

    def __repr__(self) -> str:
        return f"TypeDescriptor({self.name!r}, {self.kind.value})"


#==============================================================================
# Descriptor Constructors
#==============================================================================

_VALUE_DEFAULTS: Dict[type, Any] = {
    int: 0,
    float: 0.0,
    bool: False,
    decimal.Decimal: decimal.Decimal(0),
}


def scalar_type(
    model_type: type,
    *,
    name: Optional[str] = None,
    is_nullable: bool = False,
    validators: Tuple[Any, ...] = (),
    convert_empty_string_to_null: bool = True,
    **details: Any,
) -> TypeDescriptor:
    """Create a scalar descriptor"""
    empty = None if is_nullable else _VALUE_DEFAULTS.get(model_type)
    return TypeDescriptor(
        name=name or _type_name(model_type),
        kind=TypeKind.SCALAR,
        model_type=model_type,
        is_nullable=is_nullable,
        is_reference_type=model_type is str,
        validator_metadata=tuple(validators),
        empty_value=empty,
        convert_empty_string_to_null=convert_empty_string_to_null,
        **details,
    )


def complex_type(
    name: str,
    properties: List[PropertyDescriptor] | Tuple[PropertyDescriptor, ...],
    *,
    factory: Optional[Callable[[], Any]] = None,
    model_type: Optional[type] = None,
    validators: Tuple[Any, ...] = (),
    **details: Any,
) -> TypeDescriptor:
    """Create a complex descriptor"""
    return TypeDescriptor(
        name=name,
        kind=TypeKind.COMPLEX,
        model_type=model_type,
        properties=tuple(properties),
        validator_metadata=tuple(validators),
        factory=factory,
        **details,
    )


def collection_type(
    element: DescriptorRef,
    *,
    name: Optional[str] = None,
    model_type: type = list,
    factory: Optional[Callable[[], Any]] = None,
    validators: Tuple[Any, ...] = (),
    **details: Any,
) -> TypeDescriptor:
    """
    Create a collection descriptor.

    When ``model_type`` accepts a plain list the bound list is handed over
    directly; otherwise ``factory`` (defaulting to ``model_type`` for
    constructible mutable collections) builds the destination.
    """
    if factory is None and is_constructible_collection(model_type):
        factory = list if accepts_list(model_type) else model_type
    if name is None:
        elem_name = element.name if isinstance(element, TypeDescriptor) else "?"
        name = f"{_type_name(model_type)}[{elem_name}]"
    return TypeDescriptor(
        name=name,
        kind=TypeKind.COLLECTION,
        model_type=model_type,
        element_ref=element,
        validator_metadata=tuple(validators),
        factory=factory,
        **details,
    )


def property_descriptor(name: str, type_ref: DescriptorRef, **details: Any) -> PropertyDescriptor:
    """Create a property descriptor"""
    return PropertyDescriptor(name=name, type_ref=type_ref, **details)


#==============================================================================
# Collection Type Checks
#==============================================================================

def accepts_list(target: type) -> bool:
    try:
        return issubclass(list, target)
    except TypeError:
        return False


def is_constructible_collection(target: type) -> bool:
    """
    Check whether a collection binder can produce ``target``.

    True when a plain list satisfies the target, or when the target is a
    concrete mutable sequence or mutable set.
    """
    if accepts_list(target):
        return True
    if not inspect.isclass(target) or inspect.isabstract(target):
        return False
    return issubclass(target, (collections.abc.MutableSequence, collections.abc.MutableSet))


#==============================================================================
# Type Registry
#==============================================================================

_SCALAR_TYPES = (
    str,
    int,
    float,
    bool,
    decimal.Decimal,
    datetime.date,
    datetime.datetime,
    datetime.time,
    uuid.UUID,
)

_COLLECTION_ORIGINS = (
    list,
    set,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
    collections.abc.Collection,
    collections.abc.Set,
    collections.abc.MutableSet,
)


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp)


def _is_optional(annotation: Any) -> Tuple[bool, Any]:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is pytypes.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(annotation)) == 2:
            return True, args[0]
    return False, annotation


def _has_default_constructor(cls: type) -> bool:
    if inspect.isabstract(cls):
        return False
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return False
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return False
    return True


class TypeRegistry:
    """
    Precomputed descriptors for Python annotations.

    Descriptors are memoized per annotation, so the same annotation always
    yields the same (identity-equal) descriptor. Dataclasses and annotated
    classes become complex types; their field ``metadata`` may carry:

        bind_name       path segment override
        required        record MissingRequiredValue when never bound
        read_only       never assign bound values
        validators      extra validator metadata for this member
        binding_source  exclusive BindingSource for this member
        bind            False to exclude the member from binding
        validate        False to exclude the member from validation
    """

    def __init__(self) -> None:
        self._descriptors: Dict[Any, TypeDescriptor] = {}
        self._members: Dict[Tuple[type, str], TypeDescriptor] = {}

    #---------------------------------------------------------------------------
    # Registration
    #---------------------------------------------------------------------------

    def register(self, annotation: Any, descriptor: TypeDescriptor) -> "TypeRegistry":
        """
        Register an explicit descriptor for an annotation.

        Returns:
            self for chaining
        """
        self._descriptors[annotation] = descriptor
        return self

    def __contains__(self, annotation: Any) -> bool:
        return annotation in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    #---------------------------------------------------------------------------
    # Lookup
    #---------------------------------------------------------------------------

    def describe(self, annotation: Any) -> TypeDescriptor:
        """
        Get the descriptor for an annotation, building it on first use.

        Raises:
            ConfigurationError: If the annotation cannot be described
        """
        cached = self._descriptors.get(annotation)
        if cached is not None:
            return cached
        descriptor = self._build(annotation)
        # first writer wins under concurrent registration
        return self._descriptors.setdefault(annotation, descriptor)

    def _build(self, annotation: Any) -> TypeDescriptor:
        optional, inner = _is_optional(annotation)
        if optional:
            base = self.describe(inner)
            return base.with_details(
                name=f"Optional[{base.name}]",
                is_nullable=True,
                empty_value=None,
            )

        if annotation in _SCALAR_TYPES or (inspect.isclass(annotation) and issubclass(annotation, enum.Enum)):
            return scalar_type(annotation)

        origin = typing.get_origin(annotation)
        if origin is not None:
            if origin in _COLLECTION_ORIGINS or (
                inspect.isclass(origin)
                and issubclass(origin, (collections.abc.MutableSequence, collections.abc.MutableSet))
            ):
                args = typing.get_args(annotation)
                if len(args) != 1:
                    raise self._unsupported(annotation)
                element = functools.partial(self.describe, args[0])
                return collection_type(
                    element,
                    name=f"{_type_name(origin)}[{_type_name(args[0])}]",
                    model_type=origin,
                )
            raise self._unsupported(annotation)

        if inspect.isclass(annotation) and (
            dataclasses.is_dataclass(annotation) or getattr(annotation, "__annotations__", None)
        ):
            return self._describe_class(annotation)

        raise self._unsupported(annotation)

    def _unsupported(self, annotation: Any) -> ConfigurationError:
        return ConfigurationError(
            ErrorCodes.CONFIGURATION_ERROR,
            f"Cannot describe bind target {annotation!r}",
        )

    #---------------------------------------------------------------------------
    # Complex Types
    #---------------------------------------------------------------------------

    def _describe_class(self, cls: type) -> TypeDescriptor:
        hints = typing.get_type_hints(cls)
        if dataclasses.is_dataclass(cls):
            members = [(f.name, hints.get(f.name, f.type), dict(f.metadata)) for f in dataclasses.fields(cls)]
        else:
            members = [
                (name, hint, {})
                for name, hint in hints.items()
                if not name.startswith("_") and typing.get_origin(hint) is not typing.ClassVar
            ]

        properties = [self._describe_member(cls, name, hint, meta) for name, hint, meta in members]
        logger.debug(f"Described {cls.__name__} with {len(properties)} properties")

        return complex_type(
            cls.__name__,
            properties,
            factory=cls if _has_default_constructor(cls) else None,
            model_type=cls,
            validators=tuple(getattr(cls, "__validators__", ())),
        )

    def _describe_member(self, owner: type, name: str, hint: Any, meta: Dict[str, Any]) -> PropertyDescriptor:
        validators = tuple(meta.get("validators", ()))
        required = bool(meta.get("required", False))
        if validators or required:
            type_ref: DescriptorRef = functools.partial(
                self._describe_member_type, owner, name, hint, validators, required
            )
        else:
            type_ref = functools.partial(self.describe, hint)

        return PropertyDescriptor(
            name=name,
            type_ref=type_ref,
            binder_name=meta.get("bind_name"),
            is_required=required,
            is_read_only=bool(meta.get("read_only", False)),
            binding_source=meta.get("binding_source"),
            binding_allowed=meta.get("bind", True),
            validate_children=meta.get("validate", True),
        )

    def _describe_member_type(
        self,
        owner: type,
        name: str,
        hint: Any,
        validators: Tuple[Any, ...],
        required: bool,
    ) -> TypeDescriptor:
        key = (owner, name)
        cached = self._members.get(key)
        if cached is not None:
            return cached
        base = self.describe(hint)
        derived = base.with_details(
            validator_metadata=base.validator_metadata + validators,
            is_required=required,
            container_name=owner.__name__,
        )
        return self._members.setdefault(key, derived)


def create_type_registry() -> TypeRegistry:
    """Create an empty type registry"""
    return TypeRegistry()
