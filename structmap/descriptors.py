"""Structural descriptions of annotated classes.

A descriptor is built once per class, when the class is declared or first
described, and cached on the class. Decoders and converters are generated
from descriptors only; they never inspect the class again.
"""

import dataclasses
import enum
import logging
from typing import (
    Annotated,
    Any,
    ClassVar,
    Dict,
    Iterable,
    Optional,
    Tuple,
    get_args,
    get_origin,
    get_type_hints,
)

from .errors import InvalidKey, ShapeMismatch
from .keys import find_key

logger = logging.getLogger(__name__)

DESCRIPTOR_ATTR = "__struct_descriptor__"


class _Missing:
    """Sentinel for fields without a default value."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    name: str
    declared_type: Any
    external_key: Optional[str] = None
    default: Any = MISSING
    metadata: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if self.external_key is None:
            object.__setattr__(self, "external_key", self.name)

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def shape(self) -> Tuple[str, Any]:
        return (self.name, self.declared_type)


@dataclasses.dataclass(frozen=True)
class StructDescriptor:
    type_name: str
    fields: Tuple[FieldDescriptor, ...]

    def __post_init__(self) -> None:
        seen: Dict[str, str] = {}
        for f in self.fields:
            owner = seen.get(f.external_key)
            if owner is not None:
                raise InvalidKey(
                    f"{self.type_name}: fields '{owner}' and '{f.name}' both "
                    f"decode from key '{f.external_key}'"
                )
            seen[f.external_key] = f.name

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def field(self, name: str) -> FieldDescriptor:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def field_for_key(self, key: str) -> FieldDescriptor:
        for f in self.fields:
            if f.external_key == key:
                return f
        raise KeyError(key)

    def shape(self) -> Dict[str, Any]:
        """Map of field name to declared type, used for structural comparison."""
        return dict(f.shape for f in self.fields)


class Direction(enum.Enum):
    TO_DOMAIN = "to_domain"
    TO_DTO = "to_dto"


@dataclasses.dataclass(frozen=True)
class ConversionPair:
    """Two structurally identical descriptors that can be copied into each other."""

    source: StructDescriptor
    target: StructDescriptor
    direction: Direction = Direction.TO_DOMAIN

    def __post_init__(self) -> None:
        source_shape = self.source.shape()
        target_shape = self.target.shape()

        missing_in_target = [n for n in source_shape if n not in target_shape]
        missing_in_source = [n for n in target_shape if n not in source_shape]
        conflicts = {
            n: (t, target_shape[n])
            for n, t in source_shape.items()
            if n in target_shape and target_shape[n] != t
        }
        if missing_in_target or missing_in_source or conflicts:
            raise ShapeMismatch(
                self.source.type_name,
                self.target.type_name,
                missing_in_target=missing_in_target,
                missing_in_source=missing_in_source,
                type_conflicts=conflicts,
            )


def split_annotated(hint: Any) -> Tuple[Any, Tuple[Any, ...]]:
    """Strip an ``Annotated`` wrapper, returning the bare type and its metadata."""
    if get_origin(hint) is Annotated:
        args = get_args(hint)
        return args[0], tuple(args[1:])
    return hint, ()


def is_classvar(hint: Any) -> bool:
    if hint is ClassVar or get_origin(hint) is ClassVar:
        return True
    return isinstance(hint, str) and hint.startswith(("ClassVar", "typing.ClassVar"))


def build_descriptor(
    type_name: str, items: Iterable[Tuple[str, Any, Any]]
) -> StructDescriptor:
    """Build a descriptor from ``(name, type hint, default)`` triples."""
    fields = []
    for name, hint, default in items:
        declared, metadata = split_annotated(hint)
        fields.append(
            FieldDescriptor(
                name=name,
                declared_type=declared,
                external_key=find_key(name, metadata),
                default=default,
                metadata=metadata,
            )
        )
    descriptor = StructDescriptor(type_name, tuple(fields))
    logger.debug(
        "Described %s with fields %s", type_name, ", ".join(descriptor.field_names)
    )
    return descriptor


def _dataclass_items(cls: type, hints: Dict[str, Any]) -> Iterable[Tuple[str, Any, Any]]:
    for f in dataclasses.fields(cls):
        if f.default is not dataclasses.MISSING:
            default = f.default
        elif f.default_factory is not dataclasses.MISSING:
            default = f.default_factory
        else:
            default = MISSING
        yield f.name, hints.get(f.name, f.type), default


def _annotated_items(cls: type, hints: Dict[str, Any]) -> Iterable[Tuple[str, Any, Any]]:
    for name, hint in hints.items():
        if name.startswith("_") or is_classvar(hint):
            continue
        yield name, hint, getattr(cls, name, MISSING)


def describe(cls: type, cache: bool = True) -> StructDescriptor:
    """Return the cached descriptor for ``cls``, building it on first use.

    With ``cache=False`` a freshly built descriptor is not stored; callers that
    can still fail store it with ``cache_descriptor`` once they succeed.
    """
    if not isinstance(cls, type):
        raise TypeError(f"describe() expects a class, got {type(cls).__name__}")

    cached = cls.__dict__.get(DESCRIPTOR_ATTR)
    if cached is not None:
        return cached

    hints = get_type_hints(cls, include_extras=True)
    if dataclasses.is_dataclass(cls):
        items = _dataclass_items(cls, hints)
    else:
        items = _annotated_items(cls, hints)

    descriptor = build_descriptor(cls.__name__, items)
    if cache:
        cache_descriptor(cls, descriptor)
    return descriptor


def cache_descriptor(cls: type, descriptor: StructDescriptor) -> None:
    if DESCRIPTOR_ATTR not in cls.__dict__:
        setattr(cls, DESCRIPTOR_ATTR, descriptor)


def _uses_keyword_init(cls: type) -> bool:
    return dataclasses.is_dataclass(cls) or cls.__init__ is not object.__init__


def build_instance(cls: type, descriptor: StructDescriptor, values: Dict[str, Any]) -> Any:
    """Create an instance of ``cls`` from field values.

    Classes with their own ``__init__`` (Struct, dataclasses) receive the values
    as keyword arguments. Plain annotated classes have no such constructor, so
    the instance is allocated directly and every field is assigned, falling back
    to the declared default.
    """
    if _uses_keyword_init(cls):
        return cls(**values)

    instance = cls.__new__(cls)
    for f in descriptor.fields:
        if f.name in values:
            setattr(instance, f.name, values[f.name])
        elif f.has_default:
            setattr(instance, f.name, f.default)
        else:
            raise TypeError(f"Missing required field '{f.name}' for {cls.__name__}")
    return instance
