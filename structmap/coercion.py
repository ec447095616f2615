"""Per-type coercers used by generated decoders.

``build_coercer`` is called once per field when a decoder is synthesized and
returns a plain callable. The callable converts one document value into the
declared type or raises a ``DecodeError`` located relative to that value.
"""

import collections.abc
import datetime
import decimal
import enum
import types
import uuid
from typing import Any, Callable, Literal, Tuple, Union, get_args, get_origin

from .errors import DecodeError, TypeMismatch, UnsupportedType

Coercer = Callable[[Any], Any]

_SEQUENCE_ORIGINS = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    collections.abc.Iterable: list,
}
_MAPPING_ORIGINS = {
    dict: dict,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
}


def _mismatch(expected: Any, value: Any, detail: str = "") -> TypeMismatch:
    return TypeMismatch(None, expected, detail=detail or f"got {type(value).__name__}")


def is_optional(tp: Any) -> bool:
    return _is_union(tp) and type(None) in get_args(tp)


def _is_union(tp: Any) -> bool:
    origin = get_origin(tp)
    return origin is Union or origin is types.UnionType


def build_coercer(tp: Any, strict: bool = False) -> Coercer:  # noqa: C901
    """Return a callable coercing a document value to ``tp``."""
    if tp is Any or tp is object:
        return lambda value: value

    if tp is None or tp is type(None):
        def coerce_none(value: Any) -> None:
            if value is not None:
                raise _mismatch(type(None), value)
            return None
        return coerce_none

    origin = get_origin(tp)
    args = get_args(tp)

    if _is_union(tp):
        return _union_coercer(tp, args, strict)
    if origin is Literal:
        return _literal_coercer(tp, args)
    if origin in _SEQUENCE_ORIGINS:
        return _sequence_coercer(tp, origin, args, strict)
    if origin in _MAPPING_ORIGINS:
        return _mapping_coercer(tp, args, strict)
    if tp in _SEQUENCE_ORIGINS:
        return _sequence_coercer(tp, tp, (), strict)
    if tp in _MAPPING_ORIGINS:
        return _mapping_coercer(tp, (), strict)

    if not isinstance(tp, type):
        raise UnsupportedType(f"No decoding rule for type hint {tp!r}")

    decoder = tp.__dict__.get("__decoder__")
    if decoder is not None:
        return _nested_coercer(decoder)

    if tp is bool:
        return _instance_coercer(bool)
    if tp is int:
        return _int_coercer(strict)
    if tp is float:
        return _float_coercer(strict)
    if tp is str:
        return _instance_coercer(str)
    if tp is decimal.Decimal:
        return _decimal_coercer(strict)
    if issubclass(tp, datetime.datetime):
        return _datetime_coercer(strict)
    if issubclass(tp, datetime.date):
        return _date_coercer()
    if tp is uuid.UUID:
        return _uuid_coercer()
    if issubclass(tp, enum.Enum):
        return _enum_coercer(tp)
    return _instance_coercer(tp)


# --- Scalars ---
def _int_coercer(strict: bool) -> Coercer:
    def coerce(value: Any) -> int:
        if isinstance(value, bool):
            raise _mismatch(int, value)
        if isinstance(value, int):
            return value
        if not strict and isinstance(value, float) and value.is_integer():
            return int(value)
        raise _mismatch(int, value)

    return coerce


def _float_coercer(strict: bool) -> Coercer:
    def coerce(value: Any) -> float:
        if isinstance(value, bool):
            raise _mismatch(float, value)
        if isinstance(value, float):
            return value
        if not strict and isinstance(value, int):
            return float(value)
        raise _mismatch(float, value)

    return coerce


def _decimal_coercer(strict: bool) -> Coercer:
    def coerce(value: Any) -> decimal.Decimal:
        if isinstance(value, decimal.Decimal):
            return value
        if isinstance(value, bool):
            raise _mismatch(decimal.Decimal, value)
        if isinstance(value, str) or (not strict and isinstance(value, (int, float))):
            try:
                result = decimal.Decimal(str(value))
            except decimal.InvalidOperation:
                raise _mismatch(decimal.Decimal, value, f"invalid decimal {value!r}") from None
            if not result.is_finite():
                raise _mismatch(decimal.Decimal, value, f"non-finite decimal {value!r}")
            return result
        raise _mismatch(decimal.Decimal, value)

    return coerce


def _parse_iso(text: str, parser: Callable[[str], Any], expected: type) -> Any:
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return parser(text)
    except ValueError as exc:
        raise _mismatch(expected, text, str(exc)) from None


def _datetime_coercer(strict: bool) -> Coercer:
    def coerce(value: Any) -> datetime.datetime:
        if isinstance(value, datetime.datetime):
            return value
        if isinstance(value, str):
            return _parse_iso(value, datetime.datetime.fromisoformat, datetime.datetime)
        if not strict and isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc)
            except (OverflowError, OSError, ValueError) as exc:
                raise _mismatch(datetime.datetime, value, str(exc)) from None
        raise _mismatch(datetime.datetime, value)

    return coerce


def _date_coercer() -> Coercer:
    def coerce(value: Any) -> datetime.date:
        if isinstance(value, datetime.datetime):
            raise _mismatch(datetime.date, value)
        if isinstance(value, datetime.date):
            return value
        if isinstance(value, str):
            return _parse_iso(value, datetime.date.fromisoformat, datetime.date)
        raise _mismatch(datetime.date, value)

    return coerce


def _uuid_coercer() -> Coercer:
    def coerce(value: Any) -> uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        if isinstance(value, str):
            try:
                return uuid.UUID(value)
            except ValueError:
                raise _mismatch(uuid.UUID, value, f"invalid UUID {value!r}") from None
        raise _mismatch(uuid.UUID, value)

    return coerce


def _enum_coercer(tp: type) -> Coercer:
    def coerce(value: Any) -> Any:
        if isinstance(value, tp):
            return value
        try:
            return tp(value)
        except (ValueError, TypeError):
            raise _mismatch(tp, value, f"{value!r} is not a valid {tp.__name__}") from None

    return coerce


def _instance_coercer(tp: type) -> Coercer:
    def coerce(value: Any) -> Any:
        if not isinstance(value, tp):
            raise _mismatch(tp, value)
        return value

    return coerce


# --- Composite types ---
def _union_coercer(tp: Any, args: Tuple[Any, ...], strict: bool) -> Coercer:
    allows_none = type(None) in args
    members = [build_coercer(a, strict) for a in args if a is not type(None)]

    def coerce(value: Any) -> Any:
        if value is None and allows_none:
            return None
        deepest = None
        for member in members:
            try:
                return member(value)
            except DecodeError as exc:
                if exc.path and (deepest is None or len(exc.path) > len(deepest.path)):
                    deepest = exc
        # A member that got past the outer value reports the nested failure
        if deepest is not None:
            raise deepest
        raise _mismatch(tp, value)

    return coerce


def _literal_coercer(tp: Any, args: Tuple[Any, ...]) -> Coercer:
    def coerce(value: Any) -> Any:
        for allowed in args:
            if value == allowed and type(value) is type(allowed):
                return allowed
        raise _mismatch(tp, value, f"{value!r} is not one of {list(args)!r}")

    return coerce


def _sequence_coercer(tp: Any, origin: Any, args: Tuple[Any, ...], strict: bool) -> Coercer:
    build = _SEQUENCE_ORIGINS[origin]

    if origin is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
        item_coercers = [build_coercer(a, strict) for a in args]

        def coerce_fixed(value: Any) -> tuple:
            if not isinstance(value, (list, tuple)):
                raise _mismatch(tp, value)
            if len(value) != len(item_coercers):
                raise _mismatch(
                    tp, value, f"expected {len(item_coercers)} items, got {len(value)}"
                )
            return tuple(_coerce_item(c, v, i) for i, (c, v) in enumerate(zip(item_coercers, value)))

        return coerce_fixed

    item = build_coercer(args[0], strict) if args else build_coercer(Any)

    def coerce(value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            raise _mismatch(tp, value)
        return build(_coerce_item(item, v, i) for i, v in enumerate(value))

    return coerce


def _mapping_coercer(tp: Any, args: Tuple[Any, ...], strict: bool) -> Coercer:
    key_coercer = build_coercer(args[0], strict) if args else build_coercer(Any)
    value_coercer = build_coercer(args[1], strict) if args else build_coercer(Any)

    def coerce(value: Any) -> dict:
        if not isinstance(value, collections.abc.Mapping):
            raise _mismatch(tp, value)
        return {
            _coerce_item(key_coercer, k, str(k)): _coerce_item(value_coercer, v, str(k))
            for k, v in value.items()
        }

    return coerce


def _nested_coercer(decoder: Any) -> Coercer:
    def coerce(value: Any) -> Any:
        return decoder.decode(value).unwrap()

    return coerce


def _coerce_item(coercer: Coercer, value: Any, segment: Any) -> Any:
    try:
        return coercer(value)
    except DecodeError as exc:
        raise exc.prefixed(segment) from None
