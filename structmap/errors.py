"""Exception hierarchy for structmap.

Two families exist. ``DefinitionError`` subclasses are raised while a class is
being declared or decorated and abort generation. ``DecodeError`` subclasses
describe a malformed document; decoders return them inside a ``DecodeResult``
rather than raising them.
"""

from typing import Any, Dict, Iterable, Optional, Tuple, Union

PathSegment = Union[str, int]


class StructMapError(Exception):
    """Base class for every error raised by structmap."""


# --- Definition-time errors ---
class DefinitionError(StructMapError, TypeError):
    """A declaration cannot be turned into a decoder or converter."""


class InvalidKey(DefinitionError, ValueError):
    """An external key override is empty, malformed or collides with another."""


class NotMappable(DefinitionError):
    """A conversion target does not carry the required mappable marker."""


class UnsupportedType(DefinitionError):
    """A field's declared type has no coercion rule."""


class ShapeMismatch(DefinitionError):
    """Two structures do not share the same (field name, type) set."""

    def __init__(
        self,
        source: str,
        target: str,
        missing_in_target: Iterable[str] = (),
        missing_in_source: Iterable[str] = (),
        type_conflicts: Optional[Dict[str, Tuple[Any, Any]]] = None,
    ) -> None:
        self.source = source
        self.target = target
        self.missing_in_target = tuple(missing_in_target)
        self.missing_in_source = tuple(missing_in_source)
        self.type_conflicts = dict(type_conflicts or {})

        problems = []
        if self.missing_in_target:
            problems.append(
                f"fields missing in {target}: {', '.join(self.missing_in_target)}"
            )
        if self.missing_in_source:
            problems.append(
                f"fields missing in {source}: {', '.join(self.missing_in_source)}"
            )
        for name, (left, right) in self.type_conflicts.items():
            problems.append(f"field '{name}' is {_type_name(left)} in {source} "
                            f"but {_type_name(right)} in {target}")
        super().__init__(
            f"Cannot convert between {source} and {target}: {'; '.join(problems)}"
        )


# --- Runtime decode errors ---
class DecodeError(StructMapError, ValueError):
    """A document could not be decoded into a structure."""

    kind = "decode_error"

    def __init__(
        self,
        key: Optional[str] = None,
        expected: Any = None,
        path: Tuple[PathSegment, ...] = (),
        detail: str = "",
    ) -> None:
        self.key = key
        self.expected = expected
        self.path = tuple(path)
        self.detail = detail
        super().__init__(self._message())

    @classmethod
    def missing_key(cls, key: str, path: Tuple[PathSegment, ...] = ()) -> "MissingKey":
        return MissingKey(key, path=path or (key,))

    @classmethod
    def type_mismatch(
        cls, key: Optional[str], expected: Any, path: Tuple[PathSegment, ...] = ()
    ) -> "TypeMismatch":
        if not path and key is not None:
            path = (key,)
        return TypeMismatch(key, expected, path=path)

    def prefixed(self, segment: PathSegment) -> "DecodeError":
        """Return a copy of this error located one level deeper in a document."""
        key = self.key
        if key is None and isinstance(segment, str):
            key = segment
        return self.__class__(
            key, self.expected, path=(segment,) + self.path, detail=self.detail
        )

    def _location(self) -> str:
        if not self.path:
            return "document root"
        return "".join(
            f"[{seg}]" if isinstance(seg, int) else (f".{seg}" if i else seg)
            for i, seg in enumerate(self.path)
        )

    def _message(self) -> str:
        return f"Cannot decode {self._location()}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecodeError):
            return NotImplemented
        return (self.kind, self.key, self.expected, self.path) == (
            other.kind,
            other.key,
            other.expected,
            other.path,
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.key, repr(self.expected), self.path))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(key={self.key!r}, expected={self.expected!r}, path={self.path!r})"


class MissingKey(DecodeError):
    kind = "missing_key"

    def _message(self) -> str:
        return f"Missing required key '{self.key}' at {self._location()}"


class TypeMismatch(DecodeError):
    kind = "type_mismatch"

    def _message(self) -> str:
        msg = f"Expected {_type_name(self.expected)} at {self._location()}"
        if self.detail:
            msg += f": {self.detail}"
        return msg


class InvalidDocument(DecodeError):
    """Raw input could not be parsed into a key-value document at all."""

    kind = "invalid_document"

    def _message(self) -> str:
        return f"Invalid document: {self.detail}"


def _type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp)
