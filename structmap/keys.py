"""External key overrides for decoded fields."""

from typing import Any, Iterable, Optional

from .errors import InvalidKey


class Key:
    """Field metadata naming the document key a field is decoded from.

    Attach it through ``Annotated``::

        class Model(Struct):
            receiverID: Annotated[int, Key("receiver_id")]
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        if not isinstance(name, str):
            raise InvalidKey(f"Key name must be a string, got {type(name).__name__}")
        if not name:
            raise InvalidKey("Key name must be a non-empty string")
        self.name = name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Key):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash((Key, self.name))

    def __repr__(self) -> str:
        return f"Key({self.name!r})"


def find_key(field_name: str, metadata: Iterable[Any]) -> Optional[str]:
    """Return the external key declared in ``metadata``, if any."""
    keys = [m for m in metadata if isinstance(m, Key)]
    if len(keys) > 1:
        raise InvalidKey(
            f"Field '{field_name}' declares more than one Key: "
            f"{', '.join(repr(k) for k in keys)}"
        )
    return keys[0].name if keys else None
