"""Decoder synthesis for ``@decode_dto`` classes.

A ``Decoder`` is generated once per class from its ``StructDescriptor``: each
field becomes a ``FieldPlan`` holding the document key to read and the coercer
for its declared type. Decoding a document only walks that immutable plan, so a
decoder may be shared freely between threads.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable, List, NamedTuple, Optional, Union

from .coercion import Coercer, build_coercer, is_optional
from .descriptors import StructDescriptor, build_instance, cache_descriptor, describe
from .errors import DecodeError, InvalidDocument
from .struct import Struct, immutable

logger = logging.getLogger(__name__)


class DecodeResult(Struct, immutable):
    """Outcome of decoding one document: either a value or a ``DecodeError``."""

    value: Any = None
    error: Optional[DecodeError] = None

    @classmethod
    def success(cls, value: Any) -> "DecodeResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DecodeError) -> "DecodeResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the decoded value, raising the ``DecodeError`` on failure."""
        if self.error is not None:
            raise self.error
        return self.value

    def value_or(self, default: Any) -> Any:
        return default if self.error is not None else self.value

    def __hash__(self) -> int:
        # Decoded values may be unhashable
        return hash((DecodeResult, self.error))


class FieldPlan(NamedTuple):
    name: str
    key: str
    coerce: Coercer
    has_default: bool
    optional: bool


class Decoder:
    """Decodes key-value documents into instances of one class."""

    def __init__(self, cls: type, strict: bool = False) -> None:
        self.cls = cls
        self.strict = strict
        self.descriptor: StructDescriptor = describe(cls, cache=False)
        self._plan = tuple(
            FieldPlan(
                name=f.name,
                key=f.external_key,
                coerce=build_coercer(f.declared_type, strict),
                has_default=f.has_default,
                optional=is_optional(f.declared_type),
            )
            for f in self.descriptor.fields
        )
        cache_descriptor(cls, self.descriptor)
        logger.debug(
            "Synthesized decoder for %s: %s",
            self.descriptor.type_name,
            ", ".join(
                p.name if p.name == p.key else f"{p.name}<-{p.key}" for p in self._plan
            ),
        )

    @property
    def keys(self) -> List[str]:
        """Document keys read by this decoder, in field order."""
        return [p.key for p in self._plan]

    def decode(self, document: Any) -> DecodeResult:
        """Decode one document. Failures are returned, never raised."""
        if not isinstance(document, Mapping):
            return DecodeResult.failure(DecodeError.type_mismatch(None, dict))

        values = {}
        for plan in self._plan:
            if plan.key not in document:
                if plan.has_default:
                    continue
                if plan.optional:
                    values[plan.name] = None
                    continue
                return DecodeResult.failure(DecodeError.missing_key(plan.key))

            try:
                values[plan.name] = plan.coerce(document[plan.key])
            except DecodeError as exc:
                return DecodeResult.failure(exc.prefixed(plan.key))

        return DecodeResult.success(build_instance(self.cls, self.descriptor, values))

    def decode_json(self, raw: Union[str, bytes, bytearray]) -> DecodeResult:
        """Parse ``raw`` as JSON and decode the resulting document."""
        try:
            document = json.loads(raw)
        except (ValueError, TypeError) as exc:
            return DecodeResult.failure(InvalidDocument(detail=str(exc)))
        return self.decode(document)

    def decode_many(self, documents: Iterable[Any]) -> List[Any]:
        """Decode a batch, skipping and logging documents that fail."""
        decoded = []
        for index, document in enumerate(documents):
            result = self.decode(document)
            if result.ok:
                decoded.append(result.value)
            else:
                logger.warning(
                    "Skipping %s document #%d: %s",
                    self.descriptor.type_name,
                    index,
                    result.error,
                )
        return decoded

    def __repr__(self) -> str:
        return f"Decoder({self.descriptor.type_name}, strict={self.strict})"


def decode_dto(
    cls: Optional[type] = None, *, strict: bool = False
) -> Union[type, Callable[[type], type]]:
    """Class decorator generating ``decode``, ``decode_json`` and ``decode_many``.

    Each document key defaults to the field name; a field annotated with
    ``Annotated[T, Key("name")]`` is read from ``"name"`` instead. With
    ``strict=True`` numbers are not converted between ``int`` and ``float`` and
    datetimes are not read from timestamps.

    Example:
        @decode_dto
        class Model(Struct):
            receiverID: Annotated[int, Key("receiver_id")]

        Model.decode({"receiver_id": 42}).unwrap()  # Model(receiverID=42)
    """

    def decorator(target: type) -> type:
        decoder = Decoder(target, strict=strict)
        target.__decoder__ = decoder
        target.decode = staticmethod(decoder.decode)
        target.decode_json = staticmethod(decoder.decode_json)
        target.decode_many = staticmethod(decoder.decode_many)
        return target

    if cls is None:
        return decorator
    return decorator(cls)
