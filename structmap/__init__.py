"""
structmap - Declarative DTO decoding and DTO <-> domain model conversion

Decorators reflect over a class's annotated fields once, when the class is
declared, and attach generated decoders and converters to it.

Example:
    from typing import Annotated
    from structmap import Key, Struct, decode_dto

    @decode_dto
    class Model(Struct):
        receiverID: Annotated[int, Key("receiver_id")]

    result = Model.decode({"receiver_id": 42})
    result.unwrap()  # Model(receiverID=42)

    Model.decode({}).error  # MissingKey(key='receiver_id', ...)
"""

__version__ = "1.0.0"
__author__ = "Your Name"
__email__ = "your.email@example.com"
__license__ = "MIT"

from .conversion import (
    DomainMappable,
    DTOMappable,
    ModelConverter,
    convert_to_domain_model,
    convert_to_dto_model,
)
from .decoding import DecodeResult, Decoder, decode_dto
from .descriptors import (
    MISSING,
    ConversionPair,
    Direction,
    FieldDescriptor,
    StructDescriptor,
    describe,
)
from .errors import (
    DecodeError,
    DefinitionError,
    InvalidDocument,
    InvalidKey,
    MissingKey,
    NotMappable,
    ShapeMismatch,
    StructMapError,
    TypeMismatch,
    UnsupportedType,
)
from .keys import Key
from .struct import Struct, StructMeta, immutable

__all__ = [
    "Struct",
    "StructMeta",
    "immutable",
    "Key",
    "decode_dto",
    "Decoder",
    "DecodeResult",
    "convert_to_domain_model",
    "convert_to_dto_model",
    "ModelConverter",
    "DTOMappable",
    "DomainMappable",
    "describe",
    "FieldDescriptor",
    "StructDescriptor",
    "ConversionPair",
    "Direction",
    "MISSING",
    "StructMapError",
    "DefinitionError",
    "ShapeMismatch",
    "InvalidKey",
    "NotMappable",
    "UnsupportedType",
    "DecodeError",
    "MissingKey",
    "TypeMismatch",
    "InvalidDocument",
]
