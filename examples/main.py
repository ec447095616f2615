#!/usr/bin/env python3
"""
Walkthrough of the structmap decorators: decode_dto, Key, convert_to_domain_model
and convert_to_dto_model.
"""

import logging
from datetime import datetime
from typing import Annotated

from structmap import (
    DomainMappable,
    DTOMappable,
    Key,
    Struct,
    convert_to_domain_model,
    convert_to_dto_model,
    decode_dto,
)


# --- decode_dto ---
# Attach to a Struct to generate decode(), decode_json() and decode_many().
@decode_dto
class TestDTO(Struct):
    test: str


# --- Key ---
# Use Key instead of writing a full key mapping by hand.
# Usage: name: Annotated[T, Key("server_variable_name")]
@decode_dto
class Model(Struct):
    receiverID: Annotated[int, Key("receiver_id")]


# --- convert_to_dto_model ---
# Converts a domain model into a request DTO. The target must subclass
# DomainMappable and have the same field names and types.
class RequestModel(Struct, DomainMappable):
    id: int
    name: str
    createdAt: datetime


@convert_to_dto_model(RequestModel)
class DomainModel(Struct, DTOMappable):
    id: int
    name: str
    createdAt: datetime


# --- convert_to_domain_model ---
# Converts a response DTO into a domain model. The target must subclass
# DTOMappable and have the same field names and types.
@convert_to_domain_model(DomainModel)
class ResponseModel(Struct):
    id: int
    name: str
    createdAt: datetime


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print(TestDTO.decode({"test": "hello"}).unwrap())
    print(Model.decode({"receiver_id": 42}).unwrap())

    failed = Model.decode({"receiverID": 42})
    print(f"Decode failed: {failed.error}")

    # Malformed records are skipped and logged
    print(Model.decode_many([{"receiver_id": 1}, {"receiver_id": "x"}, {"receiver_id": 3}]))

    c = ResponseModel(id=1, name="sd", createdAt=datetime.now())
    d = c.to_model()
    print(d)

    print(d.to_dto())


if __name__ == "__main__":
    main()
