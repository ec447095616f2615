"""Tests for external key overrides."""

from typing import Annotated

import pytest

from structmap import DefinitionError, InvalidKey, Key, Struct, decode_dto


class TestKey:
    """Test Key marker validation."""

    def test_key_equality(self):
        """Test that keys compare by name."""
        assert Key("a") == Key("a")
        assert Key("a") != Key("b")
        assert repr(Key("receiver_id")) == "Key('receiver_id')"

    def test_empty_key_fails_at_definition(self):
        """Test that an empty key is rejected while the class is declared."""
        with pytest.raises(InvalidKey, match="non-empty"):

            class Model(Struct):
                receiverID: Annotated[int, Key("")]

    def test_non_string_key(self):
        """Test that keys must be strings."""
        with pytest.raises(InvalidKey, match="must be a string"):
            Key(42)

    def test_invalid_key_is_definition_error(self):
        """Test InvalidKey belongs to both definition and value errors."""
        with pytest.raises(DefinitionError):
            Key("")
        with pytest.raises(ValueError):
            Key("")

    def test_multiple_keys_on_one_field(self):
        """Test that a field may carry only one Key."""
        with pytest.raises(InvalidKey, match="more than one Key"):

            class Model(Struct):
                receiverID: Annotated[int, Key("a"), Key("b")]

    def test_colliding_keys(self):
        """Test that two fields cannot decode from the same key."""
        with pytest.raises(InvalidKey, match="both decode from key 'id'"):

            class Model(Struct):
                id: int
                identifier: Annotated[int, Key("id")]

    def test_key_used_for_lookup(self):
        """Test that the override key drives decoding."""

        @decode_dto
        class Model(Struct):
            receiverID: Annotated[int, Key("receiver_id")]
            name: str = ""

        model = Model.decode({"receiver_id": 42, "receiverID": 1}).unwrap()
        assert model.receiverID == 42
