"""Address and id guard tests."""

import pytest

from reefsync.errors import ValidationError
from reefsync.validation import is_valid_id, validate_address, validate_id


class TestValidateAddress:
    def test_64_hex_digits(self):
        address = "0x" + "ab" * 32
        assert validate_address(address) == address

    def test_63_hex_digits(self):
        address = "0x" + "f" * 63
        assert validate_address(address) == address

    def test_mixed_case_accepted(self):
        address = "0x" + "aB" * 32
        assert validate_address(address) == address

    def test_surrounding_whitespace_trimmed(self):
        address = "0x" + "1" * 64
        assert validate_address(f"  {address}\n") == address

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing(self, value):
        with pytest.raises(ValidationError, match="Address is required"):
            validate_address(value)

    def test_label_used_in_required_message(self):
        with pytest.raises(ValidationError, match="Owner address is required"):
            validate_address("", "Owner address")

    @pytest.mark.parametrize(
        "value",
        [
            "0x" + "a" * 62,
            "0x" + "a" * 65,
            "a" * 64,
            "0x" + "g" * 64,
            "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4",
        ],
    )
    def test_malformed(self, value):
        with pytest.raises(ValidationError, match="Invalid Starknet address format"):
            validate_address(value)


class TestIds:
    @pytest.mark.parametrize("value", [1, 42, 10**9])
    def test_valid(self, value):
        assert is_valid_id(value)
        assert validate_id(value, "fish ID") == value

    @pytest.mark.parametrize("value", [0, -3, 2.0, "7", None, True, False])
    def test_invalid(self, value):
        assert not is_valid_id(value)
        with pytest.raises(ValidationError, match="Invalid fish ID"):
            validate_id(value, "fish ID")
