"""
Input guards shared by the domain services.

Wallet addresses are Starknet-style felts: ``0x`` followed by 63 or 64 hex
digits. Entity ids are positive integers (booleans are rejected even though
``bool`` subclasses ``int``).
"""

from __future__ import annotations

import re

from reefsync.errors import ValidationError

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{63,64}$")


def validate_address(address: str | None, label: str = "Address") -> str:
    """
    Validate a wallet address and return it trimmed.

    Raises:
        ValidationError: If the address is missing or malformed.
    """
    if address is None or not isinstance(address, str) or not address.strip():
        msg = f"{label} is required"
        raise ValidationError(msg)
    trimmed = address.strip()
    if not ADDRESS_PATTERN.match(trimmed):
        msg = "Invalid Starknet address format"
        raise ValidationError(msg)
    return trimmed


def is_valid_id(value: object) -> bool:
    """True for positive integers."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_id(value: object, label: str) -> int:
    """
    Validate an entity id.

    Raises:
        ValidationError: ``Invalid {label}`` when the id is not a positive integer.
    """
    if not is_valid_id(value):
        msg = f"Invalid {label}"
        raise ValidationError(msg)
    return value  # type: ignore[return-value]
