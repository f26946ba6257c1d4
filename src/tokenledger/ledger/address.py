"""Account identifiers and the null-address sentinel."""

from __future__ import annotations

from typing import Final

Address = str

NULL_ADDRESS: Final[Address] = "0x" + "0" * 40


def is_null_address(address: Address) -> bool:
    """Return True only for the reserved null address (hex case ignored)."""
    return isinstance(address, str) and address.lower() == NULL_ADDRESS
