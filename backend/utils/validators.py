"""
Input validation utilities for the NFT Registry.

Address validation is the registry's only gate on account strings: every
address that ends up in storage (owners, spenders, operators, withdraw
address, contract owner) passes through validate_address() first.

Formats (settings.address_format):
    plain    — lowercase account names: [a-z0-9_-], 3..90 chars
    algorand — 58-char base32 address with a valid checksum
"""
import re

from algosdk import encoding

from config import settings
from domain.errors import BadAddressError

_PLAIN_ADDRESS = re.compile(r"^[a-z0-9_\-]{3,90}$")


def validate_plain_address(address: str) -> str:
    """Validate a lowercase account name."""
    if address != address.lower():
        raise BadAddressError(address, "address must be lowercase")
    if not _PLAIN_ADDRESS.match(address):
        raise BadAddressError(
            address, "expected 3-90 characters of a-z, 0-9, '_' or '-'"
        )
    return address


def validate_algorand_address(address: str) -> str:
    """
    Validate an Algorand address format and checksum.

    Args:
        address: Algorand wallet address string

    Returns:
        The validated address (unchanged)

    Raises:
        BadAddressError if the address is invalid
    """
    if len(address) != 58:
        raise BadAddressError(
            address, f"expected 58 characters, got {len(address)}"
        )

    if not encoding.is_valid_address(address):
        raise BadAddressError(address, "checksum mismatch")

    return address


def validate_address(address: str | None, address_format: str | None = None) -> str:
    """
    Validate an address in the configured format.

    Raises:
        BadAddressError if the address is empty or malformed
    """
    if not address:
        raise BadAddressError(address, "address is required")

    fmt = address_format or settings.address_format
    if fmt == "algorand":
        return validate_algorand_address(address)
    return validate_plain_address(address)
