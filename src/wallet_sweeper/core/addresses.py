"""Address validation helpers."""

from typing import Any

from eth_utils import is_address

from wallet_sweeper.errors import InvalidAddressError


def is_valid_address(value: Any) -> bool:
    """
    Check for a 0x-prefixed 20-byte hex address.

    Mixed-case input must carry a valid EIP-55 checksum.

    """
    return isinstance(value, str) and value.startswith("0x") and is_address(value)


def normalize_address(value: Any) -> str:
    """
    Validate an address and lower-case it.

    Parameters
    ----------
    value : Any
        Candidate address

    Returns
    -------
    str
        Lower-cased address

    Raises
    ------
    InvalidAddressError
        If the value is not a well-formed address

    """
    if not is_valid_address(value):
        raise InvalidAddressError(str(value))
    return value.lower()
