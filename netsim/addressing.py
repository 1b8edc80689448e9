"""IPv4 address and subnet arithmetic.

Addresses are plain dotted-quad strings throughout the model. Anything that is
not exactly four decimal octets in [0, 255] raises AddressError; nothing is
truncated or coerced.
"""

from __future__ import annotations

import ipaddress

from .errors import AddressError

_ALL_ONES = 0xFFFFFFFF


def to_integer(address: str) -> int:
    if not isinstance(address, str):
        raise AddressError(f"Invalid IPv4 address: {address!r}")
    try:
        return int(ipaddress.IPv4Address(address))
    except ipaddress.AddressValueError as exc:
        raise AddressError(f"Invalid IPv4 address: {address!r}") from exc


def from_integer(value: int) -> str:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= _ALL_ONES:
        raise AddressError(f"Value out of IPv4 range: {value!r}")
    return str(ipaddress.IPv4Address(value))


def same_subnet(addr_a: str, addr_b: str, mask: str) -> bool:
    """True if both addresses fall in the same network under `mask`.

    The mask belongs to whichever interface is doing the comparison, so the
    result is not symmetric when the two sides are configured with different
    masks.
    """
    m = to_integer(mask)
    return (to_integer(addr_a) & m) == (to_integer(addr_b) & m)


def network_address(address: str, mask: str) -> str:
    return from_integer(to_integer(address) & to_integer(mask))


def prefix_length(mask: str) -> int:
    return bin(to_integer(mask)).count("1")


def is_valid_address(address: str) -> bool:
    try:
        to_integer(address)
    except AddressError:
        return False
    return True


def is_netmask(mask: str) -> bool:
    """Contiguous ones followed by zeros (0.0.0.0 and 255.255.255.255 included)."""
    try:
        m = to_integer(mask)
    except AddressError:
        return False
    inverted = ~m & _ALL_ONES
    return inverted & (inverted + 1) == 0
