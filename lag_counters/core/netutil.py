"""Address and aggregate-name helpers for the test topology.

MAC handling uses ``netaddr`` so that every address handed to the
traffic generator is in the lowercase colon-separated form OTG expects.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from netaddr import EUI, AddrFormatError, mac_unix_expanded

from .exceptions import AddressError

logger = logging.getLogger(__name__)

MAC_MAX = (1 << 48) - 1

# vendor -> (aggregate interface prefix, first index)
AGGREGATE_NAMING: dict[str, tuple[str, int]] = {
    "arista": ("Port-Channel", 1),
    "eos": ("Port-Channel", 1),
    "juniper": ("ae", 0),
    "junos": ("ae", 0),
    "cisco": ("Bundle-Ether", 1),
    "iosxr": ("Bundle-Ether", 1),
    "nokia": ("lag", 1),
    "srl": ("lag", 1),
}
DEFAULT_AGGREGATE_NAMING = ("Port-Channel", 1)

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def _parse_mac(mac: str) -> EUI:
    try:
        eui = EUI(mac.strip())
    except (AddrFormatError, TypeError, ValueError) as exc:
        raise AddressError(f"Cannot parse MAC address {mac!r}") from exc
    if eui.version != 48:
        raise AddressError(f"Not a 48-bit MAC address: {mac!r}")
    return eui


def increment_mac(mac: str, offset: int) -> str:
    """Return *mac* incremented by *offset*.

    Args:
        mac: Base MAC address in any notation ``netaddr`` accepts.
        offset: Non-negative integer added to the address.

    Returns:
        The resulting address as ``xx:xx:xx:xx:xx:xx``.

    Raises:
        AddressError: If the base cannot be parsed, the offset is negative,
            or the result overflows the 48-bit address space.

    """
    if offset < 0:
        raise AddressError(f"MAC offset must be non-negative, got {offset}")
    value = int(_parse_mac(mac)) + offset
    if value > MAC_MAX:
        raise AddressError(
            f"MAC {mac} + {offset} overflows the address space",
            details={"mac": mac, "offset": offset},
        )
    return str(EUI(value, version=48, dialect=mac_unix_expanded)).lower()


def lag_id_from_aggregate(aggregate_id: str) -> int:
    """Return the numeric LAG id carried at the end of *aggregate_id*.

    ``"Port-Channel3"`` gives 3, ``"ae0"`` gives 0 and ``"7"`` gives 7.

    Raises:
        AddressError: If the identifier does not end in digits.

    """
    match = _TRAILING_DIGITS.search(aggregate_id)
    if match is None:
        raise AddressError(f"Aggregate id {aggregate_id!r} carries no numeric LAG id")
    return int(match.group(1))


def next_aggregate_interface(vendor: str, existing: Iterable[str] = ()) -> str:
    """Return the first free aggregate interface name for *vendor*.

    Args:
        vendor: Vendor or platform identifier (case-insensitive).
        existing: Interface names already present on the device.

    """
    prefix, index = AGGREGATE_NAMING.get(vendor.lower(), DEFAULT_AGGREGATE_NAMING)
    taken = set(existing)
    while f"{prefix}{index}" in taken:
        index += 1
    name = f"{prefix}{index}"
    logger.debug("Next free aggregate interface for %s: %s", vendor, name)
    return name
