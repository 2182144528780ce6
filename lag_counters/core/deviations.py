"""Per-vendor capability flags consulted before conditional workflow steps.

Devices differ in how much of the OpenConfig model they accept or report.
Rather than subclassing the workflow per vendor, each step asks a
``DeviceDeviations`` value whether the quirk applies.  The registry maps
vendor/platform names to their default deviations; a testbed may override
any field.

Usage::

    registry = DeviationRegistry()
    deviations = registry.for_vendor("arista", {"aggregate_atomic_update": True})
    if deviations.interface_enabled:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any

from .exceptions import InventoryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceDeviations:
    """Capability flags for one device.

    Attributes:
        interface_enabled: Interfaces need an explicit ``enabled`` leaf.
        ipv4_missing_enabled: The IPv4 container rejects ``enabled``.
        aggregate_atomic_update: Aggregate and members must be created in
            a single transaction.
        explicit_interface_in_default_vrf: Interfaces must be bound to the
            default network instance explicitly.
        default_network_instance: Name of the default network instance.
        explicit_port_speed: Port speed must be configured explicitly.
        subinterface_packet_counters_missing: Subinterface packet counters
            are not reported.
        ipv6_discarded_pkts_unsupported: IPv6 discarded packet counters are
            not reported.

    """

    interface_enabled: bool = False
    ipv4_missing_enabled: bool = False
    aggregate_atomic_update: bool = False
    explicit_interface_in_default_vrf: bool = False
    default_network_instance: str = "DEFAULT"
    explicit_port_speed: bool = False
    subinterface_packet_counters_missing: bool = False
    ipv6_discarded_pkts_unsupported: bool = False


VENDOR_DEVIATIONS: dict[str, DeviceDeviations] = {
    "arista": DeviceDeviations(
        interface_enabled=True,
        default_network_instance="default",
        subinterface_packet_counters_missing=True,
    ),
    "juniper": DeviceDeviations(
        ipv6_discarded_pkts_unsupported=True,
    ),
    "cisco": DeviceDeviations(
        interface_enabled=True,
        ipv4_missing_enabled=True,
        aggregate_atomic_update=True,
        ipv6_discarded_pkts_unsupported=True,
    ),
    "nokia": DeviceDeviations(
        interface_enabled=True,
        explicit_interface_in_default_vrf=True,
        default_network_instance="default",
        explicit_port_speed=True,
    ),
}
VENDOR_DEVIATIONS["eos"] = VENDOR_DEVIATIONS["arista"]
VENDOR_DEVIATIONS["junos"] = VENDOR_DEVIATIONS["juniper"]
VENDOR_DEVIATIONS["iosxr"] = VENDOR_DEVIATIONS["cisco"]
VENDOR_DEVIATIONS["srl"] = VENDOR_DEVIATIONS["nokia"]


class DeviationRegistry:
    """Lookup table of vendor name to ``DeviceDeviations``.

    Args:
        custom_deviations: Optional additional vendor mappings.

    """

    def __init__(
        self,
        custom_deviations: dict[str, DeviceDeviations] | None = None,
    ) -> None:
        """Initialize the registry with the built-in vendor table."""
        self._registry: dict[str, DeviceDeviations] = dict(VENDOR_DEVIATIONS)
        if custom_deviations:
            self._registry.update(
                {vendor.lower(): dev for vendor, dev in custom_deviations.items()}
            )
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def register(self, vendor: str, deviations: DeviceDeviations) -> None:
        """Register or replace the deviations for *vendor*."""
        self._registry[vendor.lower()] = deviations
        self._logger.info("Registered deviations for vendor '%s'", vendor)

    def for_vendor(
        self,
        vendor: str,
        overrides: dict[str, Any] | None = None,
    ) -> DeviceDeviations:
        """Return the deviations for *vendor* with *overrides* applied.

        Unknown vendors get the default (no deviations) value.

        Raises:
            InventoryError: If an override names an unknown deviation.

        """
        base = self._registry.get(vendor.lower())
        if base is None:
            self._logger.debug("No deviations registered for '%s', using defaults", vendor)
            base = DeviceDeviations()
        if not overrides:
            return base

        known = {f.name for f in fields(DeviceDeviations)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise InventoryError(
                f"Unknown deviation(s): {', '.join(unknown)}",
                details={"vendor": vendor},
            )
        return replace(base, **overrides)

    @property
    def supported_vendors(self) -> list[str]:
        """Return sorted list of vendors with registered deviations."""
        return sorted(self._registry.keys())
