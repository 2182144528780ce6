"""Interface and IP counter presence audit for the aggregate interface.

The audit only checks that each counter is reported.  Absolute counts
depend on the testbed (background traffic, control-plane chatter), so no
numeric expectation is applied.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import paths
from .models import CounterSpec
from .validator import StateValidator, ValidationReport

if TYPE_CHECKING:
    from .base_client import TelemetryClient
    from .deviations import DeviceDeviations

logger = logging.getLogger(__name__)

# (name, layer, leaf) in audit order
COUNTER_TABLE: tuple[tuple[str, str, str], ...] = (
    ("InUnicastPkts", "interface", "in-unicast-pkts"),
    ("OutUnicastPkts", "interface", "out-unicast-pkts"),
    ("InMulticastPkts", "interface", "in-multicast-pkts"),
    ("OutMulticastPkts", "interface", "out-multicast-pkts"),
    ("InPkts", "interface", "in-pkts"),
    ("OutPkts", "interface", "out-pkts"),
    ("InDiscards", "interface", "in-discards"),
    ("OutDiscards", "interface", "out-discards"),
    ("InErrors", "interface", "in-errors"),
    ("OutErrors", "interface", "out-errors"),
    ("IPv4InPkts", "ipv4", "in-pkts"),
    ("IPv4OutPkts", "ipv4", "out-pkts"),
    ("IPv6InPkts", "ipv6", "in-pkts"),
    ("IPv6OutPkts", "ipv6", "out-pkts"),
    ("IPv6InDiscardedPkts", "ipv6", "in-discarded-pkts"),
    ("IPv6OutDiscardedPkts", "ipv6", "out-discarded-pkts"),
)

IPV6_DISCARD_COUNTERS = frozenset({"IPv6InDiscardedPkts", "IPv6OutDiscardedPkts"})

_PATH_BUILDERS = {
    "interface": paths.interface_counter,
    "ipv4": paths.ipv4_counter,
    "ipv6": paths.ipv6_counter,
}


def build_counter_specs(
    aggregate_id: str,
    deviations: DeviceDeviations,
) -> list[CounterSpec]:
    """Return the ordered counter table for *aggregate_id*.

    IPv6 discarded-packet counters are marked skipped when the device does
    not report subinterface packet counters or IPv6 discards.
    """
    skip_ipv6_discards = (
        deviations.subinterface_packet_counters_missing
        or deviations.ipv6_discarded_pkts_unsupported
    )
    return [
        CounterSpec(
            name=name,
            path=_PATH_BUILDERS[layer](aggregate_id, leaf),
            skip=skip_ipv6_discards and name in IPV6_DISCARD_COUNTERS,
        )
        for name, layer, leaf in COUNTER_TABLE
    ]


class CounterAuditor:
    """Look up every counter in a counter table and record its presence.

    Args:
        client: Connected telemetry client for the device.
        validator: Validator producing the per-counter results.

    """

    def __init__(self, client: TelemetryClient, validator: StateValidator) -> None:
        """Initialize the auditor with a client and a validator."""
        self._client = client
        self._validator = validator
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def audit(self, specs: list[CounterSpec]) -> ValidationReport:
        """Check each counter in *specs* and return the report."""
        report = ValidationReport(device=self._client.hostname)
        for spec in specs:
            if spec.skip:
                report.add(
                    self._validator.skipped(spec.name, f"Counter {spec.name} is not supported.")
                )
                continue
            value, present = self._client.lookup(spec.path)
            self._logger.info("Got path/value: %s:%s", spec.path, value)
            report.add(self._validator.assert_counter_present(spec, value, present))

        self._logger.info("Counter audit: %s", report.summary())
        return report
