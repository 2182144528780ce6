"""YAML testbed loading for the aggregate counters test.

The testbed file names the DUT (gNMI target, vendor, ports, deviation
overrides), the ATE (OTG endpoint, ports) and optional workflow settings::

    dut:
      hostname: dut1.lab
      vendor: arista
      platform: eos
      username: admin
      password: admin
      port: 6030
      aggregate_id: Port-Channel1
      deviations:
        aggregate_atomic_update: true
      ports:
        - {id: port1, name: Ethernet1, speed: SPEED_100GB}
        - {id: port2, name: Ethernet2, speed: SPEED_100GB}
    ate:
      location: https://otg.lab:8443
      ports:
        - {id: port1, location: "eth1", pmd: 100GBASE-FR}
        - {id: port2, location: "eth2", pmd: 100GBASE-FR}
    settings:
      lag_type: STATIC
      convergence_timeout: 60

Usage::

    testbed = TestbedLoader("testbed.yml").load()
    testbed.dut.device_info()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from ..core.base_client import GNMI_DEFAULT_PORT, DeviceInfo
from ..core.exceptions import InventoryError
from ..core.models import LagType, Port

logger = logging.getLogger(__name__)

DEFAULT_TESTBED_FILE = Path("testbed.yml")
TESTBED_ENV_VAR = "LAG_COUNTERS_TESTBED"


@dataclass(frozen=True)
class WorkflowSettings:
    """Timing and iteration settings of the aggregate workflow.

    Attributes:
        lag_type: Aggregation type under test.
        iterations: Configure/verify rounds; a rebuild runs between rounds.
        convergence_timeout: Bound, in seconds, for each state signal.
        lag_negotiation_timeout: Bound for the aggregate to come up after
            the DUT is configured.
        ate_settle_delay: Fixed delay before sampling ATE statistics.
        poll_interval: Delay between polls of a signal.

    """

    lag_type: LagType = LagType.STATIC
    iterations: int = 2
    convergence_timeout: float = 60.0
    lag_negotiation_timeout: float = 120.0
    ate_settle_delay: float = 10.0
    poll_interval: float = 2.0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> WorkflowSettings:
        """Build settings from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise InventoryError(f"Unknown setting(s): {', '.join(unknown)}")
        values = dict(raw)
        if "lag_type" in values:
            try:
                values["lag_type"] = LagType(str(values["lag_type"]).upper())
            except ValueError as exc:
                raise InventoryError(f"Invalid lag_type {raw['lag_type']!r}") from exc
        return cls(**values)


@dataclass
class DutEntry:
    """DUT section of the testbed.

    Attributes:
        hostname: gNMI target address.
        vendor: Vendor identifier, keys the deviation table.
        platform: Platform string.
        username: Login username.
        password: Login password.
        port: gNMI port.
        insecure: Use a plaintext channel.
        aggregate_id: Aggregate interface to use; derived when empty.
        ports: Physical ports cabled to the ATE.
        deviations: Overrides of the vendor deviation defaults.

    """

    hostname: str
    vendor: str
    platform: str = ""
    username: str = ""
    password: str = ""
    port: int = GNMI_DEFAULT_PORT
    insecure: bool = False
    aggregate_id: str = ""
    ports: list[Port] = field(default_factory=list)
    deviations: dict[str, Any] = field(default_factory=dict)

    def device_info(self) -> DeviceInfo:
        """Convert to a ``DeviceInfo`` for client instantiation."""
        return DeviceInfo(
            hostname=self.hostname,
            vendor=self.vendor,
            platform=self.platform or self.vendor,
            username=self.username,
            password=self.password,
            port=self.port,
            insecure=self.insecure,
        )


@dataclass
class AteEntry:
    """ATE section of the testbed.

    Attributes:
        location: OTG API endpoint.
        verify: Verify the API server certificate.
        ports: Ports cabled to the DUT.

    """

    location: str
    verify: bool = False
    ports: list[Port] = field(default_factory=list)


@dataclass
class Testbed:
    """Complete testbed description."""

    __test__ = False

    dut: DutEntry
    ate: AteEntry
    settings: WorkflowSettings = field(default_factory=WorkflowSettings)


def _parse_ports(raw_ports: Any, side: str) -> list[Port]:
    if not isinstance(raw_ports, list):
        raise InventoryError(f"'{side}.ports' must be a list")
    ports: list[Port] = []
    for entry in raw_ports:
        if not isinstance(entry, dict) or "id" not in entry:
            raise InventoryError(
                f"Every {side} port needs an 'id'",
                details={"entry": entry},
            )
        ports.append(
            Port(
                id=str(entry["id"]),
                name=str(entry.get("name", entry["id"])),
                pmd=str(entry.get("pmd", "")),
                speed=str(entry.get("speed", "")),
                location=str(entry.get("location", "")),
            )
        )
    ids = [p.id for p in ports]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise InventoryError(
            f"Duplicate {side} port id(s): {', '.join(duplicates)}",
        )
    return ports


class TestbedLoader:
    """Load and validate a YAML testbed file.

    Args:
        testbed_file: Path to the testbed YAML file.

    """

    __test__ = False

    def __init__(self, testbed_file: Path | str = DEFAULT_TESTBED_FILE) -> None:
        """Initialize the loader with the testbed file path."""
        self._testbed_file = Path(testbed_file)
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load(self) -> Testbed:
        """Read the testbed file.

        Raises:
            InventoryError: If the file is missing or malformed.

        """
        if not self._testbed_file.exists():
            raise InventoryError(f"Testbed file not found: {self._testbed_file}")
        with self._testbed_file.open("r", encoding="utf-8") as fh:
            try:
                raw = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise InventoryError(
                    f"Malformed testbed file {self._testbed_file}: {exc}"
                ) from exc

        testbed = self.from_dict(raw)
        self._logger.info(
            "Testbed loaded: dut %s (%d ports), ate %s (%d ports)",
            testbed.dut.hostname,
            len(testbed.dut.ports),
            testbed.ate.location,
            len(testbed.ate.ports),
        )
        return testbed

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> Testbed:
        """Build a ``Testbed`` from an already-parsed mapping.

        Raises:
            InventoryError: If a required section or attribute is missing.

        """
        if not isinstance(raw, dict):
            raise InventoryError("Testbed must be a mapping")
        dut_raw = raw.get("dut")
        ate_raw = raw.get("ate")
        if not isinstance(dut_raw, dict) or not isinstance(ate_raw, dict):
            raise InventoryError("Testbed requires 'dut' and 'ate' sections")

        for key in ("hostname", "vendor"):
            if not dut_raw.get(key):
                raise InventoryError(f"Testbed 'dut' section missing '{key}'")
        if not ate_raw.get("location"):
            raise InventoryError("Testbed 'ate' section missing 'location'")

        dut = DutEntry(
            hostname=str(dut_raw["hostname"]),
            vendor=str(dut_raw["vendor"]),
            platform=str(dut_raw.get("platform", "")),
            username=str(dut_raw.get("username", "")),
            password=str(dut_raw.get("password", "")),
            port=int(dut_raw.get("port", GNMI_DEFAULT_PORT)),
            insecure=bool(dut_raw.get("insecure", False)),
            aggregate_id=str(dut_raw.get("aggregate_id", "")),
            ports=_parse_ports(dut_raw.get("ports", []), "dut"),
            deviations=dict(dut_raw.get("deviations") or {}),
        )
        ate = AteEntry(
            location=str(ate_raw["location"]),
            verify=bool(ate_raw.get("verify", False)),
            ports=_parse_ports(ate_raw.get("ports", []), "ate"),
        )
        settings = WorkflowSettings.from_dict(dict(raw.get("settings") or {}))
        return Testbed(dut=dut, ate=ate, settings=settings)
