"""Shared pytest fixtures for the aggregate counters test framework.

Provides a fake clock, an in-memory OpenConfig device standing in for the
gNMI client, an in-memory traffic generator, and the sample ports, plan,
and aggregate used across the test suite.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Generator
from typing import Any

import pytest
import snappi

from lag_counters.core.base_client import DeviceInfo, TelemetryClient
from lag_counters.core.convergence import ConvergenceVerifier, Sample
from lag_counters.core.deviations import DeviceDeviations
from lag_counters.core.exceptions import ConfigPushError, TelemetryError
from lag_counters.core.models import AggregateConfig, LagType, Port
from lag_counters.core.topology import TopologyPlan, plan_topology
from lag_counters.drivers.gnmi_client import strip_module_prefixes
from lag_counters.traffic.traffic_generator import LacpMetrics, LagMetrics, TrafficGenerator

OTG_LOCATION = "https://127.0.0.1:8443"

_INTERFACE_PATH = re.compile(r"^/interfaces/interface\[name=([^\]]+)\](/.*)?$")
_LACP_PATH = re.compile(r"^/lacp/interfaces/interface\[name=([^\]]+)\]$")
_NI_PATH = re.compile(
    r"^/network-instances/network-instance\[name=([^\]]+)\]/interfaces/interface\[id=([^\]]+)\]$"
)
_COUNTER_SUFFIX = re.compile(
    r"^/(?:state/counters|subinterfaces/subinterface\[index=\d+\]/ipv[46]/state/counters)"
    r"/([\w-]+)$"
)


def _merge(target: dict[str, Any], source: dict[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeDevice(TelemetryClient):
    """In-memory OpenConfig device.

    Configuration writes are applied to a per-interface tree; state reads
    are derived from it.  Every write is recorded in ``ops`` as
    ``(operation, path)``.
    """

    def __init__(
        self, device_info: DeviceInfo, verifier: ConvergenceVerifier, clock: FakeClock
    ) -> None:
        super().__init__(device_info, verifier)
        self.clock = clock
        self.interfaces: dict[str, dict[str, Any]] = {}
        self.lacp: dict[str, dict[str, Any]] = {}
        self.network_instances: list[tuple[str, str]] = []
        self.ops: list[tuple[str, str]] = []
        self.missing_counters: set[str] = set()
        self.down_ports: set[str] = set()
        self.reject_paths: set[str] = set()
        self.type_lookups: list[str] = []

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    # -- Writes -------------------------------------------------------------

    def replace(self, path: str, obj: Any) -> None:
        self._record("replace", path)
        self._apply(path, strip_module_prefixes(obj), merge=False)

    def update(self, path: str, obj: Any) -> None:
        self._record("update", path)
        self._apply(path, strip_module_prefixes(obj), merge=True)

    def delete(self, path: str) -> None:
        self._record("delete", path)
        match = _INTERFACE_PATH.match(path)
        if not match:
            return
        name, suffix = match.group(1), match.group(2)
        if suffix is None:
            self.interfaces.pop(name, None)
            return
        node: Any = self.interfaces.get(name)
        parts = suffix.strip("/").split("/")
        for part in parts[:-1]:
            if not isinstance(node, dict):
                return
            node = node.get(part)
        if isinstance(node, dict):
            node.pop(parts[-1], None)

    # -- Reads --------------------------------------------------------------

    def get(self, path: str) -> Any:
        match = _INTERFACE_PATH.match(path)
        if match and match.group(2) is None:
            state = self.interface_state(match.group(1))
            if state is None:
                raise TelemetryError(f"No value returned for {path}", device=self.hostname)
            return state
        value, present = self.lookup(path)
        if not present:
            raise TelemetryError(f"No value returned for {path}", device=self.hostname)
        return value

    def lookup(self, path: str) -> Sample:
        if path == "/interfaces":
            names = [{"name": name} for name in self.interfaces]
            return {"interface": names}, bool(names)
        match = _INTERFACE_PATH.match(path)
        if not match or match.group(2) is None:
            return None, False
        name, suffix = match.group(1), match.group(2)
        if suffix == "/state/type":
            self.type_lookups.append(name)
        state = self.interface_state(name)
        if state is None:
            return None, False

        counter = _COUNTER_SUFFIX.match(suffix)
        if counter:
            if counter.group(1) in self.missing_counters:
                return None, False
            return 0, True

        node: Any = state
        for part in suffix.strip("/").split("/"):
            if not isinstance(node, dict) or part not in node:
                return None, False
            node = node[part]
        return node, node is not None

    def subscribe(self, path: str) -> Generator[Sample, None, None]:
        while True:
            self.clock.sleep(1.0)
            yield self.lookup(path)

    # -- Derived state ------------------------------------------------------

    def interface_state(self, name: str) -> dict[str, Any] | None:
        """Return the state subtree of *name*, or ``None`` if unconfigured."""
        cfg = self.interfaces.get(name)
        if cfg is None:
            return None
        config = cfg.get("config", {})
        if_type = config.get("type")
        aggregate_id = cfg.get("ethernet", {}).get("config", {}).get("aggregate-id")
        if if_type == "ieee8023adLag":
            up = any(
                m.get("ethernet", {}).get("config", {}).get("aggregate-id") == name
                and m_name not in self.down_ports
                for m_name, m in self.interfaces.items()
            )
        else:
            up = name not in self.down_ports
        return {
            "name": name,
            "state": {
                "name": name,
                "type": if_type,
                "description": config.get("description"),
                "admin-status": "UP",
                "oper-status": "UP" if up else "DOWN",
            },
            "ethernet": {"state": {"aggregate-id": aggregate_id}},
            "aggregation": {
                "state": {"lag-type": cfg.get("aggregation", {}).get("config", {}).get("lag-type")}
            },
        }

    # -- Internal helpers ---------------------------------------------------

    def _record(self, op: str, path: str) -> None:
        self.ops.append((op, path))
        if path in self.reject_paths:
            raise ConfigPushError(f"{op} rejected for {path}", device=self.hostname)

    def _apply(self, path: str, obj: Any, merge: bool) -> None:
        if path == "/":
            for entry in obj.get("interfaces", {}).get("interface", []):
                self._apply(f"/interfaces/interface[name={entry['name']}]", entry, merge=True)
            for entry in obj.get("lacp", {}).get("interfaces", {}).get("interface", []):
                self.lacp[entry["name"]] = entry
            return
        lacp = _LACP_PATH.match(path)
        if lacp:
            self.lacp[lacp.group(1)] = obj
            return
        ni = _NI_PATH.match(path)
        if ni:
            self.network_instances.append((ni.group(1), ni.group(2)))
            return
        match = _INTERFACE_PATH.match(path)
        if not match:
            raise AssertionError(f"unexpected path {path}")
        name, suffix = match.group(1), match.group(2)
        if suffix is None:
            if merge and name in self.interfaces:
                _merge(self.interfaces[name], obj)
            else:
                self.interfaces[name] = copy.deepcopy(obj)
            return
        node = self.interfaces.setdefault(name, {"name": name, "config": {"name": name}})
        parts = suffix.strip("/").split("/")
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = obj


class FakeTrafficGenerator(TrafficGenerator):
    """In-memory traffic generator building real snappi configs.

    ``lag_statuses`` is consumed one entry per LAG status read; the last
    entry repeats once the list is exhausted.
    """

    def __init__(self) -> None:
        super().__init__()
        self.api = snappi.api(location=OTG_LOCATION, verify=False)
        self.pushed: list[Any] = []
        self.protocol_starts = 0
        self.links: dict[str, str] = {}
        self.lag_statuses: list[str | None] = ["up"]
        self.connected = False

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def new_config(self) -> Any:
        return self.api.config()

    def push_topology(self, config: Any) -> None:
        self.pushed.append(config)

    def start_protocols(self) -> None:
        self.protocol_starts += 1

    def get_port_link(self, port_name: str) -> str | None:
        return self.links.get(port_name, "up")

    def get_lag_metrics(self, lag_names: list[str] | None = None) -> list[LagMetrics]:
        status = self.lag_statuses.pop(0) if len(self.lag_statuses) > 1 else self.lag_statuses[0]
        if status is None:
            return []
        return [LagMetrics(name=name, oper_status=status) for name in lag_names or []]

    def get_lacp_metrics(self, lag_names: list[str] | None = None) -> list[LacpMetrics]:
        return [
            LacpMetrics(lag_name=name, member_port="port2", activity="active")
            for name in lag_names or []
        ]


# ---------------------------------------------------------------------------
# Clock and verifier fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    """A fake monotonic clock starting at zero."""
    return FakeClock()


@pytest.fixture
def verifier(clock: FakeClock) -> ConvergenceVerifier:
    """A verifier driven by the fake clock."""
    return ConvergenceVerifier(timeout=60, poll_interval=2, clock=clock, sleep=clock.sleep)


# ---------------------------------------------------------------------------
# Device fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def device_info() -> DeviceInfo:
    """DeviceInfo for an Arista DUT."""
    return DeviceInfo(
        hostname="dut1",
        vendor="arista",
        platform="eos",
        username="admin",
        password="admin123",
        port=6030,
    )


@pytest.fixture
def fake_device(
    device_info: DeviceInfo, verifier: ConvergenceVerifier, clock: FakeClock
) -> FakeDevice:
    """A connected in-memory DUT."""
    device = FakeDevice(device_info, verifier, clock)
    device.connect()
    return device


@pytest.fixture
def fake_generator() -> FakeTrafficGenerator:
    """A connected in-memory traffic generator."""
    generator = FakeTrafficGenerator()
    generator.connect()
    return generator


@pytest.fixture
def deviations() -> DeviceDeviations:
    """A device with no deviations."""
    return DeviceDeviations()


# ---------------------------------------------------------------------------
# Port and topology fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def dut_ports() -> list[Port]:
    """Four DUT ports, deliberately out of order."""
    return [
        Port(id="port3", name="Ethernet3", speed="SPEED_100GB"),
        Port(id="port1", name="Ethernet1", speed="SPEED_100GB"),
        Port(id="port4", name="Ethernet4", speed="SPEED_100GB"),
        Port(id="port2", name="Ethernet2", speed="SPEED_100GB"),
    ]


@pytest.fixture
def ate_ports() -> list[Port]:
    """Four ATE ports; the last two are 100GBASE-FR."""
    return [
        Port(id="port1", name="port1", location="eth1"),
        Port(id="port2", name="port2", location="eth2"),
        Port(id="port3", name="port3", location="eth3", pmd="100GBASE-FR"),
        Port(id="port4", name="port4", location="eth4", pmd="100GBASE-FR"),
    ]


@pytest.fixture
def plan(dut_ports: list[Port], ate_ports: list[Port]) -> TopologyPlan:
    """Planned topology over the sample ports."""
    return plan_topology(dut_ports, ate_ports)


@pytest.fixture
def aggregate(plan: TopologyPlan) -> AggregateConfig:
    """Static aggregate ``Agg1`` over the DUT member ports."""
    return AggregateConfig(aggregate_id="Agg1", lag_type=LagType.STATIC, members=plan.dut_members)


@pytest.fixture
def lacp_aggregate(plan: TopologyPlan) -> AggregateConfig:
    """LACP aggregate ``Port-Channel3`` over the DUT member ports."""
    return AggregateConfig(
        aggregate_id="Port-Channel3", lag_type=LagType.LACP, members=plan.dut_members
    )


# ---------------------------------------------------------------------------
# Pytest configuration
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: requires a live DUT and OTG testbed")
