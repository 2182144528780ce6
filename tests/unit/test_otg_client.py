"""Unit tests for the snappi-backed OTG client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from lag_counters.core.exceptions import ConfigPushError, ConnectionError, TrafficGeneratorError
from lag_counters.traffic.otg_client import OtgClient

LOCATION = "https://otg:8443"


@pytest.fixture
def api() -> MagicMock:
    return MagicMock()


@pytest.fixture
def otg(api: MagicMock) -> OtgClient:
    client = OtgClient(LOCATION, api=api)
    client.connect()
    return client


def _lag_metric(name: str, status: str) -> SimpleNamespace:
    return SimpleNamespace(
        name=name, oper_status=status, member_ports_up=3, frames_tx=10, frames_rx=12
    )


class TestConnection:
    """Tests for connect/disconnect."""

    def test_connect_builds_api(self) -> None:
        with patch("snappi.api") as factory:
            client = OtgClient(LOCATION, verify=True)
            client.connect()
        factory.assert_called_once_with(location=LOCATION, verify=True)

    def test_injected_api_is_kept(self, otg: OtgClient, api: MagicMock) -> None:
        assert otg.new_config() is api.config.return_value

    def test_requires_connection(self) -> None:
        with pytest.raises(ConnectionError):
            OtgClient(LOCATION).new_config()

    def test_context_manager_disconnects(self, api: MagicMock) -> None:
        with OtgClient(LOCATION, api=api) as client:
            client.new_config()
        with pytest.raises(ConnectionError):
            client.new_config()


class TestTopology:
    """Tests for push_topology and start_protocols."""

    def test_push_topology(self, otg: OtgClient, api: MagicMock) -> None:
        config = otg.new_config()
        api.set_config.return_value = SimpleNamespace(warnings=["port speed ignored"])
        otg.push_topology(config)
        api.set_config.assert_called_once_with(config)

    def test_push_rejected(self, otg: OtgClient, api: MagicMock) -> None:
        api.set_config.side_effect = Exception("invalid lag")
        with pytest.raises(ConfigPushError, match="invalid lag"):
            otg.push_topology(otg.new_config())

    def test_start_protocols(self, otg: OtgClient, api: MagicMock) -> None:
        otg.start_protocols()
        state = api.control_state.return_value
        assert state.protocol.all.state == state.protocol.all.START
        api.set_control_state.assert_called_once_with(state)

    def test_start_protocols_failure(self, otg: OtgClient, api: MagicMock) -> None:
        api.set_control_state.side_effect = Exception("no lacp")
        with pytest.raises(ConfigPushError):
            otg.start_protocols()


class TestMetrics:
    """Tests for port, LAG and LACP metrics."""

    def test_port_link(self, otg: OtgClient, api: MagicMock) -> None:
        api.get_metrics.return_value = SimpleNamespace(
            port_metrics=[SimpleNamespace(name="port1", link="up")]
        )
        assert otg.get_port_link("port1") == "up"
        request = api.metrics_request.return_value
        assert request.port.port_names == ["port1"]

    def test_port_link_unreported(self, otg: OtgClient, api: MagicMock) -> None:
        api.get_metrics.return_value = SimpleNamespace(port_metrics=[])
        assert otg.get_port_link("port1") is None

    def test_lag_oper_status(self, otg: OtgClient, api: MagicMock) -> None:
        api.get_metrics.return_value = SimpleNamespace(lag_metrics=[_lag_metric("atedst", "up")])
        assert otg.get_lag_oper_status("atedst") == "up"
        assert api.metrics_request.return_value.lag.lag_names == ["atedst"]

    def test_lag_status_stream(self, otg: OtgClient, api: MagicMock) -> None:
        api.get_metrics.side_effect = [
            SimpleNamespace(lag_metrics=[]),
            SimpleNamespace(lag_metrics=[_lag_metric("atedst", "down")]),
        ]
        sleeps: list[float] = []
        stream = otg.lag_status_stream("atedst", interval=1.5, sleep=sleeps.append)
        assert next(stream) == (None, False)
        assert next(stream) == ("down", True)
        assert sleeps == [1.5]

    def test_lacp_metrics(self, otg: OtgClient, api: MagicMock) -> None:
        api.get_metrics.return_value = SimpleNamespace(
            lacp_metrics=[
                SimpleNamespace(
                    lag_name="atedst",
                    lag_member_port_name="port2",
                    activity="active",
                    synchronization="in_sync",
                    collecting=True,
                    distributing=True,
                )
            ]
        )
        metrics = otg.log_lacp_metrics(["atedst"])
        assert metrics[0].member_port == "port2"
        assert metrics[0].synchronization == "in_sync"

    def test_metrics_failure(self, otg: OtgClient, api: MagicMock) -> None:
        api.get_metrics.side_effect = Exception("timeout")
        with pytest.raises(TrafficGeneratorError):
            otg.log_lag_metrics(["atedst"])
