"""Unit tests for the YAML testbed loader."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from lag_counters.core.exceptions import InventoryError
from lag_counters.core.models import LagType
from lag_counters.inventory.testbed import TestbedLoader, WorkflowSettings


@pytest.fixture
def raw_testbed() -> dict[str, Any]:
    return {
        "dut": {
            "hostname": "dut1.lab",
            "vendor": "cisco",
            "platform": "iosxr",
            "username": "admin",
            "password": "admin123",
            "port": 57400,
            "aggregate_id": "Bundle-Ether10",
            "deviations": {"explicit_port_speed": True},
            "ports": [
                {"id": "port2", "name": "HundredGigE0/0/0/1", "speed": "SPEED_100GB"},
                {"id": "port1", "name": "HundredGigE0/0/0/0", "speed": "SPEED_100GB"},
            ],
        },
        "ate": {
            "location": "https://otg.lab:8443",
            "ports": [
                {"id": "port1", "location": "eth1", "pmd": "100GBASE-FR"},
                {"id": "port2", "location": "eth2", "pmd": "100GBASE-FR"},
            ],
        },
        "settings": {"lag_type": "lacp", "convergence_timeout": 90},
    }


@pytest.fixture
def testbed_file(tmp_path: Path, raw_testbed: dict[str, Any]) -> Path:
    path = tmp_path / "testbed.yml"
    path.write_text(yaml.safe_dump(raw_testbed), encoding="utf-8")
    return path


class TestTestbedLoader:
    """Tests for TestbedLoader.load."""

    def test_load(self, testbed_file: Path) -> None:
        testbed = TestbedLoader(testbed_file).load()
        assert testbed.dut.hostname == "dut1.lab"
        assert testbed.dut.aggregate_id == "Bundle-Ether10"
        assert testbed.dut.deviations == {"explicit_port_speed": True}
        assert [p.id for p in testbed.dut.ports] == ["port2", "port1"]
        assert testbed.ate.ports[0].pmd == "100GBASE-FR"
        assert testbed.ate.ports[0].name == "port1"
        assert testbed.settings.lag_type == LagType.LACP
        assert testbed.settings.convergence_timeout == 90
        assert testbed.settings.iterations == 2

    def test_device_info(self, testbed_file: Path) -> None:
        info = TestbedLoader(testbed_file).load().dut.device_info()
        assert (info.hostname, info.port, info.platform) == ("dut1.lab", 57400, "iosxr")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(InventoryError, match="not found"):
            TestbedLoader(tmp_path / "missing.yml").load()

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yml"
        path.write_text("dut: [unclosed", encoding="utf-8")
        with pytest.raises(InventoryError, match="Malformed"):
            TestbedLoader(path).load()

    def test_missing_section(self, raw_testbed: dict[str, Any]) -> None:
        del raw_testbed["ate"]
        with pytest.raises(InventoryError, match="'ate'"):
            TestbedLoader.from_dict(raw_testbed)

    def test_missing_vendor(self, raw_testbed: dict[str, Any]) -> None:
        del raw_testbed["dut"]["vendor"]
        with pytest.raises(InventoryError, match="vendor"):
            TestbedLoader.from_dict(raw_testbed)

    def test_port_without_id(self, raw_testbed: dict[str, Any]) -> None:
        raw_testbed["ate"]["ports"].append({"location": "eth3"})
        with pytest.raises(InventoryError, match="id"):
            TestbedLoader.from_dict(raw_testbed)

    def test_duplicate_port_ids(self, raw_testbed: dict[str, Any]) -> None:
        raw_testbed["dut"]["ports"][1]["id"] = "port2"
        with pytest.raises(InventoryError, match="Duplicate"):
            TestbedLoader.from_dict(raw_testbed)


class TestWorkflowSettings:
    """Tests for WorkflowSettings.from_dict."""

    def test_defaults(self) -> None:
        settings = WorkflowSettings.from_dict({})
        assert settings.lag_type == LagType.STATIC
        assert settings.lag_negotiation_timeout == 120
        assert settings.ate_settle_delay == 10

    def test_unknown_key(self) -> None:
        with pytest.raises(InventoryError, match="sleep"):
            WorkflowSettings.from_dict({"sleep": 5})

    def test_invalid_lag_type(self) -> None:
        with pytest.raises(InventoryError, match="lag_type"):
            WorkflowSettings.from_dict({"lag_type": "dynamic"})
