"""Unit tests for the HTML run report."""

from __future__ import annotations

from pathlib import Path

import pytest

from lag_counters.core.validator import Severity, StateValidator, ValidationReport, ValidationResult
from lag_counters.reporting.report_generator import ReportGenerator


@pytest.fixture
def report() -> ValidationReport:
    validator = StateValidator(device="dut1")
    r = ValidationReport(device="dut1", title="Iteration 1: Aggregate counters")
    r.add(ValidationResult(name="InPkts", passed=True, message="in-pkts = 0", device="dut1"))
    r.add(
        ValidationResult(
            name="OutPkts",
            passed=False,
            message="Get IsPresent status for path '<out-pkts>': got false, want true",
            severity=Severity.MEDIUM,
            expected="present",
            actual="absent",
        )
    )
    r.add(validator.skipped("IPv6InDiscardedPkts", "Counter IPv6InDiscardedPkts is not supported."))
    return r


class TestReportGenerator:
    """Tests for ReportGenerator."""

    def test_step_summary(self, report: ValidationReport) -> None:
        gen = ReportGenerator()
        gen.add_validation_report(report)
        step = gen.data.steps[0]
        assert step.title == "Iteration 1: Aggregate counters"
        assert step.status == "failed"
        assert (step.pass_count, step.fail_count, step.skip_count) == (1, 1, 1)
        assert [r["status"] for r in step.results] == ["passed", "failed", "skipped"]

    def test_pass_rate(self, report: ValidationReport) -> None:
        gen = ReportGenerator()
        assert gen.data.pass_rate == 0.0
        gen.add_validation_report(report)
        gen.add_validation_report(ValidationReport(device="dut1", title="Verify DUT"))
        assert gen.data.passed_steps == 1
        assert gen.data.pass_rate == pytest.approx(50.0)

    def test_render(self, report: ValidationReport) -> None:
        gen = ReportGenerator()
        gen.set_title("LAG counters")
        gen.set_environment({"dut": "dut1", "lag_type": "STATIC"})
        gen.add_validation_report(report)
        html = gen.render()
        assert "<title>LAG counters</title>" in html
        assert "Iteration 1: Aggregate counters" in html
        assert "STATIC" in html
        assert "&lt;out-pkts&gt;" in html

    def test_generate_writes_file(self, tmp_path: Path, report: ValidationReport) -> None:
        gen = ReportGenerator()
        gen.add_validation_report(report)
        output = gen.generate(tmp_path / "out" / "report.html")
        assert output.exists()
        assert "IPv6InDiscardedPkts" in output.read_text(encoding="utf-8")
