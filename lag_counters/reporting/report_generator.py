"""HTML run report generation using Jinja2 templates.

Collects the per-step ``ValidationReport`` objects produced by the
aggregate counters workflow, together with testbed metadata, and renders
them into a single HTML report.

Usage::

    gen = ReportGenerator()
    gen.set_environment({"dut": "dut1", "lag_type": "STATIC"})
    gen.add_validation_report(report)
    gen.generate("output/report.html")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

if TYPE_CHECKING:
    from ..core.validator import ValidationReport

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_TEMPLATE = "report_template.html"


@dataclass
class StepResult:
    """One workflow step as shown in the report.

    Attributes:
        title: Step title, e.g. ``Iteration 1: Verify DUT``.
        device: Device the checks ran against.
        status: ``passed`` or ``failed``.
        summary: One-line pass/fail/skip summary.
        results: Flattened assertion results.

    """

    title: str
    device: str
    status: str
    summary: str
    pass_count: int = 0
    fail_count: int = 0
    skip_count: int = 0
    results: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ReportData:
    """Aggregated data model passed to the Jinja2 template."""

    title: str = "Aggregate Interface Counters Report"
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    environment: dict[str, str] = field(default_factory=dict)
    steps: list[StepResult] = field(default_factory=list)

    @property
    def total_steps(self) -> int:
        """Total number of steps."""
        return len(self.steps)

    @property
    def passed_steps(self) -> int:
        """Number of steps without failures."""
        return sum(1 for s in self.steps if s.status == "passed")

    @property
    def failed_steps(self) -> int:
        """Number of steps with at least one failure."""
        return self.total_steps - self.passed_steps

    @property
    def pass_rate(self) -> float:
        """Pass rate as a percentage."""
        if self.total_steps == 0:
            return 0.0
        return (self.passed_steps / self.total_steps) * 100


class ReportGenerator:
    """Render workflow results into an HTML report.

    Args:
        template_dir: Directory containing Jinja2 templates.
        template_name: Name of the main report template.

    """

    def __init__(
        self,
        template_dir: Path = TEMPLATE_DIR,
        template_name: str = DEFAULT_TEMPLATE,
    ) -> None:
        """Initialize the report generator with template settings."""
        self._template_dir = template_dir
        self._template_name = template_name
        self._data = ReportData()
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def data(self) -> ReportData:
        """Return the collected report data."""
        return self._data

    def set_title(self, title: str) -> None:
        """Set the report title."""
        self._data.title = title

    def set_environment(self, env: dict[str, str]) -> None:
        """Set environment metadata (DUT, ATE, LAG type, etc.)."""
        self._data.environment = {str(k): str(v) for k, v in env.items()}

    def add_validation_report(self, report: ValidationReport) -> None:
        """Add one workflow step's validation report."""
        self._data.steps.append(
            StepResult(
                title=report.title or report.device,
                device=report.device,
                status="passed" if report.passed else "failed",
                summary=report.summary(),
                pass_count=report.pass_count,
                fail_count=report.fail_count,
                skip_count=report.skip_count,
                results=[
                    {
                        "name": r.name,
                        "status": "skipped" if r.skipped else ("passed" if r.passed else "failed"),
                        "message": r.message,
                        "severity": r.severity.value,
                        "expected": "" if r.expected is None else str(r.expected),
                        "actual": "" if r.actual is None else str(r.actual),
                    }
                    for r in report.results
                ],
            )
        )

    def render(self) -> str:
        """Render the Jinja2 template with the collected data."""
        env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            autoescape=select_autoescape(["html"]),
        )
        template = env.get_template(self._template_name)
        return template.render(
            data=self._data,
            title=self._data.title,
            timestamp=self._data.timestamp,
            environment=self._data.environment,
            steps=self._data.steps,
            total_steps=self._data.total_steps,
            passed_steps=self._data.passed_steps,
            failed_steps=self._data.failed_steps,
            pass_rate=self._data.pass_rate,
        )

    def generate(self, output_path: str | Path) -> Path:
        """Render the HTML report and write it to disk.

        Args:
            output_path: Destination file path.

        Returns:
            Path to the generated report file.

        """
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(self.render(), encoding="utf-8")
        self._logger.info("Report generated: %s", output)
        return output
