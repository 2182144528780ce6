"""Assertion-style validators for aggregate interface state.

Each validator compares observed device or traffic generator state
against the expected condition and returns a ``ValidationResult``.
Results accumulate into a ``ValidationReport`` so that one failing
member does not hide the state of the others; callers that need a hard
stop use ``ValidationReport.raise_for_failures()``.

Usage::

    validator = StateValidator(device="dut1")
    result = validator.assert_aggregate_member(state, "Ethernet2", "Port-Channel1")
    if not result.passed:
        print(result.message)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from .exceptions import ValidationError
from .models import CounterSpec, OperStatus

if TYPE_CHECKING:
    from .convergence import WaitOutcome

logger = logging.getLogger(__name__)


class Severity(StrEnum):
    """Severity level for validation results."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


@dataclass
class ValidationResult:
    """Outcome of a single validation assertion.

    Attributes:
        name: Short identifier for the assertion.
        passed: Whether the assertion succeeded.
        message: Human-readable description of the outcome.
        severity: Impact level if the assertion failed.
        expected: The expected value or condition.
        actual: The observed value.
        device: Hostname of the target device.
        skipped: Whether the check was not run on this device.
        details: Additional context for troubleshooting.

    """

    name: str
    passed: bool
    message: str
    severity: Severity = Severity.MEDIUM
    expected: Any = None
    actual: Any = None
    device: str = ""
    skipped: bool = False
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationReport:
    """Aggregated collection of validation results.

    Attributes:
        device: Hostname of the target device.
        results: Ordered list of individual validation outcomes.
        title: Workflow step the results belong to.

    """

    device: str
    results: list[ValidationResult] = field(default_factory=list)
    title: str = ""

    @property
    def passed(self) -> bool:
        """Return ``True`` only if every non-skipped result passed."""
        return all(r.passed for r in self.results if not r.skipped)

    @property
    def pass_count(self) -> int:
        """Number of passing assertions."""
        return sum(1 for r in self.results if r.passed and not r.skipped)

    @property
    def fail_count(self) -> int:
        """Number of failing assertions."""
        return sum(1 for r in self.results if not r.passed and not r.skipped)

    @property
    def skip_count(self) -> int:
        """Number of skipped assertions."""
        return sum(1 for r in self.results if r.skipped)

    @property
    def failures(self) -> list[ValidationResult]:
        """Return the failing results in order."""
        return [r for r in self.results if not r.passed and not r.skipped]

    def add(self, result: ValidationResult) -> None:
        """Append a validation result to the report."""
        self.results.append(result)

    def summary(self) -> str:
        """Return a one-line summary string."""
        total = len(self.results)
        return (
            f"[{self.device}] {self.pass_count}/{total} passed, "
            f"{self.fail_count}/{total} failed, {self.skip_count}/{total} skipped"
        )

    def raise_for_failures(self) -> ValidationReport:
        """Raise ``ValidationError`` if any non-skipped result failed."""
        failures = self.failures
        if failures:
            raise ValidationError(
                f"{len(failures)} assertion(s) failed: "
                + "; ".join(r.message for r in failures),
                device=self.device,
            )
        return self


def _leaf(data: dict[str, Any], *keys: str) -> Any:
    """Walk nested containers, returning ``None`` on the first missing key."""
    node: Any = data
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


class StateValidator:
    """Collection of assertion methods for aggregate state validation.

    All ``assert_*`` methods return a ``ValidationResult`` rather than
    raising on failure, allowing callers to accumulate results into a
    ``ValidationReport``.

    Args:
        device: Default device hostname attached to results.

    """

    def __init__(self, device: str = "") -> None:
        """Initialize the validator with an optional device hostname."""
        self._device = device
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def assert_admin_up(
        self,
        interface_data: dict[str, Any],
        interface_name: str,
    ) -> ValidationResult:
        """Assert an interface reports admin-status UP.

        Args:
            interface_data: Interface subtree returned by ``get()``.
            interface_name: Name of the interface being checked.

        Returns:
            A ``ValidationResult`` indicating pass or fail.

        """
        status = _leaf(interface_data, "state", "admin-status")
        passed = status == OperStatus.UP.value
        return ValidationResult(
            name="admin_status",
            passed=passed,
            message=(
                f"{interface_name} admin-status is {status}"
                if passed
                else f"{interface_name} admin-status got {status}, want {OperStatus.UP.value}"
            ),
            severity=Severity.INFO if passed else Severity.HIGH,
            expected=OperStatus.UP.value,
            actual=status,
            device=self._device,
        )

    def assert_aggregate_member(
        self,
        interface_data: dict[str, Any],
        interface_name: str,
        aggregate_id: str,
    ) -> ValidationResult:
        """Assert a member interface reports the expected aggregate-id.

        Args:
            interface_data: Member interface subtree returned by ``get()``.
            interface_name: Name of the member interface.
            aggregate_id: Expected aggregate identifier.

        Returns:
            A ``ValidationResult`` indicating pass or fail.

        """
        lag_id = _leaf(interface_data, "ethernet", "state", "aggregate-id")
        passed = lag_id == aggregate_id
        return ValidationResult(
            name="aggregate_id",
            passed=passed,
            message=(
                f"{interface_name} is a member of {lag_id}"
                if passed
                else f"{interface_name} LagID got {lag_id}, want {aggregate_id}"
            ),
            severity=Severity.INFO if passed else Severity.CRITICAL,
            expected=aggregate_id,
            actual=lag_id,
            device=self._device,
        )

    def assert_interface_type(
        self,
        interface_data: dict[str, Any],
        interface_name: str,
        expected_type: str,
    ) -> ValidationResult:
        """Assert an interface reports the expected IANA type."""
        observed = _leaf(interface_data, "state", "type")
        passed = observed == expected_type
        return ValidationResult(
            name="interface_type",
            passed=passed,
            message=(
                f"{interface_name} type is {observed}"
                if passed
                else f"{interface_name} type got {observed}, want {expected_type}"
            ),
            severity=Severity.INFO if passed else Severity.CRITICAL,
            expected=expected_type,
            actual=observed,
            device=self._device,
        )

    def assert_lag_type(
        self,
        interface_data: dict[str, Any],
        interface_name: str,
        expected_lag_type: str,
    ) -> ValidationResult:
        """Assert an aggregate reports the expected aggregation type."""
        observed = _leaf(interface_data, "aggregation", "state", "lag-type")
        passed = observed == expected_lag_type
        return ValidationResult(
            name="lag_type",
            passed=passed,
            message=(
                f"{interface_name} lag-type is {observed}"
                if passed
                else f"{interface_name} lag-type got {observed}, want {expected_lag_type}"
            ),
            severity=Severity.INFO if passed else Severity.HIGH,
            expected=expected_lag_type,
            actual=observed,
            device=self._device,
        )

    def assert_port_link_up(self, port_id: str, link: str | None) -> ValidationResult:
        """Assert a traffic generator port reports link UP."""
        observed = (link or "").upper()
        passed = observed == OperStatus.UP.value
        return ValidationResult(
            name="port_link",
            passed=passed,
            message=(
                f"{port_id} link is {observed}"
                if passed
                else f"{port_id} oper-status got {link}, want {OperStatus.UP.value}"
            ),
            severity=Severity.INFO if passed else Severity.HIGH,
            expected=OperStatus.UP.value,
            actual=link,
            device=self._device,
        )

    def assert_counter_present(
        self,
        spec: CounterSpec,
        value: Any,
        present: bool,
    ) -> ValidationResult:
        """Assert a counter leaf is reported.  The value itself is not checked."""
        passed = present or not spec.required
        return ValidationResult(
            name=spec.name,
            passed=passed,
            message=(
                f"{spec.path} = {value}"
                if present
                else f"Get IsPresent status for path {spec.path!r}: got false, want true"
            ),
            severity=Severity.INFO if passed else Severity.MEDIUM,
            expected="present",
            actual=value if present else "absent",
            device=self._device,
            details={"path": spec.path},
        )

    def assert_converged(self, outcome: WaitOutcome) -> ValidationResult:
        """Turn a bounded wait into a result; a timeout is a HIGH failure."""
        passed = outcome.converged
        return ValidationResult(
            name="convergence",
            passed=passed,
            message=(
                f"{outcome.signal} is {outcome.last_value} after {outcome.elapsed:.1f}s"
                if passed
                else (
                    f"{outcome.signal} got {outcome.last_value}, want "
                    f"{outcome.expected} within {outcome.elapsed:.1f}s"
                )
            ),
            severity=Severity.INFO if passed else Severity.HIGH,
            expected=outcome.expected,
            actual=outcome.last_value,
            device=self._device,
            details={"elapsed": outcome.elapsed, "samples": outcome.samples},
        )

    def skipped(self, name: str, reason: str) -> ValidationResult:
        """Return a result recording that a check was not run."""
        self._logger.info("Skipping %s: %s", name, reason)
        return ValidationResult(
            name=name,
            passed=True,
            message=reason,
            severity=Severity.INFO,
            device=self._device,
            skipped=True,
        )
