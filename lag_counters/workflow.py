"""Aggregate interface counters workflow.

Drives one DUT (through a ``TelemetryClient``) and one ATE (through a
``TrafficGenerator``) through the aggregate counters test::

    plan -> configure DUT -> verify DUT -> configure ATE -> verify ATE
         -> audit counters

The sequence runs ``settings.iterations`` times.  Between iterations the
aggregate is torn down and rebuilt on the DUT; the ATE topology is pushed
only in the first iteration and stays in place afterwards.

Configuration rejections and aggregate-type timeouts are fatal and
propagate as ``ConfigPushError`` / ``ConvergenceTimeout``.  Per-port and
per-counter checks are collected into ``ValidationReport`` objects so one
failing member does not hide the state of the others.

Usage::

    test = AggregateCountersTest(client, otg, plan, aggregate, deviations)
    reports = test.run()
    for report in reports:
        report.raise_for_failures()
"""

from __future__ import annotations

import logging
from contextlib import closing
from typing import TYPE_CHECKING, Any

from .core import paths
from .core.convergence import ConvergenceVerifier
from .core.counters import CounterAuditor, build_counter_specs
from .core.models import InterfaceType, LagType, OperStatus, PortRole
from .core.validator import StateValidator, ValidationReport
from .dut.configurator import DeviceConfigurator
from .inventory.testbed import WorkflowSettings
from .traffic.topology_builder import AteConfigurator

if TYPE_CHECKING:
    from .core.base_client import TelemetryClient
    from .core.deviations import DeviceDeviations
    from .core.models import AggregateConfig
    from .core.topology import TopologyPlan
    from .reporting.report_generator import ReportGenerator
    from .traffic.traffic_generator import TrafficGenerator

logger = logging.getLogger(__name__)

ATE_SETTLE_REASON = "traffic generator LAG and LACP statistics"


def lag_is_up(value: Any, present: bool) -> bool:
    """Accept a LAG oper status of ``up`` in any letter case."""
    return present and str(value).upper() == OperStatus.UP.value


class AggregateCountersTest:
    """Orchestrate the aggregate counters test against one DUT and one ATE.

    Args:
        client: Connected telemetry client for the DUT.
        generator: Connected traffic generator.
        plan: Source/member port assignment.
        aggregate: Aggregate under test; its members must be the DUT
            member ports of *plan*.
        deviations: Capability flags of the DUT.
        settings: Timing and iteration settings.
        verifier: Verifier used for ATE waits and the fixed settle delay.
            Built from *settings* when omitted.
        report: Optional run report receiving every step's results.

    Raises:
        SetupError: If the aggregate members are not the planned DUT members.

    """

    def __init__(
        self,
        client: TelemetryClient,
        generator: TrafficGenerator,
        plan: TopologyPlan,
        aggregate: AggregateConfig,
        deviations: DeviceDeviations,
        settings: WorkflowSettings | None = None,
        verifier: ConvergenceVerifier | None = None,
        report: ReportGenerator | None = None,
    ) -> None:
        """Initialize the workflow for one aggregate."""
        self._client = client
        self._generator = generator
        self._plan = plan
        self._aggregate = aggregate
        self._deviations = deviations
        self._settings = settings or WorkflowSettings()
        self._verifier = verifier or ConvergenceVerifier(
            timeout=self._settings.convergence_timeout,
            poll_interval=self._settings.poll_interval,
        )
        self._report = report
        self._validator = StateValidator(device=client.hostname)
        self._dut = DeviceConfigurator(
            client,
            plan,
            aggregate,
            deviations,
            lag_type_timeout=self._settings.convergence_timeout,
        )
        self._ate = AteConfigurator(generator, plan, aggregate)
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def settings(self) -> WorkflowSettings:
        """Return the timing and iteration settings."""
        return self._settings

    @property
    def dut(self) -> DeviceConfigurator:
        """Return the DUT configurator."""
        return self._dut

    @property
    def ate(self) -> AteConfigurator:
        """Return the ATE configurator."""
        return self._ate

    # -- Steps ----------------------------------------------------------------

    def clear_ate(self) -> None:
        """Reset the traffic generator to an empty configuration."""
        self._ate.clear()

    def configure_dut(self) -> None:
        """Push the complete DUT configuration."""
        self._dut.configure()

    def await_lag_negotiation(self) -> None:
        """Wait for the aggregate to come up as a LAG after configuration.

        Raises:
            ConvergenceTimeout: If the aggregate type is not reported within
                ``settings.lag_negotiation_timeout``.

        """
        self._client.await_value(
            paths.interface_type_state(self._aggregate.aggregate_id),
            InterfaceType.IEEE8023AD_LAG.value,
            self._settings.lag_negotiation_timeout,
        ).raise_for_timeout(device=self._client.hostname)

    def verify_dut(self) -> ValidationReport:
        """Check the aggregate type, every DUT port's status and member bindings.

        Raises:
            ConvergenceTimeout: If the aggregate never reports its LAG type.

        """
        self.await_lag_negotiation()
        report = ValidationReport(device=self._client.hostname, title="Verify DUT")
        aggregate_id = self._aggregate.aggregate_id

        aggregate_state = self._client.get(paths.interface(aggregate_id))
        self._client.log_query("Aggregate", paths.interface(aggregate_id), aggregate_state)
        report.add(
            self._validator.assert_interface_type(
                aggregate_state, aggregate_id, InterfaceType.IEEE8023AD_LAG.value
            )
        )
        report.add(
            self._validator.assert_lag_type(
                aggregate_state, aggregate_id, self._aggregate.lag_type.value
            )
        )

        for port in self._plan.dut_ports:
            self._logger.info("Verifying %s", port)
            state = self._client.get(paths.interface(port.name))
            self._client.log_query("Interface", paths.interface(port.name), state)
            report.add(self._validator.assert_admin_up(state, port.name))

            outcome = self._client.await_value(
                paths.oper_status_state(port.name),
                OperStatus.UP.value,
                self._settings.convergence_timeout,
            )
            report.add(self._validator.assert_converged(outcome))

            if self._plan.role_of(port) == PortRole.MEMBER:
                report.add(self._validator.assert_aggregate_member(state, port.name, aggregate_id))

        self._logger.info("DUT verification: %s", report.summary())
        return report

    def configure_ate(self) -> Any:
        """Push the ATE topology and start protocols."""
        return self._ate.configure()

    def verify_ate(self) -> ValidationReport:
        """Check the ATE source link and wait for the ATE LAG to come up."""
        lag_name = self._ate.lag_name
        self._verifier.settle(self._settings.ate_settle_delay, ATE_SETTLE_REASON)
        self._generator.log_lag_metrics([lag_name])
        if self._aggregate.lag_type == LagType.LACP:
            self._generator.log_lacp_metrics([lag_name])

        report = ValidationReport(device=self._client.hostname, title="Verify ATE")
        source = self._plan.ate_source
        report.add(
            self._validator.assert_port_link_up(
                source.id, self._generator.get_port_link(source.id)
            )
        )

        statuses = self._generator.lag_status_stream(
            lag_name,
            self._verifier.poll_interval,
            self._verifier.sleep,
        )
        with closing(statuses):
            outcome = self._verifier.watch(
                f"ATE LAG {lag_name} oper-status",
                statuses,
                lag_is_up,
                self._settings.convergence_timeout,
            )
        report.add(self._validator.assert_converged(outcome))
        self._logger.info("ATE verification: %s", report.summary())
        return report

    def audit_counters(self) -> ValidationReport:
        """Wait for the aggregate to be up, then check every counter leaf.

        Raises:
            ConvergenceTimeout: If the aggregate type or oper status does
                not converge.

        """
        aggregate_id = self._aggregate.aggregate_id
        self._dut.await_aggregate_type()
        self._client.await_value(
            paths.oper_status_state(aggregate_id),
            OperStatus.UP.value,
            self._settings.convergence_timeout,
        ).raise_for_timeout(device=self._client.hostname)

        specs = build_counter_specs(aggregate_id, self._deviations)
        report = CounterAuditor(self._client, self._validator).audit(specs)
        report.title = "Aggregate counters"
        return report

    # -- Full run -------------------------------------------------------------

    def run_iteration(self, iteration: int, configure_ate: bool = True) -> list[ValidationReport]:
        """Run one configure/verify/audit round and return its reports."""
        self._logger.info(
            "Iteration %d: %s aggregate %s",
            iteration,
            self._aggregate.lag_type,
            self._aggregate.aggregate_id,
        )
        self.configure_dut()
        reports = [self.verify_dut()]
        if configure_ate:
            self.configure_ate()
        reports.append(self.verify_ate())
        reports.append(self.audit_counters())

        for report in reports:
            report.title = f"Iteration {iteration}: {report.title}"
            if self._report is not None:
                self._report.add_validation_report(report)
        return reports

    def run(self) -> list[ValidationReport]:
        """Run every iteration, rebuilding the aggregate between them.

        Raises:
            ConfigPushError: If the DUT or ATE rejects a configuration.
            ConvergenceTimeout: If the aggregate does not come back.

        """
        self.clear_ate()
        reports: list[ValidationReport] = []
        for iteration in range(1, self._settings.iterations + 1):
            reports.extend(self.run_iteration(iteration, configure_ate=iteration == 1))
            if iteration < self._settings.iterations:
                self._dut.clear_and_recreate_aggregate()

        failed = sum(1 for r in reports if not r.passed)
        self._logger.info("Completed %d step(s), %d with failures", len(reports), failed)
        return reports
