"""Source/member port planning for the aggregate testbed.

Both the DUT and the ATE port lists are sorted by testbed port id.  The
first port on each side carries the source link; every remaining port
becomes a member of the aggregate.

Usage::

    plan = plan_topology(dut_ports, ate_ports)
    plan.dut_source      # Port(id="port1", ...)
    plan.dut_members     # (Port(id="port2", ...), ...)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .exceptions import InsufficientPortsError, SetupError
from .models import AggregateConfig, Port, PortRole

logger = logging.getLogger(__name__)

MIN_PORTS = 2


def sort_ports(ports: Iterable[Port]) -> list[Port]:
    """Return *ports* stably sorted by testbed port id."""
    return sorted(ports, key=lambda port: port.id)


@dataclass(frozen=True)
class TopologyPlan:
    """Role assignment for both sides of the testbed.

    Attributes:
        dut_ports: All DUT ports in planning order.
        ate_ports: All ATE ports in planning order.

    """

    dut_ports: tuple[Port, ...]
    ate_ports: tuple[Port, ...]

    @property
    def dut_source(self) -> Port:
        """Return the DUT port carrying the source link."""
        return self.dut_ports[0]

    @property
    def dut_members(self) -> tuple[Port, ...]:
        """Return the DUT ports bound to the aggregate."""
        return self.dut_ports[1:]

    @property
    def ate_source(self) -> Port:
        """Return the ATE port carrying the source link."""
        return self.ate_ports[0]

    @property
    def ate_members(self) -> tuple[Port, ...]:
        """Return the ATE ports bound to the LAG."""
        return self.ate_ports[1:]

    def role_of(self, port: Port) -> PortRole:
        """Return the role of *port* on whichever side it belongs to.

        Raises:
            KeyError: If the port is not part of the plan.

        """
        for side in (self.dut_ports, self.ate_ports):
            if port in side:
                return PortRole.SOURCE if port == side[0] else PortRole.MEMBER
        raise KeyError(port.id)

    def check_aggregate(self, aggregate: AggregateConfig) -> None:
        """Require *aggregate* to bind exactly the DUT member ports.

        Raises:
            SetupError: If the members differ from ``dut_members``, which
                includes binding the source port into the aggregate.

        """
        if aggregate.members == self.dut_members:
            return
        raise SetupError(
            f"{aggregate.aggregate_id} members {aggregate.member_names} do not match "
            f"the planned members {[port.name for port in self.dut_members]}",
            details={
                "source": self.dut_source.name,
                "source_bound": self.dut_source in aggregate.members,
            },
        )


def plan_topology(dut_ports: Iterable[Port], ate_ports: Iterable[Port]) -> TopologyPlan:
    """Assign source and member roles on both sides of the testbed.

    Args:
        dut_ports: Ports of the device under test.
        ate_ports: Ports of the traffic generator.

    Returns:
        A ``TopologyPlan`` with index 0 of each side as the source.

    Raises:
        InsufficientPortsError: If either side has fewer than two ports.

    """
    planned: dict[str, list[Port]] = {
        "dut": sort_ports(dut_ports),
        "ate": sort_ports(ate_ports),
    }
    for side, ports in planned.items():
        if len(ports) < MIN_PORTS:
            raise InsufficientPortsError(
                f"Testbed requires at least {MIN_PORTS} {side} ports, got {len(ports)}",
                details={"ports": [port.id for port in ports]},
            )

    plan = TopologyPlan(dut_ports=tuple(planned["dut"]), ate_ports=tuple(planned["ate"]))
    logger.info(
        "Planned topology: dut source=%s members=%s, ate source=%s members=%s",
        plan.dut_source.id,
        [port.id for port in plan.dut_members],
        plan.ate_source.id,
        [port.id for port in plan.ate_members],
    )
    return plan
