"""ATE side of the aggregate testbed, expressed as an OTG configuration.

Mirrors the DUT configuration: one emulated device on the source port and
one behind a LAG built from every member port.  Member links get
sequential MAC addresses derived from the LAG device MAC.

Usage::

    configurator = AteConfigurator(otg, plan, aggregate)
    config = configurator.configure()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..core.models import ATE_DST, ATE_SRC, DUT_DST, DUT_SRC, AggregateConfig, LagType
from ..core.netutil import increment_mac, lag_id_from_aggregate

if TYPE_CHECKING:
    from ..core.models import EndpointAttributes
    from ..core.topology import TopologyPlan
    from .traffic_generator import TrafficGenerator

logger = logging.getLogger(__name__)

# The default IEEE media settings of the traffic generator enable RS-FEC,
# which 100GBASE-FR links do not negotiate.
PMD_100GBASE_FR = "100GBASE-FR"
L1_NAME = "L1"
L1_SPEED_100G = "speed_100_gbps"

LAG_MEMBER_PREFIX = "LAGRx-"
LACP_SYSTEM_PRIORITY = 1
LACP_PORT_PRIORITY = 1


def _add_ip_stack(
    ethernet: Any,
    attrs: EndpointAttributes,
    gateway: EndpointAttributes,
) -> None:
    ethernet.ipv4_addresses.add(
        name=f"{attrs.name}.IPv4",
        address=attrs.ipv4,
        gateway=gateway.ipv4,
        prefix=attrs.ipv4_len,
    )
    ethernet.ipv6_addresses.add(
        name=f"{attrs.name}.IPv6",
        address=attrs.ipv6,
        gateway=gateway.ipv6,
        prefix=attrs.ipv6_len,
    )


class AteTopologyBuilder:
    """Populate a snappi ``Config`` with the ATE side of the testbed.

    Args:
        plan: Source/member port assignment.
        aggregate: Aggregate under test on the DUT.

    """

    def __init__(self, plan: TopologyPlan, aggregate: AggregateConfig) -> None:
        """Initialize the builder for one plan and aggregate."""
        plan.check_aggregate(aggregate)
        self._plan = plan
        self._aggregate = aggregate
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def lag_name(self) -> str:
        """Return the name of the ATE LAG."""
        return ATE_DST.name

    def build(self, config: Any) -> Any:
        """Add ports, LAG, layer-1 overrides and devices to *config*.

        Raises:
            AddressError: If a member MAC or the LAG id cannot be derived.

        """
        self._add_source(config)
        lag = self._add_lag(config)
        self._add_layer1_overrides(config)

        dst_dev = config.devices.add(name=f"{lag.name}.dev")
        dst_eth = dst_dev.ethernets.add(name=f"{ATE_DST.name}.Eth", mac=ATE_DST.mac)
        dst_eth.connection.lag_name = lag.name
        _add_ip_stack(dst_eth, ATE_DST, DUT_DST)
        return config

    # -- Internal helpers ---------------------------------------------------

    def _add_source(self, config: Any) -> None:
        port = self._plan.ate_source
        config.ports.add(name=port.id, location=port.location or None)
        src_dev = config.devices.add(name=ATE_SRC.name)
        src_eth = src_dev.ethernets.add(name=f"{ATE_SRC.name}.Eth", mac=ATE_SRC.mac)
        src_eth.connection.port_name = port.id
        _add_ip_stack(src_eth, ATE_SRC, DUT_SRC)

    def _add_lag(self, config: Any) -> Any:
        lag = config.lags.add(name=self.lag_name)
        lag_id = lag_id_from_aggregate(self._aggregate.aggregate_id)
        is_lacp = self._aggregate.lag_type == LagType.LACP
        if is_lacp:
            lag.protocol.lacp.actor_system_id = ATE_DST.mac
            lag.protocol.lacp.actor_system_priority = LACP_SYSTEM_PRIORITY
            lag.protocol.lacp.actor_key = lag_id
        else:
            lag.protocol.static.lag_id = lag_id

        for i, member in enumerate(self._plan.ate_members):
            port = config.ports.add(name=member.id, location=member.location or None)
            lag_port = lag.ports.add(port_name=port.name)
            lag_port.ethernet.name = f"{LAG_MEMBER_PREFIX}{i}"
            lag_port.ethernet.mac = increment_mac(ATE_DST.mac, i + 1)
            if is_lacp:
                lag_port.lacp.actor_activity = "active"
                lag_port.lacp.actor_port_number = i + 1
                lag_port.lacp.actor_port_priority = LACP_PORT_PRIORITY

        self._logger.info(
            "LAG %s (%s, id %d) with members %s",
            lag.name,
            self._aggregate.lag_type,
            lag_id,
            [m.id for m in self._plan.ate_members],
        )
        return lag

    def _add_layer1_overrides(self, config: Any) -> None:
        fr_ports = [p.id for p in self._plan.ate_ports if p.pmd == PMD_100GBASE_FR]
        if not fr_ports:
            return
        layer1 = config.layer1.add(name=L1_NAME, port_names=fr_ports)
        layer1.auto_negotiate = True
        layer1.ieee_media_defaults = False
        layer1.speed = L1_SPEED_100G
        layer1.auto_negotiation.rs_fec = False
        self._logger.info("Disabled RS-FEC on %s ports: %s", PMD_100GBASE_FR, fr_ports)


class AteConfigurator:
    """Build, push and start the ATE topology.

    Args:
        generator: Connected traffic generator.
        plan: Source/member port assignment.
        aggregate: Aggregate under test on the DUT.

    """

    def __init__(
        self,
        generator: TrafficGenerator,
        plan: TopologyPlan,
        aggregate: AggregateConfig,
    ) -> None:
        """Initialize the configurator for one plan and aggregate."""
        self._generator = generator
        self._builder = AteTopologyBuilder(plan, aggregate)
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def lag_name(self) -> str:
        """Return the name of the ATE LAG."""
        return self._builder.lag_name

    def clear(self) -> None:
        """Push an empty configuration to reset the traffic generator."""
        self._logger.info("Clearing traffic generator configuration")
        self._generator.push_topology(self._generator.new_config())

    def configure(self) -> Any:
        """Push the ATE topology and start protocols; return the config.

        Raises:
            ConfigPushError: If the topology or protocol start is rejected.

        """
        config = self._builder.build(self._generator.new_config())
        self._generator.push_topology(config)
        self._generator.start_protocols()
        return config
