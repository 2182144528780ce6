"""OpenConfig configuration of the DUT side of the aggregate testbed.

Builds JSON_IETF objects for the source interface, the aggregate
interface and its members, and pushes them through a ``TelemetryClient``.
Devices that cannot take aggregate changes incrementally get the atomic
path: every stale binding is torn down, then the aggregate and all of its
members are created in one ``Update`` at the root.

Usage::

    configurator = DeviceConfigurator(client, plan, aggregate, deviations)
    configurator.configure()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..core import paths
from ..core.models import (
    DUT_DST,
    DUT_SRC,
    AggregateConfig,
    EndpointAttributes,
    InterfaceType,
    LagType,
    Port,
)

if TYPE_CHECKING:
    from ..core.base_client import TelemetryClient
    from ..core.deviations import DeviceDeviations
    from ..core.topology import TopologyPlan

logger = logging.getLogger(__name__)

CLEAR_CYCLES = 2

IANA_IF_TYPE = "iana-if-type"
OC_INTERFACES = "openconfig-interfaces"
OC_IF_IP = "openconfig-if-ip"
OC_IF_ETHERNET = "openconfig-if-ethernet"
OC_IF_AGGREGATE = "openconfig-if-aggregate"
OC_LACP = "openconfig-lacp"

LACP_MODE = "ACTIVE"
LACP_INTERVAL = "FAST"


# ---------------------------------------------------------------------------
# Object builders
# ---------------------------------------------------------------------------


def _iana_type(interface_type: InterfaceType) -> str:
    return f"{IANA_IF_TYPE}:{interface_type.value}"


def _address_family(ip: str, prefix_length: int, enabled: bool) -> dict[str, Any]:
    family: dict[str, Any] = {
        "addresses": {
            "address": [
                {"ip": ip, "config": {"ip": ip, "prefix-length": prefix_length}},
            ]
        }
    }
    if enabled:
        family["config"] = {"enabled": True}
    return family


def build_addressed_interface(
    name: str,
    attrs: EndpointAttributes,
    deviations: DeviceDeviations,
    interface_type: InterfaceType = InterfaceType.ETHERNET_CSMACD,
) -> dict[str, Any]:
    """Return an interface carrying *attrs* addressing on subinterface 0."""
    config: dict[str, Any] = {
        "name": name,
        "description": attrs.description,
        "type": _iana_type(interface_type),
    }
    if deviations.interface_enabled:
        config["enabled"] = True

    ipv4_enabled = deviations.interface_enabled and not deviations.ipv4_missing_enabled
    subinterface = {
        "index": paths.SUBINTERFACE_INDEX,
        "config": {"index": paths.SUBINTERFACE_INDEX},
        f"{OC_IF_IP}:ipv4": _address_family(attrs.ipv4, attrs.ipv4_len, ipv4_enabled),
        f"{OC_IF_IP}:ipv6": _address_family(
            attrs.ipv6, attrs.ipv6_len, deviations.interface_enabled
        ),
    }
    return {
        "name": name,
        "config": config,
        "subinterfaces": {"subinterface": [subinterface]},
    }


def build_aggregate_interface(
    aggregate_id: str,
    lag_type: LagType,
    attrs: EndpointAttributes,
    deviations: DeviceDeviations,
) -> dict[str, Any]:
    """Return the addressed aggregate interface with its aggregation type."""
    obj = build_addressed_interface(
        aggregate_id, attrs, deviations, InterfaceType.IEEE8023AD_LAG
    )
    obj[f"{OC_IF_AGGREGATE}:aggregation"] = {"config": {"lag-type": lag_type.value}}
    return obj


def build_aggregate_shell(aggregate_id: str) -> dict[str, Any]:
    """Return a bare aggregate interface carrying only its type."""
    return {
        "name": aggregate_id,
        "config": {"name": aggregate_id, "type": _iana_type(InterfaceType.IEEE8023AD_LAG)},
    }


def build_member_interface(
    port: Port,
    aggregate_id: str | None,
    deviations: DeviceDeviations,
    description: str | None = None,
) -> dict[str, Any]:
    """Return a physical interface, bound to *aggregate_id* when given."""
    config: dict[str, Any] = {
        "name": port.name,
        "type": _iana_type(InterfaceType.ETHERNET_CSMACD),
    }
    if description is not None:
        config["description"] = description
    if deviations.interface_enabled:
        config["enabled"] = True

    obj: dict[str, Any] = {"name": port.name, "config": config}
    if aggregate_id is not None:
        obj[f"{OC_IF_ETHERNET}:ethernet"] = {
            "config": {f"{OC_IF_AGGREGATE}:aggregate-id": aggregate_id}
        }
    return obj


def build_lacp_interface(aggregate_id: str) -> dict[str, Any]:
    """Return the LACP entry for the aggregate."""
    return {
        "name": aggregate_id,
        "config": {
            "name": aggregate_id,
            "lacp-mode": LACP_MODE,
            "interval": LACP_INTERVAL,
        },
    }


# ---------------------------------------------------------------------------
# Configurator
# ---------------------------------------------------------------------------


class DeviceConfigurator:
    """Push the aggregate test configuration to the DUT.

    Args:
        client: Connected telemetry client for the DUT.
        plan: Source/member port assignment.
        aggregate: Aggregate under test.
        deviations: Capability flags of the DUT.
        lag_type_timeout: Bound, in seconds, for the aggregate type to
            appear after a rebuild.  Defaults to the client verifier bound.

    Raises:
        SetupError: If the aggregate members are not the planned DUT members.

    """

    def __init__(
        self,
        client: TelemetryClient,
        plan: TopologyPlan,
        aggregate: AggregateConfig,
        deviations: DeviceDeviations,
        lag_type_timeout: float | None = None,
    ) -> None:
        """Initialize the configurator for one aggregate."""
        plan.check_aggregate(aggregate)
        self._client = client
        self._plan = plan
        self._aggregate = aggregate
        self._deviations = deviations
        self._lag_type_timeout = lag_type_timeout
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def aggregate(self) -> AggregateConfig:
        """Return the aggregate under test."""
        return self._aggregate

    # -- Individual interfaces ----------------------------------------------

    def configure_source_interface(self, attrs: EndpointAttributes = DUT_SRC) -> None:
        """Replace the source port configuration with *attrs* addressing."""
        port = self._plan.dut_source
        obj = build_addressed_interface(port.name, attrs, self._deviations)
        self._logger.info("Configuring source interface %s", port)
        self._client.replace(paths.interface(port.name), obj)

    def configure_aggregate_interface(
        self,
        aggregate_id: str,
        lag_type: LagType,
        attrs: EndpointAttributes = DUT_DST,
    ) -> None:
        """Replace the aggregate interface configuration."""
        obj = build_aggregate_interface(aggregate_id, lag_type, attrs, self._deviations)
        self._logger.info("Configuring aggregate %s (%s)", aggregate_id, lag_type)
        self._client.replace(paths.interface(aggregate_id), obj)

    def configure_member_interface(self, port: Port, aggregate_id: str) -> None:
        """Replace *port* configuration, binding it to *aggregate_id*."""
        obj = build_member_interface(port, aggregate_id, self._deviations, description=port.id)
        self._logger.info("Binding %s to %s", port, aggregate_id)
        self._client.replace(paths.interface(port.name), obj)

    def configure_lacp_interface(self) -> None:
        """Create the LACP entry for the aggregate."""
        aggregate_id = self._aggregate.aggregate_id
        self._logger.info("Configuring LACP on %s", aggregate_id)
        self._client.update(paths.lacp_interface(aggregate_id), build_lacp_interface(aggregate_id))

    def assign_default_network_instance(self, interface_name: str) -> None:
        """Bind subinterface 0 of *interface_name* to the default instance."""
        instance = self._deviations.default_network_instance
        interface_id = f"{interface_name}.{paths.SUBINTERFACE_INDEX}"
        obj = {
            "id": interface_id,
            "config": {
                "id": interface_id,
                "interface": interface_name,
                "subinterface": paths.SUBINTERFACE_INDEX,
            },
        }
        self._logger.info("Assigning %s to network instance %s", interface_id, instance)
        self._client.update(paths.network_instance_interface(instance, interface_id), obj)

    def set_port_speed(self, port: Port) -> None:
        """Configure the port speed of *port* from its testbed entry."""
        if not port.speed:
            self._logger.warning("No speed known for %s, leaving it unset", port)
            return
        self._client.update(
            paths.port_speed_config(port.name),
            f"{OC_IF_ETHERNET}:{port.speed}",
        )

    # -- Aggregate lifecycle ------------------------------------------------

    def atomic_aggregate_setup(self) -> None:
        """Create the aggregate and bind every member in one transaction."""
        aggregate_id = self._aggregate.aggregate_id
        aggregate: dict[str, Any] = build_aggregate_shell(aggregate_id)
        aggregate[f"{OC_IF_AGGREGATE}:aggregation"] = {
            "config": {"lag-type": self._aggregate.lag_type.value}
        }
        interfaces = [aggregate] + [
            build_member_interface(port, aggregate_id, self._deviations)
            for port in self._aggregate.members
        ]

        root: dict[str, Any] = {f"{OC_INTERFACES}:interfaces": {"interface": interfaces}}
        if self._aggregate.lag_type == LagType.LACP:
            root[f"{OC_LACP}:lacp"] = {
                "interfaces": {"interface": [build_lacp_interface(aggregate_id)]}
            }

        self._logger.info(
            "Atomically creating %s with members %s",
            aggregate_id,
            self._aggregate.member_names,
        )
        self._client.update(paths.ROOT, root)

    def clear_and_recreate_aggregate(self) -> None:
        """Tear down and rebuild the aggregate, twice.

        Each cycle removes min-links and every member binding, deletes and
        recreates the aggregate shell, re-applies the full aggregate
        configuration, re-types the members, and waits for the aggregate
        to report ``ieee8023adLag``.

        Raises:
            ConvergenceTimeout: If the aggregate type does not come back.

        """
        aggregate_id = self._aggregate.aggregate_id
        for cycle in range(CLEAR_CYCLES):
            self._logger.info("Delete/Recreate the aggregate on the device - Iteration %d", cycle)

            self._logger.info("Deleting the minlinks for the aggregate on the device")
            self._client.delete(paths.min_links_config(aggregate_id))

            self._logger.info("Deleting the members of the aggregate on the device")
            for port in self._aggregate.members:
                self._client.delete(paths.aggregate_id_config(port.name))

            self._logger.info("Deleting the aggregate on the device")
            self._client.delete(paths.interface(aggregate_id))
            self._client.update(paths.interface(aggregate_id), build_aggregate_shell(aggregate_id))

            self.configure_aggregate_interface(aggregate_id, self._aggregate.lag_type)

            self._logger.info("Adding the members of the aggregate on the device")
            for port in self._aggregate.members:
                self._client.update(
                    paths.interface(port.name),
                    build_member_interface(port, None, self._deviations),
                )
            self.await_aggregate_type()

    def await_aggregate_type(self) -> None:
        """Wait for the aggregate to report type ``ieee8023adLag``.

        Raises:
            ConvergenceTimeout: If the type is not reported within the bound.

        """
        self._client.await_value(
            paths.interface_type_state(self._aggregate.aggregate_id),
            InterfaceType.IEEE8023AD_LAG.value,
            self._lag_type_timeout,
        ).raise_for_timeout(device=self._client.hostname)

    # -- Full sequence ------------------------------------------------------

    def configure(self) -> None:
        """Apply the complete DUT configuration for the aggregate test."""
        aggregate_id = self._aggregate.aggregate_id
        self._logger.info("dut ports = %s", [str(p) for p in self._plan.dut_ports])

        if self._deviations.aggregate_atomic_update:
            self.clear_and_recreate_aggregate()
            self.atomic_aggregate_setup()
            self.await_aggregate_type()

        self.configure_aggregate_interface(aggregate_id, self._aggregate.lag_type)
        self.configure_source_interface(DUT_SRC)

        if self._deviations.explicit_interface_in_default_vrf:
            self.assign_default_network_instance(aggregate_id)
            self.assign_default_network_instance(self._plan.dut_source.name)

        for port in self._aggregate.members:
            self.configure_member_interface(port, aggregate_id)

        if self._deviations.explicit_port_speed:
            for port in self._plan.dut_ports:
                self.set_port_speed(port)

        if self._aggregate.lag_type == LagType.LACP:
            self.configure_lacp_interface()
