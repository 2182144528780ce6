"""OpenConfig gNMI path builders.

Paths are plain XPath-style strings with list keys in brackets, the form
accepted by ``pygnmi``.  Configuration writes target the list entry itself
(``/interfaces/interface[name=X]``) with a full JSON_IETF object; reads
target ``state`` leaves.
"""

from __future__ import annotations

ROOT = "/"

INTERFACE_COUNTERS = "state/counters"
SUBINTERFACE_INDEX = 0


def interfaces() -> str:
    """Return the path of the interface list."""
    return "/interfaces"


def interface(name: str) -> str:
    """Return the path of the interface list entry *name*."""
    return f"/interfaces/interface[name={name}]"


def interface_state(name: str) -> str:
    """Return the state container of interface *name*."""
    return f"{interface(name)}/state"


def interface_type_state(name: str) -> str:
    """Return the reported type leaf of interface *name*."""
    return f"{interface_state(name)}/type"


def oper_status_state(name: str) -> str:
    """Return the oper-status leaf of interface *name*."""
    return f"{interface_state(name)}/oper-status"


def aggregate_id_config(name: str) -> str:
    """Return the configured aggregate-id leaf of member *name*."""
    return f"{interface(name)}/ethernet/config/aggregate-id"


def port_speed_config(name: str) -> str:
    """Return the configured port-speed leaf of *name*."""
    return f"{interface(name)}/ethernet/config/port-speed"


def min_links_config(aggregate_id: str) -> str:
    """Return the min-links leaf of the aggregate."""
    return f"{interface(aggregate_id)}/aggregation/config/min-links"


def lacp_interface(aggregate_id: str) -> str:
    """Return the LACP list entry for the aggregate."""
    return f"/lacp/interfaces/interface[name={aggregate_id}]"


def network_instance_interface(instance: str, interface_id: str) -> str:
    """Return a network-instance interface binding entry."""
    network_instance = f"/network-instances/network-instance[name={instance}]"
    return f"{network_instance}/interfaces/interface[id={interface_id}]"


def subinterface(name: str, index: int = SUBINTERFACE_INDEX) -> str:
    """Return a subinterface list entry of interface *name*."""
    return f"{interface(name)}/subinterfaces/subinterface[index={index}]"


def interface_counter(name: str, counter: str) -> str:
    """Return an interface-level counter leaf."""
    return f"{interface(name)}/{INTERFACE_COUNTERS}/{counter}"


def ipv4_counter(name: str, counter: str, index: int = SUBINTERFACE_INDEX) -> str:
    """Return an IPv4 subinterface counter leaf."""
    return f"{subinterface(name, index)}/ipv4/state/counters/{counter}"


def ipv6_counter(name: str, counter: str, index: int = SUBINTERFACE_INDEX) -> str:
    """Return an IPv6 subinterface counter leaf."""
    return f"{subinterface(name, index)}/ipv6/state/counters/{counter}"
