"""Data models shared by the DUT and ATE sides of the aggregate test.

Holds the port and endpoint descriptions, the aggregate definition, and
the OpenConfig enumeration values the workflow writes and expects back.
The four ``*_SRC`` / ``*_DST`` endpoints describe the fixed testbed
addressing::

    ate:port1 -> dut:port1            192.0.2.0/30  2001:db8::0/126
    dut:port{2..N} -> ate:port{2..N}  192.0.2.4/30  2001:db8::4/126
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

IPV4_PREFIX_LEN = 30
IPV6_PREFIX_LEN = 126


class PortRole(StrEnum):
    """Role a port plays in the test topology."""

    SOURCE = "source"
    MEMBER = "member"


class LagType(StrEnum):
    """OpenConfig ``aggregation-type`` values."""

    LACP = "LACP"
    STATIC = "STATIC"


class InterfaceType(StrEnum):
    """IANA interface type identities used by the test."""

    ETHERNET_CSMACD = "ethernetCsmacd"
    IEEE8023AD_LAG = "ieee8023adLag"


class OperStatus(StrEnum):
    """Interface admin/oper status values reported by OpenConfig."""

    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class Port:
    """A physical port on the DUT or the ATE.

    Attributes:
        id: Testbed identifier (``port1``); ordering key for planning.
        name: Device-side name (``Ethernet1``) or OTG port name.
        pmd: Physical medium dependent tag (``100GBASE-FR``).
        speed: Optional OpenConfig port-speed identity (``SPEED_100GB``).
        location: OTG port location, ATE ports only.

    """

    id: str
    name: str
    pmd: str = ""
    speed: str = ""
    location: str = ""

    def __str__(self) -> str:
        return f"{self.id}({self.name})"


@dataclass(frozen=True)
class EndpointAttributes:
    """Addressing for one logical endpoint of the test topology."""

    name: str
    description: str = ""
    mac: str = ""
    ipv4: str = ""
    ipv4_len: int = IPV4_PREFIX_LEN
    ipv6: str = ""
    ipv6_len: int = IPV6_PREFIX_LEN

    @property
    def ipv4_cidr(self) -> str:
        """Return the IPv4 address in CIDR notation."""
        return f"{self.ipv4}/{self.ipv4_len}"

    @property
    def ipv6_cidr(self) -> str:
        """Return the IPv6 address in CIDR notation."""
        return f"{self.ipv6}/{self.ipv6_len}"


DUT_SRC = EndpointAttributes(
    name="dutsrc",
    description="dutsrc",
    ipv4="192.0.2.1",
    ipv6="2001:db8::1",
)

ATE_SRC = EndpointAttributes(
    name="atesrc",
    mac="02:11:01:00:00:01",
    ipv4="192.0.2.2",
    ipv6="2001:db8::2",
)

DUT_DST = EndpointAttributes(
    name="dutdst",
    description="dutdst",
    ipv4="192.0.2.5",
    ipv6="2001:db8::5",
)

ATE_DST = EndpointAttributes(
    name="atedst",
    mac="02:12:01:00:00:01",
    ipv4="192.0.2.6",
    ipv6="2001:db8::6",
)


@dataclass(frozen=True)
class AggregateConfig:
    """The aggregate interface under test and the ports bound to it.

    Attributes:
        aggregate_id: Device-assigned aggregate name (``Port-Channel1``).
        lag_type: LACP or STATIC aggregation.
        members: DUT ports bound to the aggregate, in planning order.

    """

    aggregate_id: str
    lag_type: LagType = LagType.STATIC
    members: tuple[Port, ...] = field(default_factory=tuple)

    @property
    def member_names(self) -> list[str]:
        """Return the device names of the member ports."""
        return [port.name for port in self.members]


@dataclass(frozen=True)
class CounterSpec:
    """One row of the counter audit table.

    Attributes:
        name: Counter label (``InUnicastPkts``).
        path: Full gNMI state path of the counter leaf.
        required: Whether the value must be present.
        skip: Whether the device cannot report this counter.

    """

    name: str
    path: str
    required: bool = True
    skip: bool = False
