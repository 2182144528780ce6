"""Traffic generation abstractions and the OTG implementation.

Provides a strategy interface for traffic generators, a concrete
implementation for Open Traffic Generator backends via snappi, and the
builder for the ATE side of the aggregate topology.
"""

from .otg_client import OtgClient
from .topology_builder import AteConfigurator, AteTopologyBuilder
from .traffic_generator import LacpMetrics, LagMetrics, TrafficGenerator

__all__ = [
    "AteConfigurator",
    "AteTopologyBuilder",
    "LacpMetrics",
    "LagMetrics",
    "OtgClient",
    "TrafficGenerator",
]
