"""Abstract traffic generator interface.

Defines the strategy pattern contract for traffic generation backends.
The workflow only needs to push a topology, start control-plane protocols
and read port/LAG state; each backend maps those calls onto its own API.

Usage::

    gen: TrafficGenerator = OtgClient(location="https://otg:8443")
    gen.connect()
    config = gen.new_config()
    ...
    gen.push_topology(config)
    gen.start_protocols()
    gen.get_lag_oper_status("atedst")
"""

from __future__ import annotations

import abc
import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any

from ..core.convergence import Sample

logger = logging.getLogger(__name__)

DEFAULT_STREAM_INTERVAL = 2.0


@dataclass
class LagMetrics:
    """Per-LAG statistics reported by the traffic generator.

    Attributes:
        name: LAG name.
        oper_status: ``up`` or ``down``.
        member_ports_up: Number of member ports with link up.
        frames_tx: Frames transmitted on the LAG.
        frames_rx: Frames received on the LAG.

    """

    name: str
    oper_status: str = ""
    member_ports_up: int = 0
    frames_tx: int = 0
    frames_rx: int = 0


@dataclass
class LacpMetrics:
    """Per-member LACP state reported by the traffic generator.

    Attributes:
        lag_name: LAG the member belongs to.
        member_port: Member port name.
        activity: ``active`` or ``passive``.
        synchronization: ``in_sync`` or ``out_sync``.
        collecting: Whether the member is collecting.
        distributing: Whether the member is distributing.

    """

    lag_name: str
    member_port: str
    activity: str = ""
    synchronization: str = ""
    collecting: bool = False
    distributing: bool = False


class TrafficGenerator(abc.ABC):
    """Abstract base class for traffic generation backends.

    Implementations must handle connection management, topology push,
    protocol control, and port/LAG state retrieval.
    """

    def __init__(self) -> None:
        """Initialize the traffic generator base class."""
        self._logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    @abc.abstractmethod
    def connect(self) -> None:
        """Establish a session with the traffic generator API."""

    @abc.abstractmethod
    def disconnect(self) -> None:
        """Close the session.  Must be idempotent."""

    @abc.abstractmethod
    def new_config(self) -> Any:
        """Return an empty backend topology configuration object."""

    @abc.abstractmethod
    def push_topology(self, config: Any) -> None:
        """Push a complete topology configuration.

        Raises:
            ConfigPushError: If the backend rejects the topology.

        """

    @abc.abstractmethod
    def start_protocols(self) -> None:
        """Start all configured control-plane protocols.

        Raises:
            ConfigPushError: If the backend refuses to start them.

        """

    @abc.abstractmethod
    def get_port_link(self, port_name: str) -> str | None:
        """Return the link state of *port_name*, or ``None`` if unknown."""

    @abc.abstractmethod
    def get_lag_metrics(self, lag_names: list[str] | None = None) -> list[LagMetrics]:
        """Return LAG statistics, optionally filtered by name."""

    @abc.abstractmethod
    def get_lacp_metrics(self, lag_names: list[str] | None = None) -> list[LacpMetrics]:
        """Return per-member LACP state, optionally filtered by LAG."""

    def get_lag_oper_status(self, lag_name: str) -> str | None:
        """Return the oper status of *lag_name*, or ``None`` if unknown."""
        for metric in self.get_lag_metrics([lag_name]):
            if metric.name == lag_name:
                return metric.oper_status
        return None

    def lag_status_stream(
        self,
        lag_name: str,
        interval: float = DEFAULT_STREAM_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Generator[Sample, None, None]:
        """Yield ``(oper_status, present)`` for *lag_name* every *interval*."""
        while True:
            status = self.get_lag_oper_status(lag_name)
            yield status, status is not None
            sleep(interval)

    def log_lag_metrics(self, lag_names: list[str] | None = None) -> list[LagMetrics]:
        """Log and return the current LAG statistics."""
        metrics = self.get_lag_metrics(lag_names)
        for m in metrics:
            self._logger.info(
                "LAG %s: oper=%s members_up=%d tx=%d rx=%d",
                m.name,
                m.oper_status,
                m.member_ports_up,
                m.frames_tx,
                m.frames_rx,
            )
        return metrics

    def log_lacp_metrics(self, lag_names: list[str] | None = None) -> list[LacpMetrics]:
        """Log and return the current per-member LACP state."""
        metrics = self.get_lacp_metrics(lag_names)
        for m in metrics:
            self._logger.info(
                "LACP %s/%s: activity=%s sync=%s collecting=%s distributing=%s",
                m.lag_name,
                m.member_port,
                m.activity,
                m.synchronization,
                m.collecting,
                m.distributing,
            )
        return metrics

    def __enter__(self) -> TrafficGenerator:
        """Connect upon entering a ``with`` block."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Disconnect upon exiting a ``with`` block."""
        try:
            self.disconnect()
        except Exception:
            self._logger.exception("Error during traffic generator disconnect")
