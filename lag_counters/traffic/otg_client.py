"""Open Traffic Generator (OTG) client using snappi.

Wraps the ``snappi`` SDK to provide a ``TrafficGenerator`` implementation
for any OTG-compliant backend (Ixia-c, IxNetwork OTG, Keysight Novus).

Requires:
    - snappi

Usage::

    with OtgClient(location="https://otg:8443") as otg:
        config = otg.new_config()
        ...
        otg.push_topology(config)
        otg.start_protocols()
        otg.get_lag_oper_status("atedst")
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.exceptions import (
    ConfigPushError,
    ConnectionError,
    TrafficGeneratorError,
)
from .traffic_generator import LacpMetrics, LagMetrics, TrafficGenerator

logger = logging.getLogger(__name__)


class OtgClient(TrafficGenerator):
    """snappi client for OTG traffic generators.

    Args:
        location: OTG API endpoint (``https://host:8443``).
        verify: Verify the API server certificate.
        api: Pre-built snappi API object; built on ``connect`` if omitted.

    """

    def __init__(
        self,
        location: str,
        verify: bool = False,
        api: Any = None,
    ) -> None:
        """Initialize the OTG client with API endpoint settings."""
        super().__init__()
        self._location = location
        self._verify = verify
        self._api: Any = api

    @property
    def location(self) -> str:
        """Return the OTG API endpoint."""
        return self._location

    def connect(self) -> None:
        """Create the snappi API handle for the OTG endpoint.

        Raises:
            ConnectionError: If ``snappi`` is not installed or the handle
                cannot be created.

        """
        if self._api is not None:
            return
        try:
            import snappi

            self._api = snappi.api(location=self._location, verify=self._verify)
            self._logger.info("Connected to OTG at %s", self._location)
        except ImportError:
            raise ConnectionError("snappi is not installed") from None
        except Exception as exc:
            raise ConnectionError(f"Failed to connect to OTG at {self._location}: {exc}") from exc

    def disconnect(self) -> None:
        """Drop the API handle.  Idempotent."""
        if self._api is not None:
            self._api = None
            self._logger.info("Disconnected from OTG")

    def new_config(self) -> Any:
        """Return an empty snappi ``Config``."""
        self._ensure_connected()
        return self._api.config()

    def push_topology(self, config: Any) -> None:
        """Push *config* to the OTG backend.

        Raises:
            ConfigPushError: If the backend rejects the configuration.

        """
        self._ensure_connected()
        try:
            response = self._api.set_config(config)
        except Exception as exc:
            raise ConfigPushError(
                f"OTG rejected the topology: {exc}",
                device=self._location,
            ) from exc
        for warning in getattr(response, "warnings", None) or []:
            self._logger.warning("OTG set_config warning: %s", warning)
        self._logger.info("Topology pushed to OTG")

    def start_protocols(self) -> None:
        """Start every configured protocol (LACP, ARP/ND).

        Raises:
            ConfigPushError: If the backend refuses to start them.

        """
        self._ensure_connected()
        try:
            state = self._api.control_state()
            state.protocol.all.state = state.protocol.all.START
            self._api.set_control_state(state)
        except Exception as exc:
            raise ConfigPushError(
                f"OTG failed to start protocols: {exc}",
                device=self._location,
            ) from exc
        self._logger.info("Protocols started")

    def get_port_link(self, port_name: str) -> str | None:
        """Return ``up``/``down`` for *port_name*, or ``None`` if unreported."""
        request = self._metrics_request()
        request.port.port_names = [port_name]
        for metric in self._get_metrics(request).port_metrics:
            if metric.name == port_name:
                return str(metric.link)
        return None

    def get_lag_metrics(self, lag_names: list[str] | None = None) -> list[LagMetrics]:
        """Return LAG statistics from OTG."""
        request = self._metrics_request()
        request.lag.lag_names = list(lag_names or [])
        return [
            LagMetrics(
                name=str(m.name),
                oper_status=str(m.oper_status),
                member_ports_up=int(m.member_ports_up or 0),
                frames_tx=int(m.frames_tx or 0),
                frames_rx=int(m.frames_rx or 0),
            )
            for m in self._get_metrics(request).lag_metrics
        ]

    def get_lacp_metrics(self, lag_names: list[str] | None = None) -> list[LacpMetrics]:
        """Return per-member LACP state from OTG."""
        request = self._metrics_request()
        request.lacp.lag_names = list(lag_names or [])
        return [
            LacpMetrics(
                lag_name=str(m.lag_name),
                member_port=str(m.lag_member_port_name),
                activity=str(m.activity),
                synchronization=str(m.synchronization),
                collecting=bool(m.collecting),
                distributing=bool(m.distributing),
            )
            for m in self._get_metrics(request).lacp_metrics
        ]

    # -- Internal helpers ---------------------------------------------------

    def _metrics_request(self) -> Any:
        self._ensure_connected()
        return self._api.metrics_request()

    def _get_metrics(self, request: Any) -> Any:
        try:
            return self._api.get_metrics(request)
        except Exception as exc:
            raise TrafficGeneratorError(
                f"OTG metrics request failed: {exc}",
                device=self._location,
            ) from exc

    def _ensure_connected(self) -> None:
        """Raise if no API handle is available."""
        if self._api is None:
            raise ConnectionError("Not connected to OTG, call connect() first")
