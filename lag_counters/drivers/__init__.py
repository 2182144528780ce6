"""Telemetry client implementations.

``GnmiClient`` subclasses ``TelemetryClient`` and speaks gNMI through
``pygnmi`` with JSON_IETF encoding.
"""

from .gnmi_client import GnmiClient

__all__ = ["GnmiClient"]
