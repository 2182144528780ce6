"""Core module providing the data model, convergence and validation logic.

This module contains the foundational components of the aggregate counters
test including the abstract telemetry client, topology planner, bounded
convergence waits, counter auditor, deviation registry, and the custom
exception hierarchy.
"""

from .exceptions import (
    AddressError,
    ConfigPushError,
    ConnectionError,
    ConvergenceTimeout,
    InsufficientPortsError,
    InventoryError,
    NetworkTestError,
    SetupError,
    TelemetryError,
    TrafficGeneratorError,
    ValidationError,
)

__all__ = [
    "AddressError",
    "ConfigPushError",
    "ConnectionError",
    "ConvergenceTimeout",
    "InsufficientPortsError",
    "InventoryError",
    "NetworkTestError",
    "SetupError",
    "TelemetryError",
    "TrafficGeneratorError",
    "ValidationError",
]
