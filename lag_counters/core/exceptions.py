"""Custom exception hierarchy for the aggregate counters test framework.

All framework exceptions inherit from ``NetworkTestError`` to enable
granular catch clauses while still allowing a single top-level handler.

Exception tree::

    NetworkTestError
    ├── SetupError
    │   ├── InsufficientPortsError
    │   └── AddressError
    ├── ConfigPushError
    ├── ConvergenceTimeout
    ├── ValidationError
    ├── ConnectionError
    ├── TelemetryError
    ├── TrafficGeneratorError
    └── InventoryError
"""

from __future__ import annotations


class NetworkTestError(Exception):
    """Base exception for all aggregate counters test errors.

    Attributes:
        message: Human-readable error description.
        device: Optional device hostname that triggered the error.
        details: Optional mapping of additional contextual data.

    """

    def __init__(
        self,
        message: str,
        device: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        """Initialize with a message, optional device context, and details."""
        self.message = message
        self.device = device
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional device context."""
        parts: list[str] = []
        if self.device:
            parts.append(f"[{self.device}]")
        parts.append(self.message)
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)


class SetupError(NetworkTestError):
    """Raised when the testbed cannot support the requested topology.

    Examples:
        - Too few ports on the DUT or the ATE
        - Malformed or overflowing MAC address increment
        - Aggregate identifier without a numeric LAG id

    """


class InsufficientPortsError(SetupError):
    """Raised when a side of the testbed has fewer than two ports."""


class AddressError(SetupError):
    """Raised when an address cannot be parsed or derived."""


class ConfigPushError(NetworkTestError):
    """Raised when a configuration push is rejected.

    Examples:
        - gNMI Set (replace/update/delete) returns an error
        - OTG rejects the pushed topology
        - Protocol start is refused by the traffic generator

    """


class ConvergenceTimeout(NetworkTestError):
    """Raised when an awaited or watched signal misses its bound.

    Examples:
        - Aggregate type never reports ``ieee8023adLag``
        - Member interface never becomes operationally UP
        - LAG on the traffic generator never reports UP

    """


class ValidationError(NetworkTestError):
    """Raised when an observed state assertion fails.

    Examples:
        - Member aggregate-id differs from the aggregate
        - Admin status is not UP
        - Interface counter missing from telemetry

    """


class ConnectionError(NetworkTestError):
    """Raised when a management or API session cannot be opened.

    Examples:
        - gNMI channel handshake failure
        - Authentication failure
        - OTG API endpoint unreachable

    """


class TelemetryError(NetworkTestError):
    """Raised when a telemetry read or subscription fails."""


class TrafficGeneratorError(NetworkTestError):
    """Raised when a traffic generator call fails outside of a config push."""


class InventoryError(NetworkTestError):
    """Raised when testbed loading or lookup fails.

    Examples:
        - Missing or malformed testbed file
        - Missing required DUT/ATE attributes
        - Duplicate port identifiers

    """
