"""Abstract base class for device configuration and telemetry clients.

Defines the contract the workflow relies on: gNMI-style ``replace`` /
``update`` / ``delete`` writes, ``get`` / ``lookup`` reads and a
``subscribe`` stream.  Concrete *template methods* (``await_until``,
``watch``) build the bounded waits on top of those primitives through a
``ConvergenceVerifier``.

Usage::

    with GnmiClient(device_info) as client:
        client.replace(paths.interface("Ethernet1"), obj)
        client.await_until(paths.oper_status_state("Ethernet1"), "UP")
"""

from __future__ import annotations

import abc
import json
import logging
from collections.abc import Callable, Generator
from contextlib import closing
from dataclasses import dataclass
from typing import Any

from . import paths
from .convergence import ConvergenceVerifier, Sample, WaitOutcome

logger = logging.getLogger(__name__)

GNMI_DEFAULT_PORT = 9339


@dataclass(frozen=True)
class DeviceInfo:
    """Immutable device connection parameters.

    Attributes:
        hostname: DNS name or IP address of the device.
        vendor: Vendor identifier (``arista``, ``juniper``, ``cisco``, ``nokia``).
        platform: Platform string.
        username: Login username.
        password: Login password.
        port: gNMI port.
        timeout: RPC timeout in seconds.
        insecure: Use a plaintext channel.
        skip_verify: Accept any server certificate.

    """

    hostname: str
    vendor: str
    platform: str
    username: str
    password: str
    port: int = GNMI_DEFAULT_PORT
    timeout: int = 30
    insecure: bool = False
    skip_verify: bool = True


class TelemetryClient(abc.ABC):
    """Abstract base class for device configuration/telemetry clients.

    The client supports context-manager usage for automatic
    connect/disconnect::

        with SomeClient(device_info) as client:
            client.get(path)

    Args:
        device_info: Connection parameters for the target device.
        verifier: Convergence verifier used by ``await_until`` and ``watch``.

    """

    def __init__(
        self,
        device_info: DeviceInfo,
        verifier: ConvergenceVerifier | None = None,
    ) -> None:
        """Initialize the client with device connection parameters."""
        self._device_info = device_info
        self._verifier = verifier or ConvergenceVerifier()
        self._connected: bool = False
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    # -- Properties ---------------------------------------------------------

    @property
    def hostname(self) -> str:
        """Return the hostname of the managed device."""
        return self._device_info.hostname

    @property
    def vendor(self) -> str:
        """Return the vendor string (e.g., ``arista``)."""
        return self._device_info.vendor

    @property
    def is_connected(self) -> bool:
        """Return ``True`` if the client currently holds an open session."""
        return self._connected

    @property
    def verifier(self) -> ConvergenceVerifier:
        """Return the verifier backing the bounded waits."""
        return self._verifier

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> TelemetryClient:
        """Open a connection to the device upon entering a ``with`` block."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Ensure the connection is closed when leaving a ``with`` block."""
        try:
            self.disconnect()
        except Exception:
            self._logger.exception("Error during disconnect in __exit__")

    # -- Abstract methods (transport-specific) ------------------------------

    @abc.abstractmethod
    def connect(self) -> None:
        """Establish a session to the device.

        Raises:
            ConnectionError: If the connection cannot be established.

        """

    @abc.abstractmethod
    def disconnect(self) -> None:
        """Gracefully close the session.  Must be idempotent."""

    @abc.abstractmethod
    def replace(self, path: str, obj: Any) -> None:
        """Replace the subtree at *path* with *obj*.

        Raises:
            ConfigPushError: If the device rejects the change.

        """

    @abc.abstractmethod
    def update(self, path: str, obj: Any) -> None:
        """Merge *obj* into the subtree at *path*.

        Raises:
            ConfigPushError: If the device rejects the change.

        """

    @abc.abstractmethod
    def delete(self, path: str) -> None:
        """Delete the subtree at *path*.

        Raises:
            ConfigPushError: If the device rejects the change.

        """

    @abc.abstractmethod
    def get(self, path: str) -> Any:
        """Return the current value of *path*.

        Raises:
            TelemetryError: If the value cannot be read.

        """

    @abc.abstractmethod
    def lookup(self, path: str) -> Sample:
        """Return ``(value, present)`` for *path* without failing on absence."""

    @abc.abstractmethod
    def subscribe(self, path: str) -> Generator[Sample, None, None]:
        """Yield ``(value, present)`` updates for *path* as they arrive."""

    # -- Template methods (bounded waits) -----------------------------------

    def await_value(
        self,
        path: str,
        expected: Any,
        timeout: float | None = None,
    ) -> WaitOutcome:
        """Poll *path* until it equals *expected*; return the full outcome."""
        return self._verifier.await_value(
            f"{self.hostname} {path}",
            lambda: self.lookup(path),
            expected,
            timeout,
        )

    def await_until(
        self,
        path: str,
        expected: Any,
        timeout: float | None = None,
    ) -> bool:
        """Return ``True`` once *path* equals *expected* within the bound."""
        return self.await_value(path, expected, timeout).converged

    def watch(
        self,
        path: str,
        predicate: Callable[[Any, bool], bool],
        timeout: float | None = None,
    ) -> bool:
        """Return ``True`` once an update on *path* satisfies *predicate*."""
        with closing(self.subscribe(path)) as updates:
            outcome = self._verifier.watch(
                f"{self.hostname} {path}",
                updates,
                predicate,
                timeout,
            )
        return outcome.converged

    def interface_names(self) -> list[str]:
        """Return the names of every interface present on the device."""
        value, present = self.lookup(paths.interfaces())
        if not present:
            return []
        entries = value.get("interface", []) if isinstance(value, dict) else value
        return [
            str(entry["name"])
            for entry in entries or []
            if isinstance(entry, dict) and entry.get("name")
        ]

    def log_query(self, label: str, path: str, obj: Any) -> None:
        """Log a configuration object or state read at DEBUG level."""
        self._logger.debug(
            "%s %s:\n%s",
            label,
            path,
            json.dumps(obj, indent=2, sort_keys=True, default=str),
        )
