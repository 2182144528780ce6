"""gNMI device client using pygnmi.

Implements ``TelemetryClient`` over a gNMI channel.  Writes are sent as
JSON_IETF ``Set`` requests, reads as ``Get`` requests, and watches as
sampled ``Subscribe`` streams so that a bounded watch always sees fresh
samples to check its deadline against.

Returned JSON has YANG module prefixes removed from keys and identity
values (``openconfig-if-aggregate:aggregate-id`` becomes
``aggregate-id`` and ``iana-if-type:ieee8023adLag`` becomes
``ieee8023adLag``) so callers compare against bare names.

Requires:
    - pygnmi

Usage::

    info = DeviceInfo(hostname="dut1", vendor="arista", platform="eos", ...)
    with GnmiClient(info) as client:
        value, present = client.lookup(paths.oper_status_state("Ethernet1"))
"""

from __future__ import annotations

import logging
import re
from collections.abc import Generator
from typing import Any

from ..core.base_client import DeviceInfo, TelemetryClient
from ..core.convergence import ConvergenceVerifier, Sample
from ..core.exceptions import (
    ConfigPushError,
    ConnectionError,
    TelemetryError,
)

logger = logging.getLogger(__name__)

ENCODING = "json_ietf"
SAMPLE_INTERVAL_NS = 1_000_000_000

# A module prefix always contains a hyphen, which keeps IPv6 and MAC
# values from matching.
_MODULE_PREFIX = re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)+:(?=[A-Za-z])")


def strip_module_prefixes(obj: Any) -> Any:
    """Remove YANG module prefixes from dict keys and identity values."""
    if isinstance(obj, dict):
        return {_MODULE_PREFIX.sub("", str(k)): strip_module_prefixes(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [strip_module_prefixes(item) for item in obj]
    if isinstance(obj, str):
        return _MODULE_PREFIX.sub("", obj)
    return obj


class GnmiClient(TelemetryClient):
    """OpenConfig device client over gNMI.

    Args:
        device_info: Connection parameters for the device.
        verifier: Convergence verifier used by the bounded waits.
        sample_interval_ns: Sample interval for watch subscriptions.

    """

    def __init__(
        self,
        device_info: DeviceInfo,
        verifier: ConvergenceVerifier | None = None,
        sample_interval_ns: int = SAMPLE_INTERVAL_NS,
    ) -> None:
        """Initialize the gNMI client with device connection parameters."""
        super().__init__(device_info, verifier)
        self._sample_interval_ns = sample_interval_ns
        self._gnmi: Any = None

    # -- Connection lifecycle -----------------------------------------------

    def connect(self) -> None:
        """Open a gNMI channel to the device.

        Raises:
            ConnectionError: If the channel cannot be established.

        """
        try:
            from pygnmi.client import gNMIclient

            self._gnmi = gNMIclient(
                target=(self._device_info.hostname, self._device_info.port),
                username=self._device_info.username,
                password=self._device_info.password,
                insecure=self._device_info.insecure,
                skip_verify=self._device_info.skip_verify,
                gnmi_timeout=self._device_info.timeout,
            )
            self._gnmi.connect()
            self._connected = True
            self._logger.info("Connected to %s over gNMI", self.hostname)
        except ImportError:
            raise ConnectionError(
                "pygnmi is not installed",
                device=self.hostname,
            ) from None
        except Exception as exc:
            self._gnmi = None
            raise ConnectionError(
                f"gNMI connection failed: {exc}",
                device=self.hostname,
            ) from exc

    def disconnect(self) -> None:
        """Close the gNMI channel.  Idempotent."""
        if self._gnmi is not None:
            try:
                self._gnmi.close()
            except Exception:
                self._logger.debug("Error closing gNMI channel", exc_info=True)
            finally:
                self._gnmi = None
        if self._connected:
            self._logger.info("Disconnected from %s", self.hostname)
        self._connected = False

    # -- Configuration ------------------------------------------------------

    def replace(self, path: str, obj: Any) -> None:
        """Replace the subtree at *path* with *obj*."""
        self.log_query("Replace", path, obj)
        self._set(replace=[(path, obj)])

    def update(self, path: str, obj: Any) -> None:
        """Merge *obj* into the subtree at *path*."""
        self.log_query("Update", path, obj)
        self._set(update=[(path, obj)])

    def delete(self, path: str) -> None:
        """Delete the subtree at *path*."""
        self._logger.debug("Delete %s", path)
        self._set(delete=[path])

    # -- Telemetry ----------------------------------------------------------

    def get(self, path: str) -> Any:
        """Return the value at *path*.

        Raises:
            TelemetryError: If the read fails or nothing is returned.

        """
        value, present = self._read(path)
        if not present:
            raise TelemetryError(
                f"No value returned for {path}",
                device=self.hostname,
            )
        self.log_query("Get", path, value)
        return value

    def lookup(self, path: str) -> Sample:
        """Return ``(value, present)`` for *path*; NOT_FOUND reads as absent."""
        try:
            return self._read(path)
        except TelemetryError as exc:
            if "NOT_FOUND" in str(exc.details.get("original_error", "")):
                return None, False
            raise

    def subscribe(self, path: str) -> Generator[Sample, None, None]:
        """Yield sampled ``(value, present)`` updates for *path*.

        Messages without a value (``sync_response``, deletes) and silent
        periods longer than the verifier poll interval yield
        ``(None, False)`` so a bounded watch keeps checking its deadline.
        """
        self._ensure_connected()
        request = {
            "subscription": [
                {
                    "path": path,
                    "mode": "sample",
                    "sample_interval": self._sample_interval_ns,
                }
            ],
            "mode": "stream",
            "encoding": ENCODING,
        }
        try:
            stream = self._gnmi.subscribe2(subscribe=request)
        except Exception as exc:
            raise TelemetryError(
                f"Subscribe failed: {exc}",
                device=self.hostname,
                details={"path": path},
            ) from exc

        wait = self._verifier.poll_interval
        try:
            while True:
                try:
                    message = stream.get_update(timeout=wait)
                except TimeoutError:
                    yield None, False
                    continue
                notification = message.get("update")
                if not notification:
                    yield None, False
                    continue
                yield self._first_value(notification.get("update", []))
        finally:
            stream.close()

    # -- Internal helpers ---------------------------------------------------

    def _ensure_connected(self) -> None:
        """Raise if the gNMI channel is not open."""
        if not self._connected or self._gnmi is None:
            raise ConnectionError(
                "Not connected, call connect() first",
                device=self.hostname,
            )

    def _set(
        self,
        update: list[tuple[str, Any]] | None = None,
        replace: list[tuple[str, Any]] | None = None,
        delete: list[str] | None = None,
    ) -> None:
        self._ensure_connected()
        try:
            self._gnmi.set(
                update=update,
                replace=replace,
                delete=delete,
                encoding=ENCODING,
            )
        except Exception as exc:
            raise ConfigPushError(
                f"gNMI Set failed: {exc}",
                device=self.hostname,
                details={
                    "update": [p for p, _ in update or []],
                    "replace": [p for p, _ in replace or []],
                    "delete": delete or [],
                },
            ) from exc

    def _read(self, path: str) -> Sample:
        self._ensure_connected()
        try:
            response = self._gnmi.get(path=[path], encoding=ENCODING, datatype="all")
        except Exception as exc:
            raise TelemetryError(
                f"gNMI Get failed for {path}",
                device=self.hostname,
                details={"original_error": str(exc)},
            ) from exc

        for notification in (response or {}).get("notification", []):
            updates = notification.get("update", [])
            if updates:
                return self._first_value(updates)
        return None, False

    @staticmethod
    def _first_value(updates: list[dict[str, Any]]) -> Sample:
        if not updates:
            return None, False
        return strip_module_prefixes(updates[0].get("val")), True
