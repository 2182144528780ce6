"""Bounded waits for device and traffic generator convergence.

Every watched signal (link state, aggregate type, aggregate membership,
LAG status on the traffic generator) moves through a small state machine::

    UNKNOWN -> POLLING -> CONVERGED
                       -> TIMED_OUT

Two flavors are provided.  ``await_value`` polls a fetch callable until an
exact value is observed.  ``watch`` consumes a stream of telemetry updates
and accepts the first one satisfying a predicate.  Both return a
``WaitOutcome`` rather than raising, so callers decide whether a timeout is
fatal (``outcome.raise_for_timeout()``).

``settle`` is the one remaining fixed delay.  It is used only where the
framework has no readiness signal to observe.

Usage::

    verifier = ConvergenceVerifier(timeout=60)
    outcome = verifier.await_value(
        "Port-Channel1 type", lambda: client.lookup(path), "ieee8023adLag"
    )
    outcome.raise_for_timeout()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .exceptions import ConvergenceTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
DEFAULT_POLL_INTERVAL = 2.0

Sample = tuple[Any, bool]


class WaitState(StrEnum):
    """Progress of a single watched signal."""

    UNKNOWN = "unknown"
    POLLING = "polling"
    CONVERGED = "converged"
    TIMED_OUT = "timed_out"


@dataclass
class WaitOutcome:
    """Result of waiting on one signal.

    Attributes:
        signal: Human-readable name of the watched signal.
        state: Final state of the wait.
        expected: Expected value, or a predicate description.
        last_value: Last value observed (``None`` if never present).
        present: Whether the last sample carried a value.
        elapsed: Seconds spent waiting.
        samples: Number of samples inspected.

    """

    signal: str
    state: WaitState = WaitState.UNKNOWN
    expected: Any = None
    last_value: Any = None
    present: bool = False
    elapsed: float = 0.0
    samples: int = 0

    @property
    def converged(self) -> bool:
        """Return ``True`` if the signal reached its expected state."""
        return self.state == WaitState.CONVERGED

    def raise_for_timeout(self, device: str | None = None) -> WaitOutcome:
        """Raise ``ConvergenceTimeout`` unless the signal converged."""
        if not self.converged:
            raise ConvergenceTimeout(
                f"{self.signal} did not converge within {self.elapsed:.1f}s",
                device=device,
                details={"expected": self.expected, "last_value": self.last_value},
            )
        return self


class ConvergenceVerifier:
    """Bounded poll and watch primitives.

    Args:
        timeout: Default bound, in seconds, for each signal.
        poll_interval: Delay between polls in ``await_value``.
        clock: Monotonic time source.
        sleep: Blocking sleep function.

    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the verifier with its bounds and time sources."""
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def timeout(self) -> float:
        """Return the default per-signal bound in seconds."""
        return self._timeout

    @property
    def poll_interval(self) -> float:
        """Return the delay between polls in seconds."""
        return self._poll_interval

    @property
    def sleep(self) -> Callable[[float], None]:
        """Return the sleep function used between polls."""
        return self._sleep

    def await_value(
        self,
        signal: str,
        fetch: Callable[[], Sample],
        expected: Any,
        timeout: float | None = None,
    ) -> WaitOutcome:
        """Poll *fetch* until it returns *expected* or the bound expires.

        Args:
            signal: Name used in logs and errors.
            fetch: Callable returning ``(value, present)``.
            expected: Value that ends the wait.
            timeout: Bound in seconds; defaults to the verifier timeout.

        Returns:
            A ``WaitOutcome`` in state CONVERGED or TIMED_OUT.

        """
        bound = self._timeout if timeout is None else timeout
        outcome = WaitOutcome(signal=signal, expected=expected)
        start = self._clock()
        return self._consume(
            outcome,
            self._poll(fetch, start, bound),
            lambda value, present: present and value == expected,
            start,
            bound,
        )

    def watch(
        self,
        signal: str,
        updates: Iterable[Sample],
        predicate: Callable[[Any, bool], bool],
        timeout: float | None = None,
    ) -> WaitOutcome:
        """Consume *updates* until one satisfies *predicate*.

        The deadline is checked after every update, so the stream must keep
        producing samples (e.g. a sampled subscription) for the bound to be
        enforced.

        Args:
            signal: Name used in logs and errors.
            updates: Iterable of ``(value, present)`` samples.
            predicate: Callable accepting ``(value, present)``.
            timeout: Bound in seconds; defaults to the verifier timeout.

        Returns:
            A ``WaitOutcome`` in state CONVERGED or TIMED_OUT.

        """
        bound = self._timeout if timeout is None else timeout
        outcome = WaitOutcome(
            signal=signal,
            expected=getattr(predicate, "__name__", "predicate"),
        )
        return self._consume(outcome, updates, predicate, self._clock(), bound)

    def settle(self, seconds: float, reason: str) -> None:
        """Sleep unconditionally for *seconds*.

        Only for convergence the framework cannot observe directly.
        """
        if seconds <= 0:
            return
        self._logger.info("Fixed delay of %.0fs: %s", seconds, reason)
        self._sleep(seconds)

    # -- Internal helpers ---------------------------------------------------

    def _poll(
        self,
        fetch: Callable[[], Sample],
        start: float,
        bound: float,
    ) -> Iterator[Sample]:
        while True:
            yield fetch()
            remaining = bound - (self._clock() - start)
            if remaining <= 0:
                return
            self._sleep(min(self._poll_interval, remaining))

    def _consume(
        self,
        outcome: WaitOutcome,
        samples: Iterable[Sample],
        accept: Callable[[Any, bool], bool],
        start: float,
        bound: float,
    ) -> WaitOutcome:
        outcome.state = WaitState.POLLING
        self._logger.debug("Waiting up to %.0fs for %s", bound, outcome.signal)
        for value, present in samples:
            outcome.samples += 1
            outcome.last_value = value if present else None
            outcome.present = present
            outcome.elapsed = self._clock() - start
            if accept(value, present):
                outcome.state = WaitState.CONVERGED
                self._logger.info(
                    "%s converged to %r after %.1fs", outcome.signal, value, outcome.elapsed
                )
                return outcome
            if outcome.elapsed >= bound:
                break

        outcome.elapsed = self._clock() - start
        outcome.state = WaitState.TIMED_OUT
        self._logger.warning(
            "%s timed out after %.1fs (expected %r, last %r)",
            outcome.signal,
            outcome.elapsed,
            outcome.expected,
            outcome.last_value,
        )
        return outcome
