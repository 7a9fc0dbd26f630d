"""Clock abstraction for sample timestamps and event times.

Wave samples are stamped with monotonic time; state-change events carry
wall-clock time. Tests inject ``FakeTimeProvider`` to make both
deterministic without sleeping.

Usage:
    clock = FakeTimeProvider(start_time=1000.0)
    clock.advance(0.5)
    assert clock.monotonic() == 0.5
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class TimeProvider(Protocol):
    """Anything that can tell wall-clock and monotonic time."""

    def now(self) -> float:
        """Seconds since epoch (like ``time.time()``)."""
        ...

    def monotonic(self) -> float:
        """Monotonic clock seconds (like ``time.monotonic()``)."""
        ...


class DefaultTimeProvider:
    """System clock."""

    def now(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.monotonic()


class FakeTimeProvider:
    """Manually driven clock for tests.

    ``monotonic()`` is relative to the start time, so a fresh provider
    reports 0.0.
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self._current_time = start_time
        self._monotonic_start = start_time

    def now(self) -> float:
        return self._current_time

    def monotonic(self) -> float:
        return self._current_time - self._monotonic_start

    def advance(self, seconds: float) -> None:
        """Move the clock forward.

        Raises:
            ValueError: If seconds is negative
        """
        if seconds < 0:
            raise ValueError("Cannot advance time by negative amount")
        self._current_time += seconds


_default_provider: TimeProvider = DefaultTimeProvider()


def get_default_time_provider() -> TimeProvider:
    """Return the process-wide clock used when none is injected."""
    return _default_provider
