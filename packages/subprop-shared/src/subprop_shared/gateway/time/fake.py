"""Fake clock for tests.

sleep() never blocks; it records the call and advances now() by the same
amount, so deadline-based loops terminate deterministically.
"""

from datetime import datetime, timedelta

from subprop_shared.gateway.time.abc import Time

DEFAULT_FAKE_NOW = datetime(2025, 1, 15, 12, 0, 0)


class FakeTime(Time):
    def __init__(self, *, current_time: datetime | None = None) -> None:
        self._current_time = current_time if current_time is not None else DEFAULT_FAKE_NOW
        self._sleep_calls: list[float] = []

    def sleep(self, seconds: float) -> None:
        self._sleep_calls.append(seconds)
        self._current_time += timedelta(seconds=seconds)

    def now(self) -> datetime:
        return self._current_time

    @property
    def sleep_calls(self) -> list[float]:
        """Durations passed to sleep(), in call order."""
        return list(self._sleep_calls)
