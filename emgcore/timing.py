"""Timestamps, time providers, timestamp validation and precise sleeping."""

from __future__ import annotations

import functools
import threading
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Optional

_U64_MASK = 2**64 - 1
_NANOS_PER_SECOND = 1_000_000_000
_NANOS_PER_MICRO = 1_000
_NANOS_PER_MILLI = 1_000_000
_ONE_YEAR_NANOS = 365 * 24 * 60 * 60 * _NANOS_PER_SECOND
_SPIN_THRESHOLD_NANOS = 1_000_000

# How far in the past a fresh validator accepts timestamps, and the largest
# jump it tolerates between consecutive timestamps.
_VALIDATION_TIMEOUT_MS = 1000
_MAX_LATENCY_TARGET_MS = 100


class TimeError(Exception):
    """Base class for all time-related failures."""

    _fields: tuple[str, ...] = ()

    def _values(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self._fields)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._values() == other._values()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._values()))

    def __repr__(self) -> str:
        args = ", ".join(f"{name}={getattr(self, name)!r}" for name in self._fields)
        return f"{type(self).__name__}({args})"


class SystemTimeBeforeEpoch(TimeError):
    """The system clock reads a time before the Unix epoch."""

    def __init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:
        return "System time is before Unix epoch"


class InvalidTimestamp(TimeError):
    """A timestamp lies outside the accepted range."""

    _fields = ("timestamp",)

    def __init__(self, timestamp: int) -> None:
        self.timestamp = timestamp
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Invalid timestamp: {self.timestamp}"


class MonotonicClockNotAvailable(TimeError):
    """No monotonic clock is available."""

    def __init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:
        return "Monotonic clock not available on this system"


class TimestampValidationFailed(TimeError):
    """A timestamp failed validation for the given reason."""

    _fields = ("message",)

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Timestamp validation failed: {self.message}"


class TimeDriftDetected(TimeError):
    """Consecutive timestamps are further apart than allowed."""

    _fields = ("expected", "actual")

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Time drift detected: expected {self.expected}, got {self.actual}"


class SynchronizationFailed(TimeError):
    """Clock synchronisation did not succeed."""

    _fields = ("message",)

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Clock synchronization failed: {self.message}"


class TimeProvider(ABC):
    """Source of wall-clock timestamps since the Unix epoch."""

    @abstractmethod
    def current_timestamp_nanos(self) -> int:
        """Current time in nanoseconds."""

    def current_timestamp_micros(self) -> int:
        """Current time in microseconds."""
        return self.current_timestamp_nanos() // _NANOS_PER_MICRO

    def current_timestamp_millis(self) -> int:
        """Current time in milliseconds."""
        return self.current_timestamp_nanos() // _NANOS_PER_MILLI


class SystemTimeProvider(TimeProvider):
    """Reads the system clock directly."""

    def current_timestamp_nanos(self) -> int:
        now = time.time_ns()
        if now < 0:
            raise SystemTimeBeforeEpoch()
        return now


class MonotonicTimeProvider(TimeProvider):
    """Strictly increasing timestamps anchored to the system time at creation."""

    def __init__(self) -> None:
        self._start_monotonic = time.monotonic_ns()
        self._start_system = time.time_ns()
        self._last = 0
        self._lock = threading.Lock()

    def monotonic_timestamp_nanos(self) -> int:
        """Nanoseconds since creation; each call returns a larger value."""
        elapsed = time.monotonic_ns() - self._start_monotonic
        with self._lock:
            self._last = max(elapsed, self._last + 1)
            return self._last

    def monotonic_to_system_timestamp(self, monotonic_ns: int) -> int:
        """Map a monotonic timestamp onto the system clock."""
        if self._start_system < 0:
            raise SystemTimeBeforeEpoch()
        return self._start_system + monotonic_ns

    def current_timestamp_nanos(self) -> int:
        return self.monotonic_to_system_timestamp(self.monotonic_timestamp_nanos())


class MockTimeProvider(TimeProvider):
    """Manually driven clock for tests and simulations."""

    def __init__(self, initial_timestamp: int = 0) -> None:
        self._timestamp = initial_timestamp
        self._lock = threading.Lock()

    def advance_time(self, nanos: int) -> None:
        with self._lock:
            self._timestamp += nanos

    def set_time(self, timestamp: int) -> None:
        with self._lock:
            self._timestamp = timestamp

    def current_timestamp_nanos(self) -> int:
        with self._lock:
            return self._timestamp


class AtomicTimestamp:
    """Thread-safe unsigned 64-bit counter of nanoseconds."""

    def __init__(self, value: int = 0) -> None:
        self._value = value & _U64_MASK
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def fetch_add(self, increment: int) -> int:
        """Add ``increment`` (wrapping) and return the previous value."""
        with self._lock:
            previous = self._value
            self._value = (previous + increment) & _U64_MASK
            return previous


_SYSTEM_TIME_PROVIDER = SystemTimeProvider()


@functools.lru_cache(maxsize=None)
def _monotonic_provider() -> MonotonicTimeProvider:
    return MonotonicTimeProvider()


def current_timestamp_nanos() -> int:
    """Wall-clock nanoseconds, falling back to the monotonic clock."""
    try:
        return _SYSTEM_TIME_PROVIDER.current_timestamp_nanos()
    except TimeError:
        return _monotonic_provider().monotonic_timestamp_nanos()


def current_timestamp_micros() -> int:
    return current_timestamp_nanos() // _NANOS_PER_MICRO


def current_timestamp_millis() -> int:
    return current_timestamp_nanos() // _NANOS_PER_MILLI


def monotonic_timestamp_nanos() -> int:
    """Strictly increasing nanoseconds from the shared monotonic provider."""
    return _monotonic_provider().monotonic_timestamp_nanos()


def atomic_timestamp_with_increment(base_timestamp: AtomicTimestamp, increment_nanos: int) -> int:
    """Return the current value of ``base_timestamp`` and advance it."""
    return base_timestamp.fetch_add(increment_nanos)


def calculate_sample_period_nanos(sampling_rate_hz: int) -> int:
    """Sample period in nanoseconds; 0 for a rate of 0."""
    if sampling_rate_hz == 0:
        return 0
    return _NANOS_PER_SECOND // sampling_rate_hz


def calculate_sampling_rate_hz(period_nanos: int) -> int:
    """Sampling rate in hertz; 0 for a period of 0."""
    if period_nanos == 0:
        return 0
    return (_NANOS_PER_SECOND // period_nanos) & 0xFFFFFFFF


class TimestampValidator:
    """Checks timestamps against fixed bounds and a maximum step between calls."""

    def __init__(
        self,
        min_timestamp: Optional[int] = None,
        max_timestamp: Optional[int] = None,
        max_drift_nanos: Optional[int] = None,
    ) -> None:
        now = current_timestamp_nanos()
        if min_timestamp is None:
            min_timestamp = max(0, now - _VALIDATION_TIMEOUT_MS * _NANOS_PER_MILLI)
        if max_timestamp is None:
            max_timestamp = now + _ONE_YEAR_NANOS
        if max_drift_nanos is None:
            max_drift_nanos = _MAX_LATENCY_TARGET_MS * _NANOS_PER_MILLI
        self.min_timestamp = min_timestamp
        self.max_timestamp = max_timestamp
        self.max_drift_nanos = max_drift_nanos
        self._last = 0
        self._lock = threading.Lock()

    @classmethod
    def with_bounds(
        cls, min_timestamp: int, max_timestamp: int, max_drift_nanos: int
    ) -> "TimestampValidator":
        return cls(min_timestamp, max_timestamp, max_drift_nanos)

    def validate(self, timestamp: int) -> None:
        """Raise if ``timestamp`` is out of bounds or jumps too far from the last one."""
        if timestamp < self.min_timestamp or timestamp > self.max_timestamp:
            raise InvalidTimestamp(timestamp)
        with self._lock:
            last = self._last
            if last > 0 and abs(timestamp - last) > self.max_drift_nanos:
                raise TimeDriftDetected(last, timestamp)
            self._last = timestamp

    def reset(self) -> None:
        """Forget the last seen timestamp."""
        with self._lock:
            self._last = 0


@functools.lru_cache(maxsize=None)
def _shared_validator() -> TimestampValidator:
    return TimestampValidator()


def validate_timestamp(timestamp: int) -> None:
    """Validate against a process-wide validator created on first use."""
    _shared_validator().validate(timestamp)


def duration_to_nanos(duration: timedelta) -> int:
    """Nanoseconds in ``duration``, saturating at the unsigned 64-bit maximum."""
    if duration < timedelta(0):
        raise ValueError("duration must not be negative")
    nanos = (
        (duration.days * 86_400 + duration.seconds) * _NANOS_PER_SECOND
        + duration.microseconds * _NANOS_PER_MICRO
    )
    return min(nanos, _U64_MASK)


def nanos_to_duration(nanos: int) -> timedelta:
    """Duration of ``nanos`` nanoseconds, truncated to microseconds."""
    return timedelta(microseconds=nanos // _NANOS_PER_MICRO)


def elapsed_nanos_since(timestamp: int) -> int:
    """Nanoseconds since ``timestamp``, or 0 if it lies in the future."""
    return max(0, current_timestamp_nanos() - timestamp)


def is_within_timeout(timestamp: int, timeout_nanos: int) -> bool:
    return elapsed_nanos_since(timestamp) <= timeout_nanos


def sleep_nanos(nanos: int) -> None:
    """Sleep for ``nanos`` nanoseconds."""
    if nanos == 0:
        return
    time.sleep(nanos / _NANOS_PER_SECOND)


def precision_sleep_nanos(nanos: int) -> None:
    """Sleep precisely, spinning for waits shorter than a millisecond."""
    if nanos == 0:
        return
    if nanos < _SPIN_THRESHOLD_NANOS:
        deadline = time.perf_counter_ns() + nanos
        while time.perf_counter_ns() < deadline:
            pass
    else:
        time.sleep(nanos / _NANOS_PER_SECOND)