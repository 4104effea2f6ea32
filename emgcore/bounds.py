"""Bounds checking helpers for packets, buffers and numeric ranges."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Sequence, TypeVar

T = TypeVar("T")

# Largest value a platform-sized unsigned index can hold.
_USIZE_MAX = 2**64 - 1


class BoundsError(Exception):
    """Base class for all bounds-checking failures."""

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


class IndexOutOfBounds(BoundsError):
    """An index lies outside a sequence."""

    _fields = ("index", "length", "context")

    def __init__(self, index: int, length: int, context: str) -> None:
        self.index = index
        self.length = length
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Index {self.index} out of bounds for length {self.length} in {self.context}"


class SliceBoundsInvalid(BoundsError):
    """Slice bounds are reversed or run past the end."""

    _fields = ("start", "end", "length", "context")

    def __init__(self, start: int, end: int, length: int, context: str) -> None:
        self.start = start
        self.end = end
        self.length = length
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Slice bounds [{self.start}..{self.end}] invalid for length "
            f"{self.length} in {self.context}"
        )


class BufferCapacityExceeded(BoundsError):
    """More room is required than a buffer provides."""

    _fields = ("required", "available", "context")

    def __init__(self, required: int, available: int, context: str) -> None:
        self.required = required
        self.available = available
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Buffer capacity exceeded: required {self.required}, "
            f"available {self.available} in {self.context}"
        )


class PacketSizeInvalid(BoundsError):
    """A packet or array does not have the expected size."""

    _fields = ("actual", "expected", "context")

    def __init__(self, actual: int, expected: int, context: str) -> None:
        self.actual = actual
        self.expected = expected
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Packet size invalid: actual {self.actual}, "
            f"expected {self.expected} in {self.context}"
        )


class NumericOutOfBounds(BoundsError):
    """A numeric value lies outside its permitted range."""

    _fields = ("value", "min", "max", "context")

    def __init__(self, value: str, min: str, max: str, context: str) -> None:  # noqa: A002
        self.value = value
        self.min = min
        self.max = max
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Numeric value {self.value} out of bounds [{self.min}, {self.max}] "
            f"in {self.context}"
        )


class OffsetOverflow(BoundsError):
    """An offset calculation overflows the index range."""

    _fields = ("base", "offset", "context")

    def __init__(self, base: int, offset: int, context: str) -> None:
        self.base = base
        self.offset = offset
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Offset overflow: base {self.base} + offset {self.offset} in {self.context}"


def _checked_add(base: int, offset: int, context: str) -> int:
    total = base + offset
    if total > _USIZE_MAX:
        raise OffsetOverflow(base, offset, context)
    return total


def _checked_mul(left: int, right: int, context: str) -> int:
    product = left * right
    if product > _USIZE_MAX:
        raise OffsetOverflow(left, right, context)
    return product


def _slice_check(start: int, end: int, length: int, context: str) -> None:
    if start > end:
        raise SliceBoundsInvalid(start, end, length, f"{context}: start > end")
    if start < 0 or end > length:
        raise SliceBoundsInvalid(start, end, length, context)


def _format_number(value: Any) -> str:
    return str(value)


@dataclass(frozen=True)
class BoundsChecker:
    """Runs bounds checks and reports failures under a fixed context."""

    context: str
    strict_mode: bool = False

    def strict(self) -> "BoundsChecker":
        """Return a copy of this checker with strict mode enabled."""
        return replace(self, strict_mode=True)

    def check_index(self, index: int, length: int) -> None:
        if index < 0 or index >= length:
            raise IndexOutOfBounds(index, length, self.context)

    def check_slice(self, start: int, end: int, length: int) -> None:
        _slice_check(start, end, length, self.context)

    def check_capacity(self, required: int, available: int) -> None:
        if required > available:
            raise BufferCapacityExceeded(required, available, self.context)

    def check_packet_size(self, actual: int, expected: int) -> None:
        if actual != expected:
            raise PacketSizeInvalid(actual, expected, self.context)

    def check_min_packet_size(self, actual: int, minimum: int) -> None:
        if actual < minimum:
            raise PacketSizeInvalid(actual, minimum, f"{self.context}: minimum size check")

    def check_numeric_range(self, value: Any, min_value: Any, max_value: Any) -> None:
        check_numeric_range(value, min_value, max_value, self.context)

    def check_offset(self, base: int, offset: int) -> int:
        """Return ``base + offset``, raising if the sum overflows."""
        return _checked_add(base, offset, self.context)


def check_array_bounds(array: Sequence[Any], index: int, context: str) -> None:
    if index < 0 or index >= len(array):
        raise IndexOutOfBounds(index, len(array), context)


def check_slice_bounds(array: Sequence[Any], start: int, end: int, context: str) -> None:
    _slice_check(start, end, len(array), context)


def check_numeric_range(value: Any, min_value: Any, max_value: Any, context: str) -> None:
    if value < min_value or value > max_value:
        raise NumericOutOfBounds(
            _format_number(value),
            _format_number(min_value),
            _format_number(max_value),
            context,
        )


def check_buffer_capacity(required: int, available: int, context: str) -> None:
    if required > available:
        raise BufferCapacityExceeded(required, available, context)


def ensure_packet_size(packet: Sequence[int], required_size: int, context: str) -> None:
    """Raise if ``packet`` is shorter than ``required_size``."""
    if len(packet) < required_size:
        raise PacketSizeInvalid(len(packet), required_size, context)


def safe_array_get(array: Sequence[T], index: int, context: str) -> T:
    check_array_bounds(array, index, context)
    return array[index]


def safe_slice(array: Sequence[T], start: int, end: int, context: str) -> Sequence[T]:
    check_slice_bounds(array, start, end, context)
    return array[start:end]


def extract_packet_data(
    packet: Sequence[int], data_start: int, data_length: int, context: str
) -> Sequence[int]:
    """Return ``data_length`` bytes of ``packet`` starting at ``data_start``."""
    data_end = _checked_add(data_start, data_length, f"{context}: data offset calculation")
    ensure_packet_size(packet, data_end, context)
    return safe_slice(packet, data_start, data_end, context)


def extract_emg_channels(
    packet: Sequence[int],
    header_size: int,
    channel_count: int,
    bytes_per_channel: int,
    context: str,
) -> Sequence[int]:
    """Return the channel payload that follows a header of ``header_size`` bytes."""
    data_length = _checked_mul(
        channel_count, bytes_per_channel, f"{context}: channel data size calculation"
    )
    return extract_packet_data(packet, header_size, data_length, context)


def validate_buffer_write(
    buffer: Sequence[int], write_offset: int, write_length: int, context: str
) -> None:
    write_end = _checked_add(write_offset, write_length, f"{context}: write operation")
    if write_end > len(buffer):
        raise BufferCapacityExceeded(write_end, len(buffer), context)


def validate_ring_buffer_bounds(
    capacity: int, head: int, tail: int, operation: str, context: str
) -> None:
    """Check a power-of-two capacity and head/tail indices within twice it."""
    if capacity <= 0 or capacity & (capacity - 1):
        raise NumericOutOfBounds(
            str(capacity), "power_of_2", "power_of_2", f"{context}: ring buffer capacity"
        )
    max_index = capacity * 2
    check_numeric_range(head, 0, max_index, f"{context}: head index in {operation}")
    check_numeric_range(tail, 0, max_index, f"{context}: tail index in {operation}")


def clamp_to_bounds(value: T, min_value: T, max_value: T) -> T:
    if value < min_value:  # type: ignore[operator]
        return min_value
    if value > max_value:  # type: ignore[operator]
        return max_value
    return value


def validate_fixed_array_size(array: Sequence[Any], expected_size: int, context: str) -> None:
    if len(array) != expected_size:
        raise PacketSizeInvalid(len(array), expected_size, context)


def validate_memory_alignment(address: int, alignment: int, context: str) -> None:
    """Raise if ``address`` is not a multiple of ``alignment``."""
    if address % alignment != 0:
        raise NumericOutOfBounds(
            f"0x{address:x}",
            f"aligned_to_{alignment}",
            f"aligned_to_{alignment}",
            f"{context}: memory alignment",
        )