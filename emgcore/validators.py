"""Reusable validators for packets, numeric ranges and string lengths."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Generic, Sequence, TypeVar

T = TypeVar("T")


class InputValidationError(Exception):
    """Base class for validator failures."""

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


class TooSmall(InputValidationError):
    """Input is shorter than the minimum."""

    _fields = ("actual", "expected_min")

    def __init__(self, actual: int, expected_min: int) -> None:
        self.actual = actual
        self.expected_min = expected_min
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Input too small: got {self.actual}, expected at least {self.expected_min}"


class TooLarge(InputValidationError):
    """Input is longer than the maximum."""

    _fields = ("actual", "max_allowed")

    def __init__(self, actual: int, max_allowed: int) -> None:
        self.actual = actual
        self.max_allowed = max_allowed
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Input too large: got {self.actual}, maximum allowed {self.max_allowed}"


class _MessageError(InputValidationError):
    _fields = ("message",)
    _prefix = ""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self._prefix}: {self.message}"


class InvalidFormat(_MessageError):
    """Input has the wrong structure."""

    _prefix = "Invalid format"


class InvalidRange(_MessageError):
    """A value lies outside its permitted range."""

    _prefix = "Value out of range"


class CorruptedData(_MessageError):
    """Input failed an integrity check."""

    _prefix = "Corrupted data"


class Validator(ABC, Generic[T]):
    """Something that accepts or rejects a value."""

    @abstractmethod
    def validate(self, value: T) -> None:
        """Raise :class:`InputValidationError` if ``value`` is not acceptable."""


@dataclass(frozen=True)
class PacketValidator(Validator[bytes]):
    """Checks packet size, header and an optional trailing 8-bit sum checksum."""

    min_size: int
    max_size: int
    header: bytes
    checksum_enabled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "header", bytes(self.header))

    def with_checksum(self) -> "PacketValidator":
        """Return a copy that also verifies the trailing checksum byte."""
        return replace(self, checksum_enabled=True)

    def validate(self, packet: Sequence[int]) -> None:
        packet = bytes(packet)
        if len(packet) < self.min_size:
            raise TooSmall(len(packet), self.min_size)
        if len(packet) > self.max_size:
            raise TooLarge(len(packet), self.max_size)

        if len(packet) < len(self.header):
            raise InvalidFormat("Packet smaller than header")
        if not packet.startswith(self.header):
            raise InvalidFormat("Invalid packet header")

        if self.checksum_enabled and packet:
            expected = packet[-1]
            calculated = sum(packet[:-1]) & 0xFF
            if expected != calculated:
                raise CorruptedData(
                    f"Checksum mismatch: expected 0x{calculated:02X}, got 0x{expected:02X}"
                )


@dataclass(frozen=True)
class RangeValidator(Validator[T]):
    """Accepts values within ``[min_value, max_value]``."""

    min_value: T
    max_value: T

    def validate(self, value: T) -> None:
        if value < self.min_value or value > self.max_value:  # type: ignore[operator]
            raise InvalidRange(
                f"Value {value} outside range [{self.min_value}, {self.max_value}]"
            )


@dataclass(frozen=True)
class LengthValidator(Validator[str]):
    """Accepts strings whose UTF-8 length lies within the given bounds."""

    min_length: int
    max_length: int

    def validate(self, value: str) -> None:
        length = len(value.encode("utf-8"))
        if length < self.min_length:
            raise TooSmall(length, self.min_length)
        if length > self.max_length:
            raise TooLarge(length, self.max_length)