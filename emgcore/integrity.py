"""Checksums, CRCs, hashing and packet integrity checks."""

from __future__ import annotations

import math
import zlib
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

_CRC8_POLYNOMIAL = 0x07
_CRC8_INIT_VALUE = 0x00
_CRC16_POLYNOMIAL = 0x1021
_CRC16_INIT_VALUE = 0xFFFF

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193

_MAX_REASONABLE_EMG_VOLTS = 10.0
_MIN_SIGNAL_VARIANCE = 1e-8


class IntegrityError(Exception):
    """Base class for all data integrity failures."""

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


class ChecksumMismatch(IntegrityError):
    """An 8-bit sum checksum does not match."""

    _fields = ("expected", "actual", "context")

    def __init__(self, expected: int, actual: int, context: str) -> None:
        self.expected = expected
        self.actual = actual
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Checksum mismatch in {self.context}: expected 0x{self.expected:02X}, "
            f"got 0x{self.actual:02X}"
        )


class CrcMismatch(IntegrityError):
    """A checksum computed with a named algorithm does not match."""

    _fields = ("expected", "actual", "algorithm", "context")

    def __init__(self, expected: str, actual: str, algorithm: str, context: str) -> None:
        self.expected = expected
        self.actual = actual
        self.algorithm = algorithm
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"{self.algorithm} CRC mismatch in {self.context}: "
            f"expected {self.expected}, got {self.actual}"
        )


class DataCorruption(IntegrityError):
    """Data looks corrupted at some position."""

    _fields = ("position", "reason", "context")

    def __init__(self, position: int, reason: str, context: str) -> None:
        self.position = position
        self.reason = reason
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Data corruption at position {self.position} in {self.context}: {self.reason}"


class InvalidLength(IntegrityError):
    """Data is too short for an integrity check."""

    _fields = ("actual", "expected", "context")

    def __init__(self, actual: int, expected: int, context: str) -> None:
        self.actual = actual
        self.expected = expected
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Invalid data length for integrity check in {self.context}: "
            f"actual {self.actual}, expected {self.expected}"
        )


class HashMismatch(IntegrityError):
    """A hash of the data does not match."""

    _fields = ("expected", "actual", "algorithm")

    def __init__(self, expected: str, actual: str, algorithm: str) -> None:
        self.expected = expected
        self.actual = actual
        self.algorithm = algorithm
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.algorithm} hash mismatch: expected {self.expected}, got {self.actual}"


class UnsupportedAlgorithm(IntegrityError):
    """The requested integrity algorithm is not available."""

    _fields = ("algorithm",)

    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Unsupported integrity algorithm: {self.algorithm}"


class ChecksumType(Enum):
    """Checksum algorithms understood by the integrity helpers."""

    SUM8 = "Sum8"
    XOR8 = "Xor8"
    TWOS_COMPLEMENT8 = "TwosComplement8"
    CRC8 = "Crc8"
    CRC16 = "Crc16"
    CRC32 = "Crc32"

    def size_bytes(self) -> int:
        """Number of bytes the checksum occupies."""
        if self is ChecksumType.CRC16:
            return 2
        if self is ChecksumType.CRC32:
            return 4
        return 1

    def __str__(self) -> str:
        return self.value


def _build_crc8_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            crc = ((crc << 1) ^ _CRC8_POLYNOMIAL) if crc & 0x80 else (crc << 1)
            crc &= 0xFF
        table.append(crc)
    return tuple(table)


def _build_crc16_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i << 8
        for _ in range(8):
            crc = ((crc << 1) ^ _CRC16_POLYNOMIAL) if crc & 0x8000 else (crc << 1)
            crc &= 0xFFFF
        table.append(crc)
    return tuple(table)


_CRC8_TABLE = _build_crc8_table()
_CRC16_TABLE = _build_crc16_table()


def _hex_list(data: Iterable[int]) -> str:
    return "[" + ", ".join(f"{b:02X}" for b in data) + "]"


def _fmt_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def calculate_checksum(data: Iterable[int]) -> int:
    """Return the 8-bit wrapping sum of ``data``."""
    return sum(data) & 0xFF


def verify_checksum(data: Iterable[int], expected_checksum: int, context: str) -> None:
    """Raise :class:`ChecksumMismatch` if the 8-bit sum differs."""
    actual = calculate_checksum(data)
    if actual != expected_checksum:
        raise ChecksumMismatch(expected_checksum, actual, context)


def calculate_xor_checksum(data: Iterable[int]) -> int:
    """Return the XOR of all bytes in ``data``."""
    result = 0
    for byte in data:
        result ^= byte
    return result & 0xFF


def calculate_twos_complement_checksum(data: Iterable[int]) -> int:
    """Return the two's complement of the 8-bit sum."""
    return (-calculate_checksum(data)) & 0xFF


def calculate_crc8(data: Iterable[int]) -> int:
    """CRC-8 with polynomial 0x07."""
    crc = _CRC8_INIT_VALUE
    for byte in data:
        crc = _CRC8_TABLE[(crc ^ byte) & 0xFF]
    return crc


def calculate_crc16(data: Iterable[int]) -> int:
    """CRC-16/CCITT with polynomial 0x1021 and initial value 0xFFFF."""
    crc = _CRC16_INIT_VALUE
    for byte in data:
        index = ((crc >> 8) ^ byte) & 0xFF
        crc = ((crc << 8) & 0xFFFF) ^ _CRC16_TABLE[index]
    return crc


def calculate_checksum_with_type(data: Iterable[int], checksum_type: ChecksumType) -> bytes:
    """Return the checksum of ``data`` as little-endian bytes."""
    payload = bytes(data)
    if checksum_type is ChecksumType.SUM8:
        return bytes([calculate_checksum(payload)])
    if checksum_type is ChecksumType.XOR8:
        return bytes([calculate_xor_checksum(payload)])
    if checksum_type is ChecksumType.TWOS_COMPLEMENT8:
        return bytes([calculate_twos_complement_checksum(payload)])
    if checksum_type is ChecksumType.CRC8:
        return bytes([calculate_crc8(payload)])
    if checksum_type is ChecksumType.CRC16:
        return calculate_crc16(payload).to_bytes(2, "little")
    if checksum_type is ChecksumType.CRC32:
        return (zlib.crc32(payload) & 0xFFFFFFFF).to_bytes(4, "little")
    raise UnsupportedAlgorithm(str(checksum_type))


def verify_checksum_with_type(
    data: Iterable[int],
    expected_checksum: Iterable[int],
    checksum_type: ChecksumType,
    context: str,
) -> None:
    """Raise :class:`CrcMismatch` if the checksum of ``data`` differs."""
    calculated = calculate_checksum_with_type(data, checksum_type)
    expected = bytes(expected_checksum)
    if calculated != expected:
        raise CrcMismatch(_hex_list(expected), _hex_list(calculated), str(checksum_type), context)


def verify_packet_integrity(
    packet: Sequence[int],
    header_pattern: Sequence[int],
    footer_pattern: Optional[Sequence[int]],
    checksum_type: Optional[ChecksumType],
    context: str,
) -> bytes:
    """Check header, optional footer and optional checksum; return the payload."""
    packet = bytes(packet)
    header = bytes(header_pattern)
    footer = bytes(footer_pattern) if footer_pattern is not None else None

    min_size = (
        len(header)
        + (len(footer) if footer is not None else 0)
        + (checksum_type.size_bytes() if checksum_type is not None else 0)
    )
    if len(packet) < min_size:
        raise InvalidLength(len(packet), min_size, f"{context}: minimum packet size")

    if not packet.startswith(header):
        raise DataCorruption(0, "Header pattern mismatch", context)

    data_start = len(header)
    data_end = len(packet)

    if footer is not None:
        if not packet.endswith(footer):
            raise DataCorruption(len(packet) - len(footer), "Footer pattern mismatch", context)
        data_end -= len(footer)

    if checksum_type is not None:
        checksum_size = checksum_type.size_bytes()
        if data_end < checksum_size:
            raise InvalidLength(data_end, checksum_size, f"{context}: checksum extraction")
        data_end -= checksum_size
        verify_checksum_with_type(
            packet[data_start:data_end],
            packet[data_end : data_end + checksum_size],
            checksum_type,
            context,
        )

    return packet[data_start:data_end]


def detect_data_corruption(data: Sequence[int], context: str) -> None:
    """Raise :class:`DataCorruption` for byte patterns typical of corruption."""
    data = bytes(data)

    if len(data) > 4 and all(b == 0 for b in data):
        raise DataCorruption(0, "All bytes are zero", context)

    if len(data) > 4 and all(b == 0xFF for b in data):
        raise DataCorruption(0, "All bytes are 0xFF", context)

    if len(data) >= 8:
        first = data[0]
        if all(b == first for b in data):
            raise DataCorruption(0, f"All bytes are identical (0x{first:02X})", context)

    if len(data) >= 16:
        if all(b == (a + 1) & 0xFF for a, b in zip(data, data[1:])):
            raise DataCorruption(0, "Data appears to be incrementing test pattern", context)


def validate_emg_signal_integrity(samples: Sequence[float], context: str) -> None:
    """Reject non-finite, implausibly large or flat EMG signals."""
    for position, sample in enumerate(samples):
        if not math.isfinite(sample):
            raise DataCorruption(
                position, f"Non-finite sample value: {_fmt_float(sample)}", context
            )
        if abs(sample) > _MAX_REASONABLE_EMG_VOLTS:
            raise DataCorruption(
                position,
                f"Sample value {_fmt_float(sample)} exceeds reasonable EMG range",
                context,
            )

    if len(samples) > 10:
        mean = sum(samples) / len(samples)
        variance = sum((x - mean) ** 2 for x in samples) / len(samples)
        if variance < _MIN_SIGNAL_VARIANCE:
            raise DataCorruption(
                0, "Signal variance too low, possible DC offset or corruption", context
            )


def append_checksum(data: bytearray, checksum_type: ChecksumType) -> None:
    """Append the checksum of ``data`` to it in place."""
    data.extend(calculate_checksum_with_type(data, checksum_type))


def extract_and_verify_checksum(
    data: bytearray, checksum_type: ChecksumType, context: str
) -> None:
    """Strip the trailing checksum from ``data`` in place and verify it."""
    checksum_size = checksum_type.size_bytes()
    if len(data) < checksum_size:
        raise InvalidLength(len(data), checksum_size, f"{context}: checksum extraction")

    payload_len = len(data) - checksum_size
    checksum_bytes = bytes(data[payload_len:])
    del data[payload_len:]
    verify_checksum_with_type(data, checksum_bytes, checksum_type, context)


def calculate_simple_hash(data: Iterable[int]) -> int:
    """32-bit FNV-1a hash; not cryptographic."""
    value = _FNV_OFFSET_BASIS
    for byte in data:
        value ^= byte
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return value


def verify_simple_hash(data: Iterable[int], expected_hash: int, context: str) -> None:
    """Raise :class:`HashMismatch` if the FNV-1a hash differs."""
    actual = calculate_simple_hash(data)
    if actual != expected_hash:
        raise HashMismatch(f"0x{expected_hash:08X}", f"0x{actual:08X}", "FNV-1a")


def comprehensive_packet_validation(
    packet: Sequence[int],
    header_pattern: Sequence[int],
    footer_pattern: Optional[Sequence[int]],
    checksum_type: Optional[ChecksumType],
    context: str,
) -> bytes:
    """Verify packet framing and checksum, then screen the payload for corruption."""
    payload = verify_packet_integrity(
        packet, header_pattern, footer_pattern, checksum_type, context
    )
    detect_data_corruption(payload, context)
    return payload