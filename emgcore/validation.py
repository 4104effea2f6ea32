"""Validation of configuration fields, data packets and system parameters."""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field as dataclass_field, replace
from typing import Any, Callable, Generic, Mapping, Optional, Sequence, TypeVar, Union

T = TypeVar("T")

MIN_SAMPLING_RATE_HZ = 100
MAX_SAMPLING_RATE_HZ = 10_000
MIN_CHANNEL_COUNT = 1
MAX_CHANNEL_COUNT = 32
DEFAULT_CHANNEL_COUNT = 8
MIN_SIGNAL_AMPLITUDE = -10.0
MAX_SIGNAL_AMPLITUDE = 10.0
MIN_LATENCY_TARGET_MS = 1
MAX_LATENCY_TARGET_MS = 100
MIN_SNR_THRESHOLD_DB = 0.0
MAX_SNR_THRESHOLD_DB = 60.0
MAX_STRING_VALUE_LENGTH = 256
MAX_ARRAY_LENGTH = 1_048_576

_DEFAULT_BYTES_PER_SAMPLE = 4
_MAX_DEVICE_ID_LENGTH = 64
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
_SANITIZE_EXTRA = frozenset("_-./")
_DEVICE_ID_EXTRA = frozenset("_-")


def _fmt(value: Any) -> str:
    """Render a value the way it appears in error messages."""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        if value.is_integer():
            return str(int(value))
    return str(value)


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


class ValidationError(Exception):
    """Base class for all validation failures."""

    _fields: tuple[str, ...] = ()

    def _values(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self._fields)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._values() == other._values()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), tuple(_freeze(v) for v in self._values())))

    def __repr__(self) -> str:
        args = ", ".join(f"{name}={getattr(self, name)!r}" for name in self._fields)
        return f"{type(self).__name__}({args})"


def _freeze(value: Any) -> Any:
    return tuple(value) if isinstance(value, list) else value


class OutOfRange(ValidationError):
    """A field's value lies outside its permitted range."""

    _fields = ("field", "value", "min", "max")

    def __init__(self, field: str, value: str, min: str, max: str) -> None:  # noqa: A002
        self.field = field
        self.value = value
        self.min = min
        self.max = max
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Field '{self.field}' value '{self.value}' is out of range "
            f"[{self.min}, {self.max}]"
        )


class RequiredFieldMissing(ValidationError):
    """A required field is absent or empty."""

    _fields = ("field",)

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Required field '{self.field}' is missing"


class InvalidFormat(ValidationError):
    """A field's value cannot be interpreted as expected."""

    _fields = ("field", "value", "expected")

    def __init__(self, field: str, value: str, expected: str) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Field '{self.field}' has invalid format '{self.value}', "
            f"expected {self.expected}"
        )


class InvalidLength(ValidationError):
    """A string, array or packet has a length outside its bounds."""

    _fields = ("field", "actual", "min", "max")

    def __init__(
        self,
        field: str,
        actual: int,
        min: Optional[int],  # noqa: A002
        max: Optional[int],  # noqa: A002
    ) -> None:
        self.field = field
        self.actual = actual
        self.min = min
        self.max = max
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.min is not None and self.max is not None:
            bounds = f"[{self.min}, {self.max}]"
        elif self.min is not None:
            bounds = f">= {self.min}"
        elif self.max is not None:
            bounds = f"<= {self.max}"
        else:
            bounds = "unknown"
        return f"Field '{self.field}' length {self.actual} is invalid, expected {bounds}"


class InvalidArraySize(ValidationError):
    """An array does not have exactly the expected size."""

    _fields = ("field", "actual", "expected")

    def __init__(self, field: str, actual: int, expected: int) -> None:
        self.field = field
        self.actual = actual
        self.expected = expected
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Field '{self.field}' array size {self.actual} doesn't match "
            f"expected {self.expected}"
        )


class InvalidEnumValue(ValidationError):
    """A field's value is not one of the allowed choices."""

    _fields = ("field", "value", "valid_values")

    def __init__(self, field: str, value: str, valid_values: Sequence[str]) -> None:
        self.field = field
        self.value = value
        self.valid_values = list(valid_values)
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Field '{self.field}' value '{self.value}' is invalid, valid values: "
            f"[{', '.join(self.valid_values)}]"
        )


class ConstraintViolation(ValidationError):
    """Several related fields are inconsistent with one another."""

    _fields = ("fields", "message")

    def __init__(self, fields: Sequence[str], message: str) -> None:
        self.fields = list(fields)
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Constraint violation for fields [{', '.join(self.fields)}]: {self.message}"


class IntegrityCheckFailed(ValidationError):
    """A structural integrity check on a field failed."""

    _fields = ("field", "reason")

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Integrity check failed for field '{self.field}': {self.reason}"


class CustomValidationError(ValidationError):
    """A free-form validation failure."""

    _fields = ("message",)

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Validation error: {self.message}"


class Validator(ABC, Generic[T]):
    """Something that accepts or rejects a value."""

    @abstractmethod
    def validate(self, value: T) -> None:
        """Raise :class:`ValidationError` if ``value`` is not acceptable."""

    def validate_with_context(self, value: T, context: str) -> None:
        """Validate, prefixing the message of free-form failures with ``context``."""
        try:
            self.validate(value)
        except CustomValidationError as error:
            raise CustomValidationError(f"{context}: {error.message}") from error


def _parse_float(field: str, value: str) -> float:
    error = InvalidFormat(field, value, "numeric value")
    if value != value.strip() or "_" in value:
        raise error
    try:
        return float(value)
    except ValueError:
        raise error from None


def _parse_int(field: str, value: str) -> int:
    if not _INTEGER_PATTERN.fullmatch(value):
        raise InvalidFormat(field, value, "integer value")
    number = int(value)
    if number < _I64_MIN or number > _I64_MAX:
        raise InvalidFormat(field, value, "integer value")
    return number


@dataclass(frozen=True)
class NumericRange:
    """The value must parse as a number within ``[min_value, max_value]``."""

    min_value: float
    max_value: float

    def _check(self, field: str, value: str) -> None:
        number = _parse_float(field, value)
        if number < self.min_value or number > self.max_value:
            raise OutOfRange(field, value, _fmt(float(self.min_value)), _fmt(float(self.max_value)))


@dataclass(frozen=True)
class IntegerRange:
    """The value must parse as an integer within ``[min_value, max_value]``."""

    min_value: int
    max_value: int

    def _check(self, field: str, value: str) -> None:
        number = _parse_int(field, value)
        if number < self.min_value or number > self.max_value:
            raise OutOfRange(field, value, str(self.min_value), str(self.max_value))


@dataclass(frozen=True)
class StringLength:
    """The value's UTF-8 length must lie within ``[min_length, max_length]``."""

    min_length: int
    max_length: int

    def _check(self, field: str, value: str) -> None:
        length = _byte_length(value)
        if length < self.min_length or length > self.max_length:
            raise InvalidLength(field, length, self.min_length, self.max_length)


@dataclass(frozen=True)
class EnumRule:
    """The value must be one of ``values``."""

    values: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def _check(self, field: str, value: str) -> None:
        if value not in self.values:
            raise InvalidEnumValue(field, value, self.values)


@dataclass(frozen=True)
class Required:
    """The field must be present and non-empty."""

    def _check(self, field: str, value: str) -> None:
        if not value:
            raise RequiredFieldMissing(field)


@dataclass(frozen=True)
class CustomRule:
    """The value must satisfy ``predicate``."""

    predicate: Callable[[str], bool]

    def _check(self, field: str, value: str) -> None:
        if not self.predicate(value):
            raise CustomValidationError(f"Custom validation failed for field '{field}'")


ValidationRule = Union[NumericRange, IntegerRange, StringLength, EnumRule, Required, CustomRule]


def _default_rules() -> dict[str, ValidationRule]:
    return {
        "system.sampling_rate_hz": IntegerRange(MIN_SAMPLING_RATE_HZ, MAX_SAMPLING_RATE_HZ),
        "system.channel_count": IntegerRange(MIN_CHANNEL_COUNT, MAX_CHANNEL_COUNT),
        "system.latency_target_ms": IntegerRange(MIN_LATENCY_TARGET_MS, MAX_LATENCY_TARGET_MS),
        "quality.snr_threshold_db": NumericRange(MIN_SNR_THRESHOLD_DB, MAX_SNR_THRESHOLD_DB),
        "device.port_name": StringLength(1, MAX_STRING_VALUE_LENGTH),
        "device.device_id": Required(),
    }


class ConfigValidator:
    """Validates configuration fields against per-field rules."""

    def __init__(self) -> None:
        self.rules: dict[str, ValidationRule] = _default_rules()

    def add_rule(self, field: str, rule: ValidationRule) -> None:
        """Add or replace the rule for ``field``."""
        self.rules[field] = rule

    def validate_field(self, field: str, value: str) -> None:
        """Validate one field; fields without a rule are accepted."""
        rule = self.rules.get(field)
        if rule is not None:
            rule._check(field, value)

    def validate_config(self, config: Mapping[str, str]) -> None:
        """Validate every ruled field of ``config``, raising the first failure."""
        for field, rule in self.rules.items():
            if isinstance(rule, Required) and field not in config:
                raise RequiredFieldMissing(field)
            if field in config:
                self.validate_field(field, config[field])


@dataclass(frozen=True)
class PacketValidator:
    """Checks a data packet's size, header and payload layout."""

    min_size: int
    max_size: int
    header_pattern: bytes
    require_checksum: bool = False
    channel_count: int = DEFAULT_CHANNEL_COUNT
    bytes_per_sample: int = _DEFAULT_BYTES_PER_SAMPLE

    def __post_init__(self) -> None:
        object.__setattr__(self, "header_pattern", bytes(self.header_pattern))

    def with_checksum(self) -> "PacketValidator":
        """Return a copy that expects a trailing checksum byte."""
        return replace(self, require_checksum=True)

    def with_channels(self, count: int) -> "PacketValidator":
        """Return a copy expecting ``count`` channels."""
        return replace(self, channel_count=count)

    def with_sample_size(self, size: int) -> "PacketValidator":
        """Return a copy expecting ``size`` bytes per sample."""
        return replace(self, bytes_per_sample=size)

    def validate_packet(self, packet: Sequence[int]) -> None:
        """Raise :class:`ValidationError` if ``packet`` is malformed."""
        packet = bytes(packet)
        if len(packet) < self.min_size:
            raise InvalidLength("packet", len(packet), self.min_size, None)
        if len(packet) > self.max_size:
            raise InvalidLength("packet", len(packet), None, self.max_size)

        header = self.header_pattern
        if header:
            if len(packet) < len(header):
                raise IntegrityCheckFailed("packet_header", "Packet too short for header")
            if not packet.startswith(header):
                raise IntegrityCheckFailed("packet_header", "Header pattern mismatch")

        expected_total = (
            len(header)
            + self.channel_count * self.bytes_per_sample
            + (1 if self.require_checksum else 0)
        )
        if len(packet) != expected_total:
            raise InvalidArraySize("packet_data", len(packet), expected_total)


def validate_range(value: Any, min_value: Any, max_value: Any, field: str) -> None:
    """Raise :class:`OutOfRange` unless ``min_value <= value <= max_value``."""
    if value < min_value or value > max_value:
        raise OutOfRange(field, _fmt(value), _fmt(min_value), _fmt(max_value))


def validate_string_length(value: str, min_length: int, max_length: int, field: str) -> None:
    """Raise :class:`InvalidLength` unless the UTF-8 length is within bounds."""
    length = _byte_length(value)
    if length < min_length or length > max_length:
        raise InvalidLength(field, length, min_length, max_length)


def validate_array_bounds(array: Sequence[Any], min_size: int, max_size: int, field: str) -> None:
    """Raise :class:`InvalidLength` unless ``len(array)`` is within bounds."""
    if len(array) < min_size or len(array) > max_size:
        raise InvalidLength(field, len(array), min_size, max_size)


def validate_sampling_rate(rate_hz: int) -> None:
    validate_range(rate_hz, MIN_SAMPLING_RATE_HZ, MAX_SAMPLING_RATE_HZ, "sampling_rate_hz")


def validate_channel_count(count: int) -> None:
    validate_range(count, MIN_CHANNEL_COUNT, MAX_CHANNEL_COUNT, "channel_count")


def validate_signal_amplitude(amplitude: float) -> None:
    validate_range(amplitude, MIN_SIGNAL_AMPLITUDE, MAX_SIGNAL_AMPLITUDE, "signal_amplitude")


def validate_buffer_size(size: int, field: str) -> None:
    """Require a non-zero power-of-two size no larger than the array limit."""
    if size <= 0 or size > MAX_ARRAY_LENGTH:
        raise OutOfRange(field, str(size), "1", str(MAX_ARRAY_LENGTH))
    if size & (size - 1):
        raise CustomValidationError(f"Buffer size {size} must be power of 2")


def validate_cross_field_constraints(
    sampling_rate: int, buffer_size: int, latency_target_ms: int
) -> None:
    """Require the buffer to hold at least one latency target's worth of samples."""
    samples_per_ms = sampling_rate / 1000.0
    min_samples = math.ceil(samples_per_ms * latency_target_ms)
    if buffer_size < min_samples:
        raise ConstraintViolation(
            ["sampling_rate", "buffer_size", "latency_target"],
            f"Buffer size {buffer_size} is too small for {sampling_rate}Hz sampling at "
            f"{latency_target_ms}ms latency target (need >= {min_samples})",
        )


def sanitize_string_input(text: str, max_length: int) -> str:
    """Keep alphanumerics and ``_ - . /``, truncated to ``max_length`` characters."""
    kept = (c for c in text if c.isalnum() or c in _SANITIZE_EXTRA)
    return "".join(c for _, c in zip(range(max_length), kept))


def validate_device_id(device_id: str) -> str:
    """Return ``device_id`` if it is 1-64 bytes of alphanumerics, ``_`` or ``-``."""
    validate_string_length(device_id, 1, _MAX_DEVICE_ID_LENGTH, "device_id")
    if not all(c.isalnum() or c in _DEVICE_ID_EXTRA for c in device_id):
        raise InvalidFormat(
            "device_id",
            device_id,
            "alphanumeric characters, underscore, or dash only",
        )
    return device_id