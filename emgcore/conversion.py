"""Conversions between ADC codes, voltages, sample encodings, time and units."""

from __future__ import annotations

import math
import struct
from enum import Enum
from typing import Any, Sequence

_U64_MAX = 2**64 - 1
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1

_ADC_8BIT_SCALE = 128.0
_ADC_16BIT_SCALE = 32768.0
_ADC_24BIT_SCALE = 8388608.0
_ADC_24BIT_SIGN_MASK = 0x80
_ADC_24BIT_SIGN_EXTEND = 0xFF000000

_NANOS_PER_SECOND = 1_000_000_000.0
_MICROVOLTS_PER_VOLT = 1_000_000.0


class ConversionError(Exception):
    """Base class for all conversion failures."""

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


class NumericOverflow(ConversionError):
    """A conversion result does not fit its target type."""

    _fields = ("operation", "input")

    def __init__(self, operation: str, input: str) -> None:  # noqa: A002
        self.operation = operation
        self.input = input
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Numeric overflow in {self.operation}: input {self.input}"


class InvalidInput(ConversionError):
    """A conversion was given a value it cannot handle."""

    _fields = ("function", "input", "reason")

    def __init__(self, function: str, input: str, reason: str) -> None:  # noqa: A002
        self.function = function
        self.input = input
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Invalid input for {self.function}: {self.input} ({self.reason})"


class PrecisionLoss(ConversionError):
    """A conversion would lose precision."""

    _fields = ("function", "original_precision", "result_precision")

    def __init__(self, function: str, original_precision: int, result_precision: int) -> None:
        self.function = function
        self.original_precision = original_precision
        self.result_precision = result_precision
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Precision loss in {self.function}: {self.original_precision} bits -> "
            f"{self.result_precision} bits"
        )


class UnsupportedConversion(ConversionError):
    """No conversion exists between the two representations."""

    _fields = ("source", "target")

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"Unsupported conversion from {self.source} to {self.target}"


class AdcResolution(Enum):
    """Bit depth of an analogue-to-digital converter."""

    BITS8 = "Bits8"
    BITS12 = "Bits12"
    BITS16 = "Bits16"
    BITS24 = "Bits24"
    BITS32 = "Bits32"

    def max_value(self) -> int:
        """Largest raw code this resolution produces."""
        return _MAX_VALUES[self]

    def scale_factor(self) -> float:
        """Divisor mapping signed raw codes to the range [-1, 1)."""
        return _SCALE_FACTORS[self]

    def bytes_per_sample(self) -> int:
        """Number of bytes one sample occupies."""
        return _BYTES_PER_SAMPLE[self]

    def __str__(self) -> str:
        return self.value


_MAX_VALUES = {
    AdcResolution.BITS8: 255,
    AdcResolution.BITS12: 4095,
    AdcResolution.BITS16: 65535,
    AdcResolution.BITS24: 16777215,
    AdcResolution.BITS32: 2**32 - 1,
}

_SCALE_FACTORS = {
    AdcResolution.BITS8: _ADC_8BIT_SCALE,
    AdcResolution.BITS12: 2048.0,
    AdcResolution.BITS16: _ADC_16BIT_SCALE,
    AdcResolution.BITS24: _ADC_24BIT_SCALE,
    AdcResolution.BITS32: 2147483648.0,
}

_BYTES_PER_SAMPLE = {
    AdcResolution.BITS8: 1,
    AdcResolution.BITS12: 2,
    AdcResolution.BITS16: 2,
    AdcResolution.BITS24: 3,
    AdcResolution.BITS32: 4,
}


class SampleFormat(Enum):
    """Binary encoding of a single sample."""

    UNSIGNED_INT = "UnsignedInt"
    SIGNED_INT = "SignedInt"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"


def _fmt(value: float) -> str:
    """Render a number the way it is shown in error messages."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, float) and math.isnan(value):
        return "NaN"
    if isinstance(value, float) and math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return str(value)


def _saturating_int(value: float, lower: int, upper: int) -> int:
    """Truncate toward zero, clamp to [lower, upper]; NaN becomes 0."""
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return upper if value > 0 else lower
    return max(lower, min(upper, int(value)))


def _to_f32(value: float) -> float:
    """Round a float to single precision, overflowing to infinity."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def adc_to_voltage(
    adc_value: int, resolution: AdcResolution, reference_voltage: float, gain: float
) -> float:
    """Convert an unsigned ADC code into the input voltage before amplification."""
    if adc_value < 0 or adc_value > resolution.max_value():
        raise InvalidInput(
            "adc_to_voltage",
            str(adc_value),
            f"ADC value exceeds maximum for {resolution}",
        )
    if not reference_voltage > 0.0:
        raise InvalidInput(
            "adc_to_voltage", _fmt(reference_voltage), "Reference voltage must be positive"
        )
    if not gain > 0.0:
        raise InvalidInput("adc_to_voltage", _fmt(gain), "Gain must be positive")

    normalized = adc_value / resolution.max_value()
    return (normalized * reference_voltage) / gain


def voltage_to_adc(
    voltage: float, resolution: AdcResolution, reference_voltage: float, gain: float
) -> int:
    """Convert an input voltage into the unsigned ADC code it produces."""
    if not reference_voltage > 0.0:
        raise InvalidInput(
            "voltage_to_adc", _fmt(reference_voltage), "Reference voltage must be positive"
        )
    if not gain > 0.0:
        raise InvalidInput("voltage_to_adc", _fmt(gain), "Gain must be positive")

    normalized = (voltage * gain) / reference_voltage
    if normalized < 0.0 or normalized > 1.0:
        raise InvalidInput(
            "voltage_to_adc",
            _fmt(voltage),
            "Voltage out of ADC range after amplification",
        )
    if math.isnan(normalized):
        return 0

    max_value = resolution.max_value()
    adc_value = math.floor(normalized * max_value + 0.5)
    return min(adc_value, max_value)


def signed_24bit_to_voltage(raw_bytes: bytes, reference_voltage: float, gain: float) -> float:
    """Convert a little-endian signed 24-bit code into a voltage."""
    if len(raw_bytes) != 3:
        raise InvalidInput(
            "signed_24bit_to_voltage",
            f"{len(raw_bytes)} bytes",
            "Expected exactly 3 bytes for 24-bit value",
        )

    value = raw_bytes[0] | (raw_bytes[1] << 8) | (raw_bytes[2] << 16)
    if raw_bytes[2] & _ADC_24BIT_SIGN_MASK:
        value |= _ADC_24BIT_SIGN_EXTEND
    signed_value = value - 2**32 if value >= 2**31 else value

    normalized = signed_value / _ADC_24BIT_SCALE
    return (normalized * reference_voltage) / gain


def _encode_unsigned(sample: float, resolution: AdcResolution) -> bytes:
    adc_value = voltage_to_adc(sample, resolution, 1.0, 1.0)
    if resolution is AdcResolution.BITS8:
        return bytes([adc_value & 0xFF])
    if resolution is AdcResolution.BITS16:
        return (adc_value & 0xFFFF).to_bytes(2, "little")
    if resolution is AdcResolution.BITS24:
        return adc_value.to_bytes(4, "little")[:3]
    if resolution is AdcResolution.BITS32:
        return adc_value.to_bytes(4, "little")
    raise UnsupportedConversion(str(resolution), "bytes")


def _encode_signed(sample: float, resolution: AdcResolution) -> bytes:
    signed_value = _saturating_int(sample * resolution.scale_factor(), _I32_MIN, _I32_MAX)
    raw = signed_value.to_bytes(4, "little", signed=True)
    if resolution is AdcResolution.BITS16:
        return raw[:2]
    if resolution is AdcResolution.BITS24:
        return raw[:3]
    if resolution is AdcResolution.BITS32:
        return raw
    raise UnsupportedConversion(f"{resolution} signed", "bytes")


def samples_to_bytes(
    samples: Sequence[float], sample_format: SampleFormat, resolution: AdcResolution
) -> bytes:
    """Encode samples as little-endian bytes in the given format."""
    out = bytearray()
    for sample in samples:
        if sample_format is SampleFormat.UNSIGNED_INT:
            out += _encode_unsigned(sample, resolution)
        elif sample_format is SampleFormat.SIGNED_INT:
            out += _encode_signed(sample, resolution)
        elif sample_format is SampleFormat.FLOAT32:
            out += struct.pack("<f", _to_f32(sample))
        else:
            out += struct.pack("<d", sample)
    return bytes(out)


def _decode_unsigned(
    chunk: bytes, resolution: AdcResolution, reference_voltage: float, gain: float
) -> float:
    if resolution is AdcResolution.BITS12:
        raise UnsupportedConversion("bytes", str(resolution))
    adc_value = int.from_bytes(chunk, "little")
    return adc_to_voltage(adc_value, resolution, reference_voltage, gain)


def _decode_signed(
    chunk: bytes, resolution: AdcResolution, reference_voltage: float, gain: float
) -> float:
    if resolution is AdcResolution.BITS24:
        return signed_24bit_to_voltage(chunk, reference_voltage, gain)
    if resolution in (AdcResolution.BITS16, AdcResolution.BITS32):
        signed_value = int.from_bytes(chunk, "little", signed=True)
        return (signed_value / resolution.scale_factor()) * reference_voltage / gain
    raise UnsupportedConversion("bytes", f"{resolution} signed")


def bytes_to_samples(
    data: bytes,
    sample_format: SampleFormat,
    resolution: AdcResolution,
    reference_voltage: float,
    gain: float,
) -> list[float]:
    """Decode little-endian bytes into voltage samples."""
    if sample_format in (SampleFormat.UNSIGNED_INT, SampleFormat.SIGNED_INT):
        width = resolution.bytes_per_sample()
    elif sample_format is SampleFormat.FLOAT32:
        width = 4
    else:
        width = 8

    if len(data) % width != 0:
        raise InvalidInput(
            "bytes_to_samples",
            f"{len(data)} bytes",
            f"Length not multiple of {width} bytes per sample",
        )

    data = bytes(data)
    samples = []
    for start in range(0, len(data), width):
        chunk = data[start : start + width]
        if sample_format is SampleFormat.UNSIGNED_INT:
            samples.append(_decode_unsigned(chunk, resolution, reference_voltage, gain))
        elif sample_format is SampleFormat.SIGNED_INT:
            samples.append(_decode_signed(chunk, resolution, reference_voltage, gain))
        elif sample_format is SampleFormat.FLOAT32:
            samples.append(struct.unpack("<f", chunk)[0])
        else:
            samples.append(_to_f32(struct.unpack("<d", chunk)[0]))
    return samples


def frequency_to_period_nanos(frequency_hz: float) -> int:
    """Return the period of ``frequency_hz`` in whole nanoseconds."""
    if frequency_hz <= 0.0:
        raise InvalidInput(
            "frequency_to_period_nanos", _fmt(frequency_hz), "Frequency must be positive"
        )
    period_nanos = (1.0 / frequency_hz) * _NANOS_PER_SECOND
    if period_nanos > float(_U64_MAX):
        raise NumericOverflow("frequency_to_period_nanos", _fmt(frequency_hz))
    return _saturating_int(period_nanos, 0, _U64_MAX)


def period_nanos_to_frequency(period_nanos: int) -> float:
    """Return the frequency in hertz of a period given in nanoseconds."""
    if period_nanos == 0:
        raise InvalidInput(
            "period_nanos_to_frequency", str(period_nanos), "Period cannot be zero"
        )
    return 1.0 / (period_nanos / _NANOS_PER_SECOND)


def voltage_to_microvolts(voltage: float) -> float:
    return voltage * _MICROVOLTS_PER_VOLT


def microvolts_to_voltage(microvolts: float) -> float:
    return microvolts / _MICROVOLTS_PER_VOLT


def db_to_linear(db: float) -> float:
    """Convert an amplitude ratio in decibels to a linear factor."""
    return 10.0 ** (db / 20.0)


def linear_to_db(linear: float) -> float:
    """Convert a positive linear amplitude ratio to decibels."""
    if linear <= 0.0:
        raise InvalidInput(
            "linear_to_db",
            _fmt(linear),
            "Linear value must be positive for dB conversion",
        )
    return 20.0 * math.log10(linear)


def normalize_signal(samples: Sequence[float]) -> list[float]:
    """Scale samples so the largest magnitude becomes 1.0."""
    max_abs = max((abs(x) for x in samples if not math.isnan(x)), default=0.0)
    if max_abs == 0.0:
        return list(samples)
    return [x / max_abs for x in samples]


def denormalize_signal(normalized_samples: Sequence[float], scale_factor: float) -> list[float]:
    return [x * scale_factor for x in normalized_samples]


def time_to_sample_index(time_seconds: float, sampling_rate_hz: int) -> int:
    """Return the index of the sample taken at ``time_seconds``."""
    if time_seconds < 0.0:
        raise InvalidInput(
            "time_to_sample_index", _fmt(time_seconds), "Time cannot be negative"
        )
    return _saturating_int(time_seconds * sampling_rate_hz, 0, _U64_MAX)


def sample_index_to_time(sample_index: int, sampling_rate_hz: int) -> float:
    """Return the time in seconds at which sample ``sample_index`` was taken."""
    if sampling_rate_hz == 0:
        raise InvalidInput(
            "sample_index_to_time", str(sampling_rate_hz), "Sampling rate cannot be zero"
        )
    return sample_index / sampling_rate_hz


def calculate_rms(samples: Sequence[float]) -> float:
    """Return the root mean square of a non-empty signal."""
    if not samples:
        raise InvalidInput(
            "calculate_rms", "0 samples", "Cannot calculate RMS of empty signal"
        )
    mean_square = sum(x * x for x in samples) / len(samples)
    return math.sqrt(mean_square)