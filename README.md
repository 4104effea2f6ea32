# emgcore

Building blocks for software that reads and checks EMG (electromyography)
data. The package covers safe packet slicing, ADC and unit conversions,
checksums and CRCs, timestamp helpers and configuration validation. It is pure
Python and has no runtime dependencies.

## Installation

From a checkout of the project:

```
pip install .
```

## Modules

- `emgcore.bounds`: index, slice, capacity, packet-size and offset checks.
  `BoundsChecker` holds a context string, and its `check_*` methods report
  failures under that context. Free functions such as `check_array_bounds`,
  `safe_slice`, `validate_buffer_write` and `validate_ring_buffer_bounds` do
  the same job without a checker. `extract_packet_data` and
  `extract_emg_channels` pull payloads out of raw packets. Failures raise
  subclasses of `BoundsError`: `IndexOutOfBounds`, `SliceBoundsInvalid`,
  `BufferCapacityExceeded`, `PacketSizeInvalid`, `NumericOutOfBounds` and
  `OffsetOverflow`.
- `emgcore.conversion`: conversions between ADC codes and voltages
  (`adc_to_voltage`, `voltage_to_adc`, `signed_24bit_to_voltage`).
  `samples_to_bytes` and `bytes_to_samples` encode and decode samples according
  to `AdcResolution` and `SampleFormat`. Other helpers cover decibels
  (`db_to_linear`, `linear_to_db`), frequency and period
  (`frequency_to_period_nanos`, `period_nanos_to_frequency`), time and sample
  index, and microvolts. `normalize_signal`, `denormalize_signal` and
  `calculate_rms` work on whole signals. Failures raise subclasses of
  `ConversionError`.
- `emgcore.integrity`: 8-bit sum, XOR and two's-complement checksums, plus
  CRC-8, CRC-16/CCITT and CRC-32, all selectable through `ChecksumType`.
  `calculate_simple_hash` gives an FNV-1a hash. `verify_packet_integrity`
  checks the header, footer and checksum of a packet, and
  `comprehensive_packet_validation` also runs `detect_data_corruption` on the
  payload. Other functions are `validate_emg_signal_integrity`,
  `append_checksum` and `extract_and_verify_checksum`; the last two change a
  `bytearray` in place. Failures raise subclasses of `IntegrityError`.
- `emgcore.timing`: wall-clock and monotonic timestamps
  (`current_timestamp_nanos`, `monotonic_timestamp_nanos`) and the
  `TimeProvider` classes `SystemTimeProvider`, `MonotonicTimeProvider` and
  `MockTimeProvider`. It also has `TimestampValidator`, `AtomicTimestamp`, the
  sample-period helpers, `duration_to_nanos` and `nanos_to_duration`, and
  `sleep_nanos` and `precision_sleep_nanos`. Failures raise subclasses of
  `TimeError`.
- `emgcore.validators`: small reusable validators. `PacketValidator` checks
  size, header and an optional trailing sum checksum. `RangeValidator` and
  `LengthValidator` check a value's range and a string's length. Failures raise
  subclasses of `InputValidationError`.
- `emgcore.validation`: `ConfigValidator` with built-in rules for EMG system
  settings, extended with `add_rule` using `NumericRange`, `IntegerRange`,
  `StringLength`, `EnumRule`, `Required` or `CustomRule`. This module has its
  own channel-aware `PacketValidator`, and functions such as
  `validate_sampling_rate`, `validate_buffer_size`,
  `validate_cross_field_constraints`, `sanitize_string_input` and
  `validate_device_id`. Failures raise subclasses of `ValidationError`.
- `emgcore.errors`: `UtilError`, which wraps an error from any of the modules
  above and tags it with its `ErrorKind`. Use `wrap_error` to create one.

## Example

```python
from emgcore.bounds import extract_emg_channels
from emgcore.integrity import ChecksumType, verify_packet_integrity

packet = bytes([0xAA, 0x55, 0x01, 0x02, 0x03, 0x04, 0x0A])
payload = verify_packet_integrity(packet, b"\xaa\x55", None, ChecksumType.SUM8, "serial")
assert payload == b"\x01\x02\x03\x04"

channels = extract_emg_channels(packet, 2, 2, 2, "serial")
assert channels == b"\x01\x02\x03\x04"
```

Every failure is raised as an exception. The exception keeps the values that
were checked as attributes, and its message includes the context string you
passed in.

## What it does not do

The package is a library of helpers and nothing more. It does not talk to EMG
hardware or serial ports, and it does not run an acquisition or
signal-processing pipeline. It has no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```