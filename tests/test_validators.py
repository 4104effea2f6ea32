import pytest

from emgcore.validators import (
    CorruptedData,
    InvalidFormat,
    InvalidRange,
    LengthValidator,
    PacketValidator,
    RangeValidator,
    TooLarge,
    TooSmall,
)

HEADER = bytes([0xAA, 0x55])


def test_packet_validator_valid():
    validator = PacketValidator(10, 100, HEADER)
    validator.validate(HEADER + bytes(8))
    assert validator.checksum_enabled is False


def test_packet_validator_too_small():
    validator = PacketValidator(10, 100, HEADER)
    with pytest.raises(TooSmall) as info:
        validator.validate([0xAA])
    assert info.value == TooSmall(1, 10)


def test_packet_validator_too_large():
    validator = PacketValidator(10, 100, HEADER)
    with pytest.raises(TooLarge) as info:
        validator.validate(bytes(200))
    assert info.value == TooLarge(200, 100)


def test_packet_validator_invalid_header():
    validator = PacketValidator(10, 100, HEADER)
    with pytest.raises(InvalidFormat) as info:
        validator.validate(bytes([0xFF, 0x55]) + bytes(8))
    assert str(info.value) == "Invalid format: Invalid packet header"


def test_packet_smaller_than_header():
    validator = PacketValidator(0, 100, HEADER)
    with pytest.raises(InvalidFormat) as info:
        validator.validate([0xAA])
    assert info.value.message == "Packet smaller than header"


def test_checksum_validator():
    validator = PacketValidator(5, 100, HEADER).with_checksum()
    packet = bytearray(HEADER + bytes([0x01, 0x02]))
    packet.append(sum(packet) & 0xFF)
    assert packet[-1] == 0x02
    validator.validate(packet)

    packet[-1] = (packet[-1] + 1) & 0xFF
    with pytest.raises(CorruptedData) as info:
        validator.validate(packet)
    assert str(info.value) == "Corrupted data: Checksum mismatch: expected 0x02, got 0x03"


def test_with_checksum_leaves_original_unchanged():
    base = PacketValidator(5, 100, HEADER)
    checked = base.with_checksum()
    assert base.checksum_enabled is False
    assert checked.checksum_enabled is True


@pytest.mark.parametrize("value", [50, 0, 100])
def test_range_validator_accepts(value):
    validator = RangeValidator(0, 100)
    validator.validate(value)
    assert validator.min_value <= value <= validator.max_value


@pytest.mark.parametrize("value", [-1, 101])
def test_range_validator_rejects(value):
    with pytest.raises(InvalidRange) as info:
        RangeValidator(0, 100).validate(value)
    assert info.value.message == f"Value {value} outside range [0, 100]"


def test_length_validator():
    validator = LengthValidator(5, 20)
    validator.validate("hello")
    with pytest.raises(TooSmall) as small:
        validator.validate("hi")
    assert small.value == TooSmall(2, 5)
    with pytest.raises(TooLarge):
        validator.validate("this is way too long for the validator")


def test_length_counts_utf8_bytes():
    with pytest.raises(TooLarge) as info:
        LengthValidator(1, 3).validate("éé")
    assert info.value.actual == 4


def test_error_messages():
    assert str(TooSmall(1, 10)) == "Input too small: got 1, expected at least 10"
    assert str(TooLarge(200, 100)) == "Input too large: got 200, maximum allowed 100"
    assert str(InvalidRange("x")) == "Value out of range: x"