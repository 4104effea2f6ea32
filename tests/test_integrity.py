import math

import pytest

from emgcore.integrity import (
    ChecksumMismatch,
    ChecksumType,
    CrcMismatch,
    DataCorruption,
    HashMismatch,
    InvalidLength,
    UnsupportedAlgorithm,
    append_checksum,
    calculate_checksum,
    calculate_checksum_with_type,
    calculate_crc8,
    calculate_crc16,
    calculate_simple_hash,
    calculate_twos_complement_checksum,
    calculate_xor_checksum,
    comprehensive_packet_validation,
    detect_data_corruption,
    extract_and_verify_checksum,
    validate_emg_signal_integrity,
    verify_checksum,
    verify_checksum_with_type,
    verify_packet_integrity,
    verify_simple_hash,
)

DATA = bytes([0x01, 0x02, 0x03, 0x04])
CHECK = b"123456789"


def test_checksum_calculation():
    assert calculate_checksum(DATA) == 0x0A
    verify_checksum(DATA, 0x0A, "test")
    with pytest.raises(ChecksumMismatch) as info:
        verify_checksum(DATA, 0x0B, "test")
    assert info.value.expected == 0x0B
    assert info.value.actual == 0x0A
    assert str(info.value) == "Checksum mismatch in test: expected 0x0B, got 0x0A"


def test_checksum_wraps():
    assert calculate_checksum([0xFF, 0x02]) == 0x01


def test_xor_checksum():
    assert calculate_xor_checksum(DATA) == 0x04


def test_twos_complement_checksum():
    assert calculate_twos_complement_checksum(DATA) == 0xF6
    assert (calculate_checksum(DATA) + calculate_twos_complement_checksum(DATA)) & 0xFF == 0


def test_crc8_calculation():
    assert calculate_crc8(CHECK) == 0xF4


def test_crc16_calculation():
    assert calculate_crc16(CHECK) == 0x29B1


def test_crc32_matches_ieee_check_value():
    assert calculate_checksum_with_type(CHECK, ChecksumType.CRC32) == bytes(
        [0x26, 0x39, 0xF4, 0xCB]
    )


def test_checksum_with_type():
    assert calculate_checksum_with_type(DATA, ChecksumType.SUM8) == bytes([0x0A])
    assert calculate_checksum_with_type(DATA, ChecksumType.XOR8) == bytes([0x04])
    assert calculate_checksum_with_type(DATA, ChecksumType.TWOS_COMPLEMENT8) == bytes([0xF6])
    crc16 = calculate_checksum_with_type(DATA, ChecksumType.CRC16)
    assert len(crc16) == 2
    assert int.from_bytes(crc16, "little") == calculate_crc16(DATA)


def test_verify_checksum_with_type_mismatch_message():
    with pytest.raises(CrcMismatch) as info:
        verify_checksum_with_type(DATA, [0x0B], ChecksumType.SUM8, "ctx")
    assert info.value.expected == "[0B]"
    assert info.value.actual == "[0A]"
    assert info.value.algorithm == "Sum8"
    assert str(info.value) == "Sum8 CRC mismatch in ctx: expected [0B], got [0A]"


def test_packet_integrity_verification():
    header = bytes([0xAA, 0x55])
    footer = bytes([0xDE, 0xAD])
    packet = header + DATA + bytes([calculate_checksum(DATA)]) + footer
    extracted = verify_packet_integrity(packet, header, footer, ChecksumType.SUM8, "test")
    assert extracted == DATA


def test_packet_integrity_errors():
    header = bytes([0xAA, 0x55])
    footer = bytes([0xDE, 0xAD])
    with pytest.raises(InvalidLength) as info:
        verify_packet_integrity(bytes([0xAA]), header, footer, ChecksumType.SUM8, "t")
    assert info.value.expected == 5

    packet = bytes([0xAB, 0x55]) + DATA + bytes([0x0A]) + footer
    with pytest.raises(DataCorruption) as info:
        verify_packet_integrity(packet, header, footer, ChecksumType.SUM8, "t")
    assert info.value.position == 0

    packet = header + DATA + bytes([0x0A, 0xDE, 0xAE])
    with pytest.raises(DataCorruption) as info:
        verify_packet_integrity(packet, header, footer, ChecksumType.SUM8, "t")
    assert info.value.position == len(packet) - 2

    packet = header + DATA + bytes([0x0B]) + footer
    with pytest.raises(CrcMismatch):
        verify_packet_integrity(packet, header, footer, ChecksumType.SUM8, "t")


def test_packet_without_footer_or_checksum():
    packet = bytes([0xAA, 0x55, 0x10, 0x20])
    assert verify_packet_integrity(packet, [0xAA, 0x55], None, None, "t") == bytes([0x10, 0x20])


def test_data_corruption_detection():
    with pytest.raises(DataCorruption) as info:
        detect_data_corruption(bytes(10), "test")
    assert info.value.reason == "All bytes are zero"
    with pytest.raises(DataCorruption) as info:
        detect_data_corruption(bytes([0xFF] * 10), "test")
    assert info.value.reason == "All bytes are 0xFF"
    with pytest.raises(DataCorruption) as info:
        detect_data_corruption(bytes(range(20)), "test")
    assert info.value.reason == "Data appears to be incrementing test pattern"
    with pytest.raises(DataCorruption) as info:
        detect_data_corruption(bytes([0x42] * 8), "test")
    assert info.value.reason == "All bytes are identical (0x42)"

    detect_data_corruption(bytes([0x12, 0x34, 0x56, 0x78, 0x9A, 0xBC, 0xDE, 0xF0]), "test")
    assert calculate_checksum(bytes([0x12, 0x34])) == 0x46


def test_short_zero_data_is_accepted():
    data = bytes(4)
    detect_data_corruption(data, "test")
    assert len(data) == 4


def test_emg_signal_integrity():
    validate_emg_signal_integrity([0.001, -0.002, 0.0015, -0.0008, 0.0012], "test")

    with pytest.raises(DataCorruption) as info:
        validate_emg_signal_integrity([0.001, math.nan, 0.0015], "test")
    assert info.value.position == 1
    assert info.value.reason == "Non-finite sample value: NaN"

    with pytest.raises(DataCorruption) as info:
        validate_emg_signal_integrity([0.001, 15.0, 0.0015], "test")
    assert info.value.position == 1
    assert info.value.reason == "Sample value 15 exceeds reasonable EMG range"

    with pytest.raises(DataCorruption) as info:
        validate_emg_signal_integrity([0.001] * 20, "test")
    assert info.value.position == 0


def test_append_and_extract_checksum():
    data = bytearray(DATA)
    append_checksum(data, ChecksumType.SUM8)
    assert data == bytearray([0x01, 0x02, 0x03, 0x04, 0x0A])
    extract_and_verify_checksum(data, ChecksumType.SUM8, "test")
    assert data == bytearray(DATA)


@pytest.mark.parametrize("checksum_type", list(ChecksumType))
def test_append_extract_round_trip(checksum_type):
    data = bytearray(b"emg payload")
    append_checksum(data, checksum_type)
    assert len(data) == len(b"emg payload") + checksum_type.size_bytes()
    extract_and_verify_checksum(data, checksum_type, "test")
    assert bytes(data) == b"emg payload"


def test_extract_checksum_errors():
    with pytest.raises(InvalidLength):
        extract_and_verify_checksum(bytearray([0x01]), ChecksumType.CRC16, "t")
    with pytest.raises(CrcMismatch):
        extract_and_verify_checksum(bytearray([0x01, 0x02, 0x05]), ChecksumType.SUM8, "t")


def test_simple_hash():
    value = calculate_simple_hash(DATA)
    assert calculate_simple_hash(DATA) == value
    verify_simple_hash(DATA, value, "test")
    with pytest.raises(HashMismatch) as info:
        verify_simple_hash(DATA, value + 1, "test")
    assert info.value.algorithm == "FNV-1a"
    assert info.value.actual == f"0x{value:08X}"


def test_simple_hash_known_values():
    assert calculate_simple_hash(b"") == 0x811C9DC5
    assert calculate_simple_hash(b"a") == 0xE40C292C


def test_comprehensive_validation():
    header = bytes([0xAA, 0x55])
    data = bytes([0x12, 0x34, 0x56, 0x78])
    packet = header + data + bytes([calculate_checksum(data)])
    payload = comprehensive_packet_validation(packet, header, None, ChecksumType.SUM8, "test")
    assert payload == data


def test_comprehensive_validation_rejects_corrupt_payload():
    header = bytes([0xAA, 0x55])
    data = bytes(8)
    packet = header + data + bytes([0x00])
    with pytest.raises(DataCorruption):
        comprehensive_packet_validation(packet, header, None, ChecksumType.SUM8, "test")


def test_checksum_type_properties():
    assert ChecksumType.SUM8.size_bytes() == 1
    assert ChecksumType.CRC8.size_bytes() == 1
    assert ChecksumType.CRC16.size_bytes() == 2
    assert ChecksumType.CRC32.size_bytes() == 4


def test_error_messages():
    assert str(UnsupportedAlgorithm("md5")) == "Unsupported integrity algorithm: md5"
    assert str(InvalidLength(1, 2, "c")) == (
        "Invalid data length for integrity check in c: actual 1, expected 2"
    )
    assert DataCorruption(3, "r", "c") == DataCorruption(3, "r", "c")
    assert str(DataCorruption(3, "r", "c")) == "Data corruption at position 3 in c: r"