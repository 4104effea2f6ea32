import pytest

from emgcore.bounds import (
    BoundsChecker,
    BoundsError,
    BufferCapacityExceeded,
    IndexOutOfBounds,
    NumericOutOfBounds,
    OffsetOverflow,
    PacketSizeInvalid,
    SliceBoundsInvalid,
    check_array_bounds,
    check_buffer_capacity,
    check_numeric_range,
    check_slice_bounds,
    clamp_to_bounds,
    ensure_packet_size,
    extract_emg_channels,
    extract_packet_data,
    safe_array_get,
    safe_slice,
    validate_buffer_write,
    validate_fixed_array_size,
    validate_memory_alignment,
    validate_ring_buffer_bounds,
)

USIZE_MAX = 2**64 - 1


def test_bounds_checker():
    checker = BoundsChecker("test_context")
    assert checker.check_index(5, 10) is None
    with pytest.raises(IndexOutOfBounds) as info:
        checker.check_index(10, 10)
    assert info.value.context == "test_context"
    assert checker.check_slice(2, 8, 10) is None
    with pytest.raises(SliceBoundsInvalid) as info:
        checker.check_slice(8, 2, 10)
    assert info.value.context == "test_context: start > end"
    with pytest.raises(SliceBoundsInvalid) as info:
        checker.check_slice(2, 15, 10)
    assert info.value.context == "test_context"


def test_checker_strict_returns_copy():
    checker = BoundsChecker("ctx")
    strict = checker.strict()
    assert strict.strict_mode is True
    assert checker.strict_mode is False
    assert strict.context == "ctx"


def test_checker_capacity_and_packet_size():
    checker = BoundsChecker("c")
    checker.check_capacity(4, 4)
    with pytest.raises(BufferCapacityExceeded) as info:
        checker.check_capacity(5, 4)
    assert (info.value.required, info.value.available) == (5, 4)
    with pytest.raises(PacketSizeInvalid):
        checker.check_packet_size(3, 4)
    with pytest.raises(PacketSizeInvalid) as info:
        checker.check_min_packet_size(3, 4)
    assert info.value.context == "c: minimum size check"
    assert checker.check_min_packet_size(5, 4) is None


def test_checker_numeric_and_offset():
    checker = BoundsChecker("c")
    with pytest.raises(NumericOutOfBounds) as info:
        checker.check_numeric_range(1.5, 0.0, 1.0)
    assert info.value.value == "1.5"
    assert checker.check_offset(10, 5) == 15
    with pytest.raises(OffsetOverflow):
        checker.check_offset(USIZE_MAX, 1)


def test_array_bounds_checking():
    array = [1, 2, 3, 4, 5]
    assert check_array_bounds(array, 2, "test") is None
    with pytest.raises(IndexOutOfBounds):
        check_array_bounds(array, 5, "test")
    with pytest.raises(IndexOutOfBounds):
        check_array_bounds(array, 10, "test")


def test_slice_bounds_checking():
    array = [1, 2, 3, 4, 5]
    assert check_slice_bounds(array, 1, 4, "test") is None
    with pytest.raises(SliceBoundsInvalid):
        check_slice_bounds(array, 4, 1, "test")
    with pytest.raises(SliceBoundsInvalid):
        check_slice_bounds(array, 1, 10, "test")


def test_safe_array_access():
    array = [10, 20, 30, 40, 50]
    assert safe_array_get(array, 2, "test") == 30
    with pytest.raises(IndexOutOfBounds):
        safe_array_get(array, 5, "test")


def test_safe_slice_creation():
    array = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    assert safe_slice(array, 2, 6, "test") == [3, 4, 5, 6]
    with pytest.raises(SliceBoundsInvalid):
        safe_slice(array, 6, 2, "test")
    with pytest.raises(SliceBoundsInvalid):
        safe_slice(array, 2, 15, "test")


def test_packet_data_extraction():
    packet = bytes([0xAA, 0x55, 0x01, 0x02, 0x03, 0x04, 0x05, 0x06])
    assert extract_packet_data(packet, 2, 4, "test") == bytes([0x01, 0x02, 0x03, 0x04])
    with pytest.raises(PacketSizeInvalid):
        extract_packet_data(packet, 2, 10, "test")
    with pytest.raises(OffsetOverflow) as info:
        extract_packet_data(packet, USIZE_MAX, 1, "test")
    assert info.value.context == "test: data offset calculation"


def test_emg_channel_extraction():
    packet = bytes([0xAA, 0x55, 0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08])
    channels = extract_emg_channels(packet, 2, 4, 2, "test")
    assert channels == bytes([0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08])
    with pytest.raises(BoundsError):
        extract_emg_channels(packet, 2, 8, 2, "test")


def test_buffer_write_validation():
    buffer = bytes(10)
    assert validate_buffer_write(buffer, 2, 4, "test") is None
    with pytest.raises(BufferCapacityExceeded) as info:
        validate_buffer_write(buffer, 8, 5, "test")
    assert info.value.required == 13
    with pytest.raises(OffsetOverflow):
        validate_buffer_write(buffer, USIZE_MAX, 1, "test")


def test_ring_buffer_bounds():
    assert validate_ring_buffer_bounds(1024, 100, 200, "push", "test") is None
    with pytest.raises(NumericOutOfBounds) as info:
        validate_ring_buffer_bounds(1000, 100, 200, "push", "test")
    assert info.value.min == "power_of_2"
    with pytest.raises(NumericOutOfBounds) as info:
        validate_ring_buffer_bounds(1024, 3000, 200, "push", "test")
    assert info.value.context == "test: head index in push"


def test_clamp_to_bounds():
    assert clamp_to_bounds(5, 1, 10) == 5
    assert clamp_to_bounds(-5, 1, 10) == 1
    assert clamp_to_bounds(15, 1, 10) == 10


def test_fixed_array_size_validation():
    array = [1, 2, 3, 4, 5]
    assert validate_fixed_array_size(array, 5, "test") is None
    with pytest.raises(PacketSizeInvalid):
        validate_fixed_array_size(array, 3, "test")
    with pytest.raises(PacketSizeInvalid):
        validate_fixed_array_size(array, 8, "test")


def test_error_display():
    error = IndexOutOfBounds(10, 5, "test_context")
    display = str(error)
    assert "10" in display
    assert "5" in display
    assert "test_context" in display
    assert display == "Index 10 out of bounds for length 5 in test_context"


def test_error_equality():
    assert IndexOutOfBounds(1, 2, "a") == IndexOutOfBounds(1, 2, "a")
    assert not (IndexOutOfBounds(1, 2, "a") == IndexOutOfBounds(1, 3, "a"))


def test_numeric_range_checking():
    assert check_numeric_range(5, 1, 10, "test") is None
    with pytest.raises(NumericOutOfBounds):
        check_numeric_range(0, 1, 10, "test")
    with pytest.raises(NumericOutOfBounds) as info:
        check_numeric_range(15, 1, 10, "test")
    assert str(info.value) == "Numeric value 15 out of bounds [1, 10] in test"


def test_buffer_capacity_checking():
    assert check_buffer_capacity(100, 1024, "test") is None
    with pytest.raises(BufferCapacityExceeded):
        check_buffer_capacity(2048, 1024, "test")


def test_packet_size_checking():
    packet = bytes(10)
    assert ensure_packet_size(packet, 8, "test") is None
    with pytest.raises(PacketSizeInvalid) as info:
        ensure_packet_size(packet, 15, "test")
    assert (info.value.actual, info.value.expected) == (10, 15)


def test_memory_alignment():
    assert validate_memory_alignment(0x1000, 16, "test") is None
    with pytest.raises(NumericOutOfBounds) as info:
        validate_memory_alignment(0x1003, 4, "test")
    assert info.value.value == "0x1003"
    assert info.value.min == "aligned_to_4"
    assert info.value.context == "test: memory alignment"