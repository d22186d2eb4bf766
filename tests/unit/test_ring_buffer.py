"""Tests for synarb.core.ring_buffer.RingBuffer."""

import pytest

from synarb.core.ring_buffer import RingBuffer


class TestRingBuffer:
    """Circular buffer behaviour."""

    def test_keeps_insertion_order_until_full(self) -> None:
        buffer = RingBuffer[int](3)
        buffer.push(1)
        buffer.push(2)
        buffer.push(3)
        assert buffer.to_list() == [1, 2, 3]
        assert buffer.is_full is True

    def test_overwrites_oldest_when_full(self) -> None:
        buffer = RingBuffer[int](3)
        for value in (1, 2, 3, 4):
            buffer.push(value)
        assert buffer.to_list() == [2, 3, 4]
        assert len(buffer) == 3

    def test_wraps_many_times(self) -> None:
        buffer = RingBuffer[int](4)
        for value in range(103):
            buffer.push(value)
        assert buffer.to_list() == [99, 100, 101, 102]
        assert buffer.latest == 102

    def test_empty_buffer(self) -> None:
        buffer = RingBuffer[int](5)
        assert buffer.to_list() == []
        assert len(buffer) == 0
        assert buffer.latest is None
        assert buffer.is_full is False

    def test_length_never_exceeds_capacity(self) -> None:
        buffer = RingBuffer[float](10)
        for i in range(1, 50):
            buffer.push(float(i))
            assert len(buffer) == min(i, 10)
            assert len(buffer.to_list()) <= buffer.capacity

    def test_iteration_matches_to_list(self) -> None:
        buffer = RingBuffer[str](2)
        for value in "abc":
            buffer.push(value)
        assert list(buffer) == ["b", "c"]

    def test_clear(self) -> None:
        buffer = RingBuffer[int](2)
        buffer.push(1)
        buffer.push(2)
        buffer.clear()
        assert len(buffer) == 0
        buffer.push(7)
        assert buffer.to_list() == [7]

    def test_capacity_one(self) -> None:
        buffer = RingBuffer[int](1)
        buffer.push(1)
        buffer.push(2)
        assert buffer.to_list() == [2]

    @pytest.mark.parametrize("capacity", [0, -3])
    def test_invalid_capacity(self, capacity: int) -> None:
        with pytest.raises(ValueError):
            RingBuffer[int](capacity)
