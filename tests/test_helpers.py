import pytest

from anira.audio_buffer import AudioBuffer
from anira.helpers import (
    calculate_max,
    calculate_min,
    calculate_percentile,
    fill_buffer,
    push_buffer_to_ringbuffer,
    random_sample,
)
from anira.ring_buffer import RingBuffer


def test_random_sample_stays_in_range():
    samples = [random_sample() for _ in range(1000)]
    assert all(-1.0 <= sample <= 1.0 for sample in samples)
    assert len(set(samples)) > 1


def test_percentile_of_empty_input_raises():
    with pytest.raises(ValueError):
        calculate_percentile([], 0.5)


def test_percentile_extremes_are_min_and_max():
    values = [3.0, 1.0, 5.0, 2.0, 4.0]
    assert calculate_percentile(values, 0.0) == calculate_min(values)
    assert calculate_percentile(values, 1.0) == calculate_max(values)


def test_percentile_median_of_odd_length():
    assert calculate_percentile([5.0, 1.0, 3.0, 2.0, 4.0], 0.5) == 3.0


def test_percentile_does_not_reorder_input():
    values = [3.0, 1.0, 2.0]
    calculate_percentile(values, 0.5)
    assert values == [3.0, 1.0, 2.0]


def test_min_and_max():
    values = [0.5, -2.0, 7.0]
    assert calculate_min(values) == -2.0
    assert calculate_max(values) == 7.0


def test_min_of_empty_raises():
    with pytest.raises(ValueError):
        calculate_min([])


def test_fill_buffer_fills_first_channel_only():
    buffer = AudioBuffer(2, 64)
    fill_buffer(buffer)
    first = [buffer.get_sample(0, index) for index in range(64)]
    second = [buffer.get_sample(1, index) for index in range(64)]
    assert all(-1.0 <= value <= 1.0 for value in first)
    assert len(set(first)) > 1
    assert second == [0.0] * 64


def test_push_buffer_to_ringbuffer_preserves_order():
    buffer = AudioBuffer(1, 16)
    fill_buffer(buffer)
    ring = RingBuffer()
    ring.initialize_with_positions(1, 32)
    push_buffer_to_ringbuffer(buffer, ring)
    assert ring.get_available_samples(0) == buffer.num_samples
    popped = [ring.pop_sample(0) for _ in range(buffer.num_samples)]
    assert popped == [float(sample) for sample in buffer.channel(0)]