"""Small helpers for filling buffers and summarising timings."""

from __future__ import annotations

import random
from typing import Sequence

from .audio_buffer import AudioBuffer
from .ring_buffer import RingBuffer


def random_sample() -> float:
    """Return a uniformly distributed sample in [-1, 1]."""
    return random.uniform(-1.0, 1.0)


def calculate_percentile(values: Sequence[float], percentile: float) -> float:
    """Return the sorted value at index ``int(percentile * (n - 1))``."""
    if not values:
        raise ValueError("input sequence is empty")
    ordered = sorted(values)
    return ordered[int(percentile * (len(ordered) - 1))]


def fill_buffer(buffer: AudioBuffer) -> None:
    """Fill the first channel of ``buffer`` with random samples."""
    channel = buffer.channel(0)
    for index in range(buffer.num_samples):
        channel[index] = random_sample()


def push_buffer_to_ringbuffer(buffer: AudioBuffer, ring_buffer: RingBuffer) -> None:
    """Push every sample of the first channel of ``buffer`` into ``ring_buffer``."""
    for sample in buffer.channel(0):
        ring_buffer.push_sample(0, float(sample))


def calculate_min(values: Sequence[float]) -> float:
    return min(values)


def calculate_max(values: Sequence[float]) -> float:
    return max(values)