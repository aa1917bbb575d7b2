import numpy as np

from anira.ring_buffer import RingBuffer


def make(num_channels=1, capacity=8):
    ring = RingBuffer()
    ring.initialize_with_positions(num_channels, capacity)
    return ring


def test_initialized_ring_is_empty():
    ring = make(2, 8)
    assert ring.get_available_samples(0) == 0
    assert ring.get_available_samples(1) == 0
    assert ring.num_samples == 8


def test_push_then_pop_is_first_in_first_out():
    ring = make()
    values = [0.5, -0.25, 1.0]
    for value in values:
        ring.push_sample(0, value)
    assert ring.get_available_samples(0) == len(values)
    assert [ring.pop_sample(0) for _ in values] == values
    assert ring.get_available_samples(0) == 0


def test_positions_wrap_around():
    capacity = 4
    ring = make(1, capacity)
    for value in (1.0, 2.0, 3.0):
        ring.push_sample(0, value)
    for _ in range(3):
        ring.pop_sample(0)
    second = [4.0, 5.0, 6.0]
    for value in second:
        ring.push_sample(0, value)
    assert ring.get_available_samples(0) == len(second)
    assert [ring.pop_sample(0) for _ in second] == second


def test_sample_from_tail_returns_already_popped_samples():
    ring = make()
    for value in (1.0, 2.0, 3.0, 4.0):
        ring.push_sample(0, value)
    ring.pop_sample(0)
    ring.pop_sample(0)
    assert ring.get_sample_from_tail(0, 1) == 2.0
    assert ring.get_sample_from_tail(0, 2) == 1.0


def test_sample_from_tail_wraps_below_zero():
    capacity = 4
    ring = make(1, capacity)
    values = [1.0, 2.0, 3.0, 4.0]
    for value in values:
        ring.push_sample(0, value)
    for _ in values:
        ring.pop_sample(0)
    assert ring.get_sample_from_tail(0, 1) == values[-1]


def test_channels_are_independent():
    ring = make(2, 8)
    ring.push_sample(0, 0.5)
    ring.push_sample(1, -0.5)
    ring.push_sample(1, 0.25)
    assert ring.get_available_samples(0) == 1
    assert ring.get_available_samples(1) == 2
    assert ring.pop_sample(1) == -0.5
    assert ring.pop_sample(0) == 0.5


def test_clear_with_positions_resets_everything():
    ring = make(1, 8)
    for value in (1.0, 2.0):
        ring.push_sample(0, value)
    ring.clear_with_positions()
    assert ring.get_available_samples(0) == 0
    assert np.all(ring.data == 0.0)