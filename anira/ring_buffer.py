"""Per-channel circular sample buffer."""

from __future__ import annotations

from .audio_buffer import AudioBuffer


class RingBuffer(AudioBuffer):
    """An audio buffer used as a FIFO, with a read and write position per channel."""

    def __init__(self) -> None:
        super().__init__()
        self._read_pos: list[int] = []
        self._write_pos: list[int] = []

    def initialize_with_positions(self, num_channels: int, num_samples: int) -> None:
        """Resize to the given capacity and reset every position to zero."""
        self.resize(num_channels, num_samples)
        self._read_pos = [0] * num_channels
        self._write_pos = [0] * num_channels

    def clear_with_positions(self) -> None:
        """Zero all samples and reset every position."""
        self.clear()
        self._read_pos = [0] * len(self._read_pos)
        self._write_pos = [0] * len(self._write_pos)

    def push_sample(self, channel: int, sample: float) -> None:
        position = self._write_pos[channel]
        self.set_sample(channel, position, sample)
        self._write_pos[channel] = (position + 1) % self.num_samples

    def pop_sample(self, channel: int) -> float:
        position = self._read_pos[channel]
        sample = self.get_sample(channel, position)
        self._read_pos[channel] = (position + 1) % self.num_samples
        return sample

    def get_sample_from_tail(self, channel: int, offset: int) -> float:
        """Return the sample ``offset`` places behind the read position."""
        position = self._read_pos[channel] - offset
        if position < 0:
            position += self.num_samples
        return self.get_sample(channel, position)

    def get_available_samples(self, channel: int) -> int:
        read = self._read_pos[channel]
        write = self._write_pos[channel]
        if read <= write:
            return write - read
        return write + self.num_samples - read