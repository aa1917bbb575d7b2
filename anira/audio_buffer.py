"""Multi-channel sample buffers backed by one contiguous block of memory."""

from __future__ import annotations

import numpy as np

_DTYPE = np.float32


class AudioBuffer:
    """A block of float samples laid out channel after channel.

    The samples of channel 0 come first, then those of channel 1, and so on,
    so :attr:`data` is a flat view of the whole buffer in that order.
    """

    def __init__(self, num_channels: int = 0, num_samples: int = 0) -> None:
        if num_channels < 0 or num_samples < 0:
            raise ValueError("channel and sample counts must not be negative")
        self._data = np.zeros((num_channels, num_samples), dtype=_DTYPE)

    @property
    def num_channels(self) -> int:
        return int(self._data.shape[0])

    @property
    def num_samples(self) -> int:
        return int(self._data.shape[1])

    @property
    def data(self) -> np.ndarray:
        """Flat, writable view of all samples, channel after channel."""
        return self._data.reshape(-1)

    @property
    def array(self) -> np.ndarray:
        """Writable two-dimensional view indexed as ``[channel, sample]``."""
        return self._data

    def resize(self, num_channels: int, num_samples: int) -> None:
        """Change the shape, keeping the leading part of the flat data."""
        if num_channels < 0 or num_samples < 0:
            raise ValueError("channel and sample counts must not be negative")
        flat = np.zeros(num_channels * num_samples, dtype=_DTYPE)
        old = self._data.reshape(-1)
        keep = min(old.size, flat.size)
        flat[:keep] = old[:keep]
        self._data = flat.reshape(num_channels, num_samples)

    def clear(self) -> None:
        """Set every sample to zero."""
        self._data.fill(0.0)

    def get_sample(self, channel: int, index: int) -> float:
        return float(self._data[channel, index])

    def set_sample(self, channel: int, index: int, value: float) -> None:
        self._data[channel, index] = value

    def channel(self, index: int) -> np.ndarray:
        """Writable view of one channel's samples."""
        return self._data[index]

    def swap_data(self, other: AudioBuffer | np.ndarray) -> None:
        """Exchange the sample data with another buffer or a flat array.

        Both sides must hold the same number of samples in total; for another
        buffer the shapes must match exactly.
        """
        if isinstance(other, AudioBuffer):
            if other is self:
                return
            if other._data.shape != self._data.shape:
                raise ValueError(
                    "cannot swap data: buffers have different channel counts or sizes"
                )
            self._data, other._data = other._data, self._data
            return
        if other.size != self._data.size:
            raise ValueError("cannot swap data: memory block has a different size")
        kept = self._data.copy()
        self._data[...] = np.asarray(other).reshape(self._data.shape)
        other[...] = kept.reshape(other.shape)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num_channels={self.num_channels}, num_samples={self.num_samples})"