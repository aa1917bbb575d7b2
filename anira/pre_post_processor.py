"""Moves audio between the ring buffers and the model's input and output tensors."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .audio_buffer import AudioBuffer
from .backend import InferenceBackend
from .inference_config import IndexAudioData, InferenceConfig
from .ring_buffer import RingBuffer


class PrePostProcessor:
    """Default pre- and post-processing plus storage for non-audio tensors.

    Tensors other than the audio ones are kept here so the host can set model
    inputs and read model outputs that are not part of the audio stream.
    Subclasses override :meth:`pre_process` and :meth:`post_process`.
    """

    def __init__(self, inference_config: Optional[InferenceConfig] = None) -> None:
        self._inputs: list[np.ndarray] = []
        self._outputs: list[np.ndarray] = []
        self._index_audio_data: tuple[int, int] = (0, 0)
        if inference_config is None:
            return
        self._index_audio_data = tuple(inference_config.index_audio_data)  # type: ignore[assignment]
        audio_in = self._index_audio_data[IndexAudioData.INPUT]
        audio_out = self._index_audio_data[IndexAudioData.OUTPUT]
        self._inputs = [
            np.zeros(0 if i == audio_in else size, dtype=np.float32)
            for i, size in enumerate(inference_config.input_sizes)
        ]
        self._outputs = [
            np.zeros(0 if i == audio_out else size, dtype=np.float32)
            for i, size in enumerate(inference_config.output_sizes)
        ]

    def pre_process(self, source: RingBuffer, target: AudioBuffer, backend: InferenceBackend) -> None:
        """Fill the model input from the send buffer."""
        self.pop_samples_from_buffer(source, target)

    def post_process(self, source: AudioBuffer, target: RingBuffer, backend: InferenceBackend) -> None:
        """Move the model output into the receive buffer."""
        self.push_samples_to_buffer(source, target)

    def _check(self, store: list[np.ndarray], side: IndexAudioData, i: int, j: int) -> None:
        if not 0 <= i < len(store):
            raise IndexError("tensor index out of range")
        if i == self._index_audio_data[side]:
            raise ValueError("this tensor carries audio data, which passes through the process call")
        if not 0 <= j < store[i].size:
            raise IndexError("value index out of range")

    def set_input(self, value: float, i: int, j: int) -> None:
        self._check(self._inputs, IndexAudioData.INPUT, i, j)
        self._inputs[i][j] = value

    def set_output(self, value: float, i: int, j: int) -> None:
        self._check(self._outputs, IndexAudioData.OUTPUT, i, j)
        self._outputs[i][j] = value

    def get_input(self, i: int, j: int) -> float:
        self._check(self._inputs, IndexAudioData.INPUT, i, j)
        return float(self._inputs[i][j])

    def get_output(self, i: int, j: int) -> float:
        self._check(self._outputs, IndexAudioData.OUTPUT, i, j)
        return float(self._outputs[i][j])

    def pop_samples_from_buffer(
        self,
        source: RingBuffer,
        target: AudioBuffer,
        num_new_samples: Optional[int] = None,
        num_old_samples: int = 0,
        offset: int = 0,
    ) -> None:
        """Pop samples from ``source`` into ``target``.

        Without ``num_new_samples`` the whole of ``target`` is filled with newly
        popped samples. Otherwise a window of ``num_old_samples`` already-read
        samples followed by ``num_new_samples`` new ones is written to ``target``
        starting at ``offset``.
        """
        if num_new_samples is None:
            for channel in range(target.num_channels):
                row = target.channel(channel)
                for index in range(target.num_samples):
                    row[index] = source.pop_sample(channel)
            return

        total = num_new_samples + num_old_samples
        for channel in range(target.num_channels):
            row = target.channel(channel)
            for index in range(num_old_samples, total):
                row[index + offset] = source.pop_sample(channel)
            for index in range(num_old_samples - 1, -1, -1):
                row[index + offset] = source.get_sample_from_tail(channel, total - index)

    def push_samples_to_buffer(self, source: AudioBuffer, target: RingBuffer) -> None:
        """Push every sample of ``source`` into ``target``, channel by channel."""
        for channel in range(source.num_channels):
            for sample in source.channel(channel):
                target.push_sample(channel, float(sample))