"""Per-session state: ring buffers, the queue of inference slots and processors."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from .audio_buffer import AudioBuffer
from .backend import InferenceBackend
from .backend_base import BackendBase
from .host_config import HostAudioConfig
from .inference_config import IndexAudioData, InferenceConfig
from .pre_post_processor import PrePostProcessor
from .ring_buffer import RingBuffer

_MAX_SECONDS = 20
_MAX_STRUCTS = 20


class ThreadSafeStruct:
    """One inference slot: the model input, the model output and its flags.

    ``in_use`` is held from the moment the slot is filled until its result has
    been collected. ``done`` is released by the worker once the output is ready.
    """

    def __init__(
        self,
        num_input_samples: int,
        num_output_samples: int,
        num_input_channels: int,
        num_output_channels: int,
    ) -> None:
        self.in_use = threading.Lock()
        self.done = threading.Semaphore(0)
        self.time_stamp = 0
        self.processed_model_input = AudioBuffer(num_input_channels, num_input_samples)
        self.raw_model_output = AudioBuffer(num_output_channels, num_output_samples)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(time_stamp={self.time_stamp}, "
            f"in_use={self.in_use.locked()})"
        )


class SessionElement:
    """Everything one host-side user of the scheduler owns.

    ``processors`` maps a model backend to the processor that runs it; a backend
    without an entry falls back to ``default_processor``. The CUSTOM backend
    always runs ``custom_processor``.
    """

    def __init__(
        self,
        session_id: int,
        pp_processor: PrePostProcessor,
        inference_config: InferenceConfig,
    ) -> None:
        self.session_id = session_id
        self.pp_processor = pp_processor
        self.inference_config = inference_config

        self.send_buffer = RingBuffer()
        self.receive_buffer = RingBuffer()
        self.inference_queue: list[ThreadSafeStruct] = []

        self.current_backend = InferenceBackend.CUSTOM
        self.current_queue = 0
        self.time_stamps: list[int] = []

        self.initialized = threading.Event()
        self.state_lock = threading.Lock()
        self.active_inferences = 0

        self.default_processor = BackendBase(inference_config)
        self.custom_processor: BackendBase = self.default_processor
        self.processors: dict[InferenceBackend, BackendBase] = {}

        self.host_config = HostAudioConfig()

    def clear(self) -> None:
        """Empty both ring buffers and drop every inference slot."""
        self.send_buffer.clear_with_positions()
        self.receive_buffer.clear_with_positions()
        self.time_stamps.clear()
        self.inference_queue.clear()

    def prepare(self, host_config: HostAudioConfig) -> None:
        """Size the ring buffers and create the inference slots for ``host_config``."""
        self.host_config = host_config
        config = self.inference_config
        channels_in = config.num_audio_channels[IndexAudioData.INPUT]
        channels_out = config.num_audio_channels[IndexAudioData.OUTPUT]
        capacity = int(host_config.host_sample_rate) * _MAX_SECONDS

        self.send_buffer.initialize_with_positions(channels_in, capacity)
        self.receive_buffer.initialize_with_positions(channels_out, capacity)

        audio_in = config.index_audio_data[IndexAudioData.INPUT]
        audio_out = config.index_audio_data[IndexAudioData.OUTPUT]
        num_input_samples = config.input_sizes[audio_in] // channels_in
        num_output_samples = config.output_sizes[audio_out] // channels_out

        self.inference_queue.extend(
            ThreadSafeStruct(num_input_samples, num_output_samples, channels_in, channels_out)
            for _ in range(_MAX_STRUCTS)
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session_id={self.session_id}, backend={self.current_backend})"


@dataclass(frozen=True)
class InferenceData:
    """A request for one inference: the session and the slot to process."""

    session: SessionElement
    thread_safe_struct: ThreadSafeStruct