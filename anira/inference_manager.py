"""Per-session audio routing between the host and the shared scheduler."""

from __future__ import annotations

import logging
import math
from typing import Any, MutableSequence, Optional, Sequence

import numpy as np

from .backend import InferenceBackend
from .backend_base import BackendBase
from .context import Context
from .context_config import ContextConfig
from .host_config import HostAudioConfig
from .inference_config import IndexAudioData, InferenceConfig
from .pre_post_processor import PrePostProcessor
from .session import SessionElement

logger = logging.getLogger(__name__)


def calculate_buffer_adaptation(host_buffer_size: int, num_output_samples: int) -> int:
    """Samples of delay needed to line host buffers up with model output blocks."""
    if host_buffer_size < 1 or num_output_samples < 1:
        raise ValueError("buffer sizes must be positive")
    period = math.lcm(host_buffer_size, num_output_samples)
    return max(
        (i % num_output_samples for i in range(host_buffer_size, period, host_buffer_size)),
        default=0,
    )


def max_num_inferences(host_buffer_size: int, num_output_samples: int) -> int:
    """Largest number of inferences a single host buffer can trigger (at least 1)."""
    if host_buffer_size < 1 or num_output_samples < 1:
        raise ValueError("buffer sizes must be positive")
    samples_in_buffer = host_buffer_size
    result = max(samples_in_buffer // num_output_samples, 1)
    period = math.lcm(host_buffer_size, num_output_samples)
    for _ in range(host_buffer_size, period, host_buffer_size):
        num_inferences = samples_in_buffer // num_output_samples
        result = max(result, num_inferences)
        samples_in_buffer += host_buffer_size - num_inferences * num_output_samples
    return result


class InferenceManager:
    """Feeds one session's audio to the scheduler and reads the results back."""

    def __init__(
        self,
        pp_processor: PrePostProcessor,
        inference_config: InferenceConfig,
        custom_processor: Optional[BackendBase] = None,
        context_config: Optional[ContextConfig] = None,
    ) -> None:
        if context_config is None:
            context_config = ContextConfig()
        self._context = Context.get_instance(context_config)
        self._session = self._context.create_session(
            pp_processor, inference_config, custom_processor
        )
        self._inference_config = inference_config
        self._spec = HostAudioConfig()
        self._init_samples = 0
        self._inference_counter = 0
        self._closed = False

    @property
    def context(self) -> Context:
        return self._context

    @property
    def session(self) -> SessionElement:
        return self._session

    @property
    def backend(self) -> InferenceBackend:
        return self._session.current_backend

    @backend.setter
    def backend(self, backend: InferenceBackend) -> None:
        self._session.current_backend = backend

    @property
    def latency(self) -> int:
        """Delay in samples between input and output, valid after :meth:`prepare`."""
        return self._init_samples

    @property
    def missing_blocks(self) -> int:
        return self._inference_counter

    @property
    def session_id(self) -> int:
        return self._session.session_id

    def prepare(self, host_config: HostAudioConfig) -> None:
        """Set up for the host's buffer size and sample rate and prime the latency."""
        if host_config.host_buffer_size < 1 or host_config.host_sample_rate <= 0:
            raise ValueError("host buffer size and sample rate must be positive")
        self._spec = host_config
        self._context.prepare(self._session, host_config)
        self._inference_counter = 0
        self._init_samples = self._calculate_latency()
        receive = self._session.receive_buffer
        for channel in range(self._inference_config.num_audio_channels[IndexAudioData.OUTPUT]):
            for _ in range(self._init_samples):
                receive.push_sample(channel, 0.0)

    def process(
        self,
        input_data: Sequence[Sequence[float]],
        output_data: Sequence[MutableSequence[Any]],
        num_samples: int,
    ) -> None:
        """Process one host block; both sides are indexed as ``[channel][sample]``."""
        self._process_input(input_data, num_samples)
        self._context.new_data_submitted(self._session)
        self._context.new_data_request(
            self._session, num_samples / self._spec.host_sample_rate
        )
        self._process_output(output_data, num_samples)

    def num_received_samples(self) -> int:
        """Collect finished inferences and return the samples ready for output."""
        self._context.new_data_request(self._session, 0.0)
        return self._session.receive_buffer.get_available_samples(0)

    def exec_inference(self) -> None:
        """Run one queued inference on the calling host thread."""
        self._context.exec_inference()

    def close(self) -> None:
        """Release the session from the scheduler; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._context.release_session(self._session)

    def __enter__(self) -> InferenceManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _process_input(self, input_data: Sequence[Sequence[float]], num_samples: int) -> None:
        send = self._session.send_buffer
        for channel in range(self._inference_config.num_audio_channels[IndexAudioData.INPUT]):
            samples = input_data[channel]
            for index in range(num_samples):
                send.push_sample(channel, float(samples[index]))

    def _process_output(self, output_data: Sequence[MutableSequence[Any]], num_samples: int) -> None:
        receive = self._session.receive_buffer
        channels = self._inference_config.num_audio_channels[IndexAudioData.OUTPUT]
        while self._inference_counter > 0:
            if receive.get_available_samples(0) < 2 * num_samples:
                break
            for channel in range(channels):
                for _ in range(num_samples):
                    receive.pop_sample(channel)
            self._inference_counter -= 1
            logger.warning("catch up samples in session %d", self._session.session_id)

        if receive.get_available_samples(0) >= num_samples:
            for channel in range(channels):
                target = output_data[channel]
                for index in range(num_samples):
                    target[index] = receive.pop_sample(channel)
        else:
            for channel in range(channels):
                target = output_data[channel]
                for index in range(num_samples):
                    target[index] = 0.0
            self._inference_counter += 1
            logger.warning("missing samples in session %d", self._session.session_id)

    def _calculate_latency(self) -> int:
        config = self._inference_config
        out_index = config.index_audio_data[IndexAudioData.OUTPUT]
        num_output_samples = (
            config.output_sizes[out_index] // config.num_audio_channels[IndexAudioData.OUTPUT]
        )
        buffer_size = self._spec.host_buffer_size
        f32 = np.float32
        host_buffer_time = f32(buffer_size) * f32(1000.0) / f32(self._spec.host_sample_rate)
        if self._context.config.use_controlled_blocking:
            wait_time = f32(config.wait_in_process_block) * host_buffer_time
        else:
            wait_time = f32(0.0)

        buffer_adaptation = calculate_buffer_adaptation(buffer_size, num_output_samples)
        inferences = max_num_inferences(buffer_size, num_output_samples)
        total_time = f32(inferences) * f32(config.max_inference_time) - wait_time
        num_buffers = int(math.ceil(total_time / host_buffer_time))
        inference_latency = num_buffers * buffer_size

        return buffer_adaptation + inference_latency + config.internal_latency

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session_id={self.session_id}, backend={self.backend})"