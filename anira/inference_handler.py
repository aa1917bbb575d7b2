"""The host-facing entry point for running a model on an audio stream."""

from __future__ import annotations

from typing import Any, MutableSequence, Optional, Sequence

from .backend import InferenceBackend
from .backend_base import BackendBase
from .context_config import ContextConfig
from .host_config import HostAudioConfig
from .inference_config import InferenceConfig
from .inference_manager import InferenceManager
from .pre_post_processor import PrePostProcessor


class InferenceHandler:
    """Runs a model on host audio blocks with a fixed, reported latency."""

    def __init__(
        self,
        pp_processor: PrePostProcessor,
        inference_config: InferenceConfig,
        custom_processor: Optional[BackendBase] = None,
        context_config: Optional[ContextConfig] = None,
    ) -> None:
        self._manager = InferenceManager(
            pp_processor, inference_config, custom_processor, context_config
        )

    @property
    def inference_manager(self) -> InferenceManager:
        return self._manager

    @property
    def inference_backend(self) -> InferenceBackend:
        return self._manager.backend

    @inference_backend.setter
    def inference_backend(self, backend: InferenceBackend) -> None:
        self._manager.backend = backend

    @property
    def latency(self) -> int:
        return self._manager.latency

    def prepare(self, host_config: HostAudioConfig) -> None:
        self._manager.prepare(host_config)

    def process(
        self,
        input_data: Sequence[MutableSequence[Any]],
        output_data: Optional[Sequence[MutableSequence[Any]]] = None,
        num_samples: Optional[int] = None,
    ) -> None:
        """Process one block, indexed as ``[channel][sample]``.

        Without ``output_data`` the result overwrites ``input_data``. Without
        ``num_samples`` the length of the first input channel is used.
        """
        if output_data is None:
            output_data = input_data
        if num_samples is None:
            num_samples = len(input_data[0])
        self._manager.process(input_data, output_data, num_samples)

    def exec_inference(self) -> None:
        self._manager.exec_inference()

    def close(self) -> None:
        self._manager.close()

    def __enter__(self) -> InferenceHandler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()