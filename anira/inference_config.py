"""Model locations, tensor shapes and timing settings for one model."""

from __future__ import annotations

import copy
import math
import os
import warnings
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Sequence, Union

from .backend import InferenceBackend

TensorShapeList = list[list[int]]


class IndexAudioData(IntEnum):
    """Selects the input or output side of a pair of settings."""

    INPUT = 0
    OUTPUT = 1


def _default_parallel_processors() -> int:
    return max((os.cpu_count() or 1) // 2, 1)


def _normalise_shape(shape: Sequence[Sequence[int]]) -> TensorShapeList:
    return [[int(dim) for dim in tensor] for tensor in shape]


@dataclass
class ModelData:
    """A model for one backend, given as a file path or as binary contents.

    Without an explicit ``is_binary``, bytes count as binary model contents
    and a string as a path.
    """

    data: Union[str, bytes]
    backend: InferenceBackend
    is_binary: Optional[bool] = None

    def __post_init__(self) -> None:
        if isinstance(self.data, bytearray):
            self.data = bytes(self.data)
        if not isinstance(self.data, (str, bytes)):
            raise TypeError("model data must be a path string or bytes")
        if self.is_binary is None:
            self.is_binary = isinstance(self.data, bytes)

    @property
    def size(self) -> int:
        """Length of the data in bytes."""
        if isinstance(self.data, str):
            return len(self.data.encode("utf-8"))
        return len(self.data)


@dataclass
class TensorShape:
    """Input and output tensor shapes, for one backend or, without one, for all."""

    input_shape: TensorShapeList
    output_shape: TensorShapeList
    backend: Optional[InferenceBackend] = None
    universal: bool = field(init=False, compare=False)

    def __post_init__(self) -> None:
        self.input_shape = _normalise_shape(self.input_shape)
        self.output_shape = _normalise_shape(self.output_shape)
        if not self.input_shape:
            raise ValueError("at least one input shape must be provided")
        if not self.output_shape:
            raise ValueError("at least one output shape must be provided")
        self.universal = self.backend is None


class InferenceConfig:
    """Everything the scheduler needs to know about running one model."""

    def __init__(
        self,
        model_data: Sequence[ModelData],
        tensor_shape: Sequence[TensorShape],
        max_inference_time: float,
        internal_latency: int = 0,
        warm_up: int = 0,
        index_audio_data: Sequence[int] = (0, 0),
        num_audio_channels: Sequence[int] = (1, 1),
        session_exclusive_processor: bool = False,
        num_parallel_processors: Optional[int] = None,
        wait_in_process_block: float = 0.0,
    ) -> None:
        """Create a config; ``max_inference_time`` is in milliseconds per inference."""
        self.model_data: list[ModelData] = [copy.copy(model) for model in model_data]
        self.tensor_shapes: list[TensorShape] = [copy.deepcopy(s) for s in tensor_shape]
        if not self.tensor_shapes:
            raise ValueError("at least one tensor shape must be provided")
        self.max_inference_time = float(max_inference_time)
        self.internal_latency = int(internal_latency)
        self.warm_up = int(warm_up)
        self.index_audio_data = tuple(int(i) for i in index_audio_data)
        self.num_audio_channels = tuple(int(n) for n in num_audio_channels)
        if len(self.index_audio_data) != 2 or len(self.num_audio_channels) != 2:
            raise ValueError("audio index and channel settings need an input and an output value")
        self.session_exclusive_processor = bool(session_exclusive_processor)
        if num_parallel_processors is None:
            num_parallel_processors = _default_parallel_processors()
        self.num_parallel_processors = int(num_parallel_processors)
        self.wait_in_process_block = float(wait_in_process_block)

        for model in self.model_data:
            self._ensure_shape_for(model.backend)

        first = self.tensor_shapes[0]
        self.input_sizes: list[int] = [math.prod(tensor) for tensor in first.input_shape]
        self.output_sizes: list[int] = [math.prod(tensor) for tensor in first.output_shape]

        if self.session_exclusive_processor:
            self.num_parallel_processors = 1
        if self.num_parallel_processors < 1:
            self.num_parallel_processors = 1
            warnings.warn(
                "number of parallel processors must be at least 1; setting to 1",
                RuntimeWarning,
                stacklevel=2,
            )

    def _ensure_shape_for(self, backend: InferenceBackend) -> None:
        if any(not s.universal and s.backend == backend for s in self.tensor_shapes):
            return
        universal = next((s for s in self.tensor_shapes if s.universal), None)
        if universal is None:
            raise ValueError(f"no tensor shape provided for the {backend} model")
        specific = copy.deepcopy(universal)
        specific.backend = backend
        self.tensor_shapes.append(specific)

    def _model_for(self, backend: InferenceBackend) -> Optional[ModelData]:
        return next((m for m in self.model_data if m.backend == backend), None)

    def _shape_for(self, backend: InferenceBackend) -> TensorShape:
        for shape in self.tensor_shapes:
            if shape.backend == backend:
                return shape
        raise LookupError(f"no tensor shape found for backend {backend}")

    def get_model_path(self, backend: InferenceBackend) -> str:
        """Return the model's path (or its contents as text) for ``backend``."""
        model = self._model_for(backend)
        if model is None:
            raise LookupError(f"no model found for backend {backend}")
        if isinstance(model.data, str):
            return model.data
        return model.data.decode("utf-8", errors="surrogateescape")

    def get_model_data(self, backend: InferenceBackend) -> Optional[ModelData]:
        return self._model_for(backend)

    def is_model_binary(self, backend: InferenceBackend) -> bool:
        model = self._model_for(backend)
        return bool(model.is_binary) if model is not None else False

    def get_input_shape(self, backend: Optional[InferenceBackend] = None) -> TensorShapeList:
        """Input shapes for ``backend``, or the universal ones when none is given."""
        if backend is None:
            shape = next((s for s in self.tensor_shapes if s.universal), self.tensor_shapes[0])
        else:
            shape = self._shape_for(backend)
        return copy.deepcopy(shape.input_shape)

    def get_output_shape(self, backend: Optional[InferenceBackend] = None) -> TensorShapeList:
        """Output shapes for ``backend``, or the universal ones when none is given."""
        if backend is None:
            shape = next((s for s in self.tensor_shapes if s.universal), self.tensor_shapes[0])
        else:
            shape = self._shape_for(backend)
        return copy.deepcopy(shape.output_shape)

    def set_model_path(self, model_path: str, backend: InferenceBackend) -> None:
        """Point the backend's model at a new path; binary models are left as they are."""
        model = self._model_for(backend)
        if model is None:
            raise LookupError(f"no model found for backend {backend}")
        if not model.is_binary:
            model.data = model_path

    def set_input_shape(self, input_shape: Sequence[Sequence[int]], backend: InferenceBackend) -> None:
        self._shape_for(backend).input_shape = _normalise_shape(input_shape)

    def set_output_shape(self, output_shape: Sequence[Sequence[int]], backend: InferenceBackend) -> None:
        self._shape_for(backend).output_shape = _normalise_shape(output_shape)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InferenceConfig):
            return NotImplemented
        return (
            self.model_data == other.model_data
            and self.tensor_shapes == other.tensor_shapes
            and abs(self.max_inference_time - other.max_inference_time) < 1e-6
            and self.internal_latency == other.internal_latency
            and self.warm_up == other.warm_up
            and self.index_audio_data == other.index_audio_data
            and self.num_audio_channels == other.num_audio_channels
            and self.session_exclusive_processor == other.session_exclusive_processor
            and self.num_parallel_processors == other.num_parallel_processors
            and abs(self.wait_in_process_block - other.wait_in_process_block) < 1e-6
            and self.input_sizes == other.input_sizes
            and self.output_sizes == other.output_sizes
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        backends = ", ".join(str(m.backend) for m in self.model_data)
        return (
            f"{type(self).__name__}(backends=[{backends}], "
            f"input_sizes={self.input_sizes}, output_sizes={self.output_sizes})"
        )