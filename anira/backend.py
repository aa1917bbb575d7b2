"""The inference engines a session can run on."""

from __future__ import annotations

from enum import Enum


class InferenceBackend(Enum):
    """An inference engine; CUSTOM runs a user-supplied processor."""

    LIBTORCH = "libtorch"
    ONNX = "onnx"
    TFLITE = "tflite"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value