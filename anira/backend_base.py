"""The processor every session falls back to when no model backend runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .audio_buffer import AudioBuffer
from .inference_config import InferenceConfig

if TYPE_CHECKING:
    from .session import SessionElement


class BackendBase:
    """Base class of all processors; on its own it passes audio straight through.

    Subclasses override :meth:`process` to run a model, and :meth:`prepare` to
    reset state before playback starts.
    """

    def __init__(self, inference_config: InferenceConfig) -> None:
        self.inference_config = inference_config

    def prepare(self) -> None:
        """Reset any state before processing starts; the base keeps none."""

    def process(
        self,
        source: AudioBuffer,
        target: AudioBuffer,
        session: Optional[SessionElement] = None,
    ) -> None:
        """Copy ``source`` into ``target`` when their shapes match, else zero ``target``."""
        same_shape = (
            source.num_channels == target.num_channels
            and source.num_samples == target.num_samples
        )
        if same_shape:
            target.array[...] = source.array
        else:
            target.clear()