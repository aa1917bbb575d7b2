"""Audio settings supplied by the host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(eq=False)
class HostAudioConfig:
    """Host buffer size, sample rate and an optional task submitter.

    ``submit_task_to_host_thread`` takes a number of tasks and returns whether
    the host accepted them. It takes no part in comparisons.
    """

    host_buffer_size: int = 0
    host_sample_rate: float = 0.0
    submit_task_to_host_thread: Optional[Callable[[int], bool]] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HostAudioConfig):
            return NotImplemented
        return (
            self.host_buffer_size == other.host_buffer_size
            and abs(self.host_sample_rate - other.host_sample_rate) < 1e-6
        )

    __hash__ = None  # type: ignore[assignment]