"""Settings shared by every session of the scheduling context."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .backend import InferenceBackend

ANIRA_VERSION = "0.1.0"


def _default_num_threads() -> int:
    return max((os.cpu_count() or 1) // 2, 1)


def _default_backends() -> list[InferenceBackend]:
    return [backend for backend in InferenceBackend if backend is not InferenceBackend.CUSTOM]


@dataclass
class ContextConfig:
    """Thread count, host-thread use and the features the context was set up with."""

    num_threads: int = field(default_factory=_default_num_threads)
    use_host_threads: bool = False
    anira_version: str = ANIRA_VERSION
    enabled_backends: list[InferenceBackend] = field(default_factory=_default_backends)
    use_controlled_blocking: bool = False