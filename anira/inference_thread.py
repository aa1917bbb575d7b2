"""Worker that takes inference requests off a shared queue and runs them."""

from __future__ import annotations

import logging
import queue
import time

from .audio_buffer import AudioBuffer
from .backend import InferenceBackend
from .high_priority_thread import HighPriorityThread
from .session import InferenceData, SessionElement, ThreadSafeStruct

logger = logging.getLogger(__name__)

_BACKOFF_ITERATIONS = (4, 32)
_IDLE_SLEEP_SECONDS = 100e-6


class InferenceThread(HighPriorityThread):
    """Runs requests from ``next_inference`` on the session's chosen processor."""

    def __init__(self, next_inference: "queue.Queue[InferenceData]") -> None:
        super().__init__()
        self._next_inference = next_inference

    def run(self) -> None:
        while not self.should_exit():
            self._exponential_backoff(_BACKOFF_ITERATIONS)

    def _exponential_backoff(self, iterations: tuple[int, int]) -> None:
        eager, yielding = iterations
        for _ in range(eager):
            if self.should_exit() or self.execute():
                return
        for _ in range(yielding):
            if self.should_exit() or self.execute():
                return
            time.sleep(0)
        while True:
            if self.should_exit() or self.execute():
                return
            time.sleep(_IDLE_SLEEP_SECONDS)

    def execute(self) -> bool:
        """Run one queued request; return whether there was one."""
        try:
            request = self._next_inference.get_nowait()
        except queue.Empty:
            return False
        if request.session.initialized.is_set():
            self._do_inference(request.session, request.thread_safe_struct)
        return True

    def _do_inference(self, session: SessionElement, slot: ThreadSafeStruct) -> None:
        with session.state_lock:
            session.active_inferences += 1
        try:
            self._inference(session, slot.processed_model_input, slot.raw_model_output)
        finally:
            slot.done.release()
            with session.state_lock:
                session.active_inferences -= 1

    @staticmethod
    def _inference(session: SessionElement, source: AudioBuffer, target: AudioBuffer) -> None:
        backend = session.current_backend
        if backend is InferenceBackend.CUSTOM:
            session.custom_processor.process(source, target, session)
            return
        processor = session.processors.get(backend)
        if processor is None:
            session.default_processor.process(source, target, session)
            logger.error("%s model has not been provided; using default processor", backend)
        else:
            processor.process(source, target, session)