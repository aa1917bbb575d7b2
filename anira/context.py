"""The process-wide scheduler that owns the worker pool and every session."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import replace
from typing import Optional

from .backend_base import BackendBase
from .context_config import ContextConfig
from .host_config import HostAudioConfig
from .inference_config import IndexAudioData, InferenceConfig
from .inference_thread import InferenceThread
from .pre_post_processor import PrePostProcessor
from .session import InferenceData, SessionElement, ThreadSafeStruct

logger = logging.getLogger(__name__)

_QUEUE_CAPACITY = 10000
_MAX_QUEUE_STAMP = 65535
_POLL_SECONDS = 50e-6


class Context:
    """Shared scheduler: one per process, obtained through :meth:`get_instance`.

    Sessions push audio into their send buffers; the context cuts it into
    inference requests, hands them to the worker pool (or to the host's
    threads) and collects the results into the sessions' receive buffers.
    """

    _instance: Optional[Context] = None
    _instance_lock = threading.Lock()

    def __init__(self, context_config: ContextConfig) -> None:
        self.config = replace(
            context_config, enabled_backends=list(context_config.enabled_backends)
        )
        self._next_inference: "queue.Queue[InferenceData]" = queue.Queue(maxsize=_QUEUE_CAPACITY)
        self._thread_pool: list[InferenceThread] = [
            InferenceThread(self._next_inference) for _ in range(self.config.num_threads)
        ]
        self._sessions: list[SessionElement] = []
        self._lock = threading.Lock()
        self._next_id = -1
        self._active_sessions = 0
        self._host_threads_active = False

    @classmethod
    def get_instance(cls, context_config: ContextConfig) -> Context:
        """Return the shared context, creating it from ``context_config`` if needed.

        An existing context keeps its settings, except that its thread pool is
        shrunk to a smaller requested size and host threads are switched off
        when the new config does not use them.
        """
        with cls._instance_lock:
            context = cls._instance
            if context is None:
                context = cls(context_config)
                cls._instance = context
                logger.info("anira version: %s", context.config.anira_version)
                return context
            if context.config.enabled_backends != context_config.enabled_backends:
                logger.error("context already initialized with different backends enabled")
            if context.config.use_controlled_blocking != context_config.use_controlled_blocking:
                logger.error("context already initialized with a different controlled blocking option")
            if len(context._thread_pool) > context_config.num_threads:
                context._new_num_threads(context_config.num_threads)
                context.config.num_threads = context_config.num_threads
            if not context_config.use_host_threads and context.config.use_host_threads:
                # Only switched on again once every session has been released.
                context.config.use_host_threads = False
            return context

    @classmethod
    def release_instance(cls) -> None:
        """Forget the shared context; the next :meth:`get_instance` creates a new one."""
        with cls._instance_lock:
            cls._instance = None

    @property
    def sessions(self) -> tuple[SessionElement, ...]:
        return tuple(self._sessions)

    @property
    def num_sessions(self) -> int:
        return self._active_sessions

    @property
    def num_threads(self) -> int:
        return len(self._thread_pool)

    def _available_session_id(self) -> int:
        with self._lock:
            self._next_id += 1
            self._active_sessions += 1
            return self._next_id

    def _new_num_threads(self, new_num_threads: int) -> None:
        current = len(self._thread_pool)
        if new_num_threads > current:
            self._thread_pool.extend(
                InferenceThread(self._next_inference) for _ in range(new_num_threads - current)
            )
        while len(self._thread_pool) > new_num_threads:
            self._thread_pool.pop().stop()

    def create_session(
        self,
        pp_processor: PrePostProcessor,
        inference_config: InferenceConfig,
        custom_processor: Optional[BackendBase] = None,
    ) -> SessionElement:
        """Register a new session and return it."""
        session_id = self._available_session_id()
        if inference_config.num_parallel_processors > len(self._thread_pool):
            logger.warning(
                "session %d requested more parallel processors than threads are available; "
                "using the number of threads instead",
                session_id,
            )
            inference_config.num_parallel_processors = len(self._thread_pool)

        session = SessionElement(session_id, pp_processor, inference_config)
        if custom_processor is not None:
            custom_processor.prepare()
            session.custom_processor = custom_processor

        self._sessions.append(session)
        return session

    def release_thread_pool(self) -> None:
        """Stop and drop every worker thread."""
        for thread in self._thread_pool:
            thread.stop()
        self._thread_pool.clear()

    def _wait_for_idle(self, session: SessionElement) -> None:
        while True:
            with session.state_lock:
                if session.active_inferences == 0:
                    return
            time.sleep(_POLL_SECONDS)

    def _drop_requests(self, session: SessionElement) -> None:
        kept: list[InferenceData] = []
        while True:
            try:
                request = self._next_inference.get_nowait()
            except queue.Empty:
                break
            if request.session is not session:
                kept.append(request)
        for request in kept:
            try:
                self._next_inference.put_nowait(request)
            except queue.Full:
                logger.error("could not requeue inference data")

    def _halt_session(self, session: SessionElement) -> None:
        session.initialized.clear()
        self._wait_for_idle(session)
        self._drop_requests(session)

    def release_session(self, session: SessionElement) -> None:
        """Remove ``session``; releasing the last one tears the context down."""
        self._halt_session(session)
        if session in self._sessions:
            self._sessions.remove(session)
        with self._lock:
            self._active_sessions -= 1
            last = self._active_sessions == 0
        if last:
            self.release_thread_pool()
            with Context._instance_lock:
                if Context._instance is self:
                    Context._instance = None

    def prepare(self, session: SessionElement, host_config: HostAudioConfig) -> None:
        """Reset ``session`` for ``host_config`` and make sure work can run."""
        self._halt_session(session)
        session.clear()
        session.prepare(host_config)

        if not host_config.submit_task_to_host_thread:
            self.config.use_host_threads = False

        self._start_thread_pool()
        session.initialized.set()
        self._host_threads_active = self.config.use_host_threads

    def _start_thread_pool(self) -> None:
        if self.config.use_host_threads:
            return
        for thread in self._thread_pool:
            if not thread.is_running():
                thread.start()
            while not thread.is_running():
                time.sleep(_POLL_SECONDS)

    def new_data_submitted(self, session: SessionElement) -> None:
        """Turn every full block in the send buffer into an inference request."""
        config = session.inference_config
        channels_in = config.num_audio_channels[IndexAudioData.INPUT]
        channels_out = config.num_audio_channels[IndexAudioData.OUTPUT]
        needed = config.output_sizes[config.index_audio_data[IndexAudioData.OUTPUT]] // channels_out
        if needed < 1:
            raise ValueError("the model's audio output holds no samples per channel")

        while session.send_buffer.get_available_samples(0) >= needed:
            success = self._pre_process(session)
            submit = session.host_config.submit_task_to_host_thread
            if success and submit is not None and self._host_threads_active:
                if not submit(1):
                    # The host's threads can no longer be relied on.
                    self.config.use_host_threads = False
                    self._start_thread_pool()
                    self._host_threads_active = False
            if not success:
                for channel in range(channels_in):
                    for _ in range(needed):
                        session.send_buffer.pop_sample(channel)
                for channel in range(channels_out):
                    for _ in range(needed):
                        session.receive_buffer.push_sample(channel, 0.0)

    def new_data_request(self, session: SessionElement, buffer_size_in_sec: float) -> None:
        """Collect finished inferences in order, stopping at the first unfinished one.

        With controlled blocking the wait for results lasts up to
        ``buffer_size_in_sec`` times the config's ``wait_in_process_block``.
        """
        blocking = self.config.use_controlled_blocking
        deadline = time.monotonic() + max(
            0.0, buffer_size_in_sec * session.inference_config.wait_in_process_block
        )
        while session.time_stamps:
            oldest = session.time_stamps[-1]
            slot = next(
                (
                    s
                    for s in session.inference_queue
                    if s.time_stamp == oldest and s.in_use.locked()
                ),
                None,
            )
            if slot is None:
                return
            if blocking:
                ready = slot.done.acquire(timeout=max(0.0, deadline - time.monotonic()))
            else:
                ready = slot.done.acquire(blocking=False)
            if not ready:
                return
            session.time_stamps.pop()
            self._post_process(session, slot)

    def exec_inference(self) -> None:
        """Run one queued inference on the calling host thread."""
        if not self._host_threads_active:
            raise RuntimeError("exec_inference is only supported when providing a host thread pool")
        if not self._thread_pool:
            raise RuntimeError("the context has no worker to run inferences with")
        worker = self._thread_pool[0]
        while not worker.execute():
            pass

    def _pre_process(self, session: SessionElement) -> bool:
        for slot in session.inference_queue:
            if not slot.in_use.acquire(blocking=False):
                continue
            session.pp_processor.pre_process(
                session.send_buffer, slot.processed_model_input, session.current_backend
            )
            session.time_stamps.insert(0, session.current_queue)
            slot.time_stamp = session.current_queue
            try:
                self._next_inference.put_nowait(InferenceData(session, slot))
            except queue.Full:
                logger.error("could not enqueue next inference")
                slot.in_use.release()
                session.time_stamps.pop(0)
                return False
            if session.current_queue >= _MAX_QUEUE_STAMP:
                session.current_queue = 0
            else:
                session.current_queue += 1
            return True
        logger.warning("no free inference slot found in session %d", session.session_id)
        return False

    @staticmethod
    def _post_process(session: SessionElement, slot: ThreadSafeStruct) -> None:
        session.pp_processor.post_process(
            slot.raw_model_output, session.receive_buffer, session.current_backend
        )
        slot.in_use.release()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(num_threads={self.num_threads}, "
            f"num_sessions={self.num_sessions})"
        )