"""Worker threads that try to run at real-time priority."""

from __future__ import annotations

import logging
import os
import sys
import threading
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)

# Audio servers commonly run at 55-60; staying below keeps them in front.
_REALTIME_PRIORITY = 50
_RAISED_NICE = -10


class HighPriorityThread(ABC):
    """A restartable thread whose body is :meth:`run`.

    :meth:`run` should return soon after :meth:`should_exit` turns true.
    """

    def __init__(self) -> None:
        self._thread: Optional[threading.Thread] = None
        self._should_exit = threading.Event()
        self._is_running = False

    def start(self) -> None:
        """Start the thread unless it is already started."""
        if self._thread is not None:
            return
        self._should_exit.clear()
        self._thread = threading.Thread(target=self._bootstrap, daemon=True)
        self._thread.start()
        self._is_running = True

    def stop(self) -> None:
        """Ask the thread to finish and wait for it."""
        self._should_exit.set()
        if self._thread is not None:
            if self._thread is not threading.current_thread():
                self._thread.join()
            self._thread = None
            self._is_running = False

    def _bootstrap(self) -> None:
        self.elevate_priority()
        self.run()

    @abstractmethod
    def run(self) -> None:
        """The thread's body."""

    @staticmethod
    def elevate_priority() -> bool:
        """Raise the calling thread's scheduling priority as far as allowed.

        Tries the FIFO real-time policy first, then a lower nice value on Linux.
        Returns whether either succeeded.
        """
        if hasattr(os, "sched_setscheduler") and hasattr(os, "SCHED_FIFO"):
            try:
                os.sched_setscheduler(0, os.SCHED_FIFO, os.sched_param(_REALTIME_PRIORITY))
                return True
            except OSError as error:
                logger.error(
                    "failed to set scheduling policy to SCHED_FIFO with priority %d: %s",
                    _REALTIME_PRIORITY,
                    error,
                )
                logger.warning(
                    "give rtprio privileges to the user by adding it to the realtime/audio "
                    "group, or run as root; trying a raised nice value instead"
                )
        if sys.platform.startswith("linux") and hasattr(os, "setpriority"):
            try:
                os.setpriority(os.PRIO_PROCESS, 0, _RAISED_NICE)
                return True
            except OSError as error:
                logger.error("failed to set raised nice value: %s", error)
                logger.warning(
                    "using default nice value: %d", os.getpriority(os.PRIO_PROCESS, 0)
                )
            return False
        logger.debug("no way to raise thread priority on %s", sys.platform)
        return False

    def should_exit(self) -> bool:
        return self._should_exit.is_set()

    def is_running(self) -> bool:
        return self._thread is not None and self._is_running