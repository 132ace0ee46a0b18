"""
Undo expiry scheduler

Clears the undo slot once its window has passed. Each arm() call targets
one UndoLog generation; if another mutation or an undo replaced the entry
in the meantime, the expiry is a no-op.

Related classes:
  - src.todo.undo.UndoLog: the slot being expired
  - assistant.TaskAssistant: arms the timer after every undoable command
"""

import logging
import threading
from typing import Callable, Optional

from src.todo.undo import UndoLog


class UndoExpiryScheduler:
    """Background timer for the single undo slot"""

    def __init__(
        self,
        undo_log: UndoLog,
        on_expire: Optional[Callable[[int], None]] = None,
    ):
        """
        Args:
            undo_log: slot to expire
            on_expire: called with the generation after a successful expiry
        """
        self.undo_log = undo_log
        self.on_expire = on_expire
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._armed_generation: Optional[int] = None

    @property
    def armed_generation(self) -> Optional[int]:
        with self._lock:
            return self._armed_generation

    def arm(self, generation: Optional[int] = None, delay: Optional[float] = None) -> None:
        """Start (or restart) the countdown for the current undo entry."""
        if self.undo_log.pending is None:
            self.cancel()
            return
        generation = self.undo_log.generation if generation is None else generation
        delay = self.undo_log.timeout_seconds if delay is None else delay

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(delay, self._expire, args=(generation,))
            self._timer.daemon = True
            self._armed_generation = generation
            self._timer.start()
        self.logger.debug(f"Undo expiry armed for generation {generation} in {delay:.1f}s")

    def cancel(self) -> None:
        """Stop the countdown without touching the slot."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._armed_generation = None

    def _expire(self, generation: int) -> None:
        with self._lock:
            if self._armed_generation != generation:
                return
            self._timer = None
            self._armed_generation = None

        if not self.undo_log.clear(generation):
            self.logger.debug(f"Undo generation {generation} already gone")
            return
        self.logger.info(f"Undo window for generation {generation} expired")
        if self.on_expire is not None:
            try:
                self.on_expire(generation)
            except Exception as e:
                self.logger.error(f"Undo expiry callback failed: {e}", exc_info=True)
