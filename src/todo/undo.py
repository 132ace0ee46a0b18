"""Single-slot undo history."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .models import UndoAction

logger = logging.getLogger(__name__)

DEFAULT_UNDO_TIMEOUT = 10.0


class UndoLog:
    """Holds at most one pending UndoAction.

    Every record overwrites the slot and bumps ``generation``. Expiry is
    scheduled by the caller, which passes back the generation it armed for;
    a stale clear (slot already replaced or taken) is ignored. ``take`` is
    atomic, so an undo that already took the entry always completes even if
    the expiry fires right after.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_UNDO_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entry: Optional[UndoAction] = None
        self._recorded_at: Optional[float] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> Optional[UndoAction]:
        with self._lock:
            return self._entry

    def record(self, action: UndoAction) -> int:
        with self._lock:
            self._entry = action
            self._recorded_at = self._clock()
            self._generation += 1
            generation = self._generation
        logger.debug("Undo slot recorded %s (generation %d)", action.kind.value, generation)
        return generation

    def take(self) -> Optional[UndoAction]:
        with self._lock:
            entry = self._entry
            self._entry = None
            self._recorded_at = None
        return entry

    def clear(self, generation: Optional[int] = None) -> bool:
        """Drop the pending entry. Returns False when there was nothing to drop."""
        with self._lock:
            if self._entry is None:
                return False
            if generation is not None and generation != self._generation:
                return False
            self._entry = None
            self._recorded_at = None
        logger.debug("Undo slot cleared")
        return True

    def expires_in(self) -> Optional[float]:
        """Seconds until the soft expiry, or None when the slot is empty."""
        with self._lock:
            if self._entry is None or self._recorded_at is None:
                return None
            return max(self.timeout_seconds - (self._clock() - self._recorded_at), 0.0)

    def is_expired(self) -> bool:
        remaining = self.expires_in()
        return remaining is not None and remaining <= 0
