"""
Stillness - Practice clock

Two elapsed-time sources share one wall clock:

- the session clock runs for the whole practice run and survives
  pattern switches
- the cycle clock drives the breath animation and restarts on every
  pattern switch

While the overlay is in the background both are frozen at a snapshot.
"""

import math
import time
from typing import Callable, Optional


class Clock:
    """
    Session and cycle clock with freeze/resume

    Usage:
        clock = Clock()
        clock.start()
        ...
        clock.freeze()            # plugin went to background
        clock.resume(cycle_len)   # back in foreground
    """

    def __init__(self, now: Callable[[], float] = time.time):
        """
        Args:
            now: Wall-clock source in seconds
        """
        self._now = now
        self._session_origin = now()
        self._cycle_origin = self._session_origin
        self._frozen_session: Optional[int] = None
        self._frozen_cycle: Optional[int] = None

    @property
    def is_frozen(self) -> bool:
        return self._frozen_session is not None

    @property
    def frozen_seconds(self) -> Optional[int]:
        """Session snapshot taken by freeze(), None while live"""
        return self._frozen_session

    def start(self) -> None:
        """Set both origins to now and drop any snapshot"""
        now = self._now()
        self._session_origin = now
        self._cycle_origin = now
        self._frozen_session = None
        self._frozen_cycle = None

    def restart_cycle(self) -> None:
        """Restart the cycle clock only; session time keeps running"""
        self._cycle_origin = self._now()
        if self.is_frozen:
            self._frozen_cycle = 0

    def freeze(self) -> None:
        """Snapshot both clocks. No-op when already frozen."""
        if self.is_frozen:
            return
        self._frozen_session = self.elapsed_session()
        self._frozen_cycle = self.elapsed_cycle()

    def resume(self, cycle_seconds: int = 0) -> None:
        """
        Continue from the snapshot. No-op when not frozen.

        Args:
            cycle_seconds: Length of the current breath cycle; the cycle
                clock resumes at the same point within its cycle
        """
        if not self.is_frozen:
            return
        now = self._now()
        self._session_origin = now - self._frozen_session
        cycle = self._frozen_cycle
        if cycle_seconds > 0:
            cycle = cycle % cycle_seconds
        self._cycle_origin = now - cycle
        self._frozen_session = None
        self._frozen_cycle = None

    def elapsed_session(self) -> int:
        """Whole seconds since the practice run began"""
        if self._frozen_session is not None:
            return self._frozen_session
        return self._whole_seconds_since(self._session_origin)

    def elapsed_cycle(self) -> int:
        """Whole seconds since the current breathing pattern began"""
        if self._frozen_cycle is not None:
            return self._frozen_cycle
        return self._whole_seconds_since(self._cycle_origin)

    def _whole_seconds_since(self, origin: float) -> int:
        return max(0, math.floor(self._now() - origin))
