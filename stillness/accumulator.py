"""
Stillness - Daily accumulation

Keeps today's practice total and the last used session in a key-value
store, and commits each running session's time exactly once.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Callable

from .config import STORAGE_DATE_KEY, STORAGE_SESSION_KEY, STORAGE_TOTAL_KEY
from .storage import KeyValueStore

if TYPE_CHECKING:
    from .state import PracticeState

logger = logging.getLogger(__name__)


def today_key() -> str:
    """Local calendar day as YYYY-MM-DD"""
    return date.today().isoformat()


def _parse_int(value, default: int = 0) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class DailyAccumulator:
    """Practice seconds accumulated on one calendar day"""
    date: str
    total_seconds: int = 0

    def on(self, day: str) -> "DailyAccumulator":
        """This accumulator as seen on day: unchanged, or rolled over to zero"""
        if day == self.date:
            return self
        return DailyAccumulator(day, 0)

    def plus(self, seconds: int) -> "DailyAccumulator":
        return DailyAccumulator(self.date, max(0, self.total_seconds + int(seconds)))


class PracticeStore:
    """
    Typed access to the persisted practice values

    Never raises: an unavailable or failing store degrades to defaults
    (session 0, nothing accumulated) and failed writes are dropped.
    """

    def __init__(self, store: KeyValueStore, today: Callable[[], str] = today_key):
        self.store = store
        self.today = today

    def load_daily(self) -> DailyAccumulator:
        """Today's total; a stored total from another day is reset to 0"""
        day = self.today()
        try:
            stored_day = self.store.get(STORAGE_DATE_KEY)
            if stored_day != day:
                logger.debug("Day rolled over (%s -> %s)", stored_day, day)
                self.store.set(STORAGE_DATE_KEY, day)
                self.store.set(STORAGE_TOTAL_KEY, "0")
                return DailyAccumulator(day, 0)
            total = _parse_int(self.store.get(STORAGE_TOTAL_KEY) or "0")
            return DailyAccumulator(day, max(0, total))
        except Exception as e:
            logger.warning("Could not load daily total: %s", e)
            return DailyAccumulator(day, 0)

    def save_daily(self, daily: DailyAccumulator) -> bool:
        try:
            self.store.set(STORAGE_DATE_KEY, daily.date)
            self.store.set(STORAGE_TOTAL_KEY, str(max(0, int(daily.total_seconds))))
            return True
        except Exception as e:
            logger.warning("Could not save daily total: %s", e)
            return False

    def load_session_index(self, count: int) -> int:
        """Last used session, wrapped into range(count)"""
        if count <= 0:
            return 0
        try:
            raw = self.store.get(STORAGE_SESSION_KEY)
        except Exception as e:
            logger.warning("Could not load last session: %s", e)
            return 0
        return _parse_int(raw or "0") % count

    def save_session_index(self, index: int) -> bool:
        try:
            self.store.set(STORAGE_SESSION_KEY, str(int(index)))
            return True
        except Exception as e:
            logger.warning("Could not save last session: %s", e)
            return False


class AccumulationGuard:
    """
    Exactly-once commit of a running session's time

    Armed when a session starts. The first commit that finds the session
    expanded and running with time on the clock adds that time to today's
    total and disarms; every later trigger (collapse, background, exit)
    for the same session is a no-op.
    """

    def __init__(self, store: PracticeStore):
        self.store = store

    def arm(self, state: "PracticeState") -> None:
        state.accumulation_armed = True

    def commit(self, state: "PracticeState", reason: str = "unknown") -> int:
        """
        Commit the running session's time

        Returns:
            Seconds added to today's total (0 when nothing was committed)
        """
        if not state.accumulation_armed:
            return 0
        if not (state.expanded and state.running) or state.clock is None:
            return 0

        elapsed = state.clock.elapsed_session()
        if elapsed <= 0:
            return 0

        state.daily = state.daily.on(self.store.today()).plus(elapsed)
        state.accumulation_armed = False
        self.store.save_daily(state.daily)
        logger.info(
            "Committed %ds on %s (%s), today %ds",
            elapsed, reason, state.daily.date, state.daily.total_seconds,
        )
        return elapsed
