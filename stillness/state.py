"""
Stillness - Practice state

Everything the overlay knows lives in one PracticeState owned by the
engine; nothing is kept in module globals.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .accumulator import DailyAccumulator, today_key
from .breath import PhaseWhisper
from .clock import Clock
from .fade import HierarchyFade
from .registry import SessionRegistry


class Mode(str, Enum):
    COLLAPSED = "collapsed"
    RUNNING = "expanded-running"
    PAUSED = "expanded-paused"


@dataclass
class PracticeState:
    """
    Invariants:
        running implies expanded
        clock is set exactly while running
    """
    registry: SessionRegistry
    header_fade: HierarchyFade
    frame_fade: HierarchyFade
    whisper: PhaseWhisper = field(default_factory=PhaseWhisper)
    daily: DailyAccumulator = field(default_factory=lambda: DailyAccumulator(today_key(), 0))

    expanded: bool = False
    running: bool = False
    foreground: bool = True
    exiting: bool = False
    accumulation_armed: bool = False
    clock: Optional[Clock] = None

    # debug overlay
    debug_text: str = ""
    debug_until: float = 0.0

    @property
    def mode(self) -> Mode:
        if not self.expanded:
            return Mode.COLLAPSED
        if self.running and not self.foreground:
            return Mode.PAUSED
        return Mode.RUNNING

    @property
    def accumulated_seconds_today(self) -> int:
        return self.daily.total_seconds

    @property
    def active(self) -> bool:
        """Expanded, running and in the foreground"""
        return self.expanded and self.running and self.foreground

    def reset_hierarchy(self) -> None:
        """Phase label and both fades back to their starting point"""
        self.whisper.reset()
        self.header_fade.reset()
        self.frame_fade.reset()
