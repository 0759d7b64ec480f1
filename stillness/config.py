"""
Stillness - Configuration

Layout constants, breathing sessions and timing knobs.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

logger = logging.getLogger(__name__)


# Canvas
CANVAS_W = 576
CANVAS_H = 288

# Collapsed card is right-anchored, expanded card fills the canvas
COLLAPSED_W = 352
EXPANDED_W = CANVAS_W
CARD_Y = 0
CARD_H = CANVAS_H

HUD_MARGIN_X = 16

# Header
HEADER_W = 410
HEADER_X = (CANVAS_W - HEADER_W) // 2
HEADER_Y = 90
HEADER_H = 50
HEADER_PAD = 8

# Breath (never bordered)
BREATH_X = HUD_MARGIN_X
BREATH_Y = 150
BREATH_W = CANVAS_W - HUD_MARGIN_X * 2
BREATH_H = 104
BREATH_PAD = 16

# Collapsed badge
BADGE_W = COLLAPSED_W - 220
BADGE_H = 92

# Debug overlay
DEBUG_W = 220
DEBUG_H = 50

# Region ids (unique per page) and names
LIST_ID = 1
FRAME_ID = 2
HEADER_ID = 3
BREATH_ID = 4
BADGE_ID = 5
DEBUG_ID = 6

LIST_NAME = "input"
FRAME_NAME = "frame"
HEADER_NAME = "header"
BREATH_NAME = "breath"
BADGE_NAME = "badge"
DEBUG_NAME = "debug"

# Border emphasis
COLOR_NONE = 0
COLOR_DIM = 1
COLOR_NORMAL = 2
BORDER_RADIUS = 6

# Typography estimate (monospace-ish)
CHAR_PX = 11
HEADER_COLS = HEADER_W // CHAR_PX
BREATH_COLS = BREATH_W // CHAR_PX
BADGE_COLS = BADGE_W // CHAR_PX

# Storage keys
STORAGE_TOTAL_KEY = "stillness.totalSeconds.today"
STORAGE_DATE_KEY = "stillness.date"
STORAGE_SESSION_KEY = "stillness.lastSessionIdx"

# Raw event codes reported by the device
EVT_CLICK = 0
EVT_SCROLL_BOTTOM = 1  # swipe down
EVT_SCROLL_TOP = 2  # swipe up
EVT_FOREGROUND_ENTER = 4
EVT_FOREGROUND_EXIT = 5
EVT_CLICK_ALT = 13  # tap as reported by some firmware


@dataclass(frozen=True)
class SessionConfig:
    """A breathing pattern, in whole seconds per phase"""
    name: str
    inhale: int
    hold: int
    exhale: int

    def __post_init__(self):
        if min(self.inhale, self.hold, self.exhale) < 0:
            raise ValueError(f"Session {self.name!r} has a negative phase")
        if self.total <= 0:
            raise ValueError(f"Session {self.name!r} has an empty cycle")

    @property
    def total(self) -> int:
        """Length of one inhale-hold-exhale cycle in seconds"""
        return self.inhale + self.hold + self.exhale

    @property
    def pattern(self) -> str:
        return f"{self.inhale}-{self.hold}-{self.exhale}"

    def __str__(self):
        return f"{self.name} ({self.pattern})"


DEFAULT_SESSIONS: Tuple[SessionConfig, ...] = (
    SessionConfig("De-stress", 4, 1, 6),
    SessionConfig("Stabilize", 4, 4, 4),
    SessionConfig("Energize", 2, 0, 2),
    SessionConfig("Release", 3, 0, 5),
    SessionConfig("Deep calm", 4, 7, 8),
)


@dataclass
class PracticeConfig:
    """
    Timing and threshold knobs for a practice run

    All durations are in seconds. Thresholds are counted in full breath
    cycles of the cycle clock.
    """
    tick_interval: float = 1.0
    fade_poll_interval: float = 0.06
    phase_label_duration: float = 0.98
    switch_settle_delay: float = 0.18

    header_fade_after_cycles: int = 2
    header_fade_dwell: float = 0.38
    frame_fade_after_cycles: int = 4
    frame_fade_dwell: float = 0.42

    header_hint_cycles: int = 2
    phase_whisper_cycles: int = 5

    tap_codes: FrozenSet[int] = field(
        default_factory=lambda: frozenset({EVT_CLICK, EVT_CLICK_ALT})
    )

    debug_input: bool = False
    debug_label_duration: float = 1.2

    def __post_init__(self):
        durations = (
            self.tick_interval,
            self.fade_poll_interval,
            self.phase_label_duration,
            self.switch_settle_delay,
            self.header_fade_dwell,
            self.frame_fade_dwell,
            self.debug_label_duration,
        )
        if any(d < 0 for d in durations):
            raise ValueError("Durations must not be negative")
        if self.header_fade_after_cycles < 0 or self.frame_fade_after_cycles < 0:
            raise ValueError("Fade thresholds must not be negative")
        if self.header_fade_after_cycles >= self.frame_fade_after_cycles:
            logger.warning(
                "Header fades at %d cycles, not before the frame at %d",
                self.header_fade_after_cycles,
                self.frame_fade_after_cycles,
            )
        self.tap_codes = frozenset(self.tap_codes)
