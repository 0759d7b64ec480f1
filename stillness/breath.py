"""
Stillness - Breath phase calculator

Pure functions turning elapsed cycle time into the breath row shown on
the glasses, plus the short-lived phase label ("whisper").
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .config import BREATH_COLS, SessionConfig


GLYPH_ACTIVE = "█"
GLYPH_SEPARATOR = "|"


class Phase(str, Enum):
    INHALE = "inhale"
    HOLD = "hold"
    EXHALE = "exhale"


PHASE_GLYPHS = {
    Phase.INHALE: "▒",
    Phase.HOLD: "▁",
    Phase.EXHALE: "□",
}


@dataclass(frozen=True)
class BreathFrame:
    """Where one moment falls within the breathing pattern"""
    phase: Phase
    phase_index: int      # offset from the start of the phase
    phase_length: int
    cycle_index: int      # completed cycles so far
    t_in_cycle: int
    glyphs: Tuple[str, ...]

    @property
    def row(self) -> str:
        """Glyph row, separated by single spaces"""
        return " ".join(self.glyphs)


def phase_at(t_in_cycle: int, session: SessionConfig) -> Phase:
    """Phase owning a second within the cycle"""
    if t_in_cycle < session.inhale:
        return Phase.INHALE
    if t_in_cycle < session.inhale + session.hold:
        return Phase.HOLD
    return Phase.EXHALE


def phase_bounds(phase: Phase, session: SessionConfig) -> Tuple[int, int]:
    """Start offset and length of a phase within the cycle"""
    if phase is Phase.INHALE:
        return 0, session.inhale
    if phase is Phase.HOLD:
        return session.inhale, session.hold
    return session.inhale + session.hold, session.exhale


def breath_frame(elapsed_cycle_seconds: int, session: SessionConfig) -> Optional[BreathFrame]:
    """
    Compute the breath display for a point in the cycle clock

    Only the active phase is drawn: one background glyph per second of
    the phase, with the current second marked by the active glyph.

    Args:
        elapsed_cycle_seconds: Whole seconds on the cycle clock
        session: Active breathing pattern

    Returns:
        BreathFrame, or None when the pattern has no length
    """
    total = session.total
    if total <= 0:
        return None

    elapsed = max(0, int(elapsed_cycle_seconds))
    t_in_cycle = elapsed % total
    cycle_index = elapsed // total

    phase = phase_at(t_in_cycle, session)
    start, length = phase_bounds(phase, session)
    phase_index = t_in_cycle - start

    background = PHASE_GLYPHS[phase]
    glyphs = tuple(
        GLYPH_ACTIVE if i == phase_index else background
        for i in range(length)
    )
    return BreathFrame(
        phase=phase,
        phase_index=phase_index,
        phase_length=length,
        cycle_index=cycle_index,
        t_in_cycle=t_in_cycle,
        glyphs=glyphs,
    )


def neutral_glyphs(session: SessionConfig) -> Tuple[str, ...]:
    """
    Whole cycle as background glyphs, used as a hand-off cue on switch

    The hold block is framed by separators; with no hold there is no
    block and no separators.
    """
    glyphs = []
    for i in range(session.total):
        glyphs.append(PHASE_GLYPHS[phase_at(i, session)])
        if session.hold > 0 and i in (session.inhale - 1, session.inhale + session.hold - 1):
            glyphs.append(GLYPH_SEPARATOR)
    return tuple(glyphs)


# -----------------------------------------------------------------------------
# Text helpers
# -----------------------------------------------------------------------------

def center(text: str, cols: int) -> str:
    """Left-pad text so it sits centered in cols columns (clipped to fit)"""
    text = str(text or "")
    if len(text) > cols:
        text = text[:cols]
    pad = max(0, (cols - len(text)) // 2)
    return " " * pad + text


def fmt_mmss(total_seconds: float) -> str:
    s = max(0, int(total_seconds))
    return f"{s // 60:02d}:{s % 60:02d}"


def fmt_hhmm(total_seconds: float) -> str:
    s = max(0, int(total_seconds)) % 86400
    return f"{s // 3600:02d}:{(s % 3600) // 60:02d}"


def fmt_clock(total_seconds: float) -> str:
    """MM:SS below one hour, HH:MM from then on"""
    if total_seconds < 3600:
        return fmt_mmss(total_seconds)
    return fmt_hhmm(total_seconds)


# -----------------------------------------------------------------------------
# Phase whisper
# -----------------------------------------------------------------------------

class PhaseWhisper:
    """
    Phase-name label shown briefly after each phase change

    Only the first few cycles of a run get labels. Visibility is worked
    out on every render from the render time; there is no timer.
    """

    def __init__(self, cycles: int = 5, duration: float = 0.98):
        self.cycles = cycles
        self.duration = duration
        self.reset()

    def reset(self) -> None:
        self._last_phase: Optional[Phase] = None
        self._word = ""
        self._hide_at = 0.0

    def label(self, frame: BreathFrame, now: float) -> str:
        """Label to show for this frame at time now ('' when hidden)"""
        if frame.cycle_index < self.cycles:
            if frame.phase is not self._last_phase:
                self._last_phase = frame.phase
                self._word = frame.phase.value
                self._hide_at = now + self.duration
        else:
            self._word = ""

        if self._word and now > self._hide_at:
            self._word = ""
        return self._word


def breath_text(
    elapsed_cycle_seconds: int,
    session: SessionConfig,
    whisper: Optional[PhaseWhisper] = None,
    now: float = 0.0,
    cols: int = BREATH_COLS,
) -> str:
    """Two-line breath region content: glyph row and phase label"""
    frame = breath_frame(elapsed_cycle_seconds, session)
    if frame is None:
        return ""
    word = whisper.label(frame, now) if whisper else ""
    label_line = center(word, cols) if word else " " * cols
    return f"{center(frame.row, cols)}\n{label_line}"


def neutral_text(session: SessionConfig, cols: int = BREATH_COLS) -> str:
    """Two-line breath region content for the switch hand-off"""
    if session.total <= 0:
        return ""
    return f"{center(' '.join(neutral_glyphs(session)), cols)}\n{' ' * cols}"
