"""Tests for the breath phase calculator and text helpers"""

import pytest

from stillness.breath import (
    GLYPH_ACTIVE,
    GLYPH_SEPARATOR,
    Phase,
    PhaseWhisper,
    breath_frame,
    breath_text,
    center,
    fmt_clock,
    neutral_glyphs,
    neutral_text,
    phase_at,
    phase_bounds,
)
from stillness.config import DEFAULT_SESSIONS, SessionConfig

DE_STRESS = SessionConfig("De-stress", 4, 1, 6)


class TestPhases:

    @pytest.mark.parametrize("session", DEFAULT_SESSIONS, ids=lambda s: s.name)
    def test_phase_lengths_cover_cycle(self, session):
        lengths = [phase_bounds(p, session)[1] for p in Phase]
        assert sum(lengths) == session.total

        counts = {p: 0 for p in Phase}
        for t in range(session.total * 3):
            counts[phase_at(t % session.total, session)] += 1
        assert counts[Phase.INHALE] == 3 * session.inhale
        assert counts[Phase.HOLD] == 3 * session.hold
        assert counts[Phase.EXHALE] == 3 * session.exhale

    def test_last_exhale_second(self):
        frame = breath_frame(10, DE_STRESS)
        assert frame.phase is Phase.EXHALE
        assert frame.phase_index == 5
        assert frame.phase_length == 6
        assert frame.cycle_index == 0
        assert frame.glyphs[-1] == GLYPH_ACTIVE

    def test_next_cycle_starts_with_inhale(self):
        frame = breath_frame(11, DE_STRESS)
        assert frame.cycle_index == 1
        assert frame.t_in_cycle == 0
        assert frame.phase is Phase.INHALE
        assert frame.phase_index == 0
        assert frame.glyphs == (GLYPH_ACTIVE, "▒", "▒", "▒")

    def test_only_active_phase_is_drawn(self):
        frame = breath_frame(4, DE_STRESS)
        assert frame.phase is Phase.HOLD
        assert frame.glyphs == (GLYPH_ACTIVE,)

    def test_skips_empty_hold(self):
        energize = SessionConfig("Energize", 2, 0, 2)
        assert breath_frame(1, energize).phase is Phase.INHALE
        assert breath_frame(2, energize).phase is Phase.EXHALE

    def test_negative_time_clamps_to_zero(self):
        assert breath_frame(-3, DE_STRESS).t_in_cycle == 0


class TestSessionConfig:

    def test_rejects_negative_phase(self):
        with pytest.raises(ValueError):
            SessionConfig("bad", 4, -1, 4)

    def test_rejects_empty_cycle(self):
        with pytest.raises(ValueError):
            SessionConfig("empty", 0, 0, 0)


class TestNeutral:

    def test_separators_frame_hold(self):
        glyphs = neutral_glyphs(SessionConfig("Stabilize", 4, 4, 4))
        assert glyphs.count(GLYPH_SEPARATOR) == 2
        assert glyphs.index(GLYPH_SEPARATOR) == 4
        assert len(glyphs) == 14

    def test_no_separators_without_hold(self):
        glyphs = neutral_glyphs(SessionConfig("Release", 3, 0, 5))
        assert GLYPH_SEPARATOR not in glyphs
        assert len(glyphs) == 8

    def test_neutral_text_has_no_active_marker(self):
        text = neutral_text(DE_STRESS)
        assert GLYPH_ACTIVE not in text
        assert len(text.splitlines()) == 2


class TestWhisper:

    def test_label_shown_after_phase_change_then_hidden(self):
        whisper = PhaseWhisper(cycles=5, duration=1.0)
        assert whisper.label(breath_frame(0, DE_STRESS), now=100.0) == "inhale"
        assert whisper.label(breath_frame(1, DE_STRESS), now=100.5) == "inhale"
        assert whisper.label(breath_frame(2, DE_STRESS), now=101.5) == ""
        assert whisper.label(breath_frame(4, DE_STRESS), now=103.0) == "hold"

    def test_no_label_after_whisper_cycles(self):
        whisper = PhaseWhisper(cycles=2, duration=1.0)
        assert whisper.label(breath_frame(22, DE_STRESS), now=0.0) == ""

    def test_reset_shows_label_again(self):
        whisper = PhaseWhisper(cycles=5, duration=1.0)
        whisper.label(breath_frame(0, DE_STRESS), now=0.0)
        assert whisper.label(breath_frame(1, DE_STRESS), now=5.0) == ""
        whisper.reset()
        assert whisper.label(breath_frame(1, DE_STRESS), now=5.0) == "inhale"

    def test_breath_text_lines(self):
        whisper = PhaseWhisper(cycles=5, duration=1.0)
        row, label = breath_text(0, DE_STRESS, whisper, now=0.0, cols=20).split("\n")
        assert row.strip() == "█ ▒ ▒ ▒"
        assert label.strip() == "inhale"


class TestFormatting:

    def test_center_pads_left(self):
        assert center("ab", 6) == "  ab"

    def test_center_clips(self):
        assert center("abcdef", 3) == "abc"

    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00"),
        (65, "01:05"),
        (3599, "59:59"),
        (3600, "01:00"),
        (5 * 3600 + 7 * 60, "05:07"),
    ])
    def test_clock(self, seconds, expected):
        assert fmt_clock(seconds) == expected
