"""Tests for wpmhero.ui.models – StatsView and time formatting."""

from __future__ import annotations

import pytest

from wpmhero.core.session import input_character, new_session, start, tick
from wpmhero.ui.models import StatsView, format_seconds


# ===========================================================================
# format_seconds
# ===========================================================================

class TestFormatSeconds:
    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0, "00:00"),
            (9, "00:09"),
            (60, "01:00"),
            (75, "01:15"),
            (3600, "60:00"),
            (59.9, "00:59"),
        ],
    )
    def test_formats(self, seconds, expected):
        assert format_seconds(seconds) == expected

    def test_negative_clamped(self):
        assert format_seconds(-4) == "00:00"


# ===========================================================================
# StatsView
# ===========================================================================

class TestStatsView:
    def test_idle_session(self):
        view = StatsView.from_state(new_session(["cat"], duration=30))
        assert view.wpm == "0"
        assert view.raw_wpm == "0"
        assert view.accuracy == "100%"
        assert view.consistency == "100%"
        assert view.errors == "0"
        assert view.remaining == "00:30"
        assert view.elapsed == "00:00"
        assert view.progress == 0

    def test_running_session(self):
        s = start(new_session(["cat"], duration=60))
        s = input_character(s, "c", 1000)
        s = input_character(s, "x", 1100)
        s = tick(s)
        view = StatsView.from_state(s)
        assert view.accuracy == "50%"
        assert view.errors == "1"
        assert view.remaining == "00:59"
        assert view.elapsed == "00:01"
        assert view.progress == 33

    def test_mutable(self):
        view = StatsView.from_state(new_session())
        view.wpm = "42"
        assert view.wpm == "42"
