"""Data models used by the UI."""

from __future__ import annotations

from dataclasses import dataclass

from wpmhero.core.session import SessionState


def format_seconds(seconds: float) -> str:
    """Format a second count as ``MM:SS``."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass
class StatsView:
    """Label text for the stats row, derived from one session state."""

    wpm: str
    raw_wpm: str
    accuracy: str
    consistency: str
    errors: str
    remaining: str
    elapsed: str
    progress: int

    @classmethod
    def from_state(cls, state: SessionState) -> "StatsView":
        snapshot = state.snapshot
        return cls(
            wpm=str(snapshot.wpm),
            raw_wpm=str(snapshot.raw_wpm),
            accuracy=f"{snapshot.accuracy}%",
            consistency=f"{snapshot.consistency}%",
            errors=str(state.total_incorrect),
            remaining=format_seconds(state.remaining_seconds),
            elapsed=format_seconds(state.elapsed_seconds),
            progress=state.progress,
        )
