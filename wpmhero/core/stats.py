from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence


CHARACTERS_PER_WORD = 5
CONSISTENCY_WINDOWS = 12


@dataclass(frozen=True)
class KeypressEvent:
    """One character typed during a test (timestamp in monotonic milliseconds)."""

    key: str
    timestamp: int
    correct: bool

    def to_dict(self) -> dict:
        return {"key": self.key, "timestamp": self.timestamp, "correct": self.correct}


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Point-in-time typing statistics.

    Snapshots are derived data: any of them can be recomputed from the
    keypress log that produced it.
    """

    wpm: int = 0
    raw_wpm: int = 0
    accuracy: int = 100
    consistency: int = 100
    errors: int = 0
    characters_typed: int = 0
    timestamp: int = 0

    def to_dict(self) -> dict:
        return {
            "wpm": self.wpm,
            "rawWpm": self.raw_wpm,
            "accuracy": self.accuracy,
            "consistency": self.consistency,
            "errors": self.errors,
            "charactersTyped": self.characters_typed,
            "timestamp": self.timestamp,
        }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def _elapsed_seconds(start_ms: float, end_ms: float) -> float:
    """Elapsed span in seconds, floored at one second (also covers negative spans)."""
    return max(1.0, (end_ms - start_ms) / 1000.0)


def _raw_speed(characters: int, elapsed_seconds: float) -> int:
    return round_half_up((characters / CHARACTERS_PER_WORD) / (elapsed_seconds / 60.0))


def neutral_snapshot(timestamp: int = 0) -> StatisticsSnapshot:
    """Snapshot reported before any key has been typed."""
    return StatisticsSnapshot(timestamp=timestamp)


def _windows(events: Sequence[KeypressEvent]) -> list[Sequence[KeypressEvent]]:
    if len(events) < CONSISTENCY_WINDOWS:
        return [events[i:i + 1] for i in range(len(events))]
    size = len(events) // CONSISTENCY_WINDOWS
    windows = [events[i * size:(i + 1) * size] for i in range(CONSISTENCY_WINDOWS - 1)]
    # last window absorbs the remainder
    windows.append(events[(CONSISTENCY_WINDOWS - 1) * size:])
    return windows


def window_speeds(events: Sequence[KeypressEvent]) -> list[int]:
    """Raw WPM of each consistency window, in order."""
    speeds = []
    for window in _windows(events):
        elapsed = _elapsed_seconds(window[0].timestamp, window[-1].timestamp)
        speeds.append(_raw_speed(len(window), elapsed))
    return speeds


def consistency_score(events: Sequence[KeypressEvent]) -> int:
    """100 minus the mean absolute deviation of window speeds, clamped to 0..100.

    This is an approximation of steadiness, not a coefficient of variation:
    very erratic typing clips at 0.
    """
    speeds = window_speeds(events)
    if not speeds:
        return 100
    avg = sum(speeds) / len(speeds)
    deviation = sum(abs(speed - avg) for speed in speeds) / len(speeds)
    return _clamp(round_half_up(100 - deviation))


def compute_snapshot(
    events: Sequence[KeypressEvent],
    now: Optional[int] = None,
) -> StatisticsSnapshot:
    """Compute live statistics from the full keypress log.

    ``now`` (milliseconds, same clock as the events) extends the measured
    span past the last keypress so that speed decays while the typist is
    idle. Without it the span ends at the last keypress.
    """
    if not events:
        return neutral_snapshot(timestamp=now if now is not None else 0)

    characters_typed = len(events)
    correct = sum(1 for event in events if event.correct)
    errors = characters_typed - correct

    first = events[0].timestamp
    last = events[-1].timestamp
    end = max(last, now) if now is not None else last
    elapsed = _elapsed_seconds(first, end)

    raw_wpm = _raw_speed(characters_typed, elapsed)
    accuracy = _clamp(round_half_up(100 * correct / max(1, characters_typed)))
    wpm = round_half_up(raw_wpm * accuracy / 100)

    return StatisticsSnapshot(
        wpm=wpm,
        raw_wpm=raw_wpm,
        accuracy=accuracy,
        consistency=consistency_score(events),
        errors=errors,
        characters_typed=characters_typed,
        timestamp=now if now is not None else last,
    )
