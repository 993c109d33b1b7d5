from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from wpmhero.core.session import SessionState
from wpmhero.core.stats import KeypressEvent, StatisticsSnapshot

logger = logging.getLogger(__name__)

MAX_SAMPLES = 5000
LEADERBOARD_SIZE = 25


class ResultValidationError(ValueError):
    """A completed-test payload failed validation."""


@dataclass(frozen=True)
class Identity:
    user_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class SessionResult:
    """Everything handed to persistence once a test completes."""

    wpm: int
    raw_wpm: int
    accuracy: int
    consistency: int
    duration_seconds: int
    characters_typed: int
    characters_correct: int
    characters_incorrect: int
    error_count: int
    text_length: int
    keypresses: tuple[KeypressEvent, ...] = ()
    snapshots: tuple[StatisticsSnapshot, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wpm": self.wpm,
            "rawWpm": self.raw_wpm,
            "accuracy": self.accuracy,
            "consistency": self.consistency,
            "duration": self.duration_seconds,
            "charactersTyped": self.characters_typed,
            "charactersCorrect": self.characters_correct,
            "charactersIncorrect": self.characters_incorrect,
            "errors": self.error_count,
            "textLength": self.text_length,
            "keypresses": [k.to_dict() for k in self.keypresses],
            "snapshots": [s.to_dict() for s in self.snapshots],
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    name: str
    wpm: int
    recorded_at: int


def build_result(state: SessionState) -> SessionResult:
    """Collect the completion payload from a finished session."""
    snapshot = state.snapshot
    return SessionResult(
        wpm=snapshot.wpm,
        raw_wpm=snapshot.raw_wpm,
        accuracy=snapshot.accuracy,
        consistency=snapshot.consistency,
        duration_seconds=state.duration,
        characters_typed=len(state.keypresses),
        characters_correct=state.total_correct,
        characters_incorrect=state.total_incorrect,
        error_count=state.total_incorrect,
        text_length=state.text_length,
        keypresses=state.keypresses,
        snapshots=state.snapshots,
    )


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ResultValidationError(message)


def validate_result(payload: Dict[str, Any]) -> None:
    """Check a serialized result; raises ResultValidationError on the first problem."""
    for key in (
        "wpm",
        "rawWpm",
        "charactersTyped",
        "charactersCorrect",
        "charactersIncorrect",
        "errors",
        "textLength",
    ):
        value = payload.get(key)
        _require(isinstance(value, (int, float)) and not isinstance(value, bool), f"{key} must be a number")
        _require(value >= 0, f"{key} must not be negative")
    for key in ("accuracy", "consistency"):
        value = payload.get(key)
        _require(isinstance(value, (int, float)) and not isinstance(value, bool), f"{key} must be a number")
        _require(0 <= value <= 100, f"{key} must be between 0 and 100")
    duration = payload.get("duration")
    _require(isinstance(duration, (int, float)) and duration > 0, "duration must be positive")
    _require(len(payload.get("keypresses") or []) <= MAX_SAMPLES, f"at most {MAX_SAMPLES} keypresses")
    _require(len(payload.get("snapshots") or []) <= MAX_SAMPLES, f"at most {MAX_SAMPLES} snapshots")


def default_results_path() -> Path:
    home = os.environ.get("WPMHERO_HOME")
    base = Path(home) if home else Path.home() / ".wpmhero"
    return base / "results.json"


class ResultStore:
    """Completed-test results and per-duration leaderboards in a JSON file.

    File: ``$WPMHERO_HOME/results.json`` (default ``~/.wpmhero/results.json``).
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._file_path = path or default_results_path()
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._users, self._results = self._load()

    @property
    def path(self) -> Path:
        return self._file_path

    def record(self, result: SessionResult, identity: Optional[Identity]) -> bool:
        """Store ``result`` for ``identity``. Returns False if it was rejected or not saved."""
        payload = result.to_dict()
        try:
            validate_result(payload)
        except ResultValidationError as e:
            logger.warning("Rejected result: %s", e)
            return False
        if identity is None:
            logger.warning("Rejected result: no signed-in user")
            return False

        user = self._users.setdefault(identity.user_id, {})
        if identity.display_name:
            user["name"] = identity.display_name
        if identity.email:
            user["email"] = identity.email

        payload["userId"] = identity.user_id
        payload["recordedAt"] = int(time.time() * 1000)
        self._results.append(payload)
        return self._save()

    def leaderboard(self, duration: int, limit: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
        rows = [r for r in self._results if r.get("duration") == duration]
        rows.sort(key=lambda r: (-r.get("wpm", 0), r.get("recordedAt", 0)))
        return [
            LeaderboardEntry(
                user_id=r["userId"],
                name=self._users.get(r["userId"], {}).get("name") or "Anonymous",
                wpm=int(round(r.get("wpm", 0))),
                recorded_at=int(r.get("recordedAt", 0)),
            )
            for r in rows[:max(0, limit)]
        ]

    def history(self, user_id: str) -> List[Dict[str, Any]]:
        return [dict(r) for r in self._results if r.get("userId") == user_id]

    def best(self, user_id: str, duration: int) -> Optional[Dict[str, Any]]:
        rows = [r for r in self._results if r.get("userId") == user_id and r.get("duration") == duration]
        if not rows:
            return None
        return dict(max(rows, key=lambda r: r.get("wpm", 0)))

    def clear(self) -> None:
        self._users = {}
        self._results = []
        self._save()

    def _load(self) -> tuple[Dict[str, Dict[str, str]], List[Dict[str, Any]]]:
        users: Dict[str, Dict[str, str]] = {}
        results: List[Dict[str, Any]] = []
        if not self._file_path.exists():
            return users, results
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load results from %s: %s", self._file_path, e)
            return users, results
        if not isinstance(payload, dict):
            logger.warning("Ignoring malformed results file %s", self._file_path)
            return users, results

        raw_users = payload.get("users", {})
        if isinstance(raw_users, dict):
            users = {str(k): dict(v) for k, v in raw_users.items() if isinstance(v, dict)}
        for item in payload.get("results", []):
            if isinstance(item, dict) and "userId" in item:
                results.append(item)
        return users, results

    def _save(self) -> bool:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"users": self._users, "results": self._results}
        try:
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save results to %s: %s", self._file_path, e)
            return False
        return True
