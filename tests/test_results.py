"""Tests for wpmhero.core.results – completion payload and result persistence."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest

from wpmhero.core.results import (
    MAX_SAMPLES,
    Identity,
    ResultStore,
    ResultValidationError,
    SessionResult,
    build_result,
    default_results_path,
    validate_result,
)
from wpmhero.core.session import backspace, input_character, new_session, start, tick
from wpmhero.core.stats import KeypressEvent


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store(tmp_path: Path) -> ResultStore:
    """ResultStore backed by a temp file so tests don't touch ~/.wpmhero."""
    return ResultStore(path=tmp_path / "results.json")


@pytest.fixture()
def alice() -> Identity:
    return Identity(user_id="u-alice", display_name="Alice", email="alice@example.com")


def _result(**overrides) -> SessionResult:
    base = SessionResult(
        wpm=60,
        raw_wpm=64,
        accuracy=94,
        consistency=80,
        duration_seconds=60,
        characters_typed=320,
        characters_correct=300,
        characters_incorrect=20,
        error_count=20,
        text_length=1200,
    )
    return replace(base, **overrides)


# ---------------------------------------------------------------------------
# build_result
# ---------------------------------------------------------------------------

class TestBuildResult:
    def test_from_completed_session(self):
        s = start(new_session(["cat"], duration=30))
        s = input_character(s, "x", 0)
        s = backspace(s)
        for i, ch in enumerate("cat"):
            s = input_character(s, ch, 200 * (i + 1))
        r = build_result(s)
        assert r.duration_seconds == 30
        assert r.characters_typed == 4
        assert r.characters_correct == 3
        assert r.characters_incorrect == 1
        assert r.error_count == 1
        assert r.text_length == 3
        assert r.wpm == s.snapshot.wpm
        assert r.accuracy == 75
        assert len(r.keypresses) == 4
        assert len(r.snapshots) == 4

    def test_from_timed_out_session(self):
        s = start(new_session(["cat"], duration=1))
        s = tick(s)
        r = build_result(s)
        assert r.characters_typed == 0
        assert r.wpm == 0


class TestToDict:
    def test_camel_case_keys(self):
        d = _result().to_dict()
        assert d["rawWpm"] == 64
        assert d["duration"] == 60
        assert d["charactersTyped"] == 320
        assert d["charactersCorrect"] == 300
        assert d["charactersIncorrect"] == 20
        assert d["errors"] == 20
        assert d["textLength"] == 1200
        assert d["keypresses"] == []
        assert d["snapshots"] == []

    def test_keypresses_serialized(self):
        r = _result(keypresses=(KeypressEvent(key="a", timestamp=5, correct=True),))
        assert r.to_dict()["keypresses"] == [{"key": "a", "timestamp": 5, "correct": True}]


# ---------------------------------------------------------------------------
# validate_result
# ---------------------------------------------------------------------------

class TestValidateResult:
    def test_valid(self):
        validate_result(_result().to_dict())

    @pytest.mark.parametrize(
        "overrides",
        [
            {"wpm": -1},
            {"accuracy": 101},
            {"consistency": -3},
            {"duration_seconds": 0},
            {"characters_typed": -5},
        ],
    )
    def test_out_of_range(self, overrides):
        with pytest.raises(ResultValidationError):
            validate_result(_result(**overrides).to_dict())

    def test_missing_field(self):
        payload = _result().to_dict()
        del payload["rawWpm"]
        with pytest.raises(ResultValidationError, match="rawWpm"):
            validate_result(payload)

    def test_too_many_keypresses(self):
        events = tuple(KeypressEvent(key="a", timestamp=i, correct=True) for i in range(MAX_SAMPLES + 1))
        with pytest.raises(ResultValidationError, match="keypresses"):
            validate_result(_result(keypresses=events).to_dict())

    def test_is_value_error(self):
        assert issubclass(ResultValidationError, ValueError)


# ---------------------------------------------------------------------------
# ResultStore
# ---------------------------------------------------------------------------

class TestResultStoreRecord:
    def test_unauthenticated_rejected(self, store: ResultStore):
        assert store.record(_result(), None) is False
        assert not store.path.exists()

    def test_invalid_rejected(self, store: ResultStore, alice: Identity):
        assert store.record(_result(accuracy=200), alice) is False
        assert store.history(alice.user_id) == []

    def test_valid_saved(self, store: ResultStore, alice: Identity):
        assert store.record(_result(), alice) is True
        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["users"]["u-alice"]["name"] == "Alice"
        assert data["results"][0]["userId"] == "u-alice"
        assert data["results"][0]["wpm"] == 60
        assert "recordedAt" in data["results"][0]

    def test_save_failure_returns_false(self, store: ResultStore, alice: Identity, monkeypatch: pytest.MonkeyPatch):
        def fail(self, *args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "write_text", fail)
        assert store.record(_result(), alice) is False

    def test_persists_across_instances(self, tmp_path: Path, alice: Identity):
        path = tmp_path / "results.json"
        ResultStore(path=path).record(_result(wpm=77), alice)
        reloaded = ResultStore(path=path)
        assert reloaded.history("u-alice")[0]["wpm"] == 77


class TestResultStoreQueries:
    def test_leaderboard_sorted_by_wpm(self, store: ResultStore, alice: Identity):
        bob = Identity(user_id="u-bob")
        store.record(_result(wpm=50), alice)
        store.record(_result(wpm=90), bob)
        store.record(_result(wpm=70), alice)
        board = store.leaderboard(60)
        assert [e.wpm for e in board] == [90, 70, 50]
        assert board[0].name == "Anonymous"
        assert board[1].name == "Alice"

    def test_leaderboard_filters_duration(self, store: ResultStore, alice: Identity):
        store.record(_result(duration_seconds=15), alice)
        store.record(_result(duration_seconds=60), alice)
        assert len(store.leaderboard(15)) == 1
        assert store.leaderboard(120) == []

    def test_leaderboard_limit(self, store: ResultStore, alice: Identity):
        for wpm in range(10):
            store.record(_result(wpm=wpm), alice)
        assert len(store.leaderboard(60, limit=3)) == 3

    def test_history_per_user(self, store: ResultStore, alice: Identity):
        store.record(_result(wpm=10), alice)
        store.record(_result(wpm=20), Identity(user_id="u-bob"))
        store.record(_result(wpm=30), alice)
        assert [r["wpm"] for r in store.history("u-alice")] == [10, 30]

    def test_best(self, store: ResultStore, alice: Identity):
        assert store.best("u-alice", 60) is None
        store.record(_result(wpm=40), alice)
        store.record(_result(wpm=55), alice)
        store.record(_result(wpm=99, duration_seconds=15), alice)
        assert store.best("u-alice", 60)["wpm"] == 55

    def test_clear(self, store: ResultStore, alice: Identity):
        store.record(_result(), alice)
        store.clear()
        assert store.history("u-alice") == []
        assert ResultStore(path=store.path).leaderboard(60) == []


class TestResultStoreLoading:
    def test_corrupt_file_starts_empty(self, tmp_path: Path):
        path = tmp_path / "results.json"
        path.write_text("{not json", encoding="utf-8")
        assert ResultStore(path=path).leaderboard(60) == []

    def test_skips_malformed_rows(self, tmp_path: Path):
        path = tmp_path / "results.json"
        path.write_text(
            json.dumps({"users": {}, "results": [{"wpm": 1, "duration": 60}, "junk"]}),
            encoding="utf-8",
        )
        assert ResultStore(path=path).leaderboard(60) == []

    def test_default_path_honours_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("WPMHERO_HOME", str(tmp_path / "home"))
        assert default_results_path() == tmp_path / "home" / "results.json"

    def test_default_path_in_user_home(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("WPMHERO_HOME", raising=False)
        assert default_results_path() == Path.home() / ".wpmhero" / "results.json"
