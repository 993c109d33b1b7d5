"""Typing test session: state, transitions, and the mutable owner used by the UI.

Every transition is a plain function ``(state, ...) -> state``. A call that is
not valid for the current state returns the very same state object, so the
functions can be driven straight from raw keyboard events.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Iterable, Optional

from wpmhero.core.stats import (
    KeypressEvent,
    StatisticsSnapshot,
    compute_snapshot,
    neutral_snapshot,
    round_half_up,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 60
DURATION_PRESETS = (15, 30, 60, 120)
MIN_DURATION = 1


class SessionPhase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class CharStatus(Enum):
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class SessionState:
    """Everything one typing attempt owns.

    ``typed`` holds one slot per character of ``target_text``: ``None`` for a
    position not yet attempted, otherwise the character actually typed there.
    ``keypresses`` is append-only for the lifetime of an attempt; backspace
    never edits it.
    """

    words: tuple[str, ...] = ()
    target_text: str = ""
    duration: int = DEFAULT_DURATION
    remaining_seconds: int = DEFAULT_DURATION
    phase: SessionPhase = SessionPhase.IDLE
    caret_index: int = 0
    typed: tuple[Optional[str], ...] = ()
    keypresses: tuple[KeypressEvent, ...] = ()
    snapshots: tuple[StatisticsSnapshot, ...] = ()
    snapshot: StatisticsSnapshot = field(default_factory=neutral_snapshot)
    correct_count: int = 0
    pending_errors: int = 0
    total_correct: int = 0
    total_incorrect: int = 0

    @property
    def text_length(self) -> int:
        return len(self.target_text)

    @property
    def is_running(self) -> bool:
        return self.phase is SessionPhase.RUNNING

    @property
    def is_completed(self) -> bool:
        return self.phase is SessionPhase.COMPLETED

    @property
    def progress(self) -> int:
        """Percentage of the target text matched correctly."""
        if not self.target_text:
            return 0
        return round_half_up(100 * self.correct_count / len(self.target_text))

    @property
    def word_index(self) -> int:
        """Index of the word the caret is in."""
        return self.target_text.count(" ", 0, self.caret_index)

    @property
    def elapsed_seconds(self) -> int:
        return self.duration - self.remaining_seconds

    def char_status(self, index: int) -> CharStatus:
        typed = self.typed[index]
        if typed is None:
            return CharStatus.PENDING
        if typed == self.target_text[index]:
            return CharStatus.CORRECT
        return CharStatus.INCORRECT


def _cleared(state: SessionState, **changes) -> SessionState:
    """Return ``state`` back at IDLE with all per-attempt data discarded."""
    state = replace(state, **changes)
    return replace(
        state,
        phase=SessionPhase.IDLE,
        remaining_seconds=state.duration,
        caret_index=0,
        typed=(None,) * len(state.target_text),
        keypresses=(),
        snapshots=(),
        snapshot=neutral_snapshot(),
        correct_count=0,
        pending_errors=0,
        total_correct=0,
        total_incorrect=0,
    )


def new_session(words: Iterable[str] = (), duration: int = DEFAULT_DURATION) -> SessionState:
    return set_text(set_duration(SessionState(), duration), words)


def set_text(state: SessionState, words: Iterable[str]) -> SessionState:
    """Load new target words. Always allowed; abandons any attempt in progress."""
    words = tuple(words)
    return _cleared(state, words=words, target_text=" ".join(words))


def set_duration(state: SessionState, seconds: int) -> SessionState:
    """Change the test length. Always allowed; abandons any attempt in progress."""
    return _cleared(state, duration=max(MIN_DURATION, int(seconds)))


def reset(state: SessionState) -> SessionState:
    return _cleared(state)


def start(state: SessionState) -> SessionState:
    if state.phase is not SessionPhase.IDLE or not state.target_text:
        return state
    return replace(_cleared(state), phase=SessionPhase.RUNNING)


def _retract(state: SessionState, index: int) -> tuple[int, int]:
    """Counters with the contribution of slot ``index`` removed."""
    correct_count, pending_errors = state.correct_count, state.pending_errors
    previous = state.typed[index]
    if previous is None:
        return correct_count, pending_errors
    if previous == state.target_text[index]:
        return correct_count - 1, pending_errors
    return correct_count, max(0, pending_errors - 1)


def _finish(state: SessionState) -> SessionState:
    return replace(state, phase=SessionPhase.COMPLETED)


def input_character(state: SessionState, char: str, timestamp: int) -> SessionState:
    if not state.is_running or len(char) != 1 or state.caret_index >= len(state.target_text):
        return state

    index = state.caret_index
    is_correct = char == state.target_text[index]

    # a slot can already hold a value when input races ahead of a redraw
    correct_count, pending_errors = _retract(state, index)
    if is_correct:
        correct_count += 1
    else:
        pending_errors += 1

    keypresses = state.keypresses + (KeypressEvent(key=char, timestamp=timestamp, correct=is_correct),)
    snapshot = compute_snapshot(keypresses)
    state = replace(
        state,
        typed=state.typed[:index] + (char,) + state.typed[index + 1:],
        caret_index=index + 1,
        keypresses=keypresses,
        snapshot=snapshot,
        snapshots=state.snapshots + (snapshot,),
        correct_count=correct_count,
        pending_errors=pending_errors,
        total_correct=state.total_correct + (1 if is_correct else 0),
        total_incorrect=state.total_incorrect + (0 if is_correct else 1),
    )
    if state.caret_index == len(state.target_text) and state.pending_errors == 0:
        return _finish(state)
    return state


def backspace(state: SessionState) -> SessionState:
    """Retract the character before the caret.

    Only the input record and counters change: the keypress log and snapshot
    history keep every key ever pressed.
    """
    if not state.is_running or state.caret_index == 0:
        return state
    index = state.caret_index - 1
    correct_count, pending_errors = _retract(state, index)
    return replace(
        state,
        caret_index=index,
        typed=state.typed[:index] + (None,) + state.typed[index + 1:],
        correct_count=correct_count,
        pending_errors=pending_errors,
    )


def tick(state: SessionState, now: Optional[int] = None) -> SessionState:
    """Advance the countdown by one second."""
    if not state.is_running:
        return state
    state = replace(
        state,
        remaining_seconds=max(0, state.remaining_seconds - 1),
        snapshot=compute_snapshot(state.keypresses, now=now),
    )
    if state.remaining_seconds == 0:
        return _finish(state)
    return state


def complete(state: SessionState) -> SessionState:
    if (
        not state.is_running
        or state.pending_errors != 0
        or state.caret_index != len(state.target_text)
    ):
        return state
    return _finish(replace(state, snapshot=compute_snapshot(state.keypresses)))


def recount(state: SessionState) -> tuple[int, int]:
    """(correct, pending errors) recomputed from the input record."""
    correct = 0
    pending = 0
    for typed, expected in zip(state.typed, state.target_text):
        if typed is None:
            continue
        if typed == expected:
            correct += 1
        else:
            pending += 1
    return correct, pending


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


CompletionListener = Callable[[SessionState], None]


class TypingSession:
    """Owns the single live ``SessionState`` for one typing surface.

    Keyboard handlers and timers call the methods here; listeners registered
    with :meth:`add_completion_listener` run once each time the session
    enters the completed phase. A failing listener is logged and otherwise
    ignored, so persistence problems can never undo a completed test.
    """

    def __init__(
        self,
        words: Iterable[str] = (),
        duration: int = DEFAULT_DURATION,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._state = new_session(words, duration)
        self._clock = clock or _monotonic_ms
        self._listeners: list[CompletionListener] = []
        # session clock minus keypress-log clock, taken at the latest keypress
        self._clock_offset = 0

    @property
    def state(self) -> SessionState:
        return self._state

    def add_completion_listener(self, listener: CompletionListener) -> None:
        self._listeners.append(listener)

    def set_text(self, words: Iterable[str]) -> SessionState:
        return self._apply(set_text(self._state, words))

    def set_duration(self, seconds: int) -> SessionState:
        return self._apply(set_duration(self._state, seconds))

    def start(self) -> SessionState:
        return self._apply(start(self._state))

    def reset(self) -> SessionState:
        return self._apply(reset(self._state))

    def press(self, char: str, timestamp: Optional[int] = None) -> SessionState:
        """Type ``char``; the first key of an idle session starts the clock."""
        if self._state.phase is SessionPhase.IDLE:
            self.start()
        now = self._clock()
        if timestamp is None:
            timestamp = now
        logged = len(self._state.keypresses)
        state = self._apply(input_character(self._state, char, timestamp))
        if len(state.keypresses) > logged:
            self._clock_offset = now - timestamp
        return state

    def backspace(self) -> SessionState:
        return self._apply(backspace(self._state))

    def tick(self) -> SessionState:
        """Advance the countdown, measuring idle time in the keypress log's clock."""
        return self._apply(tick(self._state, now=self._clock() - self._clock_offset))

    def complete(self) -> SessionState:
        return self._apply(complete(self._state))

    def replay(self, events: Iterable[Optional[KeypressEvent]]) -> SessionState:
        """Feed recorded input through the normal transitions; ``None`` is a backspace."""
        for event in events:
            if event is None:
                self.backspace()
            else:
                self.press(event.key, event.timestamp)
        return self._state

    def _apply(self, new_state: SessionState) -> SessionState:
        previous, self._state = self._state, new_state
        if previous.phase is not new_state.phase:
            logger.debug("Session phase %s -> %s", previous.phase.value, new_state.phase.value)
            if new_state.phase is SessionPhase.COMPLETED:
                self._notify_completed(new_state)
        return new_state

    def _notify_completed(self, state: SessionState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Completion listener %r failed", listener)
