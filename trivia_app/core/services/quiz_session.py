"""State machine for one play-through of the quiz.

Architecture note:
    The session owns the per-question lifecycle (countdown, answer lock,
    reveal delay, hints) and nothing else; screens and persistence belong to
    ``GameFlow``. Every timer it arms is a scheduler handle tagged with a
    question generation, so a callback armed for a previous question is
    ignored even if it was already in flight when it was cancelled.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
import logging
import random
from threading import RLock
from typing import Callable, Sequence

from trivia_app.constants.quiz_constants import RECENT_EVENT_BUFFER_SIZE
from trivia_app.core.models import TIMEOUT_ANSWER, Question
from trivia_app.core.policies import DEFAULT_POLICY, GamePolicy
from trivia_app.core.scheduling import Cancellable, RepeatingTimer, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)


class QuestionPhase(str, Enum):
    ACTIVE = "active"
    LOCKED = "locked"


class SessionEvent(str, Enum):
    NEW_QUESTION = "new_question"
    TICK = "tick"
    WARNING = "warning"
    TIMEOUT = "timeout"
    CORRECT = "correct"
    WRONG = "wrong"
    HINT = "hint"
    FINISHED = "finished"


class HintKind(str, Enum):
    ELIMINATE = "eliminate"
    GLOW = "glow"


@dataclass(frozen=True, slots=True)
class HintOutcome:
    kind: HintKind
    eliminated: tuple[int, ...] = ()
    glow_index: int | None = None


@dataclass(frozen=True, slots=True)
class EventRecord:
    sequence: int
    event: SessionEvent
    question_index: int
    value: int | None = None


@dataclass(frozen=True, slots=True)
class QuestionView:
    """Read-only view of the current question for the presentation layer."""

    index: int
    total: int
    text: str
    options: tuple[str, ...]
    eliminated: tuple[int, ...]
    glow_index: int | None
    seconds_left: int
    locked: bool
    timed_out: bool
    selected: int | None
    correct_index: int | None
    score: int
    hints_remaining: int
    hint_available: bool
    attempt_number: int
    finished: bool


def compute_score(questions: Sequence[Question], answers: Sequence[int | None]) -> int:
    """Count correct answers; timeouts and unanswered slots never score."""
    return sum(1 for question, answer in zip(questions, answers) if question.is_correct(answer))


def divide_half_up(numerator: int, denominator: int) -> int:
    """Integer quotient rounded half up, 0 for an empty denominator."""
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def percentage(score: int, total: int) -> int:
    """Whole-number percentage rounded half up (71 for 5 of 7)."""
    return divide_half_up(score * 100, total)


class QuizSession:
    """Runs the questions of one attempt: countdown, answers, hints, reveal."""

    def __init__(
        self,
        player_name: str,
        questions: Sequence[Question],
        *,
        attempt_number: int = 1,
        policy: GamePolicy = DEFAULT_POLICY,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        listener: Callable[[EventRecord], None] | None = None,
        on_finished: Callable[[QuizSession], None] | None = None,
        lock: RLock | None = None,
    ) -> None:
        if not questions:
            raise ValueError("A quiz session needs at least one question.")
        self._player_name = player_name
        self._questions: tuple[Question, ...] = tuple(questions)
        self._attempt_number = attempt_number
        self._policy = policy
        self._scheduler = scheduler or ThreadingScheduler()
        self._rng = rng or random.Random()
        self._listener = listener
        self._on_finished = on_finished
        self._lock = lock or RLock()

        self._answers: list[int | None] = [None] * len(self._questions)
        self._current_index = 0
        self._current_score = 0
        self._hints_remaining = max(0, policy.hint_budget(attempt_number))
        self._phase = QuestionPhase.LOCKED
        self._seconds_left = policy.question_duration_seconds
        self._timed_out = False
        self._eliminated: set[int] = set()
        self._glow_active = False
        self._hint_used_for_question = False
        self._started = False
        self._finished = False
        self._closed = False

        self._generation = 0
        self._countdown: RepeatingTimer | None = None
        self._pending: list[Cancellable] = []
        self._events: deque[EventRecord] = deque(maxlen=RECENT_EVENT_BUFFER_SIZE)
        self._event_sequence = 0

    # --- Lifecycle ---

    def start(self) -> None:
        with self._lock:
            if self._started:
                raise RuntimeError("Quiz session already started.")
            self._started = True
            self._enter_question(0)

    def close(self) -> None:
        """Cancel every outstanding timer; the session ignores all input afterwards."""
        with self._lock:
            self._closed = True
            self._cancel_timers()

    def tick(self) -> None:
        """Advance the countdown by one step (normally driven by the scheduler)."""
        with self._lock:
            self._tick_locked()

    def select_answer(self, option_index: int) -> bool:
        with self._lock:
            if not self._accepting_input():
                return False
            question = self.current_question()
            if not 0 <= option_index < len(question.options):
                return False
            if option_index in self._eliminated:
                return False
            self._lock_question(option_index)
            correct = question.is_correct(option_index)
            self._emit(SessionEvent.CORRECT if correct else SessionEvent.WRONG, option_index)
            return True

    def advance(self) -> bool:
        """Leave a locked question: next question, or finish after the last one."""
        with self._lock:
            if self._closed or self._finished or self._phase is not QuestionPhase.LOCKED:
                return False
            if self._current_index >= len(self._questions) - 1:
                self._finish()
            else:
                self._enter_question(self._current_index + 1)
            return True

    def activate_hint(self) -> HintOutcome | None:
        with self._lock:
            if not self._accepting_input():
                return None
            if self._attempt_number <= 1 or self._hints_remaining <= 0 or self._hint_used_for_question:
                return None
            self._hints_remaining = max(0, self._hints_remaining - 1)
            self._hint_used_for_question = True

            question = self.current_question()
            wrong = [
                i for i in range(len(question.options))
                if i != question.correct_answer and i not in self._eliminated
            ]
            if wrong and self._rng.random() < self._policy.eliminate_probability:
                count = min(self._policy.eliminate_count(self._attempt_number), len(wrong))
                chosen = tuple(sorted(self._rng.sample(wrong, count)))
                self._eliminated.update(chosen)
                outcome = HintOutcome(HintKind.ELIMINATE, eliminated=chosen)
            else:
                self._glow_active = True
                generation = self._generation
                self._pending.append(
                    self._scheduler.call_later(
                        self._policy.glow_duration_seconds,
                        lambda: self._clear_glow(generation),
                    )
                )
                outcome = HintOutcome(HintKind.GLOW, glow_index=question.correct_answer)
            self._emit(SessionEvent.HINT)
            logger.debug("Hint used by %s: %s", self._player_name, outcome.kind.value)
            return outcome

    # --- Queries ---

    def get_player_name(self) -> str:
        return self._player_name

    def get_attempt_number(self) -> int:
        return self._attempt_number

    def get_questions(self) -> list[Question]:
        return list(self._questions)

    def get_answers(self) -> list[int | None]:
        with self._lock:
            return list(self._answers)

    def get_current_index(self) -> int:
        return self._current_index

    def get_current_score(self) -> int:
        return self._current_score

    def get_hints_remaining(self) -> int:
        return self._hints_remaining

    def get_seconds_left(self) -> int:
        return self._seconds_left

    def get_phase(self) -> QuestionPhase:
        return self._phase

    def get_eliminated(self) -> set[int]:
        return set(self._eliminated)

    def is_glow_active(self) -> bool:
        return self._glow_active

    def is_timed_out(self) -> bool:
        return self._timed_out

    def is_finished(self) -> bool:
        return self._finished

    def is_closed(self) -> bool:
        return self._closed

    def current_question(self) -> Question:
        return self._questions[self._current_index]

    def compute_score(self) -> int:
        with self._lock:
            return compute_score(self._questions, self._answers)

    def recent_events(self, after_sequence: int = 0) -> list[EventRecord]:
        with self._lock:
            return [record for record in self._events if record.sequence > after_sequence]

    def snapshot(self) -> QuestionView:
        with self._lock:
            question = self.current_question()
            locked = self._phase is QuestionPhase.LOCKED
            return QuestionView(
                index=self._current_index,
                total=len(self._questions),
                text=question.text,
                options=tuple(question.options),
                eliminated=tuple(sorted(self._eliminated)),
                glow_index=question.correct_answer if self._glow_active else None,
                seconds_left=self._seconds_left,
                locked=locked,
                timed_out=self._timed_out,
                selected=self._answers[self._current_index],
                correct_index=question.correct_answer if locked else None,
                score=self._current_score,
                hints_remaining=self._hints_remaining,
                hint_available=(
                    self._accepting_input()
                    and self._attempt_number > 1
                    and self._hints_remaining > 0
                    and not self._hint_used_for_question
                ),
                attempt_number=self._attempt_number,
                finished=self._finished,
            )

    # --- Internals (caller holds the lock) ---

    def _accepting_input(self) -> bool:
        return (
            self._started
            and not self._closed
            and not self._finished
            and self._phase is QuestionPhase.ACTIVE
        )

    def _enter_question(self, index: int) -> None:
        self._cancel_timers()
        self._generation += 1
        self._current_index = index
        self._phase = QuestionPhase.ACTIVE
        self._seconds_left = self._policy.question_duration_seconds
        self._timed_out = False
        self._eliminated = set()
        self._glow_active = False
        self._hint_used_for_question = False
        self._emit(SessionEvent.NEW_QUESTION, self._seconds_left)
        generation = self._generation
        self._countdown = RepeatingTimer(
            self._scheduler,
            self._policy.tick_seconds,
            lambda: self._on_countdown(generation),
        ).start()

    def _on_countdown(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._tick_locked()

    def _tick_locked(self) -> None:
        if not self._accepting_input():
            return
        self._seconds_left = max(0, self._seconds_left - 1)
        self._emit(SessionEvent.TICK, self._seconds_left)
        if self._seconds_left in self._policy.warning_thresholds:
            self._emit(SessionEvent.WARNING, self._seconds_left)
        if self._seconds_left == 0:
            self._timed_out = True
            self._lock_question(TIMEOUT_ANSWER)
            self._emit(SessionEvent.TIMEOUT)

    def _lock_question(self, answer: int) -> None:
        self._cancel_timers()
        self._answers[self._current_index] = answer
        self._phase = QuestionPhase.LOCKED
        self._glow_active = False
        if self.current_question().is_correct(answer):
            self._current_score += 1
        generation = self._generation
        self._pending.append(
            self._scheduler.call_later(
                self._policy.reveal_delay_seconds,
                lambda: self._on_reveal_elapsed(generation),
            )
        )

    def _on_reveal_elapsed(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.advance()

    def _clear_glow(self, generation: int) -> None:
        with self._lock:
            if generation == self._generation:
                self._glow_active = False

    def _finish(self) -> None:
        self._cancel_timers()
        self._generation += 1
        self._finished = True
        self._current_score = compute_score(self._questions, self._answers)
        self._emit(SessionEvent.FINISHED, self._current_score)
        logger.info(
            "%s finished attempt %d with %d/%d",
            self._player_name,
            self._attempt_number,
            self._current_score,
            len(self._questions),
        )
        if self._on_finished is not None:
            self._on_finished(self)

    def _cancel_timers(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()

    def _emit(self, event: SessionEvent, value: int | None = None) -> None:
        self._event_sequence += 1
        record = EventRecord(self._event_sequence, event, self._current_index, value)
        self._events.append(record)
        if self._listener is not None:
            try:
                self._listener(record)
            except Exception:  # pragma: no cover - presentation hooks must not break the game
                logger.exception("Session event listener failed")
