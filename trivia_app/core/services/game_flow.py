"""Screen flow for one player and the registry that holds every player's flow.

Architecture note:
    ``GameFlow`` follows the facade-with-a-lock shape used across the app:
    each public call takes the flow lock and delegates to the quiz session
    or to the gateway-backed services. The same re-entrant lock is handed to
    the ``QuizSession`` so timer callbacks (countdown, reveal, finish) and
    HTTP requests never interleave on one player's state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
from threading import Lock, RLock
from typing import Callable

from trivia_app.constants.network_constants import FLOW_IDLE_TIMEOUT_SECONDS
from trivia_app.constants.quiz_constants import PLAYER_NAME_MAX_LENGTH
from trivia_app.core.models import is_correct_answer
from trivia_app.core.policies import DEFAULT_POLICY, GamePolicy
from trivia_app.core.question_selection import select_quiz_questions
from trivia_app.core.scheduling import Scheduler, ThreadingScheduler
from trivia_app.core.services.attempt_log import AttemptLog
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.core.services.quiz_session import (
    EventRecord,
    HintOutcome,
    QuestionView,
    QuizSession,
    compute_score,
    percentage,
)
from trivia_app.persistence.gateway import GatewayError

logger = logging.getLogger(__name__)

SAVE_FAILED_NOTICE = "Some of your results could not be saved."


class GameScreen(str, Enum):
    SPLASH = "splash"
    RULES = "rules"
    NAME_ENTRY = "name_entry"
    QUIZ = "quiz"
    RESULTS = "results"
    LEADERBOARD = "leaderboard"


class SaveState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class ScreenTransitionError(RuntimeError):
    """Raised when an action is not available on the current screen."""


@dataclass(slots=True)
class StartResult:
    attempt_number: int
    question_count: int
    hints_available: int
    leaderboard_eligible: bool


@dataclass(slots=True)
class SaveOutcome:
    """What the results handoff wrote. ``leaderboard_saved`` is ``None`` when skipped."""

    leaderboard_saved: bool | None = None
    attempt_id: int | None = None

    @property
    def failed(self) -> bool:
        return self.leaderboard_saved is False or self.attempt_id is None


@dataclass(slots=True)
class ResultLine:
    question_text: str
    options: list[str]
    user_answer: int | None
    correct_answer: int
    is_correct: bool


@dataclass(slots=True)
class ResultsSummary:
    player_name: str
    attempt_number: int
    score: int
    total: int
    percentage: int
    title: str
    message: str
    lines: list[ResultLine] = field(default_factory=list)


def results_message(percent: int) -> tuple[str, str]:
    if percent >= 85:
        return "Excellent!", "You have a deep understanding of the material!"
    if percent >= 70:
        return "Great Job!", "You did well! Keep learning and growing."
    if percent >= 50:
        return "Good Effort!", "You are on the right path. Keep studying!"
    return "Keep Learning!", "Every journey begins with a single step. Keep going!"


def clean_player_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Please enter your name.")
    if len(cleaned) > PLAYER_NAME_MAX_LENGTH:
        raise ValueError(f"Names are limited to {PLAYER_NAME_MAX_LENGTH} characters.")
    return cleaned


class GameFlow:
    """Splash -> rules -> name -> quiz -> results <-> leaderboard for one session id."""

    def __init__(
        self,
        session_id: str,
        *,
        questions: QuestionRepository,
        leaderboard: Leaderboard,
        attempts: AttemptLog,
        policy: GamePolicy = DEFAULT_POLICY,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        listener: Callable[[EventRecord], None] | None = None,
    ) -> None:
        self._lock = RLock()
        self._session_id = session_id
        self._questions = questions
        self._leaderboard = leaderboard
        self._attempts = attempts
        self._policy = policy
        self._scheduler = scheduler or ThreadingScheduler()
        self._rng = rng or random.Random()
        self._listener = listener

        self._screen = GameScreen.SPLASH
        self._session: QuizSession | None = None
        self._local_attempts = 0
        self._save_state = SaveState.NOT_STARTED
        self._save_outcome: SaveOutcome | None = None

    # --- Screen queries ---

    def get_session_id(self) -> str:
        return self._session_id

    def get_screen(self) -> GameScreen:
        with self._lock:
            return self._screen

    def get_session(self) -> QuizSession | None:
        with self._lock:
            return self._session

    def get_quiz_view(self) -> QuestionView | None:
        with self._lock:
            if self._session is None or self._screen is not GameScreen.QUIZ:
                return None
            return self._session.snapshot()

    def get_recent_events(self, after_sequence: int = 0) -> list[EventRecord]:
        with self._lock:
            if self._session is None:
                return []
            return self._session.recent_events(after_sequence)

    def get_save_state(self) -> SaveState:
        with self._lock:
            return self._save_state

    def get_save_outcome(self) -> SaveOutcome | None:
        with self._lock:
            return self._save_outcome

    def get_local_attempts(self) -> int:
        """Attempts started by this flow, the fallback when the backend count fails."""
        with self._lock:
            return self._local_attempts

    def carry_local_attempts(self, count: int) -> None:
        with self._lock:
            self._local_attempts = max(self._local_attempts, count)

    def get_save_notice(self) -> str | None:
        with self._lock:
            if self._save_outcome is not None and self._save_outcome.failed:
                return SAVE_FAILED_NOTICE
            return None

    # --- Intro screens ---

    def continue_from_splash(self) -> GameScreen:
        with self._lock:
            self._require(GameScreen.SPLASH)
            self._screen = GameScreen.RULES
            return self._screen

    def continue_from_rules(self) -> GameScreen:
        with self._lock:
            self._require(GameScreen.RULES)
            self._screen = GameScreen.NAME_ENTRY
            return self._screen

    def continue_intro(self) -> GameScreen:
        """Take whichever forward edge leaves the current intro screen."""
        with self._lock:
            if self._screen is GameScreen.SPLASH:
                return self.continue_from_splash()
            return self.continue_from_rules()

    # --- Quiz ---

    def submit_name(self, name: str) -> StartResult:
        with self._lock:
            self._require(GameScreen.NAME_ENTRY)
            player_name = clean_player_name(name)
            attempt_number = self._resolve_attempt_number()
            selected = select_quiz_questions(
                self._questions.get_active_questions(),
                self._policy.question_count,
                self._rng,
            )

            self._close_session()
            self._save_state = SaveState.NOT_STARTED
            self._save_outcome = None
            self._local_attempts += 1
            self._session = QuizSession(
                player_name,
                selected,
                attempt_number=attempt_number,
                policy=self._policy,
                scheduler=self._scheduler,
                rng=self._rng,
                listener=self._listener,
                on_finished=self._handle_finished,
                lock=self._lock,
            )
            self._screen = GameScreen.QUIZ
            self._session.start()
            logger.info(
                "%s started attempt %d with %d questions", player_name, attempt_number, len(selected)
            )
            return StartResult(
                attempt_number=attempt_number,
                question_count=len(selected),
                hints_available=self._session.get_hints_remaining(),
                leaderboard_eligible=self._policy.is_leaderboard_eligible(attempt_number),
            )

    def answer(self, option_index: int) -> bool:
        with self._lock:
            self._require(GameScreen.QUIZ)
            return self._active_session().select_answer(option_index)

    def use_hint(self) -> HintOutcome | None:
        with self._lock:
            self._require(GameScreen.QUIZ)
            return self._active_session().activate_hint()

    # --- Results ---

    def results(self) -> ResultsSummary:
        with self._lock:
            self._require(GameScreen.RESULTS, GameScreen.LEADERBOARD)
            session = self._active_session()
            questions = session.get_questions()
            answers = session.get_answers()
            score = compute_score(questions, answers)
            percent = percentage(score, len(questions))
            title, message = results_message(percent)
            lines = [
                ResultLine(
                    question_text=question.text,
                    options=list(question.options),
                    user_answer=answer,
                    correct_answer=question.correct_answer,
                    is_correct=is_correct_answer(answer, question.correct_answer),
                )
                for question, answer in zip(questions, answers)
            ]
            return ResultsSummary(
                player_name=session.get_player_name(),
                attempt_number=session.get_attempt_number(),
                score=score,
                total=len(questions),
                percentage=percent,
                title=title,
                message=message,
                lines=lines,
            )

    def show_leaderboard(self) -> GameScreen:
        with self._lock:
            self._require(GameScreen.RESULTS)
            self._screen = GameScreen.LEADERBOARD
            return self._screen

    def back_to_results(self) -> GameScreen:
        with self._lock:
            self._require(GameScreen.LEADERBOARD)
            self._screen = GameScreen.RESULTS
            return self._screen

    def play_again(self) -> GameScreen:
        with self._lock:
            self._require(GameScreen.RESULTS, GameScreen.LEADERBOARD)
            self._close_session()
            self._session = None
            self._screen = GameScreen.NAME_ENTRY
            return self._screen

    def restart(self) -> GameScreen:
        with self._lock:
            self._close_session()
            self._session = None
            self._save_state = SaveState.NOT_STARTED
            self._save_outcome = None
            self._screen = GameScreen.SPLASH
            return self._screen

    def close(self) -> None:
        with self._lock:
            self._close_session()

    # --- Internals ---

    def _require(self, *screens: GameScreen) -> None:
        if self._screen not in screens:
            allowed = ", ".join(screen.value for screen in screens)
            raise ScreenTransitionError(
                f"Not available on the {self._screen.value} screen (expected {allowed})."
            )

    def _active_session(self) -> QuizSession:
        if self._session is None:
            raise ScreenTransitionError("No quiz in progress.")
        return self._session

    def _close_session(self) -> None:
        if self._session is not None:
            self._session.close()

    def _resolve_attempt_number(self) -> int:
        try:
            prior = self._attempts.count_attempts_for_session(self._session_id)
        except GatewayError as exc:
            logger.warning(
                "Could not count previous attempts for %s (%s); using the local count %d.",
                self._session_id,
                exc,
                self._local_attempts,
            )
            prior = self._local_attempts
        return prior + 1

    def _handle_finished(self, session: QuizSession) -> None:
        # Invoked by the session while the shared lock is held.
        if session is not self._session:
            return
        self._screen = GameScreen.RESULTS
        self._persist_results(session)

    def _persist_results(self, session: QuizSession) -> None:
        if self._save_state is not SaveState.NOT_STARTED:
            return
        self._save_state = SaveState.IN_PROGRESS
        questions = session.get_questions()
        answers = session.get_answers()
        score = compute_score(questions, answers)
        percent = percentage(score, len(questions))
        attempt_number = session.get_attempt_number()

        # The leaderboard write and the attempt write are independent; neither may skip the other.
        outcome = SaveOutcome()
        try:
            if self._policy.is_leaderboard_eligible(attempt_number):
                outcome.leaderboard_saved = False
                outcome.leaderboard_saved = self._leaderboard.add_entry(
                    session.get_player_name(),
                    score,
                    len(questions),
                    percent,
                    session_id=self._session_id,
                )
            else:
                logger.info(
                    "Attempt %d of %s is practice only; leaderboard skipped.",
                    attempt_number,
                    session.get_player_name(),
                )
        finally:
            try:
                outcome.attempt_id = self._attempts.save_attempt(
                    session.get_player_name(),
                    questions,
                    answers,
                    score,
                    percent,
                    session_id=self._session_id,
                )
            finally:
                self._save_outcome = outcome
                self._save_state = SaveState.DONE
                if outcome.failed:
                    logger.warning(
                        "Results for %s were only partly saved: %s", session.get_player_name(), outcome
                    )


class GameFlowRegistry:
    """Holds one ``GameFlow`` per session id.

    Flows untouched for ``idle_timeout_seconds`` are closed and dropped on the
    next ``get_or_create``. The local attempt count of a dropped flow is kept
    per session id so a returning player is not treated as a first attempt
    while the backend count is unavailable.
    """

    def __init__(
        self,
        factory: Callable[[str], GameFlow],
        *,
        idle_timeout_seconds: float = FLOW_IDLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = Lock()
        self._factory = factory
        self._idle_timeout = idle_timeout_seconds
        self._clock = clock
        self._flows: dict[str, GameFlow] = {}
        self._last_seen: dict[str, float] = {}
        self._local_attempts: dict[str, int] = {}

    def get_or_create(self, session_id: str) -> GameFlow:
        with self._lock:
            now = self._clock()
            idle = self._evict_idle(now, keep=session_id)
            flow = self._flows.get(session_id)
            if flow is None:
                flow = self._factory(session_id)
                flow.carry_local_attempts(self._local_attempts.pop(session_id, 0))
                self._flows[session_id] = flow
            self._last_seen[session_id] = now
        for stale in idle:
            stale.close()
        if idle:
            logger.info("Dropped %d idle player session(s)", len(idle))
        return flow

    def get(self, session_id: str) -> GameFlow | None:
        with self._lock:
            return self._flows.get(session_id)

    def restart(self, session_id: str) -> None:
        """Reset the flow to the splash screen and forget it."""
        with self._lock:
            flow = self._forget(session_id)
        if flow is not None:
            flow.restart()

    def get_active_count(self) -> int:
        with self._lock:
            return len(self._flows)

    def close_all(self) -> None:
        with self._lock:
            flows = list(self._flows.values())
            self._flows.clear()
            self._last_seen.clear()
        for flow in flows:
            flow.close()

    def _forget(self, session_id: str) -> GameFlow | None:
        # Caller holds the registry lock.
        flow = self._flows.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if flow is not None:
            played = flow.get_local_attempts()
            if played:
                self._local_attempts[session_id] = played
        return flow

    def _evict_idle(self, now: float, keep: str) -> list[GameFlow]:
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if session_id != keep and now - seen >= self._idle_timeout
        ]
        return [flow for flow in (self._forget(session_id) for session_id in expired) if flow is not None]
