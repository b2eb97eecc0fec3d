"""Game rules that change between revisions of the game.

Each rule is a plain function so a revision can swap one without touching the
session or the screen flow; ``GamePolicy`` bundles them with the timings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from trivia_app.constants.quiz_constants import (
    ANSWER_REVEAL_DELAY_SECONDS,
    HINT_ELIMINATE_PROBABILITY,
    HINT_GLOW_SECONDS,
    HINTS_PER_EXTRA_ATTEMPT,
    MAX_HINTS_PER_ATTEMPT,
    QUESTION_TIME_LIMIT_SECONDS,
    QUIZ_QUESTION_COUNT,
    TIME_WARNING_THRESHOLDS,
    TIMER_TICK_SECONDS,
)


def hint_budget(attempt_number: int) -> int:
    """First attempt gets no hints; each later attempt earns two more, capped at five."""
    return max(0, min(MAX_HINTS_PER_ATTEMPT, HINTS_PER_EXTRA_ATTEMPT * (attempt_number - 1)))


def eliminate_count(attempt_number: int) -> int:
    return 2 if attempt_number > 4 else 1


def is_leaderboard_eligible(attempt_number: int) -> bool:
    return attempt_number == 1


@dataclass(frozen=True, slots=True)
class GamePolicy:
    hint_budget: Callable[[int], int] = hint_budget
    eliminate_count: Callable[[int], int] = eliminate_count
    is_leaderboard_eligible: Callable[[int], bool] = is_leaderboard_eligible
    question_count: int = QUIZ_QUESTION_COUNT
    question_duration_seconds: int = QUESTION_TIME_LIMIT_SECONDS
    tick_seconds: float = TIMER_TICK_SECONDS
    reveal_delay_seconds: float = ANSWER_REVEAL_DELAY_SECONDS
    glow_duration_seconds: float = HINT_GLOW_SECONDS
    eliminate_probability: float = HINT_ELIMINATE_PROBABILITY
    warning_thresholds: tuple[int, ...] = TIME_WARNING_THRESHOLDS


DEFAULT_POLICY = GamePolicy()
