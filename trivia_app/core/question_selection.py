"""Random selection of the questions played in one quiz."""

from __future__ import annotations

import random
from typing import Sequence

from trivia_app.constants.quiz_constants import MIN_QUESTION_POOL_SIZE, QUIZ_QUESTION_COUNT
from trivia_app.core.models import Question


class InsufficientQuestionsError(ValueError):
    """Raised when the active pool is too small to run a quiz."""


def select_quiz_questions(
    pool: Sequence[Question],
    count: int = QUIZ_QUESTION_COUNT,
    rng: random.Random | None = None,
) -> list[Question]:
    """Return ``count`` distinct questions in random order (all of them if fewer)."""
    if len(pool) < MIN_QUESTION_POOL_SIZE:
        raise InsufficientQuestionsError(
            f"At least {MIN_QUESTION_POOL_SIZE} active questions are required; found {len(pool)}."
        )
    rng = rng or random.Random()
    shuffled = list(pool)
    # Fisher-Yates from the end so every permutation is equally likely.
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled[: max(0, count)]
