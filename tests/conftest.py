"""Shared fixtures: an in-memory backend, a virtual clock and a seeded question pool."""

from __future__ import annotations

import random

import pytest

from trivia_app.core.models import Question
from trivia_app.core.scheduling import ManualScheduler
from trivia_app.core.services.attempt_log import AttemptLog
from trivia_app.core.services.game_flow import GameFlow
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.persistence.memory_gateway import InMemoryGateway

SESSION_ID = "session_1700000000000_abc123xyz"


def make_questions(count: int) -> list[Question]:
    return [
        Question(
            text=f"Question {number}?",
            options=[f"Option {number}-{letter}" for letter in "ABCD"],
            correct_answer=number % 4,
        )
        for number in range(count)
    ]


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def questions(gateway) -> QuestionRepository:
    repository = QuestionRepository(gateway)
    for question in make_questions(10):
        repository.add_question(question)
    return repository


@pytest.fixture
def leaderboard(gateway) -> Leaderboard:
    return Leaderboard(gateway)


@pytest.fixture
def attempts(gateway) -> AttemptLog:
    return AttemptLog(gateway)


@pytest.fixture
def make_flow(questions, leaderboard, attempts, scheduler, rng):
    def factory(session_id: str = SESSION_ID) -> GameFlow:
        return GameFlow(
            session_id,
            questions=questions,
            leaderboard=leaderboard,
            attempts=attempts,
            scheduler=scheduler,
            rng=rng,
        )

    return factory


def play_through(flow: GameFlow, scheduler: ManualScheduler, wrong_on: set[int] | None = None) -> None:
    """Answer every question of the running quiz, correctly unless listed in ``wrong_on``."""
    wrong_on = wrong_on or set()
    session = flow.get_session()
    for index in range(len(session.get_questions())):
        question = session.current_question()
        answer = question.correct_answer
        if index in wrong_on:
            answer = (answer + 1) % len(question.options)
        assert flow.answer(answer)
        scheduler.advance(2)
