"""Domain models for the trivia game and their table row mappings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

TIMEOUT_ANSWER: int = -1
"""Recorded when the countdown expires before the player picks an option."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp column as returned by the backend (ISO-8601 text)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


@dataclass(slots=True)
class Question:
    """Multiple-choice question; option order is display order."""

    text: str
    options: list[str]
    correct_answer: int
    id: int | None = None
    is_active: bool = True

    def is_correct(self, answer: int | None) -> bool:
        return is_correct_answer(answer, self.correct_answer)

    def to_row(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "is_active": self.is_active,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Question:
        return cls(
            id=row.get("id"),
            text=row["text"],
            options=list(row.get("options") or []),
            correct_answer=int(row["correct_answer"]),
            is_active=bool(row.get("is_active", True)),
        )


@dataclass(slots=True)
class LeaderboardEntry:
    """A posted score on the shared leaderboard."""

    name: str
    score: int
    total_questions: int
    percentage: int
    timestamp: datetime = field(default_factory=utcnow)
    id: int | None = None
    phone_number: str | None = None
    session_id: str | None = None

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "name": self.name,
            "score": self.score,
            "total_questions": self.total_questions,
            "percentage": self.percentage,
            "session_id": self.session_id,
        }
        if self.phone_number:
            row["phone_number"] = self.phone_number
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> LeaderboardEntry:
        return cls(
            id=row.get("id"),
            name=row.get("name") or "",
            phone_number=row.get("phone_number") or None,
            score=int(row["score"]),
            total_questions=int(row["total_questions"]),
            percentage=int(row["percentage"]),
            timestamp=parse_timestamp(row.get("created_at")) or utcnow(),
            session_id=row.get("session_id") or None,
        )


@dataclass(slots=True)
class RankedEntry:
    """Leaderboard entry paired with its displayed (competition) rank."""

    rank: int
    entry: LeaderboardEntry


@dataclass(slots=True)
class QuizAttempt:
    """One finished play-through as recorded in the attempt log."""

    player_name: str
    score: int
    total_questions: int
    percentage: int
    id: int | None = None
    session_id: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> QuizAttempt:
        return cls(
            id=row.get("id"),
            player_name=row.get("player_name") or "",
            session_id=row.get("session_id") or None,
            score=int(row["score"]),
            total_questions=int(row["total_questions"]),
            percentage=int(row["percentage"]),
            created_at=parse_timestamp(row.get("created_at")),
            expires_at=parse_timestamp(row.get("expires_at")),
        )


@dataclass(slots=True)
class QuizAttemptResponse:
    """The player's answer to one question of an attempt."""

    attempt_id: int
    question_text: str
    question_options: list[str]
    user_answer: int | None
    correct_answer: int
    is_correct: bool
    id: int | None = None
    question_id: int | None = None
    created_at: datetime | None = None

    @property
    def timed_out(self) -> bool:
        return self.user_answer == TIMEOUT_ANSWER

    @property
    def unanswered(self) -> bool:
        return self.user_answer is None

    def to_row(self) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "question_id": self.question_id,
            "question_text": self.question_text,
            "question_options": list(self.question_options),
            "user_answer": self.user_answer,
            "correct_answer": self.correct_answer,
            "is_correct": self.is_correct,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> QuizAttemptResponse:
        user_answer = row.get("user_answer")
        return cls(
            id=row.get("id"),
            attempt_id=int(row["attempt_id"]),
            question_id=row.get("question_id") or None,
            question_text=row.get("question_text") or "",
            question_options=list(row.get("question_options") or []),
            user_answer=None if user_answer is None else int(user_answer),
            correct_answer=int(row["correct_answer"]),
            is_correct=bool(row.get("is_correct")),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(slots=True)
class QuizAttemptWithResponses:
    """Attempt header plus its per-question responses in question order."""

    attempt: QuizAttempt
    responses: list[QuizAttemptResponse] = field(default_factory=list)


def is_correct_answer(answer: int | None, correct_answer: int) -> bool:
    """An answer counts only when it is a real selection equal to the key."""
    if answer is None or answer == TIMEOUT_ANSWER:
        return False
    return answer == correct_answer
