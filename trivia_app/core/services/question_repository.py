"""Service for managing the shared pool of quiz questions."""

from __future__ import annotations

import logging

from trivia_app.constants.quiz_constants import MIN_OPTIONS_PER_QUESTION
from trivia_app.core.models import Question, format_timestamp, utcnow
from trivia_app.core.services.gateway_service import GatewayService
from trivia_app.persistence.gateway import (
    QUESTIONS_TABLE,
    GatewayError,
    PersistenceGateway,
    asc,
    eq,
    log_gateway_error,
)

logger = logging.getLogger(__name__)


class QuestionValidationError(ValueError):
    """Raised when a question cannot be stored as given."""


def validate_question(question: Question) -> Question:
    """Return a normalized copy or raise ``QuestionValidationError``.

    Text and options are stripped and empty options are dropped; the correct
    answer must still point at one of the remaining options.
    """
    text = question.text.strip()
    if not text:
        raise QuestionValidationError("Question text must not be empty.")
    options = [option.strip() for option in question.options if option and option.strip()]
    if len(options) < MIN_OPTIONS_PER_QUESTION:
        raise QuestionValidationError(
            f"A question needs at least {MIN_OPTIONS_PER_QUESTION} non-empty options."
        )
    if not 0 <= question.correct_answer < len(options):
        raise QuestionValidationError("Correct answer must point at one of the options.")
    return Question(
        id=question.id,
        text=text,
        options=options,
        correct_answer=question.correct_answer,
        is_active=question.is_active,
    )


class QuestionRepository(GatewayService):
    """Reads and writes questions; deletion only deactivates them."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        super().__init__(gateway, logger)

    def get_active_questions(self) -> list[Question]:
        questions = self.get_questions_with_ids()
        if not questions and self.is_available():
            logger.warning("No active questions found. Import some from the admin dashboard.")
        return questions

    def get_questions_with_ids(self) -> list[Question]:
        if not self._require_backend("load questions"):
            return []
        try:
            rows = self._gateway.select(QUESTIONS_TABLE, [eq("is_active", True)], [asc("id")])
        except GatewayError as exc:
            log_gateway_error(logger, "load questions", exc)
            return []
        return [Question.from_row(row) for row in rows]

    def get_question(self, question_id: int) -> Question | None:
        if not self._require_backend("load question"):
            return None
        try:
            rows = self._gateway.select(
                QUESTIONS_TABLE, [eq("id", question_id), eq("is_active", True)], limit=1
            )
        except GatewayError as exc:
            log_gateway_error(logger, f"load question {question_id}", exc)
            return None
        return Question.from_row(rows[0]) if rows else None

    def get_question_count(self) -> int:
        return len(self.get_questions_with_ids())

    def add_question(self, question: Question) -> int | None:
        """Validate and insert ``question``; returns the new id or ``None`` on failure."""
        prepared = validate_question(question)
        if not self._require_backend("add question"):
            return None
        row = prepared.to_row()
        row["is_active"] = True
        try:
            stored = self._gateway.insert(QUESTIONS_TABLE, row)
        except GatewayError as exc:
            log_gateway_error(logger, "add question", exc)
            return None
        return stored[0].get("id") if stored else None

    def update_question(self, question_id: int, question: Question) -> bool:
        prepared = validate_question(question)
        if not self._require_backend("update question"):
            return False
        patch = {
            "text": prepared.text,
            "options": prepared.options,
            "correct_answer": prepared.correct_answer,
            "updated_at": format_timestamp(utcnow()),
        }
        try:
            updated = self._gateway.update(QUESTIONS_TABLE, [eq("id", question_id)], patch)
        except GatewayError as exc:
            log_gateway_error(logger, f"update question {question_id}", exc)
            return False
        return bool(updated)

    def delete_question(self, question_id: int) -> bool:
        if not self._require_backend("delete question"):
            return False
        try:
            updated = self._gateway.update(
                QUESTIONS_TABLE, [eq("id", question_id)], {"is_active": False}
            )
        except GatewayError as exc:
            log_gateway_error(logger, f"delete question {question_id}", exc)
            return False
        return bool(updated)
