"""Service recording every finished attempt with its per-question responses.

Attempts are short-lived review material: each one expires an hour after it
is written and expired rows are purged whenever the full history is listed.
"""

from __future__ import annotations

from datetime import timedelta
import logging
from typing import Sequence

from trivia_app.constants.quiz_constants import ATTEMPT_RETENTION_SECONDS
from trivia_app.core.models import (
    Question,
    QuizAttempt,
    QuizAttemptResponse,
    QuizAttemptWithResponses,
    format_timestamp,
    is_correct_answer,
    utcnow,
)
from trivia_app.core.services.gateway_service import GatewayService
from trivia_app.persistence.gateway import (
    ATTEMPTS_TABLE,
    RESPONSES_TABLE,
    Filter,
    GatewayError,
    PersistenceGateway,
    asc,
    desc,
    eq,
    gte,
    in_,
    log_gateway_error,
    lt,
)

logger = logging.getLogger(__name__)


def filter_attempts(
    attempts: Sequence[QuizAttemptWithResponses], query: str
) -> list[QuizAttemptWithResponses]:
    needle = query.strip().lower()
    if not needle:
        return list(attempts)
    return [item for item in attempts if needle in item.attempt.player_name.lower()]


class AttemptLog(GatewayService):
    def __init__(
        self,
        gateway: PersistenceGateway,
        retention: timedelta = timedelta(seconds=ATTEMPT_RETENTION_SECONDS),
    ) -> None:
        super().__init__(gateway, logger)
        self._retention = retention

    def save_attempt(
        self,
        player_name: str,
        questions: Sequence[Question],
        answers: Sequence[int | None],
        score: int,
        percentage: int,
        session_id: str | None = None,
    ) -> int | None:
        """Write the attempt then its responses; returns the attempt id.

        A failure inserting the responses is logged but the attempt id is
        still returned because the header row exists.
        """
        if not self._require_backend("save quiz attempt"):
            return None
        expires_at = utcnow() + self._retention
        try:
            stored = self._gateway.insert(
                ATTEMPTS_TABLE,
                {
                    "player_name": player_name,
                    "session_id": session_id or None,
                    "score": score,
                    "total_questions": len(questions),
                    "percentage": percentage,
                    "expires_at": format_timestamp(expires_at),
                },
            )
        except GatewayError as exc:
            log_gateway_error(logger, "save quiz attempt", exc)
            return None
        if not stored or stored[0].get("id") is None:
            logger.error("No id returned for the saved quiz attempt")
            return None
        attempt_id = int(stored[0]["id"])

        responses = []
        for index, question in enumerate(questions):
            answer = answers[index] if index < len(answers) else None
            responses.append(
                QuizAttemptResponse(
                    attempt_id=attempt_id,
                    question_id=question.id,
                    question_text=question.text,
                    question_options=list(question.options),
                    user_answer=answer,
                    correct_answer=question.correct_answer,
                    is_correct=is_correct_answer(answer, question.correct_answer),
                ).to_row()
            )
        if responses:
            try:
                self._gateway.insert(RESPONSES_TABLE, responses)
            except GatewayError as exc:
                log_gateway_error(logger, f"save responses for attempt {attempt_id}", exc)
        logger.info("Quiz attempt %d saved for %s", attempt_id, player_name)
        return attempt_id

    def get_all_attempts(self) -> list[QuizAttemptWithResponses]:
        if not self._require_backend("load quiz attempts"):
            return []
        self.cleanup_expired()
        return self._load_attempts([gte("expires_at", format_timestamp(utcnow()))])

    def get_attempts_by_player(self, player_name: str) -> list[QuizAttemptWithResponses]:
        if not self._require_backend("load quiz attempts"):
            return []
        return self._load_attempts(
            [eq("player_name", player_name), gte("expires_at", format_timestamp(utcnow()))]
        )

    def count_attempts_for_session(self, session_id: str) -> int:
        """Number of unexpired attempts for ``session_id``.

        Expired rows are ignored whether or not they have been purged yet.
        Unlike the other calls this raises ``GatewayError`` so the caller can
        tell "no attempts" apart from "could not check".
        """
        if not self._gateway.is_configured():
            raise GatewayError("Backend not configured", code="NOT_CONFIGURED")
        rows = self._gateway.select(
            ATTEMPTS_TABLE,
            [eq("session_id", session_id), gte("expires_at", format_timestamp(utcnow()))],
        )
        return len(rows)

    def count_attempts(self) -> int:
        if not self._require_backend("count quiz attempts"):
            return 0
        try:
            return len(self._gateway.select(ATTEMPTS_TABLE))
        except GatewayError as exc:
            log_gateway_error(logger, "count quiz attempts", exc)
            return 0

    def delete_attempt(self, attempt_id: int) -> bool:
        if not self._require_backend("delete quiz attempt"):
            return False
        try:
            removed = self._gateway.delete(ATTEMPTS_TABLE, [eq("id", attempt_id)])
        except GatewayError as exc:
            log_gateway_error(logger, f"delete quiz attempt {attempt_id}", exc)
            return False
        return bool(removed)

    def cleanup_expired(self) -> int:
        if not self._require_backend("clean up quiz attempts"):
            return 0
        try:
            removed = self._gateway.delete(
                ATTEMPTS_TABLE, [lt("expires_at", format_timestamp(utcnow()))]
            )
        except GatewayError as exc:
            log_gateway_error(logger, "clean up expired quiz attempts", exc)
            return 0
        if removed:
            logger.info("Removed %d expired quiz attempts", len(removed))
        return len(removed)

    def _load_attempts(self, filters: list[Filter]) -> list[QuizAttemptWithResponses]:
        try:
            rows = self._gateway.select(ATTEMPTS_TABLE, filters, [desc("created_at")])
        except GatewayError as exc:
            log_gateway_error(logger, "load quiz attempts", exc)
            return []
        attempts = [QuizAttempt.from_row(row) for row in rows]
        if not attempts:
            return []

        grouped: dict[int, list[QuizAttemptResponse]] = {}
        try:
            response_rows = self._gateway.select(
                RESPONSES_TABLE,
                [in_("attempt_id", [attempt.id for attempt in attempts])],
                [asc("id")],
            )
        except GatewayError as exc:
            log_gateway_error(logger, "load quiz responses", exc)
            response_rows = []
        for row in response_rows:
            response = QuizAttemptResponse.from_row(row)
            grouped.setdefault(response.attempt_id, []).append(response)

        return [
            QuizAttemptWithResponses(attempt=attempt, responses=grouped.get(attempt.id, []))
            for attempt in attempts
        ]
