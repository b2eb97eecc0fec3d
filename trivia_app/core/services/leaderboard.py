"""Service for the shared leaderboard and its ranking rules."""

from __future__ import annotations

import logging
from typing import Sequence

from trivia_app.constants.leaderboard_constants import LEADERBOARD_MAX_ENTRIES, TV_LEADERBOARD_SIZE
from trivia_app.core.models import LeaderboardEntry, RankedEntry
from trivia_app.core.services.gateway_service import GatewayService
from trivia_app.persistence.gateway import (
    LEADERBOARD_TABLE,
    GatewayError,
    PersistenceGateway,
    desc,
    eq,
    log_gateway_error,
    neq,
)

logger = logging.getLogger(__name__)

_LEADERBOARD_ORDER = (desc("score"), desc("percentage"), desc("created_at"))


def sort_entries(entries: Sequence[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Score, then percentage, then most recent first."""
    return sorted(
        entries,
        key=lambda e: (e.score, e.percentage, e.timestamp),
        reverse=True,
    )


def rank_entries(entries: Sequence[LeaderboardEntry]) -> list[RankedEntry]:
    """Competition ranking: ties on (score, percentage) share a rank, the next rank skips.

    Scores 7, 7, 6, 5 rank as 1, 1, 3, 4.
    """
    ranked: list[RankedEntry] = []
    previous_key: tuple[int, int] | None = None
    current_rank = 0
    for position, entry in enumerate(sort_entries(entries), start=1):
        key = (entry.score, entry.percentage)
        if key != previous_key:
            current_rank = position
            previous_key = key
        ranked.append(RankedEntry(rank=current_rank, entry=entry))
    return ranked


def filter_entries(entries: Sequence[LeaderboardEntry], query: str) -> list[LeaderboardEntry]:
    """Case-insensitive match on name or phone number, or an exact score."""
    needle = query.strip().lower()
    if not needle:
        return list(entries)
    return [
        entry
        for entry in entries
        if needle in entry.name.lower()
        or (entry.phone_number and needle in entry.phone_number.lower())
        or needle == str(entry.score)
    ]


def sort_entries_by(entries: Sequence[LeaderboardEntry], key: str) -> list[LeaderboardEntry]:
    """Admin sort: ``score`` (ranking order), ``date`` (newest first) or ``name``."""
    if key == "date":
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)
    if key == "name":
        return sorted(entries, key=lambda e: e.name.lower())
    if key == "score":
        return sort_entries(entries)
    raise ValueError(f"Unknown sort key: {key}")


class Leaderboard(GatewayService):
    """Reads, posts and moderates leaderboard entries."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        super().__init__(gateway, logger)

    def get_leaderboard(self, limit: int = LEADERBOARD_MAX_ENTRIES) -> list[LeaderboardEntry]:
        if not self._require_backend("load the leaderboard"):
            return []
        try:
            rows = self._gateway.select(LEADERBOARD_TABLE, order_by=_LEADERBOARD_ORDER, limit=limit)
        except GatewayError as exc:
            log_gateway_error(logger, "load the leaderboard", exc)
            return []
        return [LeaderboardEntry.from_row(row) for row in rows]

    def get_top_scores(self, limit: int = TV_LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        return self.get_leaderboard(limit)

    def get_ranked(self, limit: int = LEADERBOARD_MAX_ENTRIES) -> list[RankedEntry]:
        return rank_entries(self.get_leaderboard(limit))

    def add_entry(
        self,
        name: str,
        score: int,
        total_questions: int,
        percentage: int,
        *,
        session_id: str | None = None,
        phone_number: str | None = None,
    ) -> bool:
        if not self._require_backend("save the score"):
            return False
        entry = LeaderboardEntry(
            name=name,
            score=score,
            total_questions=total_questions,
            percentage=percentage,
            session_id=session_id,
            phone_number=phone_number,
        )
        try:
            stored = self._gateway.insert(LEADERBOARD_TABLE, entry.to_row())
        except GatewayError as exc:
            log_gateway_error(logger, "save the score", exc)
            return False
        if not stored:
            logger.error("No data returned from leaderboard insert")
            return False
        logger.info("Leaderboard entry saved for %s (%d/%d)", name, score, total_questions)
        return True

    def delete_entry(self, entry_id: int) -> bool:
        if not self._require_backend("delete leaderboard entry"):
            return False
        try:
            removed = self._gateway.delete(LEADERBOARD_TABLE, [eq("id", entry_id)])
        except GatewayError as exc:
            log_gateway_error(logger, f"delete leaderboard entry {entry_id}", exc)
            return False
        return bool(removed)

    def delete_own_entry(self, entry_id: int, session_id: str) -> bool:
        """Delete ``entry_id`` only if it was posted from ``session_id``."""
        if not session_id or not self._require_backend("delete leaderboard entry"):
            return False
        try:
            removed = self._gateway.delete(
                LEADERBOARD_TABLE, [eq("id", entry_id), eq("session_id", session_id)]
            )
        except GatewayError as exc:
            log_gateway_error(logger, f"delete leaderboard entry {entry_id}", exc)
            return False
        return bool(removed)

    def clear(self) -> bool:
        if not self._require_backend("clear the leaderboard"):
            return False
        try:
            # PostgREST refuses an unfiltered DELETE.
            self._gateway.delete(LEADERBOARD_TABLE, [neq("id", 0)])
        except GatewayError as exc:
            log_gateway_error(logger, "clear the leaderboard", exc)
            return False
        logger.info("Leaderboard cleared")
        return True
