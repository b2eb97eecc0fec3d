"""Summary numbers shown on the admin dashboard cards."""

from __future__ import annotations

from dataclasses import dataclass

from trivia_app.core.services.attempt_log import AttemptLog
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.core.services.quiz_session import divide_half_up


@dataclass(slots=True)
class DashboardStats:
    total_entries: int = 0
    question_count: int = 0
    attempt_count: int = 0
    top_percentage: int = 0
    average_percentage: int = 0


def collect_dashboard_stats(
    leaderboard: Leaderboard,
    questions: QuestionRepository,
    attempts: AttemptLog,
) -> DashboardStats:
    entries = leaderboard.get_leaderboard()
    percentages = [entry.percentage for entry in entries]
    return DashboardStats(
        total_entries=len(entries),
        question_count=questions.get_question_count(),
        attempt_count=attempts.count_attempts(),
        top_percentage=max(percentages, default=0),
        average_percentage=divide_half_up(sum(percentages), len(percentages)),
    )
