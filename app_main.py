"""Application entry point for TriviaQt."""

from __future__ import annotations

import socket
import sys
from logging import Logger
from pathlib import Path

from PySide6.QtWidgets import QApplication

from trivia_app.config import Settings, get_settings
from trivia_app.core.question_importer import (
    QuestionImportError,
    import_questions,
    load_questions_from_file,
)
from trivia_app.core.services.attempt_log import AttemptLog
from trivia_app.core.services.game_flow import GameFlow, GameFlowRegistry
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.core.session_identity import SessionIdentityService
from trivia_app.persistence.factory import build_gateway
from trivia_app.server.api_server import start_api_server
from trivia_app.ui.admin_main_window import AdminMainWindow
from trivia_app.utils.logging_config import configure_logging


def _determine_player_url(port: int) -> str:
    """Best-effort determination of the local IP for the player-facing URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def _seed_questions(settings: Settings, repository: QuestionRepository, logger: Logger) -> None:
    if not settings.seed_file:
        return
    try:
        imported = load_questions_from_file(Path(settings.seed_file))
    except (OSError, QuestionImportError) as exc:
        logger.warning("Could not load seed questions from %s: %s", settings.seed_file, exc)
        return
    result = import_questions(repository, imported.questions)
    logger.info(
        "Seeded questions from %s: %d added, %d skipped, %d failed",
        settings.seed_file,
        result.success,
        result.skipped,
        result.failed,
    )


def main() -> None:
    """Wire the services, start the player server, and launch the dashboard."""
    settings = get_settings()
    logger = configure_logging(settings.log_level)
    logger.info("Starting TriviaQt...")

    gateway = build_gateway(settings)
    questions = QuestionRepository(gateway)
    leaderboard = Leaderboard(gateway)
    attempts = AttemptLog(gateway)
    _seed_questions(settings, questions, logger)

    registry = GameFlowRegistry(
        lambda session_id: GameFlow(
            session_id,
            questions=questions,
            leaderboard=leaderboard,
            attempts=attempts,
        ),
        idle_timeout_seconds=settings.flow_idle_timeout_seconds,
    )
    start_api_server(registry, leaderboard, SessionIdentityService(), settings)
    player_url = _determine_player_url(settings.port)
    logger.info("Player page available at %s", player_url)

    app = QApplication(sys.argv)
    window = AdminMainWindow(questions, attempts, leaderboard, player_url=player_url)
    window.show()
    window.warn_if_unconfigured()
    exit_code = app.exec()
    registry.close_all()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
