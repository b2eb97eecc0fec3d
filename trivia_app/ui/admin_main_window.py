"""Qt main window for the trivia admin dashboard."""

from __future__ import annotations

from enum import Enum, auto

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from trivia_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION, HELP_TEXT
from trivia_app.constants.ui_constants import (
    NAV_BUTTON_ATTEMPTS,
    NAV_BUTTON_LEADERBOARD,
    NAV_BUTTON_QUESTIONS,
    NAV_BUTTON_REFRESH,
    NAV_BUTTON_TV,
    NO_BACKEND_MESSAGE,
    PLAYER_URL_PLACEHOLDER,
    STATS_REFRESH_INTERVAL_MS,
    WINDOW_TITLE,
)
from trivia_app.core.services.attempt_log import AttemptLog
from trivia_app.core.services.dashboard_stats import DashboardStats, collect_dashboard_stats
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.styling.styles import Styles
from trivia_app.ui.components.attempts_panel import AttemptsPanel
from trivia_app.ui.components.leaderboard_panel import LeaderboardPanel
from trivia_app.ui.components.questions_panel import QuestionsPanel
from trivia_app.ui.components.tv_leaderboard_panel import TvLeaderboardPanel
from trivia_app.ui.dialog_helpers import show_info, show_warning


class AdminView(Enum):
    """Pages of the dashboard stack, in stack order."""

    LEADERBOARD = auto()
    QUESTIONS = auto()
    ATTEMPTS = auto()
    TV = auto()


class AdminMainWindow(QMainWindow):
    """Dashboard with summary cards on top and one page per admin task."""

    def __init__(
        self,
        questions: QuestionRepository,
        attempts: AttemptLog,
        leaderboard: Leaderboard,
        player_url: str | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)

        self.questions = questions
        self.attempts = attempts
        self.leaderboard = leaderboard
        self.player_url = player_url or PLAYER_URL_PLACEHOLDER
        self._view = AdminView.LEADERBOARD

        self._build_ui()
        self._configure_refresh_timer()
        self.setStyleSheet(Styles.get_main_window_style())
        self._set_view(AdminView.LEADERBOARD)
        self.refresh_stats()

    def _build_ui(self) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)

        root_layout = QVBoxLayout()
        central_widget.setLayout(root_layout)

        header = QHBoxLayout()
        self.url_label = QLabel(f"Players join at: {self.player_url}", self)
        self.url_label.setStyleSheet(Styles.get_large_label_style())
        header.addWidget(self.url_label, 1)
        self.backend_label = QLabel("", self)
        header.addWidget(self.backend_label)
        root_layout.addLayout(header)

        self._build_stat_cards(root_layout)
        self._build_nav_buttons(root_layout)

        self.view_stack = QStackedWidget(self)
        self.leaderboard_panel = LeaderboardPanel(self.leaderboard, self)
        self.questions_panel = QuestionsPanel(self.questions, self)
        self.attempts_panel = AttemptsPanel(self.attempts, self)
        self.tv_panel = TvLeaderboardPanel(self.leaderboard, self)

        self.view_stack.addWidget(self.leaderboard_panel)
        self.view_stack.addWidget(self.questions_panel)
        self.view_stack.addWidget(self.attempts_panel)
        self.view_stack.addWidget(self.tv_panel)
        root_layout.addWidget(self.view_stack, 1)

    def _build_stat_cards(self, layout: QVBoxLayout) -> None:
        row = QHBoxLayout()
        self._stat_labels: dict[str, QLabel] = {}
        for key, caption in (
            ("total_entries", "Leaderboard Entries"),
            ("question_count", "Active Questions"),
            ("attempt_count", "Recent Attempts"),
            ("top_percentage", "Top Score %"),
            ("average_percentage", "Average %"),
        ):
            card = QFrame(self)
            card.setStyleSheet(Styles.get_stat_card_style())
            card_layout = QVBoxLayout()
            card.setLayout(card_layout)
            value_label = QLabel("0", card)
            value_label.setStyleSheet(Styles.get_stat_value_style())
            card_layout.addWidget(value_label)
            card_layout.addWidget(QLabel(caption, card))
            self._stat_labels[key] = value_label
            row.addWidget(card)
        layout.addLayout(row)

    def _build_nav_buttons(self, layout: QVBoxLayout) -> None:
        button_row = QHBoxLayout()
        self._nav_buttons: dict[AdminView, QPushButton] = {}
        for view, caption in (
            (AdminView.LEADERBOARD, NAV_BUTTON_LEADERBOARD),
            (AdminView.QUESTIONS, NAV_BUTTON_QUESTIONS),
            (AdminView.ATTEMPTS, NAV_BUTTON_ATTEMPTS),
            (AdminView.TV, NAV_BUTTON_TV),
        ):
            button = QPushButton(caption, self)
            button.setCheckable(True)
            button.clicked.connect(lambda _checked=False, target=view: self._handle_nav(target))
            button_row.addWidget(button)
            self._nav_buttons[view] = button

        self.refresh_button = QPushButton(NAV_BUTTON_REFRESH, self)
        self.refresh_button.clicked.connect(self.refresh_stats)
        button_row.addWidget(self.refresh_button)

        self.about_button = QPushButton(f"About {APP_NAME}", self)
        self.about_button.clicked.connect(self._handle_about)
        button_row.addWidget(self.about_button)

        self.help_button = QPushButton("Help", self)
        self.help_button.clicked.connect(self._handle_help)
        button_row.addWidget(self.help_button)

        layout.addLayout(button_row)

    def _configure_refresh_timer(self) -> None:
        self.refresh_timer = QTimer(self)
        self.refresh_timer.setInterval(STATS_REFRESH_INTERVAL_MS)
        self.refresh_timer.timeout.connect(self.refresh_stats)
        self.refresh_timer.start()

    def _handle_nav(self, view: AdminView) -> None:
        if self._view == AdminView.QUESTIONS and view != AdminView.QUESTIONS:
            if not self.questions_panel.check_unsaved_changes():
                self._nav_buttons[view].setChecked(False)
                return
        self._set_view(view)

    def _set_view(self, view: AdminView) -> None:
        self._view = view
        for target, button in self._nav_buttons.items():
            button.setChecked(target == view)

        index_map = {
            AdminView.LEADERBOARD: 0,
            AdminView.QUESTIONS: 1,
            AdminView.ATTEMPTS: 2,
            AdminView.TV: 3,
        }
        self.view_stack.setCurrentIndex(index_map[view])
        self._refresh_current_view()

    def _refresh_current_view(self) -> None:
        if self._view == AdminView.LEADERBOARD:
            self.leaderboard_panel.refresh()
        elif self._view == AdminView.QUESTIONS:
            self.questions_panel.refresh()
        elif self._view == AdminView.ATTEMPTS:
            self.attempts_panel.refresh()

    def refresh_stats(self) -> None:
        available = self.leaderboard.is_available()
        self.backend_label.setText("Backend connected" if available else "Backend not configured")
        self.backend_label.setStyleSheet(Styles.get_status_style(available))
        if not available:
            self._show_stats(DashboardStats())
            return
        self._show_stats(collect_dashboard_stats(self.leaderboard, self.questions, self.attempts))

    def _show_stats(self, stats: DashboardStats) -> None:
        self._stat_labels["total_entries"].setText(str(stats.total_entries))
        self._stat_labels["question_count"].setText(str(stats.question_count))
        self._stat_labels["attempt_count"].setText(str(stats.attempt_count))
        self._stat_labels["top_percentage"].setText(f"{stats.top_percentage}%")
        self._stat_labels["average_percentage"].setText(f"{stats.average_percentage}%")

    def warn_if_unconfigured(self) -> None:
        if not self.leaderboard.is_available():
            show_warning(self, "No backend", NO_BACKEND_MESSAGE)

    def _handle_about(self) -> None:
        details = (
            f"{APP_NAME} v{APP_VERSION}\n"
            f"License: {APP_LICENSE}\n\n"
            f"{APP_ABOUT_TEXT}"
        )
        show_info(self, f"About {APP_NAME}", details)

    def _handle_help(self) -> None:
        show_info(self, f"{APP_NAME} Help", HELP_TEXT)

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        if self.questions_panel.check_unsaved_changes():
            self.refresh_timer.stop()
            event.accept()
        else:
            event.ignore()
