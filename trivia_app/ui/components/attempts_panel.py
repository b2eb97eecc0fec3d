"""Component for reviewing recent quiz attempts and their answers."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from trivia_app.constants.ui_constants import ATTEMPTS_SEARCH_PLACEHOLDER
from trivia_app.core.models import QuizAttemptResponse, QuizAttemptWithResponses, utcnow
from trivia_app.core.services.attempt_log import AttemptLog, filter_attempts
from trivia_app.ui.dialog_helpers import confirm_delete_attempt, show_error, show_info


def _format_expiry(item: QuizAttemptWithResponses) -> str:
    expires_at = item.attempt.expires_at
    if expires_at is None:
        return ""
    remaining = int((expires_at - utcnow()).total_seconds() // 60)
    if remaining <= 0:
        return "[expired]"
    return f"[expires in {remaining} min]"


def _describe_answer(response: QuizAttemptResponse) -> str:
    if response.timed_out:
        return "Time ran out"
    if response.unanswered:
        return "Not answered"
    options = response.question_options
    if 0 <= response.user_answer < len(options):
        return f"{chr(65 + response.user_answer)}. {options[response.user_answer]}"
    return str(response.user_answer)


class AttemptsPanel(QWidget):
    """Searchable list of attempts with a per-question breakdown."""

    def __init__(self, attempts: AttemptLog, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.attempts = attempts
        self._all: list[QuizAttemptWithResponses] = []
        self._shown: list[QuizAttemptWithResponses] = []
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        controls = QHBoxLayout()
        self.search_input = QLineEdit(self)
        self.search_input.setPlaceholderText(ATTEMPTS_SEARCH_PLACEHOLDER)
        self.search_input.textChanged.connect(self._apply_filter)
        controls.addWidget(self.search_input, 1)

        self.refresh_button = QPushButton("Refresh", self)
        self.refresh_button.clicked.connect(self.refresh)
        controls.addWidget(self.refresh_button)

        self.cleanup_button = QPushButton("Remove Expired", self)
        self.cleanup_button.clicked.connect(self._handle_cleanup)
        controls.addWidget(self.cleanup_button)

        self.delete_button = QPushButton("Delete Attempt", self)
        self.delete_button.clicked.connect(self._handle_delete)
        controls.addWidget(self.delete_button)
        layout.addLayout(controls)

        splitter = QSplitter(Qt.Horizontal, self)
        self.attempt_list = QListWidget(self)
        self.attempt_list.currentRowChanged.connect(self._show_details)
        splitter.addWidget(self.attempt_list)

        self.details_view = QPlainTextEdit(self)
        self.details_view.setReadOnly(True)
        splitter.addWidget(self.details_view)
        splitter.setStretchFactor(1, 2)
        layout.addWidget(splitter, 1)

        self.status_label = QLabel("", self)
        layout.addWidget(self.status_label)

    def refresh(self) -> None:
        self._all = self.attempts.get_all_attempts()
        self._apply_filter()

    def _apply_filter(self) -> None:
        self._shown = filter_attempts(self._all, self.search_input.text())
        self.attempt_list.blockSignals(True)
        self.attempt_list.clear()
        for item in self._shown:
            attempt = item.attempt
            created = attempt.created_at.astimezone().strftime("%H:%M") if attempt.created_at else "--:--"
            text = (
                f"{created}  {attempt.player_name}  {attempt.score}/{attempt.total_questions} "
                f"({attempt.percentage}%)  {_format_expiry(item)}"
            )
            self.attempt_list.addItem(QListWidgetItem(text))
        self.attempt_list.blockSignals(False)
        self.details_view.clear()
        self.status_label.setText(f"Showing {len(self._shown)} of {len(self._all)} attempts.")

    def _selected(self) -> QuizAttemptWithResponses | None:
        row = self.attempt_list.currentRow()
        if 0 <= row < len(self._shown):
            return self._shown[row]
        return None

    def _show_details(self, _row: int) -> None:
        item = self._selected()
        if item is None:
            self.details_view.clear()
            return
        lines = [
            f"Player: {item.attempt.player_name}",
            f"Score: {item.attempt.score}/{item.attempt.total_questions} ({item.attempt.percentage}%)",
            "",
        ]
        if not item.responses:
            lines.append("No answers were recorded for this attempt.")
        for number, response in enumerate(item.responses, start=1):
            mark = "OK " if response.is_correct else "X  "
            correct = response.question_options[response.correct_answer] if (
                0 <= response.correct_answer < len(response.question_options)
            ) else "?"
            lines.append(f"{mark}{number}. {response.question_text}")
            lines.append(f"     Answer: {_describe_answer(response)}")
            lines.append(f"     Correct: {chr(65 + response.correct_answer)}. {correct}")
        self.details_view.setPlainText("\n".join(lines))

    def _handle_delete(self) -> None:
        item = self._selected()
        if item is None or item.attempt.id is None:
            show_info(self, "No selection", "Select an attempt first.")
            return
        if not confirm_delete_attempt(self, item.attempt.player_name):
            return
        if not self.attempts.delete_attempt(item.attempt.id):
            show_error(self, "Delete failed", "The attempt could not be deleted.")
            return
        self.refresh()

    def _handle_cleanup(self) -> None:
        removed = self.attempts.cleanup_expired()
        self.refresh()
        self.status_label.setText(f"Removed {removed} expired attempts.")
