"""Component for moderating the shared leaderboard."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from trivia_app.constants.ui_constants import LEADERBOARD_SEARCH_PLACEHOLDER, SORT_OPTIONS
from trivia_app.core.models import LeaderboardEntry
from trivia_app.core.services.leaderboard import (
    Leaderboard,
    filter_entries,
    rank_entries,
    sort_entries_by,
)
from trivia_app.ui.dialog_helpers import (
    confirm_clear_leaderboard,
    confirm_delete_entry,
    show_error,
    show_info,
)

_COLUMNS = ("Rank", "Name", "Phone", "Score", "%", "Date")


class LeaderboardPanel(QWidget):
    def __init__(self, leaderboard: Leaderboard, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.leaderboard = leaderboard
        self._entries: list[LeaderboardEntry] = []
        self._shown: list[LeaderboardEntry] = []
        self._ranks: dict[int, int] = {}
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        controls = QHBoxLayout()
        self.search_input = QLineEdit(self)
        self.search_input.setPlaceholderText(LEADERBOARD_SEARCH_PLACEHOLDER)
        self.search_input.textChanged.connect(self._apply_view)
        controls.addWidget(self.search_input, 1)

        controls.addWidget(QLabel("Sort by:", self))
        self.sort_combo = QComboBox(self)
        for key in SORT_OPTIONS:
            self.sort_combo.addItem(key.capitalize(), userData=key)
        self.sort_combo.currentIndexChanged.connect(self._apply_view)
        controls.addWidget(self.sort_combo)

        self.delete_button = QPushButton("Delete Entry", self)
        self.delete_button.clicked.connect(self._handle_delete)
        controls.addWidget(self.delete_button)

        self.clear_button = QPushButton("Clear All", self)
        self.clear_button.clicked.connect(self._handle_clear)
        controls.addWidget(self.clear_button)
        layout.addLayout(controls)

        self.table = QTableWidget(0, len(_COLUMNS), self)
        self.table.setHorizontalHeaderLabels(_COLUMNS)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setSelectionMode(QAbstractItemView.SingleSelection)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        layout.addWidget(self.table, 1)

        self.status_label = QLabel("", self)
        layout.addWidget(self.status_label)

    def refresh(self) -> None:
        self._entries = self.leaderboard.get_leaderboard()
        self._ranks = {id(item.entry): item.rank for item in rank_entries(self._entries)}
        self._apply_view()

    def _apply_view(self) -> None:
        filtered = filter_entries(self._entries, self.search_input.text())
        self._shown = sort_entries_by(filtered, self.sort_combo.currentData() or "score")
        self.table.setRowCount(len(self._shown))
        for row, entry in enumerate(self._shown):
            values = (
                str(self._ranks.get(id(entry), "")),
                entry.name,
                entry.phone_number or "N/A",
                f"{entry.score}/{entry.total_questions}",
                f"{entry.percentage}%",
                entry.timestamp.astimezone().strftime("%Y-%m-%d %H:%M"),
            )
            for column, value in enumerate(values):
                self.table.setItem(row, column, QTableWidgetItem(value))
        self.status_label.setText(f"Showing {len(self._shown)} of {len(self._entries)} entries.")

    def _selected(self) -> LeaderboardEntry | None:
        row = self.table.currentRow()
        if 0 <= row < len(self._shown):
            return self._shown[row]
        return None

    def _handle_delete(self) -> None:
        entry = self._selected()
        if entry is None or entry.id is None:
            show_info(self, "No selection", "Select an entry first.")
            return
        if not confirm_delete_entry(self, entry.name):
            return
        if not self.leaderboard.delete_entry(entry.id):
            show_error(self, "Delete failed", "The entry could not be deleted.")
            return
        self.refresh()

    def _handle_clear(self) -> None:
        if not confirm_clear_leaderboard(self):
            return
        if not self.leaderboard.clear():
            show_error(self, "Clear failed", "The leaderboard could not be cleared.")
            return
        self.refresh()
