"""Large auto-refreshing top-ten board meant for a second screen."""

from __future__ import annotations

from datetime import datetime

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHeaderView,
    QLabel,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from trivia_app.constants.leaderboard_constants import TV_LEADERBOARD_SIZE, TV_REFRESH_INTERVAL_MS
from trivia_app.core.services.leaderboard import Leaderboard, rank_entries
from trivia_app.styling.styles import Styles

_COLUMNS = ("#", "Name", "Score", "%")


class TvLeaderboardPanel(QWidget):
    def __init__(self, leaderboard: Leaderboard, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.leaderboard = leaderboard
        self._build_ui()
        self._configure_refresh_timer()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)
        self.setStyleSheet(Styles.get_tv_style())

        title = QLabel("Top Scores", self)
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 32pt; font-weight: bold;")
        layout.addWidget(title)

        self.table = QTableWidget(0, len(_COLUMNS), self)
        self.table.setHorizontalHeaderLabels(_COLUMNS)
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.setSelectionMode(QAbstractItemView.NoSelection)
        self.table.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        layout.addWidget(self.table, 1)

        self.updated_label = QLabel("", self)
        self.updated_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.updated_label)

    def _configure_refresh_timer(self) -> None:
        self.refresh_timer = QTimer(self)
        self.refresh_timer.setInterval(TV_REFRESH_INTERVAL_MS)
        self.refresh_timer.timeout.connect(self.refresh)

    def showEvent(self, event) -> None:  # noqa: N802 - Qt override
        super().showEvent(event)
        self.refresh()
        self.refresh_timer.start()

    def hideEvent(self, event) -> None:  # noqa: N802 - Qt override
        self.refresh_timer.stop()
        super().hideEvent(event)

    def refresh(self) -> None:
        ranked = rank_entries(self.leaderboard.get_top_scores(TV_LEADERBOARD_SIZE))
        self.table.setRowCount(len(ranked))
        for row, item in enumerate(ranked):
            entry = item.entry
            values = (str(item.rank), entry.name, f"{entry.score}/{entry.total_questions}", f"{entry.percentage}%")
            color = QColor(Styles.get_rank_color(item.rank))
            for column, value in enumerate(values):
                cell = QTableWidgetItem(value)
                cell.setForeground(color)
                self.table.setItem(row, column, cell)
        self.updated_label.setText(f"Updated {datetime.now().strftime('%H:%M:%S')}")
