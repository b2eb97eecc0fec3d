"""Helper functions for common dialog patterns in the admin dashboard."""

from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget


def _confirm(parent: QWidget, title: str, message: str) -> bool:
    reply = QMessageBox.question(
        parent,
        title,
        message,
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def confirm_delete_question(parent: QWidget, question_text: str) -> bool:
    """Ask before deactivating a question.

    Args:
        parent: Parent widget for the dialog
        question_text: Text of the question, shortened for display

    Returns:
        True if the user confirmed, False otherwise
    """
    preview = question_text if len(question_text) <= 60 else question_text[:57] + "..."
    return _confirm(
        parent,
        "Confirm Delete",
        f"Remove this question from future games?\n\n{preview}",
    )


def confirm_delete_attempt(parent: QWidget, player_name: str) -> bool:
    return _confirm(parent, "Confirm Delete", f"Delete this attempt by {player_name} and all its answers?")


def confirm_delete_entry(parent: QWidget, name: str) -> bool:
    return _confirm(parent, "Confirm Delete", f"Delete the leaderboard entry for {name}?")


def confirm_clear_leaderboard(parent: QWidget) -> bool:
    return _confirm(
        parent,
        "Clear Leaderboard",
        "This permanently deletes every leaderboard entry. Continue?",
    )


def check_unsaved_changes(parent: QWidget) -> bool | None:
    """Ask what to do with an edited but unsaved question.

    Returns:
        True to save, False to discard, None if cancelled
    """
    reply = QMessageBox.question(
        parent,
        "Unsaved Changes",
        "The question is not saved. Do you want to save it?",
        QMessageBox.Yes | QMessageBox.No | QMessageBox.Cancel,
        QMessageBox.Yes,
    )
    if reply == QMessageBox.Yes:
        return True
    if reply == QMessageBox.No:
        return False
    return None


def show_error(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.critical(parent, title, message)


def show_info(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.information(parent, title, message)


def show_warning(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.warning(parent, title, message)
