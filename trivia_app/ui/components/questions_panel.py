"""Component for browsing, editing, importing and exporting the question pool."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QButtonGroup,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QRadioButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from trivia_app.constants.quiz_constants import MIN_OPTIONS_PER_QUESTION
from trivia_app.constants.ui_constants import (
    DEFAULT_OPTION_SLOTS,
    EXPORT_DIALOG_TITLE,
    EXPORT_FILE_FILTER,
    IMPORT_DIALOG_TITLE,
    IMPORT_FILE_FILTER,
    PLACEHOLDER_QUESTION,
    QUESTIONS_ADD_BUTTON,
    QUESTIONS_ADD_OPTION_BUTTON,
    QUESTIONS_CANCEL_BUTTON,
    QUESTIONS_DELETE_BUTTON,
    QUESTIONS_EXPORT_BUTTON,
    QUESTIONS_IMPORT_BUTTON,
    QUESTIONS_REMOVE_OPTION_BUTTON,
    QUESTIONS_SAVE_BUTTON,
)
from trivia_app.core.models import Question
from trivia_app.core.question_exporter import save_questions_to_file
from trivia_app.core.question_importer import (
    QuestionImportError,
    check_import_status,
    import_questions,
    load_questions_from_file,
)
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.ui.dialog_helpers import (
    check_unsaved_changes,
    confirm_delete_question,
    show_error,
    show_info,
    show_warning,
)
from trivia_app.ui.question_renderer import render_question_with_options

_MAX_OPTIONS = 26


class QuestionsPanel(QWidget):
    """List of active questions on the left, editor and preview on the right."""

    def __init__(self, repository: QuestionRepository, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.repository = repository
        self._questions: list[Question] = []
        self._editing_id: int | None = None
        self._has_unsaved_changes = False
        self._last_export_path: Path | None = None

        self.option_inputs: list[QLineEdit] = []
        self.correct_buttons = QButtonGroup(self)
        self.correct_buttons.setExclusive(True)

        self._build_ui()
        self.clear_fields()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        action_row = QHBoxLayout()
        self.add_button = QPushButton(QUESTIONS_ADD_BUTTON, self)
        self.add_button.clicked.connect(self._handle_new_question)
        action_row.addWidget(self.add_button)

        self.import_button = QPushButton(QUESTIONS_IMPORT_BUTTON, self)
        self.import_button.clicked.connect(self._handle_import)
        action_row.addWidget(self.import_button)

        self.export_button = QPushButton(QUESTIONS_EXPORT_BUTTON, self)
        self.export_button.clicked.connect(self._handle_export)
        action_row.addWidget(self.export_button)
        action_row.addStretch(1)
        layout.addLayout(action_row)

        splitter = QSplitter(Qt.Horizontal, self)

        self.question_list = QListWidget(self)
        self.question_list.currentItemChanged.connect(self._handle_selection_changed)
        splitter.addWidget(self.question_list)

        editor = QWidget(self)
        editor_layout = QVBoxLayout()
        editor.setLayout(editor_layout)

        self.question_input = QPlainTextEdit(editor)
        self.question_input.setPlaceholderText(PLACEHOLDER_QUESTION)
        self.question_input.textChanged.connect(self._on_input_changed)
        editor_layout.addWidget(self.question_input)

        editor_layout.addWidget(QLabel("Options (select the correct one):", editor))
        self.options_layout = QVBoxLayout()
        editor_layout.addLayout(self.options_layout)

        option_buttons = QHBoxLayout()
        self.add_option_button = QPushButton(QUESTIONS_ADD_OPTION_BUTTON, editor)
        self.add_option_button.clicked.connect(lambda: self._add_option_row(""))
        option_buttons.addWidget(self.add_option_button)
        self.remove_option_button = QPushButton(QUESTIONS_REMOVE_OPTION_BUTTON, editor)
        self.remove_option_button.clicked.connect(self._remove_last_option_row)
        option_buttons.addWidget(self.remove_option_button)
        editor_layout.addLayout(option_buttons)

        form_buttons = QHBoxLayout()
        self.save_button = QPushButton(QUESTIONS_SAVE_BUTTON, editor)
        self.save_button.clicked.connect(self._handle_save)
        form_buttons.addWidget(self.save_button)
        self.cancel_button = QPushButton(QUESTIONS_CANCEL_BUTTON, editor)
        self.cancel_button.clicked.connect(self._handle_cancel)
        form_buttons.addWidget(self.cancel_button)
        self.delete_button = QPushButton(QUESTIONS_DELETE_BUTTON, editor)
        self.delete_button.clicked.connect(self._handle_delete)
        form_buttons.addWidget(self.delete_button)
        editor_layout.addLayout(form_buttons)

        self.preview_view = QWebEngineView(editor)
        editor_layout.addWidget(self.preview_view, 1)

        splitter.addWidget(editor)
        splitter.setStretchFactor(1, 2)
        layout.addWidget(splitter, 1)

        self.status_label = QLabel("", self)
        layout.addWidget(self.status_label)

    # --- Option rows ---

    def _reset_option_rows(self, count: int, values: list[str] | None = None) -> None:
        while self.option_inputs:
            self._pop_option_row()
        values = values or []
        for index in range(max(count, len(values))):
            self._add_option_row(values[index] if index < len(values) else "")

    def _add_option_row(self, text: str) -> None:
        if len(self.option_inputs) >= _MAX_OPTIONS:
            return
        index = len(self.option_inputs)
        row = QHBoxLayout()
        radio = QRadioButton(chr(65 + index), self)
        radio.toggled.connect(lambda _checked: self._on_input_changed())
        self.correct_buttons.addButton(radio, index)
        row.addWidget(radio)
        field = QLineEdit(self)
        field.setPlaceholderText(f"Option {chr(65 + index)}")
        field.setText(text)
        field.textChanged.connect(self._on_input_changed)
        row.addWidget(field, 1)
        self.options_layout.addLayout(row)
        self.option_inputs.append(field)
        self._on_input_changed()

    def _remove_last_option_row(self) -> None:
        if len(self.option_inputs) <= MIN_OPTIONS_PER_QUESTION:
            show_warning(self, "Options", f"A question needs at least {MIN_OPTIONS_PER_QUESTION} options.")
            return
        self._pop_option_row()
        self._on_input_changed()

    def _pop_option_row(self) -> None:
        field = self.option_inputs.pop()
        index = len(self.option_inputs)
        radio = self.correct_buttons.button(index)
        row = self.options_layout.takeAt(index)
        if radio is not None:
            self.correct_buttons.removeButton(radio)
            radio.deleteLater()
        field.deleteLater()
        if row is not None:
            row.layout().deleteLater()

    # --- Data ---

    def refresh(self) -> None:
        self._questions = self.repository.get_questions_with_ids()
        self.question_list.blockSignals(True)
        self.question_list.clear()
        for number, question in enumerate(self._questions, start=1):
            label = question.text.splitlines()[0] if question.text else ""
            item = QListWidgetItem(f"{number}. {label}")
            item.setData(Qt.UserRole, question.id)
            self.question_list.addItem(item)
        self.question_list.blockSignals(False)
        self.status_label.setText(f"{len(self._questions)} active questions.")

    def _handle_selection_changed(self, current: QListWidgetItem | None, _previous) -> None:
        if current is None:
            return
        if not self.check_unsaved_changes():
            return
        question_id = current.data(Qt.UserRole)
        question = next((q for q in self._questions if q.id == question_id), None)
        if question is not None:
            self.populate_fields(question)

    def populate_fields(self, question: Question) -> None:
        self._editing_id = question.id
        self.question_input.setPlainText(question.text)
        self._reset_option_rows(len(question.options), list(question.options))
        button = self.correct_buttons.button(question.correct_answer)
        if button is not None:
            button.setChecked(True)
        self._has_unsaved_changes = False
        self._refresh_preview()

    def clear_fields(self) -> None:
        self._editing_id = None
        self.question_input.clear()
        self._reset_option_rows(DEFAULT_OPTION_SLOTS)
        self._has_unsaved_changes = False
        self._refresh_preview()

    def _build_question_from_inputs(self) -> Question:
        correct = self.correct_buttons.checkedId()
        if correct < 0:
            raise ValueError("Select the correct option before saving.")
        options = [field.text() for field in self.option_inputs]
        if not options[correct].strip():
            raise ValueError("The correct option cannot be empty.")
        # Empty options are dropped on save, so shift the key past any removed ones.
        shift = sum(1 for option in options[:correct] if not option.strip())
        return Question(
            id=self._editing_id,
            text=self.question_input.toPlainText(),
            options=options,
            correct_answer=correct - shift,
        )

    # --- Actions ---

    def _on_input_changed(self) -> None:
        self._has_unsaved_changes = True
        self._refresh_preview()

    def _refresh_preview(self) -> None:
        options = [field.text() for field in self.option_inputs]
        correct = self.correct_buttons.checkedId()
        html = render_question_with_options(
            self.question_input.toPlainText(),
            options,
            correct if correct >= 0 else None,
        )
        self.preview_view.setHtml(html)

    def _handle_new_question(self) -> None:
        if not self.check_unsaved_changes():
            return
        self.question_list.clearSelection()
        self.clear_fields()
        self.status_label.setText("Ready to add a new question.")

    def _handle_save(self) -> None:
        try:
            question = self._build_question_from_inputs()
            if self._editing_id is None:
                new_id = self.repository.add_question(question)
                saved = new_id is not None
                if saved:
                    self._editing_id = new_id
            else:
                saved = self.repository.update_question(self._editing_id, question)
        except ValueError as exc:
            show_warning(self, "Invalid question", str(exc))
            return

        if not saved:
            show_error(self, "Save failed", "The question could not be saved. Check the log for details.")
            return
        self._has_unsaved_changes = False
        self.refresh()
        self.status_label.setText("Question saved.")

    def _handle_cancel(self) -> None:
        self._has_unsaved_changes = False
        question = next((q for q in self._questions if q.id == self._editing_id), None)
        if question is not None:
            self.populate_fields(question)
        else:
            self.clear_fields()

    def _handle_delete(self) -> None:
        if self._editing_id is None:
            show_info(self, "No selection", "Select a saved question before deleting.")
            return
        if not confirm_delete_question(self, self.question_input.toPlainText().strip()):
            return
        if not self.repository.delete_question(self._editing_id):
            show_error(self, "Delete failed", "The question could not be removed.")
            return
        self.clear_fields()
        self.refresh()
        self.status_label.setText("Question removed from future games.")

    def _handle_import(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            IMPORT_DIALOG_TITLE,
            str(Path.home()),
            IMPORT_FILE_FILTER,
        )
        if not file_path:
            return
        try:
            imported = load_questions_from_file(Path(file_path))
        except (OSError, QuestionImportError) as exc:
            show_error(self, "Import failed", str(exc))
            return

        status = check_import_status(self.repository, imported.questions)
        if status.missing == 0:
            show_info(self, "Nothing to import", "Every question in this file is already in the pool.")
            return

        result = import_questions(self.repository, imported.questions)
        self.refresh()
        details = (
            f"Added: {result.success}\nSkipped (duplicates): {result.skipped}\nFailed: {result.failed}"
        )
        if result.errors:
            details += "\n\n" + "\n".join(result.errors[:10])
        show_info(self, "Import finished", details)

    def _handle_export(self) -> None:
        default_path = self._last_export_path or (Path.cwd() / "questions_export.txt")
        file_path, _ = QFileDialog.getSaveFileName(
            self,
            EXPORT_DIALOG_TITLE,
            str(default_path),
            EXPORT_FILE_FILTER,
        )
        if not file_path:
            return
        try:
            save_questions_to_file(Path(file_path), self.repository.get_questions_with_ids())
        except (OSError, ValueError) as exc:
            show_error(self, "Export failed", str(exc))
            return
        self._last_export_path = Path(file_path)
        show_info(self, "Questions exported", f"Questions exported to {file_path}.")

    def check_unsaved_changes(self) -> bool:
        """Prompt about unsaved edits. Returns True if it is ok to proceed."""
        if not self._has_unsaved_changes:
            return True
        result = check_unsaved_changes(self)
        if result is True:
            self._handle_save()
            return not self._has_unsaved_changes
        if result is False:
            self._has_unsaved_changes = False
            return True
        return False
