"""Export questions to the plain-text format read by the importer."""

from __future__ import annotations

from pathlib import Path
import string
from typing import Sequence

from trivia_app.core.models import Question

_OPTION_LETTERS = string.ascii_uppercase


def save_questions_to_file(file_path: Path, questions: Sequence[Question]) -> None:
    if not questions:
        raise ValueError("There are no questions to export.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_questions(questions), encoding="utf-8")


def serialize_questions(questions: Sequence[Question]) -> str:
    return "\n\n---\n\n".join(_serialize_question(q) for q in questions) + "\n"


def _serialize_question(question: Question) -> str:
    question_lines = question.text.splitlines() or [""]
    lines = [f"Q: {question_lines[0]}", *question_lines[1:]]

    for letter, option in zip(_OPTION_LETTERS, question.options):
        option_lines = option.splitlines() or [""]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    lines.append(f"CORRECT: {_OPTION_LETTERS[question.correct_answer]}")
    return "\n".join(lines)
