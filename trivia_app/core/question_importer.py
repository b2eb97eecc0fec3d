"""Import questions from a human-friendly text file into the question pool.

File format (blocks separated by blank lines or '---'):

    Q: Question text (markdown). Additional lines until the next marker
       are treated as part of the question.
    A: First option
    B: Second option
    C: Third option        (two to twenty-six options, lettered in order)
    CORRECT: B

Example:

    Q: Which planet is known as the Red Planet?
    A: Venus
    B: Mars
    C: Jupiter
    D: Saturn
    CORRECT: B

Architecture note:
    Parsing is isolated from storage. ``load_questions_from_file`` only turns
    text into ``Question`` objects; ``import_questions`` pushes them through
    the repository, skipping texts already present (case-insensitive), so the
    same file can be imported again safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import string
from typing import Sequence

from trivia_app.constants.quiz_constants import MIN_OPTIONS_PER_QUESTION
from trivia_app.core.models import Question
from trivia_app.core.services.question_repository import QuestionRepository

logger = logging.getLogger(__name__)

_OPTION_LETTERS = string.ascii_uppercase


class QuestionImportError(Exception):
    """Raised when a question file cannot be parsed."""


@dataclass(slots=True)
class ImportedQuestions:
    source_path: Path
    questions: list[Question]


@dataclass(slots=True)
class ImportResult:
    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ImportStatus:
    total_in_file: int
    total_in_database: int
    missing: int
    percentage: int


def load_questions_from_file(file_path: Path) -> ImportedQuestions:
    text = file_path.read_text(encoding="utf-8")
    questions = parse_questions_text(text)
    if not questions:
        raise QuestionImportError("Question file did not contain any questions.")
    return ImportedQuestions(source_path=file_path, questions=questions)


def parse_questions_text(text: str) -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions: list[Question] = []
    for number, block in enumerate(blocks, start=1):
        try:
            questions.append(_parse_block(block))
        except QuestionImportError as exc:
            raise QuestionImportError(f"Question {number}: {exc}") from exc
    return questions


def _parse_block(block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) >= 2 and line[0].upper() in _OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionImportError("Question text missing (Q: ...)")

    expected = _OPTION_LETTERS[: len(options)]
    if sorted(options) != list(expected):
        raise QuestionImportError(f"Options must be lettered consecutively from A (got {', '.join(sorted(options))}).")
    if len(options) < MIN_OPTIONS_PER_QUESTION:
        raise QuestionImportError(f"Each question needs at least {MIN_OPTIONS_PER_QUESTION} options.")

    option_list = [options[letter].strip() for letter in expected]
    if any(not option for option in option_list):
        raise QuestionImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise QuestionImportError("CORRECT line missing.")
    if correct_letter not in expected:
        raise QuestionImportError(f"CORRECT must be one of {', '.join(expected)}.")

    return Question(
        text=question_text,
        options=option_list,
        correct_answer=expected.index(correct_letter),
    )


def _normalized(text: str) -> str:
    return text.strip().lower()


def import_questions(repository: QuestionRepository, questions: Sequence[Question]) -> ImportResult:
    """Add every question whose text is not already in the pool."""
    result = ImportResult()
    existing = {_normalized(q.text) for q in repository.get_questions_with_ids()}

    for number, question in enumerate(questions, start=1):
        key = _normalized(question.text)
        if key in existing:
            logger.info("Skipping question %d: already in the pool", number)
            result.skipped += 1
            continue
        try:
            new_id = repository.add_question(question)
        except ValueError as exc:
            result.failed += 1
            result.errors.append(f"Question {number}: {exc}")
            continue
        if new_id is None:
            result.failed += 1
            result.errors.append(f"Question {number}: no id returned from the backend")
            continue
        existing.add(key)
        result.success += 1

    logger.info(
        "Import finished: %d added, %d skipped, %d failed",
        result.success,
        result.skipped,
        result.failed,
    )
    return result


def check_import_status(repository: QuestionRepository, questions: Sequence[Question]) -> ImportStatus:
    stored = repository.get_questions_with_ids()
    existing = {_normalized(q.text) for q in stored}
    missing = sum(1 for q in questions if _normalized(q.text) not in existing)
    total = len(questions)
    present = total - missing
    return ImportStatus(
        total_in_file=total,
        total_in_database=len(stored),
        missing=missing,
        percentage=(present * 200 + total) // (2 * total) if total else 0,
    )
