"""Tests for importing and exporting question files."""

import pytest

from trivia_app.core.models import Question
from trivia_app.core.question_exporter import save_questions_to_file, serialize_questions
from trivia_app.core.question_importer import (
    QuestionImportError,
    check_import_status,
    import_questions,
    load_questions_from_file,
    parse_questions_text,
)
from trivia_app.core.services.question_repository import QuestionRepository

SAMPLE = """
Q: Which planet is known as the red planet?
A: Venus
B: Mars
C: Jupiter
CORRECT: B

Q: What is 2 + 2?
Write the answer in digits.
A: 3
B: 4
CORRECT: b
---
Q: Largest ocean?
A: Atlantic
B: Pacific
C: Indian
D: Arctic
CORRECT: B
"""


class TestParsing:
    def test_parses_blocks(self):
        questions = parse_questions_text(SAMPLE)
        assert len(questions) == 3
        assert questions[0].options == ["Venus", "Mars", "Jupiter"]
        assert questions[0].correct_answer == 1
        assert questions[1].text == "What is 2 + 2?\nWrite the answer in digits."
        assert questions[2].correct_answer == 1

    def test_error_names_the_question(self):
        text = "Q: ok?\nA: x\nB: y\nCORRECT: A\n\nQ: broken?\nA: x\nB: y\n"
        with pytest.raises(QuestionImportError, match="Question 2: CORRECT line missing"):
            parse_questions_text(text)

    def test_letters_must_be_consecutive(self):
        with pytest.raises(QuestionImportError, match="consecutively"):
            parse_questions_text("Q: gap?\nA: x\nC: y\nCORRECT: A\n")

    def test_needs_two_options(self):
        with pytest.raises(QuestionImportError, match="at least 2"):
            parse_questions_text("Q: one?\nA: x\nCORRECT: A\n")

    def test_correct_letter_must_exist(self):
        with pytest.raises(QuestionImportError, match="CORRECT must be one of"):
            parse_questions_text("Q: which?\nA: x\nB: y\nCORRECT: D\n")

    def test_empty_file_rejected(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("\n\n", encoding="utf-8")
        with pytest.raises(QuestionImportError):
            load_questions_from_file(path)


class TestImport:
    def test_import_skips_duplicates(self, gateway):
        repository = QuestionRepository(gateway)
        repository.add_question(Question(text="what is 2 + 2?\nwrite the answer in digits.", options=["3", "4"], correct_answer=1))

        result = import_questions(repository, parse_questions_text(SAMPLE))
        assert (result.success, result.skipped, result.failed) == (2, 1, 0)
        assert repository.get_question_count() == 3

        again = import_questions(repository, parse_questions_text(SAMPLE))
        assert (again.success, again.skipped) == (0, 3)

    def test_invalid_question_counted_as_failed(self, gateway):
        repository = QuestionRepository(gateway)
        result = import_questions(repository, [Question(text="Bad", options=["a", "  "], correct_answer=0)])
        assert result.failed == 1
        assert result.errors[0].startswith("Question 1:")

    def test_unconfigured_backend_counts_failures(self):
        from trivia_app.persistence.memory_gateway import InMemoryGateway

        repository = QuestionRepository(InMemoryGateway(configured=False))
        result = import_questions(repository, parse_questions_text(SAMPLE))
        assert result.failed == 3

    def test_import_status(self, gateway):
        repository = QuestionRepository(gateway)
        parsed = parse_questions_text(SAMPLE)
        repository.add_question(parsed[0])
        status = check_import_status(repository, parsed)
        assert status.total_in_file == 3
        assert status.total_in_database == 1
        assert status.missing == 2
        assert status.percentage == 33


class TestExport:
    def test_export_reads_back(self, tmp_path):
        questions = parse_questions_text(SAMPLE)
        path = tmp_path / "out" / "questions.txt"
        save_questions_to_file(path, questions)
        reloaded = load_questions_from_file(path).questions
        assert [(q.text, q.options, q.correct_answer) for q in reloaded] == [
            (q.text, q.options, q.correct_answer) for q in questions
        ]

    def test_blocks_separated(self):
        text = serialize_questions([Question(text="Q?", options=["a", "b"], correct_answer=0)] * 2)
        assert text.count("---") == 1
        assert "CORRECT: A" in text

    def test_nothing_to_export(self, tmp_path):
        with pytest.raises(ValueError):
            save_questions_to_file(tmp_path / "x.txt", [])
