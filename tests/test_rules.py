"""Tests for selection, policies, identity tokens, config and markdown rendering."""

import random
import re

import pytest

from conftest import make_questions

from trivia_app.config import Settings, is_valid_backend_key
from trivia_app.core.markdown_renderer import renderer
from trivia_app.core.policies import eliminate_count, hint_budget, is_leaderboard_eligible
from trivia_app.core.question_selection import InsufficientQuestionsError, select_quiz_questions
from trivia_app.core.session_identity import SessionIdentityService


class TestSelection:
    def test_picks_distinct_questions(self):
        pool = make_questions(10)
        selected = select_quiz_questions(pool, 7, random.Random(1))
        assert len(selected) == 7
        assert len({q.text for q in selected}) == 7

    def test_small_pool_uses_everything(self):
        pool = make_questions(3)
        selected = select_quiz_questions(pool, 7, random.Random(1))
        assert sorted(q.text for q in selected) == sorted(q.text for q in pool)

    def test_seeded_rng_is_repeatable(self):
        pool = make_questions(10)
        first = select_quiz_questions(pool, 7, random.Random(42))
        second = select_quiz_questions(pool, 7, random.Random(42))
        assert [q.text for q in first] == [q.text for q in second]

    def test_repeated_selections_are_shuffled(self):
        pool = make_questions(10)
        pool_order = [q.text for q in pool]
        orders = [
            [q.text for q in select_quiz_questions(pool, 10, random.Random(seed))]
            for seed in range(8)
        ]
        assert any(order != pool_order for order in orders)
        assert len({tuple(order) for order in orders}) > 1
        assert all(sorted(order) == sorted(pool_order) for order in orders)

    @pytest.mark.parametrize("size", [0, 1])
    def test_too_small_pool(self, size):
        with pytest.raises(InsufficientQuestionsError):
            select_quiz_questions(make_questions(size))


class TestPolicies:
    def test_hint_budget(self):
        assert [hint_budget(n) for n in range(1, 6)] == [0, 2, 4, 5, 5]

    def test_eliminate_count(self):
        assert eliminate_count(4) == 1
        assert eliminate_count(5) == 2

    def test_only_first_attempt_ranks(self):
        assert is_leaderboard_eligible(1)
        assert not is_leaderboard_eligible(2)


class TestSessionIdentity:
    def test_issued_tokens_are_valid(self):
        service = SessionIdentityService()
        token = service.issue()
        assert re.fullmatch(r"session_\d+_[a-z0-9]{9}", token)
        assert service.is_valid(token)

    def test_ensure_keeps_valid_token(self):
        service = SessionIdentityService()
        token = service.issue()
        assert service.ensure(token) == (token, False)

    @pytest.mark.parametrize("bad", [None, "", "session_1_x", "hello", "session_1700000000000_ABCDEF"])
    def test_ensure_replaces_bad_token(self, bad):
        service = SessionIdentityService()
        token, created = service.ensure(bad)
        assert created
        assert service.is_valid(token)


class TestConfig:
    def test_backend_key_validation(self):
        assert is_valid_backend_key("x" * 21)
        assert is_valid_backend_key("sb_publishable_abc")
        assert not is_valid_backend_key("short")
        assert not is_valid_backend_key("")
        assert not is_valid_backend_key(None)

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TRIVIA_PORT", "9001")
        monkeypatch.setenv("TRIVIA_STORAGE", "memory")
        settings = Settings(_env_file=None)
        assert settings.port == 9001
        assert settings.storage == "memory"
        assert not settings.has_valid_credentials


class TestMarkdown:
    def test_raw_html_is_escaped(self):
        rendered = renderer.render_fragment("<script>alert(1)</script> **bold**")
        assert "<script>" not in rendered
        assert "<strong>bold</strong>" in rendered

    def test_inline_has_no_paragraph(self):
        assert renderer.render_inline("*x*") == "<em>x</em>"

    def test_document_marks_correct_option(self):
        document = renderer.render_question_document("Q?", ["a", "b"], correct_answer=1)
        assert document.count('class="option correct"') == 1
        assert "<span class=\"letter\">B</span>b" in document
