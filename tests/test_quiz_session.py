"""Tests for the per-question lifecycle: countdown, locking, reveal and hints."""

import random

import pytest

from conftest import make_questions

from trivia_app.core.models import TIMEOUT_ANSWER, Question
from trivia_app.core.policies import GamePolicy
from trivia_app.core.services.quiz_session import (
    HintKind,
    QuestionPhase,
    QuizSession,
    SessionEvent,
    compute_score,
    divide_half_up,
    percentage,
)


def _session(scheduler, *, count=3, attempt_number=1, policy=None, on_finished=None, seed=5):
    return QuizSession(
        "Mary",
        make_questions(count),
        attempt_number=attempt_number,
        policy=policy or GamePolicy(),
        scheduler=scheduler,
        rng=random.Random(seed),
        on_finished=on_finished,
    )


class TestScoring:
    def test_mixed_answers_score_and_percentage(self):
        questions = [
            Question(text=f"q{i}", options=["a", "b", "c", "d"], correct_answer=correct)
            for i, correct in enumerate([0, 1, 2, 2, 1, 1, 3])
        ]
        answers = [0, 1, TIMEOUT_ANSWER, 2, 0, 1, 3]
        score = compute_score(questions, answers)
        assert score == 5
        assert percentage(score, len(questions)) == 71

    def test_unanswered_never_scores(self):
        questions = make_questions(2)
        assert compute_score(questions, [None, None]) == 0

    def test_percentage_edges(self):
        assert percentage(0, 0) == 0
        assert percentage(7, 7) == 100
        assert percentage(1, 2) == 50
        assert divide_half_up(141, 2) == 71
        assert divide_half_up(5, 0) == 0


class TestCountdown:
    def test_timeout_locks_question(self, scheduler):
        session = _session(scheduler)
        session.start()
        scheduler.advance(59)
        assert session.get_seconds_left() == 1
        assert session.get_phase() is QuestionPhase.ACTIVE

        scheduler.advance(1)
        assert session.is_timed_out()
        assert session.get_phase() is QuestionPhase.LOCKED
        assert session.get_answers()[0] == TIMEOUT_ANSWER
        assert not session.select_answer(0)

    def test_reveal_delay_moves_to_next_question(self, scheduler):
        session = _session(scheduler)
        session.start()
        assert session.select_answer(1)
        scheduler.advance(1)
        assert session.get_current_index() == 0
        scheduler.advance(1)
        assert session.get_current_index() == 1
        assert session.get_seconds_left() == 60
        assert session.get_phase() is QuestionPhase.ACTIVE

    def test_warning_events_emitted(self, scheduler):
        session = _session(scheduler)
        session.start()
        scheduler.advance(55)
        warnings = [e.value for e in session.recent_events() if e.event is SessionEvent.WARNING]
        assert warnings == [10, 5]

    def test_close_cancels_timers(self, scheduler):
        session = _session(scheduler)
        session.start()
        session.close()
        scheduler.advance(120)
        assert session.get_seconds_left() == 60
        assert not session.select_answer(0)
        assert session.is_closed()
        assert scheduler.pending() == 0


class TestAnswering:
    def test_locked_answer_cannot_change(self, scheduler):
        session = _session(scheduler)
        session.start()
        assert session.select_answer(2)
        assert not session.select_answer(3)
        assert session.get_answers()[0] == 2

    def test_out_of_range_answer_rejected(self, scheduler):
        session = _session(scheduler)
        session.start()
        assert not session.select_answer(9)
        assert session.get_phase() is QuestionPhase.ACTIVE

    def test_start_twice_raises(self, scheduler):
        session = _session(scheduler)
        session.start()
        with pytest.raises(RuntimeError):
            session.start()

    def test_finishes_after_last_question(self, scheduler):
        finished = []
        session = _session(scheduler, count=2, on_finished=finished.append)
        session.start()
        for _ in range(2):
            session.select_answer(session.current_question().correct_answer)
            scheduler.advance(2)
        assert session.is_finished()
        assert session.get_current_score() == 2
        assert finished == [session]
        assert session.recent_events()[-1].event is SessionEvent.FINISHED


class TestHints:
    def test_first_attempt_has_no_hints(self, scheduler):
        session = _session(scheduler, attempt_number=1)
        session.start()
        assert session.activate_hint() is None
        assert not session.snapshot().hint_available

    def test_eliminate_removes_a_wrong_option(self, scheduler):
        session = _session(scheduler, attempt_number=2, policy=GamePolicy(eliminate_probability=1.0))
        session.start()
        outcome = session.activate_hint()
        correct = session.current_question().correct_answer
        assert outcome.kind is HintKind.ELIMINATE
        assert len(outcome.eliminated) == 1
        assert correct not in outcome.eliminated
        assert session.get_hints_remaining() == 1
        assert not session.select_answer(outcome.eliminated[0])
        assert session.get_eliminated() == set(outcome.eliminated)

    def test_one_hint_per_question(self, scheduler):
        session = _session(scheduler, attempt_number=3, policy=GamePolicy(eliminate_probability=1.0))
        session.start()
        assert session.activate_hint() is not None
        assert session.activate_hint() is None
        assert session.get_hints_remaining() == 3

    def test_late_attempts_eliminate_two(self, scheduler):
        session = _session(scheduler, attempt_number=5, policy=GamePolicy(eliminate_probability=1.0))
        session.start()
        outcome = session.activate_hint()
        assert len(outcome.eliminated) == 2

    def test_glow_clears_after_delay(self, scheduler):
        session = _session(scheduler, attempt_number=2, policy=GamePolicy(eliminate_probability=0.0))
        session.start()
        outcome = session.activate_hint()
        assert outcome.kind is HintKind.GLOW
        assert outcome.glow_index == session.current_question().correct_answer
        assert session.snapshot().glow_index == outcome.glow_index
        scheduler.advance(2)
        assert not session.is_glow_active()

    def test_budget_runs_out(self, scheduler):
        session = _session(scheduler, count=4, attempt_number=2, policy=GamePolicy(eliminate_probability=1.0))
        session.start()
        used = 0
        for _ in range(4):
            if session.activate_hint() is not None:
                used += 1
            session.select_answer(session.current_question().correct_answer)
            scheduler.advance(2)
        assert used == 2
        assert session.get_hints_remaining() == 0
