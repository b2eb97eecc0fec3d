"""Tests for the screen flow and the results handoff to the backend."""

import json

import httpx
import pytest

from conftest import SESSION_ID, play_through

from trivia_app.core.question_selection import InsufficientQuestionsError
from trivia_app.core.services.game_flow import (
    SAVE_FAILED_NOTICE,
    GameFlow,
    GameFlowRegistry,
    GameScreen,
    SaveState,
    ScreenTransitionError,
    clean_player_name,
    results_message,
)
from trivia_app.core.services.attempt_log import AttemptLog
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.persistence.gateway import ATTEMPTS_TABLE, LEADERBOARD_TABLE, RESPONSES_TABLE
from trivia_app.persistence.memory_gateway import InMemoryGateway
from trivia_app.persistence.rest_gateway import RestGateway


def _to_name_entry(flow):
    flow.continue_intro()
    flow.continue_intro()
    assert flow.get_screen() is GameScreen.NAME_ENTRY


class TestIntroScreens:
    def test_intro_sequence(self, make_flow):
        flow = make_flow()
        assert flow.get_screen() is GameScreen.SPLASH
        assert flow.get_session_id() == SESSION_ID
        assert flow.continue_from_splash() is GameScreen.RULES
        assert flow.continue_from_rules() is GameScreen.NAME_ENTRY

    def test_actions_rejected_on_wrong_screen(self, make_flow):
        flow = make_flow()
        with pytest.raises(ScreenTransitionError):
            flow.answer(0)
        with pytest.raises(ScreenTransitionError):
            flow.show_leaderboard()

    def test_name_validation(self):
        assert clean_player_name("  Mary ") == "Mary"
        with pytest.raises(ValueError):
            clean_player_name("   ")
        with pytest.raises(ValueError):
            clean_player_name("x" * 21)


class TestFirstAttempt:
    def test_start_result(self, make_flow):
        flow = make_flow()
        _to_name_entry(flow)
        started = flow.submit_name("Mary")
        assert started.attempt_number == 1
        assert started.question_count == 7
        assert started.hints_available == 0
        assert started.leaderboard_eligible
        assert flow.get_screen() is GameScreen.QUIZ

    def test_full_play_writes_leaderboard_and_attempt(self, make_flow, scheduler, gateway):
        flow = make_flow()
        _to_name_entry(flow)
        flow.submit_name("Mary")
        play_through(flow, scheduler, wrong_on={2, 4})

        assert flow.get_screen() is GameScreen.RESULTS
        assert flow.get_save_state() is SaveState.DONE
        assert flow.get_save_notice() is None

        summary = flow.results()
        assert summary.score == 5
        assert summary.percentage == 71
        assert summary.title == "Great Job!"
        assert len(summary.lines) == 7

        board = gateway.rows(LEADERBOARD_TABLE)
        assert len(board) == 1
        assert board[0]["name"] == "Mary"
        assert board[0]["session_id"] == SESSION_ID
        assert len(gateway.rows(ATTEMPTS_TABLE)) == 1
        assert len(gateway.rows(RESPONSES_TABLE)) == 7

    def test_leaderboard_screen_round_trip(self, make_flow, scheduler):
        flow = make_flow()
        _to_name_entry(flow)
        flow.submit_name("Mary")
        play_through(flow, scheduler)
        assert flow.show_leaderboard() is GameScreen.LEADERBOARD
        assert flow.results().score == 7
        assert flow.back_to_results() is GameScreen.RESULTS


class TestRepeatAttempts:
    def test_second_attempt_is_practice(self, make_flow, scheduler, gateway):
        flow = make_flow()
        _to_name_entry(flow)
        flow.submit_name("Mary")
        play_through(flow, scheduler)

        assert flow.play_again() is GameScreen.NAME_ENTRY
        started = flow.submit_name("Mary")
        assert started.attempt_number == 2
        assert started.hints_available == 2
        assert not started.leaderboard_eligible
        play_through(flow, scheduler)

        assert len(gateway.rows(LEADERBOARD_TABLE)) == 1
        assert len(gateway.rows(ATTEMPTS_TABLE)) == 2
        assert flow.get_save_outcome().leaderboard_saved is None
        assert flow.get_save_notice() is None

    def test_attempts_counted_per_session(self, make_flow, scheduler):
        first = make_flow()
        _to_name_entry(first)
        first.submit_name("Mary")
        play_through(first, scheduler)

        other = make_flow("session_1700000000001_zzz999")
        _to_name_entry(other)
        assert other.submit_name("Sam").attempt_number == 1


class TestResilience:
    def test_leaderboard_failure_keeps_attempt(self, make_flow, scheduler, gateway):
        flow = make_flow()
        _to_name_entry(flow)
        flow.submit_name("Mary")
        gateway.fail_next("insert", LEADERBOARD_TABLE)
        play_through(flow, scheduler)

        outcome = flow.get_save_outcome()
        assert outcome.leaderboard_saved is False
        assert outcome.attempt_id is not None
        assert flow.get_save_notice() == SAVE_FAILED_NOTICE
        assert gateway.rows(LEADERBOARD_TABLE) == []
        assert len(gateway.rows(ATTEMPTS_TABLE)) == 1

    def test_attempt_failure_keeps_leaderboard(self, make_flow, scheduler, gateway):
        flow = make_flow()
        _to_name_entry(flow)
        flow.submit_name("Mary")
        gateway.fail_next("insert", ATTEMPTS_TABLE)
        play_through(flow, scheduler)

        outcome = flow.get_save_outcome()
        assert outcome.leaderboard_saved is True
        assert outcome.attempt_id is None
        assert flow.get_save_notice() == SAVE_FAILED_NOTICE
        assert len(gateway.rows(LEADERBOARD_TABLE)) == 1

    def test_gate_fails_open(self, make_flow, gateway):
        flow = make_flow()
        _to_name_entry(flow)
        gateway.fail_next("select", ATTEMPTS_TABLE)
        assert flow.submit_name("Mary").attempt_number == 1

    def test_results_saved_only_once(self, make_flow, scheduler, gateway):
        flow = make_flow()
        _to_name_entry(flow)
        flow.submit_name("Mary")
        play_through(flow, scheduler)

        session = flow.get_session()
        flow._handle_finished(session)
        flow._persist_results(session)
        assert flow.get_save_state() is SaveState.DONE
        assert len(gateway.rows(LEADERBOARD_TABLE)) == 1
        assert len(gateway.rows(ATTEMPTS_TABLE)) == 1

    def test_non_json_leaderboard_reply_still_logs_attempt(self, questions, scheduler, rng):
        written = []

        def handler(request):
            table = request.url.path.rsplit("/", 1)[-1]
            if request.method == "GET":
                return httpx.Response(200, json=[])
            written.append(table)
            if table == LEADERBOARD_TABLE:
                return httpx.Response(201, text="<html>ok</html>")
            if table == ATTEMPTS_TABLE:
                return httpx.Response(201, json=[{"id": 1}])
            return httpx.Response(201, json=json.loads(request.content))

        backend = RestGateway("https://example.test", "k" * 40, transport=httpx.MockTransport(handler))
        flow = GameFlow(
            SESSION_ID,
            questions=questions,
            leaderboard=Leaderboard(backend),
            attempts=AttemptLog(backend),
            scheduler=scheduler,
            rng=rng,
        )
        _to_name_entry(flow)
        flow.submit_name("Mary")
        play_through(flow, scheduler)

        assert written == [LEADERBOARD_TABLE, ATTEMPTS_TABLE, RESPONSES_TABLE]
        assert flow.get_save_state() is SaveState.DONE
        outcome = flow.get_save_outcome()
        assert outcome.leaderboard_saved is False
        assert outcome.attempt_id == 1
        assert flow.get_save_notice() == SAVE_FAILED_NOTICE

    def test_empty_pool_refuses_to_start(self, scheduler, rng):
        gateway = InMemoryGateway()
        flow = GameFlow(
            SESSION_ID,
            questions=QuestionRepository(gateway),
            leaderboard=Leaderboard(gateway),
            attempts=AttemptLog(gateway),
            scheduler=scheduler,
            rng=rng,
        )
        _to_name_entry(flow)
        with pytest.raises(InsufficientQuestionsError):
            flow.submit_name("Mary")
        assert flow.get_screen() is GameScreen.NAME_ENTRY


class TestRegistry:
    def test_one_flow_per_session(self, make_flow):
        registry = GameFlowRegistry(make_flow)
        flow = registry.get_or_create(SESSION_ID)
        assert registry.get_or_create(SESSION_ID) is flow
        assert registry.get_active_count() == 1

    def test_restart_forgets_flow(self, make_flow):
        registry = GameFlowRegistry(make_flow)
        flow = registry.get_or_create(SESSION_ID)
        flow.continue_intro()
        registry.restart(SESSION_ID)
        assert flow.get_screen() is GameScreen.SPLASH
        assert flow.get_session_id() == SESSION_ID
        assert registry.get(SESSION_ID) is None
        assert registry.get_or_create(SESSION_ID) is not flow

    def test_local_count_survives_restart(self, make_flow, scheduler, gateway):
        registry = GameFlowRegistry(make_flow)
        flow = registry.get_or_create(SESSION_ID)
        _to_name_entry(flow)
        flow.submit_name("Mary")
        play_through(flow, scheduler)
        registry.restart(SESSION_ID)

        again = registry.get_or_create(SESSION_ID)
        _to_name_entry(again)
        gateway.fail_next("select", ATTEMPTS_TABLE)
        started = again.submit_name("Mary")
        assert started.attempt_number == 2
        assert not started.leaderboard_eligible

    def test_idle_flows_are_dropped(self, make_flow, scheduler):
        registry = GameFlowRegistry(make_flow, idle_timeout_seconds=60, clock=scheduler.now)
        registry.get_or_create("session_1700000000001_zzz999")
        scheduler.advance(30)
        active = registry.get_or_create(SESSION_ID)
        scheduler.advance(31)
        assert registry.get_or_create(SESSION_ID) is active
        assert registry.get("session_1700000000001_zzz999") is None
        assert registry.get_active_count() == 1


def test_results_message_tiers():
    assert results_message(100)[0] == "Excellent!"
    assert results_message(71)[0] == "Great Job!"
    assert results_message(57)[0] == "Good Effort!"
    assert results_message(14)[0] == "Keep Learning!"
