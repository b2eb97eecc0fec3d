"""End-to-end tests of the player API using an in-memory backend and a virtual clock."""

from fastapi.testclient import TestClient
import pytest

from trivia_app.config import Settings
from trivia_app.core.services.attempt_log import AttemptLog
from trivia_app.core.services.game_flow import GameFlow, GameFlowRegistry
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.question_repository import QuestionRepository
from trivia_app.core.session_identity import SessionIdentityService
from trivia_app.persistence.memory_gateway import InMemoryGateway
from trivia_app.server.api_server import create_api_app


@pytest.fixture
def settings():
    return Settings(storage="memory", _env_file=None)


@pytest.fixture
def registry(make_flow):
    return GameFlowRegistry(make_flow)


@pytest.fixture
def app(registry, leaderboard, settings):
    return create_api_app(registry, leaderboard, SessionIdentityService(), settings)


@pytest.fixture
def client(app):
    return TestClient(app)


def _start(client, name="Mary"):
    client.post("/continue")
    client.post("/continue")
    return client.post("/name", json={"player_name": name})


def _answer_all(client, registry, scheduler):
    session_id = client.get("/identity").json()["session_id"]
    session = registry.get(session_id).get_session()
    for _ in range(len(session.get_questions())):
        response = client.post("/answer", json={"option_index": session.current_question().correct_answer})
        assert response.json() == {"accepted": True}
        scheduler.advance(2)


class TestPages:
    def test_player_and_tv_pages(self, client):
        assert "<html" in client.get("/").text
        assert "tv-body" in client.get("/tv").text


class TestIdentity:
    def test_cookie_issued_once(self, client, settings):
        first = client.get("/identity")
        assert settings.cookie_name in first.cookies
        session_id = first.json()["session_id"]
        assert client.get("/identity").json()["session_id"] == session_id

    def test_invalid_cookie_replaced(self, client, settings):
        client.cookies.set(settings.cookie_name, "not-a-session")
        session_id = client.get("/identity").json()["session_id"]
        assert session_id.startswith("session_")


class TestGameplay:
    def test_initial_state(self, client):
        payload = client.get("/state").json()
        assert payload["screen"] == "splash"
        assert payload["quiz"] is None

    def test_answer_before_quiz_conflicts(self, client):
        assert client.post("/answer", json={"option_index": 0}).status_code == 409

    def test_blank_name_rejected(self, client):
        client.post("/continue")
        client.post("/continue")
        response = client.post("/name", json={"player_name": "   "})
        assert response.status_code == 422

    def test_start_returns_attempt_details(self, client):
        response = _start(client)
        assert response.status_code == 201
        body = response.json()
        assert body["screen"] == "quiz"
        assert body["attempt_number"] == 1
        assert body["question_count"] == 7
        assert body["leaderboard_eligible"] is True

        state = client.get("/state").json()
        assert state["quiz"]["index"] == 0
        assert state["quiz"]["seconds_left"] == 60
        assert len(state["quiz"]["options_html"]) == 4
        assert state["events"][0]["event"] == "new_question"

    def test_hint_unavailable_on_first_attempt(self, client):
        _start(client)
        assert client.post("/hint").json() == {"used": False}

    def test_full_game(self, client, registry, scheduler):
        _start(client)
        _answer_all(client, registry, scheduler)

        state = client.get("/state").json()
        assert state["screen"] == "results"
        assert state["save_state"] == "done"
        assert state["save_notice"] is None
        assert state["results"]["score"] == 7
        assert state["results"]["percentage"] == 100

        assert client.post("/leaderboard/show").json() == {"screen": "leaderboard"}
        assert client.post("/leaderboard/back").json() == {"screen": "results"}
        assert client.post("/play-again").json() == {"screen": "name_entry"}
        second = client.post("/name", json={"player_name": "Mary"}).json()
        assert second["attempt_number"] == 2
        assert second["hints_available"] == 2

    def test_restart_returns_to_splash(self, client):
        _start(client)
        assert client.post("/restart").json() == {"screen": "splash"}
        assert client.get("/state").json()["screen"] == "splash"

    def test_empty_pool_is_unavailable(self, settings, scheduler, rng):
        empty = InMemoryGateway()
        registry = GameFlowRegistry(
            lambda session_id: GameFlow(
                session_id,
                questions=QuestionRepository(empty),
                leaderboard=Leaderboard(empty),
                attempts=AttemptLog(empty),
                scheduler=scheduler,
                rng=rng,
            )
        )
        client = TestClient(create_api_app(registry, Leaderboard(empty), SessionIdentityService(), settings))
        assert _start(client).status_code == 503


class TestLeaderboardEndpoints:
    def test_own_flag_and_delete(self, app, client, registry, scheduler):
        _start(client)
        _answer_all(client, registry, scheduler)

        entries = client.get("/leaderboard").json()["entries"]
        assert len(entries) == 1
        assert entries[0]["rank"] == 1
        assert entries[0]["own"] is True
        entry_id = entries[0]["id"]

        stranger = TestClient(app)
        assert stranger.get("/leaderboard").json()["entries"][0]["own"] is False
        assert stranger.delete(f"/leaderboard/{entry_id}").status_code == 403

        assert client.delete(f"/leaderboard/{entry_id}").json() == {"deleted": entry_id}
        assert client.get("/leaderboard").json()["entries"] == []

    def test_limit_validated(self, client):
        assert client.get("/leaderboard", params={"limit": 0}).status_code == 422


def test_cookieless_visitors_do_not_accumulate(make_flow, leaderboard, settings, scheduler):
    registry = GameFlowRegistry(make_flow, idle_timeout_seconds=60, clock=scheduler.now)
    app = create_api_app(registry, leaderboard, SessionIdentityService(), settings)
    for _ in range(5):
        assert TestClient(app).get("/state").status_code == 200
    assert registry.get_active_count() == 5

    scheduler.advance(61)
    TestClient(app).get("/state")
    assert registry.get_active_count() == 1
