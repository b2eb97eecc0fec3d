"""Tests for the in-memory store and the PostgREST gateway."""

import json

import httpx
import pytest

from trivia_app.config import Settings
from trivia_app.persistence.factory import build_gateway
from trivia_app.persistence.gateway import (
    GatewayError,
    Filter,
    asc,
    desc,
    diagnose,
    eq,
    gte,
    in_,
    neq,
)
from trivia_app.persistence.memory_gateway import InMemoryGateway
from trivia_app.persistence.rest_gateway import RestGateway, encode_filter, encode_order

VALID_KEY = "k" * 40


class TestInMemoryGateway:
    @pytest.fixture
    def store(self):
        store = InMemoryGateway()
        store.insert("scores", [
            {"name": "a", "score": 5, "group": 1},
            {"name": "b", "score": 7, "group": 2},
            {"name": "c", "score": 5, "group": 2},
        ])
        return store

    def test_insert_assigns_ids(self, store):
        ids = [row["id"] for row in store.rows("scores")]
        assert ids == [1, 2, 3]
        assert all("created_at" in row for row in store.rows("scores"))

    def test_filters(self, store):
        assert [r["name"] for r in store.select("scores", [eq("score", 5)])] == ["a", "c"]
        assert [r["name"] for r in store.select("scores", [neq("group", 2)])] == ["a"]
        assert [r["name"] for r in store.select("scores", [gte("score", 6)])] == ["b"]
        assert [r["name"] for r in store.select("scores", [in_("name", ["a", "b"])])] == ["a", "b"]

    def test_multi_column_order_and_limit(self, store):
        rows = store.select("scores", order_by=[desc("score"), asc("name")])
        assert [r["name"] for r in rows] == ["b", "a", "c"]
        assert len(store.select("scores", limit=2)) == 2

    def test_update_and_delete(self, store):
        updated = store.update("scores", [eq("name", "a")], {"score": 9})
        assert updated[0]["score"] == 9
        removed = store.delete("scores", [eq("group", 2)])
        assert {r["name"] for r in removed} == {"b", "c"}
        assert [r["name"] for r in store.rows("scores")] == ["a"]

    def test_returned_rows_are_copies(self, store):
        row = store.select("scores", [eq("name", "a")])[0]
        row["score"] = 100
        assert store.select("scores", [eq("name", "a")])[0]["score"] == 5

    def test_fail_next_raises_once(self, store):
        store.fail_next("select", "scores")
        with pytest.raises(GatewayError):
            store.select("scores")
        assert len(store.select("scores")) == 3

    def test_responses_cascade_with_attempt(self):
        store = InMemoryGateway()
        [attempt] = store.insert("quiz_attempts", {"player_name": "Mary"})
        store.insert("quiz_attempt_responses", [{"attempt_id": attempt["id"]}, {"attempt_id": attempt["id"]}])
        store.delete("quiz_attempts", [eq("id", attempt["id"])])
        assert store.rows("quiz_attempt_responses") == []


def test_unknown_filter_operator_rejected():
    with pytest.raises(ValueError):
        Filter("score", "like", "x")


class TestEncoding:
    def test_filters(self):
        assert encode_filter(eq("is_active", True)) == ("is_active", "eq.true")
        assert encode_filter(gte("score", 5)) == ("score", "gte.5")
        assert encode_filter(in_("attempt_id", [1, 2, 3])) == ("attempt_id", "in.(1,2,3)")
        assert encode_filter(eq("session_id", None)) == ("session_id", "is.null")
        assert encode_filter(neq("session_id", None)) == ("session_id", "not.is.null")

    def test_quoted_list_items(self):
        assert encode_filter(in_("name", ["a,b", "c"])) == ("name", 'in.("a,b",c)')

    def test_order(self):
        assert encode_order([desc("score"), asc("id")]) == "score.desc,id.asc"


class TestRestGateway:
    def _gateway(self, handler):
        return RestGateway("https://example.test", VALID_KEY, transport=httpx.MockTransport(handler))

    def test_select_builds_query(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=[{"id": 1, "score": 7}])

        rows = self._gateway(handler).select("leaderboard", [gte("score", 5)], [desc("score")], limit=10)
        request = seen["request"]
        assert rows == [{"id": 1, "score": 7}]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/leaderboard"
        assert request.url.params["select"] == "*"
        assert request.url.params["score"] == "gte.5"
        assert request.url.params["order"] == "score.desc"
        assert request.url.params["limit"] == "10"
        assert request.headers["apikey"] == VALID_KEY
        assert request.headers["authorization"] == f"Bearer {VALID_KEY}"

    def test_insert_posts_json(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["prefer"] = request.headers["prefer"]
            return httpx.Response(201, json=[{"id": 3, "name": "Mary"}])

        stored = self._gateway(handler).insert("leaderboard", {"name": "Mary"})
        assert stored[0]["id"] == 3
        assert seen["body"] == {"name": "Mary"}
        assert seen["prefer"] == "return=representation"

    def test_delete_with_filters_and_empty_body(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(204)

        assert self._gateway(handler).delete("leaderboard", [neq("id", 0)]) == []
        assert seen["request"].method == "DELETE"
        assert seen["request"].url.params["id"] == "neq.0"

    def test_error_response_mapped(self):
        def handler(request):
            return httpx.Response(
                404,
                json={"message": 'relation "public.leaderboard" does not exist', "code": "42P01"},
            )

        with pytest.raises(GatewayError) as info:
            self._gateway(handler).select("leaderboard")
        assert info.value.code == "42P01"
        assert "table does not exist" in diagnose(info.value)

    def test_network_error_mapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayError) as info:
            self._gateway(handler).select("leaderboard")
        assert info.value.code == "NETWORK"

    def test_non_json_success_body_mapped(self):
        def handler(request):
            return httpx.Response(201, text="<html>ok</html>")

        with pytest.raises(GatewayError) as info:
            self._gateway(handler).insert("leaderboard", {"name": "Mary"})
        assert info.value.code == "INVALID_RESPONSE"

    def test_invalid_key_is_unconfigured(self):
        assert not RestGateway("https://example.test", "short").is_configured()
        assert not RestGateway("", VALID_KEY).is_configured()
        assert RestGateway("https://example.test", "sb_publishable_abc").is_configured()


class TestFactory:
    def test_memory_storage(self):
        assert isinstance(build_gateway(Settings(storage="memory", _env_file=None)), InMemoryGateway)

    def test_rest_storage(self):
        settings = Settings(storage="rest", backend_url="https://example.test", backend_key=VALID_KEY, _env_file=None)
        gateway = build_gateway(settings)
        assert isinstance(gateway, RestGateway)
        assert gateway.is_configured()
