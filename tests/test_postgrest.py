"""Tests for the PostgREST store adapter."""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from cadence.adapters.postgrest import PostgrestStore
from cadence.config import Config
from cadence.core.errors import ConflictError, NotFoundError, StoreUnavailableError
from cadence.core.models import CompletionRecord, Status


def response(rows=None, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = json.dumps(rows).encode() if rows is not None else b""
    resp.text = json.dumps(rows) if rows is not None else ""
    resp.json.return_value = rows
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    return resp


@pytest.fixture
def store():
    store = PostgrestStore("https://db.example.test/", "secret")
    store._session = MagicMock()
    return store


@pytest.fixture
def completion():
    return CompletionRecord(
        assignment_id="a1",
        scheduled_date=date(2025, 1, 15),
        completion_date=date(2025, 1, 15),
        status=Status.COMPLETED,
    )


class TestSetup:
    def test_requires_url(self):
        with pytest.raises(StoreUnavailableError):
            PostgrestStore.from_config(Config(store="postgrest"))

    def test_auth_headers(self):
        store = PostgrestStore("https://db.example.test", "secret")
        assert store._session.headers["apikey"] == "secret"
        assert store._session.headers["Authorization"] == "Bearer secret"


class TestRequests:
    def test_fetch_person(self, store):
        store._session.request.return_value = response(
            [{"id": "u1", "organization_id": "org1", "full_name": "Arjun Rao", "manager_id": "m1"}]
        )
        person = store.fetch_person("u1")

        method, url = store._session.request.call_args.args
        assert (method, url) == ("GET", "https://db.example.test/rest/v1/users")
        assert store._session.request.call_args.kwargs["params"]["id"] == "eq.u1"
        assert person.manager_id == "m1"

    def test_unknown_person(self, store):
        store._session.request.return_value = response([])
        with pytest.raises(NotFoundError):
            store.fetch_person("ghost")

    def test_assignments_embed_task(self, store):
        store._session.request.return_value = response(
            [
                {
                    "id": "a1",
                    "assigned_to": "u1",
                    "task": {"id": "t1", "name": "Report", "recurrence_type": "daily", "created_at": "2025-01-01T00:00:00Z"},
                },
                {"id": "a2", "assigned_to": "u1", "task": None},
            ]
        )
        assignments = store.fetch_assignments("u1")
        assert [a.id for a in assignments] == ["a1"]
        assert "task:tasks(" in store._session.request.call_args.kwargs["params"]["select"]

    def test_completions_filter(self, store):
        store._session.request.return_value = response([])
        store.fetch_completions(["a1", "a2"], date(2025, 1, 1), date(2025, 1, 31))
        params = store._session.request.call_args.kwargs["params"]
        assert params["assignment_id"] == "in.(a1,a2)"
        assert "scheduled_date.gte.2025-01-01" in params["or"]
        assert "completion_date.lte.2025-01-31" in params["or"]

    def test_unreadable_completion_skipped(self, store, completion):
        legacy = {**completion.to_row(), "scheduled_date": "2025-01-14", "status": "delayed"}
        broken = {**completion.to_row(), "status": "lost"}
        store._session.request.return_value = response([legacy, broken])

        found = store.fetch_completions(["a1"], date(2025, 1, 1), date(2025, 1, 31))
        assert [(r.scheduled_date, r.status) for r in found] == [(date(2025, 1, 14), Status.COMPLETED)]

    def test_no_assignments_skips_request(self, store):
        assert store.fetch_completions([], date(2025, 1, 1), date(2025, 1, 31)) == []
        store._session.request.assert_not_called()

    def test_upsert_merges_on_key(self, store, completion):
        store._session.request.return_value = response([completion.to_row()])
        saved = store.upsert_completion(completion)

        call = store._session.request.call_args
        assert call.args[0] == "POST"
        assert call.kwargs["params"] == {"on_conflict": "assignment_id,scheduled_date"}
        assert "resolution=merge-duplicates" in call.kwargs["headers"]["Prefer"]
        assert call.kwargs["json"]["scheduled_date"] == "2025-01-15"
        assert saved.key == completion.key


class TestErrors:
    def test_connection_error(self, store):
        store._session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(StoreUnavailableError):
            store.fetch_organizations()

    def test_conflict(self, store, completion):
        store._session.request.return_value = response({"message": "duplicate key"}, status_code=409)
        with pytest.raises(ConflictError):
            store.upsert_completion(completion)

    def test_server_error(self, store):
        store._session.request.return_value = response({"message": "boom"}, status_code=503)
        with pytest.raises(StoreUnavailableError):
            store.fetch_organizations()

    def test_client_error_propagates(self, store):
        store._session.request.return_value = response({"message": "bad column"}, status_code=400)
        with pytest.raises(requests.HTTPError):
            store.fetch_organizations()
