"""
Unit Tests — CircleCI Client
============================
Request construction, status classification and backward pagination.
All HTTP goes through httpx.MockTransport; nothing leaves the process.
"""
import asyncio
from datetime import timedelta

import httpx
import pytest

from cistern.core.errors import (
    HttpStatusError,
    InvalidResponseError,
    NetworkError,
    NoCredentialError,
    RateLimitedError,
    UnauthorizedError,
)

from helpers import NOW, mock_client, pipeline_json, workflow_json


def _run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# 1. Request construction
# ---------------------------------------------------------------------------
def test_requests_carry_token_and_accept_headers():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    _run(mock_client(handler, token="secret-123").fetch_collaborations())

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/api/v2/me/collaborations"
    assert request.headers["Circle-Token"] == "secret-123"
    assert request.headers["Accept"] == "application/json"


def test_missing_token_fails_before_any_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    with pytest.raises(NoCredentialError):
        _run(mock_client(handler, token=None).fetch_collaborations())
    assert calls == []


# ---------------------------------------------------------------------------
# 2. Status classification
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("status_code, error_cls", [
    (401, UnauthorizedError),
    (429, RateLimitedError),
    (404, HttpStatusError),
    (500, HttpStatusError),
])
def test_error_statuses_are_classified(status_code, error_cls):
    client = mock_client(lambda request: httpx.Response(status_code, json={"message": "nope"}))
    with pytest.raises(error_cls):
        _run(client.fetch_workflows("p1"))


def test_http_error_keeps_status_code():
    client = mock_client(lambda request: httpx.Response(503))
    with pytest.raises(HttpStatusError) as exc_info:
        _run(client.fetch_workflows("p1"))
    assert exc_info.value.status_code == 503
    assert exc_info.value.user_message == "HTTP error: 503"


def test_undecodable_body_is_invalid_response():
    client = mock_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
    with pytest.raises(InvalidResponseError):
        _run(client.fetch_workflows("p1"))


def test_connection_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        _run(mock_client(handler).fetch_collaborations())


def test_every_error_has_a_distinct_user_message():
    messages = {
        NoCredentialError.user_message,
        UnauthorizedError.user_message,
        RateLimitedError.user_message,
        InvalidResponseError.user_message,
        NetworkError.user_message,
        HttpStatusError(500).user_message,
    }
    assert len(messages) == 6
    assert "check your token in Settings" in UnauthorizedError.user_message


# ---------------------------------------------------------------------------
# 3. Endpoints
# ---------------------------------------------------------------------------
def test_fetch_collaborations_decodes_organizations():
    payload = [
        {"id": "1", "name": "acme", "vcs_type": "github", "slug": "gh/acme"},
        {"id": None, "name": "beta", "vcs_type": "bitbucket", "slug": "bb/beta"},
    ]
    orgs = _run(mock_client(lambda r: httpx.Response(200, json=payload)).fetch_collaborations())
    assert [o.slug for o in orgs] == ["gh/acme", "bb/beta"]


def test_fetch_workflows_hits_pipeline_workflow_endpoint():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, json={
            "items": [workflow_json("w1", status="running", stopped_at=None)],
            "next_page_token": None,
        })

    workflows = _run(mock_client(handler).fetch_workflows("abc-123"))
    assert seen == ["/api/v2/pipeline/abc-123/workflow"]
    assert workflows[0].name == "build-test"
    assert workflows[0].stopped_at is None


def test_test_connection():
    assert _run(mock_client(lambda r: httpx.Response(200, json={"login": "dev"})).test_connection()) is True
    assert _run(mock_client(lambda r: httpx.Response(401)).test_connection()) is False


# ---------------------------------------------------------------------------
# 4. Pagination
# ---------------------------------------------------------------------------
def _paged_handler(pages, requests):
    """Serve ``pages`` in order, keyed by the page-token of each request."""
    def handler(request):
        requests.append(request)
        token = request.url.params.get("page-token")
        index = 0 if token is None else int(token.split("-")[1])
        items, next_token = pages[index]
        return httpx.Response(200, json={"items": items, "next_page_token": next_token})
    return handler


def test_pipeline_query_parameters():
    requests = []
    handler = _paged_handler([([pipeline_json("p1")], None)], requests)

    _run(mock_client(handler).fetch_pipelines("gh/acme", timedelta(days=7), now=NOW))

    url = requests[0].url
    assert url.path == "/api/v2/pipeline"
    assert url.params["org-slug"] == "gh/acme"
    assert url.params["mine"] == "true"
    assert "page-token" not in url.params


def test_pagination_stops_at_first_item_older_than_max_age():
    requests = []
    pages = [
        ([pipeline_json("p0", created_at=NOW), pipeline_json("p1", created_at=NOW - timedelta(days=1))], "page-1"),
        ([pipeline_json("p2", created_at=NOW - timedelta(days=10)),
          pipeline_json("p3", created_at=NOW - timedelta(days=20))], "page-2"),
        ([pipeline_json("p4", created_at=NOW - timedelta(days=30))], None),
    ]
    client = mock_client(_paged_handler(pages, requests))

    result = _run(client.fetch_pipelines("gh/acme", timedelta(days=7), now=NOW))

    assert [p.id for p in result] == ["p0", "p1"]
    assert len(requests) == 2


def test_pagination_single_page_early_exit():
    requests = []
    items = [
        pipeline_json("p0", created_at=NOW),
        pipeline_json("p1", created_at=NOW - timedelta(days=1)),
        pipeline_json("p2", created_at=NOW - timedelta(days=10)),
        pipeline_json("p3", created_at=NOW - timedelta(days=20)),
    ]
    client = mock_client(_paged_handler([(items, "page-1")], requests))

    result = _run(client.fetch_pipelines("gh/acme", timedelta(days=7), now=NOW))

    assert [p.id for p in result] == ["p0", "p1"]
    assert len(requests) == 1


def test_wider_window_includes_more_pipelines():
    requests = []
    items = [
        pipeline_json("p0", created_at=NOW),
        pipeline_json("p1", created_at=NOW - timedelta(days=1)),
        pipeline_json("p2", created_at=NOW - timedelta(days=10)),
        pipeline_json("p3", created_at=NOW - timedelta(days=20)),
    ]
    client = mock_client(_paged_handler([(items, "page-1")], requests))

    result = _run(client.fetch_pipelines("gh/acme", timedelta(days=14), now=NOW))

    assert [p.id for p in result] == ["p0", "p1", "p2"]
    assert len(requests) == 1


def test_pagination_follows_cursor_until_absent():
    requests = []
    pages = [
        ([pipeline_json("p0", created_at=NOW)], "page-1"),
        ([pipeline_json("p1", created_at=NOW - timedelta(hours=1))], "page-2"),
        ([pipeline_json("p2", created_at=NOW - timedelta(hours=2))], None),
    ]
    client = mock_client(_paged_handler(pages, requests))

    result = _run(client.fetch_pipelines("gh/acme", timedelta(days=7), now=NOW))

    assert [p.id for p in result] == ["p0", "p1", "p2"]
    assert [r.url.params.get("page-token") for r in requests] == [None, "page-1", "page-2"]


def test_pagination_error_propagates():
    calls = []

    def handler(request):
        calls.append(request)
        if request.url.params.get("page-token"):
            return httpx.Response(429)
        return httpx.Response(200, json={"items": [pipeline_json("p0", created_at=NOW)], "next_page_token": "page-1"})

    with pytest.raises(RateLimitedError):
        _run(mock_client(handler).fetch_pipelines("gh/acme", timedelta(days=7), now=NOW))
    assert len(calls) == 2


def test_test_connection_with_explicit_token_leaves_store_alone():
    sent = []

    def handler(request):
        sent.append(request.headers["Circle-Token"])
        return httpx.Response(200, json={"login": "dev"})

    client = mock_client(handler, token="stored-token")

    assert _run(client.test_connection(token="candidate")) is True
    assert sent == ["candidate"]
    assert client.token_store.get_token() == "stored-token"
