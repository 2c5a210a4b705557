"""
Tests for the endpoint caller used by the execution context.

Requests go out through the network primitive with a mocked transport, so
every test sees exactly what would have been sent.
"""

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from api_explorer.services import network
from api_explorer.services.endpoint_caller import EndpointCaller
from api_explorer.services.errors import EndpointNotFound, FetchFailed, InvalidCall, RequestFailed


REAL_ENDPOINTS = [
    {
        "id": "get-user",
        "name": "Get user",
        "method": "GET",
        "url": "/users/:id",
        "headers": {"X-Api-Key": "endpoint-key", "Accept": "application/json"},
    },
    {"id": "create-user", "name": "Create user", "method": "POST", "url": "/users"},
    {"id": "search", "url": "/search?fixed=1"},
    {"id": "plain-text", "url": "/text", "headers": {"Content-Type": "text/plain"}},
    {"id": "slow", "url": "/slow"},
    {"id": "fast", "url": "/fast"},
]


@pytest.fixture
def sent():
    """
    Install a mock transport recording every request it receives and the
    order in which responses were produced.
    """
    recorder = SimpleNamespace(requests=[], finished=[])

    async def handler(request: httpx.Request) -> httpx.Response:
        recorder.requests.append(request)
        path = request.url.path
        if path == "/slow":
            await asyncio.sleep(0.05)
        recorder.finished.append(path)
        if path == "/users/404":
            return httpx.Response(404)
        if path == "/text":
            return httpx.Response(200, text="plain body")
        if path == "/broken":
            return httpx.Response(500)
        body = None
        if request.content:
            is_json = "application/json" in request.headers.get("content-type", "")
            body = json.loads(request.content) if is_json else request.content.decode()
        return httpx.Response(200, json={"path": path, "method": request.method, "body": body})

    previous = network.set_transport(httpx.MockTransport(handler))
    yield recorder
    network.set_transport(previous)


@pytest.fixture
def caller():
    return EndpointCaller(REAL_ENDPOINTS)


class TestBuildRequest:
    """Request construction from endpoint descriptors."""

    def test_substitutes_params_and_uses_descriptor_method(self, caller):
        method, url, headers, body = caller.build_request("get-user", {"params": {"id": 7}})
        assert method == "GET"
        assert url == "/users/7"
        assert body is None

    def test_header_precedence(self, caller):
        _, _, headers, _ = caller.build_request("get-user", {"headers": {"X-Api-Key": "caller-key"}})
        assert headers["content-type"] == "application/json"
        assert headers["accept"] == "application/json"
        assert headers["x-api-key"] == "caller-key"

    def test_descriptor_headers_override_default_content_type(self, caller):
        _, _, headers, _ = caller.build_request("plain-text")
        assert headers["content-type"] == "text/plain"

    def test_query_appended_with_correct_separator(self, caller):
        _, url, _, _ = caller.build_request("get-user", {"params": {"id": 1}, "query": {"expand": "posts"}})
        assert url == "/users/1?expand=posts"
        _, url, _, _ = caller.build_request("search", {"query": {"q": "ada"}})
        assert url == "/search?fixed=1&q=ada"

    def test_body_is_json_encoded_and_method_overridable(self, caller):
        method, _, _, body = caller.build_request("get-user", {"method": "put", "body": {"name": "Ada"}})
        assert method == "PUT"
        assert json.loads(body) == {"name": "Ada"}

    def test_unknown_endpoint(self, caller):
        with pytest.raises(EndpointNotFound, match="missing-id"):
            caller.build_request("missing-id")


class TestCall:
    """Calls to real endpoints through the network primitive."""

    def test_call_returns_parsed_json(self, caller, sent):
        data = asyncio.run(caller.call("get-user", {"params": {"id": "7"}}))
        assert data["path"] == "/users/7"
        assert sent.requests[0].headers["x-api-key"] == "endpoint-key"

    def test_keyword_options_override_mapping(self, caller, sent):
        data = asyncio.run(caller.call("get-user", {"params": {"id": "1"}}, params={"id": "2"}))
        assert data["path"] == "/users/2"

    def test_method_shortcuts(self, caller, sent):
        async def scenario():
            return [
                await caller.get("create-user"),
                await caller.post("create-user", body={"name": "Ada"}),
                await caller.put("create-user"),
                await caller.patch("create-user"),
                await caller.delete("create-user"),
            ]

        results = asyncio.run(scenario())
        assert [result["method"] for result in results] == ["GET", "POST", "PUT", "PATCH", "DELETE"]
        assert results[1]["body"] == {"name": "Ada"}

    def test_text_response(self, caller, sent):
        assert asyncio.run(caller.get("plain-text")) == "plain body"

    def test_non_success_status_raises(self, caller, sent):
        with pytest.raises(RequestFailed) as exc_info:
            asyncio.run(caller.get("get-user", params={"id": "404"}))
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "GET /users/404 failed: 404 Not Found"

    def test_unknown_endpoint_sends_nothing(self, caller, sent):
        with pytest.raises(EndpointNotFound):
            asyncio.run(caller.call("missing-id"))
        assert sent.requests == []


class TestParallel:
    """Concurrent calls with ordered results."""

    def test_results_keep_input_order(self, caller, sent):
        results = asyncio.run(caller.parallel(
            {"endpoint_id": "slow"},
            {"endpointId": "fast"},
        ))
        assert [result["path"] for result in results] == ["/slow", "/fast"]
        # Both were in flight together: the fast one finished while the slow one slept
        assert sent.finished == ["/fast", "/slow"]

    def test_options_are_forwarded(self, caller, sent):
        results = asyncio.run(caller.parallel(
            {"endpoint_id": "get-user", "options": {"params": {"id": "1"}}},
            {"endpoint_id": "get-user", "options": {"params": {"id": "2"}}},
        ))
        assert [result["path"] for result in results] == ["/users/1", "/users/2"]

    def test_empty_returns_empty_list(self, caller, sent):
        assert asyncio.run(caller.parallel()) == []

    @pytest.mark.parametrize("bad_entry", [{"options": {}}, {"endpoint_id": ""}, "fast", None])
    def test_malformed_entry_fails_before_any_request(self, caller, sent, bad_entry):
        with pytest.raises(InvalidCall, match="position 1"):
            asyncio.run(caller.parallel({"endpoint_id": "fast"}, bad_entry))
        assert sent.requests == []

    def test_one_failure_fails_the_whole_call(self, caller, sent):
        with pytest.raises(RequestFailed):
            asyncio.run(caller.parallel(
                {"endpoint_id": "fast"},
                {"endpoint_id": "get-user", "options": {"params": {"id": "404"}}},
            ))


class TestFetch:
    """Raw fetches without endpoint-id indirection."""

    def test_fetch_absolute_url(self, caller, sent):
        data = asyncio.run(caller.fetch("https://api.example.com/data/1"))
        assert data["path"] == "/data/1"
        assert sent.requests[0].url.host == "api.example.com"

    def test_structured_body_is_sent_as_json(self, caller, sent):
        data = asyncio.run(caller.fetch("/items", method="POST", body={"a": 1}))
        assert data["body"] == {"a": 1}
        assert sent.requests[0].headers["content-type"] == "application/json"

    def test_text_body_is_sent_verbatim(self, caller, sent):
        data = asyncio.run(caller.fetch("/items", {"method": "POST", "body": "raw"}))
        assert data["body"] == "raw"
        assert sent.requests[0].content == b"raw"
        assert "content-type" not in sent.requests[0].headers

    def test_non_success_status_raises(self, caller, sent):
        with pytest.raises(FetchFailed, match="Fetch /broken failed: 500"):
            asyncio.run(caller.fetch("/broken"))
