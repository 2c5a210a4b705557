"""
Tests for the fetch interceptor.

Requests that match no virtual endpoint fall through to a mocked transport;
matching ones are answered by the executor with ordinary httpx responses.
"""

import asyncio
import json

import httpx
import pytest

from api_explorer.services import fetch_interceptor, network
from api_explorer.services.fetch_interceptor import (
    cleanup_fetch_interceptor,
    create_mock_response,
    extract_params,
    find_matching_virtual_endpoint,
    initialize_fetch_interceptor,
    is_installed,
    parse_request_body,
    request_path,
    update_virtual_endpoints,
)


def virtual(id, path, code):
    return {"id": id, "name": id, "path": path, "code": code}


ECHO = virtual(
    "echo",
    "/virtual/user/:id",
    "return {'params': context.input.params, 'query': context.input.query}",
)


@pytest.fixture(autouse=True)
def clean_interceptor():
    cleanup_fetch_interceptor()
    yield
    cleanup_fetch_interceptor()


@pytest.fixture
def upstream():
    """Mock the network behind the interceptor and record the paths it serves."""
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"upstream": request.url.path})

    previous = network.set_transport(httpx.MockTransport(handler))
    yield paths
    network.set_transport(previous)


def fetch_json(url, options=None):
    async def scenario():
        response = await network.fetch(url, options)
        return response.status_code, response.json()

    return asyncio.run(scenario())


class TestInstallation:
    """Installing, updating and removing the interceptor."""

    def test_install_swaps_fetch_implementation(self):
        original = network.get_fetch()
        initialize_fetch_interceptor([ECHO], [])

        assert is_installed()
        assert network.get_fetch() is fetch_interceptor.intercepted_fetch
        assert fetch_interceptor.original_fetch is original

    def test_install_is_idempotent(self):
        original = network.get_fetch()
        initialize_fetch_interceptor([ECHO], [])
        initialize_fetch_interceptor([], [])

        assert fetch_interceptor.original_fetch is original
        assert fetch_interceptor.virtual_endpoints == []

        cleanup_fetch_interceptor()
        assert network.get_fetch() is original

    def test_cleanup_without_install_is_a_no_op(self):
        original = network.get_fetch()
        cleanup_fetch_interceptor()
        cleanup_fetch_interceptor()

        assert not is_installed()
        assert network.get_fetch() is original

    def test_cleanup_restores_passthrough(self, upstream):
        initialize_fetch_interceptor([ECHO], [])
        cleanup_fetch_interceptor()

        status, data = fetch_json("/virtual/user/1")
        assert status == 200
        assert data == {"upstream": "/virtual/user/1"}
        assert fetch_interceptor.virtual_endpoints == []

    def test_update_replaces_lists_without_reinstalling(self, upstream):
        initialize_fetch_interceptor([], [])
        original = fetch_interceptor.original_fetch

        update_virtual_endpoints([ECHO], [{"id": "u", "url": "/users/:id"}])

        assert fetch_interceptor.original_fetch is original
        assert [endpoint.id for endpoint in fetch_interceptor.virtual_endpoints] == ["echo"]
        status, _ = fetch_json("/virtual/user/1")
        assert status == 200
        assert upstream == []


class TestRouting:
    """Dispatch of matching paths to the executor."""

    def test_non_matching_request_passes_through(self, upstream):
        initialize_fetch_interceptor([ECHO], [])

        status, data = fetch_json("/users/1")

        assert status == 200
        assert data == {"upstream": "/users/1"}
        assert upstream == ["/users/1"]

    def test_matching_request_is_executed(self, upstream):
        initialize_fetch_interceptor([ECHO], [])

        status, data = fetch_json("/virtual/user/42?expand=posts&page=1&page=2")

        assert status == 200
        assert data == {"params": {"id": "42"}, "query": {"expand": "posts", "page": "2"}}
        assert upstream == []

    def test_absolute_url_is_matched_by_path(self, upstream):
        initialize_fetch_interceptor([ECHO], [])

        status, data = fetch_json("https://api.example.com/virtual/user/9")

        assert status == 200
        assert data["params"] == {"id": "9"}

    def test_first_registered_match_wins(self, upstream):
        initialize_fetch_interceptor([
            virtual("generic", "/virtual/:name", "return 'generic'"),
            virtual("specific", "/virtual/special", "return 'specific'"),
        ], [])

        assert fetch_json("/virtual/special") == (200, "generic")
        assert find_matching_virtual_endpoint("/virtual/special").id == "generic"

    @pytest.mark.parametrize("url, user_id", [
        ("/virtual/user/a%2Fb", "a/b"),
        ("/virtual/user/a%20b", "a b"),
        ("/virtual/user/caf%C3%A9", "caf\u00e9"),
    ])
    def test_encoded_segment_is_matched_and_decoded(self, upstream, url, user_id):
        initialize_fetch_interceptor([ECHO], [])

        status, data = fetch_json(url)

        assert status == 200
        assert data["params"] == {"id": user_id}
        assert upstream == []

    def test_body_and_headers_reach_user_code(self, upstream):
        initialize_fetch_interceptor([
            virtual(
                "submit",
                "/virtual/submit",
                "return {'body': context.input.body, 'token': context.input.headers.get('x-token')}",
            ),
        ], [])

        status, data = fetch_json("/virtual/submit", {
            "method": "POST",
            "headers": {"X-Token": "abc", "Content-Type": "application/json"},
            "body": json.dumps({"name": "Ada"}),
        })

        assert status == 200
        assert data == {"body": {"name": "Ada"}, "token": "abc"}

    def test_failure_maps_to_500(self, upstream):
        initialize_fetch_interceptor([virtual("broken", "/virtual/broken", "raise ValueError('nope')")], [])

        status, data = fetch_json("/virtual/broken")

        assert status == 500
        assert data == {"error": "nope"}

    def test_virtual_endpoint_can_call_another(self, upstream):
        initialize_fetch_interceptor(
            [
                virtual("inner", "/virtual/inner", "return {'inner': True}"),
                virtual(
                    "outer",
                    "/virtual/outer",
                    "inner = await context.get('inner-as-real')\n"
                    "raw = await context.fetch('/virtual/inner')\n"
                    "return {'via_call': inner, 'via_fetch': raw}",
                ),
            ],
            [{"id": "inner-as-real", "url": "/virtual/inner"}],
        )

        status, data = fetch_json("/virtual/outer")

        assert status == 200
        assert data == {"via_call": {"inner": True}, "via_fetch": {"inner": True}}
        assert upstream == []

    def test_virtual_endpoint_can_reach_real_endpoint(self, upstream):
        initialize_fetch_interceptor(
            [virtual("proxy", "/virtual/proxy/:id", "return await context.get('u', params=context.input.params)")],
            [{"id": "u", "url": "/users/:id"}],
        )

        status, data = fetch_json("/virtual/proxy/5")

        assert status == 200
        assert data == {"upstream": "/users/5"}


class TestHelpers:
    """Request body parsing and response construction."""

    @pytest.mark.parametrize("body, expected", [
        (None, {}),
        ("", {}),
        (b"", {}),
        ("not json", {}),
        ('{"a": 1}', {"a": 1}),
        (b"[1, 2]", [1, 2]),
        ({"already": "parsed"}, {"already": "parsed"}),
    ])
    def test_parse_request_body(self, body, expected):
        assert parse_request_body(body) == expected

    def test_request_path_keeps_encoding(self):
        assert request_path(httpx.URL("https://api.example.com/virtual/user/a%2Fb?x=1")) == "/virtual/user/a%2Fb"

    def test_extract_params_decodes_values(self):
        assert extract_params("/virtual/user/:id", "/virtual/user/a%2Fb") == {"id": "a/b"}
        assert extract_params("/virtual/user/:id", "/other") == {}

    def test_mock_response_is_a_json_response(self):
        response = create_mock_response({"ok": True}, 201)

        assert response.status_code == 201
        assert response.headers["content-type"] == "application/json"
        assert int(response.headers["content-length"]) == len(response.content)
        assert response.json() == {"ok": True}
