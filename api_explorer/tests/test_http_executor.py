"""
Tests for sending arbitrary requests through the network primitive.
"""

import asyncio

import httpx
import pytest

from api_explorer.schemas.execute import ExecuteErrorResponse, ExecuteRequest, ExecuteResponse
from api_explorer.services import network
from api_explorer.services.http_executor import (
    build_request_options,
    describe_error,
    execute_request,
    parse_json_body,
)


@pytest.fixture
def transport():
    """Install a mock transport whose handler each test assigns."""
    state = {"handler": lambda request: httpx.Response(200, json={"path": request.url.path})}

    def handler(request: httpx.Request) -> httpx.Response:
        return state["handler"](request)

    previous = network.set_transport(httpx.MockTransport(handler))
    yield state
    network.set_transport(previous)


class TestBuildRequestOptions:

    def test_query_params_are_appended(self):
        url, _ = build_request_options(ExecuteRequest(url="/items?sort=asc", query_params={"page": "2"}), 5)
        assert url == "/items?sort=asc&page=2"

    def test_body_defaults_to_json_content_type(self):
        _, options = build_request_options(ExecuteRequest(method="POST", url="/items", body='{"a": 1}'), 5)
        assert options["headers"]["content-type"] == "application/json"
        assert options["timeout"] == 5

    def test_explicit_content_type_is_kept(self):
        request = ExecuteRequest(method="POST", url="/items", body="a=1", headers={"content-type": "text/plain"})
        _, options = build_request_options(request, 5)
        assert options["headers"]["content-type"] == "text/plain"


class TestExecuteRequest:

    def test_captures_response(self, transport):
        result = asyncio.run(execute_request(ExecuteRequest(url="/items/1")))

        assert isinstance(result, ExecuteResponse)
        assert result.status_code == 200
        assert result.status_text == "OK"
        assert result.body_json == {"path": "/items/1"}
        assert result.response_size == len(result.body.encode())

    def test_error_status_is_still_a_response(self, transport):
        transport["handler"] = lambda request: httpx.Response(503, text="down")

        result = asyncio.run(execute_request(ExecuteRequest(url="/items")))

        assert isinstance(result, ExecuteResponse)
        assert result.status_code == 503
        assert result.body == "down"
        assert result.body_json is None

    def test_connect_error(self, transport):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        transport["handler"] = refuse

        result = asyncio.run(execute_request(ExecuteRequest(url="/items")))

        assert isinstance(result, ExecuteErrorResponse)
        assert result.error_type == "network_error"
        assert "connection refused" in result.details


class TestDescribeError:

    @pytest.mark.parametrize("error, error_type", [
        (httpx.ReadTimeout("slow"), "timeout"),
        (httpx.ConnectError("refused"), "network_error"),
        (httpx.InvalidURL("bad"), "invalid_url"),
        (httpx.UnsupportedProtocol("ftp"), "invalid_url"),
        (httpx.RemoteProtocolError("broken"), "network_error"),
        (RuntimeError("boom"), "unknown"),
    ])
    def test_error_types(self, error, error_type):
        assert describe_error(error, 30).error_type == error_type

    def test_timeout_details_mention_budget(self):
        assert describe_error(httpx.ReadTimeout("slow"), 2.5).details == "Request exceeded 2.5 seconds timeout"


class TestParseJsonBody:

    @pytest.mark.parametrize("body, content_type, expected", [
        ('{"a": 1}', "application/json", {"a": 1}),
        ('{"a": 1}', "Application/JSON; charset=utf-8", {"a": 1}),
        ('{"a": 1}', "text/plain", None),
        ("{broken", "application/json", None),
        ("", "application/json", None),
        ('{"a": 1}', None, None),
    ])
    def test_parse(self, body, content_type, expected):
        assert parse_json_body(body, content_type) == expected
