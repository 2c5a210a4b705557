"""
Sending arbitrary requests through the network primitive.

Requests go through ``network.fetch``, so when the fetch interceptor is
installed, paths owned by virtual endpoints are answered by the executor and
come back looking exactly like ordinary network responses.
"""

import json
import time
from typing import Any

import httpx

from ..schemas.execute import ExecuteRequest, ExecuteResponse, ExecuteErrorResponse
from . import network
from .transform_helpers import build_query


# Transport failures, most specific first: (exception type, error_type, message)
TRANSPORT_ERRORS = [
    (httpx.TimeoutException, "timeout", "Request timed out"),
    (httpx.ConnectError, "network_error", "Failed to connect to server"),
    (httpx.InvalidURL, "invalid_url", "Invalid URL"),
    (httpx.UnsupportedProtocol, "invalid_url", "Invalid URL"),
    (httpx.HTTPError, "network_error", "HTTP error occurred"),
]


def parse_json_body(body: str | None, content_type: str | None) -> Any | None:
    """Parse ``body`` when the content type is JSON; None otherwise or on failure."""
    if not body or not content_type or "application/json" not in content_type.lower():
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return None


def build_request_options(request: ExecuteRequest, timeout: float) -> tuple[str, dict]:
    """
    Turn an ExecuteRequest into the ``(url, options)`` pair ``network.fetch`` takes.

    Query parameters are appended to the URL; a body without an explicit
    content type is sent as JSON.
    """
    url = request.url
    query_string = build_query(request.query_params)
    if query_string:
        url += ("&" if "?" in url else "?") + query_string

    headers = httpx.Headers(request.headers)
    if request.body:
        headers.setdefault("Content-Type", "application/json")

    return url, {
        "method": request.method,
        "headers": headers,
        "body": request.body,
        "timeout": timeout,
    }


def describe_error(error: Exception, timeout: float) -> ExecuteErrorResponse:
    for error_class, error_type, message in TRANSPORT_ERRORS:
        if isinstance(error, error_class):
            details = f"Request exceeded {timeout} seconds timeout" if error_type == "timeout" else str(error)
            return ExecuteErrorResponse(error=message, error_type=error_type, details=details)
    return ExecuteErrorResponse(error="An unexpected error occurred", error_type="unknown", details=str(error))


async def execute_request(
    request: ExecuteRequest,
    timeout: float = network.DEFAULT_TIMEOUT
) -> ExecuteResponse | ExecuteErrorResponse:
    """
    Send a request and capture the response.

    Args:
        request: The request configuration to execute
        timeout: Request timeout in seconds

    Returns:
        ExecuteResponse for any HTTP response (a failed virtual endpoint is
        a 500 response here), ExecuteErrorResponse when no response arrived
    """
    url, options = build_request_options(request, timeout)
    started = time.perf_counter()

    try:
        response = await network.fetch(url, options)
        await response.aread()
    except Exception as e:
        return describe_error(e, timeout)

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    headers = dict(response.headers)

    return ExecuteResponse(
        status_code=response.status_code,
        status_text=response.reason_phrase or "",
        headers=headers,
        body=response.text,
        body_json=parse_json_body(response.text, headers.get("content-type")),
        response_time_ms=elapsed_ms,
        response_size=len(response.content),
    )
