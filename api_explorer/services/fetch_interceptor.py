"""
Fetch interceptor routing virtual endpoint paths to the executor.

Once installed, every request sent through ``network.fetch`` is checked
against the registered virtual endpoints. The first definition (in
registration order) whose path pattern matches the request path handles the
request; there is no best-match ranking. Anything else goes to the original
network implementation untouched.

Virtual endpoint responses are real ``httpx.Response`` objects, so calling
code cannot tell them apart from network responses.
"""

import json
import logging
from typing import Any, Iterable
from urllib.parse import unquote

import httpx

from ..schemas.execute import ExecutionInput
from ..schemas.virtual_endpoint import VirtualEndpointDefinition
from . import network
from .executor import VirtualEndpointExecutor
from .path_params import match_path
from .virtual_endpoint_factory import create_virtual_endpoint


logger = logging.getLogger(__name__)

virtual_endpoints: list[VirtualEndpointDefinition] = []
real_endpoints: list[Any] = []
original_fetch: network.FetchFunction | None = None


def _normalize_virtuals(virtuals: Iterable[Any] | None) -> list[VirtualEndpointDefinition]:
    return [
        virtual if isinstance(virtual, VirtualEndpointDefinition) else create_virtual_endpoint(virtual)
        for virtual in virtuals or []
    ]


def initialize_fetch_interceptor(virtuals: Iterable[Any] | None, reals: Iterable[Any] | None) -> None:
    """
    Register endpoint lists and install the interceptor.

    Installing is idempotent: a second call only replaces the lists.
    """
    global original_fetch
    update_virtual_endpoints(virtuals, reals)

    if original_fetch is None:
        original_fetch = network.set_fetch(intercepted_fetch)
        logger.info("Fetch interceptor installed with %d virtual endpoint(s)", len(virtual_endpoints))


def update_virtual_endpoints(virtuals: Iterable[Any] | None, reals: Iterable[Any] | None) -> None:
    """Replace the registered lists wholesale without reinstalling."""
    global virtual_endpoints, real_endpoints
    virtual_endpoints = _normalize_virtuals(virtuals)
    real_endpoints = list(reals or [])


def cleanup_fetch_interceptor() -> None:
    """Restore the original fetch and clear all state. No-op when not installed."""
    global original_fetch, virtual_endpoints, real_endpoints
    if original_fetch is not None:
        network.set_fetch(original_fetch)
        original_fetch = None
        logger.info("Fetch interceptor removed")
    virtual_endpoints = []
    real_endpoints = []


def is_installed() -> bool:
    return original_fetch is not None


def find_matching_virtual_endpoint(path: str) -> VirtualEndpointDefinition | None:
    """Return the first registered virtual endpoint whose pattern matches ``path``."""
    for endpoint in virtual_endpoints:
        if match_path(endpoint.path, path) is not None:
            return endpoint
    return None


def extract_params(pattern: str, path: str) -> dict[str, str]:
    """
    Path parameters of the percent-encoded ``path`` under ``pattern``, decoded.

    Empty when the path does not match.
    """
    return {name: unquote(value) for name, value in (match_path(pattern, path) or {}).items()}


def request_path(url: httpx.URL) -> str:
    """The percent-encoded path of ``url``, so an encoded slash stays inside its segment."""
    return url.raw_path.decode("ascii").split("?", 1)[0]


def parse_request_body(body: Any) -> Any:
    """JSON-decode a request body; absent or unparseable bodies become ``{}``."""
    if body is None or body == "" or body == b"":
        return {}
    if isinstance(body, (dict, list)):
        return body
    try:
        return json.loads(body)
    except (TypeError, ValueError):
        return {}


def create_mock_response(data: Any, status_code: int = 200, request: httpx.Request | None = None) -> httpx.Response:
    """Build a JSON response carrying Content-Type and Content-Length headers."""
    content = json.dumps(data, default=str).encode("utf-8")
    return httpx.Response(
        status_code=status_code,
        headers={
            "Content-Type": "application/json",
            "Content-Length": str(len(content)),
        },
        content=content,
        request=request,
    )


async def execute_virtual_endpoint(
    endpoint: VirtualEndpointDefinition,
    url: httpx.URL,
    options: dict,
) -> httpx.Response:
    """Run a matched virtual endpoint and translate its result into a response."""
    request = httpx.Request(options.get("method") or "GET", url)
    try:
        # Repeated query keys keep their last value
        execution_input = ExecutionInput(
            params=extract_params(endpoint.path, request_path(url)),
            query=dict(url.params.multi_items()),
            body=parse_request_body(options.get("body")),
            headers=dict(httpx.Headers(options.get("headers") or {})),
        )

        executor = VirtualEndpointExecutor(endpoint, real_endpoints)
        result = await executor.execute(execution_input)

        if result.success:
            return create_mock_response(result.data, 200, request)
        return create_mock_response({"error": result.error}, 500, request)
    except Exception as e:
        logger.exception("Virtual endpoint %s could not be dispatched", endpoint.id)
        return create_mock_response({"error": str(e)}, 500, request)


async def intercepted_fetch(url: Any, options: dict | None = None) -> httpx.Response:
    """Fetch implementation installed by the interceptor."""
    options = options or {}
    target = network.resolve_url(url)
    path = request_path(target)

    endpoint = find_matching_virtual_endpoint(path)
    if endpoint is not None:
        logger.debug("Routing %s to virtual endpoint %s", path, endpoint.id)
        return await execute_virtual_endpoint(endpoint, target, options)

    delegate = original_fetch or network.http_fetch
    return await delegate(url, options)
