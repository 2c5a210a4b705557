"""
Outbound network primitive shared by the application and the engine.

Every outbound request goes through ``fetch()``. The implementation bound
behind it can be swapped at runtime (the fetch interceptor does this to route
virtual endpoint paths to the executor), so callers must always go through
this module instead of holding on to a client of their own.
"""

import os
from typing import Any, Awaitable, Callable

import httpx


# Default timeout in seconds for outbound requests
DEFAULT_TIMEOUT = 30.0

# Base URL used to resolve relative endpoint URLs such as "/users/:id"
BASE_URL = os.environ.get("API_EXPLORER_BASE_URL", "http://localhost")

FetchFunction = Callable[[Any, dict | None], Awaitable[httpx.Response]]

# Transport override (None means the real network)
_transport: httpx.AsyncBaseTransport | None = None


def resolve_url(url: Any) -> httpx.URL:
    """Resolve a possibly relative URL against BASE_URL."""
    return httpx.URL(BASE_URL).join(str(url))


async def http_fetch(url: Any, options: dict | None = None) -> httpx.Response:
    """
    Send a request over HTTP and return the fully read response.

    Args:
        url: Absolute URL, or a path resolved against BASE_URL
        options: Optional mapping with ``method``, ``headers``, ``body``
            (pre-serialized str or bytes) and ``timeout`` (seconds)

    Returns:
        The httpx response with its body already loaded
    """
    options = options or {}

    async with httpx.AsyncClient(
        base_url=BASE_URL,
        timeout=options.get("timeout", DEFAULT_TIMEOUT),
        transport=_transport,
    ) as client:
        response = await client.request(
            method=(options.get("method") or "GET").upper(),
            url=str(url),
            headers=options.get("headers"),
            content=options.get("body"),
        )

    return response


_fetch_impl: FetchFunction = http_fetch


async def fetch(url: Any, options: dict | None = None) -> httpx.Response:
    """Send a request through whichever implementation is currently installed."""
    return await _fetch_impl(url, options)


def get_fetch() -> FetchFunction:
    return _fetch_impl


def set_fetch(impl: FetchFunction) -> FetchFunction:
    """Install a fetch implementation and return the previous one."""
    global _fetch_impl
    previous = _fetch_impl
    _fetch_impl = impl
    return previous


def set_transport(transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncBaseTransport | None:
    """Route ``http_fetch`` through a custom transport and return the previous one."""
    global _transport
    previous = _transport
    _transport = transport
    return previous
