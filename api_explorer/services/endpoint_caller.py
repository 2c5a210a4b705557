"""
Endpoint caller service for invoking real endpoints by id.

Builds outbound requests from RealEndpointDescriptor entries (path parameter
substitution, query strings, header merging, JSON bodies) and sends them
through the shared network primitive, so calls made from virtual endpoint
code may themselves land on other virtual endpoints.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Iterable

import httpx

from ..schemas.endpoint import RealEndpointDescriptor
from . import network
from .errors import EndpointNotFound, FetchFailed, InvalidCall, RequestFailed
from .path_params import substitute_path_params
from .transform_helpers import build_query


logger = logging.getLogger(__name__)

# Option keys understood by call()
CALL_OPTION_KEYS = ("params", "query", "body", "headers", "method")


def normalize_real_endpoints(endpoints: Iterable[Any] | None) -> list[RealEndpointDescriptor]:
    """Validate descriptors given as models, ORM rows or plain mappings."""
    return [RealEndpointDescriptor.model_validate(endpoint) for endpoint in endpoints or []]


def merge_options(options: Mapping | None, overrides: Mapping | None = None) -> dict:
    """Combine an options mapping with keyword overrides (overrides win)."""
    merged = dict(options) if isinstance(options, Mapping) else {}
    if overrides:
        merged.update(overrides)
    return merged


async def read_response_body(response: httpx.Response) -> Any:
    """
    Parse the response as JSON when its content type says so, else return text.
    """
    content_type = response.headers.get("content-type", "")
    await response.aread()
    if "application/json" in content_type.lower():
        return response.json()
    return response.text


class EndpointCaller:
    """
    Calls real endpoints resolved by id, or arbitrary URLs.

    One caller is created per execution and holds a snapshot of the real
    endpoint list.
    """

    def __init__(self, real_endpoints: Iterable[Any] | None = None):
        self.real_endpoints = normalize_real_endpoints(real_endpoints)

    def find_endpoint(self, endpoint_id: str) -> RealEndpointDescriptor:
        for endpoint in self.real_endpoints:
            if endpoint.id == endpoint_id:
                return endpoint
        raise EndpointNotFound(endpoint_id)

    def build_request(self, endpoint_id: str, options: Mapping | None = None) -> tuple[str, str, httpx.Headers, str | None]:
        """
        Resolve an endpoint call into ``(method, url, headers, body)``.

        Header precedence, later overriding earlier: JSON content type,
        the descriptor's headers, then the caller's headers.
        """
        options = merge_options(options)
        endpoint = self.find_endpoint(endpoint_id)

        url = substitute_path_params(endpoint.url, options.get("params"))
        query_string = build_query(options.get("query"))
        if query_string:
            url += ("&" if "?" in url else "?") + query_string

        method = (options.get("method") or endpoint.method).upper()

        headers = httpx.Headers({"Content-Type": "application/json"})
        headers.update(endpoint.headers or {})
        headers.update(options.get("headers") or {})

        body = None
        if options.get("body") is not None:
            body = json.dumps(options["body"])

        return method, url, headers, body

    async def call(self, endpoint_id: str, options: Mapping | None = None, **overrides: Any) -> Any:
        """
        Call a real endpoint by id.

        Args:
            endpoint_id: Id of a registered real endpoint
            options: Mapping with ``params``, ``query``, ``body``, ``headers``
                and ``method``; keyword arguments override it

        Returns:
            Parsed JSON, or text for non-JSON responses

        Raises:
            EndpointNotFound: Unknown endpoint id
            RequestFailed: Non-success response status
        """
        method, url, headers, body = self.build_request(endpoint_id, merge_options(options, overrides))
        logger.debug("Calling endpoint %s: %s %s", endpoint_id, method, url)

        response = await network.fetch(url, {"method": method, "headers": headers, "body": body})

        if not response.is_success:
            raise RequestFailed(method, url, response.status_code, response.reason_phrase)

        return await read_response_body(response)

    async def get(self, endpoint_id: str, options: Mapping | None = None, **overrides: Any) -> Any:
        return await self.call(endpoint_id, options, **{**overrides, "method": "GET"})

    async def post(self, endpoint_id: str, options: Mapping | None = None, **overrides: Any) -> Any:
        return await self.call(endpoint_id, options, **{**overrides, "method": "POST"})

    async def put(self, endpoint_id: str, options: Mapping | None = None, **overrides: Any) -> Any:
        return await self.call(endpoint_id, options, **{**overrides, "method": "PUT"})

    async def patch(self, endpoint_id: str, options: Mapping | None = None, **overrides: Any) -> Any:
        return await self.call(endpoint_id, options, **{**overrides, "method": "PATCH"})

    async def delete(self, endpoint_id: str, options: Mapping | None = None, **overrides: Any) -> Any:
        return await self.call(endpoint_id, options, **{**overrides, "method": "DELETE"})

    async def parallel(self, *calls: Mapping) -> list:
        """
        Run several endpoint calls concurrently.

        Each entry is ``{"endpoint_id": ..., "options": {...}}``
        (``endpointId`` is accepted too). Every entry is validated before any
        request is sent. Results come back in input order.

        Raises:
            InvalidCall: An entry is not a mapping or has no endpoint id
        """
        if not calls:
            return []

        resolved = []
        for index, entry in enumerate(calls):
            endpoint_id = None
            if isinstance(entry, Mapping):
                endpoint_id = entry.get("endpoint_id") or entry.get("endpointId")
            if not endpoint_id:
                raise InvalidCall(f"Invalid parallel call at position {index}: missing endpoint_id")
            resolved.append((endpoint_id, entry.get("options") or {}))

        return list(await asyncio.gather(
            *(self.call(endpoint_id, options) for endpoint_id, options in resolved)
        ))

    async def fetch(self, url: str, options: Mapping | None = None, **overrides: Any) -> Any:
        """
        Fetch an arbitrary URL without endpoint-id indirection.

        ``body`` is sent verbatim when it is text or bytes; other values are
        serialized as JSON.

        Raises:
            FetchFailed: Non-success response status
        """
        options = merge_options(options, overrides)
        body = options.get("body")
        if body is not None and not isinstance(body, (str, bytes, bytearray)):
            options["body"] = json.dumps(body)
            headers = httpx.Headers(options.get("headers") or {})
            headers.setdefault("Content-Type", "application/json")
            options["headers"] = headers

        logger.debug("Fetching %s", url)
        response = await network.fetch(url, options)

        if not response.is_success:
            raise FetchFailed(str(url), response.status_code, response.reason_phrase)

        return await read_response_body(response)
