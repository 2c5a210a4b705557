"""
Execution context construction.

The context is the only thing handed to virtual endpoint code: request input,
the capability functions for reaching endpoints and the network, the
transformation helpers and a metadata snapshot. It is built fresh for every
execution and never rewritten afterwards.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Awaitable, Callable, Iterable

from pydantic import ValidationError as PydanticValidationError

from ..schemas.execute import ExecutionInput
from .endpoint_caller import EndpointCaller
from .errors import ContextBuildError
from .transform_helpers import utils as transform_utils


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ExecutionMeta:
    """Timestamped snapshot of the endpoint being executed and its peers."""
    endpoint_id: str
    name: str
    timestamp: int
    endpoints: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class ExecutionContext:
    """Capability object passed as the sole argument to virtual endpoint code."""
    input: ExecutionInput
    call: Callable[..., Awaitable[Any]]
    get: Callable[..., Awaitable[Any]]
    post: Callable[..., Awaitable[Any]]
    put: Callable[..., Awaitable[Any]]
    patch: Callable[..., Awaitable[Any]]
    delete: Callable[..., Awaitable[Any]]
    parallel: Callable[..., Awaitable[list]]
    fetch: Callable[..., Awaitable[Any]]
    utils: SimpleNamespace
    meta: ExecutionMeta


def normalize_input(raw_input: Any) -> ExecutionInput:
    """
    Turn raw request input into an ExecutionInput.

    Missing or None parts default to empty mappings; an absent or falsy
    body becomes ``{}``.
    """
    if isinstance(raw_input, ExecutionInput):
        data = raw_input.model_dump()
    elif isinstance(raw_input, Mapping):
        data = dict(raw_input)
    elif raw_input is None:
        data = {}
    else:
        raise ContextBuildError(f"Execution input must be a mapping, got {type(raw_input).__name__}")

    if not data.get("body"):
        data["body"] = {}
    for key in ("params", "query", "headers"):
        if data.get(key) is None:
            data[key] = {}
        elif isinstance(data[key], Mapping):
            data[key] = {str(k): str(v) for k, v in data[key].items()}

    try:
        return ExecutionInput.model_validate(data)
    except PydanticValidationError as e:
        raise ContextBuildError(f"Invalid execution input: {e}") from e


def build_context(virtual_endpoint: Any, raw_input: Any, real_endpoints: Iterable[Any] | None) -> ExecutionContext:
    """
    Assemble the execution context for one invocation.

    No I/O happens here. ``meta.timestamp`` is captured now and later used
    to compute the execution time, so a context must never be reused.

    Args:
        virtual_endpoint: Definition being executed (needs ``id`` and ``name``)
        raw_input: Intercepted request input (params, query, body, headers)
        real_endpoints: Real endpoint descriptors reachable by id

    Raises:
        ContextBuildError: The input or endpoint list is malformed
    """
    try:
        caller = EndpointCaller(real_endpoints)
    except PydanticValidationError as e:
        raise ContextBuildError(f"Invalid real endpoint list: {e}") from e

    meta = ExecutionMeta(
        endpoint_id=getattr(virtual_endpoint, "id", ""),
        name=getattr(virtual_endpoint, "name", ""),
        timestamp=now_ms(),
        endpoints=[
            {
                "id": endpoint.id,
                "name": endpoint.name,
                "method": endpoint.method,
                "url": endpoint.url,
                "type": endpoint.type,
            }
            for endpoint in caller.real_endpoints
        ],
    )

    return ExecutionContext(
        input=normalize_input(raw_input),
        call=caller.call,
        get=caller.get,
        post=caller.post,
        put=caller.put,
        patch=caller.patch,
        delete=caller.delete,
        parallel=caller.parallel,
        fetch=caller.fetch,
        utils=transform_utils,
        meta=meta,
    )
