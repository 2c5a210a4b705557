"""
Construction of virtual endpoint definitions from dialog input.
"""

import keyword
import re
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from ..schemas.virtual_endpoint import (
    DEFAULT_EXECUTION_TIMEOUT_MS,
    VirtualEndpointConfig,
    VirtualEndpointDefinition,
)


DEFAULT_NAME = "Untitled Virtual Endpoint"
DEFAULT_PATH = "/virtual/endpoint"
DEFAULT_CALLABLE_NAME = "virtual_endpoint"


def _as_dict(data: Any) -> dict:
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_none=True)
    if isinstance(data, Mapping):
        return {key: value for key, value in data.items() if value is not None}
    raise TypeError(f"Cannot build a virtual endpoint from {type(data).__name__}")


def _build_config(config: Any) -> VirtualEndpointConfig:
    config = _as_dict(config)
    return VirtualEndpointConfig(
        timeout=config.get("timeout") or DEFAULT_EXECUTION_TIMEOUT_MS,
        cache=bool(config.get("cache", False)),
        cancel_on_timeout=bool(config.get("cancel_on_timeout", False)),
    )


def generate_virtual_endpoint_id() -> str:
    return f"virtual-{int(time.time() * 1000)}"


def callable_name(name: str | None) -> str:
    """
    Derive a valid Python identifier from a human label.

    Example:
        >>> callable_name("User Profile (v2)")
        'User_Profile_v2'
        >>> callable_name("42 things")
        '_42_things'
    """
    identifier = re.sub(r"[^0-9a-zA-Z_]+", "_", name or "").strip("_")
    if not identifier:
        return DEFAULT_CALLABLE_NAME
    if identifier[0].isdigit():
        identifier = "_" + identifier
    if keyword.iskeyword(identifier):
        identifier += "_"
    return identifier


def create_virtual_endpoint(data: Any) -> VirtualEndpointDefinition:
    """
    Build a new definition from a create-dialog payload.

    Missing fields get defaults, ``id`` is generated as ``virtual-<ms>`` when
    absent, ``title``/``url`` mirror ``name``/``path`` and both timestamps
    are stamped with the current time.
    """
    data = _as_dict(data)
    name = data.get("name") or DEFAULT_NAME
    path = data.get("path") or DEFAULT_PATH
    now = datetime.now(timezone.utc)

    return VirtualEndpointDefinition(
        id=data.get("id") or generate_virtual_endpoint_id(),
        name=name,
        title=name,
        description=data.get("description") or "",
        method=data.get("method") or "GET",
        path=path,
        url=path,
        tags=list(data.get("tags") or []),
        code=data.get("code") or "",
        config=_build_config(data.get("config")),
        created_at=data.get("created_at") or now,
        updated_at=data.get("updated_at") or now,
    )


def update_virtual_endpoint(existing: VirtualEndpointDefinition, changes: Any) -> VirtualEndpointDefinition:
    """
    Re-save a definition: provided fields replace the old ones wholesale.

    The id and creation time are kept, ``updated_at`` is refreshed.
    """
    merged = existing.model_dump()
    merged.update(_as_dict(changes))
    merged["id"] = existing.id
    merged["created_at"] = existing.created_at
    merged["updated_at"] = None
    return create_virtual_endpoint(merged)
