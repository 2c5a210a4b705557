"""
Pydantic schemas for virtual endpoint definitions.

A virtual endpoint is user-authored code that answers requests on a path
pattern by composing calls to real endpoints.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# Methods a virtual endpoint can be declared with
VirtualHttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

# Default wall-clock budget for one execution, in milliseconds
DEFAULT_EXECUTION_TIMEOUT_MS = 10000


class VirtualEndpointConfig(BaseModel):
    """
    Execution settings of a virtual endpoint.

    Attributes:
        timeout: Wall-clock budget in milliseconds
        cache: Reserved flag, stored but not used by the engine
        cancel_on_timeout: Cancel the user task when the budget elapses instead
            of leaving it running in the background
    """
    timeout: int = Field(default=DEFAULT_EXECUTION_TIMEOUT_MS, gt=0)
    cache: bool = False
    cancel_on_timeout: bool = False


class VirtualEndpointDefinition(BaseModel):
    """
    Complete virtual endpoint definition.

    ``title`` and ``url`` mirror ``name`` and ``path`` for display
    compatibility with real endpoints.
    """
    id: str
    name: str
    title: str
    description: str = ""
    type: Literal["virtual"] = "virtual"
    method: VirtualHttpMethod = "GET"
    path: str
    url: str
    tags: list[str] = []
    code: str = ""
    config: VirtualEndpointConfig = VirtualEndpointConfig()
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VirtualEndpointCreate(BaseModel):
    """Input shape produced by the create dialog. Every field is optional."""
    id: str | None = None
    name: str | None = None
    path: str | None = None
    method: VirtualHttpMethod | None = None
    description: str | None = None
    tags: list[str] | None = None
    code: str | None = None
    config: VirtualEndpointConfig | None = None


class VirtualEndpointUpdate(BaseModel):
    """Schema for re-saving a virtual endpoint. Only provided fields change."""
    name: str | None = None
    path: str | None = None
    method: VirtualHttpMethod | None = None
    description: str | None = None
    tags: list[str] | None = None
    code: str | None = None
    config: VirtualEndpointConfig | None = None
