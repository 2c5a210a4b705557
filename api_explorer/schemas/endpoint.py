"""
Pydantic schemas for real endpoint descriptors.

A real endpoint is backed by an actual HTTP resource. Virtual endpoint code
reaches it by id through the capability context.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


# HTTP methods supported for real endpoints
HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


class RealEndpointDescriptor(BaseModel):
    """
    Read-only view of a real endpoint as seen by the engine.

    ``url`` is a base path or absolute URL and may contain :param segments.
    """
    id: str
    name: str = ""
    method: HttpMethod = "GET"
    url: str
    headers: dict[str, str] = {}
    type: str = "real"

    model_config = ConfigDict(from_attributes=True)


class EndpointCreate(BaseModel):
    """Schema for registering a real endpoint. The id is generated when omitted."""
    id: str | None = None
    name: str
    method: HttpMethod = "GET"
    url: str
    headers: dict[str, str] = {}


class EndpointUpdate(BaseModel):
    """Schema for updating a real endpoint. All fields are optional."""
    name: str | None = None
    method: HttpMethod | None = None
    url: str | None = None
    headers: dict[str, str] | None = None


class EndpointResponse(RealEndpointDescriptor):
    """Schema for endpoint response including system-generated fields."""
    sort_order: int
    created_at: datetime
    updated_at: datetime
