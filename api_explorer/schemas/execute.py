"""
Pydantic schemas for execution.

Covers the virtual endpoint execution envelope (input, success and failure
results), code validation results, and sending arbitrary requests through
the intercepted network primitive.
"""

from typing import Any, Literal, Union

from pydantic import BaseModel

from .endpoint import HttpMethod


class ExecutionInput(BaseModel):
    """Request data handed to virtual endpoint code as ``context.input``."""
    params: dict[str, str] = {}
    query: dict[str, str] = {}
    body: Any = {}
    headers: dict[str, str] = {}


class ExecutionSuccess(BaseModel):
    """Result of an execution whose user code returned a value."""
    success: Literal[True] = True
    data: Any = None
    execution_time: int


class ExecutionFailure(BaseModel):
    """Result of an execution that failed for any reason."""
    success: Literal[False] = False
    error: str
    stack: str | None = None


ExecutionResult = Union[ExecutionSuccess, ExecutionFailure]


class CodeValidationRequest(BaseModel):
    """Schema for validating a code body without saving it."""
    code: str = ""


class ValidationResult(BaseModel):
    """Outcome of static code validation. Errors block saving, warnings do not."""
    valid: bool
    errors: list[str] = []
    warnings: list[str] = []


class ExecuteRequest(BaseModel):
    """Schema for sending a request through the network primitive."""
    method: HttpMethod = "GET"
    url: str
    headers: dict[str, str] = {}
    query_params: dict[str, str] = {}
    body: str | None = None


class ExecuteResponse(BaseModel):
    """
    A captured HTTP response.

    Responses produced by a virtual endpoint are indistinguishable from ones
    that came over the network.
    """
    status_code: int
    status_text: str
    headers: dict[str, str]
    body: str | None
    body_json: Any | None = None
    response_time_ms: int
    response_size: int


class ExecuteErrorResponse(BaseModel):
    """No response arrived: the request failed in transport."""
    error: str
    error_type: Literal["network_error", "timeout", "invalid_url", "unknown"]
    details: str | None = None
