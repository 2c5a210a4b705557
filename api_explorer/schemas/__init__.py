"""
Pydantic schemas package.

Exports all schemas for API request/response validation and for the
virtual endpoint engine.
"""

from .endpoint import (
    HttpMethod,
    RealEndpointDescriptor,
    EndpointCreate,
    EndpointUpdate,
    EndpointResponse,
)

from .virtual_endpoint import (
    VirtualHttpMethod,
    DEFAULT_EXECUTION_TIMEOUT_MS,
    VirtualEndpointConfig,
    VirtualEndpointDefinition,
    VirtualEndpointCreate,
    VirtualEndpointUpdate,
)

from .execute import (
    ExecutionInput,
    ExecutionSuccess,
    ExecutionFailure,
    ExecutionResult,
    CodeValidationRequest,
    ValidationResult,
    ExecuteRequest,
    ExecuteResponse,
    ExecuteErrorResponse,
)

from .template import (
    Template,
    TemplateSummary,
)

__all__ = [
    # Real endpoint schemas
    "HttpMethod",
    "RealEndpointDescriptor",
    "EndpointCreate",
    "EndpointUpdate",
    "EndpointResponse",
    # Virtual endpoint schemas
    "VirtualHttpMethod",
    "DEFAULT_EXECUTION_TIMEOUT_MS",
    "VirtualEndpointConfig",
    "VirtualEndpointDefinition",
    "VirtualEndpointCreate",
    "VirtualEndpointUpdate",
    # Execution schemas
    "ExecutionInput",
    "ExecutionSuccess",
    "ExecutionFailure",
    "ExecutionResult",
    "CodeValidationRequest",
    "ValidationResult",
    "ExecuteRequest",
    "ExecuteResponse",
    "ExecuteErrorResponse",
    # Template schemas
    "Template",
    "TemplateSummary",
]
