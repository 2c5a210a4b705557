"""
Request execution API routes.

Sends a request through the application's network primitive. Paths owned by
a virtual endpoint are answered by the executor via the fetch interceptor;
everything else goes to the network.
"""

from fastapi import APIRouter

from ..exceptions import BadRequestError, ErrorResponse, NetworkError, TimeoutError, APIException
from ..schemas.execute import ExecuteRequest, ExecuteResponse, ExecuteErrorResponse
from ..services.http_executor import execute_request


router = APIRouter(prefix="/api/execute", tags=["execute"])


def raise_for_error(result: ExecuteErrorResponse) -> None:
    """Map an execution error onto the matching API exception."""
    detail = f"{result.error}: {result.details}" if result.details else result.error
    if result.error_type == "timeout":
        raise TimeoutError(detail)
    if result.error_type == "network_error":
        raise NetworkError(detail)
    if result.error_type == "invalid_url":
        raise BadRequestError(detail)
    raise APIException(detail, error_code="EXECUTION_ERROR")


@router.post(
    "",
    response_model=ExecuteResponse,
    responses={
        200: {"model": ExecuteResponse, "description": "Successful execution"},
        400: {"model": ErrorResponse, "description": "Invalid URL"},
        502: {"model": ErrorResponse, "description": "Network error"},
        504: {"model": ErrorResponse, "description": "Request timeout"},
    }
)
async def execute(request: ExecuteRequest):
    """
    Execute a request through the intercepted network primitive.

    Args:
        request: The request configuration to execute

    Returns:
        ExecuteResponse with status, headers, body and timing info. A failed
        virtual endpoint is a normal 500 response here, not an API error.

    Raises:
        BadRequestError: 400 for an invalid URL
        NetworkError: 502 when the server cannot be reached
        TimeoutError: 504 when the request times out
    """
    result = await execute_request(request)

    if isinstance(result, ExecuteErrorResponse):
        raise_for_error(result)

    return result
