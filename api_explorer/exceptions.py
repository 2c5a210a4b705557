"""
API error types and their FastAPI handlers.

Every error leaving the HTTP layer has the shape of ErrorResponse. Errors
raised inside a virtual endpoint execution never get here: the executor
folds them into its result envelope.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError


class ErrorResponse(BaseModel):
    """Body of every error response."""
    detail: str
    error_code: str | None = None
    errors: list[str] | None = None


class APIException(Exception):
    """
    Base class for errors that map onto an HTTP status.

    Subclasses set ``status_code`` and ``error_code`` as class attributes;
    both can still be overridden per instance.
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str | None = None

    def __init__(self, detail: str, status_code: int | None = None, error_code: str | None = None):
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        super().__init__(detail)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(detail=self.detail, error_code=self.error_code)


class ResourceNotFoundError(APIException):
    """An endpoint or virtual endpoint id does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(f"{resource_type} with id {resource_id} not found")


class ConflictError(APIException):
    """An explicitly requested id is already taken."""
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(f"{resource_type} with id {resource_id} already exists")


class CodeValidationError(APIException):
    """Virtual endpoint code failed static validation; carries every error found."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "INVALID_CODE"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid code")

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(detail=self.detail, error_code=self.error_code, errors=self.errors)


class BadRequestError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"


class NetworkError(APIException):
    """A request sent through the network primitive could not reach its server."""
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "NETWORK_ERROR"


class TimeoutError(APIException):
    """A request sent through the network primitive timed out."""
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = "TIMEOUT"

    def __init__(self, detail: str = "Request timed out"):
        super().__init__(detail)


def _error_json(status_code: int, error: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error.model_dump(exclude_none=True))


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return _error_json(exc.status_code, exc.to_response())


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Flatten pydantic errors into ``"<location>: <message>"`` strings."""
    messages = [
        f"{' -> '.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return _error_json(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse(
            detail="; ".join(messages) or "Validation error",
            error_code="VALIDATION_ERROR",
            errors=messages or None,
        ),
    )


async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(detail="Database error occurred", error_code="DATABASE_ERROR"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
