"""
Virtual endpoint management API routes.

Provides CRUD operations for virtual endpoint definitions, static code
validation and a "test this endpoint" action that runs the executor
directly. Every change of the collection is pushed to the fetch interceptor.
"""

from typing import Union

from fastapi import APIRouter, Body, Depends, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import CodeValidationError, ConflictError, ErrorResponse, ResourceNotFoundError
from ..models.virtual_endpoint import VirtualEndpoint
from ..schemas.endpoint import RealEndpointDescriptor
from ..schemas.execute import (
    CodeValidationRequest,
    ExecutionFailure,
    ExecutionInput,
    ExecutionSuccess,
    ValidationResult,
)
from ..schemas.virtual_endpoint import (
    VirtualEndpointCreate,
    VirtualEndpointDefinition,
    VirtualEndpointUpdate,
)
from ..services.code_validation import validate_virtual_endpoint_code
from ..services.endpoint_registry import load_real_endpoints, next_sort_order, sync_interceptor
from ..services.executor import VirtualEndpointExecutor
from ..services.templates import get_template
from ..services.virtual_endpoint_factory import create_virtual_endpoint, update_virtual_endpoint


router = APIRouter(prefix="/api/virtual-endpoints", tags=["virtual-endpoints"])


def _get_virtual_endpoint_or_404(db: Session, virtual_endpoint_id: str) -> VirtualEndpoint:
    db_virtual = db.query(VirtualEndpoint).filter(VirtualEndpoint.id == virtual_endpoint_id).first()
    if db_virtual is None:
        raise ResourceNotFoundError("Virtual endpoint", virtual_endpoint_id)
    return db_virtual


def _ensure_valid_code(code: str) -> None:
    result = validate_virtual_endpoint_code(code)
    if not result.valid:
        raise CodeValidationError(result.errors)


def _load_test_target(
    db: Session, virtual_endpoint_id: str
) -> tuple[VirtualEndpointDefinition, list[RealEndpointDescriptor]]:
    definition = VirtualEndpointDefinition.model_validate(_get_virtual_endpoint_or_404(db, virtual_endpoint_id))
    return definition, load_real_endpoints(db)


def _apply_definition(db_virtual: VirtualEndpoint, definition: VirtualEndpointDefinition) -> None:
    db_virtual.name = definition.name
    db_virtual.description = definition.description
    db_virtual.method = definition.method
    db_virtual.path = definition.path
    db_virtual.tags = definition.tags
    db_virtual.code = definition.code
    db_virtual.config = definition.config.model_dump()
    db_virtual.created_at = definition.created_at
    db_virtual.updated_at = definition.updated_at


@router.post("/validate", response_model=ValidationResult)
def validate_code(request: CodeValidationRequest):
    """
    Validate a code body without saving it.

    Returns:
        ValidationResult with blocking errors and non-blocking warnings
    """
    return validate_virtual_endpoint_code(request.code)


@router.post(
    "",
    response_model=VirtualEndpointDefinition,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def create_virtual(virtual_data: VirtualEndpointCreate, db: Session = Depends(get_db)):
    """
    Create a virtual endpoint.

    Without code the blank template is used. The code must pass validation.

    Raises:
        CodeValidationError: 422 if the code does not validate
        ConflictError: 409 if an explicit id is already taken
    """
    if virtual_data.code is None:
        virtual_data = virtual_data.model_copy(update={"code": get_template("blank").code})
    _ensure_valid_code(virtual_data.code)

    definition = create_virtual_endpoint(virtual_data)
    if db.query(VirtualEndpoint).filter(VirtualEndpoint.id == definition.id).first() is not None:
        if virtual_data.id:
            raise ConflictError("Virtual endpoint", definition.id)
        suffix = 1
        while db.query(VirtualEndpoint).filter(VirtualEndpoint.id == f"{definition.id}-{suffix}").first():
            suffix += 1
        definition = definition.model_copy(update={"id": f"{definition.id}-{suffix}"})

    db_virtual = VirtualEndpoint(id=definition.id, sort_order=next_sort_order(db, VirtualEndpoint))
    _apply_definition(db_virtual, definition)
    db.add(db_virtual)
    db.commit()
    db.refresh(db_virtual)
    sync_interceptor(db)
    return VirtualEndpointDefinition.model_validate(db_virtual)


@router.get("", response_model=list[VirtualEndpointDefinition])
def list_virtuals(db: Session = Depends(get_db)):
    """List all virtual endpoints in registration order."""
    rows = db.query(VirtualEndpoint).order_by(VirtualEndpoint.sort_order, VirtualEndpoint.created_at).all()
    return [VirtualEndpointDefinition.model_validate(row) for row in rows]


@router.get(
    "/{virtual_endpoint_id}",
    response_model=VirtualEndpointDefinition,
    responses={404: {"model": ErrorResponse}},
)
def get_virtual(virtual_endpoint_id: str, db: Session = Depends(get_db)):
    """
    Get a single virtual endpoint by id.

    Raises:
        ResourceNotFoundError: 404 if the virtual endpoint does not exist
    """
    return VirtualEndpointDefinition.model_validate(_get_virtual_endpoint_or_404(db, virtual_endpoint_id))


@router.put(
    "/{virtual_endpoint_id}",
    response_model=VirtualEndpointDefinition,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def update_virtual(
    virtual_endpoint_id: str,
    virtual_data: VirtualEndpointUpdate,
    db: Session = Depends(get_db)
):
    """
    Re-save a virtual endpoint. The id and registration position are kept.

    Raises:
        ResourceNotFoundError: 404 if the virtual endpoint does not exist
        CodeValidationError: 422 if new code does not validate
    """
    db_virtual = _get_virtual_endpoint_or_404(db, virtual_endpoint_id)
    if virtual_data.code is not None:
        _ensure_valid_code(virtual_data.code)

    existing = VirtualEndpointDefinition.model_validate(db_virtual)
    _apply_definition(db_virtual, update_virtual_endpoint(existing, virtual_data))

    db.commit()
    db.refresh(db_virtual)
    sync_interceptor(db)
    return VirtualEndpointDefinition.model_validate(db_virtual)


@router.delete(
    "/{virtual_endpoint_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
def delete_virtual(virtual_endpoint_id: str, db: Session = Depends(get_db)):
    """
    Delete a virtual endpoint by id.

    Raises:
        ResourceNotFoundError: 404 if the virtual endpoint does not exist
    """
    db_virtual = _get_virtual_endpoint_or_404(db, virtual_endpoint_id)

    db.delete(db_virtual)
    db.commit()
    sync_interceptor(db)
    return None


@router.post(
    "/{virtual_endpoint_id}/test",
    response_model=Union[ExecutionSuccess, ExecutionFailure],
    responses={404: {"model": ErrorResponse}},
)
async def run_virtual_test(
    virtual_endpoint_id: str,
    execution_input: ExecutionInput | None = Body(default=None),
    db: Session = Depends(get_db)
):
    """
    Run a virtual endpoint directly, without going through the interceptor.

    Failures of the user code come back as an ExecutionFailure with status
    200; only an unknown id is an HTTP error.

    Raises:
        ResourceNotFoundError: 404 if the virtual endpoint does not exist
    """
    # Database work runs off the event loop; only the execution is awaited here
    definition, reals = await run_in_threadpool(_load_test_target, db, virtual_endpoint_id)
    executor = VirtualEndpointExecutor(definition, reals)
    return await executor.execute(execution_input or ExecutionInput())
