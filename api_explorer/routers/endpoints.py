"""
Real endpoint management API routes.

Provides CRUD operations for the real endpoint descriptors that virtual
endpoint code can call by id. Every change is pushed to the fetch
interceptor.
"""

import time

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import ConflictError, ErrorResponse, ResourceNotFoundError
from ..models.endpoint import Endpoint
from ..schemas.endpoint import EndpointCreate, EndpointUpdate, EndpointResponse
from ..services.endpoint_registry import next_sort_order, sync_interceptor


router = APIRouter(prefix="/api/endpoints", tags=["endpoints"])


def _get_endpoint_or_404(db: Session, endpoint_id: str) -> Endpoint:
    db_endpoint = db.query(Endpoint).filter(Endpoint.id == endpoint_id).first()
    if db_endpoint is None:
        raise ResourceNotFoundError("Endpoint", endpoint_id)
    return db_endpoint


@router.post(
    "",
    response_model=EndpointResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
def create_endpoint(endpoint_data: EndpointCreate, db: Session = Depends(get_db)):
    """
    Register a real endpoint.

    Args:
        endpoint_data: Endpoint descriptor; the id is generated when omitted
        db: Database session

    Returns:
        The created endpoint

    Raises:
        ConflictError: 409 if the id is already taken
    """
    endpoint_id = endpoint_data.id or f"endpoint-{int(time.time() * 1000)}"
    if db.query(Endpoint).filter(Endpoint.id == endpoint_id).first() is not None:
        raise ConflictError("Endpoint", endpoint_id)

    db_endpoint = Endpoint(
        id=endpoint_id,
        name=endpoint_data.name,
        method=endpoint_data.method,
        url=endpoint_data.url,
        headers=endpoint_data.headers,
        sort_order=next_sort_order(db, Endpoint),
    )
    db.add(db_endpoint)
    db.commit()
    db.refresh(db_endpoint)
    sync_interceptor(db)
    return db_endpoint


@router.get("", response_model=list[EndpointResponse])
def list_endpoints(db: Session = Depends(get_db)):
    """List all real endpoints in list order."""
    return db.query(Endpoint).order_by(Endpoint.sort_order, Endpoint.created_at).all()


@router.get("/{endpoint_id}", response_model=EndpointResponse, responses={404: {"model": ErrorResponse}})
def get_endpoint(endpoint_id: str, db: Session = Depends(get_db)):
    """
    Get a single real endpoint by id.

    Raises:
        ResourceNotFoundError: 404 if the endpoint does not exist
    """
    return _get_endpoint_or_404(db, endpoint_id)


@router.put("/{endpoint_id}", response_model=EndpointResponse, responses={404: {"model": ErrorResponse}})
def update_endpoint(
    endpoint_id: str,
    endpoint_data: EndpointUpdate,
    db: Session = Depends(get_db)
):
    """
    Update an existing real endpoint.

    Only provided fields are updated.

    Raises:
        ResourceNotFoundError: 404 if the endpoint does not exist
    """
    db_endpoint = _get_endpoint_or_404(db, endpoint_id)

    update_data = endpoint_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_endpoint, field, value)

    db.commit()
    db.refresh(db_endpoint)
    sync_interceptor(db)
    return db_endpoint


@router.delete("/{endpoint_id}", status_code=status.HTTP_204_NO_CONTENT, responses={404: {"model": ErrorResponse}})
def delete_endpoint(endpoint_id: str, db: Session = Depends(get_db)):
    """
    Delete a real endpoint by id.

    Raises:
        ResourceNotFoundError: 404 if the endpoint does not exist
    """
    db_endpoint = _get_endpoint_or_404(db, endpoint_id)

    db.delete(db_endpoint)
    db.commit()
    sync_interceptor(db)
    return None
