"""
Loading of the stored endpoint collection and syncing it to the interceptor.
"""

from sqlalchemy.orm import Session

from ..models.endpoint import Endpoint
from ..models.virtual_endpoint import VirtualEndpoint
from ..schemas.endpoint import RealEndpointDescriptor
from ..schemas.virtual_endpoint import VirtualEndpointDefinition
from .fetch_interceptor import initialize_fetch_interceptor, update_virtual_endpoints


def load_real_endpoints(db: Session) -> list[RealEndpointDescriptor]:
    """Load real endpoint descriptors in list order."""
    rows = db.query(Endpoint).order_by(Endpoint.sort_order, Endpoint.created_at).all()
    return [RealEndpointDescriptor.model_validate(row) for row in rows]


def load_virtual_endpoints(db: Session) -> list[VirtualEndpointDefinition]:
    """Load virtual endpoint definitions in registration order."""
    rows = db.query(VirtualEndpoint).order_by(VirtualEndpoint.sort_order, VirtualEndpoint.created_at).all()
    return [VirtualEndpointDefinition.model_validate(row) for row in rows]


def next_sort_order(db: Session, model: type[Endpoint] | type[VirtualEndpoint]) -> int:
    last = db.query(model).order_by(model.sort_order.desc()).first()
    return last.sort_order + 1 if last else 0


def sync_interceptor(db: Session) -> None:
    """Re-register the stored collection with the fetch interceptor."""
    update_virtual_endpoints(load_virtual_endpoints(db), load_real_endpoints(db))


def install_interceptor(db: Session) -> None:
    """Install the fetch interceptor with the stored collection."""
    initialize_fetch_interceptor(load_virtual_endpoints(db), load_real_endpoints(db))
