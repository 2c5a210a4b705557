"""
Endpoint model for storing real endpoint descriptors.
"""

from datetime import datetime

from sqlalchemy import String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base


class Endpoint(Base):
    """
    SQLAlchemy model for real endpoints.

    Attributes:
        id: String identifier used by virtual endpoint code to call it
        name: Human-readable name
        method: HTTP method (GET, POST, PUT, DELETE, PATCH, HEAD, OPTIONS)
        url: Base path or absolute URL, may contain :param segments
        headers: Headers sent with every call
        sort_order: Position in the endpoint list
        created_at: Timestamp when the endpoint was created
        updated_at: Timestamp when the endpoint was last updated
    """
    __tablename__ = "endpoints"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    method: Mapped[str] = mapped_column(String(10))
    url: Mapped[str] = mapped_column(Text)
    headers: Mapped[dict] = mapped_column(JSON, default=dict)
    sort_order: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def type(self) -> str:
        return "real"
