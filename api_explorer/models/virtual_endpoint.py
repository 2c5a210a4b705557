"""
Virtual endpoint model for storing user-authored endpoint definitions.

Rows are ordered by ``sort_order``; that order is the registration order the
fetch interceptor uses for first-match routing.
"""

from datetime import datetime

from sqlalchemy import String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base


class VirtualEndpoint(Base):
    """
    SQLAlchemy model for virtual endpoints.

    Attributes:
        id: Stable identifier (``virtual-<ms timestamp>``)
        name: Human-readable name
        description: Free-form description
        method: Declared HTTP method
        path: Path pattern, may contain :param segments
        tags: List of tags
        code: User code body
        config: Execution settings (timeout, cache, cancel_on_timeout)
        sort_order: Registration position
        created_at: Timestamp when the definition was created
        updated_at: Timestamp when the definition was last saved
    """
    __tablename__ = "virtual_endpoints"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    method: Mapped[str] = mapped_column(String(10), default="GET")
    path: Mapped[str] = mapped_column(Text)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    code: Mapped[str] = mapped_column(Text, default="")
    config: Mapped[dict] = mapped_column(JSON, default=dict)
    sort_order: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column()
    updated_at: Mapped[datetime] = mapped_column()

    @property
    def title(self) -> str:
        return self.name

    @property
    def url(self) -> str:
        return self.path

    @property
    def type(self) -> str:
        return "virtual"
