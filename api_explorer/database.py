"""
Database configuration for API Explorer.

Real endpoint descriptors and virtual endpoint definitions are stored in
SQLite through SQLAlchemy. The engine never touches the database: routers
load the collection and hand it to the fetch interceptor.
"""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

# Database URL, overridable for tests and deployments
DATABASE_URL = os.environ.get("API_EXPLORER_DATABASE_URL", "sqlite:///./api_explorer.db")


def create_db_engine(url: str = DATABASE_URL) -> Engine:
    """
    Create an engine for ``url``.

    SQLite connections are shared between FastAPI's worker threads, so the
    same-thread check is disabled for them.
    """
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, echo=False)


engine = create_db_engine()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for the endpoint collection tables."""


def init_db(bind: Engine | None = None) -> None:
    """
    Create the endpoint tables on ``bind`` (the application engine by default).

    Existing tables are left alone.
    """
    from . import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    FastAPI dependency yielding one session per request.

    Usage:
        @router.get("/api/endpoints")
        def list_endpoints(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
