"""
API Explorer - FastAPI Application Entry Point

Hosts the endpoint collection (real endpoints and user-authored virtual
endpoints) and the virtual endpoint engine: validation, execution and the
fetch interceptor that makes virtual endpoints answer like real ones.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import SessionLocal, init_db
from .exceptions import register_exception_handlers
from .routers import endpoints, execute, templates, virtual_endpoints
from .services.endpoint_registry import install_interceptor
from .services.executor import cancel_background_tasks
from .services.fetch_interceptor import cleanup_fetch_interceptor, is_installed


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    # Startup: Initialize database and register the stored collection
    init_db()
    db = SessionLocal()
    try:
        install_interceptor(db)
    finally:
        db.close()
    yield
    # Shutdown: drop work abandoned by soft timeouts and restore fetch
    abandoned = cancel_background_tasks()
    if abandoned:
        logger.info("Cancelled %d abandoned virtual endpoint task(s)", abandoned)
    cleanup_fetch_interceptor()


app = FastAPI(
    title="API Explorer",
    description="API explorer with scriptable virtual endpoints composed from real ones",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Comma-separated list of allowed origins; "*" while developing locally
CORS_ORIGINS = [origin.strip() for origin in os.environ.get("API_EXPLORER_CORS_ORIGINS", "*").split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
register_exception_handlers(app)


@app.get("/")
async def root():
    """Service information, including whether the fetch interceptor is active."""
    return {
        "name": "API Explorer",
        "version": "1.0.0",
        "docs": "/docs",
        "interceptor_installed": is_installed(),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


for module in (endpoints, virtual_endpoints, templates, execute):
    app.include_router(module.router)
