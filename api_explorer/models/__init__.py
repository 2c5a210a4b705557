"""
Models package for API Explorer.

Exports all SQLAlchemy models for database operations.
"""

from .endpoint import Endpoint
from .virtual_endpoint import VirtualEndpoint

__all__ = [
    "Endpoint",
    "VirtualEndpoint",
]
