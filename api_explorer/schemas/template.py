"""Pydantic schemas for the virtual endpoint template catalog."""

from pydantic import BaseModel


class TemplateSummary(BaseModel):
    """Catalog entry shown in the template picker."""
    key: str
    name: str
    description: str


class Template(BaseModel):
    """A starting-point code body."""
    name: str
    description: str
    code: str
