"""
Virtual endpoint template API routes.
"""

from fastapi import APIRouter

from ..schemas.template import Template, TemplateSummary
from ..services.templates import get_template, get_template_list


router = APIRouter(prefix="/api/templates", tags=["templates"])


@router.get("", response_model=list[TemplateSummary])
def list_templates():
    """List available templates (key, name, description)."""
    return get_template_list()


@router.get("/{template_key}", response_model=Template)
def read_template(template_key: str):
    """Get a template's code. Unknown keys return the blank template."""
    return get_template(template_key)
