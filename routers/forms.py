"""
Forms Router

Read-only access to the form catalog.

Endpoints:
    GET /forms - All forms
    GET /forms/{form_id} - One form with its field schema
"""

from typing import List

from fastapi import APIRouter

from core.schemas import FormDefinition
from services.form import get_form, list_forms

router = APIRouter(prefix="/forms", tags=["Forms"])


@router.get("", response_model=List[FormDefinition], summary="List forms")
async def read_forms():
    return list_forms()


@router.get("/{form_id}", response_model=FormDefinition, summary="Get form")
async def read_form(form_id: int):
    """Raises FormNotFoundError (404) for unknown ids."""
    return get_form(form_id)
