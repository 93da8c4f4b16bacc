"""
API and Domain Schemas

Pydantic models for form schemas and for the extraction / chat wire
contracts. Field schemas are frozen: once a form is selected nothing in the
conversation mutates them.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Form Schema
# =============================================================================

class FieldType(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    URL = "url"
    DATE = "date"
    NUMBER = "number"
    TEXTAREA = "textarea"


class FieldSpec(BaseModel):
    """One input slot of a form."""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    type: FieldType = FieldType.TEXT


class FormDefinition(BaseModel):
    """A form from the catalog: title plus ordered field schema."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str = ""
    fields: tuple[FieldSpec, ...]

    @field_validator("fields")
    @classmethod
    def _unique_ids(cls, fields):
        ids = [f.id for f in fields]
        if len(ids) != len(set(ids)):
            raise ValueError("field ids must be unique within a form")
        return fields

    @property
    def labels(self) -> List[str]:
        return [f.label for f in self.fields]


# =============================================================================
# Extraction Wire Contract (/analyze-form)
# =============================================================================

class AnalyzeFormRequest(BaseModel):
    """
    Extraction request.

    Both `formFields` and `transcript` are optional at the model level so
    the endpoint can answer malformed input with its own 400 body.
    """
    formFields: Optional[List[FieldSpec]] = None
    transcript: Optional[str] = None
    existingValues: Dict[str, str] = Field(default_factory=dict)


class AnalyzeFormResponse(BaseModel):
    values: Dict[str, str]
    missingFields: List[str]
    filledCount: int
    totalFields: int
    isComplete: bool


# =============================================================================
# Response Generator Wire Contract (/chat)
# =============================================================================

class ChatContext(BaseModel):
    formTitle: Optional[str] = None


class ChatRequest(BaseModel):
    state: str
    context: ChatContext = Field(default_factory=ChatContext)
    fieldCount: Optional[int] = None
    fieldLabels: Optional[List[str]] = None
    missingFields: Optional[List[str]] = None


class ChatResponse(BaseModel):
    reply: str


# =============================================================================
# Health
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
