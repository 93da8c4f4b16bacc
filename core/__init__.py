"""
Core Module

Provides schemas and dependencies for the application.
"""

from .schemas import (
    FieldSpec,
    FieldType,
    FormDefinition,
    AnalyzeFormRequest,
    AnalyzeFormResponse,
    ChatContext,
    ChatRequest,
    ChatResponse,
    HealthResponse,
)
from .dependencies import (
    get_completion_service,
    get_extraction_engine,
    get_dialogue_responder,
    get_speech_service,
    get_vosk_service,
)

__all__ = [
    "FieldSpec",
    "FieldType",
    "FormDefinition",
    "AnalyzeFormRequest",
    "AnalyzeFormResponse",
    "ChatContext",
    "ChatRequest",
    "ChatResponse",
    "HealthResponse",
    "get_completion_service",
    "get_extraction_engine",
    "get_dialogue_responder",
    "get_speech_service",
    "get_vosk_service",
]
