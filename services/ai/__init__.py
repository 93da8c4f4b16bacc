# AI services module

from .gemini import CompletionClient, GeminiCompletionService, get_completion_service

__all__ = [
    "CompletionClient",
    "GeminiCompletionService",
    "get_completion_service",
]
