"""
Custom Exceptions Module

Defines application-specific exceptions for clearer error handling.
All exceptions inherit from a base PebblesError for easy catching.

Usage:
    from utils.exceptions import CompletionError, InvalidRequestError

    try:
        text = await completion.complete_text(prompt)
    except CompletionError as e:
        logger.warning(f"Backend failed, falling back: {e}")
"""

from typing import Optional, Dict, Any


class PebblesError(Exception):
    """
    Base exception for all Pebbles application errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details (optional)
        status_code: HTTP status code to return (optional)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


# =============================================================================
# Request / Catalog Exceptions
# =============================================================================

class InvalidRequestError(PebblesError):
    """
    Raised when an extraction request is malformed.

    Common causes:
        - Transcript missing or blank
        - Field schema missing
    """

    def __init__(
        self,
        message: str = "Missing data",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, details=details, status_code=400)


class FormNotFoundError(PebblesError):
    """Raised when the form catalog has no form with the given identifier."""

    def __init__(self, form_id: Any):
        super().__init__(
            message=f"Form {form_id} not found",
            details={"form_id": form_id},
            status_code=404
        )


# =============================================================================
# Completion Backend Exceptions
# =============================================================================

class CompletionError(PebblesError):
    """
    Raised when the text-completion backend fails.

    Never reaches the user: extraction and dialogue fall back to their
    deterministic strategies on any CompletionError.
    """

    def __init__(
        self,
        message: str = "Completion backend error",
        service: str = "gemini",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            details={"service": service, **(details or {})},
            status_code=502
        )


class CompletionRateLimitError(CompletionError):
    """Raised when the backend reports rate limiting (429 / quota exhausted)."""


class CompletionTimeoutError(CompletionError):
    """Raised when a completion call exceeds its time budget."""


class CompletionUnavailableError(CompletionError):
    """Raised when no backend is configured or its circuit is open."""


class CompletionParseError(CompletionError):
    """Raised when completion output cannot be parsed into the expected shape."""


# =============================================================================
# Voice/Speech Exceptions
# =============================================================================

class CaptureError(PebblesError):
    """
    Raised by capture adapters when speech capture cannot proceed.

    The conversation state machine shows `message` as status text and
    returns to IDLE.
    """

    def __init__(
        self,
        message: str = "Speech capture failed.",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, details=details, status_code=400)


class MicrophoneUnavailableError(CaptureError):
    """Raised when the microphone (or audio source) cannot be acquired."""

    def __init__(self, message: str = "Microphone access denied.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details=details)


class NoSpeechError(CaptureError):
    """Raised when nothing is heard before the no-speech timeout."""

    def __init__(self, message: str = "No speech detected. Tap to try again.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details=details)


class SpeechGenerationError(PebblesError):
    """
    Raised when text-to-speech generation fails.

    Common causes:
        - ElevenLabs API error
        - Invalid API key
        - Rate limit exceeded
    """

    def __init__(
        self,
        message: str = "Failed to generate speech",
        text: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            details={"text_preview": text[:50] if text else None, **(details or {})},
            status_code=500
        )
