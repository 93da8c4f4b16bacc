"""
Routers Module

API routers for the Pebbles application.
"""

from .forms import router as forms_router
from .extraction import router as extraction_router
from .chat import router as chat_router
from .voice import router as voice_router

__all__ = ["forms_router", "extraction_router", "chat_router", "voice_router"]
