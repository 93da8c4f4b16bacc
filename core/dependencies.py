"""
FastAPI Dependencies Module

Provides dependency injection for services and shared state.
All service instances are singletons to reuse connections/resources.

Usage:
    from core.dependencies import get_extraction_engine

    @router.post("/analyze-form")
    async def analyze(
        engine: ExtractionEngine = Depends(get_extraction_engine)
    ):
        ...
"""

from typing import Any, Dict, List, Optional

from config.settings import settings
from utils.logging import get_logger

# Lazy imports to avoid circular dependencies
_completion_service = None
_extraction_engine = None
_dialogue_responder = None
_speech_service = None
_vosk_service = None
_initialized = False

logger = get_logger(__name__)


# =============================================================================
# Service Initialization
# =============================================================================

def _initialize_services() -> None:
    """
    Initialize all service singletons.

    Called lazily on first access to any service.
    Logs warnings if required API keys are missing.
    """
    global _completion_service, _extraction_engine, _dialogue_responder
    global _speech_service, _initialized

    from services.ai.gemini import get_completion_service
    from services.ai.extraction import ExtractionEngine, GenerativeExtractor
    from services.ai.dialogue import DialogueResponder, GenerativeResponder
    from services.voice.speech import get_speech_service as _get_speech

    if not settings.GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not configured - pattern extraction and templates only")
    if not settings.ELEVENLABS_API_KEY:
        logger.warning("ELEVENLABS_API_KEY not configured - Text-to-speech disabled")

    _completion_service = get_completion_service()

    if _completion_service is not None:
        _extraction_engine = ExtractionEngine(primary=GenerativeExtractor(_completion_service))
        _dialogue_responder = DialogueResponder(primary=GenerativeResponder(_completion_service))
    else:
        _extraction_engine = ExtractionEngine()
        _dialogue_responder = DialogueResponder()

    _speech_service = _get_speech()
    _initialized = True

    logger.info("Services initialized successfully")


def _ensure_initialized() -> None:
    """Ensure services are initialized."""
    if not _initialized:
        _initialize_services()


# =============================================================================
# Service Providers
# =============================================================================

def get_completion_service():
    """
    Get the Gemini completion service.

    Returns:
        Optional[GeminiCompletionService]: None if not configured
    """
    _ensure_initialized()
    return _completion_service


def get_extraction_engine():
    """Get the ExtractionEngine singleton."""
    _ensure_initialized()
    return _extraction_engine


def get_dialogue_responder():
    """Get the DialogueResponder singleton."""
    _ensure_initialized()
    return _dialogue_responder


def get_speech_service():
    """
    Get SpeechService singleton for text-to-speech.

    Returns:
        SpeechService: Configured ElevenLabs TTS service
    """
    _ensure_initialized()
    return _speech_service


def get_vosk_service():
    """
    Get VoskService singleton for speech-to-text.

    Loaded on first use only: the model takes seconds to load.
    """
    global _vosk_service
    if _vosk_service is None:
        from services.voice.vosk import get_vosk_service as _get_vosk
        _vosk_service = _get_vosk()
    return _vosk_service


def get_initialized_services() -> List[str]:
    """Names of the services created so far."""
    loaded = {
        "completion": _completion_service,
        "extraction": _extraction_engine,
        "dialogue": _dialogue_responder,
        "speech": _speech_service,
        "vosk": _vosk_service,
    }
    return [name for name, service in loaded.items() if service is not None]


def get_service_status() -> Dict[str, Any]:
    """Component status for the health endpoint."""
    from utils.circuit_breaker import get_circuit_breaker

    _ensure_initialized()
    completion: Optional[Any] = _completion_service
    circuit = completion.circuit.status if completion is not None else None
    if circuit is None:
        circuit = get_circuit_breaker("gemini").status

    return {
        "completion_configured": completion is not None,
        "completion_circuit": circuit,
        "tts_available": _speech_service.is_available() if _speech_service else False,
        "tts": _speech_service.get_status() if _speech_service else None,
        "stt_loaded": _vosk_service.is_available() if _vosk_service else False,
        # Not loaded until the first voice conversation
        "stt": _vosk_service.get_status() if _vosk_service else None,
    }
