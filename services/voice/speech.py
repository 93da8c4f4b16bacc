"""
Text-to-Speech Service

Provides text-to-speech functionality using ElevenLabs API.
Turns the assistant's short replies into audio for the conversation.

Usage:
    from services.voice.speech import SpeechService

    service = SpeechService(api_key="...")
    audio_bytes = service.text_to_speech("Still need: Email Address. What is it?")
"""

import re
import time
from typing import Any, Dict, Optional

import requests

from config.settings import settings
from utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


_SENTENCE_BREAK = re.compile(r"(\.\.\.|[!?]|\.(?=\s|$))\s*")


def prepare_speech_text(text: str) -> str:
    """
    Put a space after ellipses and sentence punctuation so synthesizers
    pause between sentences. Dots inside words (emails, URLs) are kept.
    """
    if not text:
        return ""
    return _SENTENCE_BREAK.sub(r"\1 ", text).strip()


class SpeechService:
    """
    ElevenLabs Text-to-Speech service.

    Attributes:
        api_key: ElevenLabs API key
        default_voice_id: Default voice to use (Rachel)
        model: TTS model (eleven_turbo_v2_5)
    """

    API_BASE = "https://api.elevenlabs.io/v1"

    DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"  # Rachel
    DEFAULT_MODEL = "eleven_turbo_v2_5"

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice_id: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.default_voice_id = voice_id or self.DEFAULT_VOICE_ID
        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout or settings.PLAYBACK_TIMEOUT_SECONDS

        if not self.api_key:
            logger.warning("ElevenLabs API key not configured - TTS disabled")
        else:
            logger.info("SpeechService initialized")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def text_to_speech(
        self,
        text: str,
        voice_id: Optional[str] = None
    ) -> Optional[bytes]:
        """
        Convert text to speech audio.

        Args:
            text: Text to convert to speech
            voice_id: Optional voice ID override

        Returns:
            bytes: Audio data as MP3, or None on failure
        """
        if not self.api_key:
            logger.debug("Cannot generate speech - API key not configured")
            return None

        text = prepare_speech_text(text)
        if not text:
            return None

        target_voice_id = voice_id or self.default_voice_id
        url = f"{self.API_BASE}/text-to-speech/{target_voice_id}"

        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key
        }

        data = {
            "text": text,
            "model_id": self.model,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75
            }
        }

        started = time.perf_counter()
        try:
            logger.debug(f"Generating speech for: '{text[:50]}...'")

            response = requests.post(
                url,
                json=data,
                headers=headers,
                timeout=self.timeout
            )
            duration_ms = (time.perf_counter() - started) * 1000

            if response.status_code == 200:
                logger.debug(f"Speech generated: {len(response.content)} bytes")
                log_api_call("ElevenLabs", "text-to-speech", success=True, duration_ms=duration_ms)
                return response.content

            error_msg = f"Status {response.status_code}: {response.text[:200]}"
            log_api_call("ElevenLabs", "text-to-speech", success=False, duration_ms=duration_ms, error=error_msg)
            return None

        except requests.Timeout:
            log_api_call("ElevenLabs", "text-to-speech", success=False, error="timeout")
            return None
        except requests.RequestException as e:
            log_api_call("ElevenLabs", "text-to-speech", success=False, error=str(e))
            return None

    def get_status(self) -> Dict[str, Any]:
        return {
            "available": self.is_available(),
            "voice_id": self.default_voice_id,
            "model": self.model,
        }


# Singleton instance
_speech_service_instance: Optional[SpeechService] = None


def get_speech_service() -> SpeechService:
    """Get singleton SpeechService configured from settings."""
    global _speech_service_instance
    if _speech_service_instance is None:
        _speech_service_instance = SpeechService(
            api_key=settings.ELEVENLABS_API_KEY,
            voice_id=settings.ELEVENLABS_VOICE_ID,
            model=settings.ELEVENLABS_MODEL,
        )
    return _speech_service_instance
