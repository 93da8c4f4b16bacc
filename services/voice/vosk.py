"""
Vosk Offline Speech-to-Text Service

Loads a local Vosk model once and hands out streaming recognizers for
live microphone PCM (16-bit mono).

Usage:
    from services.voice.vosk import get_vosk_service

    vosk = get_vosk_service()
    recognizer = vosk.create_recognizer()
"""

import json
import os
from typing import Any, Dict, Optional

from utils.logging import get_logger
from config.settings import settings

logger = get_logger(__name__)

# Try to import Vosk
try:
    from vosk import Model, KaldiRecognizer, SetLogLevel
    VOSK_AVAILABLE = True
except ImportError:
    VOSK_AVAILABLE = False
    logger.warning("Vosk not installed (pip install vosk)")


class VoskService:
    """
    Vosk model holder.

    Model lookup order: explicit path, VOSK_MODEL_PATH, then the well-known
    model directory names under the project root and the home directory.
    """

    MODEL_SEARCH_PATHS = [
        "vosk-model-small-en-us-0.15",
        "vosk-model-small-en-in-0.4",
        "vosk-model-en-us-0.22",
        "vosk-model-en-in-0.5",
    ]

    def __init__(self, model_path: Optional[str] = None, sample_rate: Optional[int] = None):
        self.sample_rate = sample_rate or settings.VOSK_SAMPLE_RATE
        self.model = None
        self.model_path = None

        if not VOSK_AVAILABLE:
            logger.warning("⚠️ Vosk not installed. Speech capture unavailable.")
            return

        # Disable verbose Vosk logging
        SetLogLevel(-1)

        self.model_path = self._find_model(model_path or settings.VOSK_MODEL_PATH)
        if self.model_path:
            self._load_model()

    def _find_model(self, custom_path: Optional[str] = None) -> Optional[str]:
        """Find Vosk model in common locations."""
        if custom_path and os.path.exists(custom_path):
            return custom_path

        project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
        search_dirs = [project_root, os.path.expanduser("~")]

        for search_dir in search_dirs:
            for model_name in self.MODEL_SEARCH_PATHS:
                candidate = os.path.join(search_dir, model_name)
                if os.path.exists(candidate):
                    logger.info(f"Found Vosk model: {candidate}")
                    return candidate

        logger.warning(f"No Vosk model found in: {search_dirs}")
        return None

    def _load_model(self) -> bool:
        try:
            logger.info(f"🎤 Loading Vosk model from: {self.model_path}")
            self.model = Model(self.model_path)
            logger.info("✅ Vosk model loaded successfully")
            return True
        except Exception as e:
            logger.error(f"❌ Failed to load Vosk model: {e}")
            self.model = None
            return False

    def is_available(self) -> bool:
        """Check if Vosk is ready for transcription."""
        return self.model is not None

    def create_recognizer(self):
        """New streaming recognizer, or None when no model is loaded."""
        if not self.model:
            return None
        rec = KaldiRecognizer(self.model, self.sample_rate)
        rec.SetWords(True)
        return rec

    def get_status(self) -> Dict[str, Any]:
        return {
            "available": self.is_available(),
            "vosk_installed": VOSK_AVAILABLE,
            "model_path": self.model_path,
            "sample_rate": self.sample_rate,
        }


def read_result(raw: str, key: str = "text") -> str:
    """Text out of a Vosk JSON result string."""
    try:
        return json.loads(raw).get(key, "").strip()
    except (ValueError, AttributeError):
        return ""


# Singleton instance
_vosk_service_instance: Optional[VoskService] = None


def get_vosk_service(model_path: Optional[str] = None) -> VoskService:
    """
    Get singleton VoskService instance.

    Lazy-loads the model on first call to reduce startup time.
    """
    global _vosk_service_instance

    if _vosk_service_instance is None:
        _vosk_service_instance = VoskService(model_path=model_path)

    return _vosk_service_instance
