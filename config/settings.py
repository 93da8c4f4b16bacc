"""
Application Configuration Module

Centralizes all application settings using Pydantic Settings.
Environment variables are loaded from .env file automatically.

Usage:
    from config.settings import settings

    print(settings.GEMINI_MODEL)
    print(settings.SILENCE_TIMEOUT_SECONDS)
"""

from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Variable names are case-insensitive.
    """

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    APP_NAME: str = Field(
        default="Pebbles",
        description="Application name for OpenAPI docs"
    )
    APP_VERSION: str = Field(
        default="1.0.0",
        description="Application version"
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level when DEBUG is off"
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Write one JSON object per log line instead of colored text"
    )
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    @property
    def cors_origins_list(self) -> list:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # ==========================================================================
    # Completion Backend (Gemini)
    # ==========================================================================
    GOOGLE_API_KEY: Optional[str] = Field(
        default=None,
        description="Google Gemini API key. Without it only deterministic strategies run"
    )
    GEMINI_MODEL: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for extraction and dialogue"
    )
    GEMINI_TEMPERATURE: float = Field(
        default=0.3,
        description="Sampling temperature for completion calls"
    )
    COMPLETION_TIMEOUT_SECONDS: float = Field(
        default=15.0,
        description="Upper bound for a single completion call"
    )
    COMPLETION_MAX_ATTEMPTS: int = Field(
        default=3,
        description="Attempts made when the backend reports rate limiting"
    )
    COMPLETION_RETRY_BASE_DELAY: float = Field(
        default=2.0,
        description="First backoff delay in seconds, doubled on every attempt"
    )
    CIRCUIT_FAILURE_THRESHOLD: int = Field(
        default=5,
        description="Consecutive backend failures before the circuit opens"
    )
    CIRCUIT_RECOVERY_SECONDS: int = Field(
        default=30,
        description="Seconds the circuit stays open before a trial call"
    )

    # ==========================================================================
    # Conversation Timing
    # ==========================================================================
    SILENCE_TIMEOUT_SECONDS: float = Field(
        default=2.5,
        description="Quiet interval after the last partial transcript that ends a turn"
    )
    NO_SPEECH_TIMEOUT_SECONDS: float = Field(
        default=8.0,
        description="Capture gives up when nothing is heard for this long"
    )
    REVEAL_CHAR_DELAY_SECONDS: float = Field(
        default=0.015,
        description="Per-character delay of the live-filling reveal"
    )
    REVEAL_FIELD_PAUSE_SECONDS: float = Field(
        default=0.15,
        description="Pause after each revealed field"
    )
    REVEAL_MAX_SECONDS: float = Field(
        default=4.0,
        description="Upper bound for the whole reveal of one turn"
    )
    PLAYBACK_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Longest wait for a client to report playback finished"
    )

    # ==========================================================================
    # Voice/Speech Configuration
    # ==========================================================================
    ELEVENLABS_API_KEY: Optional[str] = Field(
        default=None,
        description="ElevenLabs API key for text-to-speech"
    )
    ELEVENLABS_VOICE_ID: str = Field(
        default="21m00Tcm4TlvDq8ikWAM",
        description="Default ElevenLabs voice ID (Rachel)"
    )
    ELEVENLABS_MODEL: str = Field(
        default="eleven_turbo_v2_5",
        description="ElevenLabs model for TTS"
    )
    VOSK_MODEL_PATH: Optional[str] = Field(
        default=None,
        description="Path to a Vosk model directory (searched for when unset)"
    )
    VOSK_SAMPLE_RATE: int = Field(
        default=16000,
        description="Sample rate of incoming microphone PCM"
    )

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    RATE_LIMIT_DEFAULT: str = Field(
        default="200/minute",
        description="Default per-client request limit"
    )
    RATE_LIMIT_AI: str = Field(
        default="60/minute",
        description="Per-client limit for extraction and chat endpoints"
    )

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Singleton instance for easy import
settings = get_settings()
