"""
Gemini Completion Service (LangChain)

Single-shot text completion against Google's Gemini models through
langchain-google-genai. This is the only network boundary the extraction
engine and the dialogue responder cross.

Failures are classified so callers can tell them apart from success:
    - CompletionRateLimitError: 429 / quota exhausted (retried with backoff)
    - CompletionTimeoutError: call exceeded its time budget
    - CompletionUnavailableError: circuit open
    - CompletionError: anything else, including empty output

Usage:
    from services.ai.gemini import get_completion_service

    service = get_completion_service()
    if service:
        text = await service.complete_text("Say hi in five words.")
"""

import asyncio
import time
from typing import Optional, Protocol

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import HumanMessage

from config.settings import settings
from utils.circuit_breaker import CircuitBreaker, get_circuit_breaker, retry_with_backoff
from utils.exceptions import (
    CompletionError,
    CompletionRateLimitError,
    CompletionTimeoutError,
    CompletionUnavailableError,
)
from utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


RATE_LIMIT_MARKERS = ("429", "too many requests", "resource_exhausted", "rate limit", "quota")


class CompletionClient(Protocol):
    """Anything that turns a prompt into completion text."""

    async def complete_text(self, prompt: str) -> str:
        ...


def is_rate_limit_error(error: BaseException) -> bool:
    """True when a backend exception signals rate limiting."""
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class GeminiCompletionService:
    """
    Gemini text completion with timeout, rate-limit backoff and a circuit breaker.

    Attributes:
        llm: ChatGoogleGenerativeAI instance
        model: Model name
        circuit: Circuit breaker shared by every caller of this backend
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        llm=None,
        circuit: Optional[CircuitBreaker] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        """
        Initialize the completion service.

        Args:
            api_key: Google API key. Falls back to settings.GOOGLE_API_KEY.
            model: Gemini model to use.
            llm: Pre-built LangChain chat model (tests inject fakes here).
            circuit: Circuit breaker; defaults to the shared "gemini" breaker.

        Raises:
            ValueError: If neither an llm nor an API key is available.
        """
        self.model = model or settings.GEMINI_MODEL
        self.timeout = timeout if timeout is not None else settings.COMPLETION_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.COMPLETION_MAX_ATTEMPTS
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.COMPLETION_RETRY_BASE_DELAY
        )
        self.circuit = circuit or get_circuit_breaker(
            "gemini",
            failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
            recovery_timeout=settings.CIRCUIT_RECOVERY_SECONDS,
        )

        if llm is not None:
            self.llm = llm
        else:
            api_key = api_key or settings.GOOGLE_API_KEY
            if not api_key:
                raise ValueError("Google API key not found. Set GOOGLE_API_KEY env variable.")
            self.llm = ChatGoogleGenerativeAI(
                model=self.model,
                google_api_key=api_key,
                temperature=settings.GEMINI_TEMPERATURE,
            )

        logger.info(f"GeminiCompletionService initialized, model: {self.model}")

    async def complete_text(self, prompt: str) -> str:
        """
        Complete `prompt`, retrying only on rate limiting.

        Raises:
            CompletionError (or a subclass) on any failure.
        """
        if not self.circuit.can_execute():
            raise CompletionUnavailableError(f"Circuit {self.circuit.name} is open")

        try:
            text = await retry_with_backoff(
                self._invoke_once,
                prompt,
                max_attempts=self.max_attempts,
                initial_delay=self.retry_base_delay,
                retry_on=(CompletionRateLimitError,),
            )
        except CompletionError:
            self.circuit.record_failure()
            raise

        self.circuit.record_success()
        return text

    async def _invoke_once(self, prompt: str) -> str:
        """One backend call, with every failure mapped onto CompletionError."""
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            log_api_call("Gemini", self.model, success=False, error="timeout")
            raise CompletionTimeoutError(f"Completion timed out after {self.timeout}s")
        except Exception as e:
            log_api_call("Gemini", self.model, success=False, error=str(e))
            if is_rate_limit_error(e):
                raise CompletionRateLimitError(f"Rate limited: {e}") from e
            raise CompletionError(f"Completion failed: {e}") from e

        duration_ms = (time.perf_counter() - started) * 1000
        text = _response_text(response)
        if not text.strip():
            log_api_call("Gemini", self.model, success=False, duration_ms=duration_ms, error="empty response")
            raise CompletionError("Empty completion response")

        log_api_call("Gemini", self.model, success=True, duration_ms=duration_ms)
        return text


def _response_text(response) -> str:
    """Pull plain text out of a LangChain message (content may be a list of parts)."""
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content or "")


# --- Singleton ---
_service_instance: Optional[GeminiCompletionService] = None


def get_completion_service() -> Optional[GeminiCompletionService]:
    """
    Get singleton GeminiCompletionService instance.

    Returns None when no API key is configured; callers then run their
    deterministic strategies only.
    """
    global _service_instance
    if _service_instance is None:
        try:
            _service_instance = GeminiCompletionService()
        except ValueError as e:
            logger.warning(f"Could not initialize GeminiCompletionService: {e}")
            return None
    return _service_instance
