"""
Test Configuration

Pytest configuration and shared fixtures for all tests.
"""

import os

# Tests never talk to real backends
os.environ["GOOGLE_API_KEY"] = ""
os.environ["ELEVENLABS_API_KEY"] = ""

import asyncio
from typing import AsyncGenerator, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport

from core.schemas import FieldSpec, FieldType
from services.ai.extraction import ExtractionEngine
from services.ai.dialogue import DialogueResponder
from services.form import get_form
from services.voice.capture import CaptureEvent
from utils.circuit_breaker import reset_circuit_breakers


# =============================================================================
# Fakes
# =============================================================================

class FakeCompletion:
    """Scripted completion backend: each call pops the next reply or error."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts: List[str] = []

    async def complete_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeCapture:
    """Capture adapter fed by the test through say(), fail() and end()."""

    def __init__(self, start_error: Optional[Exception] = None, stop_delay: float = 0.0):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.start_error = start_error
        self.stop_delay = stop_delay
        self.starts = 0
        self.stops = 0
        self.active = False
        self.log: List[str] = []

    async def start_capture(self):
        self.starts += 1
        self.log.append("start")
        if self.start_error is not None:
            raise self.start_error
        self.active = True
        try:
            while True:
                item = await self.queue.get()
                if item is None:
                    break
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.active = False

    async def stop_capture(self) -> None:
        # The machine cancels its pump after stopping; nothing to wake here
        self.stops += 1
        self.log.append("stop")
        if self.stop_delay:
            await asyncio.sleep(self.stop_delay)
        self.log.append("stopped")

    def say(self, text: str, final: bool = False) -> None:
        self.queue.put_nowait(CaptureEvent(text, is_final=final))

    def fail(self, error: Exception) -> None:
        self.queue.put_nowait(error)

    def end(self) -> None:
        self.queue.put_nowait(None)


class FakePlayback:
    """Playback adapter that records what was spoken, optionally into a shared log."""

    def __init__(self, delay: float = 0.0, log: Optional[List[str]] = None):
        self.spoken: List[str] = []
        self.cancels = 0
        self.delay = delay
        self.log = log

    async def speak(self, text: str) -> None:
        self.spoken.append(text)
        if self.log is not None:
            self.log.append(f"speak:{text}")
        if self.delay:
            await asyncio.sleep(self.delay)

    def cancel(self) -> None:
        self.cancels += 1


class CountingExtractor:
    """Wraps an ExtractionEngine and counts calls."""

    def __init__(self, engine: Optional[ExtractionEngine] = None, delay: float = 0.0):
        self.engine = engine or ExtractionEngine()
        self.calls: List[str] = []
        self.delay = delay

    async def extract(self, transcript, fields, existing=None):
        self.calls.append(transcript)
        if self.delay:
            await asyncio.sleep(self.delay)
        return await self.engine.extract(transcript, fields, existing)


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.005) -> None:
    """Poll until predicate() is true or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(interval)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def fresh_circuits():
    """Every test starts with closed circuits."""
    reset_circuit_breakers()
    yield
    reset_circuit_breakers()


@pytest.fixture
def name_email_fields():
    """Two-field schema used throughout the extraction examples."""
    return (
        FieldSpec(id="e1", label="Full Name"),
        FieldSpec(id="e2", label="Email Address", type=FieldType.EMAIL),
    )


@pytest.fixture
def job_form():
    return get_form(1)


@pytest.fixture
def event_form():
    return get_form(2)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with deterministic strategies only."""
    from main import app
    from core.dependencies import get_dialogue_responder, get_extraction_engine
    from utils.rate_limit import limiter

    app.dependency_overrides[get_extraction_engine] = lambda: ExtractionEngine()
    app.dependency_overrides[get_dialogue_responder] = lambda: DialogueResponder()
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
