"""
Speech Playback Adapters

    speak(text) -> resolves when the audio finished, failed, timed out or
                   was cancelled. Never raises.
    cancel()    -> stops whatever is being spoken right now.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol

from config.settings import settings
from services.voice.speech import SpeechService, get_speech_service, prepare_speech_text
from utils.exceptions import SpeechGenerationError
from utils.logging import get_logger

logger = get_logger(__name__)

AudioSink = Callable[[bytes], Awaitable[None]]


class PlaybackAdapter(Protocol):
    async def speak(self, text: str) -> None:
        ...

    def cancel(self) -> None:
        ...


class ElevenLabsPlayback:
    """
    Synthesize with ElevenLabs and hand the audio to `sink`.

    The client playing the audio reports the end through
    `playback_finished()`; until then speak() waits, bounded by the
    playback timeout. Without TTS or without a sink, speak() resolves
    immediately.
    """

    def __init__(
        self,
        sink: Optional[AudioSink] = None,
        speech_service: Optional[SpeechService] = None,
        timeout: Optional[float] = None,
    ):
        self.sink = sink
        self.speech_service = speech_service or get_speech_service()
        self.timeout = timeout if timeout is not None else settings.PLAYBACK_TIMEOUT_SECONDS
        self._finished: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_speaking(self) -> bool:
        return self._task is not None and not self._task.done()

    async def speak(self, text: str) -> None:
        text = prepare_speech_text(text)
        if not text:
            return

        self.cancel()
        self._finished = asyncio.Event()
        task = asyncio.ensure_future(self._play(text, self._finished))
        self._task = task
        try:
            # wait() does not propagate the inner task's cancellation
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._task is task:
                self._task = None

        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Playback failed: {task.exception()}")

    async def _play(self, text: str, finished: asyncio.Event) -> None:
        if self.sink is None or not self.speech_service.is_available():
            return

        loop = asyncio.get_running_loop()
        audio = await loop.run_in_executor(None, self.speech_service.text_to_speech, text)
        if not audio:
            raise SpeechGenerationError(text=text)

        await self.sink(audio)
        try:
            await asyncio.wait_for(finished.wait(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"No playback confirmation after {self.timeout}s")

    def playback_finished(self) -> None:
        """Client reported that the last audio finished playing."""
        if self._finished is not None:
            self._finished.set()

    def cancel(self) -> None:
        if self._finished is not None:
            self._finished.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
