"""
Speech Capture Adapters

A capture adapter turns a live audio source into a stream of transcript
events. The conversation state machine owns the turn logic (silence
timer, when to stop); adapters only emit events.

    start_capture() -> async iterator of CaptureEvent(text, is_final)
    stop_capture()  -> idempotent, ends the iterator
"""

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional, Protocol

from config.settings import settings
from services.voice.vosk import get_vosk_service, read_result
from utils.exceptions import MicrophoneUnavailableError, NoSpeechError
from utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CaptureEvent:
    """One recognizer update: a partial guess or a finished segment."""
    text: str
    is_final: bool = False


class CaptureAdapter(Protocol):
    def start_capture(self) -> AsyncIterator[CaptureEvent]:
        ...

    async def stop_capture(self) -> None:
        ...


class VoskStreamCapture:
    """
    Capture from a queue of 16-bit PCM chunks through a Vosk recognizer.

    The producer (e.g. a WebSocket reader) puts bytes on `audio_queue` and
    None when the audio source goes away. Recognition runs in the default
    executor so the event loop never blocks on Kaldi.

    Raises (from the iterator):
        MicrophoneUnavailableError: no recognizer or the audio source closed
            before anything was heard
        NoSpeechError: nothing recognized within the no-speech timeout
    """

    def __init__(
        self,
        audio_queue: "asyncio.Queue[Optional[bytes]]",
        recognizer_factory: Optional[Callable[[], object]] = None,
        no_speech_timeout: Optional[float] = None,
    ):
        self.audio_queue = audio_queue
        self.recognizer_factory = recognizer_factory or (lambda: get_vosk_service().create_recognizer())
        self.no_speech_timeout = (
            no_speech_timeout if no_speech_timeout is not None else settings.NO_SPEECH_TIMEOUT_SECONDS
        )
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    async def start_capture(self) -> AsyncIterator[CaptureEvent]:
        recognizer = self.recognizer_factory()
        if recognizer is None:
            raise MicrophoneUnavailableError()

        # Audio heard while the assistant was speaking belongs to no turn
        self._drain()
        self._active = True
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.no_speech_timeout
        heard = False

        try:
            while self._active:
                timeout = None if heard else max(deadline - loop.time(), 0)
                try:
                    chunk = await asyncio.wait_for(self.audio_queue.get(), timeout=timeout)
                except asyncio.TimeoutError:
                    raise NoSpeechError()

                if chunk is None:
                    if not self._active:
                        break
                    if not heard:
                        raise MicrophoneUnavailableError("Audio source closed.")
                    break

                event = await loop.run_in_executor(None, self._accept, recognizer, chunk)
                if event is not None and self._active:
                    heard = True
                    yield event

            final_text = read_result(recognizer.FinalResult())
            if final_text and heard:
                yield CaptureEvent(final_text, is_final=True)
        finally:
            self._active = False

    async def stop_capture(self) -> None:
        if not self._active:
            return
        self._active = False
        # Wake the reader if it is parked on an empty queue
        self.audio_queue.put_nowait(None)
        logger.debug("Capture stopped")

    @staticmethod
    def _accept(recognizer, chunk: bytes) -> Optional[CaptureEvent]:
        if recognizer.AcceptWaveform(chunk):
            text = read_result(recognizer.Result())
            return CaptureEvent(text, is_final=True) if text else None
        partial = read_result(recognizer.PartialResult(), key="partial")
        return CaptureEvent(partial, is_final=False) if partial else None

    def _drain(self) -> None:
        while True:
            try:
                self.audio_queue.get_nowait()
            except asyncio.QueueEmpty:
                return
