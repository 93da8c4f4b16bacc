"""
Conversation State Machine

Drives one form conversation turn by turn:

    IDLE -> INTRO -> LISTENING -> PROCESSING -> LISTENING ... -> DONE -> IDLE

- Capture and playback never overlap: capture is released before anything
  is spoken and restarted only after playback resolves.
- At most one remote call (extraction or reply) is outstanding at a time;
  every flow awaits them sequentially.
- close() releases the microphone, the silence timer and any speech
  unconditionally, whatever the state.

Usage:
    machine = ConversationStateMachine(form, capture, playback, engine, responder)
    machine.add_listener(lambda snapshot: print(snapshot.status))
    await machine.handle_mic()
"""

import asyncio
import uuid
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from config.settings import settings
from core.schemas import FieldSpec, FormDefinition
from services.ai.dialogue import DialogueContext, DialogueState
from services.ai.extraction import ExtractionResult
from services.conversation.silence_timer import SilenceTimer
from services.conversation.state import (
    STATUS_COMPLETE,
    STATUS_ERROR,
    STATUS_LISTENING,
    STATUS_LISTENING_MORE,
    STATUS_NOT_HEARD,
    STATUS_PROCESSING,
    STATUS_READY,
    STATUS_SPEAKING,
    STATUS_THINKING,
    ConversationContext,
    ConversationSnapshot,
    ConversationState,
    filling_status,
    hearing_status,
    missing_status,
)
from services.voice.capture import CaptureAdapter, CaptureEvent
from services.voice.playback import PlaybackAdapter
from utils.exceptions import CaptureError
from utils.logging import get_logger, log_transition

logger = get_logger(__name__)

Listener = Callable[[ConversationSnapshot], None]

RESET_GREETING = "Ready for another one!"


class Extractor(Protocol):
    async def extract(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Optional[Mapping[str, str]] = None,
    ) -> ExtractionResult:
        ...


class Responder(Protocol):
    async def respond(self, state: DialogueState, context: Optional[DialogueContext] = None) -> str:
        ...


class ConversationStateMachine:
    """
    Single writer of a ConversationContext.

    Public commands return as soon as the work they trigger has been
    scheduled; `join()` waits for the running flow.
    """

    def __init__(
        self,
        form: FormDefinition,
        capture: CaptureAdapter,
        playback: PlaybackAdapter,
        extractor: Extractor,
        responder: Responder,
        session_id: Optional[str] = None,
        silence_timeout: Optional[float] = None,
        reveal_char_delay: Optional[float] = None,
        reveal_field_pause: Optional[float] = None,
        reveal_max_seconds: Optional[float] = None,
    ):
        self.capture = capture
        self.playback = playback
        self.extractor = extractor
        self.responder = responder
        self.ctx = ConversationContext(form=form, session_id=session_id or uuid.uuid4().hex[:8])

        self.reveal_char_delay = _pick(reveal_char_delay, settings.REVEAL_CHAR_DELAY_SECONDS)
        self.reveal_field_pause = _pick(reveal_field_pause, settings.REVEAL_FIELD_PAUSE_SECONDS)
        self.reveal_max_seconds = _pick(reveal_max_seconds, settings.REVEAL_MAX_SECONDS)

        self._silence = SilenceTimer(
            _pick(silence_timeout, settings.SILENCE_TIMEOUT_SECONDS),
            self._on_silence,
        )
        self._listeners: List[Listener] = []
        self._flow_task: Optional[asyncio.Task] = None
        self._capture_task: Optional[asyncio.Task] = None
        self._release_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Observation
    # =========================================================================

    @property
    def state(self) -> ConversationState:
        return self.ctx.state

    @property
    def form(self) -> FormDefinition:
        return self.ctx.form

    def snapshot(self) -> ConversationSnapshot:
        return self.ctx.snapshot()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        snapshot = self.ctx.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Conversation listener failed: {e}", exc_info=True)

    def _set_state(self, state: ConversationState, status: Optional[str] = None, reason: Optional[str] = None) -> None:
        old = self.ctx.state
        self.ctx.state = state
        if status is not None:
            self.ctx.status = status
        if old != state:
            log_transition(self.ctx.session_id, old.value, state.value, reason)
        self._notify()

    def _set_status(self, status: str) -> None:
        self.ctx.status = status
        self._notify()

    def _stale(self, epoch: int) -> bool:
        return epoch != self.ctx.epoch

    # =========================================================================
    # Commands
    # =========================================================================

    async def handle_mic(self) -> None:
        """One mic tap: start when idle, stop while listening, reset when done."""
        state = self.ctx.state
        if state == ConversationState.IDLE:
            await self.start()
        elif state == ConversationState.LISTENING and self.ctx.listening:
            await self.stop()
        elif state == ConversationState.DONE:
            await self.reset()
        else:
            logger.debug(f"Mic ignored in {state.value}")

    async def start(self) -> None:
        """IDLE -> INTRO: greet, then listen."""
        if self.ctx.state != ConversationState.IDLE:
            logger.debug(f"Start ignored in {self.ctx.state.value}")
            return
        self._cancel_flow()
        self.playback.cancel()
        self._set_state(ConversationState.INTRO, STATUS_THINKING, reason="start")
        self._spawn_flow(self._intro(self.ctx.epoch))

    async def stop(self) -> None:
        """
        User-initiated end of the listening turn.

        Releases capture, timer and speech; only a LISTENING machine goes on
        to process. A stop during INTRO abandons the greeting and returns to
        IDLE. A stop during PROCESSING changes nothing.
        """
        if self.ctx.state == ConversationState.PROCESSING:
            logger.debug("Stop ignored while processing")
            return
        if self.ctx.state == ConversationState.INTRO:
            self._invalidate()
            self._set_state(ConversationState.IDLE, STATUS_READY, reason="stop during intro")
            return
        self.playback.cancel()
        if self.ctx.state == ConversationState.LISTENING:
            self._finish_turn("stop")
            return
        self._silence.cancel()
        self._release_capture()

    async def reset(self) -> None:
        """DONE -> IDLE with a cleared form."""
        if self.ctx.state != ConversationState.DONE:
            logger.debug(f"Reset ignored in {self.ctx.state.value}")
            return
        self._invalidate()
        self.ctx.clear_form()
        self._set_state(ConversationState.IDLE, STATUS_READY, reason="reset")
        self._spawn_flow(self.playback.speak(RESET_GREETING))

    async def close(self) -> None:
        """Drop the conversation: release everything and clear the form."""
        self._invalidate()
        self.ctx.clear_form()
        self._set_state(ConversationState.IDLE, STATUS_READY, reason="close")
        await self._await_release()

    async def join(self) -> None:
        """Wait for the flow currently running, if any."""
        task = self._flow_task
        if task is not None and task is not asyncio.current_task():
            await asyncio.wait({task})

    def playback_finished(self) -> None:
        """Forwarded client confirmation that audio finished playing."""
        finished = getattr(self.playback, "playback_finished", None)
        if finished is not None:
            finished()

    # =========================================================================
    # Capture
    # =========================================================================

    def on_capture_event(self, event: CaptureEvent) -> None:
        """Transcript update from the capture adapter."""
        if self.ctx.state != ConversationState.LISTENING:
            return

        if event.is_final:
            self.ctx.final_segments.append(event.text)
            self.ctx.interim = ""
        else:
            self.ctx.interim = event.text

        transcript = self.ctx.transcript
        if transcript:
            self.ctx.status = hearing_status(transcript)
        self._silence.reset()
        self._notify()

    def _on_silence(self) -> None:
        self._finish_turn("silence")

    def _finish_turn(self, reason: str) -> None:
        """
        LISTENING -> PROCESSING, or -> IDLE when nothing was heard.

        Runs without awaiting so no second stop can slip in between the
        state check and the transition.
        """
        if self.ctx.state != ConversationState.LISTENING:
            return

        self._silence.cancel()
        transcript = self.ctx.transcript.strip()
        self._release_capture()

        if not transcript:
            self._set_state(ConversationState.IDLE, STATUS_NOT_HEARD, reason=f"{reason}, empty transcript")
            return

        self._set_state(ConversationState.PROCESSING, STATUS_PROCESSING, reason=reason)
        self._spawn_flow(self._process(transcript, self.ctx.epoch))

    async def _begin_listening(self, epoch: int, status: str) -> None:
        await self._await_release()
        if self._stale(epoch):
            return

        self.ctx.clear_transcript()
        self.ctx.listening = True
        self._set_state(ConversationState.LISTENING, status, reason="capture started")
        self._capture_task = asyncio.ensure_future(self._pump(epoch))

    async def _pump(self, epoch: int) -> None:
        try:
            async for event in self.capture.start_capture():
                self.on_capture_event(event)
        except CaptureError as e:
            self._on_capture_error(e, epoch)
            return
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Capture failed: {e}", exc_info=True)
            self._on_capture_error(CaptureError(STATUS_ERROR), epoch)
            return

        if not self._stale(epoch) and self.ctx.state == ConversationState.LISTENING:
            self._finish_turn("capture ended")

    def _on_capture_error(self, error: CaptureError, epoch: int) -> None:
        if self._stale(epoch) or self.ctx.state != ConversationState.LISTENING:
            logger.debug(f"Late capture error ignored: {error.message}")
            return
        logger.warning(f"Capture error: {error.message}")
        self._silence.cancel()
        self._release_capture()
        self._set_state(ConversationState.IDLE, error.message, reason="capture error")

    async def _await_release(self) -> None:
        """Wait until the microphone from the previous turn is released."""
        release = self._release_task
        if release is not None:
            await asyncio.wait({release})

    def _release_capture(self) -> None:
        """Stop capture now; the release completes in the background."""
        self.ctx.listening = False
        pump = self._capture_task
        self._capture_task = None
        if pump is asyncio.current_task():
            pump = None

        previous = self._release_task
        self._release_task = asyncio.ensure_future(self._release(pump, previous))

    async def _release(self, pump: Optional[asyncio.Task], previous: Optional[asyncio.Task]) -> None:
        if previous is not None:
            await asyncio.wait({previous})
        try:
            await self.capture.stop_capture()
        except Exception as e:
            logger.error(f"stop_capture failed: {e}", exc_info=True)
        if pump is not None:
            # The turn's transcript is already taken; later events are not needed
            pump.cancel()
            await asyncio.wait({pump})

    # =========================================================================
    # Flows
    # =========================================================================

    def _spawn_flow(self, coro: Awaitable) -> None:
        self._flow_task = asyncio.ensure_future(coro)

    def _cancel_flow(self) -> None:
        task = self._flow_task
        self._flow_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _invalidate(self) -> None:
        """Abandon every running flow and release all resources."""
        self.ctx.epoch += 1
        self._silence.cancel()
        self.playback.cancel()
        self._release_capture()
        self._cancel_flow()

    def _dialogue_context(self, missing: Optional[List[str]] = None) -> DialogueContext:
        form = self.ctx.form
        return DialogueContext(
            form_title=form.title,
            field_labels=form.labels,
            missing_fields=list(missing or []),
            field_count=len(form.fields),
        )

    async def _say(self, state: DialogueState, epoch: int, missing: Optional[List[str]] = None) -> bool:
        """Generate and speak one reply. False when the flow went stale."""
        reply = await self.responder.respond(state, self._dialogue_context(missing))
        if self._stale(epoch):
            return False
        await self._await_release()
        if self._stale(epoch):
            return False
        if self.ctx.state == ConversationState.INTRO:
            self._set_status(STATUS_SPEAKING)
        await self.playback.speak(reply)
        return not self._stale(epoch)

    async def _intro(self, epoch: int) -> None:
        try:
            if not await self._say(DialogueState.INTRO, epoch):
                return
            await self._begin_listening(epoch, STATUS_LISTENING)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._fail(e, epoch)

    async def _process(self, transcript: str, epoch: int) -> None:
        try:
            result = await self.extractor.extract(transcript, self.ctx.form.fields, dict(self.ctx.values))
            if self._stale(epoch):
                return

            changed = {
                key: value
                for key, value in result.values.items()
                if value and value.strip() and self.ctx.values.get(key) != value
            }

            if changed:
                self._set_status(STATUS_SPEAKING)
                if not await self._say(DialogueState.FILLING, epoch):
                    return
                if not await self._reveal(changed, epoch):
                    return
            self.ctx.values = dict(result.values)

            if result.is_complete:
                self.ctx.missing = []
                self._set_status(STATUS_COMPLETE)
                if not await self._say(DialogueState.DONE, epoch):
                    return
                self._set_state(ConversationState.DONE, STATUS_COMPLETE, reason="form complete")
                return

            self.ctx.missing = list(result.missing)
            self._set_status(missing_status(result.missing))
            if not await self._say(DialogueState.ASK_MISSING, epoch, missing=result.missing):
                return
            await self._begin_listening(epoch, STATUS_LISTENING_MORE)

        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._fail(e, epoch)

    async def _reveal(self, changed: Dict[str, str], epoch: int) -> bool:
        """Type new values into the form one character at a time."""
        labels = {f.id: f.label for f in self.ctx.form.fields}
        total_chars = sum(len(v) for v in changed.values())
        delay = min(self.reveal_char_delay, self.reveal_max_seconds / max(total_chars, 1))

        for key, value in changed.items():
            self.ctx.status = filling_status(labels.get(key, key))
            for index in range(1, len(value) + 1):
                if delay > 0:
                    await asyncio.sleep(delay)
                if self._stale(epoch):
                    return False
                self.ctx.values[key] = value[:index]
                self._notify()
            if self.reveal_field_pause > 0:
                await asyncio.sleep(self.reveal_field_pause)
            if self._stale(epoch):
                return False
        return True

    def _fail(self, error: Exception, epoch: int) -> None:
        logger.error(f"Conversation {self.ctx.session_id} failed: {error}", exc_info=True)
        if self._stale(epoch):
            return
        self._silence.cancel()
        if self._capture_task is not None:
            self._release_capture()
        self._set_state(ConversationState.IDLE, STATUS_ERROR, reason="error")


def _pick(value: Optional[float], default: float) -> float:
    return default if value is None else value
