"""
Voice Conversation WebSocket

    WS /ws/conversation/{form_id}

Client -> server:
    binary frames: 16-bit mono PCM from the microphone
    text frames:   {"action": "mic" | "stop" | "reset" | "close" | "playback_done"}

Server -> client:
    text frames:   conversation snapshots ({"type": "snapshot", ...})
    binary frames: synthesized speech (MP3); answer with "playback_done"
"""

import asyncio
import json
from typing import Any, Union

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from core.dependencies import get_dialogue_responder, get_extraction_engine, get_speech_service, get_vosk_service
from services.conversation import ConversationStateMachine
from services.form import get_form
from services.voice import ElevenLabsPlayback, VoskStreamCapture
from utils.exceptions import FormNotFoundError
from utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

CLOSE_FORM_NOT_FOUND = 4404


@router.websocket("/ws/conversation/{form_id}")
async def conversation_socket(
    websocket: WebSocket,
    form_id: str,
    extractor=Depends(get_extraction_engine),
    responder=Depends(get_dialogue_responder),
    speech_service=Depends(get_speech_service),
):
    await websocket.accept()

    try:
        form = get_form(form_id)
    except FormNotFoundError as e:
        logger.warning(e.message)
        await websocket.close(code=CLOSE_FORM_NOT_FOUND)
        return

    outbox: "asyncio.Queue[Union[bytes, dict]]" = asyncio.Queue()
    audio: "asyncio.Queue[Any]" = asyncio.Queue()

    async def send_audio(data: bytes) -> None:
        outbox.put_nowait(data)

    machine = ConversationStateMachine(
        form=form,
        capture=VoskStreamCapture(audio, recognizer_factory=lambda: get_vosk_service().create_recognizer()),
        playback=ElevenLabsPlayback(sink=send_audio, speech_service=speech_service),
        extractor=extractor,
        responder=responder,
    )
    machine.add_listener(lambda snapshot: outbox.put_nowait(snapshot.to_dict()))
    outbox.put_nowait(machine.snapshot().to_dict())

    writer = asyncio.ensure_future(_write(websocket, outbox))
    logger.info(f"Conversation {machine.ctx.session_id} opened for form {form.id}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            if message.get("bytes") is not None:
                _feed_audio(machine, audio, message["bytes"])
                continue

            if message.get("text") and await _dispatch(machine, message["text"], outbox):
                await machine.close()
                await outbox.join()
                await websocket.close()
                break

    except WebSocketDisconnect:
        logger.info(f"Conversation {machine.ctx.session_id} disconnected")
    finally:
        audio.put_nowait(None)
        await machine.close()
        writer.cancel()
        logger.info(f"Conversation {machine.ctx.session_id} closed")


def _feed_audio(machine: ConversationStateMachine, audio: asyncio.Queue, chunk: bytes) -> bool:
    """Queue microphone PCM for the current turn; frames outside a turn are dropped."""
    if not machine.ctx.listening:
        return False
    audio.put_nowait(chunk)
    return True


async def _dispatch(machine: ConversationStateMachine, raw: str, outbox: asyncio.Queue) -> bool:
    """Run one client command. True when the client asked to close."""
    try:
        action = json.loads(raw).get("action")
    except (ValueError, AttributeError):
        action = None

    if action == "mic":
        await machine.handle_mic()
    elif action == "stop":
        await machine.stop()
    elif action == "reset":
        await machine.reset()
    elif action == "playback_done":
        machine.playback_finished()
    elif action == "close":
        return True
    else:
        outbox.put_nowait({"type": "error", "message": f"Unknown action: {action}"})
    return False


async def _write(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    """Single writer so frames leave in the order they were queued."""
    while True:
        item = await outbox.get()
        try:
            if isinstance(item, bytes):
                await websocket.send_bytes(item)
            else:
                await websocket.send_json(item)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Dropped outgoing frame: {e}")
        finally:
            outbox.task_done()
