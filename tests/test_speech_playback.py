"""
Tests for speech text preparation and the ElevenLabs playback adapter
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from services.voice.playback import ElevenLabsPlayback
from services.voice.speech import SpeechService, prepare_speech_text


class TestPrepareSpeechText:

    @pytest.mark.parametrize("raw,expected", [
        ("Got it!Filling now.", "Got it! Filling now."),
        ("Wait...what?Okay.", "Wait... what? Okay."),
        ("Email jane@doe.com please.", "Email jane@doe.com please."),
        ("", ""),
    ])
    def test_sentence_spacing(self, raw, expected):
        assert prepare_speech_text(raw) == expected


class TestSpeechService:

    def test_unavailable_without_key(self):
        service = SpeechService(api_key="")
        assert not service.is_available()
        assert service.text_to_speech("Hello") is None

    def test_returns_audio_bytes(self):
        response = MagicMock(status_code=200, content=b"mp3")
        with patch("services.voice.speech.requests.post", return_value=response) as post:
            audio = SpeechService(api_key="key").text_to_speech("Hi!Bye.")

        assert audio == b"mp3"
        assert post.call_args.kwargs["json"]["text"] == "Hi! Bye."
        assert post.call_args.kwargs["headers"]["xi-api-key"] == "key"

    def test_http_error_gives_none(self):
        response = MagicMock(status_code=401, text="unauthorized")
        with patch("services.voice.speech.requests.post", return_value=response):
            assert SpeechService(api_key="key").text_to_speech("Hi") is None

    def test_network_error_gives_none(self):
        with patch("services.voice.speech.requests.post", side_effect=requests.ConnectionError("down")):
            assert SpeechService(api_key="key").text_to_speech("Hi") is None


class FakeSpeech:
    def __init__(self, audio=b"mp3"):
        self.audio = audio
        self.texts = []

    def is_available(self):
        return True

    def text_to_speech(self, text):
        self.texts.append(text)
        return self.audio


class TestPlayback:

    @pytest.mark.asyncio
    async def test_waits_for_client_confirmation(self):
        sent = []

        async def sink(audio):
            sent.append(audio)

        playback = ElevenLabsPlayback(sink=sink, speech_service=FakeSpeech(), timeout=1)
        task = asyncio.ensure_future(playback.speak("All done!"))

        for _ in range(100):
            if sent:
                break
            await asyncio.sleep(0.01)
        assert sent == [b"mp3"]
        assert not task.done()

        playback.playback_finished()
        await asyncio.wait_for(task, timeout=1)
        assert not playback.is_speaking

    @pytest.mark.asyncio
    async def test_timeout_without_confirmation(self):
        async def sink(audio):
            pass

        playback = ElevenLabsPlayback(sink=sink, speech_service=FakeSpeech(), timeout=0.02)
        await asyncio.wait_for(playback.speak("Hello"), timeout=1)

    @pytest.mark.asyncio
    async def test_cancel_resolves_speak(self):
        async def sink(audio):
            pass

        playback = ElevenLabsPlayback(sink=sink, speech_service=FakeSpeech(), timeout=5)
        task = asyncio.ensure_future(playback.speak("Hello"))
        await asyncio.sleep(0.05)

        playback.cancel()
        await asyncio.wait_for(task, timeout=1)
        assert not task.cancelled()

    @pytest.mark.asyncio
    async def test_no_sink_resolves_immediately(self):
        speech = FakeSpeech()
        playback = ElevenLabsPlayback(sink=None, speech_service=speech)
        await asyncio.wait_for(playback.speak("Hello"), timeout=1)
        assert speech.texts == []

    @pytest.mark.asyncio
    async def test_synthesis_failure_resolves(self):
        sent = []

        async def sink(audio):
            sent.append(audio)

        playback = ElevenLabsPlayback(sink=sink, speech_service=FakeSpeech(audio=None), timeout=5)
        await asyncio.wait_for(playback.speak("Hello"), timeout=1)
        assert sent == []
