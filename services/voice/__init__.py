"""
Voice Package

Speech capture (Vosk) and speech playback (ElevenLabs) adapters.
"""

from services.voice.capture import CaptureAdapter, CaptureEvent, VoskStreamCapture
from services.voice.playback import ElevenLabsPlayback, PlaybackAdapter
from services.voice.speech import SpeechService, get_speech_service, prepare_speech_text
from services.voice.vosk import VoskService, get_vosk_service

__all__ = [
    'CaptureAdapter',
    'CaptureEvent',
    'VoskStreamCapture',
    'ElevenLabsPlayback',
    'PlaybackAdapter',
    'SpeechService',
    'get_speech_service',
    'prepare_speech_text',
    'VoskService',
    'get_vosk_service',
]
