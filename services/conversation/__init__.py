"""
Conversation Package

Turn-taking state machine for voice form filling.
"""

from services.conversation.machine import ConversationStateMachine, RESET_GREETING
from services.conversation.remote import RemoteDialogueClient, RemoteExtractionClient
from services.conversation.silence_timer import SilenceTimer
from services.conversation.state import (
    ConversationContext,
    ConversationSnapshot,
    ConversationState,
)

__all__ = [
    'ConversationStateMachine',
    'ConversationContext',
    'ConversationSnapshot',
    'ConversationState',
    'RemoteDialogueClient',
    'RemoteExtractionClient',
    'SilenceTimer',
    'RESET_GREETING',
]
