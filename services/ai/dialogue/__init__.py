"""
Dialogue Package

Short spoken replies per conversation step, generative with template fallback.
"""

from services.ai.dialogue.context import DialogueContext, DialogueState
from services.ai.dialogue.generative import GenerativeResponder, build_dialogue_prompt
from services.ai.dialogue.responder import DialogueResponder, DialogueStrategy
from services.ai.dialogue.templates import TemplateResponder

__all__ = [
    'DialogueContext',
    'DialogueState',
    'DialogueResponder',
    'DialogueStrategy',
    'GenerativeResponder',
    'TemplateResponder',
    'build_dialogue_prompt',
]
