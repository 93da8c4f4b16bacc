"""
Template Responder

Fixed, deterministic replies per dialogue state. Used whenever the
generative responder is missing or fails.
"""

from typing import Union

from services.ai.dialogue.context import DialogueContext, DialogueState, coerce_state

INTRO_LABEL_LIMIT = 5
MISSING_LABEL_LIMIT = 3

DEFAULT_REPLY = "I'm ready."


class TemplateResponder:
    """Deterministic dialogue strategy."""

    name = "template"

    async def reply(self, state: Union[DialogueState, str], context: DialogueContext) -> str:
        return self.render(state, context)

    def render(self, state: Union[DialogueState, str], context: DialogueContext) -> str:
        state = coerce_state(state)

        if state == DialogueState.INTRO:
            title = context.form_title or "the form"
            labels = ", ".join(context.field_labels[:INTRO_LABEL_LIMIT]) or "your details"
            return f"Hi! Let's fill {title}. I need: {labels}. Go ahead!"

        if state == DialogueState.LISTENING_PROMPT:
            return "Go ahead!"

        if state == DialogueState.FILLING:
            return "Got it! Filling now."

        if state == DialogueState.ASK_MISSING:
            missing = ", ".join(context.missing_fields[:MISSING_LABEL_LIMIT]) or "more info"
            return f"Still need: {missing}. What are those?"

        if state == DialogueState.DONE:
            return "All done! Check it out."

        return DEFAULT_REPLY

