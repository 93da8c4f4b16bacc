"""
Dialogue Responder

respond(state, context) -> short spoken utterance.

Runs the generative strategy when one is configured and drops to the
templates silently on any failure: timeout, rate limiting that outlived
its retries, malformed output, open circuit.

Usage:
    responder = DialogueResponder(primary=GenerativeResponder(completion))
    text = await responder.respond(DialogueState.INTRO, DialogueContext(form_title="Job Application"))
"""

from typing import Optional, Protocol, Union

from services.ai.dialogue.context import DialogueContext, DialogueState, coerce_state
from services.ai.dialogue.templates import TemplateResponder
from utils.logging import get_logger

logger = get_logger(__name__)


class DialogueStrategy(Protocol):
    name: str

    async def reply(self, state: DialogueState, context: DialogueContext) -> str:
        ...


class DialogueResponder:
    """Primary strategy with the template fallback behind it. Never raises."""

    def __init__(
        self,
        primary: Optional[DialogueStrategy] = None,
        fallback: Optional[TemplateResponder] = None,
    ):
        self.primary = primary
        self.fallback = fallback or TemplateResponder()

    async def respond(
        self,
        state: Union[DialogueState, str],
        context: Optional[DialogueContext] = None,
    ) -> str:
        context = context or DialogueContext()
        state = coerce_state(state)

        if self.primary is not None and isinstance(state, DialogueState):
            try:
                return await self.primary.reply(state, context)
            except Exception as e:
                logger.warning(f"Dialogue {state.value} using template: {e}")

        return self.fallback.render(state, context)

