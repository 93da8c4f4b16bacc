"""
Generative Responder

One completion call per reply, with a state-specific instruction and a
word budget passed as guidance.
"""

from services.ai.dialogue.context import DialogueContext, DialogueState
from services.ai.gemini import CompletionClient
from services.ai.prompts import (
    DIALOGUE_PROMPTS,
    MISSING_FIELDS_IN_PROMPT,
    PERSONA,
    WORD_BUDGETS,
)
from utils.exceptions import CompletionError, CompletionParseError
from utils.logging import get_logger
from utils.sanitize import clean_reply

logger = get_logger(__name__)


def build_dialogue_prompt(state: DialogueState, context: DialogueContext) -> str:
    """Fill the instruction template for `state`."""
    template = DIALOGUE_PROMPTS[state.value]
    return template.format(
        persona=PERSONA,
        form_title=context.form_title or "the form",
        fields=", ".join(context.field_labels),
        missing=", ".join(context.missing_fields[:MISSING_FIELDS_IN_PROMPT]),
        budget=WORD_BUDGETS[state.value],
    )


class GenerativeResponder:
    """
    Dialogue strategy backed by the completion service.

    Raises CompletionError subclasses on any failure, including an empty
    reply.
    """

    name = "generative"

    def __init__(self, completion: CompletionClient):
        self.completion = completion

    async def reply(self, state: DialogueState, context: DialogueContext) -> str:
        if not isinstance(state, DialogueState) or state.value not in DIALOGUE_PROMPTS:
            raise CompletionError(f"No dialogue prompt for state {state!r}")

        prompt = build_dialogue_prompt(state, context)
        raw = await self.completion.complete_text(prompt)

        reply = clean_reply(raw)
        if not reply:
            raise CompletionParseError("Empty dialogue reply")

        logger.debug(f"{state.value} reply: {reply!r}")
        return reply
