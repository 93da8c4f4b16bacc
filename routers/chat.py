"""
Chat Router

Endpoints:
    POST /chat - Short spoken reply for a conversation step
"""

from fastapi import APIRouter, Depends, Request

from core.dependencies import get_dialogue_responder
from core.schemas import ChatRequest, ChatResponse
from services.ai.dialogue import DialogueContext, DialogueResponder
from utils.rate_limit import limit_ai

router = APIRouter(tags=["Dialogue"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Generate reply",
    description="Reply for INTRO, LISTENING_PROMPT, FILLING, ASK_MISSING or DONE"
)
@limit_ai
async def chat(
    request: Request,
    payload: ChatRequest,
    responder: DialogueResponder = Depends(get_dialogue_responder)
):
    context = DialogueContext(
        form_title=payload.context.formTitle,
        field_labels=payload.fieldLabels or [],
        missing_fields=payload.missingFields or [],
        field_count=payload.fieldCount,
    )
    reply = await responder.respond(payload.state, context)
    return ChatResponse(reply=reply)
