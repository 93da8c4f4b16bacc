"""
Remote Wire-Contract Clients

Let a conversation run in a different process from the extraction and
reply services, talking to them over HTTP:

    POST /analyze-form  {formFields, transcript, existingValues}
                        -> {values, missingFields, filledCount, totalFields, isComplete}
    POST /chat          {state, context: {formTitle}, fieldCount?, fieldLabels?, missingFields?}
                        -> {reply}

Usage:
    extractor = RemoteExtractionClient("http://localhost:8000")
    responder = RemoteDialogueClient("http://localhost:8000")
    machine = ConversationStateMachine(form, capture, playback, extractor, responder)
"""

from typing import Any, Dict, Mapping, Optional, Sequence, Union

import httpx

from core.schemas import FieldSpec
from services.ai.dialogue import DialogueContext, DialogueState, TemplateResponder
from services.ai.dialogue.context import coerce_state
from services.ai.extraction import ExtractionResult
from utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class _RemoteClient:
    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._get_client()
        response = await client.post(f"{self.base_url}{path}", json=body)
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class RemoteExtractionClient(_RemoteClient):
    """
    Extraction over HTTP.

    Raises httpx.HTTPError (or ValueError on a malformed body); the state
    machine reports it as a processing error.
    """

    async def extract(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Optional[Mapping[str, str]] = None,
    ) -> ExtractionResult:
        body = {
            "formFields": [f.model_dump(mode="json") for f in fields],
            "transcript": transcript,
            "existingValues": dict(existing or {}),
        }
        data = await self._post("/analyze-form", body)

        try:
            values = {k: str(v) for k, v in data["values"].items()}
            missing = [str(label) for label in data["missingFields"]]
            is_complete = bool(data["isComplete"])
        except (KeyError, AttributeError, TypeError) as e:
            raise ValueError(f"Malformed /analyze-form response: {e}") from e

        return ExtractionResult(
            values=values,
            missing=missing,
            is_complete=is_complete,
            strategy="remote",
            total_fields=int(data.get("totalFields", len(fields))),
        )


class RemoteDialogueClient(_RemoteClient):
    """Replies over HTTP, with the local templates behind any failure."""

    def __init__(self, *args, fallback: Optional[TemplateResponder] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fallback = fallback or TemplateResponder()

    async def respond(
        self,
        state: Union[DialogueState, str],
        context: Optional[DialogueContext] = None,
    ) -> str:
        context = context or DialogueContext()
        state = coerce_state(state)
        state_name = state.value if isinstance(state, DialogueState) else state

        body: Dict[str, Any] = {
            "state": state_name,
            "context": {"formTitle": context.form_title},
            "fieldCount": context.total_fields,
            "fieldLabels": list(context.field_labels),
            "missingFields": list(context.missing_fields),
        }

        try:
            data = await self._post("/chat", body)
            reply = str(data.get("reply") or "").strip()
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"/chat failed, using template: {e}")
            reply = ""

        return reply or self.fallback.render(state, context)
