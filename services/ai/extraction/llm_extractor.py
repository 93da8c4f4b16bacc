"""
Generative Extractor

Completion-backed extraction strategy: one request carrying the verbatim
utterance and the field id -> label mapping, answered with a JSON object
keyed by field id. Unparseable output is a backend failure, not a user
error, and surfaces as CompletionParseError.
"""

from typing import Any, Dict, Mapping, Sequence

from core.schemas import FieldSpec
from services.ai.gemini import CompletionClient
from services.ai.prompts import build_extraction_prompt
from utils.exceptions import CompletionParseError
from utils.logging import get_logger
from utils.sanitize import parse_json_object

logger = get_logger(__name__)


class GenerativeExtractor:
    """
    Extraction through the text-completion backend.

    Raises CompletionError subclasses on every failure so the engine can
    fall back.
    """

    name = "generative"

    def __init__(self, completion: CompletionClient):
        self.completion = completion

    async def extract_values(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Mapping[str, str],
    ) -> Dict[str, str]:
        prompt = build_extraction_prompt(transcript, fields)
        raw = await self.completion.complete_text(prompt)
        logger.debug(f"Raw extraction output: {raw[:200]!r}")

        data = parse_json_object(raw)
        return self._coerce_values(data, fields)

    @staticmethod
    def _coerce_values(data: Dict[str, Any], fields: Sequence[FieldSpec]) -> Dict[str, str]:
        """Keep schema keys only and turn scalar values into strings."""
        values: Dict[str, str] = {}
        for field in fields:
            if field.id not in data:
                continue
            raw = data[field.id]
            if raw is None:
                values[field.id] = ""
            elif isinstance(raw, bool):
                values[field.id] = "yes" if raw else "no"
            elif isinstance(raw, (str, int, float)):
                values[field.id] = str(raw).strip()
            else:
                raise CompletionParseError(
                    f"Unexpected value type for {field.id}: {type(raw).__name__}"
                )
        return values
