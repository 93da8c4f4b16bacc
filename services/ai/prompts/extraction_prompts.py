"""
Extraction Prompts

Prompt for the generative extraction strategy. The prompt carries the
verbatim utterance and the field id -> label mapping and asks for a flat
JSON object keyed by field id.
"""

from typing import Sequence

from core.schemas import FieldSpec


EXTRACTION_PROMPT_TEMPLATE = """Extract ALL information from this speech to fill a form. Be thorough!

SPEECH: "{transcript}"

FIELDS TO FILL:
{field_info}

INSTRUCTIONS:
- Extract EVERY piece of information mentioned
- Match spoken info to the closest field
- For name fields: extract full name (first + last)
- For email: look for @, "at", email patterns
- For phone: look for number sequences (10+ digits)
- For LinkedIn: look for linkedin mentions or urls
- For "why" questions: use any reason/motivation mentioned
- Return ONLY valid JSON with field IDs as keys
- Use "" for truly missing fields

OUTPUT FORMAT (JSON only, no markdown):
{{"field_id_1": "value1", "field_id_2": "value2", ...}}"""


def build_field_info(fields: Sequence[FieldSpec]) -> str:
    """One `"id": Label` line per field, in schema order."""
    return "\n".join(f'"{field.id}": {field.label}' for field in fields)


def build_extraction_prompt(transcript: str, fields: Sequence[FieldSpec]) -> str:
    """Build the single completion request for one utterance."""
    return EXTRACTION_PROMPT_TEMPLATE.format(
        transcript=transcript,
        field_info=build_field_info(fields),
    )
