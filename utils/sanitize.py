"""
Completion Output Sanitization

Generative backends wrap JSON in markdown fences, add chatter before or
after it, or return several objects. These helpers reduce raw completion
text to the first balanced JSON object before parsing.

Usage:
    from utils.sanitize import parse_json_object

    data = parse_json_object(raw_text)  # raises CompletionParseError
"""

import json
import re
from typing import Any, Dict, Optional

from utils.exceptions import CompletionParseError
from utils.logging import get_logger

logger = get_logger(__name__)


_CODE_FENCE = re.compile(r"```(?:json|JSON)?[ \t]*\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers (```json / ```)."""
    if not text:
        return ""
    return _CODE_FENCE.sub("", text).strip()


def find_json_object(text: str) -> Optional[str]:
    """
    Isolate the first balanced {...} object in `text`.

    Braces inside JSON string literals are ignored. Returns None when no
    complete object is present.
    """
    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the first JSON object found in completion output.

    Raises:
        CompletionParseError: No object found, invalid JSON, or not a mapping.
    """
    cleaned = strip_code_fences(text)
    candidate = find_json_object(cleaned)

    if candidate is None:
        logger.debug(f"No JSON object in completion output: {cleaned[:100]!r}")
        raise CompletionParseError("No JSON object in completion output")

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise CompletionParseError(f"Invalid JSON in completion output: {e}") from e

    if not isinstance(data, dict):
        raise CompletionParseError("Completion output is not a JSON object")

    return data


def clean_reply(text: Optional[str]) -> str:
    """Trim a spoken reply and drop quotes the model wrapped it in."""
    if not text:
        return ""
    reply = text.strip()
    if len(reply) >= 2 and reply[0] == reply[-1] and reply[0] in "\"'":
        reply = reply[1:-1].strip()
    return reply
