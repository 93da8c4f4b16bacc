"""
Prompts Package

Prompt engineering for extraction and spoken dialogue.
"""

from services.ai.prompts.extraction_prompts import (
    EXTRACTION_PROMPT_TEMPLATE,
    build_extraction_prompt,
    build_field_info,
)
from services.ai.prompts.dialogue_prompts import (
    DIALOGUE_PROMPTS,
    MISSING_FIELDS_IN_PROMPT,
    PERSONA,
    WORD_BUDGETS,
)

__all__ = [
    'EXTRACTION_PROMPT_TEMPLATE',
    'build_extraction_prompt',
    'build_field_info',
    'DIALOGUE_PROMPTS',
    'MISSING_FIELDS_IN_PROMPT',
    'PERSONA',
    'WORD_BUDGETS',
]
