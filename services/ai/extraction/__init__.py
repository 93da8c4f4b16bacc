"""
Extraction Package

Field extraction from a spoken utterance using the completion backend and
rule-based patterns.
"""

from services.ai.extraction.extractor import (
    ExtractionEngine,
    ExtractionResult,
    ExtractionStrategy,
    merge_values,
    missing_labels,
)
from services.ai.extraction.llm_extractor import GenerativeExtractor
from services.ai.extraction.fallback_extractor import PatternFallbackExtractor, classify_field

__all__ = [
    'ExtractionEngine',
    'ExtractionResult',
    'ExtractionStrategy',
    'GenerativeExtractor',
    'PatternFallbackExtractor',
    'classify_field',
    'merge_values',
    'missing_labels',
]
