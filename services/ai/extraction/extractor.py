"""
Extraction Engine

The SINGLE entry point for turning an utterance into form-field values.

    extract(transcript, schema, existing) -> ExtractionResult(values, missing, is_complete)

Strategies:
- Generative (primary): completion backend, used when configured
- Pattern fallback: deterministic regex heuristics, used whenever the
  primary strategy is missing or fails for any reason

Merge policy: a new value overwrites a key only when non-empty, so a
previously filled field is never erased. The engine never raises to its
caller.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from core.schemas import FieldSpec
from services.ai.extraction.fallback_extractor import PatternFallbackExtractor
from utils.logging import get_logger

logger = get_logger(__name__)


class ExtractionStrategy(Protocol):
    """Capability shared by the generative and the pattern strategies."""

    name: str

    async def extract_values(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Mapping[str, str],
    ) -> Dict[str, str]:
        ...


@dataclass
class ExtractionResult:
    """Merged values for every schema field plus what is still missing."""
    values: Dict[str, str]
    missing: List[str]
    is_complete: bool
    strategy: str = "fallback"
    total_fields: int = 0

    @property
    def filled_count(self) -> int:
        return self.total_fields - len(self.missing)

    def to_response(self) -> Dict[str, object]:
        """Body of the /analyze-form wire contract."""
        return {
            "values": dict(self.values),
            "missingFields": list(self.missing),
            "filledCount": self.filled_count,
            "totalFields": self.total_fields,
            "isComplete": self.is_complete,
        }


def is_filled(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def merge_values(
    fields: Sequence[FieldSpec],
    existing: Mapping[str, str],
    extracted: Mapping[str, str],
) -> Dict[str, str]:
    """
    merged[k] = extracted[k] if non-empty else existing[k], for schema keys only.
    """
    merged: Dict[str, str] = {}
    for spec in fields:
        new_value = extracted.get(spec.id)
        if is_filled(new_value):
            merged[spec.id] = new_value
        else:
            merged[spec.id] = existing.get(spec.id) or ""
    return merged


def missing_labels(fields: Sequence[FieldSpec], values: Mapping[str, str]) -> List[str]:
    """Labels of fields whose value is empty or whitespace, in schema order."""
    return [spec.label for spec in fields if not is_filled(values.get(spec.id))]


class ExtractionEngine:
    """
    Runs the primary strategy with the pattern fallback behind it.

    Usage:
        engine = ExtractionEngine(primary=GenerativeExtractor(completion))
        result = await engine.extract("my name is Jane Doe", form.fields, {})
    """

    def __init__(
        self,
        primary: Optional[ExtractionStrategy] = None,
        fallback: Optional[ExtractionStrategy] = None,
    ):
        self.primary = primary
        self.fallback = fallback or PatternFallbackExtractor()

    async def extract(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Optional[Mapping[str, str]] = None,
    ) -> ExtractionResult:
        existing = {k: v for k, v in (existing or {}).items() if isinstance(v, str)}
        transcript = transcript or ""

        extracted: Dict[str, str] = {}
        strategy = self.fallback.name

        if self.primary is not None:
            try:
                extracted = await self.primary.extract_values(transcript, fields, existing)
                strategy = self.primary.name
            except Exception as e:
                logger.warning(f"{self.primary.name} extraction failed, using fallback: {e}")
                extracted = {}

        if strategy == self.fallback.name:
            extracted = await self._run_fallback(transcript, fields, existing)

        merged = merge_values(fields, existing, extracted)
        missing = missing_labels(fields, merged)
        changed = sum(
            1 for key, value in merged.items()
            if is_filled(value) and existing.get(key) != value
        )

        logger.info(
            f"Extracted {changed} new value(s) via {strategy}; "
            f"{len(fields) - len(missing)}/{len(fields)} filled",
            extra={"strategy": strategy},
        )

        return ExtractionResult(
            values=merged,
            missing=missing,
            is_complete=not missing,
            strategy=strategy,
            total_fields=len(fields),
        )

    async def _run_fallback(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Mapping[str, str],
    ) -> Dict[str, str]:
        try:
            return await self.fallback.extract_values(transcript, fields, existing)
        except Exception as e:
            # Affected fields simply stay missing
            logger.error(f"Fallback extraction failed: {e}", exc_info=True)
            return {}
