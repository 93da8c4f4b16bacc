"""
Pattern Fallback Extractor

Deterministic, network-free extraction used when the generative backend
is unavailable or fails.

Each field is classified by matching its label against an ordered list of
keyword categories (first match wins). A category owns an ordered list of
regular patterns that are tried against the raw utterance; the first one
that matches supplies the value, which the category then normalizes.
Fields that already hold a value are skipped.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Pattern, Sequence, Tuple

from core.schemas import FieldSpec, FieldType
from utils.logging import get_logger

logger = get_logger(__name__)


MAX_FREE_TEXT_LENGTH = 200
MIN_PHONE_LENGTH = 10

_MONTHS = (
    "january|february|march|april|may|june|july|august|"
    "september|october|november|december"
)

# Words that end (or cannot start) a spoken name
_NAME_STOPS = (
    "and|or|but|also|my|the|is|am|i|im|from|at|with|email|phone|number|"
    "hi|hello|hey|yes|no|okay|ok|thanks|here|speaking"
)
_NAME_WORD = rf"(?!(?:{_NAME_STOPS})\b)[a-z]+"

_COMPANY_STOPS = "and|or|but|also|my|as|where|since|i|is"
_COMPANY_WORD = rf"(?!(?:{_COMPANY_STOPS})\b)[a-z]+"


def _compile(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# =============================================================================
# Normalizers
# =============================================================================

def title_case(value: str, field: FieldSpec = None) -> Optional[str]:
    """Title-case each whitespace-separated token."""
    tokens = value.split()
    if not tokens:
        return None
    return " ".join(token[:1].upper() + token[1:].lower() for token in tokens)


def normalize_spoken_email(value: str, field: FieldSpec = None) -> Optional[str]:
    """Collapse spoken "at" / "dot" into @ / . and lower-case."""
    email = value
    # Only space-separated words; "nathan@at.com" is already written out
    if "@" not in email:
        email = re.sub(r"\s+at\s+", "@", email, flags=re.IGNORECASE)
    email = re.sub(r"\s+dot\s+", ".", email, flags=re.IGNORECASE)
    email = re.sub(r"\s+", "", email).lower()
    return email or None


def normalize_phone(value: str, field: FieldSpec = None) -> Optional[str]:
    """Keep digits and separators; reject anything shorter than ten characters."""
    phone = re.sub(r"[^\d\s\-+()]", "", value)
    phone = re.sub(r"\s+", " ", phone).strip()
    if len(phone) < MIN_PHONE_LENGTH:
        return None
    return phone


def normalize_url(value: str, field: FieldSpec = None) -> Optional[str]:
    """Verbatim, except a bare LinkedIn handle gets the profile prefix."""
    url = value.strip()
    if not url:
        return None
    if field is not None and "linkedin" in field.label.lower() and "linkedin.com" not in url.lower():
        url = f"linkedin.com/in/{url}"
    return url


def capitalize_first(value: str, field: FieldSpec = None) -> Optional[str]:
    """Upper-case the first letter, leave the rest alone."""
    text = value.strip()
    if not text:
        return None
    return text[0].upper() + text[1:]


def free_text(value: str, field: FieldSpec = None) -> Optional[str]:
    """Capitalize and cap long answers with an ellipsis."""
    text = capitalize_first(value)
    if text and len(text) > MAX_FREE_TEXT_LENGTH:
        text = text[:MAX_FREE_TEXT_LENGTH] + "..."
    return text


def digits_only(value: str, field: FieldSpec = None) -> Optional[str]:
    digits = re.sub(r"\D", "", value)
    return digits or None


def verbatim(value: str, field: FieldSpec = None) -> Optional[str]:
    text = value.strip()
    return text or None


# =============================================================================
# Categories
# =============================================================================

@dataclass(frozen=True)
class FieldCategory:
    """Semantic role of a field, recognised from its label."""
    name: str
    keywords: Tuple[str, ...]
    patterns: Tuple[Pattern, ...]
    normalize: Callable[..., Optional[str]]
    excludes: Tuple[str, ...] = ()
    field_types: Tuple[FieldType, ...] = ()

    def matches(self, field: FieldSpec) -> bool:
        label = field.label.lower()
        if any(word in label for word in self.excludes):
            return False
        if field.type in self.field_types:
            return True
        return any(word in label for word in self.keywords)

    def find_value(self, transcript: str, field: FieldSpec) -> Optional[str]:
        """First pattern whose normalized capture is non-empty wins."""
        for pattern in self.patterns:
            match = pattern.search(transcript)
            if not match:
                continue
            value = self.normalize(match.group(1), field)
            if value:
                return value
        return None


# Priority order matters: "Current Company" must never be read as a name.
FIELD_CATEGORIES: Tuple[FieldCategory, ...] = (
    FieldCategory(
        name="name",
        keywords=("name", "attendee"),
        excludes=("company", "organization"),
        patterns=_compile(
            rf"\b(?:my name is|i am|i'm|name is|this is|call me)\s+({_NAME_WORD}(?:\s+{_NAME_WORD}){{0,2}})",
            rf"^\s*({_NAME_WORD}(?:\s+{_NAME_WORD})?)\s+(?:here|speaking)\b",
            rf"\bname[:\s]+({_NAME_WORD}(?:\s+{_NAME_WORD})?)",
            rf"^\s*({_NAME_WORD}(?:\s+{_NAME_WORD}){{0,2}})\s*[.!]?\s*$",
        ),
        normalize=title_case,
    ),
    FieldCategory(
        name="email",
        keywords=("email",),
        patterns=_compile(
            r"([a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,})",
            r"([a-z0-9._%+-]+\s*(?:\bat\b|@)\s*[a-z0-9.-]+\s*(?:\bdot\b|\.)\s*[a-z]{2,})",
        ),
        normalize=normalize_spoken_email,
    ),
    FieldCategory(
        name="phone",
        keywords=("phone", "mobile", "number", "contact"),
        patterns=_compile(
            r"\b(?:phone|mobile|number|contact)(?:\s+number)?(?:\s+is)?[:\s]*([\d\s\-+()]{10,})",
            r"\b(?:call me at|reach me at)\s*([\d\s\-+()]{10,})",
            r"([+]?\d{1,3}[\s\-]?\d{3,5}[\s\-]?\d{3,5}[\s\-]?\d{2,5})",
            r"(\d{10,})",
        ),
        normalize=normalize_phone,
    ),
    FieldCategory(
        name="company",
        keywords=("company", "organization", "current"),
        patterns=_compile(
            rf"\b(?:work at|working at|work for|working for|company is|organization is)\s+({_COMPANY_WORD}(?:\s+{_COMPANY_WORD}){{0,3}})",
            rf"\b(?:from|at|with)\s+({_COMPANY_WORD}(?:\s+{_COMPANY_WORD}){{0,3}})",
            rf"\bcompany[:\s]+({_COMPANY_WORD}(?:\s+{_COMPANY_WORD}){{0,2}})",
        ),
        normalize=title_case,
    ),
    FieldCategory(
        name="url",
        keywords=("linkedin", "url", "link"),
        patterns=_compile(
            r"(linkedin\.com/in/[a-z0-9_-]+)",
            r"(https?://\S+)",
            r"\blinkedin[:\s]+(?:is\s+)?([a-z0-9_-]+)",
        ),
        normalize=normalize_url,
    ),
    FieldCategory(
        name="reason",
        keywords=("why", "reason"),
        patterns=_compile(
            r"\b(?:because|reason is|want this (?:job|role) because|interested because)\s+(.{10,})",
            r"\b(?:i want|i'm interested|passionate about)\s+(.{10,})",
        ),
        normalize=free_text,
    ),
    FieldCategory(
        name="date",
        keywords=("date",),
        field_types=(FieldType.DATE,),
        patterns=_compile(
            r"(\d{4}-\d{2}-\d{2})",
            r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})",
            rf"\b((?:{_MONTHS})\s+\d{{1,2}}(?:st|nd|rd|th)?(?:\s*,?\s*\d{{4}})?)",
        ),
        normalize=verbatim,
    ),
    FieldCategory(
        name="dietary",
        keywords=("dietary", "restriction"),
        patterns=_compile(
            r"\b(?:dietary|restriction|diet)[:\s]+(.+?)(?:\.|,|$)",
            r"\b(?:i am|i'm)\s+(vegetarian|vegan|gluten[- ]?free|halal|kosher)",
            r"\b(no\s+(?:nuts|dairy|gluten|meat|fish|shellfish))",
        ),
        normalize=capitalize_first,
    ),
    FieldCategory(
        name="symptom",
        keywords=("symptom", "comment", "description"),
        patterns=_compile(
            r"\b(?:symptom|feeling|experiencing)[:\s]+(.+?)(?:\.|$)",
            r"\b(?:i have|i'm having|suffering from)\s+(.+?)(?:\.|,|$)",
        ),
        normalize=free_text,
    ),
    FieldCategory(
        name="rating",
        keywords=("rating",),
        field_types=(FieldType.NUMBER,),
        patterns=_compile(
            r"\b(?:rating|rate|score)[:\s]*(\d+)",
            r"(\d+)\s*(?:out of|/)\s*\d+",
            r"^\s*(\d+)\s*$",
        ),
        normalize=digits_only,
    ),
)


def classify_field(field: FieldSpec) -> Optional[FieldCategory]:
    """Semantic category of a field, or None when its label matches nothing."""
    for category in FIELD_CATEGORIES:
        if category.matches(field):
            return category
    return None


# =============================================================================
# Extractor
# =============================================================================

class PatternFallbackExtractor:
    """
    Deterministic extraction strategy.

    Same utterance + same prior values always gives the same result: no
    randomness, no clock, no network.
    """

    name = "fallback"

    def match_fields(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        """
        Values found for still-unfilled fields.

        Returns:
            Mapping of field id -> value, only for fields that were empty in
            `existing` and for which a pattern matched.
        """
        existing = existing or {}
        found: Dict[str, str] = {}
        if not transcript or not transcript.strip():
            return found

        for field in fields:
            prior = existing.get(field.id)
            if prior and prior.strip():
                continue

            category = classify_field(field)
            if category is None:
                continue

            value = category.find_value(transcript, field)
            if value:
                found[field.id] = value
                logger.debug(f"Fallback matched {field.label!r} as {category.name}")

        return found

    async def extract_values(
        self,
        transcript: str,
        fields: Sequence[FieldSpec],
        existing: Mapping[str, str],
    ) -> Dict[str, str]:
        return self.match_fields(transcript, fields, existing)

