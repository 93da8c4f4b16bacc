"""
Conversation State

The explicit state holder for one form conversation. The state machine is
its only writer; observers get immutable snapshots.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from core.schemas import FormDefinition


class ConversationState(str, Enum):
    IDLE = "IDLE"
    INTRO = "INTRO"
    LISTENING = "LISTENING"
    PROCESSING = "PROCESSING"
    DONE = "DONE"


# Status texts shown to the user
STATUS_READY = "Ready to help"
STATUS_THINKING = "AI Thinking..."
STATUS_SPEAKING = "AI Speaking..."
STATUS_LISTENING = "Listening... speak now!"
STATUS_LISTENING_MORE = "Listening for more info..."
STATUS_PROCESSING = "Processing..."
STATUS_COMPLETE = "Form Complete!"
STATUS_NOT_HEARD = "I didn't catch that. Tap mic to try again."
STATUS_ERROR = "Error occurred. Tap to retry."

HEARING_TAIL = 35
MISSING_IN_STATUS = 3


def hearing_status(transcript: str) -> str:
    tail = transcript[-HEARING_TAIL:]
    ellipsis = "..." if len(transcript) > HEARING_TAIL else ""
    return f'Hearing: "{tail}{ellipsis}"'


def missing_status(missing: List[str]) -> str:
    return f"Missing: {', '.join(missing[:MISSING_IN_STATUS])}..."


def filling_status(label: str) -> str:
    return f"Filling {label}..."


@dataclass
class ConversationContext:
    """
    Mutable conversation state.

    `epoch` increases on every close / reset; a flow that resumes after an
    await with an older epoch has been abandoned and must stop.
    """
    form: FormDefinition
    session_id: str
    state: ConversationState = ConversationState.IDLE
    status: str = STATUS_READY
    values: Dict[str, str] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)
    final_segments: List[str] = field(default_factory=list)
    interim: str = ""
    listening: bool = False
    epoch: int = 0

    @property
    def transcript(self) -> str:
        """Finished segments, then the segment still being recognized."""
        parts = [s.strip() for s in self.final_segments if s.strip()]
        if self.interim.strip():
            parts.append(self.interim.strip())
        return " ".join(parts)

    def clear_transcript(self) -> None:
        self.final_segments = []
        self.interim = ""

    def clear_form(self) -> None:
        self.values = {}
        self.missing = []
        self.clear_transcript()

    def filled_count(self) -> int:
        return sum(1 for f in self.form.fields if (self.values.get(f.id) or "").strip())

    def snapshot(self) -> "ConversationSnapshot":
        return ConversationSnapshot(
            session_id=self.session_id,
            form_id=self.form.id,
            state=self.state,
            status=self.status,
            values=tuple(self.values.items()),
            transcript=self.transcript,
            missing=tuple(self.missing),
            listening=self.listening,
            filled=self.filled_count(),
            total=len(self.form.fields),
        )


@dataclass(frozen=True)
class ConversationSnapshot:
    """What observers see after each change."""
    session_id: str
    form_id: int
    state: ConversationState
    status: str
    values: Tuple[Tuple[str, str], ...]
    transcript: str
    missing: Tuple[str, ...]
    listening: bool
    filled: int
    total: int

    def value_map(self) -> Dict[str, str]:
        return dict(self.values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "snapshot",
            "sessionId": self.session_id,
            "formId": self.form_id,
            "state": self.state.value,
            "status": self.status,
            "values": self.value_map(),
            "transcript": self.transcript,
            "missingFields": list(self.missing),
            "listening": self.listening,
            "filledCount": self.filled,
            "totalFields": self.total,
        }
