"""
Dialogue context types shared by both response strategies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class DialogueState(str, Enum):
    """What the assistant is about to say."""
    INTRO = "INTRO"
    LISTENING_PROMPT = "LISTENING_PROMPT"
    FILLING = "FILLING"
    ASK_MISSING = "ASK_MISSING"
    DONE = "DONE"


@dataclass
class DialogueContext:
    """Everything a reply may mention about the form."""
    form_title: Optional[str] = None
    field_labels: List[str] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)
    field_count: Optional[int] = None

    @property
    def total_fields(self) -> int:
        if self.field_count is not None:
            return self.field_count
        return len(self.field_labels)


def coerce_state(state: Union[DialogueState, str]) -> Union[DialogueState, str]:
    """Map a state name onto DialogueState; unknown names pass through as strings."""
    if isinstance(state, DialogueState):
        return state
    try:
        return DialogueState(str(state).upper())
    except ValueError:
        return str(state)
