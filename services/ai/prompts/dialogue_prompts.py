"""
Dialogue Prompts

Per-state instruction templates for the generative dialogue strategy.
Word budgets are guidance for the model; replies are not cut to length.
"""

from typing import Dict


PERSONA = "You are Pebbles, a friendly Voice AI."

WORD_BUDGETS: Dict[str, int] = {
    "INTRO": 30,
    "LISTENING_PROMPT": 6,
    "FILLING": 8,
    "ASK_MISSING": 20,
    "DONE": 10,
}

DIALOGUE_PROMPTS: Dict[str, str] = {
    "INTRO": (
        '{persona} User opened "{form_title}" form. Say hi and list these fields: {fields}. '
        "Keep under {budget} words. Be natural."
    ),
    "LISTENING_PROMPT": (
        'Say a quick prompt like "Go ahead!" or "I\'m listening!" - under {budget} words.'
    ),
    "FILLING": (
        'Acknowledge you got the info. Say something like "Got it!" - under {budget} words.'
    ),
    "ASK_MISSING": (
        "Ask for these missing fields: {missing}. Be natural, under {budget} words."
    ),
    "DONE": (
        "Form is done! Ask user to review. Be friendly, under {budget} words."
    ),
}


# How many missing fields the generative prompt names
MISSING_FIELDS_IN_PROMPT = 4
