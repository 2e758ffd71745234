"""
Engagement hints steer the conversational style of each reply.

ENGAGEMENT_RULES is evaluated top to bottom for every turn and the first
matching rule wins, so exactly one hint is always produced.
"""
import re
from dataclasses import dataclass
from typing import Callable

from innersense.session_manager import USER

RECENT_USER_MESSAGES = 3
SHORT_MESSAGE_CHARS = 50

EMOTIONAL_PATTERN = re.compile(
    r"feel|emotion|happy|sad|angry|excited|worried|anxious|love|hate", re.IGNORECASE
)
# Whole words only, so "some" or "home" are not read as "me"
PERSONAL_PATTERN = re.compile(r"\b(i am|i'm|my|me|myself)\b", re.IGNORECASE)


@dataclass(frozen=True)
class EngagementRule:
    name: str
    matches: Callable[[list, str], bool]
    hint: str


def _is_first_message(history, message):
    return len(history) == 0


def _has_emotional_content(history, message):
    return EMOTIONAL_PATTERN.search(message) is not None


def _has_personal_content(history, message):
    return PERSONAL_PATTERN.search(message) is not None


def _has_short_responses(history, message):
    user_messages = [m for m in history if m.role == USER][-RECENT_USER_MESSAGES:]
    return any(len(m.content) < SHORT_MESSAGE_CHARS for m in user_messages)


def _always(history, message):
    return True


ENGAGEMENT_RULES = (
    EngagementRule(
        name="start",
        matches=_is_first_message,
        hint=(
            "This is the start of our conversation - be welcoming and ask an "
            "open-ended question to learn more about them."
        ),
    ),
    EngagementRule(
        name="emotional",
        matches=_has_emotional_content,
        hint=(
            "The user shared emotional content - validate their feelings and ask "
            "how they're processing this experience."
        ),
    ),
    EngagementRule(
        name="personal",
        matches=_has_personal_content,
        hint=(
            "The user shared something personal - show genuine interest and ask "
            "for more details about their experience."
        ),
    ),
    EngagementRule(
        name="re-engage",
        matches=_has_short_responses,
        hint=(
            "The user has been giving brief responses - try a different angle or "
            "ask about their interests to re-engage them."
        ),
    ),
    EngagementRule(
        name="default",
        matches=_always,
        hint=(
            "Keep the conversation flowing by building on what they've shared and "
            "exploring related topics."
        ),
    ),
)


def select_engagement_rule(history, message: str, rules=ENGAGEMENT_RULES) -> EngagementRule:
    for rule in rules:
        if rule.matches(history, message):
            return rule
    raise LookupError("No engagement rule matched; the rule table needs a catch-all")


def get_engagement_hint(history, message: str) -> str:
    return select_engagement_rule(history, message).hint
