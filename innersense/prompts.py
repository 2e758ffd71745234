import logging
import math

from innersense.engagement import get_engagement_hint
from innersense.history import compress_history

logger = logging.getLogger(__name__)

CONVERSATION_PREAMBLE = (
    "You are a helpful AI assistant. "
    "Respond naturally and always end with a follow-up question"
)

REFLECTION_PREAMBLE = (
    "You are a compassionate journaling companion. "
    "Respond kindly and briefly (1-3 sentences, ≤100 words). "
    "Acknowledge and validate without giving advice."
)


def estimate_tokens(text: str) -> int:
    """Rough approximation: 1 token ≈ 4 characters."""
    return math.ceil(len(text) / 4)


def build_conversation_prompt(user_message: str, history) -> str:
    """
    Prompt for one conversation turn.

    `history` holds the turns before `user_message`. The engagement hint
    is always present; the history block is left out when there is none.
    """
    engagement = get_engagement_hint(history, user_message)

    context = ""
    if history:
        context = f"\n\nConversation history:\n{compress_history(history)}\n\n"

    prompt = (
        f"{CONVERSATION_PREAMBLE}\nEngagement Focus: {engagement}\n\n"
        f"{context}User: {user_message}\n\nAssistant:"
    )

    logger.info(
        "Conversation prompt tokens: ~%d (context: %d msgs)",
        estimate_tokens(prompt),
        len(history),
    )
    return prompt


def build_reflection_prompt(journal_entry: str) -> str:
    prompt = (
        f"{REFLECTION_PREAMBLE}\n\n"
        f'User journal entry: "{journal_entry}"\n\n'
        "Generate a gentle, validating reflection:"
    )
    logger.info("Reflection prompt tokens: ~%d", estimate_tokens(prompt))
    return prompt
