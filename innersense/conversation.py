import logging
from dataclasses import dataclass

from innersense import config
from innersense.llm_client import CompletionClient
from innersense.errors import GenerationError, ValidationError
from innersense.prompts import build_conversation_prompt, build_reflection_prompt
from innersense.session_manager import ASSISTANT, USER

logger = logging.getLogger(__name__)

REFLECTION_SHORT_ENTRY_CHARS = 100


@dataclass(frozen=True)
class ConversationReply:
    response: str
    conversation_id: str
    message_id: str


def _collect(fragments) -> str:
    return "".join(fragments).strip()


class ConversationAgent:
    """
    Runs one conversation turn at a time:
    received -> contextualized -> dispatched -> completed.
    """

    def __init__(self, store, completion_client: CompletionClient, model: str = None):
        self.store = store
        self.completion_client = completion_client
        self.model = model or config.CONVERSATION_MODEL

    def generate_conversational_response(
        self, user_message: str | None, conversation_id: str | None = None
    ) -> ConversationReply:
        if user_message is None or not user_message.strip():
            raise ValidationError("Message is required")

        session = self.store.get_or_create(conversation_id)
        with self.store.lock_for(session.id):
            self.store.append(session.id, USER, user_message)
            history = self.store.history(session.id)[:-1]  # exclude current message
            prompt = build_conversation_prompt(user_message, history)

            try:
                response = _collect(self.completion_client.stream(prompt, self.model))
            except Exception as e:
                logger.exception("Generation failed for conversation %s", session.id)
                raise GenerationError("Failed to generate a response") from e

            assistant_message = self.store.append(session.id, ASSISTANT, response)

        return ConversationReply(
            response=response,
            conversation_id=session.id,
            message_id=assistant_message.id,
        )


class ReflectionAgent:
    """Single-shot journaling reflections; keeps no conversation state."""

    def __init__(self, completion_client: CompletionClient, fast_model: str = None, model: str = None):
        self.completion_client = completion_client
        self.fast_model = fast_model or config.REFLECTION_FAST_MODEL
        self.model = model or config.CONVERSATION_MODEL

    def select_model(self, journal_entry: str) -> str:
        # Short entries go to the cheaper model
        if len(journal_entry) < REFLECTION_SHORT_ENTRY_CHARS:
            return self.fast_model
        return self.model

    def generate_reflection(self, journal_entry: str | None) -> str:
        if journal_entry is None or not journal_entry.strip():
            raise ValidationError("Journal entry is required")

        prompt = build_reflection_prompt(journal_entry)
        model = self.select_model(journal_entry)
        logger.info(
            "Using model: %s for reflection (entry length: %d)", model, len(journal_entry)
        )
        try:
            return _collect(self.completion_client.stream(prompt, model))
        except Exception as e:
            logger.exception("Reflection generation failed")
            raise GenerationError("Failed to generate a reflection") from e
