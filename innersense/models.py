from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ConversationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class ConversationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    conversation_id: str = Field(alias="conversationId")
    message_id: str = Field(alias="messageId")


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role: str
    content: str
    timestamp: datetime


class HistoryResponse(BaseModel):
    messages: List[MessageOut] = []


# =========================
# LEGACY REFLECTION ENDPOINT
# =========================

class ReflectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    journal_entry: Optional[str] = Field(default=None, alias="journalEntry")


class ReflectResponse(BaseModel):
    reflection: str
