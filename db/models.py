from sqlalchemy import Column, String, DateTime, Text
from datetime import datetime, timezone
from .database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ConversationSnapshot(Base):
    __tablename__ = "conversation_snapshots"

    store_key = Column(String, primary_key=True, index=True)
    payload = Column(Text, nullable=False)  # JSON: conversation id -> session
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
