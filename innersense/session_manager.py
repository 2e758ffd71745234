import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from innersense.errors import PersistenceError

logger = logging.getLogger(__name__)

USER = "user"
ASSISTANT = "assistant"
ROLES = (USER, ASSISTANT)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _generate_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class Message:
    id: str
    role: str
    content: str
    timestamp: datetime


@dataclass
class Session:
    id: str
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)


def message_to_dict(message: Message) -> dict:
    return {
        "id": message.id,
        "role": message.role,
        "content": message.content,
        "timestamp": message.timestamp.isoformat(),
    }


def session_to_dict(session: Session) -> dict:
    return {
        "id": session.id,
        "messages": [message_to_dict(m) for m in session.messages],
        "createdAt": session.created_at.isoformat(),
        "lastActivity": session.last_activity.isoformat(),
    }


def _parse_timestamp(text: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def session_from_dict(data: dict) -> Session:
    """
    Rebuild a Session from its stored form.
    Timestamps are parsed back from ISO-8601 text.
    """
    return Session(
        id=data["id"],
        messages=[
            Message(
                id=m["id"],
                role=m["role"],
                content=m["content"],
                timestamp=_parse_timestamp(m["timestamp"]),
            )
            for m in data.get("messages", [])
        ],
        created_at=_parse_timestamp(data["createdAt"]),
        last_activity=_parse_timestamp(data["lastActivity"]),
    )


class SessionStore:
    """
    In-memory registry of conversation sessions, snapshotted to a
    persistence backend after every append.

    The in-memory state is authoritative for the running process:
    persistence failures are logged and never raised.
    """

    def __init__(self, persistence=None, max_messages: int = 10):
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.persistence = persistence
        self.max_messages = max_messages
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._persist_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def lock_for(self, session_id: str) -> threading.RLock:
        """
        Per-session re-entrant lock. Every mutation of a session
        happens while holding it.
        """
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.RLock()
            return lock

    def _new_session_id(self) -> str:
        # Caller holds _registry_lock
        session_id = _generate_id("conv")
        while session_id in self._sessions:
            session_id = _generate_id("conv")
        return session_id

    def get_or_create(self, session_id: str | None = None) -> Session:
        """
        Get existing session or create a new one.
        Refreshes last_activity on access.
        """
        with self._registry_lock:
            if session_id and session_id in self._sessions:
                session = self._sessions[session_id]
                session.last_activity = _now()
                return session

            session = Session(id=session_id or self._new_session_id())
            self._sessions[session.id] = session
            logger.info("Created conversation %s", session.id)
            return session

    def append(self, session_id: str, role: str, content: str) -> Message:
        """
        Append a message to a session, keep only the most recent
        max_messages and write a snapshot.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}")

        with self.lock_for(session_id):
            session = self.get_or_create(session_id)
            message = Message(
                id=_generate_id("msg"),
                role=role,
                content=content,
                timestamp=_now(),
            )
            messages = session.messages + [message]
            if len(messages) > self.max_messages:
                messages = messages[-self.max_messages:]
            session.messages = messages
            session.last_activity = message.timestamp

        self.save()
        return message

    def history(self, session_id: str) -> list[Message]:
        """
        Messages of a session in chronological order.
        Unknown ids yield an empty list.
        """
        session = self._sessions.get(session_id)
        return list(session.messages) if session else []

    def snapshot(self) -> dict[str, dict]:
        with self._registry_lock:
            sessions = list(self._sessions.values())
        return {s.id: session_to_dict(s) for s in sessions}

    def save(self) -> bool:
        if self.persistence is None:
            return False
        with self._persist_lock:
            try:
                self.persistence.save(self.snapshot())
            except PersistenceError as e:
                logger.error("Failed to save conversations: %s", e)
                return False
        return True

    def load(self) -> int:
        """
        Replace the in-memory sessions with the persisted snapshot.
        A missing or unreadable snapshot leaves the store empty; a single
        malformed session is skipped and the rest are kept.
        """
        sessions: dict[str, Session] = {}
        if self.persistence is not None:
            try:
                data = self.persistence.load()
            except PersistenceError as e:
                logger.info("Starting with fresh conversation storage (%s)", e)
                data = {}

            for session_id, raw in data.items():
                try:
                    sessions[session_id] = session_from_dict(raw)
                except (KeyError, TypeError, ValueError, AttributeError) as e:
                    logger.warning("Skipping unreadable conversation %s: %r", session_id, e)

        with self._registry_lock:
            self._sessions = sessions
        if sessions:
            logger.info("Loaded %d conversations from storage", len(sessions))
        return len(sessions)
