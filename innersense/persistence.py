"""
Durable storage for the session store.

Both backends hold the same record: a JSON object mapping
conversation id -> serialized session. Every read and write acquires
its storage resource for that single operation and reports failures
as PersistenceError.
"""
import json
import os
import tempfile

from sqlalchemy.exc import SQLAlchemyError

from db.database import Base, build_engine, build_session_factory
from db.models import ConversationSnapshot
from innersense import config
from innersense.errors import PersistenceError


class JsonFilePersistence:
    def __init__(self, path: str):
        self.path = path

    def load(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Unexpected snapshot format in {self.path}")
        return data

    def save(self, data: dict) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e


class DatabasePersistence:
    """Keeps the snapshot as one row of the conversation_snapshots table."""

    STORE_KEY = "conversations"

    def __init__(self, database_url: str):
        self.engine = build_engine(database_url)
        self.SessionLocal = build_session_factory(self.engine)
        Base.metadata.create_all(bind=self.engine)

    def load(self) -> dict:
        db = self.SessionLocal()
        try:
            row = db.get(ConversationSnapshot, self.STORE_KEY)
            if row is None:
                raise PersistenceError("No conversation snapshot stored yet")
            data = json.loads(row.payload)
        except (SQLAlchemyError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read conversation snapshot: {e}") from e
        finally:
            db.close()
        if not isinstance(data, dict):
            raise PersistenceError("Unexpected conversation snapshot format")
        return data

    def save(self, data: dict) -> None:
        db = self.SessionLocal()
        try:
            payload = json.dumps(data)
            row = db.get(ConversationSnapshot, self.STORE_KEY)
            if row is None:
                db.add(ConversationSnapshot(store_key=self.STORE_KEY, payload=payload))
            else:
                row.payload = payload
            db.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            db.rollback()
            raise PersistenceError(f"Cannot write conversation snapshot: {e}") from e
        finally:
            db.close()


def build_persistence(backend: str = None):
    backend = backend or config.STORAGE_BACKEND
    if backend == "json":
        return JsonFilePersistence(config.CONVERSATIONS_FILE)
    if backend == "database":
        return DatabasePersistence(config.DATABASE_URL)
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r} (expected 'json' or 'database')")
