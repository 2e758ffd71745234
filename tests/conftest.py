"""Pytest configuration for the conversation service tests.

Sets up a minimal environment so tests never need an OpenAI key or
write conversation files into the working directory.
"""

import os
import sys
import tempfile

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("STORAGE_BACKEND", "json")
os.environ.setdefault(
    "CONVERSATIONS_FILE", os.path.join(tempfile.gettempdir(), "innersense_test_conversations.json")
)

from innersense.conversation import ConversationAgent  # noqa: E402
from innersense.persistence import JsonFilePersistence  # noqa: E402
from innersense.session_manager import SessionStore  # noqa: E402


class FakeCompletionClient:
    """Streams a canned reply in fragments and records every call."""

    def __init__(self, fragments=("  Hello", " there", "! How are you?  ")):
        self.fragments = list(fragments)
        self.calls = []

    def stream(self, prompt, model):
        self.calls.append((prompt, model))
        for fragment in self.fragments:
            yield fragment


class FailingCompletionClient:
    def __init__(self, fail_after=0):
        self.fail_after = fail_after
        self.calls = []

    def stream(self, prompt, model):
        self.calls.append((prompt, model))
        for i in range(self.fail_after):
            yield f"part{i} "
        raise ConnectionError("provider unavailable")


@pytest.fixture
def conversations_path(tmp_path):
    return str(tmp_path / "conversations.json")


@pytest.fixture
def store(conversations_path):
    return SessionStore(persistence=JsonFilePersistence(conversations_path), max_messages=10)


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def agent(store, fake_client):
    return ConversationAgent(store, fake_client, model="test-model")
