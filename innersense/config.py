import os
from dotenv import load_dotenv

# Load environment variables from .env file FIRST
load_dotenv()


# Strip whitespace: a trailing space in an App Service setting breaks endpoints
def _getenv(key: str, default: str = None) -> str:
    val = os.getenv(key) or default
    return val.strip() if val else val


OPENAI_API_KEY = _getenv("OPENAI_API_KEY")

AZURE_OPENAI_ENDPOINT = _getenv("AZURE_OPENAI_ENDPOINT")
AZURE_OPENAI_API_KEY = _getenv("AZURE_OPENAI_API_KEY")
AZURE_OPENAI_API_VERSION = _getenv("AZURE_OPENAI_API_VERSION", "2024-08-01-preview")

# With Azure these are deployment names
CONVERSATION_MODEL = _getenv("CONVERSATION_MODEL", "gpt-4o")
REFLECTION_FAST_MODEL = _getenv("REFLECTION_FAST_MODEL", "gpt-4o-mini")

MAX_CONVERSATION_HISTORY = int(_getenv("MAX_CONVERSATION_HISTORY", "10"))

STORAGE_BACKEND = _getenv("STORAGE_BACKEND", "json").lower()
CONVERSATIONS_FILE = _getenv("CONVERSATIONS_FILE", "./conversations.json")
DATABASE_URL = _getenv("DATABASE_URL", "sqlite:///./conversations.db")

LOG_LEVEL = _getenv("LOG_LEVEL", "INFO").upper()
PORT = int(_getenv("PORT", "8000"))
