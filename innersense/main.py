from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import json
import datetime

from innersense import config
from innersense.conversation import ConversationAgent, ReflectionAgent
from innersense.errors import GenerationError, ValidationError
from innersense.llm_client import OpenAICompletionClient
from innersense.models import (
    ConversationRequest, ConversationResponse, HistoryResponse, MessageOut,
    ReflectRequest, ReflectResponse
)
from innersense.persistence import build_persistence
from innersense.session_manager import SessionStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("audit_logger")


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    store = SessionStore(
        persistence=build_persistence(),
        max_messages=config.MAX_CONVERSATION_HISTORY,
    )
    store.load()
    return store


@lru_cache(maxsize=1)
def get_completion_client() -> OpenAICompletionClient:
    return OpenAICompletionClient()


@lru_cache(maxsize=1)
def get_conversation_agent() -> ConversationAgent:
    return ConversationAgent(get_session_store(), get_completion_client())


@lru_cache(maxsize=1)
def get_reflection_agent() -> ReflectionAgent:
    return ReflectionAgent(get_completion_client())


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Read persisted conversations at startup rather than on the first request
    app.dependency_overrides.get(get_session_store, get_session_store)()
    yield


app = FastAPI(
    title="InnerSense Conversation API",
    description="Context-aware conversational companion",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _audit(level: int, **fields) -> None:
    audit_log = {"timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(), **fields}
    logger.log(level, "AUDIT_LOG: %s", json.dumps(audit_log))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.get("/")
def root():
    """Health check endpoint"""
    return {
        "status": "running",
        "service": "InnerSense Conversation API",
        "version": "1.0.0"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.post("/api/conversation", response_model=ConversationResponse)
def conversation(
    request: ConversationRequest,
    agent: ConversationAgent = Depends(get_conversation_agent),
):
    try:
        result = agent.generate_conversational_response(request.message, request.conversation_id)
    except ValidationError as e:
        _audit(logging.WARNING, conversation_id=request.conversation_id, error=str(e), status="REJECTED")
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationError as e:
        # The user turn is already stored; only the reply is missing
        _audit(logging.ERROR, conversation_id=request.conversation_id, error=str(e), status="GENERATION_FAILED")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        _audit(logging.ERROR, conversation_id=request.conversation_id, error=str(e), status="ERROR")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to process request")

    _audit(
        logging.INFO,
        conversation_id=result.conversation_id,
        message_id=result.message_id,
        response_chars=len(result.response),
        status="SUCCESS",
    )
    return ConversationResponse(
        response=result.response,
        conversation_id=result.conversation_id,
        message_id=result.message_id,
    )


@app.get("/api/conversation/history", response_model=HistoryResponse)
def conversation_history(
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
    store: SessionStore = Depends(get_session_store),
):
    if not conversation_id:
        raise HTTPException(status_code=400, detail="Conversation ID is required")
    return HistoryResponse(
        messages=[MessageOut.model_validate(m) for m in store.history(conversation_id)]
    )


@app.post("/api/reflect", response_model=ReflectResponse)
def reflect(
    request: ReflectRequest,
    agent: ReflectionAgent = Depends(get_reflection_agent),
):
    try:
        reflection = agent.generate_reflection(request.journal_entry)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Reflection Error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to process request")
    return ReflectResponse(reflection=reflection)


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
