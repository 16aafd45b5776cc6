"""
FastAPI Application Module

Multilingual chat API. Each submitted message gets a reply written directly in
the requested language; when the reply provider is down or throttled the user
still gets an apology, translated best-effort into their language.

Key Features:
- Per-user ordered turn processing
- Structured logging and Prometheus metrics
- CORS and OpenTelemetry support

Caller identity comes from the upstream authentication layer through the
``X-User-Id`` header and is trusted as-is.
"""

import time
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import generate_latest
from pydantic import BaseModel
from structlog import get_logger

from ..config import Settings, get_settings
from ..domain.errors import PersistenceError, ValidationError
from ..domain.languages import DEFAULT_LANGUAGE, supported_languages
from ..domain.models import ChatMessage
from ..metrics import CUSTOM_REGISTRY, ERRORS, PROCESSING_TIME, REQUESTS
from ..repositories.base import ConversationLog
from ..repositories.memory import InMemoryConversationLog
from ..services.chat import ChatService, SafeTranslator
from ..services.llm import ReplyGenerator
from ..services.providers import build_engine
from ..services.translation import CompletionTranslator, LibreTranslator
from .turn_queue import TurnQueue, get_turn_queue

logger = get_logger()


class MessageCreate(BaseModel):
    """Turn submission body"""
    message: Optional[str] = None
    language: Optional[str] = DEFAULT_LANGUAGE


class TurnResponse(BaseModel):
    messages: List[ChatMessage]


def build_chat_service(settings: Settings, log: ConversationLog) -> ChatService:
    """Wires the reply engine and the translation chain from settings"""
    engine = build_engine(settings)
    translator = SafeTranslator([
        CompletionTranslator(engine),
        LibreTranslator(
            endpoint=settings.libre_endpoint,
            api_key=settings.libre_api_key,
            timeout=settings.provider_timeout,
        ),
    ])
    return ChatService(log, ReplyGenerator(engine), translator)


# Core service instances
settings = get_settings()
repository = InMemoryConversationLog()
chat_service = build_chat_service(settings, repository)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Logs app startup/shutdown"""
    logger.info("application_startup_complete", llm_provider=settings.llm_provider)
    yield
    await chat_service.aclose()
    logger.info("application_shutdown_complete")


def get_chat_service() -> ChatService:
    """Returns the turn orchestrator"""
    return chat_service


def get_queue() -> TurnQueue:
    """Returns the per-user turn queue"""
    return get_turn_queue(settings.max_concurrent_turns)


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity set by the authentication layer"""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id.strip()


app = FastAPI(
    title="LangLeo Chat API",
    description="Multilingual chat API with LLM replies and translation fallback",
    version="0.1.0",
    lifespan=lifespan
)

# Enable cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)


UNMATCHED_ROUTE = "unmatched"


def _route_label(request: Request) -> str:
    """Route template the request matched, so metric labels stay bounded"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Tracks requests, failures and time spent"""
    logger.info("request_started", path=request.url.path)
    started = time.perf_counter()
    path = UNMATCHED_ROUTE
    try:
        response = await call_next(request)
        path = _route_label(request)
        if response.status_code >= 500:
            ERRORS.labels(path=path).inc()
        return response
    except Exception as e:
        path = _route_label(request)
        ERRORS.labels(path=path).inc()
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise
    finally:
        REQUESTS.labels(path=path).inc()
        PROCESSING_TIME.labels(path=path).inc(time.perf_counter() - started)


@app.post("/api/chat/message", response_model=TurnResponse, status_code=201)
async def create_message(
    body: MessageCreate,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
    queue: TurnQueue = Depends(get_queue)
) -> TurnResponse:
    """
    Stores the user message and the bot reply for it.
    Turns from the same user are processed in arrival order.
    """
    try:
        user_record, bot_record = await queue.run(
            user_id,
            service.submit_turn,
            user_id,
            body.message or "",
            body.language or DEFAULT_LANGUAGE,
        )
    except ValidationError as e:
        logger.warning("message_rejected", user_id=user_id, reason=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        logger.error("create_message_error", user_id=user_id, error=str(e))
        raise HTTPException(status_code=500, detail="Server error")

    return TurnResponse(messages=[user_record, bot_record])


@app.get("/api/chat/messages", response_model=List[ChatMessage])
async def get_messages(
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service)
) -> List[ChatMessage]:
    """Gets the caller's full message history, oldest first"""
    try:
        return await service.list_history(user_id)
    except PersistenceError as e:
        logger.error("get_messages_error", user_id=user_id, error=str(e))
        raise HTTPException(status_code=500, detail="Server error")


@app.get("/api/chat/languages")
async def list_languages() -> Dict[str, str]:
    """Language codes the chat can reply in, with display names"""
    return supported_languages()


@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")
