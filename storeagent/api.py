"""
FastAPI application: HTTP boundary of the storefront agent.

Routes:
    POST /chat                   handle one user message
    GET  /history/{session_id}   stored turns, oldest first
    GET  /actions/{session_id}   tool invocations, newest first
    POST /sessions               issue a new session id
    GET  /health

Handlers are plain (sync) functions, so FastAPI runs them on its thread
pool and requests for different sessions proceed in parallel.

Usage:
    python main.py --config config.yaml serve
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from storeagent import __version__
from storeagent.core.agent import AgentLoop
from storeagent.core.session import SessionManager
from storeagent.errors import StoreAgentError

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------------------
# Schemas
# --------------------------------------------------------------------------------------


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    session_id: Optional[str] = None


class FunctionCallOut(BaseModel):
    function: str
    result: Any = None


class ChatResponse(BaseModel):
    response: str
    function_calls: List[FunctionCallOut]
    session_id: str
    provider: str


class TurnOut(BaseModel):
    role: str
    message: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: str


class ActionOut(BaseModel):
    id: Optional[int] = None
    session_id: str
    tool_name: str
    arguments: Dict[str, Any]
    created_at: str


class SessionOut(BaseModel):
    session_id: str


# --------------------------------------------------------------------------------------
# Application
# --------------------------------------------------------------------------------------


def build_router(agent: AgentLoop, sessions: SessionManager) -> APIRouter:
    router = APIRouter(tags=["ai"])

    @router.post("/chat", response_model=ChatResponse)
    def chat(body: ChatRequest) -> ChatResponse:
        session_id = sessions.resolve(body.session_id)
        reply = agent.handle_message(session_id, body.message)
        return ChatResponse(
            response=reply.text,
            function_calls=[FunctionCallOut(**fc) for fc in reply.function_calls],
            session_id=reply.session_id,
            provider=reply.provider,
        )

    @router.get("/history/{session_id}", response_model=List[TurnOut])
    def history(session_id: str) -> List[TurnOut]:
        return [
            TurnOut(role=t.role, message=t.text, metadata=t.metadata, created_at=t.created_at)
            for t in sessions.history(session_id)
        ]

    @router.get("/actions/{session_id}", response_model=List[ActionOut])
    def actions(session_id: str) -> List[ActionOut]:
        return [
            ActionOut(
                id=a.invocation_id,
                session_id=a.session_id,
                tool_name=a.tool_name,
                arguments=a.arguments,
                created_at=a.created_at,
            )
            for a in sessions.actions(session_id)
        ]

    @router.post("/sessions", response_model=SessionOut)
    def new_session() -> SessionOut:
        return SessionOut(session_id=sessions.new_session_id())

    return router


def create_app(agent: AgentLoop, sessions: SessionManager, prefix: str = "") -> FastAPI:
    app = FastAPI(
        title="Storefront Agent",
        version=__version__,
        description="Conversational store-operator agent with tool calling and provider fallback.",
    )

    # CORS: the storefront UI is served from a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreAgentError)
    async def handle_agent_error(request: Request, exc: StoreAgentError) -> JSONResponse:
        logger.error("AI Chat error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})

    @app.get("/health", tags=["health"])
    def health() -> Dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(build_router(agent, sessions), prefix=prefix.rstrip("/"))
    return app
