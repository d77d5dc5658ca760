"""
Chat endpoints: transcript, assistant replies, provider status, and a
WebSocket that pushes course/message changes.
"""

import asyncio
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect
from loguru import logger

from coursebot.dependencies import require_database
from coursebot.middleware.rate_limit import CHAT_RATE_LIMIT, limiter
from coursebot.models.schemas import (
    ChatRequest,
    ChatResponse,
    ClearHistoryRequest,
    MessageResponse,
    ProviderStatus,
)
from coursebot.services.ai_service import FALLBACK_PROVIDER, AgentSessions, AIAgent, get_sessions
from coursebot.services.change_feed import COURSES, MESSAGES, change_feed
from coursebot.services.conversation import GenerationContext
from coursebot.services.course_store import CourseStore, get_store

router = APIRouter(prefix="/api/chat", tags=["chat"], dependencies=[Depends(require_database)])
ws_router = APIRouter(tags=["realtime"])


@router.get("/messages", response_model=list[MessageResponse])
async def list_messages(store: CourseStore = Depends(get_store)):
    result = await store.list_messages()
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.error)
    return result.data


@router.delete("/messages")
async def clear_messages(store: CourseStore = Depends(get_store)):
    result = await store.clear_messages()
    if not result.ok:
        raise HTTPException(status_code=500, detail=result.error)
    return {"status": "cleared", "deleted": result.data}


@router.post("", response_model=ChatResponse)
@limiter.limit(CHAT_RATE_LIMIT)
async def chat(
    request: Request,
    req: ChatRequest,
    store: CourseStore = Depends(get_store),
    sessions: AgentSessions = Depends(get_sessions),
):
    """Persist the user's message, generate a reply, and persist the reply."""
    session_id = req.session_id or str(uuid.uuid4())

    saved_user = await store.add_message(req.message, "user", req.course_id)
    if not saved_user.ok:
        logger.warning(f"Chat [{session_id[:8]}]: user message not saved: {saved_user.error}")

    courses = (await store.list_courses()).data or []
    selected = None
    if req.course_id is not None:
        selected = next((c for c in courses if c.id == req.course_id), None)

    agent = sessions.get(session_id)
    ai_text = await agent.generate_response(
        req.message, GenerationContext(courses=courses, selected_course=selected)
    )

    saved_bot = await store.add_message(ai_text, "bot", req.course_id)
    if not saved_bot.ok:
        logger.warning(f"Chat [{session_id[:8]}]: bot reply not saved: {saved_bot.error}")

    logger.info(f"Chat [{session_id[:8]}] via {agent.get_current_provider()}: '{req.message[:50]}' -> '{ai_text[:50]}'")

    return ChatResponse(
        session_id=session_id,
        user_message=req.message,
        ai_response=ai_text,
        provider=agent.get_current_provider(),
        user_message_id=saved_user.data.id if saved_user.ok else None,
        bot_message_id=saved_bot.data.id if saved_bot.ok else None,
    )


@router.get("/providers", response_model=ProviderStatus)
async def provider_status(
    session_id: Optional[str] = None,
    sessions: AgentSessions = Depends(get_sessions),
):
    available = sorted(p.value for p in sessions.registry.available_providers())
    current = "loading"
    if session_id and session_id in sessions:
        current = sessions.get(session_id).get_current_provider()
    return ProviderStatus(
        available=available,
        current=current,
        fallback_mode=not available or current == FALLBACK_PROVIDER,
        catalog=AIAgent.provider_info(),
    )


@router.post("/history/clear")
async def clear_history(req: ClearHistoryRequest, sessions: AgentSessions = Depends(get_sessions)):
    if req.session_id not in sessions:
        raise HTTPException(status_code=404, detail="Session not found")
    sessions.get(req.session_id).clear_history()
    return {"status": "cleared", "session_id": req.session_id}


@router.delete("/sessions/{session_id}")
async def end_session(session_id: str, sessions: AgentSessions = Depends(get_sessions)):
    """Forget the session's agent, history, and current provider."""
    if not sessions.reset(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    logger.info(f"Chat session [{session_id[:8]}] ended")
    return {"status": "ended", "session_id": session_id}


# ---- WebSocket change feed ----
@ws_router.websocket("/ws/changes")
async def changes_websocket(websocket: WebSocket):
    await websocket.accept()
    logger.info("Change feed WebSocket connected")

    queue: asyncio.Queue = asyncio.Queue()
    unsubscribers = [change_feed.subscribe(table, queue.put_nowait) for table in (COURSES, MESSAGES)]

    try:
        while True:
            event = await queue.get()
            await websocket.send_json(event)
    except WebSocketDisconnect:
        logger.info("Change feed WebSocket disconnected")
    except Exception as e:
        logger.error(f"Change feed WebSocket error: {e}")
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
