"""
Conversation REST Endpoints.
Text turns and access to the conversation context of a session.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from voice_commerce.api.routes.voice import run_until_disconnect
from voice_commerce.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


class ConversationMessage(BaseModel):
    """Request model for sending a text turn."""
    text: str
    language: Optional[str] = None
    session_id: Optional[str] = None
    include_audio: bool = False


@router.post("/message")
async def send_message(
    request: Request,
    message: ConversationMessage,
    x_artisan_id: str = Header(...)
):
    """
    Send a text utterance and get the reply.
    Same engine as the voice route, minus transcription.
    """
    if not message.text.strip():
        raise HTTPException(status_code=400, detail="No text provided")

    session_id = message.session_id or f"text_{int(time.time() * 1000)}"
    orchestrator = request.app.state.orchestrator

    result = await run_until_disconnect(
        request,
        orchestrator.process_text_turn(session_id, x_artisan_id, message.text, message.language)
    )
    if result is None:
        return JSONResponse(status_code=499, content={"error": "CLIENT_DISCONNECTED"})

    return result.to_dict(include_audio=message.include_audio)


@router.get("/context/{session_id}")
async def get_context(
    request: Request,
    session_id: str,
    x_artisan_id: str = Header(...)
):
    """Current conversation context of a session."""
    context = await request.app.state.context_store.get(session_id, x_artisan_id)

    if context.conversation_turn == 0:
        raise HTTPException(status_code=404, detail="Session not found")

    return {
        "context": context.to_dict(),
        "summary": context.get_context_summary()
    }


@router.delete("/context/{session_id}")
async def reset_context(request: Request, session_id: str):
    """Forget a session's conversation context."""
    await request.app.state.context_store.delete(session_id)
    logger.info(f"Context reset for session {session_id}")
    return {"success": True, "sessionId": session_id}
