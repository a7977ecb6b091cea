"""
Voice Command Endpoints.
Thin HTTP adapter over the voice turn orchestrator.
"""

import asyncio
import logging
import time
from contextlib import suppress
from typing import Optional

from fastapi import APIRouter, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from voice_commerce.config import get_settings
from voice_commerce.core.languages import DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()

ALLOWED_AUDIO_TYPES = {
    "audio/wav",
    "audio/x-wav",
    "audio/wave",
    "audio/mp3",
    "audio/mpeg",
    "audio/webm",
    "audio/ogg",
    "audio/m4a",
    "audio/x-m4a",
    "application/octet-stream"
}

# Seconds between client disconnect checks while a turn runs
DISCONNECT_POLL_SECONDS = 0.5


async def run_until_disconnect(request: Request, coro):
    """
    Run a turn as a task and cancel it if the client goes away.

    Returns None when the turn was cancelled.
    """
    task = asyncio.create_task(coro)

    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        if done:
            return task.result()

        if await request.is_disconnected():
            logger.info(f"Client disconnected from {request.url.path}, cancelling turn")
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            return None


@router.post("/command")
async def voice_command(
    request: Request,
    audio: UploadFile = File(...),
    session_id: Optional[str] = Form(None),
    language_hint: str = Form(DEFAULT_LANGUAGE),
    x_artisan_id: str = Header(...)
):
    """
    Process one spoken command.

    Multipart fields:
    - audio: WAV/MP3/WebM/OGG/M4A recording
    - session_id: conversation to continue (a new one is started when absent)
    - language_hint: locale the artisan is expected to speak

    The reply audio is returned base64 encoded in `audioResponse`.
    """
    if audio.content_type not in ALLOWED_AUDIO_TYPES:
        raise HTTPException(status_code=415, detail="Only audio files are allowed")

    audio_data = await audio.read()
    if not audio_data:
        raise HTTPException(status_code=400, detail="Audio file is required")
    if len(audio_data) > settings.MAX_AUDIO_BYTES:
        raise HTTPException(status_code=413, detail="Audio file is too large")

    session_id = session_id or f"voice_{int(time.time() * 1000)}"
    orchestrator = request.app.state.orchestrator

    result = await run_until_disconnect(
        request,
        orchestrator.process_voice_turn(session_id, x_artisan_id, audio_data, language_hint)
    )
    if result is None:
        # Client closed request
        return JSONResponse(status_code=499, content={"error": "CLIENT_DISCONNECTED"})

    return result.to_dict()


@router.get("/supported-languages")
async def supported_languages(request: Request):
    """List the locales the engine can hear and speak."""
    languages = request.app.state.orchestrator.list_supported_languages()
    return {
        "languages": languages,
        "total": len(languages),
        "defaultLanguage": DEFAULT_LANGUAGE
    }


@router.get("/status")
async def voice_status(request: Request):
    """Engine status and collaborator readiness."""
    state = request.app.state

    def ready(name: str) -> bool:
        service = getattr(state, name, None)
        return bool(service and getattr(service, "is_initialized", False))

    return {
        "engineInitialized": hasattr(state, "orchestrator"),
        "supportedLanguages": len(state.orchestrator.list_supported_languages()),
        "services": {
            "speechToText": ready("stt_service"),
            "textToSpeech": ready("tts_service"),
            "intentRecognition": ready("llm_service")
        },
        "sessionCache": type(state.session_cache).__name__ if hasattr(state, "session_cache") else None,
        "activeSessionLocks": state.context_store.active_locks() if hasattr(state, "context_store") else 0,
        "version": settings.APP_VERSION
    }
