from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from voice_commerce.api.routes import conversation, health, voice
from voice_commerce.api.routes.voice import run_until_disconnect

from tests.conftest import ARTISAN_ID, StubTranscriber

HEADERS = {"X-Artisan-Id": ARTISAN_ID}
WAV = ("turn.wav", b"RIFF" + b"\x00" * 64, "audio/wav")


@pytest.fixture
def stt() -> StubTranscriber:
    return StubTranscriber(text="I want to add a new product")


@pytest.fixture
def client(make_orchestrator, context_store, session_cache, stt):
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(voice.router, prefix="/api/v1/voice")
    app.include_router(conversation.router, prefix="/api/v1/conversation")
    app.state.orchestrator = make_orchestrator(stt=stt)
    app.state.context_store = context_store
    app.state.session_cache = session_cache

    with TestClient(app) as test_client:
        yield test_client


def test_health_endpoints(client) -> None:
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/live").json()["status"] == "alive"


def test_readiness_requires_database(client, monkeypatch) -> None:
    data = client.get("/health/ready").json()
    assert data["status"] == "not_ready"
    assert data["checks"] == {"orchestrator": True, "database": False, "session_cache": True}

    monkeypatch.setattr("voice_commerce.db.database.is_initialized", lambda: True)
    assert client.get("/health/ready").json()["status"] == "ready"


def test_supported_languages(client) -> None:
    data = client.get("/api/v1/voice/supported-languages").json()

    assert data["total"] == 15
    assert data["defaultLanguage"] == "hi-IN"
    assert {"code": "mr-IN", "displayName": "Marathi", "nativeName": "मराठी", "voiceProfileId": "mr-IN-AarohiNeural"} in data["languages"]


def test_voice_command_runs_a_turn(client, stt) -> None:
    response = client.post(
        "/api/v1/voice/command",
        files={"audio": WAV},
        data={"session_id": "web-1", "language_hint": "en-IN"},
        headers=HEADERS
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["sessionId"] == "web-1"
    assert data["action"] == "product_creation_start"
    assert data["conversationTurn"] == 1
    assert base64.b64decode(data["audioResponse"]).startswith(b"audio:")
    assert stt.calls[0]["language_hint"] == "en-IN"


def test_voice_command_generates_session_id(client) -> None:
    data = client.post("/api/v1/voice/command", files={"audio": WAV}, headers=HEADERS).json()

    assert data["sessionId"].startswith("voice_")
    assert data["language"] == "hi-IN"


def test_voice_command_rejects_non_audio(client) -> None:
    response = client.post(
        "/api/v1/voice/command",
        files={"audio": ("notes.txt", b"hello", "text/plain")},
        headers=HEADERS
    )

    assert response.status_code == 415


def test_voice_command_rejects_empty_upload(client) -> None:
    response = client.post(
        "/api/v1/voice/command",
        files={"audio": ("empty.wav", b"", "audio/wav")},
        headers=HEADERS
    )

    assert response.status_code == 400


def test_voice_command_rejects_oversized_upload(client, monkeypatch) -> None:
    monkeypatch.setattr("voice_commerce.api.routes.voice.settings.MAX_AUDIO_BYTES", 10)

    response = client.post("/api/v1/voice/command", files={"audio": WAV}, headers=HEADERS)

    assert response.status_code == 413


def test_voice_command_requires_artisan_header(client) -> None:
    response = client.post("/api/v1/voice/command", files={"audio": WAV})

    assert response.status_code == 422


def test_text_turn_and_context_lifecycle(client) -> None:
    response = client.post(
        "/api/v1/conversation/message",
        json={"text": "I want to add a new product", "language": "en", "session_id": "chat-1"},
        headers=HEADERS
    )
    data = response.json()

    assert response.status_code == 200
    assert data["action"] == "product_creation_start"
    assert data["language"] == "en-IN"
    assert "audioResponse" not in data

    context = client.get("/api/v1/conversation/context/chat-1", headers=HEADERS).json()
    assert context["context"]["conversationTurn"] == 1
    assert context["context"]["productCreation"] == {"step": "name", "data": {}}
    assert "waiting for: name" in context["summary"]

    assert client.delete("/api/v1/conversation/context/chat-1").json()["success"] is True
    assert client.get("/api/v1/conversation/context/chat-1", headers=HEADERS).status_code == 404


def test_text_turn_can_include_audio(client) -> None:
    data = client.post(
        "/api/v1/conversation/message",
        json={"text": "what can you do", "include_audio": True},
        headers=HEADERS
    ).json()

    assert data["audioResponse"]
    assert data["sessionId"].startswith("text_")


def test_empty_text_is_rejected(client) -> None:
    response = client.post("/api/v1/conversation/message", json={"text": "  "}, headers=HEADERS)

    assert response.status_code == 400


def test_unknown_session_context_is_404(client) -> None:
    assert client.get("/api/v1/conversation/context/nope", headers=HEADERS).status_code == 404


def test_voice_status_reports_collaborators(client) -> None:
    data = client.get("/api/v1/voice/status").json()

    assert data["engineInitialized"] is True
    assert data["supportedLanguages"] == 15
    assert data["sessionCache"] == "InMemorySessionCache"
    assert data["activeSessionLocks"] == 0


class GoneRequest:
    """A request whose client has already hung up."""

    url = SimpleNamespace(path="/api/v1/conversation/message")

    async def is_disconnected(self) -> bool:
        return True


@pytest.mark.asyncio
async def test_turn_is_cancelled_when_client_disconnects(monkeypatch) -> None:
    monkeypatch.setattr("voice_commerce.api.routes.voice.DISCONNECT_POLL_SECONDS", 0.01)
    finished = []

    async def slow_turn():
        await asyncio.sleep(5)
        finished.append(True)

    assert await run_until_disconnect(GoneRequest(), slow_turn()) is None
    assert finished == []


def test_text_turn_reports_client_disconnect(client, monkeypatch) -> None:
    async def disconnected(request, coro):
        coro.close()
        return None

    monkeypatch.setattr("voice_commerce.api.routes.conversation.run_until_disconnect", disconnected)

    response = client.post("/api/v1/conversation/message", json={"text": "what can you do"}, headers=HEADERS)

    assert response.status_code == 499
    assert response.json() == {"error": "CLIENT_DISCONNECTED"}
