from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from voice_commerce.actions.registry import ActionExecutor, ActionRegistry, BusinessStore
from voice_commerce.core.intent import IntentAnalyzer
from voice_commerce.core.pipeline import VoiceTurnOrchestrator
from voice_commerce.core.responder import ResponseGenerator
from voice_commerce.core.session import ConversationContextStore
from voice_commerce.db.database import close_db, init_db
from voice_commerce.db.repositories import ArtisanRepository, OrderRepository, ProductRepository
from voice_commerce.services.cache import InMemorySessionCache
from voice_commerce.services.stt import STTResult


ARTISAN_ID = "art_rajesh"


class StubTranscriber:
    """Returns a fixed transcript for every clip."""

    def __init__(self, text: str = "", language: Optional[str] = None, confidence: float = 0.9) -> None:
        self.text = text
        self.language = language
        self.confidence = confidence
        self.calls: List[Dict[str, Any]] = []
        self.is_initialized = True

    async def transcribe(self, audio_data: bytes, language_hint: Optional[str] = None) -> STTResult:
        self.calls.append({"audio": audio_data, "language_hint": language_hint})
        return STTResult(
            text=self.text,
            language=self.language or language_hint or "hi-IN",
            confidence=self.confidence,
            audio_duration_ms=1000.0
        )


class StubSynthesizer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []
        self.is_initialized = True

    async def synthesize(self, text: str, language: str = "hi-IN", voice: Optional[str] = None) -> bytes:
        self.calls.append({"text": text, "language": language, "voice": voice})
        if self.fail:
            raise RuntimeError("voice backend down")
        return f"audio:{text}".encode("utf-8")


class StubNLU:
    """
    NLU backend double.

    `classify` maps an utterance to the raw reply; the system prompt tells
    classification calls apart from reply rewording calls.
    """

    def __init__(
        self,
        classify: Optional[Callable[[str], str]] = None,
        reword: Optional[str] = None,
        error: Optional[Exception] = None
    ) -> None:
        self.classify = classify or (lambda utterance: json.dumps({"intent": "help", "confidence": 80}))
        self.reword = reword
        self.error = error
        self.prompts: List[str] = []
        self.is_initialized = True

    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if system and system.startswith("You are the intent classifier"):
            utterance = prompt.rsplit("Utterance: ", 1)[-1].strip().strip('"')
            return self.classify(utterance)
        if self.reword is None:
            raise RuntimeError("no rewording configured")
        return self.reword


def intent_reply(intent: str, confidence: int = 90, **entities: Any) -> str:
    return json.dumps({"intent": intent, "entities": entities, "confidence": confidence})


def keyword_classifier(utterance: str) -> str:
    """Small rule set standing in for the backend in end-to-end turns."""
    lowered = utterance.lower()
    if "new product" in lowered or "नया प्रोडक्ट" in utterance:
        return intent_reply("product_create", 95)
    if "show my products" in lowered:
        return intent_reply("product_list")
    if "sales" in lowered:
        return intent_reply("analytics")
    if "orders" in lowered:
        return intent_reply("orders")
    if "price" in lowered or "rupees" in lowered:
        return intent_reply("pricing", 70)
    return intent_reply("unknown", 30)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
async def database():
    await init_db("sqlite+aiosqlite:///:memory:")
    yield
    await close_db()


@pytest.fixture
async def artisan(database):
    return await ArtisanRepository().create({
        "id": ARTISAN_ID,
        "name": "Rajesh Kumar",
        "craft": "pottery",
        "total_sales": 125000,
        "total_orders": 50,
        "avg_order_value": 2500,
        "customer_rating": 4.8,
        "digital_score": 85
    })


@pytest.fixture
def store() -> BusinessStore:
    return BusinessStore(
        products=ProductRepository(),
        artisans=ArtisanRepository(),
        orders=OrderRepository()
    )


@pytest.fixture
def session_cache() -> InMemorySessionCache:
    return InMemorySessionCache()


@pytest.fixture
def context_store(session_cache) -> ConversationContextStore:
    return ConversationContextStore(session_cache, ttl_seconds=1800)


@pytest.fixture
def make_orchestrator(context_store, store):
    def _factory(
        stt: Optional[StubTranscriber] = None,
        nlu: Optional[StubNLU] = None,
        tts: Optional[StubSynthesizer] = None,
        business_store: Optional[BusinessStore] = None,
        agent_logger: Any = None
    ) -> VoiceTurnOrchestrator:
        nlu = nlu or StubNLU(classify=keyword_classifier)
        tts = tts or StubSynthesizer()
        return VoiceTurnOrchestrator(
            stt_service=stt or StubTranscriber(),
            llm_service=nlu,
            tts_service=tts,
            context_store=context_store,
            action_executor=ActionExecutor(
                registry=ActionRegistry().initialize(),
                store=business_store or store
            ),
            intent_analyzer=IntentAnalyzer(nlu),
            response_generator=ResponseGenerator(nlu, tts),
            agent_logger=agent_logger
        )

    return _factory
