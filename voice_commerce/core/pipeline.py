"""
Voice Turn Orchestrator.
Coordinates one turn: STT → intent → action → reply → TTS, with the
conversation context read and written back around it.

States: Received → Transcribed → IntentResolved → ActionExecuted → ResponseReady.
An empty or unusable transcript ends the turn in Error with a localized
"didn't understand" reply.
"""

import asyncio
import base64
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from voice_commerce.config import get_settings
from voice_commerce.actions.registry import ActionExecutor
from voice_commerce.core.exceptions import (
    IntentAnalysisError,
    SessionConflictException,
    SessionStoreException
)
from voice_commerce.core.intent import IntentAnalysisResult, IntentAnalyzer
from voice_commerce.core.languages import is_supported, list_supported_languages, normalize_language
from voice_commerce.core.messages import MessageCatalog, catalog as default_catalog
from voice_commerce.core.responder import ResponseGenerator
from voice_commerce.core.session import ConversationContextStore

logger = logging.getLogger(__name__)
settings = get_settings()


def _elapsed_ms(start: Optional[float], end: Optional[float]) -> Optional[float]:
    if start and end:
        return (end - start) * 1000
    return None


@dataclass
class TurnMetrics:
    """Stage timings for a single turn."""
    start_time: float = field(default_factory=time.time)
    stt_start: Optional[float] = None
    stt_end: Optional[float] = None
    intent_start: Optional[float] = None
    intent_end: Optional[float] = None
    action_start: Optional[float] = None
    action_end: Optional[float] = None
    response_start: Optional[float] = None
    response_end: Optional[float] = None
    tts_latency_ms: Optional[float] = None

    @property
    def stt_latency_ms(self) -> Optional[float]:
        return _elapsed_ms(self.stt_start, self.stt_end)

    @property
    def intent_latency_ms(self) -> Optional[float]:
        return _elapsed_ms(self.intent_start, self.intent_end)

    @property
    def action_latency_ms(self) -> Optional[float]:
        return _elapsed_ms(self.action_start, self.action_end)

    @property
    def response_latency_ms(self) -> Optional[float]:
        return _elapsed_ms(self.response_start, self.response_end)

    @property
    def total_latency_ms(self) -> float:
        return (time.time() - self.start_time) * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stt_latency_ms": self.stt_latency_ms,
            "intent_latency_ms": self.intent_latency_ms,
            "action_latency_ms": self.action_latency_ms,
            "response_latency_ms": self.response_latency_ms,
            "tts_latency_ms": self.tts_latency_ms,
            "total_latency_ms": self.total_latency_ms
        }


@dataclass
class VoiceTurnResult:
    """Result of one voice or text turn."""
    success: bool
    text: str
    language: str
    action: str
    audio_response: Optional[bytes] = None
    data: Dict[str, Any] = field(default_factory=dict)
    follow_up: List[str] = field(default_factory=list)
    transcript: Optional[str] = None
    session_id: Optional[str] = None
    conversation_turn: Optional[int] = None
    intent: Optional[str] = None
    confidence: Optional[int] = None
    action_success: Optional[bool] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, include_audio: bool = True) -> Dict[str, Any]:
        payload = {
            "success": self.success,
            "sessionId": self.session_id,
            "transcript": self.transcript,
            "text": self.text,
            "language": self.language,
            "intent": self.intent,
            "confidence": self.confidence,
            "action": self.action,
            "actionSuccess": self.action_success,
            "data": self.data,
            "followUp": self.follow_up,
            "conversationTurn": self.conversation_turn,
            "metrics": self.metrics
        }
        if include_audio:
            payload["audioResponse"] = (
                base64.b64encode(self.audio_response).decode("ascii")
                if self.audio_response else None
            )
        return payload


class VoiceTurnOrchestrator:
    """
    The only entry point into the conversation engine.

    Turns of one session run under the store's per-session lock, and the
    context write carries a version check for writers in other processes.
    Collaborator failures degrade to localized replies; cancellation
    propagates so an abandoned turn writes nothing.
    """

    def __init__(
        self,
        stt_service: Any,
        llm_service: Any,
        tts_service: Any,
        context_store: ConversationContextStore,
        action_executor: Optional[ActionExecutor] = None,
        intent_analyzer: Optional[IntentAnalyzer] = None,
        response_generator: Optional[ResponseGenerator] = None,
        agent_logger: Any = None,
        messages: MessageCatalog = default_catalog
    ):
        self.stt = stt_service
        self.store = context_store
        self.analyzer = intent_analyzer or IntentAnalyzer(llm_service)
        self.executor = action_executor or ActionExecutor(messages=messages)
        self.responder = response_generator or ResponseGenerator(llm_service, tts_service, messages)
        self.logger = agent_logger
        self.messages = messages

    def list_supported_languages(self) -> List[Dict[str, str]]:
        return list_supported_languages()

    async def process_voice_turn(
        self,
        session_id: str,
        artisan_id: str,
        audio: bytes,
        language_hint: Optional[str] = None
    ) -> VoiceTurnResult:
        """Run one turn from uploaded audio."""
        metrics = TurnMetrics()
        language = normalize_language(language_hint)
        transcript = ""

        # ==================
        # Stage 1: STT
        # ==================
        metrics.stt_start = time.time()
        try:
            stt_result = await asyncio.wait_for(
                self.stt.transcribe(audio, language),
                timeout=settings.STT_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            logger.warning(f"Transcription timed out for session {session_id}")
            await self._log_error(session_id, "stt_timeout", f"No transcript after {settings.STT_TIMEOUT_SECONDS}s")
        except Exception as e:
            logger.warning(f"Transcription failed for session {session_id}: {e}")
            await self._log_error(session_id, "stt_error", str(e))
        else:
            if stt_result.language and is_supported(stt_result.language):
                language = normalize_language(stt_result.language)
            if stt_result.confidence >= settings.STT_CONFIDENCE_THRESHOLD:
                transcript = (stt_result.text or "").strip()
            else:
                logger.info(
                    f"Low STT confidence {stt_result.confidence:.2f} for session {session_id}"
                )
        metrics.stt_end = time.time()

        if not transcript:
            return await self._failure_turn(session_id, language, "did_not_understand", metrics)

        return await self._run_turn(session_id, artisan_id, transcript, language, metrics)

    async def process_text_turn(
        self,
        session_id: str,
        artisan_id: str,
        text: str,
        language: Optional[str] = None
    ) -> VoiceTurnResult:
        """Run one turn from text, entering at Transcribed."""
        metrics = TurnMetrics()
        language = normalize_language(language)
        transcript = (text or "").strip()

        if not transcript:
            return await self._failure_turn(session_id, language, "did_not_understand", metrics)

        return await self._run_turn(session_id, artisan_id, transcript, language, metrics)

    async def _run_turn(
        self,
        session_id: str,
        artisan_id: str,
        transcript: str,
        language: str,
        metrics: TurnMetrics
    ) -> VoiceTurnResult:
        try:
            async with self.store.lock(session_id):
                context = await self.store.get(session_id, artisan_id)
                if context.conversation_turn == 0 and self.logger:
                    await self.logger.log_session_start(session_id, artisan_id, language)

                # ==================
                # Stage 2: Intent
                # ==================
                metrics.intent_start = time.time()
                try:
                    intent_result = await self.analyzer.analyze(transcript, language, context)
                except IntentAnalysisError as e:
                    logger.warning(f"Intent analysis failed, falling back to help: {e.message}")
                    intent_result = IntentAnalysisResult.fallback(transcript)
                metrics.intent_end = time.time()

                # ==================
                # Stage 3: Action
                # ==================
                metrics.action_start = time.time()
                action_result = await self.executor.execute(intent_result, artisan_id, context, language)
                metrics.action_end = time.time()

                # ==================
                # Stage 4: Reply
                # ==================
                metrics.response_start = time.time()
                response = await self.responder.generate(action_result, intent_result, language, context)
                metrics.response_end = time.time()
                metrics.tts_latency_ms = response.tts_latency_ms

                written = await self.store.put(context.advance(
                    intent=intent_result.intent.value,
                    action=action_result.action,
                    product_creation=action_result.product_creation,
                    language=language
                ))

        except SessionConflictException as e:
            logger.warning(f"Session conflict: {e.message}")
            await self._log_error(session_id, "session_conflict", e.message)
            return await self._failure_turn(session_id, language, "session_conflict", metrics, transcript)
        except SessionStoreException as e:
            logger.error(f"Session store error: {e.message}")
            await self._log_error(session_id, "session_store", e.message)
            return await self._failure_turn(session_id, language, "technical_error", metrics, transcript)
        except Exception as e:
            logger.exception(f"Turn error: {e}")
            await self._log_error(session_id, "turn_error", str(e))
            return await self._failure_turn(session_id, language, "technical_error", metrics, transcript)

        result = VoiceTurnResult(
            success=True,
            text=response.text,
            audio_response=response.audio_response,
            language=language,
            action=action_result.action,
            data=action_result.data,
            follow_up=response.follow_up,
            transcript=transcript,
            session_id=session_id,
            conversation_turn=written.conversation_turn,
            intent=intent_result.intent.value,
            confidence=intent_result.confidence,
            action_success=action_result.success,
            metrics=metrics.to_dict()
        )

        if self.logger:
            if action_result.action == "product_created":
                await self.logger.log_product_created(
                    session_id, artisan_id, action_result.data.get("product", {})
                )
            await self.logger.log_turn_complete(
                session_id,
                transcript,
                result.text,
                language,
                result.intent,
                result.confidence,
                result.action,
                action_result.success,
                result.conversation_turn,
                result.metrics
            )

        return result

    async def _failure_turn(
        self,
        session_id: str,
        language: str,
        message_key: str,
        metrics: TurnMetrics,
        transcript: Optional[str] = None
    ) -> VoiceTurnResult:
        """Localized failure reply, still synthesized; the context is not written."""
        text = self.messages.render(message_key, language)

        tts_start = time.time()
        audio = await self.responder.synthesize(text, language)
        metrics.tts_latency_ms = (time.time() - tts_start) * 1000

        return VoiceTurnResult(
            success=False,
            text=text,
            audio_response=audio,
            language=language,
            action=message_key,
            transcript=transcript,
            session_id=session_id,
            metrics=metrics.to_dict()
        )

    async def _log_error(self, session_id: str, error_type: str, message: str):
        if self.logger:
            await self.logger.log_error(session_id, error_type, message)
