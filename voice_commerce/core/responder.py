"""
Response Generator.
Turns an action result into the localized reply text, follow-up suggestions
and synthesized audio.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

from voice_commerce.config import get_settings
from voice_commerce.core.intent import IntentAnalysisResult
from voice_commerce.core.languages import get_language, resolve_voice_profile
from voice_commerce.core.messages import MessageCatalog, catalog as default_catalog
from voice_commerce.core.session import ConversationContext

logger = logging.getLogger(__name__)
settings = get_settings()


# Next-utterance suggestions per action, as message keys
SUGGESTIONS = {
    "product_created": ["suggest_list_products", "suggest_add_product"],
    "product_creation_cancelled": ["suggest_add_product", "suggest_list_products"],
    "product_list": ["suggest_pricing", "suggest_analytics"],
    "analytics": ["suggest_orders", "suggest_list_products"],
    "pricing": ["suggest_list_products", "suggest_add_product"],
    "orders": ["suggest_analytics", "suggest_list_products"],
    "help": ["suggest_add_product", "suggest_list_products", "suggest_analytics"],
    "unknown": ["suggest_add_product", "suggest_orders"],
}

SUMMARY_SYSTEM_PROMPT = """You are a friendly voice assistant for an Indian artisan.
Reply in {language} only, in at most two short spoken sentences.
Use only the facts given. Do not use markdown, lists or emojis."""


@dataclass
class GeneratedResponse:
    text: str
    audio_response: Optional[bytes] = None
    follow_up: List[str] = field(default_factory=list)
    tts_latency_ms: Optional[float] = None


class ResponseGenerator:
    """
    Composes replies.

    Deterministic flows render catalog templates; open-ended summaries are
    reworded by the NLU backend when it is available, falling back to the
    handler's catalog text. Voice is best-effort, text is mandatory.
    """

    def __init__(
        self,
        llm_service: Any,
        tts_service: Any,
        messages: MessageCatalog = default_catalog
    ):
        self.llm = llm_service
        self.tts = tts_service
        self.messages = messages

    async def generate(
        self,
        action_result: Any,
        intent_result: IntentAnalysisResult,
        language: str,
        context: ConversationContext
    ) -> GeneratedResponse:
        text = await self.compose_text(action_result, language)

        tts_start = time.time()
        audio = await self.synthesize(text, language)

        return GeneratedResponse(
            text=text,
            audio_response=audio,
            follow_up=self.follow_up(action_result, intent_result, language),
            tts_latency_ms=(time.time() - tts_start) * 1000
        )

    async def compose_text(self, action_result: Any, language: str) -> str:
        fallback = action_result.message or self.messages.render("unknown_intent", language)

        if not (action_result.success and action_result.open_ended):
            return fallback
        if self.llm is None or not getattr(self.llm, "is_initialized", True):
            return fallback

        prompt = (
            f"The artisan asked about: {action_result.action}\n"
            f"Summary: {fallback}\n"
            f"Data: {json.dumps(action_result.data, ensure_ascii=False, default=str)[:1500]}"
        )
        system = SUMMARY_SYSTEM_PROMPT.format(language=get_language(language).native_name)

        try:
            reply = await asyncio.wait_for(
                self.llm.generate(prompt, system=system),
                timeout=settings.LLM_TIMEOUT_SECONDS
            )
        except Exception as e:
            logger.warning(f"Summary generation failed, using template: {e}")
            return fallback

        reply = (reply or "").strip()
        return reply or fallback

    async def synthesize(self, text: str, language: str) -> Optional[bytes]:
        """Audio for the reply, or None when synthesis fails or times out."""
        if self.tts is None or not text:
            return None

        try:
            audio = await asyncio.wait_for(
                self.tts.synthesize(text, language, resolve_voice_profile(language)),
                timeout=settings.TTS_TIMEOUT_SECONDS
            )
        except Exception as e:
            logger.warning(f"Synthesis failed, replying with text only: {e}")
            return None

        return audio or None

    def follow_up(
        self,
        action_result: Any,
        intent_result: Optional[IntentAnalysisResult],
        language: str
    ) -> List[str]:
        """Analyzer questions first, then localized suggestions, without repeats."""
        items = list(intent_result.follow_up) if intent_result else []
        for key in SUGGESTIONS.get(action_result.action, []):
            items.append(self.messages.render(key, language))

        seen = set()
        unique = []
        for item in items:
            if item not in seen:
                seen.add(item)
                unique.append(item)
        return unique
