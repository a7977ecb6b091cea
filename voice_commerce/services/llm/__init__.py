"""
NLU backend using the Groq API.
Free-form completions used for intent analysis and reply wording.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, List, Dict

from groq import AsyncGroq

from voice_commerce.config import get_settings
from voice_commerce.core.exceptions import (
    LLMAPIException,
    LLMNotConfiguredException,
    LLMTimeoutException,
    LLMRateLimitException
)

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class LLMResponse:
    """Response from LLM completion."""
    content: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    processing_time_ms: Optional[float] = None


class LLMService:
    """
    NLU backend on Groq for low latency inference.

    The core treats every response as untrusted free text; structure is
    recovered by the intent parser, never assumed here.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._client: Optional[AsyncGroq] = None
        self._is_initialized = False
        self._api_key = api_key or settings.GROQ_API_KEY
        self._model = model or settings.LLM_MODEL_ID

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def initialize(self):
        """Initialize Groq client."""
        if not self._api_key:
            logger.warning("GROQ_API_KEY not set, NLU backend disabled")
            return

        self._client = AsyncGroq(api_key=self._api_key)
        self._is_initialized = True
        logger.info(f"LLM service initialized with model: {self._model}")

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> LLMResponse:
        """
        Generate a complete response.

        Args:
            messages: Chat messages
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: Seconds before giving up

        Returns:
            LLMResponse with content
        """
        if not self._is_initialized:
            raise LLMNotConfiguredException()

        timeout = timeout or settings.LLM_TIMEOUT_SECONDS
        start_time = time.time()

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
                    max_tokens=max_tokens or settings.LLM_MAX_TOKENS
                ),
                timeout=timeout
            )

            choice = response.choices[0]

            return LLMResponse(
                content=choice.message.content or "",
                finish_reason=choice.finish_reason,
                usage={
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens
                },
                processing_time_ms=(time.time() - start_time) * 1000
            )

        except asyncio.TimeoutError:
            raise LLMTimeoutException(timeout)
        except Exception as e:
            if "rate_limit" in str(e).lower():
                raise LLMRateLimitException()
            raise LLMAPIException(str(e))

    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """Prompt text in, response text out."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = await self.complete(messages)
        return response.content

    async def cleanup(self):
        """Cleanup resources."""
        if self._client is not None:
            await self._client.close()
        self._client = None
        self._is_initialized = False
        logger.info("LLM service cleaned up")
