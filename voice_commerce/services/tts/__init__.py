"""
Text-to-Speech Service using edge-tts neural voices.
One voice per registered locale; replies are synthesized sentence by sentence.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import AsyncIterator, Optional, List

import edge_tts

from voice_commerce.config import get_settings
from voice_commerce.core.exceptions import (
    TTSException,
    TTSUnsupportedLanguageException
)
from voice_commerce.core.languages import (
    SUPPORTED_LANGUAGES,
    is_supported,
    normalize_language,
    resolve_voice_profile
)

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class TTSResult:
    """Result from text-to-speech synthesis."""
    audio_data: bytes
    voice: str
    language: str
    processing_time_ms: Optional[float] = None


class TTSService:
    """
    Text-to-Speech service using edge-tts.

    Supports:
    - Every locale of the language registry
    - Streaming synthesis for low latency
    - Sentence-by-sentence generation
    """

    def __init__(self):
        self._is_initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def initialize(self):
        """edge-tts needs no local model; the voice table comes from the registry."""
        self._is_initialized = True
        logger.info(f"TTS service initialized with {len(SUPPORTED_LANGUAGES)} voices")

    async def synthesize(
        self,
        text: str,
        language: str = "hi-IN",
        voice: Optional[str] = None
    ) -> bytes:
        """
        Synthesize speech from text.

        Args:
            text: Text to synthesize
            language: Registered locale code
            voice: Optional voice identifier, defaults to the locale's voice

        Returns:
            MP3 audio bytes
        """
        result = await self.synthesize_result(text, language, voice)
        return result.audio_data

    async def synthesize_result(
        self,
        text: str,
        language: str = "hi-IN",
        voice: Optional[str] = None
    ) -> TTSResult:
        if not is_supported(language):
            raise TTSUnsupportedLanguageException(language, list(SUPPORTED_LANGUAGES))

        language = normalize_language(language)
        voice = voice or resolve_voice_profile(language)

        if not text.strip():
            return TTSResult(audio_data=b"", voice=voice, language=language)

        start_time = time.time()
        audio_data = b""
        async for chunk in self.synthesize_streaming(text, language, voice):
            audio_data += chunk

        return TTSResult(
            audio_data=audio_data,
            voice=voice,
            language=language,
            processing_time_ms=(time.time() - start_time) * 1000
        )

    async def synthesize_streaming(
        self,
        text: str,
        language: str = "hi-IN",
        voice: Optional[str] = None
    ) -> AsyncIterator[bytes]:
        """
        Stream synthesized audio in chunks.
        Enables playback to start before full synthesis complete.
        """
        voice = voice or resolve_voice_profile(language)

        try:
            for sentence in self._split_into_sentences(text):
                communicate = edge_tts.Communicate(sentence, voice)
                async for chunk in communicate.stream():
                    if chunk["type"] == "audio":
                        yield chunk["data"]

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"TTS synthesis error ({voice}): {e}")
            raise TTSException(f"TTS synthesis failed: {e}", details={"voice": voice})

    def _split_into_sentences(self, text: str) -> List[str]:
        """Split text into sentences for streaming."""
        # Include Hindi danda (।)
        sentences = re.split(r'(?<=[.!?।])\s+', text)

        return [s.strip() for s in sentences if s.strip()]

    async def cleanup(self):
        """Cleanup resources."""
        self._is_initialized = False
        logger.info("TTS service cleaned up")
