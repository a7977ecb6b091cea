"""Services module initialization."""

from voice_commerce.services.stt import STTService
from voice_commerce.services.tts import TTSService
from voice_commerce.services.llm import LLMService
from voice_commerce.services.cache import create_session_cache

__all__ = [
    "STTService",
    "TTSService",
    "LLMService",
    "create_session_cache"
]
