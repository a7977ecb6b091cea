"""Core module initialization."""

from voice_commerce.core.exceptions import (
    VoiceCommerceException,
    STTException,
    TTSException,
    LLMException,
    IntentAnalysisError,
    SessionException
)
from voice_commerce.core.session import ConversationContext, ConversationContextStore

__all__ = [
    "VoiceCommerceException",
    "STTException",
    "TTSException",
    "LLMException",
    "IntentAnalysisError",
    "SessionException",
    "ConversationContext",
    "ConversationContextStore"
]
