"""
Core exceptions for the Voice Commerce Engine.
Custom exception classes for structured error handling.
"""

from typing import Optional, Dict, Any


class VoiceCommerceException(Exception):
    """Base exception for Voice Commerce Engine errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "VOICE_COMMERCE_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# =========================
# STT Exceptions
# =========================

class STTException(VoiceCommerceException):
    """Base exception for STT errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="STT_ERROR",
            status_code=500,
            details=details
        )


class STTModelNotLoadedException(STTException):
    """Raised when STT model is not loaded."""

    def __init__(self):
        super().__init__(
            message="STT model is not loaded. Please wait for initialization.",
            details={"error_type": "model_not_loaded"}
        )


class STTNoAudioException(STTException):
    """Raised when no audio is detected."""

    def __init__(self):
        super().__init__(
            message="No audio detected in input",
            details={"error_type": "no_audio"}
        )


# =========================
# TTS Exceptions
# =========================

class TTSException(VoiceCommerceException):
    """Base exception for TTS errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="TTS_ERROR",
            status_code=500,
            details=details
        )


class TTSUnsupportedLanguageException(TTSException):
    """Raised when TTS language is not supported."""

    def __init__(self, language: str, supported: list):
        super().__init__(
            message=f"Language '{language}' is not supported for TTS",
            details={"language": language, "supported_languages": supported}
        )


# =========================
# LLM Exceptions
# =========================

class LLMException(VoiceCommerceException):
    """Base exception for NLU backend errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="LLM_ERROR",
            status_code=500,
            details=details
        )


class LLMNotConfiguredException(LLMException):
    """Raised when the NLU backend has no client (missing API key)."""

    def __init__(self):
        super().__init__(
            message="LLM backend is not configured",
            details={"error_type": "not_configured"}
        )


class LLMAPIException(LLMException):
    """Raised when Groq API returns an error."""

    def __init__(self, api_error: str, status_code: int = 500):
        super().__init__(
            message=f"LLM API error: {api_error}",
            details={"api_error": api_error, "api_status_code": status_code}
        )


class LLMTimeoutException(LLMException):
    """Raised when LLM processing times out."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"LLM processing timed out after {timeout_seconds} seconds",
            details={"timeout_seconds": timeout_seconds}
        )


class LLMRateLimitException(LLMException):
    """Raised when LLM API rate limit is exceeded."""

    def __init__(self, retry_after: Optional[float] = None):
        super().__init__(
            message="LLM API rate limit exceeded",
            details={"retry_after_seconds": retry_after}
        )


# =========================
# Intent Exceptions
# =========================

class IntentAnalysisError(VoiceCommerceException):
    """Raised when an utterance could not be classified."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="INTENT_ERROR",
            status_code=500,
            details=details
        )


class IntentParseError(IntentAnalysisError):
    """Raised by a parsing stage that found nothing usable in the backend output."""

    def __init__(self, stage: str, reason: str):
        super().__init__(
            message=f"Intent parse stage '{stage}' failed: {reason}",
            details={"stage": stage, "reason": reason}
        )


# =========================
# Session Exceptions
# =========================

class SessionException(VoiceCommerceException):
    """Base exception for session errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400
    ):
        super().__init__(
            message=message,
            error_code="SESSION_ERROR",
            status_code=status_code,
            details=details
        )


class SessionStoreException(SessionException):
    """Raised when the session cache cannot be read or written."""

    def __init__(self, session_id: str, error: str):
        super().__init__(
            message=f"Session cache unavailable for '{session_id}': {error}",
            details={"session_id": session_id, "error": error},
            status_code=503
        )


class SessionConflictException(SessionException):
    """Raised when a context write loses an optimistic version check."""

    def __init__(self, session_id: str, expected_version: int, actual_version: Optional[int]):
        super().__init__(
            message=f"Session '{session_id}' was modified concurrently",
            details={
                "session_id": session_id,
                "expected_version": expected_version,
                "actual_version": actual_version
            },
            status_code=409
        )
