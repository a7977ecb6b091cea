"""
Speech-to-Text Service using AI4Bharat IndicConformer.
Transcribes one uploaded voice command into text plus detected language.
"""

import asyncio
import io
import logging
import time
from dataclasses import dataclass
from typing import Optional, List

import numpy as np

from voice_commerce.config import get_settings
from voice_commerce.core.exceptions import (
    STTException,
    STTModelNotLoadedException,
    STTNoAudioException
)
from voice_commerce.core.languages import normalize_language, is_supported

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class STTResult:
    """Result from speech-to-text transcription."""
    text: str
    language: str
    confidence: float
    audio_duration_ms: int
    alternatives: Optional[List[str]] = None
    processing_time_ms: Optional[float] = None


class STTService:
    """
    Speech-to-Text service using AI4Bharat IndicConformer.

    Supports:
    - 22 Indian languages through one multilingual checkpoint
    - CTC and RNNT decoding strategies
    - Script-based language detection
    """

    def __init__(self):
        self._model = None
        self._is_initialized = False
        self._device = "cuda"

        self._supported_languages = [
            "as", "bn", "brx", "doi", "gu", "hi", "kn", "kok", "ks",
            "mai", "ml", "mni", "mr", "ne", "or", "pa", "sa", "sat",
            "sd", "ta", "te", "ur"
        ]

        # Options: "ctc" or "rnnt"
        self._decoder = "ctc"

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def initialize(self):
        """Load models in a worker thread so startup is not blocked."""
        try:
            logger.info("Initializing STT service...")

            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._load_models)

            self._is_initialized = self._model is not None
            if self._is_initialized:
                logger.info("STT service initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize STT service: {e}")
            self._is_initialized = False

    def _load_models(self):
        """Load AI4Bharat IndicConformer model (runs in thread pool)."""
        try:
            import torch
            from transformers import AutoModel
        except ImportError as e:
            logger.warning(f"STT dependencies not installed ({e}); install the 'models' extra")
            return

        if not torch.cuda.is_available():
            logger.warning("CUDA not available, using CPU for STT")
            self._device = "cpu"

        model_id = settings.STT_MODEL_ID
        logger.info(f"Loading STT model: {model_id}")

        self._model = AutoModel.from_pretrained(
            model_id,
            trust_remote_code=True,
            token=settings.HF_TOKEN
        )

        logger.info(f"STT model loaded on device: {self._device}")

    async def transcribe(
        self,
        audio_data: bytes,
        language_hint: Optional[str] = None
    ) -> STTResult:
        """
        Transcribe complete audio data.

        Args:
            audio_data: WAV file bytes or raw 16kHz 16-bit mono PCM
            language_hint: Locale or ISO code hint

        Returns:
            STTResult with transcription and metadata
        """
        if not self._is_initialized:
            raise STTModelNotLoadedException()

        start_time = time.time()

        try:
            audio_array = self._decode_audio(audio_data)

            # Less than 100ms
            if len(audio_array) < settings.AUDIO_SAMPLE_RATE // 10:
                raise STTNoAudioException()

            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(
                None,
                self._transcribe_sync,
                audio_array,
                language_hint
            )

            result.processing_time_ms = (time.time() - start_time) * 1000
            return result

        except STTException:
            raise
        except Exception as e:
            logger.error(f"Transcription error: {e}")
            raise STTException(f"Transcription failed: {e}")

    def _transcribe_sync(
        self,
        audio_array: np.ndarray,
        language_hint: Optional[str]
    ) -> STTResult:
        """Synchronous transcription (runs in thread pool)."""
        import torch

        wav = torch.from_numpy(audio_array).float().unsqueeze(0)

        hint = normalize_language(language_hint).split("-")[0]
        language = hint if hint in self._supported_languages else "hi"

        transcription = self._model(wav, language, self._decoder)
        text = transcription.strip() if transcription else ""

        return STTResult(
            text=text,
            language=self._detect_language(text, language_hint),
            # IndicConformer doesn't return confidence directly
            confidence=0.9 if text else 0.0,
            audio_duration_ms=int(len(audio_array) / settings.AUDIO_SAMPLE_RATE * 1000)
        )

    def _detect_language(
        self,
        text: str,
        hint: Optional[str] = None
    ) -> str:
        """Simple language detection based on script."""
        fallback = normalize_language(hint)
        letters = text.replace(" ", "")
        if not letters:
            return fallback

        devanagari = sum(1 for c in letters if 'ऀ' <= c <= 'ॿ')
        bengali = sum(1 for c in letters if 'ঀ' <= c <= '৿')
        latin = sum(1 for c in letters if 'a' <= c.lower() <= 'z')
        total = len(letters)

        if devanagari / total > 0.5:
            # Hindi, Marathi, Nepali and Sanskrit share the script
            return fallback if fallback in ("hi-IN", "mr-IN", "ne-IN", "sa-IN") else "hi-IN"
        if bengali / total > 0.5:
            return fallback if fallback in ("bn-IN", "as-IN") else "bn-IN"
        if latin / total > 0.5:
            # Romanized Hindi is common; trust an explicit hint over the script
            return fallback if hint and is_supported(hint) else "en-IN"

        return fallback

    def _decode_audio(self, audio_bytes: bytes) -> np.ndarray:
        """Decode upload bytes to mono float32 samples in [-1, 1]."""
        if audio_bytes[:4] == b"RIFF":
            import soundfile as sf

            data, samplerate = sf.read(io.BytesIO(audio_bytes), dtype="float32")
            if data.ndim > 1:
                data = np.mean(data, axis=1)
            if samplerate != settings.AUDIO_SAMPLE_RATE:
                import torch
                import torchaudio

                tensor = torch.from_numpy(data).float().unsqueeze(0)
                resampler = torchaudio.transforms.Resample(
                    orig_freq=samplerate,
                    new_freq=settings.AUDIO_SAMPLE_RATE
                )
                data = resampler(tensor).squeeze(0).numpy()
            return data.astype(np.float32)

        # Raw 16-bit PCM; drop a trailing odd byte
        usable = len(audio_bytes) - (len(audio_bytes) % 2)
        audio_array = np.frombuffer(audio_bytes[:usable], dtype=np.int16)
        return audio_array.astype(np.float32) / 32768.0

    async def cleanup(self):
        """Cleanup resources."""
        if self._model is not None:
            del self._model
            self._model = None

        self._is_initialized = False
        logger.info("STT service cleaned up")
