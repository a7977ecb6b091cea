"""
Configuration management for the Voice Commerce Engine.
Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "Voice Commerce Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Environment name")

    # =========================
    # API Keys
    # =========================
    GROQ_API_KEY: Optional[str] = Field(default=None, description="Groq API key for NLU inference")
    HF_TOKEN: Optional[str] = Field(default=None, description="HuggingFace token for model access")

    # =========================
    # Server Settings
    # =========================
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")

    # =========================
    # Storage Settings
    # =========================
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/voice_commerce.db",
        description="Business data store connection URL"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL queries")
    REDIS_URL: Optional[str] = Field(
        default=None,
        description="Session cache URL; an in-process cache is used when unset"
    )

    # =========================
    # Model Settings
    # =========================
    STT_MODEL_ID: str = Field(
        default="ai4bharat/indic-conformer-600m-multilingual",
        description="STT model identifier"
    )
    LLM_MODEL_ID: str = Field(
        default="llama-3.1-8b-instant",
        description="Groq model used for intent analysis and replies"
    )
    LLM_TEMPERATURE: float = Field(default=0.3, description="Sampling temperature")
    LLM_MAX_TOKENS: int = Field(default=600, description="Maximum tokens per completion")

    # =========================
    # Audio Settings
    # =========================
    AUDIO_SAMPLE_RATE: int = Field(default=16000, description="Audio sample rate in Hz")
    MAX_AUDIO_BYTES: int = Field(default=25 * 1024 * 1024, description="Upload size limit")
    STT_CONFIDENCE_THRESHOLD: float = Field(
        default=0.6,
        description="Minimum STT confidence to accept transcription"
    )

    # =========================
    # Latency Settings
    # =========================
    LLM_TIMEOUT_SECONDS: float = Field(default=8.0, description="NLU backend timeout")
    STT_TIMEOUT_SECONDS: float = Field(default=15.0, description="Transcription timeout")
    TTS_TIMEOUT_SECONDS: float = Field(default=10.0, description="Synthesis timeout")

    # =========================
    # Conversation Settings
    # =========================
    SESSION_TTL_SECONDS: int = Field(default=1800, description="Sliding context lifetime")
    DEFAULT_LANGUAGE: str = Field(default="hi-IN", description="Fallback locale")
    PRODUCT_LIST_LIMIT: int = Field(default=10, description="Products read per listing")
    ORDERS_LIST_LIMIT: int = Field(default=5, description="Orders read per lookup")

    # =========================
    # Logging Settings
    # =========================
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    ENABLE_AGENT_LOG: bool = Field(default=True, description="Write the markdown turn log")
    AGENT_LOG_PATH: Path = Field(
        default=Path("./logs/agent_log.md"),
        description="Path to agent markdown log"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Category vocabulary of the product catalog
PRODUCT_CATEGORIES = [
    "pottery",
    "textiles",
    "jewelry",
    "woodwork",
    "metalwork",
    "leather",
    "painting",
    "sculpture",
    "other"
]

# Free-text keyword to category; first match wins, so order matters
CATEGORY_KEYWORDS = {
    "मिट्टी": "pottery",
    "pottery": "pottery",
    "clay": "pottery",
    "कपड़ा": "textiles",
    "textile": "textiles",
    "saree": "textiles",
    "गहना": "jewelry",
    "jewelry": "jewelry",
    "jewellery": "jewelry",
    "लकड़ी": "woodwork",
    "wood": "woodwork",
    "धातु": "metalwork",
    "metal": "metalwork",
    "brass": "metalwork",
    "चमड़ा": "leather",
    "leather": "leather",
    "चित्र": "painting",
    "painting": "painting",
    "मूर्ति": "sculpture",
    "sculpture": "sculpture"
}

# Known phrasings per intent, offered to the NLU backend as hints
INTENT_KEYWORDS = {
    "product_create": [
        "नया प्रोडक्ट बनाना है",
        "product banani hai",
        "नई चीज़ बेचनी है",
        "create new product",
        "add product"
    ],
    "product_list": [
        "मेरे प्रोडक्ट दिखाओ",
        "show my products",
        "list products"
    ],
    "analytics": [
        "मेरे बिज़नेस का हाल",
        "sales kitni hui",
        "business analytics",
        "show me stats"
    ],
    "pricing": [
        "price kitni rakhun",
        "दाम क्या रखूं",
        "pricing suggestion",
        "कीमत बताओ"
    ],
    "orders": [
        "कितने ऑर्डर आए",
        "orders dikhao",
        "show my orders"
    ]
}

# Product lifecycle statuses
PRODUCT_STATUSES = [
    "draft",
    "active",
    "inactive",
    "out-of-stock",
    "discontinued"
]

# Order status definitions
ORDER_STATUSES = [
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
    "cancelled"
]

# Orders no longer waiting on the artisan
CLOSED_ORDER_STATUSES = ["delivered", "cancelled"]
