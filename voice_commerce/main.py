"""
FastAPI Application Entry Point
===============================
Main application with lifecycle management, middleware, and route mounting.
"""

from contextlib import asynccontextmanager
from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voice_commerce.config import get_settings
from voice_commerce.core.exceptions import VoiceCommerceException
from voice_commerce.core.languages import SUPPORTED_LANGUAGES
from voice_commerce.core.pipeline import VoiceTurnOrchestrator
from voice_commerce.core.session import ConversationContextStore
from voice_commerce.actions.registry import ActionExecutor, ActionRegistry
from voice_commerce.api.routes import voice, conversation, health
from voice_commerce.db.database import init_db, close_db
from voice_commerce.services.cache import create_session_cache
from voice_commerce.services.stt import STTService
from voice_commerce.services.tts import TTSService
from voice_commerce.services.llm import LLMService
from voice_commerce.logging.agent_logger import AgentLogger

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info("Starting Voice Commerce Engine")
    logger.info("=" * 60)

    # ==================
    # STARTUP
    # ==================

    agent_logger = None
    if settings.ENABLE_AGENT_LOG:
        logger.info("Initializing agent logger...")
        agent_logger = AgentLogger(str(settings.AGENT_LOG_PATH))
        if not agent_logger.log_path.exists():
            await agent_logger.initialize_log(
                {code: lang.name for code, lang in SUPPORTED_LANGUAGES.items()}
            )
        await agent_logger.log_system_event("Application starting", {
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "languages": len(SUPPORTED_LANGUAGES)
        })
    app.state.agent_logger = agent_logger

    logger.info("Initializing database...")
    await init_db()

    logger.info("Initializing session cache...")
    app.state.session_cache = create_session_cache(settings.REDIS_URL)
    app.state.context_store = ConversationContextStore(app.state.session_cache)

    logger.info("Initializing STT service...")
    app.state.stt_service = STTService()
    await app.state.stt_service.initialize()

    logger.info("Initializing TTS service...")
    app.state.tts_service = TTSService()
    await app.state.tts_service.initialize()

    logger.info("Initializing LLM service...")
    app.state.llm_service = LLMService()
    await app.state.llm_service.initialize()

    logger.info("Initializing action registry...")
    registry = ActionRegistry().initialize()

    app.state.orchestrator = VoiceTurnOrchestrator(
        stt_service=app.state.stt_service,
        llm_service=app.state.llm_service,
        tts_service=app.state.tts_service,
        context_store=app.state.context_store,
        action_executor=ActionExecutor(registry=registry),
        agent_logger=agent_logger
    )

    logger.info("=" * 60)
    logger.info("Voice Commerce Engine Ready!")
    logger.info(f"Server: http://{settings.HOST}:{settings.PORT}")
    logger.info(f"Docs: http://{settings.HOST}:{settings.PORT}/docs")
    logger.info("=" * 60)

    if agent_logger:
        await agent_logger.log_system_event("Application started successfully", {
            "host": settings.HOST,
            "port": settings.PORT,
            "stt": app.state.stt_service.is_initialized,
            "llm": app.state.llm_service.is_initialized
        })

    yield  # Application runs here

    # ==================
    # SHUTDOWN
    # ==================

    logger.info("Shutting down Voice Commerce Engine...")

    if agent_logger:
        await agent_logger.log_system_event("Application shutting down", {})

    await app.state.stt_service.cleanup()
    await app.state.tts_service.cleanup()
    await app.state.llm_service.cleanup()
    await app.state.session_cache.close()
    if agent_logger:
        await agent_logger.close()

    await close_db()

    logger.info("Shutdown complete.")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Voice Commerce Engine

    Multilingual voice assistant for artisans running an online shop.

    ### Features:
    - 🎤 Spoken commands in 15 Indian locales
    - 🛍️ Guided product creation over several turns
    - 📊 Sales, pricing and order lookups
    - 🔄 Session-scoped conversation context

    ### Pipeline:
    ```
    Audio → STT (IndicConformer) → Intent (Groq) → Action → Reply → TTS (edge-tts) → Audio
    ```
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# ==================
# MIDDLEWARE
# ==================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    """Add request timing information to response headers."""
    start_time = datetime.now()
    response = await call_next(request)
    process_time = (datetime.now() - start_time).total_seconds() * 1000
    response.headers["X-Process-Time-Ms"] = f"{process_time:.2f}"
    return response


# ==================
# EXCEPTION HANDLERS
# ==================

@app.exception_handler(VoiceCommerceException)
async def voice_commerce_exception_handler(request: Request, exc: VoiceCommerceException):
    """Handle custom Voice Commerce exceptions."""
    logger.error(f"VoiceCommerceException: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.DEBUG else None
        }
    )


# ==================
# ROUTES
# ==================

app.include_router(health.router, tags=["Health"])
app.include_router(voice.router, prefix="/api/v1/voice", tags=["Voice"])
app.include_router(conversation.router, prefix="/api/v1/conversation", tags=["Conversation"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }
