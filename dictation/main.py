"""
AI Voice Dictation Backend - Main FastAPI Application

Entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from dictation.config import get_settings
from dictation.dependencies import AppSettings
from dictation.rate_limit import limiter
from dictation.transcription import transcription_router
from dictation.transcription.service import get_transcription_orchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


def _enabled(flag: bool) -> str:
    return "enabled" if flag else "disabled"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs startup and shutdown logic.
    """
    # Startup
    credentials = settings.credentials
    logger.info(f"[Startup] Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"[Startup] Whisper API: {_enabled(credentials.speech_to_text_enabled)}")
    logger.info(f"[Startup] Claude API: {_enabled(credentials.structuring_enabled)} (optional)")
    if not credentials.speech_to_text_enabled:
        logger.warning("[Startup] OPENAI_API_KEY is not set, audio transcription will fail")

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"[Startup] Upload directory: {settings.upload_dir.resolve()}")

    yield

    # Shutdown
    logger.info("[Shutdown] Application shutting down...")
    await get_transcription_orchestrator().close()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    AI Voice Dictation Backend - Structured transcripts from speech.

    ## Features

    * **Text structuring** - Split, summarize and correct a raw transcript with Claude
    * **Audio transcription** - Convert audio recordings to text using OpenAI Whisper,
      then structure the result (falls back to the raw transcript)
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Global exception handler (inside the CORS middleware)
@app.middleware("http")
async def global_exception_middleware(request: Request, call_next):
    """Handle uncaught exceptions globally."""
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "Internal server error"},
        )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests with the common error body."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Health check endpoints
@app.get("/", tags=["Health"])
async def root(app_settings: AppSettings):
    """Root endpoint - API info and provider availability."""
    credentials = app_settings.credentials
    return {
        "status": "OK",
        "message": app_settings.app_name,
        "timestamp": _now(),
        "endpoints": {
            "health": "/health",
            "transcribe": "/api/transcribe",
            "transcribeAudio": "/api/transcribe-audio",
        },
        "whisper_available": credentials.speech_to_text_enabled,
        "claude_available": credentials.structuring_enabled,
    }


@app.get("/health", tags=["Health"])
async def health():
    """Health check endpoint."""
    return {
        "status": "OK",
        "timestamp": _now(),
        "message": "Server is running",
    }


API_PREFIX = "/api"

# Include routers
app.include_router(transcription_router, prefix=API_PREFIX)
