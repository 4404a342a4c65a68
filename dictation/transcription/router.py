"""
Transcription router - API endpoints for text and audio transcription.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.responses import JSONResponse

from dictation.config import Settings, get_settings
from dictation.core.exceptions import (
    ConfigurationError,
    ExternalAPIError,
    InputValidationError,
)
from dictation.rate_limit import limiter
from dictation.transcription.intake import stage_upload
from dictation.transcription.schemas import (
    ErrorResponse,
    TranscribeTextRequest,
    TranscriptDocument,
)
from dictation.transcription.service import (
    TranscriptionOrchestrator,
    get_transcription_orchestrator,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(tags=["Transcription"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "/transcribe",
    response_model=TranscriptDocument,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Structure a text transcript",
    description="Split a raw transcript into summarized, corrected paragraphs with Claude.",
    responses={
        200: {"model": TranscriptDocument, "description": "Structured transcript"},
        400: {"model": ErrorResponse, "description": "Empty transcript"},
        500: {"model": ErrorResponse, "description": "Missing API key or Claude failure"},
    },
)
@limiter.limit(settings.rate_limit)
async def transcribe_text(
        request: Request,
        payload: TranscribeTextRequest,
        orchestrator: TranscriptionOrchestrator = Depends(get_transcription_orchestrator),
):
    """
    Structure a raw text transcript.

    Args:
        payload: Request body with the transcript

    Returns:
        TranscriptDocument with paragraphs only
    """
    try:
        return await orchestrator.structure_text(payload.transcript)

    except InputValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message)

    except ConfigurationError as e:
        logger.error(f"[TranscriptionRouter] Configuration error: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    except ExternalAPIError as e:
        logger.error(f"[TranscriptionRouter] Structuring error: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)


@router.post(
    "/transcribe-audio",
    response_model=TranscriptDocument,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Transcribe an audio file",
    description="Upload an audio file, transcribe it with Whisper and structure it with Claude.",
    responses={
        200: {"model": TranscriptDocument, "description": "Transcribed and structured audio"},
        400: {"model": ErrorResponse, "description": "Missing, oversized or unsupported file"},
        500: {"model": ErrorResponse, "description": "Missing API key or Whisper failure"},
    },
)
@limiter.limit(settings.rate_limit)
async def transcribe_audio(
        request: Request,
        orchestrator: TranscriptionOrchestrator = Depends(get_transcription_orchestrator),
        app_settings: Settings = Depends(get_settings),
        audio: Annotated[
            UploadFile | None,
            File(description="Audio file (.mp3, .wav, .webm, .mp4, .m4a, .ogg), max 25MB"),
        ] = None,
):
    """
    Transcribe an uploaded audio file.

    The raw transcript is always returned. Paragraphs come from Claude
    when available, otherwise a single paragraph holds the raw text.

    Args:
        audio: Uploaded audio file

    Returns:
        TranscriptDocument with raw_transcript and paragraphs
    """
    logger.info("[TranscriptionRouter] Audio transcription request received")

    try:
        staged = await stage_upload(audio, app_settings) if audio is not None else None
        return await orchestrator.transcribe_audio(staged)

    except InputValidationError as e:
        logger.warning(f"[TranscriptionRouter] Invalid upload: {e.message}")
        return _error(status.HTTP_400_BAD_REQUEST, e.message)

    except ConfigurationError as e:
        logger.error(f"[TranscriptionRouter] Configuration error: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    except ExternalAPIError as e:
        logger.error(f"[TranscriptionRouter] Transcription error: {e.message}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    finally:
        if audio is not None:
            await audio.close()
