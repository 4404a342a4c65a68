"""
Transcription service - orchestrates speech-to-text and structuring.

Flow A (text): structuring is mandatory, its failures are fatal.
Flow B (audio): speech-to-text is mandatory; structuring degrades to
the raw transcript when unavailable.
"""

import logging
from functools import lru_cache

from dictation.config import Settings, get_settings
from dictation.core.exceptions import (
    ConfigurationError,
    EmptyInputError,
    MissingAudioError,
    StructuringError,
)
from dictation.transcription.intake import StagedUpload
from dictation.transcription.schemas import Paragraph, TranscriptDocument
from dictation.transcription.speech import EMPTY_TRANSCRIPT, SpeechToTextService
from dictation.transcription.structuring import StructuringService

logger = logging.getLogger(__name__)

NO_RESULT_SUMMARY = "no transcription result"
NO_RESULT_CONTENT = "could not recognize speech"
DEGRADED_SUMMARY = "speech-to-text result"


class TranscriptionOrchestrator:
    """Composes the speech-to-text and structuring services."""

    def __init__(
        self,
        speech_to_text: SpeechToTextService,
        structuring: StructuringService,
    ):
        self.speech_to_text = speech_to_text
        self.structuring = structuring

    async def structure_text(self, transcript: str | None) -> TranscriptDocument:
        """
        Structure a raw text transcript (Flow A).

        Raises:
            EmptyInputError: If the transcript is empty or whitespace
            ConfigurationError: If the structuring provider is not configured
            StructuringError: If the structuring call fails
        """
        if not transcript or not transcript.strip():
            raise EmptyInputError()

        if not self.structuring.enabled:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")

        logger.info("[TranscriptionOrchestrator] Structuring text transcript")
        result = await self.structuring.structure(transcript)
        return TranscriptDocument(paragraphs=result.paragraphs)

    async def transcribe_audio(self, upload: StagedUpload | None) -> TranscriptDocument:
        """
        Transcribe a staged audio upload and structure the result (Flow B).

        The staged file is deleted on every exit path, and as soon as the
        speech-to-text call has returned.

        Raises:
            MissingAudioError: If no upload was provided
            ConfigurationError: If the speech-to-text provider is not configured
            SpeechToTextError: If transcription fails
        """
        if upload is None:
            raise MissingAudioError()

        try:
            if not self.speech_to_text.enabled:
                raise ConfigurationError("OPENAI_API_KEY is not configured")

            logger.info(
                f"[TranscriptionOrchestrator] Transcribing {upload.original_name} "
                f"({upload.size_bytes / 1024 / 1024:.2f}MB)"
            )
            raw_transcript = await self.speech_to_text.transcribe(upload)
        finally:
            upload.release()

        if raw_transcript == EMPTY_TRANSCRIPT:
            return TranscriptDocument(
                raw_transcript="",
                paragraphs=[Paragraph(summary=NO_RESULT_SUMMARY, content=NO_RESULT_CONTENT)],
            )

        if not self.structuring.enabled:
            logger.info("[TranscriptionOrchestrator] Structuring disabled, returning raw transcript")
            return self._degraded(raw_transcript)

        try:
            result = await self.structuring.structure(raw_transcript, from_audio=True)
        except StructuringError as e:
            logger.error(f"[TranscriptionOrchestrator] Structuring failed, degrading: {e.message}")
            return self._degraded(raw_transcript)
        except Exception as e:
            logger.exception(f"[TranscriptionOrchestrator] Unexpected structuring error, degrading: {e}")
            return self._degraded(raw_transcript)

        return TranscriptDocument(raw_transcript=raw_transcript, paragraphs=result.paragraphs)

    @staticmethod
    def _degraded(raw_transcript: str) -> TranscriptDocument:
        return TranscriptDocument(
            raw_transcript=raw_transcript,
            paragraphs=[Paragraph(summary=DEGRADED_SUMMARY, content=raw_transcript)],
        )

    async def close(self) -> None:
        await self.speech_to_text.close()
        await self.structuring.close()


def build_orchestrator(settings: Settings) -> TranscriptionOrchestrator:
    """Wire both adapters with the credentials fixed in settings."""
    credentials = settings.credentials
    return TranscriptionOrchestrator(
        speech_to_text=SpeechToTextService(credentials, settings),
        structuring=StructuringService(credentials, settings),
    )


@lru_cache
def get_transcription_orchestrator() -> TranscriptionOrchestrator:
    """Dependency provider for TranscriptionOrchestrator."""
    return build_orchestrator(get_settings())
