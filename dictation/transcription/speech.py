"""
Speech-to-text service - sends staged audio to OpenAI Whisper.
"""

import logging

from fastapi.concurrency import run_in_threadpool
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from dictation.config import ProviderCredentials, Settings
from dictation.core.exceptions import ConfigurationError, SpeechToTextError
from dictation.transcription.intake import StagedUpload

logger = logging.getLogger(__name__)

# Returned when the provider recognized no speech.
EMPTY_TRANSCRIPT = ""


class SpeechToTextService:
    """Service for handling audio transcription via Whisper API."""

    def __init__(
        self,
        credentials: ProviderCredentials,
        settings: Settings,
        openai_client: AsyncOpenAI | None = None,
    ):
        self.credentials = credentials
        self.settings = settings
        self._client = openai_client

    @property
    def enabled(self) -> bool:
        return self.credentials.speech_to_text_enabled

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.credentials.speech_to_text_key,
                timeout=self.settings.provider_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def transcribe(self, upload: StagedUpload) -> str:
        """
        Transcribe a staged audio file.

        Args:
            upload: Staged audio file

        Returns:
            Transcribed text, or EMPTY_TRANSCRIPT when nothing was recognized

        Raises:
            ConfigurationError: If no OpenAI API key is configured
            SpeechToTextError: If the Whisper API call fails
        """
        if not self.enabled:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        logger.info(f"[SpeechToTextService] Starting transcription for: {upload.original_name}")

        audio_bytes = await run_in_threadpool(upload.path.read_bytes)

        try:
            response = await self.client.audio.transcriptions.create(
                model=self.settings.whisper_model,
                file=(
                    upload.original_name,
                    audio_bytes,
                    upload.mime_type or "audio/mpeg",
                ),
                language=self.settings.transcription_language,
                response_format="json",
            )
        except APIStatusError as e:
            logger.error(
                f"[SpeechToTextService] Whisper API error: "
                f"{e.status_code} - {e.response.text}"
            )
            raise SpeechToTextError(status_code=e.status_code)
        except APIConnectionError as e:
            logger.error(f"[SpeechToTextService] Request error: {e}")
            raise SpeechToTextError(message=f"Failed to reach Whisper API: {e}")

        text = response.text or ""
        if not text.strip():
            logger.info("[SpeechToTextService] No speech recognized")
            return EMPTY_TRANSCRIPT

        logger.info(
            f"[SpeechToTextService] Transcription successful, "
            f"length: {len(text)} chars"
        )
        return text

    async def close(self) -> None:
        """Close the OpenAI client connection."""
        if self._client is not None:
            await self._client.close()
