"""
Structuring service - paragraph segmentation, summarization and
correction of raw transcripts with the Claude Messages API.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Union

import httpx
from pydantic import BaseModel, ValidationError

from dictation.config import ProviderCredentials, Settings
from dictation.core.exceptions import ConfigurationError, StructuringError
from dictation.transcription.schemas import Paragraph

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "transcription result"

# Greedy: first "{" through last "}" of the whole response.
JSON_BLOCK_PATTERN = re.compile(r"\{[\s\S]*\}")

TEXT_SOURCE_INTRO = "다음은 음성 인식으로 받아쓴 텍스트입니다. 이를 정리하고 요약해주세요."
AUDIO_SOURCE_INTRO = "다음은 Whisper AI로 전사한 음성 내용입니다. 이를 정리하고 요약해주세요."

# Structuring prompt template
STRUCTURING_PROMPT = """{intro}

{label}:
{transcript}

다음 형식으로 응답해주세요:
1. 전체 내용을 의미 단위로 나누어 단락을 만들어주세요
2. 각 단락마다 한 줄 요약을 제공해주세요
3. 맞춤법과 문장을 자연스럽게 교정해주세요

응답은 다음 JSON 형식으로 해주세요:
{{
  "paragraphs": [
    {{
      "summary": "단락 요약",
      "content": "교정된 내용"
    }}
  ]
}}"""


def build_prompt(raw_text: str, from_audio: bool = False) -> str:
    if from_audio:
        return STRUCTURING_PROMPT.format(
            intro=AUDIO_SOURCE_INTRO, label="전사된 내용", transcript=raw_text
        )
    return STRUCTURING_PROMPT.format(
        intro=TEXT_SOURCE_INTRO, label="받아쓴 내용", transcript=raw_text
    )


class _StructuredPayload(BaseModel):
    paragraphs: List[Paragraph]


@dataclass(frozen=True)
class StructuredOk:
    """The provider answered with the requested JSON shape."""

    paragraphs: List[Paragraph]


@dataclass(frozen=True)
class StructuredFallback:
    """The provider ignored the format; its text is passed through as is."""

    raw_text: str

    @property
    def paragraphs(self) -> List[Paragraph]:
        return [Paragraph(summary=FALLBACK_SUMMARY, content=self.raw_text)]


StructuringResult = Union[StructuredOk, StructuredFallback]


def parse_structured_response(text: str) -> StructuringResult:
    """
    Recover the paragraphs JSON embedded in a free-form model answer.

    Never raises: anything that is not a brace-delimited object with a
    valid "paragraphs" array yields a StructuredFallback.
    """
    match = JSON_BLOCK_PATTERN.search(text)
    if match is None:
        logger.warning("[StructuringService] No JSON object in response, using raw text")
        return StructuredFallback(raw_text=text)

    try:
        payload = _StructuredPayload.model_validate_json(match.group(0))
    except ValidationError as e:
        logger.warning(
            f"[StructuringService] Failed to parse structured response: "
            f"{e.error_count()} error(s)"
        )
        return StructuredFallback(raw_text=text)

    return StructuredOk(paragraphs=payload.paragraphs)


class StructuringService:
    """Service for structuring transcripts via the Claude API."""

    def __init__(
        self,
        credentials: ProviderCredentials,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.credentials = credentials
        self.settings = settings
        self._client = http_client

    @property
    def enabled(self) -> bool:
        return self.credentials.structuring_enabled

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.provider_timeout_seconds
            )
        return self._client

    async def structure(self, raw_text: str, from_audio: bool = False) -> StructuringResult:
        """
        Split, summarize and correct a raw transcript.

        Args:
            raw_text: Transcript to structure, embedded verbatim in the prompt
            from_audio: Whether the text came from speech-to-text

        Returns:
            StructuredOk with parsed paragraphs, or StructuredFallback
            carrying the unparsed answer

        Raises:
            ConfigurationError: If no Anthropic API key is configured
            StructuringError: If the Claude API call fails
        """
        if not self.enabled:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")

        logger.info(f"[StructuringService] Requesting structuring for {len(raw_text)} chars")

        try:
            response = await self.client.post(
                self.settings.anthropic_api_url,
                json={
                    "model": self.settings.anthropic_model,
                    "max_tokens": self.settings.structuring_max_tokens,
                    "messages": [
                        {"role": "user", "content": build_prompt(raw_text, from_audio)},
                    ],
                },
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": self.credentials.structuring_key,
                    "anthropic-version": self.settings.anthropic_version,
                },
            )
        except httpx.TimeoutException:
            logger.error("[StructuringService] Timeout calling Claude API")
            raise StructuringError(message="Claude API request timed out")
        except httpx.HTTPError as e:
            logger.error(f"[StructuringService] HTTP error calling Claude API: {e}")
            raise StructuringError(message=f"Failed to reach Claude API: {e}")

        if not response.is_success:
            logger.error(
                f"[StructuringService] Claude API error: "
                f"{response.status_code} - {response.text}"
            )
            raise StructuringError(status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise StructuringError(
                status_code=response.status_code,
                message="Claude API returned a non-JSON body",
            )

        blocks = (data.get("content") if isinstance(data, dict) else None) or []
        text = next(
            (
                block.get("text")
                for block in blocks
                if isinstance(block, dict) and block.get("type") == "text"
            ),
            None,
        )
        if not text:
            raise StructuringError(
                status_code=response.status_code,
                message="Claude API response contained no text block",
            )

        result = parse_structured_response(text)
        logger.info(
            f"[StructuringService] Structuring complete: "
            f"{type(result).__name__}, paragraphs={len(result.paragraphs)}"
        )
        return result

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self._client is not None:
            await self._client.aclose()
