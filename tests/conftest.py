import json
from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from dictation.config import Settings
from dictation.transcription.intake import StagedUpload
from dictation.transcription.service import TranscriptionOrchestrator
from dictation.transcription.speech import SpeechToTextService
from dictation.transcription.structuring import StructuringService

WHISPER_URL = "https://api.openai.com/v1/audio/transcriptions"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "openai_api_key": "sk-test",
        "anthropic_api_key": "sk-ant-test",
        "upload_dir": tmp_path / "uploads",
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def claude_response(text: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"content": [{"type": "text", "text": text}]},
    )


def paragraphs_json(*pairs: tuple[str, str]) -> str:
    return json.dumps(
        {"paragraphs": [{"summary": s, "content": c} for s, c in pairs]},
        ensure_ascii=False,
    )


class FakeTranscriptions:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeOpenAI:
    """Stands in for AsyncOpenAI; only audio.transcriptions.create is used."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.audio = SimpleNamespace(transcriptions=FakeTranscriptions(text, error))
        self.closed = False

    @property
    def calls(self) -> list[dict]:
        return self.audio.transcriptions.calls

    async def close(self) -> None:
        self.closed = True


class FakeClaude:
    """Records requests sent through an httpx.MockTransport."""

    def __init__(self, response: httpx.Response | None = None, error: Exception | None = None):
        self.response = response or claude_response(paragraphs_json(("요약", "내용")))
        self.error = error
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def staged_upload(settings: Settings) -> StagedUpload:
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    path = settings.upload_dir / "staged.m4a"
    path.write_bytes(b"\x00\x01fake-audio")
    return StagedUpload(
        path=path,
        original_name="memo.m4a",
        mime_type="audio/m4a",
        size_bytes=path.stat().st_size,
    )


def build_test_orchestrator(
        settings: Settings,
        openai_client: FakeOpenAI,
        claude: FakeClaude,
) -> TranscriptionOrchestrator:
    credentials = settings.credentials
    return TranscriptionOrchestrator(
        speech_to_text=SpeechToTextService(credentials, settings, openai_client=openai_client),
        structuring=StructuringService(credentials, settings, http_client=claude.client()),
    )
