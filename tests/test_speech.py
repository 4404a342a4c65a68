import httpx
import openai
import pytest

from dictation.config import ProviderCredentials
from dictation.core.exceptions import ConfigurationError, SpeechToTextError
from dictation.transcription.speech import EMPTY_TRANSCRIPT, SpeechToTextService
from tests.conftest import WHISPER_URL, FakeOpenAI


async def test_transcribe_returns_text(settings, staged_upload) -> None:
    client = FakeOpenAI(text="안녕하세요 반갑습니다")
    service = SpeechToTextService(settings.credentials, settings, openai_client=client)

    text = await service.transcribe(staged_upload)

    assert text == "안녕하세요 반갑습니다"
    call = client.calls[0]
    assert call["model"] == "whisper-1"
    assert call["language"] == "ko"
    assert call["response_format"] == "json"
    assert call["file"] == ("memo.m4a", b"\x00\x01fake-audio", "audio/m4a")


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_transcribe_blank_text_returns_empty_sentinel(settings, staged_upload, text) -> None:
    service = SpeechToTextService(settings.credentials, settings, openai_client=FakeOpenAI(text=text))

    assert await service.transcribe(staged_upload) == EMPTY_TRANSCRIPT


async def test_transcribe_status_error_carries_status_code(settings, staged_upload) -> None:
    error = openai.BadRequestError(
        "Invalid file format.",
        response=httpx.Response(
            400,
            request=httpx.Request("POST", WHISPER_URL),
            text='{"error": {"message": "Invalid file format."}}',
        ),
        body=None,
    )
    service = SpeechToTextService(settings.credentials, settings, openai_client=FakeOpenAI(error=error))

    with pytest.raises(SpeechToTextError) as exc_info:
        await service.transcribe(staged_upload)

    assert exc_info.value.status_code == 400
    assert "400" in exc_info.value.message


async def test_transcribe_connection_error(settings, staged_upload) -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", WHISPER_URL))
    service = SpeechToTextService(settings.credentials, settings, openai_client=FakeOpenAI(error=error))

    with pytest.raises(SpeechToTextError) as exc_info:
        await service.transcribe(staged_upload)

    assert exc_info.value.status_code is None


async def test_transcribe_without_key_fails_fast(settings, staged_upload) -> None:
    client = FakeOpenAI(text="unused")
    service = SpeechToTextService(
        ProviderCredentials(structuring_key="sk-ant-test"),
        settings,
        openai_client=client,
    )

    with pytest.raises(ConfigurationError):
        await service.transcribe(staged_upload)
    assert client.calls == []


async def test_transcribe_reads_audio_off_the_event_loop(settings, staged_upload, monkeypatch) -> None:
    dispatched = []

    async def recording_threadpool(func, *args, **kwargs):
        dispatched.append(func)
        return func(*args, **kwargs)

    monkeypatch.setattr(
        "dictation.transcription.speech.run_in_threadpool", recording_threadpool
    )
    client = FakeOpenAI(text="안녕하세요")
    service = SpeechToTextService(settings.credentials, settings, openai_client=client)

    await service.transcribe(staged_upload)

    assert dispatched == [staged_upload.path.read_bytes]
    assert client.calls[0]["file"][1] == b"\x00\x01fake-audio"
