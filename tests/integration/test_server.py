"""Integration tests for the HTTP server and the clients that talk to it."""

import io
import wave

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from voiceprompt.chat.base import AbstractChatEngine
from voiceprompt.chat.proxy_engine import ProxyChatEngine
from voiceprompt.exceptions import UpstreamError
from voiceprompt.server.app import create_app
from voiceprompt.storage.file_manager import FileManager
from voiceprompt.transcription.adapter import TranscriptionRequestAdapter
from voiceprompt.transcription.base import AbstractTranscriptionBackend
from voiceprompt.transcription.proxy_backend import ProxyTranscriptionBackend


class RecordingBackend(AbstractTranscriptionBackend):
    service_name = "recording"

    def __init__(self):
        self.calls = []
        self.error = None

    async def transcribe_audio(self, payload, filename, content_type, language=None):
        self.calls.append({
            "payload": payload,
            "filename": filename,
            "content_type": content_type,
            "language": language,
        })
        if self.error:
            raise self.error
        return " Hallo Welt \n"


class EchoChatEngine(AbstractChatEngine):
    def __init__(self):
        self.prompts = []
        self.error = None

    async def send_prompt(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return f"**{prompt}**"


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def chat_engine():
    return EchoChatEngine()


@pytest_asyncio.fixture
async def client(backend, chat_engine):
    app = create_app(TranscriptionRequestAdapter(backend), chat_engine)
    async with TestClient(TestServer(app)) as client:
        yield client


@pytest.mark.integration
@pytest.mark.asyncio
class TestTranscribeEndpoint:
    async def test_transcribe_with_language(self, client, backend):
        response = await client.post(
            "/api/transcribe?language=DE",
            data=b"OggS-payload",
            headers={"Content-Type": "audio/ogg; codecs=opus"},
        )

        assert response.status == 200
        assert response.content_type == "text/plain"
        assert await response.text() == "Hallo Welt"
        call = backend.calls[0]
        assert call["language"] == "de"
        assert call["payload"] == b"OggS-payload"
        assert call["filename"] == "audio.ogg"
        assert call["content_type"] == "audio/ogg; codecs=opus"

    async def test_language_optional(self, client, backend):
        response = await client.post("/api/transcribe?language=", data=b"OggS",
                                     headers={"Content-Type": "audio/webm"})

        assert response.status == 200
        assert backend.calls[0]["language"] is None
        assert backend.calls[0]["filename"] == "audio.webm"

    async def test_untyped_body_treated_as_ogg(self, client, backend):
        response = await client.post("/api/transcribe", data=b"OggS")

        assert response.status == 200
        assert backend.calls[0]["filename"] == "audio.ogg"

    async def test_pcm_body_wrapped_with_declared_rate(self, client, backend):
        pcm = b"\x00\x01" * 800
        response = await client.post("/api/transcribe", data=pcm,
                                     headers={"Content-Type": "audio/L16; rate=8000; channels=1"})

        assert response.status == 200
        call = backend.calls[0]
        assert call["filename"] == "audio.wav"
        with wave.open(io.BytesIO(call["payload"]), "rb") as wf:
            assert wf.getframerate() == 8000
            assert wf.getnchannels() == 1
            assert wf.readframes(wf.getnframes()) == pcm

    async def test_empty_body_rejected(self, client, backend):
        response = await client.post("/api/transcribe", data=b"")

        assert response.status == 400
        assert "error" in await response.json()
        assert backend.calls == []

    async def test_upstream_failure_maps_to_502(self, client, backend):
        backend.error = UpstreamError(401, "recording", "bad key")

        response = await client.post("/api/transcribe", data=b"OggS",
                                     headers={"Content-Type": "audio/ogg"})

        assert response.status == 502
        body = await response.json()
        assert body["upstream_status"] == 401
        assert "bad key" in body["error"]

    async def test_unreachable_upstream_maps_to_502(self, client, backend):
        backend.error = UpstreamError(None, "recording", "Cannot connect")

        response = await client.post("/api/transcribe", data=b"OggS",
                                     headers={"Content-Type": "audio/ogg"})

        assert response.status == 502
        body = await response.json()
        assert "upstream_status" not in body
        assert "unreachable" in body["error"]

    async def test_index(self, client):
        response = await client.get("/")

        assert response.status == 200
        assert (await response.json())["endpoints"] == ["/api/transcribe", "/api/chat"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestChatEndpoint:
    async def test_chat(self, client, chat_engine):
        response = await client.post("/api/chat", json={"prompt": "  hello  "})

        assert response.status == 200
        assert await response.json() == {"answer": "**hello**"}
        assert chat_engine.prompts == ["hello"]

    async def test_missing_prompt(self, client, chat_engine):
        response = await client.post("/api/chat", json={"text": "hello"})

        assert response.status == 400
        assert chat_engine.prompts == []

    async def test_empty_prompt(self, client, chat_engine):
        response = await client.post("/api/chat", json={"prompt": ""})

        assert response.status == 400
        assert chat_engine.prompts == []

    async def test_invalid_json(self, client):
        response = await client.post("/api/chat", data=b"{not json",
                                     headers={"Content-Type": "application/json"})

        assert response.status == 400
        assert "not valid JSON" in (await response.json())["error"]

    async def test_upstream_failure_maps_to_502(self, client, chat_engine):
        chat_engine.error = UpstreamError(503, "chat")

        response = await client.post("/api/chat", json={"prompt": "hi"})

        assert response.status == 502
        assert (await response.json())["upstream_status"] == 503


@pytest.mark.integration
@pytest.mark.asyncio
class TestProxyClients:
    async def test_transcription_round_trip(self, client, backend):
        proxy = ProxyTranscriptionBackend(str(client.make_url("/")))

        text = await proxy.transcribe_audio(b"OggS", "audio.ogg", "audio/ogg; codecs=opus", "fr")

        assert text == "Hallo Welt"
        assert backend.calls[0]["language"] == "fr"
        assert backend.calls[0]["content_type"] == "audio/ogg; codecs=opus"

    async def test_transcription_upstream_status_preserved(self, client, backend):
        backend.error = UpstreamError(429, "recording")
        proxy = ProxyTranscriptionBackend(str(client.make_url("/")))

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.transcribe_audio(b"OggS", "audio.ogg", "audio/ogg", None)

        assert exc_info.value.status == 429
        assert backend.calls[0]["language"] is None

    async def test_chat_round_trip(self, client):
        proxy = ProxyChatEngine(str(client.make_url("/")))

        assert await proxy.send_prompt("hi") == "**hi**"

    async def test_chat_upstream_status_preserved(self, client, chat_engine):
        chat_engine.error = UpstreamError(500, "chat")
        proxy = ProxyChatEngine(str(client.make_url("/")))

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.send_prompt("hi")

        assert exc_info.value.status == 500


@pytest.mark.integration
@pytest.mark.asyncio
async def test_server_saves_captures(backend, chat_engine, temp_data_dir):
    file_manager = FileManager(temp_data_dir)
    app = create_app(TranscriptionRequestAdapter(backend, file_manager), chat_engine)

    async with TestClient(TestServer(app)) as client:
        response = await client.post("/api/transcribe", data=b"OggS-saved",
                                     headers={"Content-Type": "audio/ogg"})

    assert response.status == 200
    saved = file_manager.list_captures()
    assert len(saved) == 1
    assert saved[0].suffix == ".ogg"
    assert saved[0].read_bytes() == b"OggS-saved"
