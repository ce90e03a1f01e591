"""Pytest configuration and fixtures for VoicePrompt tests."""

import pytest
import tempfile
import logging
from contextlib import asynccontextmanager
from typing import List, Optional
from unittest.mock import Mock, patch

import numpy as np
from aiohttp import web
from aiohttp.test_utils import TestServer
from pubsub import pub

from voiceprompt.audio.capture import CaptureDevice
from voiceprompt.exceptions import DeviceUnavailable
from voiceprompt.models.audio import OGG_OPUS_MIME


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests talking HTTP to local servers")


@pytest.fixture(autouse=True)
def clean_pubsub():
    """pypubsub keeps global state; start every test from an empty topic tree."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample 16-bit PCM audio chunk (440 Hz sine)."""
    sample_rate = 16000
    duration = 1024 / sample_rate
    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


class FakeCaptureDevice(CaptureDevice):
    """Capture device driven by the test through ``emit``."""

    mime_type = OGG_OPUS_MIME

    def __init__(self, fail_with: Optional[Exception] = None,
                 fail_close_with: Optional[Exception] = None):
        super().__init__()
        self.fail_with = fail_with
        self.fail_close_with = fail_close_with
        self.open_count = 0
        self.close_count = 0

    async def open(self) -> None:
        self.open_count += 1
        if self.fail_with:
            raise self.fail_with
        self.is_open = True

    async def close(self) -> None:
        self.close_count += 1
        self.is_open = False
        if self.fail_close_with:
            raise self.fail_close_with

    def emit(self, audio_data: bytes) -> None:
        self._deliver(audio_data)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


@pytest.fixture
def fake_device():
    return FakeCaptureDevice()


@pytest.fixture
def unavailable_device():
    return FakeCaptureDevice(fail_with=DeviceUnavailable("Permission denied"))


@pytest.fixture
def device_factory():
    """Factory handing out FakeCaptureDevices and remembering them in ``created``."""

    class Factory:
        def __init__(self):
            self.created: List[FakeCaptureDevice] = []
            self.fail_with: Optional[Exception] = None
            self.fail_close_with: Optional[Exception] = None

        def __call__(self) -> FakeCaptureDevice:
            device = FakeCaptureDevice(fail_with=self.fail_with, fail_close_with=self.fail_close_with)
            self.created.append(device)
            return device

        @property
        def last(self) -> FakeCaptureDevice:
            return self.created[-1]

    return Factory()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.start_stream.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


class FakeOpenAI:
    """Stand-in for the OpenAI API recording what it receives."""

    def __init__(self):
        self.status = 200
        self.transcript = "  Hello world  "
        self.answer = "# Answer\n\nSome *markdown*."
        self.transcription_requests: List[dict] = []
        self.chat_requests: List[dict] = []

    async def transcriptions(self, request: web.Request) -> web.Response:
        form = await request.post()
        upload = form["file"]
        self.transcription_requests.append({
            "authorization": request.headers.get("Authorization"),
            "model": form.get("model"),
            "language": form.get("language"),
            "has_language": "language" in form,
            "filename": upload.filename,
            "content_type": upload.content_type,
            "payload": upload.file.read(),
        })
        if self.status != 200:
            return web.json_response({"error": {"message": "boom"}}, status=self.status)
        return web.json_response({"text": self.transcript})

    async def chat_completions(self, request: web.Request) -> web.Response:
        self.chat_requests.append(await request.json())
        if self.status != 200:
            return web.json_response({"error": {"message": "boom"}}, status=self.status)
        return web.json_response({
            "choices": [{"message": {"role": "assistant", "content": self.answer}}]
        })


@pytest.fixture
def fake_openai():
    """Returns ``(fake, serve)``; ``async with serve() as base_url`` runs the fake API."""
    fake = FakeOpenAI()

    @asynccontextmanager
    async def serve():
        app = web.Application()
        app.router.add_post("/v1/audio/transcriptions", fake.transcriptions)
        app.router.add_post("/v1/chat/completions", fake.chat_completions)
        server = TestServer(app)
        await server.start_server()
        try:
            yield str(server.make_url("/v1"))
        finally:
            await server.close()

    return fake, serve
