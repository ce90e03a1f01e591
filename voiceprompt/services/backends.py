"""Builds devices, backends and engines from configuration."""

import logging
from typing import Callable

from ..audio.capture import CaptureDevice, PyAudioCaptureDevice
from ..chat.base import AbstractChatEngine
from ..chat.openai_engine import OpenAIChatEngine
from ..chat.proxy_engine import ProxyChatEngine
from ..config import VoicePromptConfig
from ..storage.file_manager import FileManager
from ..transcription.adapter import TranscriptionRequestAdapter
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.openai_backend import OpenAITranscriptionBackend
from ..transcription.proxy_backend import ProxyTranscriptionBackend

logger = logging.getLogger(__name__)


def create_device_factory(config: VoicePromptConfig) -> Callable[[], CaptureDevice]:
    """Return a factory producing a fresh microphone handle per session."""
    sample_rate = config.get('audio.sample_rate', 16000)
    chunk_size = config.get('audio.chunk_size', 1024)
    channels = config.get('audio.channels', 1)
    input_device_index = config.get('audio.input_device_index')

    logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/fragment, {channels} channels")

    def factory() -> CaptureDevice:
        return PyAudioCaptureDevice(
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels,
            input_device_index=input_device_index,
        )

    return factory


def create_transcription_backend(config: VoicePromptConfig) -> AbstractTranscriptionBackend:
    """Create the transcription backend named by ``transcription.backend``."""
    backend = config.get('transcription.backend', 'openai')

    if backend == 'openai':
        return OpenAITranscriptionBackend(
            api_key=config.get_openai_api_key(),
            model=config.get('transcription.model', 'whisper-1'),
            base_url=config.get('transcription.base_url', 'https://api.openai.com/v1'),
        )
    if backend == 'proxy':
        return ProxyTranscriptionBackend(config.get('proxy.url', 'http://localhost:3000'))
    if backend == 'google':
        # Only imported when selected; pulls in the Google Cloud client
        from ..transcription.google_backend import GoogleSpeechBackend
        return GoogleSpeechBackend(
            credentials_path=config.get_google_credentials_path(),
            language=config.get('google_cloud.language', 'en-US'),
            use_enhanced=config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        )

    raise ValueError(f"Unknown transcription backend: {backend}")


def create_transcription_adapter(config: VoicePromptConfig) -> TranscriptionRequestAdapter:
    """Create the adapter, saving captures to disk when ``storage.save_captures`` is set."""
    file_manager = None
    if config.get('storage.save_captures', True):
        file_manager = FileManager(config.get_data_directory())
    return TranscriptionRequestAdapter(create_transcription_backend(config), file_manager)


def create_chat_engine(config: VoicePromptConfig) -> AbstractChatEngine:
    """Create the chat engine named by ``chat.backend``."""
    backend = config.get('chat.backend', 'openai')

    if backend == 'openai':
        return OpenAIChatEngine(
            api_key=config.get_openai_api_key(),
            model=config.get('chat.model', 'gpt-3.5-turbo'),
            temperature=config.get('chat.temperature', 1.0),
            system_prompt=config.get('chat.system_prompt'),
            base_url=config.get('chat.base_url', 'https://api.openai.com/v1'),
        )
    if backend == 'proxy':
        return ProxyChatEngine(config.get('proxy.url', 'http://localhost:3000'))

    raise ValueError(f"Unknown chat backend: {backend}")
