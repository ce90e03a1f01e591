"""Transcription module for VoicePrompt."""

from .base import AbstractTranscriptionBackend
from .adapter import TranscriptionRequestAdapter, prepare_upload
from .openai_backend import OpenAITranscriptionBackend
from .proxy_backend import ProxyTranscriptionBackend

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionRequestAdapter",
    "prepare_upload",
    "OpenAITranscriptionBackend",
    "ProxyTranscriptionBackend",
]
