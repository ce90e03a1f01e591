"""Data models for the VoicePrompt application."""

from .audio import AudioFragment, AudioBlob, AudioStats, OGG_OPUS_MIME, PCM_MIME
from .session import SessionState, SessionInfo
from .transcription import TranscriptionResult
from .ui import UIStatus

__all__ = [
    "AudioFragment",
    "AudioBlob",
    "AudioStats",
    "OGG_OPUS_MIME",
    "PCM_MIME",
    "SessionState",
    "SessionInfo",
    "TranscriptionResult",
    "UIStatus",
]
