"""Transcription-related data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class TranscriptionResult:
    """Transcript produced for one finalized session."""
    text: str
    session_id: str
    service: str
    processing_time: float
    timestamp: datetime
    language: Optional[str] = None
    audio_bytes: int = 0

    @property
    def is_empty(self) -> bool:
        """An empty transcript is a valid result, not an error."""
        return self.text == ""
