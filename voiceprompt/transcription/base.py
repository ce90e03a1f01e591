"""Abstract base class for transcription backends."""

from abc import ABC, abstractmethod
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    service_name = "transcription"

    @abstractmethod
    async def transcribe_audio(
        self,
        payload: bytes,
        filename: str,
        content_type: str,
        language: Optional[str] = None,
    ) -> str:
        """Transcribe an audio payload and return the raw transcript.

        Args:
            payload: Encoded audio (container included)
            filename: Filename presented to the backend; its extension names the format
            content_type: MIME type of ``payload``
            language: Spoken language hint; must not be sent when None

        Returns:
            Transcript text as returned by the backend

        Raises:
            UpstreamError: The backend answered with a non-success status
        """
        pass

    def get_display_info(self) -> str:
        """Short description for status displays."""
        return f" ({self.service_name})"
