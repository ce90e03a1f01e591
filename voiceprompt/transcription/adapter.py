"""Adapter between finalized recordings and a transcription backend."""

import io
import logging
import time
import wave
from datetime import datetime
from typing import Optional, Tuple

from .base import AbstractTranscriptionBackend
from ..models.audio import AudioBlob, base_mime_type
from ..models.transcription import TranscriptionResult
from ..storage.file_manager import FileManager

logger = logging.getLogger(__name__)


def pcm_to_wav(blob: AudioBlob) -> bytes:
    """Frame raw PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(blob.channels or 1)
        wf.setsampwidth(blob.sample_width or 2)
        wf.setframerate(blob.sample_rate or 16000)
        wf.writeframes(blob.data)
    return buffer.getvalue()


def prepare_upload(blob: AudioBlob) -> Tuple[str, bytes, str]:
    """Return ``(filename, payload, content_type)`` for a blob.

    Containerised audio is sent unchanged with its own label; raw PCM is the
    only payload that gets wrapped.
    """
    if blob.is_pcm:
        return "audio.wav", pcm_to_wav(blob), "audio/wav"
    return f"audio.{blob.file_extension}", blob.data, blob.mime_type


class TranscriptionRequestAdapter:
    """Ships a composite blob to a backend and maps the answer to a TranscriptionResult."""

    def __init__(self, backend: AbstractTranscriptionBackend,
                 file_manager: Optional[FileManager] = None):
        """Initialize the adapter.

        Args:
            backend: Transcription backend to call
            file_manager: When given, every capture is written to disk before upload
        """
        self.backend = backend
        self.file_manager = file_manager

    async def transcribe(self, blob: AudioBlob, language_hint: Optional[str] = None) -> TranscriptionResult:
        """Transcribe ``blob``.

        Raises:
            UpstreamError: The backend answered with a non-success status
        """
        start_time = time.time()
        filename, payload, content_type = prepare_upload(blob)

        if self.file_manager:
            try:
                self.file_manager.save_capture(payload, extension=filename.rsplit(".", 1)[-1])
            except OSError as e:
                # The saved copy is for debugging only; the upload still goes ahead
                logger.warning(f"Capture for session {blob.session_id} not saved: {e}")

        logger.info(f"Transcribing session {blob.session_id}: {len(payload)} bytes "
                    f"({base_mime_type(content_type)}), language={language_hint}")

        text = await self.backend.transcribe_audio(payload, filename, content_type, language_hint)

        result = TranscriptionResult(
            text=text.strip(),
            session_id=blob.session_id,
            service=self.backend.service_name,
            processing_time=time.time() - start_time,
            timestamp=datetime.now(),
            language=language_hint,
            audio_bytes=len(payload),
        )
        if result.is_empty:
            logger.info(f"Empty transcript for session {blob.session_id}")
        else:
            logger.debug(f"Transcript for session {blob.session_id}: '{result.text}'")
        return result
