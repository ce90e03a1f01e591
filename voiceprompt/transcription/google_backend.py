"""Google Speech-to-Text transcription backend."""

import asyncio
import logging
from typing import Optional

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

from .base import AbstractTranscriptionBackend
from ..exceptions import UpstreamError

logger = logging.getLogger(__name__)


_ENCODINGS = {
    "wav": (speech.RecognitionConfig.AudioEncoding.LINEAR16, None),
    "ogg": (speech.RecognitionConfig.AudioEncoding.OGG_OPUS, 48000),
    "webm": (speech.RecognitionConfig.AudioEncoding.WEBM_OPUS, 48000),
}


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: str,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 timeout: float = 30.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            language: Language code used when the caller gives no hint
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            timeout: Per-request deadline in seconds
        """
        if not credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.credentials_path = credentials_path
        self.language = language
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.timeout = timeout

        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechAsyncClient(credentials=credentials)
        logger.info(f"Using Google Cloud project: {credentials.project_id}")

    def _build_config(self, filename: str, language: Optional[str]) -> speech.RecognitionConfig:
        extension = filename.rsplit(".", 1)[-1].lower()
        encoding, sample_rate = _ENCODINGS.get(
            extension, (speech.RecognitionConfig.AudioEncoding.ENCODING_UNSPECIFIED, None)
        )
        config = speech.RecognitionConfig(
            encoding=encoding,
            language_code=language or self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model="latest_short",
        )
        if sample_rate:
            config.sample_rate_hertz = sample_rate
        return config

    async def transcribe_audio(self, payload: bytes, filename: str, content_type: str,
                               language: Optional[str] = None) -> str:
        config = self._build_config(filename, language)
        audio = speech.RecognitionAudio(content=payload)

        logger.debug(f"Recognizing {len(payload)} bytes ({content_type}), language={config.language_code}")
        try:
            response = await self.client.recognize(config=config, audio=audio, timeout=self.timeout)
        except gax_exceptions.GoogleAPICallError as e:
            status = e.code if isinstance(e.code, int) else 502
            logger.error(f"Google STT API call error: {e}")
            raise UpstreamError(status, self.service_name, e.message) from e
        except (gax_exceptions.GoogleAPIError, asyncio.TimeoutError) as e:
            # Retries exhausted or transport failure; no status was received
            logger.error(f"Google STT unreachable: {e}")
            raise UpstreamError(None, self.service_name, str(e) or type(e).__name__) from e

        if not response.results:
            logger.debug("--- NO SPEECH DETECTED ---")
            return ""

        return " ".join(result.alternatives[0].transcript for result in response.results
                        if result.alternatives)
