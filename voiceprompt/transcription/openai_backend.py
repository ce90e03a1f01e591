"""OpenAI Whisper transcription backend."""

import asyncio
import logging
from typing import Optional

import aiohttp

from .base import AbstractTranscriptionBackend
from ..exceptions import UpstreamError

logger = logging.getLogger(__name__)


class OpenAITranscriptionBackend(AbstractTranscriptionBackend):
    """Sends audio to the OpenAI ``/audio/transcriptions`` endpoint."""

    service_name = "OpenAI Whisper"

    def __init__(self, api_key: str, model: str = "whisper-1",
                 base_url: str = "https://api.openai.com/v1"):
        """Initialize the Whisper backend.

        Args:
            api_key: OpenAI API key
            model: Transcription model
            base_url: API root, without trailing slash
        """
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/audio/transcriptions"

        logger.info(f"OpenAITranscriptionBackend initialized with model: {model}")

    async def transcribe_audio(self, payload: bytes, filename: str, content_type: str,
                               language: Optional[str] = None) -> str:
        form = aiohttp.FormData()
        form.add_field("model", self.model)
        form.add_field("file", payload, filename=filename, content_type=content_type)
        if language:
            form.add_field("language", language)

        headers = {"Authorization": f"Bearer {self.api_key}"}

        logger.debug(f"Uploading {len(payload)} bytes as {filename} ({content_type}), language={language}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, headers=headers, data=form) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"Whisper API error: {response.status} - {error_text}")
                        raise UpstreamError(response.status, self.service_name, error_text)

                    result = await response.json()
                    return result["text"]
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Whisper API unreachable: {e}")
            raise UpstreamError(None, self.service_name, str(e) or type(e).__name__) from e
