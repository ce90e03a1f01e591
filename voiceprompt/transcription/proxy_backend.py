"""Transcription through the VoicePrompt HTTP server."""

import asyncio
import logging
from typing import Optional

import aiohttp

from .base import AbstractTranscriptionBackend
from ..exceptions import UpstreamError

logger = logging.getLogger(__name__)


# Failures that mean the server was never reached or never answered
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


async def raise_for_proxy_error(response: aiohttp.ClientResponse, service: str) -> None:
    """Turn a non-200 proxy response into an UpstreamError.

    The server reports upstream failures as 502 with the original status in
    ``upstream_status``; that status is the one surfaced to the caller.
    """
    if response.status == 200:
        return

    status = response.status
    detail = await response.text()
    if response.content_type == "application/json":
        body = await response.json()
        status = body.get("upstream_status") or status
        detail = body.get("error", detail)
    raise UpstreamError(status, service, detail)


class ProxyTranscriptionBackend(AbstractTranscriptionBackend):
    """Posts raw audio to ``/api/transcribe`` on a VoicePrompt server."""

    service_name = "VoicePrompt server"

    def __init__(self, server_url: str = "http://localhost:3000"):
        self.url = f"{server_url.rstrip('/')}/api/transcribe"

    async def transcribe_audio(self, payload: bytes, filename: str, content_type: str,
                               language: Optional[str] = None) -> str:
        params = {"language": language} if language else None
        headers = {"Content-Type": content_type}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, params=params, headers=headers, data=payload) as response:
                    await raise_for_proxy_error(response, self.service_name)
                    return await response.text()
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach {self.url}: {e}")
            raise UpstreamError(None, self.service_name, str(e) or type(e).__name__) from e

    def get_display_info(self) -> str:
        return f" (via {self.url})"
