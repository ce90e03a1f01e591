"""Chat through the VoicePrompt HTTP server."""

import logging

import aiohttp

from .base import AbstractChatEngine
from ..exceptions import UpstreamError
from ..transcription.proxy_backend import TRANSPORT_ERRORS, raise_for_proxy_error

logger = logging.getLogger(__name__)


class ProxyChatEngine(AbstractChatEngine):
    """Posts prompts to ``/api/chat`` on a VoicePrompt server."""

    service_name = "VoicePrompt server"

    def __init__(self, server_url: str = "http://localhost:3000"):
        self.url = f"{server_url.rstrip('/')}/api/chat"

    async def send_prompt(self, prompt: str) -> str:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, json={"prompt": prompt}) as response:
                    await raise_for_proxy_error(response, self.service_name)
                    body = await response.json()
                    return body["answer"]
        except TRANSPORT_ERRORS as e:
            logger.error(f"Could not reach {self.url}: {e}")
            raise UpstreamError(None, self.service_name, str(e) or type(e).__name__) from e
