"""OpenAI chat completion engine."""

import asyncio
import logging

import aiohttp

from .base import AbstractChatEngine
from ..exceptions import UpstreamError

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Respond in markdown."


class OpenAIChatEngine(AbstractChatEngine):
    """Simple engine for sending prompts to ChatGPT and getting responses."""

    service_name = "OpenAI Chat"

    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo",
                 temperature: float = 1.0,
                 system_prompt: str = DEFAULT_SYSTEM_PROMPT,
                 base_url: str = "https://api.openai.com/v1"):
        """Initialize the chat engine.

        Args:
            api_key: OpenAI API key
            model: Chat model to use
            temperature: Temperature for response generation (0.0 to 2.0)
            system_prompt: System message sent ahead of every prompt
            base_url: API root, without trailing slash
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.system_prompt = system_prompt
        self.url = f"{base_url.rstrip('/')}/chat/completions"

        logger.info(f"OpenAIChatEngine initialized with model: {model}")

    async def send_prompt(self, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": self.system_prompt
                },
                {
                    "role": "user",
                    "content": prompt
                }
            ],
            "temperature": self.temperature
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"ChatGPT API error: {response.status} - {error_text}")
                        raise UpstreamError(response.status, self.service_name, error_text)

                    result = await response.json()
                    return result["choices"][0]["message"]["content"]
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"ChatGPT API unreachable: {e}")
            raise UpstreamError(None, self.service_name, str(e) or type(e).__name__) from e
