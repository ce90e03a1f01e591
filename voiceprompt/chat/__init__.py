"""Chat engines that answer prompts in markdown."""

from .base import AbstractChatEngine
from .openai_engine import OpenAIChatEngine, DEFAULT_SYSTEM_PROMPT
from .proxy_engine import ProxyChatEngine

__all__ = [
    "AbstractChatEngine",
    "OpenAIChatEngine",
    "ProxyChatEngine",
    "DEFAULT_SYSTEM_PROMPT",
]
