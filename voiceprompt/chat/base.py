"""Abstract base class for chat engines."""

from abc import ABC, abstractmethod


class AbstractChatEngine(ABC):
    """Turns a text prompt into a markdown answer."""

    service_name = "chat"

    @abstractmethod
    async def send_prompt(self, prompt: str) -> str:
        """Send ``prompt`` and return the markdown answer.

        Raises:
            UpstreamError: The backend answered with a non-success status
        """
        pass
