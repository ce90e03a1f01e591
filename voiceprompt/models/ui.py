"""UI-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class UIStatus:
    """Snapshot of what the user sees."""
    session_id: Optional[str] = None
    is_recording: bool = False
    is_transcribing: bool = False
    is_sending_prompt: bool = False
    seconds_left: Optional[int] = None
    language: str = "en"
    prompt: str = ""
    last_answer: str = ""
    last_error: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.is_recording or self.is_transcribing or self.is_sending_prompt
