"""Session-related data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SessionState(Enum):
    """Lifecycle of a recording session."""
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.FINALIZED, SessionState.CANCELLED)


@dataclass
class SessionInfo:
    """Summary of a recording session."""
    session_id: str
    state: SessionState
    started_at: Optional[datetime]
    duration_seconds: float
    total_fragments: int
    total_bytes: int
