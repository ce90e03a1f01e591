"""Services layer for VoicePrompt application logic."""

from .recording_session import RecordingSession
from .orchestrator import UIOrchestrator, STATUS_TOPIC

__all__ = [
    "RecordingSession",
    "UIOrchestrator",
    "STATUS_TOPIC",
]
