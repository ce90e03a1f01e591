"""
VoicePrompt exception hierarchy.

Every failure is scoped to a single user action; none of these is fatal to
the process.
"""

from typing import Optional


class VoicePromptError(Exception):
    """Base exception for all VoicePrompt errors."""

    def __init__(self, detail: str = "An unexpected error occurred"):
        self.detail = detail
        super().__init__(detail)


class DeviceUnavailable(VoicePromptError):
    """Raised when the capture device cannot be acquired (permission denied, busy, missing)."""

    def __init__(self, detail: str = "Capture device unavailable"):
        super().__init__(detail)


class UpstreamError(VoicePromptError):
    """Raised when a transcription or chat backend fails.

    ``status`` is the backend's HTTP status, or None when the backend could
    not be reached at all.
    """

    def __init__(self, status: Optional[int], service: str, detail: Optional[str] = None):
        self.status = status
        self.service = service
        if status is None:
            message = f"{service} is unreachable"
        else:
            message = f"{service} responded with status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def unreachable(self) -> bool:
        return self.status is None

    @property
    def is_server_error(self) -> bool:
        """True when the backend itself failed rather than rejecting the content."""
        return self.status is None or self.status >= 500


class StaleResult(VoicePromptError):
    """Raised internally when an async result belongs to a session that is no longer current."""

    def __init__(self, session_id: str, current_session_id: Optional[str]):
        self.session_id = session_id
        self.current_session_id = current_session_id
        super().__init__(
            f"Result for session {session_id} is stale (current: {current_session_id})"
        )
