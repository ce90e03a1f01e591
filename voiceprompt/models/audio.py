"""Audio-related data models."""

from dataclasses import dataclass
from typing import Optional


OGG_OPUS_MIME = "audio/ogg; codecs=opus"
PCM_MIME = "audio/L16"

_EXTENSIONS = {
    "audio/ogg": "ogg",
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/l16": "pcm",
}


def base_mime_type(mime_type: str) -> str:
    """Strip parameters (``; codecs=...``) and normalise case."""
    return mime_type.split(";", 1)[0].strip().lower()


@dataclass(frozen=True)
class AudioFragment:
    """One incrementally-delivered piece of captured audio."""
    data: bytes
    sequence_number: int
    timestamp: float  # Time when the device handed this fragment over

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AudioBlob:
    """Concatenation of every fragment of a session up to one moment."""
    data: bytes
    mime_type: str
    session_id: str
    fragment_count: int
    # Only set for raw PCM payloads
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    sample_width: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_pcm(self) -> bool:
        return base_mime_type(self.mime_type) == PCM_MIME.lower()

    @property
    def file_extension(self) -> str:
        return _EXTENSIONS.get(base_mime_type(self.mime_type), "bin")


@dataclass
class AudioStats:
    """Capture statistics for a recording session."""
    is_recording: bool
    duration_seconds: float
    total_fragments: int
    total_bytes: int
    peak_level: float = 0.0
