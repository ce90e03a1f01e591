"""Audio capture and accumulation module."""

from .accumulator import AudioChunkAccumulator, SNAPSHOT_TOPIC
from .capture import CaptureDevice, PyAudioCaptureDevice, peak_level
from .timer import RecordingTimer

__all__ = [
    'AudioChunkAccumulator',
    'SNAPSHOT_TOPIC',
    'CaptureDevice',
    'PyAudioCaptureDevice',
    'RecordingTimer',
    'peak_level',
]
