"""Capture devices that deliver audio fragments to subscribers on the event loop."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional

import numpy as np
import pyaudio

from ..exceptions import DeviceUnavailable
from ..models.audio import AudioFragment, AudioStats, PCM_MIME

logger = logging.getLogger(__name__)


FragmentListener = Callable[[AudioFragment], None]


def peak_level(audio_data: bytes) -> float:
    """Peak amplitude of 16-bit PCM audio, scaled to 0.0 - 1.0."""
    if len(audio_data) < 2:
        return 0.0
    samples = np.frombuffer(audio_data[:len(audio_data) - len(audio_data) % 2], dtype=np.int16)
    return float(np.abs(samples.astype(np.int32)).max()) / 32768.0


class CaptureDevice(ABC):
    """A source of audio fragments with an exclusive holder.

    Subclasses implement ``open``/``close``; fragments are handed to
    ``_deliver`` on the event loop thread, which fans them out to subscribers
    in arrival order.
    """

    mime_type: str = PCM_MIME
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    sample_width: Optional[int] = None

    def __init__(self):
        self._listeners: List[FragmentListener] = []
        self.is_open = False
        self.start_time: Optional[datetime] = None
        self.total_fragments = 0
        self.total_bytes = 0
        self.peak_level = 0.0

    def subscribe(self, listener: FragmentListener) -> Callable[[], None]:
        """Register ``listener`` for fragments; returns an unsubscribe handle."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator["CaptureDevice"]:
        """Hold the device for the duration of the block; always released on exit."""
        if self.is_open:
            raise DeviceUnavailable("Capture device is already held")
        try:
            await self.open()
            yield self
        finally:
            await self.close()

    @abstractmethod
    async def open(self) -> None:
        """Start delivering fragments. Raises DeviceUnavailable on failure."""

    @abstractmethod
    async def close(self) -> None:
        """Stop delivering fragments and release the hardware. Idempotent."""

    def _deliver(self, audio_data: bytes) -> None:
        if not self.is_open:
            logger.debug(f"Dropping {len(audio_data)} bytes delivered after close")
            return

        self.total_fragments += 1
        self.total_bytes += len(audio_data)
        fragment = AudioFragment(
            data=audio_data,
            sequence_number=self.total_fragments,
            timestamp=time.time(),
        )
        for listener in list(self._listeners):
            listener(fragment)

    def get_recording_stats(self) -> AudioStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_open,
            duration_seconds=duration,
            total_fragments=self.total_fragments,
            total_bytes=self.total_bytes,
            peak_level=self.peak_level,
        )


class PyAudioCaptureDevice(CaptureDevice):
    """Microphone capture through PyAudio delivering 16-bit PCM fragments."""

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        input_device_index: Optional[int] = None,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            sample_rate: Audio sample rate (16kHz for Whisper compatibility)
            chunk_size: Size of each audio fragment in samples
            channels: Number of audio channels (1 for mono)
            input_device_index: PyAudio device index, None for the default input
        """
        super().__init__()
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.sample_width = 2
        self.format = pyaudio.paInt16
        self.input_device_index = input_device_index

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def mime_type(self) -> str:
        return f"{PCM_MIME}; rate={self.sample_rate}; channels={self.channels}"

    async def open(self) -> None:
        if self.is_open:
            raise DeviceUnavailable("Capture device is already open")

        self._loop = asyncio.get_running_loop()
        self.total_fragments = 0
        self.total_bytes = 0
        self.peak_level = 0.0

        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.input_device_index,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._stream_callback,
                start=False,
            )
            self.is_open = True
            self.start_time = datetime.now()
            self.stream.start_stream()
        except OSError as e:
            logger.error(f"Could not open audio input: {e}")
            await self.close()
            raise DeviceUnavailable(f"Could not open audio input: {e}") from e

        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/fragment")

    def _stream_callback(self, in_data, frame_count, time_info, status):
        # Runs on the PortAudio thread; hand the bytes to the event loop
        if status:
            logger.debug(f"PortAudio status flags: {status}")
        self._loop.call_soon_threadsafe(self._deliver, in_data)
        return None, pyaudio.paContinue

    def _deliver(self, audio_data: bytes) -> None:
        if self.is_open:
            self.peak_level = peak_level(audio_data)
        super()._deliver(audio_data)

    async def close(self) -> None:
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            finally:
                self.stream = None
            # Let fragments queued before the stream stopped reach subscribers
            await asyncio.sleep(0)

        self.is_open = False

        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            logger.info(f"Audio stream closed. Total fragments: {self.total_fragments}")
