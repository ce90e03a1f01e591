"""Time-boxed recording session state machine."""

import asyncio
import logging
import uuid
from contextlib import AsyncExitStack
from datetime import datetime
from typing import Callable, Optional

from ..audio.accumulator import AudioChunkAccumulator
from ..audio.capture import CaptureDevice
from ..audio.timer import RecordingTimer
from ..models.audio import AudioBlob
from ..models.session import SessionInfo, SessionState

logger = logging.getLogger(__name__)


DEFAULT_MAX_SECONDS = 5


class RecordingSession:
    """One capture from start to finalize.

    ``stop()`` and the timer deadline share one path: cancel the timer,
    release the device, then seal the accumulator and hand the final blob to
    ``on_finalized`` exactly once. If the device cannot be released the
    session ends CANCELLED; a stop started by the deadline reports that
    failure through ``on_failed(session_id, error)``.
    """

    def __init__(
        self,
        device: CaptureDevice,
        on_finalized: Callable[[AudioBlob], None],
        max_seconds: int = DEFAULT_MAX_SECONDS,
        on_countdown: Optional[Callable[[Optional[int]], None]] = None,
        tick_interval: float = 1.0,
        session_id: Optional[str] = None,
        on_failed: Optional[Callable[[str, BaseException], None]] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.device = device
        self.on_finalized = on_finalized
        self.on_countdown = on_countdown
        self.on_failed = on_failed
        self.max_seconds = max_seconds

        self.state = SessionState.IDLE
        self.started_at: Optional[datetime] = None
        self.stopped_at: Optional[datetime] = None
        self.final_blob: Optional[AudioBlob] = None

        self.accumulator = AudioChunkAccumulator(
            session_id=self.session_id,
            mime_type=device.mime_type,
            sample_rate=device.sample_rate,
            channels=device.channels,
            sample_width=device.sample_width,
        )
        self.timer = RecordingTimer(
            on_tick=self._on_tick,
            on_deadline=self._on_deadline,
            tick_interval=tick_interval,
        )

        self._exit_stack: Optional[AsyncExitStack] = None
        self._deadline_task: Optional[asyncio.Task] = None

    @property
    def is_recording(self) -> bool:
        return self.state == SessionState.RECORDING

    async def start(self) -> None:
        """Acquire the device and begin recording.

        Raises:
            DeviceUnavailable: The device could not be acquired; nothing is held afterwards.
        """
        if self.state != SessionState.IDLE:
            logger.warning(f"Session {self.session_id} already started ({self.state.value})")
            return

        exit_stack = AsyncExitStack()
        exit_stack.callback(self.device.subscribe(self.accumulator.append))
        try:
            await exit_stack.enter_async_context(self.device.acquire())
        except BaseException:
            await exit_stack.aclose()
            raise

        self._exit_stack = exit_stack
        self.started_at = datetime.now()
        self.state = SessionState.RECORDING
        self.timer.start(self.max_seconds)

        logger.info(f"Session {self.session_id} recording (max {self.max_seconds}s, "
                    f"{self.device.mime_type})")

    async def stop(self) -> None:
        """End the recording and emit the final blob. No-op unless recording."""
        if self.state != SessionState.RECORDING:
            logger.debug(f"Ignoring stop for session {self.session_id} in state {self.state.value}")
            return

        self.state = SessionState.FINALIZING
        try:
            await self._release()
        except Exception:
            self.accumulator.seal()
            self.state = SessionState.CANCELLED
            logger.error(f"Session {self.session_id} could not release its device")
            raise

        self.final_blob = self.accumulator.seal()
        self.state = SessionState.FINALIZED
        logger.info(f"Session {self.session_id} finalized: {self.final_blob.fragment_count} fragments, "
                    f"{self.final_blob.size} bytes")

        self.on_finalized(self.final_blob)

    async def cancel(self) -> None:
        """Discard the recording without emitting anything. No-op unless recording."""
        if self.state != SessionState.RECORDING:
            return

        self.state = SessionState.FINALIZING
        try:
            await self._release()
        finally:
            self.accumulator.seal()
            self.state = SessionState.CANCELLED
        logger.info(f"Session {self.session_id} cancelled")

    async def _release(self) -> None:
        self.timer.cancel()
        self.stopped_at = datetime.now()
        try:
            # Closes the device first, then drops the fragment subscription
            await self._exit_stack.aclose()
        finally:
            self._exit_stack = None
            if self.on_countdown:
                self.on_countdown(None)

    def _on_tick(self, seconds_remaining: int) -> None:
        if self.on_countdown and self.state == SessionState.RECORDING:
            self.on_countdown(seconds_remaining)

    def _on_deadline(self) -> None:
        self._deadline_task = asyncio.get_running_loop().create_task(self.stop())
        self._deadline_task.add_done_callback(self._on_deadline_stop_done)

    def _on_deadline_stop_done(self, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is None:
            return
        error = task.exception()
        logger.error(f"Automatic stop of session {self.session_id} failed: {error}")
        if self.on_failed:
            self.on_failed(self.session_id, error)

    def get_info(self) -> SessionInfo:
        """Summarize the session so far."""
        duration = 0.0
        if self.started_at:
            end = self.stopped_at or datetime.now()
            duration = (end - self.started_at).total_seconds()

        return SessionInfo(
            session_id=self.session_id,
            state=self.state,
            started_at=self.started_at,
            duration_seconds=duration,
            total_fragments=self.accumulator.fragment_count,
            total_bytes=self.accumulator.total_bytes,
        )
