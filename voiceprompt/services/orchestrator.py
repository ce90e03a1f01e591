"""Coordinates recording, transcription and prompt submission for the UI."""

import asyncio
import logging
from typing import Callable, Optional, Set

from pubsub import pub

from .recording_session import RecordingSession, DEFAULT_MAX_SECONDS
from ..audio.capture import CaptureDevice
from ..chat.base import AbstractChatEngine
from ..exceptions import DeviceUnavailable, StaleResult, VoicePromptError
from ..models.audio import AudioBlob
from ..models.transcription import TranscriptionResult
from ..models.ui import UIStatus
from ..transcription.adapter import TranscriptionRequestAdapter

logger = logging.getLogger(__name__)


STATUS_TOPIC = "ui.status"


def _status_message(status: UIStatus) -> None:
    """Message signature of status topics."""


class UIOrchestrator:
    """Owns the single live recording session and the prompt/answer state.

    Every transcription is tagged with the id of the session that produced
    it. Results for a session other than ``current_session_id`` are stale
    and never reach the prompt field.
    """

    def __init__(
        self,
        device_factory: Callable[[], CaptureDevice],
        adapter: TranscriptionRequestAdapter,
        chat_engine: AbstractChatEngine,
        language: str = "en",
        max_seconds: int = DEFAULT_MAX_SECONDS,
        tick_interval: float = 1.0,
        status_topic: str = STATUS_TOPIC,
    ):
        self.device_factory = device_factory
        self.adapter = adapter
        self.chat_engine = chat_engine
        self.language = language
        self.max_seconds = max_seconds
        self.tick_interval = tick_interval
        self.status_topic = status_topic
        pub.getDefaultTopicMgr().getOrCreateTopic(status_topic, _status_message)

        self.prompt = ""
        self.last_answer = ""
        self.last_error: Optional[VoicePromptError] = None
        self.seconds_left: Optional[int] = None
        self.is_sending_prompt = False

        self.active_session: Optional[RecordingSession] = None
        self.current_session_id: Optional[str] = None
        self._transcribing_session_id: Optional[str] = None
        self._transcription_tasks: Set[asyncio.Task] = set()

    @property
    def is_recording(self) -> bool:
        return self.active_session is not None

    @property
    def is_transcribing(self) -> bool:
        return self._transcribing_session_id is not None

    def get_status(self) -> UIStatus:
        return UIStatus(
            session_id=self.current_session_id,
            is_recording=self.is_recording,
            is_transcribing=self.is_transcribing,
            is_sending_prompt=self.is_sending_prompt,
            seconds_left=self.seconds_left,
            language=self.language,
            prompt=self.prompt,
            last_answer=self.last_answer,
            last_error=str(self.last_error) if self.last_error else None,
        )

    def _publish(self) -> None:
        pub.sendMessage(self.status_topic, status=self.get_status())

    def set_prompt(self, text: str) -> None:
        self.prompt = text
        self._publish()

    def set_language(self, language: str) -> None:
        self.language = language.strip().lower()
        self._publish()

    # Recording

    async def toggle_recording(self) -> None:
        """Record button: start when idle, stop when recording."""
        if self.active_session is not None:
            await self.stop_recording()
        else:
            await self.start_recording()

    async def start_recording(self) -> bool:
        """Start a new session unless one is already live.

        A transcription still in flight becomes stale once the new session
        has started. A start that fails leaves it current.

        Returns:
            True if a session was started

        Raises:
            DeviceUnavailable: The capture device could not be acquired
        """
        if self.active_session is not None:
            logger.warning(f"Session {self.active_session.session_id} is still live; not starting another")
            return False
        if self.is_sending_prompt:
            logger.warning("Prompt submission in progress; not starting a recording")
            return False

        session = RecordingSession(
            device=self.device_factory(),
            on_finalized=self._on_session_finalized,
            max_seconds=self.max_seconds,
            on_countdown=self._on_countdown,
            tick_interval=self.tick_interval,
            on_failed=self._on_session_failed,
        )
        # Claim the slot before the first await so a concurrent start is rejected
        self.active_session = session
        self.last_error = None

        try:
            await session.start()
        except DeviceUnavailable as e:
            logger.error(f"Recording not started: {e}")
            self.active_session = None
            self.seconds_left = None
            self.last_error = e
            self._publish()
            raise

        self.current_session_id = session.session_id
        self._transcribing_session_id = None
        self._publish()
        return True

    async def stop_recording(self) -> None:
        """Stop the live session, if any. Repeated calls are harmless.

        Raises:
            VoicePromptError: The device could not be released; the session is discarded
        """
        session = self.active_session
        if session is None:
            return
        # A session already finalizing after its deadline clears itself on finalize
        try:
            await session.stop()
        except Exception as e:
            error = self._on_session_failed(session.session_id, e)
            if error is e:
                raise
            raise error from e

    def _on_countdown(self, seconds_left: Optional[int]) -> None:
        self.seconds_left = seconds_left
        self._publish()

    def _on_session_failed(self, session_id: str, error: BaseException) -> VoicePromptError:
        if self.active_session is not None and self.active_session.session_id == session_id:
            self.active_session = None
        self.seconds_left = None
        if isinstance(error, VoicePromptError):
            self.last_error = error
        else:
            self.last_error = VoicePromptError(f"Recording failed: {error}")
        self._publish()
        return self.last_error

    def _on_session_finalized(self, blob: AudioBlob) -> None:
        if self.active_session is not None and self.active_session.session_id == blob.session_id:
            self.active_session = None
        self.seconds_left = None
        self._transcribing_session_id = blob.session_id

        task = asyncio.get_running_loop().create_task(self._run_transcription(blob))
        self._transcription_tasks.add(task)
        task.add_done_callback(self._transcription_tasks.discard)
        self._publish()

    # Transcription

    async def _run_transcription(self, blob: AudioBlob) -> None:
        try:
            await self.transcribe_blob(blob)
        except StaleResult as e:
            logger.debug(f"Discarding result: {e}")
        except VoicePromptError as e:
            logger.warning(f"Transcription failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected transcription failure for session {blob.session_id}")
            if blob.session_id == self.current_session_id:
                self.last_error = VoicePromptError(f"Transcription failed: {e}")
                self._publish()

    async def transcribe_blob(self, blob: AudioBlob) -> TranscriptionResult:
        """Transcribe ``blob`` into the prompt field.

        Raises:
            UpstreamError: The backend failed; the prompt is left unchanged
            StaleResult: A newer session started while this one was in flight
        """
        if blob.session_id == self.current_session_id:
            self._transcribing_session_id = blob.session_id
            self._publish()

        try:
            result = await self.adapter.transcribe(blob, self.language)
        except VoicePromptError as e:
            if blob.session_id != self.current_session_id:
                raise StaleResult(blob.session_id, self.current_session_id) from e
            self.last_error = e
            raise
        finally:
            if self._transcribing_session_id == blob.session_id:
                self._transcribing_session_id = None
                self._publish()

        if blob.session_id != self.current_session_id:
            raise StaleResult(blob.session_id, self.current_session_id)

        self.prompt = result.text
        self._publish()
        return result

    async def wait_for_transcriptions(self) -> None:
        """Wait until every transcription in flight has completed."""
        while self._transcription_tasks:
            await asyncio.gather(*list(self._transcription_tasks))

    # Prompt

    async def send_prompt(self) -> Optional[str]:
        """Submit the prompt field to the chat backend.

        Returns:
            The markdown answer, or None if there was nothing to send

        Raises:
            UpstreamError: The chat backend failed or was unreachable; the last answer is kept
        """
        prompt = self.prompt.strip()
        if not prompt or self.is_sending_prompt:
            return None

        self.is_sending_prompt = True
        self.last_error = None
        self._publish()
        try:
            answer = await self.chat_engine.send_prompt(prompt)
        except VoicePromptError as e:
            self.last_error = e
            raise
        finally:
            self.is_sending_prompt = False
            self._publish()

        self.last_answer = answer
        self._publish()
        return answer

    async def shutdown(self) -> None:
        """Cancel the live session and any transcription in flight."""
        session = self.active_session
        if session is not None:
            try:
                await session.cancel()
            finally:
                self.active_session = None
                self.seconds_left = None

        for task in list(self._transcription_tasks):
            task.cancel()
        await asyncio.gather(*list(self._transcription_tasks), return_exceptions=True)
        logger.info("UIOrchestrator shut down")
