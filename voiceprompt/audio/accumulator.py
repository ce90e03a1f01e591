"""Append-only accumulator that merges audio fragments into a growing blob."""

import logging
from typing import Callable, List, Optional

from pubsub import pub

from ..models.audio import AudioBlob, AudioFragment

logger = logging.getLogger(__name__)


SNAPSHOT_TOPIC = "audio.snapshot"

SnapshotListener = Callable[..., None]


def _snapshot_message(session_id: str, blob: AudioBlob) -> None:
    """Message signature of snapshot topics."""


class AudioChunkAccumulator:
    """Collects the fragments of one session in arrival order.

    Fragments are copied into a single append-only buffer; ``_length`` only
    ever grows, and a snapshot is a read of the buffer up to that length.
    Every append publishes the fresh snapshot on ``topic`` with
    ``session_id`` and ``blob`` keyword arguments.
    """

    def __init__(
        self,
        session_id: str,
        mime_type: str,
        sample_rate: Optional[int] = None,
        channels: Optional[int] = None,
        sample_width: Optional[int] = None,
        topic: str = SNAPSHOT_TOPIC,
    ):
        self.session_id = session_id
        self.mime_type = mime_type
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width
        self.topic = topic
        pub.getDefaultTopicMgr().getOrCreateTopic(topic, _snapshot_message)

        self._buffer = bytearray()
        self._length = 0
        self._fragment_count = 0
        self._last_sequence: Optional[int] = None
        self._sealed = False

        # pypubsub only keeps weak references to listeners
        self._listeners: List[SnapshotListener] = []

    @property
    def fragment_count(self) -> int:
        return self._fragment_count

    @property
    def total_bytes(self) -> int:
        return self._length

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def append(self, fragment: AudioFragment) -> None:
        """Add a fragment after every fragment appended so far."""
        if self._sealed:
            raise RuntimeError(f"Accumulator for session {self.session_id} is sealed")

        if self._last_sequence is not None and fragment.sequence_number <= self._last_sequence:
            logger.warning(
                f"Fragment {fragment.sequence_number} arrived after {self._last_sequence}; "
                "keeping arrival order"
            )
        self._last_sequence = fragment.sequence_number

        self._buffer.extend(fragment.data)
        self._length += len(fragment.data)
        self._fragment_count += 1

        logger.debug(f"Appended fragment {fragment.sequence_number}: {len(fragment.data)} bytes, "
                     f"{self._length} bytes total")

        pub.sendMessage(self.topic, session_id=self.session_id, blob=self.snapshot())

    def snapshot(self) -> AudioBlob:
        """Return the composite blob of all fragments appended so far."""
        return AudioBlob(
            data=bytes(self._buffer[:self._length]),
            mime_type=self.mime_type,
            session_id=self.session_id,
            fragment_count=self._fragment_count,
            sample_rate=self.sample_rate,
            channels=self.channels,
            sample_width=self.sample_width,
        )

    def seal(self) -> AudioBlob:
        """Refuse further appends and return the final snapshot."""
        self._sealed = True
        return self.snapshot()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Subscribe ``listener(session_id, blob)`` to this session's snapshots.

        Every accumulator publishes on the same topic; snapshots of other
        sessions are filtered out.

        Returns:
            Handle that removes the subscription when called
        """
        def on_snapshot(session_id: str, blob: AudioBlob) -> None:
            if session_id == self.session_id:
                listener(session_id=session_id, blob=blob)

        pub.subscribe(on_snapshot, self.topic)
        self._listeners.append(on_snapshot)

        def unsubscribe() -> None:
            if on_snapshot in self._listeners:
                self._listeners.remove(on_snapshot)
                pub.unsubscribe(on_snapshot, self.topic)

        return unsubscribe
