"""Unit tests for AudioChunkAccumulator."""

import pytest
from pubsub import pub

from voiceprompt.audio.accumulator import AudioChunkAccumulator, SNAPSHOT_TOPIC
from voiceprompt.models.audio import AudioFragment, OGG_OPUS_MIME


def make_fragments(sizes):
    return [
        AudioFragment(data=bytes([i % 256]) * size, sequence_number=i + 1, timestamp=float(i))
        for i, size in enumerate(sizes)
    ]


@pytest.mark.unit
class TestAudioChunkAccumulator:
    """Test cases for AudioChunkAccumulator."""

    def test_empty_snapshot(self):
        accumulator = AudioChunkAccumulator("s1", OGG_OPUS_MIME)

        blob = accumulator.snapshot()

        assert blob.data == b""
        assert blob.fragment_count == 0
        assert blob.session_id == "s1"
        assert blob.mime_type == OGG_OPUS_MIME

    @pytest.mark.parametrize("sizes", [[1], [100, 200, 150], [7, 0, 3, 1024, 5]])
    def test_snapshot_is_ordered_concatenation(self, sizes):
        accumulator = AudioChunkAccumulator("s1", OGG_OPUS_MIME)
        fragments = make_fragments(sizes)

        for n, fragment in enumerate(fragments, start=1):
            accumulator.append(fragment)
            blob = accumulator.snapshot()
            assert blob.data == b"".join(f.data for f in fragments[:n])
            assert blob.fragment_count == n

        assert accumulator.total_bytes == sum(sizes)

    def test_snapshot_not_affected_by_later_appends(self):
        accumulator = AudioChunkAccumulator("s1", OGG_OPUS_MIME)
        first, second = make_fragments([10, 20])

        accumulator.append(first)
        earlier = accumulator.snapshot()
        accumulator.append(second)

        assert earlier.size == 10
        assert accumulator.snapshot().size == 30

    def test_arrival_order_wins_over_sequence_numbers(self):
        accumulator = AudioChunkAccumulator("s1", OGG_OPUS_MIME)
        late = AudioFragment(data=b"bb", sequence_number=2, timestamp=0.0)
        early = AudioFragment(data=b"a", sequence_number=1, timestamp=1.0)

        accumulator.append(late)
        accumulator.append(early)

        assert accumulator.snapshot().data == b"bba"

    def test_append_after_seal_raises(self):
        accumulator = AudioChunkAccumulator("s1", OGG_OPUS_MIME)
        first, second = make_fragments([4, 4])
        accumulator.append(first)

        final = accumulator.seal()

        assert accumulator.is_sealed
        assert final.size == 4
        with pytest.raises(RuntimeError):
            accumulator.append(second)
        assert accumulator.snapshot().size == 4

    def test_pcm_format_carried_on_snapshot(self):
        accumulator = AudioChunkAccumulator("s1", "audio/L16; rate=16000; channels=1",
                                            sample_rate=16000, channels=1, sample_width=2)

        blob = accumulator.snapshot()

        assert blob.is_pcm
        assert blob.sample_rate == 16000
        assert blob.sample_width == 2

    def test_subscribers_receive_every_snapshot(self):
        accumulator = AudioChunkAccumulator("s1", OGG_OPUS_MIME)
        received = []

        def listener(session_id, blob):
            received.append((session_id, blob.size))

        unsubscribe = accumulator.subscribe(listener)
        for fragment in make_fragments([100, 200, 150]):
            accumulator.append(fragment)

        assert received == [("s1", 100), ("s1", 300), ("s1", 450)]

        unsubscribe()
        accumulator.append(make_fragments([1])[0])
        assert len(received) == 3

        # Second call is harmless
        unsubscribe()

    def test_publishes_on_snapshot_topic(self):
        accumulator = AudioChunkAccumulator("s9", OGG_OPUS_MIME)
        sizes = []

        def listener(session_id, blob):
            sizes.append(blob.size)

        pub.subscribe(listener, SNAPSHOT_TOPIC)
        accumulator.append(make_fragments([12])[0])

        assert sizes == [12]

    def test_subscription_ignores_other_sessions(self):
        first = AudioChunkAccumulator("first", OGG_OPUS_MIME)
        second = AudioChunkAccumulator("second", OGG_OPUS_MIME)
        received = []

        def listener(session_id, blob):
            received.append((session_id, blob.size))

        first.subscribe(listener)
        second.append(make_fragments([40])[0])
        first.append(make_fragments([10])[0])

        assert received == [("first", 10)]
