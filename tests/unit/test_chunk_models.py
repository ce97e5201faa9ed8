"""Unit tests for transcript and vector domain models."""

import pytest

from src.domain.models.chunk import Chunk, TranscriptSegment
from src.domain.models.vector import (
    VectorMetadata,
    VectorRecord,
    build_vector_id,
    point_uuid,
)


class TestTranscriptSegment:
    """Tests for TranscriptSegment model."""

    def test_create(self):
        segment = TranscriptSegment(start=1.5, end=3.0, text="hello")
        assert segment.start == 1.5
        assert segment.end == 3.0
        assert segment.text == "hello"

    def test_zero_length_segment_is_valid(self):
        segment = TranscriptSegment(start=2.0, end=2.0, text="uh")
        assert segment.end == segment.start

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError, match="precedes start"):
            TranscriptSegment(start=5.0, end=4.0, text="backwards")

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            TranscriptSegment(start=-1.0, end=1.0, text="x")


class TestChunk:
    """Tests for Chunk model."""

    @pytest.fixture
    def chunk(self) -> Chunk:
        return Chunk(
            text="We should book the cabin",
            start_time=65.0,
            end_time=130.5,
            chunk_index=2,
            segment_count=3,
        )

    def test_duration(self, chunk):
        assert chunk.duration_seconds == 65.5

    def test_format_time_range(self, chunk):
        assert chunk.format_time_range() == "01:05 - 02:10"

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            Chunk(text="x", start_time=0, end_time=1, chunk_index=-1)


class TestVectorModels:
    """Tests for vector ids and payloads."""

    def test_vector_id_format(self):
        assert build_vector_id("vid-1", 0) == "vid-1_chunk_0"
        assert build_vector_id("vid-1", 12) == "vid-1_chunk_12"

    def test_point_uuid_is_stable(self):
        assert point_uuid("vid-1_chunk_0") == point_uuid("vid-1_chunk_0")
        assert point_uuid("vid-1_chunk_0") != point_uuid("vid-1_chunk_1")
        assert len(point_uuid("vid-1_chunk_0")) == 36

    def test_payload_uses_wire_names(self):
        record = VectorRecord(
            id="vid-1_chunk_0",
            vector=[0.1, 0.2],
            metadata=VectorMetadata(
                text="hello",
                video_id="vid-1",
                conversation_id="conv-1",
                start_time=0.0,
                end_time=4.2,
                timestamp=1700000000000,
                chunk_index=0,
            ),
        )

        assert record.namespace == "conv-1"
        assert record.payload() == {
            "text": "hello",
            "videoId": "vid-1",
            "conversationId": "conv-1",
            "startTime": 0.0,
            "endTime": 4.2,
            "timestamp": 1700000000000,
            "chunkIndex": 0,
        }

    def test_metadata_parses_wire_payload(self):
        metadata = VectorMetadata.model_validate(
            {
                "text": "hi",
                "videoId": "vid-1",
                "conversationId": "conv-1",
                "startTime": 1.0,
                "endTime": 2.0,
                "timestamp": 1,
                "chunkIndex": 4,
            }
        )

        assert metadata.chunk_index == 4
        assert metadata.video_id == "vid-1"
