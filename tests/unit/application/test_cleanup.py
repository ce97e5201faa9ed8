"""Unit tests for ExpiredVideoCleanup."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.application.services.cleanup import ExpiredVideoCleanup
from src.commons.settings.models import Settings
from src.domain.models.video import ProcessingStatus, VideoRecord

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def expired_doc(video_id: str, **updates) -> dict:
    record = VideoRecord(
        id=video_id,
        conversation_id="conv-1",
        sender_id="alice",
        recipient_id="bob",
        expires_at=NOW - timedelta(hours=1),
        processing_status=ProcessingStatus.PROCESSED,
        transcript="hello there",
        chunk_count=1,
    )
    return record.model_copy(update=updates).model_dump(mode="json")


@pytest.fixture
def mock_document_db():
    document_db = AsyncMock()
    document_db.update.return_value = True
    return document_db


@pytest.fixture
def mock_blob():
    blob = AsyncMock()
    blob.delete.return_value = True
    return blob


@pytest.fixture
def cleanup(mock_document_db, mock_blob) -> ExpiredVideoCleanup:
    return ExpiredVideoCleanup(mock_document_db, mock_blob, Settings())


class TestExpiredVideoCleanup:
    """Tests for the expiry sweep."""

    async def test_queries_unmarked_records_past_expiry(self, cleanup, mock_document_db):
        mock_document_db.find.return_value = []

        report = await cleanup.run(NOW)

        collection, filters = mock_document_db.find.await_args.args
        assert collection == "videos"
        assert filters == {"expires_at": {"$lte": NOW}, "is_expired": False}
        assert report.expired == 0

    async def test_marks_expired_and_deletes_media(
        self, cleanup, mock_document_db, mock_blob
    ):
        mock_document_db.find.return_value = [expired_doc("vid-1")]

        report = await cleanup.run(NOW)

        mock_document_db.update.assert_awaited_once_with(
            "videos", "vid-1", {"is_expired": True, "expired_at": NOW}
        )
        deleted = {call.args for call in mock_blob.delete.await_args_list}
        assert deleted == {
            ("conversation-media", "chats/conv-1/videos/vid-1.mp4"),
            ("conversation-media", "chats/conv-1/thumbnails/vid-1.gif"),
        }
        assert report.expired == 1
        assert report.media_deleted == 2
        assert report.delete_failures == 0

    async def test_transcript_fields_are_kept(self, cleanup, mock_document_db):
        mock_document_db.find.return_value = [expired_doc("vid-1")]

        await cleanup.run(NOW)

        update = mock_document_db.update.await_args.args[2]
        assert "transcript" not in update
        assert "chunk_count" not in update

    async def test_explicit_media_ref_is_deleted(self, cleanup, mock_document_db, mock_blob):
        mock_document_db.find.return_value = [
            expired_doc("vid-1", media_ref="uploads/raw/vid-1.mov")
        ]

        await cleanup.run(NOW)

        paths = {call.args[1] for call in mock_blob.delete.await_args_list}
        assert "uploads/raw/vid-1.mov" in paths

    async def test_delete_failures_are_counted_not_raised(
        self, cleanup, mock_document_db, mock_blob
    ):
        mock_document_db.find.return_value = [expired_doc("vid-1"), expired_doc("vid-2")]

        async def delete(bucket, path):
            if "vid-1" in path:
                raise ConnectionError("minio unreachable")
            return True

        mock_blob.delete.side_effect = delete

        report = await cleanup.run(NOW)

        assert report.expired == 2
        assert report.media_deleted == 2
        assert report.delete_failures == 2
