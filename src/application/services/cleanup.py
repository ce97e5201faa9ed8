"""Daily sweep marking expired videos and removing their media."""

import asyncio
from datetime import UTC, datetime

from src.application.dtos.ingestion import CleanupReport
from src.commons.infrastructure.blob.base import BlobStorageBase
from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger, log_exceptions, timed
from src.domain.models.video import VideoRecord


class ExpiredVideoCleanup:
    """Marks records past ``expires_at`` as expired and deletes their blobs.

    Marking is authoritative; blob deletion is best-effort and its failures
    are only logged. Transcripts and indexed vectors are kept.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        blob_storage: BlobStorageBase,
        settings: Settings,
    ) -> None:
        self._document_db = document_db
        self._blob = blob_storage
        self._videos_collection = settings.document_db.collections.videos
        self._bucket = settings.blob_storage.buckets.videos
        self._media_template = settings.blob_storage.media_path_template
        self._thumbnail_template = settings.blob_storage.thumbnail_path_template
        self._batch_limit = settings.cleanup.batch_limit
        self._logger = get_logger(__name__)

    @timed()
    @log_exceptions(message="Error in cleanupExpiredVideos")
    async def run(self, now: datetime | None = None) -> CleanupReport:
        """Sweep expired records once.

        Args:
            now: Reference time, defaults to the current UTC time.

        Returns:
            Counts of marked records and blob deletions.
        """
        reference = now or datetime.now(UTC)
        self._logger.info("Starting daily expired video cleanup")

        docs = await self._document_db.find(
            self._videos_collection,
            {"expires_at": {"$lte": reference}, "is_expired": False},
            limit=self._batch_limit,
        )
        records = [VideoRecord.model_validate(doc) for doc in docs]
        self._logger.info(f"Found {len(records)} expired videos to process")

        paths: list[str] = []
        expired = 0
        for record in records:
            updated = await self._document_db.update(
                self._videos_collection,
                record.id,
                {"is_expired": True, "expired_at": reference},
            )
            if updated:
                expired += 1
            paths.append(self._media_path(record))
            paths.append(
                self._thumbnail_template.format(
                    conversation_id=record.conversation_id, video_id=record.id
                )
            )

        results = await asyncio.gather(
            *(self._blob.delete(self._bucket, path) for path in paths),
            return_exceptions=True,
        )
        deleted = 0
        failures = 0
        for path, result in zip(paths, results, strict=True):
            if isinstance(result, BaseException):
                failures += 1
                self._logger.warning(
                    f"Failed to delete: {path}", extra={"error": str(result)}
                )
            elif result:
                deleted += 1

        self._logger.info(f"Successfully processed {expired} expired videos")
        return CleanupReport(
            expired=expired, media_deleted=deleted, delete_failures=failures
        )

    def _media_path(self, record: VideoRecord) -> str:
        if record.media_ref:
            return record.media_ref
        return self._media_template.format(
            conversation_id=record.conversation_id, video_id=record.id
        )
