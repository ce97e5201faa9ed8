"""Periodic recovery pass over videos the event path never finished."""

import asyncio
from datetime import UTC, datetime, timedelta

from src.application.dtos.ingestion import BacklogReport, OutcomeKind, PipelineOutcome
from src.application.services.ingestion import IngestionOrchestrator
from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger, log_exceptions, timed
from src.domain.models.video import VideoRecord, claimable_filter


class BacklogScheduler:
    """Selects unfinished records and runs their pipelines concurrently.

    The store query returns only claimable records, so in-flight runs and
    failures inside the cool-down never take a batch slot. One record
    failing never affects its siblings.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        orchestrator: IngestionOrchestrator,
        settings: Settings,
    ) -> None:
        self._document_db = document_db
        self._orchestrator = orchestrator
        self._videos_collection = settings.document_db.collections.videos
        self._batch_limit = settings.backlog.batch_limit
        self._cooldown = timedelta(hours=settings.backlog.failure_cooldown_hours)
        self._logger = get_logger(__name__)

    async def select(self, now: datetime | None = None) -> tuple[int, list[VideoRecord]]:
        """Find records eligible for this pass.

        Args:
            now: Reference time for the cool-down check.

        Returns:
            Number of candidates read and the eligible records.
        """
        reference = now or datetime.now(UTC)
        docs = await self._document_db.find(
            self._videos_collection,
            {
                **claimable_filter(self._cooldown, reference),
                "is_expired": {"$ne": True},
            },
            limit=self._batch_limit,
            sort=[("created_at", 1)],
        )

        eligible: list[VideoRecord] = []
        for doc in docs:
            record = VideoRecord.model_validate(doc)
            if record.is_processed or record.is_processing or record.is_expired:
                continue
            if record.is_failed and record.failed_within(self._cooldown, reference):
                self._logger.info(
                    f"Skipping video {record.id} - failed recently",
                    extra={"video_id": record.id},
                )
                continue
            eligible.append(record)

        return len(docs), eligible

    @timed()
    @log_exceptions(message="Error in backlog pass")
    async def run_pass(self, now: datetime | None = None) -> BacklogReport:
        """Run one backlog pass.

        Returns:
            Aggregate counts and per-record outcomes. A pipeline that raised
            instead of returning an outcome counts as failed.
        """
        scanned, records = await self.select(now)
        self._logger.info(
            f"Found {len(records)} videos in RAG backlog",
            extra={"scanned": scanned},
        )
        if not records:
            return BacklogReport(scanned=scanned)

        results = await asyncio.gather(
            *(self._orchestrator.process(record) for record in records),
            return_exceptions=True,
        )

        outcomes: list[PipelineOutcome] = []
        failed = 0
        for record, result in zip(records, results, strict=True):
            if isinstance(result, BaseException):
                failed += 1
                self._logger.error(
                    f"Backlog run for video {record.id} raised",
                    exc_info=result,
                    extra={"video_id": record.id},
                )
                continue
            outcomes.append(result)
            if result.kind == OutcomeKind.FAILED:
                failed += 1

        succeeded = sum(1 for o in outcomes if o.succeeded)
        self._logger.info(
            f"RAG backlog processing completed: {succeeded} successful, {failed} failed"
        )
        return BacklogReport(
            scanned=scanned,
            selected=len(records),
            succeeded=succeeded,
            failed=failed,
            outcomes=outcomes,
        )
