"""Video ingestion endpoints."""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import BaseModel, Field

from src.api.dependencies import OrchestratorDep, rate_limit
from src.application.dtos.ingestion import (
    IngestionTrigger,
    PipelineOutcome,
    VideoStatusDTO,
)
from src.application.services.ingestion import IngestionOrchestrator
from src.commons.telemetry import get_logger
from src.domain.models.video import ProcessingStatus, VideoRecord

router = APIRouter()
logger = get_logger(__name__)


class TriggerResponse(BaseModel):
    """API response model for an accepted video."""

    video_id: str = Field(description="Video record id")
    conversation_id: str = Field(description="Owning conversation")
    status: ProcessingStatus = Field(description="Status at acceptance time")
    message: str = Field(description="Status message")


async def _run_pipeline(orchestrator: IngestionOrchestrator, record: VideoRecord) -> None:
    """Background task running the event path for one record."""
    try:
        outcome = await orchestrator.process(record)
    except Exception:
        logger.exception(
            "Ingestion task crashed", extra={"video_id": record.id}
        )
        return
    logger.info(
        f"Ingestion task finished: {outcome.kind.value}",
        extra={"video_id": outcome.video_id, "stage": outcome.stage},
    )


@router.post(
    "/videos",
    response_model=TriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Register a new video",
    description=(
        "Store a new video record and start transcribing and indexing it "
        "in the background."
    ),
    dependencies=[Depends(rate_limit("ingest"))],
)
async def create_video(
    trigger: IngestionTrigger,
    orchestrator: OrchestratorDep,
    background_tasks: BackgroundTasks,
) -> TriggerResponse:
    """Accept a video and schedule its ingestion."""
    record = await orchestrator.trigger(trigger)
    background_tasks.add_task(_run_pipeline, orchestrator, record)
    return TriggerResponse(
        video_id=record.id,
        conversation_id=record.conversation_id,
        status=record.processing_status,
        message="Video ingestion queued",
    )


@router.get(
    "/videos/{video_id}/status",
    response_model=VideoStatusDTO,
    summary="Get processing status",
    description="Current processing status, error details and chunk count.",
)
async def get_video_status(
    video_id: str,
    orchestrator: OrchestratorDep,
) -> VideoStatusDTO:
    """Get current processing status for a video."""
    return await orchestrator.get_status(video_id)


@router.post(
    "/videos/{video_id}/process",
    response_model=PipelineOutcome,
    summary="Process a video now",
    description=(
        "Run the ingestion pipeline for a video and wait for the outcome. "
        "Already processed or in-flight videos are skipped."
    ),
    dependencies=[Depends(rate_limit("ingest"))],
)
async def process_video(
    video_id: str,
    orchestrator: OrchestratorDep,
) -> PipelineOutcome:
    """Re-run the event path for one video."""
    return await orchestrator.run(video_id)
