"""Maintenance endpoints triggering periodic passes on demand."""

from fastapi import APIRouter, Depends

from src.api.dependencies import BacklogDep, CleanupDep, rate_limit
from src.application.dtos.ingestion import BacklogReport, CleanupReport

router = APIRouter(dependencies=[Depends(rate_limit("maintenance"))])


@router.post(
    "/maintenance/backlog",
    response_model=BacklogReport,
    summary="Run a backlog pass",
    description="Process unfinished videos now instead of waiting for the schedule.",
)
async def run_backlog(scheduler: BacklogDep) -> BacklogReport:
    return await scheduler.run_pass()


@router.post(
    "/maintenance/cleanup",
    response_model=CleanupReport,
    summary="Run the expiry sweep",
    description="Mark expired videos and delete their media now.",
)
async def run_cleanup(cleanup: CleanupDep) -> CleanupReport:
    return await cleanup.run()
