"""Conversation query endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header

from src.api.dependencies import QueryServiceDep, rate_limit
from src.application.dtos.query import (
    QueryBody,
    QueryRequest,
    QueryResult,
    SummaryResult,
)

router = APIRouter()

UserIdHeader = Annotated[
    str | None,
    Header(description="Caller identity, checked against conversation members"),
]


@router.post(
    "/conversations/{conversation_id}/query",
    response_model=QueryResult,
    summary="Query a conversation",
    description=(
        "Answer a natural-language question grounded in the transcripts of "
        "this conversation's videos."
    ),
    dependencies=[Depends(rate_limit("query"))],
)
async def query_conversation(
    conversation_id: str,
    body: QueryBody,
    service: QueryServiceDep,
    x_user_id: UserIdHeader = None,
) -> QueryResult:
    """Query the videos of one conversation."""
    return await service.query(
        QueryRequest(
            query=body.query,
            conversation_id=conversation_id,
            max_results=body.max_results,
            user_id=x_user_id,
        )
    )


@router.post(
    "/conversations/{conversation_id}/summary",
    response_model=SummaryResult,
    summary="Summarize a conversation",
    description="Summarize the most recent videos as bullet points.",
    dependencies=[Depends(rate_limit("query"))],
)
async def summarize_conversation(
    conversation_id: str,
    service: QueryServiceDep,
    x_user_id: UserIdHeader = None,
) -> SummaryResult:
    """Summarize the latest videos of one conversation."""
    return await service.summarize(conversation_id, x_user_id)
