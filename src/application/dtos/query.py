"""DTOs for conversation query operations.

Wire names are camelCase; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class QueryBody(_CamelModel):
    """HTTP body of a conversation query. The conversation comes from the path."""

    query: str = Field(default="", description="Natural-language question")
    max_results: int | None = Field(
        default=None,
        alias="maxResults",
        description="Number of chunks to retrieve (capped server-side)",
    )


class QueryRequest(_CamelModel):
    """Input of the query service.

    Limits are enforced by the service so violations surface as
    ``ValidationError`` rather than schema errors.
    """

    query: str = Field(default="", description="Natural-language question")
    conversation_id: str = Field(default="", alias="conversationId")
    max_results: int | None = Field(default=None, alias="maxResults")
    user_id: str | None = Field(
        default=None,
        alias="userId",
        description="Caller identity, checked against conversation membership",
    )


class SourceDTO(_CamelModel):
    """A transcript chunk that grounded the answer."""

    video_id: str = Field(alias="videoId")
    timestamp: float = Field(ge=0, description="Chunk start time in seconds")
    confidence: float = Field(description="Similarity score rounded to 2 decimals")
    text: str = Field(description="Truncated chunk text")


class QueryResult(_CamelModel):
    """Answer to a conversation query."""

    response: str
    sources: list[SourceDTO] = Field(default_factory=list)
    processing_time_ms: int = Field(default=0, alias="processingTimeMs")


class SummaryResult(_CamelModel):
    """Summary of the latest conversation videos."""

    summary: str
    bullet_points: list[str] = Field(default_factory=list, alias="bulletPoints")
    confidence: float = Field(ge=0.0, le=1.0)
    sources: list[SourceDTO] = Field(default_factory=list)
    processing_time_ms: int = Field(default=0, alias="processingTimeMs")
