"""Vector record domain model."""

from typing import Any
from uuid import NAMESPACE_URL, uuid5

from pydantic import BaseModel, Field


def build_vector_id(video_id: str, chunk_index: int) -> str:
    """Build the stable identifier of a chunk vector.

    Re-ingesting a video produces the same ids, so upserts overwrite.
    """
    return f"{video_id}_chunk_{chunk_index}"


def point_uuid(vector_id: str) -> str:
    """Map a vector id onto the UUID form required by the vector index."""
    return str(uuid5(NAMESPACE_URL, vector_id))


class VectorMetadata(BaseModel):
    """Payload stored next to each chunk vector."""

    text: str
    video_id: str = Field(alias="videoId")
    conversation_id: str = Field(alias="conversationId")
    start_time: float = Field(alias="startTime")
    end_time: float = Field(alias="endTime")
    timestamp: int = Field(description="Epoch milliseconds when indexed")
    chunk_index: int = Field(alias="chunkIndex")

    model_config = {"populate_by_name": True}


class VectorRecord(BaseModel):
    """An embedded chunk ready to be upserted into a conversation namespace."""

    id: str = Field(description="'{videoId}_chunk_{idx}'")
    vector: list[float]
    metadata: VectorMetadata

    @property
    def namespace(self) -> str:
        """Namespace equals the owning conversation id."""
        return self.metadata.conversation_id

    def payload(self) -> dict[str, Any]:
        """Index payload in wire field names."""
        return self.metadata.model_dump(by_alias=True)
