"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.blob.base import HealthStatus


class DocumentDBBase(ABC):
    """Document store holding video records and conversations.

    Documents expose their primary key as ``id``; providers map it onto
    their native key field. Filters use the Mongo query language.
    """

    @abstractmethod
    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        """Insert a document and return its id."""

    @abstractmethod
    async def find_by_id(self, collection: str, document_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection name.
            filters: Query filters.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: ``[(field, 1 | -1)]``, ascending or descending.
        """

    @abstractmethod
    async def update(
        self, collection: str, document_id: str, updates: dict[str, Any]
    ) -> bool:
        """Set fields on a document; False when no such document exists."""

    @abstractmethod
    async def update_where(
        self,
        collection: str,
        document_id: str,
        conditions: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Set fields only if the document still matches ``conditions``.

        Check and write are one atomic operation, which makes this usable
        as a compare-and-set for claiming work.

        Returns:
            True if the document matched and was updated.
        """

    @abstractmethod
    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int: ...

    @abstractmethod
    async def create_index(self, collection: str, fields: list[tuple[str, int]]) -> str:
        """Create a compound index; an existing identical index is kept.

        Returns:
            Index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus: ...

    async def close(self) -> None:  # noqa: B027
        """Release client resources. No-op by default."""
