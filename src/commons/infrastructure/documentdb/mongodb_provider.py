"""MongoDB implementation of document database."""

import time
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.documentdb.base import DocumentDBBase


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Store the domain ``id`` as Mongo's ``_id``."""
    doc = document.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(doc: dict[str, Any]) -> dict[str, Any]:
    """Restore the domain ``id`` from Mongo's ``_id``."""
    doc["id"] = str(doc.pop("_id"))
    return dict(doc)


def _id_candidates(document_id: str) -> list[Any]:
    """Key values to try: the string id, then its ObjectId form if valid."""
    candidates: list[Any] = [document_id]
    try:
        candidates.append(ObjectId(document_id))
    except (InvalidId, TypeError):
        pass
    return candidates


class MongoDBDocumentDB(DocumentDBBase):
    """Motor-backed document store.

    Video records use string ids. Conversations are written by other
    services and may carry ObjectIds, so id lookups accept both.
    """

    def __init__(self, connection_string: str, database_name: str) -> None:
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        """Insert a document, using its ``id`` as ``_id`` when present."""
        result = await self._db[collection].insert_one(_to_mongo(document))
        return str(result.inserted_id)

    async def find_by_id(self, collection: str, document_id: str) -> dict[str, Any] | None:
        for key in _id_candidates(document_id):
            doc = await self._db[collection].find_one({"_id": key})
            if doc:
                return _from_mongo(doc)
        return None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        cursor = self._db[collection].find(filters)
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)

        return [_from_mongo(doc) async for doc in cursor]

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document."""
        return await self.update_where(collection, document_id, {}, updates)

    async def update_where(
        self,
        collection: str,
        document_id: str,
        conditions: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Set fields only while the document still matches ``conditions``."""
        update_doc = _to_mongo(updates)
        update_doc.pop("_id", None)

        for key in _id_candidates(document_id):
            result = await self._db[collection].update_one(
                {**conditions, "_id": key},
                {"$set": update_doc},
            )
            if result.matched_count > 0:
                return True
        return False

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Exact count with filters, the cheap collection estimate without."""
        if filters:
            return int(await self._db[collection].count_documents(filters))
        return int(await self._db[collection].estimated_document_count())

    async def create_index(self, collection: str, fields: list[tuple[str, int]]) -> str:
        """Create a compound index on the collection."""
        return str(await self._db[collection].create_index(fields))

    async def health_check(self) -> HealthStatus:
        """Ping the server."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except Exception as e:
            healthy, message = False, f"MongoDB health check failed: {e}"
        else:
            healthy, message = True, "MongoDB is healthy"
        return HealthStatus(
            healthy=healthy,
            latency_ms=(time.perf_counter() - start) * 1000,
            message=message,
            details={"database": self._database_name},
        )

    async def close(self) -> None:
        self._client.close()
