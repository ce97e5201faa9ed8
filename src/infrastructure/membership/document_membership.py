"""Membership checks backed by the conversations collection."""

from src.commons.infrastructure.documentdb import DocumentDBBase
from src.infrastructure.membership.base import MembershipServiceBase


class DocumentMembershipService(MembershipServiceBase):
    """Reads ``members: [userId]`` from conversation documents."""

    def __init__(self, document_db: DocumentDBBase, collection: str) -> None:
        self._document_db = document_db
        self._collection = collection

    async def is_member(self, user_id: str, conversation_id: str) -> bool:
        """Check conversation membership."""
        if not user_id or not conversation_id:
            return False

        conversation = await self._document_db.find_by_id(
            self._collection, conversation_id
        )
        if conversation is None:
            return False
        return user_id in (conversation.get("members") or [])
