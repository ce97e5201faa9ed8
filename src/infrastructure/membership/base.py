"""Abstract base class for conversation membership checks."""

from abc import ABC, abstractmethod


class MembershipServiceBase(ABC):
    """Answers whether a user belongs to a conversation."""

    @abstractmethod
    async def is_member(self, user_id: str, conversation_id: str) -> bool:
        """Check conversation membership.

        Args:
            user_id: Caller identity.
            conversation_id: Conversation being accessed.

        Returns:
            False for unknown conversations and for non-members.
        """
