"""Conversation membership services."""

from src.infrastructure.membership.base import MembershipServiceBase
from src.infrastructure.membership.document_membership import (
    DocumentMembershipService,
)

__all__ = [
    "MembershipServiceBase",
    "DocumentMembershipService",
]
