# Repository Pattern Implementation
"""
Repositories abstract database operations.
Each store has its own repository; all of them share one sqlite connection.

Usage:
    db = get_db()
    groups = GroupRepository(db)
    groups.is_member(group_id, user_id)
"""
from .base import Repository, ConnectionProtocol
from .user_repository import UserRepository
from .relationship_repository import RelationshipRepository
from .group_repository import GroupRepository
from .share_repository import ShareRepository
from .content_repository import ContentRepository

__all__ = [
    "Repository",
    "ConnectionProtocol",
    "UserRepository",
    "RelationshipRepository",
    "GroupRepository",
    "ShareRepository",
    "ContentRepository",
]
