"""Shared dependencies for routes.

Factory functions that build services over one connection. Each defaults to
the thread-local connection from ``get_db``.
"""
from ..application.services import (
    AccessResolver,
    ContentService,
    DefaultPolicyService,
    GroupService,
    RelationshipService,
    ShareService,
)
from ..database import get_db
from ..infrastructure.repositories import (
    ContentRepository,
    GroupRepository,
    RelationshipRepository,
    ShareRepository,
    UserRepository,
)


def get_relationship_service(db=None) -> RelationshipService:
    """Create RelationshipService with repositories."""
    db = db or get_db()
    return RelationshipService(
        relationship_repository=RelationshipRepository(db),
        user_repository=UserRepository(db)
    )


def get_group_service(db=None) -> GroupService:
    """Create GroupService with repositories."""
    db = db or get_db()
    return GroupService(
        group_repository=GroupRepository(db),
        relationship_repository=RelationshipRepository(db),
        user_repository=UserRepository(db)
    )


def get_share_service(db=None) -> ShareService:
    """Create ShareService with repositories."""
    db = db or get_db()
    return ShareService(
        share_repository=ShareRepository(db),
        relationship_repository=RelationshipRepository(db),
        content_repository=ContentRepository(db)
    )


def get_access_resolver(db=None) -> AccessResolver:
    db = db or get_db()
    return AccessResolver(
        share_service=get_share_service(db),
        relationship_repository=RelationshipRepository(db),
        group_repository=GroupRepository(db),
        content_repository=ContentRepository(db)
    )


def get_default_policy_service(db=None) -> DefaultPolicyService:
    db = db or get_db()
    return DefaultPolicyService(
        user_repository=UserRepository(db),
        group_repository=GroupRepository(db)
    )


def get_content_service(db=None) -> ContentService:
    """Create ContentService with its resolver and default policy service."""
    db = db or get_db()
    return ContentService(
        content_repository=ContentRepository(db),
        group_repository=GroupRepository(db),
        default_policy_service=get_default_policy_service(db),
        access_resolver=get_access_resolver(db)
    )
