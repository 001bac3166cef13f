"""Application services - business logic layer."""

from .relationship_service import RelationshipService
from .group_service import GroupService
from .share_service import ShareService
from .access_resolver import AccessResolver
from .default_policy_service import DefaultPolicyService, propagate
from .content_service import ContentService

__all__ = [
    "RelationshipService",
    "GroupService",
    "ShareService",
    "AccessResolver",
    "DefaultPolicyService",
    "propagate",
    "ContentService",
]
