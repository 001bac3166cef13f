"""Application layer - business logic services.

Services orchestrate repositories and are independent of HTTP routing, so
they can be tested in isolation with mocked repositories.
"""

from .services.relationship_service import RelationshipService
from .services.group_service import GroupService
from .services.share_service import ShareService
from .services.access_resolver import AccessResolver

__all__ = [
    "RelationshipService",
    "GroupService",
    "ShareService",
    "AccessResolver",
]
