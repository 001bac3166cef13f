"""Access-control error taxonomy.

Write-path failures subclass ``AccessError`` which is an ``HTTPException``,
so a service can raise them directly and FastAPI renders the matching status
code. The read path never raises these: ``InvalidPolicy`` is internal and is
turned into a deny decision by the resolver.
"""
from fastapi import HTTPException


class AccessError(HTTPException):
    """Base class for request-scoped access-control failures."""

    status_code = 400
    default_detail = "Invalid request"

    def __init__(self, detail: str = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class InvalidMember(AccessError):
    """A group member candidate does not exist or is not a friend of the owner."""

    default_detail = "Group members must exist and be friends of the group owner"

    def __init__(self, member_ids=(), detail: str = None):
        self.member_ids = list(member_ids)
        if detail is None and self.member_ids:
            ids = ", ".join(str(m) for m in self.member_ids)
            detail = f"Invalid users: {ids}. Users must exist and be friends."
        super().__init__(detail)


class InvalidScope(AccessError):
    """Share scope and target identifier do not agree."""

    default_detail = "Invalid share scope or missing resource ID"


class InvalidPolicyChoice(AccessError):
    """Caller supplied an unknown visibility value on a write path."""

    default_detail = "Visibility must be one of: public, friends, close_friends, custom"


class NotFriends(AccessError):
    """Sharer and recipient are not currently friends."""

    status_code = 403
    default_detail = "Can only share with friends"


class NotOwner(AccessError):
    """Sharer does not own the photo or album being shared."""

    status_code = 403
    default_detail = "Content not found or access denied"


class NotAuthorized(AccessError):
    """Requester is not allowed to act on this record."""

    status_code = 403
    default_detail = "Only the sharer can modify this share"


class GroupNotFound(AccessError):
    """Group is missing, deleted or owned by someone else.

    The three cases share one message so callers cannot discover groups
    belonging to other users.
    """

    status_code = 404
    default_detail = "Group not found"

    def __init__(self):
        super().__init__(self.default_detail)


class ShareNotFound(AccessError):
    status_code = 404
    default_detail = "Share not found"


class ContentNotFound(AccessError):
    status_code = 404
    default_detail = "Content not found"


class UserNotFound(AccessError):
    status_code = 404
    default_detail = "User not found"


class RelationshipNotFound(AccessError):
    status_code = 404
    default_detail = "Friendship not found"


class RelationshipConflict(AccessError):
    """Friend request cannot be created or answered in the current state."""

    status_code = 409
    default_detail = "Friendship relationship already exists"


class InvalidPolicy(Exception):
    """Stored visibility value is unknown or malformed (internal, never surfaced)."""
    pass
