"""Value types shared by repositories, services and routes.

Visibility policies are a closed set of frozen dataclasses instead of raw
strings, and soft-delete flags are explicit state enums, so the resolver
dispatches over known cases and anything else fails closed.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from .errors import InvalidPolicy


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a stored timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace(" ", "T"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# =============================================================================
# Visibility policy
# =============================================================================

@dataclass(frozen=True)
class Public:
    label = "public"


@dataclass(frozen=True)
class Friends:
    label = "friends"


@dataclass(frozen=True)
class CloseFriends:
    # Enforced exactly like Friends; there is no close-friend tier in the
    # relationship model.
    label = "close_friends"


@dataclass(frozen=True)
class Custom:
    group_id: int
    label = "custom"


Policy = Union[Public, Friends, CloseFriends, Custom]

_SIMPLE_POLICIES = {
    "public": Public(),
    "friends": Friends(),
    "close_friends": CloseFriends(),
}


def parse_policy(visibility, group_id=None) -> Policy:
    """Build a Policy from stored column values.

    Raises:
        InvalidPolicy: unknown value, or ``custom`` without a group id
    """
    if isinstance(visibility, (Public, Friends, CloseFriends, Custom)):
        return visibility
    if visibility in _SIMPLE_POLICIES:
        return _SIMPLE_POLICIES[visibility]
    if visibility == "custom":
        if group_id is None:
            raise InvalidPolicy("custom visibility requires a group id")
        try:
            return Custom(int(group_id))
        except (TypeError, ValueError):
            raise InvalidPolicy(f"malformed custom group id: {group_id!r}")
    raise InvalidPolicy(f"unknown visibility: {visibility!r}")


def policy_columns(policy: Policy) -> tuple[str, Optional[int]]:
    """Return (visibility, custom_group_id) for persisting a policy."""
    if isinstance(policy, Custom):
        return policy.label, policy.group_id
    return policy.label, None


# =============================================================================
# Tagged states and enums
# =============================================================================

class GroupState(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class ShareState(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class ShareScope(str, Enum):
    PHOTO = "photo"
    ALBUM = "album"
    ALL_CONTENT = "all_content"


class PermissionLevel(str, Enum):
    """Share permission levels, ordered view < download < comment."""

    VIEW = "view"
    DOWNLOAD = "download"
    COMMENT = "comment"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    def includes(self, other: "PermissionLevel") -> bool:
        """True if this level grants everything ``other`` grants."""
        return self.rank >= PermissionLevel(other).rank

    def capabilities(self) -> dict:
        return {
            "can_view": True,
            "can_download": self.includes(PermissionLevel.DOWNLOAD),
            "can_comment": self.includes(PermissionLevel.COMMENT),
        }


_LEVEL_RANK = {
    PermissionLevel.VIEW: 1,
    PermissionLevel.DOWNLOAD: 2,
    PermissionLevel.COMMENT: 3,
}


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    BLOCKED = "blocked"


class ContentKind(str, Enum):
    PHOTO = "photo"
    ALBUM = "album"


class ReasonCode(str, Enum):
    OWNER = "owner"
    SHARED_GRANT = "shared_grant"
    PUBLIC = "public"
    FRIENDS = "friends"
    CLOSE_FRIENDS = "close_friends"
    CUSTOM = "custom"
    NO_MATCHING_RULE = "no_matching_rule"
    INVALID_POLICY = "invalid_policy"


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class Edge:
    """Directed friend-request edge."""

    id: int
    requester_id: int
    addressee_id: int
    status: FriendshipStatus
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Edge":
        return cls(
            id=row["id"],
            requester_id=row["requester_id"],
            addressee_id=row["addressee_id"],
            status=FriendshipStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def is_accepted(self) -> bool:
        return self.status is FriendshipStatus.ACCEPTED

    def other(self, user_id: int) -> int:
        return self.addressee_id if self.requester_id == user_id else self.requester_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "addressee_id": self.addressee_id,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class Group:
    id: int
    owner_id: int
    name: str
    description: Optional[str]
    state: GroupState
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Group":
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            description=row["description"],
            state=GroupState(row["state"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def is_active(self) -> bool:
        return self.state is GroupState.ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "state": self.state.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class MembershipChange:
    """Outcome of a membership write: which candidate ids were kept or dropped."""

    added: list = field(default_factory=list)
    rejected: list = field(default_factory=list)
    skipped: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "added": list(self.added),
            "rejected": list(self.rejected),
            "skipped": list(self.skipped),
            "added_count": len(self.added),
            "skipped_count": len(self.skipped) + len(self.rejected),
        }


@dataclass(frozen=True)
class Share:
    id: int
    sharer_id: int
    recipient_id: int
    scope: ShareScope
    scope_id: Optional[str]
    permission_level: PermissionLevel
    expires_at: Optional[datetime]
    revoked: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Share":
        scope = ShareScope(row["scope"])
        scope_id = {
            ShareScope.PHOTO: row["photo_id"],
            ShareScope.ALBUM: row["album_id"],
            ShareScope.ALL_CONTENT: None,
        }[scope]
        return cls(
            id=row["id"],
            sharer_id=row["sharer_id"],
            recipient_id=row["recipient_id"],
            scope=scope,
            scope_id=scope_id,
            permission_level=PermissionLevel(row["permission_level"]),
            expires_at=parse_timestamp(row["expires_at"]),
            revoked=row["state"] == "revoked",
            created_at=row["created_at"],
        )

    def state(self, now: datetime = None) -> ShareState:
        """Effective state at ``now``; revocation wins over expiry."""
        if self.revoked:
            return ShareState.REVOKED
        now = now or utcnow()
        if self.expires_at is not None and self.expires_at <= now:
            return ShareState.EXPIRED
        return ShareState.ACTIVE

    def is_effective(self, now: datetime = None) -> bool:
        return self.state(now) is ShareState.ACTIVE

    def to_dict(self, now: datetime = None) -> dict:
        return {
            "id": self.id,
            "sharer_id": self.sharer_id,
            "recipient_id": self.recipient_id,
            "scope": self.scope.value,
            "scope_id": self.scope_id,
            "permission_level": self.permission_level.value,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_active": not self.revoked,
            "state": self.state(now).value,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class ContentItem:
    """A photo or album as seen by the resolver.

    ``visibility`` keeps the raw stored value so that malformed data can be
    reported as ``invalid_policy`` instead of failing to load.
    """

    kind: ContentKind
    id: str
    owner_id: int
    visibility: str
    group_id: Optional[int] = None

    @classmethod
    def from_row(cls, kind: ContentKind, row) -> "ContentItem":
        return cls(
            kind=kind,
            id=row["id"],
            owner_id=row["owner_id"],
            visibility=row["visibility"],
            group_id=row["custom_group_id"],
        )

    @property
    def share_scope(self) -> ShareScope:
        return ShareScope.PHOTO if self.kind is ContentKind.PHOTO else ShareScope.ALBUM


@dataclass(frozen=True)
class Decision:
    """Resolver output. Never persisted, recomputed per query."""

    allowed: bool
    reason: ReasonCode
    matched_rule: Optional[str] = None
    permission_level: Optional[PermissionLevel] = None

    @classmethod
    def deny(cls, reason: ReasonCode = ReasonCode.NO_MATCHING_RULE) -> "Decision":
        return cls(allowed=False, reason=reason)

    def via_album(self, album_id: str) -> "Decision":
        """Same decision, with the matched rule attributed to a containing album."""
        return Decision(
            allowed=self.allowed,
            reason=self.reason,
            matched_rule=f"album:{album_id}/{self.matched_rule}",
            permission_level=self.permission_level,
        )

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason.value,
            "matched_rule": self.matched_rule,
            "permission_level": self.permission_level.value if self.permission_level else None,
        }


@dataclass(frozen=True)
class DefaultSettings:
    """A user's stored default visibility for newly ingested content."""

    user_id: int
    visibility: str
    group_id: Optional[int] = None
    auto_sync_enabled: bool = False

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "visibility": self.visibility,
            "group_id": self.group_id,
            "auto_sync_enabled": self.auto_sync_enabled,
        }
