"""Share service - discretionary, scoped, expiring share grants.

A grant is effective only while it is not revoked and its ``expires_at``
(if any) is still in the future. Reactivating a grant clears the revocation
but never extends an elapsed expiry.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from fastapi import HTTPException

from ... import config
from ...domain import PermissionLevel, Share, ShareScope, ShareState, utcnow
from ...errors import InvalidScope, NotAuthorized, NotFriends, NotOwner, ShareNotFound
from ...infrastructure.repositories import ContentRepository, RelationshipRepository, ShareRepository

logger = logging.getLogger(__name__)

LIST_STATUSES = {"active", "expired", "all"}


class ShareService:
    """Service for share grant management and lookup.

    Responsibilities:
    - Validate and create grants (friendship, scope pairing, ownership)
    - Revoke, reactivate and delete grants (sharer only)
    - Find the most specific effective grant for a recipient
    """

    def __init__(
        self,
        share_repository: ShareRepository,
        relationship_repository: RelationshipRepository,
        content_repository: ContentRepository
    ):
        self.share_repo = share_repository
        self.edge_repo = relationship_repository
        self.content_repo = content_repository

    # =========================================================================
    # Creation
    # =========================================================================

    def create_share(
        self,
        sharer_id: int,
        recipient_id: int,
        scope,
        scope_id: Optional[str] = None,
        permission_level=PermissionLevel.VIEW,
        expires_at: Optional[datetime] = None
    ) -> Share:
        """Create one grant from sharer to recipient.

        Raises:
            InvalidScope: scope unknown, or scope/scope_id pairing broken
            NotFriends: sharer and recipient are not currently friends
            NotOwner: sharer does not own the photo or album
        """
        self._require_friend(sharer_id, recipient_id)
        scope, level, expires_at = self._validate_target(sharer_id, scope, scope_id, permission_level, expires_at)

        share_id = self.share_repo.create(sharer_id, recipient_id, scope, scope_id, level, expires_at)
        logger.info(
            "Share %s created: user %s -> user %s (%s %s, %s)",
            share_id, sharer_id, recipient_id, scope.value, scope_id, level.value
        )
        return self.share_repo.get(share_id)

    def create_shares(
        self,
        sharer_id: int,
        recipient_ids: Iterable[int],
        scope,
        scope_id: Optional[str] = None,
        permission_level=PermissionLevel.VIEW,
        expires_at: Optional[datetime] = None
    ) -> list[Share]:
        """Create the same grant for several recipients, all or nothing.

        Every recipient is validated before any row is written; the inserts
        then commit together.
        """
        recipients = list(dict.fromkeys(recipient_ids))
        if not recipients:
            raise HTTPException(status_code=400, detail="At least one recipient is required")
        if len(recipients) > config.MAX_BULK_IDS:
            raise HTTPException(
                status_code=400,
                detail=f"At most {config.MAX_BULK_IDS} recipients per request"
            )

        for recipient_id in recipients:
            self._require_friend(sharer_id, recipient_id)
        scope, level, expires_at = self._validate_target(sharer_id, scope, scope_id, permission_level, expires_at)

        share_ids = self.share_repo.create_many(sharer_id, recipients, scope, scope_id, level, expires_at)
        logger.info(
            "User %s shared %s %s with %d recipients", sharer_id, scope.value, scope_id, len(share_ids)
        )
        return [self.share_repo.get(share_id) for share_id in share_ids]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def get_share(self, share_id: int, user_id: int) -> Share:
        """Get a share visible to its sharer or recipient."""
        share = self.share_repo.get(share_id)
        if share is None:
            raise ShareNotFound()
        if user_id not in (share.sharer_id, share.recipient_id):
            raise NotAuthorized("Access denied to this share")
        return share

    def revoke(self, share_id: int, requester_id: int) -> Share:
        self._owned_share(share_id, requester_id)
        self.share_repo.set_state(share_id, "revoked")
        logger.info("Share %s revoked by user %s", share_id, requester_id)
        return self.share_repo.get(share_id)

    def reactivate(self, share_id: int, requester_id: int) -> Share:
        """Clear revocation. An elapsed ``expires_at`` keeps the share ineffective."""
        self._owned_share(share_id, requester_id)
        self.share_repo.set_state(share_id, "active")
        share = self.share_repo.get(share_id)
        if share.state() is ShareState.EXPIRED:
            logger.info("Share %s reactivated by user %s but already expired", share_id, requester_id)
        else:
            logger.info("Share %s reactivated by user %s", share_id, requester_id)
        return share

    def delete(self, share_id: int, requester_id: int) -> None:
        """Hard removal, unlike ``revoke`` this cannot be undone."""
        self._owned_share(share_id, requester_id)
        self.share_repo.delete(share_id)
        logger.info("Share %s deleted by user %s", share_id, requester_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def find_effective_grant(
        self,
        recipient_id: int,
        scope,
        scope_id: Optional[str],
        sharer_id: int = None,
        now: datetime = None
    ) -> Optional[Share]:
        """Return the most specific effective grant, or None.

        An exact (scope, scope_id) grant wins over an ``all_content`` grant.
        An ``all_content`` grant only covers content of its own sharer, so for
        photo and album lookups it is considered only when ``sharer_id`` is
        given. Among several matching grants the highest permission level
        is returned; any one of them is enough to allow access.
        """
        scope = ShareScope(scope)
        now = now or utcnow()
        effective = [
            share for share in self.share_repo.candidates(recipient_id, scope, scope_id, sharer_id)
            if share.is_effective(now)
        ]

        exact = [s for s in effective if s.scope is scope and s.scope_id == scope_id]
        if exact:
            return _strongest(exact)

        if sharer_id is not None:
            blanket = [
                s for s in effective
                if s.scope is ShareScope.ALL_CONTENT and s.sharer_id == sharer_id
            ]
            if blanket:
                return _strongest(blanket)
        return None

    def list_given(self, user_id: int, status: str = "active") -> list[Share]:
        return self._filter_status(self.share_repo.list_given(user_id), status)

    def list_received(self, user_id: int, status: str = "active") -> list[Share]:
        return self._filter_status(self.share_repo.list_received(user_id), status)

    @staticmethod
    def capabilities(permission_level) -> dict:
        """What a grant at this level lets the recipient do."""
        return PermissionLevel(permission_level).capabilities()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate_target(self, sharer_id, scope, scope_id, permission_level, expires_at):
        try:
            scope = ShareScope(scope)
        except ValueError:
            raise InvalidScope()

        if scope is ShareScope.ALL_CONTENT:
            if scope_id is not None:
                raise InvalidScope("all_content shares must not name a photo or album")
        elif not scope_id:
            raise InvalidScope()

        try:
            level = PermissionLevel(permission_level)
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail="Permission level must be one of: view, download, comment"
            )

        if expires_at is not None:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at <= utcnow():
                raise HTTPException(status_code=400, detail="Expiration date must be in the future")

        if scope is ShareScope.PHOTO:
            photo = self.content_repo.get_photo(scope_id)
            if not photo or photo["owner_id"] != sharer_id:
                raise NotOwner("Photo not found or access denied")
        elif scope is ShareScope.ALBUM:
            album = self.content_repo.get_album(scope_id)
            if not album or album["owner_id"] != sharer_id:
                raise NotOwner("Album not found or access denied")

        return scope, level, expires_at

    def _require_friend(self, sharer_id: int, recipient_id: int) -> None:
        if sharer_id == recipient_id or not self.edge_repo.are_friends(sharer_id, recipient_id):
            logger.info("Share from user %s to user %s refused: not friends", sharer_id, recipient_id)
            raise NotFriends()

    def _owned_share(self, share_id: int, requester_id: int) -> Share:
        share = self.share_repo.get(share_id)
        if share is None:
            raise ShareNotFound()
        if share.sharer_id != requester_id:
            raise NotAuthorized()
        return share

    @staticmethod
    def _filter_status(shares: list[Share], status: str) -> list[Share]:
        if status not in LIST_STATUSES:
            raise HTTPException(status_code=400, detail="Status must be one of: active, expired, all")
        if status == "all":
            return shares
        now = utcnow()
        want_active = status == "active"
        return [s for s in shares if s.is_effective(now) == want_active]


def _strongest(shares: list[Share]) -> Share:
    return max(shares, key=lambda s: s.permission_level.rank)
