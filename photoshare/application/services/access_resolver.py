"""Access resolver - decides whether a viewer may see a photo or album.

Rules are evaluated in a fixed order and the first match wins:

1. the viewer owns the item
2. an effective share grant from the owner (exact item, then all content)
3. the item's visibility policy
4. otherwise deny

For a photo, each album of the same owner that contains it is checked as
well; the photo is visible if any path allows it.

Nothing here writes, and denial is a return value rather than an exception.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from ...domain import (
    CloseFriends,
    ContentItem,
    ContentKind,
    Custom,
    Decision,
    Friends,
    Public,
    ReasonCode,
    parse_policy,
    utcnow,
)
from ...errors import InvalidPolicy
from ...infrastructure.repositories import ContentRepository, GroupRepository, RelationshipRepository
from .share_service import ShareService

logger = logging.getLogger(__name__)


class AccessResolver:
    """Content access resolution engine.

    Every call re-reads relationships, groups and shares; there is no cache.
    """

    def __init__(
        self,
        share_service: ShareService,
        relationship_repository: RelationshipRepository,
        group_repository: GroupRepository,
        content_repository: ContentRepository
    ):
        self.share_service = share_service
        self.edge_repo = relationship_repository
        self.group_repo = group_repository
        self.content_repo = content_repository

    def resolve(self, viewer_id: Optional[int], item: ContentItem, now: datetime = None) -> Decision:
        """Decide access for one item, ignoring album containment.

        ``viewer_id`` may be None for an anonymous viewer, who can only
        match a public policy.
        """
        if viewer_id is not None and viewer_id == item.owner_id:
            return Decision(True, ReasonCode.OWNER, matched_rule="owner")

        if viewer_id is not None:
            grant = self.share_service.find_effective_grant(
                viewer_id, item.share_scope, item.id, sharer_id=item.owner_id, now=now or utcnow()
            )
            if grant is not None:
                return Decision(
                    True,
                    ReasonCode.SHARED_GRANT,
                    matched_rule=f"share:{grant.id}",
                    permission_level=grant.permission_level,
                )

        try:
            policy = parse_policy(item.visibility, item.group_id)
        except InvalidPolicy as e:
            logger.debug("%s %s has invalid policy: %s", item.kind.value, item.id, e)
            return Decision.deny(ReasonCode.INVALID_POLICY)

        decision = self._apply_policy(viewer_id, item, policy)
        logger.debug(
            "resolve viewer=%s %s=%s -> %s (%s)",
            viewer_id, item.kind.value, item.id, decision.allowed, decision.reason.value
        )
        return decision

    def resolve_photo(self, viewer_id: Optional[int], photo_id: str, now: datetime = None) -> Decision:
        """Decide access to a photo, including its owner's albums that contain it.

        Unknown photo ids resolve to a plain deny.
        """
        photo = self.content_repo.get_photo_item(photo_id)
        if photo is None:
            return Decision.deny()
        return self._resolve_with_albums(viewer_id, photo, now or utcnow())

    def resolve_album(self, viewer_id: Optional[int], album_id: str, now: datetime = None) -> Decision:
        album = self.content_repo.get_album_item(album_id)
        if album is None:
            return Decision.deny()
        return self.resolve(viewer_id, album, now)

    def filter_visible(self, viewer_id: Optional[int], photos: Iterable[dict], now: datetime = None) -> list[dict]:
        """Keep only photo records the viewer may see; denied ones are omitted."""
        now = now or utcnow()
        visible = []
        for photo in photos:
            item = ContentItem.from_row(ContentKind.PHOTO, photo)
            if self._resolve_with_albums(viewer_id, item, now).allowed:
                visible.append(photo)
        return visible

    def _resolve_with_albums(self, viewer_id, photo: ContentItem, now: datetime) -> Decision:
        direct = self.resolve(viewer_id, photo, now)
        if direct.allowed:
            return direct
        for album in self.content_repo.albums_containing(photo.id, photo.owner_id):
            via_album = self.resolve(viewer_id, album, now)
            if via_album.allowed:
                return via_album.via_album(album.id)
        return direct

    def _apply_policy(self, viewer_id, item: ContentItem, policy) -> Decision:
        if isinstance(policy, Public):
            return Decision(True, ReasonCode.PUBLIC, matched_rule="visibility:public")

        if isinstance(policy, (Friends, CloseFriends)):
            # close_friends has no tier of its own; both need an accepted friendship
            if viewer_id is not None and self.edge_repo.are_friends(viewer_id, item.owner_id):
                return Decision(True, ReasonCode(policy.label), matched_rule=f"visibility:{policy.label}")
            return Decision.deny()

        if isinstance(policy, Custom):
            if viewer_id is None:
                return Decision.deny()
            group = self.group_repo.get(policy.group_id)
            if group is None or not group.is_active or group.owner_id != item.owner_id:
                return Decision.deny()
            if self.group_repo.is_member(policy.group_id, viewer_id):
                return Decision(True, ReasonCode.CUSTOM, matched_rule=f"group:{policy.group_id}")
            return Decision.deny()

        return Decision.deny(ReasonCode.INVALID_POLICY)
