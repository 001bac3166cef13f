"""Content service - ingestion stamping and access-filtered reads.

New photos and albums get the uploader's propagated default policy unless
the caller picks one explicitly. Reads go through the access resolver and
treat a denied item exactly like a missing one.
"""
import logging
from typing import Iterable, Optional

from fastapi import HTTPException

from ... import config
from ...domain import Decision, policy_columns
from ...errors import ContentNotFound, GroupNotFound, InvalidPolicyChoice
from ...infrastructure.repositories import ContentRepository, GroupRepository
from .access_resolver import AccessResolver
from .default_policy_service import DefaultPolicyService

logger = logging.getLogger(__name__)


class ContentService:
    """Service for photos and albums as seen by access control.

    Responsibilities:
    - Stamp a visibility policy on new content
    - Manage album containment (owner only)
    - Answer visibility questions and filter listings
    """

    def __init__(
        self,
        content_repository: ContentRepository,
        group_repository: GroupRepository,
        default_policy_service: DefaultPolicyService,
        access_resolver: AccessResolver
    ):
        self.content_repo = content_repository
        self.group_repo = group_repository
        self.defaults = default_policy_service
        self.resolver = access_resolver

    # =========================================================================
    # Ingestion
    # =========================================================================

    def choose_policy(self, owner_id: int, visibility: str = None, group_id: int = None) -> tuple[str, Optional[int]]:
        """Return (visibility, group_id) to persist for new content.

        No explicit visibility means the owner's propagated default. An
        explicit ``custom`` must name an active group owned by the owner.

        Raises:
            InvalidPolicyChoice: unknown value, or custom without a group
            GroupNotFound: custom group missing, deleted or not the owner's
        """
        if visibility is None:
            return policy_columns(self.defaults.resolve_default_policy(owner_id))

        if visibility not in config.VISIBILITY_VALUES:
            raise InvalidPolicyChoice()
        if visibility != "custom":
            return visibility, None
        if group_id is None:
            raise InvalidPolicyChoice("Custom visibility requires a group")
        if self.group_repo.get_owned_active(group_id, owner_id) is None:
            raise GroupNotFound()
        return visibility, group_id

    def create_photo(
        self,
        owner_id: int,
        filename: str,
        caption: str = None,
        visibility: str = None,
        group_id: int = None
    ) -> dict:
        visibility, group_id = self.choose_policy(owner_id, visibility, group_id)
        photo_id = self.content_repo.create_photo(owner_id, filename, caption, visibility, group_id)
        logger.info("Photo %s created by user %s (%s)", photo_id, owner_id, visibility)
        return self.content_repo.get_photo(photo_id)

    def sync_photos(self, owner_id: int, filenames: Iterable[str]) -> list[dict]:
        """Bulk device-sync ingestion; every photo gets the propagated default.

        Raises:
            HTTPException: auto sync disabled for the user
        """
        settings = self.defaults.get_default_settings(owner_id)
        if not settings.auto_sync_enabled:
            raise HTTPException(status_code=403, detail="Auto sync is disabled for this user")

        filenames = list(filenames)
        if len(filenames) > config.MAX_BULK_IDS:
            raise HTTPException(
                status_code=400,
                detail=f"At most {config.MAX_BULK_IDS} photos per sync"
            )

        visibility, group_id = policy_columns(self.defaults.resolve_default_policy(owner_id))
        created = [
            self.content_repo.create_photo(owner_id, filename, None, visibility, group_id)
            for filename in filenames
        ]
        logger.info("Synced %d photos for user %s (%s)", len(created), owner_id, visibility)
        return [self.content_repo.get_photo(photo_id) for photo_id in created]

    def create_album(
        self,
        owner_id: int,
        name: str,
        description: str = None,
        visibility: str = None,
        group_id: int = None
    ) -> dict:
        name = (name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Album name is required")
        visibility, group_id = self.choose_policy(owner_id, visibility, group_id)
        album_id = self.content_repo.create_album(owner_id, name, description, visibility, group_id)
        logger.info("Album %s created by user %s (%s)", album_id, owner_id, visibility)
        return self.content_repo.get_album(album_id)

    def update_photo_visibility(
        self,
        owner_id: int,
        photo_id: str,
        visibility: str,
        group_id: int = None
    ) -> dict:
        """Change an owned photo's policy; an explicit choice is required."""
        photo = self.content_repo.get_photo(photo_id)
        if not photo or photo["owner_id"] != owner_id:
            raise ContentNotFound("Photo not found or access denied")
        if visibility is None:
            raise InvalidPolicyChoice()
        visibility, group_id = self.choose_policy(owner_id, visibility, group_id)
        self.content_repo.set_photo_visibility(photo_id, visibility, group_id)
        logger.info("Photo %s visibility set to %s by user %s", photo_id, visibility, owner_id)
        return self.content_repo.get_photo(photo_id)

    # =========================================================================
    # Album containment
    # =========================================================================

    def add_photos_to_album(self, owner_id: int, album_id: str, photo_ids: Iterable[str]) -> int:
        """Add owned photos to an owned album; photos already there are ignored.

        Returns:
            Number of photos actually added
        """
        photo_ids = self._owned_photos(owner_id, album_id, photo_ids)
        added = self.content_repo.add_photos_to_album(album_id, photo_ids)
        logger.info("User %s added %d photos to album %s", owner_id, added, album_id)
        return added

    def remove_photos_from_album(self, owner_id: int, album_id: str, photo_ids: Iterable[str]) -> int:
        photo_ids = self._owned_photos(owner_id, album_id, photo_ids)
        removed = self.content_repo.remove_photos_from_album(album_id, photo_ids)
        logger.info("User %s removed %d photos from album %s", owner_id, removed, album_id)
        return removed

    def _owned_photos(self, owner_id: int, album_id: str, photo_ids: Iterable[str]) -> list[str]:
        album = self.content_repo.get_album(album_id)
        if not album or album["owner_id"] != owner_id:
            raise ContentNotFound("Album not found or access denied")

        photo_ids = list(dict.fromkeys(photo_ids))
        if not photo_ids:
            raise HTTPException(status_code=400, detail="At least one photo is required")
        if len(photo_ids) > config.MAX_BULK_IDS:
            raise HTTPException(
                status_code=400,
                detail=f"At most {config.MAX_BULK_IDS} photos per request"
            )

        owned = self.content_repo.owned_photo_ids(owner_id, photo_ids)
        invalid = [p for p in photo_ids if p not in owned]
        if invalid:
            raise ContentNotFound(f"Photos not found or access denied: {', '.join(invalid)}")
        return photo_ids

    # =========================================================================
    # Reads
    # =========================================================================

    def can_view_photo(self, viewer_id: Optional[int], photo_id: str) -> Decision:
        return self.resolver.resolve_photo(viewer_id, photo_id)

    def can_view_album(self, viewer_id: Optional[int], album_id: str) -> Decision:
        return self.resolver.resolve_album(viewer_id, album_id)

    def get_photo(self, viewer_id: Optional[int], photo_id: str) -> tuple[dict, Decision]:
        """Get a photo the viewer may see.

        Raises:
            ContentNotFound: missing or denied, indistinguishably
        """
        decision = self.resolver.resolve_photo(viewer_id, photo_id)
        if not decision.allowed:
            raise ContentNotFound("Photo not found")
        return self.content_repo.get_photo(photo_id), decision

    def get_album(self, viewer_id: Optional[int], album_id: str) -> tuple[dict, Decision]:
        decision = self.resolver.resolve_album(viewer_id, album_id)
        if not decision.allowed:
            raise ContentNotFound("Album not found")
        return self.content_repo.get_album(album_id), decision

    def list_album_photos(
        self,
        viewer_id: Optional[int],
        album_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[dict, list[dict]]:
        """Album and its photos for a viewer who may see the album.

        Access to an album extends to every photo it contains.

        Raises:
            ContentNotFound: missing or denied album, indistinguishably
        """
        album, _ = self.get_album(viewer_id, album_id)
        limit = min(max(limit, 1), 100)
        offset = max(offset, 0)
        photos = self.content_repo.list_album_photos(album_id, limit=limit, offset=offset)
        return album, photos

    def list_visible_photos(self, viewer_id: Optional[int], owner_id: int) -> list[dict]:
        """Owner's photos with every denied one omitted."""
        photos = self.content_repo.list_photos_by_owner(owner_id)
        return self.resolver.filter_visible(viewer_id, photos)
