"""Group service - custom membership groups owned by a user.

Members must be friends of the owner when they are added. The check is not
repeated later: if a friendship ends, the membership stays until the owner
removes it.
"""
import logging
from typing import Iterable, Optional

from fastapi import HTTPException

from ... import config
from ...domain import Group, MembershipChange
from ...errors import GroupNotFound, InvalidMember
from ...infrastructure.repositories import GroupRepository, RelationshipRepository, UserRepository

logger = logging.getLogger(__name__)


class GroupService:
    """Service for the custom group registry.

    Responsibilities:
    - Create, update and soft-delete groups
    - Validate member candidates against the owner's friend list
    - Replace the member set atomically
    - Membership and liveness lookups for access resolution

    Every lookup by (group, owner) fails with the same ``GroupNotFound``
    whether the group is missing, deleted or owned by someone else.
    """

    def __init__(
        self,
        group_repository: GroupRepository,
        relationship_repository: RelationshipRepository,
        user_repository: UserRepository
    ):
        self.group_repo = group_repository
        self.edge_repo = relationship_repository
        self.user_repo = user_repository

    # =========================================================================
    # Lookups
    # =========================================================================

    def is_member(self, group_id: int, user_id: int) -> bool:
        return self.group_repo.is_member(group_id, user_id)

    def is_active(self, group_id: int) -> bool:
        return self.group_repo.is_active(group_id)

    def get_owned_group(self, group_id: int, owner_id: int) -> Group:
        """Get an active group owned by ``owner_id``.

        Raises:
            GroupNotFound: missing, deleted, or someone else's
        """
        group = self.group_repo.get_owned_active(group_id, owner_id)
        if group is None:
            raise GroupNotFound()
        return group

    def get_group(self, group_id: int, owner_id: int) -> dict:
        """Get group with its members."""
        group = self.get_owned_group(group_id, owner_id)
        result = group.to_dict()
        result["members"] = self.group_repo.members(group_id)
        result["member_count"] = len(result["members"])
        return result

    def list_groups(self, owner_id: int) -> list[dict]:
        return self.group_repo.list_for_owner(owner_id)

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_group(
        self,
        owner_id: int,
        name: str,
        description: Optional[str] = None,
        member_ids: Iterable[int] = (),
        strict: bool = False
    ) -> tuple[Group, MembershipChange]:
        """Create a group and its initial members in one transaction.

        Candidates that do not exist or are not friends of the owner are
        dropped and reported in ``rejected``. With ``strict=True`` any such
        candidate aborts the call before anything is written.

        Raises:
            InvalidMember: strict mode and at least one invalid candidate
        """
        name = self._clean_name(name)
        valid, rejected = self._partition_candidates(owner_id, member_ids)
        if strict and rejected:
            raise InvalidMember(rejected)

        group_id = self.group_repo.create_with_members(owner_id, name, description, valid)
        if rejected:
            logger.warning(
                "Group %s created by user %s; rejected non-friend members %s",
                group_id, owner_id, rejected
            )
        logger.info("Group %s created by user %s with %d members", group_id, owner_id, len(valid))
        return self.group_repo.get(group_id), MembershipChange(added=valid, rejected=rejected)

    def update_group(
        self,
        group_id: int,
        owner_id: int,
        name: str = None,
        description: str = None,
        member_ids: Iterable[int] = None
    ) -> tuple[Group, Optional[MembershipChange]]:
        """Update fields and, if ``member_ids`` is given, replace the member set.

        Field update and member replacement commit together.
        """
        self.get_owned_group(group_id, owner_id)
        if name is not None:
            name = self._clean_name(name)

        change = None
        valid = None
        if member_ids is not None:
            valid, rejected = self._partition_candidates(owner_id, member_ids)
            change = MembershipChange(added=valid, rejected=rejected)

        self.group_repo.update_fields(group_id, name=name, description=description, member_ids=valid)
        logger.info("Group %s updated by user %s", group_id, owner_id)
        return self.group_repo.get(group_id), change

    def replace_members(self, group_id: int, owner_id: int, member_ids: Iterable[int]) -> MembershipChange:
        """Replace the whole member set with the valid candidates.

        Either the full new set is stored or, on failure, the old one remains.
        """
        self.get_owned_group(group_id, owner_id)
        valid, rejected = self._partition_candidates(owner_id, member_ids)
        self.group_repo.replace_members(group_id, valid)
        logger.info(
            "Group %s members replaced by user %s: %d kept, %d rejected",
            group_id, owner_id, len(valid), len(rejected)
        )
        return MembershipChange(added=valid, rejected=rejected)

    def add_members(self, group_id: int, owner_id: int, member_ids: Iterable[int]) -> MembershipChange:
        """Add valid candidates; existing members are reported as skipped."""
        self.get_owned_group(group_id, owner_id)
        valid, rejected = self._partition_candidates(owner_id, member_ids)
        added = self.group_repo.add_members(group_id, valid)
        skipped = [m for m in valid if m not in added]
        logger.info(
            "Group %s: user %s added %d members (%d skipped, %d rejected)",
            group_id, owner_id, len(added), len(skipped), len(rejected)
        )
        return MembershipChange(added=added, rejected=rejected, skipped=skipped)

    def remove_members(self, group_id: int, owner_id: int, member_ids: Iterable[int]) -> int:
        """Returns number of members removed."""
        self.get_owned_group(group_id, owner_id)
        removed = self.group_repo.remove_members(group_id, list(member_ids))
        logger.info("Group %s: user %s removed %d members", group_id, owner_id, removed)
        return removed

    def delete_group(self, group_id: int, owner_id: int) -> None:
        """Soft-delete; content referencing the group then resolves to deny."""
        self.get_owned_group(group_id, owner_id)
        self.group_repo.soft_delete(group_id)
        logger.info("Group %s deleted by user %s", group_id, owner_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _partition_candidates(self, owner_id: int, member_ids: Iterable[int]) -> tuple[list, list]:
        """Split candidates into (valid, rejected), keeping first-seen order.

        Valid means: the user exists and currently has an accepted edge with
        the owner. The owner is never a valid member of their own group.
        """
        candidates = list(dict.fromkeys(member_ids or ()))
        if len(candidates) > config.MAX_BULK_IDS:
            raise HTTPException(
                status_code=400,
                detail=f"At most {config.MAX_BULK_IDS} members per request"
            )
        if not candidates:
            return [], []

        existing = self.user_repo.existing_ids(candidates)
        friends = self.edge_repo.friend_ids_among(owner_id, existing)
        valid = [c for c in candidates if c in friends]
        rejected = [c for c in candidates if c not in friends]
        return valid, rejected

    @staticmethod
    def _clean_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Group name is required")
        if len(name) > config.GROUP_NAME_MAX:
            raise HTTPException(
                status_code=400,
                detail=f"Group name must be at most {config.GROUP_NAME_MAX} characters"
            )
        return name
