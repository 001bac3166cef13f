"""Default policy service - visibility stamped on newly ingested content.

``propagate`` is a pure function over an explicit ``DefaultSettings`` record;
the service only loads that record and checks the referenced group.
"""
import logging
from typing import Optional

from ... import config
from ...domain import Custom, DefaultSettings, Policy, parse_policy
from ...errors import GroupNotFound, InvalidPolicy, InvalidPolicyChoice
from ...infrastructure.repositories import GroupRepository, UserRepository

logger = logging.getLogger(__name__)


def propagate(
    settings: Optional[DefaultSettings],
    group_valid: bool,
    fallback: str = None,
    default: str = None
) -> Policy:
    """Return the policy to stamp for the given stored defaults.

    Args:
        settings: The user's stored record, or None if never saved
        group_valid: Whether the referenced custom group is active and owned
            by the user (ignored for non-custom defaults)
        fallback: Policy used instead of a dangling custom default
        default: Policy used when no record is stored

    Returns:
        The stored policy verbatim, or the fallback
    """
    fallback = fallback or config.FALLBACK_VISIBILITY
    if settings is None:
        return parse_policy(default or config.DEFAULT_VISIBILITY)
    try:
        policy = parse_policy(settings.visibility, settings.group_id)
    except InvalidPolicy:
        return parse_policy(fallback)
    if isinstance(policy, Custom) and not group_valid:
        return parse_policy(fallback)
    return policy


class DefaultPolicyService:
    """Service for per-user default visibility.

    Responsibilities:
    - Read and update the stored default
    - Resolve the default for ingestion, falling back when the group is gone
    """

    def __init__(
        self,
        user_repository: UserRepository,
        group_repository: GroupRepository
    ):
        self.user_repo = user_repository
        self.group_repo = group_repository

    def get_default_settings(self, user_id: int) -> DefaultSettings:
        """Stored record, or the configured default for users without one."""
        settings = self.user_repo.get_settings(user_id)
        if settings is None:
            return DefaultSettings(user_id=user_id, visibility=config.DEFAULT_VISIBILITY)
        return settings

    def resolve_default_policy(self, user_id: int) -> Policy:
        settings = self.user_repo.get_settings(user_id)
        group_valid = bool(
            settings
            and settings.group_id is not None
            and self.group_repo.get_owned_active(settings.group_id, user_id)
        )
        policy = propagate(settings, group_valid)
        if settings and settings.visibility == "custom" and not group_valid:
            logger.info(
                "User %s default group %s is gone; stamping %s",
                user_id, settings.group_id, policy.label
            )
        return policy

    def update_default_policy(
        self,
        user_id: int,
        visibility: str,
        group_id: int = None,
        auto_sync_enabled: bool = None
    ) -> DefaultSettings:
        """Validate and store a new default.

        Raises:
            InvalidPolicyChoice: unknown value, or custom without a group
            GroupNotFound: custom group missing, deleted or not the user's
        """
        if visibility not in config.VISIBILITY_VALUES:
            raise InvalidPolicyChoice()
        if visibility == "custom":
            if group_id is None:
                raise InvalidPolicyChoice("Custom visibility requires a group")
            if self.group_repo.get_owned_active(group_id, user_id) is None:
                raise GroupNotFound()
        else:
            group_id = None

        settings = self.user_repo.save_settings(user_id, visibility, group_id, auto_sync_enabled)
        logger.info("User %s default visibility set to %s (group %s)", user_id, visibility, group_id)
        return settings
