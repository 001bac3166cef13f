"""Unit tests for GroupService membership validation."""
import pytest
from unittest.mock import Mock

from fastapi import HTTPException

from photoshare.application.services import GroupService
from photoshare.domain import Group, GroupState
from photoshare.errors import GroupNotFound, InvalidMember

OWNER = 1


class TestGroupService:
    """Test GroupService business logic."""

    @pytest.fixture
    def mock_group_repo(self):
        repo = Mock()
        repo.create_with_members.return_value = 10
        repo.get.return_value = Group(10, OWNER, "Family", None, GroupState.ACTIVE)
        repo.get_owned_active.return_value = Group(10, OWNER, "Family", None, GroupState.ACTIVE)
        return repo

    @pytest.fixture
    def mock_edge_repo(self):
        """Owner is friends with users 2 and 3."""
        repo = Mock()
        repo.friend_ids_among.side_effect = lambda owner, ids: {i for i in ids if i in (2, 3)}
        return repo

    @pytest.fixture
    def mock_user_repo(self):
        """Users 1-4 exist."""
        repo = Mock()
        repo.existing_ids.side_effect = lambda ids: {i for i in ids if 1 <= i <= 4}
        return repo

    @pytest.fixture
    def group_service(self, mock_group_repo, mock_edge_repo, mock_user_repo):
        return GroupService(
            group_repository=mock_group_repo,
            relationship_repository=mock_edge_repo,
            user_repository=mock_user_repo
        )

    def test_create_group_drops_non_friends(self, group_service, mock_group_repo):
        """Test that invalid candidates are rejected, not fatal."""
        # Act
        group, change = group_service.create_group(OWNER, "Family", None, [2, 4, 3, 99])

        # Assert
        assert group.id == 10
        assert change.added == [2, 3]
        assert change.rejected == [4, 99]
        mock_group_repo.create_with_members.assert_called_once_with(OWNER, "Family", None, [2, 3])

    def test_create_group_strict_writes_nothing(self, group_service, mock_group_repo):
        with pytest.raises(InvalidMember) as exc_info:
            group_service.create_group(OWNER, "Family", None, [2, 4], strict=True)

        assert exc_info.value.member_ids == [4]
        assert exc_info.value.status_code == 400
        mock_group_repo.create_with_members.assert_not_called()

    def test_owner_cannot_be_member(self, group_service):
        _, change = group_service.create_group(OWNER, "Family", None, [OWNER, 2])

        assert change.added == [2]
        assert change.rejected == [OWNER]

    def test_duplicate_candidates_collapsed(self, group_service, mock_group_repo):
        _, change = group_service.create_group(OWNER, "Family", None, [2, 2, 3, 2])

        assert change.added == [2, 3]

    def test_blank_name_rejected(self, group_service, mock_group_repo):
        with pytest.raises(HTTPException) as exc_info:
            group_service.create_group(OWNER, "   ")

        assert exc_info.value.status_code == 400
        mock_group_repo.create_with_members.assert_not_called()

    def test_group_not_found_is_uniform(self, group_service, mock_group_repo):
        """Missing, deleted and foreign groups all look the same."""
        mock_group_repo.get_owned_active.return_value = None

        with pytest.raises(GroupNotFound) as exc_info:
            group_service.get_group(10, OWNER)

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Group not found"

    def test_replace_members_validates_then_replaces(self, group_service, mock_group_repo):
        change = group_service.replace_members(10, OWNER, [3, 4])

        mock_group_repo.replace_members.assert_called_once_with(10, [3])
        assert change.to_dict()["added_count"] == 1
        assert change.rejected == [4]

    def test_replace_members_on_foreign_group(self, group_service, mock_group_repo):
        mock_group_repo.get_owned_active.return_value = None

        with pytest.raises(GroupNotFound):
            group_service.replace_members(10, OWNER, [2])

        mock_group_repo.replace_members.assert_not_called()

    def test_add_members_reports_skipped(self, group_service, mock_group_repo):
        # Arrange: 2 is already a member, so the repository only adds 3
        mock_group_repo.add_members.return_value = [3]

        # Act
        change = group_service.add_members(10, OWNER, [2, 3, 4])

        # Assert
        mock_group_repo.add_members.assert_called_once_with(10, [2, 3])
        assert change.added == [3]
        assert change.skipped == [2]
        assert change.rejected == [4]
        assert change.to_dict()["skipped_count"] == 2

    def test_update_group_without_members_keeps_member_set(self, group_service, mock_group_repo):
        _, change = group_service.update_group(10, OWNER, name="Relatives")

        assert change is None
        mock_group_repo.update_fields.assert_called_once_with(
            10, name="Relatives", description=None, member_ids=None
        )

    def test_delete_group_is_soft(self, group_service, mock_group_repo):
        group_service.delete_group(10, OWNER)

        mock_group_repo.soft_delete.assert_called_once_with(10)
