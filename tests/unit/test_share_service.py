"""Unit tests for ShareService validation and grant lookup."""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from fastapi import HTTPException

from photoshare.application.services import ShareService
from photoshare.domain import PermissionLevel, Share, ShareScope
from photoshare.errors import InvalidScope, NotAuthorized, NotFriends, NotOwner, ShareNotFound

NOW = datetime(2030, 6, 1, tzinfo=timezone.utc)


def share(share_id, scope=ShareScope.PHOTO, scope_id="p1", sharer_id=1, recipient_id=2,
          level=PermissionLevel.VIEW, expires_at=None, revoked=False):
    return Share(
        id=share_id, sharer_id=sharer_id, recipient_id=recipient_id, scope=scope,
        scope_id=scope_id, permission_level=level, expires_at=expires_at, revoked=revoked
    )


class TestShareServiceCreate:
    """Test share creation rules."""

    @pytest.fixture
    def mock_share_repo(self):
        repo = Mock()
        repo.create.return_value = 11
        repo.get.side_effect = lambda share_id: share(share_id)
        return repo

    @pytest.fixture
    def mock_edge_repo(self):
        repo = Mock()
        repo.are_friends.return_value = True
        return repo

    @pytest.fixture
    def mock_content_repo(self):
        repo = Mock()
        repo.get_photo.return_value = {"id": "p1", "owner_id": 1}
        repo.get_album.return_value = {"id": "a1", "owner_id": 1}
        return repo

    @pytest.fixture
    def share_service(self, mock_share_repo, mock_edge_repo, mock_content_repo):
        return ShareService(
            share_repository=mock_share_repo,
            relationship_repository=mock_edge_repo,
            content_repository=mock_content_repo
        )

    def test_create_photo_share(self, share_service, mock_share_repo):
        # Act
        result = share_service.create_share(1, 2, "photo", "p1", "download")

        # Assert
        assert result.id == 11
        mock_share_repo.create.assert_called_once_with(
            1, 2, ShareScope.PHOTO, "p1", PermissionLevel.DOWNLOAD, None
        )

    def test_create_all_content_share(self, share_service, mock_share_repo, mock_content_repo):
        share_service.create_share(1, 2, "all_content")

        mock_share_repo.create.assert_called_once()
        mock_content_repo.get_photo.assert_not_called()

    def test_non_friend_rejected(self, share_service, mock_edge_repo, mock_share_repo):
        mock_edge_repo.are_friends.return_value = False

        with pytest.raises(NotFriends) as exc_info:
            share_service.create_share(1, 2, "photo", "p1")

        assert exc_info.value.status_code == 403
        mock_share_repo.create.assert_not_called()

    def test_self_share_rejected(self, share_service, mock_edge_repo):
        with pytest.raises(NotFriends):
            share_service.create_share(1, 1, "all_content")

        mock_edge_repo.are_friends.assert_not_called()

    @pytest.mark.parametrize("scope, scope_id", [
        ("photo", None),
        ("album", None),
        ("album", ""),
        ("all_content", "p1"),
        ("individual_photo", "p1"),
    ])
    def test_scope_pairing_enforced(self, share_service, mock_share_repo, scope, scope_id):
        with pytest.raises(InvalidScope) as exc_info:
            share_service.create_share(1, 2, scope, scope_id)

        assert exc_info.value.status_code == 400
        mock_share_repo.create.assert_not_called()

    def test_photo_owned_by_someone_else(self, share_service, mock_content_repo):
        mock_content_repo.get_photo.return_value = {"id": "p1", "owner_id": 9}

        with pytest.raises(NotOwner):
            share_service.create_share(1, 2, "photo", "p1")

    def test_missing_album(self, share_service, mock_content_repo):
        mock_content_repo.get_album.return_value = None

        with pytest.raises(NotOwner):
            share_service.create_share(1, 2, "album", "a1")

    def test_invalid_permission_level(self, share_service):
        with pytest.raises(HTTPException) as exc_info:
            share_service.create_share(1, 2, "photo", "p1", "edit")

        assert exc_info.value.status_code == 400

    def test_expiry_in_past_rejected(self, share_service):
        past = datetime.now(timezone.utc) - timedelta(minutes=1)

        with pytest.raises(HTTPException) as exc_info:
            share_service.create_share(1, 2, "photo", "p1", expires_at=past)

        assert exc_info.value.status_code == 400

    def test_naive_expiry_stored_as_utc(self, share_service, mock_share_repo):
        future = datetime.now() + timedelta(days=2)

        share_service.create_share(1, 2, "photo", "p1", expires_at=future)

        stored = mock_share_repo.create.call_args.args[5]
        assert stored.tzinfo is timezone.utc

    def test_batch_validates_every_recipient_before_writing(self, share_service, mock_edge_repo, mock_share_repo):
        mock_edge_repo.are_friends.side_effect = lambda a, b: b != 4

        with pytest.raises(NotFriends):
            share_service.create_shares(1, [2, 3, 4], "all_content")

        mock_share_repo.create_many.assert_not_called()

    def test_batch_deduplicates_recipients(self, share_service, mock_share_repo):
        mock_share_repo.create_many.return_value = [1, 2]

        result = share_service.create_shares(1, [2, 3, 2], "all_content")

        assert len(result) == 2
        assert mock_share_repo.create_many.call_args.args[1] == [2, 3]


class TestShareServiceLifecycle:
    """Test revoke/reactivate/delete authorization."""

    @pytest.fixture
    def mock_share_repo(self):
        repo = Mock()
        repo.get.return_value = share(5, sharer_id=1, recipient_id=2)
        return repo

    @pytest.fixture
    def share_service(self, mock_share_repo):
        return ShareService(
            share_repository=mock_share_repo,
            relationship_repository=Mock(),
            content_repository=Mock()
        )

    def test_revoke_by_sharer(self, share_service, mock_share_repo):
        share_service.revoke(5, 1)

        mock_share_repo.set_state.assert_called_once_with(5, "revoked")

    @pytest.mark.parametrize("action", ["revoke", "reactivate", "delete"])
    def test_only_sharer_may_modify(self, share_service, mock_share_repo, action):
        with pytest.raises(NotAuthorized):
            getattr(share_service, action)(5, 2)

        mock_share_repo.set_state.assert_not_called()
        mock_share_repo.delete.assert_not_called()

    def test_missing_share(self, share_service, mock_share_repo):
        mock_share_repo.get.return_value = None

        with pytest.raises(ShareNotFound):
            share_service.revoke(5, 1)

    def test_reactivate_keeps_expiry(self, share_service, mock_share_repo):
        expired = share(5, expires_at=datetime(2000, 1, 1, tzinfo=timezone.utc))
        mock_share_repo.get.return_value = expired

        result = share_service.reactivate(5, 1)

        mock_share_repo.set_state.assert_called_once_with(5, "active")
        assert result.is_effective() is False

    def test_get_share_visible_to_both_parties(self, share_service):
        assert share_service.get_share(5, 1).id == 5
        assert share_service.get_share(5, 2).id == 5
        with pytest.raises(NotAuthorized):
            share_service.get_share(5, 3)


class TestFindEffectiveGrant:
    """Test grant precedence and effectiveness filtering."""

    @pytest.fixture
    def mock_share_repo(self):
        return Mock()

    @pytest.fixture
    def share_service(self, mock_share_repo):
        return ShareService(mock_share_repo, Mock(), Mock())

    def test_exact_grant_preferred_over_all_content(self, share_service, mock_share_repo):
        mock_share_repo.candidates.return_value = [
            share(1, scope=ShareScope.ALL_CONTENT, scope_id=None, level=PermissionLevel.COMMENT),
            share(2, scope=ShareScope.PHOTO, scope_id="p1"),
        ]

        grant = share_service.find_effective_grant(2, ShareScope.PHOTO, "p1", sharer_id=1, now=NOW)

        assert grant.id == 2

    def test_all_content_from_sharer_used_as_fallback(self, share_service, mock_share_repo):
        mock_share_repo.candidates.return_value = [
            share(1, scope=ShareScope.ALL_CONTENT, scope_id=None),
        ]

        grant = share_service.find_effective_grant(2, ShareScope.PHOTO, "p1", sharer_id=1, now=NOW)

        assert grant.id == 1
        mock_share_repo.candidates.assert_called_once_with(2, ShareScope.PHOTO, "p1", 1)

    def test_all_content_ignored_without_sharer(self, share_service, mock_share_repo):
        mock_share_repo.candidates.return_value = [
            share(1, scope=ShareScope.ALL_CONTENT, scope_id=None),
        ]

        assert share_service.find_effective_grant(2, ShareScope.PHOTO, "p1", now=NOW) is None

    def test_expired_grant_ignored(self, share_service, mock_share_repo):
        mock_share_repo.candidates.return_value = [
            share(1, expires_at=NOW - timedelta(seconds=1)),
        ]

        assert share_service.find_effective_grant(2, ShareScope.PHOTO, "p1", sharer_id=1, now=NOW) is None

    def test_expired_exact_falls_back_to_all_content(self, share_service, mock_share_repo):
        mock_share_repo.candidates.return_value = [
            share(1, expires_at=NOW - timedelta(days=1)),
            share(2, scope=ShareScope.ALL_CONTENT, scope_id=None),
        ]

        grant = share_service.find_effective_grant(2, ShareScope.PHOTO, "p1", sharer_id=1, now=NOW)

        assert grant.id == 2

    def test_strongest_of_several_exact_grants(self, share_service, mock_share_repo):
        mock_share_repo.candidates.return_value = [
            share(1, level=PermissionLevel.VIEW),
            share(2, level=PermissionLevel.COMMENT, sharer_id=3),
            share(3, level=PermissionLevel.DOWNLOAD),
        ]

        grant = share_service.find_effective_grant(2, ShareScope.PHOTO, "p1", now=NOW)

        assert grant.id == 2

    def test_list_status_filter(self, share_service, mock_share_repo):
        mock_share_repo.list_given.return_value = [
            share(1),
            share(2, revoked=True),
            share(3, expires_at=datetime(2000, 1, 1, tzinfo=timezone.utc)),
        ]

        assert [s.id for s in share_service.list_given(1, "active")] == [1]
        assert [s.id for s in share_service.list_given(1, "expired")] == [2, 3]
        assert len(share_service.list_given(1, "all")) == 3
        with pytest.raises(HTTPException):
            share_service.list_given(1, "pending")
