"""Tests for default policy propagation."""
import pytest
from unittest.mock import Mock

from photoshare import config
from photoshare.application.services import DefaultPolicyService, propagate
from photoshare.domain import Custom, DefaultSettings, Friends, Group, GroupState, Public
from photoshare.errors import GroupNotFound, InvalidPolicyChoice


class TestPropagate:
    """The pure propagation function over an explicit settings record."""

    def test_no_settings_uses_default(self):
        assert propagate(None, group_valid=False, default="public") == Public()

    def test_stored_policy_returned_verbatim(self):
        settings = DefaultSettings(user_id=1, visibility="public")

        assert propagate(settings, group_valid=False) == Public()

    def test_valid_custom_group_propagated(self):
        settings = DefaultSettings(user_id=1, visibility="custom", group_id=10)

        assert propagate(settings, group_valid=True) == Custom(10)

    def test_dangling_custom_group_falls_back(self):
        settings = DefaultSettings(user_id=1, visibility="custom", group_id=10)

        assert propagate(settings, group_valid=False, fallback="friends") == Friends()

    def test_malformed_stored_value_falls_back(self):
        settings = DefaultSettings(user_id=1, visibility="custom", group_id=None)

        assert propagate(settings, group_valid=True, fallback="friends") == Friends()


class TestDefaultPolicyService:

    @pytest.fixture
    def mock_user_repo(self):
        repo = Mock()
        repo.get_settings.return_value = None
        repo.save_settings.side_effect = (
            lambda user_id, visibility, group_id, auto_sync: DefaultSettings(user_id, visibility, group_id)
        )
        return repo

    @pytest.fixture
    def mock_group_repo(self):
        repo = Mock()
        repo.get_owned_active.return_value = Group(10, 1, "Family", None, GroupState.ACTIVE)
        return repo

    @pytest.fixture
    def service(self, mock_user_repo, mock_group_repo):
        return DefaultPolicyService(
            user_repository=mock_user_repo,
            group_repository=mock_group_repo
        )

    def test_user_without_settings_gets_configured_default(self, service):
        settings = service.get_default_settings(1)

        assert settings.visibility == "friends"
        assert service.resolve_default_policy(1) == Friends()

    def test_resolve_checks_group_ownership(self, service, mock_user_repo, mock_group_repo):
        mock_user_repo.get_settings.return_value = DefaultSettings(1, "custom", 10)

        assert service.resolve_default_policy(1) == Custom(10)
        mock_group_repo.get_owned_active.assert_called_once_with(10, 1)

    def test_resolve_falls_back_for_deleted_group(self, service, mock_user_repo, mock_group_repo):
        mock_user_repo.get_settings.return_value = DefaultSettings(1, "custom", 10)
        mock_group_repo.get_owned_active.return_value = None

        assert service.resolve_default_policy(1) == Friends()

    def test_update_rejects_unknown_value(self, service, mock_user_repo):
        with pytest.raises(InvalidPolicyChoice):
            service.update_default_policy(1, "everyone")

        mock_user_repo.save_settings.assert_not_called()

    def test_update_custom_requires_group(self, service):
        with pytest.raises(InvalidPolicyChoice):
            service.update_default_policy(1, "custom")

    def test_update_custom_with_foreign_group(self, service, mock_group_repo):
        mock_group_repo.get_owned_active.return_value = None

        with pytest.raises(GroupNotFound):
            service.update_default_policy(1, "custom", 10)

    def test_update_non_custom_drops_group(self, service, mock_user_repo):
        settings = service.update_default_policy(1, "public", 10)

        assert settings.group_id is None
        mock_user_repo.save_settings.assert_called_once_with(1, "public", None, None)


class TestVisibilityFromEnv:
    """Env-configured default and fallback values are checked at import."""

    VAR = "PHOTOSHARE_DEFAULT_VISIBILITY"

    def test_unset_uses_default(self, monkeypatch):
        monkeypatch.delenv(self.VAR, raising=False)

        assert config.visibility_from_env(self.VAR, "friends") == "friends"

    def test_value_normalized(self, monkeypatch):
        monkeypatch.setenv(self.VAR, " Public ")

        assert config.visibility_from_env(self.VAR, "friends") == "public"

    def test_custom_rejected(self, monkeypatch):
        monkeypatch.setenv(self.VAR, "custom")

        with pytest.raises(ValueError, match=self.VAR):
            config.visibility_from_env(self.VAR, "friends")

    def test_unknown_value_rejected(self, monkeypatch):
        monkeypatch.setenv("PHOTOSHARE_FALLBACK_VISIBILITY", "everyone")

        with pytest.raises(ValueError, match="everyone"):
            config.visibility_from_env("PHOTOSHARE_FALLBACK_VISIBILITY", "friends")

    def test_loaded_values_are_groupless(self):
        assert config.DEFAULT_VISIBILITY in config.GROUPLESS_VISIBILITY_VALUES
        assert config.FALLBACK_VISIBILITY in config.GROUPLESS_VISIBILITY_VALUES
