"""User repository - users and their default-visibility settings.

Credentials and sessions live outside this service; a user here is an id
with a username and display name.
"""
from typing import Optional

from ...domain import DefaultSettings
from .base import Repository


class UserRepository(Repository):
    """Repository for user entity operations.

    Examples:
        >>> repo = UserRepository(db)
        >>> user_id = repo.create("john", "John Doe")
        >>> repo.existing_ids([user_id, 999])
        {1}
    """

    def get_by_id(self, user_id: int) -> dict | None:
        """Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User dict or None if not found
        """
        cursor = self._execute(
            "SELECT * FROM users WHERE id = ?",
            (user_id,)
        )
        return self._row_to_dict(cursor.fetchone())

    def get_by_username(self, username: str) -> dict | None:
        """Get user by username (case-insensitive)."""
        cursor = self._execute(
            "SELECT * FROM users WHERE username = ?",
            (username.lower().strip(),)
        )
        return self._row_to_dict(cursor.fetchone())

    def create(self, username: str, display_name: str) -> int:
        """Create new user.

        Args:
            username: Unique username (stored lowercase)
            display_name: Display name

        Returns:
            New user ID
        """
        cursor = self._execute(
            "INSERT INTO users (username, display_name) VALUES (?, ?)",
            (username.lower().strip(), display_name)
        )
        self._commit()
        return cursor.lastrowid

    def update_display_name(self, user_id: int, display_name: str) -> bool:
        cursor = self._execute(
            "UPDATE users SET display_name = ? WHERE id = ?",
            (display_name, user_id)
        )
        self._commit()
        return cursor.rowcount > 0

    def delete(self, user_id: int) -> bool:
        """Delete user (edges, groups, shares and content cascade)."""
        cursor = self._execute("DELETE FROM users WHERE id = ?", (user_id,))
        self._commit()
        return cursor.rowcount > 0

    def list_all(self) -> list[dict]:
        cursor = self._execute(
            "SELECT id, username, display_name, created_at FROM users ORDER BY id"
        )
        return [dict(row) for row in cursor.fetchall()]

    def exists(self, user_id: int) -> bool:
        cursor = self._execute("SELECT 1 FROM users WHERE id = ?", (user_id,))
        return cursor.fetchone() is not None

    def existing_ids(self, user_ids) -> set[int]:
        """Return the subset of ``user_ids`` that refer to existing users."""
        ids = list(set(user_ids))
        if not ids:
            return set()
        cursor = self._execute(
            f"SELECT id FROM users WHERE id IN ({self._placeholders(ids)})",
            tuple(ids)
        )
        return {row["id"] for row in cursor.fetchall()}

    # =========================================================================
    # Default visibility settings
    # =========================================================================

    def get_settings(self, user_id: int) -> Optional[DefaultSettings]:
        """Load the stored default-visibility record, or None if never saved."""
        cursor = self._execute(
            """SELECT user_id, default_visibility, default_group_id, auto_sync_enabled
               FROM user_settings WHERE user_id = ?""",
            (user_id,)
        )
        row = cursor.fetchone()
        if not row:
            return None
        return DefaultSettings(
            user_id=row["user_id"],
            visibility=row["default_visibility"],
            group_id=row["default_group_id"],
            auto_sync_enabled=bool(row["auto_sync_enabled"]),
        )

    def save_settings(
        self,
        user_id: int,
        visibility: str,
        group_id: int = None,
        auto_sync_enabled: bool = None
    ) -> DefaultSettings:
        """Insert or update the user's default visibility.

        ``auto_sync_enabled`` is left unchanged when None.
        """
        self._execute(
            """INSERT INTO user_settings (user_id, default_visibility, default_group_id, auto_sync_enabled)
               VALUES (?, ?, ?, COALESCE(?, 0))
               ON CONFLICT(user_id) DO UPDATE SET
                   default_visibility = excluded.default_visibility,
                   default_group_id = excluded.default_group_id,
                   auto_sync_enabled = COALESCE(?, user_settings.auto_sync_enabled),
                   updated_at = CURRENT_TIMESTAMP""",
            (
                user_id, visibility, group_id,
                None if auto_sync_enabled is None else int(auto_sync_enabled),
                None if auto_sync_enabled is None else int(auto_sync_enabled),
            )
        )
        self._commit()
        return self.get_settings(user_id)
