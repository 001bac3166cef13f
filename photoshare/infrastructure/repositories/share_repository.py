"""Share repository - discretionary share grants.

The ``state`` column stores only ``active`` or ``revoked``. Expiry is not a
stored state; it is derived from ``expires_at`` each time a grant is read.
"""
from datetime import datetime
from typing import Optional

from ...domain import PermissionLevel, Share, ShareScope
from .base import Repository


def _target_columns(scope: ShareScope, scope_id) -> tuple:
    """Map (scope, scope_id) onto the (photo_id, album_id) columns."""
    scope = ShareScope(scope)
    if scope is ShareScope.PHOTO:
        return scope_id, None
    if scope is ShareScope.ALBUM:
        return None, scope_id
    return None, None


class ShareRepository(Repository):
    """Repository for share grants.

    Examples:
        >>> repo = ShareRepository(db)
        >>> share_id = repo.create(1, 2, ShareScope.PHOTO, "p1", PermissionLevel.VIEW, None)
        >>> repo.get(share_id).is_effective()
        True
    """

    _INSERT = """INSERT INTO shares
                 (sharer_id, recipient_id, scope, photo_id, album_id, permission_level, expires_at)
                 VALUES (?, ?, ?, ?, ?, ?, ?)"""

    def create(
        self,
        sharer_id: int,
        recipient_id: int,
        scope: ShareScope,
        scope_id: Optional[str],
        permission_level: PermissionLevel,
        expires_at: Optional[datetime]
    ) -> int:
        """Insert one grant.

        Returns:
            New share ID
        """
        photo_id, album_id = _target_columns(scope, scope_id)
        cursor = self._execute(
            self._INSERT,
            (
                sharer_id, recipient_id, ShareScope(scope).value, photo_id, album_id,
                PermissionLevel(permission_level).value, expires_at
            )
        )
        self._commit()
        return cursor.lastrowid

    def create_many(
        self,
        sharer_id: int,
        recipient_ids: list[int],
        scope: ShareScope,
        scope_id: Optional[str],
        permission_level: PermissionLevel,
        expires_at: Optional[datetime]
    ) -> list[int]:
        """Insert one grant per recipient inside a single transaction."""
        photo_id, album_id = _target_columns(scope, scope_id)
        share_ids = []
        with self._transaction():
            for recipient_id in recipient_ids:
                cursor = self._execute(
                    self._INSERT,
                    (
                        sharer_id, recipient_id, ShareScope(scope).value, photo_id, album_id,
                        PermissionLevel(permission_level).value, expires_at
                    )
                )
                share_ids.append(cursor.lastrowid)
        return share_ids

    def get(self, share_id: int) -> Optional[Share]:
        cursor = self._execute("SELECT * FROM shares WHERE id = ?", (share_id,))
        row = cursor.fetchone()
        return Share.from_row(row) if row else None

    def set_state(self, share_id: int, state: str) -> bool:
        """Set stored state to ``active`` or ``revoked``. ``expires_at`` is left alone."""
        cursor = self._execute(
            "UPDATE shares SET state = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (state, share_id)
        )
        self._commit()
        return cursor.rowcount > 0

    def delete(self, share_id: int) -> bool:
        cursor = self._execute("DELETE FROM shares WHERE id = ?", (share_id,))
        self._commit()
        return cursor.rowcount > 0

    def candidates(
        self,
        recipient_id: int,
        scope: ShareScope,
        scope_id: Optional[str],
        sharer_id: int = None
    ) -> list[Share]:
        """Non-revoked grants to ``recipient_id`` for the exact target or all content.

        Expiry is not filtered here; callers decide effectiveness at their
        own ``now``.
        """
        photo_id, album_id = _target_columns(scope, scope_id)
        sql = """SELECT * FROM shares
                 WHERE recipient_id = ? AND state = 'active'
                   AND ((scope = ? AND photo_id IS ? AND album_id IS ?) OR scope = 'all_content')"""
        params = [recipient_id, ShareScope(scope).value, photo_id, album_id]
        if sharer_id is not None:
            sql += " AND sharer_id = ?"
            params.append(sharer_id)
        sql += " ORDER BY id"
        cursor = self._execute(sql, tuple(params))
        return [Share.from_row(row) for row in cursor.fetchall()]

    def list_given(self, sharer_id: int) -> list[Share]:
        cursor = self._execute(
            "SELECT * FROM shares WHERE sharer_id = ? ORDER BY created_at DESC, id DESC",
            (sharer_id,)
        )
        return [Share.from_row(row) for row in cursor.fetchall()]

    def list_received(self, recipient_id: int) -> list[Share]:
        cursor = self._execute(
            "SELECT * FROM shares WHERE recipient_id = ? ORDER BY created_at DESC, id DESC",
            (recipient_id,)
        )
        return [Share.from_row(row) for row in cursor.fetchall()]
