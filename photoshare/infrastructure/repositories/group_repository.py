"""Group repository - custom membership groups and their member sets.

Groups are never removed by this repository; ``soft_delete`` flips the state
to ``deleted`` so content still pointing at the group keeps resolving.
"""
from typing import Optional

from ...domain import Group, GroupState
from .base import Repository


class GroupRepository(Repository):
    """Repository for custom group operations.

    Member validation (friendship with the owner) is the service's job; this
    layer only writes what it is given, atomically where several rows change.

    Examples:
        >>> repo = GroupRepository(db)
        >>> group_id = repo.create_with_members(1, "Family", None, [2, 3])
        >>> repo.is_member(group_id, 2)
        True
    """

    def get(self, group_id: int) -> Optional[Group]:
        """Get group by ID in any state."""
        cursor = self._execute("SELECT * FROM custom_groups WHERE id = ?", (group_id,))
        row = cursor.fetchone()
        return Group.from_row(row) if row else None

    def get_owned_active(self, group_id: int, owner_id: int) -> Optional[Group]:
        """Get group only if it is active and owned by ``owner_id``."""
        cursor = self._execute(
            "SELECT * FROM custom_groups WHERE id = ? AND owner_id = ? AND state = 'active'",
            (group_id, owner_id)
        )
        row = cursor.fetchone()
        return Group.from_row(row) if row else None

    def list_for_owner(self, owner_id: int) -> list[dict]:
        """List active groups of a user with member counts."""
        cursor = self._execute(
            """SELECT g.*, COUNT(m.user_id) AS member_count
               FROM custom_groups g
               LEFT JOIN custom_group_members m ON m.group_id = g.id
               WHERE g.owner_id = ? AND g.state = 'active'
               GROUP BY g.id
               ORDER BY g.created_at DESC, g.id DESC""",
            (owner_id,)
        )
        result = []
        for row in cursor.fetchall():
            item = Group.from_row(row).to_dict()
            item["member_count"] = row["member_count"]
            result.append(item)
        return result

    def create_with_members(
        self,
        owner_id: int,
        name: str,
        description: Optional[str],
        member_ids: list[int]
    ) -> int:
        """Insert the group row and its members in one transaction.

        Returns:
            New group ID
        """
        with self._transaction():
            cursor = self._execute(
                "INSERT INTO custom_groups (owner_id, name, description) VALUES (?, ?, ?)",
                (owner_id, name, description)
            )
            group_id = cursor.lastrowid
            if member_ids:
                self._insert_members(group_id, member_ids)
        return group_id

    def update_fields(
        self,
        group_id: int,
        name: str = None,
        description: str = None,
        member_ids: list[int] = None
    ) -> None:
        """Update name/description and optionally replace members, atomically.

        ``None`` leaves a field (or the member set) untouched.
        """
        with self._transaction():
            if name is not None or description is not None:
                self._execute(
                    """UPDATE custom_groups
                       SET name = COALESCE(?, name),
                           description = COALESCE(?, description),
                           updated_at = CURRENT_TIMESTAMP
                       WHERE id = ?""",
                    (name, description, group_id)
                )
            if member_ids is not None:
                self._execute("DELETE FROM custom_group_members WHERE group_id = ?", (group_id,))
                if member_ids:
                    self._insert_members(group_id, member_ids)

    def soft_delete(self, group_id: int) -> bool:
        cursor = self._execute(
            """UPDATE custom_groups SET state = ?, updated_at = CURRENT_TIMESTAMP
               WHERE id = ? AND state = 'active'""",
            (GroupState.DELETED.value, group_id)
        )
        self._commit()
        return cursor.rowcount > 0

    # =========================================================================
    # Membership
    # =========================================================================

    def member_ids(self, group_id: int) -> list[int]:
        cursor = self._execute(
            "SELECT user_id FROM custom_group_members WHERE group_id = ? ORDER BY added_at, user_id",
            (group_id,)
        )
        return [row["user_id"] for row in cursor.fetchall()]

    def members(self, group_id: int) -> list[dict]:
        """Members with basic user info."""
        cursor = self._execute(
            """SELECT u.id, u.username, u.display_name, m.added_at
               FROM custom_group_members m
               JOIN users u ON u.id = m.user_id
               WHERE m.group_id = ?
               ORDER BY m.added_at, u.id""",
            (group_id,)
        )
        return [dict(row) for row in cursor.fetchall()]

    def is_member(self, group_id: int, user_id: int) -> bool:
        cursor = self._execute(
            "SELECT 1 FROM custom_group_members WHERE group_id = ? AND user_id = ?",
            (group_id, user_id)
        )
        return cursor.fetchone() is not None

    def is_active(self, group_id: int) -> bool:
        """False for missing or soft-deleted groups."""
        cursor = self._execute(
            "SELECT 1 FROM custom_groups WHERE id = ? AND state = 'active'",
            (group_id,)
        )
        return cursor.fetchone() is not None

    def replace_members(self, group_id: int, member_ids: list[int]) -> None:
        """Delete all members and insert ``member_ids`` as one unit.

        A failure anywhere leaves the previous member set in place.
        """
        with self._transaction():
            self._execute("DELETE FROM custom_group_members WHERE group_id = ?", (group_id,))
            if member_ids:
                self._insert_members(group_id, member_ids)
            self._touch(group_id)

    def add_members(self, group_id: int, member_ids: list[int]) -> list[int]:
        """Insert members not already present.

        Returns:
            IDs that were actually added
        """
        existing = set(self.member_ids(group_id))
        new_ids = [m for m in dict.fromkeys(member_ids) if m not in existing]
        with self._transaction():
            if new_ids:
                self._insert_members(group_id, new_ids)
                self._touch(group_id)
        return new_ids

    def remove_members(self, group_id: int, member_ids: list[int]) -> int:
        """Returns number of members removed."""
        ids = list(set(member_ids))
        if not ids:
            return 0
        with self._transaction():
            cursor = self._execute(
                f"""DELETE FROM custom_group_members
                    WHERE group_id = ? AND user_id IN ({self._placeholders(ids)})""",
                (group_id, *ids)
            )
            removed = cursor.rowcount
            if removed:
                self._touch(group_id)
        return removed

    def _insert_members(self, group_id: int, member_ids: list[int]) -> None:
        self._execute_many(
            "INSERT OR IGNORE INTO custom_group_members (group_id, user_id) VALUES (?, ?)",
            [(group_id, user_id) for user_id in dict.fromkeys(member_ids)]
        )

    def _touch(self, group_id: int) -> None:
        self._execute(
            "UPDATE custom_groups SET updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (group_id,)
        )
