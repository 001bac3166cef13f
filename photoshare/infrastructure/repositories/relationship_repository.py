"""Relationship repository - directed friend-request edges.

Each unordered pair of users has at most one edge. Friendship is symmetric:
two users are friends when their edge is ``accepted``, whichever side sent
the request.
"""
from typing import Optional

from ...domain import Edge, FriendshipStatus
from .base import Repository

_PAIR_CLAUSE = "((requester_id = ? AND addressee_id = ?) OR (requester_id = ? AND addressee_id = ?))"


class RelationshipRepository(Repository):
    """Repository for friendship edges.

    Examples:
        >>> repo = RelationshipRepository(db)
        >>> edge = repo.create_request(1, 2)
        >>> repo.set_status(edge.id, FriendshipStatus.ACCEPTED)
        >>> repo.are_friends(2, 1)
        True
    """

    def get_edge(self, user_a: int, user_b: int) -> Optional[Edge]:
        """Get the edge between two users regardless of direction."""
        cursor = self._execute(
            f"SELECT * FROM friendships WHERE {_PAIR_CLAUSE}",
            (user_a, user_b, user_b, user_a)
        )
        row = cursor.fetchone()
        return Edge.from_row(row) if row else None

    def get_by_id(self, edge_id: int) -> Optional[Edge]:
        cursor = self._execute("SELECT * FROM friendships WHERE id = ?", (edge_id,))
        row = cursor.fetchone()
        return Edge.from_row(row) if row else None

    def are_friends(self, user_a: int, user_b: int) -> bool:
        """True iff an accepted edge exists between the two users."""
        if user_a == user_b:
            return False
        cursor = self._execute(
            f"SELECT 1 FROM friendships WHERE {_PAIR_CLAUSE} AND status = 'accepted'",
            (user_a, user_b, user_b, user_a)
        )
        return cursor.fetchone() is not None

    def friend_ids_among(self, user_id: int, candidate_ids) -> set[int]:
        """Return which of ``candidate_ids`` are currently friends of ``user_id``."""
        ids = [c for c in set(candidate_ids) if c != user_id]
        if not ids:
            return set()
        marks = self._placeholders(ids)
        cursor = self._execute(
            f"""SELECT CASE WHEN requester_id = ? THEN addressee_id ELSE requester_id END AS friend_id
                FROM friendships
                WHERE status = 'accepted'
                  AND ((requester_id = ? AND addressee_id IN ({marks}))
                    OR (addressee_id = ? AND requester_id IN ({marks})))""",
            (user_id, user_id, *ids, user_id, *ids)
        )
        return {row["friend_id"] for row in cursor.fetchall()}

    def create_request(
        self,
        requester_id: int,
        addressee_id: int,
        status: FriendshipStatus = FriendshipStatus.PENDING
    ) -> Edge:
        """Insert a new edge. The pair index rejects a second edge for the same pair."""
        cursor = self._execute(
            "INSERT INTO friendships (requester_id, addressee_id, status) VALUES (?, ?, ?)",
            (requester_id, addressee_id, FriendshipStatus(status).value)
        )
        self._commit()
        return self.get_by_id(cursor.lastrowid)

    def set_status(self, edge_id: int, status: FriendshipStatus) -> Optional[Edge]:
        cursor = self._execute(
            "UPDATE friendships SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (FriendshipStatus(status).value, edge_id)
        )
        self._commit()
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(edge_id)

    def delete(self, edge_id: int) -> bool:
        cursor = self._execute("DELETE FROM friendships WHERE id = ?", (edge_id,))
        self._commit()
        return cursor.rowcount > 0

    def list_friend_ids(self, user_id: int) -> list[int]:
        cursor = self._execute(
            """SELECT CASE WHEN requester_id = ? THEN addressee_id ELSE requester_id END AS friend_id
               FROM friendships
               WHERE (requester_id = ? OR addressee_id = ?) AND status = 'accepted'
               ORDER BY updated_at DESC, id DESC""",
            (user_id, user_id, user_id)
        )
        return [row["friend_id"] for row in cursor.fetchall()]

    def list_friends(self, user_id: int, limit: int = 50, offset: int = 0) -> list[dict]:
        """Get friends with basic user info, most recent friendships first."""
        cursor = self._execute(
            """SELECT u.id AS friend_id, u.username, u.display_name,
                      f.updated_at AS friendship_date
               FROM friendships f
               JOIN users u ON u.id = CASE WHEN f.requester_id = ? THEN f.addressee_id
                                           ELSE f.requester_id END
               WHERE (f.requester_id = ? OR f.addressee_id = ?) AND f.status = 'accepted'
               ORDER BY f.updated_at DESC, f.id DESC
               LIMIT ? OFFSET ?""",
            (user_id, user_id, user_id, limit, offset)
        )
        return [dict(row) for row in cursor.fetchall()]

    def pending_requests(self, user_id: int, direction: str = "received") -> list[Edge]:
        """Pending edges addressed to (``received``) or sent by (``sent``) the user."""
        column = "addressee_id" if direction == "received" else "requester_id"
        cursor = self._execute(
            f"""SELECT * FROM friendships
                WHERE {column} = ? AND status = 'pending'
                ORDER BY created_at DESC, id DESC""",
            (user_id,)
        )
        return [Edge.from_row(row) for row in cursor.fetchall()]
