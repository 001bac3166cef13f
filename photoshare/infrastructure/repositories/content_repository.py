"""Content repository - photos, albums and album containment.

Only the columns that access resolution needs are modelled; binary storage
and thumbnails live elsewhere.
"""
import uuid
from datetime import datetime
from typing import Optional

from ...domain import ContentItem, ContentKind
from .base import Repository


class ContentRepository(Repository):
    """Repository for photos and albums.

    Examples:
        >>> repo = ContentRepository(db)
        >>> photo_id = repo.create_photo(1, "beach.jpg", None, "friends", None)
        >>> repo.get_photo_item(photo_id).visibility
        'friends'
    """

    # =========================================================================
    # Photos
    # =========================================================================

    def create_photo(
        self,
        owner_id: int,
        filename: str,
        caption: Optional[str],
        visibility: str,
        group_id: Optional[int],
        photo_id: str = None
    ) -> str:
        """Create photo record.

        Returns:
            New photo UUID
        """
        if photo_id is None:
            photo_id = str(uuid.uuid4())
        self._execute(
            """INSERT INTO photos
               (id, owner_id, filename, caption, visibility, custom_group_id, uploaded_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (photo_id, owner_id, filename, caption, visibility, group_id, datetime.now())
        )
        self._commit()
        return photo_id

    def get_photo(self, photo_id: str) -> Optional[dict]:
        cursor = self._execute("SELECT * FROM photos WHERE id = ?", (photo_id,))
        return self._row_to_dict(cursor.fetchone())

    def get_photo_item(self, photo_id: str) -> Optional[ContentItem]:
        cursor = self._execute(
            "SELECT id, owner_id, visibility, custom_group_id FROM photos WHERE id = ?",
            (photo_id,)
        )
        row = cursor.fetchone()
        return ContentItem.from_row(ContentKind.PHOTO, row) if row else None

    def list_photos_by_owner(self, owner_id: int) -> list[dict]:
        cursor = self._execute(
            "SELECT * FROM photos WHERE owner_id = ? ORDER BY uploaded_at DESC, id",
            (owner_id,)
        )
        return [dict(row) for row in cursor.fetchall()]

    def owned_photo_ids(self, owner_id: int, photo_ids: list[str]) -> set[str]:
        """Subset of ``photo_ids`` owned by ``owner_id``."""
        ids = list(set(photo_ids))
        if not ids:
            return set()
        cursor = self._execute(
            f"SELECT id FROM photos WHERE owner_id = ? AND id IN ({self._placeholders(ids)})",
            (owner_id, *ids)
        )
        return {row["id"] for row in cursor.fetchall()}

    def set_photo_visibility(self, photo_id: str, visibility: str, group_id: Optional[int]) -> bool:
        cursor = self._execute(
            "UPDATE photos SET visibility = ?, custom_group_id = ? WHERE id = ?",
            (visibility, group_id, photo_id)
        )
        self._commit()
        return cursor.rowcount > 0

    # =========================================================================
    # Albums
    # =========================================================================

    def create_album(
        self,
        owner_id: int,
        name: str,
        description: Optional[str],
        visibility: str,
        group_id: Optional[int],
        album_id: str = None
    ) -> str:
        """Create album record.

        Returns:
            New album UUID
        """
        if album_id is None:
            album_id = str(uuid.uuid4())
        self._execute(
            """INSERT INTO albums
               (id, owner_id, name, description, visibility, custom_group_id, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (album_id, owner_id, name, description, visibility, group_id, datetime.now())
        )
        self._commit()
        return album_id

    def get_album(self, album_id: str) -> Optional[dict]:
        """Get album with its photo count."""
        cursor = self._execute(
            """SELECT a.*,
                      (SELECT COUNT(*) FROM album_photos ap WHERE ap.album_id = a.id) AS photo_count
               FROM albums a WHERE a.id = ?""",
            (album_id,)
        )
        return self._row_to_dict(cursor.fetchone())

    def get_album_item(self, album_id: str) -> Optional[ContentItem]:
        cursor = self._execute(
            "SELECT id, owner_id, visibility, custom_group_id FROM albums WHERE id = ?",
            (album_id,)
        )
        row = cursor.fetchone()
        return ContentItem.from_row(ContentKind.ALBUM, row) if row else None

    def albums_containing(self, photo_id: str, owner_id: int) -> list[ContentItem]:
        """Albums owned by ``owner_id`` that currently contain the photo."""
        cursor = self._execute(
            """SELECT a.id, a.owner_id, a.visibility, a.custom_group_id
               FROM albums a
               JOIN album_photos ap ON ap.album_id = a.id
               WHERE ap.photo_id = ? AND a.owner_id = ?
               ORDER BY ap.added_at, a.id""",
            (photo_id, owner_id)
        )
        return [ContentItem.from_row(ContentKind.ALBUM, row) for row in cursor.fetchall()]

    def list_album_photos(self, album_id: str, limit: int = 50, offset: int = 0) -> list[dict]:
        """Photos in an album, most recently added first."""
        cursor = self._execute(
            """SELECT p.*, ap.added_at
               FROM photos p
               JOIN album_photos ap ON ap.photo_id = p.id
               WHERE ap.album_id = ?
               ORDER BY ap.added_at DESC, p.id
               LIMIT ? OFFSET ?""",
            (album_id, limit, offset)
        )
        return [dict(row) for row in cursor.fetchall()]

    def add_photos_to_album(self, album_id: str, photo_ids: list[str]) -> int:
        """Add photos, ignoring ones already in the album.

        Returns:
            Number of photos actually added
        """
        ids = list(dict.fromkeys(photo_ids))
        if not ids:
            return 0
        with self._transaction():
            before = self._count_album_photos(album_id)
            self._execute_many(
                "INSERT OR IGNORE INTO album_photos (album_id, photo_id) VALUES (?, ?)",
                [(album_id, photo_id) for photo_id in ids]
            )
            added = self._count_album_photos(album_id) - before
        return added

    def remove_photos_from_album(self, album_id: str, photo_ids: list[str]) -> int:
        """Returns number of photos removed."""
        ids = list(set(photo_ids))
        if not ids:
            return 0
        cursor = self._execute(
            f"DELETE FROM album_photos WHERE album_id = ? AND photo_id IN ({self._placeholders(ids)})",
            (album_id, *ids)
        )
        self._commit()
        return cursor.rowcount

    def _count_album_photos(self, album_id: str) -> int:
        cursor = self._execute(
            "SELECT COUNT(*) FROM album_photos WHERE album_id = ?", (album_id,)
        )
        return cursor.fetchone()[0]
