"""Database connection and schema bootstrap."""
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from . import config


def _adapt_datetime(dt: datetime) -> str:
    """Adapt datetime to ISO 8601 string for SQLite."""
    return dt.isoformat()


sqlite3.register_adapter(datetime, _adapt_datetime)

# Thread-local storage for database connections
_local = threading.local()


def create_connection(path: Path | str = None) -> sqlite3.Connection:
    """Open a new connection with row access by column name and FK enforcement."""
    conn = sqlite3.connect(path or config.DATABASE_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_db() -> sqlite3.Connection:
    """Get thread-local database connection.

    Reopened when ``config.DATABASE_PATH`` has changed since the connection
    was made.
    """
    path = str(config.DATABASE_PATH)
    if getattr(_local, 'connection', None) is None or getattr(_local, 'path', None) != path:
        _local.connection = create_connection(path)
        _local.path = path
    return _local.connection


def close_db() -> None:
    """Close the thread-local connection if one is open."""
    conn = getattr(_local, 'connection', None)
    if conn is not None:
        conn.close()
    _local.connection = None
    _local.path = None


def init_db(db: sqlite3.Connection = None):
    """Initialize database schema"""
    db = db or get_db()

    # Users; identity and credentials are issued elsewhere
    db.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            display_name TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Per-user defaults stamped on newly ingested content
    db.execute("""
        CREATE TABLE IF NOT EXISTS user_settings (
            user_id INTEGER PRIMARY KEY,
            default_visibility TEXT NOT NULL DEFAULT 'friends'
                CHECK(default_visibility IN ('public', 'friends', 'close_friends', 'custom')),
            default_group_id INTEGER,
            auto_sync_enabled INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (default_group_id) REFERENCES custom_groups(id) ON DELETE SET NULL
        )
    """)

    # Directed friend-request edges
    db.execute("""
        CREATE TABLE IF NOT EXISTS friendships (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            requester_id INTEGER NOT NULL,
            addressee_id INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'accepted', 'declined', 'blocked')),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK (requester_id != addressee_id),
            FOREIGN KEY (requester_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (addressee_id) REFERENCES users(id) ON DELETE CASCADE
        )
    """)
    # One edge per unordered pair
    db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_friendships_pair
        ON friendships (MIN(requester_id, addressee_id), MAX(requester_id, addressee_id))
    """)
    db.execute("CREATE INDEX IF NOT EXISTS idx_friendships_addressee ON friendships(addressee_id)")

    # Custom membership groups (soft-deleted via state)
    db.execute("""
        CREATE TABLE IF NOT EXISTS custom_groups (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            state TEXT NOT NULL DEFAULT 'active' CHECK(state IN ('active', 'deleted')),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (owner_id) REFERENCES users(id) ON DELETE CASCADE
        )
    """)
    db.execute("CREATE INDEX IF NOT EXISTS idx_custom_groups_owner ON custom_groups(owner_id)")

    db.execute("""
        CREATE TABLE IF NOT EXISTS custom_group_members (
            group_id INTEGER NOT NULL,
            user_id INTEGER NOT NULL,
            added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (group_id, user_id),
            FOREIGN KEY (group_id) REFERENCES custom_groups(id) ON DELETE CASCADE,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
        )
    """)

    # Content
    db.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            id TEXT PRIMARY KEY,
            owner_id INTEGER NOT NULL,
            filename TEXT NOT NULL,
            caption TEXT,
            visibility TEXT NOT NULL DEFAULT 'friends',
            custom_group_id INTEGER,
            uploaded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (owner_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (custom_group_id) REFERENCES custom_groups(id) ON DELETE SET NULL
        )
    """)
    db.execute("CREATE INDEX IF NOT EXISTS idx_photos_owner ON photos(owner_id)")

    db.execute("""
        CREATE TABLE IF NOT EXISTS albums (
            id TEXT PRIMARY KEY,
            owner_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            visibility TEXT NOT NULL DEFAULT 'friends',
            custom_group_id INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (owner_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (custom_group_id) REFERENCES custom_groups(id) ON DELETE SET NULL
        )
    """)

    db.execute("""
        CREATE TABLE IF NOT EXISTS album_photos (
            album_id TEXT NOT NULL,
            photo_id TEXT NOT NULL,
            added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (album_id, photo_id),
            FOREIGN KEY (album_id) REFERENCES albums(id) ON DELETE CASCADE,
            FOREIGN KEY (photo_id) REFERENCES photos(id) ON DELETE CASCADE
        )
    """)
    db.execute("CREATE INDEX IF NOT EXISTS idx_album_photos_photo ON album_photos(photo_id)")

    # Discretionary share grants; scope and target column must agree
    db.execute("""
        CREATE TABLE IF NOT EXISTS shares (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            sharer_id INTEGER NOT NULL,
            recipient_id INTEGER NOT NULL,
            scope TEXT NOT NULL CHECK(scope IN ('photo', 'album', 'all_content')),
            photo_id TEXT,
            album_id TEXT,
            permission_level TEXT NOT NULL DEFAULT 'view'
                CHECK(permission_level IN ('view', 'download', 'comment')),
            expires_at TIMESTAMP,
            state TEXT NOT NULL DEFAULT 'active' CHECK(state IN ('active', 'revoked')),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK (
                (scope = 'photo' AND photo_id IS NOT NULL AND album_id IS NULL) OR
                (scope = 'album' AND album_id IS NOT NULL AND photo_id IS NULL) OR
                (scope = 'all_content' AND photo_id IS NULL AND album_id IS NULL)
            ),
            FOREIGN KEY (sharer_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (recipient_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (photo_id) REFERENCES photos(id) ON DELETE CASCADE,
            FOREIGN KEY (album_id) REFERENCES albums(id) ON DELETE CASCADE
        )
    """)
    db.execute("CREATE INDEX IF NOT EXISTS idx_shares_recipient ON shares(recipient_id, sharer_id)")
    db.execute("CREATE INDEX IF NOT EXISTS idx_shares_sharer ON shares(sharer_id)")

    db.commit()
