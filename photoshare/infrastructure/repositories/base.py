"""Base repository protocol and utilities.

This module defines the interface that all repositories must implement.
"""
from contextlib import contextmanager
from typing import Protocol, Iterator
import sqlite3


class ConnectionProtocol(Protocol):
    """Protocol for database connection."""

    def execute(self, sql: str, parameters: tuple = ...) -> sqlite3.Cursor: ...
    def executemany(self, sql: str, parameters: list = ...) -> sqlite3.Cursor: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class Repository:
    """Base repository class.

    All repositories should inherit from this class.

    Example:
        class UserRepository(Repository):
            def get_by_id(self, user_id: int) -> dict | None:
                cursor = self._execute("SELECT * FROM users WHERE id = ?", (user_id,))
                return self._row_to_dict(cursor.fetchone())
    """

    def __init__(self, connection: ConnectionProtocol):
        """Initialize repository with database connection.

        Args:
            connection: Database connection (sqlite3.Connection or compatible)
        """
        self._conn = connection

    def _execute(self, sql: str, parameters: tuple = ()) -> sqlite3.Cursor:
        """Execute SQL query with parameters.

        Args:
            sql: SQL query string
            parameters: Query parameters (prevents SQL injection)

        Returns:
            sqlite3.Cursor with results
        """
        return self._conn.execute(sql, parameters)

    def _execute_many(self, sql: str, parameters_list: list[tuple]) -> sqlite3.Cursor:
        """Execute SQL query multiple times.

        Args:
            sql: SQL query string
            parameters_list: List of parameter tuples

        Returns:
            sqlite3.Cursor
        """
        return self._conn.executemany(sql, parameters_list)

    def _commit(self) -> None:
        """Commit current transaction."""
        self._conn.commit()

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Run the enclosed statements as one unit.

        Commits when the block exits normally; on any exception the whole
        block is rolled back and the exception propagates. Statements inside
        the block must not call ``_commit`` themselves.
        """
        try:
            yield
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()

    def _row_to_dict(self, row: sqlite3.Row | None) -> dict | None:
        """Convert sqlite3.Row to dictionary.

        Args:
            row: Database row or None

        Returns:
            Dictionary representation or None
        """
        return dict(row) if row else None

    @staticmethod
    def _placeholders(values) -> str:
        """Return ``?, ?, ...`` for an IN clause over ``values``."""
        return ", ".join("?" for _ in values)
