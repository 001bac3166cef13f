"""Test configuration and fixtures for the photo sharing backend.

This module provides isolated test environments:
- Temporary database (SQLite) per test
- Four seeded users (ids 1-4)
- Services wired over the test connection
- A FastAPI test client that identifies callers by header
"""
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient

# Ensure photoshare is importable
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(scope="function")
def fresh_database(tmp_path: Path, monkeypatch):
    """Point the app at an empty database file and create the schema.

    IMPORTANT: each test starts with clean state; thread-local connections
    from earlier tests are dropped.
    """
    import photoshare.config as config
    import photoshare.database as db_module

    db_path = tmp_path / "test.db"
    monkeypatch.setattr(config, "DATABASE_PATH", db_path)
    db_module.close_db()

    conn = db_module.get_db()
    db_module.init_db(conn)

    yield conn

    # Cleanup: close connections
    db_module.close_db()


@pytest.fixture(scope="function")
def db(fresh_database):
    """Connection to the isolated test database."""
    return fresh_database


@pytest.fixture(scope="function")
def users(db) -> Dict[str, int]:
    """Create alice, bob, carol and dave (ids 1-4 in a fresh database)."""
    from photoshare.infrastructure.repositories import UserRepository

    repo = UserRepository(db)
    return {
        name: repo.create(name, name.capitalize())
        for name in ("alice", "bob", "carol", "dave")
    }


@pytest.fixture(scope="function")
def befriend(db) -> Callable[[int, int], None]:
    """Make two users friends directly, skipping the request round trip."""
    from photoshare.domain import FriendshipStatus
    from photoshare.infrastructure.repositories import RelationshipRepository

    repo = RelationshipRepository(db)

    def _befriend(user_a: int, user_b: int) -> None:
        repo.create_request(user_a, user_b, FriendshipStatus.ACCEPTED)

    return _befriend


@pytest.fixture(scope="function")
def services(db) -> SimpleNamespace:
    """All application services over the test connection."""
    from photoshare.routes import deps

    return SimpleNamespace(
        relationships=deps.get_relationship_service(db),
        groups=deps.get_group_service(db),
        shares=deps.get_share_service(db),
        resolver=deps.get_access_resolver(db),
        defaults=deps.get_default_policy_service(db),
        content=deps.get_content_service(db),
    )


@pytest.fixture(scope="function")
def client(fresh_database) -> Generator[TestClient, None, None]:
    """Create test client over the isolated database.

    Usage:
        def test_something(client, as_user):
            response = client.get("/api/groups", headers=as_user(1))
            assert response.status_code == 200
    """
    from photoshare.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def as_user() -> Callable[[int], Dict[str, str]]:
    """Build the identity header the upstream gateway would send."""
    from photoshare.config import USER_HEADER

    def _headers(user_id: int) -> Dict[str, str]:
        return {USER_HEADER: str(user_id)}

    return _headers
