"""Tests for the operator CLI."""
import sys

import pytest

import manage_users


@pytest.fixture
def run(fresh_database, monkeypatch, capsys):
    """Run the CLI with the given arguments; returns (exit code, stdout)."""

    def _run(*args):
        monkeypatch.setattr(sys, "argv", ["manage_users.py", *args])
        code = manage_users.main()
        return code, capsys.readouterr().out

    return _run


def test_add_and_list(run):
    code, out = run("add", "alice", "Alice Smith")
    assert code == 0
    assert "created successfully" in out

    code, out = run("list")
    assert "alice" in out
    assert "Alice Smith" in out


def test_duplicate_user_rejected(run):
    run("add", "alice", "Alice")

    code, out = run("add", "alice", "Other")

    assert code == 1
    assert "already exists" in out


def test_befriend_then_check(run, db):
    from photoshare.infrastructure.repositories import ContentRepository

    run("add", "alice", "Alice")
    run("add", "bob", "Bob")
    photo_id = ContentRepository(db).create_photo(1, "a.jpg", None, "friends", None)

    code, out = run("check", "bob", photo_id)
    assert code == 0
    assert out.startswith("DENY reason=no_matching_rule")

    run("befriend", "alice", "bob")
    code, out = run("check", "bob", photo_id)
    assert out.startswith("ALLOW reason=friends rule=visibility:friends")


def test_unfriend_without_friendship(run):
    run("add", "alice", "Alice")
    run("add", "bob", "Bob")

    code, out = run("unfriend", "alice", "bob")

    assert code == 1
    assert "Error" in out


def test_unknown_command(run):
    code, out = run("frobnicate")

    assert code == 1
    assert "Unknown command" in out
