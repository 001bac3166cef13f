#!/usr/bin/env python3
"""
User management CLI for the photo sharing backend.
Run this script to add, modify, or remove users and their friendships.

Usage:
    python manage_users.py add <username> <display_name>
    python manage_users.py list
    python manage_users.py delete <username>
    python manage_users.py rename <username> <new_display_name>
    python manage_users.py befriend <username> <other_username>
    python manage_users.py unfriend <username> <other_username>
    python manage_users.py check <viewer_username> <photo_id>
"""

import sys
import os
import sqlite3

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from photoshare.database import init_db, get_db
from photoshare.domain import FriendshipStatus
from photoshare.errors import AccessError
from photoshare.infrastructure.repositories import RelationshipRepository, UserRepository
from photoshare.routes.deps import get_access_resolver, get_relationship_service


def print_usage():
    print(__doc__)


def _user_repo() -> UserRepository:
    return UserRepository(get_db())


def _lookup(username):
    user = _user_repo().get_by_username(username)
    if not user:
        print(f"Error: User '{username}' not found")
    return user


def cmd_add(args):
    if len(args) < 2:
        print("Error: add requires <username> <display_name>")
        print("Example: python manage_users.py add alice \"Alice Smith\"")
        return 1

    username, display_name = args[0], args[1]

    if _user_repo().get_by_username(username):
        print(f"Error: User '{username}' already exists")
        return 1

    try:
        user_id = _user_repo().create(username, display_name)
    except sqlite3.IntegrityError as e:
        print(f"Error creating user: {e}")
        return 1
    print(f"User '{username}' created successfully (ID: {user_id})")
    return 0


def cmd_list(args):
    users = _user_repo().list_all()
    if not users:
        print("No users found. Create one with: python manage_users.py add <username> <display_name>")
        return 0

    print(f"{'ID':<5} {'Username':<20} {'Display Name':<30} {'Created'}")
    print("-" * 80)
    for user in users:
        print(f"{user['id']:<5} {user['username']:<20} {user['display_name']:<30} {user['created_at']}")
    return 0


def cmd_delete(args):
    if len(args) < 1:
        print("Error: delete requires <username>")
        return 1

    username = args[0]
    user = _lookup(username)
    if not user:
        return 1

    # Confirm deletion
    confirm = input(f"Delete user '{username}' ({user['display_name']})? [y/N]: ")
    if confirm.lower() != 'y':
        print("Cancelled")
        return 0

    _user_repo().delete(user['id'])
    print(f"User '{username}' deleted")
    return 0


def cmd_rename(args):
    if len(args) < 2:
        print("Error: rename requires <username> <new_display_name>")
        return 1

    username, new_display_name = args[0], args[1]
    user = _lookup(username)
    if not user:
        return 1

    _user_repo().update_display_name(user['id'], new_display_name)
    print(f"Display name for '{username}' changed to '{new_display_name}'")
    return 0


def cmd_befriend(args):
    """Make two users friends without the request/accept round trip."""
    if len(args) < 2:
        print("Error: befriend requires <username> <other_username>")
        return 1

    user, other = _lookup(args[0]), _lookup(args[1])
    if not user or not other:
        return 1
    if user['id'] == other['id']:
        print("Error: A user cannot befriend themselves")
        return 1

    edges = RelationshipRepository(get_db())
    edge = edges.get_edge(user['id'], other['id'])
    if edge is None:
        edges.create_request(user['id'], other['id'], FriendshipStatus.ACCEPTED)
    else:
        edges.set_status(edge.id, FriendshipStatus.ACCEPTED)
    print(f"'{args[0]}' and '{args[1]}' are now friends")
    return 0


def cmd_unfriend(args):
    if len(args) < 2:
        print("Error: unfriend requires <username> <other_username>")
        return 1

    user, other = _lookup(args[0]), _lookup(args[1])
    if not user or not other:
        return 1

    try:
        get_relationship_service().remove_friend(user['id'], other['id'])
    except AccessError as e:
        print(f"Error: {e.detail}")
        return 1
    print(f"'{args[0]}' and '{args[1]}' are no longer friends")
    return 0


def cmd_check(args):
    """Print the access decision for a viewer and a photo."""
    if len(args) < 2:
        print("Error: check requires <viewer_username> <photo_id>")
        return 1

    viewer = _lookup(args[0])
    if not viewer:
        return 1

    decision = get_access_resolver().resolve_photo(viewer['id'], args[1])
    verdict = "ALLOW" if decision.allowed else "DENY"
    print(f"{verdict} reason={decision.reason.value} rule={decision.matched_rule or '-'}")
    if decision.permission_level:
        print(f"permission={decision.permission_level.value}")
    return 0


def main():
    if len(sys.argv) < 2:
        print_usage()
        return 1

    # Initialize database
    init_db()

    command = sys.argv[1].lower()
    args = sys.argv[2:]

    commands = {
        'add': cmd_add,
        'list': cmd_list,
        'delete': cmd_delete,
        'rename': cmd_rename,
        'befriend': cmd_befriend,
        'unfriend': cmd_unfriend,
        'check': cmd_check,
        'help': lambda _: (print_usage(), 0)[1],
    }

    if command not in commands:
        print(f"Unknown command: {command}")
        print_usage()
        return 1

    return commands[command](args)


if __name__ == "__main__":
    sys.exit(main())
