"""Relationship service - friend requests and the symmetric friendship check.

Removing a friend deletes the edge only. Custom-group memberships and share
grants created while the two users were friends are left as they are.
"""
import logging
from typing import Optional

from fastapi import HTTPException

from ...domain import Edge, FriendshipStatus
from ...errors import RelationshipConflict, RelationshipNotFound, UserNotFound
from ...infrastructure.repositories import RelationshipRepository, UserRepository

logger = logging.getLogger(__name__)

_CONFLICT_MESSAGES = {
    FriendshipStatus.PENDING: "Friend request already sent or received",
    FriendshipStatus.ACCEPTED: "You are already friends",
    FriendshipStatus.DECLINED: "Friend request was previously declined",
}

RESPOND_ACTIONS = {"accept": FriendshipStatus.ACCEPTED, "decline": FriendshipStatus.DECLINED}


class RelationshipService:
    """Service for the friendship graph.

    Responsibilities:
    - Send, answer and remove friend requests
    - Block users
    - Answer "are these two users friends" for every other component
    """

    def __init__(
        self,
        relationship_repository: RelationshipRepository,
        user_repository: UserRepository
    ):
        self.edge_repo = relationship_repository
        self.user_repo = user_repository

    def are_friends(self, user_a: int, user_b: int) -> bool:
        """Order-independent check for an accepted edge."""
        return self.edge_repo.are_friends(user_a, user_b)

    def get_edge(self, user_a: int, user_b: int) -> Optional[Edge]:
        return self.edge_repo.get_edge(user_a, user_b)

    def send_request(self, requester_id: int, addressee_id: int) -> Edge:
        """Create a pending edge from requester to addressee.

        Raises:
            RelationshipConflict: self-request or any existing edge for the pair
            UserNotFound: addressee does not exist
        """
        if requester_id == addressee_id:
            raise RelationshipConflict("Cannot send friend request to yourself")

        if not self.user_repo.exists(addressee_id):
            raise UserNotFound()

        existing = self.edge_repo.get_edge(requester_id, addressee_id)
        if existing:
            raise RelationshipConflict(_CONFLICT_MESSAGES.get(existing.status))

        edge = self.edge_repo.create_request(requester_id, addressee_id)
        logger.info("Friend request %s: user %s -> user %s", edge.id, requester_id, addressee_id)
        return edge

    def respond(self, addressee_id: int, requester_id: int, action: str) -> Edge:
        """Accept or decline a pending request sent by ``requester_id``.

        Only the addressee of the pending edge may respond.
        """
        if action not in RESPOND_ACTIONS:
            raise HTTPException(
                status_code=400,
                detail='Action must be either "accept" or "decline"'
            )

        edge = self.edge_repo.get_edge(addressee_id, requester_id)
        if not edge or edge.addressee_id != addressee_id:
            raise RelationshipNotFound("Friend request not found")
        if edge.status is not FriendshipStatus.PENDING:
            raise RelationshipConflict("Friend request has already been responded to")

        updated = self.edge_repo.set_status(edge.id, RESPOND_ACTIONS[action])
        logger.info("Friend request %s %s by user %s", edge.id, updated.status.value, addressee_id)
        return updated

    def block(self, user_id: int, other_id: int) -> Edge:
        """Set the pair's edge to blocked, creating it if needed."""
        if user_id == other_id:
            raise RelationshipConflict("Cannot block yourself")
        if not self.user_repo.exists(other_id):
            raise UserNotFound()

        edge = self.edge_repo.get_edge(user_id, other_id)
        if edge is None:
            edge = self.edge_repo.create_request(user_id, other_id, FriendshipStatus.BLOCKED)
        else:
            edge = self.edge_repo.set_status(edge.id, FriendshipStatus.BLOCKED)
        logger.info("User %s blocked user %s", user_id, other_id)
        return edge

    def remove_friend(self, user_id: int, friend_id: int) -> None:
        """Hard-delete an accepted edge.

        Raises:
            RelationshipNotFound: the two users are not friends
        """
        edge = self.edge_repo.get_edge(user_id, friend_id)
        if not edge or not edge.is_accepted:
            raise RelationshipNotFound()
        self.edge_repo.delete(edge.id)
        logger.info("Friendship %s removed by user %s", edge.id, user_id)

    def friendship_status(self, user_id: int, other_id: int) -> dict:
        edge = self.edge_repo.get_edge(user_id, other_id)
        if edge is None:
            return {
                "status": "none",
                "can_send_request": user_id != other_id,
                "initiated_by_me": False,
            }
        return {
            "status": edge.status.value,
            "can_send_request": False,
            "initiated_by_me": edge.requester_id == user_id,
        }

    def pending_requests(self, user_id: int, direction: str = "received") -> list[dict]:
        if direction not in ("received", "sent"):
            raise HTTPException(
                status_code=400,
                detail='Invalid type parameter. Must be "received" or "sent"'
            )
        return [edge.to_dict() for edge in self.edge_repo.pending_requests(user_id, direction)]

    def list_friends(self, user_id: int, limit: int = 50, offset: int = 0) -> dict:
        limit = min(max(limit, 1), 100)
        offset = max(offset, 0)
        friends = self.edge_repo.list_friends(user_id, limit=limit, offset=offset)
        total = len(self.edge_repo.list_friend_ids(user_id))
        return {
            "friends": friends,
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "has_next": offset + limit < total,
                "has_prev": offset > 0,
            },
        }

    def mutual_friends(self, user_a: int, user_b: int) -> list[int]:
        """Friend ids shared by both users."""
        theirs = set(self.edge_repo.list_friend_ids(user_b))
        return [f for f in self.edge_repo.list_friend_ids(user_a) if f in theirs]
