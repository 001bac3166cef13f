"""Friendship routes."""
from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..dependencies import require_user
from .deps import get_relationship_service

router = APIRouter(prefix="/api/friends", tags=["friends"])


class FriendRequestCreate(BaseModel):
    user_id: int


class FriendRequestResponse(BaseModel):
    action: str  # 'accept' | 'decline'


@router.get("")
def list_friends(request: Request, limit: int = 50, offset: int = 0):
    """Get friends of the current user."""
    user = require_user(request)
    return get_relationship_service().list_friends(user["id"], limit=limit, offset=offset)


@router.post("/requests")
def send_friend_request(request: Request, data: FriendRequestCreate):
    user = require_user(request)
    edge = get_relationship_service().send_request(user["id"], data.user_id)
    return {"status": "ok", "request": edge.to_dict()}


@router.get("/requests")
def list_friend_requests(request: Request, type: str = "received"):
    """Pending requests received by, or sent by, the current user."""
    user = require_user(request)
    requests = get_relationship_service().pending_requests(user["id"], type)
    return {"requests": requests, "count": len(requests), "type": type}


@router.post("/requests/{requester_id}/respond")
def respond_to_friend_request(request: Request, requester_id: int, data: FriendRequestResponse):
    user = require_user(request)
    edge = get_relationship_service().respond(user["id"], requester_id, data.action)
    return {"status": "ok", "friendship": edge.to_dict(), "action": data.action}


@router.delete("/{friend_id}")
def remove_friend(request: Request, friend_id: int):
    """Remove a friend. Group memberships and shares are left untouched."""
    user = require_user(request)
    get_relationship_service().remove_friend(user["id"], friend_id)
    return {"status": "ok", "removed_friend_id": friend_id}


@router.post("/{user_id}/block")
def block_user(request: Request, user_id: int):
    user = require_user(request)
    edge = get_relationship_service().block(user["id"], user_id)
    return {"status": "ok", "friendship": edge.to_dict()}


@router.get("/{user_id}/status")
def friendship_status(request: Request, user_id: int):
    user = require_user(request)
    return get_relationship_service().friendship_status(user["id"], user_id)


@router.get("/{user_id}/mutual")
def mutual_friends(request: Request, user_id: int):
    user = require_user(request)
    ids = get_relationship_service().mutual_friends(user["id"], user_id)
    return {"mutual_friend_ids": ids, "count": len(ids)}
