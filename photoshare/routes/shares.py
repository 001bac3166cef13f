"""Share grant routes."""
from datetime import datetime

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ..config import MAX_BULK_IDS
from ..domain import Share
from ..dependencies import require_user
from .deps import get_share_service

router = APIRouter(prefix="/api/shares", tags=["shares"])


class ShareCreate(BaseModel):
    recipient_id: int | None = None
    recipient_ids: list[int] | None = Field(default=None, max_length=MAX_BULK_IDS)
    scope: str  # 'photo' | 'album' | 'all_content'
    scope_id: str | None = None
    permission_level: str = "view"
    expires_at: datetime | None = None


def _share_response(share: Share, user_id: int) -> dict:
    data = share.to_dict()
    data["direction"] = "given" if share.sharer_id == user_id else "received"
    data["capabilities"] = share.permission_level.capabilities()
    return data


@router.post("")
def create_share(request: Request, data: ShareCreate):
    """Share with one recipient, or with several in a single transaction."""
    user = require_user(request)
    service = get_share_service()

    if data.recipient_ids is not None:
        shares = service.create_shares(
            user["id"], data.recipient_ids, data.scope, data.scope_id,
            data.permission_level, data.expires_at
        )
        return {"status": "ok", "shares": [_share_response(s, user["id"]) for s in shares]}

    if data.recipient_id is None:
        raise HTTPException(status_code=400, detail="recipient_id or recipient_ids is required")

    share = service.create_share(
        user["id"], data.recipient_id, data.scope, data.scope_id,
        data.permission_level, data.expires_at
    )
    return {"status": "ok", "share": _share_response(share, user["id"])}


@router.get("/given")
def list_given(request: Request, status: str = "active"):
    user = require_user(request)
    shares = get_share_service().list_given(user["id"], status)
    return {"shares": [_share_response(s, user["id"]) for s in shares], "status": status}


@router.get("/received")
def list_received(request: Request, status: str = "active"):
    user = require_user(request)
    shares = get_share_service().list_received(user["id"], status)
    return {"shares": [_share_response(s, user["id"]) for s in shares], "status": status}


@router.get("/{share_id}")
def get_share(request: Request, share_id: int):
    user = require_user(request)
    share = get_share_service().get_share(share_id, user["id"])
    return _share_response(share, user["id"])


@router.post("/{share_id}/revoke")
def revoke_share(request: Request, share_id: int):
    user = require_user(request)
    share = get_share_service().revoke(share_id, user["id"])
    return {"status": "ok", "share": _share_response(share, user["id"])}


@router.post("/{share_id}/reactivate")
def reactivate_share(request: Request, share_id: int):
    """Clear a revocation; an expired share stays ineffective."""
    user = require_user(request)
    share = get_share_service().reactivate(share_id, user["id"])
    return {"status": "ok", "share": _share_response(share, user["id"])}


@router.delete("/{share_id}")
def delete_share(request: Request, share_id: int):
    user = require_user(request)
    get_share_service().delete(share_id, user["id"])
    return {"status": "ok"}
