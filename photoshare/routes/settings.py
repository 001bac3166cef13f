"""User settings routes - default visibility for new content."""
from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..dependencies import require_user
from ..domain import policy_columns
from .deps import get_default_policy_service

router = APIRouter(prefix="/api/settings", tags=["settings"])


class DefaultVisibilityUpdate(BaseModel):
    visibility: str  # 'public' | 'friends' | 'close_friends' | 'custom'
    group_id: int | None = None
    auto_sync_enabled: bool | None = None


@router.get("/default-visibility")
def get_default_visibility(request: Request):
    """Stored default plus the policy that would actually be stamped now."""
    user = require_user(request)
    service = get_default_policy_service()
    settings = service.get_default_settings(user["id"])
    effective = service.resolve_default_policy(user["id"])
    data = settings.to_dict()
    data["effective_visibility"], data["effective_group_id"] = policy_columns(effective)
    return data


@router.put("/default-visibility")
def update_default_visibility(request: Request, data: DefaultVisibilityUpdate):
    user = require_user(request)
    settings = get_default_policy_service().update_default_policy(
        user["id"], data.visibility, data.group_id, data.auto_sync_enabled
    )
    return {"status": "ok", "settings": settings.to_dict()}
