"""Custom group routes.

Lookups of another user's group, a deleted group and a missing group all
answer 404 with the same body.
"""
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..config import GROUP_DESCRIPTION_MAX, GROUP_NAME_MAX, MAX_BULK_IDS
from ..dependencies import require_user
from .deps import get_group_service

router = APIRouter(prefix="/api/groups", tags=["groups"])


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=GROUP_NAME_MAX)
    description: str | None = Field(default=None, max_length=GROUP_DESCRIPTION_MAX)
    member_ids: list[int] = Field(default_factory=list, max_length=MAX_BULK_IDS)
    strict: bool = False


class GroupUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=GROUP_NAME_MAX)
    description: str | None = Field(default=None, max_length=GROUP_DESCRIPTION_MAX)
    member_ids: list[int] | None = Field(default=None, max_length=MAX_BULK_IDS)


class MemberIds(BaseModel):
    member_ids: list[int] = Field(max_length=MAX_BULK_IDS)


@router.get("")
def list_groups(request: Request):
    user = require_user(request)
    groups = get_group_service().list_groups(user["id"])
    return {"groups": groups, "count": len(groups)}


@router.post("")
def create_group(request: Request, data: GroupCreate):
    """Create a group; candidates that are not friends are reported as rejected."""
    user = require_user(request)
    group, change = get_group_service().create_group(
        user["id"], data.name, data.description, data.member_ids, strict=data.strict
    )
    return {"status": "ok", "group": group.to_dict(), "members": change.to_dict()}


@router.get("/{group_id}")
def get_group(request: Request, group_id: int):
    user = require_user(request)
    return get_group_service().get_group(group_id, user["id"])


@router.put("/{group_id}")
def update_group(request: Request, group_id: int, data: GroupUpdate):
    user = require_user(request)
    group, change = get_group_service().update_group(
        group_id, user["id"],
        name=data.name,
        description=data.description,
        member_ids=data.member_ids
    )
    return {
        "status": "ok",
        "group": group.to_dict(),
        "members": change.to_dict() if change else None,
    }


@router.delete("/{group_id}")
def delete_group(request: Request, group_id: int):
    user = require_user(request)
    get_group_service().delete_group(group_id, user["id"])
    return {"status": "ok"}


@router.put("/{group_id}/members")
def replace_members(request: Request, group_id: int, data: MemberIds):
    """Replace the whole member set atomically."""
    user = require_user(request)
    change = get_group_service().replace_members(group_id, user["id"], data.member_ids)
    return {"status": "ok", "members": change.to_dict()}


@router.post("/{group_id}/members/add")
def add_members(request: Request, group_id: int, data: MemberIds):
    user = require_user(request)
    change = get_group_service().add_members(group_id, user["id"], data.member_ids)
    return {"status": "ok", "members": change.to_dict()}


@router.post("/{group_id}/members/remove")
def remove_members(request: Request, group_id: int, data: MemberIds):
    user = require_user(request)
    removed = get_group_service().remove_members(group_id, user["id"], data.member_ids)
    return {"status": "ok", "removed_count": removed}
