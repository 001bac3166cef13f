"""Photo and album routes.

Only the access-control side of content is served here. A photo the caller
may not see answers 404, the same as a photo that does not exist.
"""
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..config import ALBUM_NAME_MAX, MAX_BULK_IDS, TEXT_MAX
from ..dependencies import get_viewer_id, require_user
from .deps import get_content_service

router = APIRouter(prefix="/api", tags=["content"])


class PhotoCreate(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    caption: str | None = Field(default=None, max_length=TEXT_MAX)
    visibility: str | None = None
    group_id: int | None = None


class PhotoSync(BaseModel):
    filenames: list[str] = Field(min_length=1, max_length=MAX_BULK_IDS)


class VisibilityUpdate(BaseModel):
    visibility: str
    group_id: int | None = None


class AlbumCreate(BaseModel):
    name: str = Field(min_length=1, max_length=ALBUM_NAME_MAX)
    description: str | None = Field(default=None, max_length=TEXT_MAX)
    visibility: str | None = None
    group_id: int | None = None


class AlbumPhotos(BaseModel):
    photo_ids: list[str] = Field(min_length=1, max_length=MAX_BULK_IDS)


# === Photos ===

@router.post("/photos")
def create_photo(request: Request, data: PhotoCreate):
    """Register a photo; without a visibility the owner's default is stamped."""
    user = require_user(request)
    photo = get_content_service().create_photo(
        user["id"], data.filename, data.caption, data.visibility, data.group_id
    )
    return {"status": "ok", "photo": photo}


@router.post("/photos/sync")
def sync_photos(request: Request, data: PhotoSync):
    user = require_user(request)
    photos = get_content_service().sync_photos(user["id"], data.filenames)
    return {"status": "ok", "photos": photos, "count": len(photos)}


@router.get("/photos/{photo_id}")
def get_photo(request: Request, photo_id: str):
    photo, decision = get_content_service().get_photo(get_viewer_id(request), photo_id)
    return {"photo": photo, "access": decision.to_dict()}


@router.get("/photos/{photo_id}/access")
def get_photo_access(request: Request, photo_id: str):
    """Access decision for the caller; a deny is a normal answer."""
    decision = get_content_service().can_view_photo(get_viewer_id(request), photo_id)
    return decision.to_dict()


@router.put("/photos/{photo_id}/visibility")
def update_photo_visibility(request: Request, photo_id: str, data: VisibilityUpdate):
    user = require_user(request)
    photo = get_content_service().update_photo_visibility(
        user["id"], photo_id, data.visibility, data.group_id
    )
    return {"status": "ok", "photo": photo}


@router.get("/users/{owner_id}/photos")
def list_user_photos(request: Request, owner_id: int):
    """Owner's photos, with every photo the caller may not see omitted."""
    photos = get_content_service().list_visible_photos(get_viewer_id(request), owner_id)
    return {"photos": photos, "count": len(photos)}


# === Albums ===

@router.post("/albums")
def create_album(request: Request, data: AlbumCreate):
    user = require_user(request)
    album = get_content_service().create_album(
        user["id"], data.name, data.description, data.visibility, data.group_id
    )
    return {"status": "ok", "album": album}


@router.get("/albums/{album_id}")
def get_album(request: Request, album_id: str):
    album, decision = get_content_service().get_album(get_viewer_id(request), album_id)
    return {"album": album, "access": decision.to_dict()}


@router.get("/albums/{album_id}/access")
def get_album_access(request: Request, album_id: str):
    decision = get_content_service().can_view_album(get_viewer_id(request), album_id)
    return decision.to_dict()


@router.get("/albums/{album_id}/photos")
def list_album_photos(request: Request, album_id: str, limit: int = 50, offset: int = 0):
    """Photos of an album the caller may see; a denied album answers 404."""
    album, photos = get_content_service().list_album_photos(
        get_viewer_id(request), album_id, limit=limit, offset=offset
    )
    return {"album": album, "photos": photos, "count": len(photos)}


@router.post("/albums/{album_id}/photos")
def add_album_photos(request: Request, album_id: str, data: AlbumPhotos):
    user = require_user(request)
    added = get_content_service().add_photos_to_album(user["id"], album_id, data.photo_ids)
    return {"status": "ok", "added_count": added}


@router.delete("/albums/{album_id}/photos")
def remove_album_photos(request: Request, album_id: str, data: AlbumPhotos):
    user = require_user(request)
    removed = get_content_service().remove_photos_from_album(user["id"], album_id, data.photo_ids)
    return {"status": "ok", "removed_count": removed}
