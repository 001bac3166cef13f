"""Shared FastAPI dependencies."""
from fastapi import Request, HTTPException


def get_current_user(request: Request) -> dict | None:
    """Get current user from request state (None for anonymous requests)."""
    return getattr(request.state, "user", None)


def get_viewer_id(request: Request) -> int | None:
    user = get_current_user(request)
    return user["id"] if user else None


def require_user(request: Request) -> dict:
    """Require an identified user, raise 401 if the request is anonymous."""
    user = get_current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
