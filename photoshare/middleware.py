"""Application middleware."""
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from . import config
from .database import get_db
from .infrastructure.repositories import UserRepository


class UserHeaderMiddleware(BaseHTTPMiddleware):
    """Attach the caller's identity from the gateway header to the request.

    Authentication happens upstream; the gateway forwards the user id in
    ``config.USER_HEADER``. Requests without the header proceed anonymously,
    while a header naming no known user is rejected.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        # Allow public paths
        if path in config.PUBLIC_PATHS:
            return await call_next(request)

        raw_id = request.headers.get(config.USER_HEADER)
        if raw_id is None:
            return await call_next(request)

        try:
            user_id = int(raw_id)
        except ValueError:
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

        user = UserRepository(get_db()).get_by_id(user_id)
        if not user:
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

        request.state.user = {
            "id": user["id"],
            "username": user["username"],
            "display_name": user["display_name"]
        }
        return await call_next(request)
