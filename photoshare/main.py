"""Photo sharing backend - FastAPI entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import LOG_LEVEL
from .database import init_db
from .middleware import UserHeaderMiddleware

# Import routers
from .routes.friends import router as friends_router
from .routes.groups import router as groups_router
from .routes.shares import router as shares_router
from .routes.settings import router as settings_router
from .routes.content import router as content_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: runs before the application starts accepting requests
    init_db()
    yield


app = FastAPI(title="Photo Sharing", lifespan=lifespan)

app.add_middleware(UserHeaderMiddleware)

# Include routers
app.include_router(friends_router)
app.include_router(groups_router)
app.include_router(shares_router)
app.include_router(settings_router)
app.include_router(content_router)


@app.get("/health")
def health():
    return {"status": "ok"}
