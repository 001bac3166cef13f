"""Application configuration and constants."""
import os
from pathlib import Path

# Directory paths
BASE_DIR = Path(__file__).resolve().parent.parent

# Database location (override with PHOTOSHARE_DB_PATH)
DATABASE_PATH = Path(os.environ.get("PHOTOSHARE_DB_PATH", str(BASE_DIR / "photoshare.db")))

# Log level for the web application
LOG_LEVEL = os.environ.get("PHOTOSHARE_LOG_LEVEL", "INFO").upper()

# Visibility values accepted on content and in user defaults
VISIBILITY_VALUES = ("public", "friends", "close_friends", "custom")

# Visibility values usable without a group, for the env-configured defaults below
GROUPLESS_VISIBILITY_VALUES = ("public", "friends", "close_friends")


def visibility_from_env(name: str, default: str) -> str:
    """Read a default visibility from the environment.

    Raises:
        ValueError: unknown value, or ``custom`` (it needs a group id)
    """
    value = os.environ.get(name, default).strip().lower()
    if value not in GROUPLESS_VISIBILITY_VALUES:
        raise ValueError(
            f"{name} must be one of: {', '.join(GROUPLESS_VISIBILITY_VALUES)} (got {value!r})"
        )
    return value


# Visibility for users that never stored a default
DEFAULT_VISIBILITY = visibility_from_env("PHOTOSHARE_DEFAULT_VISIBILITY", "friends")

# Stamped instead of a stored custom default whose group is gone
FALLBACK_VISIBILITY = visibility_from_env("PHOTOSHARE_FALLBACK_VISIBILITY", "friends")

# Upper bound on ids accepted in one batch request (members, album photos, recipients)
MAX_BULK_IDS = int(os.environ.get("PHOTOSHARE_MAX_BULK_IDS", "500"))

# Request validation limits
GROUP_NAME_MAX = 100
GROUP_DESCRIPTION_MAX = 500
ALBUM_NAME_MAX = 255
TEXT_MAX = 1000

# Header carrying the authenticated user id, set by the upstream gateway
USER_HEADER = os.environ.get("PHOTOSHARE_USER_HEADER", "X-User-Id")

# Paths that don't require an identity header
PUBLIC_PATHS = {"/health", "/docs", "/openapi.json"}
