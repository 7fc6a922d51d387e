"""Runtime settings, read from the environment."""

import os

from pydantic import BaseModel

DEFAULT_PLACEHOLDER_PATH = "/example-endpoint"
DEFAULT_REMOTE_TIMEOUT = 10.0


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Knobs for resolution, synthesis and logging."""

    allow_remote_refs: bool = False
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT  # seconds per remote $ref fetch
    placeholder_path: str = DEFAULT_PLACEHOLDER_PATH
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from OPENAPI_META_* environment variables."""
        return cls(
            allow_remote_refs=_env_flag("OPENAPI_META_ALLOW_REMOTE_REFS"),
            remote_timeout=float(os.getenv("OPENAPI_META_REMOTE_TIMEOUT", DEFAULT_REMOTE_TIMEOUT)),
            placeholder_path=os.getenv("OPENAPI_META_PLACEHOLDER_PATH", DEFAULT_PLACEHOLDER_PATH),
            log_level=os.getenv("OPENAPI_META_LOG_LEVEL", "WARNING").upper(),
        )
