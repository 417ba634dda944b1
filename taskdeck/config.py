"""TaskDeck runtime configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from taskdeck.config_utils import env_first, env_int, env_list, env_str


DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:8501",
)


def _default_sqlite_url() -> str:
    repo_root = Path(__file__).resolve().parents[1]
    data_dir = repo_root / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{(data_dir / 'taskdeck.db').as_posix()}"


@dataclass(frozen=True)
class TaskDeckConfig:
    """Configuration shared by the API server and the Streamlit client.

    DB selection:
    - TASKDECK_DATABASE_URL: app-specific DB URL (preferred)
    - PLATFORM_DATABASE_URL / DATABASE_URL: shared DB URL
    - If none is set, defaults to local SQLite at data/taskdeck.db

    Auth:
    - JWT_SECRET: signing key for session tokens (default: development-secret)
    - TASKDECK_TOKEN_TTL_DAYS: token lifetime in days (default: 7)

    API server:
    - TASKDECK_API_HOST (default: 0.0.0.0)
    - PORT (default: 4000)
    - CORS_ORIGIN: extra allowed origin(s), comma separated

    Client:
    - TASKDECK_API_URL (default: http://localhost:4000/api)
    - TASKDECK_API_TIMEOUT_SECONDS (default: 15)

    Logging:
    - TASKDECK_LOG_LEVEL (default: INFO)
    - TASKDECK_LOG_DIR (default: .local/taskdeck)
    """

    database_url: str
    jwt_secret: str = "development-secret"
    token_ttl_days: int = 7

    api_host: str = "0.0.0.0"
    api_port: int = 4000
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS

    api_base_url: str = "http://localhost:4000/api"
    api_timeout_seconds: int = 15

    log_level: str = "INFO"
    log_dir: str = ".local/taskdeck"

    @classmethod
    def from_env(cls) -> "TaskDeckConfig":
        db_url = env_first("TASKDECK_DATABASE_URL", "PLATFORM_DATABASE_URL", "DATABASE_URL")
        if not db_url:
            db_url = _default_sqlite_url()

        origins = list(DEFAULT_CORS_ORIGINS)
        for origin in env_list("CORS_ORIGIN", ["http://localhost:5173"]):
            if origin not in origins:
                origins.append(origin)

        return cls(
            database_url=db_url,
            jwt_secret=env_str("JWT_SECRET", "development-secret") or "development-secret",
            token_ttl_days=max(1, env_int("TASKDECK_TOKEN_TTL_DAYS", 7)),
            api_host=env_str("TASKDECK_API_HOST", "0.0.0.0"),
            api_port=env_int("PORT", 4000),
            cors_origins=tuple(origins),
            api_base_url=env_str("TASKDECK_API_URL", "http://localhost:4000/api").rstrip("/"),
            api_timeout_seconds=max(1, env_int("TASKDECK_API_TIMEOUT_SECONDS", 15)),
            log_level=env_str("TASKDECK_LOG_LEVEL", "INFO").upper(),
            log_dir=env_str("TASKDECK_LOG_DIR", ".local/taskdeck"),
        )


# Global config instance
_config: Optional[TaskDeckConfig] = None


def get_config() -> TaskDeckConfig:
    """Get the TaskDeck configuration (cached)."""
    global _config
    if _config is None:
        _config = TaskDeckConfig.from_env()
    return _config


def reset_config() -> None:
    global _config
    _config = None
