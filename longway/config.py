"""
Central configuration loader.
Reads from environment variables (via .env) into frozen dataclasses.
NEVER prints secret values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Load .env from repo root (if present)
# ---------------------------------------------------------------------------
_REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_REPO_ROOT / ".env")


def _get(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _flag(key: str, default: str = "false") -> bool:
    return (_get(key, default) or "").lower() in ("1", "true", "yes")


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class StorageConfig:
    """Which backend to run. A connection string selects PostgreSQL."""

    database_url: Optional[str] = None
    database_path: Path = _REPO_ROOT / "data" / "longway.db"
    readonly_fs: bool = False

    @property
    def backend(self) -> str:
        return "postgres" if self.database_url else "sqlite"


def get_storage_config() -> StorageConfig:
    path = _get("DATABASE_PATH")
    return StorageConfig(
        database_url=_get("DATABASE_URL") or None,
        database_path=Path(path) if path else get_db_path(),
        # Serverless hosts mount the code read-only and wipe /tmp between calls
        readonly_fs=_flag("VERCEL") or _flag("LONGWAY_READONLY_FS"),
    )


# ---------------------------------------------------------------------------
# Assistant (Anthropic Messages API)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AssistantConfig:
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024
    timeout: int = 60
    base_url: str = "https://api.anthropic.com/v1"
    api_version: str = "2023-06-01"


def get_assistant_config() -> AssistantConfig:
    return AssistantConfig(
        model=_get("ASSISTANT_MODEL", default="claude-sonnet-4-20250514"),  # type: ignore[arg-type]
        max_tokens=int(_get("ASSISTANT_MAX_TOKENS", default="1024")),  # type: ignore[arg-type]
        timeout=int(_get("ASSISTANT_TIMEOUT", default="60")),  # type: ignore[arg-type]
        base_url=_get("ANTHROPIC_BASE_URL", default="https://api.anthropic.com/v1"),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "INFO"


def get_server_config() -> ServerConfig:
    return ServerConfig(
        host=_get("SERVER_HOST", default="0.0.0.0"),  # type: ignore[arg-type]
        port=int(_get("SERVER_PORT", default="8000")),  # type: ignore[arg-type]
        reload=_flag("SERVER_RELOAD"),
        log_level=(_get("LOG_LEVEL", default="INFO") or "INFO").upper(),
    )


@dataclass(frozen=True)
class AppConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def load_config() -> AppConfig:
    return AppConfig(
        storage=get_storage_config(),
        assistant=get_assistant_config(),
        server=get_server_config(),
    )


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def get_repo_root() -> Path:
    return _REPO_ROOT


def get_db_path() -> Path:
    return _REPO_ROOT / "data" / "longway.db"
