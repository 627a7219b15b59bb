"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``WALLETNOTIFY_``, nested via ``__``)
2. YAML config file (``WALLETNOTIFY_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class DatabaseEngine(enum.StrEnum):
    """Supported database engines."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class CacheEngine(enum.StrEnum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


class PushPriority(enum.StrEnum):
    """Expo delivery priority."""

    DEFAULT = "default"
    NORMAL = "normal"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_SERVER__",
        case_sensitive=False,
    )

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3010


class DatabaseConfig(BaseSettings):
    """Database settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_DB__",
        case_sensitive=False,
    )

    engine: DatabaseEngine = Field(
        default=DatabaseEngine.SQLITE,
        description="Database backend: sqlite or postgresql",
    )
    dsn: str = Field(
        default="sqlite+aiosqlite:///./wallet_notify.db",
        description="Async database connection string",
    )
    max_idle_connections: int = 5
    max_open_connections: int = 10
    # Seconds a SQLite writer waits for a competing claim or reconcile to commit.
    busy_timeout_seconds: float = 5.0
    debug_sql: bool = False


class CacheConfig(BaseSettings):
    """Cache settings (unread counter read-through cache)."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_CACHE__",
        case_sensitive=False,
    )

    engine: CacheEngine = Field(
        default=CacheEngine.MEMORY,
        description="Cache backend: memory or redis",
    )
    url: str = "redis://localhost:6379/0"
    max_connections: int = 10
    ttl_seconds: int = 300


class PushConfig(BaseSettings):
    """Expo push transport settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_PUSH__",
        case_sensitive=False,
    )

    url: str = "https://exp.host/--/api/v2/push/send"
    access_token: str = ""
    chunk_size: int = Field(default=100, ge=1, le=100)
    workers: int = Field(default=4, ge=1, le=16)
    timeout_seconds: float = 15.0
    ttl_seconds: int = 86400
    priority: PushPriority = PushPriority.HIGH
    sound: str = "default"


class QueueConfig(BaseSettings):
    """Notification queue drain settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_QUEUE__",
        case_sensitive=False,
    )

    batch_size: int = Field(default=10, ge=1)
    drain_period: float = 60.0
    lookup_timeout: float = 10.0
    # Seconds an intent may sit in processing before it can be re-queued.
    stale_after: float = Field(default=900.0, gt=0)
    # Categories that are suppressed when the recipient has no preference row.
    fail_closed_categories: list[str] = Field(default_factory=list)


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


class TaskConfig(BaseSettings):
    """Background task settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_TASK__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``WALLETNOTIFY_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="WALLETNOTIFY_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    version: str = "0.1.0"
    admin_token: str = ""
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    task: TaskConfig = Field(default_factory=TaskConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
