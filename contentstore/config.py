"""Application configuration — env vars, YAML file, defaults."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

from contentstore.errors import ConfigurationError


def _repo_root() -> Path:
    """Find the repository root (directory containing pyproject.toml)."""
    current = Path(__file__).resolve().parent.parent
    if (current / "pyproject.toml").exists():
        return current
    return Path.cwd()


REPO_ROOT = _repo_root()


class StorageBackend(str, Enum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MONGODB = "mongodb"


def _missing(config: BaseSettings, names: tuple[str, ...]) -> list[str]:
    return [name for name in names if not getattr(config, name)]


class SqliteConfig(BaseSettings):
    path: Path = REPO_ROOT / "data" / "contentstore.db"
    # Seconds to wait for a lock held by another connection.
    timeout: float = 5.0

    model_config = {"env_prefix": "CONTENTSTORE_SQLITE_"}


class PostgresConfig(BaseSettings):
    host: str = ""
    port: int = 5432
    user: str = ""
    password: str = ""
    db: str = ""
    sslmode: str = "prefer"
    connect_timeout: int = 10

    model_config = {"env_prefix": "POSTGRES_"}

    def validate_required(self) -> None:
        missing = _missing(self, ("host", "user", "db"))
        if missing:
            raise ConfigurationError(
                "Missing PostgreSQL settings: "
                + ", ".join(f"POSTGRES_{name.upper()}" for name in missing)
            )
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid PostgreSQL port: {self.port}")


class MongoConfig(BaseSettings):
    uri: str = ""
    db: str = ""

    model_config = {"env_prefix": "MONGODB_"}

    def validate_required(self) -> None:
        missing = _missing(self, ("uri", "db"))
        if missing:
            raise ConfigurationError(
                "Missing MongoDB settings: "
                + ", ".join(f"MONGODB_{name.upper()}" for name in missing)
            )
        if not self.uri.startswith(("mongodb://", "mongodb+srv://")):
            raise ConfigurationError("MONGODB_URI must start with mongodb:// or mongodb+srv://")


class AppConfig(BaseSettings):
    """Top-level configuration."""

    backend: StorageBackend = StorageBackend.SQLITE
    sqlite: SqliteConfig = Field(default_factory=SqliteConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    mongodb: MongoConfig = Field(default_factory=MongoConfig)

    environment: str = "development"
    log_level: str = "info"

    model_config = {"env_prefix": "CONTENTSTORE_"}

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> AppConfig:
        """Load config from YAML file; anything it leaves out comes from env vars."""
        if path is None:
            path = REPO_ROOT / "config" / "app.yml"

        values: dict[str, Any] = {}
        if path.exists():
            with open(path) as f:
                values = yaml.safe_load(f) or {}

        return cls(**values)
