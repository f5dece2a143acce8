"""Where the association store lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .errors import InvalidConfigurationError

APP_DIR_NAME: Final[str] = "handlesync"
ASSOCIATION_DB_FILENAME: Final[str] = "associations.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local directory holding the SQLite association store."""

    data_dir: Path

    def sqlite_uri(self) -> str:
        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{data_dir / ASSOCIATION_DB_FILENAME}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _xdg_data_home() -> Path:
    base = os.getenv("XDG_DATA_HOME")
    return Path(base) if base else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("HANDLESYNC_DATA_DIR")
    return StorageConfig(data_dir=Path(env_dir) if env_dir else _xdg_data_home() / APP_DIR_NAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """Use ``DATABASE_URI`` when set, else an SQLite file in the data directory."""

    env_uri = os.getenv("DATABASE_URI", "").strip()
    if not env_uri:
        return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri())
    try:
        make_url(env_uri)
    except ArgumentError as exc:
        raise InvalidConfigurationError("DATABASE_URI", env_uri, "not a database URL") from exc
    return DatabaseConfig(uri=env_uri)
