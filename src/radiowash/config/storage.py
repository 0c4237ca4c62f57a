"""Where RadioWash keeps its database and HTTP cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "radiowash"
DEFAULT_DB_FILENAME: Final[str] = "radiowash.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def default_data_dir() -> Path:
    """``$RADIOWASH_DATA_DIR``, else the platform's per-user data directory."""

    override = optional_env_var("RADIOWASH_DATA_DIR")
    if override:
        return Path(override).expanduser().resolve()
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return (Path(root) / APP_DIR_NAME).expanduser().resolve()


def get_database_config(*, data_dir: Path | None = None) -> DatabaseConfig:
    """``$DATABASE_URI`` wins; otherwise a SQLite file in the data directory.

    The directory is created on demand so the first run can open the file.
    """

    uri = optional_env_var("DATABASE_URI")
    if uri is not None:
        return DatabaseConfig(uri=uri)
    directory = data_dir or default_data_dir()
    directory.mkdir(parents=True, exist_ok=True)
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{directory / DEFAULT_DB_FILENAME}")


def get_http_cache_path(*, data_dir: Path | None = None) -> Path:
    """SQLite file shared by the cached HTTP clients; hishel creates the directory."""

    return (data_dir or default_data_dir()) / HTTP_CACHE_FILENAME
