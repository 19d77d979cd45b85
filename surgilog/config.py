import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from platformdirs import user_data_dir

APP_NAME = "surgilog"
APP_AUTHOR = "surgilog"

StorageBackend = Literal["sqlite", "file"]


def _env_storage_backend(name: str, default: StorageBackend) -> StorageBackend:
    raw = (os.getenv(name) or "").strip().lower()
    if raw in {"sqlite", "file"}:
        return cast(StorageBackend, raw)
    return default


def _resolve_data_dir() -> Path:
    env_dir = os.getenv("SURGILOG_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path(user_data_dir(APP_NAME, APP_AUTHOR))


DATA_DIR = _resolve_data_dir()
LOG_DIR = DATA_DIR / "logs"
EXPORT_DIR = Path(os.getenv("SURGILOG_EXPORT_DIR") or (DATA_DIR / "exports"))
DB_FILE = Path(os.getenv("SURGILOG_DB_FILE") or (DATA_DIR / "surgilog.db"))
STORE_FILE = DATA_DIR / "records.json"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOG_DIR.mkdir(parents=True, exist_ok=True)
DB_FILE.parent.mkdir(parents=True, exist_ok=True)


def default_database_url() -> str:
    # SQLite URL uses forward slashes; as_posix() keeps it cross-platform.
    return f"sqlite:///{DB_FILE.as_posix()}"


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", default_database_url())
    echo_sql: bool = os.getenv("SQL_ECHO", "0") == "1"
    storage_backend: StorageBackend = _env_storage_backend("SURGILOG_STORAGE", "sqlite")
    storage_slot: str = os.getenv("SURGILOG_STORAGE_SLOT", "surgilog_db")
    store_file: Path = STORE_FILE
    export_dir: Path = EXPORT_DIR


settings = Settings()
