from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, inspect

from surgilog.bootstrap.startup import initialize_database
from surgilog.infrastructure.db.session import make_session_scope
from surgilog.infrastructure.storage.record_slots import SqliteRecordSlot

ROOT_DIR = Path(__file__).resolve().parents[2]


def test_initialize_database_creates_storage_slot_table(tmp_path: Path) -> None:
    db_file = tmp_path / "surgilog.db"
    url = f"sqlite:///{db_file.as_posix()}"

    assert initialize_database(root_dir=ROOT_DIR, db_file=db_file, database_url=url, log_dir=tmp_path / "logs")

    engine = create_engine(url, future=True)
    inspector = inspect(engine)
    assert "storage_slot" in inspector.get_table_names()
    assert {col["name"] for col in inspector.get_columns("storage_slot")} == {"name", "payload", "updated_at"}

    slot = SqliteRecordSlot("surgilog_db", session_factory=make_session_scope(engine))
    slot.write("{}")
    assert slot.read() == "{}"
    engine.dispose()


def test_initialize_database_is_idempotent(tmp_path: Path) -> None:
    db_file = tmp_path / "surgilog.db"
    url = f"sqlite:///{db_file.as_posix()}"
    kwargs = {"root_dir": ROOT_DIR, "db_file": db_file, "database_url": url, "log_dir": tmp_path / "logs"}

    assert initialize_database(**kwargs)
    assert initialize_database(**kwargs)
    assert not (tmp_path / "logs" / "migration_error.log").exists()
