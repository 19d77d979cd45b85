from __future__ import annotations

import logging
import traceback
from pathlib import Path

from alembic import command
from alembic.config import Config

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "infrastructure" / "db" / "migrations"


def check_startup_prerequisites(db_file: Path, migrations_dir: Path = MIGRATIONS_DIR) -> bool:
    logger = logging.getLogger(__name__)
    if not migrations_dir.exists():
        logger.error("Migrations directory is missing: %s", migrations_dir)
        return False
    try:
        test_file = db_file.parent / ".write_test"
        test_file.write_text("ok", encoding="utf-8")
        test_file.unlink(missing_ok=True)
    except OSError:
        logger.exception("No write access to the database directory %s", db_file.parent)
        return False
    return True


def _alembic_config(root_dir: Path, database_url: str, migrations_dir: Path) -> Config:
    ini_path = root_dir / "alembic.ini"
    cfg = Config(str(ini_path)) if ini_path.exists() else Config()
    cfg.set_main_option("script_location", str(migrations_dir))
    cfg.set_main_option("sqlalchemy.url", database_url)
    cfg.attributes["configure_logger"] = False
    return cfg


def _write_migration_error(log_dir: Path, db_file: Path, migrations_dir: Path) -> None:
    try:
        error_path = log_dir / "migration_error.log"
        error_path.parent.mkdir(parents=True, exist_ok=True)
        with error_path.open("a", encoding="utf-8") as handle:
            handle.write("\n--- Migration error ---\n")
            handle.write(f"DB: {db_file}\n")
            handle.write(f"Migrations: {migrations_dir}\n")
            handle.write(traceback.format_exc())
    except OSError:
        logging.getLogger(__name__).exception("Failed to write migration error log")


def run_migrations(
    root_dir: Path,
    database_url: str,
    log_dir: Path,
    db_file: Path,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> bool:
    try:
        command.upgrade(_alembic_config(root_dir, database_url, migrations_dir), "head")
    except Exception:  # noqa: BLE001
        logging.getLogger(__name__).exception("Failed to run migrations")
        _write_migration_error(log_dir, db_file, migrations_dir)
        return False
    return True


def initialize_database(
    *,
    root_dir: Path,
    db_file: Path,
    database_url: str,
    log_dir: Path,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> bool:
    if not check_startup_prerequisites(db_file, migrations_dir):
        return False
    return run_migrations(root_dir, database_url, log_dir, db_file, migrations_dir)
