from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from surgilog.bootstrap.startup import initialize_database
from surgilog.config import DB_FILE, LOG_DIR, settings
from surgilog.container import Container, build_container
from surgilog.domain.ports.extractors import AudioExtractor, ImageExtractor

ROOT_DIR = Path(__file__).resolve().parent.parent


def _setup_logging() -> Path:
    log_path = LOG_DIR / "app.log"
    handler = RotatingFileHandler(log_path, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(handler)
    return log_path


def _install_exception_hook() -> None:
    def _handle_exception(exc_type, exc, tb) -> None:
        logging.getLogger(__name__).error("Unhandled exception", exc_info=(exc_type, exc, tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _handle_exception


def bootstrap(
    image_extractor: ImageExtractor | None = None,
    audio_extractor: AudioExtractor | None = None,
) -> Container | None:
    """Prepare storage and return a container whose store is already loaded.

    The store is loaded exactly once here; callers must not call ``load``
    again while a session is open.
    """
    if settings.storage_backend == "sqlite" and not initialize_database(
        root_dir=ROOT_DIR,
        db_file=DB_FILE,
        database_url=settings.database_url,
        log_dir=LOG_DIR,
    ):
        return None
    container = build_container(image_extractor=image_extractor, audio_extractor=audio_extractor)
    report = container.record_store.load()
    if report.status == "corrupt":
        logging.getLogger(__name__).warning("Starting with an empty record list: %s", report.error)
    return container


def main() -> int:
    log_path = _setup_logging()
    _install_exception_hook()
    container = bootstrap()
    if container is None:
        logging.getLogger(__name__).error("Startup failed, see %s", log_path)
        return 1
    logging.getLogger(__name__).info(
        "SurgiLog ready: %s records in slot %s",
        len(container.record_store),
        container.record_slot.name,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
