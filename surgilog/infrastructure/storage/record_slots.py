from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from surgilog.domain.ports.record_slot import RecordSlot
from surgilog.infrastructure.db.repositories.slot_repo import StorageSlotRepository
from surgilog.infrastructure.db.session import session_scope


class SqliteRecordSlot(RecordSlot):
    """Slot kept as one row of the ``storage_slot`` table."""

    def __init__(
        self,
        name: str,
        repo: StorageSlotRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.name = name
        self.repo = repo or StorageSlotRepository()
        self.session_factory = session_factory

    def read(self) -> str | None:
        with self.session_factory() as session:
            return self.repo.get_payload(session, self.name)

    def write(self, blob: str) -> None:
        with self.session_factory() as session:
            self.repo.put_payload(session, self.name, blob)


class FileRecordSlot(RecordSlot):
    """Slot kept as a single UTF-8 file, replaced atomically on write."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.name = self.path.name

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}-", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(blob)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class InMemoryRecordSlot(RecordSlot):
    def __init__(self, name: str = "memory", blob: str | None = None) -> None:
        self.name = name
        self.blob = blob
        self.writes = 0

    def read(self) -> str | None:
        return self.blob

    def write(self, blob: str) -> None:
        self.blob = blob
        self.writes += 1
