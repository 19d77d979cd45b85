from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import ValidationError

from surgilog.application.dto.record_dto import PatientRecordDto, RecordStoreBlobDto
from surgilog.application.errors import PersistenceCorruption, RecordPersistenceError
from surgilog.application.services.draft_service import DraftService
from surgilog.domain.models.surgical_record import PatientRecord
from surgilog.domain.ports.record_slot import RecordSlot

LoadStatus = Literal["empty", "loaded", "corrupt"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_record_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class LoadReport:
    status: LoadStatus
    count: int = 0
    error: str | None = None
    blob_size: int = 0
    blob_sha256: str | None = None


def encode_records(records: list[PatientRecord], saved_at: datetime | None = None) -> str:
    blob = RecordStoreBlobDto(
        saved_at=saved_at,
        records=[PatientRecordDto.from_domain(record) for record in records],
    )
    return blob.model_dump_json(by_alias=True, indent=2)


def decode_records(blob: str) -> list[PatientRecord]:
    try:
        parsed = RecordStoreBlobDto.model_validate_json(blob)
    except ValidationError as exc:
        raise PersistenceCorruption(f"Blob de registros ilegible: {exc.error_count()} errores") from exc
    records = [item.to_domain() for item in parsed.records]
    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            raise PersistenceCorruption(f"Identificador duplicado en el blob: {record.id}")
        seen.add(record.id)
    return records


class RecordStoreService:
    """Committed records, most recent first, mirrored to a single slot.

    Every successful ``commit`` and ``remove`` rewrites the slot before
    returning; a failed write restores the previous in-memory sequence.
    """

    def __init__(
        self,
        slot: RecordSlot,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_record_id,
    ) -> None:
        self.slot = slot
        self.clock = clock
        self.id_factory = id_factory
        self.lock = threading.RLock()
        self._records: list[PatientRecord] = []
        self.load_report: LoadReport | None = None
        # Ids handed out this session, including those of removed records.
        self._issued_ids: set[str] = set()

    def __len__(self) -> int:
        with self.lock:
            return len(self._records)

    def __iter__(self) -> Iterator[PatientRecord]:
        return iter(self.records())

    def records(self) -> list[PatientRecord]:
        with self.lock:
            return list(self._records)

    def get(self, record_id: str) -> PatientRecord | None:
        with self.lock:
            for record in self._records:
                if record.id == record_id:
                    return record
            return None

    def load(self) -> LoadReport:
        logger = logging.getLogger(__name__)
        try:
            blob = self.slot.read()
        except Exception as exc:  # noqa: BLE001
            # Unreadable medium: same outcome as an undecodable blob.
            logger.warning("Cannot read record store slot %s; starting empty", self.slot.name, exc_info=True)
            blob = None
            unreadable: Exception | None = exc
        else:
            unreadable = None
        with self.lock:
            if unreadable is not None:
                self._records = []
                report = LoadReport(status="corrupt", error=f"{type(unreadable).__name__}: {unreadable}")
            elif blob is None or not blob.strip():
                self._records = []
                report = LoadReport(status="empty")
            else:
                try:
                    self._records = decode_records(blob)
                    report = LoadReport(status="loaded", count=len(self._records), blob_size=len(blob))
                except PersistenceCorruption as exc:
                    self._records = []
                    report = LoadReport(
                        status="corrupt",
                        error=str(exc),
                        blob_size=len(blob),
                        blob_sha256=hashlib.sha256(blob.encode("utf-8")).hexdigest(),
                    )
                    logger.warning(
                        "Corrupt record store in slot %s (%s bytes, sha256=%s); starting empty: %s",
                        self.slot.name,
                        report.blob_size,
                        report.blob_sha256,
                        exc,
                    )
            self.load_report = report
        logger.info("Record store loaded from slot %s: %s, %s records", self.slot.name, report.status, report.count)
        return report

    def persist(self) -> None:
        with self.lock:
            blob = encode_records(self._records, saved_at=self.clock())
            try:
                self.slot.write(blob)
            except Exception as exc:  # noqa: BLE001
                logging.getLogger(__name__).exception("Failed to write record store to slot %s", self.slot.name)
                raise RecordPersistenceError("No se pudo guardar la base de datos local") from exc

    def commit(self, draft: DraftService) -> PatientRecord:
        with draft.lock, self.lock:
            record = draft.build_record(record_id=self._unique_id(), created_at=self.clock())
            self._records.insert(0, record)
            try:
                self.persist()
            except RecordPersistenceError:
                self._records.pop(0)
                raise
            draft.reset()
        logging.getLogger(__name__).info("Committed record %s", record.id)
        return record

    def remove(self, record_id: str) -> bool:
        with self.lock:
            index = next((i for i, record in enumerate(self._records) if record.id == record_id), None)
            if index is None:
                return False
            removed = self._records.pop(index)
            try:
                self.persist()
            except RecordPersistenceError:
                self._records.insert(index, removed)
                raise
        logging.getLogger(__name__).info("Removed record %s", record_id)
        return True

    def _unique_id(self) -> str:
        taken = self._issued_ids | {record.id for record in self._records}
        record_id = self.id_factory()
        while record_id in taken:
            record_id = self.id_factory()
        self._issued_ids.add(record_id)
        return record_id
