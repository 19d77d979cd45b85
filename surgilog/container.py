from __future__ import annotations

from dataclasses import dataclass

from surgilog.application.services.draft_service import DraftService
from surgilog.application.services.export_service import ExportService
from surgilog.application.services.extraction_service import ExtractionService
from surgilog.application.services.record_store_service import RecordStoreService
from surgilog.config import settings
from surgilog.domain.ports.extractors import AudioExtractor, ImageExtractor
from surgilog.domain.ports.record_slot import RecordSlot
from surgilog.infrastructure.storage.record_slots import FileRecordSlot, SqliteRecordSlot


@dataclass
class Container:
    record_slot: RecordSlot

    draft_service: DraftService
    record_store: RecordStoreService
    extraction_service: ExtractionService
    export_service: ExportService


def default_record_slot() -> RecordSlot:
    if settings.storage_backend == "file":
        return FileRecordSlot(settings.store_file)
    return SqliteRecordSlot(settings.storage_slot)


def build_container(
    image_extractor: ImageExtractor | None = None,
    audio_extractor: AudioExtractor | None = None,
    slot: RecordSlot | None = None,
) -> Container:
    record_slot = slot or default_record_slot()
    draft_service = DraftService()
    record_store = RecordStoreService(slot=record_slot)
    extraction_service = ExtractionService(
        draft_service=draft_service,
        image_extractor=image_extractor,
        audio_extractor=audio_extractor,
    )
    export_service = ExportService(store=record_store, export_dir=settings.export_dir)

    return Container(
        record_slot=record_slot,
        draft_service=draft_service,
        record_store=record_store,
        extraction_service=extraction_service,
        export_service=export_service,
    )
