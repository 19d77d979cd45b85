from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from surgilog.application.errors import AppError, ExtractionBusyError, ExtractionFailure
from surgilog.application.services.draft_service import DraftService
from surgilog.application.services.export_service import ExportService
from surgilog.application.services.extraction_service import ExtractionService
from surgilog.application.services.record_store_service import RecordStoreService
from surgilog.domain.constants import ExtractionChannel, InterventionFlag
from surgilog.domain.models.surgical_record import Draft, PatientRecord


class _TaskSignals(QObject):
    succeeded = Signal(str, object)
    failed = Signal(str, str)
    finished = Signal(str)


class _ExtractionTask(QRunnable):
    def __init__(self, channel: ExtractionChannel, fn: Callable[[], Draft]) -> None:
        super().__init__()
        self.channel = channel
        self.fn = fn
        self.signals = _TaskSignals()
        self.setAutoDelete(False)

    def run(self) -> None:
        try:
            draft = self.fn()
        except AppError as exc:
            self.signals.failed.emit(self.channel.value, str(exc))
        except Exception:  # noqa: BLE001
            logging.getLogger(__name__).exception("Unexpected %s extraction error", self.channel.value)
            self.signals.failed.emit(self.channel.value, str(ExtractionFailure(self.channel)))
        else:
            self.signals.succeeded.emit(self.channel.value, draft)
        finally:
            self.signals.finished.emit(self.channel.value)


class CaptureController(QObject):
    """Glue between capture widgets and the record core.

    Adapter calls run on a thread pool; results come back as queued signals
    on the thread that owns the controller. The view only listens to the
    signals below and calls the public methods.
    """

    draft_changed = Signal(object)
    records_changed = Signal()
    record_committed = Signal(object)
    processing_changed = Signal(str, bool)
    error_raised = Signal(str)

    def __init__(
        self,
        draft_service: DraftService,
        extraction_service: ExtractionService,
        store: RecordStoreService,
        export_service: ExportService,
        pool: QThreadPool | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.draft_service = draft_service
        self.extraction_service = extraction_service
        self.store = store
        self.export_service = export_service
        self.pool = pool
        self._tasks: dict[ExtractionChannel, _ExtractionTask] = {}

    def is_processing(self, channel: ExtractionChannel) -> bool:
        return self.extraction_service.is_processing(channel)

    def submit_image(self, data: bytes, mime_type: str) -> bool:
        return self._submit(ExtractionChannel.IMAGE, partial(self.extraction_service.run_image, data, mime_type))

    def submit_audio(self, data: bytes, mime_type: str) -> bool:
        return self._submit(ExtractionChannel.AUDIO, partial(self.extraction_service.run_audio, data, mime_type))

    def _submit(self, channel: ExtractionChannel, fn: Callable[[], Draft]) -> bool:
        try:
            self.extraction_service.begin(channel)
        except ExtractionBusyError:
            logging.getLogger(__name__).info("Ignoring %s capture: extraction already in flight", channel.value)
            return False
        self.processing_changed.emit(channel.value, True)
        task = _ExtractionTask(channel, fn)
        task.signals.succeeded.connect(self._on_extraction_success)
        task.signals.failed.connect(self._on_extraction_error)
        task.signals.finished.connect(self._on_extraction_finished)
        self._tasks[channel] = task
        (self.pool or QThreadPool.globalInstance()).start(task)
        return True

    def _on_extraction_success(self, _channel: str, draft: Any) -> None:
        self.draft_changed.emit(draft)

    def _on_extraction_error(self, _channel: str, message: str) -> None:
        self.error_raised.emit(message)

    def _on_extraction_finished(self, channel: str) -> None:
        self._tasks.pop(ExtractionChannel(channel), None)
        self.processing_changed.emit(channel, False)

    def edit_field(self, field_path: str, value: Any) -> None:
        try:
            self.draft_changed.emit(self.draft_service.edit_field(field_path, value))
        except AppError as exc:
            self.error_raised.emit(str(exc))

    def toggle_flag(self, flag: InterventionFlag | str) -> None:
        try:
            self.draft_changed.emit(self.draft_service.toggle_intervention_flag(flag))
        except AppError as exc:
            self.error_raised.emit(str(exc))

    def clear_image(self) -> None:
        self.draft_changed.emit(self.draft_service.clear_image())

    def new_patient(self) -> None:
        self.draft_changed.emit(self.draft_service.reset())

    def save_record(self) -> PatientRecord | None:
        try:
            record = self.store.commit(self.draft_service)
        except AppError as exc:
            self.error_raised.emit(str(exc))
            return None
        self.record_committed.emit(record)
        self.records_changed.emit()
        self.draft_changed.emit(self.draft_service.snapshot())
        return record

    def delete_record(self, record_id: str) -> None:
        try:
            removed = self.store.remove(record_id)
        except AppError as exc:
            self.error_raised.emit(str(exc))
            return
        if removed:
            self.records_changed.emit()

    def export_csv(self, directory: str | Path | None = None) -> dict | None:
        try:
            return self.export_service.export_csv_file(directory)
        except (ValueError, OSError) as exc:
            self.error_raised.emit(str(exc))
            return None
