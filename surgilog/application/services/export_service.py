from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from pathlib import Path

from surgilog.application.services.record_store_service import RecordStoreService
from surgilog.config import settings
from surgilog.domain.models.surgical_record import PatientRecord
from surgilog.infrastructure.export.records_export import (
    export_csv,
    export_filename,
    export_xlsx,
    write_csv_export,
)
from surgilog.infrastructure.reporting.records_pdf_report import export_records_pdf


class ExportService:
    def __init__(
        self,
        store: RecordStoreService,
        export_dir: Path | None = None,
        today_provider: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.export_dir = export_dir or settings.export_dir
        self.today_provider = today_provider

    def _require_records(self) -> list[PatientRecord]:
        records = self.store.records()
        if not records:
            raise ValueError("No hay registros para exportar")
        return records

    def csv_text(self) -> str:
        return export_csv(self.store.records())

    def export_csv_file(self, directory: str | Path | None = None) -> dict:
        records = self._require_records()
        result = write_csv_export(records, directory or self.export_dir, today=self.today_provider())
        logging.getLogger(__name__).info("Exported %s records to %s", result["count"], result["path"])
        return result

    def export_xlsx_file(self, file_path: str | Path | None = None) -> dict:
        records = self._require_records()
        target = Path(file_path) if file_path else self.export_dir / export_filename(self.today_provider(), "xlsx")
        return export_xlsx(records, target)

    def export_pdf_file(self, file_path: str | Path | None = None) -> dict:
        records = self._require_records()
        today = self.today_provider()
        target = Path(file_path) if file_path else self.export_dir / export_filename(today, "pdf")
        return export_records_pdf(records, target, today=today)
