from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from surgilog.application.services.draft_service import DraftService
from surgilog.application.services.export_service import ExportService
from surgilog.application.services.record_store_service import RecordStoreService
from surgilog.domain.constants import BodyRegion
from surgilog.domain.models.surgical_record import SurgicalIntervention
from surgilog.infrastructure.export.records_export import CSV_HEADERS
from surgilog.infrastructure.storage.record_slots import InMemoryRecordSlot

TODAY = date(2024, 5, 3)


def _service(tmp_path: Path, names: tuple[str, ...] = ("Ana", "Luis")) -> ExportService:
    store = RecordStoreService(slot=InMemoryRecordSlot())
    draft = DraftService()
    for name in names:
        draft.edit_field("patient_name", name)
        draft.apply_audio_extraction(SurgicalIntervention(description="ACL", region=BodyRegion.KNEE, is_lca=True))
        store.commit(draft)
    return ExportService(store, export_dir=tmp_path / "exports", today_provider=lambda: TODAY)


def test_csv_text_of_empty_store_is_header_only(tmp_path: Path) -> None:
    text = _service(tmp_path, names=()).csv_text()
    assert text.count("\n") == 1
    assert text.startswith('"ID","Fecha"')
    assert len(text.strip().split(",")) == len(CSV_HEADERS)


def test_file_exports_refuse_empty_store(tmp_path: Path) -> None:
    service = _service(tmp_path, names=())
    for export in (service.export_csv_file, service.export_xlsx_file, service.export_pdf_file):
        with pytest.raises(ValueError, match="No hay registros"):
            export()


def test_export_csv_file_uses_default_directory_and_name(tmp_path: Path) -> None:
    result = _service(tmp_path).export_csv_file()
    assert Path(result["path"]) == tmp_path / "exports" / "surgilog_export_2024-05-03.csv"
    assert result["count"] == 2


def test_export_xlsx_and_pdf_files(tmp_path: Path) -> None:
    service = _service(tmp_path)

    xlsx = service.export_xlsx_file()
    pdf = service.export_pdf_file(tmp_path / "custom.pdf")

    assert Path(xlsx["path"]).name == "surgilog_export_2024-05-03.xlsx"
    assert Path(xlsx["path"]).exists()
    assert pdf == {"path": str(tmp_path / "custom.pdf"), "count": 2}
