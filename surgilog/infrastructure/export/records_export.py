from __future__ import annotations

import csv
import hashlib
import io
from collections.abc import Iterable
from datetime import UTC, date, datetime
from pathlib import Path

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from surgilog.domain.constants import NO_TOKEN, YES_TOKEN
from surgilog.domain.models.surgical_record import PatientRecord

CSV_HEADERS: list[str] = [
    "ID",
    "Fecha",
    "HC",
    "Paciente",
    "Teléfono",
    "Intervención",
    "Región",
    "Artroscopia",
    "LCA",
    "Rodilla",
]

EXPORT_PREFIX = "surgilog_export"


def _flag(value: bool) -> str:
    return YES_TOKEN if value else NO_TOKEN


def record_row(record: PatientRecord) -> list[str]:
    intervention = record.intervention
    return [
        record.id,
        record.date.isoformat(),
        record.clinical_history_id,
        record.patient_name,
        record.phone_number or "",
        intervention.description,
        intervention.region.value,
        _flag(intervention.is_arthroscopic),
        _flag(intervention.is_lca),
        _flag(intervention.is_knee_related),
    ]


def export_csv(records: Iterable[PatientRecord]) -> str:
    # Every field is quoted: phone numbers stay text in spreadsheets and
    # embedded quotes are doubled.
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow(record_row(record))
    return buffer.getvalue()


def export_filename(today: date, suffix: str = "csv") -> str:
    return f"{EXPORT_PREFIX}_{today.isoformat()}.{suffix}"


def write_csv_export(
    records: Iterable[PatientRecord],
    directory: str | Path,
    today: date | None = None,
) -> dict:
    rows = list(records)
    file_path = Path(directory) / export_filename(today or date.today())
    file_path.parent.mkdir(parents=True, exist_ok=True)
    # BOM keeps accented headers readable when the file is opened in Excel.
    payload = export_csv(rows).encode("utf-8-sig")
    file_path.write_bytes(payload)
    return {
        "path": str(file_path),
        "count": len(rows),
        "sha256": hashlib.sha256(payload).hexdigest(),
    }


def export_xlsx(records: Iterable[PatientRecord], file_path: str | Path) -> dict:
    file_path = Path(file_path)
    rows = list(records)
    wb = Workbook()
    ws = wb.active
    ws.title = "registros"
    ws.append(CSV_HEADERS)
    for record in rows:
        ws.append(record_row(record))
    for idx, header in enumerate(CSV_HEADERS, start=1):
        width = max([len(header), *(len(str(row[idx - 1])) for row in map(record_row, rows))])
        ws.column_dimensions[get_column_letter(idx)].width = min(60, width + 2)
    ws.freeze_panes = "A2"

    meta = wb.create_sheet(title="meta")
    meta.append(["schema_version", "1.0"])
    meta.append(["exported_at", datetime.now(UTC).isoformat()])
    meta.append(["records", len(rows)])

    file_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(file_path)
    return {"path": str(file_path), "count": len(rows)}
