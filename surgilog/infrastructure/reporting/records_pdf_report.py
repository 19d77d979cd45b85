from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from datetime import date
from functools import lru_cache
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from surgilog.domain.models.surgical_record import PatientRecord
from surgilog.infrastructure.export.records_export import CSV_HEADERS, record_row

# ID column is omitted from the printable table; it is unreadable on paper.
_PDF_COLUMNS = CSV_HEADERS[1:]

_FONT_NAME = "SurgilogSans"
_SYSTEM_FONTS = (
    "C:/Windows/Fonts/arial.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation2/LiberationSans-Regular.ttf",
    "/Library/Fonts/Arial Unicode.ttf",
)


@lru_cache(maxsize=1)
def _pdf_font() -> str:
    """Register a TrueType font for accented text; Helvetica when none is installed."""
    candidates = [os.getenv("SURGILOG_PDF_FONT"), *_SYSTEM_FONTS]
    for candidate in filter(None, candidates):
        if not Path(candidate).is_file():
            continue
        try:
            pdfmetrics.registerFont(TTFont(_FONT_NAME, candidate))
        except Exception:  # noqa: BLE001
            logging.getLogger(__name__).debug("Cannot register PDF font %s", candidate, exc_info=True)
            continue
        return _FONT_NAME
    return "Helvetica"


def export_records_pdf(
    records: Iterable[PatientRecord],
    file_path: str | Path,
    today: date | None = None,
) -> dict:
    file_path = Path(file_path)
    rows = list(records)
    font_name = _pdf_font()

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("SurgilogTitle", parent=styles["Title"], fontName=font_name, fontSize=14)
    cell_style = ParagraphStyle("SurgilogCell", parent=styles["BodyText"], fontName=font_name, fontSize=7, leading=9)

    data: list[list] = [_PDF_COLUMNS]
    for record in rows:
        values: list = record_row(record)[1:]
        # Description wraps inside its cell.
        values[4] = Paragraph(escape(values[4]), cell_style)
        data.append(values)

    file_path.parent.mkdir(parents=True, exist_ok=True)
    doc = SimpleDocTemplate(
        str(file_path),
        pagesize=landscape(A4),
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
    )
    table = Table(
        data,
        repeatRows=1,
        colWidths=[22 * mm, 22 * mm, 45 * mm, 35 * mm, 80 * mm, 22 * mm, 18 * mm, 12 * mm, 15 * mm],
    )
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("FONTNAME", (0, 0), (-1, -1), font_name),
                ("FONTSIZE", (0, 0), (-1, -1), 7),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 2 * mm),
                ("RIGHTPADDING", (0, 0), (-1, -1), 2 * mm),
            ]
        )
    )
    title = f"Registro quirúrgico ({(today or date.today()).isoformat()})"
    doc.build([Paragraph(title, title_style), Spacer(1, 4 * mm), table])
    return {"path": str(file_path), "count": len(rows)}
