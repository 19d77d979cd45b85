from __future__ import annotations

from datetime import date
from typing import Any

from surgilog.domain.constants import BodyRegion, InterventionFlag
from surgilog.domain.models.surgical_record import Draft

PATIENT_FIELDS = ("patient_name", "clinical_history_id", "phone_number", "date")
INTERVENTION_FIELDS = ("description", "region", *InterventionFlag.values())

_MISSING_LABELS = {
    "patient_name": "Nombre del Paciente",
    "intervention": "Intervención",
}


def missing_commit_fields(draft: Draft) -> list[str]:
    missing: list[str] = []
    if not (draft.patient_name or "").strip():
        missing.append("patient_name")
    if draft.intervention is None:
        missing.append("intervention")
    return missing


def describe_missing_fields(missing: list[str]) -> str:
    labels = " o ".join(_MISSING_LABELS.get(item, item) for item in missing)
    return f"Faltan datos obligatorios ({labels})."


def split_field_path(field_path: str) -> tuple[str | None, str]:
    """Split ``intervention.<name>`` into its group and name; patient fields have no group."""
    clean = field_path.strip()
    if "." not in clean:
        if clean not in PATIENT_FIELDS:
            raise ValueError(f"Campo desconocido: {field_path}")
        return None, clean
    group, name = clean.split(".", 1)
    if group != "intervention" or name not in INTERVENTION_FIELDS:
        raise ValueError(f"Campo desconocido: {field_path}")
    return group, name


def parse_record_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    raw = str(value or "").strip()
    if not raw:
        raise ValueError("La fecha es obligatoria")
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"Fecha inválida (se espera AAAA-MM-DD): {raw}") from exc


def parse_body_region(value: Any) -> BodyRegion:
    if isinstance(value, BodyRegion):
        return value
    raw = str(value or "").strip()
    for region in BodyRegion:
        if raw.casefold() in {region.value.casefold(), region.name.casefold()}:
            return region
    raise ValueError(f"Región desconocida: {raw}")


def coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    raw = str(value or "").strip().lower()
    if raw in {"1", "true", "yes", "si", "sí", "on"}:
        return True
    if raw in {"", "0", "false", "no", "off"}:
        return False
    raise ValueError(f"Valor lógico inválido: {value}")
