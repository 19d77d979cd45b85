from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from surgilog.domain.constants import BodyRegion


@dataclass(frozen=True, slots=True)
class SurgicalIntervention:
    description: str
    region: BodyRegion
    is_arthroscopic: bool = False
    is_lca: bool = False
    is_knee_related: bool = False


@dataclass(frozen=True, slots=True)
class PatientRecord:
    id: str
    patient_name: str
    clinical_history_id: str
    date: date
    intervention: SurgicalIntervention
    created_at: datetime
    phone_number: str = ""


@dataclass(frozen=True, slots=True)
class ImagePreview:
    data: bytes
    mime_type: str


@dataclass(slots=True)
class Draft:
    date: date | None
    patient_name: str | None = None
    clinical_history_id: str | None = None
    phone_number: str | None = None
    intervention: SurgicalIntervention | None = None
    opened_at: datetime | None = field(default=None, compare=False)
