from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from surgilog.domain.constants import BodyRegion
from surgilog.domain.models.surgical_record import PatientRecord, SurgicalIntervention
from surgilog.domain.rules.record_rules import coerce_flag, parse_body_region

STORE_SCHEMA = "surgilog.records.v1"


class InterventionDto(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    description: str = ""
    region: BodyRegion
    is_arthroscopic: bool = Field(default=False, alias="isArthroscopic")
    is_lca: bool = Field(default=False, alias="isLCA")
    is_knee_related: bool = Field(default=False, alias="isKneeRelated")

    @field_validator("description", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("region", mode="before")
    @classmethod
    def _validate_region(cls, v: Any) -> BodyRegion:
        return parse_body_region(v)

    @field_validator("is_arthroscopic", "is_lca", "is_knee_related", mode="before")
    @classmethod
    def _validate_flag(cls, v: Any) -> bool:
        return coerce_flag(v)

    def to_domain(self) -> SurgicalIntervention:
        return SurgicalIntervention(
            description=self.description,
            region=self.region,
            is_arthroscopic=self.is_arthroscopic,
            is_lca=self.is_lca,
            is_knee_related=self.is_knee_related,
        )

    @classmethod
    def from_domain(cls, intervention: SurgicalIntervention) -> InterventionDto:
        return cls(
            description=intervention.description,
            region=intervention.region,
            is_arthroscopic=intervention.is_arthroscopic,
            is_lca=intervention.is_lca,
            is_knee_related=intervention.is_knee_related,
        )


class ImageExtractionDto(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    patient_name: str = Field(default="", alias="patientName")
    clinical_history_id: str = Field(default="", alias="clinicalHistoryId")
    phone_number: str = Field(default="", alias="phoneNumber")
    # Document date as read by the adapter; kept for reference, never merged.
    date: str = ""

    @field_validator("patient_name", "clinical_history_id", "phone_number", "date", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class PatientRecordDto(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    patient_name: str = Field(..., min_length=1)
    clinical_history_id: str
    phone_number: str = ""
    date: dt.date
    intervention: InterventionDto
    created_at: dt.datetime

    def to_domain(self) -> PatientRecord:
        return PatientRecord(
            id=self.id,
            patient_name=self.patient_name,
            clinical_history_id=self.clinical_history_id,
            phone_number=self.phone_number,
            date=self.date,
            intervention=self.intervention.to_domain(),
            created_at=self.created_at,
        )

    @classmethod
    def from_domain(cls, record: PatientRecord) -> PatientRecordDto:
        return cls(
            id=record.id,
            patient_name=record.patient_name,
            clinical_history_id=record.clinical_history_id,
            phone_number=record.phone_number,
            date=record.date,
            intervention=InterventionDto.from_domain(record.intervention),
            created_at=record.created_at,
        )


class RecordStoreBlobDto(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_name: Literal["surgilog.records.v1"] = Field(default=STORE_SCHEMA, alias="schema")
    saved_at: dt.datetime | None = None
    records: list[PatientRecordDto] = Field(default_factory=list)
