from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, date, datetime
from typing import Any, cast

from surgilog.application.dto.record_dto import ImageExtractionDto
from surgilog.application.errors import DraftFieldError, RecordValidationError
from surgilog.domain.constants import NO_CLINICAL_HISTORY, InterventionFlag
from surgilog.domain.models.surgical_record import (
    Draft,
    ImagePreview,
    PatientRecord,
    SurgicalIntervention,
)
from surgilog.domain.rules.record_rules import (
    coerce_flag,
    describe_missing_fields,
    missing_commit_fields,
    parse_body_region,
    parse_record_date,
    split_field_path,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DraftService:
    """Holds the record being assembled from image and audio extractions.

    Every mutation runs under ``lock`` so that a merge arriving from a worker
    thread never interleaves with a user edit. Callers that need several steps
    to be indivisible (commit) hold the lock themselves; it is re-entrant.
    """

    def __init__(
        self,
        today_provider: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.today_provider = today_provider
        self.clock = clock
        self.lock = threading.RLock()
        self._draft = self._new_draft()
        self._image_preview: ImagePreview | None = None

    def _new_draft(self) -> Draft:
        return Draft(date=self.today_provider(), opened_at=self.clock())

    def snapshot(self) -> Draft:
        with self.lock:
            return replace(self._draft)

    @property
    def image_preview(self) -> ImagePreview | None:
        with self.lock:
            return self._image_preview

    def apply_image_extraction(self, payload: ImageExtractionDto, preview: ImagePreview | None = None) -> Draft:
        with self.lock:
            # The record date is the day of data entry, not the document date.
            self._draft = replace(
                self._draft,
                patient_name=payload.patient_name,
                clinical_history_id=payload.clinical_history_id,
                phone_number=payload.phone_number,
            )
            if preview is not None:
                self._image_preview = preview
            return replace(self._draft)

    def apply_audio_extraction(self, intervention: SurgicalIntervention) -> Draft:
        with self.lock:
            self._draft = replace(self._draft, intervention=intervention)
            return replace(self._draft)

    def edit_field(self, field_path: str, value: Any) -> Draft:
        try:
            group, name = split_field_path(field_path)
        except ValueError as exc:
            raise DraftFieldError(str(exc)) from exc
        with self.lock:
            if group is None:
                self._draft = replace(self._draft, **{name: self._coerce_patient_value(name, value)})
                return replace(self._draft)
            intervention = self._draft.intervention
            if intervention is None:
                raise DraftFieldError("No hay intervención para editar")
            updated = replace(intervention, **{name: self._coerce_intervention_value(name, value)})
            self._draft = replace(self._draft, intervention=updated)
            return replace(self._draft)

    def _coerce_patient_value(self, name: str, value: Any) -> Any:
        if name == "date":
            if value is None or (isinstance(value, str) and not value.strip()):
                return None
            try:
                return parse_record_date(value)
            except ValueError as exc:
                raise DraftFieldError(str(exc)) from exc
        return None if value is None else str(value)

    def _coerce_intervention_value(self, name: str, value: Any) -> Any:
        try:
            if name == "region":
                return parse_body_region(value)
            if name == "description":
                return "" if value is None else str(value)
            return coerce_flag(value)
        except ValueError as exc:
            raise DraftFieldError(str(exc)) from exc

    def toggle_intervention_flag(self, flag: InterventionFlag | str) -> Draft:
        try:
            flag_name = InterventionFlag(flag).value
        except ValueError as exc:
            raise DraftFieldError(f"Indicador desconocido: {flag}") from exc
        with self.lock:
            intervention = self._draft.intervention
            if intervention is None:
                return replace(self._draft)
            current = getattr(intervention, flag_name)
            self._draft = replace(self._draft, intervention=replace(intervention, **{flag_name: not current}))
            return replace(self._draft)

    def validate_for_commit(self) -> None:
        with self.lock:
            missing = missing_commit_fields(self._draft)
        if missing:
            raise RecordValidationError(missing, describe_missing_fields(missing))

    def build_record(self, *, record_id: str, created_at: datetime) -> PatientRecord:
        with self.lock:
            self.validate_for_commit()
            draft = self._draft
            intervention = cast(SurgicalIntervention, draft.intervention)
            return PatientRecord(
                id=record_id,
                patient_name=(draft.patient_name or "").strip(),
                clinical_history_id=(draft.clinical_history_id or "").strip() or NO_CLINICAL_HISTORY,
                phone_number=(draft.phone_number or "").strip(),
                date=draft.date or self.today_provider(),
                intervention=replace(intervention, description=intervention.description.strip()),
                created_at=created_at,
            )

    def reset(self) -> Draft:
        with self.lock:
            self._draft = self._new_draft()
            self._image_preview = None
            logging.getLogger(__name__).debug("Draft reset to %s", self._draft.date)
            return replace(self._draft)

    def clear_image(self) -> Draft:
        with self.lock:
            self._image_preview = None
            self._draft = replace(self._draft, patient_name="", clinical_history_id="", phone_number="")
            return replace(self._draft)
