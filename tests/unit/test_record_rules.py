from __future__ import annotations

from datetime import date

import pytest

from surgilog.domain.constants import BodyRegion, InterventionFlag
from surgilog.domain.models.surgical_record import Draft, SurgicalIntervention
from surgilog.domain.rules.record_rules import (
    coerce_flag,
    describe_missing_fields,
    missing_commit_fields,
    parse_body_region,
    parse_record_date,
    split_field_path,
)


def test_missing_commit_fields_requires_name_and_intervention() -> None:
    draft = Draft(date=date(2024, 5, 1))
    assert missing_commit_fields(draft) == ["patient_name", "intervention"]

    draft.patient_name = "   "
    draft.intervention = SurgicalIntervention(description="", region=BodyRegion.KNEE)
    assert missing_commit_fields(draft) == ["patient_name"]

    draft.patient_name = "Ana Gomez"
    assert missing_commit_fields(draft) == []


def test_missing_commit_fields_ignores_empty_history_and_phone() -> None:
    draft = Draft(
        date=None,
        patient_name="Ana",
        clinical_history_id="",
        phone_number=None,
        intervention=SurgicalIntervention(description="x", region=BodyRegion.OTHER),
    )
    assert missing_commit_fields(draft) == []


def test_describe_missing_fields_is_spanish() -> None:
    text = describe_missing_fields(["patient_name", "intervention"])
    assert text == "Faltan datos obligatorios (Nombre del Paciente o Intervención)."


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("patient_name", (None, "patient_name")),
        ("date", (None, "date")),
        (" phone_number ", (None, "phone_number")),
        ("intervention.region", ("intervention", "region")),
        ("intervention.is_lca", ("intervention", "is_lca")),
    ],
)
def test_split_field_path_accepts_known_fields(path: str, expected: tuple) -> None:
    assert split_field_path(path) == expected


@pytest.mark.parametrize("path", ["id", "created_at", "intervention", "intervention.id", "patient.name"])
def test_split_field_path_rejects_unknown_fields(path: str) -> None:
    with pytest.raises(ValueError, match="Campo desconocido"):
        split_field_path(path)


def test_parse_record_date() -> None:
    assert parse_record_date("2024-05-01") == date(2024, 5, 1)
    assert parse_record_date(date(2023, 1, 2)) == date(2023, 1, 2)
    with pytest.raises(ValueError, match="obligatoria"):
        parse_record_date("  ")
    with pytest.raises(ValueError, match="AAAA-MM-DD"):
        parse_record_date("01/05/2024")


def test_parse_body_region_matches_value_or_name() -> None:
    assert parse_body_region("Rodilla") is BodyRegion.KNEE
    assert parse_body_region("rodilla") is BodyRegion.KNEE
    assert parse_body_region("knee") is BodyRegion.KNEE
    assert parse_body_region("Pie/Tobillo") is BodyRegion.FOOT_ANKLE
    assert parse_body_region(BodyRegion.HIP) is BodyRegion.HIP
    with pytest.raises(ValueError, match="Región desconocida"):
        parse_body_region("Cabeza")


def test_coerce_flag() -> None:
    assert coerce_flag(True) is True
    assert coerce_flag(0) is False
    assert coerce_flag("Sí") is True
    assert coerce_flag("no") is False
    assert coerce_flag(None) is False
    with pytest.raises(ValueError):
        coerce_flag("maybe")


def test_constant_values_helpers() -> None:
    assert BodyRegion.values() == ["Hombro", "Rodilla", "Codo", "Muñeca", "Pie/Tobillo", "Cadera", "Otro"]
    assert InterventionFlag.values() == ["is_arthroscopic", "is_lca", "is_knee_related"]
