from __future__ import annotations

import threading
from datetime import date

import pytest

from surgilog.application.errors import (
    AUDIO_RETRY_MESSAGE,
    IMAGE_RETRY_MESSAGE,
    AppError,
    ExtractionBusyError,
    ExtractionFailure,
)
from surgilog.application.services.draft_service import DraftService
from surgilog.application.services.extraction_service import ExtractionService, parse_extractor_result
from surgilog.domain.constants import BodyRegion, ChannelState, ExtractionChannel

IMAGE = ExtractionChannel.IMAGE
AUDIO = ExtractionChannel.AUDIO


def _image_ok(_data: bytes, _mime: str) -> dict:
    return {"patientName": "Ana Gomez", "clinicalHistoryId": "123", "phoneNumber": "", "date": "2023-01-01"}


def _audio_ok(_data: bytes, _mime: str) -> str:
    return (
        "Here is the result:\n```json\n"
        '{"description": "Meniscectomy", "region": "Rodilla", "isArthroscopic": true, '
        '"isLCA": false, "isKneeRelated": true}\n```'
    )


def _service(image=_image_ok, audio=_audio_ok) -> tuple[ExtractionService, DraftService]:
    draft = DraftService(today_provider=lambda: date(2024, 5, 1))
    return ExtractionService(draft, image_extractor=image, audio_extractor=audio), draft


def test_parse_extractor_result_accepts_mapping_and_json_text() -> None:
    assert parse_extractor_result({"a": 1}) == {"a": 1}
    assert parse_extractor_result('noise {"a": 2} noise') == {"a": 2}
    with pytest.raises(ValueError):
        parse_extractor_result("no json here")
    with pytest.raises(ValueError):
        parse_extractor_result("")


def test_extract_image_merges_and_returns_to_idle() -> None:
    service, draft = _service()

    result = service.extract_image(b"jpeg-bytes", "image/jpeg")

    assert result.patient_name == "Ana Gomez"
    assert result.clinical_history_id == "123"
    assert result.date == date(2024, 5, 1)
    assert draft.image_preview is not None
    assert draft.image_preview.mime_type == "image/jpeg"
    assert service.state(IMAGE) == ChannelState.IDLE


def test_extract_audio_parses_json_text() -> None:
    service, _draft = _service()

    result = service.extract_audio(b"webm-bytes", "audio/webm")

    assert result.intervention is not None
    assert result.intervention.region is BodyRegion.KNEE
    assert result.intervention.is_arthroscopic is True
    assert result.intervention.is_lca is False
    assert service.state(AUDIO) == ChannelState.IDLE


def test_failed_image_extraction_leaves_draft_unchanged() -> None:
    def _broken(_data: bytes, _mime: str) -> dict:
        raise ConnectionError("offline")

    service, draft = _service(image=_broken)
    draft.edit_field("patient_name", "Manual")
    before = draft.snapshot()

    with pytest.raises(ExtractionFailure) as excinfo:
        service.extract_image(b"x", "image/png")

    assert str(excinfo.value) == IMAGE_RETRY_MESSAGE
    assert draft.snapshot() == before
    assert draft.image_preview is None
    assert service.state(IMAGE) == ChannelState.FAILED
    assert service.guards[IMAGE].last_error == IMAGE_RETRY_MESSAGE


def test_invalid_audio_payload_is_an_extraction_failure() -> None:
    service, draft = _service(audio=lambda _d, _m: {"description": "x", "region": "Cabeza"})

    with pytest.raises(ExtractionFailure) as excinfo:
        service.extract_audio(b"x", "audio/webm")

    assert str(excinfo.value) == AUDIO_RETRY_MESSAGE
    assert draft.snapshot().intervention is None
    assert service.state(AUDIO) == ChannelState.FAILED


def test_missing_extractor_and_empty_capture_fail() -> None:
    service, _draft = _service(image=None)
    with pytest.raises(ExtractionFailure):
        service.extract_image(b"x", "image/png")
    with pytest.raises(ExtractionFailure):
        service.extract_audio(b"", "audio/webm")


def test_failed_channel_can_be_retried() -> None:
    calls = {"n": 0}

    def _flaky(data: bytes, mime: str) -> dict:
        calls["n"] += 1
        if calls["n"] == 1:
            raise TimeoutError("slow")
        return _image_ok(data, mime)

    service, _draft = _service(image=_flaky)
    with pytest.raises(ExtractionFailure):
        service.extract_image(b"x", "image/png")
    assert service.extract_image(b"x", "image/png").patient_name == "Ana Gomez"
    assert service.state(IMAGE) == ChannelState.IDLE


def test_second_start_on_busy_channel_is_rejected() -> None:
    service, _draft = _service()
    service.begin(IMAGE)

    with pytest.raises(ExtractionBusyError):
        service.begin(IMAGE)
    assert service.is_processing(IMAGE) is True
    # The other channel is independent.
    service.begin(AUDIO)
    assert service.is_processing(AUDIO) is True


def test_run_requires_begin() -> None:
    service, _draft = _service()
    with pytest.raises(AppError, match="no fue iniciada"):
        service.run_image(b"x", "image/png")


def test_both_channels_in_flight_concurrently() -> None:
    image_started = threading.Event()
    release = threading.Event()

    def _slow_image(data: bytes, mime: str) -> dict:
        image_started.set()
        assert release.wait(5)
        return _image_ok(data, mime)

    service, draft = _service(image=_slow_image)
    service.begin(IMAGE)
    worker = threading.Thread(target=service.run_image, args=(b"x", "image/png"))
    worker.start()
    assert image_started.wait(5)

    service.extract_audio(b"y", "audio/webm")
    assert service.is_processing(IMAGE) is True
    release.set()
    worker.join(5)

    result = draft.snapshot()
    assert result.patient_name == "Ana Gomez"
    assert result.intervention is not None
    assert service.state(IMAGE) == ChannelState.IDLE
