from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from typing import Any

from surgilog.application.dto.record_dto import ImageExtractionDto, InterventionDto
from surgilog.application.errors import AppError, ExtractionBusyError, ExtractionFailure
from surgilog.application.services.draft_service import DraftService
from surgilog.domain.constants import ChannelState, ExtractionChannel
from surgilog.domain.models.surgical_record import Draft, ImagePreview
from surgilog.domain.ports.extractors import AudioExtractor, ExtractorResult, ImageExtractor


class ChannelGuard:
    """Single-slot in-flight guard for one extraction channel."""

    def __init__(self, channel: ExtractionChannel) -> None:
        self.channel = channel
        self.state = ChannelState.IDLE
        self.last_error: str | None = None
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self.state == ChannelState.IN_FLIGHT

    def acquire(self) -> None:
        with self._lock:
            if self.state == ChannelState.IN_FLIGHT:
                raise ExtractionBusyError(self.channel)
            self.state = ChannelState.IN_FLIGHT
            self.last_error = None

    def release(self, error: str | None = None) -> None:
        with self._lock:
            self.state = ChannelState.FAILED if error else ChannelState.IDLE
            self.last_error = error


def parse_extractor_result(result: ExtractorResult) -> Mapping[str, Any]:
    if isinstance(result, Mapping):
        return result
    text = str(result or "")
    start = text.find("{")
    last = text.rfind("}")
    if start == -1 or last <= start:
        raise ValueError("La respuesta del extractor no contiene JSON")
    data = json.loads(text[start : last + 1])
    if not isinstance(data, dict):
        raise ValueError("La respuesta del extractor no es un objeto JSON")
    return data


class ExtractionService:
    """Runs the image and audio adapters and merges their results into the draft.

    ``begin`` marks a channel busy and is meant to be called on the UI thread
    before the adapter call is handed to a worker; ``run_image`` / ``run_audio``
    perform the call and always release the channel. A failure leaves the
    draft untouched.
    """

    def __init__(
        self,
        draft_service: DraftService,
        image_extractor: ImageExtractor | None = None,
        audio_extractor: AudioExtractor | None = None,
    ) -> None:
        self.draft_service = draft_service
        self.image_extractor = image_extractor
        self.audio_extractor = audio_extractor
        self.guards = {channel: ChannelGuard(channel) for channel in ExtractionChannel}

    def state(self, channel: ExtractionChannel) -> ChannelState:
        return self.guards[channel].state

    def is_processing(self, channel: ExtractionChannel) -> bool:
        return self.guards[channel].in_flight

    def begin(self, channel: ExtractionChannel) -> None:
        self.guards[channel].acquire()

    def extract_image(self, data: bytes, mime_type: str) -> Draft:
        self.begin(ExtractionChannel.IMAGE)
        return self.run_image(data, mime_type)

    def extract_audio(self, data: bytes, mime_type: str) -> Draft:
        self.begin(ExtractionChannel.AUDIO)
        return self.run_audio(data, mime_type)

    def run_image(self, data: bytes, mime_type: str) -> Draft:
        guard = self._require_in_flight(ExtractionChannel.IMAGE)
        try:
            raw = self._call(self.image_extractor, ExtractionChannel.IMAGE, data, mime_type)
            payload = ImageExtractionDto.model_validate(parse_extractor_result(raw))
        except Exception as exc:  # noqa: BLE001
            failure = ExtractionFailure(ExtractionChannel.IMAGE)
            logging.getLogger(__name__).warning("Image extraction failed (%s)", mime_type, exc_info=True)
            guard.release(error=str(failure))
            raise failure from exc
        try:
            return self.draft_service.apply_image_extraction(payload, ImagePreview(data=data, mime_type=mime_type))
        finally:
            guard.release()

    def run_audio(self, data: bytes, mime_type: str) -> Draft:
        guard = self._require_in_flight(ExtractionChannel.AUDIO)
        try:
            raw = self._call(self.audio_extractor, ExtractionChannel.AUDIO, data, mime_type)
            intervention = InterventionDto.model_validate(parse_extractor_result(raw)).to_domain()
        except Exception as exc:  # noqa: BLE001
            failure = ExtractionFailure(ExtractionChannel.AUDIO)
            logging.getLogger(__name__).warning("Audio extraction failed (%s)", mime_type, exc_info=True)
            guard.release(error=str(failure))
            raise failure from exc
        try:
            return self.draft_service.apply_audio_extraction(intervention)
        finally:
            guard.release()

    def _require_in_flight(self, channel: ExtractionChannel) -> ChannelGuard:
        guard = self.guards[channel]
        if not guard.in_flight:
            raise AppError(f"La extracción ({channel.value}) no fue iniciada")
        return guard

    def _call(
        self,
        extractor: ImageExtractor | AudioExtractor | None,
        channel: ExtractionChannel,
        data: bytes,
        mime_type: str,
    ) -> ExtractorResult:
        if extractor is None:
            raise RuntimeError(f"No extractor configured for {channel.value}")
        if not data:
            raise ValueError("Empty capture")
        return extractor(data, mime_type)
