from __future__ import annotations

from surgilog.domain.constants import ExtractionChannel

IMAGE_RETRY_MESSAGE = (
    "No se pudieron extraer los datos de la imagen. "
    "Por favor intente nuevamente o ingrese los datos manualmente."
)
AUDIO_RETRY_MESSAGE = (
    "Error al procesar el audio. "
    "Por favor intente hablar más claro o verifique su conexión."
)


class AppError(RuntimeError):
    """Base application-level error."""


class ExtractionFailure(AppError):
    """Adapter call rejected or returned unusable data."""

    def __init__(self, channel: ExtractionChannel, message: str | None = None) -> None:
        self.channel = channel
        if message is None:
            message = IMAGE_RETRY_MESSAGE if channel == ExtractionChannel.IMAGE else AUDIO_RETRY_MESSAGE
        super().__init__(message)


class ExtractionBusyError(AppError):
    """A second extraction was started on a channel that is still in flight."""

    def __init__(self, channel: ExtractionChannel) -> None:
        self.channel = channel
        super().__init__(f"Ya hay una extracción en curso ({channel.value})")


class RecordValidationError(AppError):
    """Commit attempted without the required fields."""

    def __init__(self, missing_fields: list[str], message: str) -> None:
        self.missing_fields = list(missing_fields)
        super().__init__(message)


class DraftFieldError(AppError):
    """Edit path unknown or not applicable to the current draft."""


class PersistenceCorruption(AppError):
    """Persisted blob could not be decoded."""


class RecordPersistenceError(AppError):
    """Writing the store to its medium failed."""
