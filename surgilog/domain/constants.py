from __future__ import annotations

from enum import StrEnum

NO_CLINICAL_HISTORY = "S/N"
YES_TOKEN = "Sí"
NO_TOKEN = "No"


class BodyRegion(StrEnum):
    SHOULDER = "Hombro"
    KNEE = "Rodilla"
    ELBOW = "Codo"
    WRIST = "Muñeca"
    FOOT_ANKLE = "Pie/Tobillo"
    HIP = "Cadera"
    OTHER = "Otro"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class InterventionFlag(StrEnum):
    ARTHROSCOPIC = "is_arthroscopic"
    LCA = "is_lca"
    KNEE_RELATED = "is_knee_related"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class ExtractionChannel(StrEnum):
    IMAGE = "image"
    AUDIO = "audio"


class ChannelState(StrEnum):
    IDLE = "IDLE"
    IN_FLIGHT = "IN_FLIGHT"
    FAILED = "FAILED"
