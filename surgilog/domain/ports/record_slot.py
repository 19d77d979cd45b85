from abc import ABC, abstractmethod


class RecordSlot(ABC):
    """A single named slot holding the whole serialized record store."""

    name: str

    @abstractmethod
    def read(self) -> str | None:
        """Return the stored blob, or None when the slot was never written."""

    @abstractmethod
    def write(self, blob: str) -> None:
        """Overwrite the slot with ``blob``."""
