from abc import ABC, abstractmethod


class EmptyInputError(ValueError):
    """Raised when a sink is asked to deliver zero bytes."""


class ChunkSink(ABC):
    @abstractmethod
    def deliver(self, data: bytes, filename: str) -> str | None:
        """
        Hand over the extracted WAV bytes.
        Return where they ended up (a path), or None when there is no such place.
        """
        pass

    @staticmethod
    def _require_data(data: bytes) -> None:
        if not data:
            raise EmptyInputError("Refusing to deliver an empty chunk")
