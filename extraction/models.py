from dataclasses import dataclass
from enum import IntEnum


class DestinationMode(IntEnum):
    BROWSER = 1
    DISK = 2
    RETURN_BYTES = 3
    DISK_AND_RETURN = 4

    @property
    def writes_to_disk(self) -> bool:
        return self in (DestinationMode.DISK, DestinationMode.DISK_AND_RETURN)

    @property
    def returns_bytes(self) -> bool:
        return self in (DestinationMode.RETURN_BYTES, DestinationMode.DISK_AND_RETURN)


@dataclass
class ExtractionResult:
    filename: str
    destination: DestinationMode
    start_ms: int
    end_ms: int
    payload_size: int
    output_size: int
    data: bytes | None = None
    written_path: str | None = None
