"""
Cut a time range out of a PCM WAV file and hand the result to a sink.

Every call validates, computes offsets, assembles headers + payload and then
dispatches by destination. Nothing is read before validation has passed.
"""

import os

from loguru import logger

from extraction.memory_probe import MemoryProbe
from extraction.models import DestinationMode, ExtractionResult
from extraction.units import milliseconds_to_bytes
from sinks.base import ChunkSink
from wav.container import RangeError, WavContainer


class InvalidRangeError(ValueError):
    pass


class InvalidDestinationError(ValueError):
    pass


class ResourceExhaustedError(RuntimeError):
    pass


def coerce_destination(value) -> DestinationMode:
    """Accept a DestinationMode, its integer code or its (case-insensitive) name."""
    if isinstance(value, DestinationMode):
        return value
    if isinstance(value, str):
        key = value.strip().upper().replace("-", "_")
        if key in DestinationMode.__members__:
            return DestinationMode[key]
        if key.isdigit():
            value = int(key)
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return DestinationMode(value)
        except ValueError:
            pass
    raise InvalidDestinationError(f"Invalid destination value: {value!r}")


def round_up_to_multiple(size: int, unit: int) -> int:
    remainder = size % unit
    if remainder == 0:
        return size
    return size + (unit - remainder)


class ChunkExtractor:
    def __init__(
        self,
        container: WavContainer,
        memory_probe: MemoryProbe,
        disk_sink: ChunkSink | None = None,
        download_sink: ChunkSink | None = None,
    ):
        self.container = container
        self.memory_probe = memory_probe
        self.disk_sink = disk_sink
        self.download_sink = download_sink

    def default_filename(self, start_ms: int, end_ms: int) -> str:
        base = os.path.splitext(os.path.basename(self.container.file_path))[0]
        return f"{base}-{start_ms}-{end_ms}.wav"

    def byte_bounds(self, start_ms: int, end_ms: int) -> tuple[int, int]:
        byte_rate = self.container.byte_rate
        return (
            milliseconds_to_bytes(start_ms, byte_rate),
            milliseconds_to_bytes(end_ms, byte_rate),
        )

    def has_sufficient_memory(self, start_ms: int, end_ms: int) -> bool:
        """
        Best-effort check that headers + payload fit in what the process has left.
        """
        from_byte, to_byte = self.byte_bounds(start_ms, end_ms)
        expected = self.container.headers_size + (to_byte - from_byte)
        available = self.memory_probe.available()
        if expected > available:
            logger.warning(
                f"Chunk needs {expected} bytes but only {available} are available"
            )
            return False
        return True

    def payload_bounds(self, start_ms: int, end_ms: int) -> tuple[int, int]:
        """
        Frame-aligned [from, to) payload offsets for a validated time range.
        """
        block_align = self.container.block_align
        from_byte, _ = self.byte_bounds(start_ms, end_ms)
        from_byte -= from_byte % block_align

        raw_size = -(-(end_ms - start_ms) * self.container.byte_rate // 1000)
        size = round_up_to_multiple(raw_size, block_align)

        remaining = self.container.data_chunk_size - from_byte
        remaining -= remaining % block_align
        if remaining <= 0:
            raise RangeError(f"No payload left after byte {from_byte}")
        if size > remaining:
            logger.warning(f"Clamping payload from {size} to {remaining} bytes")
            size = remaining

        return from_byte, from_byte + size

    def _validate_range(self, start_ms: int, end_ms: int) -> None:
        duration = self.container.duration_ms
        if (
            start_ms < 0 or start_ms > duration
            or end_ms < 0 or end_ms > duration
            or start_ms >= end_ms
        ):
            raise InvalidRangeError(
                f"Invalid chunk boundaries {start_ms}-{end_ms} for a {duration:.3f} ms file"
            )

    def _sink_for(self, destination: DestinationMode) -> ChunkSink | None:
        if destination == DestinationMode.BROWSER:
            sink = self.download_sink
        elif destination in (DestinationMode.DISK, DestinationMode.DISK_AND_RETURN):
            sink = self.disk_sink
        elif destination == DestinationMode.RETURN_BYTES:
            return None
        else:
            raise InvalidDestinationError(f"Unhandled destination {destination!r}")

        if sink is None:
            raise InvalidDestinationError(
                f"No sink configured for destination {destination.name}"
            )
        return sink

    def extract(
        self,
        start_ms: int,
        end_ms: int,
        destination=DestinationMode.BROWSER,
        filename: str | None = None,
    ) -> ExtractionResult:
        try:
            start_ms = int(start_ms)
            end_ms = int(end_ms)
        except (TypeError, ValueError) as exc:
            raise InvalidRangeError(f"Chunk boundaries must be integers: {start_ms!r}-{end_ms!r}") from exc
        self._validate_range(start_ms, end_ms)

        destination = coerce_destination(destination)
        sink = self._sink_for(destination)

        if not filename:
            filename = self.default_filename(start_ms, end_ms)

        if not self.has_sufficient_memory(start_ms, end_ms):
            raise ResourceExhaustedError("Not enough memory to save the given range")

        from_byte, to_byte = self.payload_bounds(start_ms, end_ms)
        payload_size = to_byte - from_byte
        logger.debug(
            f"Extracting {start_ms}-{end_ms} ms -> bytes [{from_byte}, {to_byte}) "
            f"of {self.container.file_path}"
        )

        chunk = self.container.serialize_headers(payload_size)
        chunk += self.container.read_range(from_byte, to_byte)

        written_path = None
        if sink is not None:
            written_path = sink.deliver(chunk, filename)

        logger.info(
            f"Extracted {filename} ({len(chunk)} bytes) for {destination.name}"
        )
        return ExtractionResult(
            filename=filename,
            destination=destination,
            start_ms=start_ms,
            end_ms=end_ms,
            payload_size=payload_size,
            output_size=len(chunk),
            data=chunk if destination.returns_bytes else None,
            written_path=written_path,
        )


def extract_chunk(
    file_path: str,
    start_ms: int,
    end_ms: int,
    memory_probe: MemoryProbe,
    destination=DestinationMode.RETURN_BYTES,
    filename: str | None = None,
    disk_sink: ChunkSink | None = None,
    download_sink: ChunkSink | None = None,
) -> ExtractionResult:
    """One-shot extraction with a container that lives only for this call."""
    extractor = ChunkExtractor(
        container=WavContainer(file_path),
        memory_probe=memory_probe,
        disk_sink=disk_sink,
        download_sink=download_sink,
    )
    return extractor.extract(start_ms, end_ms, destination=destination, filename=filename)
