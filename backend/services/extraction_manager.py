import os

from backend.schemas import ExtractRequest
from extraction.chunk_extractor import ChunkExtractor
from extraction.memory_probe import MemoryProbe
from extraction.models import ExtractionResult
from sinks.disk_sink import DiskSink
from sinks.download_sink import HttpDownloadSink
from wav.container import WavContainer
from wav.format_descriptor import FormatDescriptor


class MediaPathError(Exception):
    pass


class MediaNotFoundError(Exception):
    pass


class ExtractionManager:
    def __init__(
        self,
        media_dir: str,
        output_dir: str,
        memory_probe: MemoryProbe,
        default_destination: int | str = "return_bytes",
    ):
        self.media_dir = os.path.realpath(media_dir)
        self.output_dir = output_dir
        self.memory_probe = memory_probe
        self.default_destination = default_destination
        os.makedirs(self.media_dir, exist_ok=True)

    def resolve(self, path: str) -> str:
        candidate = os.path.realpath(os.path.join(self.media_dir, path))
        if os.path.commonpath([candidate, self.media_dir]) != self.media_dir:
            raise MediaPathError(f"Path escapes the media directory: {path}")
        if not os.path.isfile(candidate):
            raise MediaNotFoundError(f"WAV file not found: {path}")
        return candidate

    def describe(self, path: str) -> FormatDescriptor:
        return WavContainer(self.resolve(path)).descriptor

    def extract(self, request: ExtractRequest) -> tuple[ExtractionResult, HttpDownloadSink]:
        """
        Run one extraction with a container and sinks owned by this request.
        """
        container = WavContainer(self.resolve(request.path))
        download_sink = HttpDownloadSink()
        extractor = ChunkExtractor(
            container=container,
            memory_probe=self.memory_probe,
            disk_sink=DiskSink(output_dir=self.output_dir),
            download_sink=download_sink,
        )

        destination = request.destination
        if destination is None:
            destination = self.default_destination

        result = extractor.extract(
            request.start_ms,
            request.end_ms,
            destination=destination,
            filename=request.filename,
        )
        return result, download_sink
