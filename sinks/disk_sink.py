import os

from loguru import logger

from sinks.base import ChunkSink


class WriteError(OSError):
    """Raised when the target file cannot be created or written."""


class InvalidFilenameError(ValueError):
    """Raised when a filename does not name a file."""


class DiskSink(ChunkSink):
    def __init__(self, output_dir: str | None = None):
        self.output_dir = output_dir
        self.last_path: str | None = None

    def resolve_path(self, filename: str) -> str:
        name = os.path.basename(filename)
        if name.strip(".") == "" or not name.strip():
            raise InvalidFilenameError(f"Not a usable file name: {filename!r}")
        if self.output_dir is None:
            return filename
        return os.path.join(self.output_dir, name)

    def deliver(self, data: bytes, filename: str) -> str:
        self._require_data(data)

        path = self.resolve_path(filename)
        try:
            if self.output_dir is not None:
                os.makedirs(self.output_dir, exist_ok=True)
            with open(path, "wb") as out:
                out.write(data)
        except OSError as exc:
            raise WriteError(f"Unable to create the file on the disk: {path}") from exc

        self.last_path = path
        logger.info(f"Wrote {len(data)} bytes to {path}")
        return path
