from email.utils import formatdate
import os
import re
from urllib.parse import quote

from fastapi import Response

from sinks.base import ChunkSink

WAV_MEDIA_TYPE = "audio/x-wav"
EXPIRED_DATE = "Fri, 06 Nov 1987 12:00:00 GMT"

UNSAFE_FILENAME_CHARS = re.compile(r'["\\\x00-\x1f\x7f]|[^\x20-\x7e]')


def content_disposition(filename: str) -> str:
    """
    Attachment disposition with a quoted ASCII name; names that needed
    cleaning also carry the exact name as an RFC 5987 `filename*`.
    """
    name = os.path.basename(filename)
    fallback = UNSAFE_FILENAME_CHARS.sub("_", name)
    if fallback == name:
        return f'attachment; filename="{name}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name, safe='')}"


def download_headers(filename: str, size: int) -> dict[str, str]:
    """Headers that make a browser save the body instead of playing it."""
    return {
        "Content-Description": "File Transfer",
        "Cache-Control": "public, must-revalidate, max-age=0",
        "Pragma": "public",
        "Expires": EXPIRED_DATE,
        "Last-Modified": formatdate(usegmt=True),
        "Content-Disposition": content_disposition(filename),
        "Content-Transfer-Encoding": "binary",
        "Content-Length": str(size),
    }


class HttpDownloadSink(ChunkSink):
    """
    Wraps the chunk in a forced-download HTTP response.
    One instance per request; the response is kept on `.response` for the
    endpoint to return.
    """

    def __init__(self):
        self.response: Response | None = None

    def deliver(self, data: bytes, filename: str) -> None:
        self._require_data(data)
        self.response = Response(
            content=data,
            media_type=WAV_MEDIA_TYPE,
            headers=download_headers(filename, len(data)),
        )
        return None
