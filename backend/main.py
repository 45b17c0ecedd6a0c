from contextlib import asynccontextmanager
import os
import sys

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from backend import config
from backend.schemas import ErrorResponse, ExtractRequest, ExtractResponse, WavInfoResponse
from backend.services.extraction_manager import (
    ExtractionManager,
    MediaNotFoundError,
    MediaPathError,
)
from extraction.chunk_extractor import (
    InvalidDestinationError,
    InvalidRangeError,
    ResourceExhaustedError,
)
from extraction.memory_probe import ProcessMemoryProbe
from extraction.models import DestinationMode
from sinks.base import EmptyInputError
from sinks.disk_sink import InvalidFilenameError, WriteError
from sinks.download_sink import WAV_MEDIA_TYPE
from wav.container import FormatError, RangeError, WavReadError


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(config.DATA_DIR, exist_ok=True)
    os.makedirs(config.OUTPUT_DIR, exist_ok=True)

    app.state.extraction_manager = ExtractionManager(
        media_dir=config.MEDIA_DIR,
        output_dir=config.OUTPUT_DIR,
        memory_probe=ProcessMemoryProbe(limit_mb=config.MEMORY_LIMIT_MB),
        default_destination=config.DEFAULT_DESTINATION,
    )

    yield


app = FastAPI(title="WavCutter API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|[0-9]{1,3}(?:\.[0-9]{1,3}){3})(:[0-9]+)?$",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

ERROR_STATUS = [
    (MediaPathError, 400, "INVALID_PATH"),
    (MediaNotFoundError, 404, "NOT_FOUND"),
    (FormatError, 400, "INVALID_WAV"),
    (InvalidRangeError, 400, "INVALID_RANGE"),
    (RangeError, 400, "RANGE_UNAVAILABLE"),
    (InvalidDestinationError, 400, "INVALID_DESTINATION"),
    (EmptyInputError, 400, "EMPTY_CHUNK"),
    (InvalidFilenameError, 400, "INVALID_FILENAME"),
    (ResourceExhaustedError, 507, "INSUFFICIENT_MEMORY"),
    (WriteError, 500, "WRITE_FAILED"),
    (WavReadError, 500, "READ_FAILED"),
]

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    507: {"model": ErrorResponse},
}


def _to_http_error(exc: Exception) -> HTTPException | None:
    for error_type, status_code, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(
                status_code=status_code,
                detail={"code": code, "message": str(exc)},
            )
    return None


@app.get("/api/health")
def health() -> dict[str, bool]:
    return {"ok": True}


@app.get("/api/wav/info", response_model=WavInfoResponse, responses=ERROR_RESPONSES)
def wav_info(path: str = Query(min_length=1)) -> WavInfoResponse:
    try:
        descriptor = app.state.extraction_manager.describe(path)
    except Exception as exc:
        http_error = _to_http_error(exc)
        if http_error is None:
            raise
        raise http_error from exc
    return WavInfoResponse.from_descriptor(path, descriptor)


@app.post(
    "/api/extract",
    response_model=None,
    responses={200: {"content": {WAV_MEDIA_TYPE: {}}, "model": ExtractResponse}, **ERROR_RESPONSES},
)
def extract(payload: ExtractRequest) -> Response | ExtractResponse:
    try:
        result, download_sink = app.state.extraction_manager.extract(payload)
    except Exception as exc:
        http_error = _to_http_error(exc)
        if http_error is None:
            raise
        raise http_error from exc

    if result.destination == DestinationMode.BROWSER:
        return download_sink.response

    if result.destination == DestinationMode.DISK:
        return ExtractResponse.from_result(result)

    headers = {"X-Chunk-Filename": result.filename}
    if result.written_path is not None:
        headers["X-Written-Path"] = result.written_path
    return Response(content=result.data, media_type=WAV_MEDIA_TYPE, headers=headers)
