from typing import Literal

from pydantic import BaseModel, Field

from extraction.models import ExtractionResult
from wav.format_descriptor import FormatDescriptor


class ErrorResponse(BaseModel):
    code: str
    message: str


class ExtractRequest(BaseModel):
    path: str = Field(min_length=1)
    start_ms: int
    end_ms: int
    destination: int | str | None = None
    filename: str | None = Field(default=None, max_length=255)


class WavInfoResponse(BaseModel):
    path: str
    sample_rate: int
    bits_per_sample: int
    channel_count: int
    byte_rate: int
    block_align: int
    headers_size: int
    data_chunk_size: int
    duration_ms: float

    @classmethod
    def from_descriptor(cls, path: str, descriptor: FormatDescriptor) -> "WavInfoResponse":
        return cls(
            path=path,
            sample_rate=descriptor.sample_rate,
            bits_per_sample=descriptor.bits_per_sample,
            channel_count=descriptor.channel_count,
            byte_rate=descriptor.byte_rate,
            block_align=descriptor.block_align,
            headers_size=descriptor.headers_size,
            data_chunk_size=descriptor.data_chunk_size,
            duration_ms=descriptor.duration_ms,
        )


class ExtractResponse(BaseModel):
    filename: str
    destination: Literal["BROWSER", "DISK", "RETURN_BYTES", "DISK_AND_RETURN"]
    start_ms: int
    end_ms: int
    payload_size: int
    output_size: int
    written_path: str | None = None

    @classmethod
    def from_result(cls, result: ExtractionResult) -> "ExtractResponse":
        return cls(
            filename=result.filename,
            destination=result.destination.name,
            start_ms=result.start_ms,
            end_ms=result.end_ms,
            payload_size=result.payload_size,
            output_size=result.output_size,
            written_path=result.written_path,
        )
