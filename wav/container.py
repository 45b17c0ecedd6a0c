"""
RIFF/WAVE container access.

The header is parsed once into an immutable FormatDescriptor. Reading payload
ranges and re-serializing headers for a new data size are plain functions
over (path, descriptor), and WavContainer bundles the two for callers that
prefer an object.
"""

import os
import struct

from loguru import logger

from wav.format_descriptor import (
    WAVE_FORMAT_EXTENSIBLE,
    WAVE_FORMAT_PCM,
    FormatDescriptor,
)

RIFF_HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8
MIN_FMT_CHUNK_SIZE = 16
MAX_CHUNK_SIZE = 0xFFFFFFFF

# offset of the RIFF size field, and of the data size field relative to the payload
RIFF_SIZE_OFFSET = 4
DATA_SIZE_BACK_OFFSET = 4


class FormatError(ValueError):
    """Malformed or unsupported WAV structure."""


class RangeError(ValueError):
    """Requested byte range lies outside the available payload."""


class WavReadError(OSError):
    """Reading the WAV file failed."""


def parse_headers(path: str) -> FormatDescriptor:
    """
    Walk the RIFF chunks of `path` and describe its fmt and data chunks.
    Chunks other than `fmt ` and `data` are skipped; parsing stops at `data`.
    """
    try:
        file_size = os.path.getsize(path)
        with open(path, "rb") as f:
            return _parse_stream(f, file_size, path)
    except OSError as exc:
        if isinstance(exc, WavReadError):
            raise
        raise WavReadError(f"Failed to read WAV file {path}: {exc}") from exc


def _parse_stream(f, file_size: int, path: str) -> FormatDescriptor:
    riff = f.read(RIFF_HEADER_SIZE)
    if len(riff) < RIFF_HEADER_SIZE:
        raise FormatError(f"File {path} is too short to be a WAV file")

    magic, riff_size, wave = struct.unpack("<4sI4s", riff)
    if magic != b"RIFF" or wave != b"WAVE":
        raise FormatError(f"File {path} is not a RIFF/WAVE file")
    if riff_size + CHUNK_HEADER_SIZE > file_size:
        raise FormatError(
            f"RIFF size {riff_size} exceeds file size {file_size} in {path}"
        )

    fmt: tuple | None = None
    audio_format = WAVE_FORMAT_PCM
    offset = RIFF_HEADER_SIZE

    while True:
        header = f.read(CHUNK_HEADER_SIZE)
        if len(header) < CHUNK_HEADER_SIZE:
            missing = "fmt " if fmt is None else "data"
            raise FormatError(f"Missing '{missing}' chunk in {path}")

        chunk_id, chunk_size = struct.unpack("<4sI", header)
        body_offset = offset + CHUNK_HEADER_SIZE
        if body_offset + chunk_size > file_size:
            raise FormatError(
                f"Chunk {chunk_id!r} at offset {offset} declares {chunk_size} bytes, "
                f"beyond file size {file_size}"
            )

        if chunk_id == b"fmt ":
            if chunk_size < MIN_FMT_CHUNK_SIZE:
                raise FormatError(f"fmt chunk too short ({chunk_size} bytes) in {path}")
            body = f.read(chunk_size)
            fmt = struct.unpack("<HHIIHH", body[:MIN_FMT_CHUNK_SIZE])
            audio_format = _resolve_audio_format(fmt[0], body, path)
            if chunk_size % 2:
                f.seek(1, os.SEEK_CUR)
        elif chunk_id == b"data":
            if fmt is None:
                raise FormatError(f"data chunk precedes fmt chunk in {path}")
            descriptor = _build_descriptor(
                fmt,
                audio_format=audio_format,
                data_chunk_offset=body_offset,
                data_chunk_size=chunk_size,
                file_size=file_size,
                path=path,
            )
            logger.debug(f"Parsed {path}: {descriptor}")
            return descriptor
        else:
            f.seek(chunk_size + (chunk_size % 2), os.SEEK_CUR)

        offset = body_offset + chunk_size + (chunk_size % 2)


def _resolve_audio_format(tag: int, body: bytes, path: str) -> int:
    if tag == WAVE_FORMAT_PCM:
        return tag
    # extensible fmt carries the real format code in the first two bytes of the sub-format GUID
    if tag == WAVE_FORMAT_EXTENSIBLE and len(body) >= 26:
        (sub_format,) = struct.unpack("<H", body[24:26])
        if sub_format == WAVE_FORMAT_PCM:
            return tag
    raise FormatError(f"Unsupported audio format 0x{tag:04x} in {path}; only linear PCM is handled")


def _build_descriptor(
    fmt: tuple,
    audio_format: int,
    data_chunk_offset: int,
    data_chunk_size: int,
    file_size: int,
    path: str,
) -> FormatDescriptor:
    _, channel_count, sample_rate, byte_rate, block_align, bits_per_sample = fmt

    if sample_rate <= 0:
        raise FormatError(f"Invalid sample rate {sample_rate} in {path}")
    if channel_count < 1:
        raise FormatError(f"Invalid channel count {channel_count} in {path}")
    if bits_per_sample <= 0 or bits_per_sample % 8:
        raise FormatError(f"Unsupported bits per sample {bits_per_sample} in {path}")

    expected_align = channel_count * (bits_per_sample // 8)
    if block_align != expected_align:
        raise FormatError(
            f"Block align {block_align} does not match {channel_count} channels "
            f"of {bits_per_sample} bits in {path}"
        )
    if byte_rate != sample_rate * block_align:
        raise FormatError(
            f"Byte rate {byte_rate} does not match sample rate {sample_rate} "
            f"x block align {block_align} in {path}"
        )

    return FormatDescriptor(
        sample_rate=sample_rate,
        bits_per_sample=bits_per_sample,
        channel_count=channel_count,
        byte_rate=byte_rate,
        block_align=block_align,
        data_chunk_offset=data_chunk_offset,
        data_chunk_size=data_chunk_size,
        file_size=file_size,
        audio_format=audio_format,
    )


def read_range(path: str, descriptor: FormatDescriptor, start_byte: int, end_byte: int) -> bytes:
    """
    Return payload bytes [start_byte, end_byte), offsets relative to the data chunk.
    """
    if start_byte < 0 or start_byte > end_byte:
        raise RangeError(f"Invalid byte range [{start_byte}, {end_byte})")
    if end_byte > descriptor.data_chunk_size:
        raise RangeError(
            f"End byte {end_byte} exceeds data chunk size {descriptor.data_chunk_size}"
        )

    length = end_byte - start_byte
    try:
        with open(path, "rb") as f:
            f.seek(descriptor.data_chunk_offset + start_byte)
            data = f.read(length)
    except OSError as exc:
        raise WavReadError(f"Failed to read payload from {path}: {exc}") from exc

    if len(data) != length:
        raise WavReadError(
            f"Short read from {path}: expected {length} bytes, got {len(data)}"
        )
    return data


def serialize_headers(path: str, descriptor: FormatDescriptor, new_data_size: int) -> bytes:
    """
    Return the original header bytes with the RIFF size and data size fields
    rewritten for a payload of `new_data_size` bytes.
    """
    riff_size = descriptor.headers_size - CHUNK_HEADER_SIZE + new_data_size
    if new_data_size < 0 or riff_size > MAX_CHUNK_SIZE:
        raise RangeError(f"Data size {new_data_size} cannot be stored in a WAV header")

    try:
        with open(path, "rb") as f:
            original = f.read(descriptor.headers_size)
    except OSError as exc:
        raise WavReadError(f"Failed to read headers from {path}: {exc}") from exc

    if len(original) != descriptor.headers_size:
        raise WavReadError(f"Short read of headers from {path}")

    headers = bytearray(original)
    struct.pack_into("<I", headers, RIFF_SIZE_OFFSET, riff_size)
    struct.pack_into("<I", headers, descriptor.headers_size - DATA_SIZE_BACK_OFFSET, new_data_size)
    return bytes(headers)


class WavContainer:
    def __init__(self, file_path: str):
        self.file_path = file_path
        self.descriptor = parse_headers(file_path)

    @property
    def duration_ms(self) -> float:
        return self.descriptor.duration_ms

    @property
    def headers_size(self) -> int:
        return self.descriptor.headers_size

    @property
    def byte_rate(self) -> int:
        return self.descriptor.byte_rate

    @property
    def channel_count(self) -> int:
        return self.descriptor.channel_count

    @property
    def block_align(self) -> int:
        return self.descriptor.block_align

    @property
    def data_chunk_size(self) -> int:
        return self.descriptor.data_chunk_size

    def read_range(self, start_byte: int, end_byte: int) -> bytes:
        return read_range(self.file_path, self.descriptor, start_byte, end_byte)

    def serialize_headers(self, new_data_size: int) -> bytes:
        return serialize_headers(self.file_path, self.descriptor, new_data_size)
