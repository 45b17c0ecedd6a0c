BYTES_PER_MEGABYTE = 1024 * 1024


def milliseconds_to_bytes(ms: int, byte_rate: int) -> int:
    if ms < 0:
        raise ValueError(f"milliseconds must be non-negative, got {ms}")
    return int(ms) * int(byte_rate) // 1000


def bytes_to_milliseconds(size: int, byte_rate: int) -> float:
    if byte_rate <= 0:
        raise ValueError(f"byte rate must be positive, got {byte_rate}")
    return size * 1000 / byte_rate


def megabytes_to_bytes(mb: int) -> int:
    return int(mb) * BYTES_PER_MEGABYTE


def bytes_to_megabytes(size: int) -> float:
    return size / BYTES_PER_MEGABYTE
