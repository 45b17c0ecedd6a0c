from dataclasses import dataclass

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_EXTENSIBLE = 0xFFFE


@dataclass(frozen=True)
class FormatDescriptor:
    sample_rate: int         # samples per second
    bits_per_sample: int
    channel_count: int
    byte_rate: int           # payload bytes per second of audio
    block_align: int         # bytes of one frame across all channels
    data_chunk_offset: int   # offset of the first payload byte in the file
    data_chunk_size: int     # payload bytes as stored
    file_size: int
    audio_format: int = WAVE_FORMAT_PCM

    @property
    def headers_size(self) -> int:
        return self.data_chunk_offset

    @property
    def bytes_per_sample(self) -> int:
        return self.bits_per_sample // 8

    @property
    def duration_ms(self) -> float:
        return self.data_chunk_size * 1000 / self.byte_rate

    @property
    def frame_count(self) -> int:
        return self.data_chunk_size // self.block_align
