"""
RIFF/WAVE header synthesis.

Captured payloads are headerless PCM.  :func:`build_header` produces the
canonical 44-byte header that makes them playable; all multi-byte fields are
little-endian.

Layout (offset: field)::

    0  "RIFF"          4  payload + 36     8  "WAVE"
    12 "fmt "          16 16 (fmt size)    20 1 (PCM)
    22 channels        24 sample rate      28 byte rate
    32 block align     34 bits per sample
    36 "data"          40 payload length
"""

import struct

from .errors import InvalidLengthError
from .models import DEFAULT_FORMAT, AudioFormat, ContainerInfo

HEADER_SIZE = 44
PCM_FORMAT = 1
FMT_CHUNK_SIZE = 16

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def _check_length(payload_length: object) -> int:
    # bool is an int subclass but never a meaningful length
    if isinstance(payload_length, bool) or not isinstance(payload_length, int) or payload_length < 0:
        raise InvalidLengthError(payload_length)
    return payload_length


def build_header(payload_length: int, fmt: AudioFormat = DEFAULT_FORMAT) -> bytes:
    """Return the 44-byte WAV header for ``payload_length`` bytes of PCM.

    Raises:
        InvalidLengthError: If ``payload_length`` is not a non-negative int.
    """
    length = _check_length(payload_length)
    return _HEADER.pack(
        b"RIFF",
        length + 36,
        b"WAVE",
        b"fmt ",
        FMT_CHUNK_SIZE,
        PCM_FORMAT,
        fmt.channels,
        fmt.sample_rate,
        fmt.byte_rate,
        fmt.block_align,
        fmt.bits_per_sample,
        b"data",
        length,
    )


def header_info(payload_length: int, fmt: AudioFormat = DEFAULT_FORMAT) -> ContainerInfo:
    """Describe the container that :func:`build_header` would produce."""
    length = _check_length(payload_length)
    return ContainerInfo(
        sample_rate=fmt.sample_rate,
        channels=fmt.channels,
        bits_per_sample=fmt.bits_per_sample,
        byte_rate=fmt.byte_rate,
        block_align=fmt.block_align,
        audio_data_length=length,
        header_size=HEADER_SIZE,
        total_size=length + HEADER_SIZE,
    )


def estimated_duration_seconds(payload_length: int, fmt: AudioFormat = DEFAULT_FORMAT) -> float:
    return round(payload_length / fmt.byte_rate, 2) if fmt.byte_rate else 0.0
