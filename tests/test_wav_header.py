import struct

import pytest

from voicemail_pipeline import wav_header
from voicemail_pipeline.errors import InvalidLengthError
from voicemail_pipeline.models import AudioFormat


@pytest.mark.parametrize("length", [0, 1, 800, 50 * 1024 * 1024])
def test_header_sizes(length):
    header = wav_header.build_header(length)
    assert len(header) == 44
    assert struct.unpack_from("<I", header, 4)[0] == length + 36
    assert struct.unpack_from("<I", header, 40)[0] == length


def test_header_layout_for_default_format():
    header = wav_header.build_header(800)
    assert header[0:4] == b"RIFF"
    assert header[8:12] == b"WAVE"
    assert header[12:16] == b"fmt "
    assert header[36:40] == b"data"
    fmt_size, tag, channels, rate, byte_rate, align, bits = struct.unpack_from("<IHHIIHH", header, 16)
    assert (fmt_size, tag, channels, rate, byte_rate, align, bits) == (16, 1, 1, 8000, 16000, 2, 16)


def test_header_uses_given_format():
    fmt = AudioFormat(sample_rate=16000, channels=2, bits_per_sample=16)
    header = wav_header.build_header(10, fmt)
    channels, rate, byte_rate, align = struct.unpack_from("<HIIH", header, 22)
    assert (channels, rate, byte_rate, align) == (2, 16000, 64000, 4)


@pytest.mark.parametrize("length", [-1, 1.5, "10", None, True])
def test_invalid_lengths(length):
    with pytest.raises(InvalidLengthError):
        wav_header.build_header(length)


def test_header_info():
    info = wav_header.header_info(800)
    assert info.header_size == 44
    assert info.total_size == 844
    assert info.byte_rate == 16000
    assert info.block_align == 2
    assert wav_header.estimated_duration_seconds(16000) == 1.0
