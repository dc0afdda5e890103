"""
Audio reconstruction.

This module turns a capture (headerless PCM payload plus timing ledger) into a
playable WAV file.  The ledger is informational: when its byte total disagrees
with the payload, a warning is logged and the payload's real length is used
for the header.  No resampling or other signal processing happens here; the
payload bytes are written out unchanged behind the header.
"""

import logging
import os
import time
from pathlib import Path
from typing import Union

from . import timing_ledger, wav_header
from .config import DATA_SUFFIX, LEDGER_SUFFIX, MAX_PAYLOAD_SIZE
from .errors import EmptyPayloadError, MalformedEntryError, NotFoundError, PayloadTooLargeError
from .models import DEFAULT_FORMAT, AudioFormat, ReconstructionResult

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def payload_path(source_dir: PathLike, item_id: str) -> Path:
    return Path(source_dir) / f"{item_id}{DATA_SUFFIX}"


def ledger_path(source_dir: PathLike, item_id: str) -> Path:
    return Path(source_dir) / f"{item_id}{LEDGER_SUFFIX}"


def container_path(output_dir: PathLike, item_id: str) -> Path:
    return Path(output_dir) / f"{item_id}.wav"


def read_payload(path: PathLike, *, max_size: int = MAX_PAYLOAD_SIZE) -> bytes:
    """Read a raw payload, enforcing the size bound before loading it.

    Raises:
        NotFoundError: If ``path`` does not exist.
        EmptyPayloadError: If the file is zero bytes long.
        PayloadTooLargeError: If the file is larger than ``max_size``.
    """
    path = str(path)
    try:
        size = os.stat(path).st_size
    except FileNotFoundError:
        raise NotFoundError(path) from None
    if size == 0:
        raise EmptyPayloadError(path)
    if size > max_size:
        raise PayloadTooLargeError(path, size, max_size)
    with open(path, "rb") as f:
        return f.read()


def write_container(payload: bytes, output_path: PathLike, fmt: AudioFormat = DEFAULT_FORMAT) -> Path:
    """Write header + ``payload`` to ``output_path``, creating parent folders."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    header = wav_header.build_header(len(payload), fmt)
    output_path.write_bytes(header + payload)
    return output_path


def reconstruct(
    item_id: str,
    ledger_text: str,
    payload_file: PathLike,
    output_path: PathLike,
    *,
    fmt: AudioFormat = DEFAULT_FORMAT,
    max_size: int = MAX_PAYLOAD_SIZE,
) -> ReconstructionResult:
    """Build a WAV container for one capture.

    Args:
        item_id: Capture identifier, used for logging and the result record.
        ledger_text: Contents of the capture's timing ledger.
        payload_file: Path to the raw payload.
        output_path: Where to write the WAV file.
        fmt: PCM layout of the payload.
        max_size: Largest payload accepted, in bytes.

    Returns:
        A :class:`ReconstructionResult` describing the written container.

    Raises:
        MalformedEntryError: If the ledger cannot be parsed.
        NotFoundError, EmptyPayloadError, PayloadTooLargeError: If the payload
            cannot be read.
        OSError: If the container cannot be written.
    """
    start = time.monotonic()
    ledger = timing_ledger.parse(ledger_text)
    stats = timing_ledger.stats(ledger)
    if stats is None:
        raise MalformedEntryError(-1, ledger_text, reason="timing ledger has no entries")
    logger.info(
        "%s: parsed %d ledger entries (%.2fs)",
        item_id,
        stats.entry_count,
        stats.duration_ms / 1000,
    )
    reordered = timing_ledger.out_of_order_indices(ledger)
    if reordered:
        logger.warning("%s: ledger timestamps go backwards at entries %s", item_id, reordered)

    payload = read_payload(payload_file, max_size=max_size)
    logger.info("%s: loaded %d payload bytes", item_id, len(payload))
    if stats.total_bytes != len(payload):
        logger.warning(
            "%s: ledger total (%d) does not match payload length (%d); using payload length",
            item_id,
            stats.total_bytes,
            len(payload),
        )

    written = write_container(payload, output_path, fmt)
    info = wav_header.header_info(len(payload), fmt)
    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        "%s: wrote %s (%.1fKB, ~%.2fs audio) in %dms",
        item_id,
        written,
        info.total_size / 1024,
        wav_header.estimated_duration_seconds(len(payload), fmt),
        elapsed_ms,
    )
    return ReconstructionResult(
        item_id=item_id,
        container_path=str(written),
        ledger_stats=stats,
        container_info=info,
        duration_ms=elapsed_ms,
    )


def reconstruct_item(
    item_id: str,
    source_dir: PathLike,
    output_dir: PathLike,
    *,
    fmt: AudioFormat = DEFAULT_FORMAT,
    max_size: int = MAX_PAYLOAD_SIZE,
) -> ReconstructionResult:
    """Reconstruct ``<source_dir>/<id>_data`` into ``<output_dir>/<id>.wav``."""
    ledger_file = ledger_path(source_dir, item_id)
    try:
        ledger_text = ledger_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise NotFoundError(str(ledger_file)) from None
    return reconstruct(
        item_id,
        ledger_text,
        payload_path(source_dir, item_id),
        container_path(output_dir, item_id),
        fmt=fmt,
        max_size=max_size,
    )
