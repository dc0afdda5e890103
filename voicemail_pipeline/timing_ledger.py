"""
Timing ledger parsing.

A capture's ``<id>_timeSize`` file records how the payload was chunked over
time as comma separated ``timestampMs/sizeBytes`` pairs, for example::

    0/320,40/320,80/160

Entries keep the order they appear in; timestamps are not required to be
monotonic, so :func:`out_of_order_indices` is provided for inspection rather
than rejecting such ledgers.
"""

import re
from typing import List, Optional

from .errors import MalformedEntryError
from .models import LedgerStats, TimingEntry, TimingLedger

_UINT = re.compile(r"^[0-9]+$")

MAX_TIMESTAMP = 2**64 - 1
MAX_SIZE = 2**32 - 1


def _parse_uint(value: str, limit: int) -> Optional[int]:
    value = value.strip()
    if not _UINT.match(value):
        return None
    number = int(value)
    return number if number <= limit else None


def parse(content: str) -> TimingLedger:
    """Parse ledger text into an ordered tuple of :class:`TimingEntry`.

    Args:
        content: Raw text of a timing ledger.

    Returns:
        The entries in appearance order; ``sequence_index`` counts the
        non-empty segments.

    Raises:
        MalformedEntryError: If a segment does not hold exactly two
            non-negative integers, if a size is zero, or if the ledger has no
            entries at all (reported with index ``-1``).
    """
    segments = [segment.strip() for segment in content.split(",")]
    segments = [segment for segment in segments if segment]
    if not segments:
        raise MalformedEntryError(-1, content, reason="timing ledger has no entries")

    entries: List[TimingEntry] = []
    for index, segment in enumerate(segments):
        fields = segment.split("/")
        if len(fields) != 2:
            raise MalformedEntryError(index, segment)
        timestamp = _parse_uint(fields[0], MAX_TIMESTAMP)
        size = _parse_uint(fields[1], MAX_SIZE)
        if timestamp is None or size is None:
            raise MalformedEntryError(index, segment, reason="invalid numbers in timing entry")
        if size == 0:
            raise MalformedEntryError(index, segment, reason="zero-sized timing entry")
        entries.append(TimingEntry(timestamp_ms=timestamp, size_bytes=size, sequence_index=index))
    return tuple(entries)


def render(ledger: TimingLedger) -> str:
    """Serialise ``ledger`` back to the text format read by :func:`parse`."""
    return ",".join(f"{entry.timestamp_ms}/{entry.size_bytes}" for entry in ledger)


def stats(ledger: TimingLedger) -> Optional[LedgerStats]:
    """Summarise a ledger, or return ``None`` when it has no entries."""
    if not ledger:
        return None
    timestamps = [entry.timestamp_ms for entry in ledger]
    lo, hi = min(timestamps), max(timestamps)
    return LedgerStats(
        entry_count=len(ledger),
        total_bytes=sum(entry.size_bytes for entry in ledger),
        min_timestamp=lo,
        max_timestamp=hi,
        duration_ms=hi - lo,
    )


def out_of_order_indices(ledger: TimingLedger) -> List[int]:
    """Return the sequence indices whose timestamp is lower than the previous one."""
    return [
        current.sequence_index
        for previous, current in zip(ledger, ledger[1:])
        if current.timestamp_ms < previous.timestamp_ms
    ]
