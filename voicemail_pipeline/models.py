"""
Data model for the pipeline.

All records are frozen dataclasses.  Derived statistics are plain functions
over these records rather than computed attributes, so a record always holds
exactly what was measured.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class AudioFormat:
    sample_rate: int = 8000
    channels: int = 1
    bits_per_sample: int = 16

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.channels * self.bits_per_sample // 8

    @property
    def block_align(self) -> int:
        return self.channels * self.bits_per_sample // 8


# Telephony default: 8 kHz, mono, 16-bit PCM.
DEFAULT_FORMAT = AudioFormat()


@dataclass(frozen=True)
class TimingEntry:
    timestamp_ms: int
    size_bytes: int
    sequence_index: int


TimingLedger = Tuple[TimingEntry, ...]


@dataclass(frozen=True)
class LedgerStats:
    entry_count: int
    total_bytes: int
    min_timestamp: int
    max_timestamp: int
    duration_ms: int


def duration_seconds(stats: LedgerStats) -> float:
    return round(stats.duration_ms / 1000, 2)


def average_size(stats: LedgerStats) -> int:
    return round(stats.total_bytes / stats.entry_count)


@dataclass(frozen=True)
class ContainerInfo:
    sample_rate: int
    channels: int
    bits_per_sample: int
    byte_rate: int
    block_align: int
    audio_data_length: int
    header_size: int
    total_size: int


@dataclass(frozen=True)
class ReconstructionResult:
    item_id: str
    container_path: str
    ledger_stats: LedgerStats
    container_info: ContainerInfo
    duration_ms: int


@dataclass(frozen=True)
class TranscriptAlternative:
    text: str
    confidence: float = 0.0
    word_count: int = 0


@dataclass(frozen=True)
class TranscriptionResult:
    """Ranked alternatives returned for one container.

    ``alternatives`` keeps the order the recogniser returned them in; the
    ``best_*`` and ``combined_*`` views below are all derived from it.
    """

    alternatives: Tuple[TranscriptAlternative, ...] = ()
    source_path: str = ""
    processing_ms: int = 0
    success: bool = True

    @property
    def is_empty(self) -> bool:
        return len(self.alternatives) == 0

    @property
    def total_words(self) -> int:
        return sum(alt.word_count for alt in self.alternatives)

    def _best(self) -> Optional[TranscriptAlternative]:
        # a zero confidence means the recogniser did not set one
        best = None
        best_confidence = 0.0
        for alt in self.alternatives:
            # strict comparison keeps the first of equal confidences
            if alt.confidence > best_confidence:
                best, best_confidence = alt, alt.confidence
        return best

    @property
    def best_transcript(self) -> str:
        best = self._best()
        return best.text.strip() if best else ""

    @property
    def best_confidence(self) -> float:
        best = self._best()
        return best.confidence if best else 0.0

    def _confident(self) -> Tuple[TranscriptAlternative, ...]:
        return tuple(alt for alt in self.alternatives if alt.confidence > 0)

    @property
    def combined_transcript(self) -> str:
        return "".join(alt.text.strip() for alt in self._confident())

    @property
    def combined_confidence(self) -> float:
        confident = self._confident()
        if not confident:
            return 0.0
        return sum(alt.confidence for alt in confident) / len(confident)

    @property
    def average_confidence(self) -> float:
        if not self.alternatives:
            return 0.0
        return sum(alt.confidence for alt in self.alternatives) / len(self.alternatives)


class ItemState(str, enum.Enum):
    PENDING = "pending"
    RECONSTRUCTING = "reconstructing"
    TRANSCRIBING = "transcribing"
    CLASSIFYING = "classifying"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemState.COMPLETED, ItemState.FAILED)


@dataclass(frozen=True)
class BatchItemResult:
    item_id: str
    success: bool
    duration_ms: int
    state: ItemState = ItemState.COMPLETED
    stage: Optional[str] = None
    error: Optional[str] = None
    ledger_stats: Optional[LedgerStats] = None
    container_info: Optional[ContainerInfo] = None
    container_path: Optional[str] = None
    transcript_path: Optional[str] = None
    transcription: Optional[TranscriptionResult] = None
    detected: Optional[bool] = None


@dataclass(frozen=True)
class BatchSummary:
    folder_id: str
    item_results: Tuple[BatchItemResult, ...]
    success_count: int
    failure_count: int
    detection_count: int
    success_rate: float
    detection_rate: float
    folder_path: str = ""
    output_dir: str = ""
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.item_results)
