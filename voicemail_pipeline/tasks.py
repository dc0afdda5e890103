"""
Orchestration layer for the pipeline.

:class:`BatchOrchestrator` coordinates the per-capture steps:

* **reconstruct** – rebuild ``<id>.wav`` from ``<id>_data`` and
  ``<id>_timeSize``;
* **transcribe** – send the WAV to the speech gateway and save ``<id>.txt``;
* **classify** – run the keyword detector over the best transcript.

A failure in any step is recorded on that item's result and the batch moves
on; only discovery failure stops a batch.  Directories are always passed in
explicitly so concurrent batches never share mutable path state.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import audio_processor, detector, stt_service, transcript_formatter
from .config import DATA_SUFFIX, Settings
from .errors import InvalidTransitionError, NoItemsFoundError, PipelineError, ProviderError
from .models import (
    BatchItemResult,
    BatchSummary,
    ItemState,
    ReconstructionResult,
    TranscriptionResult,
)
from .stt_service import TranscriptionGateway

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

STAGE_NAMES = {
    ItemState.PENDING: "discover",
    ItemState.RECONSTRUCTING: "reconstruct",
    ItemState.TRANSCRIBING: "transcribe",
    ItemState.CLASSIFYING: "classify",
}

_NEXT_STATE = {
    ItemState.PENDING: ItemState.RECONSTRUCTING,
    ItemState.RECONSTRUCTING: ItemState.TRANSCRIBING,
    ItemState.TRANSCRIBING: ItemState.CLASSIFYING,
    ItemState.CLASSIFYING: ItemState.COMPLETED,
}


class ItemTracker:
    """Tracks one item through ``PENDING -> ... -> COMPLETED | FAILED``."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        self.state = ItemState.PENDING
        self.stage: Optional[str] = None
        self.error: Optional[str] = None

    def advance(self) -> ItemState:
        if self.state.is_terminal:
            raise InvalidTransitionError(f"{self.item_id} is already {self.state.value}")
        self.state = _NEXT_STATE[self.state]
        return self.state

    def fail(self, exc: BaseException) -> None:
        if self.state.is_terminal:
            raise InvalidTransitionError(f"{self.item_id} is already {self.state.value}")
        self.stage = STAGE_NAMES[self.state]
        self.error = f"{self.stage}: {exc}"
        self.state = ItemState.FAILED


def summarize(
    folder_id: str,
    results: Sequence[BatchItemResult],
    *,
    folder_path: str = "",
    output_dir: str = "",
    duration_ms: int = 0,
) -> BatchSummary:
    """Fold per-item results into a :class:`BatchSummary`.

    ``detection_rate`` is relative to successful items and is ``0`` when
    nothing succeeded.
    """
    total = len(results)
    success_count = sum(1 for r in results if r.success)
    detection_count = sum(1 for r in results if r.success and r.detected)
    return BatchSummary(
        folder_id=folder_id,
        item_results=tuple(results),
        success_count=success_count,
        failure_count=total - success_count,
        detection_count=detection_count,
        success_rate=success_count / total if total else 0.0,
        detection_rate=detection_count / success_count if success_count else 0.0,
        folder_path=folder_path,
        output_dir=output_dir,
        duration_ms=duration_ms,
    )


def discover(folder: PathLike) -> List[str]:
    """List capture ids in ``folder`` that have both a payload and a ledger.

    Payloads without a matching ledger are logged and skipped.

    Raises:
        NoItemsFoundError: If the folder does not exist or holds no complete
            captures.
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise NoItemsFoundError(str(folder), reason="Folder not found")
    ids = set()
    for entry in folder.iterdir():
        if not entry.is_file() or not entry.name.endswith(DATA_SUFFIX):
            continue
        item_id = entry.name[: -len(DATA_SUFFIX)]
        if not item_id:
            continue
        if not audio_processor.ledger_path(folder, item_id).is_file():
            logger.warning("Skipping %s: missing timing ledger", item_id)
            continue
        ids.add(item_id)
    if not ids:
        raise NoItemsFoundError(str(folder))
    return sorted(ids)


class BatchOrchestrator:
    """Runs reconstruct, transcribe and classify over captures.

    Args:
        gateway: Speech gateway shared by all items.
        settings: Runtime settings; defaults to :meth:`Settings.from_env`.
        keywords: Detector keywords; defaults to the configured keyword file.
        max_workers: Items processed concurrently; defaults to
            ``settings.batch_max_workers``.
    """

    def __init__(
        self,
        gateway: TranscriptionGateway,
        settings: Optional[Settings] = None,
        *,
        keywords: Optional[Sequence[str]] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.gateway = gateway
        self.settings = settings or Settings.from_env()
        self.keywords: Tuple[str, ...] = (
            tuple(keywords) if keywords is not None else detector.load_keywords(self.settings.keywords_path)
        )
        self.max_workers = max(1, max_workers or self.settings.batch_max_workers)

    # Single-step operations.

    def discover(self, folder: PathLike) -> List[str]:
        return discover(folder)

    def reconstruct(
        self,
        item_id: str,
        source_dir: Optional[PathLike] = None,
        output_dir: Optional[PathLike] = None,
    ) -> ReconstructionResult:
        return audio_processor.reconstruct_item(
            item_id,
            source_dir if source_dir is not None else self.settings.data_dir,
            output_dir if output_dir is not None else self.settings.output_dir,
            fmt=self.settings.audio_format,
            max_size=self.settings.max_payload_size,
        )

    def transcribe(self, item_id: str, output_dir: Optional[PathLike] = None) -> Tuple[TranscriptionResult, Path]:
        """Transcribe ``<output_dir>/<id>.wav`` and save the ``<id>.txt`` report."""
        output_dir = Path(output_dir if output_dir is not None else self.settings.output_dir)
        wav_file = audio_processor.container_path(output_dir, item_id)
        try:
            result = stt_service.transcribe_file(str(wav_file), self.gateway)
        except ProviderError as exc:
            raise exc.with_item(item_id) from exc.cause
        report = transcript_formatter.save_report(result, output_dir / f"{item_id}.txt")
        logger.info("%s: saved transcript to %s", item_id, report)
        return result, report

    def classify(self, transcript: Optional[str]) -> bool:
        return detector.classify(transcript, self.keywords)

    # Pipeline.

    def run_item(self, item_id: str, source_dir: PathLike, output_dir: PathLike) -> BatchItemResult:
        """Run the whole pipeline for one item.  Never raises."""
        start = time.monotonic()
        tracker = ItemTracker(item_id)
        reconstruction: Optional[ReconstructionResult] = None
        transcription: Optional[TranscriptionResult] = None
        transcript_path: Optional[Path] = None
        detected: Optional[bool] = None
        logger.info("Processing %s", item_id)
        try:
            tracker.advance()
            reconstruction = self.reconstruct(item_id, source_dir, output_dir)
            tracker.advance()
            transcription, transcript_path = self.transcribe(item_id, output_dir)
            tracker.advance()
            detected = self.classify(transcription.best_transcript)
            tracker.advance()
        except (PipelineError, OSError) as exc:
            tracker.fail(exc)
            logger.error("Failed %s at %s: %s", item_id, tracker.stage, exc)
        except Exception as exc:
            tracker.fail(exc)
            logger.exception("Unexpected failure for %s at %s", item_id, tracker.stage)
        duration_ms = int((time.monotonic() - start) * 1000)

        if tracker.state is ItemState.FAILED:
            return BatchItemResult(
                item_id=item_id,
                success=False,
                duration_ms=duration_ms,
                state=tracker.state,
                stage=tracker.stage,
                error=tracker.error,
                ledger_stats=reconstruction.ledger_stats if reconstruction else None,
                container_info=reconstruction.container_info if reconstruction else None,
                container_path=reconstruction.container_path if reconstruction else None,
                transcript_path=str(transcript_path) if transcript_path else None,
                transcription=transcription,
            )

        logger.info(
            "Completed %s in %.2fs; answering machine detected: %s",
            item_id,
            duration_ms / 1000,
            "YES" if detected else "NO",
        )
        return BatchItemResult(
            item_id=item_id,
            success=True,
            duration_ms=duration_ms,
            state=tracker.state,
            ledger_stats=reconstruction.ledger_stats,
            container_info=reconstruction.container_info,
            container_path=reconstruction.container_path,
            transcript_path=str(transcript_path),
            transcription=transcription,
            detected=detected,
        )

    def run_batch(self, folder: PathLike, output_root: Optional[PathLike] = None) -> BatchSummary:
        """Process every capture in ``folder``.

        Outputs go to ``<output_root>/<folder name>``.  Items run one at a
        time unless ``max_workers`` is greater than one; either way the
        summary lists items in discovery order.

        Raises:
            NoItemsFoundError: If there is nothing to process.
        """
        start = time.monotonic()
        folder_path = Path(folder)
        folder_id = folder_path.resolve().name
        output_dir = Path(output_root if output_root is not None else self.settings.output_dir) / folder_id

        logger.info("Processing folder: %s", folder_path)
        ids = self.discover(folder_path)
        logger.info("Found %d audio files: %s", len(ids), ", ".join(ids))
        output_dir.mkdir(parents=True, exist_ok=True)

        if self.max_workers > 1 and len(ids) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = {item_id: pool.submit(self.run_item, item_id, folder_path, output_dir) for item_id in ids}
                by_id: Dict[str, BatchItemResult] = {item_id: f.result() for item_id, f in futures.items()}
            results = [by_id[item_id] for item_id in ids]
        else:
            results = []
            for position, item_id in enumerate(ids, start=1):
                logger.info("Processing %d/%d: %s", position, len(ids), item_id)
                results.append(self.run_item(item_id, folder_path, output_dir))

        summary = summarize(
            folder_id,
            results,
            folder_path=str(folder_path),
            output_dir=str(output_dir),
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        log_summary(summary)
        return summary


def log_summary(summary: BatchSummary) -> None:
    logger.info("=" * 60)
    logger.info("BATCH PROCESSING SUMMARY")
    logger.info("Folder: %s", summary.folder_path)
    logger.info("Total Time: %.2fs", summary.duration_ms / 1000)
    logger.info("Total Files: %d", summary.total)
    logger.info("Successful: %d", summary.success_count)
    logger.info("Failed: %d", summary.failure_count)
    logger.info("Answering Machines: %d", summary.detection_count)
    logger.info("Success Rate: %.1f%%", summary.success_rate * 100)
    logger.info("Detection Rate: %.1f%%", summary.detection_rate * 100)
    for result in summary.item_results:
        if result.success and result.detected and result.transcription is not None:
            logger.info(
                "  detected %s: %r (confidence %.1f%%)",
                result.item_id,
                result.transcription.best_transcript,
                result.transcription.best_confidence * 100,
            )
