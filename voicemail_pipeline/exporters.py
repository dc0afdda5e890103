"""
Batch result exporters.

Both exporters are pure serialisers over a finished
:class:`~voicemail_pipeline.models.BatchSummary`.  A failed write is logged and
reported by returning ``None``; it never changes the summary.
"""

from __future__ import annotations

import csv
import dataclasses
import enum
import io
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import BatchItemResult, BatchSummary

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "id",
    "transcript",
    "confidence",
    "detectionFlag",
    "containerPath",
    "transcriptPath",
    "processingTime",
    "successFlag",
    "error",
]


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def csv_row(result: BatchItemResult) -> List[str]:
    processing_time = f"{result.duration_ms / 1000:.2f}s"
    if not result.success:
        return [result.item_id, "", "", "", "", "", processing_time, _flag(False), result.error or ""]
    transcription = result.transcription
    return [
        result.item_id,
        transcription.best_transcript if transcription else "",
        f"{transcription.best_confidence:.3f}" if transcription else "",
        _flag(bool(result.detected)),
        result.container_path or "",
        result.transcript_path or "",
        processing_time,
        _flag(True),
        "",
    ]


def render_csv(summary: BatchSummary) -> str:
    """Render one row per item; every field is quoted and quotes are doubled."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for result in summary.item_results:
        writer.writerow(csv_row(result))
    return buf.getvalue()


def to_dict(value: Any) -> Any:
    """Recursively convert dataclasses, enums and tuples to JSON-compatible data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {f.name: to_dict(getattr(value, f.name)) for f in dataclasses.fields(value)}
        if hasattr(type(value), "best_transcript"):
            data.update(
                best_transcript=value.best_transcript,
                best_confidence=value.best_confidence,
                combined_transcript=value.combined_transcript,
                combined_confidence=value.combined_confidence,
                total_words=value.total_words,
                is_empty=value.is_empty,
            )
        return data
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [to_dict(v) for v in value]
    return value


def summary_to_dict(summary: BatchSummary) -> Dict[str, Any]:
    """Convert ``summary`` to plain JSON-compatible data, derived views included."""
    return to_dict(summary)


def _default_path(summary: BatchSummary, name: str) -> Path:
    return Path(summary.output_dir or ".") / name


def export_csv(summary: BatchSummary, path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Write the CSV export, by default to ``<output_dir>/<folder_id>-results.csv``."""
    target = Path(path) if path else _default_path(summary, f"{summary.folder_id}-results.csv")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(render_csv(summary), encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to export CSV results to %s: %s", target, exc)
        return None
    logger.info("Results exported to: %s", target)
    return target


def export_json(summary: BatchSummary, path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Write the indented JSON export of the whole summary."""
    if path:
        target = Path(path)
    else:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        target = _default_path(summary, f"batch-results-{summary.folder_id}-{stamp}.json")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(summary_to_dict(summary), ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        logger.warning("Failed to save batch results to %s: %s", target, exc)
        return None
    logger.info("Batch results saved to: %s", target)
    return target
