"""
Transcript report formatting.

Each transcribed container gets a plain-text report saved next to it.  The
sections always appear in the same order:

1. file metadata (source path, processing time, success flag);
2. the combined transcript and its confidence;
3. the best single transcript and its confidence;
4. every alternative with its confidence and word count;
5. a statistics block.

Sections 2 and 3 are omitted when there is no text to show.  Confidences are
printed as percentages with one decimal.
"""

from pathlib import Path
from typing import List, Union

from .models import TranscriptionResult


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def format_report(result: TranscriptionResult) -> str:
    """Render ``result`` as the UTF-8 text report described above."""
    lines: List[str] = [
        "=== SPEECH TRANSCRIPTION RESULTS ===",
        f"File: {result.source_path}",
        f"Processing Time: {result.processing_ms / 1000:.2f}s",
        f"Success: {str(result.success).lower()}",
        "",
    ]

    combined = result.combined_transcript
    if combined:
        lines += [
            "=== COMBINED TRANSCRIPT ===",
            combined,
            f"Combined Confidence: {_pct(result.combined_confidence)}",
            "",
        ]

    best = result.best_transcript
    if best:
        lines += [
            "=== BEST SINGLE TRANSCRIPT ===",
            best,
            f"Confidence: {_pct(result.best_confidence)}",
            "",
        ]

    if result.alternatives:
        lines.append("=== ALL TRANSCRIPTS ===")
        for number, alt in enumerate(result.alternatives, start=1):
            lines += [
                f'{number}. "{alt.text}"',
                f"   Confidence: {_pct(alt.confidence)}",
                f"   Words: {alt.word_count}",
                "",
            ]

    lines += [
        "=== STATISTICS ===",
        f"Total Transcripts: {len(result.alternatives)}",
        f"Total Words: {result.total_words}",
        f"Average Confidence: {_pct(result.average_confidence)}",
        f"Is Empty: {str(result.is_empty).lower()}",
    ]
    return "\n".join(lines)


def save_report(result: TranscriptionResult, output_path: Union[str, Path]) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(format_report(result), encoding="utf-8")
    return output_path
