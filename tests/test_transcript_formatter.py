from voicemail_pipeline.models import TranscriptAlternative, TranscriptionResult
from voicemail_pipeline.transcript_formatter import format_report, save_report


def make_result():
    return TranscriptionResult(
        alternatives=(
            TranscriptAlternative(" ただいま外出中です ", 0.8, 2),
            TranscriptAlternative("ignored", 0.0, 1),
            TranscriptAlternative("メッセージをどうぞ", 0.9, 1),
        ),
        source_path="output/f/1.wav",
        processing_ms=1234,
    )


def test_derived_views():
    result = make_result()
    assert result.best_transcript == "メッセージをどうぞ"
    assert result.best_confidence == 0.9
    assert result.combined_transcript == "ただいま外出中ですメッセージをどうぞ"
    assert abs(result.combined_confidence - 0.85) < 1e-9
    assert result.total_words == 4
    assert not result.is_empty


def test_best_transcript_ties_keep_first():
    result = TranscriptionResult(alternatives=(TranscriptAlternative("a", 0.5), TranscriptAlternative("b", 0.5)))
    assert result.best_transcript == "a"


def test_report_sections_in_order():
    report = format_report(make_result())
    headings = [
        "=== SPEECH TRANSCRIPTION RESULTS ===",
        "=== COMBINED TRANSCRIPT ===",
        "=== BEST SINGLE TRANSCRIPT ===",
        "=== ALL TRANSCRIPTS ===",
        "=== STATISTICS ===",
    ]
    positions = [report.index(h) for h in headings]
    assert positions == sorted(positions)
    assert "File: output/f/1.wav" in report
    assert "Processing Time: 1.23s" in report
    assert "Combined Confidence: 85.0%" in report
    assert "Confidence: 90.0%" in report
    assert '2. "ignored"\n   Confidence: 0.0%\n   Words: 1' in report
    assert "Total Transcripts: 3" in report
    assert "Total Words: 4" in report
    assert "Average Confidence: 56.7%" in report
    assert report.endswith("Is Empty: false")


def test_empty_result_has_only_metadata_and_statistics(tmp_path):
    result = TranscriptionResult(source_path="x.wav")
    path = save_report(result, tmp_path / "sub" / "x.txt")
    content = path.read_text(encoding="utf-8")
    assert "COMBINED TRANSCRIPT" not in content
    assert "BEST SINGLE TRANSCRIPT" not in content
    assert "ALL TRANSCRIPTS" not in content
    assert "Average Confidence: 0.0%" in content
    assert "Is Empty: true" in content


def test_alternatives_without_confidence_are_never_best():
    result = TranscriptionResult(alternatives=(TranscriptAlternative("please leave a message", 0.0, 4),))
    assert result.best_transcript == ""
    assert result.best_confidence == 0.0
    assert result.combined_transcript == ""
    assert result.combined_confidence == 0.0
    assert result.average_confidence == 0.0
    assert not result.is_empty


def test_best_skips_unset_confidence_before_a_scored_alternative():
    result = TranscriptionResult(
        alternatives=(TranscriptAlternative("first", 0.0, 1), TranscriptAlternative("second", 0.4, 1))
    )
    assert result.best_transcript == "second"
    assert result.best_confidence == 0.4
