import pytest

from voicemail_pipeline import timing_ledger
from voicemail_pipeline.errors import MalformedEntryError
from voicemail_pipeline.models import TimingEntry, average_size, duration_seconds


def test_parse_example_ledger():
    ledger = timing_ledger.parse("0/320,40/320,80/160")
    assert ledger == (
        TimingEntry(0, 320, 0),
        TimingEntry(40, 320, 1),
        TimingEntry(80, 160, 2),
    )
    stats = timing_ledger.stats(ledger)
    assert stats.entry_count == 3
    assert stats.total_bytes == 800
    assert stats.duration_ms == 80
    assert duration_seconds(stats) == 0.08
    assert average_size(stats) == 267


def test_parse_trims_whitespace_and_skips_empty_segments():
    ledger = timing_ledger.parse("  100/10 , ,\n 150 / 20,  ")
    assert [(e.timestamp_ms, e.size_bytes, e.sequence_index) for e in ledger] == [(100, 10, 0), (150, 20, 1)]


@pytest.mark.parametrize(
    "content, index, raw",
    [
        ("0/320,40", 1, "40"),
        ("0/320,1/2/3", 1, "1/2/3"),
        ("abc/320", 0, "abc/320"),
        ("0/-5", 0, "0/-5"),
        ("0/1.5", 0, "0/1.5"),
        ("0/0", 0, "0/0"),
        ("99999999999999999999999/320", 0, "99999999999999999999999/320"),
        ("0/4294967296", 0, "0/4294967296"),
    ],
)
def test_parse_rejects_malformed_entries(content, index, raw):
    with pytest.raises(MalformedEntryError) as info:
        timing_ledger.parse(content)
    assert info.value.index == index
    assert info.value.raw_text == raw


def test_parse_rejects_empty_ledger():
    with pytest.raises(MalformedEntryError) as info:
        timing_ledger.parse(" , ,")
    assert info.value.index == -1


def test_render_then_parse_is_identity():
    ledger = timing_ledger.parse("5/1,3/999,3/2,1000000/4294967295")
    assert timing_ledger.parse(timing_ledger.render(ledger)) == ledger


def test_stats_of_empty_ledger_is_none():
    assert timing_ledger.stats(()) is None


def test_out_of_order_entries_are_kept_and_reported():
    ledger = timing_ledger.parse("0/10,50/10,20/10,60/10")
    assert [e.timestamp_ms for e in ledger] == [0, 50, 20, 60]
    assert timing_ledger.out_of_order_indices(ledger) == [2]
    assert timing_ledger.stats(ledger).duration_ms == 60


def test_parse_accepts_field_width_limits():
    ledger = timing_ledger.parse("18446744073709551615/4294967295")
    assert ledger[0].timestamp_ms == 2**64 - 1
    assert ledger[0].size_bytes == 2**32 - 1
