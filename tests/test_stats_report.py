"""Tests for stats_report."""

import io

import pytest

from alloc_stats import AllocationSnapshot
from stats_report import HEADER, ReportRow, StatsReporter, write_header, write_row
from volume_errors import ReportIOError

SNAP = AllocationSnapshot(total_alloc_bytes=123456789, curr_alloc_bytes=2048, peak_alloc_bytes=4096)


def test_header_line():
    out = io.StringIO()
    write_header(out)
    assert out.getvalue() == "total_alloc_bytes,curr_alloc_bytes,peak_alloc_bytes,acc_file_size\n"
    assert HEADER.count(",") == 3


def test_row_is_raw_integers():
    out = io.StringIO()
    write_row(out, SNAP, 3500)
    assert out.getvalue() == "123456789,2048,4096,3500\n"


def test_report_row_from_snapshot():
    row = ReportRow.from_snapshot(SNAP, 0)
    assert row == ReportRow(123456789, 2048, 4096, 0)
    assert row.to_line() == "123456789,2048,4096,0\n"


def test_reporter_writes_header_once():
    out = io.StringIO()
    reporter = StatsReporter(out)
    reporter.write_header()
    reporter(SNAP, 0)
    reporter.write_header()
    reporter(SNAP, 1000)

    lines = out.getvalue().splitlines()
    assert lines == [HEADER, "123456789,2048,4096,0", "123456789,2048,4096,1000"]
    assert reporter.rows == 2


def test_reporter_adds_header_before_first_row():
    out = io.StringIO()
    StatsReporter(out)(SNAP, 7)
    assert out.getvalue().splitlines()[0] == HEADER


def test_write_to_closed_stream_raises():
    out = io.StringIO()
    out.close()
    with pytest.raises(ReportIOError):
        write_row(out, SNAP, 0)
