"""
stats_report.py

CSV output: one header line, then one row per measurement point.

    total_alloc_bytes,curr_alloc_bytes,peak_alloc_bytes,acc_file_size
    183758848,41586688,41586688,0
    ...

Values are written as raw integers.
"""
from dataclasses import dataclass

from alloc_stats import AllocationSnapshot
from volume_errors import ReportIOError

COLUMNS = ["total_alloc_bytes", "curr_alloc_bytes", "peak_alloc_bytes", "acc_file_size"]
HEADER = ",".join(COLUMNS)


@dataclass(frozen=True)
class ReportRow:
    total_alloc_bytes: int
    curr_alloc_bytes: int
    peak_alloc_bytes: int
    acc_file_size: int

    @classmethod
    def from_snapshot(cls, snapshot: AllocationSnapshot, acc_file_size: int) -> "ReportRow":
        return cls(
            total_alloc_bytes=snapshot.total_alloc_bytes,
            curr_alloc_bytes=snapshot.curr_alloc_bytes,
            peak_alloc_bytes=snapshot.peak_alloc_bytes,
            acc_file_size=acc_file_size,
        )

    def to_line(self) -> str:
        return f"{self.total_alloc_bytes},{self.curr_alloc_bytes},{self.peak_alloc_bytes},{self.acc_file_size}\n"


def write_header(out):
    try:
        out.write(HEADER + "\n")
    except (OSError, ValueError) as e:
        raise ReportIOError(f"Cannot write CSV header: {e}") from e


def write_row(out, snapshot: AllocationSnapshot, acc_file_size: int):
    try:
        out.write(ReportRow.from_snapshot(snapshot, acc_file_size).to_line())
    except (OSError, ValueError) as e:
        raise ReportIOError(f"Cannot write CSV row: {e}") from e


class StatsReporter:
    """
    Emit callback for file_scanner.scan_all. Writes the header before the first row
    and flushes after every row, so rows written before a fatal error stay on disk.
    """

    def __init__(self, out):
        self.out = out
        self.rows = 0
        self._header_written = False

    def write_header(self):
        if self._header_written:
            return
        write_header(self.out)
        self._header_written = True

    def __call__(self, snapshot: AllocationSnapshot, acc_file_size: int):
        self.write_header()
        write_row(self.out, snapshot, acc_file_size)
        try:
            self.out.flush()
        except (OSError, ValueError) as e:
            raise ReportIOError(f"Cannot flush CSV output: {e}") from e
        self.rows += 1
