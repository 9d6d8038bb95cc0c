#!/usr/bin/env python3
"""
estimate_data_volume.py

Measure how process memory and accumulated file size grow while a batch of HDF5 files
is opened and scanned. Every file stays open until the end of the run.

Usage:
    python estimate_data_volume.py /path/to/file_list.txt /path/to/output.csv
    python estimate_data_volume.py files.txt out.csv --direct
    python estimate_data_volume.py files.txt out.csv --chunk-cache-bytes 134217728
    python estimate_data_volume.py files.txt out.csv --config volume.yaml

file_list.txt holds one HDF5 path per line, in scan order.
output.csv is overwritten: a header, one baseline row, then one row per file.
"""
import argparse
import sys
from typing import List

from access_strategy import build_strategy
from file_scanner import close_all, scan_all
from stats_report import StatsReporter
from volume_config import RunSettings, load_settings
from volume_errors import DataVolumeError, ReportIOError

USAGE = "Usage: estimate_data_volume /path/to/file_list.txt /path/to/output.csv"


class _UsageParser(argparse.ArgumentParser):
    """Wrong arguments print the usage line and exit with status 1."""

    def error(self, message):
        print(f"{USAGE}\n{self.prog}: error: {message}", file=sys.stderr)
        self.exit(1)


def create_parser() -> argparse.ArgumentParser:
    ap = _UsageParser(
        prog="estimate_data_volume",
        description="Record memory use and accumulated file size while scanning a batch of HDF5 files.",
    )
    ap.add_argument("file_list", help="Text file with one HDF5 path per line")
    ap.add_argument("output_csv", help="CSV file to write (overwritten)")
    ap.add_argument("--config", default=None, help="YAML file overriding the default settings")
    ap.add_argument("--direct", action="store_true", help="Use direct file access instead of in-memory buffering")
    ap.add_argument("--no-chunk-cache", action="store_true", help="Keep the library's default chunk cache")
    ap.add_argument("--chunk-cache-bytes", type=int, default=None, help="Raw-data chunk cache size in bytes")
    return ap


def read_file_list(path: str) -> List[str]:
    """One path per line. Only line endings are removed; blank lines are kept."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ReportIOError(f"Cannot read file list {path}: {e}", operation="read_file_list") from e


def open_output(path: str):
    """Truncate `path` and return it open for writing."""
    try:
        return open(path, 'w', encoding='utf-8')
    except OSError as e:
        raise ReportIOError(f"Cannot create {path}: {e}", operation="open_output") from e


def run(file_list: str, reporter: StatsReporter, settings: RunSettings, probe=None) -> int:
    """Run the measurement into `reporter` and return the number of rows written (header excluded)."""
    paths = read_file_list(file_list)

    strategy = build_strategy(
        settings.in_memory_io,
        settings.chunk_caching,
        settings.chunk_cache_bytes,
        core_block_size=settings.core_block_size,
    )
    print(f"[INFO] Access strategy: {strategy.describe()}", flush=True)
    print(f"[INFO] Scanning {len(paths)} files from {file_list}", flush=True)

    handles = scan_all(paths, strategy, reporter, probe=probe)
    n_closed = close_all(handles)
    print(f"[INFO] Closed {n_closed} files", flush=True)
    return reporter.rows


def main(argv=None) -> int:
    ap = create_parser()
    args = ap.parse_args(argv)

    try:
        # the previous run's CSV is gone even if this run fails early
        with open_output(args.output_csv) as out:
            reporter = StatsReporter(out)
            reporter.write_header()
            settings = load_settings(
                args.config,
                in_memory_io=False if args.direct else None,
                chunk_caching=False if args.no_chunk_cache else None,
                chunk_cache_bytes=args.chunk_cache_bytes,
            )
            run(args.file_list, reporter, settings)
    except DataVolumeError as e:
        print(f"[ERROR] {e.operation}: {e}", file=sys.stderr)
        return 1

    print(f"[INFO] Wrote {reporter.rows} rows to {args.output_csv}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
