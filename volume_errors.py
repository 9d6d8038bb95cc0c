"""
volume_errors.py

Error types raised by the data-volume estimator. Every one of them is fatal:
components raise, and only the command-line entry point turns them into a
diagnostic line and a non-zero exit status.
"""


class DataVolumeError(Exception):
    """Base class. `operation` names the call that failed."""

    operation = "estimate_data_volume"

    def __init__(self, message, operation=None):
        super().__init__(message)
        if operation is not None:
            self.operation = operation


class ConfigurationError(DataVolumeError):
    operation = "configure"


class OpenError(DataVolumeError):
    operation = "open_file"


class TraversalError(DataVolumeError):
    operation = "visit"


class ReportIOError(DataVolumeError):
    """Input file list or output CSV could not be read or written."""

    operation = "write_report"


class StatsError(DataVolumeError):
    operation = "memory_info"


class CloseError(DataVolumeError):
    operation = "close_file"
