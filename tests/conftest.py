"""Shared fixtures: small HDF5 files written with h5py."""

import h5py
import numpy as np
import pytest

from alloc_stats import AllocationSnapshot


def write_sample_file(path, n_rows=10, with_empty=True):
    """Nested groups, a few non-empty datasets and (optionally) empty ones."""
    with h5py.File(path, "w") as f:
        f.create_dataset("top", data=np.arange(n_rows, dtype=np.float64))
        grp = f.create_group("increment_0/phase")
        grp.create_dataset("stress", data=np.ones((n_rows, 3, 3)))
        grp.create_dataset("scalar", data=3.5)
        if with_empty:
            grp.create_dataset("empty_1d", shape=(0,), dtype="f8")
            f.create_dataset("empty_2d", shape=(0, 4), maxshape=(None, 4), chunks=(8, 4), dtype="i4")
        f["named_type"] = np.dtype("f4")
    return path


@pytest.fixture
def sample_files(tmp_path):
    return [
        str(write_sample_file(tmp_path / "a.hdf5", n_rows=10)),
        str(write_sample_file(tmp_path / "b.hdf5", n_rows=500, with_empty=False)),
    ]


@pytest.fixture
def write_list(tmp_path):
    def _write(paths, name="files.txt"):
        list_path = tmp_path / name
        list_path.write_text("".join(p + "\n" for p in paths), encoding="utf-8")
        return str(list_path)
    return _write


class FakeProbe:
    """Deterministic stand-in for AllocationProbe."""

    def __init__(self):
        self.calls = 0

    def snapshot(self):
        self.calls += 1
        return AllocationSnapshot(
            total_alloc_bytes=1000 * self.calls,
            curr_alloc_bytes=100 * self.calls,
            peak_alloc_bytes=150 * self.calls,
        )


@pytest.fixture
def fake_probe():
    return FakeProbe()
