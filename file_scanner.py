"""
file_scanner.py

Open every file of the batch under one access strategy, walk its object tree and
record memory counters plus the accumulated file size after each file.

Handles stay open until the whole batch has been scanned, so the measurement sees
the memory held by N simultaneously open files. Inside a file,
datasets whose leading dimension is empty are closed right away; every other dataset
opened during the walk stays open with its file.
"""
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
import os
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import h5py

from alloc_stats import AllocationProbe, AllocationSnapshot
from access_strategy import AccessStrategy
from volume_errors import CloseError, OpenError, TraversalError

_H5_ERRORS = (KeyError, RuntimeError, ValueError, OSError)

EmitFn = Callable[[AllocationSnapshot, int], None]


class ObjectKind(Enum):
    GROUP = "group"
    DATASET = "dataset"
    OTHER = "other"


@dataclass(frozen=True)
class VisitRecord:
    kind: ObjectKind
    name: str
    dimensions: Optional[Tuple[int, ...]] = None

    @property
    def leading_dim_empty(self) -> bool:
        # scalar and null dataspaces have no leading dimension
        return bool(self.dimensions) and self.dimensions[0] == 0


@dataclass
class OpenFile:
    """One open input file and the dataset handles kept alive with it."""
    path: str
    h5file: h5py.File
    size: int
    datasets: List[h5py.Dataset] = field(default_factory=list)
    released: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)
    counts: Dict[ObjectKind, int] = field(default_factory=dict)
    # earlier handle for the same path, if the path was listed twice
    previous: Optional["OpenFile"] = None

    @property
    def is_open(self) -> bool:
        return bool(self.h5file.id.valid)

    def close(self):
        try:
            self.h5file.close()
        except _H5_ERRORS as e:
            raise CloseError(f"Cannot close {self.path!r}: {e}", operation="H5Fclose") from e
        self.datasets.clear()
        if self.previous is not None:
            self.previous.close()


class DatasetVisitor:
    """
    Callback for h5py.h5o.visit. Classifies each object by name, closes empty
    datasets and keeps the rest. A failure on one object is recorded and the walk
    goes on with the next one.
    """

    def __init__(self, root: h5py.Group):
        self.root = root
        self.retained: List[h5py.Dataset] = []
        self.released: List[str] = []
        self.failures: List[Tuple[str, str]] = []
        self.counts = Counter()

    def __call__(self, name):
        # h5o.visit hands over bytes and includes the root itself
        if isinstance(name, bytes):
            name = name.decode("utf-8", "surrogateescape")
        if name == ".":
            return None
        try:
            record = self.visit(name)
        except _H5_ERRORS as e:
            self.failures.append((name, str(e)))
            print(f"[WARN] Skipping object {name} in {self.root.file.filename}: {e}", flush=True)
            return None
        self.counts[record.kind] += 1
        # None keeps h5py visiting
        return None

    def visit(self, name) -> VisitRecord:
        obj = self.root[name]
        if isinstance(obj, h5py.Dataset):
            record = VisitRecord(ObjectKind.DATASET, name, tuple(obj.shape or ()))
            if record.leading_dim_empty:
                # h5py ObjectIDs have no public close; File.close uses the same call
                obj.id._close()
                self.released.append(name)
            else:
                self.retained.append(obj)
            return record
        if isinstance(obj, h5py.Group):
            return VisitRecord(ObjectKind.GROUP, name)
        return VisitRecord(ObjectKind.OTHER, name)


def open_file(path: str, strategy: AccessStrategy) -> h5py.File:
    """Open `path` read-only with the strategy's file-access property list."""
    try:
        fid = h5py.h5f.open(os.fsencode(path), h5py.h5f.ACC_RDONLY, fapl=strategy.fapl)
    except (OSError, ValueError, RuntimeError, TypeError) as e:
        raise OpenError(f"Cannot open {path!r}: {e}", operation="H5Fopen") from e
    return h5py.File(fid)


def file_byte_size(h5file: h5py.File) -> int:
    try:
        return int(h5file.id.get_filesize())
    except _H5_ERRORS as e:
        raise OpenError(f"Cannot get size of {h5file.filename!r}: {e}", operation="H5Fget_filesize") from e


def visit_objects(h5file: h5py.File, visitor: Callable) -> None:
    """Walk every object by name index in native order; links are not re-sorted."""
    h5py.h5o.visit(h5file.id, visitor, idx_type=h5py.h5.INDEX_NAME, order=h5py.h5.ITER_NATIVE)


def scan_file(path: str, strategy: AccessStrategy) -> OpenFile:
    """Open one file, read its size and walk every object reachable from the root."""
    h5file = open_file(path, strategy)
    size = file_byte_size(h5file)

    visitor = DatasetVisitor(h5file)
    try:
        visit_objects(h5file, visitor)
    except _H5_ERRORS as e:
        raise TraversalError(f"Object traversal of {path!r} failed: {e}", operation="H5Ovisit") from e

    return OpenFile(
        path=path,
        h5file=h5file,
        size=size,
        datasets=visitor.retained,
        released=visitor.released,
        failures=visitor.failures,
        counts=dict(visitor.counts),
    )


def scan_all(paths: Iterable[str],
             strategy: AccessStrategy,
             emit: EmitFn,
             probe: Optional[AllocationProbe] = None) -> Dict[str, OpenFile]:
    """
    Scan `paths` in order and return the still-open handles keyed by path.

    `emit(snapshot, acc_file_size)` is called once before the first file (size 0)
    and once after each file. Closing the returned handles is up to the caller.
    """
    probe = probe if probe is not None else AllocationProbe()
    paths = list(paths)

    acc_file_size = 0
    emit(probe.snapshot(), acc_file_size)

    handles: Dict[str, OpenFile] = {}
    for i, path in enumerate(paths, 1):
        opened = scan_file(path, strategy)
        acc_file_size += opened.size
        emit(probe.snapshot(), acc_file_size)

        if path in handles:
            print(f"[WARN] {path} is listed more than once; earlier handle stays open", flush=True)
            opened.previous = handles[path]
        handles[path] = opened

        print(
            f"[INFO] [{i}/{len(paths)}] {path}: {opened.size} bytes, "
            f"{len(opened.datasets)} datasets open, {len(opened.released)} empty released, "
            f"total {acc_file_size} bytes",
            flush=True,
        )
        if opened.failures:
            print(f"[WARN] {len(opened.failures)} objects could not be visited in {path}", flush=True)

    return handles


def close_all(handles: Dict[str, OpenFile]) -> int:
    """Close every handle returned by scan_all. Returns the number of paths closed."""
    for opened in handles.values():
        opened.close()
    return len(handles)
