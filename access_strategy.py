"""
access_strategy.py

Build the HDF5 file-access strategy used for every file in a run.

Two modes:
  - direct file access: the library's default file-access property list, untouched
  - in-memory buffering: the core driver (whole file read into memory, no backing store),
    optionally with a resized raw-data chunk cache

The chunk cache call takes all of its parameters at once, so the defaults are read back
from the property list and only the byte capacity is replaced before writing them again.
In practice a larger chunk cache helps decompression far less than in-memory I/O does.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import h5py

from volume_config import CORE_BLOCK_SIZE
from volume_errors import ConfigurationError

# h5py raises these for rejected property-list calls
_PROPERTY_ERRORS = (RuntimeError, ValueError, TypeError, OverflowError, OSError)


class BufferingMode(Enum):
    DIRECT_FILE = "direct"
    IN_MEMORY_BUFFER = "core"


@dataclass(frozen=True)
class CacheConfig:
    """Raw-data chunk cache parameters, in the order h5py's get_cache/set_cache use."""
    slot_count: int
    byte_capacity: int
    preemption_weight: float
    # unused by HDF5 but still part of the call
    metadata_elements: int = 0

    def __post_init__(self):
        if self.slot_count <= 0:
            raise ConfigurationError(f"slot_count must be positive, got {self.slot_count}", operation="set_cache")
        if self.byte_capacity < 0:
            raise ConfigurationError(f"byte_capacity must be >= 0, got {self.byte_capacity}", operation="set_cache")
        if not 0.0 <= self.preemption_weight <= 1.0:
            raise ConfigurationError(
                f"preemption_weight must be in [0, 1], got {self.preemption_weight}", operation="set_cache"
            )


@dataclass(frozen=True)
class AccessStrategy:
    mode: BufferingMode
    cache: Optional[CacheConfig] = None
    # None selects H5P_DEFAULT
    fapl: Optional[h5py.h5p.PropFAID] = field(default=None, compare=False, repr=False)

    def describe(self) -> str:
        if self.mode is BufferingMode.DIRECT_FILE:
            return "direct file access (default property list)"
        if self.cache is None:
            return "in-memory buffering (core driver)"
        return (
            f"in-memory buffering (core driver), chunk cache {self.cache.byte_capacity} bytes, "
            f"{self.cache.slot_count} slots, w0={self.cache.preemption_weight}"
        )


def create_fapl() -> h5py.h5p.PropFAID:
    try:
        return h5py.h5p.create(h5py.h5p.FILE_ACCESS)
    except _PROPERTY_ERRORS as e:
        raise ConfigurationError(f"Cannot create file-access property list: {e}", operation="H5Pcreate") from e


def default_cache_config(fapl: h5py.h5p.PropFAID) -> CacheConfig:
    """Current cache parameters of `fapl` (the library defaults on a fresh list)."""
    try:
        mdc_nelmts, rdcc_nslots, rdcc_nbytes, rdcc_w0 = fapl.get_cache()
    except _PROPERTY_ERRORS as e:
        raise ConfigurationError(f"Cannot read chunk cache parameters: {e}", operation="get_cache") from e
    return CacheConfig(
        slot_count=rdcc_nslots,
        byte_capacity=rdcc_nbytes,
        preemption_weight=rdcc_w0,
        metadata_elements=mdc_nelmts,
    )


def apply_cache_config(fapl: h5py.h5p.PropFAID, cache: CacheConfig) -> None:
    try:
        fapl.set_cache(cache.metadata_elements, cache.slot_count, cache.byte_capacity, cache.preemption_weight)
    except _PROPERTY_ERRORS as e:
        raise ConfigurationError(f"Cannot set chunk cache parameters: {e}", operation="set_cache") from e


def build_strategy(use_in_memory_buffer: bool,
                   use_chunk_cache: bool,
                   cache_byte_capacity: int,
                   core_block_size: int = CORE_BLOCK_SIZE) -> AccessStrategy:
    """
    Return the access strategy for the run.

    The chunk cache only applies to in-memory buffering; with direct access the request
    is ignored. Raises ConfigurationError if any property is rejected.
    """
    if not use_in_memory_buffer:
        return AccessStrategy(mode=BufferingMode.DIRECT_FILE)

    if cache_byte_capacity < 0:
        raise ConfigurationError(f"Chunk cache size must be >= 0, got {cache_byte_capacity}", operation="set_cache")

    fapl = create_fapl()
    try:
        fapl.set_fapl_core(core_block_size, False)
    except _PROPERTY_ERRORS as e:
        raise ConfigurationError(f"Cannot select the core driver: {e}", operation="set_fapl_core") from e

    cache = None
    if use_chunk_cache:
        defaults = default_cache_config(fapl)
        cache = CacheConfig(
            slot_count=defaults.slot_count,
            byte_capacity=cache_byte_capacity,
            preemption_weight=defaults.preemption_weight,
            metadata_elements=defaults.metadata_elements,
        )
        apply_cache_config(fapl, cache)

    return AccessStrategy(mode=BufferingMode.IN_MEMORY_BUFFER, cache=cache, fapl=fapl)
