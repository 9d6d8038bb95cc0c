"""
volume_config.py

Run settings for estimate_data_volume.py.

Defaults live below as module constants. A YAML file can override any of them:

    in_memory_io: true
    chunk_caching: true
    chunk_cache_bytes: 67108864
    core_block_size: 65536

Command-line flags override both.
"""
from dataclasses import dataclass, replace
from typing import Optional

import yaml

from volume_errors import ConfigurationError

IN_MEMORY_IO = True
CHUNK_CACHING = True
CHUNK_CACHE_BYTES = 64 * 1024 * 1024
CORE_BLOCK_SIZE = 64 * 1024


@dataclass(frozen=True)
class RunSettings:
    in_memory_io: bool = IN_MEMORY_IO
    chunk_caching: bool = CHUNK_CACHING
    chunk_cache_bytes: int = CHUNK_CACHE_BYTES
    core_block_size: int = CORE_BLOCK_SIZE


_BOOL_KEYS = ("in_memory_io", "chunk_caching")
_SIZE_KEYS = ("chunk_cache_bytes", "core_block_size")


def _check(key, value):
    if key in _BOOL_KEYS:
        if not isinstance(value, bool):
            raise ConfigurationError(f"'{key}' must be true or false, got {value!r}", operation="load_config")
    elif key in _SIZE_KEYS:
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(f"'{key}' must be a non-negative integer, got {value!r}", operation="load_config")
    else:
        raise ConfigurationError(f"Unknown setting '{key}'", operation="load_config")
    return value


def read_config_file(path: str) -> dict:
    """Load the YAML mapping from `path`. An empty file means no overrides."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config {path}: {e}", operation="load_config") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}", operation="load_config") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must be a mapping, got {type(data).__name__}", operation="load_config")
    return data


def load_settings(config_path: Optional[str] = None, **overrides) -> RunSettings:
    """
    Resolve settings: defaults, then the YAML file (if any), then `overrides`.
    Overrides whose value is None are ignored so argparse defaults can be passed through.
    """
    values = {}
    if config_path:
        values.update(read_config_file(config_path))
    values.update({k: v for k, v in overrides.items() if v is not None})

    for key, value in values.items():
        _check(key, value)
    return replace(RunSettings(), **values)
