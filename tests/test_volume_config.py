"""Tests for volume_config."""

import pytest

import volume_config
from volume_config import RunSettings, load_settings
from volume_errors import ConfigurationError


def test_defaults():
    settings = load_settings()
    assert settings == RunSettings()
    assert settings.in_memory_io is True
    assert settings.chunk_caching is True
    assert settings.chunk_cache_bytes == 64 * 1024 * 1024
    assert settings.core_block_size == volume_config.CORE_BLOCK_SIZE


def test_yaml_overrides_defaults(tmp_path):
    cfg = tmp_path / "volume.yaml"
    cfg.write_text("in_memory_io: false\nchunk_cache_bytes: 1024\n")
    settings = load_settings(str(cfg))
    assert settings.in_memory_io is False
    assert settings.chunk_cache_bytes == 1024
    assert settings.chunk_caching is True


def test_keyword_overrides_win_over_yaml(tmp_path):
    cfg = tmp_path / "volume.yaml"
    cfg.write_text("chunk_cache_bytes: 1024\n")
    settings = load_settings(str(cfg), chunk_cache_bytes=2048, chunk_caching=None)
    assert settings.chunk_cache_bytes == 2048
    assert settings.chunk_caching is True


def test_empty_yaml_means_defaults(tmp_path):
    cfg = tmp_path / "empty.yaml"
    cfg.write_text("")
    assert load_settings(str(cfg)) == RunSettings()


@pytest.mark.parametrize(
    "text",
    [
        "unknown_key: 1\n",
        "in_memory_io: yes please\n",
        "chunk_cache_bytes: -1\n",
        "chunk_cache_bytes: true\n",
        "- just\n- a list\n",
        "chunk_cache_bytes: [1, 2\n",
    ],
)
def test_bad_config_raises(tmp_path, text):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text(text)
    with pytest.raises(ConfigurationError):
        load_settings(str(cfg))


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(str(tmp_path / "nope.yaml"))
    assert exc_info.value.operation == "load_config"
