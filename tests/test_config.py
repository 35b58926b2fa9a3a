#!/usr/bin/env python3
"""Tests for media deduplication configuration using should/when pattern."""

import os

import pytest

from media_deduplicator.config import Config, DEFAULT_CONFIG


def test_should_use_defaults_when_no_config_file_exists(tmp_path, monkeypatch):
    """Should fall back to built-in defaults when no config file is found."""

    # When no config file is present in the working directory
    monkeypatch.chdir(tmp_path)
    config = Config()

    # Should still provide the default allow-list
    extensions = config.get_supported_extensions()
    assert 'jpg' in extensions['photos']
    assert 'mp4' in extensions['videos']
    assert len(config.get_all_extensions()) == 21
    assert config.validate_config() == []


def test_should_load_configuration_when_config_file_exists(sample_config):
    """Should read values from the YAML file when it exists."""

    # When configuration is loaded from a file
    # Should use the file values
    assert sample_config.get_worker_count() == 4
    assert sample_config.get_queue_size() == 2
    assert sample_config.get_chunk_size() == 4096
    assert sample_config.get_all_extensions() == ['jpg', 'jpeg', 'png', 'heic', 'mp4', 'mov']


def test_should_fall_back_to_defaults_when_key_missing(write_config):
    """Should use defaults for keys the file does not define."""

    # When the file lacks the safety section
    config = write_config({'deduplication.safety': None})

    # Should use DEFAULT_CONFIG only when the value is missing, not when it is null
    assert config.get('deduplication.safety') is None
    assert config.get('logging.level') == 'INFO'
    assert config.get('does.not.exist', 'fallback') == 'fallback'


def test_should_use_twice_cpu_count_when_workers_is_zero(write_config):
    """Should derive worker count and queue size from CPU count when set to 0."""

    # When workers and queue size are automatic
    config = write_config({'deduplication.process.workers': 0,
                           'deduplication.process.queue_size': 0})

    # Should use 2 * cpu_count for both
    expected = (os.cpu_count() or 1) * 2
    assert config.get_worker_count() == expected
    assert config.get_queue_size() == expected


def test_should_normalize_extensions_when_given_with_dots_and_case(write_config):
    """Should lowercase and strip dots from configured extensions."""

    # When extensions are written with dots and capitals
    config = write_config({'deduplication.extensions': {'photos': ['.JPG'], 'videos': ['Mov']}})

    # Should normalize them
    assert config.get_all_extensions() == ['jpg', 'mov']


@pytest.mark.parametrize('key,value,message', [
    ('deduplication.process.workers', -1, 'Invalid workers'),
    ('deduplication.process.workers', 1000, 'Invalid workers'),
    ('deduplication.process.queue_size', -5, 'Invalid queue_size'),
    ('deduplication.process.chunk_size', 0, 'Invalid chunk_size'),
    ('logging.level', 'LOUD', 'Invalid logging level'),
])
def test_should_report_error_when_value_invalid(write_config, key, value, message):
    """Should report validation errors for out-of-range settings."""

    # When an invalid value is configured
    config = write_config({key: value})

    # Should report it
    errors = config.validate_config()
    assert any(message in error for error in errors), errors


def test_should_report_error_when_no_extensions_configured(write_config):
    """Should refuse an empty extension allow-list."""

    config = write_config({'deduplication.extensions': {'photos': [], 'videos': []}})

    assert "No supported file extensions configured" in config.validate_config()


def test_should_not_share_defaults_between_instances(tmp_path, monkeypatch):
    """Should return copies so callers cannot mutate the defaults."""

    monkeypatch.chdir(tmp_path)
    config = Config()
    config.get('deduplication.extensions.photos').append('xyz')

    assert 'xyz' not in DEFAULT_CONFIG['deduplication']['extensions']['photos']
