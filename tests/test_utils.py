#!/usr/bin/env python3
"""Tests for media deduplication utilities using should/when pattern."""

import hashlib
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from media_deduplicator.exceptions import ReadFailure
from media_deduplicator.utils import (
    calculate_sha512,
    ensure_directory,
    format_bytes,
    get_available_space,
    get_file_size,
)


def test_should_calculate_sha512_hash_when_file_provided(tmp_path):
    """Should calculate correct SHA512 hash when valid file is provided."""

    # When hashing a file with known content
    test_file = tmp_path / 'hello.jpg'
    test_file.write_bytes(b"Hello, World!")

    file_hash = calculate_sha512(test_file)

    # Should match hashlib and be lowercase hex of 128 characters
    assert file_hash == hashlib.sha512(b"Hello, World!").hexdigest()
    assert len(file_hash) == 128
    assert file_hash == file_hash.lower()


def test_should_return_same_digest_when_hashing_twice(tmp_path):
    """Should be deterministic for identical bytes, whatever the chunk size."""

    content = bytes(range(256)) * 1000
    first = tmp_path / 'a.jpg'
    second = tmp_path / 'b.jpg'
    first.write_bytes(content)
    second.write_bytes(content)

    assert calculate_sha512(first) == calculate_sha512(first)
    assert calculate_sha512(first, chunk_size=7) == calculate_sha512(second, chunk_size=4096)


def test_should_return_different_digest_when_content_differs(tmp_path):
    """Should distinguish files differing by a single byte."""

    first = tmp_path / 'a.jpg'
    second = tmp_path / 'b.jpg'
    first.write_bytes(b'aaaa')
    second.write_bytes(b'aaab')

    assert calculate_sha512(first) != calculate_sha512(second)


def test_should_hash_empty_file(tmp_path):
    """Should hash an empty file to the SHA512 of no bytes."""

    empty = tmp_path / 'empty.jpg'
    empty.write_bytes(b'')

    assert calculate_sha512(empty) == hashlib.sha512(b'').hexdigest()


def test_should_raise_read_failure_when_file_missing(tmp_path):
    """Should signal ReadFailure when the file cannot be read."""

    missing = tmp_path / 'missing.jpg'

    with pytest.raises(ReadFailure) as exc_info:
        calculate_sha512(missing)

    assert exc_info.value.path == missing
    assert isinstance(exc_info.value.cause, FileNotFoundError)


def test_should_format_bytes_as_human_readable_when_size_provided():
    """Should format bytes as human-readable string when size is provided."""

    test_cases = [
        (0, "0B"),
        (500, "500.0B"),
        (1024, "1.0KB"),
        (1536, "1.5KB"),
        (1024 * 1024, "1.0MB"),
        (2048 * 1024 * 1024, "2.0GB"),
    ]

    for byte_value, expected_format in test_cases:
        assert format_bytes(byte_value) == expected_format


def test_should_create_nested_directory_when_missing(tmp_path):
    """Should create missing parents and accept existing directories."""

    target = tmp_path / 'a' / 'b' / 'c'

    assert ensure_directory(target) is True
    assert target.is_dir()
    assert ensure_directory(target) is True


def test_should_return_zero_space_when_disk_usage_fails(tmp_path):
    """Should report 0 bytes free when psutil cannot read the volume."""

    with patch('media_deduplicator.utils.psutil.disk_usage', side_effect=OSError('boom')):
        assert get_available_space(tmp_path) == 0


def test_should_warn_and_return_zero_size_when_file_vanished(tmp_path, caplog):
    """Should log a warning, not an error, for a file that disappeared."""

    with caplog.at_level(logging.DEBUG, logger='media_deduplicator.utils'):
        assert get_file_size(tmp_path / 'gone.jpg') == 0

    records = [r for r in caplog.records if 'gone.jpg' in r.getMessage()]
    assert [r.levelno for r in records] == [logging.WARNING]
