"""Tests for media discovery."""

from pathlib import Path
from unittest.mock import patch

import pytest

from media_deduplicator.exceptions import EnumerationError
from media_deduplicator.media_scanner import MediaFile, MediaScanner, get_extension, list_media_files


class TestListMediaFiles:
    """Test listing of a single directory."""

    def test_filters_by_extension_case_insensitive(self, create_media_files):
        source = create_media_files('src', {
            'a.jpg': b'a',
            'b.JPG': b'b',
            'c.Png': b'c',
            'notes.txt': b'text',
            'noext': b'x',
        })

        files = list_media_files(source, ['jpg', 'png'])

        assert [f.name for f in files] == ['a.jpg', 'b.JPG', 'c.Png']
        assert [f.extension for f in files] == ['jpg', 'jpg', 'png']
        assert all(f.path.is_absolute() for f in files)

    def test_subdirectories_are_not_descended(self, create_media_files):
        source = create_media_files('src', {'top.jpg': b'top'})
        nested = source / 'nested.jpg'
        nested.mkdir()
        (nested / 'inner.jpg').write_bytes(b'inner')

        files = list_media_files(source, ['jpg'])

        assert [f.name for f in files] == ['top.jpg']

    def test_missing_directory_raises_enumeration_error(self, tmp_path):
        with pytest.raises(EnumerationError):
            list_media_files(tmp_path / 'missing', ['jpg'])

    def test_get_extension(self):
        assert get_extension('IMG_0001.HEIC') == 'heic'
        assert get_extension('archive.tar.GZ') == 'gz'
        assert get_extension('README') == ''


class TestScanSources:
    """Test scanning several source directories."""

    def test_collects_files_from_all_sources(self, sample_config, create_media_files):
        first = create_media_files('first', {'a.jpg': b'a', 'b.mov': b'b'})
        second = create_media_files('second', {'c.heic': b'c', 'd.gif': b'd'})

        results = MediaScanner(sample_config).scan_sources([first, second])

        names = sorted(f.name for f in results['files'])
        assert names == ['a.jpg', 'b.mov', 'c.heic']
        assert results['errors'] == []
        assert results['per_source'] == [
            {'path': str(first), 'files': 2},
            {'path': str(second), 'files': 1},
        ]

    def test_unlistable_source_contributes_nothing(self, sample_config, create_media_files, tmp_path):
        good = create_media_files('good', {'a.jpg': b'a'})
        bad = tmp_path / 'gone'

        results = MediaScanner(sample_config).scan_sources([bad, good])

        assert [f.name for f in results['files']] == ['a.jpg']
        assert len(results['errors']) == 1
        assert 'gone' in results['errors'][0]
        assert results['per_source'][0] == {'path': str(bad), 'files': 0}

    def test_permission_error_is_recorded(self, sample_config, create_media_files):
        source = create_media_files('locked', {'a.jpg': b'a'})

        with patch('media_deduplicator.media_scanner.os.scandir', side_effect=PermissionError('denied')):
            results = MediaScanner(sample_config).scan_sources([source])

        assert results['files'] == []
        assert 'denied' in results['errors'][0]


def test_media_file_name():
    media_file = MediaFile(path=Path('/photos/IMG_1.jpg'), extension='jpg')
    assert media_file.name == 'IMG_1.jpg'
