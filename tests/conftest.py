"""Shared fixtures for media deduplication tests."""

import pytest
import yaml


@pytest.fixture
def write_config(tmp_path):
    """Factory fixture: write a YAML config file and return a Config for it."""

    def _write(overrides=None, filename='config.yml'):
        config_data = {
            'deduplication': {
                'extensions': {
                    'photos': ['jpg', 'jpeg', 'png', 'heic'],
                    'videos': ['mp4', 'mov'],
                },
                'process': {
                    'workers': 4,
                    'queue_size': 2,
                    'chunk_size': 4096,
                },
                'safety': {
                    'check_free_space': True,
                },
            },
            'logging': {
                'level': 'INFO',
                'log_dir': None,
            },
        }
        for key_path, value in (overrides or {}).items():
            node = config_data
            keys = key_path.split('.')
            for key in keys[:-1]:
                node = node.setdefault(key, {})
            node[keys[-1]] = value

        config_path = tmp_path / filename
        with open(config_path, 'w') as f:
            yaml.dump(config_data, f)

        from media_deduplicator.config import Config
        return Config(str(config_path))

    return _write


@pytest.fixture
def sample_config(write_config):
    """Config with a small worker pool and a short allow-list."""
    return write_config()


@pytest.fixture
def destination_dir(tmp_path):
    """Empty destination directory."""
    dest = tmp_path / 'destination'
    dest.mkdir()
    return dest


@pytest.fixture
def create_media_files(tmp_path):
    """Factory fixture: create files under a named source directory."""

    def _create(source, files):
        """files: mapping of file name to bytes content."""
        source_dir = tmp_path / source
        source_dir.mkdir(parents=True, exist_ok=True)
        for name, content in files.items():
            (source_dir / name).write_bytes(content)
        return source_dir

    return _create

