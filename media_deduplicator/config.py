"""Configuration management for media deduplication."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'deduplication': {
        'extensions': {
            'photos': ['jpg', 'gif', 'png', 'jpeg', 'heic', 'bmp', 'tif', 'jpe', 'raw'],
            'videos': ['mp4', 'mov', 'm4v', '3gp', 'avi', 'mkv', 'webm',
                       'flv', 'wmv', 'mpg', 'm2v', 'mp2'],
        },
        'process': {
            'workers': 0,
            'queue_size': 0,
            'chunk_size': 1024 * 1024,
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

_MISSING = object()


class Config:
    """Manages configuration for media deduplication from YAML files."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, searches for config files
                and falls back to built-in defaults when none is found.
        """
        self.config_path = config_path or self._find_config_file()
        self.config: Dict[str, Any] = {}
        self._load_config()

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations."""
        possible_paths = [
            Path(__file__).parent / "config.local.yml",
            Path(__file__).parent / "config.yml",
            Path.cwd() / "config.local.yml",
            Path.cwd() / "config.yml",
        ]

        for config_file in possible_paths:
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return str(config_file.resolve())

        logger.debug("No configuration file found, using built-in defaults")
        return None

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if self.config_path is None:
            self.config = {}
            return
        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
        except Exception as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            raise

    @staticmethod
    def _lookup(data: Dict[str, Any], keys: List[str]) -> Any:
        value = data
        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return _MISSING

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Values missing from the loaded file fall back to DEFAULT_CONFIG.

        Args:
            key_path: Dot-separated path like 'deduplication.process.workers'
            default: Default value if key not found anywhere

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self._lookup(self.config, keys)
        if value is _MISSING:
            value = self._lookup(DEFAULT_CONFIG, keys)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def get_supported_extensions(self) -> Dict[str, List[str]]:
        """Get supported file extensions for photos and videos."""
        extensions = self.get('deduplication.extensions', {}) or {}
        return {
            'photos': [str(ext).lower().lstrip('.') for ext in extensions.get('photos') or []],
            'videos': [str(ext).lower().lstrip('.') for ext in extensions.get('videos') or []],
        }

    def get_all_extensions(self) -> List[str]:
        """Get the flat extension allow-list."""
        extensions = self.get_supported_extensions()
        return extensions['photos'] + extensions['videos']

    def get_worker_count(self) -> int:
        """Get number of worker threads; 0 in config means twice the CPU count."""
        workers = self.get('deduplication.process.workers', 0) or 0
        if workers > 0:
            return workers
        return (os.cpu_count() or 1) * 2

    def get_queue_size(self) -> int:
        """Get the bounded job queue size; 0 in config means one slot per worker."""
        queue_size = self.get('deduplication.process.queue_size', 0) or 0
        if queue_size > 0:
            return queue_size
        return self.get_worker_count()

    def get_chunk_size(self) -> int:
        """Get read chunk size used for hashing and copying."""
        return self.get('deduplication.process.chunk_size', 1024 * 1024)

    def should_check_free_space(self) -> bool:
        """Check if the destination free space preflight is enabled."""
        return bool(self.get('deduplication.safety.check_free_space', True))

    def get_log_level(self) -> str:
        """Get logging level."""
        return self.get('logging.level', 'INFO')

    def get_log_dir(self) -> Optional[str]:
        """Get log directory, None disables file logging."""
        return self.get('logging.log_dir')

    def validate_config(self) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of validation error messages
        """
        errors = []

        if not self.get_all_extensions():
            errors.append("No supported file extensions configured")

        workers = self.get('deduplication.process.workers', 0)
        if not isinstance(workers, int) or workers < 0 or workers > 256:
            errors.append(f"Invalid workers value: {workers} (must be 0-256)")

        queue_size = self.get('deduplication.process.queue_size', 0)
        if not isinstance(queue_size, int) or queue_size < 0:
            errors.append(f"Invalid queue_size value: {queue_size} (must be >= 0)")

        chunk_size = self.get('deduplication.process.chunk_size')
        if not isinstance(chunk_size, int) or chunk_size <= 0:
            errors.append(f"Invalid chunk_size value: {chunk_size} (must be > 0)")

        log_level = self.get_log_level()
        if str(log_level).upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR'):
            errors.append(f"Invalid logging level: {log_level}")

        return errors

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"Config(path={self.config_path}, extensions={len(self.get_all_extensions())})"
