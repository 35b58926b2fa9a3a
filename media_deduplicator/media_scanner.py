"""Media discovery across source directories."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .config import Config
from .exceptions import EnumerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaFile:
    """A discovered file eligible for deduplication."""
    path: Path
    extension: str

    @property
    def name(self) -> str:
        """Get filename without path."""
        return self.path.name


def get_extension(file_name: str) -> str:
    """Lowercased extension without the dot, '' when there is none."""
    return os.path.splitext(file_name)[1].lower().lstrip('.')


def list_media_files(directory: Path, supported_extensions: Iterable[str]) -> List[MediaFile]:
    """
    List eligible media files directly inside a directory.

    Subdirectories are skipped, not descended into.

    Args:
        directory: Directory to list
        supported_extensions: Allowed extensions (without dots)

    Returns:
        MediaFile entries sorted by name

    Raises:
        EnumerationError: If the directory cannot be listed
    """
    allowed = {ext.lower().lstrip('.') for ext in supported_extensions}
    media_files = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_dir():
                        continue
                except OSError as e:
                    logger.debug(f"Skipping unreadable entry {entry.path}: {e}")
                    continue
                extension = get_extension(entry.name)
                if extension in allowed:
                    media_files.append(MediaFile(path=Path(entry.path).absolute(), extension=extension))
    except OSError as e:
        raise EnumerationError(directory, e) from e

    media_files.sort(key=lambda f: f.name)
    return media_files


class MediaScanner:
    """Enumerates eligible media files from source directories."""

    def __init__(self, config: Config):
        self.config = config
        self.all_extensions = config.get_all_extensions()

    def scan_sources(self, sources: Iterable[Path]) -> Dict[str, Any]:
        """Enumerate every source directory (non-recursive).

        A source that cannot be listed is logged and recorded in 'errors';
        it simply contributes no files.

        Returns dict with 'files', 'errors' and 'per_source' counts.
        """
        results: Dict[str, Any] = {
            'files': [],
            'errors': [],
            'per_source': [],
        }

        for source in sources:
            source_dir = Path(source)
            logger.info(f"Scanning source: {source_dir}")
            try:
                media_files = list_media_files(source_dir, self.all_extensions)
            except EnumerationError as e:
                logger.error(f"Error: {e}")
                results['errors'].append(str(e))
                results['per_source'].append({'path': str(source_dir), 'files': 0})
                continue

            logger.info(f"Source {source_dir}: {len(media_files):,} media files")
            results['files'].extend(media_files)
            results['per_source'].append({'path': str(source_dir), 'files': len(media_files)})

        logger.info(
            f"Scan complete: {len(results['files']):,} files across "
            f"{len(results['per_source'])} sources"
        )
        return results
