"""Best-effort capture time of a media file, used for renaming."""

import json
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple, Union

import exifread

from .exceptions import TimestampUnavailable

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y%m%dT%H%M%S"
TIME_FORMAT_LENGTH = 15
_PREFIX_PATTERN = re.compile(r"^\d{8}T\d{6}$")

EXIF_TAGS = ('EXIF DateTimeOriginal', 'EXIF DateTimeDigitized', 'Image DateTime')
VIDEO_EXTENSIONS = ('mp4', 'mov', 'm4v', '3gp', 'avi', 'mkv', 'webm', 'flv', 'wmv',
                    'mpg', 'm2v', 'mp2', 'mts')

SOURCE_FILENAME = 'filename'
SOURCE_EXIF = 'exif'
SOURCE_VIDEO = 'video'
SOURCE_BIRTHTIME = 'birthtime'
SOURCE_MTIME = 'mtime'
SOURCE_NOW = 'now'


@dataclass(frozen=True)
class ResolvedTimestamp:
    """A timestamp and where it came from.

    ``already_named`` is set when the time was read from a name this tool
    produced earlier, in which case the file must not be prefixed again.
    """
    value: datetime
    source: str
    already_named: bool = False


def parse_name_prefix(file_name: str) -> Optional[datetime]:
    """Parse a leading YYYYMMDDTHHMMSS prefix, None when absent or invalid."""
    if len(file_name) < TIME_FORMAT_LENGTH:
        return None
    prefix = file_name[:TIME_FORMAT_LENGTH]
    if not _PREFIX_PATTERN.match(prefix):
        return None
    try:
        return datetime.strptime(prefix, TIME_FORMAT)
    except ValueError:
        return None


def _parse_exif_datetime(value: str) -> Optional[datetime]:
    # Format: "2020:07:28 11:49:03"
    try:
        return datetime.strptime(value.strip()[:19], "%Y:%m:%d %H:%M:%S")
    except ValueError:
        return None


def read_exif_datetime(handle) -> Optional[datetime]:
    """Capture time from EXIF tags of an open binary file."""
    try:
        tags = exifread.process_file(handle, details=False)
    except Exception as e:
        logger.debug(f"Could not decode EXIF: {e}")
        return None

    for tag_name in EXIF_TAGS:
        tag = tags.get(tag_name)
        if tag:
            parsed = _parse_exif_datetime(str(tag))
            if parsed:
                return parsed
    return None


def read_video_datetime(file_path: Path) -> Optional[datetime]:
    """Creation time from video container tags using ffprobe, in local time."""
    try:
        result = subprocess.run(
            ['ffprobe', '-v', 'quiet', '-print_format', 'json',
             '-show_entries', 'format_tags=creation_time', str(file_path)],
            capture_output=True, text=True, timeout=10
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Could not run ffprobe for {file_path}: {e}")
        return None

    if result.returncode != 0:
        return None
    try:
        data = json.loads(result.stdout or '{}')
    except ValueError:
        return None

    creation_time = data.get('format', {}).get('tags', {}).get('creation_time', '')
    if not creation_time:
        return None
    # Format: "2020-07-28T11:49:03.000000Z"
    try:
        parsed = datetime.strptime(creation_time[:19], "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc).astimezone().replace(tzinfo=None)


def read_metadata_datetime(file_path: Path, handle) -> Optional[Tuple[datetime, str]]:
    """Embedded capture time: EXIF for any file, then ffprobe for video extensions."""
    value = read_exif_datetime(handle)
    if value:
        return value, SOURCE_EXIF
    if file_path.suffix.lower().lstrip('.') in VIDEO_EXTENSIONS:
        value = read_video_datetime(file_path)
        if value:
            return value, SOURCE_VIDEO
    return None


def resolve_timestamp(file_path: Union[str, Path]) -> ResolvedTimestamp:
    """
    Resolve the best available timestamp for a file.

    Order: name prefix, embedded metadata, filesystem birth time,
    modification time.

    Raises:
        TimestampUnavailable: If the file can be neither opened nor stat'ed
    """
    path = Path(file_path)

    named = parse_name_prefix(path.name)
    if named is not None:
        return ResolvedTimestamp(named, SOURCE_FILENAME, already_named=True)

    try:
        with open(path, 'rb') as handle:
            metadata = read_metadata_datetime(path, handle)
            if metadata:
                return ResolvedTimestamp(metadata[0], metadata[1])
            stat = os.fstat(handle.fileno())
    except OSError as e:
        raise TimestampUnavailable(path, e) from e

    birthtime = getattr(stat, 'st_birthtime', None)
    if birthtime:
        return ResolvedTimestamp(datetime.fromtimestamp(birthtime), SOURCE_BIRTHTIME)
    return ResolvedTimestamp(datetime.fromtimestamp(stat.st_mtime), SOURCE_MTIME)


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIME_FORMAT)


def prefixed_name(value: datetime, file_name: str) -> str:
    """Build '<YYYYMMDDTHHMMSS> <file_name>' with colons stripped."""
    return f"{format_timestamp(value)} {file_name}".replace(':', '')


def destination_name(file_path: Union[str, Path], rename: bool) -> Tuple[str, Optional[ResolvedTimestamp]]:
    """
    Compute the destination file name for a survivor.

    Falls back to the current time when no timestamp can be resolved.

    Returns:
        Tuple of (file name, resolved timestamp or None when rename is off)
    """
    path = Path(file_path)
    if not rename:
        return path.name, None

    try:
        resolved = resolve_timestamp(path)
    except TimestampUnavailable as e:
        logger.warning(f"{e}, using current time")
        resolved = ResolvedTimestamp(datetime.now(), SOURCE_NOW)

    if resolved.already_named:
        return path.name, resolved
    return prefixed_name(resolved.value, path.name), resolved
