"""Placing survivors at their destination: hard link first, byte copy otherwise."""

import logging
import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .exceptions import CopyFailure, NonRegularFile, RemovalFailure
from .utils import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)

ACTION_SIMULATED = 'simulated'
ACTION_SAME_FILE = 'same_file'
ACTION_LINKED = 'linked'
ACTION_COPIED = 'copied'


@dataclass(frozen=True)
class MaterializationOutcome:
    """What happened to one source file."""
    source: Path
    destination: Path
    action: str
    removed: bool = False


def copy_file_contents(source: Path, destination: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """
    Copy the contents of source into destination.

    The destination is created or truncated, then flushed and fsynced
    before closing.

    Raises:
        CopyFailure: On any I/O error
    """
    try:
        with open(source, 'rb') as src, open(destination, 'wb') as dst:
            shutil.copyfileobj(src, dst, chunk_size)
            dst.flush()
            os.fsync(dst.fileno())
    except OSError as e:
        raise CopyFailure(source, e) from e


def same_entry(source: Path, destination: Path) -> bool:
    """True when both paths name the same directory entry, not just the same inode."""
    source_dir = os.path.realpath(source.parent)
    destination_dir = os.path.realpath(destination.parent)
    return source_dir == destination_dir and source.name == destination.name


def materialize_file(source: Union[str, Path], destination: Union[str, Path],
                     chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """
    Make destination hold the content of source.

    If both paths are the same filesystem entry this is a no-op. An existing
    destination holding other content is unlinked, then a hard link is
    attempted and, if it fails for any reason, the bytes are copied.

    Returns:
        One of ACTION_SAME_FILE, ACTION_LINKED, ACTION_COPIED

    Raises:
        NonRegularFile: If source or an existing destination is not a plain file
        CopyFailure: If source cannot be stat'ed or copying fails
    """
    source = Path(source)
    destination = Path(destination)

    try:
        source_stat = os.stat(source)
    except OSError as e:
        raise CopyFailure(source, e) from e
    if not stat.S_ISREG(source_stat.st_mode):
        raise NonRegularFile(source, 'source')

    try:
        destination_stat = os.stat(destination)
    except FileNotFoundError:
        destination_stat = None
    except OSError as e:
        raise CopyFailure(source, e) from e

    if destination_stat is not None:
        if not stat.S_ISREG(destination_stat.st_mode):
            raise NonRegularFile(destination, 'destination')
        if os.path.samestat(source_stat, destination_stat):
            return ACTION_SAME_FILE
        # Unlink rather than truncate: the old entry may be a hard link to a source.
        try:
            os.unlink(destination)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CopyFailure(source, e) from e

    try:
        os.link(source, destination)
        return ACTION_LINKED
    except OSError as e:
        logger.debug(f"Hard link {source} -> {destination} failed ({e}), copying instead")

    copy_file_contents(source, destination, chunk_size)
    return ACTION_COPIED


class FileMaterializer:
    """Links or copies survivors into place, optionally moving them."""

    def __init__(self, move: bool = False, simulate: bool = False,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.move = move
        self.simulate = simulate
        self.chunk_size = chunk_size

    def materialize(self, source: Union[str, Path],
                    destination: Union[str, Path]) -> MaterializationOutcome:
        """
        Place source at destination.

        In simulate mode nothing on disk is touched. In move mode the source
        is removed after a successful placement, unless source and
        destination are the same directory entry.

        Raises:
            NonRegularFile, CopyFailure: Placement failed, nothing to clean up
            RemovalFailure: Placement succeeded but the source could not be
                removed; the exception carries the outcome
        """
        source = Path(source)
        destination = Path(destination)

        if self.simulate:
            logger.info(f"{source} -> {destination}")
            return MaterializationOutcome(source, destination, ACTION_SIMULATED)

        verb = 'Moving' if self.move else 'Copying'
        logger.info(f"{verb} '{source}' to '{destination}'")

        action = materialize_file(source, destination, self.chunk_size)
        outcome = MaterializationOutcome(source, destination, action)

        if not self.move or same_entry(source, destination):
            return outcome

        try:
            os.remove(source)
        except OSError as e:
            raise RemovalFailure(source, outcome, e) from e
        return MaterializationOutcome(source, destination, action, removed=True)
