"""Errors raised while deduplicating media files."""

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class DeduplicationError(Exception):
    """Base class for all per-file and per-run errors."""

    def __init__(self, path: PathLike, message: str, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class EnumerationError(DeduplicationError):
    """A source directory cannot be listed."""

    def __init__(self, path: PathLike, cause: Optional[BaseException] = None):
        super().__init__(path, f"Cannot list source directory {path}", cause)


class ReadFailure(DeduplicationError):
    """A file cannot be read for hashing."""

    def __init__(self, path: PathLike, cause: Optional[BaseException] = None):
        super().__init__(path, f"Cannot read {path}", cause)


class TimestampUnavailable(DeduplicationError):
    """No timestamp at all can be determined for a file."""

    def __init__(self, path: PathLike, cause: Optional[BaseException] = None):
        super().__init__(path, f"Time can't be calculated for: {path}", cause)


class NonRegularFile(DeduplicationError):
    """Source or destination is not a plain file (directory, device, ...)."""

    def __init__(self, path: PathLike, role: str = 'source'):
        self.role = role
        super().__init__(path, f"Non-regular {role} file {path}")


class CopyFailure(DeduplicationError):
    """The byte copy (or the stat before it) failed."""

    def __init__(self, path: PathLike, cause: Optional[BaseException] = None):
        super().__init__(path, f"Failed to copy {path}", cause)


class RemovalFailure(DeduplicationError):
    """Source removal failed after a successful move-mode materialization."""

    def __init__(self, path: PathLike, outcome=None, cause: Optional[BaseException] = None):
        self.outcome = outcome
        super().__init__(path, f"Failed to remove source file {path}", cause)


class WorkerPoolError(RuntimeError):
    """The worker pool cannot start or no longer accepts work."""
