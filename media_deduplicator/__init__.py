"""
Media Deduplicator

Finds byte-identical media files across source directories and places one
copy of each into a destination directory, optionally renaming files with
their capture time.
"""

__version__ = "1.0.0"
__author__ = "Homelab Team"

from .config import Config
from .media_scanner import MediaFile, MediaScanner
from .worker_pool import WorkerPool
from .duplicates import DeduplicationIndex, InsertResult
from .timestamps import ResolvedTimestamp, resolve_timestamp
from .file_materializer import FileMaterializer, MaterializationOutcome
from .deduplicator import MediaDeduplicator, RunContext, RunCounters
from .reporter import DeduplicationReporter

__all__ = [
    'Config',
    'MediaFile',
    'MediaScanner',
    'WorkerPool',
    'DeduplicationIndex',
    'InsertResult',
    'ResolvedTimestamp',
    'resolve_timestamp',
    'FileMaterializer',
    'MaterializationOutcome',
    'MediaDeduplicator',
    'RunContext',
    'RunCounters',
    'DeduplicationReporter',
]
