"""Two-phase pipeline: hash and index, then resolve names and materialize."""

import logging
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set
from tqdm import tqdm

from .config import Config
from .duplicates import DeduplicationIndex
from .exceptions import CopyFailure, NonRegularFile, ReadFailure, RemovalFailure
from .file_materializer import (
    ACTION_COPIED,
    ACTION_LINKED,
    ACTION_SAME_FILE,
    FileMaterializer,
)
from .media_scanner import MediaFile, MediaScanner
from .timestamps import SOURCE_NOW, destination_name
from .utils import calculate_sha512, format_bytes, get_available_space, get_current_timestamp, get_file_size
from .worker_pool import WorkerPool

logger = logging.getLogger(__name__)

IDLE = 'idle'
HASHING = 'hashing'
BARRIER = 'barrier'
MATERIALIZING = 'materializing'
DONE = 'done'


class Counter:
    """Thread-safe accumulator."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass
class RunCounters:
    """Counters for one run. Each is atomic on its own."""
    read_errors: Counter = field(default_factory=Counter)
    materialized: Counter = field(default_factory=Counter)
    linked: Counter = field(default_factory=Counter)
    copied: Counter = field(default_factory=Counter)
    skipped: Counter = field(default_factory=Counter)
    copy_errors: Counter = field(default_factory=Counter)
    removed: Counter = field(default_factory=Counter)
    remove_errors: Counter = field(default_factory=Counter)
    timestamp_fallbacks: Counter = field(default_factory=Counter)


@dataclass(frozen=True)
class MaterializationJob:
    """Everything one materialization job needs to know."""
    source: Path
    destination_dir: Path
    rename: bool = False
    move: bool = False
    simulate: bool = False


@dataclass
class RunContext:
    """State owned by a single run and shared with its jobs."""
    destination: Path
    rename: bool = False
    move: bool = False
    simulate: bool = False
    index: DeduplicationIndex = field(default_factory=DeduplicationIndex)
    counters: RunCounters = field(default_factory=RunCounters)
    mappings: List[Dict[str, str]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    claimed_names: Set[str] = field(default_factory=set)
    state: str = IDLE
    lock: threading.Lock = field(default_factory=threading.Lock)

    def record_error(self, message: str) -> None:
        with self.lock:
            self.errors.append(message)

    def record_mapping(self, source: Path, destination: Path) -> None:
        with self.lock:
            self.mappings.append({'source': str(source), 'destination': str(destination)})

    def claim_name(self, name: str) -> bool:
        """Reserve a destination name, False if another survivor already has it."""
        with self.lock:
            if name in self.claimed_names:
                return False
            self.claimed_names.add(name)
            return True


def validate_sources(sources: Iterable[str]) -> List[Path]:
    """Existing source directories as absolute paths, duplicates dropped, order kept."""
    folders: List[Path] = []
    for item in sources or []:
        path = Path(item)
        if not path.is_dir():
            logger.warning(f"Ignoring source that is not a directory: {item}")
            continue
        path = Path(os.path.abspath(path))
        if path not in folders:
            folders.append(path)
    return folders


def validate_destination(destination: Optional[str]) -> Optional[Path]:
    """Absolute destination directory, None if it is missing or not a directory."""
    if not destination:
        return None
    path = Path(destination)
    if not path.is_dir():
        return None
    return Path(os.path.abspath(path))


class MediaDeduplicator:
    """Deduplicates media from source directories into a destination."""

    def __init__(self, config: Config, workers: Optional[int] = None):
        """
        Initialize deduplicator with configuration.

        Args:
            config: Configuration instance
            workers: Worker thread count, overrides the configured value
        """
        self.config = config
        self.workers = workers or config.get_worker_count()
        self.queue_size = config.get_queue_size() if workers is None else workers
        self.chunk_size = config.get_chunk_size()
        self.scanner = MediaScanner(config)

    def run(self, sources: Iterable[Path], destination: Path, rename: bool = False,
            move: bool = False, simulate: bool = False, progress: bool = False) -> Dict[str, Any]:
        """
        Run both phases over all eligible files in the sources.

        Args:
            sources: Source directories (listed non-recursively)
            destination: Destination directory, must exist
            rename: Prefix survivors with their resolved timestamp
            move: Remove sources after successful placement
            simulate: Compute and log the mapping only, touch nothing
            progress: Show tqdm progress bars

        Returns:
            Dictionary with run results

        Raises:
            WorkerPoolError: If the worker pool cannot be started
        """
        start = time.time()
        sources = [Path(s) for s in sources]
        context = RunContext(destination=Path(destination), rename=rename, move=move, simulate=simulate)

        logger.info(f"{'SIMULATE: ' if simulate else ''}Starting deduplication of "
                    f"{len(sources)} sources into {destination} "
                    f"(rename={rename}, move={move}, workers={self.workers})")

        scan = self.scanner.scan_sources(sources)
        context.errors.extend(scan['errors'])

        pool = WorkerPool(self.workers, self.queue_size, name='dedup')
        pool.start()
        try:
            self._hash_phase(pool, context, scan['files'], progress)
            context.state = BARRIER
            context.index.freeze()
            logger.info(f"Total number of images: {len(context.index):,}")
            logger.info(f"Total number of duplicates: {context.index.collisions:,}")

            survivors = [path for _, path in context.index.snapshot()]
            if not simulate and self.config.should_check_free_space():
                self._check_free_space(context, survivors)

            self._materialize_phase(pool, context, survivors, progress)
        finally:
            pool.close()
        context.state = DONE

        results = self._build_results(context, sources, scan, pool, time.time() - start)
        logger.info(
            f"{'SIMULATE: ' if simulate else ''}Deduplication complete: "
            f"{results['statistics']['unique_files']:,} unique, "
            f"{results['statistics']['duplicates']:,} duplicates, "
            f"{results['statistics']['copy_errors']:,} copy errors"
        )
        return results

    def _hash_phase(self, pool: WorkerPool, context: RunContext,
                    files: List[MediaFile], progress: bool) -> None:
        context.state = HASHING
        logger.info(f"Calculating hashes for {len(files):,} files...")
        with tqdm(total=len(files), desc="Hashing", unit="files", disable=not progress) as pbar:
            for media_file in files:
                pool.submit(self._job(self.hash_file, context, media_file, pbar))
            pool.wait()

    def _materialize_phase(self, pool: WorkerPool, context: RunContext,
                           survivors: List[Path], progress: bool) -> None:
        context.state = MATERIALIZING
        logger.info(f"Processing {len(survivors):,} unique files...")
        with tqdm(total=len(survivors), desc="Materializing", unit="files", disable=not progress) as pbar:
            for source in survivors:
                job = MaterializationJob(
                    source=source,
                    destination_dir=context.destination,
                    rename=context.rename,
                    move=context.move,
                    simulate=context.simulate,
                )
                pool.submit(self._job(self.materialize, context, job, pbar))
            pool.wait()

    @staticmethod
    def _job(func, context: RunContext, item, pbar):
        def job():
            try:
                func(context, item)
            finally:
                pbar.update(1)
        return job

    def hash_file(self, context: RunContext, media_file: MediaFile) -> None:
        """Hash one file and offer it to the index."""
        try:
            digest = calculate_sha512(media_file.path, self.chunk_size)
        except ReadFailure as e:
            logger.error(f"Error: {e}")
            context.counters.read_errors.increment()
            context.record_error(str(e))
            return

        result = context.index.try_insert(digest, media_file.path)
        if not result.inserted:
            logger.info(
                f"({result.collisions}) File '{media_file.path}' duplicate with: "
                f"'{result.path}'. Ignoring it."
            )

    def materialize(self, context: RunContext, job: MaterializationJob) -> None:
        """Name and place one survivor. Never raises for per-file errors."""
        counters = context.counters
        try:
            name, resolved = destination_name(job.source, job.rename)
            if resolved is not None and resolved.source == SOURCE_NOW:
                counters.timestamp_fallbacks.increment()

            destination = Path(os.path.normpath(job.destination_dir / name))
            if str(job.source) == str(destination):
                logger.info(f"Skipped: source '{job.source}' is the same as '{destination}'")
                counters.skipped.increment()
                return

            if not context.claim_name(name):
                msg = f"Destination name claimed by more than one file: {destination}"
                logger.warning(msg)
                with context.lock:
                    context.warnings.append(msg)

            context.record_mapping(job.source, destination)
            materializer = FileMaterializer(move=job.move, simulate=job.simulate,
                                            chunk_size=self.chunk_size)
            outcome = materializer.materialize(job.source, destination)
        except RemovalFailure as e:
            logger.error(f"Error: removing source file '{job.source}': {e.cause}")
            counters.remove_errors.increment()
            counters.materialized.increment()
            if e.outcome is not None:
                self._count_action(counters, e.outcome.action)
            context.record_error(str(e))
            return
        except (NonRegularFile, CopyFailure) as e:
            logger.error(f"Error: copying file '{job.source}': {e}")
            counters.copy_errors.increment()
            context.record_error(str(e))
            return
        except Exception as e:
            logger.exception(f"Error: unexpected failure for '{job.source}': {e}")
            counters.copy_errors.increment()
            context.record_error(f"Unexpected failure for {job.source}: {e}")
            return

        counters.materialized.increment()
        self._count_action(counters, outcome.action)
        if outcome.removed:
            counters.removed.increment()

    @staticmethod
    def _count_action(counters: RunCounters, action: str) -> None:
        if action == ACTION_LINKED:
            counters.linked.increment()
        elif action == ACTION_COPIED:
            counters.copied.increment()
        elif action == ACTION_SAME_FILE:
            counters.skipped.increment()

    def _check_free_space(self, context: RunContext, survivors: List[Path]) -> None:
        needed = sum(get_file_size(path) for path in survivors)
        available = get_available_space(context.destination)
        if needed > available:
            msg = (
                f"Destination may run out of space: "
                f"need up to {format_bytes(needed)}, have {format_bytes(available)}"
            )
            logger.warning(msg)
            context.warnings.append(msg)
        else:
            logger.info(
                f"Space check OK: need up to {format_bytes(needed)}, "
                f"have {format_bytes(available)}"
            )

    def _build_results(self, context: RunContext, sources: List[Path], scan: Dict[str, Any],
                       pool: WorkerPool, duration: float) -> Dict[str, Any]:
        counters = context.counters
        statistics = {
            'total_files': len(scan['files']),
            'unique_files': len(context.index),
            'duplicates': context.index.collisions,
            'read_errors': counters.read_errors.value,
            'materialized': counters.materialized.value,
            'linked': counters.linked.value,
            'copied': counters.copied.value,
            'skipped': counters.skipped.value,
            'copy_errors': counters.copy_errors.value,
            'removed': counters.removed.value,
            'remove_errors': counters.remove_errors.value,
            'timestamp_fallbacks': counters.timestamp_fallbacks.value,
            'failed_jobs': pool.failed_jobs,
        }
        return {
            'simulate': context.simulate,
            'rename': context.rename,
            'move': context.move,
            'sources': [str(s) for s in sources],
            'destination': str(context.destination),
            'workers': self.workers,
            'timestamp': get_current_timestamp(),
            'duration_seconds': round(duration, 3),
            'statistics': statistics,
            'mappings': sorted(context.mappings, key=lambda m: m['source']),
            'per_source': scan['per_source'],
            'errors': list(context.errors),
            'warnings': list(context.warnings),
            'success': (statistics['copy_errors'] == 0 and statistics['remove_errors'] == 0
                        and statistics['read_errors'] == 0),
        }
