"""Fixed-size thread pool fed from a bounded FIFO queue."""

import logging
import queue
import threading
from typing import Callable, List, Optional

from .exceptions import WorkerPoolError

logger = logging.getLogger(__name__)

Job = Callable[[], None]

_STOP = object()


class WorkerPool:
    """Runs zero-argument jobs on a fixed number of threads.

    ``submit`` blocks while the queue is full, which is the only admission
    control. ``wait`` blocks until every job submitted so far has finished and
    is used as the barrier between pipeline phases. ``close`` may be called
    more than once; only the first call stops the workers.
    """

    def __init__(self, workers: int, queue_size: Optional[int] = None, name: str = 'worker'):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.workers = workers
        self.queue_size = queue_size or workers
        self.name = name
        self._queue: "queue.Queue" = queue.Queue(maxsize=self.queue_size)
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._started = False
        self._closed = False
        self._failed_jobs = 0

    @property
    def failed_jobs(self) -> int:
        """Jobs that raised instead of handling their own errors."""
        with self._lock:
            return self._failed_jobs

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> 'WorkerPool':
        """Spawn the worker threads."""
        with self._lock:
            if self._started:
                return self
            self._started = True

        try:
            for i in range(self.workers):
                thread = threading.Thread(
                    target=self._worker, args=(i + 1,),
                    name=f"{self.name}-{i + 1}", daemon=True,
                )
                thread.start()
                self._threads.append(thread)
        except RuntimeError as e:
            raise WorkerPoolError(f"Cannot start worker pool: {e}") from e

        logger.debug(f"Started {self.workers} workers (queue size {self.queue_size})")
        return self

    def submit(self, job: Job) -> None:
        """Enqueue a job, blocking while the queue is full."""
        if not self._started:
            raise WorkerPoolError("Worker pool is not started")
        if self._closed:
            raise WorkerPoolError("Worker pool is closed")
        self._queue.put(job)

    def wait(self) -> None:
        """Block until every submitted job has completed."""
        self._queue.join()

    def close(self) -> None:
        """Stop accepting work and let workers exit once the queue drains."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        for _ in self._threads:
            self._queue.put(_STOP)
        for thread in self._threads:
            thread.join()
        logger.debug(f"Worker pool closed ({self._failed_jobs} failed jobs)")

    def _worker(self, worker_id: int) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                job()
            except Exception:
                logger.exception(f"Unhandled error in job on worker {worker_id}")
                with self._lock:
                    self._failed_jobs += 1
            finally:
                self._queue.task_done()

    def __enter__(self) -> 'WorkerPool':
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
