"""
Batch job orchestration.

A batch becomes a Job in the registry; each of its variants is queued as a
work item and picked up by a fixed pool of asyncio workers, so at most
``workers`` pipeline runs are in flight across all jobs. Upstream pacing is
enforced by the throttle wired into the pipeline's sources.

Job lifecycle: queued -> processing -> completed, or -> error when the job
itself cannot be set up. Per-variant failures are recorded as error entries
and never fail the job.
"""
import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import BATCH_MAX_VARIANTS, BATCH_WORKERS, JOB_TTL_SECONDS
from ..errors import NotFoundError, ValidationError, VariantLensError
from .pipeline import VariantPipeline

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BatchJob:
    def __init__(self, job_id: str, variants: Sequence[str], created: float):
        self.job_id = job_id
        self.variants = list(variants)
        self.status = JobStatus.QUEUED
        self.results: List[Optional[Dict[str, Any]]] = [None] * len(self.variants)
        self.progress = {"total": len(self.variants), "done": 0}
        self.error: Optional[str] = None
        self.created = created
        self.created_at = _now_iso()
        self.updated_at = self.created_at
        self.expired = False

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.ERROR)

    def set_processing(self) -> None:
        if self.status == JobStatus.QUEUED:
            self.status = JobStatus.PROCESSING
            self.updated_at = _now_iso()

    def record_result(self, index: int, result: Dict[str, Any]) -> None:
        if self.is_terminal or self.results[index] is not None:
            return
        self.results[index] = result
        self.progress["done"] += 1
        self.updated_at = _now_iso()
        if self.progress["done"] == self.progress["total"]:
            self.status = JobStatus.COMPLETED

    def set_error(self, error: str) -> None:
        if self.is_terminal:
            return
        self.status = JobStatus.ERROR
        self.error = error
        self.updated_at = _now_iso()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "variants_count": len(self.variants),
            "progress": dict(self.progress),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "error": self.error,
            "results": list(self.results),
        }


class JobRegistry:
    """
    Owned store of jobs. Adds and purges take the lock; reads do not.

    Each job's mutable fields are written only by the worker holding one of
    its items, between awaits, so per-entry writes never interleave.
    """

    def __init__(self):
        self._jobs: Dict[str, BatchJob] = {}
        self._lock = asyncio.Lock()

    async def add(self, job: BatchJob) -> None:
        async with self._lock:
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> Optional[BatchJob]:
        return self._jobs.get(job_id)

    async def purge_older_than(self, cutoff: float) -> List[str]:
        async with self._lock:
            expired = [job_id for job_id, job in self._jobs.items() if job.created < cutoff]
            for job_id in expired:
                self._jobs.pop(job_id).expired = True
        if expired:
            logger.info(f"Purged {len(expired)} expired job(s)")
        return expired

    def __len__(self) -> int:
        return len(self._jobs)


class JobOrchestrator:
    def __init__(
        self,
        pipeline: VariantPipeline,
        workers: int = BATCH_WORKERS,
        max_variants: int = BATCH_MAX_VARIANTS,
        ttl_seconds: float = JOB_TTL_SECONDS,
        registry: Optional[JobRegistry] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.pipeline = pipeline
        self.workers = workers
        self.max_variants = max_variants
        self.ttl_seconds = ttl_seconds
        self.registry = registry or JobRegistry()
        self._clock = clock
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def started(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self.started:
            return
        self._queue = asyncio.Queue()
        self._tasks = [asyncio.create_task(self._worker(n)) for n in range(self.workers)]
        self._tasks.append(asyncio.create_task(self._sweeper()))
        logger.info(f"JobOrchestrator started {self.workers} worker(s)")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queue = None
        logger.info("JobOrchestrator stopped")

    async def wait_idle(self) -> None:
        if self._queue is not None:
            await self._queue.join()

    def validate(self, variants: Any) -> List[str]:
        if not isinstance(variants, list) or not all(isinstance(v, str) for v in variants):
            raise ValidationError("variants must be a list of strings")
        if not variants:
            raise ValidationError("At least one variant is required")
        if len(variants) > self.max_variants:
            raise ValidationError(f"Max {self.max_variants} variants allowed per batch")
        return variants

    async def submit(self, variants: Any) -> BatchJob:
        """
        Register a batch and queue its variants.

        Raises:
            ValidationError: empty batch, non-string entries, or too many variants
        """
        variants = self.validate(variants)
        await self.purge_expired()

        job = BatchJob(uuid.uuid4().hex, variants, created=self._clock())
        await self.registry.add(job)
        try:
            self.start()
            for index in range(len(variants)):
                self._queue.put_nowait((job.job_id, index))
        except Exception as e:
            logger.exception(f"Failed to queue job {job.job_id}")
            job.set_error(f"Job setup failed: {e}")
            return job

        logger.info(f"Job {job.job_id} queued with {len(variants)} variant(s)")
        return job

    def status(self, job_id: str) -> BatchJob:
        job = self.registry.get(job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found or expired")
        return job

    async def purge_expired(self) -> List[str]:
        return await self.registry.purge_older_than(self._clock() - self.ttl_seconds)

    async def _sweeper(self) -> None:
        interval = max(1.0, min(self.ttl_seconds, 60.0))
        while True:
            await asyncio.sleep(interval)
            await self.purge_expired()

    async def _worker(self, n: int) -> None:
        while True:
            job_id, index = await self._queue.get()
            try:
                await self._process(job_id, index)
            finally:
                self._queue.task_done()

    async def _process(self, job_id: str, index: int) -> None:
        job = self.registry.get(job_id)
        if job is None or job.expired or job.is_terminal:
            return

        job.set_processing()
        raw = job.variants[index]
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            report = await self.pipeline.run(raw, actor=f"batch:{job_id}")
            result = {"variant": raw, "status": "success", "report": report.model_dump(by_alias=True, mode="json")}
        except VariantLensError as e:
            result = {"variant": raw, "status": "error", "error": e.message, "code": e.code}
        except Exception as e:
            logger.exception(f"Unexpected failure on job {job_id} item {index}")
            result = {"variant": raw, "status": "error", "error": str(e) or type(e).__name__, "code": "INTERNAL_ERROR"}
        finally:
            self.in_flight -= 1

        job.record_result(index, result)
        if job.status == JobStatus.COMPLETED:
            logger.info(f"Job {job_id} completed ({job.progress['done']} variant(s))")
