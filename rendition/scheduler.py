"""
Scheduler - Runs jobs on a bounded worker pool against the cache index.
"""

import logging
import os
import shutil
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence

from .album_config import effective_workers
from .build_stats import BuildStats
from .cache_index import CacheIndex
from .cache_key import SourceHasher, derive_key
from .errors import ConfigOutOfRange, RenditionError, SourceUnreadable
from .job import Job, JobOutcome, JobResult, JobState
from .observer import JobObserver
from .transform import TransformEngine


class Scheduler:
    """
    Executes jobs with at most max_workers running at once.

    For each job: reuse the artifact if the cache says the target already
    holds it, copy it if the same key was produced at another path, and
    encode it otherwise. Failures are isolated per job and never retried.
    """

    def __init__(
        self,
        cache_index: CacheIndex,
        engine: Optional[TransformEngine] = None,
        hasher: Optional[SourceHasher] = None,
        max_workers: Optional[int] = None,
        observer: Optional[JobObserver] = None,
        no_cache: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scheduler.

        Args:
            cache_index: Cache index shared by all workers
            engine: Transform engine (default: TransformEngine())
            hasher: Source hash memo (default: a fresh one)
            max_workers: Worker cap; None means one per CPU, larger values are
                clamped to the CPU count, 1 runs jobs sequentially in order
            observer: Receives job started/finished events
            no_cache: Ignore cache lookups (results are still recorded)
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.cache_index = cache_index
        self.engine = engine or TransformEngine(logger=self.logger)
        self.hasher = hasher or SourceHasher(logger=self.logger)
        self.max_workers = effective_workers(max_workers)
        self.observer = observer or JobObserver()
        self.no_cache = no_cache
        self.stats = BuildStats()
        self._planned_keys: Dict[str, Optional[str]] = {}
        self._stop_requested = False

    @property
    def output_dir(self) -> str:
        return self.cache_index.output_dir

    def stop(self) -> None:
        """Request the scheduler to stop dispatching; running jobs finish."""
        self._stop_requested = True

    def run(self, jobs: Sequence[Job]) -> List[JobResult]:
        """
        Run all jobs and wait for every one to finish.

        Args:
            jobs: Jobs to run; their output paths must be unique

        Returns:
            Results in job order (jobs cancelled by stop() are left out)
        """
        self.stats = BuildStats(total_jobs=len(jobs))
        self._planned_keys = self._plan_keys(jobs)
        results: List[Optional[JobResult]] = [None] * len(jobs)

        mode = "sequential" if self.max_workers == 1 else f"{self.max_workers} workers"
        cache_str = " [NO CACHE]" if self.no_cache else ""
        self.logger.info(f"Processing {len(jobs)} artifacts ({mode}){cache_str}")
        self.observer.on_build_started(len(jobs))

        try:
            if self.max_workers == 1:
                self._run_sequential(jobs, results)
            else:
                self._run_parallel(jobs, results)
        finally:
            self.cache_index.save()

        self.observer.on_build_finished(self.stats)
        self.logger.info(
            f"Processing complete: {self.stats.summary()}, {self.stats.failed} failed "
            f"({self.stats.elapsed_seconds:.1f}s)"
        )

        return [r for r in results if r is not None]

    def _plan_keys(self, jobs: Sequence[Job]) -> Dict[str, Optional[str]]:
        """Key each output path will hold after this run; None when unknown."""
        planned: Dict[str, Optional[str]] = {}
        for job in jobs:
            try:
                planned[job.output_path] = derive_key(self.hasher.hash(job.source_file), job.spec)
            except SourceUnreadable:
                planned[job.output_path] = None
        return planned

    def _run_sequential(self, jobs: Sequence[Job], results: List[Optional[JobResult]]) -> None:
        for i, job in enumerate(jobs):
            if self._stop_requested:
                self.logger.info("Stop requested, halting processing")
                break
            results[i] = self._run_job(job)

    def _run_parallel(self, jobs: Sequence[Job], results: List[Optional[JobResult]]) -> None:
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='rendition')
        try:
            futures: Dict[Future, int] = {
                executor.submit(self._run_job, job): i for i, job in enumerate(jobs)
            }
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                results[futures[future]] = future.result()
                if self._stop_requested:
                    self.logger.info("Stop requested, cancelling pending jobs")
                    for pending in futures:
                        pending.cancel()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    def _run_job(self, job: Job) -> JobResult:
        """Run one job to a terminal state and report it."""
        job.state = JobState.RUNNING
        self.observer.on_job_started(job)

        try:
            result = self._execute(job)
            job.state = JobState.COMPLETED
        except ConfigOutOfRange:
            job.state = JobState.FAILED
            raise
        except (RenditionError, OSError) as e:
            job.state = JobState.FAILED
            self.logger.error(f"Error processing {job.label}: {e}")
            result = JobResult(
                job=job,
                outcome=JobOutcome.FAILED,
                error=str(e),
                error_type=type(e).__name__,
            )

        self.stats.record(result)
        self.observer.on_job_finished(result)
        return result

    def _execute(self, job: Job) -> JobResult:
        job.spec.validate()

        source_hash = self.hasher.hash(job.source_file)
        key = derive_key(source_hash, job.spec)

        if not self.no_cache:
            cached = self._from_cache(job, key)
            if cached is not None:
                return cached

        self.logger.debug(f"Encoding: {job.label}")
        data = self._read_source(job.source_file)
        rendered = self.engine.render(data, job.spec, job.source_file)
        self._write_atomic(job.output_path, rendered.data)
        self.cache_index.record(key, job.output_path)

        return JobResult(
            job=job,
            outcome=JobOutcome.ENCODED,
            width=rendered.width,
            height=rendered.height,
            cache_key=key,
            bytes_written=len(rendered.data),
        )

    def _from_cache(self, job: Job, key: str) -> Optional[JobResult]:
        entry = self.cache_index.lookup(key)
        if entry is None:
            return None

        if job.output_path in entry.outputs:
            self.logger.debug(f"Cached: {job.label}")
            return JobResult(
                job=job,
                outcome=JobOutcome.CACHE_HIT_REUSED,
                width=job.width,
                height=job.height,
                cache_key=key,
            )

        # A path this run will rewrite under another key may change while we copy it
        rewritten = [p for p in entry.paths if p in self._planned_keys and self._planned_keys[p] != key]
        existing = self.cache_index.find_any_existing_output_for(key, exclude=rewritten)
        if existing is None:
            return None

        self.logger.debug(f"Copying {existing} -> {job.output_path}")
        written = self._copy_atomic(existing, job.output_path)
        self.cache_index.record(key, job.output_path)
        return JobResult(
            job=job,
            outcome=JobOutcome.CACHE_HIT_COPIED,
            width=job.width,
            height=job.height,
            cache_key=key,
            bytes_written=written,
        )

    @staticmethod
    def _read_source(path: str) -> bytes:
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            raise SourceUnreadable(f"Cannot read source ({e.strerror or e})", path) from e

    def _temp_for(self, output_path: str) -> str:
        target = os.path.join(self.output_dir, output_path)
        directory = os.path.dirname(target)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{os.path.basename(target)}.", suffix='.tmp', dir=directory
        )
        os.close(fd)
        return tmp_path

    def _write_atomic(self, output_path: str, data: bytes) -> None:
        """Write data so output_path is either absent, old, or complete."""
        tmp_path = self._temp_for(output_path)
        try:
            with open(tmp_path, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, os.path.join(self.output_dir, output_path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _copy_atomic(self, existing: str, output_path: str) -> int:
        source = os.path.join(self.output_dir, existing)
        tmp_path = self._temp_for(output_path)
        try:
            shutil.copyfile(source, tmp_path)
            os.replace(tmp_path, os.path.join(self.output_dir, output_path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return os.path.getsize(os.path.join(self.output_dir, output_path))
