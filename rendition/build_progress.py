"""
BuildProgress - Tracks and displays processing progress.
"""

import logging
import threading
from typing import Optional

from .build_stats import BuildStats
from .job import Job, JobOutcome, JobResult
from .observer import JobObserver


class BuildProgress(JobObserver):
    """
    Displays per-artifact results (show_files) or periodic summaries.
    """

    TAGS = {
        JobOutcome.ENCODED: 'ENCODED',
        JobOutcome.CACHE_HIT_REUSED: 'CACHED',
        JobOutcome.CACHE_HIT_COPIED: 'COPIED',
        JobOutcome.FAILED: 'ERROR',
    }

    def __init__(
        self,
        total_jobs: int = 0,
        show_files: bool = False,
        log_interval: int = 100,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            total_jobs: Number of jobs expected (for remaining counts)
            show_files: If True, print each artifact as it completes
            log_interval: Log summary progress every N jobs (when not show_files)
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.stats = BuildStats(total_jobs=total_jobs)
        self.last_logged = 0
        self._lock = threading.Lock()

    def on_build_started(self, total_jobs: int) -> None:
        self.stats = BuildStats(total_jobs=total_jobs)
        self.last_logged = 0

    def on_job_started(self, job: Job) -> None:
        self.logger.debug(f"Started: {job.label}")

    def on_job_finished(self, result: JobResult) -> None:
        """Called from a worker when a job reaches a terminal state."""
        self.stats.record(result)

        with self._lock:
            if self.show_files:
                print(self.format_result(result))
            else:
                self._maybe_log_progress()

    def format_result(self, result: JobResult) -> str:
        job = result.job
        tag = self.TAGS[result.outcome]
        if result.outcome is JobOutcome.FAILED:
            return f"  [{tag}] {job.output_path} -> {result.error or 'failed'}"
        size_str = f"{result.width}x{result.height}"
        if result.bytes_written:
            size_str += f", {self._format_bytes(result.bytes_written)}"
        return f"  [{tag}] {job.output_path} ({size_str})"

    def _maybe_log_progress(self) -> None:
        total_done = self.stats.completed_count
        if total_done - self.last_logged < self.log_interval:
            return
        self.last_logged = total_done

        eta_minutes = self.stats.estimated_remaining_seconds / 60
        self.logger.info(
            f"Progress: {self.stats.summary()}, {self.stats.failed} errors "
            f"({self.stats.rate_per_minute:.1f}/min, "
            f"~{eta_minutes:.0f}m remaining, {self.stats.remaining_count} left)"
        )

    def on_build_finished(self, stats: BuildStats) -> None:
        self.logger.info(f"Images: {stats.summary()}")
        if stats.failed:
            self.logger.warning(f"{stats.failed} artifact(s) failed")

    @staticmethod
    def _format_bytes(bytes_val: Optional[int]) -> str:
        """Format bytes as human-readable string."""
        if bytes_val is None:
            return "unknown"
        for unit in ['B', 'KB', 'MB', 'GB']:
            if bytes_val < 1024:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024
        return f"{bytes_val:.1f} TB"
