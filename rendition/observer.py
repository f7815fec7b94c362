"""
JobObserver - Receives job lifecycle events from the scheduler.

Observers are called from worker threads and must not raise.
"""

from .build_stats import BuildStats
from .job import Job, JobResult


class JobObserver:
    """No-op observer; subclass and override what you need."""

    def on_build_started(self, total_jobs: int) -> None:
        pass

    def on_job_started(self, job: Job) -> None:
        pass

    def on_job_finished(self, result: JobResult) -> None:
        pass

    def on_build_finished(self, stats: BuildStats) -> None:
        pass
