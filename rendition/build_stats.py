"""
BuildStats - Counters for one processing run.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import List

from .job import JobOutcome, JobResult


@dataclass
class BuildStats:
    """
    Statistics for a processing run.

    Attributes:
        total_jobs: Jobs dispatched to the scheduler
        encoded: Artifacts encoded from source
        cache_hit: Artifacts already present at their target path
        copied: Artifacts copied from another path with the same cache key
        failed: Failed jobs (plus images that could not be planned)
        bytes_written: Total bytes of artifacts written
        start_time: Start timestamp
        error_details: List of error messages
        unprocessable_images: Source paths with no responsive artifact
    """
    total_jobs: int = 0
    encoded: int = 0
    cache_hit: int = 0
    copied: int = 0
    failed: int = 0
    bytes_written: int = 0
    start_time: float = field(default_factory=time.time)
    error_details: List[str] = field(default_factory=list)
    unprocessable_images: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._lock = threading.Lock()

    def record(self, result: JobResult) -> None:
        """Count one terminal job result."""
        with self._lock:
            if result.outcome is JobOutcome.ENCODED:
                self.encoded += 1
            elif result.outcome is JobOutcome.CACHE_HIT_REUSED:
                self.cache_hit += 1
            elif result.outcome is JobOutcome.CACHE_HIT_COPIED:
                self.copied += 1
            else:
                self.failed += 1
                self.error_details.append(f"{result.job.label}: {result.error}")
            self.bytes_written += result.bytes_written

    def record_failure(self, message: str) -> None:
        """Count a failure that happened before any job existed."""
        with self._lock:
            self.failed += 1
            self.error_details.append(message)

    @property
    def cached(self) -> int:
        """Artifacts served from the cache (reused or copied)."""
        return self.cache_hit + self.copied

    @property
    def completed_count(self) -> int:
        """Jobs in a terminal state."""
        return self.encoded + self.cache_hit + self.copied + self.failed

    @property
    def remaining_count(self) -> int:
        return max(0, self.total_jobs - self.completed_count)

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time

    @property
    def rate_per_second(self) -> float:
        """Completed jobs per second."""
        if self.elapsed_seconds > 0:
            return self.completed_count / self.elapsed_seconds
        return 0.0

    @property
    def rate_per_minute(self) -> float:
        return self.rate_per_second * 60

    @property
    def estimated_remaining_seconds(self) -> float:
        if self.rate_per_second > 0:
            return self.remaining_count / self.rate_per_second
        return 0.0

    def summary(self) -> str:
        """'X cached, Y encoded (Z total)', or 'Y encoded' with no hits."""
        if self.cached > 0:
            total = self.cached + self.encoded
            return f"{self.cached} cached, {self.encoded} encoded ({total} total)"
        return f"{self.encoded} encoded"

    def to_dict(self) -> dict:
        return {
            'encoded': self.encoded,
            'cache_hit': self.cache_hit,
            'copied': self.copied,
            'failed': self.failed,
            'total': self.total_jobs,
            'bytes_written': self.bytes_written,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'unprocessable_images': list(self.unprocessable_images),
        }
