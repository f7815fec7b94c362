"""
Job and JobResult - Units of work and their outcomes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .encoding_spec import EncodingSpec
from .source_manifest import SourceImage


class JobKind(Enum):
    RESPONSIVE = 'responsive'
    THUMBNAIL = 'thumbnail'


class JobState(Enum):
    PENDING = 'pending'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'


class JobOutcome(Enum):
    ENCODED = 'encoded'
    CACHE_HIT_REUSED = 'cached'
    CACHE_HIT_COPIED = 'copied'
    FAILED = 'failed'


@dataclass(eq=False)
class Job:
    """
    One artifact to produce.

    Attributes:
        album_path: Album the image belongs to
        image: Source image record
        source_file: Absolute path of the source file
        spec: Encoding parameters
        output_path: Target path relative to the output directory
        width: Planned output width
        height: Planned output height
        target: Responsive target size (longer edge); None for thumbnails
        state: Current lifecycle state
    """
    album_path: str
    image: SourceImage
    source_file: str
    spec: EncodingSpec
    output_path: str
    width: int
    height: int
    target: Optional[int] = None
    state: JobState = JobState.PENDING

    @property
    def kind(self) -> JobKind:
        return JobKind.THUMBNAIL if self.spec.is_thumbnail else JobKind.RESPONSIVE

    @property
    def label(self) -> str:
        return f"{self.album_path}/{self.image.filename} [{self.spec.describe()}]"


@dataclass
class JobResult:
    """
    Terminal outcome of a job.

    Attributes:
        job: The job
        outcome: What happened
        width: Final artifact width (0 if failed)
        height: Final artifact height (0 if failed)
        cache_key: Cache key, once derived
        bytes_written: Bytes written to output_path (0 when reused)
        error: Error message if failed
        error_type: Error class name if failed
    """
    job: Job
    outcome: JobOutcome
    width: int = 0
    height: int = 0
    cache_key: Optional[str] = None
    bytes_written: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not JobOutcome.FAILED
