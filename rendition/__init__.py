"""
Responsive image and thumbnail generation for photo galleries.

Takes a scan manifest of albums and source images, produces WebP artifacts
(several responsive sizes plus one cropped thumbnail per image) and skips
any artifact whose source bytes and encoding parameters were seen before.
"""

__version__ = "1.0.0"

from .errors import (
    RenditionError,
    SourceUnreadable,
    DecodeFailure,
    EncodeFailure,
    CacheCorruption,
    ConfigOutOfRange,
    DuplicateOutputError,
)
from .encoding_spec import EncodingSpec, Sharpening
from .album_config import AlbumConfig
from .source_manifest import SourceManifest, SourceAlbum, SourceImage
from .cache_key import derive_key, SourceHasher
from .cache_index import CacheIndex
from .transform import TransformEngine
from .job import Job, JobResult, JobOutcome, JobState
from .planner import JobPlanner
from .observer import JobObserver
from .build_stats import BuildStats
from .build_progress import BuildProgress
from .scheduler import Scheduler
from .output_manifest import OutputManifest, OutputManifestWriter
from .pipeline import Pipeline
from .reporter import Reporter

__all__ = [
    "RenditionError",
    "SourceUnreadable",
    "DecodeFailure",
    "EncodeFailure",
    "CacheCorruption",
    "ConfigOutOfRange",
    "DuplicateOutputError",
    "EncodingSpec",
    "Sharpening",
    "AlbumConfig",
    "SourceManifest",
    "SourceAlbum",
    "SourceImage",
    "derive_key",
    "SourceHasher",
    "CacheIndex",
    "TransformEngine",
    "Job",
    "JobResult",
    "JobOutcome",
    "JobState",
    "JobPlanner",
    "JobObserver",
    "BuildStats",
    "BuildProgress",
    "Scheduler",
    "OutputManifest",
    "OutputManifestWriter",
    "Pipeline",
    "Reporter",
]
