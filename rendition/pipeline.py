"""
Pipeline - Turns a source manifest into processed artifacts and an output manifest.
"""

import logging
import os
from typing import Dict, List, Optional, Tuple

from .cache_index import CacheIndex
from .cache_key import SourceHasher
from .errors import DecodeFailure, SourceUnreadable
from .job import Job
from .observer import JobObserver
from .output_manifest import OutputManifest, OutputManifestWriter
from .planner import JobPlanner
from .scheduler import Scheduler
from .source_manifest import SourceManifest
from .transform import TransformEngine


class Pipeline:
    """
    Runs one build: validate, identify, plan, schedule, then write manifests.
    """

    def __init__(
        self,
        source_root: str,
        output_dir: str,
        engine: Optional[TransformEngine] = None,
        cache_index: Optional[CacheIndex] = None,
        max_workers: Optional[int] = None,
        observer: Optional[JobObserver] = None,
        no_cache: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize pipeline.

        Args:
            source_root: Directory source image paths are relative to
            output_dir: Directory artifacts are written under
            engine: Transform engine (default: TransformEngine())
            cache_index: Cache index (default: loaded from output_dir)
            max_workers: Worker cap; None uses the site config's max_processes
            observer: Receives job events
            no_cache: Re-encode everything (cache is still updated)
            logger: Optional logger instance
        """
        self.source_root = str(source_root)
        self.output_dir = str(output_dir)
        self.logger = logger or logging.getLogger(__name__)
        self.engine = engine or TransformEngine(logger=self.logger)
        self.cache_index = cache_index or CacheIndex.load(self.output_dir, logger=self.logger)
        self.max_workers = max_workers
        self.observer = observer
        self.no_cache = no_cache
        self.hasher = SourceHasher(logger=self.logger)
        self.scheduler: Optional[Scheduler] = None
        self._stop_requested = False

    def stop(self) -> None:
        """Stop dispatching new jobs; running jobs finish."""
        self._stop_requested = True
        if self.scheduler is not None:
            self.scheduler.stop()

    def process(self, source: SourceManifest) -> OutputManifest:
        """
        Process every album in the source manifest.

        Raises:
            ConfigOutOfRange: An album config is invalid (nothing is written)
            DuplicateOutputError: Two images would write the same artifact
        """
        for album in source.albums:
            album.config.require_valid(album.path)

        dimensions, image_errors = self.identify_all(source)
        jobs = self.plan(source, dimensions)

        max_workers = self.max_workers if self.max_workers is not None else source.max_processes
        self.scheduler = Scheduler(
            self.cache_index,
            engine=self.engine,
            hasher=self.hasher,
            max_workers=max_workers,
            observer=self.observer,
            no_cache=self.no_cache,
            logger=self.logger,
        )
        if self._stop_requested:
            self.scheduler.stop()

        results = self.scheduler.run(jobs)

        stats = self.scheduler.stats
        for source_path, error in image_errors.items():
            stats.record_failure(f"{source_path}: {error}")

        writer = OutputManifestWriter(self.output_dir, logger=self.logger)
        manifest = writer.build(source, results, dimensions, image_errors, stats)
        path = manifest.save()
        self.logger.info(f"Output manifest written to {path}")

        return manifest

    def identify_all(
        self,
        source: SourceManifest
    ) -> Tuple[Dict[str, Tuple[int, int]], Dict[str, str]]:
        """
        Read the upright dimensions of every source image.

        Returns:
            (source_path -> (width, height), source_path -> error message)
        """
        dimensions = {}
        errors = {}
        for album in source.albums:
            for image in album.images:
                if image.source_path in dimensions or image.source_path in errors:
                    continue
                source_file = os.path.join(self.source_root, image.source_path)
                try:
                    dimensions[image.source_path] = self.engine.identify(source_file)
                except (SourceUnreadable, DecodeFailure) as e:
                    self.logger.error(f"Cannot process {album.path}/{image.filename}: {e}")
                    errors[image.source_path] = str(e)
        return dimensions, errors

    def plan(self, source: SourceManifest, dimensions: Dict[str, Tuple[int, int]]) -> List[Job]:
        """Plan jobs for all albums; output paths must be unique across the run."""
        planner = JobPlanner(logger=self.logger)
        jobs = []
        for album in source.albums:
            album_jobs = planner.plan_album(album, self.source_root, dimensions)
            self.logger.debug(f"{album.path}: {len(album_jobs)} artifacts planned")
            jobs.extend(album_jobs)
        return jobs
