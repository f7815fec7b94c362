"""
JobPlanner - Enumerates every artifact a build needs.
"""

import logging
import os
import posixpath
from typing import Dict, List, Optional, Tuple

from .album_config import AlbumConfig
from .dimensions import responsive_sizes, thumbnail_dimensions
from .encoding_spec import OUTPUT_FORMAT
from .errors import DuplicateOutputError
from .job import Job
from .source_manifest import SourceAlbum, SourceImage


class JobPlanner:
    """
    Turns albums and image dimensions into independent jobs.

    Per image: one job for each configured size that does not exceed the
    source's longer edge (or a single native-size job when all do), plus
    exactly one thumbnail job.
    """

    def __init__(
        self,
        output_format: str = OUTPUT_FORMAT,
        logger: Optional[logging.Logger] = None
    ):
        self.output_format = output_format
        self.logger = logger or logging.getLogger(__name__)
        self._claimed: Dict[str, str] = {}

    def responsive_path(self, album_path: str, image: SourceImage, target: int) -> str:
        return posixpath.join(album_path, f"{image.stem}-{target}.{self.output_format}")

    def thumbnail_path(self, album_path: str, image: SourceImage) -> str:
        return posixpath.join(album_path, f"{image.stem}-thumb.{self.output_format}")

    def _claim(self, output_path: str, owner: str) -> None:
        previous = self._claimed.get(output_path)
        if previous is not None:
            raise DuplicateOutputError(
                f"{owner} and {previous} both produce the same output", output_path
            )
        self._claimed[output_path] = owner

    def plan_image(
        self,
        album_path: str,
        image: SourceImage,
        source_file: str,
        dimensions: Tuple[int, int],
        config: AlbumConfig
    ) -> List[Job]:
        """
        Plan all jobs for one image.

        Args:
            album_path: Album path; outputs are written beneath it
            image: Source image record
            source_file: Absolute source path
            dimensions: Upright source dimensions (width, height)
            config: Resolved album configuration

        Returns:
            Responsive jobs in configured order, then the thumbnail job
        """
        jobs = []

        for size in responsive_sizes(dimensions, config.sizes):
            output_path = self.responsive_path(album_path, image, size.target)
            self._claim(output_path, image.source_path)
            jobs.append(Job(
                album_path=album_path,
                image=image,
                source_file=source_file,
                spec=config.responsive_spec(size.target),
                output_path=output_path,
                width=size.width,
                height=size.height,
                target=size.target,
            ))

        thumb_w, thumb_h = thumbnail_dimensions(config.aspect_ratio, config.thumbnail_size)
        output_path = self.thumbnail_path(album_path, image)
        self._claim(output_path, image.source_path)
        jobs.append(Job(
            album_path=album_path,
            image=image,
            source_file=source_file,
            spec=config.thumbnail_spec(),
            output_path=output_path,
            width=thumb_w,
            height=thumb_h,
        ))

        skipped = [s for s in config.sizes if s > max(dimensions)]
        if skipped:
            self.logger.debug(
                f"{image.source_path}: {dimensions[0]}x{dimensions[1]}, "
                f"skipping sizes {skipped} (no upscaling)"
            )

        return jobs

    def plan_album(
        self,
        album: SourceAlbum,
        source_root: str,
        dimensions: Dict[str, Tuple[int, int]]
    ) -> List[Job]:
        """
        Plan jobs for every image of an album that has known dimensions.

        Args:
            album: Album to plan
            source_root: Directory source paths are relative to
            dimensions: source_path -> (width, height); images missing here
                could not be read and get no jobs
        """
        jobs = []
        for image in album.images:
            if image.source_path not in dimensions:
                continue
            jobs.extend(self.plan_image(
                album.path,
                image,
                os.path.join(source_root, image.source_path),
                dimensions[image.source_path],
                album.config,
            ))
        return jobs
