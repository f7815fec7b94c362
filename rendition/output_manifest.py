"""
OutputManifest - Processed albums with the artifacts produced for each image.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .build_stats import BuildStats
from .job import JobKind, JobResult
from .source_manifest import SourceAlbum, SourceImage, SourceManifest


MANIFEST_FILENAME = 'manifest.json'


@dataclass
class Artifact:
    """A produced file, relative to the output directory."""
    path: str
    width: int
    height: int

    def to_dict(self) -> dict:
        return {'path': self.path, 'width': self.width, 'height': self.height}

    @classmethod
    def from_dict(cls, data: dict) -> 'Artifact':
        return cls(path=data['path'], width=data['width'], height=data['height'])


@dataclass
class ProcessedImage:
    """
    Record for one source image after processing.

    Attributes:
        number: Position index from the source manifest
        source_path: Path relative to the source root
        filename: Source filename
        title: Display title
        description: Description
        dimensions: Upright source (width, height); None if unreadable
        responsive: Responsive target -> artifact
        thumbnail: Thumbnail artifact, if it was produced
        errors: Error messages for this image
    """
    number: int
    source_path: str
    filename: str
    title: Optional[str] = None
    description: Optional[str] = None
    dimensions: Optional[Tuple[int, int]] = None
    responsive: Dict[int, Artifact] = field(default_factory=dict)
    thumbnail: Optional[Artifact] = None
    errors: List[str] = field(default_factory=list)

    @property
    def processable(self) -> bool:
        """True when at least one responsive artifact exists."""
        return self.dimensions is not None and bool(self.responsive)

    def to_dict(self) -> dict:
        return {
            'number': self.number,
            'source_path': self.source_path,
            'filename': self.filename,
            'title': self.title,
            'description': self.description,
            'dimensions': list(self.dimensions) if self.dimensions else None,
            'responsive': {
                str(target): artifact.to_dict()
                for target, artifact in sorted(self.responsive.items())
            },
            'thumbnail': self.thumbnail.to_dict() if self.thumbnail else None,
            'processable': self.processable,
            'errors': list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ProcessedImage':
        dims = data.get('dimensions')
        thumb = data.get('thumbnail')
        return cls(
            number=data['number'],
            source_path=data['source_path'],
            filename=data['filename'],
            title=data.get('title'),
            description=data.get('description'),
            dimensions=tuple(dims) if dims else None,
            responsive={
                int(target): Artifact.from_dict(a)
                for target, a in data.get('responsive', {}).items()
            },
            thumbnail=Artifact.from_dict(thumb) if thumb else None,
            errors=data.get('errors', []),
        )

    @classmethod
    def from_source(cls, image: SourceImage) -> 'ProcessedImage':
        return cls(
            number=image.number,
            source_path=image.source_path,
            filename=image.filename,
            title=image.title,
            description=image.description,
        )


@dataclass
class ProcessedAlbum:
    """An album with its processed images and chosen cover thumbnail."""
    path: str
    title: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    images: List[ProcessedImage] = field(default_factory=list)
    extra: Dict[str, object] = field(default_factory=dict)

    @property
    def unprocessable(self) -> List[ProcessedImage]:
        return [i for i in self.images if not i.processable]

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            'path': self.path,
            'title': self.title,
            'description': self.description,
            'thumbnail': self.thumbnail,
            'images': [i.to_dict() for i in self.images],
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'ProcessedAlbum':
        known = ('path', 'title', 'description', 'thumbnail', 'images')
        return cls(
            path=data['path'],
            title=data.get('title', data['path']),
            description=data.get('description'),
            thumbnail=data.get('thumbnail'),
            images=[ProcessedImage.from_dict(i) for i in data.get('images', [])],
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class OutputManifest:
    """
    Result of a processing run, written to `<output_dir>/manifest.json`.

    Attributes:
        created_at: ISO timestamp when the run finished
        output_dir: Directory artifacts were written under
        albums: Processed albums, in source manifest order
        stats: Run counters (BuildStats.to_dict())
        passthrough: Top-level source manifest fields carried through unchanged
    """
    created_at: str
    output_dir: str
    albums: List[ProcessedAlbum] = field(default_factory=list)
    stats: Dict[str, object] = field(default_factory=dict)
    passthrough: Dict[str, object] = field(default_factory=dict)

    @property
    def total_images(self) -> int:
        return sum(len(a.images) for a in self.albums)

    @property
    def unprocessable_images(self) -> List[ProcessedImage]:
        return [i for a in self.albums for i in a.unprocessable]

    @property
    def total_artifacts(self) -> int:
        count = 0
        for album in self.albums:
            for image in album.images:
                count += len(image.responsive) + (1 if image.thumbnail else 0)
        return count

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = dict(self.passthrough)
        data.update({
            'created_at': self.created_at,
            'output_dir': self.output_dir,
            'albums': [a.to_dict() for a in self.albums],
            'stats': dict(self.stats),
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'OutputManifest':
        """Create from dictionary."""
        known = ('created_at', 'output_dir', 'albums', 'stats')
        return cls(
            created_at=data['created_at'],
            output_dir=data.get('output_dir', ''),
            albums=[ProcessedAlbum.from_dict(a) for a in data.get('albums', [])],
            stats=data.get('stats', {}),
            passthrough={k: v for k, v in data.items() if k not in known},
        )

    def save(self, filepath: Optional[str] = None) -> Path:
        """Save manifest to JSON file (default: <output_dir>/manifest.json)."""
        path = Path(filepath) if filepath else Path(self.output_dir) / MANIFEST_FILENAME
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        return path

    @classmethod
    def load(cls, filepath: str) -> 'OutputManifest':
        """Load manifest from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)


class OutputManifestWriter:
    """
    Builds the output manifest once every job has finished.

    Nothing is aggregated while jobs are running; the writer only sees the
    full result list.
    """

    def __init__(self, output_dir: str, logger: Optional[logging.Logger] = None):
        self.output_dir = str(output_dir)
        self.logger = logger or logging.getLogger(__name__)

    def build(
        self,
        source: SourceManifest,
        results: Sequence[JobResult],
        dimensions: Dict[str, Tuple[int, int]],
        image_errors: Optional[Dict[str, str]] = None,
        stats: Optional[BuildStats] = None
    ) -> OutputManifest:
        """
        Assemble the manifest.

        Args:
            source: Source manifest that was processed
            results: Every job result from the scheduler
            dimensions: source_path -> (width, height) for identified images
            image_errors: source_path -> error for images that got no jobs
            stats: Run statistics; unprocessable images are added to it
        """
        image_errors = image_errors or {}
        by_image: Dict[Tuple[str, str], List[JobResult]] = {}
        for result in results:
            key = (result.job.album_path, result.job.image.source_path)
            by_image.setdefault(key, []).append(result)

        albums = []
        unprocessable = []
        for album in source.albums:
            processed = self._build_album(album, by_image, dimensions, image_errors)
            for image in processed.unprocessable:
                unprocessable.append(image.source_path)
                self.logger.warning(f"Unprocessable image: {album.path}/{image.filename}")
            albums.append(processed)

        if stats is not None:
            stats.unprocessable_images = unprocessable

        return OutputManifest(
            created_at=datetime.now().isoformat(),
            output_dir=self.output_dir,
            albums=albums,
            stats=stats.to_dict() if stats is not None else {},
            passthrough=dict(source.passthrough),
        )

    def _build_album(
        self,
        album: SourceAlbum,
        by_image: Dict[Tuple[str, str], List[JobResult]],
        dimensions: Dict[str, Tuple[int, int]],
        image_errors: Dict[str, str]
    ) -> ProcessedAlbum:
        images = []
        for source_image in sorted(album.images, key=lambda i: i.number):
            image = ProcessedImage.from_source(source_image)
            image.dimensions = dimensions.get(source_image.source_path)
            if source_image.source_path in image_errors:
                image.errors.append(image_errors[source_image.source_path])

            for result in by_image.get((album.path, source_image.source_path), []):
                if not result.succeeded:
                    image.errors.append(f"{result.job.spec.describe()}: {result.error}")
                    continue
                artifact = Artifact(result.job.output_path, result.width, result.height)
                if result.job.kind is JobKind.THUMBNAIL:
                    image.thumbnail = artifact
                else:
                    image.responsive[result.job.target] = artifact

            images.append(image)

        return ProcessedAlbum(
            path=album.path,
            title=album.title,
            description=album.description,
            thumbnail=self._album_thumbnail(images),
            images=images,
            extra=dict(album.extra),
        )

    @staticmethod
    def _album_thumbnail(images: List[ProcessedImage]) -> Optional[str]:
        """Thumbnail of image number 1, else of the first processable image."""
        for image in images:
            if image.number == 1 and image.processable and image.thumbnail:
                return image.thumbnail.path
        for image in images:
            if image.processable and image.thumbnail:
                return image.thumbnail.path
        return None
