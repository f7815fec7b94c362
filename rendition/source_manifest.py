"""
SourceManifest - Albums and images handed over by the scan stage.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .album_config import AlbumConfig


@dataclass
class SourceImage:
    """
    One source photograph.

    Attributes:
        number: Position index assigned by the scan stage
        source_path: Path relative to the source root
        filename: Base filename
        title: Display title (passed through untouched)
        description: Description (passed through untouched)
    """
    number: int
    source_path: str
    filename: str
    title: Optional[str] = None
    description: Optional[str] = None

    @property
    def stem(self) -> str:
        return os.path.splitext(self.filename)[0]

    def to_dict(self) -> dict:
        return {
            'number': self.number,
            'source_path': self.source_path,
            'filename': self.filename,
            'title': self.title,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SourceImage':
        source_path = data['source_path']
        return cls(
            number=data['number'],
            source_path=source_path,
            filename=data.get('filename') or os.path.basename(source_path),
            title=data.get('title'),
            description=data.get('description'),
        )


@dataclass
class SourceAlbum:
    """
    An album with its resolved configuration.

    Attributes:
        path: Album path relative to the source root; outputs mirror it
        title: Display title
        description: Album description
        config: Resolved processing configuration
        images: Images in the album
        extra: Any other album fields, passed through to the output manifest
    """
    path: str
    title: str
    config: AlbumConfig = field(default_factory=AlbumConfig)
    images: List[SourceImage] = field(default_factory=list)
    description: Optional[str] = None
    extra: Dict[str, object] = field(default_factory=dict)

    KNOWN_FIELDS = ('path', 'title', 'description', 'config', 'images')

    @classmethod
    def from_dict(cls, data: dict, site_config: Optional[dict] = None) -> 'SourceAlbum':
        """Create from dictionary; albums without their own config use site_config."""
        config_data = data.get('config')
        if config_data is None:
            config_data = site_config
        return cls(
            path=data['path'],
            title=data.get('title', data['path']),
            description=data.get('description'),
            config=AlbumConfig.from_dict(config_data),
            images=[SourceImage.from_dict(i) for i in data.get('images', [])],
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_FIELDS},
        )


@dataclass
class SourceManifest:
    """
    Scan stage output: albums plus fields the pipeline passes through.

    Attributes:
        albums: Albums to process
        site_config: Site-level config (provides processing.max_processes)
        passthrough: Remaining top-level fields (navigation, pages, ...)
    """
    albums: List[SourceAlbum] = field(default_factory=list)
    site_config: Dict[str, object] = field(default_factory=dict)
    passthrough: Dict[str, object] = field(default_factory=dict)

    @property
    def total_images(self) -> int:
        return sum(len(a.images) for a in self.albums)

    @property
    def max_processes(self) -> Optional[int]:
        processing = self.site_config.get('processing') or {}
        return processing.get('max_processes')

    @classmethod
    def from_dict(cls, data: dict) -> 'SourceManifest':
        """Create from dictionary."""
        site_config = data.get('config') or {}
        return cls(
            albums=[SourceAlbum.from_dict(a, site_config) for a in data.get('albums', [])],
            site_config=site_config,
            passthrough={k: v for k, v in data.items() if k != 'albums'},
        )

    @classmethod
    def load(cls, filepath: str, logger: Optional[logging.Logger] = None) -> 'SourceManifest':
        """Load from a JSON file."""
        logger = logger or logging.getLogger(__name__)
        path = Path(filepath)
        with open(path, 'r') as f:
            data = json.load(f)
        manifest = cls.from_dict(data)
        logger.debug(f"Loaded source manifest: {len(manifest.albums)} albums, {manifest.total_images} images")
        return manifest
