"""
AlbumConfig - Fully resolved processing settings for one album.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .encoding_spec import EncodingSpec, Sharpening
from .errors import ConfigOutOfRange


DEFAULT_SIZES = [800, 1400, 2080]
DEFAULT_QUALITY = 90
DEFAULT_ASPECT_RATIO = (4, 5)
DEFAULT_THUMBNAIL_SIZE = 400


def available_cpus() -> int:
    """Number of CPUs this process may run on."""
    if hasattr(os, 'sched_getaffinity'):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


def effective_workers(max_processes: Optional[int]) -> int:
    """
    Worker count for a configured maximum.

    None uses every CPU; larger values are clamped down to the CPU count.
    """
    cpus = available_cpus()
    if max_processes is None:
        return cpus
    return max(1, min(max_processes, cpus))


@dataclass
class AlbumConfig:
    """
    Resolved album configuration as handed over by the config stage.

    Attributes:
        sizes: Responsive sizes on the longer edge
        quality: Encoder quality (0-100)
        aspect_ratio: Thumbnail aspect as (width, height)
        thumbnail_size: Thumbnail short edge in pixels
        max_processes: Worker cap, or None for one per CPU
    """
    sizes: List[int] = field(default_factory=lambda: list(DEFAULT_SIZES))
    quality: int = DEFAULT_QUALITY
    aspect_ratio: Tuple[int, int] = DEFAULT_ASPECT_RATIO
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE
    max_processes: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'AlbumConfig':
        """Create from the nested images/thumbnails/processing layout."""
        data = data or {}
        images = data.get('images') or {}
        thumbnails = data.get('thumbnails') or {}
        processing = data.get('processing') or {}

        aspect = thumbnails.get('aspect_ratio', DEFAULT_ASPECT_RATIO)
        return cls(
            sizes=list(images.get('sizes', DEFAULT_SIZES)),
            quality=images.get('quality', DEFAULT_QUALITY),
            aspect_ratio=(aspect[0], aspect[1]) if len(aspect) == 2 else tuple(aspect),
            thumbnail_size=thumbnails.get('size', DEFAULT_THUMBNAIL_SIZE),
            max_processes=processing.get('max_processes'),
        )

    def to_dict(self) -> dict:
        """Convert to the nested layout accepted by from_dict."""
        return {
            'images': {'sizes': list(self.sizes), 'quality': self.quality},
            'thumbnails': {
                'aspect_ratio': list(self.aspect_ratio),
                'size': self.thumbnail_size,
            },
            'processing': {'max_processes': self.max_processes},
        }

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not _is_int(self.quality) or not 0 <= self.quality <= 100:
            errors.append(f"images.quality must be an integer within 0-100, got {self.quality!r}")

        for size in self.sizes:
            if not _is_int(size) or size <= 0:
                errors.append(f"images.sizes entries must be positive integers, got {size!r}")

        if len(self.aspect_ratio) != 2:
            errors.append(f"thumbnails.aspect_ratio must have two entries, got {list(self.aspect_ratio)!r}")
        elif not all(_is_int(v) and v > 0 for v in self.aspect_ratio):
            errors.append(f"thumbnails.aspect_ratio entries must be positive integers, got {list(self.aspect_ratio)!r}")

        if not _is_int(self.thumbnail_size) or self.thumbnail_size <= 0:
            errors.append(f"thumbnails.size must be a positive integer, got {self.thumbnail_size!r}")

        if self.max_processes is not None and (not _is_int(self.max_processes) or self.max_processes < 1):
            errors.append(f"processing.max_processes must be at least 1, got {self.max_processes!r}")

        return errors

    def require_valid(self, album: Optional[str] = None) -> None:
        """Raise ConfigOutOfRange listing every validation error."""
        errors = self.validate()
        if errors:
            raise ConfigOutOfRange('; '.join(errors), album)

    def responsive_spec(self, target: int) -> EncodingSpec:
        return EncodingSpec.responsive(target, self.quality)

    def thumbnail_spec(self) -> EncodingSpec:
        """The album's single thumbnail spec, with the fixed sharpening policy."""
        return EncodingSpec.thumbnail(
            self.aspect_ratio,
            self.thumbnail_size,
            self.quality,
            sharpening=Sharpening.light(),
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
