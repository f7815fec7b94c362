"""
TransformEngine - Decode, resize, crop, sharpen and encode images.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, ImageFilter, ImageOps

from .dimensions import (
    center_crop_box,
    fill_dimensions,
    scale_to_longer_edge,
    thumbnail_dimensions,
)
from .encoding_spec import EncodingSpec, ResponsiveWidth, Sharpening
from .errors import DecodeFailure, EncodeFailure, SourceUnreadable


# EXIF orientations that swap width and height
TRANSPOSED_ORIENTATIONS = (5, 6, 7, 8)
EXIF_ORIENTATION_TAG = 0x0112

# Encoder effort; part of the output bytes, so changing it needs a TRANSFORM_VERSION bump
WEBP_METHOD = 4


@dataclass
class RenderedImage:
    """Encoded artifact bytes and their pixel dimensions."""
    data: bytes
    width: int
    height: int


class TransformEngine:
    """
    Image transforms built on Pillow.

    Given identical source bytes and an identical EncodingSpec, render()
    produces identical output bytes; the cache relies on this.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize transform engine.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    def identify(self, source: str) -> Tuple[int, int]:
        """
        Read upright pixel dimensions from the file header.

        Only the header is read; pixel data is not decoded.

        Args:
            source: Source image path
        """
        try:
            f = open(source, 'rb')
        except OSError as e:
            raise SourceUnreadable(f"Cannot read source ({e.strerror or e})", source) from e

        with f:
            try:
                with Image.open(f) as img:
                    width, height = img.size
                    orientation = img.getexif().get(EXIF_ORIENTATION_TAG)
            except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
                raise DecodeFailure(f"Cannot identify image ({e})", source) from e

        if orientation in TRANSPOSED_ORIENTATIONS:
            return height, width
        return width, height

    def decode(self, image_data: bytes, source: Optional[str] = None) -> Image.Image:
        """Fully decode image bytes into an upright RGB or RGBA image."""
        try:
            img = Image.open(io.BytesIO(image_data))
            img.load()
            img = ImageOps.exif_transpose(img)
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeFailure(f"Cannot decode image ({e})", source) from e
        return self._convert_color_mode(img)

    def _convert_color_mode(self, img: Image.Image) -> Image.Image:
        """Normalise to RGB, or RGBA when the source carries transparency."""
        if img.mode == 'RGBA' or img.mode == 'RGB':
            return img
        if img.mode in ('LA', 'PA'):
            return img.convert('RGBA')
        if img.mode == 'P':
            if 'transparency' in img.info:
                return img.convert('RGBA')
            return img.convert('RGB')
        if img.mode.startswith('I;16') or img.mode == 'I':
            # 16-bit greyscale is scaled down before the 8-bit conversion
            return img.convert('I').point(lambda v: v * (1 / 256)).convert('L').convert('RGB')
        return img.convert('RGB')

    def resize(self, img: Image.Image, width: int, height: int) -> Image.Image:
        """Lanczos resample to exactly width x height."""
        if img.size == (width, height):
            return img
        return img.resize((width, height), Image.Resampling.LANCZOS)

    def fill_and_crop(self, img: Image.Image, width: int, height: int) -> Image.Image:
        """Resize to cover width x height, then center-crop the overflow."""
        filled_size = fill_dimensions(img.size, (width, height))
        filled = self.resize(img, *filled_size)
        if filled.size == (width, height):
            return filled
        return filled.crop(center_crop_box(filled.size, (width, height)))

    def sharpen(self, img: Image.Image, sharpening: Sharpening) -> Image.Image:
        """Apply an unsharp mask."""
        return img.filter(ImageFilter.UnsharpMask(
            radius=sharpening.sigma,
            percent=100,
            threshold=sharpening.threshold,
        ))

    def encode(self, img: Image.Image, quality: int) -> bytes:
        """Encode to the output codec. No metadata is carried over."""
        output = io.BytesIO()
        img.save(output, format='WEBP', quality=quality, method=WEBP_METHOD)
        return output.getvalue()

    def target_size(self, source_size: Tuple[int, int], spec: EncodingSpec) -> Tuple[int, int]:
        """Output dimensions spec will produce for an image of source_size."""
        if isinstance(spec.kind, ResponsiveWidth):
            if spec.kind.target >= max(source_size):
                return source_size
            return scale_to_longer_edge(source_size, spec.kind.target)
        return thumbnail_dimensions(spec.kind.aspect, spec.kind.short_edge)

    def render(
        self,
        image_data: bytes,
        spec: EncodingSpec,
        source: Optional[str] = None
    ) -> RenderedImage:
        """
        Produce the encoded artifact for spec from source bytes.

        Args:
            image_data: Source image bytes
            spec: What to produce
            source: Source path, for error messages

        Returns:
            RenderedImage with encoded bytes and final dimensions
        """
        img = self.decode(image_data, source)

        try:
            width, height = self.target_size(img.size, spec)
            if spec.is_thumbnail:
                img = self.fill_and_crop(img, width, height)
            else:
                img = self.resize(img, width, height)

            if spec.sharpening:
                img = self.sharpen(img, spec.sharpening)

            data = self.encode(img, spec.quality)
        except (OSError, ValueError, MemoryError) as e:
            self.logger.error(f"Error rendering {spec.describe()} for {source}: {e}")
            raise EncodeFailure(f"Cannot render {spec.describe()} ({e})", source) from e

        return RenderedImage(data=data, width=img.width, height=img.height)
