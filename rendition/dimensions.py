"""
Pure dimension calculations for responsive sizes and thumbnails.

All rounding goes through round_half_up, which works on integers only so the
results are identical on every platform. Output dimensions feed both the
encoded pixels and the manifest, so they must never depend on float rounding.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple


Size = Tuple[int, int]


def round_half_up(numerator: int, denominator: int) -> int:
    """Round numerator/denominator to the nearest integer, halves going up."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def thumbnail_dimensions(aspect: Tuple[int, int], short_edge: int) -> Size:
    """
    Final thumbnail size for an aspect ratio and a short-edge length.

    (4, 5) at 400 gives 400x500; (3, 2) at 300 gives 450x300.
    """
    aspect_w, aspect_h = aspect
    if aspect_w <= aspect_h:
        return short_edge, round_half_up(short_edge * aspect_h, aspect_w)
    return round_half_up(short_edge * aspect_w, aspect_h), short_edge


def fill_dimensions(source: Size, target: Size) -> Size:
    """
    Scale source so it fully covers target, preserving the source aspect.

    One edge matches the target exactly; the other is equal or larger.
    """
    src_w, src_h = source
    tgt_w, tgt_h = target

    # src_w / src_h > tgt_w / tgt_h, without division
    if src_w * tgt_h > tgt_w * src_h:
        return max(tgt_w, round_half_up(tgt_h * src_w, src_h)), tgt_h
    return tgt_w, max(tgt_h, round_half_up(tgt_w * src_h, src_w))


def center_crop_box(filled: Size, target: Size) -> Tuple[int, int, int, int]:
    """Crop box (left, top, right, bottom) trimming the overflow symmetrically."""
    fill_w, fill_h = filled
    tgt_w, tgt_h = target
    left = (fill_w - tgt_w) // 2
    top = (fill_h - tgt_h) // 2
    return left, top, left + tgt_w, top + tgt_h


@dataclass(frozen=True)
class ResponsiveSize:
    """
    One responsive size to generate.

    Attributes:
        target: Requested size on the longer edge
        width: Output width
        height: Output height
    """
    target: int
    width: int
    height: int


def scale_to_longer_edge(original: Size, target: int) -> Size:
    """Dimensions with the longer edge set to target, aspect preserved."""
    orig_w, orig_h = original
    if orig_w >= orig_h:
        return target, max(1, round_half_up(orig_h * target, orig_w))
    return max(1, round_half_up(orig_w * target, orig_h)), target


def responsive_sizes(original: Size, sizes: Sequence[int]) -> List[ResponsiveSize]:
    """
    Responsive sizes to generate for an image, in configured order.

    Sizes larger than the source's longer edge are skipped (no upscaling).
    If nothing is left, the source's native size is the only entry.
    """
    orig_w, orig_h = original
    longer_edge = max(orig_w, orig_h)

    result = []
    seen = set()
    for target in sizes:
        if target > longer_edge or target in seen:
            continue
        seen.add(target)
        width, height = scale_to_longer_edge(original, target)
        result.append(ResponsiveSize(target=target, width=width, height=height))

    if not result:
        result.append(ResponsiveSize(target=longer_edge, width=orig_w, height=orig_h))

    return result
