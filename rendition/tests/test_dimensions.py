"""Tests for dimension calculations."""

import pytest

from rendition.dimensions import (
    ResponsiveSize,
    center_crop_box,
    fill_dimensions,
    responsive_sizes,
    round_half_up,
    scale_to_longer_edge,
    thumbnail_dimensions,
)


class TestRoundHalfUp:
    """Tests for integer rounding."""

    def test_exact(self):
        """Test exact division."""
        assert round_half_up(10, 2) == 5

    def test_half_rounds_up(self):
        """Test that .5 rounds up, unlike banker's rounding."""
        assert round_half_up(5, 2) == 3
        assert round_half_up(1, 2) == 1
        assert round_half_up(3, 2) == 2

    def test_below_half_rounds_down(self):
        """Test values below .5 round down."""
        assert round_half_up(4, 3) == 1

    def test_invalid_denominator(self):
        """Test zero denominator is rejected."""
        with pytest.raises(ValueError):
            round_half_up(1, 0)


class TestThumbnailDimensions:
    """Tests for thumbnail_dimensions."""

    def test_portrait_aspect(self):
        """Test (4,5) at 400 gives 400x500."""
        assert thumbnail_dimensions((4, 5), 400) == (400, 500)

    def test_landscape_aspect(self):
        """Test (3,2) at 300 gives 450x300."""
        assert thumbnail_dimensions((3, 2), 300) == (450, 300)

    def test_square_aspect(self):
        """Test square aspect keeps both edges equal."""
        assert thumbnail_dimensions((1, 1), 250) == (250, 250)

    def test_rounding(self):
        """Test long edge is rounded half up."""
        # 7 * 3 / 2 = 10.5
        assert thumbnail_dimensions((2, 3), 7) == (7, 11)


class TestFillDimensions:
    """Tests for fill_dimensions and center_crop_box."""

    def test_wider_source(self):
        """Test wider source matches target height and overflows width."""
        assert fill_dimensions((1200, 900), (400, 500)) == (667, 500)

    def test_taller_source(self):
        """Test taller source matches target width and overflows height."""
        assert fill_dimensions((900, 1600), (450, 300)) == (450, 800)

    def test_same_aspect(self):
        """Test source with the target aspect scales exactly."""
        assert fill_dimensions((800, 1000), (400, 500)) == (400, 500)

    def test_always_covers_target(self):
        """Test filled size is never smaller than the target."""
        for source in [(1, 1000), (1000, 1), (333, 777), (17, 19)]:
            width, height = fill_dimensions(source, (40, 50))
            assert width >= 40 and height >= 50

    def test_center_crop_even(self):
        """Test symmetric crop."""
        assert center_crop_box((600, 500), (400, 500)) == (100, 0, 500, 500)

    def test_center_crop_odd_extra_on_far_side(self):
        """Test odd overflow leaves the extra pixel on the right/bottom."""
        assert center_crop_box((667, 500), (400, 500)) == (133, 0, 533, 500)
        assert center_crop_box((450, 301), (450, 300)) == (0, 0, 450, 300)


class TestResponsiveSizes:
    """Tests for responsive_sizes."""

    def test_landscape(self):
        """Test sizes apply to the longer (width) edge."""
        sizes = responsive_sizes((3000, 2000), [800, 1400])
        assert sizes == [
            ResponsiveSize(800, 800, 533),
            ResponsiveSize(1400, 1400, 933),
        ]

    def test_portrait(self):
        """Test sizes apply to the longer (height) edge."""
        assert scale_to_longer_edge((2000, 3000), 800) == (533, 800)

    def test_skips_larger_than_source(self):
        """Test no upscaling."""
        sizes = responsive_sizes((1000, 750), [800, 1400, 2080])
        assert [s.target for s in sizes] == [800]

    def test_equal_to_source_kept(self):
        """Test a size equal to the longer edge is kept at native size."""
        sizes = responsive_sizes((800, 600), [800, 1400])
        assert sizes == [ResponsiveSize(800, 800, 600)]

    def test_native_fallback(self):
        """Test that a tiny source gets exactly one native-size variant."""
        sizes = responsive_sizes((300, 200), [800, 1400, 2080])
        assert sizes == [ResponsiveSize(300, 300, 200)]

    def test_duplicates_skipped(self):
        """Test duplicate configured sizes produce one variant."""
        sizes = responsive_sizes((1000, 1000), [500, 500])
        assert len(sizes) == 1

    def test_thin_image_never_zero(self):
        """Test extreme aspect never yields a zero edge."""
        assert scale_to_longer_edge((10000, 1), 100) == (100, 1)
