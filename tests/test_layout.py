"""
Tests for CircularLayout
"""

import math

import pytest

from circmap.constants import RADIUS, Quadrant
from circmap.layout import CircularLayout, normalize_degrees
from circmap.transform import LinearScaleTransform, ScaledSegment


class TestDegrees:
    """Tests for coordinate to angle conversion"""

    def test_origin_at_twelve_oclock(self, layout):
        """Test that coordinate 0 sits at 0 degrees"""
        assert layout.coord_to_degrees(0) == 0.0

    def test_quarter_turn(self, layout):
        """Test that a quarter of the sequence is 90 degrees"""
        assert layout.coord_to_degrees(2500) == pytest.approx(90.0)

    def test_rotation(self):
        """Test that rotate_degrees shifts every angle"""
        rotated = CircularLayout.create(10000, rotate_degrees=45)

        assert rotated.coord_to_degrees(0) == pytest.approx(45.0)
        assert rotated.coord_to_degrees(9000) == pytest.approx(9.0)

    def test_degrees_always_in_range(self, layout):
        """Test that every angle lies in [0, 360)"""
        for coord in (-5000, -1, 0, 1, 9999, 10000, 25000):
            degrees = layout.coord_to_degrees(coord)
            assert 0.0 <= degrees < 360.0

    def test_normalize_negative(self):
        """Test that tiny negative angles do not wrap to 360"""
        assert normalize_degrees(-1e-14) < 360.0
        assert normalize_degrees(-90) == 270.0

    def test_transform_divides_by_transformed_length(self):
        """Test that a scaled layout measures angles in transformed coordinates"""
        t = LinearScaleTransform(10000, [ScaledSegment(1000, 2000, 2.0)])
        scaled = CircularLayout.create(10000, transform=t)

        assert scaled.coord_to_degrees(3000) == pytest.approx(4000 / 11000 * 360)


class TestQuadrants:
    """Tests for coord_to_quadrant"""

    @pytest.mark.parametrize(
        "coord,expected",
        [
            (0, Quadrant.TOP_RIGHT),
            (2499, Quadrant.TOP_RIGHT),
            (2500, Quadrant.BOTTOM_RIGHT),
            (5000, Quadrant.BOTTOM_LEFT),
            (7500, Quadrant.TOP_LEFT),
            (9999, Quadrant.TOP_LEFT),
        ],
    )
    def test_quadrant_boundaries(self, layout, coord, expected):
        """Test that quadrants partition the circle into 90 degree ranges"""
        assert layout.coord_to_quadrant(coord) == expected

    def test_quadrant_sides(self):
        """Test quadrant side helpers"""
        assert Quadrant.TOP_LEFT.is_left and not Quadrant.TOP_LEFT.is_bottom
        assert Quadrant.BOTTOM_RIGHT.is_bottom and not Quadrant.BOTTOM_RIGHT.is_left


class TestPoints:
    """Tests for Cartesian conversion"""

    def test_canvas_size_and_center(self, layout):
        """Test that the canvas is 2 * (radius + pad) wide"""
        assert layout.size == 2 * (RADIUS + layout.pad)
        assert layout.center == (RADIUS + layout.pad, RADIUS + layout.pad)

    def test_top_of_circle(self, layout):
        """Test that coordinate 0 is straight above the center"""
        cx, cy = layout.center
        x, y = layout.coord_to_circle(0, 1.0)

        assert x == pytest.approx(cx)
        assert y == pytest.approx(cy - RADIUS)

    def test_clockwise_on_screen(self, layout):
        """Test that a quarter turn lands to the right of the center"""
        cx, cy = layout.center
        x, y = layout.coord_to_circle(2500, 0.5)

        assert x == pytest.approx(cx + 0.5 * RADIUS)
        assert y == pytest.approx(cy)


class TestScaleOverride:
    """Tests for scoped transform overrides"""

    def test_with_scale_none_uses_identity(self):
        """Test that scale "none" draws unscaled"""
        t = LinearScaleTransform(10000, [ScaledSegment(1000, 2000, 2.0)])
        scaled = CircularLayout.create(10000, transform=t)
        unscaled = scaled.with_scale("none")

        assert unscaled.transformed_length == 10000
        assert scaled.transformed_length == 11000

    def test_with_scale_default_restores_base(self):
        """Test that scale "default" restores the installed transform"""
        t = LinearScaleTransform(10000, [ScaledSegment(1000, 2000, 2.0)])
        scaled = CircularLayout.create(10000, transform=t)

        assert scaled.with_scale("none").with_scale("default").transform is t

    def test_unknown_scale(self, layout):
        """Test that an unknown scale name is a ValueError"""
        with pytest.raises(ValueError, match="Valid scales"):
            layout.with_scale("log")


class TestSizes:
    """Tests for stroke widths and font metrics"""

    def test_scaled_stroke_width(self, layout):
        """Test that stroke width grows with the track height"""
        assert layout.scaled_stroke_width(0.1, 1, 1.0) == pytest.approx(0.1 * RADIUS / 1000)
        assert layout.scaled_stroke_width(0.1, 2, 1.0) == pytest.approx(0.05 * RADIUS / 1000)

    def test_scaled_stroke_width_rejects_zero_tiers(self, layout):
        """Test that a tier count of zero is rejected"""
        with pytest.raises(ValueError):
            layout.scaled_stroke_width(0.1, 0, 1.0)

    def test_font_metrics(self, layout):
        """Test font height and character width for a single-tier track"""
        fhf, char_bp = layout.font_metrics(0.5, 0.6, 1, 0.2)

        assert fhf == pytest.approx(0.1 * (1 - 0.3))
        circumference = 2 * math.pi * 0.55 * RADIUS
        assert char_bp == pytest.approx(fhf * RADIUS * 0.8 / circumference * 10000)
