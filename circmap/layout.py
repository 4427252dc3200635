"""
Circular layout: sequence coordinates to angles, points and quadrants

CircularLayout is an immutable context object threaded through the render
call tree. Scoped overrides of the coordinate transform produce a new layout
via with_transform() or with_scale() instead of mutating shared state.
"""

import math
from dataclasses import dataclass, replace

from .constants import (
    DEFAULT_PAD,
    DEFAULT_ROTATE_DEGREES,
    FONT_WIDTH_FRAC,
    MATH_TRIG_ORIGIN_DEGREES,
    QUADRANT_ORDER,
    RADIUS,
    TARGET_STROKE_WIDTH_RATIO,
    Quadrant,
)
from .logging_config import get_logger
from .transform import CoordinateTransform, IdentityTransform

logger = get_logger(__name__)

VALID_SCALE_NAMES = ("default", "none")


def normalize_degrees(degrees: float) -> float:
    """Wrap an angle into [0, 360)"""
    degrees = degrees % 360.0
    # Float modulo can round up to exactly 360 for tiny negative inputs
    if degrees >= 360.0:
        degrees = 0.0
    return degrees


def degrees_to_quadrant(degrees: float) -> Quadrant:
    """Quadrant holding an angle measured clockwise from 12 o'clock"""
    return QUADRANT_ORDER[int(normalize_degrees(degrees) // 90) % 4]


@dataclass(frozen=True)
class CircularLayout:
    """
    Geometry of one circular map

    Attributes:
        seqlen: Sequence length L in bp
        transform: Active coordinate transform
        base_transform: Transform that with_scale("default") restores
        rotate_degrees: Clockwise rotation of the origin from 12 o'clock
        pad: Canvas padding outside the drawing radius
        radius: Drawing radius R (radial fraction 1.0)

    Examples:
        >>> layout = CircularLayout.create(10000)
        >>> layout.coord_to_degrees(2500)
        90.0
        >>> layout.coord_to_quadrant(2500)
        <Quadrant.BOTTOM_RIGHT: 'br'>
    """

    seqlen: int
    transform: CoordinateTransform
    base_transform: CoordinateTransform
    rotate_degrees: float = DEFAULT_ROTATE_DEGREES
    pad: float = DEFAULT_PAD
    radius: float = RADIUS

    @classmethod
    def create(
        cls,
        seqlen: int,
        transform: CoordinateTransform | None = None,
        rotate_degrees: float = DEFAULT_ROTATE_DEGREES,
        pad: float = DEFAULT_PAD,
    ) -> "CircularLayout":
        if transform is None:
            transform = IdentityTransform(seqlen)
        return cls(
            seqlen=seqlen,
            transform=transform,
            base_transform=transform,
            rotate_degrees=rotate_degrees,
            pad=pad,
        )

    # --- canvas -------------------------------------------------------------

    @property
    def size(self) -> float:
        """Width and height of the square canvas"""
        return 2 * (self.radius + self.pad)

    @property
    def center(self) -> tuple[float, float]:
        c = self.radius + self.pad
        return c, c

    @property
    def transformed_length(self) -> float:
        return self.transform.transformed_length

    # --- scoped overrides ---------------------------------------------------

    def with_transform(self, transform: CoordinateTransform) -> "CircularLayout":
        """Layout identical to this one but drawn with another transform"""
        return replace(self, transform=transform)

    def with_base_transform(self, transform: CoordinateTransform) -> "CircularLayout":
        """Install a transform that later with_scale("default") calls restore"""
        return replace(self, transform=transform, base_transform=transform)

    def with_scale(self, name: str | None) -> "CircularLayout":
        """
        Layout for a per-track scale option

        Args:
            name: "default" (or None) keeps the base transform, "none" draws
                the track unscaled

        Raises:
            ValueError: If the scale name is not recognized
        """
        if name is None or name == "default":
            return replace(self, transform=self.base_transform)
        if name == "none":
            return replace(self, transform=IdentityTransform(self.seqlen))
        raise ValueError(
            f"Unknown scale: {name}. Valid scales: {', '.join(VALID_SCALE_NAMES)}"
        )

    # --- coordinates --------------------------------------------------------

    def coord_to_degrees(self, coord: float, correction: float = 0.0) -> float:
        """
        Angle of a sequence coordinate, clockwise from 12 o'clock

        Args:
            coord: Sequence coordinate
            correction: Extra rotation in degrees, e.g. -90 to convert to the
                trig convention where 0 degrees is 3 o'clock

        Returns:
            Angle in [0, 360)
        """
        tcoord = self.transform.transform(coord)
        degrees = (tcoord / self.transformed_length) * 360.0
        return normalize_degrees(degrees + self.rotate_degrees + correction)

    def coord_to_radians(self, coord: float) -> float:
        """Trig-convention angle used for Cartesian conversion"""
        return math.radians(self.coord_to_degrees(coord, -MATH_TRIG_ORIGIN_DEGREES))

    def coord_to_circle(self, coord: float, frac: float) -> tuple[float, float]:
        """
        Canvas point for a sequence coordinate at a radial fraction

        Canvas y grows downward, so increasing angles run clockwise.
        """
        rad = self.coord_to_radians(coord)
        cx, cy = self.center
        r = frac * self.radius
        return cx + r * math.cos(rad), cy + r * math.sin(rad)

    def coord_to_quadrant(self, coord: float) -> Quadrant:
        return degrees_to_quadrant(self.coord_to_degrees(coord))

    def bp_span_degrees(self, fmin: float, fmax: float) -> float:
        """Unnormalized angular span of [fmin, fmax) under the active transform"""
        return self.transform.span(fmin, fmax) / self.transformed_length * 360.0

    def is_full_circle(self, fmin: float, fmax: float) -> bool:
        return self.transform.span(fmin, fmax) >= self.transformed_length

    def large_arc_flag(self, fmin: float, fmax: float) -> int:
        """SVG large-arc flag for the arc drawn from fmin to fmax"""
        return 0 if self.transform.span(fmin, fmax) / self.transformed_length <= 0.5 else 1

    # --- sizes --------------------------------------------------------------

    def scaled_stroke_width(
        self, height_frac: float, ntiers: int, width: float
    ) -> float:
        """
        Stroke width that looks the same regardless of track thickness

        Args:
            height_frac: Track height as a radial fraction
            ntiers: Number of tiers the track is divided into
            width: Nominal stroke width for a TARGET_STROKE_WIDTH_RATIO-px track

        Raises:
            ValueError: If ntiers is not positive or the result is negative
        """
        if ntiers <= 0:
            raise ValueError(f"tier count must be positive, got {ntiers}")
        scaled = width * ((height_frac / ntiers) * self.radius / TARGET_STROKE_WIDTH_RATIO)
        if scaled < 0:
            raise ValueError(
                f"negative stroke width {scaled} (height={height_frac}, width={width})"
            )
        return scaled

    def font_metrics(
        self,
        sf: float,
        ef: float,
        ntiers: float,
        tier_gap_frac: float,
        font_height_frac: float = 1.0,
        font_width_frac: float = FONT_WIDTH_FRAC,
    ) -> tuple[float, float]:
        """
        Font height and average character width for a tiered label track

        Returns:
            Tuple of (font height as a radial fraction, character width in
            transformed bp at the track's mid radius)
        """
        if ntiers <= 0:
            raise ValueError(f"tier count must be positive, got {ntiers}")
        tier_h = (ef - sf) / ntiers
        fhf = tier_h * (1 - 1.5 * tier_gap_frac) * font_height_frac
        char_px = fhf * self.radius * font_width_frac
        circumference = 2 * math.pi * ((sf + ef) / 2.0) * self.radius
        if circumference <= 0:
            return fhf, float(self.transformed_length)
        char_bp = (char_px / circumference) * self.transformed_length
        return fhf, char_bp
