"""
Curved drawing primitives

Bands, arrows and lines that follow the circle are built from sequence
coordinates and radial fractions through a CircularLayout and issued to a
Canvas as paths.
"""

import math

from ..errors import GlyphError
from ..layout import CircularLayout
from ..logging_config import get_logger
from .canvas import Canvas
from .path import PathBuilder

logger = get_logger(__name__)

CURVED_LINE_STEP_DEGREES = 1.0


class GeometryRenderer:
    """
    Draws curved rectangles, arrows and lines on a canvas

    Every method takes the layout to draw with, so a glyph can draw one
    element with a scoped transform without affecting the others.

    Examples:
        >>> geometry = GeometryRenderer(canvas)
        >>> geometry.curved_rect(layout, 100, 900, 0.5, 0.6, fill="red", stroke="black")
    """

    def __init__(self, canvas: Canvas):
        self.canvas = canvas

    def _point(self, layout: CircularLayout, coord: float, frac: float, scale=None):
        if scale is not None:
            layout = layout.with_scale(scale)
        return layout.coord_to_circle(coord, frac)

    def curved_rect(
        self,
        layout: CircularLayout,
        fmin: float,
        fmax: float,
        sf: float,
        ef: float,
        inner_scale: str | None = None,
        outer_scale: str | None = None,
        **style,
    ) -> PathBuilder | None:
        """
        Filled band between radial fractions sf and ef over [fmin, fmax)

        A band covering the whole sequence cannot be drawn as a single arc,
        so it is drawn as an annulus instead.

        Args:
            layout: Layout to draw with
            fmin: Start coordinate (may be negative for origin-spanning bands)
            fmax: End coordinate
            sf: Inner radial fraction
            ef: Outer radial fraction
            inner_scale: Scale name for the inner edge ("default" or "none")
            outer_scale: Scale name for the outer edge
            **style: Canvas style keywords (fill, stroke, stroke_width, ...)

        Returns:
            The band's path, or None when drawn as an annulus
        """
        R = layout.radius
        ir, outer_r = sf * R, ef * R
        if fmax - fmin >= layout.seqlen:
            self.canvas.annulus(ir, outer_r, **style)
            return None
        if fmin < 0:
            fmin += layout.seqlen

        ix1, iy1 = self._point(layout, fmin, sf, inner_scale)
        ix2, iy2 = self._point(layout, fmax, sf, inner_scale)
        ox1, oy1 = self._point(layout, fmin, ef, outer_scale)
        ox2, oy2 = self._point(layout, fmax, ef, outer_scale)
        large_arc = layout.large_arc_flag(fmin, fmax)

        path = (
            self.canvas.new_path()
            .move_to(ix1, iy1)
            .arc_to(ir, large_arc, 1, ix2, iy2)
            .line_to(ox2, oy2)
            .arc_to(outer_r, large_arc, 0, ox1, oy1)
            .line_to(ix1, iy1)
            .close()
        )
        self.canvas.path(path, **style)
        return path

    def curved_arrow(
        self,
        layout: CircularLayout,
        fmin: float,
        fmax: float,
        reverse: bool,
        sf: float,
        ef: float,
        scale: str | None = None,
        **style,
    ) -> PathBuilder:
        """
        Arc at the middle of [sf, ef] with an arrowhead at the 3' end

        Args:
            reverse: Point the arrowhead counterclockwise (minus strand)

        Raises:
            GlyphError: If fmin > fmax or the arrow covers the whole circle
        """
        if fmax - fmin >= layout.seqlen:
            raise GlyphError(
                f"cannot draw an arrow for a feature covering the whole sequence ({fmin}-{fmax})"
            )
        if fmin < 0:
            fmin += layout.seqlen
        if fmax < fmin:
            fmax += layout.seqlen
        if fmin > fmax:
            raise GlyphError(f"arrow has fmin({fmin}) > fmax({fmax})")

        mf = (sf + ef) / 2.0
        x1, y1 = self._point(layout, fmin, mf, scale)
        x2, y2 = self._point(layout, fmax, mf, scale)
        path = (
            self.canvas.new_path()
            .move_to(x1, y1)
            .arc_to(mf * layout.radius, layout.large_arc_flag(fmin, fmax), 1, x2, y2)
        )
        if reverse:
            self.canvas.path(path, marker_start="triangle-left", **style)
        else:
            self.canvas.path(path, marker_end="triangle-right", **style)
        return path

    def curved_line(
        self,
        layout: CircularLayout,
        fmin: float,
        fmax: float,
        sf: float,
        ef: float,
        **style,
    ) -> PathBuilder:
        """
        Line from (fmin, sf) to (fmax, ef) that follows the circle

        The radius is interpolated linearly with the angle, giving a spiral
        segment that joins consecutive points of a line graph.
        """
        if fmin < 0:
            fmin += layout.seqlen
        if fmax < fmin:
            fmax += layout.seqlen

        span = layout.bp_span_degrees(fmin, fmax)
        steps = max(1, int(math.ceil(abs(span) / CURVED_LINE_STEP_DEGREES)))
        path = self.canvas.new_path().move_to(*layout.coord_to_circle(fmin, sf))
        for i in range(1, steps + 1):
            t = i / steps
            coord = fmin + (fmax - fmin) * t
            path.line_to(*layout.coord_to_circle(coord, sf + (ef - sf) * t))
        self.canvas.path(path, **style)
        return path

    def radial_line(
        self, layout: CircularLayout, coord: float, sf: float, ef: float, **style
    ) -> tuple[float, float, float, float]:
        """Straight line from radial fraction sf to ef at one coordinate"""
        x1, y1 = layout.coord_to_circle(coord, sf)
        x2, y2 = layout.coord_to_circle(coord, ef)
        self.canvas.line(x1, y1, x2, y2, **style)
        return x1, y1, x2, y2

    def circle(self, layout: CircularLayout, frac: float, **style) -> None:
        """Circle around the map center at a radial fraction"""
        cx, cy = layout.center
        self.canvas.circle(cx, cy, frac * layout.radius, **style)
