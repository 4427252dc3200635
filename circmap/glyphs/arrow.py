"""Arrow glyph: one curved arrow per feature, pointing in the strand direction"""

from ..layout import CircularLayout
from ..models import Track
from .base import Glyph, option_value

# Arrows sit in the middle eighth of the track
ARROW_TIERS = 8
DEFAULT_STROKE_WIDTH = 250


class ArrowGlyph(Glyph):
    """
    Draws each track feature as an arc with an arrowhead

    Minus-strand features point counterclockwise. A feature covering the
    whole sequence cannot be drawn as an arrow and aborts the render.
    """

    def draw(self, track: Track, layout: CircularLayout) -> None:
        _, features = self.context.features(track)
        stroke_color = track.get("stroke-color", self.theme.stroke)
        stroke_width = self.stroke_width(track, layout, DEFAULT_STROKE_WIDTH, ARROW_TIERS)
        dasharray = track.get("stroke-dasharray")

        for feature in features:
            self.geometry.curved_arrow(
                layout,
                feature.fmin,
                feature.fmax,
                feature.strand == -1,
                track.start_frac,
                track.end_frac,
                scale=track.get("inner-scale"),
                fill="none",
                stroke=option_value(stroke_color, feature),
                stroke_width=option_value(stroke_width, feature),
                dasharray=dasharray,
            )
