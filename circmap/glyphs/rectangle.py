"""Rectangle glyph: one curved band per feature"""

from ..layout import CircularLayout
from ..models import Track
from .base import Glyph, option_value

DEFAULT_STROKE_WIDTH = 0.5


class RectangleGlyph(Glyph):
    """
    Draws each track feature as a curved rectangle between start-frac and end-frac

    Options:
        fill-color, stroke-color: Colors or callables taking the feature;
            "none" disables. A feature with neither fill nor stroke is skipped.
        stroke-width: Width or callable; 0 means no stroke
        stroke-dasharray: SVG dash pattern
        inner-scale, outer-scale: Scale names for the inner/outer edges
    """

    def draw(self, track: Track, layout: CircularLayout) -> None:
        _, features = self.context.features(track)
        fill_color = track.get("fill-color", self.theme.fill)
        stroke_color = track.get("stroke-color", self.theme.stroke)
        stroke_width = self.stroke_width(track, layout, DEFAULT_STROKE_WIDTH)
        dasharray = track.get("stroke-dasharray")
        inner_scale = track.get("inner-scale")
        outer_scale = track.get("outer-scale")

        for feature in features:
            fill = option_value(fill_color, feature)
            stroke = option_value(stroke_color, feature)
            width = option_value(stroke_width, feature)
            if fill == "none" and stroke == "none":
                continue
            if not width:
                stroke = "none"
            self.geometry.curved_rect(
                layout,
                feature.fmin,
                feature.fmax,
                track.start_frac,
                track.end_frac,
                inner_scale=inner_scale,
                outer_scale=outer_scale,
                fill=fill,
                stroke=stroke,
                stroke_width=width or 0,
                dasharray=dasharray,
            )
