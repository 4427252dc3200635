"""Coordinate ruler glyph"""

import math

from ..constants import (
    DEFAULT_RULER_FONT_SIZE,
    MATH_TRIG_ORIGIN_DEGREES,
    RULER_UNIT_DIVISORS,
    LabelType,
    RulerUnits,
)
from ..errors import GlyphError
from ..layout import CircularLayout
from ..logging_config import get_logger
from ..models import Track
from .base import Glyph

logger = get_logger(__name__)


def tick_range(fmin: float, fmax: float, interval: float) -> range:
    """Indices i with fmin <= i * interval <= fmax"""
    start = int(math.floor(fmin / interval))
    if start * interval < fmin:
        start += 1
    end = int(math.floor(fmax / interval))
    return range(start, end + 1)


def format_ruler_label(position: float, units: RulerUnits, precision: int) -> str:
    """
    Examples:
        >>> format_ruler_label(1500000, RulerUnits.MB, 1)
        '1.5Mb'
    """
    divisor = RULER_UNIT_DIVISORS[units]
    return f"%.{precision}f" % (position / divisor) + units.value


class RulerGlyph(Glyph):
    """
    Circle at the track's start fraction with ticks and coordinate labels

    Small ticks span the track; labeled ticks are twice as long and the
    labels sit beyond them at ef + 2 * (ef - sf).
    """

    def draw(self, track: Track, layout: CircularLayout) -> None:
        tick_interval = track.get("tick-interval")
        label_interval = track.get("label-interval")
        try:
            units = RulerUnits(track.get("label-units", RulerUnits.MB.value))
        except ValueError as e:
            valid = ", ".join(u.value for u in RulerUnits)
            raise GlyphError(f"Unknown ruler units: {track.get('label-units')}. Valid units: {valid}") from e
        try:
            label_type = LabelType(track.get("label-type", LabelType.HORIZONTAL.value))
        except ValueError as e:
            valid = ", ".join(t.value for t in LabelType)
            raise GlyphError(f"Unknown label type: {track.get('label-type')}. Valid label types: {valid}") from e
        precision = int(track.get("label-precision", 1))
        font_size = float(track.get("font-size", DEFAULT_RULER_FONT_SIZE))
        color = track.get("color", self.theme.stroke)
        text_color = track.get("text-color", self.theme.text)

        L = layout.seqlen
        fmin = min(max(float(track.get("fmin", 0)), 0.0), L)
        fmax = min(max(float(track.get("fmax", L)), 0.0), L)

        sf, ef = track.start_frac, track.end_frac
        h = track.height
        sw1 = layout.scaled_stroke_width(h, 1, 200)
        sw2 = layout.scaled_stroke_width(h, 1, 100)
        sw3 = layout.scaled_stroke_width(h, 1, 400)

        if not track.flag("no-circle"):
            self.geometry.circle(layout, sf, stroke=color, stroke_width=sw1, fill="none")

        if tick_interval:
            ticks = tick_range(fmin, fmax, float(tick_interval))
            for i in ticks:
                self.geometry.radial_line(
                    layout, i * float(tick_interval), sf, ef, stroke=color, stroke_width=sw2
                )
            logger.debug(f"{track.label}: {len(ticks)} tick(s)")

        if not label_interval:
            return
        label_interval = float(label_interval)
        tef = ef + (ef - sf)
        tef2 = ef + 2 * (ef - sf)
        path_id = None
        for i in tick_range(fmin, fmax, label_interval):
            pos = i * label_interval
            self.geometry.radial_line(layout, pos, sf, tef, stroke=color, stroke_width=sw3)
            text = format_ruler_label(pos, units, precision)

            if label_type == LabelType.CURVED:
                er = tef2 * layout.radius
                if path_id is None:
                    path_id = self.canvas.circle_path(er)
                ft = 2 * math.pi * er * (layout.transform.transform(pos) / layout.transformed_length)
                ft += 2 * math.pi * er * ((MATH_TRIG_ORIGIN_DEGREES + layout.rotate_degrees) / 360.0)
                self.canvas.text_on_path(path_id, ft, text, font_size, fill=text_color,
                                         anchor="middle", font_weight="bold")
                continue

            quadrant = layout.coord_to_quadrant(pos)
            x, y = layout.coord_to_circle(pos, tef2)
            if label_type == LabelType.SPOKE:
                rotate = layout.coord_to_degrees(pos) - 90
                anchor = "start"
                if quadrant.is_left:
                    rotate += 180
                    anchor = "end"
                self.canvas.text(x, y, text, font_size, fill=text_color, anchor=anchor,
                                 rotate=rotate, font_weight="bold")
            else:
                anchor = "end" if quadrant.is_left else "start"
                if quadrant.is_bottom:
                    y += font_size * 0.8
                self.canvas.text(x, y, text, font_size, fill=text_color, anchor=anchor,
                                 font_weight="bold")
