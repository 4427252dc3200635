"""
Statistical graph rendering

Windowed values are drawn between two radial fractions as bars, a line, or
a heat map. Graph bounds may be literal numbers or symbols resolved once
against the value function's declared range and the observed data:

    range_min, range_max, data_min, data_max, data_avg

('-' and '_' are interchangeable in symbol names.)
"""

import math
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from bokeh import palettes
from bokeh.colors import RGB, named

from ..constants import (
    CONFIDENCE_INTERVAL_OPACITY,
    DEFAULT_HEAT_MAP_MAX_COLOR,
    DEFAULT_HEAT_MAP_MIN_COLOR,
    GRAPH_BOUND_SYMBOLS,
    GRAPH_CIRCLE_DASHARRAY,
    GRAPH_CIRCLE_OPACITY,
    GraphDirection,
    GraphType,
)
from ..errors import GlyphError
from ..functions import GraphData, GraphPoint, StackedValue
from ..layout import CircularLayout
from ..logging_config import get_logger
from .geometry import GeometryRenderer

logger = get_logger(__name__)

VALID_CIRCLE_ALIGNS = ("above", "below", "on")


@dataclass(frozen=True)
class GraphBounds:
    """Resolved numeric graph range; baseline lies within [minimum, maximum]"""

    minimum: float
    maximum: float
    baseline: float

    @property
    def height(self) -> float:
        return self.maximum - self.minimum


@dataclass(frozen=True)
class CircleLabel:
    """Text to draw as a small label track next to a reference circle"""

    start_frac: float
    end_frac: float
    text: str


def _symbol_values(data: GraphData) -> dict[str, float | None]:
    def bounded(value, fallback):
        if value is None or (isinstance(value, float) and math.isinf(value)):
            return fallback
        return value

    return {
        "range_min": bounded(data.range_min, data.data_min()),
        "range_max": bounded(data.range_max, data.data_max()),
        "data_min": data.data_min(),
        "data_max": data.data_max(),
        "data_avg": data.data_avg(),
    }


def resolve_bound(value: Any, symbols: dict[str, float | None]) -> float | None:
    """
    Numeric value of a graph-min/graph-max/graph-baseline option

    Raises:
        GlyphError: If the value is neither a number nor a known symbol
    """
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    key = text.replace("-", "_")
    if key in GRAPH_BOUND_SYMBOLS:
        return symbols.get(key)
    try:
        return float(text)
    except ValueError as e:
        valid = ", ".join(GRAPH_BOUND_SYMBOLS)
        raise GlyphError(f"Unknown graph bound: {value}. Valid symbols: {valid}") from e


def resolve_graph_bounds(
    data: GraphData,
    baseline: Any = "range_min",
    minimum: Any = "range_min",
    maximum: Any = "range_max",
) -> GraphBounds | None:
    """
    Resolve symbolic graph bounds against the data

    Returns:
        GraphBounds with the baseline clamped into [minimum, maximum], or
        None when the range is empty or cannot be determined
    """
    symbols = _symbol_values(data)
    g_min = resolve_bound(minimum, symbols)
    g_max = resolve_bound(maximum, symbols)
    g_baseline = resolve_bound(baseline, symbols)

    if g_min is None or g_max is None or g_max - g_min <= 0:
        logger.error(f"can't draw graph: graph-min={g_min} graph-max={g_max}")
        return None
    if g_baseline is None:
        g_baseline = g_min
    if g_baseline < g_min:
        logger.warning(f"graph-baseline={g_baseline} is < graph-min={g_min}")
        g_baseline = g_min
    elif g_baseline > g_max:
        logger.warning(f"graph-baseline={g_baseline} is > graph-max={g_max}")
        g_baseline = g_max
    return GraphBounds(g_min, g_max, g_baseline)


def _to_rgb(color: str) -> tuple[int, int, int]:
    text = color.strip()
    if text.startswith("#") and len(text) == 7:
        return int(text[1:3], 16), int(text[3:5], 16), int(text[5:7], 16)
    named_color = getattr(named, text.lower(), None)
    if named_color is None:
        raise GlyphError(f"unsupported heat map color: {color}")
    return named_color.r, named_color.g, named_color.b


def heat_map_color_function(
    bounds: GraphBounds,
    min_color: str | None = None,
    max_color: str | None = None,
    palette: str | None = None,
) -> Callable[[float], str]:
    """
    Map a value in [bounds.minimum, bounds.maximum] to a color

    Args:
        bounds: Resolved graph range
        min_color: Color at the minimum (interpolated in RGB)
        max_color: Color at the maximum
        palette: Name of a Bokeh palette, e.g. "Viridis256"; overrides
            min_color and max_color

    Raises:
        GlyphError: If the palette or a color is unknown
    """
    if palette is not None:
        colors = getattr(palettes, palette, None)
        if not isinstance(colors, (list, tuple)) or not colors:
            raise GlyphError(f"Unknown heat map palette: {palette}")

        def palette_color(value: float) -> str:
            frac = np.clip((value - bounds.minimum) / bounds.height, 0.0, 1.0)
            return colors[min(int(frac * len(colors)), len(colors) - 1)]

        return palette_color

    lo = np.array(_to_rgb(min_color or DEFAULT_HEAT_MAP_MIN_COLOR), dtype=float)
    hi = np.array(_to_rgb(max_color or DEFAULT_HEAT_MAP_MAX_COLOR), dtype=float)

    def interpolated_color(value: float) -> str:
        frac = float(np.clip((value - bounds.minimum) / bounds.height, 0.0, 1.0))
        r, g, b = np.rint(lo + (hi - lo) * frac).astype(int)
        return RGB(int(r), int(g), int(b)).to_hex()

    return interpolated_color


def _color(option: Any, value: float) -> Any:
    return option(value) if callable(option) else option


class GraphRenderer:
    """
    Draws windowed values between radial fractions sf and ef

    Attributes:
        geometry: Primitive renderer
        layout: Layout to draw with
        sf: Inner radial fraction
        ef: Outer radial fraction
        bounds: Resolved graph range
        graph_type: Bar, line or heat map
        direction: OUT puts the minimum at sf, IN puts it at ef
    """

    def __init__(
        self,
        geometry: GeometryRenderer,
        layout: CircularLayout,
        sf: float,
        ef: float,
        bounds: GraphBounds,
        graph_type: GraphType = GraphType.BAR,
        direction: GraphDirection = GraphDirection.OUT,
    ):
        self.geometry = geometry
        self.layout = layout
        self.sf = sf
        self.ef = ef
        self.bounds = bounds
        self.graph_type = graph_type
        self.direction = direction
        height = ef - sf
        self.sw_half = layout.scaled_stroke_width(height, 1, 0.5)
        self.sw_one = layout.scaled_stroke_width(height, 1, 1)
        self.sw_ci = layout.scaled_stroke_width(height, 1, 4)

    def value_to_radial_frac(self, value: float) -> tuple[float, bool]:
        """
        Radial fraction of a value

        Returns:
            Tuple of (radial fraction, whether the value was clipped)
        """
        clipped = False
        if value < self.bounds.minimum:
            value, clipped = self.bounds.minimum, True
        elif value > self.bounds.maximum:
            value, clipped = self.bounds.maximum, True
        frh = (value - self.bounds.minimum) / self.bounds.height * (self.ef - self.sf)
        if self.direction == GraphDirection.OUT:
            return self.sf + frh, clipped
        return self.ef - frh, clipped

    def _series(self, point: GraphPoint, fill_color, stroke_color, fill_colors):
        """(cumulative value, fill, stroke) per series, largest first"""
        if not isinstance(point.value, StackedValue):
            v = point.value.value
            return [(v, _color(fill_color, v), _color(stroke_color, v))]
        series = []
        total = 0.0
        for i, v in enumerate(point.value.values):
            total += v
            stroke = _color(stroke_color, v) if i == 0 else "none"
            if fill_colors is not None:
                fill = fill_colors[i] if i < len(fill_colors) else "none"
            else:
                fill = _color(fill_color, v)
            series.insert(0, (total, fill, stroke))
        return series

    def draw(
        self,
        data: GraphData,
        fill_color: Any = "black",
        stroke_color: Any = "black",
        stroke_width: float | None = None,
        fill_colors: list[str] | None = None,
        heat_map_color: Callable[[float], str] | None = None,
        clip_fmin: float | None = None,
        clip_fmax: float | None = None,
    ) -> int:
        """
        Draw every point of the graph

        Returns:
            Number of points drawn
        """
        layout = self.layout
        clip_fmin = 0 if clip_fmin is None else clip_fmin
        clip_fmax = layout.seqlen if clip_fmax is None else clip_fmax
        line_width = self.sw_half if stroke_width is None else stroke_width
        baseline_frac, _ = self.value_to_radial_frac(self.bounds.baseline)

        if data.is_stacked:
            max_vals = max(len(p.value.series) for p in data.points)
            if fill_colors is None:
                logger.warning("fill-colors should be defined for a stacked bar graph")
            elif len(fill_colors) != max_vals:
                logger.warning(
                    f"fill-colors defines {len(fill_colors)} color(s) for stacked bar graph "
                    f"data with up to {max_vals} values per window"
                )

        drawn = 0
        last_series = None
        last_midpt = None
        for point in data.points:
            if point.fmin > clip_fmax or point.fmax < clip_fmin:
                continue
            series = self._series(point, fill_color, stroke_color, fill_colors)
            midpt = (point.fmin + point.fmax) / 2.0

            if self.graph_type == GraphType.BAR:
                for value, fill, stroke in series:
                    value_frac, _ = self.value_to_radial_frac(value)
                    lo, hi = sorted((baseline_frac, value_frac))
                    self.geometry.curved_rect(
                        layout, point.fmin, point.fmax, lo, hi,
                        fill=fill, stroke=stroke, stroke_width=self.sw_half,
                    )
            elif self.graph_type == GraphType.HEAT_MAP:
                color = heat_map_color(point.total)
                lo, _ = self.value_to_radial_frac(self.bounds.minimum)
                hi, _ = self.value_to_radial_frac(self.bounds.maximum)
                lo, hi = sorted((lo, hi))
                self.geometry.curved_rect(
                    layout, point.fmin, point.fmax, lo, hi,
                    fill=color, stroke=color, stroke_width=self.sw_half,
                )
            elif last_series is not None:
                for (v1, _, stroke), (v2, _, _) in zip(last_series, series):
                    f1, _ = self.value_to_radial_frac(v1)
                    f2, _ = self.value_to_radial_frac(v2)
                    self.geometry.curved_line(
                        layout, last_midpt, midpt, f1, f2, stroke=stroke, stroke_width=line_width
                    )

            if point.has_confidence_interval:
                lo, _ = self.value_to_radial_frac(point.conf_lo)
                hi, _ = self.value_to_radial_frac(point.conf_hi)
                self.geometry.radial_line(
                    layout, midpt, lo, hi, stroke="black", stroke_width=self.sw_ci,
                    opacity=CONFIDENCE_INTERVAL_OPACITY,
                )

            last_series, last_midpt = series, midpt
            drawn += 1
        logger.debug(f"drew {drawn} {self.graph_type.value} graph point(s)")
        return drawn

    def _reference_circle(self, frac: float) -> None:
        self.geometry.circle(
            self.layout, frac, stroke="black", stroke_width=self.sw_one, fill="none",
            opacity=GRAPH_CIRCLE_OPACITY, dasharray=GRAPH_CIRCLE_DASHARRAY,
        )

    def draw_reference_circles(
        self, data: GraphData, no_labels: bool = False
    ) -> list[CircleLabel]:
        """
        Dashed circles at the graph minimum, maximum and data average

        Circles for clipped values are omitted.

        Returns:
            Labels to draw next to the circles (empty when no_labels is set)
        """
        labels = []
        lfh = (self.ef - self.sf) / 8
        stats = data.totals
        avg = data.data_avg()

        for name, value in (("min", self.bounds.minimum), ("max", self.bounds.maximum)):
            frac, clipped = self.value_to_radial_frac(value)
            if clipped:
                continue
            self._reference_circle(frac)
            lo, hi = (frac, frac + lfh) if frac == self.sf else (frac - lfh, frac)
            labels.append(CircleLabel(lo, hi, f"{name}=%0.4f" % value))

        if avg is not None:
            frac, clipped = self.value_to_radial_frac(avg)
            if not clipped:
                self._reference_circle(frac)
                lo, hi = frac - lfh, frac
                mid = (float(stats.min()) + float(stats.max())) / 2.0
                if (avg < mid and self.direction == GraphDirection.OUT) or (
                    avg > mid and self.direction == GraphDirection.IN
                ):
                    lo, hi = lo + lfh, hi + lfh
                labels.append(CircleLabel(lo, hi, "avg=%0.4f" % avg))

        return [] if no_labels else labels

    def draw_custom_circles(self, circles: list[dict[str, Any]]) -> list[CircleLabel]:
        """
        User-defined reference circles: [{value, label, align}]

        Raises:
            GlyphError: On an alignment other than above, below or on
        """
        labels = []
        lfh = (self.ef - self.sf) / 8
        for circle in circles:
            align = circle.get("align") or "below"
            if align not in VALID_CIRCLE_ALIGNS:
                valid = ", ".join(VALID_CIRCLE_ALIGNS)
                raise GlyphError(f"Unknown circle alignment: {align}. Valid alignments: {valid}")
            frac, clipped = self.value_to_radial_frac(float(circle["value"]))
            if clipped:
                continue
            self._reference_circle(frac)
            if circle.get("label") is None:
                continue
            shift = {"above": lfh, "below": 0.0, "on": lfh / 2}[align]
            labels.append(CircleLabel(frac - lfh + shift, frac + shift, str(circle["label"])))
        return labels
