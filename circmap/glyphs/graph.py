"""
Graph glyph

Evaluates the track's graph function over the sequence and draws the
resulting windows as a bar graph, line graph or heat map, with optional
dashed reference circles and their labels.
"""

from typing import Any

from ..constants import (
    GRAPH_CIRCLE_OPACITY,
    GlyphKind,
    GraphDirection,
    GraphType,
    LabelType,
    PackerKind,
)
from ..errors import GlyphError
from ..functions import GraphData, get_graph_function
from ..layout import CircularLayout
from ..logging_config import get_logger
from ..models import Track
from ..rendering import CircleLabel, GraphRenderer, heat_map_color_function, resolve_graph_bounds
from .base import Glyph
from .label import LabelGlyph

logger = get_logger(__name__)


def _enum_option(enum_cls, value: Any, what: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        valid = ", ".join(v.value for v in enum_cls)
        raise GlyphError(f"Unknown {what}: {value}. Valid values: {valid}") from e


def _fill_colors(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [c.strip() for c in value.split("|")]
    return list(value)


class GraphGlyph(Glyph):
    """
    Draws a windowed value graph

    Options:
        graph-function / graph-values: Value source
        window-size, window-offset, omit-short-last-window: Windowing
        graph-type: bar (default), line or heat_map
        graph-direction: out (default) or in
        graph-min, graph-max, graph-baseline: Numbers or range_min,
            range_max, data_min, data_max, data_avg
        fill-color, stroke-color, stroke-width, fill-colors ("a|b|c")
        heat-map-min-color, heat-map-max-color, heat-map-palette
        no-circles, no-labels, circles ([{value, label, align}])
        clip-fmin, clip-fmax
    """

    def evaluate(self, track: Track) -> GraphData:
        _, features = self.context.features(track)
        return get_graph_function(track).evaluate(self.assembly, features, track)

    def draw(self, track: Track, layout: CircularLayout) -> None:
        if track.height <= 0:
            logger.error(f"{track.label}: graph height must be > 0, got {track.height}")
            return

        graph_type = _enum_option(GraphType, track.get("graph-type", GraphType.BAR.value), "graph type")
        direction = _enum_option(
            GraphDirection, track.get("graph-direction", GraphDirection.OUT.value), "graph direction"
        )
        data = self.evaluate(track)
        if not data.points:
            logger.warning(f"{track.label}: graph has no data points")
            return

        bounds = resolve_graph_bounds(
            data,
            baseline=track.get("graph-baseline", "range_min"),
            minimum=track.get("graph-min", "range_min"),
            maximum=track.get("graph-max", "range_max"),
        )
        if bounds is None:
            return

        renderer = GraphRenderer(
            self.geometry, layout, track.start_frac, track.end_frac, bounds, graph_type, direction
        )
        heat_map_color = None
        if graph_type == GraphType.HEAT_MAP:
            heat_map_color = heat_map_color_function(
                bounds,
                track.get("heat-map-min-color"),
                track.get("heat-map-max-color"),
                track.get("heat-map-palette"),
            )

        stroke_width = track.get("stroke-width")
        renderer.draw(
            data,
            fill_color=track.get("fill-color", self.theme.fill),
            stroke_color=track.get("stroke-color", self.theme.stroke),
            stroke_width=float(stroke_width) if stroke_width is not None else None,
            fill_colors=_fill_colors(track.get("fill-colors")),
            heat_map_color=heat_map_color,
            clip_fmin=track.get("clip-fmin"),
            clip_fmax=track.get("clip-fmax"),
        )

        circles = track.get("circles")
        if circles is not None:
            labels = renderer.draw_custom_circles(list(circles))
        elif track.flag("no-circles") or (
            graph_type == GraphType.HEAT_MAP and "no-circles" not in track.options
        ):
            labels = []
        else:
            labels = renderer.draw_reference_circles(data, no_labels=track.flag("no-labels"))

        for i, circle_label in enumerate(labels):
            self._draw_circle_label(track, layout, i, circle_label)

    def _draw_circle_label(
        self, track: Track, layout: CircularLayout, index: int, circle_label: CircleLabel
    ) -> None:
        sub_track = Track(
            glyph=GlyphKind.LABEL.value,
            start_frac=circle_label.start_frac,
            end_frac=circle_label.end_frac,
            options={
                "labels": [{"text": circle_label.text, "position": 0}],
                "label-type": LabelType.CURVED.value,
                "packer": PackerKind.NONE.value,
                "text-color": track.get("circle-label-color", self.theme.text),
            },
            number=track.number,
        )
        with self.canvas.group(f"t{track.number}-circle-label-{index}", opacity=GRAPH_CIRCLE_OPACITY):
            LabelGlyph(self.context).draw(sub_track, layout)
