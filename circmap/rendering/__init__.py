"""Rendering backends and drawing primitives for circular maps"""

from .canvas import BokehCanvas, Canvas, SvgCanvas, create_canvas
from .geometry import GeometryRenderer
from .graph import (
    CircleLabel,
    GraphBounds,
    GraphRenderer,
    heat_map_color_function,
    resolve_graph_bounds,
)
from .path import PathBuilder
from .theme_manager import ThemeManager

__all__ = [
    "Canvas",
    "SvgCanvas",
    "BokehCanvas",
    "create_canvas",
    "GeometryRenderer",
    "GraphRenderer",
    "GraphBounds",
    "CircleLabel",
    "resolve_graph_bounds",
    "heat_map_color_function",
    "PathBuilder",
    "ThemeManager",
]
