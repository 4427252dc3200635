"""
Base classes for glyph strategies

A glyph is the drawing behavior assigned to a track. Each glyph kind
implements this interface; the renderer picks one per track through the
glyph factory and calls draw().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..layout import CircularLayout
from ..models import Assembly, Feature, Track
from ..pipeline import FeaturePipeline
from ..rendering import Canvas, GeometryRenderer, ThemeManager
from ..transform import CoordinateTransform


@dataclass
class RenderContext:
    """
    State shared by every glyph during one render

    Attributes:
        assembly: Assembled sequence and global feature index
        tracks: Expanded track list
        pipeline: Feature pipeline for track feature lists
        canvas: Drawing surface
        geometry: Curved primitive renderer on the canvas
        theme: Theme colors
        layout: Layout subsequent tracks are drawn with; replaced when a
            track installs a new coordinate transform
    """

    assembly: Assembly
    tracks: list[Track]
    pipeline: FeaturePipeline
    canvas: Canvas
    geometry: GeometryRenderer
    theme: ThemeManager
    layout: CircularLayout

    def install_transform(self, transform: CoordinateTransform) -> None:
        """Use `transform` for every track drawn from now on"""
        self.layout = self.layout.with_base_transform(transform)

    def features(self, track: Track) -> tuple[Track, list[Feature]]:
        return self.pipeline.resolve(track)


def option_value(option: Any, *args) -> Any:
    """Evaluate an option that may be a constant or a callable"""
    return option(*args) if callable(option) else option


class Glyph(ABC):
    """
    Abstract base class for all glyph strategies

    Attributes:
        context: Shared render state
    """

    def __init__(self, context: RenderContext):
        self.context = context

    @property
    def assembly(self) -> Assembly:
        return self.context.assembly

    @property
    def canvas(self) -> Canvas:
        return self.context.canvas

    @property
    def geometry(self) -> GeometryRenderer:
        return self.context.geometry

    @property
    def theme(self) -> ThemeManager:
        return self.context.theme

    @abstractmethod
    def draw(self, track: Track, layout: CircularLayout) -> None:
        """
        Draw one track

        Args:
            track: Track to draw; start_frac <= end_frac
            layout: Layout (and coordinate transform) to draw with
        """
        pass

    def stroke_width(
        self, track: Track, layout: CircularLayout, nominal: float, ntiers: int = 1
    ) -> Any:
        """The track's stroke-width option, or `nominal` scaled to the track height"""
        width = track.get("stroke-width")
        if width is None or width == "":
            return layout.scaled_stroke_width(track.height, ntiers, nominal)
        return width if callable(width) else float(width)
