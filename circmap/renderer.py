"""
Single-pass map rendering

MapRenderer walks the expanded track list once, drawing each track into its
own group with the glyph strategy named by the track. Tracks may install a
new coordinate transform for every later track (scaled-segment-list) or draw
themselves unscaled (no-scaling); either way the transform in effect is held
by the RenderContext and restored on every exit path.
"""

from contextlib import contextmanager

from .cache import FeatureCache
from .config import MapOptions
from .constants import GlyphKind, OutputFormat
from .glyph_factory import create_glyph
from .glyphs.base import RenderContext
from .layout import CircularLayout
from .logging_config import get_logger
from .models import Assembly, Track
from .pipeline import FeaturePipeline
from .rendering import Canvas, GeometryRenderer, ThemeManager, create_canvas
from .transform import CoordinateTransform, IdentityTransform, build_transform, parse_scaled_segments

logger = get_logger(__name__)


class MapRenderer:
    """
    Draws every track of a map onto a canvas

    Args:
        assembly: Assembled sequence and feature index
        tracks: Expanded, numbered track list (see tracks.expand_tracks)
        options: Global map options
        cache: Feature file cache shared between renders
        canvas: Canvas to draw on; by default one is created for
            options.output_format (SVG when unset)

    Examples:
        >>> renderer = MapRenderer(assembly, expand_tracks(records), MapOptions())
        >>> svg = renderer.render().to_string()
    """

    def __init__(
        self,
        assembly: Assembly,
        tracks: list[Track],
        options: MapOptions | None = None,
        cache: FeatureCache | None = None,
        canvas: Canvas | None = None,
    ):
        self.assembly = assembly
        self.tracks = tracks
        self.options = options if options is not None else MapOptions()
        self.theme = ThemeManager(self.options.theme)

        segments = parse_scaled_segments(self.options.scaled_segment_list or "")
        self.layout = CircularLayout.create(
            assembly.seqlen,
            transform=build_transform(assembly.seqlen, segments),
            rotate_degrees=self.options.rotate_degrees,
            pad=self.options.pad,
        )
        if canvas is None:
            canvas = create_canvas(
                self.options.output_format or OutputFormat.SVG,
                self.layout.size,
                self.layout.center,
                self.theme,
            )
        self.canvas = canvas
        self.pipeline = FeaturePipeline(
            assembly, tracks, data_dir=self.options.data_dir, cache=cache
        )
        self.context = RenderContext(
            assembly=assembly,
            tracks=tracks,
            pipeline=self.pipeline,
            canvas=canvas,
            geometry=GeometryRenderer(canvas),
            theme=self.theme,
            layout=self.layout,
        )

    def __repr__(self) -> str:
        return (
            f"<MapRenderer: {self.assembly.seqlen} bp, {len(self.tracks)} track(s), "
            f"{self.context.layout.transform!r}>"
        )

    @contextmanager
    def scoped_transform(self, transform: CoordinateTransform):
        """Draw with `transform` inside the block, then restore the previous layout"""
        saved = self.context.layout
        self.context.layout = saved.with_transform(transform)
        try:
            yield self.context.layout
        finally:
            self.context.layout = saved

    def render(self) -> Canvas:
        """
        Draw every track

        Returns:
            The canvas, ready to serialize

        Raises:
            CircmapError: On any fatal condition; nothing is serialized
        """
        logger.info(
            f"rendering {len(self.tracks)} track(s) on {self.assembly.seqlen} bp "
            f"({len(self.assembly.features)} indexed feature(s))"
        )
        for track in self.tracks:
            self.render_track(track)
        return self.canvas

    def render_track(self, track: Track) -> None:
        if track.flag("skip-track"):
            logger.debug(f"skipping {track.label}")
            return
        if track.start_frac > track.end_frac:
            logger.warning(
                f"{track.label} has start-frac {track.start_frac} > end-frac "
                f"{track.end_frac}, swapping them"
            )
            track.start_frac, track.end_frac = track.end_frac, track.start_frac

        glyph = create_glyph(track.glyph, self.context)
        opacity = track.get("opacity")
        opacity = float(opacity) if opacity is not None else None
        logger.debug(f"drawing {track.label} with {type(glyph).__name__}")

        no_scaling = track.flag("no-scaling")
        if no_scaling and track.glyph == GlyphKind.SCALED_SEGMENT_LIST.value:
            logger.warning(
                f"ignoring no-scaling on {track.label}: its transform applies to later tracks"
            )
            no_scaling = False

        with self.canvas.group(f"t{track.number}", opacity=opacity):
            if no_scaling:
                with self.scoped_transform(IdentityTransform(self.assembly.seqlen)) as layout:
                    glyph.draw(track, layout)
            else:
                glyph.draw(track, self.context.layout)
