"""
Glyph factory for creating glyph strategies

This module maps a track's `glyph` name to the glyph strategy that draws it.
"""

from .constants import GlyphKind
from .errors import GlyphError
from .glyphs.arrow import ArrowGlyph
from .glyphs.base import Glyph, RenderContext
from .glyphs.basic import LoadGlyph, NoneGlyph
from .glyphs.compute import ComputeDesertsGlyph, ComputeGraphRegionsGlyph
from .glyphs.graph import GraphGlyph
from .glyphs.label import LabelGlyph
from .glyphs.rectangle import RectangleGlyph
from .glyphs.ruler import RulerGlyph
from .glyphs.scaled_segments import ScaledSegmentListGlyph

GLYPH_CLASSES: dict[GlyphKind, type[Glyph]] = {
    GlyphKind.NONE: NoneGlyph,
    GlyphKind.LOAD: LoadGlyph,
    GlyphKind.RECTANGLE: RectangleGlyph,
    GlyphKind.ARROW: ArrowGlyph,
    GlyphKind.LABEL: LabelGlyph,
    GlyphKind.GRAPH: GraphGlyph,
    GlyphKind.RULER: RulerGlyph,
    GlyphKind.SCALED_SEGMENT_LIST: ScaledSegmentListGlyph,
    GlyphKind.COMPUTE_DESERTS: ComputeDesertsGlyph,
    GlyphKind.COMPUTE_GRAPH_REGIONS: ComputeGraphRegionsGlyph,
}


def create_glyph(kind: GlyphKind | str, context: RenderContext) -> Glyph:
    """
    Factory function to create the glyph strategy for a track

    Args:
        kind: GlyphKind or its name as written in a track record
        context: Shared render state passed to the glyph

    Returns:
        Glyph instance for the requested kind

    Raises:
        GlyphError: If kind is not a known glyph

    Examples:
        >>> glyph = create_glyph("rectangle", context)
        >>> glyph.draw(track, context.layout)
    """
    try:
        glyph_class = GLYPH_CLASSES.get(GlyphKind(kind))
    except ValueError:
        glyph_class = None

    if glyph_class is None:
        valid = ", ".join(k.value for k in GLYPH_CLASSES)
        raise GlyphError(f"Unknown glyph: {kind}. Valid glyphs: {valid}")
    return glyph_class(context)
