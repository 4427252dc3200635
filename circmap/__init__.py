"""
circmap: Circular genome and plasmid maps

Draws a circular sequence as concentric tracks (feature bands, arrows,
packed labels, windowed graphs, rulers) described by a JSON track list,
and writes the map as SVG (svgwrite) or standalone interactive HTML (bokeh).

Example usage:
    >>> from circmap import SequenceAssembler, MapRenderer, expand_tracks, load_config
    >>> from circmap.io import load_contig_entries
    >>>
    >>> records, options = load_config("tracks.json")
    >>> assembly = SequenceAssembler().assemble(load_contig_entries(data="pUC19.gb"))
    >>> canvas = MapRenderer(assembly, expand_tracks(records), options).render()
    >>> canvas.save("pUC19.svg")

Command line:
    $ circmap --config tracks.json --data pUC19.gb -o pUC19.svg
"""

__version__ = "0.3.0"

from .assembly import ContigEntry, SequenceAssembler, parse_contig_list
from .config import MapOptions, load_config, parse_config
from .constants import GlyphKind, GraphType, LabelType, OutputFormat, Theme
from .errors import (
    AssemblyError,
    CircmapError,
    ContigListError,
    FeatureError,
    GlyphError,
    TransformError,
)
from .glyph_factory import create_glyph
from .layout import CircularLayout
from .models import Assembly, Contig, Feature, FeatureIndex, Track
from .packing import Label, LabelPacker, LinePacker
from .pipeline import FeaturePipeline
from .renderer import MapRenderer
from .tracks import expand_tracks
from .transform import (
    IdentityTransform,
    LinearScaleTransform,
    ScaledSegment,
    parse_scaled_segments,
)

__all__ = [
    "__version__",
    # Sequence assembly
    "Assembly",
    "Contig",
    "ContigEntry",
    "SequenceAssembler",
    "parse_contig_list",
    # Features and tracks
    "Feature",
    "FeatureIndex",
    "FeaturePipeline",
    "Track",
    "expand_tracks",
    # Coordinates
    "CircularLayout",
    "IdentityTransform",
    "LinearScaleTransform",
    "ScaledSegment",
    "parse_scaled_segments",
    # Labels
    "Label",
    "LabelPacker",
    "LinePacker",
    # Rendering
    "MapOptions",
    "MapRenderer",
    "create_glyph",
    "load_config",
    "parse_config",
    # Constants
    "GlyphKind",
    "GraphType",
    "LabelType",
    "OutputFormat",
    "Theme",
    # Errors
    "CircmapError",
    "AssemblyError",
    "ContigListError",
    "FeatureError",
    "GlyphError",
    "TransformError",
]
