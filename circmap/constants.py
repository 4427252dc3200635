"""Constants and configuration for circmap"""

from enum import Enum

# ==============================================================================
# Drawing Geometry
# ==============================================================================

RADIUS = 1200  # Fixed drawing radius (radial fraction 1.0) in canvas units
DEFAULT_PAD = 400  # Padding around the circle for labels that extend past it
TARGET_STROKE_WIDTH_RATIO = 1000  # Track height (px) at which stroke width 1 looks right

# Where the sequence origin sits, clockwise from 12 o'clock
DEFAULT_ROTATE_DEGREES = 0
# Trig functions put 0 degrees at 3 o'clock; subtract this to put it at 12
MATH_TRIG_ORIGIN_DEGREES = 90

# ==============================================================================
# Text and Label Settings
# ==============================================================================

DEFAULT_RULER_FONT_SIZE = 50
FONT_BASELINE_FRAC = 0.8  # Baseline position as a fraction of font height
FONT_WIDTH_FRAC = 0.8  # Average character width as a fraction of font height
DEFAULT_TIER_GAP_FRAC = 0.2  # Fraction of each label tier left empty
FTC_SEARCH_STEP = 0.5  # Step size of the font-tier-count search

# ==============================================================================
# Sequence Assembly
# ==============================================================================

DEFAULT_CONTIG_GAP_SIZE_BP = 20000
DEFAULT_CONTIG_MIN_SIZE_BP = 0
GAP_FEATURE_TYPE = "contig_gap"
CONTIG_FEATURE_TYPE = "contig"
GENOME_FEATURE_TYPE = "genome"
REFERENCE_FEATURE_TYPE = "reference_sequence"

# ==============================================================================
# Graph Settings
# ==============================================================================

DEFAULT_WINDOW_SIZE = 5000
GRAPH_CIRCLE_OPACITY = 0.6
GRAPH_CIRCLE_DASHARRAY = "3, 3"
CONFIDENCE_INTERVAL_OPACITY = 0.3

# Symbolic graph bounds resolved against the value function and the data
GRAPH_BOUND_SYMBOLS = ("range_min", "range_max", "data_min", "data_max", "data_avg")

# ==============================================================================
# Track Options
# ==============================================================================


class GlyphKind(Enum):
    """Drawing behaviors that can be assigned to a track"""

    NONE = "none"
    LOAD = "load"
    RECTANGLE = "rectangle"
    ARROW = "arrow"
    LABEL = "label"
    GRAPH = "graph"
    RULER = "ruler"
    SCALED_SEGMENT_LIST = "scaled-segment-list"
    COMPUTE_DESERTS = "compute-deserts"
    COMPUTE_GRAPH_REGIONS = "compute-graph-regions"


# Glyph names consumed by track pre-expansion, never rendered
LOOP_START_GLYPH = "loop-start"
LOOP_END_GLYPH = "loop-end"


class GraphType(Enum):
    """Graph drawing modes"""

    BAR = "bar"
    LINE = "line"
    HEAT_MAP = "heat_map"


class GraphDirection(Enum):
    """Which radial edge the graph minimum sits on"""

    OUT = "out"  # Minimum at the inner edge (default)
    IN = "in"  # Minimum at the outer edge


class LabelType(Enum):
    """Text orientation for labels"""

    CURVED = "curved"  # Follows the circle
    HORIZONTAL = "horizontal"  # Plain horizontal text
    SPOKE = "spoke"  # Radiates out from the center


class LabelStyle(Enum):
    """Decoration drawn around a label"""

    DEFAULT = "default"
    SIGNPOST = "signpost"  # Box around the label plus a link line to the feature


class PackerKind(Enum):
    """Label packing strategies"""

    LINE = "LinePacker"
    NONE = "none"


class RulerUnits(Enum):
    """Units for coordinate labels on a ruler track"""

    GB = "Gb"
    MB = "Mb"
    KB = "kb"
    BP = "bp"


RULER_UNIT_DIVISORS = {
    RulerUnits.GB: 1_000_000_000.0,
    RulerUnits.MB: 1_000_000.0,
    RulerUnits.KB: 1_000.0,
    RulerUnits.BP: 1.0,
}


class Quadrant(Enum):
    """Quadrants of the circle, numbered clockwise from 12 o'clock"""

    TOP_RIGHT = "tr"
    BOTTOM_RIGHT = "br"
    BOTTOM_LEFT = "bl"
    TOP_LEFT = "tl"

    @property
    def is_left(self) -> bool:
        return self.value.endswith("l")

    @property
    def is_bottom(self) -> bool:
        return self.value.startswith("b")


QUADRANT_ORDER = (
    Quadrant.TOP_RIGHT,
    Quadrant.BOTTOM_RIGHT,
    Quadrant.BOTTOM_LEFT,
    Quadrant.TOP_LEFT,
)


class ContigKind(Enum):
    """Entry kinds accepted by the sequence assembler"""

    CONTIG = "contig"
    GAP = "gap"
    GENOME = "genome"


# ==============================================================================
# Output and Theme Settings
# ==============================================================================


class OutputFormat(Enum):
    """Output document formats"""

    SVG = "svg"  # Static vector document (svgwrite)
    HTML = "html"  # Standalone interactive document (bokeh)


class Theme(Enum):
    """Map color themes"""

    LIGHT = "light"  # Light mode (default)
    DARK = "dark"  # Dark mode


LIGHT_THEME = {
    "background": "#ffffff",
    "stroke": "black",
    "fill": "black",
    "text": "black",
    "link": "black",
    "reference_circle": "black",
}

DARK_THEME = {
    "background": "#1e1e1e",
    "stroke": "#e0e0e0",
    "fill": "#e0e0e0",
    "text": "#ffffff",
    "link": "#cccccc",
    "reference_circle": "#cccccc",
}

# Heat map endpoints when neither colors nor a palette are configured
DEFAULT_HEAT_MAP_MIN_COLOR = "#ffffff"
DEFAULT_HEAT_MAP_MAX_COLOR = "#d55e00"
