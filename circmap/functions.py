"""
Label functions and graph value functions

Label functions turn a feature into label text. Graph functions aggregate a
track's data over fixed-size (possibly overlapping) windows and declare the
value range they can produce, which graph bounds such as range_min resolve
against.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from .constants import DEFAULT_WINDOW_SIZE
from .errors import GlyphError
from .logging_config import get_logger
from .models import Assembly, Feature, Track

logger = get_logger(__name__)


# ==============================================================================
# Label functions
# ==============================================================================


def label_display_name(feature: Feature, assembly: Assembly) -> str:
    return feature.display_name or ""


def label_locus(feature: Feature, assembly: Assembly) -> str:
    return feature.first_tag("locus_tag", "")


def label_primary_id(feature: Feature, assembly: Assembly) -> str:
    return feature.feature_id or ""


def label_length_kb(feature: Feature, assembly: Assembly) -> str:
    return "%0.1fkb" % (feature.length / 1000.0)


def label_genomic_seq(feature: Feature, assembly: Assembly) -> str:
    if not assembly.sequence:
        raise GlyphError("label-function genomic_seq requires a sequence")
    return assembly.sequence[feature.fmin : feature.fmax]


LABEL_FUNCTIONS: dict[str, Callable[[Feature, Assembly], str]] = {
    "display_name": label_display_name,
    "locus": label_locus,
    "primary_id": label_primary_id,
    "length_kb": label_length_kb,
    "genomic_seq": label_genomic_seq,
}


def get_label_function(spec: Any) -> Callable[[Feature, Assembly], str]:
    """
    Resolve a label-function option

    Args:
        spec: A registered name, "tag:<name>", or a callable taking
            (feature, assembly)

    Raises:
        GlyphError: If the name is not recognized
    """
    if spec is None:
        return label_display_name
    if callable(spec):
        return spec
    if isinstance(spec, str) and spec.startswith("tag:"):
        tag = spec[len("tag:") :]
        return lambda feature, assembly: feature.first_tag(tag, "")
    if spec not in LABEL_FUNCTIONS:
        valid = ", ".join([*LABEL_FUNCTIONS, "tag:<name>"])
        raise GlyphError(f"Unknown label function: {spec}. Valid label functions: {valid}")
    return LABEL_FUNCTIONS[spec]


# ==============================================================================
# Graph values
# ==============================================================================


@dataclass(frozen=True)
class ScalarValue:
    """A single value per window"""

    value: float

    @property
    def total(self) -> float:
        return self.value

    @property
    def series(self) -> list[float]:
        return [self.value]


@dataclass(frozen=True)
class StackedValue:
    """Several series per window, drawn as stacked bars"""

    values: tuple[float, ...]

    @property
    def total(self) -> float:
        return float(sum(self.values))

    @property
    def series(self) -> list[float]:
        return list(self.values)


GraphValue = ScalarValue | StackedValue


def make_value(raw: Any) -> GraphValue:
    if isinstance(raw, (ScalarValue, StackedValue)):
        return raw
    if isinstance(raw, (list, tuple)):
        return StackedValue(tuple(float(v) for v in raw))
    return ScalarValue(float(raw))


@dataclass
class GraphPoint:
    """Aggregated value over one window [fmin, fmax)"""

    fmin: float
    fmax: float
    value: GraphValue
    conf_lo: float | None = None
    conf_hi: float | None = None

    @property
    def total(self) -> float:
        return self.value.total

    @property
    def has_confidence_interval(self) -> bool:
        return self.conf_lo is not None and self.conf_hi is not None


@dataclass
class GraphData:
    """Windowed values plus the range the producing function can emit"""

    points: list[GraphPoint]
    range_min: float | None = None
    range_max: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def totals(self) -> np.ndarray:
        return np.array([p.total for p in self.points], dtype=float)

    @property
    def is_stacked(self) -> bool:
        return any(isinstance(p.value, StackedValue) for p in self.points)

    def data_min(self) -> float | None:
        return float(self.totals.min()) if self.points else None

    def data_max(self) -> float | None:
        return float(self.totals.max()) if self.points else None

    def data_avg(self) -> float | None:
        return float(self.totals.mean()) if self.points else None


def window_bounds(
    seqlen: int,
    window_size: int,
    window_offset: int | None = None,
    omit_short_last_window: bool = False,
) -> np.ndarray:
    """
    Start and end of every window along the sequence

    Returns:
        (n, 2) integer array of [fmin, fmax) windows

    Raises:
        GlyphError: If window size or offset is not positive
    """
    if window_offset is None:
        window_offset = window_size
    if window_size <= 0 or window_offset <= 0:
        raise GlyphError(
            f"window-size and window-offset must be positive, got {window_size}/{window_offset}"
        )
    starts = np.arange(0, seqlen, window_offset, dtype=np.int64)
    ends = np.minimum(starts + window_size, seqlen)
    if omit_short_last_window and len(starts) and ends[-1] - starts[-1] < window_size:
        starts, ends = starts[:-1], ends[:-1]
    return np.column_stack([starts, ends])


def _base_prefix_sums(sequence: str, bases: str) -> np.ndarray:
    arr = np.frombuffer(sequence.upper().encode("ascii"), dtype=np.uint8)
    mask = np.zeros(len(arr), dtype=np.int64)
    for base in bases:
        mask |= arr == ord(base)
    return np.concatenate([[0], np.cumsum(mask)])


class GraphFunction(ABC):
    """Computes windowed values for a graph track"""

    name: str = ""
    range_min: float | None = None
    range_max: float | None = None
    needs_sequence: bool = False

    @abstractmethod
    def compute(
        self, assembly: Assembly, features: list[Feature], windows: np.ndarray
    ) -> list[GraphPoint]:
        """Value for each window"""
        pass

    def evaluate(self, assembly: Assembly, features: list[Feature], track: Track) -> GraphData:
        if self.needs_sequence and not assembly.sequence:
            raise GlyphError(f"graph function {self.name} requires a sequence")
        offset = track.get("window-offset")
        windows = window_bounds(
            assembly.seqlen,
            int(track.get("window-size", DEFAULT_WINDOW_SIZE)),
            int(offset) if offset is not None else None,
            track.flag("omit-short-last-window"),
        )
        points = self.compute(assembly, features, windows)
        logger.debug(f"{self.name}: {len(points)} window(s)")
        return GraphData(points, self.range_min, self.range_max)


class PercentGC(GraphFunction):
    """Percent G+C per window"""

    name = "percent_gc"
    range_min = 0.0
    range_max = 100.0
    needs_sequence = True

    def compute(self, assembly, features, windows):
        gc = _base_prefix_sums(assembly.sequence, "GC")
        acgt = _base_prefix_sums(assembly.sequence, "ACGT")
        points = []
        for fmin, fmax in windows:
            called = acgt[fmax] - acgt[fmin]
            pct = 100.0 * (gc[fmax] - gc[fmin]) / called if called else 0.0
            points.append(GraphPoint(int(fmin), int(fmax), ScalarValue(float(pct))))
        return points


class GCSkew(GraphFunction):
    """(G - C) / (G + C) per window"""

    name = "gc_skew"
    range_min = -1.0
    range_max = 1.0
    needs_sequence = True

    def compute(self, assembly, features, windows):
        g = _base_prefix_sums(assembly.sequence, "G")
        c = _base_prefix_sums(assembly.sequence, "C")
        points = []
        for fmin, fmax in windows:
            ng = g[fmax] - g[fmin]
            nc = c[fmax] - c[fmin]
            skew = (ng - nc) / (ng + nc) if ng + nc else 0.0
            points.append(GraphPoint(int(fmin), int(fmax), ScalarValue(float(skew))))
        return points


class FeatureCount(GraphFunction):
    """Number of track features overlapping each window"""

    name = "feature_count"
    range_min = 0.0
    range_max = math.inf

    def compute(self, assembly, features, windows):
        if not features:
            return [GraphPoint(int(a), int(b), ScalarValue(0.0)) for a, b in windows]
        fmins = np.sort(np.array([f.fmin for f in features]))
        fmaxs = np.sort(np.array([f.fmax for f in features]))
        points = []
        for fmin, fmax in windows:
            # started before the window ends minus ended at or before it starts
            started = np.searchsorted(fmins, fmax, side="left")
            ended = np.searchsorted(fmaxs, fmin, side="right")
            points.append(GraphPoint(int(fmin), int(fmax), ScalarValue(float(started - ended))))
        return points


class LiteralValues(GraphFunction):
    """Values supplied inline with the graph-values option"""

    name = "graph-values"

    def __init__(self, records: list[dict[str, Any]]):
        self.records = records

    def compute(self, assembly, features, windows):
        return [self._point(r) for r in self.records]

    def evaluate(self, assembly, features, track):
        points = self.compute(assembly, features, None)
        return GraphData(points, None, None)

    @staticmethod
    def _point(record: dict[str, Any]) -> GraphPoint:
        try:
            conf_lo, conf_hi = record.get("conf-lo"), record.get("conf-hi")
            return GraphPoint(
                float(record["fmin"]),
                float(record["fmax"]),
                make_value(record["value"]),
                float(conf_lo) if conf_lo is not None else None,
                float(conf_hi) if conf_hi is not None else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GlyphError(f"illegal graph-values entry {record!r}: {e}") from e


GRAPH_FUNCTIONS: dict[str, type[GraphFunction]] = {
    PercentGC.name: PercentGC,
    GCSkew.name: GCSkew,
    FeatureCount.name: FeatureCount,
}


def get_graph_function(track: Track) -> GraphFunction:
    """
    Graph function configured on a track

    Literal graph-values take precedence over graph-function.

    Raises:
        GlyphError: If neither is given or the function is unknown
    """
    literal = track.get("graph-values")
    if literal is not None:
        return LiteralValues(list(literal))

    name = track.get("graph-function")
    if name is None:
        raise GlyphError(f"{track.label} has no graph-function or graph-values")
    if isinstance(name, GraphFunction):
        return name
    if name not in GRAPH_FUNCTIONS:
        valid = ", ".join(GRAPH_FUNCTIONS)
        raise GlyphError(f"Unknown graph function: {name}. Valid graph functions: {valid}")
    return GRAPH_FUNCTIONS[name]()
