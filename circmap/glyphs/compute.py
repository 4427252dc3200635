"""
Glyphs that compute new features

These tracks draw nothing. They derive features from other features or
from a graph and register them in the global index, where later tracks
select them by feat-type.
"""

from ..errors import GlyphError
from ..layout import CircularLayout
from ..logging_config import get_logger
from ..models import Feature, Track
from ..tracks import resolve_track_reference
from ..transform import merge_overlapping_intervals
from .base import Glyph
from .graph import GraphGlyph

logger = get_logger(__name__)

DEFAULT_DESERT_TYPE = "desert"
DEFAULT_REGION_TYPE = "graph_region"


def find_deserts(
    intervals: list[tuple[int, int]], seqlen: int, min_length: int, circular: bool = True
) -> list[tuple[int, int]]:
    """
    Gaps of at least min_length between intervals

    On a circular sequence the gap spanning the origin is reported once,
    with fmax past seqlen. Deserts are returned in position order.

    Examples:
        >>> find_deserts([(100, 200), (500, 600)], 1000, 200)
        [(200, 500), (600, 1100)]
    """
    merged = merge_overlapping_intervals(intervals)
    if not merged:
        return [(0, seqlen)] if seqlen >= min_length else []

    gaps = [(a[1], b[0]) for a, b in zip(merged, merged[1:])]
    first, last = merged[0], merged[-1]
    if circular:
        start, end = last[1], first[0] + seqlen
        if start >= seqlen:
            start, end = start - seqlen, end - seqlen
        gaps.append((start, end))
    else:
        gaps.insert(0, (0, first[0]))
        gaps.append((last[1], seqlen))
    return sorted(
        (fmin, fmax) for fmin, fmax in gaps if fmax - fmin > 0 and fmax - fmin >= min_length
    )


class ComputeDesertsGlyph(Glyph):
    """Registers a feature for every stretch without features"""

    def draw(self, track: Track, layout: CircularLayout) -> None:
        _, features = self.context.features(track)
        min_length = int(track.get("desert-min-length", 0))
        feat_type = track.get("desert-feat-type", DEFAULT_DESERT_TYPE)
        L = self.assembly.seqlen
        intervals = [(f.fmin, min(f.fmax, L)) for f in features]
        # origin-spanning features cover the start of the sequence too
        intervals += [(0, f.fmax - L) for f in features if f.fmax > L]

        deserts = find_deserts(intervals, L, min_length, self.assembly.circular)
        for i, (fmin, fmax) in enumerate(deserts):
            self.assembly.features.add(
                Feature(type=feat_type, fmin=fmin, fmax=fmax, strand=0, name=f"{feat_type}_{i + 1}")
            )
        logger.info(f"{track.label}: registered {len(deserts)} {feat_type} feature(s)")


class ComputeGraphRegionsGlyph(Glyph):
    """Registers a feature for every run of graph windows within a value range"""

    def draw(self, track: Track, layout: CircularLayout) -> None:
        graph_track = resolve_track_reference(
            self.context.tracks, track, track.get("graph-track")
        )
        if graph_track is None:
            raise GlyphError(f"{track.label}: compute-graph-regions requires graph-track")

        data = GraphGlyph(self.context).evaluate(graph_track)
        lo = track.get("graph-min-value")
        hi = track.get("graph-max-value")
        lo = float(lo) if lo is not None else None
        hi = float(hi) if hi is not None else None
        min_len = track.get("region-min-length")
        max_len = track.get("region-max-length")
        feat_type = track.get("region-feat-type", DEFAULT_REGION_TYPE)

        runs: list[list[float]] = []
        in_run = False
        for point in sorted(data.points, key=lambda p: p.fmin):
            value = point.total
            inside = (lo is None or value >= lo) and (hi is None or value <= hi)
            if inside and in_run:
                runs[-1][1] = max(runs[-1][1], point.fmax)
            elif inside:
                runs.append([point.fmin, point.fmax])
            in_run = inside

        count = 0
        for fmin, fmax in runs:
            length = fmax - fmin
            if min_len is not None and length < float(min_len):
                continue
            if max_len is not None and length > float(max_len):
                continue
            count += 1
            self.assembly.features.add(
                Feature(type=feat_type, fmin=int(fmin), fmax=int(fmax), strand=0,
                        name=f"{feat_type}_{count}")
            )
        logger.info(f"{track.label}: registered {count} {feat_type} feature(s) from {graph_track.label}")
