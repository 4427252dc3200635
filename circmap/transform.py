"""
Coordinate transforms between sequence positions and drawn positions

A transform maps a sequence coordinate x in [0, L) to a "transformed"
coordinate that the circular layout converts to an angle. The identity
transform leaves coordinates alone. The linear scale transform stretches or
shrinks chosen segments of the sequence, shifting everything downstream of a
segment by that segment's net expansion.

Examples:
    >>> t = LinearScaleTransform(10000, parse_scaled_segments("1000-2000:2"))
    >>> t.transform(1500)
    2000.0
    >>> t.transformed_length
    11000.0
"""

import re
from abc import ABC, abstractmethod
from bisect import bisect_right
from dataclasses import dataclass

from .errors import TransformError
from .logging_config import get_logger

logger = get_logger(__name__)

SEGMENT_RE = re.compile(r"^(\d+)-(\d+):([\d.]+)$")


@dataclass(frozen=True)
class ScaledSegment:
    """Sequence interval [fmin, fmax) drawn at `scale` times its length"""

    fmin: int
    fmax: int
    scale: float

    @property
    def length(self) -> int:
        return self.fmax - self.fmin

    @property
    def scaled_length(self) -> float:
        return self.length * self.scale

    def __str__(self) -> str:
        return f"{self.fmin}-{self.fmax}:{self.scale:g}"


class CoordinateTransform(ABC):
    """Monotonic mapping between sequence and transformed coordinates"""

    def __init__(self, seqlen: int):
        if seqlen <= 0:
            raise TransformError(f"sequence length must be positive, got {seqlen}")
        self.seqlen = seqlen

    @property
    @abstractmethod
    def transformed_length(self) -> float:
        """Length of the whole sequence in transformed coordinates"""

    @abstractmethod
    def transform(self, coord: float) -> float:
        pass

    @abstractmethod
    def invert_transform(self, coord: float) -> float:
        pass

    @property
    def is_identity(self) -> bool:
        return False

    def span(self, fmin: float, fmax: float) -> float:
        """Transformed length of [fmin, fmax)"""
        return self.transform(fmax) - self.transform(fmin)


class IdentityTransform(CoordinateTransform):
    """Transform that draws every base at the same size"""

    def __repr__(self) -> str:
        return f"<IdentityTransform: {self.seqlen} bp>"

    @property
    def transformed_length(self) -> float:
        return float(self.seqlen)

    @property
    def is_identity(self) -> bool:
        return True

    def transform(self, coord: float) -> float:
        return coord

    def invert_transform(self, coord: float) -> float:
        return coord


class LinearScaleTransform(CoordinateTransform):
    """
    Piecewise-linear transform that rescales selected segments

    Inside a segment, positions advance `scale` transformed units per base.
    Outside every segment, positions advance 1:1 but are shifted by the net
    expansion (or contraction) of all preceding segments.

    Args:
        seqlen: Sequence length L
        segments: Disjoint segments to rescale, in any order

    Raises:
        TransformError: If a segment has fmin > fmax or a scale <= 0, if two
            segments overlap, or if the scaled segments alone need more than L
    """

    def __init__(self, seqlen: int, segments: list[ScaledSegment]):
        super().__init__(seqlen)
        self.segments = sorted(segments, key=lambda s: (s.fmin, s.fmax))

        for seg in self.segments:
            if seg.fmin > seg.fmax:
                raise TransformError(f"scaled segment {seg} has fmin > fmax")
            if seg.scale <= 0:
                raise TransformError(f"scaled segment {seg} has non-positive scale")
        for prev, seg in zip(self.segments, self.segments[1:]):
            if seg.fmin < prev.fmax:
                raise TransformError(f"scaled segments {prev} and {seg} overlap")

        total_scaled = sum(s.scaled_length for s in self.segments)
        if total_scaled > seqlen:
            raise TransformError(
                f"total length of scaled segments ({total_scaled:g} bp) exceeds "
                f"sequence length ({seqlen} bp)"
            )

        # Breakpoints in sequence space and their images in transformed space
        self._xs: list[float] = []
        self._ys: list[float] = []
        shift = 0.0
        for seg in self.segments:
            self._xs.extend([seg.fmin, seg.fmax])
            self._ys.extend([seg.fmin + shift, seg.fmin + shift + seg.scaled_length])
            shift += seg.scaled_length - seg.length
        self._net_expansion = shift

        logger.debug(
            f"scaled {len(self.segments)} segment(s), net expansion {shift:g} bp, "
            f"transformed length {self.transformed_length:g}"
        )

    def __repr__(self) -> str:
        segs = ",".join(str(s) for s in self.segments)
        return f"<LinearScaleTransform: {self.seqlen} bp, segments={segs}>"

    @property
    def transformed_length(self) -> float:
        return self.seqlen + self._net_expansion

    def transform(self, coord: float) -> float:
        return self._interpolate(coord, self._xs, self._ys)

    def invert_transform(self, coord: float) -> float:
        return self._interpolate(coord, self._ys, self._xs)

    @staticmethod
    def _interpolate(value: float, src: list[float], dst: list[float]) -> float:
        # src holds (segment start, segment end) pairs in ascending order
        idx = bisect_right(src, value)
        if idx == 0:
            return float(value)
        if idx % 2 == 1 and idx < len(src):
            # Inside segment idx // 2
            s0, s1 = src[idx - 1], src[idx]
            d0, d1 = dst[idx - 1], dst[idx]
            if s1 == s0:
                return float(d0)
            return d0 + (value - s0) * (d1 - d0) / (s1 - s0)
        # Between segments (or past the last one): shifted 1:1
        return float(value - src[idx - 1] + dst[idx - 1])


def parse_scaled_segments(text: str) -> list[ScaledSegment]:
    """
    Parse a comma-separated list of fmin-fmax:scale tuples

    Args:
        text: e.g. "2000-3000:5,4000-5000:0.5"

    Returns:
        List of ScaledSegment in input order (empty for blank input)

    Raises:
        TransformError: If any item is malformed
    """
    segments = []
    for item in re.split(r"\s*,\s*", text.strip()):
        if not item:
            continue
        match = SEGMENT_RE.match(item)
        if match is None:
            raise TransformError(
                f"unable to parse scaled segment '{item}': expected fmin-fmax:scale"
            )
        try:
            scale = float(match.group(3))
        except ValueError as e:
            raise TransformError(f"illegal scale in scaled segment '{item}'") from e
        segments.append(ScaledSegment(int(match.group(1)), int(match.group(2)), scale))
    return segments


def build_transform(seqlen: int, segments: list[ScaledSegment] | None) -> CoordinateTransform:
    """Identity transform when there are no segments, otherwise a linear scale"""
    if not segments:
        return IdentityTransform(seqlen)
    return LinearScaleTransform(seqlen, segments)


def merge_overlapping_intervals(
    intervals: list[tuple[int, int]],
) -> list[tuple[int, int]]:
    """
    Merge overlapping or touching [fmin, fmax) intervals

    Examples:
        >>> merge_overlapping_intervals([(50, 60), (0, 10), (10, 20), (55, 70)])
        [(0, 20), (50, 70)]
    """
    merged: list[list[int]] = []
    for fmin, fmax in sorted(intervals):
        if merged and fmin <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], fmax)
        else:
            merged.append([fmin, fmax])
    return [(a, b) for a, b in merged]
