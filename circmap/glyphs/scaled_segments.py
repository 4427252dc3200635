"""Glyph that rescales sequence segments for every later track"""

from ..errors import GlyphError
from ..layout import CircularLayout
from ..logging_config import get_logger
from ..models import Track
from ..transform import LinearScaleTransform, ScaledSegment, merge_overlapping_intervals
from .base import Glyph

logger = get_logger(__name__)


def _number(value, name: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise GlyphError(f"{name} must be numeric, got {value!r}") from e


class ScaledSegmentListGlyph(Glyph):
    """
    Builds a scaled segment list from the track's features

    The features' intervals are merged and each merged interval is drawn
    at `scale` times its length, or stretched to `target-bp`. Nothing is
    drawn; the new transform applies to every subsequent track.
    """

    def segments(self, track: Track) -> list[ScaledSegment]:
        scale = _number(track.get("scale"), "scale")
        target_bp = _number(track.get("target-bp"), "target-bp")
        if scale is None and target_bp is None:
            raise GlyphError(f"{track.label}: scaled-segment-list requires scale or target-bp")

        _, features = self.context.features(track)
        L = self.assembly.seqlen
        intervals = merge_overlapping_intervals([(f.fmin, min(f.fmax, L)) for f in features])
        segments = []
        for fmin, fmax in intervals:
            length = fmax - fmin
            if length <= 0:
                continue
            seg_scale = target_bp / length if target_bp is not None else scale
            segments.append(ScaledSegment(fmin, fmax, seg_scale))
        return segments

    def draw(self, track: Track, layout: CircularLayout) -> None:
        segments = self.segments(track)
        if not segments:
            logger.warning(f"{track.label}: no features to scale, transform unchanged")
            return
        self.context.install_transform(LinearScaleTransform(self.assembly.seqlen, segments))
        logger.info(
            f"{track.label}: installed transform with {len(segments)} scaled segment(s)"
        )
