"""Glyphs that draw nothing"""

from ..layout import CircularLayout
from ..logging_config import get_logger
from ..models import Track
from .base import Glyph

logger = get_logger(__name__)


class NoneGlyph(Glyph):
    """Placeholder track, e.g. to reserve radial space"""

    def draw(self, track: Track, layout: CircularLayout) -> None:
        pass


class LoadGlyph(Glyph):
    """Resolve a track's features so later tracks can select them from the index"""

    def draw(self, track: Track, layout: CircularLayout) -> None:
        _, features = self.context.features(track)
        logger.info(f"{track.label}: loaded {len(features)} feature(s)")
