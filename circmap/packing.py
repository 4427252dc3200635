"""
Label packing

Labels on a track are spread over radial tiers so that no two labels in the
same tier overlap. How wide a label is depends on the font size, and the
font size depends on how many tiers the track is split into, so the packer
searches for a font-tier-count (FTC) and an actual tier count (TC) such that

    1. TC <= FTC, so text in adjacent tiers cannot collide radially
    2. FTC - TC is as small as possible, so little radial space is wasted

An upper bound on TC comes from packing with the largest font (FTC = 1).
FTC is then scanned upward in steps of 0.5; the relationship is not
monotonic, so the whole range is scanned rather than bisected.
"""

from bisect import bisect_left, insort
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    DEFAULT_TIER_GAP_FRAC,
    FONT_BASELINE_FRAC,
    FONT_WIDTH_FRAC,
    FTC_SEARCH_STEP,
    PackerKind,
)
from .errors import GlyphError
from .layout import CircularLayout
from .logging_config import get_logger
from .models import Feature

logger = get_logger(__name__)


@dataclass
class Label:
    """A piece of text anchored to a sequence position or interval

    Packing fills in pack_fmin/pack_fmax (the interval the text occupies at
    the chosen font size), the tier, and the tier's radial geometry.
    """

    text: str
    position: float
    fmin: float
    fmax: float
    feature: Feature | None = None
    options: dict[str, Any] = field(default_factory=dict)

    # Packing results
    pack_fmin: float | None = None
    pack_fmax: float | None = None
    tier: int | None = None
    sf: float | None = None
    ef: float | None = None
    font_height_frac: float | None = None
    baseline_radius: float | None = None

    @classmethod
    def from_feature(cls, feature: Feature, text: str, **options) -> "Label":
        return cls(
            text=text,
            position=feature.midpoint,
            fmin=feature.fmin,
            fmax=feature.fmax,
            feature=feature,
            options=options,
        )


@dataclass
class PackedInterval:
    """Interval a label occupies for one candidate font size"""

    fmin: float
    fmax: float
    position: float


class LinePacker:
    """
    Greedy first-fit interval packer on a circle

    Intervals are placed in order of start coordinate into the first tier
    with room. An interval running past the end of the sequence (or before
    its start) also occupies the wrapped part at the other end.

    Examples:
        >>> packer = LinePacker(1000)
        >>> packer.pack([(0, 100), (50, 150), (100, 200)])
        [[0, 2], [1]]
    """

    def __init__(self, seqlen: float):
        self.seqlen = seqlen

    def _pieces(self, fmin: float, fmax: float) -> list[tuple[float, float]]:
        L = self.seqlen
        if fmax - fmin >= L:
            return [(0.0, float(L))]
        if fmin < 0:
            return [(fmin + L, float(L)), (0.0, fmax)] if fmax > 0 else [(fmin + L, fmax + L)]
        if fmax > L:
            return [(fmin, float(L)), (0.0, fmax - L)] if fmin < L else [(fmin - L, fmax - L)]
        return [(fmin, fmax)]

    @staticmethod
    def _fits(tier: list[tuple[float, float]], piece: tuple[float, float]) -> bool:
        fmin, fmax = piece
        idx = bisect_left(tier, piece)
        if idx > 0 and tier[idx - 1][1] > fmin:
            return False
        if idx < len(tier) and tier[idx][0] < fmax:
            return False
        return True

    def pack(self, intervals: list[tuple[float, float]]) -> list[list[int]]:
        """
        Assign intervals to tiers

        Args:
            intervals: (fmin, fmax) pairs

        Returns:
            Tiers as lists of indices into `intervals`, innermost first
        """
        order = sorted(range(len(intervals)), key=lambda i: (intervals[i][0], intervals[i][1]))
        occupied: list[list[tuple[float, float]]] = []
        tiers: list[list[int]] = []
        for i in order:
            pieces = self._pieces(*intervals[i])
            for tier_idx, tier in enumerate(occupied):
                if all(self._fits(tier, p) for p in pieces):
                    break
            else:
                tier_idx = len(occupied)
                occupied.append([])
                tiers.append([])
            for p in pieces:
                insort(occupied[tier_idx], p)
            tiers[tier_idx].append(i)
        return tiers


@dataclass
class PackResult:
    """Outcome of packing one label track"""

    tiers: list[list[Label]]
    tier_count: int
    font_tier_count: float
    font_height_frac: float
    char_width_bp: float
    rounds: int = 0


class LabelPacker:
    """
    Jointly chooses font size and tier assignment for a label track

    Args:
        layout: Circular layout (transform and radius)
        sf: Track start fraction
        ef: Track end fraction
        tier_gap_frac: Fraction of each tier left empty
        font_height_frac: Scales the font height within a tier
        font_width_frac: Average character width as a fraction of font height
        packer: "LinePacker" or "none"
    """

    def __init__(
        self,
        layout: CircularLayout,
        sf: float,
        ef: float,
        tier_gap_frac: float = DEFAULT_TIER_GAP_FRAC,
        font_height_frac: float = 1.0,
        font_width_frac: float = FONT_WIDTH_FRAC,
        packer: str = PackerKind.LINE.value,
    ):
        try:
            self.packer_kind = PackerKind(packer)
        except ValueError as e:
            valid = ", ".join(p.value for p in PackerKind)
            raise GlyphError(f"Unknown packer: {packer}. Valid packers: {valid}") from e
        self.layout = layout
        self.sf = sf
        self.ef = ef
        self.tier_gap_frac = tier_gap_frac
        self.font_height_frac = font_height_frac
        self.font_width_frac = font_width_frac

    def font_metrics(self, ftc: float) -> tuple[float, float]:
        return self.layout.font_metrics(
            self.sf,
            self.ef,
            ftc,
            self.tier_gap_frac,
            self.font_height_frac,
            self.font_width_frac,
        )

    def packing_intervals(self, labels: list[Label], ftc: float) -> list[PackedInterval]:
        """
        Interval each label occupies at the font size implied by `ftc`

        Widths are compared in transformed coordinates because text size is
        unaffected by the coordinate transform. Labels narrower than their
        text are widened symmetrically.
        """
        _, char_width_bp = self.font_metrics(ftc)
        transform = self.layout.transform
        tlen = transform.transformed_length
        L = self.layout.seqlen

        intervals = []
        for label in labels:
            t_fmin = transform.transform(label.fmin)
            t_fmax = transform.transform(label.fmax)
            diff = len(label.text) * char_width_bp - (t_fmax - t_fmin)
            if diff > 0:
                t_fmin -= diff * 0.5
                t_fmax += diff * 0.5
            t_pos = (t_fmin + t_fmax) / 2.0

            if t_fmax > tlen:
                pack_fmax = transform.invert_transform(t_fmax - tlen) + L
            else:
                pack_fmax = transform.invert_transform(t_fmax)
            if t_fmin < 0:
                pack_fmin = transform.invert_transform(t_fmin + tlen) - L
            else:
                pack_fmin = transform.invert_transform(t_fmin)
            if t_pos >= tlen:
                position = transform.invert_transform(t_pos - tlen)
            elif t_pos < 0:
                position = transform.invert_transform(t_pos + tlen)
            else:
                position = transform.invert_transform(t_pos)
            intervals.append(PackedInterval(pack_fmin, pack_fmax, position))
        return intervals

    def _pack_once(self, labels: list[Label], ftc: float) -> tuple[int, list[list[int]]]:
        if not labels:
            return 1, [[]]
        if self.packer_kind == PackerKind.NONE:
            return 1, [list(range(len(labels)))]
        intervals = self.packing_intervals(labels, ftc)
        tiers = LinePacker(self.layout.seqlen).pack([(iv.fmin, iv.fmax) for iv in intervals])
        return len(tiers), tiers

    def search(self, labels: list[Label]) -> tuple[int, float, list[list[int]], int]:
        """
        Find the tier count and font-tier-count for a set of labels

        Returns:
            Tuple of (tier count, font-tier-count, tiers as label indices,
            number of packing rounds)
        """
        max_nt, best_tiers = self._pack_once(labels, 1)
        best_nt = max_nt
        best_ftc = float(max_nt)
        best_diff = abs(1 - max_nt)
        rounds = 1
        logger.debug(f"upper bound on tier count = {max_nt}")

        try_ftc = 1.0
        while try_ftc <= max_nt:
            nt, tiers = self._pack_once(labels, try_ftc)
            rounds += 1
            diff = abs(try_ftc - nt)
            if nt < best_nt and nt <= try_ftc and diff < best_diff:
                best_nt, best_ftc, best_tiers, best_diff = nt, try_ftc, tiers, diff
            try_ftc += FTC_SEARCH_STEP

        logger.debug(
            f"packed {len(labels)} label(s) into {best_nt} tier(s) with "
            f"font tier count {best_ftc} after {rounds} round(s)"
        )
        return best_nt, best_ftc, best_tiers, rounds

    def pack(self, labels: list[Label], reverse: bool = False) -> PackResult:
        """
        Pack labels and assign each one its tier geometry

        Args:
            labels: Labels to pack (updated in place)
            reverse: Reverse tier order, so tier 0 is outermost

        Returns:
            PackResult with labels grouped by tier, innermost tier first
        """
        if not labels:
            logger.warning("no labels to pack")
        nt, ftc, index_tiers, rounds = self.search(labels)
        if reverse:
            index_tiers = list(reversed(index_tiers))

        font_height_frac, char_width_bp = self.font_metrics(ftc)
        intervals = self.packing_intervals(labels, ftc) if labels else []
        for label, iv in zip(labels, intervals):
            label.pack_fmin, label.pack_fmax, label.position = iv.fmin, iv.fmax, iv.position

        tier_h = (self.ef - self.sf) / nt
        tiers = []
        for t, indices in enumerate(index_tiers):
            t_sf = self.sf + tier_h * t
            t_ef = t_sf + tier_h * (1 - self.tier_gap_frac)
            baseline = (t_ef - (t_ef - t_sf) * FONT_BASELINE_FRAC) * self.layout.radius
            tier_labels = []
            for i in indices:
                label = labels[i]
                label.tier = t
                label.sf, label.ef = t_sf, t_ef
                label.font_height_frac = font_height_frac
                label.baseline_radius = baseline
                tier_labels.append(label)
            tiers.append(tier_labels)

        return PackResult(
            tiers=tiers,
            tier_count=nt,
            font_tier_count=ftc,
            font_height_frac=font_height_frac,
            char_width_bp=char_width_bp,
            rounds=rounds,
        )
