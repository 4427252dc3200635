"""
Label glyph

Labels come either from a literal `labels` list or from the track's
features through a label function. They are packed into radial tiers by
LabelPacker and drawn curved along the circle, horizontally, or as spokes
radiating from the center. The signpost style adds a box around each
label and a link line to the labeled track.
"""

import math
from typing import Any

from ..constants import (
    DEFAULT_TIER_GAP_FRAC,
    FONT_BASELINE_FRAC,
    FONT_WIDTH_FRAC,
    MATH_TRIG_ORIGIN_DEGREES,
    LabelStyle,
    LabelType,
    PackerKind,
)
from ..errors import GlyphError
from ..functions import get_label_function
from ..layout import CircularLayout
from ..logging_config import get_logger
from ..models import Track
from ..packing import Label, LabelPacker, PackResult
from .base import Glyph, option_value

logger = get_logger(__name__)

SIGNPOST_STROKE_WIDTH = 10


def _label_type(value: Any) -> LabelType:
    try:
        return LabelType(value)
    except ValueError as e:
        valid = ", ".join(t.value for t in LabelType)
        raise GlyphError(f"Unknown label type: {value}. Valid label types: {valid}") from e


def _label_style(value: Any) -> LabelStyle:
    try:
        return LabelStyle(value)
    except ValueError as e:
        valid = ", ".join(s.value for s in LabelStyle)
        raise GlyphError(f"Unknown label style: {value}. Valid styles: {valid}") from e


def expand_literal_labels(records: list[dict[str, Any]], seqlen: int) -> list[dict[str, Any]]:
    """
    Copy literal label records, expanding `repeat`

    A record with `repeat` is copied at position, position + repeat, ...
    for every position below seqlen. fmin and fmax default to the position.

    Examples:
        >>> expand_literal_labels([{"text": "x", "repeat": 400}], 1000)
        [{'text': 'x', 'repeat': 400, 'position': 0, 'fmin': 0, 'fmax': 0}, ...]
    """
    expanded = []
    for record in records:
        repeat = record.get("repeat")
        if repeat is not None:
            repeat = float(repeat)
            if repeat <= 0:
                raise GlyphError(f"label repeat must be positive, got {repeat}")
            pos = record.get("position") or 0
            while pos < seqlen:
                copy = dict(record, position=pos)
                copy.setdefault("fmin", pos)
                copy.setdefault("fmax", pos)
                expanded.append(copy)
                pos += repeat
        else:
            copy = dict(record)
            copy.setdefault("position", 0)
            copy["fmin"] = copy.get("fmin", copy["position"])
            copy["fmax"] = copy.get("fmax", copy["position"])
            expanded.append(copy)
    return expanded


class LabelGlyph(Glyph):
    """
    Packs and draws a label track

    Options:
        labels: Literal labels [{text, position, fmin, fmax, repeat,
            text-anchor, style, type, draw-link, link-color}]
        label-function: Name or callable producing text from a feature
        label-type: curved (default), horizontal or spoke, or a callable
        style: default or signpost, or a callable
        text-anchor: start, middle or end; default start for spokes,
            middle otherwise
        packer: LinePacker (default) or none
        tier-gap-frac, font-height-frac, font-width-frac: Packing geometry
        reverse-pack-order: Put the first tier outermost
        draw-link, link-color: Signpost link line to the labeled track
        text-color, fill-color, stroke-color, stroke-width,
        font-family, font-style, font-weight
    """

    def _collect(self, track: Track) -> tuple[list[Label], Track | None]:
        literal = track.get("labels")
        if literal is not None:
            labels = []
            for record in expand_literal_labels(list(literal), self.assembly.seqlen):
                labels.append(
                    Label(
                        text=str(record.get("text", "")),
                        position=float(record["position"]),
                        fmin=float(record["fmin"]),
                        fmax=float(record["fmax"]),
                        options=record,
                    )
                )
            return labels, None

        ref_track, features = self.context.features(track)
        label_fn = get_label_function(track.get("label-function"))
        label_type = track.get("label-type", LabelType.CURVED.value)
        style = track.get("style", LabelStyle.DEFAULT.value)
        anchor = track.get("text-anchor")

        labels = []
        for feature in features:
            text = label_fn(feature, self.assembly)
            if text is None:
                continue
            lt = option_value(label_type, feature)
            ta = option_value(anchor, feature)
            if ta is None:
                ta = "start" if lt == LabelType.SPOKE.value else "middle"
            labels.append(
                Label.from_feature(
                    feature,
                    str(text),
                    **{
                        "type": lt,
                        "text-anchor": ta,
                        "style": option_value(style, feature),
                    },
                )
            )
        return labels, (ref_track if ref_track is not track else None)

    def pack(self, track: Track, layout: CircularLayout, labels: list[Label],
             ref_track: Track | None) -> PackResult:
        packer = LabelPacker(
            layout,
            track.start_frac,
            track.end_frac,
            tier_gap_frac=float(track.get("tier-gap-frac", DEFAULT_TIER_GAP_FRAC)),
            font_height_frac=float(track.get("font-height-frac", 1.0)),
            font_width_frac=float(track.get("font-width-frac", FONT_WIDTH_FRAC)),
            packer=track.get("packer", PackerKind.LINE.value),
        )
        reverse = track.flag("reverse-pack-order") or (
            ref_track is not None and ref_track.number < track.number
        )
        return packer.pack(labels, reverse=reverse)

    def draw(self, track: Track, layout: CircularLayout) -> None:
        labels, ref_track = self._collect(track)
        result = self.pack(track, layout, labels, ref_track)
        logger.debug(
            f"{track.label}: {len(labels)} label(s) in {result.tier_count} tier(s), "
            f"font tier count {result.font_tier_count}"
        )

        draw_link = track.flag("draw-link")
        link_color = track.get("link-color", self.theme.get_color("link"))
        link_width = float(track.get("stroke-width", 1))
        box_width = layout.scaled_stroke_width(track.height, result.tier_count, SIGNPOST_STROKE_WIDTH)

        # link lines go underneath the labels
        if ref_track is not None:
            for label in labels:
                style = label.options.get("style", track.get("style", LabelStyle.DEFAULT.value))
                if _label_style(style) != LabelStyle.SIGNPOST:
                    continue
                if not label.options.get("draw-link", draw_link):
                    continue
                if ref_track.number > track.number:
                    start, end = label.sf, ref_track.end_frac
                else:
                    start, end = label.ef, ref_track.start_frac
                self.geometry.radial_line(
                    layout, label.position, start, end,
                    stroke=label.options.get("link-color", link_color), stroke_width=link_width,
                )

        path_ids: dict[int, str] = {}
        for label in labels:
            self._draw_label(track, layout, label, result, ref_track, draw_link, box_width, path_ids)

    def _draw_label(self, track, layout, label, result, ref_track, draw_link, box_width, path_ids):
        feature = label.feature
        opts = label.options
        fill = option_value(track.get("fill-color", "none"), feature)
        stroke = option_value(track.get("stroke-color", "none"), feature)
        text_color = option_value(track.get("text-color", self.theme.text), feature)
        label_type = _label_type(opts.get("type", track.get("label-type", LabelType.CURVED.value)))
        style = _label_style(opts.get("style", track.get("style", LabelStyle.DEFAULT.value)))
        anchor = opts.get("text-anchor") or track.get("text-anchor")
        if anchor is None:
            anchor = "start" if label_type == LabelType.SPOKE else "middle"

        fhf = label.font_height_frac if label.font_height_frac is not None else FONT_BASELINE_FRAC
        font_size = fhf * layout.radius
        font = {
            "font_family": opts.get("font-family", track.get("font-family")),
            "font_style": opts.get("font-style", track.get("font-style")),
            "font_weight": opts.get("font-weight", track.get("font-weight")),
        }

        if style == LabelStyle.SIGNPOST and ref_track is not None and opts.get("draw-link", draw_link):
            self.geometry.curved_rect(
                layout, label.pack_fmin, label.pack_fmax, label.sf, label.ef,
                fill=fill, stroke=stroke, stroke_width=box_width,
            )

        if label_type == LabelType.CURVED:
            br = label.baseline_radius
            if label.tier not in path_ids:
                path_ids[label.tier] = self.canvas.circle_path(br)
            ft_offset = 2 * math.pi * br * ((MATH_TRIG_ORIGIN_DEGREES + layout.rotate_degrees) / 360.0)
            ft = 2 * math.pi * br * (layout.transform.transform(label.position) / layout.transformed_length) + ft_offset
            self.canvas.text_on_path(path_ids[label.tier], ft, label.text, font_size,
                                     fill=text_color, anchor=anchor, **font)
        elif label_type == LabelType.HORIZONTAL:
            x, y = layout.coord_to_circle(label.position, label.sf)
            self.canvas.text(x, y, label.text, font_size, fill=text_color, anchor=anchor, **font)
        else:
            self._draw_spoke(track, layout, label, result, font_size, text_color, anchor, font)

    def _draw_spoke(self, track, layout, label, result, font_size, text_color, anchor, font):
        transform = layout.transform
        tlen = layout.transformed_length
        t_pos = transform.transform(label.position)
        # nudge by half a character so the text sits centered on its spoke
        if layout.coord_to_quadrant(label.position).is_left:
            t_pos -= result.char_width_bp / 2
        else:
            t_pos += result.char_width_bp / 2
        if t_pos > tlen:
            t_pos %= tlen
        pos = transform.invert_transform(t_pos)

        quadrant = layout.coord_to_quadrant(pos)
        if quadrant.is_left:
            anchor = {"start": "end", "end": "start"}.get(anchor, anchor)
        rotate = layout.coord_to_degrees(pos) - 90
        if quadrant.is_left:
            rotate += 180
        x, y = layout.coord_to_circle(pos, label.sf)
        self.canvas.text(x, y, label.text, font_size, fill=text_color, anchor=anchor,
                         rotate=rotate, **font)
