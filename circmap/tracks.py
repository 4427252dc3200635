"""
Track list preparation

Loops are unrolled into plain tracks before rendering starts, so the render
pass iterates a fixed, ordered list. A loop is a `loop-start` record, a body
of track records, and a matching `loop-end` record:

    {"glyph": "loop-start", "loop-var": "T", "loop-values": ["gene", "tRNA"],
     "loop-frac-step": 0.05}
    {"glyph": "rectangle", "feat-type": "<T>", "start-frac": 0.5, "end-frac": 0.54}
    {"glyph": "loop-end"}

Each iteration copies the body with every `<T>` placeholder replaced by the
current value; `loop-frac-step` moves each iteration's tracks outward by that
fraction. Loops may be nested.
"""

import copy
import re
from typing import Any

from .constants import LOOP_END_GLYPH, LOOP_START_GLYPH
from .errors import GlyphError
from .logging_config import get_logger
from .models import Track

logger = get_logger(__name__)

RELATIVE_REF_RE = re.compile(r"^([+-])(\d+)$")


def substitute(value: Any, var: str, replacement: str) -> Any:
    """Replace <var> placeholders inside strings, lists and dicts"""
    placeholder = f"<{var}>"
    if isinstance(value, str):
        return value.replace(placeholder, str(replacement))
    if isinstance(value, list):
        return [substitute(v, var, replacement) for v in value]
    if isinstance(value, dict):
        return {
            substitute(k, var, replacement): substitute(v, var, replacement)
            for k, v in value.items()
        }
    return value


def _loop_values(record: dict[str, Any]) -> list[str]:
    values = record.get("loop-values")
    if values is None:
        raise GlyphError("loop-start track has no loop-values")
    if isinstance(values, str):
        values = [v for v in re.split(r"\s*,\s*", values.strip()) if v]
    return [str(v) for v in values]


def _find_loop_end(records: list[dict[str, Any]], start: int) -> int:
    depth = 0
    for i in range(start, len(records)):
        glyph = records[i].get("glyph")
        if glyph == LOOP_START_GLYPH:
            depth += 1
        elif glyph == LOOP_END_GLYPH:
            depth -= 1
            if depth == 0:
                return i
    raise GlyphError(f"loop-start track at position {start + 1} has no matching loop-end")


def _shift_fracs(record: dict[str, Any], shift: float) -> dict[str, Any]:
    if shift == 0:
        return record
    for key in ("start-frac", "end-frac"):
        if record.get(key) is not None:
            record[key] = float(record[key]) + shift
    return record


def _unroll(records: list[dict[str, Any]], depth: int = 0) -> list[dict[str, Any]]:
    unrolled = []
    i = 0
    while i < len(records):
        record = records[i]
        glyph = record.get("glyph")
        if glyph == LOOP_END_GLYPH:
            raise GlyphError(f"loop-end track at position {i + 1} has no matching loop-start")
        if glyph != LOOP_START_GLYPH:
            unrolled.append(record)
            i += 1
            continue

        end = _find_loop_end(records, i)
        body = records[i + 1 : end]
        var = record.get("loop-var")
        if not var:
            raise GlyphError("loop-start track has no loop-var")
        values = _loop_values(record)
        step = float(record.get("loop-frac-step") or 0.0)
        logger.debug(
            f"unrolling loop over {var} ({len(values)} values, {len(body)} track(s), depth {depth})"
        )

        for n, value in enumerate(values):
            iteration = [
                _shift_fracs(substitute(copy.deepcopy(r), var, value), n * step) for r in body
            ]
            unrolled.extend(_unroll(iteration, depth + 1))
        i = end + 1
    return unrolled


def expand_tracks(records: list[dict[str, Any]]) -> list[Track]:
    """
    Unroll loops, number tracks 1..n and make track names unique

    Args:
        records: Track records in configuration order

    Returns:
        Final ordered track list

    Raises:
        GlyphError: On unbalanced loops or a loop without loop-var/loop-values
    """
    tracks = [Track.from_dict(r) for r in _unroll(list(records))]

    seen: dict[str, int] = {}
    for number, track in enumerate(tracks, start=1):
        track.number = number
        if track.name is None:
            continue
        count = seen.get(track.name, 0) + 1
        seen[track.name] = count
        if count > 1:
            unique = f"{track.name}_{count}"
            logger.debug(f"renaming duplicate track name {track.name} to {unique}")
            track.name = unique

    logger.debug(f"expanded {len(records)} track record(s) into {len(tracks)} track(s)")
    return tracks


def resolve_track_reference(
    tracks: list[Track], current: Track, ref: Any
) -> Track | None:
    """
    Find the track a reference option points to

    Args:
        tracks: Full ordered track list
        current: Track holding the reference
        ref: Track name, absolute track number, or a relative "-N"/"+N"

    Returns:
        Referenced track, or None when ref is None

    Raises:
        GlyphError: If the reference cannot be resolved or points to the
            current track
    """
    if ref is None:
        return None

    target = None
    text = str(ref).strip()
    relative = RELATIVE_REF_RE.match(text)
    if relative is not None:
        offset = int(relative.group(2)) * (-1 if relative.group(1) == "-" else 1)
        number = current.number + offset
        target = next((t for t in tracks if t.number == number), None)
    elif isinstance(ref, int) or text.isdigit():
        target = next((t for t in tracks if t.number == int(text)), None)
    else:
        target = next((t for t in tracks if t.name == text), None)

    if target is None:
        raise GlyphError(f"unable to resolve track reference '{ref}' from {current.label}")
    if target is current:
        raise GlyphError(f"{current.label} refers to itself")
    return target
