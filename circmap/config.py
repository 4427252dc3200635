"""
Track configuration loading

A configuration is a JSON document holding either a bare list of track
records or an object of the form

    {
        "options": {"rotate-degrees": 90, "theme": "dark"},
        "tracks": [
            {"glyph": "rectangle", "feat-type": "gene", "start-frac": 0.6, "end-frac": 0.65},
            ...
        ]
    }

Global options use the same hyphenated names as the command-line flags.
"""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_CONTIG_GAP_SIZE_BP,
    DEFAULT_CONTIG_MIN_SIZE_BP,
    DEFAULT_PAD,
    DEFAULT_ROTATE_DEGREES,
    OutputFormat,
    Theme,
)
from .errors import GlyphError
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MapOptions:
    """
    Options that apply to the whole map rather than a single track

    Attributes:
        pad: Canvas padding outside the drawing radius
        rotate_degrees: Clockwise rotation of the sequence origin
        contig_gap_size: Gap inserted between adjacent contigs (bp)
        contig_min_size: Contigs shorter than this are dropped (bp)
        no_seq: Skip building the concatenated sequence
        scaled_segment_list: Segments to rescale, "fmin-fmax:scale,..."
        theme: Light or dark palette
        output_format: Output document format, inferred from the output
            file name when not set
        data_dir: Directory relative input paths resolve against
    """

    pad: float = DEFAULT_PAD
    rotate_degrees: float = DEFAULT_ROTATE_DEGREES
    contig_gap_size: int = DEFAULT_CONTIG_GAP_SIZE_BP
    contig_min_size: int = DEFAULT_CONTIG_MIN_SIZE_BP
    no_seq: bool = False
    scaled_segment_list: str | None = None
    theme: Theme = Theme.LIGHT
    output_format: OutputFormat | None = None
    data_dir: str | None = None

    @classmethod
    def from_dict(cls, options: dict[str, Any]) -> "MapOptions":
        """
        Build options from hyphenated configuration keys

        Raises:
            GlyphError: On an unknown option name or an invalid theme/format
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = key.replace("-", "_")
            if name not in known:
                valid = ", ".join(sorted(n.replace("_", "-") for n in known))
                raise GlyphError(f"Unknown map option: {key}. Valid options: {valid}")
            kwargs[name] = value
        return cls()._coerced(**kwargs)

    def merged(self, **overrides) -> "MapOptions":
        """New options with every non-None override applied"""
        return self._coerced(**{k: v for k, v in overrides.items() if v is not None})

    def _coerced(self, **kwargs) -> "MapOptions":
        try:
            if "theme" in kwargs and not isinstance(kwargs["theme"], Theme):
                kwargs["theme"] = Theme(kwargs["theme"])
            if "output_format" in kwargs:
                fmt = kwargs["output_format"]
                kwargs["output_format"] = fmt if isinstance(fmt, OutputFormat) else OutputFormat(fmt)
        except ValueError as e:
            raise GlyphError(str(e)) from e
        return replace(self, **kwargs)


def parse_config(document: Any) -> tuple[list[dict[str, Any]], MapOptions]:
    """
    Split a decoded configuration into track records and map options

    Raises:
        GlyphError: If the document has the wrong shape
    """
    if isinstance(document, list):
        records, options = document, {}
    elif isinstance(document, dict):
        records = document.get("tracks")
        options = document.get("options") or {}
        if not isinstance(records, list):
            raise GlyphError("configuration object has no 'tracks' list")
    else:
        raise GlyphError(
            f"configuration must be a list of tracks or an object, got {type(document).__name__}"
        )

    for i, record in enumerate(records, start=1):
        if not isinstance(record, dict) or "glyph" not in record:
            raise GlyphError(f"track record {i} has no glyph: {record!r}")
    return records, MapOptions.from_dict(options)


def load_config(path: str | Path) -> tuple[list[dict[str, Any]], MapOptions]:
    """
    Read a JSON track configuration

    Args:
        path: Configuration file

    Returns:
        Tuple of (track records, map options)

    Raises:
        FileNotFoundError: If the file does not exist
        GlyphError: If the file is not valid JSON or has the wrong shape
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"configuration file not found: {path}")
    try:
        document = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise GlyphError(f"unable to parse {path}: {e}") from e
    records, options = parse_config(document)
    logger.info(f"read {len(records)} track record(s) from {path}")
    return records, options
