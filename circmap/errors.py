"""Exceptions raised for conditions that abort a render"""


class CircmapError(Exception):
    """Base class for fatal circmap errors"""


class AssemblyError(CircmapError):
    """Contigs could not be combined into one coordinate space"""


class ContigListError(AssemblyError):
    """A contig list file contains a line that cannot be parsed"""

    def __init__(self, path, line_number: int, line: str):
        self.path = path
        self.line_number = line_number
        self.line = line
        super().__init__(
            f"unable to parse contig entry from line {line_number} of {path}: {line!r}"
        )


class TransformError(CircmapError):
    """A coordinate transform cannot be built from the requested segments"""


class FeatureError(CircmapError):
    """A feature has coordinates or a strand that cannot be drawn"""


class GlyphError(CircmapError):
    """A track requests an unknown glyph or carries illegal options"""
