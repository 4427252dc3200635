"""
Glyph strategies for drawing tracks

Each glyph kind (rectangle, arrow, label, graph, ...) has its own class
implementing the Glyph interface. Use glyph_factory.create_glyph() to get
the strategy for a track.
"""

from .base import Glyph, RenderContext, option_value

__all__ = ["Glyph", "RenderContext", "option_value"]
