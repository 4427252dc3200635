"""Pytest configuration and shared fixtures."""

import pytest

from circmap.assembly import ContigEntry, SequenceAssembler
from circmap.constants import ContigKind
from circmap.glyphs.base import RenderContext
from circmap.layout import CircularLayout
from circmap.models import Assembly, Feature, FeatureIndex
from circmap.pipeline import FeaturePipeline
from circmap.rendering import Canvas, GeometryRenderer, ThemeManager


class RecordingCanvas(Canvas):
    """Canvas that records drawing commands instead of rendering them

    Each command is stored as (name, kwargs) in `commands`, with the group
    stack at the time of the call under the "groups" key.
    """

    def __init__(self, size: float = 3200.0):
        super().__init__(size, size, (size / 2, size / 2))
        self.commands: list[tuple[str, dict]] = []
        self.group_stack: list[tuple[str, float | None]] = []
        self.path_radii: dict[str, float] = {}

    def _record(self, name: str, /, **kwargs) -> None:
        kwargs["groups"] = [g for g, _ in self.group_stack]
        self.commands.append((name, kwargs))

    def of(self, name: str) -> list[dict]:
        """Keyword arguments of every recorded command with this name"""
        return [kwargs for cmd, kwargs in self.commands if cmd == name]

    def _begin_group(self, name, opacity):
        self.group_stack.append((name, opacity))
        self._record("group", name=name, opacity=opacity)

    def _end_group(self):
        self.group_stack.pop()

    def path(self, path, fill="none", stroke="none", stroke_width=1.0, opacity=None,
             fill_opacity=None, dasharray=None, marker_start=None, marker_end=None):
        self._record("path", path=path, fill=fill, stroke=stroke, stroke_width=stroke_width,
                     opacity=opacity, fill_opacity=fill_opacity, dasharray=dasharray,
                     marker_start=marker_start, marker_end=marker_end)

    def circle(self, cx, cy, r, fill="none", stroke="none", stroke_width=1.0,
               opacity=None, dasharray=None):
        self._record("circle", cx=cx, cy=cy, r=r, fill=fill, stroke=stroke,
                     stroke_width=stroke_width, opacity=opacity, dasharray=dasharray)

    def line(self, x1, y1, x2, y2, stroke="black", stroke_width=1.0, opacity=None,
             dasharray=None):
        self._record("line", x1=x1, y1=y1, x2=x2, y2=y2, stroke=stroke,
                     stroke_width=stroke_width, opacity=opacity, dasharray=dasharray)

    def text(self, x, y, text, font_size, fill=None, anchor="start", rotate=None,
             font_family=None, font_weight=None, font_style=None):
        self._record("text", x=x, y=y, text=text, font_size=font_size, fill=fill,
                     anchor=anchor, rotate=rotate, font_family=font_family,
                     font_weight=font_weight, font_style=font_style)

    def circle_path(self, radius):
        path_id = self.new_id("circle-path-")
        self.path_radii[path_id] = radius
        self._record("circle_path", path_id=path_id, radius=radius)
        return path_id

    def text_on_path(self, path_id, offset, text, font_size, fill=None, anchor="middle",
                     font_family=None, font_weight=None, font_style=None):
        self._record("text_on_path", path_id=path_id, offset=offset, text=text,
                     font_size=font_size, fill=fill, anchor=anchor,
                     font_family=font_family, font_weight=font_weight, font_style=font_style)

    def annulus(self, inner_r, outer_r, fill="none", stroke="none", stroke_width=1.0,
                opacity=None, dasharray=None):
        self._record("annulus", inner_r=inner_r, outer_r=outer_r, fill=fill, stroke=stroke,
                     stroke_width=stroke_width, opacity=opacity, dasharray=dasharray)

    def to_string(self):
        return "\n".join(name for name, _ in self.commands)


@pytest.fixture
def recording_canvas():
    """Canvas sized for the default layout"""
    return RecordingCanvas(CircularLayout.create(10000).size)


@pytest.fixture
def layout():
    """Layout of a 10 kb sequence with the identity transform"""
    return CircularLayout.create(10000)


@pytest.fixture
def simple_assembly():
    """10 kb circular sequence with a handful of genes"""
    index = FeatureIndex(10000)
    index.add(Feature("gene", 100, 900, strand=1, name="geneA"))
    index.add(Feature("gene", 2000, 2600, strand=-1, name="geneB"))
    index.add(Feature("gene", 5000, 7000, strand=1, name="geneC", tags={"locus_tag": ["GC_0003"]}))
    index.add(Feature("tRNA", 8000, 8080, strand=1, name="trnA"))
    sequence = ("ATGC" * 2500)
    return Assembly(name="plasmid", seqlen=10000, contigs={}, features=index, sequence=sequence)


@pytest.fixture
def two_contig_assembly():
    """X (1 kb, forward) and Y (2 kb, reverse) joined with a 500 bp gap"""
    assembler = SequenceAssembler(gap_size=500, no_seq=True)
    return assembler.assemble(
        [
            ContigEntry(ContigKind.CONTIG, "X", length=1000),
            ContigEntry(ContigKind.CONTIG, "Y", length=2000, revcomp=True),
        ]
    )


@pytest.fixture
def make_context(layout):
    """Factory for a RenderContext over an assembly and track list"""

    def _make(assembly, tracks, canvas=None):
        canvas = canvas if canvas is not None else RecordingCanvas(layout.size)
        return RenderContext(
            assembly=assembly,
            tracks=tracks,
            pipeline=FeaturePipeline(assembly, tracks),
            canvas=canvas,
            geometry=GeometryRenderer(canvas),
            theme=ThemeManager(),
            layout=CircularLayout.create(assembly.seqlen),
        )

    return _make
