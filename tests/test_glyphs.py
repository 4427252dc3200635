"""
Tests for glyph strategies
"""

import pytest

from circmap.constants import GlyphKind, RulerUnits
from circmap.errors import GlyphError
from circmap.glyph_factory import create_glyph
from circmap.glyphs.compute import find_deserts
from circmap.glyphs.label import expand_literal_labels
from circmap.glyphs.ruler import format_ruler_label, tick_range
from circmap.models import Track


def numbered(*tracks):
    for number, track in enumerate(tracks, start=1):
        track.number = number
    return list(tracks)


def draw(make_context, assembly, tracks, index=-1):
    """Draw one track of a list and return the context"""
    context = make_context(assembly, tracks)
    track = tracks[index]
    create_glyph(track.glyph, context).draw(track, context.layout)
    return context


class TestGlyphFactory:
    """Tests for create_glyph"""

    @pytest.mark.parametrize("kind", [k.value for k in GlyphKind])
    def test_every_kind(self, make_context, simple_assembly, kind):
        """Test that every glyph kind has a strategy"""
        context = make_context(simple_assembly, [])

        assert create_glyph(kind, context).context is context

    def test_unknown_glyph(self, make_context, simple_assembly):
        """Test that an unknown glyph lists the valid ones"""
        with pytest.raises(GlyphError, match="Unknown glyph: synteny.*Valid glyphs"):
            create_glyph("synteny", make_context(simple_assembly, []))


class TestRectangleGlyph:
    """Tests for RectangleGlyph"""

    def test_one_band_per_feature(self, make_context, simple_assembly):
        """Test that each selected feature becomes a band"""
        tracks = numbered(Track("rectangle", 0.5, 0.6, options={"feat-type": "gene"}))

        context = draw(make_context, simple_assembly, tracks)

        assert len(context.canvas.of("path")) == 3

    def test_callable_colors(self, make_context, simple_assembly):
        """Test that colors may be computed per feature"""
        def color(feature):
            return "red" if feature.strand == 1 else "blue"

        tracks = numbered(
            Track("rectangle", 0.5, 0.6, options={"feat-type": "gene", "fill-color": color})
        )

        context = draw(make_context, simple_assembly, tracks)

        assert [p["fill"] for p in context.canvas.of("path")] == ["red", "blue", "red"]

    def test_invisible_features_skipped(self, make_context, simple_assembly):
        """Test that features without fill and stroke are not drawn"""
        tracks = numbered(
            Track("rectangle", 0.5, 0.6, options={"fill-color": "none", "stroke-color": "none"})
        )

        assert draw(make_context, simple_assembly, tracks).canvas.of("path") == []

    def test_zero_stroke_width(self, make_context, simple_assembly):
        """Test that a zero stroke width disables the outline"""
        tracks = numbered(
            Track("rectangle", 0.5, 0.6, options={"feat-type": "tRNA", "stroke-width": 0})
        )

        (path,) = draw(make_context, simple_assembly, tracks).canvas.of("path")

        assert path["stroke"] == "none"


class TestArrowGlyph:
    """Tests for ArrowGlyph"""

    def test_arrow_direction_follows_strand(self, make_context, simple_assembly):
        """Test that minus-strand features point counterclockwise"""
        tracks = numbered(Track("arrow", 0.5, 0.6, options={"feat-type": "gene"}))

        paths = draw(make_context, simple_assembly, tracks).canvas.of("path")

        assert [p["marker_end"] for p in paths] == ["triangle-right", None, "triangle-right"]
        assert paths[1]["marker_start"] == "triangle-left"

    def test_default_stroke_width(self, make_context, simple_assembly):
        """Test that the default width is scaled to an eighth of the track"""
        tracks = numbered(Track("arrow", 0.5, 0.6, options={"feat-type": "tRNA"}))

        context = draw(make_context, simple_assembly, tracks)

        expected = context.layout.scaled_stroke_width(0.1, 8, 250)
        assert context.canvas.of("path")[0]["stroke_width"] == pytest.approx(expected)

    def test_whole_sequence_feature(self, make_context, simple_assembly):
        """Test that an arrow for a whole-sequence feature aborts"""
        tracks = numbered(
            Track("arrow", 0.5, 0.6, options={"features": [{"fmin": 0, "fmax": 10000}]})
        )

        with pytest.raises(GlyphError):
            draw(make_context, simple_assembly, tracks)


class TestLabelGlyph:
    """Tests for LabelGlyph"""

    def test_curved_labels(self, make_context, simple_assembly):
        """Test that feature labels follow the circle"""
        tracks = numbered(Track("label", 0.8, 0.9, options={"feat-type": "gene"}))

        canvas = draw(make_context, simple_assembly, tracks).canvas

        texts = canvas.of("text_on_path")
        assert sorted(t["text"] for t in texts) == ["geneA", "geneB", "geneC"]
        assert all(t["anchor"] == "middle" for t in texts)
        assert len(canvas.of("circle_path")) >= 1

    def test_label_function(self, make_context, simple_assembly):
        """Test that label-function chooses the text"""
        tracks = numbered(
            Track("label", 0.8, 0.9, options={"feat-type": "tRNA", "label-function": "length_kb"})
        )

        (text,) = draw(make_context, simple_assembly, tracks).canvas.of("text_on_path")

        assert text["text"] == "0.1kb"

    def test_horizontal_labels(self, make_context, simple_assembly):
        """Test horizontal labels placed at the tier's start fraction"""
        tracks = numbered(
            Track("label", 0.8, 0.9, options={"feat-type": "tRNA", "label-type": "horizontal"})
        )

        (text,) = draw(make_context, simple_assembly, tracks).canvas.of("text")

        assert text["text"] == "trnA"
        assert text["rotate"] is None

    def test_spoke_labels(self, make_context, simple_assembly):
        """Test that spoke labels are rotated and anchored away from the center"""
        tracks = numbered(
            Track("label", 0.8, 1.0, options={"feat-type": "gene", "label-type": "spoke"})
        )

        texts = draw(make_context, simple_assembly, tracks).canvas.of("text")

        by_text = {t["text"]: t for t in texts}
        assert by_text["geneA"]["anchor"] == "start"
        assert by_text["geneC"]["anchor"] == "end"
        assert all(t["rotate"] is not None for t in texts)

    def test_literal_labels(self, make_context, simple_assembly):
        """Test literal labels repeated around the circle"""
        tracks = numbered(
            Track("label", 0.8, 0.9, options={"labels": [{"text": "x", "repeat": 2500}]})
        )

        texts = draw(make_context, simple_assembly, tracks).canvas.of("text_on_path")

        assert len(texts) == 4

    def test_signpost_links(self, make_context, simple_assembly):
        """Test that signpost labels get a box and a link to their track"""
        genes = Track("rectangle", 0.5, 0.6, name="genes", options={"feat-type": "gene"})
        labels = Track(
            "label",
            0.7,
            0.9,
            options={"feat-track": "genes", "style": "signpost", "draw-link": True},
        )
        tracks = numbered(genes, labels)

        canvas = draw(make_context, simple_assembly, tracks).canvas

        lines = canvas.of("line")
        assert len(lines) == 3
        assert len(canvas.of("path")) == 3
        # links are drawn before any text
        names = [name for name, _ in canvas.commands]
        assert names.index("line") < names.index("text_on_path")

    def test_unknown_label_type(self, make_context, simple_assembly):
        """Test that an unknown label type is rejected"""
        tracks = numbered(
            Track("label", 0.8, 0.9, options={"feat-type": "tRNA", "label-type": "vertical"})
        )

        with pytest.raises(GlyphError, match="Valid label types"):
            draw(make_context, simple_assembly, tracks)


class TestExpandLiteralLabels:
    """Tests for expand_literal_labels"""

    def test_repeat(self):
        """Test that repeat copies the label at fixed intervals"""
        expanded = expand_literal_labels([{"text": "x", "repeat": 400}], 1000)

        assert [r["position"] for r in expanded] == [0, 400, 800]
        assert expanded[1]["fmin"] == expanded[1]["fmax"] == 400

    def test_interval_kept(self):
        """Test that explicit fmin and fmax are kept"""
        (record,) = expand_literal_labels([{"text": "x", "position": 50, "fmin": 10}], 1000)

        assert (record["fmin"], record["fmax"]) == (10, 50)

    def test_non_positive_repeat(self):
        """Test that a repeat of zero is rejected"""
        with pytest.raises(GlyphError):
            expand_literal_labels([{"text": "x", "repeat": 0}], 1000)


class TestRulerGlyph:
    """Tests for RulerGlyph"""

    def test_tick_range(self):
        """Test tick indices within a coordinate range"""
        assert list(tick_range(0, 10000, 1000)) == list(range(11))
        assert list(tick_range(1500, 4000, 1000)) == [2, 3, 4]

    def test_format_label(self):
        """Test coordinate labels in each unit"""
        assert format_ruler_label(1500000, RulerUnits.MB, 1) == "1.5Mb"
        assert format_ruler_label(2500, RulerUnits.KB, 0) == "2kb"

    def test_ticks_and_labels(self, make_context, simple_assembly):
        """Test ticks, labeled ticks and bold labels"""
        tracks = numbered(
            Track(
                "ruler",
                0.9,
                0.92,
                options={"tick-interval": 1000, "label-interval": 5000, "label-units": "kb"},
            )
        )

        canvas = draw(make_context, simple_assembly, tracks).canvas

        assert len(canvas.of("circle")) == 1
        assert len(canvas.of("line")) == 11 + 3
        texts = canvas.of("text")
        assert [t["text"] for t in texts] == ["0.0kb", "5.0kb", "10.0kb"]
        assert all(t["font_weight"] == "bold" for t in texts)

    def test_curved_labels_share_path(self, make_context, simple_assembly):
        """Test that curved ruler labels share one text path"""
        tracks = numbered(
            Track(
                "ruler",
                0.9,
                0.92,
                options={"label-interval": 2500, "label-type": "curved", "no-circle": True},
            )
        )

        canvas = draw(make_context, simple_assembly, tracks).canvas

        assert canvas.of("circle") == []
        assert len(canvas.of("circle_path")) == 1
        assert len(canvas.of("text_on_path")) == 5

    def test_unknown_units(self, make_context, simple_assembly):
        """Test that unknown units are rejected"""
        tracks = numbered(Track("ruler", 0.9, 0.92, options={"label-units": "cM"}))

        with pytest.raises(GlyphError, match="Valid units"):
            draw(make_context, simple_assembly, tracks)


class TestScaledSegmentListGlyph:
    """Tests for ScaledSegmentListGlyph"""

    def test_installs_transform(self, make_context, simple_assembly):
        """Test that later tracks see the scaled coordinate space"""
        tracks = numbered(
            Track("scaled-segment-list", options={"feat-type": "tRNA", "scale": 5})
        )

        context = draw(make_context, simple_assembly, tracks)

        assert context.layout.transformed_length == 10000 + 80 * 4
        assert context.canvas.commands == []

    def test_target_bp(self, make_context, simple_assembly):
        """Test that target-bp stretches each segment to a fixed size"""
        tracks = numbered(
            Track("scaled-segment-list", options={"feat-type": "tRNA", "target-bp": 1080})
        )

        context = draw(make_context, simple_assembly, tracks)

        assert context.layout.transformed_length == 11000

    def test_scale_required(self, make_context, simple_assembly):
        """Test that scale or target-bp must be given"""
        tracks = numbered(Track("scaled-segment-list", options={"feat-type": "tRNA"}))

        with pytest.raises(GlyphError, match="requires scale or target-bp"):
            draw(make_context, simple_assembly, tracks)

    def test_no_features(self, make_context, simple_assembly):
        """Test that no matching features leave the transform unchanged"""
        tracks = numbered(
            Track("scaled-segment-list", options={"feat-type": "rRNA", "scale": 2})
        )

        context = draw(make_context, simple_assembly, tracks)

        assert context.layout.transformed_length == 10000


class TestComputeGlyphs:
    """Tests for feature-computing glyphs"""

    def test_find_deserts_circular(self):
        """Test that the origin-spanning gap is reported once"""
        assert find_deserts([(100, 200), (500, 600)], 1000, 200) == [(200, 500), (600, 1100)]

    def test_find_deserts_linear(self):
        """Test gaps at both ends of a linear sequence"""
        assert find_deserts([(100, 200), (500, 600)], 1000, 100, circular=False) == [
            (0, 100),
            (200, 500),
            (600, 1000),
        ]

    def test_find_deserts_empty(self):
        """Test that no features leave one desert over the whole sequence"""
        assert find_deserts([], 1000, 10) == [(0, 1000)]

    def test_find_deserts_feature_ends_at_origin(self):
        """Test that the gap after a feature ending at the origin starts at 0"""
        assert find_deserts([(300, 600), (800, 1000)], 1000, 0) == [(0, 300), (600, 800)]

    def test_find_deserts_no_empty_desert_at_origin(self):
        """Test that no zero-length desert is reported at the origin"""
        assert find_deserts([(0, 400), (700, 1000)], 1000, 0) == [(400, 700)]

    def test_compute_deserts(self, make_context, simple_assembly):
        """Test that deserts are registered for later tracks"""
        tracks = numbered(Track("compute-deserts", options={"desert-min-length": 1500}))

        draw(make_context, simple_assembly, tracks)

        deserts = simple_assembly.features.by_type("desert")
        assert [(d.fmin, d.fmax) for d in deserts] == [(2600, 5000), (8080, 10100)]
        assert [d.name for d in deserts] == ["desert_1", "desert_2"]

    def test_compute_graph_regions(self, make_context, simple_assembly):
        """Test that runs of windows within range become features"""
        values = [
            {"fmin": i * 1000, "fmax": (i + 1) * 1000, "value": v}
            for i, v in enumerate([1, 5, 6, 1, 7, 1])
        ]
        graph = Track("graph", 0.5, 0.6, name="g", options={"graph-values": values})
        regions = Track(
            "compute-graph-regions",
            options={"graph-track": "g", "graph-min-value": 5, "region-feat-type": "high"},
        )
        tracks = numbered(graph, regions)

        draw(make_context, simple_assembly, tracks)

        high = simple_assembly.features.by_type("high")
        assert [(f.fmin, f.fmax) for f in high] == [(1000, 3000), (4000, 5000)]

    def test_graph_regions_length_filter(self, make_context, simple_assembly):
        """Test region-min-length"""
        values = [
            {"fmin": 0, "fmax": 1000, "value": 5},
            {"fmin": 1000, "fmax": 2000, "value": 1},
            {"fmin": 2000, "fmax": 4000, "value": 5},
        ]
        graph = Track("graph", name="g", options={"graph-values": values})
        regions = Track(
            "compute-graph-regions", options={"graph-track": "g", "region-min-length": 1500}
        )
        tracks = numbered(graph, regions)

        draw(make_context, simple_assembly, tracks)

        assert [(f.fmin, f.fmax) for f in simple_assembly.features.by_type("graph_region")] == [
            (2000, 4000)
        ]

    def test_graph_track_required(self, make_context, simple_assembly):
        """Test that compute-graph-regions needs a graph track"""
        tracks = numbered(Track("compute-graph-regions"))

        with pytest.raises(GlyphError):
            draw(make_context, simple_assembly, tracks)


class TestGraphGlyph:
    """Tests for GraphGlyph"""

    def test_bar_graph_with_circles(self, make_context, simple_assembly):
        """Test bars, reference circles and their labels"""
        tracks = numbered(
            Track("graph", 0.4, 0.6, options={"graph-function": "feature_count", "window-size": 2500,
                                              "feat-type": "gene"})
        )

        canvas = draw(make_context, simple_assembly, tracks).canvas

        assert len(canvas.of("circle")) == 3
        label_groups = [g["name"] for g in canvas.of("group")]
        assert label_groups == [f"t1-circle-label-{i}" for i in range(3)]
        texts = canvas.of("text_on_path")
        assert all(t["groups"] for t in texts)

    def test_no_circles(self, make_context, simple_assembly):
        """Test that no-circles suppresses circles and labels"""
        tracks = numbered(
            Track("graph", 0.4, 0.6, options={"graph-function": "percent_gc", "window-size": 1000,
                                              "no-circles": True})
        )

        canvas = draw(make_context, simple_assembly, tracks).canvas

        assert canvas.of("circle") == []
        assert len(canvas.of("path")) == 10

    def test_heat_map_without_circles(self, make_context, simple_assembly):
        """Test that heat maps draw no circles by default"""
        tracks = numbered(
            Track("graph", 0.4, 0.6, options={"graph-function": "percent_gc", "window-size": 5000,
                                              "graph-type": "heat_map"})
        )

        canvas = draw(make_context, simple_assembly, tracks).canvas

        assert canvas.of("circle") == []
        assert len(canvas.of("path")) == 2

    def test_zero_height(self, make_context, simple_assembly):
        """Test that a zero-height graph is skipped"""
        tracks = numbered(Track("graph", 0.5, 0.5, options={"graph-function": "percent_gc"}))

        assert draw(make_context, simple_assembly, tracks).canvas.commands == []

    def test_unknown_graph_type(self, make_context, simple_assembly):
        """Test that an unknown graph type is rejected"""
        tracks = numbered(
            Track("graph", 0.4, 0.6, options={"graph-function": "percent_gc", "graph-type": "pie"})
        )

        with pytest.raises(GlyphError, match="Unknown graph type"):
            draw(make_context, simple_assembly, tracks)
