"""
Tests for MapRenderer
"""

import logging

import pytest

from circmap.config import MapOptions
from circmap.errors import GlyphError
from circmap.renderer import MapRenderer
from circmap.tracks import expand_tracks
from circmap.transform import IdentityTransform


@pytest.fixture
def make_renderer(recording_canvas):
    """Factory for a renderer drawing on a recording canvas"""

    def _make(assembly, records, options=None):
        tracks = expand_tracks(records)
        return MapRenderer(assembly, tracks, options, canvas=recording_canvas), recording_canvas

    return _make


class TestRender:
    """Tests for the render pass"""

    def test_one_group_per_track(self, make_renderer, simple_assembly):
        """Test that each track draws inside a group named after its number"""
        renderer, canvas = make_renderer(
            simple_assembly,
            [
                {"glyph": "rectangle", "start-frac": 0.5, "end-frac": 0.6, "feat-type": "gene"},
                {"glyph": "none"},
                {"glyph": "arrow", "start-frac": 0.6, "end-frac": 0.7, "feat-type": "gene"},
            ],
        )

        renderer.render()

        assert [g["name"] for g in canvas.of("group")] == ["t1", "t2", "t3"]
        assert all(p["groups"] in (["t1"], ["t3"]) for p in canvas.of("path"))

    def test_track_opacity(self, make_renderer, simple_assembly):
        """Test that a track's opacity is applied to its group"""
        renderer, canvas = make_renderer(
            simple_assembly, [{"glyph": "none", "opacity": "0.5"}]
        )

        renderer.render()

        assert canvas.of("group")[0]["opacity"] == 0.5

    def test_skip_track(self, make_renderer, simple_assembly):
        """Test that skip-track tracks are not drawn"""
        renderer, canvas = make_renderer(
            simple_assembly,
            [{"glyph": "rectangle", "start-frac": 0.5, "end-frac": 0.6, "skip-track": True}],
        )

        renderer.render()

        assert canvas.commands == []

    def test_swapped_fracs(self, make_renderer, simple_assembly, caplog):
        """Test that start-frac > end-frac is swapped with a warning"""
        renderer, canvas = make_renderer(
            simple_assembly,
            [{"glyph": "rectangle", "start-frac": 0.6, "end-frac": 0.5, "feat-type": "tRNA"}],
        )

        with caplog.at_level(logging.WARNING):
            renderer.render()

        assert "swapping" in caplog.text
        assert (renderer.tracks[0].start_frac, renderer.tracks[0].end_frac) == (0.5, 0.6)

    def test_unknown_glyph(self, make_renderer, simple_assembly):
        """Test that an unknown glyph aborts the render"""
        renderer, _ = make_renderer(simple_assembly, [{"glyph": "cufflinks-transcript"}])

        with pytest.raises(GlyphError, match="Unknown glyph"):
            renderer.render()

    def test_svg_by_default(self, simple_assembly):
        """Test that the default canvas writes SVG"""
        tracks = expand_tracks(
            [{"glyph": "rectangle", "start-frac": 0.5, "end-frac": 0.6, "feat-type": "gene"}]
        )

        svg = MapRenderer(simple_assembly, tracks).render().to_string()

        assert "<svg" in svg
        assert 'id="t1"' in svg


class TestTransforms:
    """Tests for transforms across tracks"""

    def test_scaled_segment_option(self, make_renderer, simple_assembly):
        """Test that the global segment list sets the initial transform"""
        renderer, _ = make_renderer(
            simple_assembly, [], MapOptions(scaled_segment_list="1000-2000:2")
        )

        assert renderer.context.layout.transformed_length == 11000

    def test_transform_installed_for_later_tracks(self, make_renderer, simple_assembly):
        """Test that a scaled-segment-list track affects the tracks after it"""
        renderer, _ = make_renderer(
            simple_assembly,
            [
                {"glyph": "scaled-segment-list", "feat-type": "tRNA", "scale": 2},
                {"glyph": "rectangle", "start-frac": 0.5, "end-frac": 0.6},
            ],
        )

        renderer.render()

        assert renderer.context.layout.transformed_length == 10080

    def test_no_scaling_ignored_for_scaled_segment_list(
        self, make_renderer, simple_assembly, caplog
    ):
        """Test that a scaled-segment-list track keeps its transform under no-scaling"""
        renderer, _ = make_renderer(
            simple_assembly,
            [{"glyph": "scaled-segment-list", "feat-type": "tRNA", "scale": 2, "no-scaling": True}],
        )

        with caplog.at_level(logging.WARNING):
            renderer.render()

        assert renderer.context.layout.transformed_length == 10080
        assert "ignoring no-scaling" in caplog.text

    def test_no_scaling_draws_unscaled(self, make_renderer, simple_assembly):
        """Test that no-scaling tracks draw with the identity and restore the transform"""
        renderer, canvas = make_renderer(
            simple_assembly,
            [
                {"glyph": "ruler", "start-frac": 0.9, "end-frac": 0.92, "tick-interval": 2500,
                 "no-scaling": True},
            ],
            MapOptions(scaled_segment_list="0-5000:1.5"),
        )
        scaled = renderer.context.layout

        renderer.render()

        assert renderer.context.layout is scaled
        line = canvas.of("line")[1]
        expected = scaled.with_transform(IdentityTransform(10000)).coord_to_circle(2500, 0.9)
        assert (line["x1"], line["y1"]) == pytest.approx(expected)

    def test_scoped_transform_restores_on_error(self, make_renderer, simple_assembly):
        """Test that the previous layout is restored when drawing fails"""
        renderer, _ = make_renderer(simple_assembly, [])
        saved = renderer.context.layout

        with pytest.raises(GlyphError):
            with renderer.scoped_transform(IdentityTransform(10000)):
                raise GlyphError("boom")

        assert renderer.context.layout is saved

    def test_rotation_option(self, make_renderer, simple_assembly):
        """Test that rotate-degrees reaches the layout"""
        renderer, _ = make_renderer(simple_assembly, [], MapOptions(rotate_degrees=90))

        assert renderer.context.layout.coord_to_degrees(0) == pytest.approx(90.0)
