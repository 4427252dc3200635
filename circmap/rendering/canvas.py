"""
Drawing canvases

Glyphs issue abstract drawing commands (groups, paths, circles, lines,
text, text bound to a circular path, annuli) to a Canvas. SvgCanvas writes
them to an SVG document with svgwrite; BokehCanvas draws them on a Bokeh
figure and serializes a standalone HTML page.
"""

import math
from abc import ABC, abstractmethod
from contextlib import contextmanager
from itertools import count
from pathlib import Path

import svgwrite
from bokeh.embed import file_html
from bokeh.resources import CDN

from ..constants import OutputFormat
from ..logging_config import get_logger
from .path import PathBuilder
from .theme_manager import ThemeManager

logger = get_logger(__name__)

NONE_COLOR = "none"
MARKER_IDS = ("triangle-right", "triangle-left")


def _is_none(color) -> bool:
    return color is None or str(color).lower() == NONE_COLOR


class Canvas(ABC):
    """
    Abstract drawing surface of fixed width and height

    Coordinates are canvas units with the origin at the top left and y
    growing downward.

    Attributes:
        width: Canvas width
        height: Canvas height
        center: Center of the map circle
        theme: ThemeManager supplying default colors
    """

    def __init__(
        self,
        width: float,
        height: float,
        center: tuple[float, float],
        theme: ThemeManager | None = None,
    ):
        self.width = width
        self.height = height
        self.center = center
        self.theme = theme if theme is not None else ThemeManager()
        self._ids = count(1)

    def new_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def new_path(self) -> PathBuilder:
        return PathBuilder(center=self.center)

    @contextmanager
    def group(self, name: str, opacity: float | None = None):
        """Draw everything issued inside the block into a named group"""
        self._begin_group(name, opacity)
        try:
            yield self
        finally:
            self._end_group()

    @abstractmethod
    def _begin_group(self, name: str, opacity: float | None) -> None:
        pass

    @abstractmethod
    def _end_group(self) -> None:
        pass

    @abstractmethod
    def path(
        self,
        path: PathBuilder,
        fill: str = NONE_COLOR,
        stroke: str = NONE_COLOR,
        stroke_width: float = 1.0,
        opacity: float | None = None,
        fill_opacity: float | None = None,
        dasharray: str | None = None,
        marker_start: str | None = None,
        marker_end: str | None = None,
    ) -> None:
        """Draw a path; markers name one of MARKER_IDS"""
        pass

    @abstractmethod
    def circle(
        self,
        cx: float,
        cy: float,
        r: float,
        fill: str = NONE_COLOR,
        stroke: str = NONE_COLOR,
        stroke_width: float = 1.0,
        opacity: float | None = None,
        dasharray: str | None = None,
    ) -> None:
        pass

    @abstractmethod
    def line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        stroke: str = "black",
        stroke_width: float = 1.0,
        opacity: float | None = None,
        dasharray: str | None = None,
    ) -> None:
        pass

    @abstractmethod
    def text(
        self,
        x: float,
        y: float,
        text: str,
        font_size: float,
        fill: str | None = None,
        anchor: str = "start",
        rotate: float | None = None,
        font_family: str | None = None,
        font_weight: str | None = None,
        font_style: str | None = None,
    ) -> None:
        """Draw text; rotate is clockwise degrees around (x, y)"""
        pass

    @abstractmethod
    def circle_path(self, radius: float) -> str:
        """
        Define an invisible circular path for text_on_path()

        The path starts at 9 o'clock and runs clockwise for more than a
        full turn, so text centered near 12 o'clock is never cut at the
        path start.

        Returns:
            Path id
        """
        pass

    @abstractmethod
    def text_on_path(
        self,
        path_id: str,
        offset: float,
        text: str,
        font_size: float,
        fill: str | None = None,
        anchor: str = "middle",
        font_family: str | None = None,
        font_weight: str | None = None,
        font_style: str | None = None,
    ) -> None:
        """Draw text along a path from circle_path(), `offset` units from its start"""
        pass

    @abstractmethod
    def annulus(
        self,
        inner_r: float,
        outer_r: float,
        fill: str = NONE_COLOR,
        stroke: str = NONE_COLOR,
        stroke_width: float = 1.0,
        opacity: float | None = None,
        dasharray: str | None = None,
    ) -> None:
        """Filled band between two circles around the center"""
        pass

    @abstractmethod
    def to_string(self) -> str:
        pass

    def save(self, path: str | Path) -> None:
        Path(path).write_text(self.to_string())
        logger.info(f"wrote {path}")

    def circle_path_builder(self, radius: float) -> PathBuilder:
        cx, cy = self.center
        return (
            self.new_path()
            .move_to(cx - radius, cy)
            .arc_to(radius, 1, 1, cx, cy + radius)
            .arc_to(radius, 1, 1, cx + radius, cy)
        )


class SvgCanvas(Canvas):
    """Canvas that writes an SVG document with svgwrite"""

    def __init__(self, width, height, center, theme=None):
        super().__init__(width, height, center, theme)
        self.drawing = svgwrite.Drawing(size=(width, height), profile="full", debug=False)
        self.drawing.add(
            self.drawing.rect(insert=(0, 0), size=(width, height), fill=self.theme.background)
        )
        self._add_markers()
        self._stack = [self.drawing]

    def _add_markers(self) -> None:
        shapes = {
            "triangle-right": ((10, 5), "M 0 0 L 10 5 L 0 10 z"),
            "triangle-left": ((0, 5), "M 10 10 L 0 5 L 10 0 z"),
        }
        for marker_id, (ref, d) in shapes.items():
            marker = self.drawing.marker(id=marker_id, insert=ref, size=(4, 6), orient="auto")
            marker.viewbox(0, 0, 10, 10)
            marker["markerUnits"] = "strokeWidth"
            marker.add(
                self.drawing.rect(
                    insert=(0, 0), size=(10, 10), fill=self.theme.background, stroke="none"
                )
            )
            marker.add(self.drawing.path(d=d, fill=self.theme.stroke))
            self.drawing.defs.add(marker)

    @property
    def _current(self):
        return self._stack[-1]

    def _begin_group(self, name, opacity):
        g = self.drawing.g(id=name)
        if opacity is not None:
            g["opacity"] = opacity
        self._current.add(g)
        self._stack.append(g)

    def _end_group(self):
        self._stack.pop()

    @staticmethod
    def _style(fill=None, stroke=None, stroke_width=None, opacity=None,
               fill_opacity=None, dasharray=None) -> dict:
        attrs = {}
        if fill is not None:
            attrs["fill"] = fill
        if stroke is not None:
            attrs["stroke"] = stroke
        if stroke_width is not None and not _is_none(stroke):
            attrs["stroke-width"] = stroke_width
        if opacity is not None:
            attrs["opacity"] = opacity
        if fill_opacity is not None:
            attrs["fill-opacity"] = fill_opacity
        if dasharray is not None:
            attrs["stroke-dasharray"] = dasharray
        return attrs

    @staticmethod
    def _font(font_size, fill, anchor, font_family, font_weight, font_style) -> dict:
        attrs = {"font-size": font_size, "fill": fill, "text-anchor": anchor}
        if font_family is not None:
            attrs["font-family"] = font_family
        if font_weight is not None:
            attrs["font-weight"] = font_weight
        if font_style is not None:
            attrs["font-style"] = font_style
        return attrs

    def path(self, path, fill=NONE_COLOR, stroke=NONE_COLOR, stroke_width=1.0,
             opacity=None, fill_opacity=None, dasharray=None,
             marker_start=None, marker_end=None):
        attrs = self._style(fill, stroke, stroke_width, opacity, fill_opacity, dasharray)
        if marker_start is not None:
            attrs["marker-start"] = f"url(#{marker_start})"
        if marker_end is not None:
            attrs["marker-end"] = f"url(#{marker_end})"
        self._current.add(self.drawing.path(d=path.to_svg(), **attrs))

    def circle(self, cx, cy, r, fill=NONE_COLOR, stroke=NONE_COLOR, stroke_width=1.0,
               opacity=None, dasharray=None):
        attrs = self._style(fill, stroke, stroke_width, opacity, None, dasharray)
        self._current.add(self.drawing.circle(center=(cx, cy), r=r, **attrs))

    def line(self, x1, y1, x2, y2, stroke="black", stroke_width=1.0,
             opacity=None, dasharray=None):
        attrs = self._style(None, stroke, stroke_width, opacity, None, dasharray)
        self._current.add(self.drawing.line(start=(x1, y1), end=(x2, y2), **attrs))

    def text(self, x, y, text, font_size, fill=None, anchor="start", rotate=None,
             font_family=None, font_weight=None, font_style=None):
        fill = self.theme.resolve(fill, "text")
        attrs = self._font(font_size, fill, anchor, font_family, font_weight, font_style)
        element = self.drawing.text(text, insert=(x, y), **attrs)
        if rotate is not None:
            element["transform"] = f"rotate({rotate:.3f},{x:.3f},{y:.3f})"
        self._current.add(element)

    def circle_path(self, radius):
        path_id = self.new_id("cp")
        d = self.circle_path_builder(radius).to_svg()
        self._current.add(self.drawing.path(d=d, id=path_id, fill="none", stroke="none"))
        return path_id

    def text_on_path(self, path_id, offset, text, font_size, fill=None, anchor="middle",
                     font_family=None, font_weight=None, font_style=None):
        fill = self.theme.resolve(fill, "text")
        attrs = self._font(font_size, fill, anchor, font_family, font_weight, font_style)
        element = self.drawing.text("", x=[offset], y=[0], **attrs)
        element.add(self.drawing.textPath(f"#{path_id}", text))
        self._current.add(element)

    def annulus(self, inner_r, outer_r, fill=NONE_COLOR, stroke=NONE_COLOR,
                stroke_width=1.0, opacity=None, dasharray=None):
        cx, cy = self.center
        # white passes pixels through the mask, black hides them
        mask_id = self.new_id("mask")
        mask = self.drawing.mask(id=mask_id, maskUnits="userSpaceOnUse",
                                 x=0, y=0, width=self.width, height=self.height)
        mask.add(self.drawing.rect(insert=(0, 0), size=(self.width, self.height), fill="white"))
        mask.add(self.drawing.circle(center=(cx, cy), r=inner_r, fill="black"))
        self.drawing.defs.add(mask)

        outline = self._style(None, stroke, stroke_width, opacity, None, dasharray)
        outer = self._style(fill, stroke, stroke_width, opacity, None, dasharray)
        outer["mask"] = f"url(#{mask_id})"
        self._current.add(self.drawing.circle(center=(cx, cy), r=outer_r, **outer))
        self._current.add(self.drawing.circle(center=(cx, cy), r=inner_r, fill="none", **outline))

    def to_string(self):
        return self.drawing.tostring()


class BokehCanvas(Canvas):
    """
    Canvas that draws on a Bokeh figure

    Arcs are flattened into polylines and text bound to a circular path is
    placed and rotated by arc length, since Bokeh has no path text.
    """

    ALIGN = {"start": "left", "middle": "center", "end": "right"}

    def __init__(self, width, height, center, theme=None, pixels: int = 900, title: str = "circmap"):
        super().__init__(width, height, center, theme)
        self.title = title
        self.fig = self.theme.create_figure(max(width, height), title=title, pixels=pixels)
        self.px_per_unit = pixels / max(width, height)
        self._alpha_stack = [1.0]
        self._circle_paths: dict[str, float] = {}
        self.groups: list[str] = []

    @property
    def _alpha(self) -> float:
        return self._alpha_stack[-1]

    def _begin_group(self, name, opacity):
        self.groups.append(name)
        self._alpha_stack.append(self._alpha * (opacity if opacity is not None else 1.0))

    def _end_group(self):
        self._alpha_stack.pop()

    def _line_kwargs(self, stroke, stroke_width, opacity, dasharray) -> dict:
        if _is_none(stroke):
            return {"line_color": None}
        kwargs = {
            "line_color": stroke,
            "line_width": max(stroke_width * self.px_per_unit, 0.5),
            "line_alpha": self._alpha * (opacity if opacity is not None else 1.0),
        }
        if dasharray is not None:
            kwargs["line_dash"] = [int(float(v)) for v in str(dasharray).replace(",", " ").split()]
        return kwargs

    def _font_kwargs(self, font_size, fill, anchor, font_weight, font_style) -> dict:
        style = " ".join(s for s in (font_weight, font_style) if s and s != "normal") or "normal"
        return {
            "text_font_size": f"{font_size * self.px_per_unit:.1f}px",
            "text_color": self.theme.resolve(fill, "text"),
            "text_align": self.ALIGN.get(anchor, "left"),
            "text_baseline": "alphabetic",
            "text_font_style": style,
            "text_alpha": self._alpha,
        }

    def path(self, path, fill=NONE_COLOR, stroke=NONE_COLOR, stroke_width=1.0,
             opacity=None, fill_opacity=None, dasharray=None,
             marker_start=None, marker_end=None):
        xs, ys = path.flatten()
        if len(xs) == 0:
            return
        line = self._line_kwargs(stroke, stroke_width, opacity, dasharray)
        if path.closed or not _is_none(fill):
            alpha = self._alpha * (opacity if opacity is not None else 1.0)
            if fill_opacity is not None:
                alpha *= fill_opacity
            self.fig.patch(
                xs, ys, fill_color=None if _is_none(fill) else fill, fill_alpha=alpha, **line
            )
        elif line["line_color"] is not None:
            self.fig.line(xs, ys, **line)
        for marker, at_end in ((marker_start, False), (marker_end, True)):
            if marker is not None and len(xs) > 1:
                self._marker(xs, ys, at_end, stroke, stroke_width)

    def _marker(self, xs, ys, at_end, stroke, stroke_width) -> None:
        if at_end:
            x, y, dx, dy = xs[-1], ys[-1], xs[-1] - xs[-2], ys[-1] - ys[-2]
        else:
            x, y, dx, dy = xs[0], ys[0], xs[0] - xs[1], ys[0] - ys[1]
        # the triangle marker points up; y is flipped on screen
        angle = math.atan2(-dy, dx) - math.pi / 2
        self.fig.scatter(
            [x], [y], marker="triangle", angle=angle,
            size=max(6 * stroke_width * self.px_per_unit, 4),
            fill_color=self.theme.resolve(None if _is_none(stroke) else stroke, "stroke"),
            line_color=None, alpha=self._alpha,
        )

    def circle(self, cx, cy, r, fill=NONE_COLOR, stroke=NONE_COLOR, stroke_width=1.0,
               opacity=None, dasharray=None):
        self.fig.circle(
            [cx], [cy], radius=r,
            fill_color=None if _is_none(fill) else fill,
            fill_alpha=self._alpha * (opacity if opacity is not None else 1.0),
            **self._line_kwargs(stroke, stroke_width, opacity, dasharray),
        )

    def line(self, x1, y1, x2, y2, stroke="black", stroke_width=1.0,
             opacity=None, dasharray=None):
        line = self._line_kwargs(stroke, stroke_width, opacity, dasharray)
        if line["line_color"] is not None:
            self.fig.segment([x1], [y1], [x2], [y2], **line)

    def text(self, x, y, text, font_size, fill=None, anchor="start", rotate=None,
             font_family=None, font_weight=None, font_style=None):
        angle = -math.radians(rotate) if rotate is not None else 0.0
        kwargs = self._font_kwargs(font_size, fill, anchor, font_weight, font_style)
        if font_family is not None:
            kwargs["text_font"] = font_family
        self.fig.text([x], [y], text=[text], angle=angle, **kwargs)

    def circle_path(self, radius):
        path_id = self.new_id("cp")
        self._circle_paths[path_id] = radius
        return path_id

    def text_on_path(self, path_id, offset, text, font_size, fill=None, anchor="middle",
                     font_family=None, font_weight=None, font_style=None):
        radius = self._circle_paths[path_id]
        cx, cy = self.center
        # path starts at 9 o'clock and runs clockwise
        theta = math.pi + offset / radius
        x, y = cx + radius * math.cos(theta), cy + radius * math.sin(theta)
        rotate = math.degrees(theta + math.pi / 2)
        self.text(x, y, text, font_size, fill, anchor, rotate, font_family, font_weight, font_style)

    def annulus(self, inner_r, outer_r, fill=NONE_COLOR, stroke=NONE_COLOR,
                stroke_width=1.0, opacity=None, dasharray=None):
        cx, cy = self.center
        if not _is_none(fill):
            self.fig.annulus(
                [cx], [cy], inner_radius=inner_r, outer_radius=outer_r,
                fill_color=fill, line_color=None,
                fill_alpha=self._alpha * (opacity if opacity is not None else 1.0),
            )
        for r in (inner_r, outer_r):
            self.circle(cx, cy, r, NONE_COLOR, stroke, stroke_width, opacity, dasharray)

    def to_string(self):
        return file_html(self.fig, CDN, title=self.title)


CANVAS_CLASSES = {
    OutputFormat.SVG: SvgCanvas,
    OutputFormat.HTML: BokehCanvas,
}


def create_canvas(
    output_format: OutputFormat | str,
    size: float,
    center: tuple[float, float],
    theme: ThemeManager | None = None,
) -> Canvas:
    """
    Create a canvas for an output format

    Raises:
        ValueError: If the format is not recognized
    """
    try:
        output_format = OutputFormat(output_format)
    except ValueError as e:
        valid = ", ".join(f.value for f in OutputFormat)
        raise ValueError(f"Unknown output format: {output_format}. Valid formats: {valid}") from e
    return CANVAS_CLASSES[output_format](size, size, center, theme)

