"""
Theme management for map output

This module centralizes theme colors so every glyph picks up the same
defaults for stroke, fill, text and the background.
"""

from bokeh.plotting import figure

from ..constants import DARK_THEME, LIGHT_THEME, Theme


class ThemeManager:
    """
    Centralized theme management for circmap canvases

    Attributes:
        theme: Theme enum (LIGHT or DARK)
        colors: Dictionary of theme colors

    Examples:
        >>> from circmap.rendering.theme_manager import ThemeManager
        >>> from circmap.constants import Theme
        >>>
        >>> manager = ThemeManager(Theme.DARK)
        >>> manager.get_color("background")
        '#1e1e1e'
    """

    def __init__(self, theme: Theme = Theme.LIGHT):
        """
        Initialize theme manager

        Args:
            theme: Theme enum (LIGHT or DARK)
        """
        self.theme = theme
        self.colors = DARK_THEME if theme == Theme.DARK else LIGHT_THEME

    def __repr__(self) -> str:
        return f"<ThemeManager: {self.theme.value}>"

    @property
    def background(self) -> str:
        return self.colors["background"]

    @property
    def stroke(self) -> str:
        return self.colors["stroke"]

    @property
    def fill(self) -> str:
        return self.colors["fill"]

    @property
    def text(self) -> str:
        return self.colors["text"]

    def get_color(self, color_key: str) -> str:
        """
        Get a specific theme color by key

        Args:
            color_key: Key from LIGHT_THEME or DARK_THEME
                (e.g., 'background', 'stroke', 'link')

        Returns:
            Color string

        Raises:
            KeyError: If color_key not found in theme
        """
        return self.colors[color_key]

    def resolve(self, color: str | None, default_key: str) -> str:
        """Explicit color, or the theme default for `default_key`"""
        return color if color is not None else self.colors[default_key]

    def create_figure(self, size: float, title: str = "circmap", pixels: int = 900):
        """
        Create a square, axis-free Bokeh figure covering the canvas

        The y range runs top to bottom so canvas coordinates can be used
        unchanged.

        Args:
            size: Canvas width and height in drawing units
            title: Figure title
            pixels: Figure width and height in screen pixels

        Returns:
            Themed Bokeh figure
        """
        fig = figure(
            title=title,
            width=pixels,
            height=pixels,
            x_range=(0, size),
            y_range=(size, 0),
            tools="pan,wheel_zoom,box_zoom,reset,save",
            active_scroll="wheel_zoom",
            match_aspect=True,
            background_fill_color=self.background,
            border_fill_color=self.background,
        )
        self.apply_to_figure(fig)
        return fig

    def apply_to_figure(self, fig) -> None:
        """Hide axes and grid and apply theme text colors"""
        fig.axis.visible = False
        fig.grid.grid_line_color = None
        fig.outline_line_color = None
        fig.title.text_color = self.text
