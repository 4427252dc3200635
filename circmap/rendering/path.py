"""
Vector path builder

Paths are recorded as absolute move/arc/line commands so the same path can
be serialized to SVG path data or flattened into point arrays for backends
that cannot draw elliptical arcs.
"""

import math
from dataclasses import dataclass, field

import numpy as np

ARC_POINTS_PER_CIRCLE = 720


@dataclass(frozen=True)
class PathCommand:
    op: str  # "M", "A" or "L"
    x: float
    y: float
    radius: float = 0.0
    large_arc: int = 0
    sweep: int = 1


def _fmt(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".")


@dataclass
class PathBuilder:
    """
    Sequence of absolute path commands around a common center

    Arcs are always circular and centered on `center`, which is what the
    flattening step assumes.

    Examples:
        >>> path = PathBuilder((0, 0)).move_to(10, 0).arc_to(10, 0, 1, 0, 10).line_to(0, 0)
        >>> path.to_svg()
        'M10,0 A10,10 0,0,1 0,10 L0,0'
    """

    center: tuple[float, float] = (0.0, 0.0)
    commands: list[PathCommand] = field(default_factory=list)
    closed: bool = False

    def move_to(self, x: float, y: float) -> "PathBuilder":
        self.commands.append(PathCommand("M", x, y))
        return self

    def line_to(self, x: float, y: float) -> "PathBuilder":
        self.commands.append(PathCommand("L", x, y))
        return self

    def arc_to(
        self, radius: float, large_arc: int, sweep: int, x: float, y: float
    ) -> "PathBuilder":
        self.commands.append(PathCommand("A", x, y, radius, large_arc, sweep))
        return self

    def close(self) -> "PathBuilder":
        self.closed = True
        return self

    @property
    def start(self) -> tuple[float, float]:
        return (self.commands[0].x, self.commands[0].y) if self.commands else self.center

    @property
    def end(self) -> tuple[float, float]:
        return (self.commands[-1].x, self.commands[-1].y) if self.commands else self.center

    def to_svg(self) -> str:
        parts = []
        for cmd in self.commands:
            if cmd.op == "A":
                r = _fmt(cmd.radius)
                parts.append(
                    f"A{r},{r} 0,{cmd.large_arc},{cmd.sweep} {_fmt(cmd.x)},{_fmt(cmd.y)}"
                )
            else:
                parts.append(f"{cmd.op}{_fmt(cmd.x)},{_fmt(cmd.y)}")
        if self.closed:
            parts.append("Z")
        return " ".join(parts)

    def _arc_points(self, x0: float, y0: float, cmd: PathCommand) -> tuple[np.ndarray, np.ndarray]:
        cx, cy = self.center
        a0 = math.atan2(y0 - cy, x0 - cx)
        a1 = math.atan2(cmd.y - cy, cmd.x - cx)
        if cmd.sweep:
            delta = (a1 - a0) % (2 * math.pi)
        else:
            delta = -((a0 - a1) % (2 * math.pi))
        if delta == 0 and cmd.large_arc:
            delta = 2 * math.pi if cmd.sweep else -2 * math.pi
        n = max(2, int(abs(delta) / (2 * math.pi) * ARC_POINTS_PER_CIRCLE))
        angles = np.linspace(a0, a0 + delta, n)
        return cx + cmd.radius * np.cos(angles), cy + cmd.radius * np.sin(angles)

    def flatten(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Approximate the path with straight segments

        Returns:
            Tuple of (xs, ys) arrays
        """
        xs: list[np.ndarray] = []
        ys: list[np.ndarray] = []
        x, y = self.center
        for cmd in self.commands:
            if cmd.op == "A":
                ax, ay = self._arc_points(x, y, cmd)
                xs.append(ax[1:])
                ys.append(ay[1:])
            else:
                xs.append(np.array([cmd.x]))
                ys.append(np.array([cmd.y]))
            x, y = cmd.x, cmd.y
        if not xs:
            return np.array([]), np.array([])
        return np.concatenate(xs), np.concatenate(ys)
