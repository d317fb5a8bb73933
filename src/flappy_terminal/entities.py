"""Game entities: the bird, boundaries and pipes.

Every entity is a block of glyph layers anchored at its bottom-left corner in
simulation space. Entities share one small capability interface
(get_size, get_position, set_position, get_layers, get_colors); collision,
visibility and screen transforms live in geometry.py as free functions over
that interface.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

Color = Optional[Tuple[int, int, int]]

PIPE_BODY = "|"
PIPE_CAP = "█"
PIPE_CAP_ROWS = 2


def parse_layers(texts: Iterable[str]) -> List[List[str]]:
    """Split each layer on line breaks, dropping empty lines."""
    return [[line for line in text.splitlines() if line] for text in texts]


def measure_layers(layers: Sequence[Sequence[str]]) -> Tuple[int, int]:
    """(width, height): longest line and tallest layer across all layers."""
    width = max((len(line) for layer in layers for line in layer), default=0)
    height = max((len(layer) for layer in layers), default=0)
    return width, height


def _check_colors(layers: Sequence[Sequence[str]], colors: Optional[Sequence[Color]]) -> List[Color]:
    if colors is None:
        return [None] * len(layers)
    colors = list(colors)
    if len(colors) != len(layers):
        raise ValueError(f"Expected {len(layers)} layer colors, got {len(colors)}")
    return colors


def pipe_text(width: int, height: int, cap_on_top: bool) -> str:
    """Glyph text for one pipe: body rows plus two cap rows facing the gap."""
    body = [PIPE_BODY * width] * max(height - PIPE_CAP_ROWS, 0)
    caps = [PIPE_CAP * width] * min(PIPE_CAP_ROWS, height)
    rows = caps + body if cap_on_top else body + caps
    return "\n".join(rows)


class Boundary:
    """Static glyph block: floor, ceiling and pipes.

    Only ever moves by whole cells (scrolling).
    """

    def __init__(
        self,
        texts: Sequence[str],
        colors: Optional[Sequence[Color]] = None,
        x: float = 0.0,
        y: float = 0.0,
    ):
        self.layers = parse_layers(texts)
        self.colors = _check_colors(self.layers, colors)
        self.width, self.height = measure_layers(self.layers)
        self.x = float(x)
        self.y = float(y)

    def move_left(self, step: int = 1) -> None:
        self.x -= step

    def get_size(self) -> Tuple[int, int]:
        return self.width, self.height

    def get_position(self) -> Tuple[float, float]:
        return self.x, self.y

    def set_position(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def get_layers(self) -> List[List[str]]:
        return [list(layer) for layer in self.layers]

    def get_colors(self) -> List[Color]:
        return list(self.colors)

    def __repr__(self) -> str:
        return f"Boundary(x={self.x}, y={self.y}, width={self.width}, height={self.height})"


class Bird:
    """Player entity: vertical velocity under gravity plus a flap impulse.

    Time is never read from a clock here; callers pass the elapsed time of
    the tick explicitly, so pausing needs no bookkeeping beyond the flag.
    """

    def __init__(
        self,
        texts: Sequence[str],
        colors: Optional[Sequence[Color]] = None,
        x: float = 0.0,
        y: float = 0.0,
        velocity_limit: float = 20.0,
    ):
        self.layers = parse_layers(texts)
        self.colors = _check_colors(self.layers, colors)
        self.width, self.height = measure_layers(self.layers)
        self.x = float(x)
        self.y = float(y)
        self.velocity = 0.0
        self.velocity_limit = abs(velocity_limit)
        self.paused = False

    def integrate(self, gravity: float, dt: float) -> None:
        """Advance velocity and height by dt seconds.

        Velocity is clamped before it is applied, so the position never moves
        faster than velocity_limit.
        """
        if self.paused:
            return
        self.velocity -= gravity * dt
        self.velocity = max(-self.velocity_limit, min(self.velocity_limit, self.velocity))
        self.y += self.velocity * dt

    def impulse(self, velocity: float) -> None:
        """Flap: replace the current velocity (not additive)."""
        self.velocity = min(velocity, self.velocity_limit)

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def get_size(self) -> Tuple[int, int]:
        return self.width, self.height

    def get_position(self) -> Tuple[float, float]:
        return self.x, self.y

    def set_position(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def get_layers(self) -> List[List[str]]:
        return [list(layer) for layer in self.layers]

    def get_colors(self) -> List[Color]:
        return list(self.colors)

    def __repr__(self) -> str:
        return f"Bird(x={self.x}, y={self.y:.2f}, velocity={self.velocity:.2f})"
