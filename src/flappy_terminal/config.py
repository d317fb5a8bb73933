"""Configuration system for the flappy simulation.

Tunables are grouped the same way the simulation is split:
- PhysicsConfig: gravity, flap impulse, velocity clamp (the bird)
- ObstacleConfig: pipe geometry, scroll cadence and spawn budget
- BirdConfig: glyph art, colors and starting column
- GameConfig: everything above plus canvas size and loop cadence

All units are character cells and seconds. Positions are in simulation space
(origin bottom-left, y up).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple, Dict, Any, ClassVar, Optional, Union
import logging
import random

import yaml

from .entities import parse_layers


logger = logging.getLogger(__name__)

# Colors (RGB)
COLOR_BG = (40, 44, 52)
COLOR_TEXT = (220, 223, 228)
COLOR_BIRD = (97, 175, 239)
COLOR_BIRD_FACE = (229, 192, 123)
COLOR_PIPE = (152, 195, 121)

BIRD_TEXTS: Tuple[str, ...] = (
    "\n"
    " ^ ^\n"
    "(   )\n"
    "(   )\n"
    "- - -\n",
    "\n"
    "    \n"
    " O,O \n"
    "     \n"
    ' " " \n',
)
BIRD_COLORS: Tuple[Optional[Tuple[int, int, int]], ...] = (COLOR_BIRD, COLOR_BIRD_FACE)


def _section(d: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = d.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section `{key}` must be a mapping, got {type(value).__name__}")
    return value


@dataclass
class PhysicsConfig:
    """Bird motion parameters.

    Gravity pulls the bird down (cells/s^2), a flap sets the vertical velocity
    to up_velocity (cells/s), and velocity is always clamped to
    [-velocity_limit, velocity_limit].
    """

    gravity: float = 70.0
    up_velocity: float = 20.0
    velocity_limit: float = 20.0

    GRAVITY_RANGE: ClassVar[Tuple[float, float]] = (40.0, 110.0)
    UP_VELOCITY_RANGE: ClassVar[Tuple[float, float]] = (14.0, 26.0)
    VELOCITY_LIMIT_RANGE: ClassVar[Tuple[float, float]] = (16.0, 30.0)

    @classmethod
    def sample(cls) -> "PhysicsConfig":
        """Sample random bird physics."""
        return cls(
            gravity=random.uniform(*cls.GRAVITY_RANGE),
            up_velocity=random.uniform(*cls.UP_VELOCITY_RANGE),
            velocity_limit=random.uniform(*cls.VELOCITY_LIMIT_RANGE),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "gravity": self.gravity,
            "up_velocity": self.up_velocity,
            "velocity_limit": self.velocity_limit,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PhysicsConfig":
        defaults = cls()
        return cls(
            gravity=float(d.get("gravity", defaults.gravity)),
            up_velocity=float(d.get("up_velocity", defaults.up_velocity)),
            velocity_limit=float(d.get("velocity_limit", defaults.velocity_limit)),
        )


@dataclass
class ObstacleConfig:
    """Pipe generation parameters.

    Gap heights and horizontal margins are drawn uniformly from
    [base - range, base + range). max_count bounds the total number of pairs
    generated per round; once they have all scrolled away the round is done.
    """

    pipe_width: int = 6
    scroll_speed: float = 12.0  # Cells per second
    gap_base: int = 10
    gap_range: int = 2
    margin_base: int = 25
    margin_range: int = 2
    max_count: int = 1
    color: Optional[Tuple[int, int, int]] = COLOR_PIPE

    GAP_BASE_RANGE: ClassVar[Tuple[int, int]] = (7, 12)
    MARGIN_BASE_RANGE: ClassVar[Tuple[int, int]] = (16, 32)
    SCROLL_SPEED_RANGE: ClassVar[Tuple[float, float]] = (8.0, 20.0)

    def __post_init__(self):
        if self.scroll_speed <= 0:
            raise ValueError(f"scroll_speed must be positive, got {self.scroll_speed}")
        if self.pipe_width <= 0:
            raise ValueError(f"pipe_width must be positive, got {self.pipe_width}")
        if self.max_count <= 0:
            raise ValueError(f"max_count must be positive, got {self.max_count}")
        if self.gap_range < 0 or self.margin_range < 0:
            raise ValueError("gap_range and margin_range must not be negative")

    @property
    def scroll_period(self) -> float:
        """Seconds between one-cell scroll steps."""
        return 1.0 / self.scroll_speed

    @classmethod
    def sample(cls) -> "ObstacleConfig":
        """Sample random pipe cadence and gaps."""
        return cls(
            scroll_speed=random.uniform(*cls.SCROLL_SPEED_RANGE),
            gap_base=random.randint(*cls.GAP_BASE_RANGE),
            margin_base=random.randint(*cls.MARGIN_BASE_RANGE),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pipe_width": self.pipe_width,
            "scroll_speed": self.scroll_speed,
            "gap_base": self.gap_base,
            "gap_range": self.gap_range,
            "margin_base": self.margin_base,
            "margin_range": self.margin_range,
            "max_count": self.max_count,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ObstacleConfig":
        defaults = cls()
        color = d.get("color", defaults.color)
        return cls(
            pipe_width=int(d.get("pipe_width", defaults.pipe_width)),
            scroll_speed=float(d.get("scroll_speed", defaults.scroll_speed)),
            gap_base=int(d.get("gap_base", defaults.gap_base)),
            gap_range=int(d.get("gap_range", defaults.gap_range)),
            margin_base=int(d.get("margin_base", defaults.margin_base)),
            margin_range=int(d.get("margin_range", defaults.margin_range)),
            max_count=int(d.get("max_count", defaults.max_count)),
            color=tuple(color) if color is not None else None,
        )


@dataclass
class BirdConfig:
    """Bird visuals (non-behavioral)."""
    initial_x: int = 20
    texts: Tuple[str, ...] = BIRD_TEXTS
    colors: Tuple[Optional[Tuple[int, int, int]], ...] = BIRD_COLORS

    def __post_init__(self):
        layers = len(parse_layers(self.texts))
        if layers == 0:
            raise ValueError("Bird needs at least one glyph layer")
        if len(self.colors) != layers:
            raise ValueError(f"Expected {layers} bird layer colors, got {len(self.colors)}")


@dataclass
class GameConfig:
    """Complete game configuration combining all parameter groups."""
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    obstacles: ObstacleConfig = field(default_factory=ObstacleConfig)
    bird: BirdConfig = field(default_factory=BirdConfig)

    # Display settings
    canvas_width: int = 80
    canvas_height: int = 24
    tick_rate: float = 60.0
    frame_rate: float = 60.0

    def __post_init__(self):
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ValueError(
                f"Canvas size must be positive, got {self.canvas_width}x{self.canvas_height}"
            )
        if self.tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {self.tick_rate}")
        if self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {self.frame_rate}")

    @classmethod
    def sample_full(cls) -> "GameConfig":
        """Sample physics and obstacle parameters together."""
        return cls(physics=PhysicsConfig.sample(), obstacles=ObstacleConfig.sample())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to nested dictionary."""
        return {
            "physics": self.physics.to_dict(),
            "obstacles": self.obstacles.to_dict(),
            "bird": {"initial_x": self.bird.initial_x},
            "canvas_width": self.canvas_width,
            "canvas_height": self.canvas_height,
            "tick_rate": self.tick_rate,
            "frame_rate": self.frame_rate,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], base: Optional["GameConfig"] = None) -> "GameConfig":
        """Create from a nested dictionary, filling gaps from `base`.

        Raises:
            ValueError: a section is not a mapping, or a value is out of range.
        """
        base = base or cls()
        physics = {**base.physics.to_dict(), **_section(d, "physics")}
        obstacles = {**base.obstacles.to_dict(), "color": base.obstacles.color, **_section(d, "obstacles")}
        bird = _section(d, "bird")
        return cls(
            physics=PhysicsConfig.from_dict(physics),
            obstacles=ObstacleConfig.from_dict(obstacles),
            bird=BirdConfig(
                initial_x=int(bird.get("initial_x", base.bird.initial_x)),
                texts=tuple(bird.get("texts", base.bird.texts)),
                colors=tuple(
                    tuple(c) if c is not None else None
                    for c in bird.get("colors", base.bird.colors)
                ),
            ),
            canvas_width=int(d.get("canvas_width", base.canvas_width)),
            canvas_height=int(d.get("canvas_height", base.canvas_height)),
            tick_rate=float(d.get("tick_rate", base.tick_rate)),
            frame_rate=float(d.get("frame_rate", base.frame_rate)),
        )


def load_game_config(path: Union[str, Path], preset: str = "default") -> GameConfig:
    """Load a YAML config file on top of a named preset.

    Raises:
        KeyError: unknown preset name.
        ValueError: the file does not contain a mapping, or a value has the
            wrong type or is out of range.
    """
    base = CONFIGS[preset]
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    try:
        config = GameConfig.from_dict(data, base=base)
    except TypeError as e:
        raise ValueError(f"Config file {path}: {e}") from e
    logger.info("Loaded game config from %s (preset %s)", path, preset)
    return config


# Predefined configurations
CONFIGS = {
    # One pipe, then the result card
    "default": GameConfig(),

    # Keep spawning until the bird dies
    "endless": GameConfig(obstacles=ObstacleConfig(max_count=1_000_000)),

    # Tighter gaps, closer pipes
    "narrow": GameConfig(obstacles=ObstacleConfig(
        gap_base=7, gap_range=1, margin_base=18, max_count=10,
    )),

    # Low gravity, gentle flaps
    "floaty": GameConfig(
        physics=PhysicsConfig(gravity=40.0, up_velocity=14.0, velocity_limit=16.0),
        obstacles=ObstacleConfig(max_count=10),
    ),

    # Strong gravity, hard flaps, faster scroll
    "heavy": GameConfig(
        physics=PhysicsConfig(gravity=110.0, up_velocity=26.0, velocity_limit=30.0),
        obstacles=ObstacleConfig(scroll_speed=16.0, max_count=10),
    ),
}
