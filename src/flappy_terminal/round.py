"""Round lifecycle: the bird, the boundaries and the pipes of one play session.

States:
    IDLE  - canvas size unknown, nothing simulated
    READY - simulation running
    DEAD  - the bird hit something on the last tick; the next tick resets

The surrounding shell drives a round through four calls:
    on_canvas_resized(width, height)   when the play area is known/changes
    on_tick(dt)                        once per simulation tick
    on_command(command, phase)         for every resolved key binding
    render_entities()                  once per frame
"""

import logging
import random
from enum import Enum, auto
from typing import List, NamedTuple, Optional

from .config import GameConfig
from .entities import Bird, Boundary, Color
from .geometry import Rect, Entity, clip_layers, is_visible, overlaps
from .keybindings import Command, GameAction, Phase
from .obstacles import ObstacleGenerator


logger = logging.getLogger(__name__)

BOUNDARY_GLYPH = "-"


class RoundState(Enum):
    IDLE = auto()
    READY = auto()
    DEAD = auto()


class LifecycleSignal(Enum):
    """Signals a round sends back to the shell."""
    ROUND_FINISHED = auto()


class RenderItem(NamedTuple):
    """One clipped entity ready for the drawing layer.

    When `transparent` is set, spaces in layers above the first do not
    overwrite what is already drawn.
    """
    layers: List[List[str]]
    x: int
    y: int
    colors: List[Color]
    transparent: bool = False


class GameRound:
    """Owns the round state machine and every entity in play."""

    def __init__(self, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or GameConfig()
        self.rng = rng or random.Random()

        self.state = RoundState.IDLE
        self.canvas = Rect(0, 0, 0, 0)

        bird_cfg = self.config.bird
        self.bird = Bird(
            bird_cfg.texts, bird_cfg.colors, 0, 0,
            velocity_limit=self.config.physics.velocity_limit,
        )
        self.floor: Optional[Boundary] = None
        self.ceiling: Optional[Boundary] = None
        self.obstacles = ObstacleGenerator(self.config.obstacles, self.rng)

        self.score = 0
        self.deaths = 0
        self.death_cause: Optional[str] = None
        self.paused = False
        self._finished_sent = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def boundaries(self) -> List[Boundary]:
        return [b for b in (self.floor, self.ceiling) if b is not None]

    def on_canvas_resized(self, width: int, height: int, x: int = 0, y: int = 0) -> None:
        canvas = Rect(x, y, width, height)
        if self.state is RoundState.IDLE:
            self.canvas = canvas
            self.reset()
        elif (canvas.width, canvas.height) != (self.canvas.width, self.canvas.height):
            logger.info("Canvas resized to %dx%d, restarting round", width, height)
            self.canvas = canvas
            self.reset()
        else:
            self.canvas = canvas

    def reset(self) -> None:
        """(Re)initialize the bird, boundaries and pipes on the current canvas."""
        width, height = self.canvas.width, self.canvas.height

        self.bird.set_position(self.config.bird.initial_x, height // 2)
        self.bird.velocity = 0.0
        self.bird.resume()

        row = BOUNDARY_GLYPH * width
        self.floor = Boundary([row], None, 0, -1)
        self.ceiling = Boundary([row], None, 0, height)

        self.obstacles.reset(width, height)
        self.obstacles.resume()

        self.score = 0
        self.paused = False
        self._finished_sent = False
        self.state = RoundState.READY
        logger.debug("Round reset on %dx%d canvas", width, height)

    def on_tick(self, dt: float) -> Optional[LifecycleSignal]:
        if self.state is RoundState.IDLE:
            return None
        if self.state is RoundState.DEAD:
            self.reset()
            return None

        self.bird.integrate(self.config.physics.gravity, dt)
        self.obstacles.update(dt)
        self._update_score()

        cause = self._collision_cause()
        if cause is not None:
            self.state = RoundState.DEAD
            self.deaths += 1
            self.death_cause = cause
            logger.info("Bird hit the %s (score %d, deaths %d)", cause, self.score, self.deaths)
            return None

        if self.obstacles.drained and not self._finished_sent:
            self._finished_sent = True
            logger.info("Round finished with score %d", self.score)
            return LifecycleSignal.ROUND_FINISHED
        return None

    def on_command(self, command, phase: Phase) -> Optional[LifecycleSignal]:
        if command is GameAction.UP and phase is Phase.END:
            if self.state is RoundState.READY and not self.paused:
                self.bird.impulse(self.config.physics.up_velocity)
        elif command is Command.TOGGLE_PAUSE and phase is Phase.START:
            if self.paused:
                self.resume()
            else:
                self.pause()
        return None

    def pause(self) -> None:
        self.paused = True
        self.bird.pause()
        self.obstacles.pause()

    def resume(self) -> None:
        self.paused = False
        self.bird.resume()
        self.obstacles.resume()

    # ------------------------------------------------------------------
    # Per-tick helpers
    # ------------------------------------------------------------------

    def _collision_cause(self) -> Optional[str]:
        if self.floor is not None and overlaps(self.bird, self.floor):
            return "floor"
        if self.ceiling is not None and overlaps(self.bird, self.ceiling):
            return "ceiling"
        for pair in self.obstacles.pairs:
            if overlaps(self.bird, pair.lower) or overlaps(self.bird, pair.upper):
                return "pipe"
        return None

    def _update_score(self) -> None:
        bird_left = int(self.bird.x)
        for pair in self.obstacles.pairs:
            if not pair.passed and pair.right < bird_left:
                pair.passed = True
                self.score += 1

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_item(self, entity: Entity, transparent: bool) -> Optional[RenderItem]:
        if not is_visible(entity, self.canvas.width, self.canvas.height):
            return None
        block = clip_layers(entity, self.canvas)
        if block is None:
            return None
        return RenderItem(block.layers, block.x, block.y, entity.get_colors(), transparent)

    def render_entities(self) -> List[RenderItem]:
        """Visible pipes, then the bird, clipped to the canvas."""
        if self.state is RoundState.IDLE:
            return []
        items = []
        for pair in self.obstacles.pairs:
            for pipe in pair:
                item = self._render_item(pipe, transparent=False)
                if item is not None:
                    items.append(item)
        bird = self._render_item(self.bird, transparent=True)
        if bird is not None:
            items.append(bird)
        return items
