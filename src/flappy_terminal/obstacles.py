"""Procedural pipe generation and scrolling.

Pipes come in pairs framing a vertical gap. Each pair is spawned just past
the right edge of the canvas and scrolls left one cell per scroll step. The
horizontal spacing, gap size and gap offset of the *next* pair are sampled
as soon as the previous one is spawned, so they can be inspected (and
drawn as hints) ahead of time.

Pairs live in a FIFO queue; since every pair moves left at the same rate,
queue order is also left-to-right screen order and eviction only ever
happens at the front.
"""

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, Optional

from .config import ObstacleConfig
from .entities import Boundary, pipe_text
from .geometry import is_visible


logger = logging.getLogger(__name__)

MIN_PIPE_HEIGHT = 2
MIN_GAP = 1
MIN_CANVAS_HEIGHT = 2 * MIN_PIPE_HEIGHT + MIN_GAP


@dataclass
class ObstaclePair:
    """Lower and upper pipe sharing one column range."""
    lower: Boundary
    upper: Boundary
    passed: bool = False

    def __iter__(self) -> Iterator[Boundary]:
        yield self.lower
        yield self.upper

    @property
    def left(self) -> int:
        return int(self.lower.x)

    @property
    def right(self) -> int:
        return int(self.lower.x) + self.lower.width - 1

    @property
    def gap_bottom(self) -> int:
        """First free row above the lower pipe."""
        return int(self.lower.y) + self.lower.height

    @property
    def gap_top(self) -> int:
        """Last free row below the upper pipe."""
        return int(self.upper.y) - 1


def sample_in(rng: random.Random, base: int, spread: int) -> int:
    """Uniform integer in [base - spread, base + spread)."""
    if spread <= 0:
        return base
    return rng.randrange(base - spread, base + spread)


class ObstacleGenerator:
    """Samples, spawns, scrolls and evicts pipe pairs.

    Scrolling is driven by accumulated tick time rather than a wall clock:
    update(dt) performs at most one one-cell step per call once
    1 / scroll_speed seconds have accumulated.
    """

    def __init__(
        self,
        config: Optional[ObstacleConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or ObstacleConfig()
        self.rng = rng or random.Random()

        self.canvas_width = 0
        self.canvas_height = 0
        self.pairs: Deque[ObstaclePair] = deque()

        self.next_gap = 0
        self.next_height = 0
        self.next_margin = 0
        self.progress = 0
        self.generated = 0

        self.paused = False
        self._elapsed = 0.0

    @property
    def spawn_threshold(self) -> int:
        return self.next_margin + self.config.pipe_width

    @property
    def drained(self) -> bool:
        """All pairs of the round were generated and have scrolled away."""
        return not self.pairs and self.generated >= self.config.max_count

    def reset(self, canvas_width: int, canvas_height: int) -> None:
        """Start a new round on the given canvas.

        The first pair is primed to appear on the very first scroll step.
        """
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.pairs = deque()
        self.generated = 0
        self._elapsed = 0.0
        self.sample_next()
        self.progress = self.spawn_threshold

    def sample_next(self) -> None:
        """Draw the gap, lower height and margin of the next pair."""
        cfg = self.config
        height = self.canvas_height

        gap = sample_in(self.rng, cfg.gap_base, cfg.gap_range)
        # Keep both pipes at least MIN_PIPE_HEIGHT tall on short canvases
        gap = max(MIN_GAP, min(gap, height - 2 * MIN_PIPE_HEIGHT))
        upper_bound = max(height - gap - MIN_PIPE_HEIGHT, MIN_PIPE_HEIGHT + 1)

        self.next_gap = gap
        self.next_height = self.rng.randrange(MIN_PIPE_HEIGHT, upper_bound)
        self.next_margin = sample_in(self.rng, cfg.margin_base, cfg.margin_range)
        self.progress = 0

    def can_spawn(self) -> bool:
        return (
            self.generated < self.config.max_count
            and self.canvas_height >= MIN_CANVAS_HEIGHT
        )

    def spawn(self) -> ObstaclePair:
        """Build the next pair at the right edge from the sampled values."""
        cfg = self.config
        lower_height = self.next_height
        upper_height = self.canvas_height - self.next_gap - lower_height
        x = self.canvas_width

        lower = Boundary(
            [pipe_text(cfg.pipe_width, lower_height, cap_on_top=True)],
            [cfg.color], x, 0,
        )
        upper = Boundary(
            [pipe_text(cfg.pipe_width, upper_height, cap_on_top=False)],
            [cfg.color], x, lower_height + self.next_gap,
        )
        pair = ObstaclePair(lower, upper)
        self.pairs.append(pair)
        self.generated += 1
        logger.debug(
            "Spawned pipe pair %d: lower=%d gap=%d upper=%d",
            self.generated, lower_height, self.next_gap, upper_height,
        )
        return pair

    def scroll_step(self) -> None:
        """Move every pair one cell left, evict, and maybe spawn."""
        self.progress += 1
        for pair in self.pairs:
            pair.lower.move_left(1)
            pair.upper.move_left(1)

        while self.pairs and not is_visible(self.pairs[0].lower, self.canvas_width, self.canvas_height):
            self.pairs.popleft()

        if self.progress >= self.spawn_threshold:
            if self.can_spawn():
                self.spawn()
                self.sample_next()
            elif self.canvas_height < MIN_CANVAS_HEIGHT and self.generated < self.config.max_count:
                logger.debug("Canvas height %d too small for pipes", self.canvas_height)

    def update(self, dt: float) -> bool:
        """Accumulate dt; returns True when a scroll step ran."""
        if self.paused:
            return False
        self._elapsed += dt
        if self._elapsed >= self.config.scroll_period:
            self._elapsed = 0.0
            self.scroll_step()
            return True
        return False

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def next_pair(self, x: float) -> Optional[ObstaclePair]:
        """First pair whose right edge is at or past column x."""
        for pair in self.pairs:
            if pair.right >= x:
                return pair
        return None
