"""Scripted policies for automated play and data collection.

Each policy takes a FlappyEnv observation and returns a Discrete(2) action:
0 = do nothing, 1 = flap.
"""

import numpy as np
from typing import Dict, Optional


# Indices into the FlappyEnv state vector
BIRD_Y = 0
VELOCITY = 1
GAP_BOTTOM = 3
GAP_TOP = 4


class BasePolicy:
    """Base class for scripted policies."""

    name: str = "base"

    def __call__(self, obs: Dict[str, np.ndarray]) -> int:
        return self.act(obs)

    def act(self, obs: Dict[str, np.ndarray]) -> int:
        raise NotImplementedError

    def reset(self):
        """Called at the start of each episode."""
        pass


class RandomPolicy(BasePolicy):
    """Flap with a fixed probability each step.

    Broad state coverage, many deaths, good baseline.
    """

    name = "random"

    def __init__(self, rng: Optional[np.random.Generator] = None, flap_prob: float = 0.05):
        self.rng = rng or np.random.default_rng()
        self.flap_prob = flap_prob

    def act(self, obs):
        return int(self.rng.random() < self.flap_prob)


class PeriodicPolicy(BasePolicy):
    """Flap every `interval` steps regardless of what is ahead."""

    name = "periodic"

    def __init__(self, interval: int = 20):
        self.interval = interval
        self._step = 0

    def reset(self):
        self._step = 0

    def act(self, obs):
        self._step += 1
        return int(self._step % self.interval == 0)


class GapSeekingPolicy(BasePolicy):
    """Keep the bird's bottom row just above the next gap's floor.

    Flaps only while falling, so the bird never stacks impulses on the way up,
    and skips the flap when the gap's top is closer than `headroom` rows
    above the bird's bottom row (bird height plus the rise of one flap).
    """

    name = "gap_seeking"

    def __init__(self, clearance: float = 1.0, headroom: float = 6.0):
        self.clearance = clearance
        self.headroom = headroom

    def act(self, obs):
        state = obs["state"]
        bird_y = state[BIRD_Y]
        velocity = state[VELOCITY]
        gap_bottom = state[GAP_BOTTOM]
        gap_top = state[GAP_TOP]

        falling = velocity <= 0.0
        low = bird_y < gap_bottom + self.clearance
        has_room = bird_y + self.headroom <= gap_top
        return int(falling and low and has_room)


POLICIES = {
    "random": RandomPolicy,
    "periodic": PeriodicPolicy,
    "gap_seeking": GapSeekingPolicy,
}
