"""Gymnasium environment wrapper for the flappy round.

Provides standard Gym API for RL training and data collection.
Observations include both RGB frames and a structured state vector.
"""

import random

import numpy as np
import gymnasium
from gymnasium import spaces
from typing import Optional, Dict, Tuple

import pygame

from .config import GameConfig, COLOR_BG
from .keybindings import GameAction, Phase
from .render import GridRenderer, compose_frame
from .round import GameRound, LifecycleSignal, RoundState


STATE_SIZE = 8


class FlappyEnv(gymnasium.Env):
    """Gymnasium wrapper for one flappy round.

    Observation space (Dict):
        'rgb': uint8 array of shape (H, W, 3) - rendered frame
        'state': float32 array of shape (8,) - state vector containing:
            [0] bird y (bottom row, simulation space)
            [1] bird vertical velocity
            [2] columns from the bird to the right edge of the next pipe
            [3] next gap bottom row
            [4] next gap top row
            [5] canvas height
            [6] episode progress (steps / max_steps)
            [7] bird dead (0/1)

    Action space: Discrete(2), 1 = flap.

    Reward = weighted sum of raw signals (stored in info['reward_signals']):
        alive: 1.0 every step the bird survives
        pass:  number of pipe pairs passed this step
        death: 1.0 when the bird dies
    """

    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        obs_resolution: Tuple[int, int] = (96, 256),
        max_episode_steps: int = 2000,
        reward_weights: Optional[Dict[str, float]] = None,
    ):
        super().__init__()

        self.config = config or GameConfig()
        self.render_mode = render_mode
        self.obs_height, self.obs_width = obs_resolution
        self.max_episode_steps = max_episode_steps

        self.reward_weights = reward_weights or {
            "alive": 0.1,
            "pass": 10.0,
            "death": -10.0,
        }

        self.action_space = spaces.Discrete(2)

        self.observation_space = spaces.Dict({
            "rgb": spaces.Box(
                low=0, high=255,
                shape=(self.obs_height, self.obs_width, 3),
                dtype=np.uint8,
            ),
            "state": spaces.Box(
                low=-np.inf, high=np.inf,
                shape=(STATE_SIZE,),
                dtype=np.float32,
            ),
        })

        # Initialize pygame (caller sets SDL_VIDEODRIVER for headless)
        if not pygame.get_init():
            pygame.init()
        self._renderer = GridRenderer()

        self._display = None
        if render_mode == "human":
            self._display = pygame.display.set_mode(
                self._renderer.surface_size(self.config.canvas_width, self.config.canvas_height)
            )
            pygame.display.set_caption("FlappyEnv")

        # Game state (populated on reset)
        self._round: Optional[GameRound] = None
        self._episode_steps = 0
        self._finished = False
        self._dead = False
        self._round_seed = 0

        self._dt = 1.0 / self.config.tick_rate

    @property
    def round(self) -> Optional[GameRound]:
        return self._round

    def reset(self, *, seed=None, options=None):
        super().reset(seed=seed)

        self._round_seed = int(self.np_random.integers(0, 2**31))
        self._round = GameRound(self.config, random.Random(self._round_seed))
        self._round.on_canvas_resized(self.config.canvas_width, self.config.canvas_height)

        self._episode_steps = 0
        self._finished = False
        self._dead = False

        return self._get_obs(), self._get_info()

    def step(self, action):
        assert self._round is not None, "Must call reset() before step()"

        prev_score = self._round.score
        if not (self._dead or self._finished):
            if int(np.asarray(action).item()):
                self._round.on_command(GameAction.UP, Phase.END)
            signal = self._round.on_tick(self._dt)
            if signal is LifecycleSignal.ROUND_FINISHED:
                self._finished = True
            if self._round.state is RoundState.DEAD:
                self._dead = True
        self._episode_steps += 1

        reward_signals = {
            "alive": 0.0 if self._dead else 1.0,
            "pass": float(self._round.score - prev_score),
            "death": 1.0 if self._dead else 0.0,
        }
        reward = sum(
            self.reward_weights.get(k, 0.0) * v
            for k, v in reward_signals.items()
        )

        terminated = self._dead or self._finished
        truncated = self._episode_steps >= self.max_episode_steps

        obs = self._get_obs()
        info = self._get_info()
        info["reward_signals"] = reward_signals

        if self.render_mode == "human":
            self.render()

        return obs, float(reward), terminated, truncated, info

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    def _get_obs(self):
        # Frames are only drawn when a caller asked for them
        if self.render_mode in ("rgb_array", "human"):
            rgb = self._render_frame()
        else:
            rgb = np.zeros(
                (self.obs_height, self.obs_width, 3), dtype=np.uint8
            )
        return {"rgb": rgb, "state": self._get_state_vector()}

    def _next_gap(self) -> Tuple[float, float, float]:
        """(distance, gap bottom, gap top) of the next pipe pair.

        Falls back to the pending, not yet spawned pair when none is ahead.
        """
        bird = self._round.bird
        obstacles = self._round.obstacles
        pair = obstacles.next_pair(bird.x)
        if pair is not None:
            return pair.right - bird.x, pair.gap_bottom, pair.gap_top
        remaining = max(obstacles.spawn_threshold - obstacles.progress, 0)
        distance = self.config.canvas_width + remaining + self.config.obstacles.pipe_width - 1 - bird.x
        gap_bottom = obstacles.next_height
        return distance, gap_bottom, gap_bottom + obstacles.next_gap - 1

    def _get_state_vector(self):
        state = np.zeros(STATE_SIZE, dtype=np.float32)
        if self._round is None:
            return state

        bird = self._round.bird
        distance, gap_bottom, gap_top = self._next_gap()
        state[0] = bird.y
        state[1] = bird.velocity
        state[2] = distance
        state[3] = gap_bottom
        state[4] = gap_top
        state[5] = self._round.canvas.height
        state[6] = float(self._episode_steps) / max(self.max_episode_steps, 1)
        state[7] = float(self._dead)
        return state

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _frame(self):
        items = self._round.render_entities() if self._round else []
        return compose_frame(items, self.config.canvas_width, self.config.canvas_height)

    def _render_frame(self):
        """Render current state to numpy array (H, W, 3) uint8."""
        return self._renderer.to_array(self._frame(), (self.obs_height, self.obs_width))

    def render(self):
        if self.render_mode == "rgb_array":
            return self._render_frame()
        elif self.render_mode == "human" and self._display:
            self._display.fill(COLOR_BG)
            self._renderer.draw(self._display, self._frame())
            pygame.display.flip()

    def _get_info(self):
        info = {
            "score": self._round.score if self._round else 0,
            "episode_steps": self._episode_steps,
            "round_finished": self._finished,
            "bird_dead": self._dead,
            "round_seed": self._round_seed,
        }
        if self._round:
            info["bird_position"] = self._round.bird.get_position()
            info["death_cause"] = self._round.death_cause if self._dead else None
            info["pipes_generated"] = self._round.obstacles.generated
        return info

    def close(self):
        if self._display:
            pygame.display.quit()
            self._display = None
