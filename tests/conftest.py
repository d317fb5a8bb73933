"""Pytest configuration and shared fixtures."""

import os
import random

# Ensure headless pygame for all tests
os.environ['SDL_VIDEODRIVER'] = 'dummy'

import pytest

from flappy_terminal.config import GameConfig
from flappy_terminal.entities import Bird, Boundary
from flappy_terminal.round import GameRound


@pytest.fixture
def game_config():
    """Default game configuration."""
    return GameConfig()


@pytest.fixture
def rng():
    """Seeded RNG so pipe layouts are reproducible."""
    return random.Random(1234)


@pytest.fixture
def bird():
    """Plain 3x2 bird at the origin."""
    return Bird(["abc\ndef"], None, 0, 0, velocity_limit=20.0)


@pytest.fixture
def block():
    """Factory for single-layer boundaries of a given size."""
    def make(width, height, x=0, y=0):
        return Boundary(["\n".join(["#" * width] * height)], None, x, y)
    return make


@pytest.fixture
def game_round(game_config, rng):
    """Round already sized to the default canvas."""
    r = GameRound(game_config, rng)
    r.on_canvas_resized(game_config.canvas_width, game_config.canvas_height)
    return r
