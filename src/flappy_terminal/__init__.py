"""flappy-terminal: a flappy-bird round rendered as a grid of character cells.

The simulation (bird physics, pipe generation, collision and the round state
machine) is independent of any display. A pygame shell draws it as a
fixed-size terminal-like window, and a Gymnasium environment exposes the same
round for scripted play and RL.
"""

from .config import PhysicsConfig, ObstacleConfig, BirdConfig, GameConfig, CONFIGS, load_game_config
from .entities import Bird, Boundary
from .geometry import CollisionSide, overlaps, classify_side, is_visible, transform_to_screen
from .obstacles import ObstacleGenerator, ObstaclePair
from .round import GameRound, RoundState, LifecycleSignal, RenderItem
from .keybindings import (
    KeyEvent, KeyModifiers, KeyEventKind, Phase, PageId, Action,
    KeyParseError, BindingError, BindingTable, KeybindingResolver, KeyStateTracker,
    parse_key_event, build_binding_table, load_keybindings,
)

__all__ = [
    "PhysicsConfig",
    "ObstacleConfig",
    "BirdConfig",
    "GameConfig",
    "CONFIGS",
    "load_game_config",
    "Bird",
    "Boundary",
    "CollisionSide",
    "overlaps",
    "classify_side",
    "is_visible",
    "transform_to_screen",
    "ObstacleGenerator",
    "ObstaclePair",
    "GameRound",
    "RoundState",
    "LifecycleSignal",
    "RenderItem",
    "KeyEvent",
    "KeyModifiers",
    "KeyEventKind",
    "Phase",
    "PageId",
    "Action",
    "KeyParseError",
    "BindingError",
    "BindingTable",
    "KeybindingResolver",
    "KeyStateTracker",
    "parse_key_event",
    "build_binding_table",
    "load_keybindings",
]
