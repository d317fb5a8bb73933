"""Tests for the round state machine."""

import random

import pytest

from flappy_terminal.config import GameConfig, PhysicsConfig, BirdConfig, ObstacleConfig
from flappy_terminal.keybindings import Command, GameAction, Phase
from flappy_terminal.round import GameRound, RoundState, LifecycleSignal


def still_config(**kwargs):
    """No gravity, so the bird stays where it is put."""
    return GameConfig(physics=PhysicsConfig(gravity=0.0), **kwargs)


class TestLifecycle:
    def test_starts_idle(self, game_config, rng):
        r = GameRound(game_config, rng)
        assert r.state is RoundState.IDLE
        assert r.on_tick(0.1) is None
        assert r.render_entities() == []

    def test_resize_from_idle_starts_round(self, game_round):
        assert game_round.state is RoundState.READY
        assert game_round.bird.get_position() == (20.0, 12.0)
        assert game_round.floor.y == -1
        assert game_round.ceiling.y == 24
        assert game_round.floor.width == 80

    def test_same_size_resize_keeps_round(self, game_round):
        game_round.on_tick(0.1)
        y = game_round.bird.y
        game_round.on_canvas_resized(80, 24)
        assert game_round.bird.y == y

    def test_new_size_resets_round(self, game_round):
        game_round.on_tick(0.1)
        game_round.on_canvas_resized(60, 30)
        assert game_round.state is RoundState.READY
        assert game_round.bird.get_position() == (20.0, 15.0)
        assert game_round.ceiling.y == 30


class TestDeath:
    def test_floor_death_then_reset(self, game_round):
        game_round.bird.set_position(20, -1)
        assert game_round.on_tick(0.0) is None
        assert game_round.state is RoundState.DEAD
        assert game_round.death_cause == "floor"
        assert game_round.deaths == 1

        # The tick after a death only resets
        assert game_round.on_tick(0.0) is None
        assert game_round.state is RoundState.READY
        assert game_round.bird.get_position() == (20.0, 12.0)
        assert game_round.bird.velocity == 0.0
        assert not game_round.obstacles.pairs
        assert game_round.obstacles.generated == 0
        assert game_round.deaths == 1

    def test_ceiling_death(self, game_round):
        # Bird is 4 rows tall; top row 24 is the ceiling
        game_round.bird.set_position(20, 21)
        game_round.on_tick(0.0)
        assert game_round.state is RoundState.DEAD
        assert game_round.death_cause == "ceiling"

    def test_touching_below_ceiling_is_safe(self, game_round):
        game_round.bird.set_position(20, 20)
        game_round.on_tick(0.0)
        assert game_round.state is RoundState.READY

    def test_falls_to_death(self, game_round):
        for _ in range(200):
            game_round.on_tick(1 / 60)
            if game_round.state is RoundState.DEAD:
                break
        assert game_round.state is RoundState.DEAD
        assert game_round.death_cause == "floor"

    def test_pipe_death(self, rng):
        r = GameRound(still_config(), rng)
        r.on_canvas_resized(80, 24)
        r.obstacles.scroll_step()
        pair = r.obstacles.pairs[0]
        pair.lower.set_position(r.bird.x, 0)
        r.bird.set_position(r.bird.x, 0)
        r.on_tick(0.0)
        assert r.state is RoundState.DEAD
        assert r.death_cause == "pipe"


class TestRoundFinished:
    def test_single_signal(self):
        config = still_config(bird=BirdConfig(initial_x=100))
        r = GameRound(config, random.Random(5))
        r.on_canvas_resized(30, 24)

        signals = [r.on_tick(1 / 12) for _ in range(120)]
        assert signals.count(LifecycleSignal.ROUND_FINISHED) == 1
        # Spawned at x=30, width 6: gone after 37 scroll steps
        assert signals.index(LifecycleSignal.ROUND_FINISHED) == 36
        assert r.state is RoundState.READY

    def test_signal_again_after_reset(self):
        config = still_config(bird=BirdConfig(initial_x=100))
        r = GameRound(config, random.Random(5))
        r.on_canvas_resized(30, 24)
        first = [r.on_tick(1 / 12) for _ in range(60)]
        r.reset()
        second = [r.on_tick(1 / 12) for _ in range(60)]
        assert first.count(LifecycleSignal.ROUND_FINISHED) == 1
        assert second.count(LifecycleSignal.ROUND_FINISHED) == 1

    def test_score_counts_passed_pairs(self):
        config = still_config(
            bird=BirdConfig(initial_x=2),
            obstacles=ObstacleConfig(max_count=3, margin_base=4, margin_range=0),
        )
        r = GameRound(config, random.Random(1))
        r.on_canvas_resized(30, 24)
        # Keep the bird clear of the pipes by moving it above the canvas
        r.ceiling = None
        r.bird.set_position(2, 30)
        for _ in range(80):
            r.on_tick(1 / 12)
        assert r.score == 3


class TestCommands:
    def test_flap_on_release(self, game_round):
        game_round.on_command(GameAction.UP, Phase.START)
        assert game_round.bird.velocity == 0.0
        game_round.on_command(GameAction.UP, Phase.REPEAT)
        assert game_round.bird.velocity == 0.0
        game_round.on_command(GameAction.UP, Phase.END)
        assert game_round.bird.velocity == pytest.approx(game_round.config.physics.up_velocity)

    def test_flap_raises_bird(self, game_round):
        game_round.on_command(GameAction.UP, Phase.END)
        game_round.on_tick(1 / 60)
        assert game_round.bird.y > 12.0

    def test_toggle_pause(self, game_round):
        game_round.on_command(Command.TOGGLE_PAUSE, Phase.START)
        assert game_round.paused
        game_round.on_tick(1.0)
        assert game_round.bird.y == 12.0
        assert game_round.obstacles.generated == 0

        game_round.on_command(Command.TOGGLE_PAUSE, Phase.START)
        assert not game_round.paused
        game_round.on_tick(0.1)
        assert game_round.bird.y < 12.0

    def test_no_flap_while_paused(self, game_round):
        game_round.pause()
        game_round.on_command(GameAction.UP, Phase.END)
        assert game_round.bird.velocity == 0.0

    def test_unrelated_commands_ignored(self, game_round):
        assert game_round.on_command(GameAction.LEFT, Phase.START) is None
        assert game_round.on_command(Command.QUIT, Phase.START) is None
        assert game_round.state is RoundState.READY


class TestRenderEntities:
    def test_bird_only_at_start(self, game_round):
        items = game_round.render_entities()
        assert len(items) == 1
        bird = items[0]
        assert bird.transparent
        assert (bird.x, bird.y) == (20, 8)
        assert len(bird.layers) == 2

    def test_offscreen_pipes_skipped(self, game_round):
        game_round.obstacles.scroll_step()
        # Spawned at x = canvas width, not yet visible
        assert len(game_round.render_entities()) == 1
        game_round.obstacles.scroll_step()
        items = game_round.render_entities()
        assert len(items) == 3
        assert not items[0].transparent
        assert items[-1].transparent

    def test_pipes_clipped_to_canvas(self, game_round):
        run = game_round.obstacles
        for _ in range(2):
            run.scroll_step()
        lower = game_round.render_entities()[0]
        assert lower.x == 79
        assert all(len(line) == 1 for line in lower.layers[0])
