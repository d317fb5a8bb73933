"""Tests for game entities."""

import pytest

from flappy_terminal.config import BIRD_TEXTS, BIRD_COLORS
from flappy_terminal.entities import (
    Bird, Boundary, parse_layers, measure_layers, pipe_text, PIPE_BODY, PIPE_CAP,
)


class TestLayers:
    def test_parse_drops_empty_lines(self):
        assert parse_layers(["\nab\n\ncd\n"]) == [["ab", "cd"]]

    def test_measure_uses_widest_and_tallest(self):
        layers = parse_layers(["a\nbbb", "cc\nd\ne"])
        assert measure_layers(layers) == (3, 3)

    def test_measure_empty(self):
        assert measure_layers([]) == (0, 0)

    def test_default_bird_art(self):
        bird = Bird(BIRD_TEXTS, BIRD_COLORS)
        assert bird.get_size() == (5, 4)
        assert len(bird.get_layers()) == 2


class TestPipeText:
    def test_cap_on_top(self):
        rows = pipe_text(3, 4, cap_on_top=True).split("\n")
        assert rows == [PIPE_CAP * 3, PIPE_CAP * 3, PIPE_BODY * 3, PIPE_BODY * 3]

    def test_cap_on_bottom(self):
        rows = pipe_text(2, 3, cap_on_top=False).split("\n")
        assert rows == [PIPE_BODY * 2, PIPE_CAP * 2, PIPE_CAP * 2]

    def test_short_pipe_is_all_cap(self):
        rows = pipe_text(2, 1, cap_on_top=True).split("\n")
        assert rows == [PIPE_CAP * 2]


class TestBoundary:
    def test_size_and_position(self):
        b = Boundary(["####\n####"], None, 3, 7)
        assert b.get_size() == (4, 2)
        assert b.get_position() == (3.0, 7.0)

    def test_move_left(self):
        b = Boundary(["#"], None, 10, 0)
        b.move_left()
        b.move_left(3)
        assert b.x == 6

    def test_color_count_must_match_layers(self):
        with pytest.raises(ValueError):
            Boundary(["a", "b"], [(1, 2, 3)])

    def test_default_colors(self):
        b = Boundary(["a", "b"])
        assert b.get_colors() == [None, None]

    def test_layers_are_copies(self):
        b = Boundary(["ab"])
        b.get_layers()[0].append("zz")
        assert b.get_layers() == [["ab"]]


class TestBird:
    def test_falls_under_gravity(self, bird):
        bird.integrate(gravity=70.0, dt=0.1)
        assert bird.velocity == pytest.approx(-7.0)
        assert bird.y == pytest.approx(-0.7)

    def test_velocity_clamped_downward(self, bird):
        for _ in range(100):
            bird.integrate(gravity=70.0, dt=0.1)
        assert bird.velocity == pytest.approx(-20.0)

    def test_clamp_applies_before_move(self, bird):
        bird.integrate(gravity=1000.0, dt=0.1)
        assert bird.velocity == pytest.approx(-20.0)
        assert bird.y == pytest.approx(-2.0)

    def test_impulse_replaces_velocity(self, bird):
        bird.velocity = -15.0
        bird.impulse(12.0)
        assert bird.velocity == 12.0

    def test_impulse_capped_at_limit(self, bird):
        bird.impulse(50.0)
        assert bird.velocity == 20.0

    def test_impulse_does_not_accumulate(self, bird):
        bird.impulse(12.0)
        bird.impulse(12.0)
        assert bird.velocity == 12.0
        bird.impulse(50.0)
        bird.impulse(50.0)
        assert bird.velocity == 20.0

    def test_flap_then_gravity(self, bird):
        bird.impulse(20.0)
        bird.integrate(gravity=70.0, dt=0.1)
        assert bird.velocity == pytest.approx(13.0)
        assert bird.y == pytest.approx(1.3)

    def test_paused_does_not_move(self, bird):
        bird.pause()
        bird.integrate(gravity=70.0, dt=1.0)
        assert bird.y == 0.0
        assert bird.velocity == 0.0
        bird.resume()
        bird.integrate(gravity=70.0, dt=0.1)
        assert bird.y < 0.0

    def test_zero_dt_is_noop(self, bird):
        bird.velocity = 5.0
        bird.integrate(gravity=70.0, dt=0.0)
        assert bird.y == 0.0
        assert bird.velocity == 5.0

    def test_set_position(self, bird):
        bird.set_position(4, 9.5)
        assert bird.get_position() == (4.0, 9.5)
