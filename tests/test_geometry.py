"""Tests for collision, visibility and screen transforms."""

import pytest

from flappy_terminal.geometry import (
    CollisionSide, Rect, bounding_box, overlaps, classify_side,
    is_visible, transform_to_screen, clip_layers,
)


class TestBoundingBox:
    def test_inclusive_bounds(self, block):
        box = bounding_box(block(3, 2, x=4, y=5))
        assert (box.left, box.right, box.bottom, box.top) == (4, 6, 5, 6)

    def test_truncates_toward_zero(self, block):
        box = bounding_box(block(1, 1, x=2.9, y=-0.5))
        assert (box.left, box.bottom) == (2, 0)

    def test_empty_entity(self, block):
        assert bounding_box(block(0, 0)).empty


class TestOverlaps:
    def test_shared_cell_overlaps(self, block):
        a = block(3, 3, x=0, y=0)
        b = block(3, 3, x=2, y=2)
        assert overlaps(a, b)

    def test_adjacent_does_not_overlap(self, block):
        a = block(3, 3, x=0, y=0)
        b = block(3, 3, x=3, y=0)
        assert not overlaps(a, b)

    @pytest.mark.parametrize("dx,dy", [(0, 0), (2, 0), (-2, 1), (0, 3), (5, 5), (-1, -1)])
    def test_symmetric(self, block, dx, dy):
        a = block(3, 3, x=0, y=0)
        b = block(2, 4, x=dx, y=dy)
        assert overlaps(a, b) == overlaps(b, a)

    def test_empty_never_overlaps(self, block):
        assert not overlaps(block(0, 0, x=1, y=1), block(5, 5))

    def test_bird_vs_floor(self, bird, block):
        floor = block(80, 1, x=0, y=-1)
        assert not overlaps(bird, floor)
        bird.set_position(0, -0.999)
        # int(-0.999) == 0, still above the floor row
        assert not overlaps(bird, floor)
        bird.set_position(0, -1.0)
        assert overlaps(bird, floor)


class TestClassifySide:
    def test_left(self, block):
        a = block(2, 2, x=3, y=0)
        b = block(4, 2, x=0, y=0)
        assert classify_side(a, b) is CollisionSide.LEFT

    def test_right(self, block):
        a = block(2, 2, x=0, y=0)
        b = block(2, 2, x=1, y=1)
        assert classify_side(a, b) is CollisionSide.RIGHT

    def test_bottom(self, block):
        a = block(5, 2, x=0, y=3)
        b = block(2, 4, x=1, y=0)
        assert classify_side(a, b) is CollisionSide.BOTTOM

    def test_top(self, block):
        a = block(5, 2, x=0, y=0)
        b = block(2, 2, x=1, y=1)
        assert classify_side(a, b) is CollisionSide.TOP

    def test_none_when_apart(self, block):
        assert classify_side(block(2, 2), block(2, 2, x=10, y=10)) is CollisionSide.NONE

    def test_none_for_empty(self, block):
        assert classify_side(block(0, 0), block(2, 2)) is CollisionSide.NONE


class TestVisibility:
    def test_inside(self, block):
        assert is_visible(block(2, 2, x=5, y=5), 10, 10)

    def test_partially_left_of_canvas(self, block):
        assert is_visible(block(3, 1, x=-2, y=0), 10, 10)

    def test_fully_left_of_canvas(self, block):
        assert not is_visible(block(3, 1, x=-3, y=0), 10, 10)

    def test_right_of_canvas(self, block):
        assert not is_visible(block(3, 1, x=10, y=0), 10, 10)

    def test_scrolling_left_never_becomes_visible_again(self, block):
        b = block(4, 2, x=12, y=0)
        seen = []
        for _ in range(30):
            seen.append(is_visible(b, 10, 10))
            b.move_left()
        first = seen.index(True)
        last = len(seen) - 1 - seen[::-1].index(True)
        assert all(seen[first:last + 1])
        assert not any(seen[last + 1:])

    def test_empty_canvas(self, block):
        assert not is_visible(block(1, 1), 0, 10)


class TestScreenTransform:
    def test_bottom_left_maps_to_last_row(self, block):
        canvas = Rect(0, 0, 10, 5)
        assert transform_to_screen(block(1, 1, x=0, y=0), canvas) == (0, 4)

    def test_top_row(self, block):
        canvas = Rect(0, 0, 10, 5)
        assert transform_to_screen(block(2, 2, x=3, y=3), canvas) == (3, 0)

    def test_canvas_offset(self, block):
        canvas = Rect(2, 1, 10, 5)
        assert transform_to_screen(block(1, 1, x=0, y=0), canvas) == (2, 5)


class TestClipLayers:
    def test_fully_inside(self, block):
        canvas = Rect(0, 0, 10, 10)
        clipped = clip_layers(block(3, 2, x=1, y=1), canvas)
        assert (clipped.x, clipped.y, clipped.width, clipped.height) == (1, 7, 3, 2)
        assert clipped.layers == [["###", "###"]]

    def test_clipped_on_left_and_bottom(self):
        from flappy_terminal.entities import Boundary
        b = Boundary(["abc\ndef\nghi"], None, -1, -1)
        clipped = clip_layers(b, Rect(0, 0, 10, 10))
        assert clipped.layers == [["bc", "ef"]]
        assert (clipped.x, clipped.y) == (0, 8)

    def test_clipped_on_top(self):
        from flappy_terminal.entities import Boundary
        b = Boundary(["abc\ndef"], None, 0, 4)
        clipped = clip_layers(b, Rect(0, 0, 10, 5))
        assert clipped.layers == [["def"]]
        assert (clipped.y, clipped.height) == (0, 1)

    def test_outside_returns_none(self, block):
        assert clip_layers(block(2, 2, x=20, y=0), Rect(0, 0, 10, 10)) is None
