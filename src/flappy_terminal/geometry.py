"""Collision, visibility and screen-space transforms for glyph entities.

Simulation space has its origin at the bottom-left of the canvas with y
growing upward; screen space has its origin at the top-left with y growing
downward. transform_to_screen() is the only place the two meet.

Bounding boxes are inclusive integer cell ranges. Positions are truncated
toward zero before use, so an entity at y=-0.5 occupies row 0.
"""

from enum import Enum, auto
from typing import List, NamedTuple, Optional, Protocol, Tuple

import pymunk

from .entities import Color


class Entity(Protocol):
    """Capability interface shared by Bird and Boundary."""

    def get_size(self) -> Tuple[int, int]: ...

    def get_position(self) -> Tuple[float, float]: ...

    def set_position(self, x: float, y: float) -> None: ...

    def get_layers(self) -> List[List[str]]: ...

    def get_colors(self) -> List[Color]: ...


class CollisionSide(Enum):
    """Side of the first entity touching the second."""
    NONE = auto()
    LEFT = auto()
    RIGHT = auto()
    TOP = auto()
    BOTTOM = auto()


class Rect(NamedTuple):
    """Canvas rectangle in screen space (top-left origin)."""
    x: int
    y: int
    width: int
    height: int


class BoundingBox(NamedTuple):
    """Inclusive cell bounds in simulation space."""
    left: int
    right: int
    bottom: int
    top: int

    @property
    def empty(self) -> bool:
        """True for a zero-width or zero-height entity."""
        return self.right < self.left or self.top < self.bottom

    def to_bb(self) -> pymunk.BB:
        """As a pymunk BB, whose intersects test is inclusive on every edge."""
        return pymunk.BB(self.left, self.bottom, self.right, self.top)


class ClippedBlock(NamedTuple):
    """Glyph layers trimmed to the canvas, with their adjusted screen box."""
    layers: List[List[str]]
    x: int
    y: int
    width: int
    height: int


def bounding_box(entity: Entity) -> BoundingBox:
    """Cells covered by an entity, from its truncated position and glyph size."""
    width, height = entity.get_size()
    x, y = entity.get_position()
    left, bottom = int(x), int(y)
    return BoundingBox(left, left + width - 1, bottom, bottom + height - 1)


def _intervals_intersect(l1: int, r1: int, l2: int, r2: int) -> bool:
    return not (r1 < l2 or l1 > r2)


def overlaps(a: Entity, b: Entity) -> bool:
    """True iff both inclusive cell intervals intersect. Symmetric."""
    box_a, box_b = bounding_box(a), bounding_box(b)
    if box_a.empty or box_b.empty:
        return False
    return box_a.to_bb().intersects(box_b.to_bb())


def classify_side(a: Entity, b: Entity) -> CollisionSide:
    """Which side of `a` is exactly edge-adjacent to `b`.

    Adjacency means the edge coordinates are equal and the orthogonal
    interval intersects. Used for diagnostics only; game over uses overlaps().
    """
    box_a, box_b = bounding_box(a), bounding_box(b)
    if box_a.empty or box_b.empty:
        return CollisionSide.NONE

    vertical = _intervals_intersect(box_a.bottom, box_a.top, box_b.bottom, box_b.top)
    horizontal = _intervals_intersect(box_a.left, box_a.right, box_b.left, box_b.right)

    if box_a.left == box_b.right and vertical:
        return CollisionSide.LEFT
    if box_a.right == box_b.left and vertical:
        return CollisionSide.RIGHT
    if box_a.bottom == box_b.top and horizontal:
        return CollisionSide.BOTTOM
    if box_a.top == box_b.bottom and horizontal:
        return CollisionSide.TOP
    return CollisionSide.NONE


def is_visible(entity: Entity, canvas_width: int, canvas_height: int) -> bool:
    """True iff any cell of the entity lies in [0, width) x [0, height)."""
    box = bounding_box(entity)
    if box.empty or canvas_width <= 0 or canvas_height <= 0:
        return False
    canvas = pymunk.BB(0, 0, canvas_width - 1, canvas_height - 1)
    return box.to_bb().intersects(canvas)


def transform_to_screen(entity: Entity, canvas: Rect) -> Tuple[int, int]:
    """Screen (x, y) of the entity's top-left cell."""
    box = bounding_box(entity)
    screen_x = canvas.x + box.left
    screen_y = canvas.y + canvas.height - 1 - box.top
    return screen_x, screen_y


def _clip_span(start: int, length: int, lo: int, hi: int) -> Tuple[int, int]:
    """Visible [begin, end) offsets of [start, start + length) within [lo, hi)."""
    begin = max(lo - start, 0)
    end = length - max(start + length - hi, 0)
    return begin, end


def clip_layers(entity: Entity, canvas: Rect) -> Optional[ClippedBlock]:
    """Trim the entity's layers to the canvas in screen space.

    Returns None when no cell is inside the canvas.
    """
    width, height = entity.get_size()
    x, y = transform_to_screen(entity, canvas)

    col_begin, col_end = _clip_span(x, width, canvas.x, canvas.x + canvas.width)
    row_begin, row_end = _clip_span(y, height, canvas.y, canvas.y + canvas.height)
    if col_end <= col_begin or row_end <= row_begin:
        return None

    layers = [
        [line[col_begin:col_end] for line in layer[row_begin:row_end]]
        for layer in entity.get_layers()
    ]
    return ClippedBlock(
        layers=layers,
        x=x + col_begin,
        y=y + row_begin,
        width=col_end - col_begin,
        height=row_end - row_begin,
    )


