"""Character-cell drawing layer.

compose_frame() flattens render items into a grid of (char, color) cells;
GridRenderer paints such a grid onto a pygame surface, one glyph per cell,
so the window looks and behaves like a fixed-size terminal.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import pygame

from .config import COLOR_BG, COLOR_TEXT
from .entities import Color
from .round import RenderItem

Cell = Tuple[str, Color]
Frame = List[List[Cell]]

BLANK: Cell = (" ", None)


def blank_frame(width: int, height: int) -> Frame:
    return [[BLANK] * width for _ in range(height)]


def compose_frame(
    items: Sequence[RenderItem],
    width: int,
    height: int,
    origin: Tuple[int, int] = (0, 0),
) -> Frame:
    """Draw items in order into a width x height cell grid.

    Item coordinates are screen coordinates; `origin` is the canvas's
    top-left corner. Cells outside the grid are dropped.
    """
    frame = blank_frame(width, height)
    ox, oy = origin
    for item in items:
        for index, (layer, color) in enumerate(zip(item.layers, item.colors)):
            skip_spaces = item.transparent and index > 0
            for row, line in enumerate(layer):
                y = item.y - oy + row
                if not 0 <= y < height:
                    continue
                for col, char in enumerate(line):
                    x = item.x - ox + col
                    if not 0 <= x < width:
                        continue
                    if skip_spaces and char == " ":
                        continue
                    frame[y][x] = (char, color)
    return frame


def frame_to_text(frame: Frame) -> str:
    return "\n".join("".join(char for char, _ in row) for row in frame)


class GridRenderer:
    """Paints cell frames with a pygame font."""

    def __init__(self, cell_size: Tuple[int, int] = (12, 20), font_size: Optional[int] = None):
        if not pygame.font.get_init():
            pygame.font.init()
        self.cell_width, self.cell_height = cell_size
        self.font = pygame.font.Font(None, font_size or self.cell_height + 2)
        self._glyphs = {}

    def surface_size(self, columns: int, rows: int) -> Tuple[int, int]:
        return columns * self.cell_width, rows * self.cell_height

    def _glyph(self, char: str, color: Color) -> pygame.Surface:
        key = (char, color)
        glyph = self._glyphs.get(key)
        if glyph is None:
            glyph = self.font.render(char, True, color or COLOR_TEXT)
            self._glyphs[key] = glyph
        return glyph

    def _blit_cell(self, surface: pygame.Surface, x: int, y: int, char: str, color: Color) -> None:
        if char == " ":
            return
        glyph = self._glyph(char, color)
        rect = glyph.get_rect(center=(
            x * self.cell_width + self.cell_width // 2,
            y * self.cell_height + self.cell_height // 2,
        ))
        surface.blit(glyph, rect)

    def draw(self, surface: pygame.Surface, frame: Frame, top_row: int = 0) -> None:
        """Paint the frame starting at `top_row` cells from the top."""
        for y, row in enumerate(frame):
            for x, (char, color) in enumerate(row):
                self._blit_cell(surface, x, y + top_row, char, color)

    def draw_text(self, surface: pygame.Surface, text: str, row: int, color: Color = None) -> None:
        """One line of status text at a cell row."""
        for x, char in enumerate(text):
            self._blit_cell(surface, x, row, char, color)

    def to_array(self, frame: Frame, resolution: Tuple[int, int]) -> np.ndarray:
        """Render a frame offscreen to an (H, W, 3) uint8 array."""
        rows = len(frame)
        columns = len(frame[0]) if frame else 0
        surface = pygame.Surface(self.surface_size(max(columns, 1), max(rows, 1)))
        surface.fill(COLOR_BG)
        self.draw(surface, frame)
        height, width = resolution
        scaled = pygame.transform.scale(surface, (width, height))
        # surfarray gives (W, H, 3); transpose to (H, W, 3)
        array = pygame.surfarray.array3d(scaled)
        return np.transpose(array, (1, 0, 2)).astype(np.uint8)
