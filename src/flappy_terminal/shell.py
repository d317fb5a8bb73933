"""Interactive shell: window, event polling and page routing.

The window is a fixed grid of character cells (canvas rows plus one status
row). Pages:
    Home - title, Select starts a round
    Game - the round itself
    Card - result after a round finishes, Select plays again, Back goes home
"""

import logging
import random
from typing import List, Optional

import pygame

from .config import COLOR_BG, COLOR_BIRD, COLOR_PIPE, GameConfig
from .keybindings import (
    Action,
    BindingTable,
    CardAction,
    Command,
    GameAction,
    HomeAction,
    KeybindingResolver,
    KeyEvent,
    KeyModifiers,
    KeyStateTracker,
    PageId,
    Phase,
    default_binding_table,
)
from .render import GridRenderer, blank_frame, compose_frame
from .round import GameRound, LifecycleSignal, RoundState


logger = logging.getLogger(__name__)

STATUS_ROWS = 1
KEY_REPEAT_DELAY_MS = 250
KEY_REPEAT_INTERVAL_MS = 50

TITLE_LINES = [
    "F L A P P Y",
    "",
    "a terminal bird",
]
CARD_LINES = [
    "Round complete!",
    "",
    "Score: {score}",
]

PYGAME_KEY_NAMES = {
    "escape": "esc",
    "return": "enter",
    "enter": "enter",
    "left": "left",
    "right": "right",
    "up": "up",
    "down": "down",
    "home": "home",
    "end": "end",
    "page up": "pageup",
    "page down": "pagedown",
    "backspace": "backspace",
    "delete": "delete",
    "insert": "insert",
    "tab": "tab",
    "space": " ",
    **{f"f{n}": f"f{n}" for n in range(1, 13)},
}


def key_event_from_pygame(key_name: str, unicode: str, mods: int) -> Optional[KeyEvent]:
    """Map a pygame key (name, text, modifier bits) onto a KeyEvent.

    Printable text wins over the key name so layouts are respected; shift is
    then folded into the character for everything but letters.
    """
    modifiers = KeyModifiers.NONE
    if mods & pygame.KMOD_CTRL:
        modifiers |= KeyModifiers.CONTROL
    if mods & pygame.KMOD_ALT:
        modifiers |= KeyModifiers.ALT
    if mods & pygame.KMOD_SHIFT:
        modifiers |= KeyModifiers.SHIFT

    name = key_name.lower()
    if name in PYGAME_KEY_NAMES:
        code = PYGAME_KEY_NAMES[name]
        if code == "tab" and modifiers & KeyModifiers.SHIFT:
            code = "backtab"
        return KeyEvent(code, modifiers)

    if unicode and len(unicode) == 1 and unicode.isprintable() and not modifiers & KeyModifiers.CONTROL:
        if not unicode.isalpha():
            modifiers &= ~KeyModifiers.SHIFT
        return KeyEvent(unicode, modifiers)

    if len(name) == 1:
        code = name.upper() if modifiers & KeyModifiers.SHIFT else name
        return KeyEvent(code, modifiers)
    return None


class FlappyApp:
    """Main loop coordinating input, the round and drawing."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        bindings: Optional[BindingTable] = None,
        seed: Optional[int] = None,
        cell_size=(12, 20),
    ):
        self.config = config or GameConfig()

        pygame.init()
        self.renderer = GridRenderer(cell_size)
        self.columns = self.config.canvas_width
        self.rows = self.config.canvas_height + STATUS_ROWS
        self.screen = pygame.display.set_mode(self.renderer.surface_size(self.columns, self.rows))
        pygame.display.set_caption("Flappy")
        pygame.key.set_repeat(KEY_REPEAT_DELAY_MS, KEY_REPEAT_INTERVAL_MS)
        self.clock = pygame.time.Clock()

        self.resolver = KeybindingResolver(bindings or default_binding_table())
        self.tracker = KeyStateTracker()
        self.round = GameRound(self.config, random.Random(seed))

        self.page = PageId.HOME
        self.running = False
        self.show_help = False
        self.last_score = 0

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                key_event = key_event_from_pygame(pygame.key.name(event.key), event.unicode, event.mod)
                if key_event is not None:
                    self.handle_key(self.tracker.key_down(event.key, key_event))
            elif event.type == pygame.KEYUP:
                released = self.tracker.key_up(event.key)
                if released is not None:
                    self.handle_key(released)
            elif event.type == pygame.WINDOWFOCUSLOST:
                for released in self.tracker.release_all():
                    self.handle_key(released)

    def handle_key(self, event: KeyEvent) -> None:
        action = self.resolver.resolve(event, self.page)
        if action is not None:
            logger.debug("%s -> %s", event, action)
            self.dispatch(action)

    def dispatch(self, action: Action) -> None:
        command, phase = action.command, action.phase

        if command is Command.QUIT:
            self.running = False
        elif command is Command.TOGGLE_SHOW_HELP:
            if phase is Phase.START:
                self.show_help = not self.show_help
        elif self.page is PageId.HOME:
            if command is HomeAction.SELECT and phase is Phase.START:
                self.start_game()
        elif self.page is PageId.GAME:
            if isinstance(command, GameAction) or command is Command.TOGGLE_PAUSE:
                self.handle_signal(self.round.on_command(command, phase))
        elif self.page is PageId.CARD:
            if command is CardAction.SELECT and phase is Phase.START:
                self.start_game()
            elif command is CardAction.BACK and phase is Phase.START:
                self.page = PageId.HOME

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def start_game(self) -> None:
        self.page = PageId.GAME
        if self.round.state is RoundState.IDLE:
            self.round.on_canvas_resized(self.config.canvas_width, self.config.canvas_height)
        else:
            self.round.reset()
        logger.info("Starting round")

    def handle_signal(self, signal: Optional[LifecycleSignal]) -> None:
        if signal is LifecycleSignal.ROUND_FINISHED:
            self.last_score = self.round.score
            self.page = PageId.CARD

    def update(self, dt: float) -> None:
        if self.page is PageId.GAME:
            self.handle_signal(self.round.on_tick(dt))

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _centered(self, lines: List[str], color) -> List:
        frame = blank_frame(self.config.canvas_width, self.config.canvas_height)
        top = max((self.config.canvas_height - len(lines)) // 2, 0)
        for offset, line in enumerate(lines):
            y = top + offset
            if y >= self.config.canvas_height:
                break
            left = max((self.config.canvas_width - len(line)) // 2, 0)
            for i, char in enumerate(line[: self.config.canvas_width - left]):
                frame[y][left + i] = (char, color)
        return frame

    def status_text(self) -> str:
        if self.show_help:
            pairs = self.resolver.bindings_for(self.page)
            return "  ".join(f"{key}:{command}" for key, command in pairs)
        if self.page is PageId.GAME:
            paused = "  [paused]" if self.round.paused else ""
            return f"score {self.round.score}  deaths {self.round.deaths}{paused}  ? help"
        return "? help"

    def render(self) -> None:
        """Render current page."""
        self.screen.fill(COLOR_BG)
        if self.page is PageId.GAME:
            frame = compose_frame(
                self.round.render_entities(),
                self.config.canvas_width,
                self.config.canvas_height,
            )
        elif self.page is PageId.CARD:
            lines = [line.format(score=self.last_score) for line in CARD_LINES]
            frame = self._centered(lines, COLOR_PIPE)
        else:
            frame = self._centered(TITLE_LINES, COLOR_BIRD)
        self.renderer.draw(self.screen, frame)
        self.renderer.draw_text(self.screen, self.status_text()[: self.columns], self.config.canvas_height)
        pygame.display.flip()

    def run(self) -> None:
        """Main loop. dt is the measured frame time, shared by every entity."""
        self.running = True
        logger.info("Shell started (%dx%d)", self.config.canvas_width, self.config.canvas_height)
        while self.running:
            dt = self.clock.tick(self.config.frame_rate) / 1000.0
            self.handle_events()
            self.update(dt)
            self.render()
        pygame.quit()
