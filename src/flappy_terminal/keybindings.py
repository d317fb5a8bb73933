"""Key descriptors, binding tables and key-event resolution.

A binding table maps key events to actions (a command plus a press phase),
either globally or scoped to one page. Tables are described in YAML:

    global:
      click:
        q: Quit
    pages:
      Game:
        hold:
          space: Up

`click` bindings fire once on key press (Phase.START). `hold` bindings expand
to three entries on the same key: press -> START, terminal repeat -> REPEAT,
release -> END. Resolution checks the active page first, then the global
table.

Key descriptors accept any number of `ctrl-`, `alt-` and `shift-` prefixes
followed by a named key (`esc`, `enter`, `f5`, `space`, ...) or a single
character, optionally wrapped in angle brackets: `<ctrl-a>`.
"""

import logging
from dataclasses import dataclass
from enum import Enum, IntFlag, auto
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Hashable, List, Mapping, Optional, Tuple, Union

import yaml


logger = logging.getLogger(__name__)


class KeyParseError(ValueError):
    """Malformed key descriptor."""


class BindingError(ValueError):
    """Malformed binding table: unknown page, command or binding kind."""


class KeyModifiers(IntFlag):
    NONE = 0
    SHIFT = 1
    CONTROL = 2
    ALT = 4


class KeyEventKind(Enum):
    PRESS = auto()
    REPEAT = auto()
    RELEASE = auto()


@dataclass(frozen=True)
class KeyEvent:
    """A key with modifiers and press kind. Hashable, used as table key."""
    code: str
    modifiers: KeyModifiers = KeyModifiers.NONE
    kind: KeyEventKind = KeyEventKind.PRESS

    def with_kind(self, kind: KeyEventKind) -> "KeyEvent":
        return KeyEvent(self.code, self.modifiers, kind)


class Phase(Enum):
    """Press lifecycle of a resolved command."""
    START = auto()
    REPEAT = auto()
    END = auto()


class PageId(Enum):
    HOME = "Home"
    GAME = "Game"
    CARD = "Card"


class Command(Enum):
    """Cross-page commands bound in the global table."""
    QUIT = "Quit"
    TOGGLE_PAUSE = "TogglePause"
    TOGGLE_SHOW_HELP = "ToggleShowHelp"


class HomeAction(Enum):
    UP = "Up"
    DOWN = "Down"
    SELECT = "Select"


class GameAction(Enum):
    LEFT = "Left"
    RIGHT = "Right"
    UP = "Up"
    DOWN = "Down"


class CardAction(Enum):
    SELECT = "Select"
    BACK = "Back"


PAGE_COMMANDS = {
    PageId.HOME: HomeAction,
    PageId.GAME: GameAction,
    PageId.CARD: CardAction,
}


@dataclass(frozen=True)
class Action:
    command: Enum
    phase: Phase = Phase.START


# ----------------------------------------------------------------------
# Key descriptor grammar
# ----------------------------------------------------------------------

NAMED_KEYS = {
    "esc": "esc",
    "enter": "enter",
    "left": "left",
    "right": "right",
    "up": "up",
    "down": "down",
    "home": "home",
    "end": "end",
    "pageup": "pageup",
    "pagedown": "pagedown",
    "backtab": "backtab",
    "backspace": "backspace",
    "delete": "delete",
    "insert": "insert",
    "tab": "tab",
    "space": " ",
    "hyphen": "-",
    "minus": "-",
    **{f"f{n}": f"f{n}" for n in range(1, 13)},
}

_MODIFIER_PREFIXES = (
    ("ctrl-", KeyModifiers.CONTROL),
    ("alt-", KeyModifiers.ALT),
    ("shift-", KeyModifiers.SHIFT),
)

_DISPLAY_NAMES = {" ": "space"}


def _strip_brackets(raw: str) -> str:
    if raw.count("<") != raw.count(">"):
        raise KeyParseError(f"Unable to parse `{raw}`: unbalanced brackets")
    if raw.startswith("<") and raw.endswith(">") and len(raw) > 2:
        return raw[1:-1]
    return raw


def _extract_modifiers(raw: str) -> Tuple[str, KeyModifiers]:
    modifiers = KeyModifiers.NONE
    current = raw
    while True:
        for prefix, flag in _MODIFIER_PREFIXES:
            # "-" alone is a literal key, not an empty modifier remainder
            if current.startswith(prefix) and len(current) > len(prefix):
                modifiers |= flag
                current = current[len(prefix):]
                break
        else:
            return current, modifiers


def parse_key_event(raw: str) -> KeyEvent:
    """Parse a textual key descriptor into a press KeyEvent.

    Raises:
        KeyParseError: unknown key name or unbalanced brackets.
    """
    if not raw:
        raise KeyParseError("Unable to parse an empty key descriptor")
    body = _strip_brackets(raw)
    remaining, modifiers = _extract_modifiers(body.lower())

    if remaining in NAMED_KEYS:
        code = NAMED_KEYS[remaining]
        if remaining == "backtab":
            modifiers |= KeyModifiers.SHIFT
    elif len(remaining) == 1:
        code = remaining
        if modifiers & KeyModifiers.SHIFT:
            code = code.upper()
    else:
        raise KeyParseError(f"Unable to parse `{raw}`: unknown key `{remaining}`")
    return KeyEvent(code, modifiers)


def key_event_to_string(event: KeyEvent) -> str:
    """Render a key event in descriptor form, e.g. `ctrl-alt-a`."""
    parts = []
    if event.modifiers & KeyModifiers.CONTROL:
        parts.append("ctrl")
    if event.modifiers & KeyModifiers.ALT:
        parts.append("alt")
    if event.modifiers & KeyModifiers.SHIFT and event.code != "backtab":
        parts.append("shift")
    code = event.code
    if len(code) == 1 and event.modifiers & KeyModifiers.SHIFT:
        code = code.lower()
    parts.append(_DISPLAY_NAMES.get(code, code))
    return "-".join(parts)


# ----------------------------------------------------------------------
# Binding tables
# ----------------------------------------------------------------------

KeyMap = Mapping[KeyEvent, Action]


@dataclass(frozen=True)
class BindingTable:
    """Immutable global and per-page key maps."""
    global_bindings: KeyMap
    pages: Mapping[PageId, KeyMap]


def parse_command(name: str, page: Optional[PageId] = None) -> Enum:
    """Look up a command name in the global or page vocabulary."""
    vocabulary = Command if page is None else PAGE_COMMANDS[page]
    for member in vocabulary:
        if member.value.lower() == str(name).lower():
            return member
    scope = "global" if page is None else page.value
    raise BindingError(f"Unknown {scope} command `{name}`")


def parse_page_id(name: str) -> PageId:
    for page in PageId:
        if page.value.lower() == str(name).lower():
            return page
    raise BindingError(f"Unknown page `{name}`")


def _kind_entries(raw: Mapping[str, Any], kind: str, page: Optional[PageId]) -> Mapping[str, Any]:
    entries = raw.get(kind) or {}
    if not isinstance(entries, Mapping):
        raise BindingError(f"`{kind}` bindings for {page.value if page else 'global'} must be a mapping")
    return entries


def _expand_scope(raw: Optional[Mapping[str, Any]], page: Optional[PageId]) -> Dict[KeyEvent, Action]:
    table: Dict[KeyEvent, Action] = {}
    if not raw:
        return table
    if not isinstance(raw, Mapping):
        raise BindingError(f"Bindings for {page.value if page else 'global'} must be a mapping")
    unknown = set(raw) - {"click", "hold"}
    if unknown:
        raise BindingError(f"Unknown binding kinds: {sorted(unknown)}")

    for key, name in _kind_entries(raw, "click", page).items():
        event = parse_key_event(str(key))
        table[event] = Action(parse_command(name, page), Phase.START)

    for key, name in _kind_entries(raw, "hold", page).items():
        event = parse_key_event(str(key))
        command = parse_command(name, page)
        table[event] = Action(command, Phase.START)
        table[event.with_kind(KeyEventKind.REPEAT)] = Action(command, Phase.REPEAT)
        table[event.with_kind(KeyEventKind.RELEASE)] = Action(command, Phase.END)
    return table


def _freeze(global_bindings: Dict[KeyEvent, Action], pages: Dict[PageId, Dict[KeyEvent, Action]]) -> BindingTable:
    return BindingTable(
        global_bindings=MappingProxyType(dict(global_bindings)),
        pages=MappingProxyType({page: MappingProxyType(dict(m)) for page, m in pages.items()}),
    )


def build_binding_table(raw: Optional[Mapping[str, Any]]) -> BindingTable:
    """Expand a raw `{global: ..., pages: ...}` mapping into a BindingTable.

    Raises:
        KeyParseError: a key descriptor cannot be parsed.
        BindingError: unknown page, command or binding kind.
    """
    raw = raw or {}
    if not isinstance(raw, Mapping):
        raise BindingError("Binding table must be a mapping")
    raw_pages = raw.get("pages") or {}
    if not isinstance(raw_pages, Mapping):
        raise BindingError("`pages` must be a mapping of page name to bindings")
    global_bindings = _expand_scope(raw.get("global"), None)
    pages = {
        parse_page_id(name): _expand_scope(scope, parse_page_id(name))
        for name, scope in raw_pages.items()
    }
    logger.debug(
        "Built binding table: %d global, %s",
        len(global_bindings), {p.value: len(m) for p, m in pages.items()},
    )
    return _freeze(global_bindings, pages)


def merge_binding_tables(defaults: BindingTable, overrides: BindingTable) -> BindingTable:
    """Overrides win per key event; defaults fill in the rest."""
    global_bindings = {**defaults.global_bindings, **overrides.global_bindings}
    pages = {}
    for page in set(defaults.pages) | set(overrides.pages):
        pages[page] = {**defaults.pages.get(page, {}), **overrides.pages.get(page, {})}
    return _freeze(global_bindings, pages)


def _read_yaml_bindings(text: str, source: str) -> Mapping[str, Any]:
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise BindingError(f"{source}: expected a mapping at top level")
    return data.get("keybindings", data)


def default_binding_table() -> BindingTable:
    text = resources.files(__package__).joinpath("default_keybindings.yaml").read_text(encoding="utf-8")
    return build_binding_table(_read_yaml_bindings(text, "default_keybindings.yaml"))


def load_keybindings(user_path: Optional[Union[str, Path]] = None) -> BindingTable:
    """Default bindings, with a user YAML file merged over them if present."""
    table = default_binding_table()
    if user_path is None:
        return table
    path = Path(user_path)
    if not path.exists():
        logger.warning("No keybinding file at %s, using defaults", path)
        return table
    user = build_binding_table(_read_yaml_bindings(path.read_text(encoding="utf-8"), str(path)))
    logger.info("Merged user keybindings from %s", path)
    return merge_binding_tables(table, user)


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------

class KeybindingResolver:
    """Resolves key events against a binding table for the active page."""

    def __init__(self, table: BindingTable):
        self.table = table

    def resolve(self, event: KeyEvent, page: Optional[PageId] = None) -> Optional[Action]:
        if page is not None:
            action = self.table.pages.get(page, {}).get(event)
            if action is not None:
                return action
        return self.table.global_bindings.get(event)

    def bindings_for(self, page: Optional[PageId] = None) -> List[Tuple[str, str]]:
        """Effective press bindings for a page as (key, command) display pairs."""
        merged = dict(self.table.global_bindings)
        if page is not None:
            merged.update(self.table.pages.get(page, {}))
        pairs = [
            (key_event_to_string(event), action.command.value)
            for event, action in merged.items()
            if event.kind is KeyEventKind.PRESS
        ]
        return sorted(pairs)


class KeyStateTracker:
    """Turns plain key down/up notifications into press/repeat/release events.

    Keys are identified by whatever stable id the platform provides
    (a scancode, a key constant). The event recorded at press time is reused
    for repeats and for the release, so all three phases match the same
    binding even if the platform reports different text on release.
    """

    def __init__(self):
        self._held: Dict[Hashable, KeyEvent] = {}

    def key_down(self, key_id: Hashable, event: KeyEvent) -> KeyEvent:
        held = self._held.get(key_id)
        if held is not None:
            return held.with_kind(KeyEventKind.REPEAT)
        pressed = event.with_kind(KeyEventKind.PRESS)
        self._held[key_id] = pressed
        return pressed

    def key_up(self, key_id: Hashable) -> Optional[KeyEvent]:
        held = self._held.pop(key_id, None)
        if held is None:
            return None
        return held.with_kind(KeyEventKind.RELEASE)

    def release_all(self) -> List[KeyEvent]:
        released = [event.with_kind(KeyEventKind.RELEASE) for event in self._held.values()]
        self._held.clear()
        return released

    def is_held(self, key_id: Hashable) -> bool:
        return key_id in self._held
