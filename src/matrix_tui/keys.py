"""Key and mouse event model, curses keycode normalization and chord parsing."""

from __future__ import annotations

import curses
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyEvent:
    """A decoded key press.

    ``name`` is one of the symbolic names below ("UP", "ENTER", "F5", ...) or
    ``"CHAR"``, in which case ``char`` holds the printable character.
    """

    name: str
    char: str = ""
    ctrl: bool = False
    alt: bool = False
    shift: bool = False

    def is_char(self, char: str | None = None) -> bool:
        if self.name != "CHAR":
            return False
        return char is None or self.char == char

    @property
    def plain(self) -> bool:
        return not (self.ctrl or self.alt)


@dataclass(frozen=True)
class MouseEvent:
    kind: str
    button: str
    x: int
    y: int


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Resize:
    pass


TICK = Tick()
RESIZE = Resize()

KEY_NAMES = {
    "UP": "Up",
    "DOWN": "Down",
    "LEFT": "Left",
    "RIGHT": "Right",
    "ENTER": "Enter",
    "TAB": "Tab",
    "BACKTAB": "Backtab",
    "BACKSPACE": "Backspace",
    "DELETE": "Delete",
    "INSERT": "Insert",
    "HOME": "Home",
    "END": "End",
    "PAGE_UP": "Page Up",
    "PAGE_DOWN": "Page Down",
    "ESC": "Escape",
}

_CURSES_KEYS = {
    curses.KEY_UP: "UP",
    curses.KEY_DOWN: "DOWN",
    curses.KEY_LEFT: "LEFT",
    curses.KEY_RIGHT: "RIGHT",
    curses.KEY_HOME: "HOME",
    curses.KEY_END: "END",
    curses.KEY_PPAGE: "PAGE_UP",
    curses.KEY_NPAGE: "PAGE_DOWN",
    curses.KEY_IC: "INSERT",
    curses.KEY_DC: "DELETE",
    curses.KEY_ENTER: "ENTER",
    curses.KEY_BACKSPACE: "BACKSPACE",
    curses.KEY_BTAB: "BACKTAB",
}

_SHIFTED_ARROWS = {
    curses.KEY_SR: "UP",
    curses.KEY_SF: "DOWN",
    curses.KEY_SLEFT: "LEFT",
    curses.KEY_SRIGHT: "RIGHT",
}


def normalize_key(code: int) -> KeyEvent | None:
    """Map a curses keycode onto a :class:`KeyEvent`; ``None`` when unknown."""

    if code in (9, getattr(curses, "KEY_TAB", 9)):
        return KeyEvent("TAB")
    if code in (10, 13):
        return KeyEvent("ENTER")
    if code in (8, 127):
        return KeyEvent("BACKSPACE")
    if code == 27:
        return KeyEvent("ESC")
    if code == 353:  # shift-tab on terminfo entries lacking KEY_BTAB
        return KeyEvent("BACKTAB", shift=True)
    if code in _CURSES_KEYS:
        name = _CURSES_KEYS[code]
        return KeyEvent(name, shift=(name == "BACKTAB"))
    if code in _SHIFTED_ARROWS:
        return KeyEvent(_SHIFTED_ARROWS[code], shift=True)
    if curses.KEY_F0 < code <= curses.KEY_F0 + 12:
        return KeyEvent(f"F{code - curses.KEY_F0}")
    if 1 <= code <= 26:
        return KeyEvent("CHAR", chr(code + 96), ctrl=True)
    if 32 <= code <= 126:
        char = chr(code)
        return KeyEvent("CHAR", char, shift=char.isupper())
    return None


def with_alt(key: KeyEvent) -> KeyEvent:
    return KeyEvent(key.name, key.char, ctrl=key.ctrl, alt=True, shift=key.shift)


_MOUSE_BUTTONS = (
    ("left", 1),
    ("middle", 2),
    ("right", 3),
)


def normalize_mouse(bstate: int, x: int, y: int) -> MouseEvent:
    """Decode a ``curses.getmouse()`` button state."""

    for button, index in _MOUSE_BUTTONS:
        for kind in ("PRESSED", "RELEASED", "CLICKED", "DOUBLE_CLICKED"):
            flag = getattr(curses, f"BUTTON{index}_{kind}", 0)
            if flag and bstate & flag:
                return MouseEvent(kind.lower(), button, x, y)
    if bstate & getattr(curses, "BUTTON4_PRESSED", 0):
        return MouseEvent("scroll", "up", x, y)
    if bstate & getattr(curses, "BUTTON5_PRESSED", 0):
        return MouseEvent("scroll", "down", x, y)
    return MouseEvent("moved", "none", x, y)


def parse_chord(spec: str) -> KeyEvent:
    """Parse chords such as ``"ctrl+d"``, ``"alt+?"`` or ``"f1"``."""

    raw = (spec or "").strip()
    if not raw:
        raise ValueError("key chord must not be empty")
    parts = raw.split("+")
    key_part = parts[-1] or "+"
    modifiers = {part.strip().lower() for part in parts[:-1] if part.strip()}
    unknown = modifiers - {"ctrl", "alt", "shift"}
    if unknown:
        raise ValueError(f"unknown modifier(s) in key chord {spec!r}: {', '.join(sorted(unknown))}")

    upper = key_part.upper().replace(" ", "_")
    if upper in KEY_NAMES:
        name, char = upper, ""
    elif upper.startswith("F") and upper[1:].isdigit():
        name, char = upper, ""
    elif len(key_part) == 1:
        name, char = "CHAR", key_part
    else:
        raise ValueError(f"unknown key in chord {spec!r}")

    return KeyEvent(
        name,
        char,
        ctrl="ctrl" in modifiers,
        alt="alt" in modifiers,
        shift="shift" in modifiers,
    )


def chord_matches(chord: KeyEvent, key: KeyEvent) -> bool:
    if chord.name != key.name or chord.ctrl != key.ctrl or chord.alt != key.alt:
        return False
    if chord.name == "CHAR":
        return chord.char.lower() == key.char.lower() if chord.ctrl else chord.char == key.char
    return chord.shift == key.shift


def key_label(key: KeyEvent) -> str:
    """Human label used by the help footer, e.g. ``Ctrl+D`` or ``Alt+?``."""

    prefix = ""
    if key.alt:
        prefix += "Alt+"
    if key.ctrl:
        prefix += "Ctrl+"
    if key.shift and key.name != "CHAR":
        prefix += "Shft+"
    if key.name == "CHAR":
        return prefix + key.char.upper()
    return prefix + KEY_NAMES.get(key.name, key.name)
