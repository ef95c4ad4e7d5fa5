"""Color pairs and text attributes used by the widgets."""

from __future__ import annotations

import curses

PAIR_INVALID = 1
PAIR_VALID = 2

BOLD = curses.A_BOLD
DIM = curses.A_DIM


def init_default_colors(stdscr: "curses.window") -> bool:
    """Respect the terminal's configured theme and register our pairs.

    use_default_colors() lets -1 mean "terminal default" for fg/bg, so erases do
    not paint a black background on light terminal themes. Returns True once the
    pairs are usable.
    """

    if not curses.has_colors():
        return False
    try:
        curses.start_color()
    except curses.error:
        return False
    try:
        curses.use_default_colors()
    except curses.error:
        pass
    gray = 8 if curses.COLORS > 8 else curses.COLOR_WHITE
    try:
        curses.init_pair(PAIR_INVALID, curses.COLOR_RED, -1)
        curses.init_pair(PAIR_VALID, gray, -1)
    except curses.error:
        return False
    try:
        stdscr.bkgd(" ", curses.color_pair(0))
    except curses.error:
        pass
    return True
