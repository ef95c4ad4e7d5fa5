"""Clipped drawing primitives over a curses window."""

from __future__ import annotations

import curses
from typing import Iterable

from matrix_tui.geometry import Rect, wrap_paragraphs
from matrix_tui.theme import BOLD

LEFT = "left"
CENTER = "center"
RIGHT = "right"

PLAIN_BORDER = ("┌", "┐", "└", "┘", "─", "│")
ROUNDED_BORDER = ("╭", "╮", "╰", "╯", "─", "│")


def align_text(text: str, width: int, align: str = LEFT) -> str:
    """Pad ``text`` to ``width``; center puts the odd cell on the left."""

    text = text[: max(width, 0)]
    gap = max(width - len(text), 0)
    if align == RIGHT:
        return " " * gap + text
    if align == CENTER:
        left = (gap + 1) // 2
        return " " * left + text + " " * (gap - left)
    return text + " " * gap


class Frame:
    """One render pass over ``window``. Every write is clipped to the window."""

    def __init__(self, window: "curses.window", colors: bool = False) -> None:
        self.window = window
        self.colors = colors

    def size(self) -> Rect:
        height, width = self.window.getmaxyx()
        return Rect(0, 0, width, height)

    def pair(self, pair_id: int) -> int:
        """Attribute for ``pair_id``; plain text when colors are unavailable."""

        if not self.colors:
            return 0
        return curses.color_pair(pair_id)

    def put(self, x: int, y: int, text: str, attr: int = 0, clip: Rect | None = None) -> None:
        bounds = self.size()
        if clip is not None:
            right = min(bounds.right, clip.right)
            bottom = min(bounds.bottom, clip.bottom)
            left = max(bounds.x, clip.x)
            top = max(bounds.y, clip.y)
        else:
            left, top, right, bottom = bounds.x, bounds.y, bounds.right, bounds.bottom
        if not text or y < top or y >= bottom or x >= right:
            return
        if x < left:
            text = text[left - x:]
            x = left
        text = text[: right - x]
        if not text:
            return
        try:
            self.window.addnstr(y, x, text, len(text), attr)
        except curses.error:
            # Writing the bottom-right cell moves the cursor off-screen.
            pass

    def text(self, area: Rect, line: str, attr: int = 0, align: str = LEFT) -> None:
        if area.is_empty():
            return
        self.put(area.x, area.y, align_text(line, area.width, align), attr, clip=area)

    def lines(self, area: Rect, lines: Iterable[str], attr: int = 0, align: str = LEFT) -> None:
        for offset, line in enumerate(lines):
            if offset >= area.height:
                break
            self.text(Rect(area.x, area.y + offset, area.width, 1), line, attr, align)

    def paragraph(self, area: Rect, text: str, attr: int = 0, align: str = LEFT, wrap: bool = True) -> None:
        if area.is_empty():
            return
        body = wrap_paragraphs(text, area.width) if wrap else text.split("\n")
        self.lines(area, body, attr, align)

    def clear(self, area: Rect) -> None:
        for row in range(area.height):
            self.put(area.x, area.y + row, " " * area.width, clip=area)

    def block(
        self,
        area: Rect,
        title: str | None = None,
        rounded: bool = False,
        title_align: str = LEFT,
        attr: int = 0,
    ) -> Rect:
        """Draw a border around ``area`` and return the inner rectangle."""

        if area.width < 2 or area.height < 2:
            return Rect(area.x, area.y, 0, 0)
        tl, tr, bl, br, horizontal, vertical = ROUNDED_BORDER if rounded else PLAIN_BORDER
        inner_width = area.width - 2
        self.put(area.x, area.y, tl + horizontal * inner_width + tr, attr, clip=area)
        for row in range(1, area.height - 1):
            self.put(area.x, area.y + row, vertical, attr, clip=area)
            self.put(area.right - 1, area.y + row, vertical, attr, clip=area)
        self.put(area.x, area.bottom - 1, bl + horizontal * inner_width + br, attr, clip=area)
        if title:
            label = title[:inner_width]
            padded = align_text(label, inner_width, title_align)
            offset = len(padded) - len(padded.lstrip(" "))
            self.put(area.x + 1 + offset, area.y, label, attr | BOLD, clip=area)
        return Rect(area.x + 1, area.y + 1, inner_width, area.height - 2)
