from __future__ import annotations

import curses
from typing import Iterable, List, Optional, Tuple


class FakeWindow:
    """In-memory stand-in for a curses window: a grid of cells plus attributes."""

    def __init__(self, width: int = 80, height: int = 24, keys: Iterable[int] = ()) -> None:
        self.width = width
        self.height = height
        self.keys: List[int] = list(keys)
        self.nodelay_calls: List[bool] = []
        self.refreshes = 0
        self.erase()

    def getmaxyx(self) -> Tuple[int, int]:
        return self.height, self.width

    def erase(self) -> None:
        self.cells = [[" "] * self.width for _ in range(self.height)]
        self.attrs = [[0] * self.width for _ in range(self.height)]

    def refresh(self) -> None:
        self.refreshes += 1

    def addnstr(self, y: int, x: int, text: str, n: int, attr: int = 0) -> None:
        if not (0 <= y < self.height and 0 <= x < self.width):
            raise curses.error("addnstr() returned ERR")
        for offset, char in enumerate(text[:n]):
            column = x + offset
            if column >= self.width:
                raise curses.error("addnstr() returned ERR")
            self.cells[y][column] = char
            self.attrs[y][column] = attr

    def nodelay(self, flag: bool) -> None:
        self.nodelay_calls.append(flag)

    def keypad(self, flag: bool) -> None:
        pass

    def getch(self) -> int:
        if not self.keys:
            return -1
        return self.keys.pop(0)

    def row(self, y: int) -> str:
        return "".join(self.cells[y])

    def text(self) -> str:
        return "\n".join(self.row(y) for y in range(self.height))

    def find(self, needle: str) -> Optional[Tuple[int, int]]:
        for y in range(self.height):
            x = self.row(y).find(needle)
            if x >= 0:
                return x, y
        return None

    def attr_at(self, x: int, y: int) -> int:
        return self.attrs[y][x]
