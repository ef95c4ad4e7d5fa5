"""Abstract contracts shared by menus, popups and widgets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, NamedTuple, Tuple

from matrix_tui.keys import KeyEvent, key_label

if TYPE_CHECKING:
    from matrix_tui.context import Context
    from matrix_tui.events import Event
    from matrix_tui.frame import Frame
    from matrix_tui.geometry import Rect


class HelpEntry(NamedTuple):
    """A key (modifiers included) and what it does, shown in the help footer."""

    key: KeyEvent
    description: str

    def label(self) -> str:
        return f"{key_label(self.key)} - {self.description}"


class Menu(ABC):
    """A screen-sized component: the base menu or the body of a popup."""

    @abstractmethod
    def on_event(self, event: "Event", ctx: "Context") -> None:
        ...

    @abstractmethod
    def draw(self, frame: "Frame", area: "Rect", ctx: "Context") -> None:
        ...

    def get_help_message(self, ctx: "Context") -> List[HelpEntry]:
        return []

    def get_minimum_size(self) -> Tuple[int, int]:
        return (0, 0)


class Widget(ABC):
    """A focusable leaf inside a menu."""

    @abstractmethod
    def on_key(self, ctx: "Context", key: KeyEvent) -> None:
        ...

    def on_tick(self, ctx: "Context") -> None:
        pass

    @abstractmethod
    def render(self, frame: "Frame", area: "Rect") -> None:
        ...

    @abstractmethod
    def has_focus(self) -> bool:
        ...

    @abstractmethod
    def on_focus(self, arrive: bool) -> None:
        """Called with True when focus lands on the widget, False when it leaves."""
