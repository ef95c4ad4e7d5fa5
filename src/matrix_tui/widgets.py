"""Focusable leaf widgets: buttons and single-line text inputs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Union

from matrix_tui.component import Widget
from matrix_tui.frame import CENTER, LEFT, Frame, align_text
from matrix_tui.geometry import HORIZONTAL, Rect, Spacing, shrink_area, split_rect
from matrix_tui.keys import KeyEvent
from matrix_tui.theme import BOLD, DIM, PAIR_INVALID, PAIR_VALID

if TYPE_CHECKING:
    from matrix_tui.context import Context
    from matrix_tui.notifications import Notification


CURSOR_GLYPH = "█"
EMPTY_CELL = "_"
SECRET_GLYPH = "*"
CURSOR_BLINK_TICKS = 6

Validation = Union[bool, Callable[[str], bool]]


class Button(Widget):
    """``[label]`` that emits ``notification`` when selected and Enter is pressed."""

    def __init__(
        self,
        label: str,
        notification: Optional["Notification"] = None,
        *,
        selected: bool = False,
        enabled: bool = True,
        alignment: str = CENTER,
        inner_padding: Spacing = Spacing(),
        outer_padding: Spacing = Spacing(),
    ) -> None:
        self.label = label
        self.notification = notification
        self.selected = selected
        self.enabled = enabled
        self.alignment = alignment
        self.inner_padding = inner_padding
        self.outer_padding = outer_padding

    def on_key(self, ctx: "Context", key: KeyEvent) -> None:
        if key.name != "ENTER" or not key.plain:
            return
        if self.selected and self.enabled and self.notification is not None:
            ctx.send_notification(self.notification)

    def text(self) -> str:
        pad = self.inner_padding
        return "[" + " " * pad.left + self.label + " " * pad.right + "]"

    def width(self) -> int:
        return len(self.text()) + self.outer_padding.horizontal

    def render(self, frame: Frame, area: Rect) -> None:
        area = shrink_area(area, self.outer_padding)
        if area.is_empty():
            return
        attr = 0
        if not self.enabled:
            attr = DIM
        elif self.selected:
            attr = BOLD
        row = Rect(area.x, area.y + self.inner_padding.top, area.width, 1)
        line = align_text(self.text(), row.width, self.alignment)
        start = len(line) - len(line.lstrip(" ")) if line.strip() else 0
        frame.put(row.x + start, row.y, line.strip(), attr, clip=area)

    def has_focus(self) -> bool:
        return self.selected

    def on_focus(self, arrive: bool) -> None:
        self.selected = arrive


class InputWidget(Widget):
    """Single-line editor with a blinking block cursor and horizontal scrolling."""

    def __init__(
        self,
        value: str = "",
        *,
        max_len: int = 0,
        secret: bool = False,
        validation: Validation = True,
        selected: bool = False,
    ) -> None:
        self.value = ""
        self.max_len = max(max_len, 0)
        self.secret = secret
        self.validation = validation
        self.selected = selected
        self.cursor_pos = 0
        self.scroll_pos = 0
        self.blink_ticks = 0
        self.set_value(value)

    def set_value(self, value: str) -> None:
        self.value = value[: self.max_len] if self.max_len else value
        self.cursor_pos = len(self.value)
        self.blink_ticks = 0

    def is_valid(self) -> bool:
        if callable(self.validation):
            return bool(self.validation(self.value))
        return bool(self.validation)

    def cursor_visible(self) -> bool:
        return self.selected and self.blink_ticks < CURSOR_BLINK_TICKS

    def _move(self, position: int) -> None:
        self.cursor_pos = max(0, min(position, len(self.value)))

    def on_key(self, ctx: "Context", key: KeyEvent) -> None:
        if key.is_char() and key.plain:
            if self.max_len and len(self.value) >= self.max_len:
                return
            self.value = self.value[: self.cursor_pos] + key.char + self.value[self.cursor_pos:]
            self._move(self.cursor_pos + 1)
        elif key.name == "BACKSPACE":
            if self.cursor_pos == 0:
                return
            self.value = self.value[: self.cursor_pos - 1] + self.value[self.cursor_pos:]
            self._move(self.cursor_pos - 1)
        elif key.name == "DELETE":
            self.value = self.value[: self.cursor_pos] + self.value[self.cursor_pos + 1:]
            self._move(self.cursor_pos)
        elif key.name == "LEFT":
            self._move(self.cursor_pos - 1)
        elif key.name == "RIGHT":
            self._move(self.cursor_pos + 1)
        elif key.name == "HOME":
            self._move(0)
        elif key.name == "END":
            self._move(len(self.value))
        else:
            return
        self.blink_ticks = 0

    def on_tick(self, ctx: "Context") -> None:
        self.blink_ticks = (self.blink_ticks + 1) % (CURSOR_BLINK_TICKS * 2)

    def _scroll_to_cursor(self, width: int) -> None:
        if self.cursor_pos < self.scroll_pos:
            self.scroll_pos = self.cursor_pos
        elif self.cursor_pos >= self.scroll_pos + width:
            self.scroll_pos = self.cursor_pos - width + 1
        # the cursor cell past the last character still needs room
        self.scroll_pos = max(0, min(self.scroll_pos, len(self.value) + 1 - width))

    def display_text(self, width: int) -> str:
        self._scroll_to_cursor(width)
        shown = SECRET_GLYPH * len(self.value) if self.secret else self.value
        visible = shown[self.scroll_pos : self.scroll_pos + width]
        return visible + EMPTY_CELL * (width - len(visible))

    def render(self, frame: Frame, area: Rect) -> None:
        if area.is_empty():
            return
        attr = frame.pair(PAIR_VALID if self.is_valid() else PAIR_INVALID)
        frame.put(area.x, area.y, self.display_text(area.width), attr, clip=area)
        if self.cursor_visible():
            frame.put(area.x + self.cursor_pos - self.scroll_pos, area.y, CURSOR_GLYPH, attr, clip=area)

    def has_focus(self) -> bool:
        return self.selected

    def on_focus(self, arrive: bool) -> None:
        self.selected = arrive
        self.blink_ticks = 0


class LabeledInput(Widget):
    """A label on the left and an :class:`InputWidget` on the right."""

    def __init__(self, label: str, input_widget: Optional[InputWidget] = None, split_percentage: int = 40) -> None:
        self.label = label
        self.input = input_widget or InputWidget()
        self.split_percentage = split_percentage

    @property
    def value(self) -> str:
        return self.input.value

    def on_key(self, ctx: "Context", key: KeyEvent) -> None:
        self.input.on_key(ctx, key)

    def on_tick(self, ctx: "Context") -> None:
        self.input.on_tick(ctx)

    def render(self, frame: Frame, area: Rect) -> None:
        label_area, input_area = split_rect(self.split_percentage, HORIZONTAL, area)
        attr = BOLD if self.has_focus() else 0
        frame.text(Rect(label_area.x, label_area.y, label_area.width, 1), self.label, attr, LEFT)
        self.input.render(frame, Rect(input_area.x, input_area.y, input_area.width, 1))

    def has_focus(self) -> bool:
        return self.input.has_focus()

    def on_focus(self, arrive: bool) -> None:
        self.input.on_focus(arrive)
