"""Modal popups layered above the base menu, plus the message and confirm menus."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple, Union

from matrix_tui.component import HelpEntry, Menu
from matrix_tui.frame import CENTER, LEFT, Frame
from matrix_tui.geometry import (
    HORIZONTAL,
    AbsoluteInner,
    Percentage,
    Rect,
    Spacing,
    centered_rect,
    shrink_area,
    split_fixed,
    split_rect,
    text_extent,
)
from matrix_tui.keys import KeyEvent
from matrix_tui.notifications import HidePopup
from matrix_tui.theme import BOLD
from matrix_tui.widgets import Button

if TYPE_CHECKING:
    from matrix_tui.context import Context
    from matrix_tui.events import Event
    from matrix_tui.notifications import Notification


CONFIRM_TITLE = "Confirm"
CONFIRM_TITLE_SPACING = Spacing(0, 0, 8, 8)
CONFIRM_MESSAGE_SPACING = Spacing(1, 1, 4, 4)


class PopupPosition(Enum):
    TOP_LEFT = "top-left"
    TOP = "top"
    TOP_RIGHT = "top-right"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM = "bottom"
    BOTTOM_RIGHT = "bottom-right"


@dataclass(frozen=True)
class Absolute:
    width: int
    height: int
    position: PopupPosition = PopupPosition.CENTER


@dataclass(frozen=True)
class Dynamic:
    """Placement computed from the available area."""

    func: Callable[[Rect], Rect]


PopupArea = Union[Absolute, Dynamic]


def _default_area(area: Rect) -> Rect:
    return centered_rect(Percentage(60, 40), area)


def _anchor(start: int, total: int, size: int, where: str) -> int:
    if where == "start":
        return start
    if where == "end":
        return start + total - size
    return start + (total - size) // 2


_ANCHORS = {
    PopupPosition.TOP_LEFT: ("start", "start"),
    PopupPosition.TOP: ("middle", "start"),
    PopupPosition.TOP_RIGHT: ("end", "start"),
    PopupPosition.LEFT: ("start", "middle"),
    PopupPosition.CENTER: ("middle", "middle"),
    PopupPosition.RIGHT: ("end", "middle"),
    PopupPosition.BOTTOM_LEFT: ("start", "end"),
    PopupPosition.BOTTOM: ("middle", "end"),
    PopupPosition.BOTTOM_RIGHT: ("end", "end"),
}


def place_absolute(area: Absolute, frame_size: Rect) -> Rect:
    """Anchor a fixed-size popup inside ``frame_size``, leaving a cell for the border."""

    bounds = shrink_area(frame_size, Spacing.uniform(1))
    if area.position is PopupPosition.CENTER:
        return centered_rect(AbsoluteInner(area.width, area.height), bounds)
    width = max(0, min(area.width, bounds.width))
    height = max(0, min(area.height, bounds.height))
    horizontal, vertical = _ANCHORS[area.position]
    return Rect(
        _anchor(bounds.x, bounds.width, width, horizontal),
        _anchor(bounds.y, bounds.height, height, vertical),
        width,
        height,
    )


class Popup(Menu):
    """Wraps a menu together with its placement policy."""

    def __init__(self, menu: Menu, area: Optional[PopupArea] = None) -> None:
        self.menu = menu
        self.area = area if area is not None else Dynamic(_default_area)

    def get_area(self, frame_size: Rect) -> Rect:
        if isinstance(self.area, Dynamic):
            return self.area.func(frame_size)
        return place_absolute(self.area, frame_size)

    def on_event(self, event: "Event", ctx: "Context") -> None:
        self.menu.on_event(event, ctx)

    def draw(self, frame: Frame, area: Rect, ctx: "Context") -> None:
        self.menu.draw(frame, area, ctx)

    def get_help_message(self, ctx: "Context") -> List[HelpEntry]:
        return self.menu.get_help_message(ctx)

    def get_minimum_size(self) -> Tuple[int, int]:
        return self.menu.get_minimum_size()

    def __repr__(self) -> str:
        return f"Popup({type(self.menu).__name__}, {self.area!r})"


def _draw_title(frame: Frame, area: Rect, title: str, padding: Spacing, align: str) -> None:
    frame.paragraph(shrink_area(area, padding), title, BOLD, align)


class MessageMenu(Menu):
    def __init__(
        self,
        message: str,
        *,
        message_align: str = LEFT,
        message_padding: Spacing = Spacing(1, 1, 4, 4),
        title: Optional[str] = None,
        title_align: str = CENTER,
        title_padding: Spacing = Spacing(),
    ) -> None:
        self.message = message
        self.message_align = message_align
        self.message_padding = message_padding
        self.title = title
        self.title_align = title_align
        self.title_padding = title_padding

    def on_event(self, event: "Event", ctx: "Context") -> None:
        if isinstance(event, KeyEvent) and event.name in ("ESC", "ENTER") and event.plain:
            ctx.send_notification(HidePopup())

    def draw(self, frame: Frame, area: Rect, ctx: "Context") -> None:
        if self.title is not None:
            _, title_height = text_extent(self.title, self.title_padding)
            title_area, area = split_fixed(area, [title_height, 0])
            _draw_title(frame, title_area, self.title, self.title_padding, self.title_align)
        frame.paragraph(shrink_area(area, self.message_padding), self.message, 0, self.message_align)

    def get_help_message(self, ctx: "Context") -> List[HelpEntry]:
        return [HelpEntry(KeyEvent("ESC"), "Close popup")]


@dataclass
class PopupMessageBuilder:
    """Fluent builder for message popups sized to fit their text."""

    message: str
    title: Optional[str] = None
    title_align: str = CENTER
    message_align: str = LEFT
    position: PopupPosition = PopupPosition.CENTER
    message_padding: Spacing = field(default_factory=lambda: Spacing(1, 1, 4, 4))
    title_padding: Spacing = field(default_factory=Spacing)

    def set_title(self, title: Optional[str]) -> "PopupMessageBuilder":
        self.title = title
        return self

    def set_title_align(self, align: str) -> "PopupMessageBuilder":
        self.title_align = align
        return self

    def set_message(self, message: str) -> "PopupMessageBuilder":
        self.message = message
        return self

    def set_message_align(self, align: str) -> "PopupMessageBuilder":
        self.message_align = align
        return self

    def set_message_padding(self, top: int, bottom: int, left: int, right: int) -> "PopupMessageBuilder":
        self.message_padding = Spacing(top, bottom, left, right)
        return self

    def set_title_padding(self, top: int, bottom: int, left: int, right: int) -> "PopupMessageBuilder":
        self.title_padding = Spacing(top, bottom, left, right)
        return self

    def set_position(self, position: PopupPosition) -> "PopupMessageBuilder":
        self.position = position
        return self

    def to_popup(self) -> Popup:
        message_width, message_height = text_extent(self.message, self.message_padding)
        title_width, title_height = (0, 0)
        if self.title is not None:
            title_width, title_height = text_extent(self.title, self.title_padding)
        menu = MessageMenu(
            self.message,
            message_align=self.message_align,
            message_padding=self.message_padding,
            title=self.title,
            title_align=self.title_align,
            title_padding=self.title_padding,
        )
        area = Absolute(max(title_width, message_width), title_height + message_height, self.position)
        return Popup(menu, area)


class ConfirmMenu(Menu):
    """Confirm/Cancel question; Cancel holds the initial focus."""

    def __init__(self, message: str, on_confirm: "Notification") -> None:
        self.message = message
        self.confirm_button = Button(CONFIRM_TITLE, on_confirm)
        self.cancel_button = Button("Cancel", selected=True)
        self.focus_index = 0

    @property
    def buttons(self) -> List[Button]:
        return [self.cancel_button, self.confirm_button]

    def _focus(self, index: int) -> None:
        self.focus_index = index % len(self.buttons)
        for position, button in enumerate(self.buttons):
            button.on_focus(position == self.focus_index)

    def on_event(self, event: "Event", ctx: "Context") -> None:
        if not isinstance(event, KeyEvent) or not event.plain:
            return
        if event.name == "LEFT":
            self._focus(self.focus_index - 1)
        elif event.name == "RIGHT":
            self._focus(self.focus_index + 1)
        elif event.name == "ENTER":
            for button in self.buttons:
                button.on_key(ctx, event)
            ctx.send_notification(HidePopup())
        elif event.name == "ESC":
            ctx.send_notification(HidePopup())

    def draw(self, frame: Frame, area: Rect, ctx: "Context") -> None:
        _, title_height = text_extent(CONFIRM_TITLE, CONFIRM_TITLE_SPACING)
        title_area, message_area, button_row = split_fixed(
            area, [title_height, max(area.height - title_height - 1, 0), 1]
        )
        _draw_title(frame, title_area, CONFIRM_TITLE, CONFIRM_TITLE_SPACING, CENTER)
        frame.paragraph(shrink_area(message_area, CONFIRM_MESSAGE_SPACING), self.message, 0, CENTER)
        left, right = split_rect(50, HORIZONTAL, button_row)
        self.confirm_button.render(frame, left)
        self.cancel_button.render(frame, right)

    def get_help_message(self, ctx: "Context") -> List[HelpEntry]:
        return [
            HelpEntry(KeyEvent("LEFT"), "Select left"),
            HelpEntry(KeyEvent("RIGHT"), "Select right"),
            HelpEntry(KeyEvent("ENTER"), "Confirm selection"),
            HelpEntry(KeyEvent("ESC"), "Cancel"),
        ]


def new_confirm_popup(message: str, on_confirm: "Notification") -> Popup:
    """Centered Confirm/Cancel popup; Confirm emits ``on_confirm``."""

    title_width, title_height = text_extent(CONFIRM_TITLE, CONFIRM_TITLE_SPACING)
    message_width, message_height = text_extent(message, CONFIRM_MESSAGE_SPACING)
    # one extra row for the buttons
    area = Absolute(max(title_width, message_width), title_height + message_height + 1, PopupPosition.CENTER)
    return Popup(ConfirmMenu(message, on_confirm), area)
