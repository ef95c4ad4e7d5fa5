"""Base menus: the login form and the loading screen shown while the backend works."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, List, Optional, Tuple

from matrix_tui.component import HelpEntry, Menu, Widget
from matrix_tui.frame import CENTER, Frame
from matrix_tui.geometry import (
    HORIZONTAL,
    AbsoluteInner,
    Rect,
    centered_line,
    centered_rect,
    split_fixed,
    split_rect,
)
from matrix_tui.keys import KeyEvent, Tick
from matrix_tui.matrix_client import Credentials
from matrix_tui.notifications import SetLogin, ShowPopup
from matrix_tui.popups import PopupMessageBuilder
from matrix_tui.widgets import Button, InputWidget, LabeledInput

if TYPE_CHECKING:
    from matrix_tui.context import Context
    from matrix_tui.events import Event

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(
    r"^@?(?P<username>[a-zA-Z0-9_\-.=/]{2,16}):(?P<homeserver>([a-zA-Z\d-]+\.)+[a-z]+)$"
)

LOGIN_TITLE = "Login to Matrix"
LOGIN_BOX = (40, 5)
LOGIN_ROW_WIDTH = 36
HELP_OFFSET_ROWS = 3

MSG_BAD_USERNAME = "Username should match '@user:domain'."
MSG_NO_PASSWORD = "No password specified."

BAR_LENGTH = 20
BAR_TICK_SPEED = 1
BAR_GLYPH = "█"


class AuthenticationMenu(Menu):
    """Username, password and a Login button; Enter on the button submits."""

    def __init__(self) -> None:
        self.username = LabeledInput(
            "Username",
            InputWidget(validation=lambda value: USERNAME_RE.match(value) is not None, selected=True),
        )
        self.password = LabeledInput(
            "Password",
            InputWidget(secret=True, validation=lambda value: bool(value)),
        )
        self.submit = Button("Login")
        self.focus_index = 0

    @classmethod
    def with_credentials(cls, credentials: Credentials) -> "AuthenticationMenu":
        menu = cls()
        menu.username.input.set_value(f"@{credentials.username}:{credentials.homeserver}")
        menu.password.input.set_value(credentials.password)
        return menu

    @property
    def widgets(self) -> List[Widget]:
        return [self.username, self.password, self.submit]

    def _focus(self, index: int) -> None:
        self.focus_index = index % len(self.widgets)
        for position, widget in enumerate(self.widgets):
            widget.on_focus(position == self.focus_index)

    def validate(self) -> Optional[str]:
        if not self.username.input.is_valid():
            return MSG_BAD_USERNAME
        if not self.password.input.is_valid():
            return MSG_NO_PASSWORD
        return None

    def credentials(self) -> Credentials:
        match = USERNAME_RE.match(self.username.value)
        if match is None:
            raise ValueError(f"username {self.username.value!r} is not of the form @user:domain")
        return Credentials(match.group("username"), match.group("homeserver"), self.password.value)

    def _submit(self, ctx: "Context") -> None:
        error = self.validate()
        if error is not None:
            popup = (
                PopupMessageBuilder(error)
                .set_title("Invalid Credentials")
                .set_message_align(CENTER)
                .to_popup()
            )
            ctx.send_notification(ShowPopup(popup))
            return
        credentials = self.credentials()
        logger.info("submitting login for %s", credentials.user_id)
        ctx.send_notification(SetLogin(credentials))

    def on_event(self, event: "Event", ctx: "Context") -> None:
        if isinstance(event, Tick):
            for widget in self.widgets:
                widget.on_tick(ctx)
        elif isinstance(event, KeyEvent):
            self.handle_key(event, ctx)

    def handle_key(self, key: KeyEvent, ctx: "Context") -> None:
        if key.name in ("UP", "BACKTAB"):
            self._focus(self.focus_index - 1)
        elif key.name in ("DOWN", "TAB"):
            self._focus(self.focus_index + 1)
        elif key.name == "ENTER" and key.plain:
            if self.widgets[self.focus_index] is self.submit:
                self._submit(ctx)
            else:
                self._focus(self.focus_index + 1)
        else:
            self.widgets[self.focus_index].on_key(ctx, key)

    def draw(self, frame: Frame, area: Rect, ctx: "Context") -> None:
        # keep the form still when the help footer is toggled
        if not ctx.settings.hide_help:
            _, area = split_fixed(area, [HELP_OFFSET_ROWS, 0])
        box = centered_rect(AbsoluteInner(*LOGIN_BOX), area)
        frame.block(box, LOGIN_TITLE)
        self.username.render(frame, centered_line(LOGIN_ROW_WIDTH, 1, 1, box))
        self.password.render(frame, centered_line(LOGIN_ROW_WIDTH, 1, 2, box))
        _, button_area = split_rect(40, HORIZONTAL, centered_line(LOGIN_ROW_WIDTH, 1, 3, box))
        self.submit.render(frame, button_area)

    def get_help_message(self, ctx: "Context") -> List[HelpEntry]:
        return [
            HelpEntry(KeyEvent("UP"), "Select up"),
            HelpEntry(KeyEvent("DOWN"), "Select down"),
            HelpEntry(KeyEvent("ENTER"), "Submit login"),
        ]

    def get_minimum_size(self) -> Tuple[int, int]:
        return (LOGIN_BOX[0] + 2, LOGIN_BOX[1] + 2)


class LoadingMenu(Menu):
    """A label above a bar that fills and then empties, one cell per step."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tick = 0
        self.progress = 0

    def __repr__(self) -> str:
        return f"LoadingMenu({self.text!r})"

    def on_event(self, event: "Event", ctx: "Context") -> None:
        if isinstance(event, Tick):
            self.on_tick()

    def on_tick(self) -> None:
        self.tick = (self.tick + 1) % BAR_TICK_SPEED
        if self.tick == 0:
            self.progress = (self.progress + 1) % (BAR_LENGTH * 2)

    def bar(self) -> str:
        if self.progress <= BAR_LENGTH:
            return BAR_GLYPH * self.progress + " " * (BAR_LENGTH - self.progress)
        gap = self.progress - BAR_LENGTH
        return " " * gap + BAR_GLYPH * (BAR_LENGTH - gap)

    def _lines(self) -> List[str]:
        return self.text.split("\n")

    def draw(self, frame: Frame, area: Rect, ctx: "Context") -> None:
        lines = self._lines()
        width = max(BAR_LENGTH + 2, max(len(line) for line in lines))
        box = centered_rect(AbsoluteInner(width, len(lines) + 2), area)
        text_area, _, bar_area = split_fixed(box, [len(lines), 1, 1])
        frame.lines(text_area, lines, align=CENTER)
        frame.text(bar_area, self.bar(), align=CENTER)

    def get_minimum_size(self) -> Tuple[int, int]:
        lines = self._lines()
        return (max(BAR_LENGTH + 2, max(len(line) for line in lines)), len(lines))
