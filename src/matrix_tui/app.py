"""The App state machine and the curses render/dispatch loop."""

from __future__ import annotations

import curses
import logging
import queue
import threading
import time
from typing import List, Optional, Tuple

from matrix_tui import APP_NAME
from matrix_tui.component import HelpEntry, Menu
from matrix_tui.config import AppConfig, build_client_id
from matrix_tui.context import Context, ContextSettings
from matrix_tui.events import CursesInput, Event, poll_event, spawn_event_listener
from matrix_tui.frame import CENTER, Frame
from matrix_tui.geometry import Rect, Spacing, expand_area, split_fixed, wrap_paragraphs, wrap_text
from matrix_tui.keys import KeyEvent, MouseEvent, Tick, TICK, chord_matches, parse_chord
from matrix_tui.menus import AuthenticationMenu
from matrix_tui.notifications import (
    ClientError,
    HidePopup,
    Notification,
    NotificationBus,
    QuitRequest,
    SetLogin,
    ShowPopup,
    SwitchMenu,
)
from matrix_tui.popups import Popup, PopupMessageBuilder, new_confirm_popup
from matrix_tui.session import BackendCommand, SessionHandle
from matrix_tui.theme import init_default_colors

logger = logging.getLogger(__name__)

HELP_SEPARATOR = ", "
HELP_TITLE = "Help"
RESIZE_TITLE = "Error"
RESIZE_MESSAGE = "Please resize your screen so there is more space to draw!"
QUIT_MESSAGE = "Are you sure you want to exit?"
ERROR_TITLE = "Error"


class App:
    """One base menu, at most one popup, and the notifications that change them."""

    def __init__(self, context: Context, config: Optional[AppConfig] = None) -> None:
        self.context = context
        self.config = config or AppConfig()
        self.menu: Menu = AuthenticationMenu()
        self.popup: Optional[Popup] = None
        self.session: Optional[SessionHandle] = None
        self.help_chord = parse_chord(self.config.help_chord)
        self.quit_chord = parse_chord(self.config.quit_chord)

    @property
    def settings(self) -> ContextSettings:
        return self.context.settings

    def active_layer(self) -> Menu:
        return self.popup if self.popup is not None else self.menu

    def help_entries(self) -> List[HelpEntry]:
        entries = [
            HelpEntry(self.help_chord, "Toggle help menu"),
            HelpEntry(self.quit_chord, f"Exit {APP_NAME}"),
        ]
        return entries + self.active_layer().get_help_message(self.context)

    def help_lines(self, width: int) -> List[str]:
        text = HELP_SEPARATOR.join(entry.label() for entry in self.help_entries())
        # two columns go to the footer border
        return wrap_text(text, HELP_SEPARATOR, max(width - 2, 1))

    def layout(self, size: Rect) -> Tuple[Rect, Optional[Rect], List[str]]:
        """Split the screen into the menu region and, when help is shown, the footer."""

        if self.settings.hide_help:
            return size, None, []
        lines = self.help_lines(size.width)
        footer_height = min(len(lines) + 2, size.height)
        body, footer = split_fixed(size, [size.height - footer_height, 0])
        return body, footer, lines

    def draw(self, frame: Frame) -> None:
        area, footer, lines = self.layout(frame.size())
        if footer is not None:
            inner = frame.block(footer, HELP_TITLE)
            frame.lines(inner, lines, align=CENTER)

        min_width, min_height = self.menu.get_minimum_size()
        if min_width > area.width or min_height > area.height:
            inner = frame.block(area, RESIZE_TITLE)
            frame.lines(inner, wrap_paragraphs(RESIZE_MESSAGE, max(inner.width, 1)))
        else:
            self.menu.draw(frame, area, self.context)

        if self.popup is not None:
            popup_area = self.popup.get_area(area)
            border = expand_area(popup_area, Spacing.uniform(1))
            frame.clear(border)
            frame.block(border, rounded=True)
            self.popup.draw(frame, popup_area, self.context)

    def on_key(self, key: KeyEvent) -> None:
        if chord_matches(self.help_chord, key):
            self.settings.toggle_help()
            return
        if chord_matches(self.quit_chord, key):
            self.context.send_notification(QuitRequest(confirm=True))
            return
        self.active_layer().on_event(key, self.context)

    def on_mouse(self, event: MouseEvent) -> None:
        self.active_layer().on_event(event, self.context)

    def on_tick(self) -> None:
        if self.popup is not None:
            self.popup.on_event(TICK, self.context)
        self.menu.on_event(TICK, self.context)

    def handle_event(self, event: Event) -> None:
        if isinstance(event, KeyEvent):
            self.on_key(event)
        elif isinstance(event, MouseEvent):
            self.on_mouse(event)
        elif isinstance(event, Tick):
            self.on_tick()

    def on_notification(self, notification: Notification) -> None:
        if isinstance(notification, QuitRequest):
            if notification.confirm:
                self.popup = new_confirm_popup(QUIT_MESSAGE, QuitRequest(confirm=False))
            else:
                logger.info("quit requested")
                self.settings.quit_application = True
        elif isinstance(notification, SetLogin):
            credentials = notification.credentials
            self.settings.login_details = credentials
            if self.session is not None:
                self.context.send_backend_command(BackendCommand.SHUTDOWN)
            self.session = self.context.start_session(credentials)
        elif isinstance(notification, ShowPopup):
            logger.debug("showing %r", notification.popup)
            self.popup = notification.popup
        elif isinstance(notification, HidePopup):
            self.popup = None
        elif isinstance(notification, SwitchMenu):
            logger.debug("switching menu to %r", notification.menu)
            self.menu = notification.menu
        elif isinstance(notification, ClientError):
            logger.warning("client error: %s", notification.message)
            popup = PopupMessageBuilder(notification.message).set_title(ERROR_TITLE).to_popup()
            self.context.send_notification(ShowPopup(popup))
        else:
            logger.warning("unhandled notification %r", notification)

    def step(self, events: "queue.Queue[Event]") -> bool:
        """Handle at most one event and one notification; False once quitting."""

        event = poll_event(events)
        if event is not None:
            self.handle_event(event)
        notification = self.context.bus.poll()
        if notification is not None:
            self.on_notification(notification)
        return not self.settings.quit_application

    def shutdown(self) -> None:
        if self.session is not None:
            self.context.send_backend_command(BackendCommand.SHUTDOWN)


def run(stdscr: "curses.window", config: AppConfig) -> None:
    curses.curs_set(0)
    colors = init_default_colors(stdscr)
    stdscr.nodelay(False)
    stdscr.keypad(True)
    curses.mousemask(curses.ALL_MOUSE_EVENTS)

    terminal_lock = threading.Lock()
    context = Context(NotificationBus(), config.backend_settings(), build_client_id())
    app = App(context, config)
    _, events = spawn_event_listener(CursesInput(stdscr, terminal_lock), config.tick_interval_ms / 1000)
    frame = Frame(stdscr, colors=colors)
    pause_s = config.frame_interval_ms / 1000
    logger.info("render loop started")

    try:
        running = True
        while running:
            with terminal_lock:
                stdscr.erase()
                app.draw(frame)
                stdscr.refresh()
            running = app.step(events)
            time.sleep(pause_s)
    finally:
        app.shutdown()
        logger.info("render loop stopped")
