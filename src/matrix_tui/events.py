"""Background input and tick threads feeding a single event queue."""

from __future__ import annotations

import curses
import logging
import queue
import select
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

from matrix_tui.keys import (
    RESIZE,
    TICK,
    KeyEvent,
    MouseEvent,
    Resize,
    Tick,
    normalize_key,
    normalize_mouse,
    with_alt,
)

logger = logging.getLogger(__name__)

Event = Union[KeyEvent, MouseEvent, Tick]


class InputBackend(Protocol):
    def poll(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for input; True when a read will not block."""

    def read(self) -> Union[KeyEvent, MouseEvent, Resize, None]:
        """Return the next decoded input, or None when it could not be decoded."""


@dataclass
class EventHandle:
    input_thread: threading.Thread
    tick_thread: threading.Thread
    stop_event: threading.Event = field(default_factory=threading.Event)

    def stop(self) -> None:
        """Ask both threads to finish; the render loop itself never calls this."""

        self.stop_event.set()


def _input_loop(
    backend: InputBackend,
    events: "queue.Queue[Event]",
    tick_interval: float,
    stop_event: threading.Event,
) -> None:
    last_tick = time.monotonic()
    while not stop_event.is_set():
        # poll only for what is left of the current tick interval
        timeout = max(tick_interval - (time.monotonic() - last_tick), 0.0)
        try:
            ready = backend.poll(timeout)
        except (OSError, ValueError) as exc:
            logger.debug("input poll failed: %s", exc)
            ready = False
            stop_event.wait(timeout)
        if ready:
            item = backend.read()
            if isinstance(item, (KeyEvent, MouseEvent)):
                events.put(item)
            elif item is not None and not isinstance(item, Resize):
                logger.debug("dropping unexpected input item %r", item)
        if time.monotonic() - last_tick >= tick_interval:
            last_tick = time.monotonic()


def _tick_loop(events: "queue.Queue[Event]", tick_interval: float, stop_event: threading.Event) -> None:
    while not stop_event.is_set():
        events.put(TICK)
        if stop_event.wait(tick_interval):
            break


def spawn_event_listener(
    backend: InputBackend,
    tick_interval: float,
) -> tuple[EventHandle, "queue.Queue[Event]"]:
    """Start the input and tick threads; both share one unbounded queue."""

    events: "queue.Queue[Event]" = queue.Queue()
    stop_event = threading.Event()
    input_thread = threading.Thread(
        target=_input_loop,
        args=(backend, events, tick_interval, stop_event),
        name="tui-input",
        daemon=True,
    )
    tick_thread = threading.Thread(
        target=_tick_loop,
        args=(events, tick_interval, stop_event),
        name="tui-tick",
        daemon=True,
    )
    input_thread.start()
    tick_thread.start()
    return EventHandle(input_thread=input_thread, tick_thread=tick_thread, stop_event=stop_event), events


def poll_event(events: "queue.Queue[Event]") -> Optional[Event]:
    try:
        return events.get_nowait()
    except queue.Empty:
        return None


_MOUSE = "MOUSE"


class CursesInput:
    """Reads keys from a curses window without racing the render thread.

    Readiness is detected with ``select()`` on the terminal descriptor, so the
    window is only touched while holding ``lock``, which the draw path also holds.
    Everything immediately available is drained in one go so escape sequences and
    pastes are decoded together.
    """

    def __init__(self, window: "curses.window", lock: threading.Lock, fd: int | None = None, limit: int = 8192) -> None:
        self._window = window
        self._lock = lock
        self._fd = sys.stdin.fileno() if fd is None else fd
        self._limit = limit
        self._pending: deque[object] = deque()

    def poll(self, timeout: float) -> bool:
        if self._pending:
            return True
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if ready:
            self._drain()
        return bool(self._pending)

    def _drain(self) -> None:
        with self._lock:
            self._window.nodelay(True)
            try:
                while len(self._pending) < self._limit:
                    code = self._window.getch()
                    if code == -1:
                        break
                    if code == curses.KEY_MOUSE:
                        try:
                            self._pending.append((_MOUSE, curses.getmouse()))
                        except curses.error:
                            continue
                    else:
                        self._pending.append(code)
            finally:
                self._window.nodelay(False)

    def read(self) -> Union[KeyEvent, MouseEvent, Resize, None]:
        if not self._pending:
            return None
        item = self._pending.popleft()
        if isinstance(item, tuple) and item[0] == _MOUSE:
            _id, x, y, _z, bstate = item[1]
            return normalize_mouse(bstate, x, y)
        code = int(item)
        if code == curses.KEY_RESIZE:
            return RESIZE
        if code == 27 and self._pending and isinstance(self._pending[0], int):
            follower = normalize_key(self._pending[0])
            if follower is not None and follower.name == "CHAR" and not follower.ctrl:
                self._pending.popleft()
                return with_alt(follower)
        key = normalize_key(code)
        if key is None:
            logger.debug("ignoring unknown keycode %s", code)
        return key
