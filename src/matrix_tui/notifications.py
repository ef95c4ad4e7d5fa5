"""Cross-component commands and the bus that carries them to the App."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from matrix_tui.component import Menu
    from matrix_tui.matrix_client import Credentials
    from matrix_tui.popups import Popup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuitRequest:
    confirm: bool


@dataclass(frozen=True)
class SetLogin:
    credentials: "Credentials"


@dataclass(frozen=True)
class ShowPopup:
    popup: "Popup"


@dataclass(frozen=True)
class HidePopup:
    pass


@dataclass(frozen=True)
class SwitchMenu:
    menu: "Menu"


@dataclass(frozen=True)
class ClientError:
    message: str


Notification = Union[QuitRequest, SetLogin, ShowPopup, HidePopup, SwitchMenu, ClientError]


class NotificationBus:
    """Unbounded multi-producer queue drained one item per frame by the App.

    Nothing bounds the queue: a runaway producer grows memory without limit.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Notification]" = queue.Queue()

    def send(self, notification: Notification) -> None:
        try:
            self._queue.put_nowait(notification)
        except queue.Full:  # pragma: no cover - unbounded queue
            logger.warning("notification dropped: %r", notification)

    def poll(self) -> Optional[Notification]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()
