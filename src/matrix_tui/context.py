"""State shared between the App and every component it drives."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from typing import Optional

from matrix_tui.matrix_client import BackendSettings, Credentials
from matrix_tui.notifications import Notification, NotificationBus
from matrix_tui.session import BackendCommand, SessionHandle, spawn_session

logger = logging.getLogger(__name__)


@dataclass
class ContextSettings:
    hide_help: bool = False
    quit_application: bool = False
    login_details: Optional[Credentials] = None

    def toggle_help(self) -> None:
        self.hide_help = not self.hide_help


class Context:
    """Read access to the settings plus the two outbound channels."""

    def __init__(
        self,
        bus: NotificationBus,
        backend_settings: Optional[BackendSettings] = None,
        client_id: str = "",
        settings: Optional[ContextSettings] = None,
    ) -> None:
        self.bus = bus
        self.backend_settings = backend_settings or BackendSettings()
        self.client_id = client_id
        self.settings = settings or ContextSettings()
        self.backend_commands: Optional["queue.Queue[BackendCommand]"] = None

    def send_notification(self, notification: Notification) -> None:
        self.bus.send(notification)

    def send_backend_command(self, command: BackendCommand) -> None:
        if self.backend_commands is None:
            logger.debug("no session; dropping backend command %s", command.name)
            return
        self.backend_commands.put_nowait(command)

    def start_session(self, credentials: Credentials) -> SessionHandle:
        handle = spawn_session(credentials, self.bus, self.backend_settings, self.client_id)
        self.backend_commands = handle.commands
        logger.info("session started for %s", credentials.user_id)
        return handle
