"""Background login and sync task, hosted by asyncio in a daemon thread."""

from __future__ import annotations

import asyncio
import enum
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional

from matrix_tui.matrix_client import BackendError, BackendSettings, Credentials, Session, login
from matrix_tui.menus import AuthenticationMenu, LoadingMenu
from matrix_tui.notifications import ClientError, NotificationBus, SwitchMenu

logger = logging.getLogger(__name__)

STAGE_DISCOVERY = "Fetching home server"
STAGE_SYNC = "Syncing data"
COMMAND_POLL_S = 0.1
MSG_UNEXPECTED = "Unexpected backend failure."


class BackendCommand(enum.Enum):
    SYNC_NOW = "sync-now"
    SHUTDOWN = "shutdown"


@dataclass
class SessionHandle:
    thread: threading.Thread
    commands: "queue.Queue[BackendCommand]"

    def send(self, command: BackendCommand) -> None:
        self.commands.put_nowait(command)

    def is_alive(self) -> bool:
        return self.thread.is_alive()


class LoginTask:
    """Logs in, reports progress as menu switches, then syncs until shut down."""

    def __init__(
        self,
        credentials: Credentials,
        bus: NotificationBus,
        commands: "queue.Queue[BackendCommand]",
        settings: BackendSettings,
        client_id: str,
    ) -> None:
        self.credentials = credentials
        self.bus = bus
        self.commands = commands
        self.settings = settings
        self.client_id = client_id
        self.session: Optional[Session] = None

    def _stage(self, label: str) -> None:
        logger.debug("login stage: %s", label)
        self.bus.send(SwitchMenu(LoadingMenu(label)))

    def _fail(self, message: str) -> None:
        self.bus.send(SwitchMenu(AuthenticationMenu.with_credentials(self.credentials)))
        self.bus.send(ClientError(message))

    async def _watch_commands(self, stop: asyncio.Event, wake: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                command = self.commands.get_nowait()
            except queue.Empty:
                await asyncio.sleep(COMMAND_POLL_S)
                continue
            logger.debug("backend command: %s", command.name)
            if command is BackendCommand.SHUTDOWN:
                stop.set()
            elif command is BackendCommand.SYNC_NOW:
                wake.set()

    async def run(self) -> None:
        self._stage(STAGE_DISCOVERY)
        try:
            self.session = await login(
                self.settings,
                self.credentials,
                client_id=self.client_id,
                on_stage=self._stage,
            )
        except BackendError as exc:
            logger.warning("login failed for %s: %s", self.credentials.user_id, exc)
            self._fail(str(exc))
            return

        logger.info("logged in as %s", self.session.user_id)
        self._stage(STAGE_SYNC)
        stop = asyncio.Event()
        wake = asyncio.Event()
        watcher = asyncio.ensure_future(self._watch_commands(stop, wake))
        try:
            await self.session.sync(self.settings, stop, wake)
        finally:
            watcher.cancel()
            await self.session.close()
            logger.info("session for %s closed", self.session.user_id)


def spawn_session(
    credentials: Credentials,
    bus: NotificationBus,
    settings: BackendSettings,
    client_id: str,
) -> SessionHandle:
    commands: "queue.Queue[BackendCommand]" = queue.Queue()
    task = LoginTask(credentials, bus, commands, settings, client_id)

    def _runner() -> None:
        try:
            asyncio.run(task.run())
        except Exception:
            logger.exception("backend task crashed")
            task._fail(MSG_UNEXPECTED)

    thread = threading.Thread(target=_runner, name="matrix-session", daemon=True)
    thread.start()
    return SessionHandle(thread=thread, commands=commands)
