import asyncio
import queue
import unittest
from unittest import mock

from helpers.homeserver import FakeHomeserver

from matrix_tui.matrix_client import MSG_LOGIN, MSG_PARSE, MSG_RESPONSE, BackendSettings, Credentials
from matrix_tui.menus import AuthenticationMenu, LoadingMenu
from matrix_tui.notifications import ClientError, NotificationBus, SwitchMenu
from matrix_tui.session import MSG_UNEXPECTED, BackendCommand, LoginTask, spawn_session

SETTINGS = BackendSettings(discovery_scheme="http", request_timeout_s=5.0, sync_timeout_ms=0)


def drain(bus):
    items = []
    while True:
        item = bus.poll()
        if item is None:
            return items
        items.append(item)


def loading_labels(notifications):
    return [
        item.menu.text
        for item in notifications
        if isinstance(item, SwitchMenu) and isinstance(item.menu, LoadingMenu)
    ]


class LoginTaskTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.homeserver = await FakeHomeserver().start()
        self.credentials = Credentials("al", self.homeserver.homeserver, "pw")
        self.bus = NotificationBus()
        self.commands = queue.Queue()

    async def asyncTearDown(self):
        await self.homeserver.close()

    def _task(self):
        return LoginTask(self.credentials, self.bus, self.commands, SETTINGS, "matrix-tui test")

    async def test_reports_stages_then_syncs_until_shutdown(self):
        task = self._task()
        runner = asyncio.ensure_future(task.run())
        await asyncio.wait_for(self.homeserver.synced.wait(), 5)
        self.commands.put(BackendCommand.SHUTDOWN)
        await asyncio.wait_for(runner, 5)

        self.assertEqual(
            loading_labels(drain(self.bus)),
            ["Fetching home server", "Logging in", "Syncing data"],
        )
        self.assertTrue(task.session.http.closed)

    async def test_failure_returns_to_login_with_error(self):
        self.homeserver.login_status = 403
        await asyncio.wait_for(self._task().run(), 5)

        sent = drain(self.bus)
        self.assertEqual(loading_labels(sent), ["Fetching home server", "Logging in"])
        switch, error = sent[-2:]
        self.assertIsInstance(switch.menu, AuthenticationMenu)
        self.assertEqual(switch.menu.username.value, f"@al:{self.homeserver.homeserver}")
        self.assertEqual(switch.menu.password.value, "pw")
        self.assertEqual(error, ClientError(MSG_LOGIN))

    async def test_discovery_failure_skips_login_stage(self):
        self.homeserver.well_known_status = 500
        await asyncio.wait_for(self._task().run(), 5)
        sent = drain(self.bus)
        self.assertEqual(loading_labels(sent), ["Fetching home server"])
        self.assertEqual(sent[-1], ClientError(MSG_RESPONSE))
        self.assertEqual(self.homeserver.login_requests, [])

    async def test_undecodable_discovery_returns_to_login(self):
        self.homeserver.well_known_raw = b'{"m.homeserver": "\xff\xfe"}'
        await asyncio.wait_for(self._task().run(), 5)

        switch, error = drain(self.bus)[-2:]
        self.assertIsInstance(switch, SwitchMenu)
        self.assertIsInstance(switch.menu, AuthenticationMenu)
        self.assertEqual(error, ClientError(MSG_PARSE))

    async def test_sync_now_during_backoff_recovers(self):
        self.homeserver.sync_failures = 1
        task = self._task()
        runner = asyncio.ensure_future(task.run())
        await asyncio.sleep(0.1)
        self.commands.put(BackendCommand.SYNC_NOW)
        await asyncio.wait_for(self.homeserver.synced.wait(), 2)
        self.commands.put(BackendCommand.SHUTDOWN)
        await asyncio.wait_for(runner, 5)


class SpawnSessionTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.homeserver = await FakeHomeserver().start()
        self.bus = NotificationBus()

    async def asyncTearDown(self):
        await self.homeserver.close()

    async def _wait_for(self, predicate, timeout=5.0):
        seen = []
        deadline = asyncio.get_running_loop().time() + timeout
        while asyncio.get_running_loop().time() < deadline:
            seen.extend(drain(self.bus))
            if predicate(seen):
                return seen
            await asyncio.sleep(0.02)
        self.fail(f"timed out; saw {seen!r}")

    async def test_runs_in_daemon_thread_and_shuts_down(self):
        credentials = Credentials("al", self.homeserver.homeserver, "pw")
        handle = spawn_session(credentials, self.bus, SETTINGS, "matrix-tui test")
        self.assertTrue(handle.thread.daemon)

        await self._wait_for(lambda seen: "Syncing data" in loading_labels(seen))
        handle.send(BackendCommand.SHUTDOWN)
        await asyncio.to_thread(handle.thread.join, 5)
        self.assertFalse(handle.is_alive())

    async def test_failed_login_ends_thread(self):
        self.homeserver.login_status = 403
        credentials = Credentials("al", self.homeserver.homeserver, "pw")
        handle = spawn_session(credentials, self.bus, SETTINGS, "matrix-tui test")
        seen = await self._wait_for(lambda seen: any(isinstance(item, ClientError) for item in seen))
        self.assertEqual(seen[-1], ClientError(MSG_LOGIN))
        await asyncio.to_thread(handle.thread.join, 5)
        self.assertFalse(handle.is_alive())

    async def test_crashed_task_restores_login_form(self):
        credentials = Credentials("al", self.homeserver.homeserver, "pw")
        with mock.patch.object(LoginTask, "run", side_effect=RuntimeError("boom")):
            handle = spawn_session(credentials, self.bus, SETTINGS, "matrix-tui test")
            await asyncio.to_thread(handle.thread.join, 5)

        switch, error = drain(self.bus)
        self.assertIsInstance(switch.menu, AuthenticationMenu)
        self.assertEqual(switch.menu.password.value, "pw")
        self.assertEqual(error, ClientError(MSG_UNEXPECTED))
