import asyncio
import unittest

from aiohttp import web
from aiohttp.test_utils import TestServer

from helpers.homeserver import FakeHomeserver

from matrix_tui.matrix_client import (
    MSG_BAD_URL,
    MSG_CONNECT,
    MSG_LOGIN,
    MSG_PARSE,
    MSG_RESPONSE,
    BackendError,
    BackendSettings,
    Credentials,
    login,
)

SETTINGS = BackendSettings(discovery_scheme="http", request_timeout_s=5.0, sync_timeout_ms=0)


class LoginTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.homeserver = await FakeHomeserver().start()
        self.credentials = Credentials("Al", self.homeserver.homeserver, "pw")

    async def asyncTearDown(self):
        await self.homeserver.close()

    async def _login_error(self, settings=SETTINGS):
        with self.assertRaises(BackendError) as ctx:
            await login(settings, self.credentials, client_id="matrix-tui test")
        return str(ctx.exception)

    async def test_login_and_sync(self):
        stages = []
        session = await login(SETTINGS, self.credentials, client_id="matrix-tui test", on_stage=stages.append)
        self.addAsyncCleanup(session.close)

        self.assertEqual(stages, ["Logging in"])
        self.assertEqual(session.access_token, "token-123")
        self.assertEqual(session.device_id, "DEVICE")
        self.assertEqual(session.user_id, f"@al:{self.homeserver.homeserver}")
        request = self.homeserver.login_requests[0]
        self.assertEqual(request["type"], "m.login.password")
        self.assertEqual(request["identifier"], {"type": "m.id.user", "user": "al"})
        self.assertEqual(request["initial_device_display_name"], "matrix-tui test")

        await session.sync_once(SETTINGS)
        await session.sync_once(SETTINGS, timeout_ms=10)
        first, second = self.homeserver.sync_requests
        self.assertEqual(first["authorization"], "Bearer token-123")
        self.assertIsNone(first["since"])
        self.assertEqual(second["since"], "s1")
        self.assertEqual(second["timeout"], "10")
        self.assertEqual(session.next_batch, "s2")
        self.assertEqual(len(session.rooms), 2)

    async def test_unreachable_homeserver(self):
        server = TestServer(web.Application())
        await server.start_server()
        host = f"{server.host}:{server.port}"
        await server.close()
        self.credentials = Credentials("al", host, "pw")
        self.assertEqual(await self._login_error(), MSG_CONNECT)

    async def test_error_status(self):
        self.homeserver.well_known_status = 404
        self.assertEqual(await self._login_error(), MSG_RESPONSE)

    async def test_unparseable_discovery(self):
        self.homeserver.well_known_raw = "{oops"
        self.assertEqual(await self._login_error(), MSG_PARSE)
        self.homeserver.well_known_raw = None
        self.homeserver.well_known = {"m.homeserver": {}}
        self.assertEqual(await self._login_error(), MSG_PARSE)

    async def test_undecodable_discovery(self):
        self.homeserver.well_known_raw = b'{"m.homeserver": "\xff\xfe"}'
        self.assertEqual(await self._login_error(), MSG_PARSE)

    async def test_malformed_base_url(self):
        self.homeserver.well_known = {"m.homeserver": {"base_url": "ftp://example.org"}}
        self.assertEqual(await self._login_error(), MSG_BAD_URL)

    async def test_rejected_credentials(self):
        self.homeserver.login_status = 403
        self.assertEqual(await self._login_error(), MSG_LOGIN)

    async def test_undecodable_login_reply(self):
        self.homeserver.login_raw = b'{"user_id": "\xff"}'
        self.assertEqual(await self._login_error(), MSG_LOGIN)

    async def test_verbose_appends_cause(self):
        self.homeserver.login_status = 403
        verbose = BackendSettings(verbose=True, discovery_scheme="http", request_timeout_s=5.0)
        message = await self._login_error(verbose)
        first, _, cause = message.partition("\n")
        self.assertEqual(first, MSG_LOGIN)
        self.assertIn("403", cause)


class SyncLoopTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.homeserver = await FakeHomeserver().start()
        credentials = Credentials("al", self.homeserver.homeserver, "pw")
        self.session = await login(SETTINGS, credentials, client_id="matrix-tui test")

    async def asyncTearDown(self):
        await self.session.close()
        await self.homeserver.close()

    async def test_stop_ends_loop(self):
        stop = asyncio.Event()
        task = asyncio.ensure_future(self.session.sync(SETTINGS, stop))
        await asyncio.wait_for(self.homeserver.synced.wait(), 5)
        stop.set()
        await asyncio.wait_for(task, 5)
        self.assertIsNotNone(self.session.next_batch)

    async def test_stop_interrupts_pending_request(self):
        self.homeserver.sync_delay_s = 1.0
        stop = asyncio.Event()
        task = asyncio.ensure_future(self.session.sync(SETTINGS, stop))
        await asyncio.sleep(0.1)
        stop.set()
        await asyncio.wait_for(task, 5)
        self.assertIsNone(self.session.next_batch)

    async def test_failures_retry_and_wake_skips_backoff(self):
        self.homeserver.sync_failures = 1
        stop = asyncio.Event()
        wake = asyncio.Event()
        wake.set()
        task = asyncio.ensure_future(self.session.sync(SETTINGS, stop, wake))
        await asyncio.wait_for(self.homeserver.synced.wait(), 2)
        stop.set()
        await asyncio.wait_for(task, 5)
        self.assertGreaterEqual(len(self.homeserver.sync_requests), 2)
        self.assertFalse(wake.is_set())

    async def test_undecodable_sync_reply_is_retried(self):
        self.homeserver.sync_garbled = 1
        stop = asyncio.Event()
        wake = asyncio.Event()
        wake.set()
        task = asyncio.ensure_future(self.session.sync(SETTINGS, stop, wake))
        await asyncio.wait_for(self.homeserver.synced.wait(), 2)
        stop.set()
        await asyncio.wait_for(task, 5)
        self.assertGreaterEqual(len(self.homeserver.sync_requests), 2)
        self.assertEqual(self.session.next_batch[0], "s")
