"""Minimal aiohttp Matrix client: homeserver discovery, password login and sync."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import aiohttp
from yarl import URL

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = "/.well-known/matrix/client"
LOGIN_PATH = "/_matrix/client/v3/login"
SYNC_PATH = "/_matrix/client/v3/sync"

MSG_CONNECT = "Unable to connect to home server."
MSG_RESPONSE = "Unable to get home server response."
MSG_PARSE = "Unable to parse home server response."
MSG_BAD_URL = "Home server returned malformed URL."
MSG_LOGIN = "Unable to login with provided credentials."

SYNC_BACKOFF_START_S = 0.5
SYNC_BACKOFF_MAX_S = 5.0


@dataclass
class Credentials:
    username: str
    homeserver: str
    password: str

    @property
    def user_id(self) -> str:
        return f"@{self.username}:{self.homeserver}"


@dataclass(frozen=True)
class BackendSettings:
    verbose: bool = False
    discovery_scheme: str = "https"
    request_timeout_s: float = 30.0
    sync_timeout_ms: int = 30000


class BackendError(Exception):
    """A backend step failed; ``str(exc)`` is the text shown to the user."""


def _step_error(settings: BackendSettings, message: str, cause: BaseException) -> BackendError:
    if settings.verbose:
        return BackendError(f"{message}\n{cause}")
    return BackendError(message)


def _parse_base_url(raw: object) -> URL:
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"base_url must be a non-empty string, got {raw!r}")
    url = URL(raw.strip())
    if url.scheme not in {"http", "https"} or not url.host:
        raise ValueError(f"base_url must be an absolute http(s) URL, got {raw!r}")
    return url


def _endpoint(base_url: URL, path: str) -> str:
    return str(base_url / path.lstrip("/"))


async def _wait_any(events: list[asyncio.Event], timeout: float) -> None:
    waiters = [asyncio.ensure_future(event.wait()) for event in events]
    try:
        await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()


async def discover_homeserver(
    http: aiohttp.ClientSession,
    settings: BackendSettings,
    credentials: Credentials,
) -> URL:
    """Resolve the client-server API base URL through ``.well-known`` discovery."""

    url = f"{settings.discovery_scheme}://{credentials.homeserver}{WELL_KNOWN_PATH}"
    try:
        response = await http.get(url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise _step_error(settings, MSG_CONNECT, exc) from exc

    try:
        async with response:
            response.raise_for_status()
            body = await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise _step_error(settings, MSG_RESPONSE, exc) from exc

    try:
        payload = json.loads(body.decode("utf-8"))
        base_url = payload["m.homeserver"]["base_url"]
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as exc:
        raise _step_error(settings, MSG_PARSE, exc) from exc

    try:
        return _parse_base_url(base_url)
    except ValueError as exc:
        raise _step_error(settings, MSG_BAD_URL, exc) from exc


def _login_payload(credentials: Credentials, client_id: str) -> Dict[str, object]:
    return {
        "type": "m.login.password",
        "identifier": {"type": "m.id.user", "user": credentials.username.lower()},
        "password": credentials.password,
        "initial_device_display_name": client_id,
    }


class Session:
    """An authenticated client-server session."""

    def __init__(
        self,
        http: aiohttp.ClientSession,
        base_url: URL,
        user_id: str,
        access_token: str,
        device_id: str = "",
    ) -> None:
        self.http = http
        self.base_url = base_url
        self.user_id = user_id
        self.access_token = access_token
        self.device_id = device_id
        self.next_batch: Optional[str] = None
        self.rooms: Dict[str, Dict[str, Any]] = {}

    @property
    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    async def sync_once(self, settings: BackendSettings, timeout_ms: int = 0) -> Dict[str, Any]:
        params = {"timeout": str(max(timeout_ms, 0))}
        if self.next_batch:
            params["since"] = self.next_batch
        timeout = aiohttp.ClientTimeout(total=settings.request_timeout_s + max(timeout_ms, 0) / 1000)
        try:
            async with self.http.get(
                _endpoint(self.base_url, SYNC_PATH),
                params=params,
                headers=self._auth_headers,
                timeout=timeout,
            ) as response:
                response.raise_for_status()
                payload = await response.json(content_type=None)
        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            json.JSONDecodeError,
            UnicodeDecodeError,
        ) as exc:
            raise _step_error(settings, "Sync failed.", exc) from exc

        if not isinstance(payload, dict):
            raise BackendError("Sync failed.")
        next_batch = payload.get("next_batch")
        if isinstance(next_batch, str):
            self.next_batch = next_batch
        rooms = payload.get("rooms")
        joined = rooms.get("join") if isinstance(rooms, dict) else None
        if isinstance(joined, dict):
            self.rooms.update(joined)
        return payload

    async def sync(
        self,
        settings: BackendSettings,
        stop: asyncio.Event,
        wake: Optional[asyncio.Event] = None,
    ) -> None:
        """Long-poll ``/sync`` until ``stop`` is set; errors back off and retry."""

        wake = wake or asyncio.Event()
        backoff_s = SYNC_BACKOFF_START_S
        while not stop.is_set():
            sync_task = asyncio.ensure_future(self.sync_once(settings, settings.sync_timeout_ms))
            stop_task = asyncio.ensure_future(stop.wait())
            done, _ = await asyncio.wait({sync_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            if stop_task not in done:
                stop_task.cancel()
            if sync_task not in done:
                sync_task.cancel()
                break

            try:
                sync_task.result()
            except BackendError as exc:
                logger.warning("sync failed, retrying in %.1fs: %s", backoff_s, exc)
                await _wait_any([wake, stop], backoff_s)
                wake.clear()
                backoff_s = min(backoff_s * 2, SYNC_BACKOFF_MAX_S)
                continue

            backoff_s = SYNC_BACKOFF_START_S
            logger.debug("sync complete, next_batch=%s rooms=%d", self.next_batch, len(self.rooms))

    async def close(self) -> None:
        if not self.http.closed:
            await self.http.close()


async def login(
    settings: BackendSettings,
    credentials: Credentials,
    *,
    client_id: str,
    on_stage: Optional[Callable[[str], None]] = None,
) -> Session:
    """Discover the homeserver and log in with a password.

    Raises :class:`BackendError` carrying a user-facing message on any failure.
    """

    http = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=settings.request_timeout_s))
    try:
        base_url = await discover_homeserver(http, settings, credentials)
        logger.info("homeserver for %s resolved to %s", credentials.homeserver, base_url)
        if on_stage is not None:
            on_stage("Logging in")

        try:
            async with http.post(
                _endpoint(base_url, LOGIN_PATH),
                json=_login_payload(credentials, client_id),
            ) as response:
                response.raise_for_status()
                payload = await response.json(content_type=None)
            user_id = payload["user_id"]
            access_token = payload["access_token"]
        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            json.JSONDecodeError,
            UnicodeDecodeError,
            KeyError,
            TypeError,
        ) as exc:
            raise _step_error(settings, MSG_LOGIN, exc) from exc
    except BaseException:
        await http.close()
        raise

    return Session(
        http,
        base_url,
        user_id=str(user_id),
        access_token=str(access_token),
        device_id=str(payload.get("device_id", "")),
    )
