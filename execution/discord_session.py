"""
Minimal Discord bot session.

- Gateway websocket: identify, heartbeat, presence ("Listening to ...") updates.
- REST: guild nickname changes.

Only what the ticker bots need. No event dispatch and no resume: when the
gateway drops or asks for a reconnect (op 7/9), the connection is marked dead
and the next presence update opens a fresh one (HELLO, IDENTIFY, READY).
"""

from __future__ import annotations

import json
import sys
import threading
from typing import Optional

import requests
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import ClientConnection, connect

from core.config import settings
from core.errors import PublishFailure
from core.logging_utils import get_logger

logger = get_logger(__name__)

# Gateway opcodes
OP_DISPATCH = 0
OP_HEARTBEAT = 1
OP_IDENTIFY = 2
OP_PRESENCE_UPDATE = 3
OP_RECONNECT = 7
OP_INVALID_SESSION = 9
OP_HELLO = 10

ACTIVITY_LISTENING = 2


class DiscordSession:
    """One logged-in bot identity. Create with ``DiscordSession(token).open()``."""

    def __init__(
        self,
        token: str,
        gateway_url: Optional[str] = None,
        api_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self._token = token
        self.gateway_url = gateway_url or settings.discord_gateway_url
        self.api_base_url = (api_base_url or settings.discord_api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.http = http or requests.Session()
        self.http.headers.update({"Authorization": f"Bot {token}"})

        self._ws: Optional[ClientConnection] = None
        self._ws_stop: Optional[threading.Event] = None
        self._seq: Optional[int] = None
        self._connected = False
        self._opened = False
        self._closed = False
        self._open_lock = threading.Lock()
        self._heartbeat_interval = 41.25
        self.connects = 0
        self.user_id: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self._connected

    # ------------------------------------------------------------------
    # Gateway
    # ------------------------------------------------------------------

    def open(self) -> "DiscordSession":
        """Connect and identify. Blocks until READY. Raises PublishFailure."""
        with self._open_lock:
            self._connect()
            self._opened = True
        return self

    def _connect(self) -> None:
        try:
            ws = connect(self.gateway_url, open_timeout=self.timeout)
        except (OSError, TimeoutError, WebSocketException) as e:
            raise PublishFailure("open gateway websocket", str(e)) from e

        try:
            hello = json.loads(ws.recv(timeout=self.timeout))
            if hello.get("op") != OP_HELLO:
                raise PublishFailure("open gateway websocket", f"expected HELLO, got op {hello.get('op')}")
            self._heartbeat_interval = hello["d"]["heartbeat_interval"] / 1000.0

            self._seq = None
            ws.send(json.dumps({
                "op": OP_IDENTIFY,
                "d": {
                    "token": self._token,
                    "intents": 0,
                    "properties": {"os": sys.platform, "browser": "tickerbot", "device": "tickerbot"},
                },
            }))
            self._await_ready(ws)
        except PublishFailure:
            ws.close()
            raise
        except (ConnectionClosed, TimeoutError, ValueError, KeyError) as e:
            ws.close()
            raise PublishFailure("identify with gateway", str(e)) from e

        stop = threading.Event()
        self._ws = ws
        self._ws_stop = stop
        self._connected = True
        self.connects += 1
        for target, name in ((self._heartbeat_loop, "heartbeat"), (self._reader_loop, "reader")):
            thread = threading.Thread(target=target, args=(ws, stop), name=f"discord-{name}", daemon=True)
            thread.start()
        logger.info("[DISCORD] Session ready (user %s, connect #%d)", self.user_id, self.connects)

    def _await_ready(self, ws: ClientConnection) -> None:
        while True:
            msg = json.loads(ws.recv(timeout=self.timeout))
            if msg.get("s") is not None:
                self._seq = msg["s"]
            op = msg.get("op")
            if op == OP_INVALID_SESSION:
                raise PublishFailure("identify with gateway", "invalid session (bad token?)")
            if op == OP_DISPATCH and msg.get("t") == "READY":
                self.user_id = (msg.get("d") or {}).get("user", {}).get("id")
                return

    def _ensure_connected(self) -> None:
        """Reopen the gateway connection if it was dropped. Raises PublishFailure."""
        if self._closed:
            raise PublishFailure("change status", "session is closed")
        if not self._opened:
            raise PublishFailure("change status", "session is not open")
        if self._connected:
            return
        with self._open_lock:
            if self._connected:
                return
            self._discard_connection()
            logger.info("[DISCORD] Reconnecting to gateway...")
            self._connect()

    def _discard_connection(self) -> None:
        ws, stop = self._ws, self._ws_stop
        self._ws = None
        self._ws_stop = None
        self._connected = False
        if stop is not None:
            stop.set()
        if ws is not None:
            ws.close()

    def _mark_dropped(self, ws: ClientConnection) -> None:
        # Threads of an already replaced connection must not flag the new one
        if self._ws is ws:
            self._connected = False

    def _heartbeat_loop(self, ws: ClientConnection, stop: threading.Event) -> None:
        while not stop.wait(self._heartbeat_interval):
            try:
                ws.send(json.dumps({"op": OP_HEARTBEAT, "d": self._seq}))
            except ConnectionClosed as e:
                logger.warning("[DISCORD] Heartbeat failed, gateway closed: %s", e)
                self._mark_dropped(ws)
                return

    def _reader_loop(self, ws: ClientConnection, stop: threading.Event) -> None:
        try:
            for raw in ws:
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                if msg.get("s") is not None:
                    self._seq = msg["s"]
                op = msg.get("op")
                if op == OP_HEARTBEAT:
                    ws.send(json.dumps({"op": OP_HEARTBEAT, "d": self._seq}))
                elif op in (OP_RECONNECT, OP_INVALID_SESSION):
                    logger.warning("[DISCORD] Gateway asked to reconnect (op %s), reopening on next update", op)
                    self._mark_dropped(ws)
                    stop.set()
                    ws.close()
                    return
        except ConnectionClosed as e:
            if not stop.is_set():
                logger.warning("[DISCORD] Gateway connection closed: %s", e)
        finally:
            self._mark_dropped(ws)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def set_nickname(self, guild_id: str, user: str, nickname: str) -> None:
        url = f"{self.api_base_url}/guilds/{guild_id}/members/{user}"
        try:
            resp = self.http.patch(url, json={"nick": nickname}, timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishFailure("change nickname", str(e), guild_id=guild_id) from e
        if not resp.ok:
            raise PublishFailure(
                "change nickname", f"HTTP {resp.status_code}: {resp.text[:200]}", guild_id=guild_id
            )

    def set_status(self, text: str) -> None:
        payload = json.dumps({
            "op": OP_PRESENCE_UPDATE,
            "d": {
                "since": None,
                "activities": [{"name": text, "type": ACTIVITY_LISTENING}],
                "status": "online",
                "afk": False,
            },
        })
        self._ensure_connected()
        ws = self._ws
        try:
            ws.send(payload)
        except ConnectionClosed as e:
            # Dropped between the check and the send: one fresh connection, one retry
            logger.warning("[DISCORD] Gateway closed while updating status: %s", e)
            self._mark_dropped(ws)
            self._ensure_connected()
            try:
                self._ws.send(payload)
            except ConnectionClosed as retry_error:
                self._mark_dropped(self._ws)
                raise PublishFailure("change status", str(retry_error)) from retry_error

    def close(self) -> None:
        self._closed = True
        with self._open_lock:
            self._discard_connection()


def connect_discord(token: str) -> DiscordSession:
    """SessionPool connector."""
    return DiscordSession(token).open()
