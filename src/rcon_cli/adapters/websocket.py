"""WebRCON client (Rust style) over a WebSocket at ``ws://<address>/<password>``."""

from __future__ import annotations

import itertools
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import quote

from websockets.exceptions import InvalidStatus, WebSocketException
from websockets.sync.client import ClientConnection
from websockets.sync.client import connect as ws_connect

from rcon_cli.errors import AuthenticationError, ConnectionFailedError, ResponseError

logger = logging.getLogger(__name__)

MESSAGE_NAME = "WebRcon"


@dataclass(slots=True)
class WebRconClient:
    """Client for JSON-over-WebSocket remote consoles."""

    dial_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 5.0
    connect: Callable[..., ClientConnection] = ws_connect
    clock: Callable[[], float] = time.monotonic
    _ids: itertools.count = field(default_factory=lambda: itertools.count(42), init=False, repr=False)

    def execute(self, address: str, password: str, command: str) -> str:
        with self._open(address, password) as ws:
            identifier = next(self._ids)
            request = {"Identifier": identifier, "Message": command, "Name": MESSAGE_NAME}
            try:
                ws.send(json.dumps(request))
                return self._await_reply(ws, identifier)
            except TimeoutError as exc:
                raise ConnectionFailedError(f"webrcon read timed out after {self.read_timeout_seconds}s") from exc
            except WebSocketException as exc:
                raise ConnectionFailedError(f"webrcon connection error: {exc}") from exc

    def check_credentials(self, address: str, password: str) -> None:
        with self._open(address, password):
            logger.debug("webrcon_authenticated", extra={"address": address})

    def _open(self, address: str, password: str) -> ClientConnection:
        url = f"ws://{address}/{quote(password, safe='')}"
        try:
            return self.connect(url, open_timeout=self.dial_timeout_seconds)
        except InvalidStatus as exc:
            if exc.response.status_code in (401, 403):
                raise AuthenticationError("authentication failed: webrcon rejected the password") from exc
            raise ConnectionFailedError(f"webrcon handshake failed: {exc}") from exc
        except (OSError, TimeoutError, WebSocketException) as exc:
            raise ConnectionFailedError(f"unable to connect to {address}: {exc}") from exc

    def _await_reply(self, ws: ClientConnection, identifier: int) -> str:
        # One deadline covers the whole wait; unrelated console output does not extend it.
        deadline = self.clock() + self.read_timeout_seconds
        while True:
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise TimeoutError("no matching reply")
            raw = ws.recv(timeout=remaining)
            message = self._decode(raw)
            if message.get("Identifier") == identifier:
                return str(message.get("Message", ""))

    @staticmethod
    def _decode(raw: str | bytes) -> dict[str, Any]:
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ResponseError(f"webrcon sent invalid json: {exc}") from exc
        if not isinstance(message, dict):
            raise ResponseError("webrcon sent a non-object message")
        return message
