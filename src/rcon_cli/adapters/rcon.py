"""Source RCON protocol client.

One TCP connection per call: authenticate, optionally run a single command, close.
Packets are little-endian ``size, id, type`` followed by the body and two NUL bytes.
"""

from __future__ import annotations

import itertools
import logging
import socket
import struct
from dataclasses import dataclass, field
from typing import Callable

from rcon_cli.adapters.protocol import split_address
from rcon_cli.errors import AuthenticationError, ConnectionFailedError, ResponseError

logger = logging.getLogger(__name__)

SERVERDATA_AUTH = 3
SERVERDATA_AUTH_RESPONSE = 2
SERVERDATA_EXECCOMMAND = 2
SERVERDATA_RESPONSE_VALUE = 0

AUTH_FAILED_ID = -1
MIN_PACKET_SIZE = 10
MAX_PACKET_SIZE = 4096 + MIN_PACKET_SIZE
_HEADER = struct.Struct("<iii")
_SIZE = struct.Struct("<i")


@dataclass(slots=True)
class RconPacket:
    """A decoded Source RCON packet."""

    id: int
    type: int
    body: str

    def encode(self) -> bytes:
        payload = self.body.encode("utf-8") + b"\x00\x00"
        size = _HEADER.size - _SIZE.size + len(payload)
        return _HEADER.pack(size, self.id, self.type) + payload

    @classmethod
    def decode(cls, data: bytes) -> RconPacket:
        """Decode a packet body that follows the size prefix."""
        if len(data) < MIN_PACKET_SIZE:
            raise ResponseError(f"rcon packet too short: {len(data)} bytes")
        packet_id, packet_type = struct.unpack_from("<ii", data)
        body = data[8:].rstrip(b"\x00").decode("utf-8", errors="replace")
        return cls(id=packet_id, type=packet_type, body=body)


@dataclass(slots=True)
class RconClient:
    """Client for servers speaking the Source RCON protocol."""

    dial_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 5.0
    connect: Callable[..., socket.socket] = socket.create_connection
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1), init=False, repr=False)

    def execute(self, address: str, password: str, command: str) -> str:
        with self._open(address) as conn:
            self._authenticate(conn, password)
            request_id = next(self._ids)
            self._send(conn, RconPacket(id=request_id, type=SERVERDATA_EXECCOMMAND, body=command))
            response = self._receive(conn)
            if response.id != request_id:
                raise ResponseError(
                    f"rcon response id {response.id} does not match request id {request_id}",
                    partial_result=response.body,
                )
            return response.body

    def check_credentials(self, address: str, password: str) -> None:
        with self._open(address) as conn:
            self._authenticate(conn, password)

    def _open(self, address: str) -> socket.socket:
        host, port = split_address(address)
        try:
            conn = self.connect((host, port), timeout=self.dial_timeout_seconds)
        except OSError as exc:
            raise ConnectionFailedError(f"unable to connect to {address}: {exc}") from exc
        conn.settimeout(self.read_timeout_seconds)
        return conn

    def _authenticate(self, conn: socket.socket, password: str) -> None:
        request_id = next(self._ids)
        self._send(conn, RconPacket(id=request_id, type=SERVERDATA_AUTH, body=password))

        response = self._receive(conn)
        # Some servers send an empty RESPONSE_VALUE before the auth response.
        if response.type == SERVERDATA_RESPONSE_VALUE:
            response = self._receive(conn)

        if response.type != SERVERDATA_AUTH_RESPONSE:
            raise ResponseError(f"unexpected rcon packet type {response.type} during auth")
        if response.id == AUTH_FAILED_ID:
            raise AuthenticationError("authentication failed: wrong rcon password")
        if response.id != request_id:
            raise ResponseError(f"rcon auth response id {response.id} does not match {request_id}")
        logger.debug("rcon_authenticated", extra={"request_id": request_id})

    @staticmethod
    def _send(conn: socket.socket, packet: RconPacket) -> None:
        try:
            conn.sendall(packet.encode())
        except OSError as exc:
            raise ConnectionFailedError(f"rcon write failed: {exc}") from exc

    def _receive(self, conn: socket.socket) -> RconPacket:
        (size,) = _SIZE.unpack(self._read_exact(conn, _SIZE.size))
        if size < MIN_PACKET_SIZE or size > MAX_PACKET_SIZE:
            raise ResponseError(f"invalid rcon packet size {size}")
        return RconPacket.decode(self._read_exact(conn, size))

    @staticmethod
    def _read_exact(conn: socket.socket, count: int) -> bytes:
        buf = b""
        while len(buf) < count:
            try:
                chunk = conn.recv(count - len(buf))
            except OSError as exc:
                raise ConnectionFailedError(f"rcon read failed: {exc}") from exc
            if not chunk:
                raise ConnectionFailedError("rcon connection closed by remote host")
            buf += chunk
        return buf
