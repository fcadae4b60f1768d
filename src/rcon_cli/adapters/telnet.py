"""Telnet console client for servers with a password-gated text console (7 Days to Die style).

The console has no framing: a response is considered complete once the server has
been silent for ``idle_seconds``.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Callable, TextIO

from rcon_cli import terminal
from rcon_cli.adapters.protocol import split_address
from rcon_cli.errors import AuthenticationError, ConnectionFailedError

logger = logging.getLogger(__name__)

PASSWORD_REQUEST = b"Please enter password:"
LOGON_SUCCESSFUL = b"Logon successful."
PASSWORD_INCORRECT = b"Password incorrect"
EXIT_COMMAND = "exit"
_READ_SIZE = 4096


@dataclass(slots=True)
class TelnetClient:
    """Client for line-oriented telnet consoles."""

    dial_timeout_seconds: float = 5.0
    idle_seconds: float = 0.5
    encoding: str = "utf-8"
    connect: Callable[..., socket.socket] = socket.create_connection

    def execute(self, address: str, password: str, command: str) -> str:
        with self._open(address) as conn:
            self._authenticate(conn, password)
            self._write_line(conn, command)
            response = self._read_until_idle(conn)
            self._write_line(conn, EXIT_COMMAND)
            return response

    def interactive(self, input_stream: TextIO, output: TextIO, address: str, password: str) -> None:
        with self._open(address) as conn:
            self._authenticate(conn, password)
            terminal.prompt(output, terminal.waiting_banner(address) + terminal.COMMAND_PROMPT)
            for command in terminal.iter_lines(input_stream):
                if command == terminal.QUIT_COMMAND:
                    break
                if command:
                    self._write_line(conn, command)
                    response = self._read_until_idle(conn).strip()
                    if response:
                        output.write(response + "\n")
                terminal.prompt(output, terminal.COMMAND_PROMPT)
            self._write_line(conn, EXIT_COMMAND)

    def _open(self, address: str) -> socket.socket:
        host, port = split_address(address)
        try:
            conn = self.connect((host, port), timeout=self.dial_timeout_seconds)
        except OSError as exc:
            raise ConnectionFailedError(f"unable to connect to {address}: {exc}") from exc
        conn.settimeout(self.dial_timeout_seconds)
        return conn

    def _authenticate(self, conn: socket.socket, password: str) -> None:
        self._read_until(conn, (PASSWORD_REQUEST,))
        self._write_line(conn, password)
        reply = self._read_until(conn, (LOGON_SUCCESSFUL, PASSWORD_INCORRECT))
        if PASSWORD_INCORRECT in reply:
            raise AuthenticationError("authentication failed: wrong telnet password")
        # Discard the welcome text that follows a successful logon.
        self._read_until_idle(conn)
        logger.debug("telnet_authenticated")

    def _write_line(self, conn: socket.socket, line: str) -> None:
        try:
            conn.sendall(line.encode(self.encoding) + b"\r\n")
        except OSError as exc:
            raise ConnectionFailedError(f"telnet write failed: {exc}") from exc

    def _read_until(self, conn: socket.socket, markers: tuple[bytes, ...]) -> bytes:
        buf = b""
        while not any(marker in buf for marker in markers):
            try:
                chunk = conn.recv(_READ_SIZE)
            except OSError as exc:
                raise ConnectionFailedError(
                    f"telnet read failed: {exc}", partial_result=buf.decode(self.encoding, errors="replace")
                ) from exc
            if not chunk:
                raise ConnectionFailedError(
                    "telnet connection closed by remote host",
                    partial_result=buf.decode(self.encoding, errors="replace"),
                )
            buf += chunk
        return buf

    def _read_until_idle(self, conn: socket.socket) -> str:
        buf = b""
        conn.settimeout(self.idle_seconds)
        try:
            while True:
                try:
                    chunk = conn.recv(_READ_SIZE)
                except socket.timeout:
                    break
                except OSError as exc:
                    raise ConnectionFailedError(
                        f"telnet read failed: {exc}", partial_result=buf.decode(self.encoding, errors="replace")
                    ) from exc
                if not chunk:
                    break
                buf += chunk
        finally:
            conn.settimeout(self.dial_timeout_seconds)
        return buf.decode(self.encoding, errors="replace")
