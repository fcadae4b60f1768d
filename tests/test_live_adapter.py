from __future__ import annotations

import io
import json
import socket
import struct
from datetime import datetime
from pathlib import Path

import pytest
from websockets.datastructures import Headers
from websockets.exceptions import InvalidStatus
from websockets.http11 import Response

from rcon_cli.adapters import RconClient, RconPacket, TelnetClient, WebRconClient, split_address
from rcon_cli.adapters.rcon import SERVERDATA_AUTH, SERVERDATA_AUTH_RESPONSE, SERVERDATA_RESPONSE_VALUE
from rcon_cli.errors import AuthenticationError, ConnectionFailedError, ResponseError
from rcon_cli.telemetry.logging import FileCommandLog


class FakeSocket:
    """Serves scripted chunks; ``None`` in the script simulates a read timeout."""

    def __init__(self, script: list[bytes | None]) -> None:
        self.script = list(script)
        self.sent: list[bytes] = []
        self.closed = False
        self.timeout: float | None = None

    def __enter__(self) -> FakeSocket:
        return self

    def __exit__(self, *exc_info) -> None:
        self.closed = True

    def settimeout(self, value: float | None) -> None:
        self.timeout = value

    def sendall(self, data: bytes) -> None:
        self.sent.append(data)

    def recv(self, size: int) -> bytes:
        if not self.script:
            raise socket.timeout("timed out")
        chunk = self.script.pop(0)
        if chunk is None:
            raise socket.timeout("timed out")
        if len(chunk) > size:
            self.script.insert(0, chunk[size:])
            chunk = chunk[:size]
        return chunk


def _connector(fake):
    calls: list[tuple[tuple[str, int], float]] = []

    def connect(addr, timeout):
        calls.append((addr, timeout))
        return fake

    connect.calls = calls
    return connect


def test_split_address() -> None:
    assert split_address("127.0.0.1:16260") == ("127.0.0.1", 16260)
    assert split_address("[::1]:27015") == ("::1", 27015)
    with pytest.raises(ConnectionFailedError):
        split_address("127.0.0.1")


def test_rcon_packet_encoding() -> None:
    data = RconPacket(id=7, type=SERVERDATA_AUTH, body="pw").encode()

    assert data == struct.pack("<iii", 12, 7, 3) + b"pw\x00\x00"
    assert RconPacket.decode(data[4:]) == RconPacket(id=7, type=3, body="pw")


def test_rcon_execute_authenticates_then_runs_command() -> None:
    fake = FakeSocket(
        [
            RconPacket(id=1, type=SERVERDATA_AUTH_RESPONSE, body="").encode(),
            RconPacket(id=2, type=SERVERDATA_RESPONSE_VALUE, body="hi\n").encode(),
        ]
    )
    connect = _connector(fake)
    client = RconClient(dial_timeout_seconds=1.5, connect=connect)

    result = client.execute("127.0.0.1:16260", "secret", "say hi")

    assert result == "hi\n"
    assert connect.calls == [(("127.0.0.1", 16260), 1.5)]
    assert fake.sent[0] == RconPacket(id=1, type=3, body="secret").encode()
    assert fake.sent[1] == RconPacket(id=2, type=2, body="say hi").encode()
    assert fake.closed


def test_rcon_skips_empty_response_before_auth() -> None:
    fake = FakeSocket(
        [
            RconPacket(id=1, type=SERVERDATA_RESPONSE_VALUE, body="").encode(),
            RconPacket(id=1, type=SERVERDATA_AUTH_RESPONSE, body="").encode(),
        ]
    )

    RconClient(connect=_connector(fake)).check_credentials("a:1", "secret")

    assert len(fake.sent) == 1


def test_rcon_wrong_password() -> None:
    fake = FakeSocket([RconPacket(id=-1, type=SERVERDATA_AUTH_RESPONSE, body="").encode()])

    with pytest.raises(AuthenticationError):
        RconClient(connect=_connector(fake)).check_credentials("a:1", "bad")


def test_rcon_mismatched_response_keeps_partial_result() -> None:
    fake = FakeSocket(
        [
            RconPacket(id=1, type=SERVERDATA_AUTH_RESPONSE, body="").encode(),
            RconPacket(id=99, type=SERVERDATA_RESPONSE_VALUE, body="stray").encode(),
        ]
    )

    with pytest.raises(ResponseError) as excinfo:
        RconClient(connect=_connector(fake)).execute("a:1", "secret", "status")

    assert excinfo.value.partial_result == "stray"


def test_rcon_connection_refused() -> None:
    def refuse(addr, timeout):
        raise ConnectionRefusedError("refused")

    with pytest.raises(ConnectionFailedError, match="unable to connect"):
        RconClient(connect=refuse).execute("a:1", "secret", "status")


def test_telnet_execute() -> None:
    fake = FakeSocket(
        [
            b"*** Connected with 7DTD server.\r\nPlease enter password:\r\n",
            b"Logon successful.\r\n",
            b"Press 'help' to get a list of all commands.\r\n",
            None,
            b"Day 7, 12:00\r\n",
            None,
        ]
    )

    result = TelnetClient(connect=_connector(fake), idle_seconds=0.01).execute("a:8081", "secret", "gettime")

    assert result == "Day 7, 12:00\r\n"
    assert fake.sent == [b"secret\r\n", b"gettime\r\n", b"exit\r\n"]


def test_telnet_wrong_password() -> None:
    fake = FakeSocket([b"Please enter password:", b"Password incorrect, please enter password:\r\n"])

    with pytest.raises(AuthenticationError):
        TelnetClient(connect=_connector(fake)).execute("a:8081", "bad", "gettime")


def test_telnet_interactive_session() -> None:
    fake = FakeSocket([b"Please enter password:", b"Logon successful.\r\n", None, b"Day 7\r\n", None])
    output = io.StringIO()

    TelnetClient(connect=_connector(fake), idle_seconds=0.01).interactive(
        io.StringIO("gettime\n\n:q\nignored\n"), output, "a:8081", "secret"
    )

    assert output.getvalue() == "Waiting commands for a:8081 (or type :q to exit)\n> Day 7\n> > "
    assert fake.sent == [b"secret\r\n", b"gettime\r\n", b"exit\r\n"]


class FakeWebSocket:
    def __init__(self, replies: list[str]) -> None:
        self.replies = list(replies)
        self.sent: list[dict] = []

    def __enter__(self) -> FakeWebSocket:
        return self

    def __exit__(self, *exc_info) -> None:
        pass

    def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    def recv(self, timeout: float | None = None) -> str:
        if not self.replies:
            raise TimeoutError("no reply")
        return self.replies.pop(0)


def test_webrcon_execute_waits_for_matching_identifier() -> None:
    fake = FakeWebSocket(
        [
            json.dumps({"Identifier": 0, "Message": "server chatter", "Type": "Generic"}),
            json.dumps({"Identifier": 42, "Message": "players: 3\n", "Type": "Generic"}),
        ]
    )
    urls: list[str] = []

    def connect(url, open_timeout):
        urls.append(url)
        return fake

    result = WebRconClient(connect=connect).execute("1.2.3.4:28016", "p@ss word", "playerlist")

    assert result == "players: 3\n"
    assert urls == ["ws://1.2.3.4:28016/p%40ss%20word"]
    assert fake.sent == [{"Identifier": 42, "Message": "playerlist", "Name": "WebRcon"}]


def test_webrcon_read_timeout() -> None:
    with pytest.raises(ConnectionFailedError, match="timed out"):
        WebRconClient(connect=lambda url, open_timeout: FakeWebSocket([])).execute("a:1", "p", "status")


def test_webrcon_read_timeout_spans_unrelated_chatter() -> None:
    class ChattyWebSocket(FakeWebSocket):
        def __init__(self) -> None:
            super().__init__([])
            self.timeouts: list[float] = []

        def recv(self, timeout: float | None = None) -> str:
            self.timeouts.append(timeout)
            return json.dumps({"Identifier": 0, "Message": "player joined", "Type": "Generic"})

    ticks = iter(range(100))
    fake = ChattyWebSocket()
    client = WebRconClient(read_timeout_seconds=3.0, connect=lambda url, open_timeout: fake, clock=lambda: float(next(ticks)))

    with pytest.raises(ConnectionFailedError, match="timed out"):
        client.execute("a:1", "p", "status")

    assert fake.timeouts == [2.0, 1.0]


def test_webrcon_rejected_handshake_is_authentication_error() -> None:
    def reject(url, open_timeout):
        raise InvalidStatus(Response(401, "Unauthorized", Headers(), b""))

    with pytest.raises(AuthenticationError):
        WebRconClient(connect=reject).check_credentials("a:1", "bad")


def test_file_command_log_appends_entries(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "rcon.log"
    command_log = FileCommandLog(clock=lambda: datetime(2024, 1, 2, 3, 4, 5))

    command_log.write(str(path), "127.0.0.1:16260", "say hi", "hi")
    command_log.write(str(path), "127.0.0.1:16260", "players", "")

    assert path.read_text(encoding="utf-8") == (
        "[2024-01-02 03:04:05] 127.0.0.1:16260: say hi\nhi\n\n"
        "[2024-01-02 03:04:05] 127.0.0.1:16260: players\n\n\n"
    )


def test_file_command_log_ignores_empty_path(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    FileCommandLog().write("", "a:1", "status", "ok")

    assert list(tmp_path.iterdir()) == []
