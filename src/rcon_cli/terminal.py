"""Line-oriented terminal conversation helpers shared by the interactive loops."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TextIO

QUIT_COMMAND = ":q"
COMMAND_PROMPT = "> "
ADDRESS_PROMPT = "Enter remote host and port [ip:port]: "
PASSWORD_PROMPT = "Enter password: "
PROTOCOL_PROMPT = "Enter protocol type (empty for rcon): "


def waiting_banner(address: str) -> str:
    return f"Waiting commands for {address} (or type {QUIT_COMMAND} to exit)\n"


def prompt(output: TextIO, text: str) -> None:
    output.write(text)
    output.flush()


def read_line(input_stream: TextIO) -> str:
    """Block for one line and return it without the line ending; EOF gives ``""``."""
    return input_stream.readline().rstrip("\r\n")


def iter_lines(input_stream: TextIO) -> Iterator[str]:
    """Lazily yield input lines until the stream is exhausted."""
    for raw in iter(input_stream.readline, ""):
        yield raw.rstrip("\r\n")
