"""Command log sink and diagnostic logging setup."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.logging import RichHandler

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class CommandLog(Protocol):
    """Durable record of executed commands and their results."""

    def write(self, path: str, address: str, command: str, result: str) -> None:
        """Append one executed command to the log at ``path``."""


class FileCommandLog:
    """Appends commands and results to a plain-text file."""

    def __init__(self, clock=None) -> None:
        self._clock = clock or datetime.now

    def write(self, path: str, address: str, command: str, result: str) -> None:
        if not path:
            return

        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        stamp = self._clock().strftime(TIMESTAMP_FORMAT)
        with target.open("a", encoding="utf-8") as handle:
            handle.write(f"[{stamp}] {address}: {command}\n{result}\n\n")


def configure_logging(level: str = "WARNING") -> None:
    """Send diagnostics to stderr so stdout only carries command results."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
