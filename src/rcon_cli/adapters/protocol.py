"""Boundary for remote console protocol integrations."""

from typing import Protocol, TextIO

from rcon_cli.errors import ConnectionFailedError


class ProtocolClient(Protocol):
    """Interface to run one authenticated command round trip."""

    def execute(self, address: str, password: str, command: str) -> str:
        """Connect, authenticate, run ``command`` and return the raw response."""


class CredentialChecker(Protocol):
    def check_credentials(self, address: str, password: str) -> None:
        """Authenticate only; raise ``AuthenticationError`` when rejected."""


class InteractiveProtocolClient(Protocol):
    """Client that runs its own multi-turn session over the terminal streams."""

    def interactive(self, input_stream: TextIO, output: TextIO, address: str, password: str) -> None:
        """Authenticate and serve commands read from ``input_stream`` until quit or EOF."""


def split_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ConnectionFailedError(f"invalid address {address!r}: expected host:port")
    return host.strip("[]"), int(port)
