"""Remote console protocol clients (rcon, telnet, web)."""

from .protocol import CredentialChecker, InteractiveProtocolClient, ProtocolClient, split_address
from .rcon import RconClient, RconPacket
from .telnet import TelnetClient
from .websocket import WebRconClient

__all__ = [
    "CredentialChecker",
    "InteractiveProtocolClient",
    "ProtocolClient",
    "RconClient",
    "RconPacket",
    "TelnetClient",
    "WebRconClient",
    "split_address",
]
