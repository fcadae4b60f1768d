"""Error kinds raised by session resolution, dispatch and the interactive engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rcon_cli.session import Session


class RconCliError(Exception):
    """Base class for every error surfaced to the CLI entrypoint."""


class ConfigurationError(RconCliError):
    """Raised before any network activity when a required value is missing."""


class AddressNotSetError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("address is not set: to set address add -a host:port")


class PasswordNotSetError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("password is not set: to set password add -p password")


class CommandNotSetError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("command is not set")


class ConfigFileError(RconCliError):
    """Raised when the config file cannot be read, parsed or validated.

    ``session`` holds whatever was resolved from flags before the failure so callers
    can still continue and prompt for the missing pieces.
    """

    def __init__(self, message: str, *, session: Session | None = None) -> None:
        super().__init__(message)
        self.session = session


class UnsupportedConfigExtensionError(ConfigFileError):
    """Raised for config files that are neither YAML nor JSON."""


class NegotiationError(RconCliError):
    """Raised when the interactive engine cannot settle on a protocol type."""


class TooManyFailedAttemptsError(NegotiationError):
    def __init__(self, attempts: int) -> None:
        super().__init__(f"too many failed attempts ({attempts})")
        self.attempts = attempts


class ProtocolError(RconCliError):
    """Failure reported by a protocol client.

    ``partial_result`` carries output received before the failure; the dispatcher
    still shows it to the user.
    """

    def __init__(self, message: str, *, partial_result: str = "") -> None:
        super().__init__(message)
        self.partial_result = partial_result


class AuthenticationError(ProtocolError):
    """The remote server rejected the password."""


class ConnectionFailedError(ProtocolError):
    """The endpoint could not be reached or the connection dropped."""


class ResponseError(ProtocolError):
    """The remote server sent something the client could not interpret."""


class CommandLogError(RconCliError):
    """Writing the command log failed after the result was already delivered."""
