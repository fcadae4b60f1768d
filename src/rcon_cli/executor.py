"""Routes commands to the protocol client chosen by the session."""

from __future__ import annotations

import logging
from typing import Protocol, TextIO

from rcon_cli.adapters import CredentialChecker, InteractiveProtocolClient, ProtocolClient
from rcon_cli.errors import (
    AddressNotSetError,
    CommandLogError,
    CommandNotSetError,
    PasswordNotSetError,
    ProtocolError,
)
from rcon_cli.session import ProtocolType, Session
from rcon_cli.telemetry.logging import CommandLog


class RconProtocolClient(ProtocolClient, CredentialChecker, Protocol):
    """Client speaking the default binary protocol."""


class WebProtocolClient(ProtocolClient, CredentialChecker, Protocol):
    """Client speaking the JSON-over-WebSocket protocol."""


class TelnetProtocolClient(ProtocolClient, InteractiveProtocolClient, Protocol):
    """Client speaking the line-oriented telnet protocol."""


class ProtocolDispatcher:
    """Executes commands for a session and records them in the command log."""

    def __init__(
        self,
        *,
        rcon: RconProtocolClient,
        telnet: TelnetProtocolClient,
        web: WebProtocolClient,
        command_log: CommandLog,
        output: TextIO,
        logger: logging.Logger | None = None,
    ) -> None:
        self._rcon = rcon
        self._telnet = telnet
        self._web = web
        self._command_log = command_log
        self._output = output
        self._logger = logger or logging.getLogger("rcon_cli.executor")

    @property
    def telnet(self) -> TelnetProtocolClient:
        return self._telnet

    def client_for(self, protocol: ProtocolType) -> ProtocolClient:
        """Pick the client for ``protocol``; anything but telnet and web runs over rcon."""
        if protocol == ProtocolType.TELNET:
            return self._telnet
        if protocol == ProtocolType.WEB:
            return self._web
        return self._rcon

    def execute(self, session: Session, command: str) -> str:
        """Run ``command`` and write the trimmed result to the output stream.

        Output received before a protocol failure is still written. A command log
        failure is raised as ``CommandLogError`` after the result was written.
        """
        if not command:
            raise CommandNotSetError()

        client = self.client_for(session.protocol)
        self._logger.info(
            "command_dispatched",
            extra={"address": session.address, "protocol": session.protocol.value, "command": command},
        )

        failure: ProtocolError | None = None
        try:
            result = client.execute(session.address, session.password, command)
        except ProtocolError as exc:
            failure = exc
            result = exc.partial_result

        result = result.strip()
        if result:
            self._output.write(result + "\n")
            self._output.flush()

        if session.log_path:
            try:
                self._command_log.write(session.log_path, session.address, command, result)
            except Exception as exc:  # noqa: BLE001 - any sink failure is reported as a log error.
                if failure is None:
                    raise CommandLogError(f"write log error: {exc}") from exc
                self._logger.warning("command_log_failed", extra={"path": session.log_path, "error": str(exc)})

        if failure is not None:
            self._logger.warning("command_failed", extra={"address": session.address, "error": str(failure)})
            raise failure

        return result

    def check_credentials(self, session: Session) -> None:
        """Authenticate without running a command; telnet authenticates inside its own session."""
        checker: CredentialChecker = self._web if session.protocol == ProtocolType.WEB else self._rcon
        checker.check_credentials(session.address, session.password)
        self._logger.info("credentials_accepted", extra={"address": session.address})


def run_single(dispatcher: ProtocolDispatcher, session: Session, command: str) -> None:
    """Execute one command after checking the session has an address and password."""
    if not session.address:
        raise AddressNotSetError()
    if not session.password:
        raise PasswordNotSetError()

    dispatcher.execute(session, command)
