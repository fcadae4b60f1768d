"""Terminal conversation: prompt for missing details, settle the protocol, then run commands."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TextIO

from rcon_cli import terminal
from rcon_cli.errors import TooManyFailedAttemptsError
from rcon_cli.executor import ProtocolDispatcher
from rcon_cli.session import ProtocolType, Session

ATTEMPTS_LIMIT = 3


class EngineState(str, Enum):
    """Stages of the interactive conversation."""

    AWAIT_ADDRESS = "await_address"
    AWAIT_PASSWORD = "await_password"
    PROTOCOL_NEGOTIATION = "protocol_negotiation"
    COMMAND_LOOP = "command_loop"
    TERMINATED = "terminated"


class InteractiveEngine:
    """Reads commands from a line stream and runs them until ``:q``, EOF or a failure.

    The engine owns ``session`` for its whole run and fills empty fields in place.
    """

    def __init__(
        self,
        dispatcher: ProtocolDispatcher,
        input_stream: TextIO,
        output: TextIO,
        *,
        attempts_limit: int = ATTEMPTS_LIMIT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._input = input_stream
        self._output = output
        self._attempts_limit = attempts_limit
        self._logger = logger or logging.getLogger("rcon_cli.interactive")
        self._state = EngineState.AWAIT_ADDRESS

    @property
    def state(self) -> EngineState:
        return self._state

    def run(self, session: Session) -> None:
        """Drive the conversation to completion; errors end the session and propagate."""
        try:
            self._await_address(session)
            self._await_password(session)
            if self._negotiate_protocol(session):
                self._command_loop(session)
        finally:
            self._state = EngineState.TERMINATED

    def _await_address(self, session: Session) -> None:
        self._state = EngineState.AWAIT_ADDRESS
        # An empty answer is kept as is and fails later at the credential check.
        if not session.address:
            terminal.prompt(self._output, terminal.ADDRESS_PROMPT)
            session.address = terminal.read_line(self._input).strip()

    def _await_password(self, session: Session) -> None:
        self._state = EngineState.AWAIT_PASSWORD
        if not session.password:
            terminal.prompt(self._output, terminal.PASSWORD_PROMPT)
            session.password = terminal.read_line(self._input).strip()

    def _negotiate_protocol(self, session: Session) -> bool:
        """Settle the protocol type; return False when telnet took over the whole session."""
        self._state = EngineState.PROTOCOL_NEGOTIATION
        attempts = 0
        while True:
            if session.protocol == ProtocolType.UNSPECIFIED:
                terminal.prompt(self._output, terminal.PROTOCOL_PROMPT)
                session.protocol = ProtocolType.parse(terminal.read_line(self._input))

            if session.protocol == ProtocolType.TELNET:
                self._logger.info("telnet_session_delegated", extra={"address": session.address})
                self._dispatcher.telnet.interactive(self._input, self._output, session.address, session.password)
                return False

            if session.protocol in (ProtocolType.UNSPECIFIED, ProtocolType.RCON, ProtocolType.WEB):
                self._dispatcher.check_credentials(session)
                return True

            attempts += 1
            session.protocol = ProtocolType.UNSPECIFIED
            allowed = ", ".join(repr(p.value) for p in ProtocolType.supported())
            self._output.write(f"Unsupported protocol type. Allowed {allowed} protocols\n")
            self._logger.info("protocol_rejected", extra={"attempt": attempts})
            if attempts >= self._attempts_limit:
                raise TooManyFailedAttemptsError(attempts)

    def _command_loop(self, session: Session) -> None:
        self._state = EngineState.COMMAND_LOOP
        terminal.prompt(self._output, terminal.waiting_banner(session.address) + terminal.COMMAND_PROMPT)
        for command in terminal.iter_lines(self._input):
            if command == terminal.QUIT_COMMAND:
                return
            if command:
                self._dispatcher.execute(session, command)
            terminal.prompt(self._output, terminal.COMMAND_PROMPT)
