"""Connection session model and its resolution from flags and the config file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from rcon_cli.config import DEFAULT_CONFIG_ENV, DEFAULT_CONFIG_NAME, load_config
from rcon_cli.errors import ConfigFileError

logger = logging.getLogger(__name__)


class ProtocolType(str, Enum):
    """Wire protocols a session can be driven over."""

    UNSPECIFIED = ""
    RCON = "rcon"
    TELNET = "telnet"
    WEB = "web"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> ProtocolType:
        """Map user or config text to a member; text naming no protocol becomes ``UNKNOWN``."""
        if value is None:
            return cls.UNSPECIFIED
        try:
            return cls(value.strip())
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def supported(cls) -> tuple[ProtocolType, ...]:
        return (cls.RCON, cls.WEB, cls.TELNET)


DEFAULT_PROTOCOL = ProtocolType.RCON


@dataclass(slots=True)
class Session:
    """Connection context for one invocation.

    The interactive engine fills empty fields in place; only one caller may hold
    a session at a time.
    """

    address: str = ""
    password: str = ""
    protocol: ProtocolType = ProtocolType.UNSPECIFIED
    log_path: str = ""


def resolve_session(
    flags: Session,
    *,
    config_path: str | None = None,
    env_name: str | None = None,
    default_config_path: str = DEFAULT_CONFIG_NAME,
    default_env: str = DEFAULT_CONFIG_ENV,
) -> Session:
    """Merge flag values with one environment block of the config file.

    When both address and password come from flags the config file is not read.
    Otherwise each still-empty field is taken from the selected environment. A
    config failure raises ``ConfigFileError`` carrying the flag-only session.
    """
    session = Session(
        address=flags.address,
        password=flags.password,
        protocol=flags.protocol,
        log_path=flags.log_path,
    )
    if session.address and session.password:
        return session

    try:
        config = load_config(config_path, default_path=default_config_path)
    except ConfigFileError as exc:
        exc.session = session
        raise

    env = env_name or default_env
    record = config.environment(env)
    logger.debug("config_environment_selected", extra={"env": env, "config_path": config_path or default_config_path})

    if not session.address:
        session.address = record.address
    if not session.password:
        session.password = record.password
    if not session.log_path:
        session.log_path = record.log
    if session.protocol == ProtocolType.UNSPECIFIED:
        session.protocol = ProtocolType.parse(record.type)

    return session
