"""Remote console client for game servers over rcon, telnet and web protocols."""

__version__ = "0.1.0"
