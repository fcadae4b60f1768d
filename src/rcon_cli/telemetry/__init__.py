"""Command log sink and diagnostic logging."""

from .logging import CommandLog, FileCommandLog, configure_logging

__all__ = ["CommandLog", "FileCommandLog", "configure_logging"]
