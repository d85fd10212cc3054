"""Command vocabulary and parser for the stratwire bot.

Provides the Command/CommandKind types, the BUILTIN_COMMANDS token
table and the CommandParser that maps raw chat text onto them.
"""

from .base import (
    BUILTIN_COMMANDS,
    COMMAND_DESCRIPTIONS,
    Command,
    CommandKind,
    build_help_text,
)
from .parser import CommandParser, parse_command

__all__ = [
    "BUILTIN_COMMANDS",
    "COMMAND_DESCRIPTIONS",
    "Command",
    "CommandKind",
    "CommandParser",
    "build_help_text",
    "parse_command",
]
