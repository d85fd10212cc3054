"""Parsed command types for the stratwire bot.

Key classes:
    CommandKind: Enum of every command the handler understands.
    Command: Immutable parsed command plus its argument.

Constants:
    BUILTIN_COMMANDS: Mapping of literal chat tokens to CommandKind.
    COMMAND_DESCRIPTIONS: One-line help text per token, in display order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..notifications import NotificationLevel


class CommandKind(str, Enum):
    """Every command variant the dispatcher routes on."""
    START = "start"
    HELP = "help"
    STATUS = "status"
    EXECUTE = "execute"
    STOP = "stop"
    RESTART = "restart"
    SET_NOTIFICATIONS = "notifications"
    UNKNOWN = "unknown"


# Single source of truth for recognized tokens (case-sensitive).
BUILTIN_COMMANDS: Dict[str, CommandKind] = {
    "/start": CommandKind.START,
    "/help": CommandKind.HELP,
    "/status": CommandKind.STATUS,
    "/execute": CommandKind.EXECUTE,
    "/stop": CommandKind.STOP,
    "/restart": CommandKind.RESTART,
    "/notifications": CommandKind.SET_NOTIFICATIONS,
}

COMMAND_DESCRIPTIONS: Dict[str, str] = {
    "/help": "display this text",
    "/start": "start the bot",
    "/stop": "stop the bot",
    "/restart": "stop and start the bot again",
    "/status": "show the current bot state",
    "/execute": "run the strategy once",
    "/notifications <level>": "set notification level (all/important/errorsonly/none)",
}


@dataclass(frozen=True)
class Command:
    """A parsed chat command.

    Attributes:
        kind: Which command this is.
        level: Target level, only set for SET_NOTIFICATIONS.
        raw: Original (stripped) message text.
    """
    kind: CommandKind
    level: Optional[NotificationLevel] = None
    raw: str = ""

    @classmethod
    def unknown(cls, raw: str) -> "Command":
        return cls(CommandKind.UNKNOWN, raw=raw)

    @classmethod
    def set_notifications(cls, level: NotificationLevel, raw: str = "") -> "Command":
        return cls(CommandKind.SET_NOTIFICATIONS, level=level, raw=raw)


def build_help_text() -> str:
    """Return the static command list shown by /help."""
    lines = ["These commands are supported:"]
    for token, description in COMMAND_DESCRIPTIONS.items():
        lines.append(f"{token} - {description}")
    return "\n".join(lines)
