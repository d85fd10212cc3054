"""Turns raw chat text into a Command."""

from __future__ import annotations

import structlog

from ..exceptions import MalformedArguments
from ..notifications import LEVEL_USAGE, NotificationLevel
from .base import BUILTIN_COMMANDS, Command, CommandKind

logger = structlog.get_logger("stratwire.bot")


class CommandParser:
    """Parser for the fixed stratwire command vocabulary.

    Leading tokens are matched case-sensitively. Text that does not
    start with a known token becomes ``Command.unknown`` so the
    dispatcher can answer with a help hint. The only failure is a
    ``/notifications`` call with the wrong arguments.
    """

    def parse(self, text: str) -> Command:
        """Parse one message.

        Args:
            text: Raw message text. Surrounding whitespace is ignored.

        Returns:
            The parsed Command.

        Raises:
            MalformedArguments: ``/notifications`` without exactly one
                valid level argument.
        """
        stripped = text.strip()
        tokens = stripped.split()
        if not tokens:
            return Command.unknown(stripped)

        kind = BUILTIN_COMMANDS.get(tokens[0])
        if kind is None:
            logger.debug("command_unrecognized", token=tokens[0][:32])
            return Command.unknown(stripped)

        args = tokens[1:]
        if kind is CommandKind.SET_NOTIFICATIONS:
            if len(args) != 1:
                raise MalformedArguments(
                    f"Expected exactly one level, got {len(args)}",
                    command=tokens[0],
                    usage=LEVEL_USAGE,
                )
            level = NotificationLevel.parse(args[0])
            return Command.set_notifications(level, raw=stripped)

        return Command(kind, raw=stripped)


def parse_command(text: str) -> Command:
    """Module-level shortcut for ``CommandParser().parse``."""
    return CommandParser().parse(text)
