"""Notification levels, severities and the filtering rule.

The level a user picks with ``/notifications`` decides which
severities are forwarded to the chat:

    level        info  warning  error
    all           yes    yes     yes
    important      -     yes     yes
    errorsonly     -      -      yes
    none           -      -       -
"""

from dataclasses import dataclass
from enum import Enum

from .exceptions import MalformedArguments

LEVEL_USAGE = "/notifications <all|important|errorsonly|none>"


class NotificationLevel(str, Enum):
    """How verbose the bot is towards the user.

    Totally ordered from most to least verbose:
    ALL > IMPORTANT > ERRORS_ONLY > NONE.
    """
    ALL = "all"
    IMPORTANT = "important"
    ERRORS_ONLY = "errorsonly"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, NotificationLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, NotificationLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, NotificationLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, NotificationLevel):
            return NotImplemented
        return self.rank >= other.rank

    @property
    def label(self) -> str:
        """Display name used in chat replies ("ErrorsOnly", "All", ...)."""
        return _LEVEL_LABELS[self]

    @classmethod
    def parse(cls, text: str) -> "NotificationLevel":
        """Parse a level name, case-insensitively.

        Raises:
            MalformedArguments: If the text is not one of the four names.
        """
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise MalformedArguments(
                f"Unknown notification level: {text!r}",
                command="/notifications",
                usage=LEVEL_USAGE,
            ) from None


_LEVEL_RANK = {
    NotificationLevel.NONE: 0,
    NotificationLevel.ERRORS_ONLY: 1,
    NotificationLevel.IMPORTANT: 2,
    NotificationLevel.ALL: 3,
}

_LEVEL_LABELS = {
    NotificationLevel.ALL: "All",
    NotificationLevel.IMPORTANT: "Important",
    NotificationLevel.ERRORS_ONLY: "ErrorsOnly",
    NotificationLevel.NONE: "None",
}


class Severity(str, Enum):
    """Severity of a single notification."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# Least verbose level at which each severity is still forwarded
_MINIMUM_LEVEL = {
    Severity.INFO: NotificationLevel.ALL,
    Severity.WARNING: NotificationLevel.IMPORTANT,
    Severity.ERROR: NotificationLevel.ERRORS_ONLY,
}


def meets_threshold(severity: Severity, level: NotificationLevel) -> bool:
    """Return True if a notification of ``severity`` passes ``level``."""
    if level is NotificationLevel.NONE:
        return False
    return level >= _MINIMUM_LEVEL[severity]


@dataclass(frozen=True)
class Notification:
    """A severity-tagged message produced by a transition or a strategy."""
    severity: Severity
    text: str

    @classmethod
    def info(cls, text: str) -> "Notification":
        return cls(Severity.INFO, text)

    @classmethod
    def warning(cls, text: str) -> "Notification":
        return cls(Severity.WARNING, text)

    @classmethod
    def error(cls, text: str) -> "Notification":
        return cls(Severity.ERROR, text)

    def passes(self, level: NotificationLevel) -> bool:
        return meets_threshold(self.severity, level)
