"""stratwire: command-dispatch and shared-state core for strategy chat bots."""

__version__ = "0.1.0"

from .commands import Command, CommandKind, CommandParser
from .exceptions import (
    ConfigError,
    ConfigurationError,
    DomainError,
    ErrorCategory,
    MalformedArguments,
    StratwireError,
    TransportError,
)
from .handler import BotHandler
from .notifications import Notification, NotificationLevel, Severity, meets_threshold
from .scheduler import StrategyScheduler
from .state import BotPhase, BotState, SharedState
from .strategy import HeartbeatStrategy, Strategy
from .transport import ChatTransport, StdioTransport, send_notification

__all__ = [
    "BotHandler",
    "BotPhase",
    "BotState",
    "ChatTransport",
    "Command",
    "CommandKind",
    "CommandParser",
    "ConfigError",
    "ConfigurationError",
    "DomainError",
    "ErrorCategory",
    "HeartbeatStrategy",
    "MalformedArguments",
    "Notification",
    "NotificationLevel",
    "Severity",
    "SharedState",
    "StdioTransport",
    "Strategy",
    "StrategyScheduler",
    "StratwireError",
    "TransportError",
    "meets_threshold",
    "send_notification",
]
