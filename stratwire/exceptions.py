"""Exception hierarchy for stratwire.

Every error the handler can surface to its host derives from
StratwireError, which carries an ErrorCategory so callers can make
retry decisions without string matching.

Propagation:
    TransportError: raised by the chat transport, always propagated
        to the host.
    MalformedArguments: raised by the command parser, recovered
        inside dispatch as a Warning notification.
    DomainError: raised by strategies, recovered inside dispatch as
        an Error notification.
    ConfigurationError: raised during bootstrap only.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for retry decisions."""
    TRANSIENT = "transient"          # Worth retrying (network hiccup, provider 5xx)
    PERMANENT = "permanent"          # Not worth retrying (bad input, strategy bug)
    INFRASTRUCTURE = "infrastructure"  # Missing config, bad import path


class StratwireError(Exception):
    """Base exception for all stratwire errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification for retry/escalation decisions.
        module: Originating module name (e.g. "handler").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class TransportError(StratwireError):
    """The chat transport failed to deliver or receive a message.

    Defaults to TRANSIENT: the host decides whether to retry.

    Attributes:
        chat_id: Destination chat (if known).
    """

    def __init__(
        self,
        message: str = "",
        *,
        chat_id: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.TRANSIENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.chat_id = chat_id
        super().__init__(
            message, category=category, module=module or "transport", **context
        )


# ---------------------------------------------------------------------------
# Command parsing
# ---------------------------------------------------------------------------

class MalformedArguments(StratwireError):
    """A recognized command was given arguments of the wrong shape.

    Attributes:
        command: The command token (e.g. "/notifications").
        usage: Expected syntax, shown back to the user.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        usage: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        self.usage = usage
        super().__init__(
            message, category=category, module=module or "commands", **context
        )


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------

class DomainError(StratwireError):
    """Error raised by a strategy while being created or executed."""

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message, category=category, module=module or "strategy", **context
        )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(StratwireError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )


# Short alias used by bootstrap code
ConfigError = ConfigurationError
