"""Strategy contract for stratwire.

A strategy is the host-supplied unit of domain logic the bot runs on
``/execute`` (and on every scheduler tick). The handler creates
instances through the ``create`` factory, calls ``execute`` at most
once at a time per handler, and reports failures to the chat instead
of crashing.

Key classes:
    Strategy: ABC every host strategy extends.
    HeartbeatStrategy: Minimal bundled strategy, used when no strategy
        is configured.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import structlog

from .notifications import Notification
from .state import SharedState
from .transport import ChatTransport, send_notification

logger = structlog.get_logger("stratwire.strategy")


class Strategy(ABC):
    """Base class for pluggable strategies.

    Subclasses implement ``execute``. Override ``create`` when building
    an instance needs I/O (loading config, connecting to an exchange)
    and ``get_status`` to contribute a section to ``/status``.

    Instances are not assumed to be safe against concurrent ``execute``
    calls; the handler guarantees there is never more than one.
    """

    name: str = ""

    @classmethod
    async def create(cls) -> "Strategy":
        """Build a fresh instance. May raise; the handler reports it."""
        return cls()

    @abstractmethod
    async def execute(
        self, state: SharedState, transport: ChatTransport, chat_id: str
    ) -> None:
        """Run the strategy once.

        Args:
            state: Lock-mediated handle to the bot state. Check
                ``await state.is_running()`` to honour ``/stop`` early.
            transport: Chat transport for the strategy's own messages.
                Use ``send_notification`` so the user's level applies.
            chat_id: Chat the run was triggered for.

        Raises:
            DomainError: The run failed. Other exceptions are wrapped
                into DomainError by the handler.
        """
        ...

    async def get_status(self) -> Optional[str]:
        """Return extra text for ``/status``, or None."""
        return None

    @property
    def display_name(self) -> str:
        return self.name or type(self).__name__


class HeartbeatStrategy(Strategy):
    """Counts executions in ``custom_data`` and reports each one.

    Keys written: ``heartbeat_count``, ``heartbeat_at``.
    """

    name = "heartbeat"

    def __init__(self):
        self._last_count = 0

    async def execute(
        self, state: SharedState, transport: ChatTransport, chat_id: str
    ) -> None:
        async with state.edit() as draft:
            count = int(draft.custom_data.get("heartbeat_count", "0")) + 1
            draft.custom_data["heartbeat_count"] = str(count)
            draft.custom_data["heartbeat_at"] = datetime.now().isoformat(timespec="seconds")
            level = draft.notification_level

        logger.debug("heartbeat", count=count)
        await send_notification(
            transport, chat_id, Notification.info(f"Heartbeat #{count}"), level
        )
        self._last_count = count

    async def get_status(self) -> Optional[str]:
        return f"Heartbeats sent: {self._last_count}"
