"""Periodic strategy execution.

Runs the handler's execution path on a fixed interval for one chat,
so a strategy keeps working between ``/execute`` commands. Ticks are
skipped while the bot is stopped or an execution is still in flight.
"""

import asyncio
from typing import Optional

import structlog

from .exceptions import TransportError
from .handler import BotHandler

logger = structlog.get_logger("stratwire.strategy")


class StrategyScheduler:
    """Drives ``BotHandler.execute_scheduled`` every ``interval_seconds``.

    Args:
        handler: Handler whose strategy is run.
        chat_id: Chat that receives the strategy's notifications.
        interval_seconds: Delay between ticks (must be positive).
    """

    def __init__(self, handler: BotHandler, chat_id: str, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.handler = handler
        self.chat_id = chat_id
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Requires a running event loop."""
        if self.is_active:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(
            "scheduler_started",
            chat_id=self.chat_id,
            interval_seconds=self.interval_seconds,
        )

    async def stop(self) -> None:
        """Stop ticking. Cancels a scheduled execution that is still running."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("scheduler_stopped", chat_id=self.chat_id)

    async def tick(self) -> None:
        """Run one scheduled execution and deliver its notifications."""
        notifications = await self.handler.execute_scheduled(self.chat_id)
        try:
            await self.handler.deliver(self.chat_id, notifications)
        except TransportError as e:
            logger.error("scheduled_delivery_failed", chat_id=self.chat_id, error=str(e))

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    "scheduler_tick_failed",
                    chat_id=self.chat_id,
                    error=str(e),
                    exc_type=type(e).__name__,
                )
