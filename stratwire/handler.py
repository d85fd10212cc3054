"""Command dispatch and strategy orchestration for stratwire.

BotHandler owns the shared bot state, turns incoming chat text into
state transitions or strategy runs, and filters the resulting
notifications by the user's level.

State machine (derived from the run flag plus the execution slot):

    Stopped  --/start, /restart-->  Running  --/execute-->  Executing
    Running  <--strategy returns--  Executing
    any      --/stop-->             Stopped

Key classes:
    BotHandler: Owns SharedState, dispatches commands, runs the
        strategy, exposes ``handle_incoming`` / ``serve`` to the host.

Key functions:
    log_task_exception: done-callback for background execution tasks.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set, Type

import structlog

from .commands import Command, CommandKind, CommandParser, build_help_text
from .exceptions import DomainError, MalformedArguments, TransportError
from .notifications import Notification
from .renderer import render_table
from .state import BotPhase, BotState, ExecutionClaim, SharedState
from .strategy import Strategy
from .transport import DEFAULT_MAX_MESSAGE_LENGTH, ChatTransport, split_message_chunks

logger = structlog.get_logger("stratwire.bot")

CommandCallable = Callable[[Command, str], Awaitable[List[Notification]]]

MSG_STARTED = "Bot started."
MSG_ALREADY_RUNNING = "Bot is already running."
MSG_STOPPED = "Bot stopped."
MSG_RESTARTED = "Bot restarted."
MSG_NOT_RUNNING = "Bot is not running. Use /start first."
MSG_IN_PROGRESS = "Strategy execution in progress, try again later."
MSG_EXECUTION_DONE = "Strategy execution completed."
MSG_UNRECOGNIZED = "Unrecognized command, see /help."


def log_task_exception(task: asyncio.Task):
    """Log exceptions from background tasks instead of silently losing them."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error("background_task_failed", error=str(exc), exc_type=type(exc).__name__)


class BotHandler:
    """Generic chat-command handler around a pluggable strategy.

    ``handle_incoming`` is the pure dispatch entry point: it returns
    the notifications to show and leaves delivery to the caller.
    ``process`` and ``serve`` add delivery through the transport for
    hosts that want the full loop.

    Args:
        strategy_cls: Strategy subclass; instances come from its
            ``create`` factory, lazily on the first execution.
        transport: Chat transport handed to the strategy and used by
            ``process``/``serve`` for delivery.
        state: Initial BotState (copied). Defaults to a stopped bot.
        allowed_chats: If non-empty, ``serve`` ignores other chats.
        max_message_length: Chunk size for outgoing messages.
    """

    def __init__(
        self,
        strategy_cls: Type[Strategy],
        transport: ChatTransport,
        state: Optional[BotState] = None,
        *,
        allowed_chats: Optional[Sequence[str]] = None,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
    ):
        self.strategy_cls = strategy_cls
        self.transport = transport
        self.state = SharedState(state)
        self.parser = CommandParser()
        self.allowed_chats = frozenset(allowed_chats or ())
        self.max_message_length = max_message_length
        self._strategy: Optional[Strategy] = None
        self._background: Set[asyncio.Task] = set()

    def get_commands(self) -> Dict[CommandKind, CommandCallable]:
        return {
            CommandKind.START: self.handle_start,
            CommandKind.HELP: self.handle_help,
            CommandKind.STATUS: self.handle_status,
            CommandKind.EXECUTE: self.handle_execute,
            CommandKind.STOP: self.handle_stop,
            CommandKind.RESTART: self.handle_restart,
            CommandKind.SET_NOTIFICATIONS: self.handle_set_notifications,
            CommandKind.UNKNOWN: self.handle_unknown,
        }

    async def current_state(self) -> BotState:
        """Read-only snapshot of the bot state."""
        return await self.state.snapshot()

    # --- Dispatch ---

    async def handle_incoming(self, text: str, chat_id: str) -> List[Notification]:
        """Parse and dispatch one message.

        Args:
            text: Raw message text.
            chat_id: Chat the message came from.

        Returns:
            Notifications that pass the current level, in order.
        """
        try:
            command = self.parser.parse(text)
        except MalformedArguments as e:
            return await self._filtered([self._malformed_notice(e)])
        return await self.dispatch(command, chat_id)

    async def dispatch(self, command: Command, chat_id: str) -> List[Notification]:
        """Run the transition for an already parsed command."""
        logger.info("command_dispatched", command=command.kind.value, chat_id=chat_id)
        handler = self.get_commands()[command.kind]
        notifications = await handler(command, chat_id)
        return await self._filtered(notifications)

    def _malformed_notice(self, error: MalformedArguments) -> Notification:
        logger.info("command_malformed", command=error.command, error=error.message)
        return Notification.warning(f"{error.message}. Usage: {error.usage}")

    async def _filtered(self, notifications: List[Notification]) -> List[Notification]:
        level = await self.state.notification_level()
        passed = [n for n in notifications if n.passes(level)]
        if len(passed) != len(notifications):
            logger.debug(
                "notifications_filtered",
                level=level.value,
                dropped=len(notifications) - len(passed),
            )
        return passed

    # --- Command handlers ---

    async def handle_start(self, command: Command, chat_id: str) -> List[Notification]:
        async with self.state.edit() as state:
            already_running = state.is_running
            if not already_running:
                state.is_running = True
                state.touch()
        if already_running:
            return [Notification.info(MSG_ALREADY_RUNNING)]
        logger.info("bot_started", chat_id=chat_id)
        return [Notification.info(MSG_STARTED)]

    async def handle_help(self, command: Command, chat_id: str) -> List[Notification]:
        return [Notification.info(build_help_text())]

    async def handle_status(self, command: Command, chat_id: str) -> List[Notification]:
        """Render the state snapshot, plus the strategy's own status when running."""
        snapshot, phase = await self.state.snapshot_with_phase()

        last_update = (
            snapshot.last_update.isoformat(sep=" ", timespec="seconds")
            if snapshot.last_update else "never"
        )
        rows = [
            ("state", phase.value.capitalize()),
            ("strategy", self._strategy.display_name if self._strategy else self.strategy_cls.__name__),
            ("notifications", snapshot.notification_level.label),
            ("last update", last_update),
        ]
        for key in sorted(snapshot.custom_data):
            rows.append((key, snapshot.custom_data[key]))

        text = "Bot status:\n" + render_table(["Field", "Value"], rows)

        if snapshot.is_running and self._strategy is not None:
            try:
                extra = await self._strategy.get_status()
            except Exception as e:
                logger.warning("strategy_status_error", error=str(e))
                extra = f"Failed to retrieve strategy status: {e}"
            if extra:
                text += f"\n\n{extra}"

        return [Notification.info(text)]

    async def handle_execute(self, command: Command, chat_id: str) -> List[Notification]:
        rejection = await self.claim_execution()
        if rejection is not None:
            return [rejection]
        return await self.run_claimed(chat_id)

    async def handle_stop(self, command: Command, chat_id: str) -> List[Notification]:
        async with self.state.edit() as state:
            state.is_running = False
            state.touch()
        if self.state.executing:
            logger.info("stop_during_execution", chat_id=chat_id)
        logger.info("bot_stopped", chat_id=chat_id)
        return [Notification.info(MSG_STOPPED)]

    async def handle_restart(self, command: Command, chat_id: str) -> List[Notification]:
        """Stop and start in one edit; ``custom_data`` is preserved."""
        async with self.state.edit() as state:
            state.is_running = True
            state.touch()
        # Next execution builds a fresh instance
        self._strategy = None
        logger.info("bot_restarted", chat_id=chat_id)
        return [Notification.info(MSG_RESTARTED)]

    async def handle_set_notifications(
        self, command: Command, chat_id: str
    ) -> List[Notification]:
        level = command.level
        async with self.state.edit() as state:
            state.notification_level = level
            state.touch()
        logger.info("notification_level_changed", level=level.value)
        return [Notification.info(f"Notification level set to {level.label}.")]

    async def handle_unknown(self, command: Command, chat_id: str) -> List[Notification]:
        return [Notification.info(MSG_UNRECOGNIZED)]

    # --- Strategy execution ---

    async def claim_execution(self) -> Optional[Notification]:
        """Claim the execution slot.

        Returns:
            None if the slot was claimed (the caller must then call
            ``run_claimed``), otherwise the Warning explaining why not.
        """
        claim = await self.state.claim_execution()
        if claim is ExecutionClaim.NOT_RUNNING:
            return Notification.warning(MSG_NOT_RUNNING)
        if claim is ExecutionClaim.IN_PROGRESS:
            logger.info("execution_rejected_in_progress")
            return Notification.warning(MSG_IN_PROGRESS)
        return None

    async def run_claimed(self, chat_id: str) -> List[Notification]:
        """Run the strategy once on a claimed slot and release it.

        Strategy failures never escape: they are logged, the instance
        is discarded so the next run re-creates it, and an Error
        notification is returned. The bot stays running.
        """
        try:
            strategy = await self._ensure_strategy()
            logger.info("strategy_execution_started", strategy=strategy.display_name)
            await strategy.execute(self.state, self.transport, chat_id)
        except Exception as e:
            error = e if isinstance(e, DomainError) else DomainError(
                str(e) or type(e).__name__, exc_type=type(e).__name__
            )
            logger.error(
                "strategy_execution_failed",
                error=str(error),
                exc_type=type(e).__name__,
            )
            self._strategy = None
            return [Notification.error(f"Strategy execution failed: {error.message}")]
        finally:
            await self.state.release_execution()

        logger.info("strategy_execution_completed")
        return [Notification.info(MSG_EXECUTION_DONE)]

    async def execute_scheduled(self, chat_id: str) -> List[Notification]:
        """Execution path for timer-driven runs.

        Unlike ``/execute``, a stopped or busy bot is skipped silently.
        """
        if await self.claim_execution() is not None:
            logger.debug("scheduled_execution_skipped")
            return []
        return await self._filtered(await self.run_claimed(chat_id))

    async def _ensure_strategy(self) -> Strategy:
        if self._strategy is None:
            try:
                self._strategy = await self.strategy_cls.create()
            except Exception as e:
                raise DomainError(
                    f"Failed to initialize strategy: {e}",
                    strategy=self.strategy_cls.__name__,
                ) from e
            logger.info("strategy_initialized", strategy=self._strategy.display_name)
        return self._strategy

    # --- Delivery ---

    async def deliver(self, chat_id: str, notifications: List[Notification]) -> None:
        """Send already filtered notifications through the transport.

        Raises:
            TransportError: Propagated unchanged for the host to handle.
        """
        for notification in notifications:
            for chunk in split_message_chunks(notification.text, self.max_message_length):
                await self.transport.send(chat_id, chunk)

    async def process(self, text: str, chat_id: str) -> List[Notification]:
        """Handle one message and deliver the replies.

        Raises:
            TransportError: If delivery fails. State changes made by the
                command are kept.
        """
        notifications = await self.handle_incoming(text, chat_id)
        await self.deliver(chat_id, notifications)
        return notifications

    async def serve(self) -> None:
        """Consume ``transport.receive()`` until it ends.

        Messages are handled in arrival order. An accepted ``/execute``
        claims its slot in order and then runs in the background so
        later commands (``/status``, ``/stop``) are not held up.
        Delivery failures are logged and the loop keeps going.
        """
        async for chat_id, text in self.transport.receive():
            if self.allowed_chats and chat_id not in self.allowed_chats:
                logger.warning("unauthorized_message", chat_id=chat_id)
                continue
            try:
                await self._serve_one(chat_id, text)
            except TransportError as e:
                logger.error("reply_delivery_failed", chat_id=chat_id, error=str(e))

    async def _serve_one(self, chat_id: str, text: str) -> None:
        try:
            command = self.parser.parse(text)
        except MalformedArguments as e:
            await self.deliver(chat_id, await self._filtered([self._malformed_notice(e)]))
            return

        if command.kind is not CommandKind.EXECUTE:
            await self.deliver(chat_id, await self.dispatch(command, chat_id))
            return

        logger.info("command_dispatched", command=command.kind.value, chat_id=chat_id)
        rejection = await self.claim_execution()
        if rejection is not None:
            await self.deliver(chat_id, await self._filtered([rejection]))
            return

        task = asyncio.create_task(self._run_and_deliver(chat_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        task.add_done_callback(log_task_exception)

    async def _run_and_deliver(self, chat_id: str) -> None:
        notifications = await self._filtered(await self.run_claimed(chat_id))
        await self.deliver(chat_id, notifications)

    async def close(self) -> None:
        """Cancel background executions at process shutdown."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            # A task cancelled before it started never reached its finally
            await self.state.release_execution()
        logger.info("handler_closed", cancelled=len(tasks))
