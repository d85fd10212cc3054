"""Shared bot state and its lock-guarded wrapper.

BotState is a plain pydantic record. SharedState owns the single
BotState instance for a handler together with the asyncio.Lock that
guards it and the logical "execution in flight" flag.

Edits are all-or-nothing: ``SharedState.edit()`` hands out a private
deep copy and commits it only if the ``async with`` block exits
cleanly, so concurrent readers never observe a half-applied change.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import AsyncIterator, Dict, Optional, Tuple

from pydantic import BaseModel, Field

from .notifications import NotificationLevel


class BotState(BaseModel):
    """Mutable record shared between dispatch and strategy execution."""
    is_running: bool = False
    last_update: Optional[datetime] = None
    notification_level: NotificationLevel = NotificationLevel.ALL
    custom_data: Dict[str, str] = Field(default_factory=dict)

    def touch(self) -> None:
        """Stamp ``last_update`` with the current time."""
        self.last_update = datetime.now()


class BotPhase(str, Enum):
    """Derived lifecycle phase of the bot."""
    STOPPED = "stopped"
    RUNNING = "running"
    EXECUTING = "executing"


class ExecutionClaim(str, Enum):
    """Outcome of trying to claim the execution slot."""
    GRANTED = "granted"
    NOT_RUNNING = "not_running"
    IN_PROGRESS = "in_progress"


class SharedState:
    """Lock-guarded owner of a BotState.

    The lock is only held for the span of a read or an edit, never for
    the duration of a strategy call. Strategies receive this object
    and use the async helpers below for fine-grained access.

    Args:
        state: Initial state. Copied, so the caller keeps no alias.
    """

    def __init__(self, state: Optional[BotState] = None):
        self._state = state.model_copy(deep=True) if state else BotState()
        self._lock = asyncio.Lock()
        self._executing = False

    async def snapshot(self) -> BotState:
        """Return a deep copy of the committed state."""
        async with self._lock:
            return self._state.model_copy(deep=True)

    @asynccontextmanager
    async def edit(self) -> AsyncIterator[BotState]:
        """Edit the state atomically.

        Usage::

            async with shared.edit() as state:
                state.is_running = True
                state.touch()

        The draft is discarded if the block raises.
        """
        async with self._lock:
            draft = self._state.model_copy(deep=True)
            yield draft
            self._state = draft

    # --- Execution slot ---

    @property
    def executing(self) -> bool:
        """Whether a strategy execution is currently in flight."""
        return self._executing

    async def claim_execution(self) -> ExecutionClaim:
        """Atomically check the run flag and claim the execution slot."""
        async with self._lock:
            if not self._state.is_running:
                return ExecutionClaim.NOT_RUNNING
            if self._executing:
                return ExecutionClaim.IN_PROGRESS
            self._executing = True
            return ExecutionClaim.GRANTED

    async def release_execution(self) -> None:
        """Give the execution slot back."""
        async with self._lock:
            self._executing = False

    async def phase(self) -> BotPhase:
        async with self._lock:
            return self._phase_locked()

    async def snapshot_with_phase(self) -> Tuple[BotState, BotPhase]:
        """Return a snapshot and the phase read under the same lock."""
        async with self._lock:
            return self._state.model_copy(deep=True), self._phase_locked()

    def _phase_locked(self) -> BotPhase:
        if not self._state.is_running:
            return BotPhase.STOPPED
        if self._executing:
            return BotPhase.EXECUTING
        return BotPhase.RUNNING

    # --- Strategy helpers ---

    async def is_running(self) -> bool:
        """Check the run flag. Long strategies poll this to exit early."""
        async with self._lock:
            return self._state.is_running

    async def notification_level(self) -> NotificationLevel:
        async with self._lock:
            return self._state.notification_level

    async def get_custom(self, key: str, default: Optional[str] = None) -> Optional[str]:
        async with self._lock:
            return self._state.custom_data.get(key, default)

    async def set_custom(self, key: str, value: str) -> None:
        async with self.edit() as state:
            state.custom_data[key] = value

    async def update_custom(self, values: Dict[str, str]) -> None:
        """Merge several keys into ``custom_data`` in one edit."""
        async with self.edit() as state:
            state.custom_data.update(values)

    async def delete_custom(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        async with self.edit() as state:
            return state.custom_data.pop(key, None) is not None
