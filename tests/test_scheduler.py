"""Tests for the periodic strategy scheduler."""

import asyncio

import pytest

from stratwire.exceptions import TransportError
from stratwire.handler import BotHandler
from stratwire.scheduler import StrategyScheduler
from stratwire.state import BotState
from stratwire.strategy import HeartbeatStrategy

CHAT = "chat-1"


class TestStrategyScheduler:

    def test_rejects_non_positive_interval(self, transport):
        handler = BotHandler(HeartbeatStrategy, transport)
        with pytest.raises(ValueError):
            StrategyScheduler(handler, CHAT, 0)

    @pytest.mark.asyncio
    async def test_tick_skips_when_stopped(self, transport):
        handler = BotHandler(HeartbeatStrategy, transport)
        scheduler = StrategyScheduler(handler, CHAT, 60)
        await scheduler.tick()
        assert transport.sent == []
        assert "heartbeat_count" not in (await handler.current_state()).custom_data

    @pytest.mark.asyncio
    async def test_tick_runs_and_delivers_when_running(self, transport):
        handler = BotHandler(HeartbeatStrategy, transport, BotState(is_running=True))
        scheduler = StrategyScheduler(handler, CHAT, 60)
        await scheduler.tick()
        assert transport.texts == ["Heartbeat #1", "Strategy execution completed."]

    @pytest.mark.asyncio
    async def test_tick_skips_when_busy(self, transport):
        handler = BotHandler(HeartbeatStrategy, transport, BotState(is_running=True))
        await handler.state.claim_execution()
        scheduler = StrategyScheduler(handler, CHAT, 60)
        await scheduler.tick()
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_tick_logs_delivery_failure(self, transport):
        handler = BotHandler(HeartbeatStrategy, transport, BotState(is_running=True))
        scheduler = StrategyScheduler(handler, CHAT, 60)
        transport.fail_with = TransportError("offline")
        # Strategy's own send fails -> recovered as an Error notification,
        # whose delivery also fails -> logged, not raised
        await scheduler.tick()
        assert handler.state.executing is False

    @pytest.mark.asyncio
    async def test_start_and_stop_loop(self, transport):
        handler = BotHandler(HeartbeatStrategy, transport, BotState(is_running=True))
        scheduler = StrategyScheduler(handler, CHAT, 0.01)
        scheduler.start()
        assert scheduler.is_active
        for _ in range(200):
            if transport.sent:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()
        assert not scheduler.is_active
        assert "Heartbeat #1" in transport.texts

    @pytest.mark.asyncio
    async def test_loop_survives_unexpected_tick_error(self, transport):
        handler = BotHandler(HeartbeatStrategy, transport, BotState(is_running=True))
        scheduler = StrategyScheduler(handler, CHAT, 0.01)
        original_deliver = handler.deliver
        calls = 0

        async def flaky_deliver(chat_id, notifications):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("socket reset")
            await original_deliver(chat_id, notifications)

        handler.deliver = flaky_deliver
        scheduler.start()
        for _ in range(200):
            if "Heartbeat #2" in transport.texts:
                break
            await asyncio.sleep(0.01)
        try:
            assert scheduler.is_active
            assert "Heartbeat #2" in transport.texts
        finally:
            await scheduler.stop()
