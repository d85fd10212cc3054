"""Main entry point for stratwire.

Initializes logging in two phases (defaults then config-driven),
resolves the configured strategy, wires a StdioTransport into a
BotHandler (plus a StrategyScheduler when an interval is set) and
runs until stdin closes or SIGTERM/SIGINT arrives.

Key functions:
    main: Async entry point.
    run: Synchronous wrapper that calls asyncio.run(main()).
"""

import asyncio
import signal
import sys

import structlog

from .logging_config import setup_logging


async def main():
    """Main async entry point."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("stratwire")

    from . import __version__
    from .config import get_config
    from .exceptions import ConfigurationError
    from .handler import BotHandler
    from .scheduler import StrategyScheduler
    from .state import BotState
    from .transport import StdioTransport

    logger.info("stratwire_starting", version=__version__)

    try:
        config = get_config()
        config.validate()

        # Phase 2: reconfigure with real config
        setup_logging(config)

        strategy_cls = config.strategy_class
        initial_state = BotState(
            is_running=config.start_running,
            notification_level=config.notification_level,
        )
        interval = config.execute_interval
        max_message_length = config.max_message_length
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e), setting=e.setting_name)
        raise SystemExit(2)

    chat_id = config.chat_id or "console"
    transport = StdioTransport(chat_id=chat_id)
    handler = BotHandler(
        strategy_cls,
        transport,
        initial_state,
        allowed_chats=config.allowed_chats,
        max_message_length=max_message_length,
    )

    scheduler = None
    if interval:
        scheduler = StrategyScheduler(handler, chat_id, interval)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows: add_signal_handler not supported
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: handle_shutdown(signal.SIGINT),
                )

    serve_task = asyncio.create_task(handler.serve())
    shutdown_task = asyncio.create_task(shutdown_event.wait())
    try:
        if scheduler:
            scheduler.start()
        await asyncio.wait(
            {serve_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in (serve_task, shutdown_task):
            task.cancel()
        results = await asyncio.gather(serve_task, shutdown_task, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error("serve_failed", error=str(result), exc_type=type(result).__name__)
        if scheduler:
            await scheduler.stop()
        await handler.close()
        logger.info("stratwire_stopped")


def run():
    """Synchronous entry point for the ``stratwire`` console script."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except SystemExit as e:
        sys.exit(e.code)


if __name__ == "__main__":
    run()
