"""Chat transport interface and notification delivery.

The handler never talks to a chat provider directly. Hosts plug in a
ChatTransport implementation (Telegram, Signal, a test double, ...);
stratwire only relies on ``send`` and ``receive``.

Key classes:
    ChatTransport: ABC the host's chat client must implement.
    StdioTransport: Line-based transport over stdin/stdout, used by the
        bundled entry point.

Key functions:
    send_notification: Level-filter a notification and deliver it in
        chunks that fit the provider's message size limit.
    split_message_chunks: The chunking rule on its own.
"""

import asyncio
import sys
import threading
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional, TextIO, Tuple

import structlog

from .exceptions import TransportError
from .notifications import Notification, NotificationLevel

logger = structlog.get_logger("stratwire.transport")

# Telegram's hard limit; other providers are configured via max_message_length
DEFAULT_MAX_MESSAGE_LENGTH = 4096


class ChatTransport(ABC):
    """Minimal chat client surface consumed by the handler."""

    @abstractmethod
    async def send(self, chat_id: str, text: str) -> None:
        """Deliver ``text`` to ``chat_id``.

        Raises:
            TransportError: If the provider rejected or lost the message.
        """
        ...

    @abstractmethod
    def receive(self) -> AsyncIterator[Tuple[str, str]]:
        """Yield ``(chat_id, raw_text)`` pairs as messages arrive."""
        ...


def split_message_chunks(message: str, max_len: int) -> List[str]:
    """Split ``message`` into pieces of at most ``max_len`` characters.

    Breaks on line boundaries where possible; a single line longer than
    ``max_len`` is hard-split. Newlines are kept with the line they end.
    """
    if not message:
        return []
    if max_len < 1:
        raise ValueError("max_len must be positive")

    chunks: List[str] = []
    current = ""
    for segment in message.splitlines(keepends=True):
        if len(current) + len(segment) <= max_len:
            current += segment
            continue

        if current:
            chunks.append(current)
            current = ""

        while len(segment) > max_len:
            chunks.append(segment[:max_len])
            segment = segment[max_len:]
        current = segment

    if current:
        chunks.append(current)
    return chunks


async def send_notification(
    transport: ChatTransport,
    chat_id: str,
    notification: Notification,
    level: NotificationLevel,
    max_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
) -> bool:
    """Send ``notification`` if it passes ``level``.

    Strategies use this for their own output so that ``/notifications``
    applies to it as well.

    Returns:
        True if at least one chunk was sent.

    Raises:
        TransportError: Propagated from the transport; remaining chunks
            are not sent.
    """
    if not notification.passes(level):
        logger.debug(
            "notification_filtered",
            severity=notification.severity.value,
            level=level.value,
        )
        return False

    chunks = split_message_chunks(notification.text, max_length)
    for chunk in chunks:
        try:
            await transport.send(chat_id, chunk)
        except TransportError as e:
            logger.error("send_failed", chat_id=chat_id, error=str(e))
            raise
    return bool(chunks)


class StdioTransport(ChatTransport):
    """Transport that reads commands from a text stream and prints replies.

    Every line read is attributed to ``chat_id``. Intended for local runs
    and smoke tests of a strategy without a chat provider.

    The stream is read on a daemon thread that hands lines to the event
    loop through a queue, so cancelling ``receive`` returns at once and
    a blocked read never holds up interpreter shutdown.

    Args:
        chat_id: Identity assigned to the local user.
        stdin: Input stream (defaults to ``sys.stdin``).
        stdout: Output stream (defaults to ``sys.stdout``).
    """

    def __init__(
        self,
        chat_id: str = "console",
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ):
        self.chat_id = chat_id
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._reader: Optional[threading.Thread] = None

    async def send(self, chat_id: str, text: str) -> None:
        try:
            self._stdout.write(f"[{chat_id}] {text}\n")
            self._stdout.flush()
        except (OSError, ValueError) as e:
            raise TransportError(f"stdout write failed: {e}", chat_id=chat_id) from e

    async def receive(self) -> AsyncIterator[Tuple[str, str]]:
        loop = asyncio.get_running_loop()
        queue: "asyncio.Queue[str]" = asyncio.Queue()
        self._reader = threading.Thread(
            target=self._read_lines,
            args=(loop, queue),
            name="stratwire-stdin",
            daemon=True,
        )
        self._reader.start()
        while True:
            line = await queue.get()
            if not line:
                logger.info("stdin_closed")
                return
            if line.strip():
                yield self.chat_id, line

    def _read_lines(self, loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue[str]") -> None:
        """Reader thread body. An empty string marks end of input."""
        try:
            for line in iter(self._stdin.readline, ""):
                loop.call_soon_threadsafe(queue.put_nowait, line)
        except (OSError, ValueError) as e:
            logger.error("stdin_read_failed", error=str(e), exc_type=type(e).__name__)
        except RuntimeError:
            # Event loop already closed
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, "")
        except RuntimeError:
            pass
