"""Shared fixtures for stratwire tests."""

from typing import List, Optional, Tuple

import pytest

from stratwire.transport import ChatTransport


class RecordingTransport(ChatTransport):
    """In-memory transport: records sends, replays a fixed inbox."""

    def __init__(self, incoming: Optional[List[Tuple[str, str]]] = None):
        self.sent: List[Tuple[str, str]] = []
        self.incoming = list(incoming or [])
        self.fail_with: Optional[Exception] = None

    async def send(self, chat_id: str, text: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((chat_id, text))

    async def receive(self):
        for item in self.incoming:
            yield item

    @property
    def texts(self) -> List[str]:
        return [text for _, text in self.sent]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_transport():
    return RecordingTransport
