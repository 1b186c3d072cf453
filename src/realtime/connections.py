"""Connection adapters the hub can deliver to.

A connection only needs an ``id`` and a ``send(message)`` method. ``send``
must not block: the hub is called from synchronous domain handlers.
"""

import asyncio
from abc import ABC, abstractmethod
from uuid import uuid4


class Connection(ABC):
    def __init__(self, connection_id: str | None = None):
        self.id = connection_id or uuid4().hex

    @abstractmethod
    def send(self, message: dict) -> None: ...


class QueueConnection(Connection):
    """Delivers into an asyncio queue drained by a WebSocket task.

    Messages may be published from a worker thread, so they are handed to
    the owning loop with ``call_soon_threadsafe``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, connection_id: str | None = None):
        super().__init__(connection_id)
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue()

    def send(self, message: dict) -> None:
        if self.loop.is_closed():
            raise ConnectionError(f"Connection {self.id} is closed")
        self.loop.call_soon_threadsafe(self.queue.put_nowait, message)


class RecordingConnection(Connection):
    """Keeps every message it receives. Used by tests and the CLI."""

    def __init__(self, connection_id: str | None = None):
        super().__init__(connection_id)
        self.messages: list[dict] = []

    def send(self, message: dict) -> None:
        self.messages.append(message)

    def events(self, name: str) -> list[dict]:
        return [m for m in self.messages if m["event"] == name]

    def clear(self) -> None:
        self.messages.clear()
