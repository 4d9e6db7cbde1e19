import asyncio
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Set

from fastapi import WebSocket

from constants import OUTBOX_MAX_SIZE
from logging_config import get_logger

logger = get_logger(__name__)


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    UNKNOWN_CONNECTION = "unknown_connection"
    CLOSED = "closed"
    BACKLOGGED = "backlogged"


class Deliverer(Protocol):
    def deliver(self, connection_id: str, event: str, payload: Any) -> DeliveryOutcome: ...

    def connection_ids(self) -> List[str]: ...


def encode_frame(event: str, payload: Any) -> str:
    return json.dumps({"event": event, "data": payload})


class Outbox:
    def __init__(self, connection_id: str, websocket: WebSocket, max_size: int):
        self.connection_id = connection_id
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self.closed = False
        self.task: Optional[asyncio.Task] = None

    async def run(self):
        """Write queued frames to the websocket until closed or the transport fails."""
        sent = 0
        try:
            while True:
                frame = await self.queue.get()
                await self.websocket.send_text(frame)
                sent += 1
        except asyncio.CancelledError:
            logger.debug(f"Outbox writer for {self.connection_id} cancelled after {sent} frames")
            raise
        except Exception as e:
            logger.warning(f"Error sending to connection {self.connection_id}: {e}")
        finally:
            self.closed = True


class OutboxDeliverer:
    """Queues each frame on the recipient's outbox; one writer task per connection drains it in order."""

    def __init__(self, max_size: int = OUTBOX_MAX_SIZE):
        self.max_size = max_size
        self._outboxes: Dict[str, Outbox] = {}
        # Writer tasks stay referenced here until they finish
        self._writers: Set[asyncio.Task] = set()

    def register(self, connection_id: str, websocket: WebSocket) -> Outbox:
        """Create the outbox for a connection and start its writer. Must run inside the event loop."""
        outbox = Outbox(connection_id, websocket, self.max_size)
        outbox.task = asyncio.create_task(outbox.run())
        self._writers.add(outbox.task)
        outbox.task.add_done_callback(self._writer_done)
        self._outboxes[connection_id] = outbox
        logger.debug(f"Registered outbox for connection {connection_id} (connections: {len(self._outboxes)})")
        return outbox

    def _writer_done(self, task: asyncio.Task) -> None:
        self._writers.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Outbox writer crashed: {exc}")

    @property
    def pending_writers(self) -> int:
        return len(self._writers)

    def unregister(self, connection_id: str) -> Optional[Outbox]:
        """Close a connection's outbox and cancel its writer. Frames still queued are discarded."""
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is None:
            return None
        outbox.closed = True
        if outbox.task is not None and not outbox.task.done():
            outbox.task.cancel()
        logger.debug(f"Unregistered outbox for connection {connection_id} (connections: {len(self._outboxes)})")
        return outbox

    def deliver(self, connection_id: str, event: str, payload: Any) -> DeliveryOutcome:
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            return DeliveryOutcome.UNKNOWN_CONNECTION
        if outbox.closed:
            return DeliveryOutcome.CLOSED
        try:
            outbox.queue.put_nowait(encode_frame(event, payload))
        except asyncio.QueueFull:
            logger.warning(f"Outbox full for connection {connection_id}, dropping {event}")
            return DeliveryOutcome.BACKLOGGED
        return DeliveryOutcome.DELIVERED

    def connection_ids(self) -> List[str]:
        return list(self._outboxes)

    def __len__(self) -> int:
        return len(self._outboxes)
