import uuid
from typing import Optional, Set

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from broadcast import BroadcastEngine
from constants import EVENT_GET_ROOM_LIST, EVENT_JOIN_ROOM, EVENT_SEND_MESSAGE, OUTBOX_MAX_SIZE
from delivery import OutboxDeliverer
from directory import DirectoryPublisher
from logging_config import get_logger
from presence import PresenceManager
from registry import RoomRegistry, RoomStore
from schemas.rooms import InboundFrame, JoinRoomRequest, SendMessageRequest

logger = get_logger(__name__)


class ConnectionGateway:
    """Owns websocket connections and turns their frames into room operations."""

    def __init__(self, registry: RoomRegistry, deliverer: OutboxDeliverer):
        self.registry = registry
        self.deliverer = deliverer
        self.broadcaster = BroadcastEngine(registry, deliverer)
        self.directory = DirectoryPublisher(registry, deliverer)
        self.presence = PresenceManager(registry, self.broadcaster, self.directory)
        self._live: Set[str] = set()

    @property
    def connection_count(self) -> int:
        return len(self._live)

    def connected(self, websocket: WebSocket) -> str:
        connection_id = uuid.uuid4().hex
        self.deliverer.register(connection_id, websocket)
        self._live.add(connection_id)
        logger.info(f"Connection {connection_id} opened (connections: {len(self._live)})")
        return connection_id

    def disconnected(self, connection_id: str) -> bool:
        """Tear down a connection. Returns False when it was already gone.

        Synchronous so that cleanup completes even when the websocket task is
        being cancelled.
        """
        if connection_id not in self._live:
            logger.debug(f"Ignoring duplicate disconnect for {connection_id}")
            return False
        self._live.discard(connection_id)
        self.deliverer.unregister(connection_id)
        rooms = self.presence.handle_disconnect(connection_id)
        logger.info(f"Connection {connection_id} closed, left rooms: {rooms} (connections: {len(self._live)})")
        return True

    def handle_frame(self, connection_id: str, raw: str) -> Optional[str]:
        """Dispatch one inbound text frame. Returns the event name handled, or None if dropped."""
        try:
            frame = InboundFrame.model_validate_json(raw)
        except ValidationError as e:
            logger.debug(f"Dropping malformed frame from {connection_id}: {e}")
            return None

        data = frame.data if frame.data is not None else {}
        try:
            if frame.event == EVENT_GET_ROOM_LIST:
                self.directory.refresh()
            elif frame.event == EVENT_JOIN_ROOM:
                request = JoinRoomRequest.model_validate(data)
                self.presence.handle_join(connection_id, request.room_id)
            elif frame.event == EVENT_SEND_MESSAGE:
                request = SendMessageRequest.model_validate(data)
                self.broadcaster.send_message(connection_id, request.room_id, request.text)
            else:
                logger.debug(f"Dropping unknown event {frame.event!r} from {connection_id}")
                return None
        except ValidationError as e:
            logger.debug(f"Dropping invalid {frame.event} payload from {connection_id}: {e}")
            return None
        return frame.event

    async def serve(self, websocket: WebSocket) -> None:
        await websocket.accept()
        connection_id = self.connected(websocket)
        message_count = 0
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                message_count += 1
                data = message.get("text")
                if data is None:
                    logger.debug(f"Dropping binary frame #{message_count} from connection {connection_id}")
                    continue
                logger.debug(f"Received frame #{message_count} from connection {connection_id}")
                self.handle_frame(connection_id, data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection_id}")
        except Exception as e:
            logger.error(f"Error receiving from connection {connection_id}: {e}", exc_info=True)
        finally:
            self.disconnected(connection_id)


def build_gateway(store: Optional[RoomStore] = None, outbox_max_size: int = OUTBOX_MAX_SIZE) -> ConnectionGateway:
    return ConnectionGateway(RoomRegistry(store), OutboxDeliverer(max_size=outbox_max_size))
