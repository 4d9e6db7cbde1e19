from datetime import datetime, timezone
from typing import Any, Dict, Optional

from constants import EVENT_NEW_MESSAGE
from delivery import Deliverer, DeliveryOutcome
from logging_config import get_logger
from registry import Room, RoomRegistry
from schemas.rooms import NewMessageEvent

logger = get_logger(__name__)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BroadcastEngine:
    def __init__(self, registry: RoomRegistry, deliverer: Deliverer):
        self.registry = registry
        self.deliverer = deliverer

    def emit_to(self, connection_id: str, event: str, payload: Any) -> DeliveryOutcome:
        outcome = self.deliverer.deliver(connection_id, event, payload)
        if outcome is not DeliveryOutcome.DELIVERED:
            logger.debug(f"Delivery of {event} to {connection_id} failed: {outcome.value}")
        return outcome

    def emit_to_room(self, room: Room, event: str, payload: Any, exclude: Optional[str] = None) -> Dict[str, DeliveryOutcome]:
        """Deliver to every current member of the room except ``exclude``."""
        outcomes = {}
        for connection_id in list(room.members):
            if connection_id == exclude:
                continue
            outcomes[connection_id] = self.emit_to(connection_id, event, payload)
        return outcomes

    def send_message(self, connection_id: str, room_id: Optional[str], text: Optional[str]) -> Optional[NewMessageEvent]:
        """Relay a chat message to the other members of a room.

        Requests with no room, no text, an unknown room or a sender that is not a
        member are dropped and ``None`` is returned.
        """
        if not room_id or not text:
            logger.debug(f"Dropping message from {connection_id}: missing room id or text")
            return None
        room = self.registry.get(room_id)
        if room is None:
            logger.debug(f"Dropping message from {connection_id}: room {room_id} does not exist")
            return None
        display_name = room.members.get(connection_id)
        if display_name is None:
            logger.debug(f"Dropping message from {connection_id}: not a member of room {room_id}")
            return None

        message = NewMessageEvent(
            from_socket_id=connection_id,
            username=display_name,
            text=text,
            timestamp=utc_timestamp(),
        )
        outcomes = self.emit_to_room(room, EVENT_NEW_MESSAGE, message.to_wire(), exclude=connection_id)
        delivered = sum(1 for outcome in outcomes.values() if outcome is DeliveryOutcome.DELIVERED)
        logger.debug(f"Message from {display_name} in room {room_id} delivered to {delivered}/{len(outcomes)} peers")
        return message
