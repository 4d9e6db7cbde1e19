from typing import List

from constants import EVENT_ROOM_LIST
from delivery import Deliverer, DeliveryOutcome
from logging_config import get_logger
from registry import RoomRegistry
from schemas.rooms import RoomSummary

logger = get_logger(__name__)


class DirectoryPublisher:
    """Pushes the full room list to every connected client."""

    def __init__(self, registry: RoomRegistry, deliverer: Deliverer):
        self.registry = registry
        self.deliverer = deliverer

    def snapshot(self) -> List[RoomSummary]:
        return self.registry.snapshot()

    def refresh(self) -> List[RoomSummary]:
        rooms = self.snapshot()
        payload = [room.to_wire() for room in rooms]
        connection_ids = self.deliverer.connection_ids()
        failed = 0
        for connection_id in connection_ids:
            if self.deliverer.deliver(connection_id, EVENT_ROOM_LIST, payload) is not DeliveryOutcome.DELIVERED:
                failed += 1
        logger.debug(f"Published directory of {len(rooms)} rooms to {len(connection_ids)} connections ({failed} failed)")
        return rooms
