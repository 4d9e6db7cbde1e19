from typing import List, Optional

from broadcast import BroadcastEngine, utc_timestamp
from constants import EVENT_JOINED, EVENT_PARTICIPANTS, EVENT_USER_CONNECTED, EVENT_USER_DISCONNECTED
from directory import DirectoryPublisher
from logging_config import get_logger
from registry import Room, RoomRegistry
from schemas.rooms import JoinedEvent, ParticipantsEvent, PresenceEvent

logger = get_logger(__name__)


class PresenceManager:
    """Join/leave handling. Runs synchronously on the event loop, so no other join lands between minting a name and inserting it."""

    def __init__(self, registry: RoomRegistry, broadcaster: BroadcastEngine, directory: DirectoryPublisher):
        self.registry = registry
        self.broadcaster = broadcaster
        self.directory = directory

    def handle_join(self, connection_id: str, room_id: Optional[str]) -> Optional[str]:
        """Add a connection to a room and return its freshly minted display name."""
        if not room_id:
            logger.debug(f"Ignoring join from {connection_id}: missing room id")
            return None

        room = self.registry.get_or_create(room_id)
        previous = room.members.get(connection_id)
        display_name = room.mint_display_name()
        room.members[connection_id] = display_name
        if previous is not None:
            logger.info(f"Connection {connection_id} rejoined room {room_id}: {previous} -> {display_name}")
        else:
            logger.info(f"{display_name} ({connection_id}) joined room {room_id} (members: {len(room.members)})")

        presence = PresenceEvent(username=display_name, timestamp=utc_timestamp())
        self.broadcaster.emit_to_room(room, EVENT_USER_CONNECTED, presence.to_wire(), exclude=connection_id)
        self._publish_participants(room)
        joined = JoinedEvent(
            room_id=room_id,
            anon_name=display_name,
            participants=room.participants(),
            socket_id=connection_id,
        )
        self.broadcaster.emit_to(connection_id, EVENT_JOINED, joined.to_wire())

        self.directory.refresh()
        return display_name

    def handle_disconnect(self, connection_id: str) -> List[str]:
        """Remove a connection from every room it belongs to.

        Returns the ids of the rooms it left. A connection that is in no room
        (already cleaned up, or never joined) changes nothing.
        """
        left = []
        for room in self.registry.rooms_with_member(connection_id):
            display_name = room.members.pop(connection_id, None)
            if display_name is None:
                continue
            left.append(room.room_id)
            logger.info(f"{display_name} ({connection_id}) left room {room.room_id} (members: {len(room.members)})")

            if room.is_empty():
                self.registry.remove(room.room_id)
                continue
            presence = PresenceEvent(username=display_name, timestamp=utc_timestamp())
            self.broadcaster.emit_to_room(room, EVENT_USER_DISCONNECTED, presence.to_wire())
            self._publish_participants(room)

        self.directory.refresh()
        return left

    def _publish_participants(self, room: Room) -> None:
        participants = ParticipantsEvent(participants=room.participants())
        self.broadcaster.emit_to_room(room, EVENT_PARTICIPANTS, participants.to_wire())
