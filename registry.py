from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Protocol

from constants import PEER_NAME_PREFIX
from logging_config import get_logger
from schemas.rooms import RoomSummary

logger = get_logger(__name__)


@dataclass
class Room:
    room_id: str
    # connection_id -> display name; also the room's subscriber set
    members: Dict[str, str] = field(default_factory=dict)
    next_seq: int = 1

    def mint_display_name(self) -> str:
        name = f"{PEER_NAME_PREFIX}{self.next_seq}"
        self.next_seq += 1
        return name

    def participants(self) -> List[str]:
        return list(self.members.values())

    def is_empty(self) -> bool:
        return not self.members


class RoomStore(Protocol):
    """Storage backend for room state, keyed by room id."""

    def get(self, room_id: str) -> Optional[Room]: ...

    def put(self, room: Room) -> None: ...

    def delete(self, room_id: str) -> None: ...

    def values(self) -> Iterator[Room]: ...

    def __len__(self) -> int: ...


class InMemoryRoomStore:
    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def put(self, room: Room) -> None:
        self._rooms[room.room_id] = room

    def delete(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)

    def values(self) -> Iterator[Room]:
        # Copy so callers may remove rooms while iterating
        return iter(list(self._rooms.values()))

    def __len__(self) -> int:
        return len(self._rooms)


class RoomRegistry:
    """Rooms by id. A room is kept only while it has members."""

    def __init__(self, store: Optional[RoomStore] = None):
        self.store = store if store is not None else InMemoryRoomStore()

    def get(self, room_id: str) -> Optional[Room]:
        return self.store.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self.store.get(room_id)
        if room is None:
            room = Room(room_id=room_id)
            self.store.put(room)
            logger.info(f"Created room {room_id}")
        return room

    def remove(self, room_id: str) -> None:
        """Drop an empty room. Absent or still-occupied rooms are left alone."""
        room = self.store.get(room_id)
        if room is None:
            return
        if not room.is_empty():
            logger.debug(f"Not removing room {room_id}: {len(room.members)} members remain")
            return
        self.store.delete(room_id)
        logger.info(f"Removed empty room {room_id}")

    def rooms_with_member(self, connection_id: str) -> List[Room]:
        return [room for room in self.store.values() if connection_id in room.members]

    def snapshot(self) -> List[RoomSummary]:
        return [
            RoomSummary(room_id=room.room_id, user_count=len(room.members))
            for room in self.store.values()
        ]

    def __len__(self) -> int:
        return len(self.store)
