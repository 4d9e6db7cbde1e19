from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class WireModel(BaseModel):
    """Base for payloads that travel over the websocket with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


# Inbound

class InboundFrame(BaseModel):
    event: str
    data: Optional[Any] = None

class JoinRoomRequest(WireModel):
    room_id: Optional[str] = Field(None, alias="roomId")

class SendMessageRequest(WireModel):
    room_id: Optional[str] = Field(None, alias="roomId")
    text: Optional[str] = None


# Outbound

class RoomSummary(WireModel):
    room_id: str = Field(alias="roomId")
    user_count: int = Field(alias="userCount")

class JoinedEvent(WireModel):
    room_id: str = Field(alias="roomId")
    anon_name: str = Field(alias="anonName")
    participants: list[str]
    socket_id: str = Field(alias="socketId")

class ParticipantsEvent(WireModel):
    participants: list[str]

class PresenceEvent(WireModel):
    username: str
    timestamp: str

class NewMessageEvent(WireModel):
    from_socket_id: str = Field(alias="fromSocketId")
    username: str
    text: str
    timestamp: str


# HTTP

class RoomDetailsResponse(WireModel):
    room_id: str = Field(alias="roomId")
    user_count: int = Field(alias="userCount")
    participants: list[str]

class HealthResponse(BaseModel):
    status: str
    rooms: int
    connections: int
