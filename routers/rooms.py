from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import RoomSummary, RoomDetailsResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("", response_model=list[RoomSummary])
@rooms_router.get("/", response_model=list[RoomSummary], include_in_schema=False)
async def list_rooms(request: Request):
    """Current room directory, the same list pushed to websocket clients as `room-list`."""
    gateway = request.app.state.gateway
    rooms = gateway.directory.snapshot()
    logger.debug(f"Room list request: {len(rooms)} rooms")
    return rooms


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get the live state of a room.

    Returns:
    - roomId: Room identifier
    - userCount: Number of connections currently in the room
    - participants: Anonymous display names of the members
    """
    gateway = request.app.state.gateway
    room = gateway.registry.get(room_id)
    if not room:
        logger.info(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    logger.info(f"Room details retrieved for {room_id}: {len(room.members)} users online")
    return RoomDetailsResponse(
        room_id=room.room_id,
        user_count=len(room.members),
        participants=room.participants(),
    )
