"""
Pydantic models for the Gomoku web API.

Defines the inbound WebSocket envelopes and the REST response schemas.
Wire names are camelCase; attributes are snake_case.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WSMessage(BaseModel):
    """Base WebSocket envelope."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    type: str


class RoomScoped(WSMessage):
    """Envelope addressed to one room."""
    room_id: str = Field(alias="roomId", min_length=1)

    @field_validator("room_id")
    @classmethod
    def normalize_room_id(cls, value: str) -> str:
        return value.strip().upper()


class WSJoin(WSMessage):
    """Client identifying itself."""
    type: str = "join"
    player_id: str = Field(alias="playerId")
    player_name: str = Field(alias="playerName")


class WSCreateRoom(WSMessage):
    """Client opening a new room."""
    type: str = "create_room"
    player_id: Optional[str] = Field(default=None, alias="playerId")
    player_name: Optional[str] = Field(default=None, alias="playerName")


class WSJoinRoom(RoomScoped):
    """Client taking a seat in an existing room."""
    type: str = "join_room"
    player_id: Optional[str] = Field(default=None, alias="playerId")
    player_name: Optional[str] = Field(default=None, alias="playerName")


class WSMove(RoomScoped):
    """Client placing a stone. Bounds are checked by the move validator."""
    type: str = "move"
    row: int
    col: int
    player: int


class WSChat(RoomScoped):
    """Chat line relayed to the room."""
    type: str = "chat"
    message: str


class WSRestart(RoomScoped):
    """Reset the room's board."""
    type: str = "restart"


INBOUND_MESSAGES = {
    "join": WSJoin,
    "create_room": WSCreateRoom,
    "join_room": WSJoinRoom,
    "move": WSMove,
    "chat": WSChat,
    "restart": WSRestart,
}


# REST models

class ParticipantInfo(BaseModel):
    """A seated participant."""
    id: str
    name: str
    seat: int


class RoomSummary(BaseModel):
    """Summary of a room for listings."""
    roomId: str
    phase: str
    participants: List[ParticipantInfo]
    moveCount: int
    createdAt: str


class RoomListResponse(BaseModel):
    """Response for room listings."""
    rooms: List[RoomSummary]


class RoomDetail(BaseModel):
    """Full state of one room."""
    roomId: str
    participants: List[ParticipantInfo]
    gameState: Dict[str, Any]
    createdAt: str


class HealthResponse(BaseModel):
    """Liveness report."""
    ok: bool
    activeRooms: int
    connections: int
