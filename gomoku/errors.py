"""
Error types raised by the game and room layers.

Every error is local to the command that raised it: the WebSocket handler
catches GomokuError per message, so nothing here closes a connection.
"""


class GomokuError(Exception):
    """Base class for all server-side game errors."""


class ProtocolError(GomokuError):
    """Inbound envelope could not be decoded or failed validation."""


class RoomNotFound(GomokuError):
    """No room is registered under the requested id."""

    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id} does not exist")
        self.room_id = room_id


class RoomFull(GomokuError):
    """Room already holds the maximum number of participants."""

    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id} is full")
        self.room_id = room_id


class AlreadyInRoom(GomokuError):
    """Connection already holds a seat in the room."""

    def __init__(self, room_id: str):
        super().__init__(f"Already seated in room {room_id}")
        self.room_id = room_id


class NotInRoom(GomokuError):
    """Connection does not hold a seat in the room."""

    def __init__(self, room_id: str):
        super().__init__(f"Not a participant of room {room_id}")
        self.room_id = room_id


class InvalidMove(GomokuError):
    """Move rejected: out of bounds, occupied cell, wrong turn or wrong phase."""
