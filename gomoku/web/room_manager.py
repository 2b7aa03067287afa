"""
Room registry for the web interface.

Manages live rooms: creation, seating, move execution, restarts and
participant removal. Rooms only know connection ids; the live sockets
belong to the ConnectionManager.
"""
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Any

from gomoku.errors import RoomNotFound, RoomFull, AlreadyInRoom, NotInRoom, InvalidMove
from gomoku.game.game import Game
from gomoku.game.serialization import serialize_game_state, determine_win_reason
from gomoku.utils.constants import (
    BLACK, WHITE, PLAYER_NAMES, MAX_PARTICIPANTS, ROOM_ID_LENGTH, ROOM_ID_ALPHABET
)

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Phase of a room."""
    WAITING = "waiting"      # Fewer than two participants
    ACTIVE = "active"        # Game in progress
    FINISHED = "finished"    # Five in a row or a full board


@dataclass
class Participant:
    """A seated player. Holds the connection id, never the socket."""
    player_id: str
    name: str
    seat: int
    connection_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.player_id, "name": self.name, "seat": self.seat}


@dataclass
class Room:
    """One game session between up to two participants."""
    room_id: str
    participants: List[Participant] = field(default_factory=list)
    game: Game = field(default_factory=Game)
    phase: Phase = Phase.WAITING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_full(self) -> bool:
        return len(self.participants) >= MAX_PARTICIPANTS

    def is_empty(self) -> bool:
        return not self.participants

    def find_participant(self, connection_id: str) -> Optional[Participant]:
        """Get the participant seated from a connection, if any."""
        for participant in self.participants:
            if participant.connection_id == connection_id:
                return participant
        return None

    def free_seat(self) -> int:
        """First seat not taken, Black before White."""
        taken = {p.seat for p in self.participants}
        return BLACK if BLACK not in taken else WHITE

    def connection_ids(self) -> List[str]:
        return [p.connection_id for p in self.participants]

    def get_game_state(self) -> Dict[str, Any]:
        return serialize_game_state(self.game, self.phase.value)


class Departure(NamedTuple):
    """A participant removed from a room by the disconnect reaper."""
    room: Room
    participant: Participant
    room_deleted: bool


def generate_room_id() -> str:
    """Random uppercase base-36 token of ROOM_ID_LENGTH characters."""
    return "".join(random.choices(ROOM_ID_ALPHABET, k=ROOM_ID_LENGTH))


class RoomRegistry:
    """
    Maps room ids to rooms.

    All mutation happens inside one message-handling turn of the gateway,
    which serializes commands; the registry itself takes no locks.
    """

    def __init__(self, id_factory: Callable[[], str] = generate_room_id):
        """
        Initialize the registry.

        Args:
            id_factory: Produces candidate room ids. Candidates that collide
                with a live room are discarded and drawn again.
        """
        self.rooms: Dict[str, Room] = {}
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self.rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self.rooms

    def _allocate_id(self) -> str:
        room_id = self._id_factory()
        while room_id in self.rooms:
            logger.debug("Room id %s already in use, drawing again", room_id)
            room_id = self._id_factory()
        return room_id

    def get_room(self, room_id: str) -> Optional[Room]:
        """Get a room by id."""
        return self.rooms.get(room_id)

    def require_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def require_participant(self, room_id: str, connection_id: str) -> Participant:
        room = self.require_room(room_id)
        participant = room.find_participant(connection_id)
        if participant is None:
            raise NotInRoom(room_id)
        return participant

    def create_room(self, player_id: str, name: str, connection_id: str) -> str:
        """
        Create a room seating its creator as Black.

        Returns:
            The new room id
        """
        room_id = self._allocate_id()
        creator = Participant(player_id=player_id, name=name, seat=BLACK,
                              connection_id=connection_id)
        self.rooms[room_id] = Room(room_id=room_id, participants=[creator])
        logger.info("Room %s created by %s", room_id, name)
        return room_id

    def join_room(self, room_id: str, player_id: str, name: str, connection_id: str) -> Participant:
        """
        Seat a participant in an existing room.

        The joiner that fills the room activates it, unless the game on the
        board has already finished.

        Raises:
            RoomNotFound: no room with this id
            RoomFull: room already has two participants
            AlreadyInRoom: connection already holds a seat here
        """
        room = self.require_room(room_id)
        if room.is_full():
            raise RoomFull(room_id)
        if room.find_participant(connection_id) is not None:
            raise AlreadyInRoom(room_id)

        participant = Participant(player_id=player_id, name=name, seat=room.free_seat(),
                                  connection_id=connection_id)
        room.participants.append(participant)

        if room.is_full() and not room.game.is_over():
            room.phase = Phase.ACTIVE
        logger.info("%s joined room %s as %s", name, room_id, PLAYER_NAMES[participant.seat])
        return participant

    def make_move(self, room_id: str, connection_id: str, row: int, col: int, player: int) -> Dict[str, Any]:
        """
        Make a move in a room.

        Args:
            room_id: Room id
            connection_id: Connection the move arrived on
            row: Target row
            col: Target column
            player: Stone colour claimed by the sender

        Returns:
            Dict with move result

        Raises:
            RoomNotFound, NotInRoom, InvalidMove
        """
        room = self.require_room(room_id)
        participant = room.find_participant(connection_id)
        if participant is None:
            raise NotInRoom(room_id)
        if room.phase != Phase.ACTIVE:
            raise InvalidMove(f"Room {room_id} is {room.phase.value}")
        if participant.seat != player:
            raise InvalidMove(f"{participant.name} is not seated as player {player}")

        room.game.make_move(row, col, player)

        result = {
            "row": row,
            "col": col,
            "player": player,
            "game_over": room.game.is_over(),
        }
        if room.game.is_over():
            room.phase = Phase.FINISHED
            result["winner"] = room.game.get_winner()
            result["reason"] = determine_win_reason(room.game)
            logger.info("Room %s finished: %s", room_id, result["reason"])

        result["state"] = room.get_game_state()
        return result

    def restart(self, room_id: str, connection_id: str) -> Room:
        """
        Reset a room's game to an empty board with Black to move.

        The phase is recomputed from the number of participants.
        """
        room = self.require_room(room_id)
        if room.find_participant(connection_id) is None:
            raise NotInRoom(room_id)

        room.game.reset()
        room.phase = Phase.ACTIVE if room.is_full() else Phase.WAITING
        logger.info("Room %s restarted", room_id)
        return room

    def remove_participant(self, connection_id: str) -> List[Departure]:
        """
        Remove a connection's seats from every room.

        Rooms left empty are deleted. An active room left with one
        participant goes back to waiting.

        Returns:
            One Departure per seat removed
        """
        departures = []
        for room_id, room in list(self.rooms.items()):
            participant = room.find_participant(connection_id)
            if participant is None:
                continue

            room.participants.remove(participant)
            if room.is_empty():
                del self.rooms[room_id]
                logger.info("Room %s removed (empty)", room_id)
            elif room.phase == Phase.ACTIVE:
                room.phase = Phase.WAITING

            departures.append(Departure(room, participant, room.is_empty()))
        return departures

    def list_rooms(self) -> List[Dict[str, Any]]:
        """List all live rooms."""
        return [
            {
                "roomId": room.room_id,
                "phase": room.phase.value,
                "participants": [p.to_dict() for p in room.participants],
                "moveCount": len(room.game.move_history),
                "createdAt": room.created_at.isoformat()
            }
            for room in self.rooms.values()
        ]

    def close(self):
        """Drop every room."""
        if self.rooms:
            logger.info("Discarding %d room(s)", len(self.rooms))
        self.rooms.clear()
