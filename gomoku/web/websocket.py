"""
WebSocket handlers for real-time room communication.
"""
import asyncio
import json
import logging
import uuid
from typing import Dict, Optional, Tuple

from fastapi import WebSocket
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from gomoku.errors import GomokuError, ProtocolError
from gomoku.web.models import (
    INBOUND_MESSAGES, WSMessage, WSJoin, WSCreateRoom, WSJoinRoom, WSMove, WSChat, WSRestart
)
from gomoku.web.room_manager import RoomRegistry, Room

logger = logging.getLogger(__name__)


def decode_envelope(text: str) -> Optional[WSMessage]:
    """
    Parse one inbound frame.

    Returns:
        The validated message, or None if its type is not one we handle

    Raises:
        ProtocolError: if the frame is not a JSON object with a string
            type, or its fields fail validation
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ProtocolError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ProtocolError("Envelope must be an object with a string 'type'")

    model = INBOUND_MESSAGES.get(data["type"])
    if model is None:
        return None

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Invalid {data['type']} envelope: {e.error_count()} error(s)") from e


class ConnectionManager:
    """Owns the live WebSocket connections, keyed by connection id."""

    def __init__(self):
        # Map connection_id -> WebSocket
        self.connections: Dict[str, WebSocket] = {}
        # Map connection_id -> identity sent with "join"
        self.identities: Dict[str, Dict[str, str]] = {}

    def __len__(self) -> int:
        return len(self.connections)

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a WebSocket and register it under a fresh connection id."""
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self.connections[connection_id] = websocket
        logger.info("Connection %s opened", connection_id)
        return connection_id

    def disconnect(self, connection_id: str):
        """Forget a connection."""
        self.connections.pop(connection_id, None)
        self.identities.pop(connection_id, None)

    def identify(self, connection_id: str, player_id: str, player_name: str):
        self.identities[connection_id] = {"playerId": player_id, "playerName": player_name}

    def resolve_identity(self, connection_id: str, player_id: Optional[str],
                         player_name: Optional[str]) -> Tuple[str, str]:
        """
        Fill in a missing player id or name from the identity sent with "join".

        Raises:
            ProtocolError: if neither the envelope nor the connection has one
        """
        known = self.identities.get(connection_id, {})
        player_id = player_id or known.get("playerId")
        player_name = player_name or known.get("playerName")
        if not player_id or not player_name:
            raise ProtocolError("Player identity missing; send 'join' first")
        return player_id, player_name

    def is_open(self, connection_id: str) -> bool:
        websocket = self.connections.get(connection_id)
        return websocket is not None and websocket.client_state == WebSocketState.CONNECTED

    async def send_personal(self, connection_id: str, message: dict):
        """Send a message to one connection. Closed connections are skipped."""
        if not self.is_open(connection_id):
            return
        try:
            await self.connections[connection_id].send_json(message)
        except Exception as e:
            # The receive loop reports the close and runs the reaper
            logger.debug("Send to %s failed: %s", connection_id, e)

    async def broadcast(self, room: Room, message: dict):
        """
        Send a message to every participant of a room.

        Best effort: participants whose connection is closed are skipped,
        nothing is queued or retried.
        """
        for connection_id in room.connection_ids():
            await self.send_personal(connection_id, message)

    async def close_all(self):
        """Close every open connection."""
        for connection_id, websocket in list(self.connections.items()):
            if self.is_open(connection_id):
                try:
                    await websocket.close(code=1001)
                except Exception as e:
                    logger.debug("Close of %s failed: %s", connection_id, e)
        self.connections.clear()
        self.identities.clear()


class GameWebSocketHandler:
    """
    Decodes inbound envelopes and dispatches them to the room registry.

    One message is processed to completion, broadcasts included, before the
    next one starts, so every participant of a room sees room events in the
    order they were generated.
    """

    def __init__(self, connection_manager: ConnectionManager, registry: RoomRegistry):
        self.manager = connection_manager
        self.registry = registry
        self._turn = asyncio.Lock()
        self.handlers = {
            "join": self.handle_join,
            "create_room": self.handle_create_room,
            "join_room": self.handle_join_room,
            "move": self.handle_move,
            "chat": self.handle_chat,
            "restart": self.handle_restart,
        }

    async def handle_text(self, connection_id: str, text: str):
        """
        Handle one raw inbound frame.

        Malformed frames are logged and dropped; the connection stays open.
        """
        try:
            message = decode_envelope(text)
        except ProtocolError as e:
            logger.warning("Dropped frame from %s: %s", connection_id, e)
            return

        if message is None:
            logger.debug("Ignored unknown message type from %s", connection_id)
            return

        await self.handle_message(connection_id, message)

    async def handle_message(self, connection_id: str, message: WSMessage):
        """
        Dispatch a decoded message.

        Args:
            connection_id: Connection the message arrived on
            message: Validated inbound envelope
        """
        handler = self.handlers[message.type]
        async with self._turn:
            try:
                await handler(connection_id, message)
            except GomokuError as e:
                logger.debug("Dropped %s from %s: %s", message.type, connection_id, e)

    async def handle_join(self, connection_id: str, message: WSJoin):
        """Record the connection's player identity."""
        self.manager.identify(connection_id, message.player_id, message.player_name)
        await self.manager.send_personal(connection_id, {
            "type": "join_success",
            "playerId": message.player_id,
            "playerName": message.player_name
        })

    async def handle_create_room(self, connection_id: str, message: WSCreateRoom):
        """Open a room with the sender seated as Black."""
        player_id, player_name = self.manager.resolve_identity(
            connection_id, message.player_id, message.player_name
        )
        self.manager.identify(connection_id, player_id, player_name)
        room_id = self.registry.create_room(player_id, player_name, connection_id)
        await self.manager.send_personal(connection_id, {
            "type": "room_created",
            "roomId": room_id
        })

    async def handle_join_room(self, connection_id: str, message: WSJoinRoom):
        """Seat the sender in a room; start the game once it is full."""
        try:
            player_id, player_name = self.manager.resolve_identity(
                connection_id, message.player_id, message.player_name
            )
            participant = self.registry.join_room(message.room_id, player_id, player_name, connection_id)
        except GomokuError as e:
            await self.send_error(connection_id, str(e))
            return

        self.manager.identify(connection_id, player_id, player_name)
        room = self.registry.require_room(message.room_id)

        await self.manager.broadcast(room, {
            "type": "player_joined",
            "roomId": room.room_id,
            "player": participant.to_dict()
        })

        if room.is_full():
            await self.manager.broadcast(room, {
                "type": "game_start",
                "roomId": room.room_id,
                "players": [p.to_dict() for p in room.participants],
                "gameState": room.get_game_state()
            })

    async def handle_move(self, connection_id: str, message: WSMove):
        """Apply a move and broadcast it, or the end of the game."""
        room = self.registry.require_room(message.room_id)
        result = self.registry.make_move(
            message.room_id, connection_id, message.row, message.col, message.player
        )

        if result["game_over"]:
            await self.manager.broadcast(room, {
                "type": "game_over",
                "winner": result["winner"],
                "reason": result["reason"],
                "gameState": result["state"]
            })
        else:
            await self.manager.broadcast(room, {
                "type": "move",
                "row": result["row"],
                "col": result["col"],
                "player": result["player"],
                "gameState": result["state"]
            })

    async def handle_chat(self, connection_id: str, message: WSChat):
        """Relay a chat line to the room."""
        sender = self.registry.require_participant(message.room_id, connection_id)
        room = self.registry.require_room(message.room_id)
        await self.manager.broadcast(room, {
            "type": "chat",
            "sender": sender.name,
            "message": message.message
        })

    async def handle_restart(self, connection_id: str, message: WSRestart):
        """Reset the board and broadcast the fresh state."""
        room = self.registry.restart(message.room_id, connection_id)
        await self.manager.broadcast(room, {
            "type": "restart",
            "gameState": room.get_game_state()
        })

    async def handle_disconnect(self, connection_id: str):
        """
        Reap a closed connection.

        Removes its seats from every room, tells the remaining participants,
        and lets the registry drop rooms that are now empty.
        """
        async with self._turn:
            self.manager.disconnect(connection_id)
            departures = self.registry.remove_participant(connection_id)
            for departure in departures:
                if departure.room_deleted:
                    continue
                await self.manager.broadcast(departure.room, {
                    "type": "player_left",
                    "playerId": departure.participant.player_id,
                    "playerName": departure.participant.name
                })
        logger.info("Connection %s closed, left %d room(s)", connection_id, len(departures))

    async def shutdown(self):
        """Close all connections and discard all rooms."""
        async with self._turn:
            await self.manager.close_all()
            self.registry.close()

    async def send_error(self, connection_id: str, message: str):
        """Send an error message."""
        await self.manager.send_personal(connection_id, {
            "type": "error",
            "message": message
        })
