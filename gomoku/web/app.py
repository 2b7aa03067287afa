"""
FastAPI application for the Gomoku room server.
"""
import logging
from typing import Optional

from fastapi import FastAPI, WebSocket, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from gomoku.config import Settings, settings as default_settings
from gomoku.web.models import HealthResponse, RoomListResponse, RoomDetail
from gomoku.web.room_manager import RoomRegistry
from gomoku.web.websocket import ConnectionManager, GameWebSocketHandler


def create_app(settings: Optional[Settings] = None, registry: Optional[RoomRegistry] = None) -> FastAPI:
    """
    Build the application.

    The registry, connection manager and WebSocket handler are created here
    and stored on app.state; nothing is kept in module globals.

    Args:
        settings: Runtime settings (defaults to the environment)
        registry: Room registry to serve (a fresh one if omitted)
    """
    settings = settings or default_settings
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title="Gomoku",
        description="Two-player Gomoku rooms over WebSockets",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.registry = registry or RoomRegistry()
    app.state.connection_manager = ConnectionManager()
    app.state.ws_handler = GameWebSocketHandler(app.state.connection_manager, app.state.registry)

    @app.on_event("shutdown")
    async def shutdown():
        """Close live connections and drop all rooms."""
        await app.state.ws_handler.shutdown()

    # =========================================================================
    # REST API Endpoints
    # =========================================================================

    @app.get("/api/health", response_model=HealthResponse)
    async def health():
        """Report liveness and load."""
        return HealthResponse(
            ok=True,
            activeRooms=len(app.state.registry),
            connections=len(app.state.connection_manager)
        )

    @app.get("/api/rooms", response_model=RoomListResponse)
    async def list_rooms():
        """List all live rooms."""
        return {"rooms": app.state.registry.list_rooms()}

    @app.get("/api/rooms/{room_id}", response_model=RoomDetail)
    async def get_room(room_id: str):
        """Get the current state of a room."""
        room = app.state.registry.get_room(room_id.strip().upper())
        if not room:
            raise HTTPException(status_code=404, detail="Room not found")

        return {
            "roomId": room.room_id,
            "participants": [p.to_dict() for p in room.participants],
            "gameState": room.get_game_state(),
            "createdAt": room.created_at.isoformat()
        }

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for real-time room communication."""
        connection_id = await app.state.connection_manager.connect(websocket)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                text = message.get("text")
                if text is None:
                    # Binary frames are decoded and fail JSON parsing like any bad input
                    text = (message.get("bytes") or b"").decode("utf-8", errors="replace")
                await app.state.ws_handler.handle_text(connection_id, text)
        finally:
            await app.state.ws_handler.handle_disconnect(connection_id)

    return app


app = create_app()
