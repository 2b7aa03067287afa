"""
Tests for the WebSocket gateway and REST endpoints.

Handler tests drive GameWebSocketHandler directly with in-memory sockets;
the TestClient tests go through the FastAPI app end to end.
"""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from gomoku.errors import ProtocolError
from gomoku.web.app import create_app
from gomoku.web.models import WSMove, WSJoinRoom
from gomoku.web.room_manager import RoomRegistry, Phase
from gomoku.web.websocket import ConnectionManager, GameWebSocketHandler, decode_envelope
from gomoku.utils.constants import BLACK, WHITE, EMPTY

ROOM_SCOPED = {"player_joined", "game_start", "move", "game_over", "chat", "restart", "player_left"}


class FakeWebSocket:
    """In-memory stand-in for a FastAPI WebSocket."""

    def __init__(self, yield_on_send=False):
        self.client_state = WebSocketState.CONNECTING
        self.sent = []
        self.closed_with = None
        self.yield_on_send = yield_on_send

    async def accept(self):
        self.client_state = WebSocketState.CONNECTED

    async def send_json(self, message):
        if self.yield_on_send:
            # Give other tasks a chance to run mid-broadcast
            await asyncio.sleep(0)
        self.sent.append(json.loads(json.dumps(message)))

    async def close(self, code=1000):
        self.closed_with = code
        self.client_state = WebSocketState.DISCONNECTED

    def of_type(self, msg_type):
        return [m for m in self.sent if m["type"] == msg_type]

    def room_events(self):
        return [m for m in self.sent if m["type"] in ROOM_SCOPED]


class Harness:
    """A handler with helpers for sending envelopes from fake sockets."""

    def __init__(self, yield_on_send=False):
        self.registry = RoomRegistry()
        self.manager = ConnectionManager()
        self.handler = GameWebSocketHandler(self.manager, self.registry)
        self.yield_on_send = yield_on_send

    async def connect(self):
        websocket = FakeWebSocket(self.yield_on_send)
        connection_id = await self.manager.connect(websocket)
        return connection_id, websocket

    async def send(self, connection_id, **envelope):
        await self.handler.handle_text(connection_id, json.dumps(envelope))

    async def open_room(self):
        """Alice creates a room and Bob joins it."""
        alice, alice_ws = await self.connect()
        bob, bob_ws = await self.connect()
        await self.send(alice, type="create_room", playerId="p1", playerName="Alice")
        room_id = alice_ws.of_type("room_created")[0]["roomId"]
        await self.send(bob, type="join_room", roomId=room_id, playerId="p2", playerName="Bob")
        return room_id, (alice, alice_ws), (bob, bob_ws)


def run(coro):
    return asyncio.run(coro)


class TestDecodeEnvelope:
    """Tests for inbound frame decoding."""

    def test_valid_move(self):
        message = decode_envelope('{"type": "move", "roomId": "abc123", "row": 7, "col": 8, "player": 1}')
        assert isinstance(message, WSMove)
        assert message.room_id == "ABC123"
        assert (message.row, message.col, message.player) == (7, 8, 1)

    def test_numeric_player_id_accepted(self):
        message = decode_envelope('{"type": "join_room", "roomId": "R", "playerId": 42, "playerName": "Bob"}')
        assert isinstance(message, WSJoinRoom)
        assert message.player_id == "42"

    def test_unknown_type_ignored(self):
        assert decode_envelope('{"type": "dance"}') is None

    @pytest.mark.parametrize("text", [
        "not json",
        "[1, 2, 3]",
        '{"no_type": true}',
        '{"type": 5}',
        '{"type": "move", "roomId": "R", "row": "x", "col": 1, "player": 1}',
        '{"type": "chat", "message": "hi"}',
    ])
    def test_malformed(self, text):
        with pytest.raises(ProtocolError):
            decode_envelope(text)


class TestGatewayHandler:
    """Tests for dispatch, fan-out and error handling."""

    def test_join(self):
        async def scenario():
            h = Harness()
            conn, ws = await h.connect()
            await h.send(conn, type="join", playerId="p1", playerName="Alice")
            return ws.sent

        assert run(scenario()) == [{"type": "join_success", "playerId": "p1", "playerName": "Alice"}]

    def test_create_room_uses_joined_identity(self):
        async def scenario():
            h = Harness()
            conn, ws = await h.connect()
            await h.send(conn, type="join", playerId="p1", playerName="Alice")
            await h.send(conn, type="create_room")
            room_id = ws.of_type("room_created")[0]["roomId"]
            return h.registry.get_room(room_id)

        room = run(scenario())
        assert room.phase == Phase.WAITING
        assert room.participants[0].name == "Alice"
        assert room.participants[0].seat == BLACK

    def test_create_room_without_identity_dropped(self):
        async def scenario():
            h = Harness()
            conn, ws = await h.connect()
            await h.send(conn, type="create_room")
            return h, ws

        h, ws = run(scenario())
        assert ws.sent == []
        assert len(h.registry) == 0

    def test_both_receive_game_start(self):
        async def scenario():
            h = Harness()
            room_id, (_, alice_ws), (_, bob_ws) = await h.open_room()
            return room_id, alice_ws, bob_ws

        room_id, alice_ws, bob_ws = run(scenario())
        for ws in (alice_ws, bob_ws):
            assert [m["type"] for m in ws.room_events()] == ["player_joined", "game_start"]
            start = ws.of_type("game_start")[0]
            assert start["gameState"]["phase"] == "active"
            assert start["gameState"]["currentPlayer"] == BLACK
        assert alice_ws.of_type("player_joined")[0]["player"] == {"id": "p2", "name": "Bob", "seat": WHITE}

    def test_join_missing_room_errors(self):
        async def scenario():
            h = Harness()
            conn, ws = await h.connect()
            await h.send(conn, type="join_room", roomId="ZZZZZZ", playerId="p2", playerName="Bob")
            return ws.sent

        sent = run(scenario())
        assert len(sent) == 1
        assert sent[0]["type"] == "error"
        assert "ZZZZZZ" in sent[0]["message"]

    def test_join_full_room_errors(self):
        async def scenario():
            h = Harness()
            room_id, (_, alice_ws), (_, bob_ws) = await h.open_room()
            carol, carol_ws = await h.connect()
            await h.send(carol, type="join_room", roomId=room_id, playerId="p3", playerName="Carol")
            return h.registry.get_room(room_id), alice_ws, carol_ws

        room, alice_ws, carol_ws = run(scenario())
        assert [m["type"] for m in carol_ws.sent] == ["error"]
        assert len(room.participants) == 2
        assert alice_ws.of_type("player_joined")[-1]["player"]["name"] == "Bob"

    def test_invalid_move_silently_dropped(self):
        """Occupied, off-board and out-of-turn moves produce no envelope at all."""
        async def scenario():
            h = Harness()
            room_id, (alice, alice_ws), (bob, bob_ws) = await h.open_room()
            await h.send(alice, type="move", roomId=room_id, row=7, col=7, player=BLACK)
            before = (len(alice_ws.sent), len(bob_ws.sent))
            await h.send(bob, type="move", roomId=room_id, row=7, col=7, player=WHITE)
            await h.send(bob, type="move", roomId=room_id, row=15, col=0, player=WHITE)
            await h.send(alice, type="move", roomId=room_id, row=1, col=1, player=BLACK)
            await h.send(bob, type="move", roomId="NOPE00", row=1, col=1, player=WHITE)
            after = (len(alice_ws.sent), len(bob_ws.sent))
            return before, after

        before, after = run(scenario())
        assert before == after

    def test_malformed_frame_keeps_connection(self):
        async def scenario():
            h = Harness()
            conn, ws = await h.connect()
            await h.handler.handle_text(conn, "{{{ not json")
            await h.handler.handle_text(conn, json.dumps({"type": "unknown"}))
            await h.send(conn, type="join", playerId="p1", playerName="Alice")
            return h, conn, ws

        h, conn, ws = run(scenario())
        assert [m["type"] for m in ws.sent] == ["join_success"]
        assert h.manager.is_open(conn)

    def test_chat(self):
        async def scenario():
            h = Harness()
            room_id, (alice, alice_ws), (_, bob_ws) = await h.open_room()
            await h.send(alice, type="chat", roomId=room_id, message="good luck")
            return alice_ws, bob_ws

        alice_ws, bob_ws = run(scenario())
        for ws in (alice_ws, bob_ws):
            assert ws.of_type("chat") == [{"type": "chat", "sender": "Alice", "message": "good luck"}]

    def test_chat_from_stranger_dropped(self):
        async def scenario():
            h = Harness()
            room_id, (_, alice_ws), _ = await h.open_room()
            eve, eve_ws = await h.connect()
            await h.send(eve, type="chat", roomId=room_id, message="hi")
            return alice_ws, eve_ws

        alice_ws, eve_ws = run(scenario())
        assert alice_ws.of_type("chat") == []
        assert eve_ws.sent == []

    def test_closed_connection_skipped(self):
        async def scenario():
            h = Harness()
            room_id, (alice, alice_ws), (_, bob_ws) = await h.open_room()
            bob_ws.client_state = WebSocketState.DISCONNECTED
            count = len(bob_ws.sent)
            await h.send(alice, type="chat", roomId=room_id, message="anyone?")
            return alice_ws, bob_ws, count

        alice_ws, bob_ws, count = run(scenario())
        assert len(alice_ws.of_type("chat")) == 1
        assert len(bob_ws.sent) == count


class TestFullGame:
    """The create / join / play / win / restart scenario."""

    def test_scenario(self):
        async def scenario():
            h = Harness()
            room_id, (alice, alice_ws), (bob, bob_ws) = await h.open_room()

            await h.send(alice, type="move", roomId=room_id, row=7, col=7, player=BLACK)
            first_move = (alice_ws.of_type("move")[0], bob_ws.of_type("move")[0])

            white_cells = [(0, 0), (0, 1), (0, 2), (0, 3)]
            for i, (row, col) in enumerate(white_cells):
                await h.send(bob, type="move", roomId=room_id, row=row, col=col, player=WHITE)
                await h.send(alice, type="move", roomId=room_id, row=7, col=8 + i, player=BLACK)
            game_over = (alice_ws.of_type("game_over"), bob_ws.of_type("game_over"))

            await h.send(bob, type="restart", roomId=room_id)
            restart = (alice_ws.of_type("restart"), bob_ws.of_type("restart"))
            return h.registry.get_room(room_id), first_move, game_over, restart

        room, first_move, game_over, restart = run(scenario())

        for envelope in first_move:
            assert envelope["row"] == 7 and envelope["col"] == 7
            assert envelope["gameState"]["board"][7][7] == BLACK
            assert envelope["gameState"]["currentPlayer"] == WHITE

        for envelopes in game_over:
            assert len(envelopes) == 1
            assert envelopes[0]["winner"] == BLACK
            assert envelopes[0]["reason"] == "five_in_a_row"
            assert envelopes[0]["gameState"]["phase"] == "finished"

        for envelopes in restart:
            assert len(envelopes) == 1
            state = envelopes[0]["gameState"]
            assert all(cell == EMPTY for line in state["board"] for cell in line)
            assert state["currentPlayer"] == BLACK
            assert state["phase"] == "active"
        assert room.phase == Phase.ACTIVE


class TestOrdering:
    """Both participants observe room events in the same order."""

    def test_sequential(self):
        async def scenario():
            h = Harness()
            room_id, (alice, alice_ws), (bob, bob_ws) = await h.open_room()
            await h.send(alice, type="move", roomId=room_id, row=7, col=7, player=BLACK)
            await h.send(bob, type="chat", roomId=room_id, message="hmm")
            await h.send(bob, type="move", roomId=room_id, row=8, col=8, player=WHITE)
            await h.send(alice, type="restart", roomId=room_id)
            return alice_ws, bob_ws

        alice_ws, bob_ws = run(scenario())
        types = [m["type"] for m in alice_ws.room_events()]
        assert types == ["player_joined", "game_start", "move", "chat", "move", "restart"]
        assert alice_ws.room_events() == bob_ws.room_events()

    def test_concurrent_senders(self):
        """Interleaved commands from both sockets still fan out in one order."""
        async def scenario():
            h = Harness(yield_on_send=True)
            room_id, (alice, alice_ws), (bob, bob_ws) = await h.open_room()
            await asyncio.gather(
                *[h.send(alice, type="chat", roomId=room_id, message=f"a{i}") for i in range(10)],
                *[h.send(bob, type="chat", roomId=room_id, message=f"b{i}") for i in range(10)],
            )
            return alice_ws, bob_ws

        alice_ws, bob_ws = run(scenario())
        assert len(alice_ws.of_type("chat")) == 20
        assert alice_ws.room_events() == bob_ws.room_events()


class TestDisconnectReaper:
    """Tests for departures on transport close."""

    def test_survivor_notified(self):
        async def scenario():
            h = Harness()
            room_id, (_, alice_ws), (bob, _) = await h.open_room()
            await h.handler.handle_disconnect(bob)
            return h, room_id, alice_ws

        h, room_id, alice_ws = run(scenario())
        assert alice_ws.of_type("player_left") == [
            {"type": "player_left", "playerId": "p2", "playerName": "Bob"}
        ]
        room = h.registry.get_room(room_id)
        assert len(room.participants) == 1
        assert room.phase == Phase.WAITING

    def test_empty_room_removed(self):
        async def scenario():
            h = Harness()
            room_id, (alice, _), (bob, _) = await h.open_room()
            await h.handler.handle_disconnect(bob)
            await h.handler.handle_disconnect(alice)
            return h, room_id

        h, room_id = run(scenario())
        assert room_id not in h.registry
        assert len(h.manager) == 0

    def test_shutdown_closes_everything(self):
        async def scenario():
            h = Harness()
            _, (_, alice_ws), (_, bob_ws) = await h.open_room()
            await h.handler.shutdown()
            return h, alice_ws, bob_ws

        h, alice_ws, bob_ws = run(scenario())
        assert alice_ws.closed_with == 1001
        assert bob_ws.closed_with == 1001
        assert len(h.registry) == 0


class TestApp:
    """End-to-end tests through FastAPI's TestClient."""

    @pytest.fixture
    def client(self):
        with TestClient(create_app()) as client:
            yield client

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "activeRooms": 0, "connections": 0}

    def test_room_not_found(self, client):
        assert client.get("/api/rooms/NOPE00").status_code == 404

    def test_play_over_websocket(self, client):
        with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
            alice.send_json({"type": "create_room", "playerId": "p1", "playerName": "Alice"})
            room_id = alice.receive_json()["roomId"]

            bob.send_json({"type": "join_room", "roomId": room_id.lower(),
                           "playerId": "p2", "playerName": "Bob"})
            for ws in (alice, bob):
                assert ws.receive_json()["type"] == "player_joined"
                assert ws.receive_json()["type"] == "game_start"

            alice.send_text("garbage")
            alice.send_json({"type": "move", "roomId": room_id, "row": 7, "col": 7, "player": BLACK})
            for ws in (alice, bob):
                move = ws.receive_json()
                assert move["type"] == "move"
                assert move["gameState"]["board"][7][7] == BLACK

            detail = client.get(f"/api/rooms/{room_id.lower()}").json()
            assert detail["roomId"] == room_id
            assert [p["seat"] for p in detail["participants"]] == [BLACK, WHITE]
            assert detail["gameState"]["moveCount"] == 1

            listing = client.get("/api/rooms").json()
            assert [r["roomId"] for r in listing["rooms"]] == [room_id]

            bob.close()
            left = alice.receive_json()
            assert left == {"type": "player_left", "playerId": "p2", "playerName": "Bob"}

            assert client.get(f"/api/rooms/{room_id}").json()["gameState"]["phase"] == "waiting"
