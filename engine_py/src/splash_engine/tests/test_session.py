"""
Client session tests: state machine, roster merge, snapshots and dispatch.
"""

import asyncio
import json

import pytest
import pytest_asyncio

from splash_engine.client import EventEmitter, GameSession, SessionConfig, SessionEvent, SessionStatus
from splash_engine.engine import start_game
from splash_engine.errors import (
    ILLEGAL, NO_GAME, NO_PLAYER, NOT_CONNECTED, NOT_ENOUGH_PLAYERS, NOT_HOST, NOT_YOUR_TURN
)
from splash_engine.models import Card, Identity, Player
from splash_engine.rules import create_rules
from splash_engine.serialization import state_to_dict


class FakeTransport:
    """Records outgoing frames instead of talking to a relay."""

    def __init__(self):
        self.sent = []
        self.closed = False

    async def send(self, data: str):
        self.sent.append(json.loads(data))

    async def close(self):
        self.closed = True


class DroppingTransport(FakeTransport):
    """Accepts the join, then fails every later send like a dead socket."""

    async def send(self, data: str):
        if self.sent:
            raise ConnectionError("gone")
        await super().send(data)


async def wait_for(condition, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.01)


def welcome(seat):
    return json.dumps({"type": "welcome", "seat": seat})


def roster(*names):
    return json.dumps({"type": "players", "players": [
        {"id": f"c{seat}", "name": name, "seat": seat} for seat, name in enumerate(names)
    ]})


def snapshot(state, sender="c0"):
    return json.dumps({"type": "state", "payload": {"senderId": sender, "state": state_to_dict(state)}})


def dealt_game(names=("Alice", "Bob", "Carol")):
    return start_game([Player(name=name) for name in names], seed=11).state


@pytest_asyncio.fixture
async def session():
    session = GameSession(SessionConfig(url="ws://relay.test/ws", room="family", name="Alice", client_id="c0"))
    transport = FakeTransport()
    await session.attach(transport)
    session.transport_log = transport
    yield session
    await session.disconnect()


def test_config_socket_url():
    config = SessionConfig(url="ws://relay.test/ws", room="The Den")
    assert config.socket_url() == "ws://relay.test/ws?room=The+Den"
    assert config.client_id
    assert SessionConfig().client_id != SessionConfig().client_id


@pytest.mark.asyncio
async def test_attach_sends_join(session):
    assert session.status == SessionStatus.CONNECTED
    assert session.transport_log.sent == [{"type": "join", "id": "c0", "name": "Alice"}]


@pytest.mark.asyncio
async def test_heartbeat_pings_while_connected():
    session = GameSession(SessionConfig(client_id="c0"), rules=create_rules(heartbeat_interval=0.01))
    transport = FakeTransport()
    await session.attach(transport)

    await wait_for(lambda: {"type": "ping"} in transport.sent)
    assert transport.sent[0]["type"] == "join"
    await session.disconnect()


@pytest.mark.asyncio
async def test_failed_heartbeat_disconnects():
    session = GameSession(SessionConfig(client_id="c0"), rules=create_rules(heartbeat_interval=0.01))
    seen = []
    session.events.subscribe(SessionEvent.CONNECTION_ERROR, lambda e: seen.append("error"))
    session.events.subscribe(SessionEvent.CONNECTION_CLOSED, lambda _: seen.append("closed"))
    transport = DroppingTransport()
    await session.attach(transport)
    session.handle_message(welcome(0))

    await wait_for(lambda: session.status == SessionStatus.DISCONNECTED)
    assert seen == ["error", "closed"]
    assert session.seat is None
    assert transport.closed


@pytest.mark.asyncio
async def test_state_machine_follows_messages(session):
    seen = []
    session.events.subscribe(SessionEvent.SEAT_ASSIGNED, seen.append)

    session.handle_message(welcome(0))
    assert session.status == SessionStatus.SEATED
    assert session.seat == 0
    assert session.is_host()
    assert seen == [0]

    session.handle_message(snapshot(dealt_game()))
    assert session.status == SessionStatus.IN_GAME

    await session.disconnect()
    assert session.status == SessionStatus.DISCONNECTED
    assert session.seat is None
    assert session.state is None
    assert session.transport_log.closed


@pytest.mark.asyncio
async def test_roster_sizes_lobby_skeleton(session):
    session.handle_message(welcome(1))
    session.handle_message(json.dumps({"type": "players", "players": [
        {"id": "c0", "name": "Alice", "seat": 0},
        {"id": "c2", "name": "Carol", "seat": 2},
    ]}))

    assert session.identities == [Identity(id="c0", name="Alice", seat=0), Identity(id="c2", name="Carol", seat=2)]
    assert [p.name for p in session.lobby.players] == ["Alice", "Player", "Carol"]
    assert all(p.hand == [] for p in session.lobby.players)
    assert len({p.emoji for p in session.lobby.players}) == 3
    assert session.get_me().name == "Player"
    assert session.state is None


@pytest.mark.asyncio
async def test_roster_renames_without_touching_cards(session):
    game = dealt_game()
    session.handle_message(welcome(0))
    session.handle_message(snapshot(game))
    hands_before = [list(p.hand) for p in session.state.players]
    table_before = [list(p.table_up) for p in session.state.players]

    session.handle_message(roster("Alice", "Robert"))
    assert [p.name for p in session.state.players] == ["Alice", "Robert", "Carol"]
    assert [list(p.hand) for p in session.state.players] == hands_before
    assert [list(p.table_up) for p in session.state.players] == table_before


@pytest.mark.asyncio
async def test_snapshot_replaces_state_and_clears_selection(session):
    session.handle_message(welcome(0))
    session.handle_message(snapshot(dealt_game()))
    first = session.state
    session.toggle_selection(first.players[0].hand[0].id)
    assert session.selection

    replacement = dealt_game(("X", "Y"))
    session.handle_message(snapshot(replacement))
    assert session.state == replacement
    assert session.state is not first
    assert session.selection == []


@pytest.mark.asyncio
async def test_malformed_messages_are_ignored(session):
    session.handle_message(welcome(0))
    session.handle_message(snapshot(dealt_game()))
    kept = session.state

    for raw in ["{bad json", "[]", json.dumps({"type": "nope"}),
                json.dumps({"type": "state", "payload": {"state": {"players": "x"}}}),
                json.dumps({"type": "pong"})]:
        session.handle_message(raw)
    assert session.state is kept
    assert session.status == SessionStatus.IN_GAME


@pytest.mark.asyncio
async def test_start_game_is_host_only(session):
    session.handle_message(welcome(1))
    session.handle_message(roster("Alice", "Bob"))
    result = await session.start_game()
    assert not result.success
    assert result.error_code == NOT_HOST


@pytest.mark.asyncio
async def test_start_game_needs_seats(session):
    session.handle_message(welcome(0))
    session.handle_message(roster("Alice"))
    result = await session.start_game()
    assert result.error_code == NOT_ENOUGH_PLAYERS


@pytest.mark.asyncio
async def test_start_game_submits_full_snapshot(session):
    session.handle_message(welcome(0))
    session.handle_message(roster("Alice", "Bob", "Carol"))

    result = await session.start_game()
    assert result.success
    sent = session.transport_log.sent[-1]
    assert sent["type"] == "action"
    assert sent["action"]["type"] == "START"
    assert [p["name"] for p in sent["action"]["state"]["players"]] == ["Alice", "Bob", "Carol"]
    assert sent["action"]["state"]["currentPlayer"] == 0

    # Optimistic until echoed
    assert session.state is None
    assert session.view is result.state
    session.handle_message(json.dumps({"type": "state", "payload": {"senderId": "c0", "state": sent["action"]["state"]}}))
    assert session.state == result.state
    assert session.status == SessionStatus.IN_GAME


@pytest.mark.asyncio
async def test_play_and_pickup_dispatch(session):
    game = dealt_game()
    game.pile = []
    game.must_play_any = False
    game.players[0].hand = [Card(id="7a", rank="7", suit="♠"), Card(id="9a", rank="9", suit="♥")]
    session.handle_message(welcome(0))
    session.handle_message(snapshot(game))
    assert session.is_my_turn()

    result = await session.play(["7a"])
    assert result.success
    sent = session.transport_log.sent[-1]
    assert sent["action"]["type"] == "UPDATE"
    assert sent["action"]["state"]["currentPlayer"] == 1
    assert sent["action"]["state"]["pile"][-1]["id"] == "7a"

    # The draft already moved the turn on
    assert not session.is_my_turn()
    assert session.top_rank() == "7"
    assert (await session.pickup()).error_code == NOT_YOUR_TURN

    # A broadcast discards the draft
    session.handle_message(snapshot(game))
    assert session.is_my_turn()
    assert session.top_rank() is None


@pytest.mark.asyncio
async def test_play_uses_pending_selection(session):
    game = dealt_game()
    game.pile = [Card(id="3x", rank="3", suit="♣")]
    game.must_play_any = False
    game.players[0].hand = [Card(id="9a", rank="9", suit="♥"), Card(id="2a", rank="2", suit="♥")]
    session.handle_message(welcome(0))
    session.handle_message(snapshot(game))

    assert session.toggle_selection("9a")
    assert not session.can_play_on_top("9")
    result = await session.play()
    assert result.error_code == ILLEGAL
    assert session.selection == ["9a"]

    assert not session.toggle_selection("9a")
    session.toggle_selection("2a")
    result = await session.play()
    assert result.success
    assert session.selection == []


@pytest.mark.asyncio
async def test_actions_without_game_or_seat(session):
    assert (await session.play(["x"])).error_code == NO_PLAYER
    session.handle_message(welcome(2))
    assert (await session.play(["x"])).error_code == NO_GAME
    assert (await session.pickup()).error_code == NO_GAME
    assert session.top_rank() is None
    assert not session.can_play_on_top("5")
    assert not session.is_my_turn()


@pytest.mark.asyncio
async def test_actions_need_connection():
    session = GameSession(SessionConfig(client_id="c0"))
    assert (await session.start_game()).error_code == NOT_CONNECTED
    assert (await session.play(["x"])).error_code == NOT_CONNECTED
    assert (await session.pickup()).error_code == NOT_CONNECTED
    assert (await session.reset_game()).error_code == NOT_CONNECTED


@pytest.mark.asyncio
async def test_reset_returns_to_seated(session):
    resets = []
    session.events.subscribe(SessionEvent.GAME_RESET, resets.append)
    session.handle_message(welcome(0))
    session.handle_message(roster("Alice", "Bob"))
    session.handle_message(snapshot(dealt_game(("Alice", "Bob"))))

    result = await session.reset_game()
    assert result.success
    assert session.transport_log.sent[-1] == {"type": "reset"}

    session.handle_message(json.dumps({"type": "reset"}))
    assert session.state is None
    assert session.status == SessionStatus.SEATED
    assert [p.name for p in session.lobby.players] == ["Alice", "Bob"]
    assert resets == [None]


@pytest.mark.asyncio
async def test_events_delivered_for_each_message(session):
    seen = []
    for event in SessionEvent:
        session.events.subscribe(event, lambda payload, event=event: seen.append(event))

    session.handle_message(welcome(0))
    session.handle_message(roster("Alice", "Bob"))
    session.handle_message(snapshot(dealt_game(("Alice", "Bob"))))
    await session.disconnect()

    assert seen == [
        SessionEvent.SEAT_ASSIGNED,
        SessionEvent.ROSTER_UPDATED,
        SessionEvent.STATE_UPDATED,
        SessionEvent.CONNECTION_CLOSED,
    ]


def test_emitter_isolates_failing_subscribers():
    emitter = EventEmitter()
    received = []

    def broken(payload):
        raise RuntimeError("boom")

    emitter.subscribe(SessionEvent.STATE_UPDATED, lambda p: received.append(("first", p)))
    emitter.subscribe(SessionEvent.STATE_UPDATED, broken)
    unsubscribe = emitter.subscribe(SessionEvent.STATE_UPDATED, lambda p: received.append(("last", p)))

    emitter.emit(SessionEvent.STATE_UPDATED, 1)
    assert received == [("first", 1), ("last", 1)]

    unsubscribe()
    unsubscribe()
    emitter.emit(SessionEvent.STATE_UPDATED, 2)
    assert received == [("first", 1), ("last", 1), ("first", 2)]
