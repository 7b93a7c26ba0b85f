"""
Wire format tests: event parsing and snapshot serialization.
"""

import pytest

from splash_engine.engine import start_game
from splash_engine.errors import GameError
from splash_engine.models import Player
from splash_engine.serialization import decode_message, encode_message, state_from_dict, state_to_dict
from splash_engine.ws.events import (
    ActionEvent, JoinEvent, PingEvent, StateEvent, WelcomeEvent,
    create_action_event, create_state_event, parse_inbound_event, parse_outbound_event, to_wire
)


def test_parse_inbound_events():
    event = parse_inbound_event({"type": "join", "id": "c1", "name": "Alice"})
    assert isinstance(event, JoinEvent)
    assert event.id == "c1"
    assert event.name == "Alice"

    assert parse_inbound_event({"type": "join", "id": "c2"}).name == "Player"
    assert parse_inbound_event({"type": "join", "id": "c2", "name": None}).name == "Player"
    assert parse_inbound_event({"type": "join", "id": "c2", "name": "x" * 40}).name == "x" * 30
    assert isinstance(parse_inbound_event({"type": "ping"}), PingEvent)

    event = parse_inbound_event({"type": "action", "action": {"type": "UPDATE", "state": {"x": 1}}})
    assert isinstance(event, ActionEvent)
    assert event.action.type == "UPDATE"
    assert event.action.state == {"x": 1}


@pytest.mark.parametrize("data", [
    {},
    {"type": "invalid"},
    {"type": ["join"]},
    {"type": "join"},
    {"type": "action", "action": {"type": "DEAL", "state": {}}},
    {"type": "action", "action": {"type": "START"}},
    {"type": "welcome", "seat": 0},
])
def test_parse_inbound_rejects_malformed(data):
    with pytest.raises(ValueError):
        parse_inbound_event(data)


def test_parse_outbound_events():
    assert parse_outbound_event({"type": "welcome", "seat": 2}).seat == 2
    event = parse_outbound_event({"type": "state", "payload": {"senderId": "c1", "state": {"a": 1}}})
    assert isinstance(event, StateEvent)
    assert event.payload.senderId == "c1"

    with pytest.raises(ValueError):
        parse_outbound_event({"type": "welcome"})
    with pytest.raises(ValueError):
        parse_outbound_event({"type": "join", "id": "c1"})


def test_wire_shapes():
    assert to_wire(WelcomeEvent(seat=1)) == {"type": "welcome", "seat": 1}
    assert to_wire(create_state_event({"k": [1]}, "c9")) == {
        "type": "state", "payload": {"senderId": "c9", "state": {"k": [1]}}
    }
    assert to_wire(create_action_event("START", {})) == {
        "type": "action", "action": {"type": "START", "state": {}}
    }
    with pytest.raises(ValueError):
        create_action_event("DEAL", {})


def test_decode_message():
    assert decode_message('{"type":"ping"}') == {"type": "ping"}
    assert decode_message(encode_message({"suit": "♥"})) == {"suit": "♥"}
    with pytest.raises(ValueError):
        decode_message("{not json")
    with pytest.raises(ValueError):
        decode_message("[1, 2]")


def test_snapshot_uses_camel_case_keys():
    state = start_game([Player(name="A", emoji="🐳"), Player(name="B", emoji="🐙")], seed=5).state
    data = state_to_dict(state)

    assert set(data) == {"players", "deck", "discard", "pile", "currentPlayer", "mustPlayAny"}
    assert set(data["players"][0]) == {"name", "emoji", "hand", "tableUp", "tableDown"}
    assert set(data["players"][0]["hand"][0]) == {"id", "rank", "suit"}

    restored = state_from_dict(decode_message(encode_message(data)))
    assert restored == state


def test_snapshot_keeps_empty_table_slots():
    state = start_game([Player(name="A"), Player(name="B")], seed=5).state
    state.players[0].table_up[2] = None
    data = state_to_dict(state)
    assert data["players"][0]["tableUp"][2] is None
    assert state_from_dict(data).players[0].table_up[2] is None


@pytest.mark.parametrize("data", [
    None,
    [],
    {"deck": []},
    {"players": [{"hand": [{"id": "x", "rank": "11", "suit": "♠"}]}]},
    {"players": [{"hand": [{"id": "x"}]}]},
    {"players": [{"hand": "nope"}]},
    {"players": [{}], "currentPlayer": 3},
    {"players": [{}], "currentPlayer": "0"},
])
def test_malformed_snapshot_raises(data):
    with pytest.raises(GameError):
        state_from_dict(data)
