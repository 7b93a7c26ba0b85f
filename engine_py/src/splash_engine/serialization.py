"""
State serialization for the wire.

Snapshots travel as camelCase dicts (``tableUp``, ``currentPlayer``,
``mustPlayAny``) so every client sees the same shape the host sent.
"""

from typing import Any, Dict, List, Optional

import orjson

from .constants import ALL_RANKS
from .errors import MALFORMED_STATE, GameError, raise_error
from .models import Card, GameState, Identity, Player


def card_to_dict(card: Optional[Card]) -> Optional[Dict[str, Any]]:
    if card is None:
        return None
    return {"id": card.id, "rank": card.rank, "suit": card.suit}


def card_from_dict(data: Optional[Dict[str, Any]]) -> Optional[Card]:
    if data is None:
        return None
    try:
        card = Card(id=str(data["id"]), rank=data["rank"], suit=str(data["suit"]))
    except (KeyError, TypeError) as e:
        raise GameError(MALFORMED_STATE, f"Invalid card: {e}")
    if card.rank not in ALL_RANKS:
        raise_error(MALFORMED_STATE, f"Invalid rank: {card.rank!r}")
    return card


def _cards(data: Any) -> List[Card]:
    if not isinstance(data, list):
        raise_error(MALFORMED_STATE, "Expected a list of cards")
    return [card_from_dict(item) for item in data if item is not None]


def _slots(data: Any) -> List[Optional[Card]]:
    if not isinstance(data, list):
        raise_error(MALFORMED_STATE, "Expected a list of table slots")
    return [card_from_dict(item) for item in data]


def player_to_dict(player: Player) -> Dict[str, Any]:
    return {
        "name": player.name,
        "emoji": player.emoji,
        "hand": [card_to_dict(card) for card in player.hand],
        "tableUp": [card_to_dict(card) for card in player.table_up],
        "tableDown": [card_to_dict(card) for card in player.table_down],
    }


def player_from_dict(data: Dict[str, Any]) -> Player:
    if not isinstance(data, dict):
        raise_error(MALFORMED_STATE, "Expected a player object")
    return Player(
        name=str(data.get("name", "")),
        emoji=str(data.get("emoji", "")),
        hand=_cards(data.get("hand", [])),
        table_up=_slots(data.get("tableUp", [])),
        table_down=_slots(data.get("tableDown", [])),
    )


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """Serialize a full snapshot."""
    return {
        "players": [player_to_dict(player) for player in state.players],
        "deck": [card_to_dict(card) for card in state.deck],
        "discard": [card_to_dict(card) for card in state.discard],
        "pile": [card_to_dict(card) for card in state.pile],
        "currentPlayer": state.current_player,
        "mustPlayAny": state.must_play_any,
    }


def state_from_dict(data: Dict[str, Any]) -> GameState:
    """
    Rebuild a snapshot received from the relay.

    Raises:
        GameError: if the payload does not describe a usable game state
    """
    if not isinstance(data, dict):
        raise_error(MALFORMED_STATE, "Expected a state object")

    players = data.get("players")
    if not isinstance(players, list):
        raise_error(MALFORMED_STATE, "State has no player list")

    state = GameState(
        players=[player_from_dict(player) for player in players],
        deck=_cards(data.get("deck", [])),
        discard=_cards(data.get("discard", [])),
        pile=_cards(data.get("pile", [])),
        current_player=data.get("currentPlayer", 0),
        must_play_any=bool(data.get("mustPlayAny", False)),
    )

    if not isinstance(state.current_player, int) or not 0 <= state.current_player < max(len(state.players), 1):
        raise_error(MALFORMED_STATE, f"currentPlayer out of range: {state.current_player!r}")

    return state


def identity_to_dict(identity: Identity) -> Dict[str, Any]:
    return {"id": identity.id, "name": identity.name, "seat": identity.seat}


def identity_from_dict(data: Dict[str, Any]) -> Identity:
    try:
        return Identity(id=str(data["id"]), name=str(data["name"]), seat=int(data["seat"]))
    except (KeyError, TypeError, ValueError) as e:
        raise GameError(MALFORMED_STATE, f"Invalid roster entry: {e}")


def encode_message(message: Dict[str, Any]) -> str:
    return orjson.dumps(message).decode()


def decode_message(raw: str) -> Dict[str, Any]:
    """
    Decode one wire message.

    Raises:
        ValueError: on invalid JSON or a payload that is not an object
    """
    data = orjson.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Message is not a JSON object")
    return data
