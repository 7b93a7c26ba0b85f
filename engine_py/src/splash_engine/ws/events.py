"""
WebSocket event models and validation.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..constants import ACTION_START, ACTION_UPDATE, DEFAULT_PLAYER_NAME, MAX_NAME_LENGTH, SERVER_SENDER_ID


class EventType(str, Enum):
    """Inbound (client to relay) event types."""
    JOIN = "join"
    ACTION = "action"
    RESET = "reset"
    PING = "ping"


class OutboundEventType(str, Enum):
    """Outbound (relay to client) event types."""
    WELCOME = "welcome"
    PLAYERS = "players"
    STATE = "state"
    RESET = "reset"
    PONG = "pong"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class JoinEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN
    id: str = Field(..., min_length=1)
    name: str = DEFAULT_PLAYER_NAME

    @field_validator('name', mode='before')
    @classmethod
    def default_blank_name(cls, v):
        """Missing or blank names fall back to the default; long names are cut, not rejected."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_PLAYER_NAME
        if isinstance(v, str):
            return v[:MAX_NAME_LENGTH]
        return v


class GameAction(BaseModel):
    """Full snapshot submitted by the host or the current seat."""
    type: Literal["START", "UPDATE"]
    state: Dict[str, Any]


class ActionEvent(BaseEvent):
    """Snapshot submission event."""
    type: EventType = EventType.ACTION
    action: GameAction


class ResetEvent(BaseEvent):
    """Host request to drop the current game."""
    type: EventType = EventType.RESET


class PingEvent(BaseEvent):
    """Heartbeat event."""
    type: EventType = EventType.PING


# Union type for all inbound events
InboundEvent = Union[JoinEvent, ActionEvent, ResetEvent, PingEvent]


# Outbound event models
class PlayerEntry(BaseModel):
    """Roster entry as broadcast to clients."""
    id: str
    name: str
    seat: int


class WelcomeEvent(BaseModel):
    """Seat assignment sent to the joining socket only."""
    type: OutboundEventType = OutboundEventType.WELCOME
    seat: int


class PlayersEvent(BaseModel):
    """Roster broadcast."""
    type: OutboundEventType = OutboundEventType.PLAYERS
    players: List[PlayerEntry]


class StatePayload(BaseModel):
    """Snapshot wrapper inside a state broadcast."""
    senderId: Optional[str] = None
    state: Dict[str, Any]


class StateEvent(BaseModel):
    """Full snapshot broadcast."""
    type: OutboundEventType = OutboundEventType.STATE
    payload: StatePayload


class ResetBroadcastEvent(BaseModel):
    """Game dropped by the host."""
    type: OutboundEventType = OutboundEventType.RESET


class PongEvent(BaseModel):
    """Heartbeat reply."""
    type: OutboundEventType = OutboundEventType.PONG


# Union type for all outbound events
OutboundEvent = Union[WelcomeEvent, PlayersEvent, StateEvent, ResetBroadcastEvent, PongEvent]


def _parse(data: Dict[str, Any], event_map: Dict[Any, Any], enum_type) -> Any:
    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = enum_type(event_type)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid event type: {event_type}")

    event_class = event_map[event_type]

    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {str(e)}")


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data received by the relay.

    Args:
        data: Decoded message from a client socket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    return _parse(data, {
        EventType.JOIN: JoinEvent,
        EventType.ACTION: ActionEvent,
        EventType.RESET: ResetEvent,
        EventType.PING: PingEvent,
    }, EventType)


def parse_outbound_event(data: Dict[str, Any]) -> OutboundEvent:
    """Parse raw event data received by a client. Raises ValueError like ``parse_inbound_event``."""
    return _parse(data, {
        OutboundEventType.WELCOME: WelcomeEvent,
        OutboundEventType.PLAYERS: PlayersEvent,
        OutboundEventType.STATE: StateEvent,
        OutboundEventType.RESET: ResetBroadcastEvent,
        OutboundEventType.PONG: PongEvent,
    }, OutboundEventType)


def create_welcome_event(seat: int) -> WelcomeEvent:
    return WelcomeEvent(seat=seat)


def create_players_event(players: List[Dict[str, Any]]) -> PlayersEvent:
    return PlayersEvent(players=[PlayerEntry(**player) for player in players])


def create_state_event(state: Dict[str, Any], sender_id: str = SERVER_SENDER_ID) -> StateEvent:
    return StateEvent(payload=StatePayload(senderId=sender_id, state=state))


def create_action_event(action_type: str, state: Dict[str, Any]) -> ActionEvent:
    if action_type not in (ACTION_START, ACTION_UPDATE):
        raise ValueError(f"Invalid action type: {action_type}")
    return ActionEvent(action=GameAction(type=action_type, state=state))


def to_wire(event: BaseModel) -> Dict[str, Any]:
    """Plain dict ready for JSON encoding (enum members become their values)."""
    return event.model_dump(mode="json")
