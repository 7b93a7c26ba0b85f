"""
Client-side game session.

The session keeps the last snapshot broadcast by the relay and treats it
as the only source of truth. Actions are validated and applied locally
against a copy, the whole resulting snapshot is sent to the relay, and the
copy is kept as an optimistic draft only until the next broadcast replaces
it. Nothing here is durable until the relay echoes it back.
"""

import asyncio
import logging
import os
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException
from pydantic import BaseModel, Field

from .. import comparator
from ..constants import (
    ACTION_START, ACTION_UPDATE, DEFAULT_PLAYER_NAME, DEFAULT_ROOM, HOST_SEAT, MAX_NAME_LENGTH, MSG_JOIN,
    MSG_PING, MSG_RESET, emoji_for_seat
)
from ..engine import ActionResult, pick_up, play_cards, start_game
from ..errors import GameError, NO_PLAYER, NOT_CONNECTED, NOT_HOST
from ..models import GameState, Identity, Player, Rank
from ..rules import RuleConfig, default_rules
from ..serialization import decode_message, encode_message, identity_from_dict, state_from_dict, state_to_dict
from ..ws.events import (
    PlayersEvent, PongEvent, ResetBroadcastEvent, StateEvent, WelcomeEvent,
    create_action_event, parse_outbound_event, to_wire
)
from .emitter import EventEmitter, SessionEvent

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"  # socket open, no seat yet
    SEATED = "seated"
    IN_GAME = "in_game"


class SessionConfig(BaseModel):
    """Where and as whom a session connects."""
    url: str = Field(default_factory=lambda: os.getenv("SPLASH_WS_URL", "ws://localhost:8000/ws"))
    room: str = Field(default_factory=lambda: os.getenv("SPLASH_ROOM", DEFAULT_ROOM), min_length=1)
    name: str = Field(default=DEFAULT_PLAYER_NAME, max_length=MAX_NAME_LENGTH)
    client_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    def socket_url(self) -> str:
        return f"{self.url}?{urlencode({'room': self.room})}"


class GameSession:
    """One client's view of a room: seat, roster, snapshot and action dispatch."""

    def __init__(self, config: Optional[SessionConfig] = None, rules: RuleConfig = default_rules,
                 seed: Optional[int] = None):
        self.config = config or SessionConfig()
        self.rules = rules
        self.seed = seed
        self.events = EventEmitter()

        self.status = SessionStatus.DISCONNECTED
        self.seat: Optional[int] = None
        self.identities: List[Identity] = []

        self._state: Optional[GameState] = None
        self._draft: Optional[GameState] = None
        self._lobby = GameState()
        self._selection: List[str] = []

        self._transport: Any = None
        self._receiver: Optional[asyncio.Task] = None
        self._heartbeat: Optional[asyncio.Task] = None

    # Connection lifecycle

    async def connect(self) -> bool:
        """Open the socket, join the room and start the receive loop."""
        self.status = SessionStatus.CONNECTING
        try:
            transport = await websockets.connect(self.config.socket_url())
        except (OSError, WebSocketException) as e:
            logger.error(f"Could not connect to {self.config.socket_url()}: {e}")
            self.status = SessionStatus.DISCONNECTED
            self.events.emit(SessionEvent.CONNECTION_ERROR, e)
            return False

        await self.attach(transport)
        self._receiver = asyncio.create_task(self._receive_loop())
        return True

    async def attach(self, transport: Any):
        """Adopt an open transport (anything with async ``send``/``close``) and join."""
        self._transport = transport
        self.status = SessionStatus.CONNECTED
        self.events.emit(SessionEvent.CONNECTION_OPENED)
        await self._send({"type": MSG_JOIN, "id": self.config.client_id, "name": self.config.name})
        self._heartbeat = asyncio.create_task(self._heartbeat_loop())

    async def disconnect(self):
        """Close the socket. Seat, roster and snapshot are dropped; there is no resume."""
        transport = self._transport
        self._transport = None
        for task in (self._heartbeat, self._receiver):
            if task is not None and task is not asyncio.current_task():
                task.cancel()
        self._heartbeat = self._receiver = None
        if transport is not None:
            try:
                await transport.close()
            except Exception as e:
                logger.error(f"Error closing transport: {e}")
        self._closed()

    def _closed(self):
        if self.status == SessionStatus.DISCONNECTED:
            return
        self.status = SessionStatus.DISCONNECTED
        self.seat = None
        self.identities = []
        self._state = self._draft = None
        self._lobby = GameState()
        self._selection = []
        self.events.emit(SessionEvent.CONNECTION_CLOSED)

    async def _receive_loop(self):
        transport = self._transport
        try:
            async for raw in transport:
                self.handle_message(raw)
        except ConnectionClosed as e:
            logger.info(f"Connection closed: {e}")
        except Exception as e:
            logger.error(f"Connection error: {e}")
            self.events.emit(SessionEvent.CONNECTION_ERROR, e)
        finally:
            self._receiver = None
            await self.disconnect()

    async def _heartbeat_loop(self):
        while True:
            await asyncio.sleep(self.rules.heartbeat_interval)
            if self._transport is None:
                continue
            try:
                await self._send({"type": MSG_PING})
            except (WebSocketException, OSError) as e:
                logger.error(f"Heartbeat failed: {e}")
                self.events.emit(SessionEvent.CONNECTION_ERROR, e)
                await self.disconnect()
                return

    async def _send(self, message: Dict[str, Any]):
        await self._transport.send(encode_message(message))

    # Inbound messages

    def handle_message(self, raw: str):
        """Apply one relay message. Malformed messages are dropped."""
        try:
            event = parse_outbound_event(decode_message(raw))
        except ValueError as e:
            logger.debug(f"Dropped malformed message: {e}")
            return

        if isinstance(event, WelcomeEvent):
            self._on_welcome(event)
        elif isinstance(event, PlayersEvent):
            self._on_players(event)
        elif isinstance(event, StateEvent):
            self._on_state(event)
        elif isinstance(event, ResetBroadcastEvent):
            self._on_reset()
        elif isinstance(event, PongEvent):
            pass

    def _on_welcome(self, event: WelcomeEvent):
        self.seat = event.seat
        if self.status == SessionStatus.CONNECTED:
            self.status = SessionStatus.SEATED
        self.events.emit(SessionEvent.SEAT_ASSIGNED, event.seat)

    def _on_players(self, event: PlayersEvent):
        self.identities = [identity_from_dict(entry.model_dump()) for entry in event.players]
        if self._state is not None:
            for state in (self._state, self._draft):
                if state is not None:
                    self._merge_names(state)
        else:
            self._lobby = self._lobby_skeleton()
        self.events.emit(SessionEvent.ROSTER_UPDATED, list(self.identities))

    def _merge_names(self, state: GameState):
        for identity in self.identities:
            player = state.player_at(identity.seat)
            if player is not None:
                player.name = identity.name

    def _lobby_skeleton(self) -> GameState:
        names = {identity.seat: identity.name for identity in self.identities}
        size = max(names) + 1 if names else 0
        return GameState(players=[
            Player(name=names.get(seat, DEFAULT_PLAYER_NAME), emoji=emoji_for_seat(seat))
            for seat in range(size)
        ])

    def _on_state(self, event: StateEvent):
        try:
            state = state_from_dict(event.payload.state)
        except GameError as e:
            logger.debug(f"Dropped malformed snapshot: {e}")
            return

        self._state = state
        self._draft = None
        self._selection = []
        if self.status in (SessionStatus.CONNECTED, SessionStatus.SEATED):
            self.status = SessionStatus.IN_GAME
        self.events.emit(SessionEvent.STATE_UPDATED, state)

    def _on_reset(self):
        self._state = self._draft = None
        self._selection = []
        self._lobby = self._lobby_skeleton()
        if self.status == SessionStatus.IN_GAME:
            self.status = SessionStatus.SEATED
        self.events.emit(SessionEvent.GAME_RESET)

    # Read accessors

    @property
    def state(self) -> Optional[GameState]:
        """Last snapshot broadcast by the relay."""
        return self._state

    @property
    def view(self) -> Optional[GameState]:
        """Optimistic draft if one is pending, else the broadcast snapshot."""
        return self._draft if self._draft is not None else self._state

    @property
    def lobby(self) -> GameState:
        return self._lobby

    @property
    def connected(self) -> bool:
        return self._transport is not None and self.status not in (
            SessionStatus.DISCONNECTED, SessionStatus.CONNECTING
        )

    def is_host(self) -> bool:
        return self.seat == HOST_SEAT

    def is_my_turn(self) -> bool:
        view = self.view
        return view is not None and self.seat is not None and view.current_player == self.seat

    def get_me(self) -> Optional[Player]:
        view = self.view
        return (view if view is not None else self._lobby).player_at(self.seat)

    def top_rank(self) -> Optional[Rank]:
        view = self.view
        return comparator.top_rank(view.pile) if view is not None else None

    def can_play_on_top(self, rank: Rank) -> bool:
        view = self.view
        return view is not None and comparator.can_play_on_top(rank, view)

    # Pending selection

    @property
    def selection(self) -> List[str]:
        return list(self._selection)

    def toggle_selection(self, card_id: str) -> bool:
        """Add or remove a card from the pending selection; returns True if now selected."""
        if card_id in self._selection:
            self._selection.remove(card_id)
            return False
        self._selection.append(card_id)
        return True

    def clear_selection(self):
        self._selection = []

    # Action dispatch

    async def start_game(self) -> ActionResult:
        """Host only: deal a fresh game for the current seats and submit it."""
        if not self.connected:
            return ActionResult.fail(NOT_CONNECTED, "Not connected")
        if not self.is_host():
            return ActionResult.fail(NOT_HOST, "Only the host can start a game")

        seats = self.view.players if self.view is not None else self._lobby.players
        result = start_game(seats, self.seed, self.rules)
        if result.success:
            await self._submit(ACTION_START, result.state)
        return result

    async def play(self, card_ids: Optional[List[str]] = None) -> ActionResult:
        """Play ``card_ids`` (default: the pending selection) and submit the result."""
        if not self.connected:
            return ActionResult.fail(NOT_CONNECTED, "Not connected")
        if self.seat is None:
            return ActionResult.fail(NO_PLAYER, "No seat assigned")

        result = play_cards(self.view, self.seat, self.selection if card_ids is None else card_ids)
        if result.success:
            self._selection = []
            await self._submit(ACTION_UPDATE, result.state)
        return result

    async def pickup(self) -> ActionResult:
        """Take the pile into hand and submit the result."""
        if not self.connected:
            return ActionResult.fail(NOT_CONNECTED, "Not connected")
        if self.seat is None:
            return ActionResult.fail(NO_PLAYER, "No seat assigned")

        result = pick_up(self.view, self.seat)
        if result.success:
            await self._submit(ACTION_UPDATE, result.state)
        return result

    async def reset_game(self) -> ActionResult:
        """Host only: ask the relay to drop the current game."""
        if not self.connected:
            return ActionResult.fail(NOT_CONNECTED, "Not connected")
        if not self.is_host():
            return ActionResult.fail(NOT_HOST, "Only the host can reset the game")

        await self._send({"type": MSG_RESET})
        return ActionResult(success=True)

    async def _submit(self, action_type: str, state: GameState):
        self._draft = state
        await self._send(to_wire(create_action_event(action_type, state_to_dict(state))))
