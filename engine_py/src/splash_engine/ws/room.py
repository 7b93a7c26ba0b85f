"""
Room actor: one per room key, relaying snapshots between clients.

The actor never checks game rules. It only decides *who* may write: the
seat-0 connection may start or reset a game, and the seat named by the
stored snapshot's ``currentPlayer`` may submit the next update. Whatever
an authorized writer sends is stored verbatim and fanned out to every
live socket.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from ..constants import ACTION_START, ACTION_UPDATE, HOST_SEAT
from ..models import Identity
from ..serialization import decode_message, encode_message, identity_to_dict
from .events import (
    ActionEvent, JoinEvent, PingEvent, PongEvent, ResetBroadcastEvent, ResetEvent,
    create_players_event, create_state_event, create_welcome_event,
    parse_inbound_event, to_wire
)

logger = logging.getLogger(__name__)

_LEAVE = object()


def normalize_room_id(room_id: str) -> str:
    return room_id.strip().upper()


class Connection:
    """A live socket and the client id it joined with (None until it joins)."""

    def __init__(self, socket: Any):
        self.socket = socket
        self.client_id: Optional[str] = None

    async def send(self, event: BaseModel):
        await self.socket.send_text(encode_message(to_wire(event)))


class RoomActor:
    """Roster, seats and the last accepted snapshot for one room."""

    def __init__(self, room_id: str):
        self.room_id = room_id
        self.players: List[Identity] = []
        self.sockets: Dict[str, Connection] = {}
        self.game_state: Optional[Dict[str, Any]] = None
        self._mailbox: "asyncio.Queue[Tuple[Connection, Any, asyncio.Future]]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    # Mailbox

    async def submit(self, conn: Connection, raw: str):
        """Queue a raw message and wait until the actor has processed it."""
        await self._enqueue(conn, raw)

    async def submit_leave(self, conn: Connection):
        await self._enqueue(conn, _LEAVE)

    async def _enqueue(self, conn: Connection, item: Any):
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())
        done = asyncio.get_running_loop().create_future()
        await self._mailbox.put((conn, item, done))
        await done

    async def _run(self):
        while True:
            conn, item, done = await self._mailbox.get()
            try:
                if item is _LEAVE:
                    await self.leave(conn)
                else:
                    await self.handle(conn, item)
            except Exception as e:
                logger.error(f"Room {self.room_id}: error processing message: {e}")
            finally:
                if not done.done():
                    done.set_result(None)

    async def close(self):
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    # Message handling

    async def handle(self, conn: Connection, raw: str):
        """Process one inbound message to completion."""
        try:
            event = parse_inbound_event(decode_message(raw))
        except ValueError as e:
            logger.debug(f"Room {self.room_id}: dropped malformed message: {e}")
            return

        if isinstance(event, PingEvent):
            await conn.send(PongEvent())
        elif isinstance(event, JoinEvent):
            await self.join(conn, event)
        elif conn.client_id is None or self.identity(conn.client_id) is None:
            logger.debug(f"Room {self.room_id}: dropped {event.type.value} from unjoined socket")
        elif isinstance(event, ActionEvent):
            await self.apply_action(conn, event)
        elif isinstance(event, ResetEvent):
            await self.reset(conn)

    def identity(self, client_id: str) -> Optional[Identity]:
        for identity in self.players:
            if identity.id == client_id:
                return identity
        return None

    def live_roster(self) -> List[Dict[str, Any]]:
        return [identity_to_dict(identity) for identity in self.players if identity.id in self.sockets]

    async def join(self, conn: Connection, event: JoinEvent):
        identity = self.identity(event.id)
        if identity is None:
            identity = Identity(id=event.id, name=event.name, seat=len(self.players))
            self.players.append(identity)
            logger.info(f"Room {self.room_id}: {identity.name} joined at seat {identity.seat}")
        else:
            identity.name = event.name
            logger.info(f"Room {self.room_id}: {identity.name} rejoined seat {identity.seat}")

        conn.client_id = identity.id
        self.sockets[identity.id] = conn

        await self.send_to(identity.id, conn, create_welcome_event(identity.seat))
        await self.broadcast(create_players_event(self.live_roster()))

        if self.game_state is not None and self.sockets.get(identity.id) is conn:
            await self.send_to(identity.id, conn, create_state_event(self.game_state))

    async def apply_action(self, conn: Connection, event: ActionEvent):
        seat = self.identity(conn.client_id).seat
        action = event.action

        if action.type == ACTION_START:
            if seat != HOST_SEAT:
                logger.debug(f"Room {self.room_id}: START from seat {seat} ignored (not host)")
                return
            logger.info(f"Room {self.room_id}: game started by host")
        elif action.type == ACTION_UPDATE:
            if self.game_state is None:
                logger.debug(f"Room {self.room_id}: UPDATE from seat {seat} ignored (no game)")
                return
            if seat != self.game_state.get("currentPlayer"):
                logger.debug(f"Room {self.room_id}: UPDATE from seat {seat} ignored (not their turn)")
                return

        self.game_state = action.state
        await self.broadcast(create_state_event(self.game_state, conn.client_id))

    async def reset(self, conn: Connection):
        seat = self.identity(conn.client_id).seat
        if seat != HOST_SEAT:
            logger.debug(f"Room {self.room_id}: reset from seat {seat} ignored (not host)")
            return
        self.game_state = None
        logger.info(f"Room {self.room_id}: game reset by host")
        await self.broadcast(ResetBroadcastEvent())

    async def leave(self, conn: Connection):
        """Drop the live socket; the roster entry and its seat stay."""
        if conn.client_id is None or self.sockets.get(conn.client_id) is not conn:
            return
        del self.sockets[conn.client_id]
        logger.info(f"Room {self.room_id}: {conn.client_id} left")
        await self.broadcast(create_players_event(self.live_roster()))

    async def broadcast(self, event: BaseModel):
        """Send an event to every live socket, dropping sockets that fail."""
        for client_id, conn in list(self.sockets.items()):
            await self.send_to(client_id, conn, event)

    async def send_to(self, client_id: str, conn: Connection, event: BaseModel) -> bool:
        """Send to one live socket; a socket that fails is dropped from the room."""
        try:
            await conn.send(event)
            return True
        except Exception as e:
            logger.error(f"Room {self.room_id}: error sending to {client_id}: {e}")
            if self.sockets.get(client_id) is conn:
                del self.sockets[client_id]
            return False


class RoomRegistry:
    """Lazily creates one actor per normalized room key; evicts it when no sockets remain attached."""

    def __init__(self):
        self.rooms: Dict[str, RoomActor] = {}
        self._attached: Dict[str, int] = {}

    def attach(self, room_id: str) -> RoomActor:
        key = normalize_room_id(room_id)
        if key not in self.rooms:
            self.rooms[key] = RoomActor(key)
            self._attached[key] = 0
        self._attached[key] += 1
        return self.rooms[key]

    async def detach(self, actor: RoomActor):
        key = actor.room_id
        if self.rooms.get(key) is not actor:
            return
        self._attached[key] -= 1
        if self._attached[key] <= 0:
            del self.rooms[key]
            del self._attached[key]
            await actor.close()
            logger.info(f"Room {key} evicted")

    def connection_count(self) -> int:
        return sum(len(actor.sockets) for actor in self.rooms.values())
