"""
FastAPI WebSocket endpoint for the Splash relay.
"""

import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from .room import Connection, RoomRegistry

logger = logging.getLogger(__name__)

router = APIRouter()

# Global state
registry = RoomRegistry()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "rooms": len(registry.rooms),
        "connections": registry.connection_count()
    }


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, room: Optional[str] = None):
    """Relay endpoint; ``?room=`` selects the room actor."""
    if not room or not room.strip():
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    actor = registry.attach(room)
    conn = Connection(websocket)
    logger.info(f"WebSocket connection accepted for room {actor.room_id}")

    try:
        while True:
            raw = await websocket.receive_text()
            await actor.submit(conn, raw)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected from room {actor.room_id}")
    except Exception as e:
        logger.error(f"WebSocket error in room {actor.room_id}: {e}")
    finally:
        await actor.submit_leave(conn)
        await registry.detach(actor)
