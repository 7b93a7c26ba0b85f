"""
WebSocket relay and event handling for Splash.
"""

from .room import RoomActor, RoomRegistry
from .server import registry, router

__all__ = ["RoomActor", "RoomRegistry", "registry", "router"]
