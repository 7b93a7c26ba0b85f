"""
Client session for Splash: snapshot cache, action dispatch and events.
"""

from .emitter import EventEmitter, SessionEvent
from .session import GameSession, SessionConfig, SessionStatus

__all__ = ["EventEmitter", "GameSession", "SessionConfig", "SessionEvent", "SessionStatus"]
