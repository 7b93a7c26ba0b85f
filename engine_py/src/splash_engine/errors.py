# engine_py/src/splash_engine/errors.py

class GameError(Exception):
    """Base exception for setup faults and malformed snapshots."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Outcome codes reported by actions (never raised, never sent over the wire)
NOT_CONNECTED = "not_connected"
NOT_HOST = "not_host"
NO_GAME = "no_game"
NOT_YOUR_TURN = "not_your_turn"
EMPTY = "empty"
MIXED_RANK = "mixed_rank"
MUST_PLAY_HAND_FIRST = "must_play_hand_first"
ILLEGAL = "illegal"
NOT_FOUND = "not_found"
NO_PLAYER = "no_player"
NOT_ENOUGH_PLAYERS = "not_enough_players"
TOO_MANY_PLAYERS = "too_many_players"

# Codes carried by GameError
MALFORMED_STATE = "MALFORMED_STATE"
DECK_TOO_SMALL = "DECK_TOO_SMALL"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
