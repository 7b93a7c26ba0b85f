"""Game constants and utilities"""

from typing import List

from .models import Rank

# Stacking order, lowest first. JOKER sits outside it.
NORMAL_ORDER: List[Rank] = ['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K']
JOKER = 'JOKER'
ALL_RANKS: List[Rank] = NORMAL_ORDER + [JOKER]

SUITS = ['♠', '♥', '♦', '♣']
WILD_SUIT = '★'

# Ranks that wipe the pile when played
CLEAR_RANKS = frozenset({'10', JOKER})
FACE_RANKS = frozenset({'J', 'Q', 'K'})

# Same-rank cards on the pile that trigger a clear
TRIPLE_CLEAR_COUNT = 3

HOST_SEAT = 0

# Default per-seat display assets for the lobby skeleton
SEAT_EMOJIS = ['🐳', '🐙', '🦀', '🐠', '🐬', '🦑', '🐢', '🦭']
DEFAULT_PLAYER_NAME = 'Player'
MAX_NAME_LENGTH = 30

# Wire message types
MSG_JOIN = 'join'
MSG_RESET = 'reset'
MSG_PING = 'ping'

ACTION_START = 'START'
ACTION_UPDATE = 'UPDATE'

SERVER_SENDER_ID = 'server'

DEFAULT_ROOM = 'FAMILY'


def card_id_for(rank: Rank, suit: str, deck_index: int) -> str:
    if rank == JOKER:
        return f"{JOKER}-{deck_index}"
    return f"{rank}{suit}-{deck_index}"


def emoji_for_seat(seat: int) -> str:
    return SEAT_EMOJIS[seat % len(SEAT_EMOJIS)]
