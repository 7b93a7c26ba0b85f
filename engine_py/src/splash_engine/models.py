"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional

Rank = Literal['A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'JOKER']


@dataclass(frozen=True)
class Card:
    id: str
    rank: Rank
    suit: str


def _empty_slots() -> List[Optional[Card]]:
    return [None, None, None, None]


@dataclass
class Player:
    name: str
    emoji: str = ''
    hand: List[Card] = field(default_factory=list)
    table_up: List[Optional[Card]] = field(default_factory=_empty_slots)
    table_down: List[Optional[Card]] = field(default_factory=_empty_slots)  # dealt, never played

    def has_cards_in_hand(self) -> bool:
        return bool(self.hand)


@dataclass
class GameState:
    players: List[Player] = field(default_factory=list)  # index = seat
    deck: List[Card] = field(default_factory=list)
    discard: List[Card] = field(default_factory=list)
    pile: List[Card] = field(default_factory=list)  # top = last
    current_player: int = 0
    must_play_any: bool = False

    @property
    def player_count(self) -> int:
        return len(self.players)

    def player_at(self, seat: Optional[int]) -> Optional[Player]:
        if seat is None or seat < 0 or seat >= len(self.players):
            return None
        return self.players[seat]


@dataclass
class Identity:
    """Connection roster entry; seat is join order and never reassigned."""
    id: str
    name: str
    seat: int
