"""
Rank ordering and pile legality.
"""

from typing import List, Optional

from .constants import CLEAR_RANKS, FACE_RANKS, NORMAL_ORDER
from .models import Card, GameState, Rank


def get_rank_index(rank: Rank) -> int:
    """Get the index of a rank in the stacking order (A lowest, K highest)."""
    try:
        return NORMAL_ORDER.index(rank)
    except ValueError:
        raise ValueError(f"Invalid rank: {rank}")


def is_clear_rank(rank: Rank) -> bool:
    return rank in CLEAR_RANKS


def is_face_rank(rank: Rank) -> bool:
    return rank in FACE_RANKS


def top_rank(pile: List[Card]) -> Optional[Rank]:
    """Rank of the top card of the pile, or None when the pile is empty."""
    if not pile:
        return None
    return pile[-1].rank


def is_valid_next_rank(current_rank: Optional[Rank], next_rank: Rank, must_play_any: bool = False) -> bool:
    """
    Check if ``next_rank`` may land on a pile whose top is ``current_rank``.

    Lower-or-equal stacks on higher-or-equal. Tens and jokers always go
    down; a face card never lands on a number card.
    """
    if must_play_any or current_rank is None:
        return True

    if is_clear_rank(next_rank):
        return True

    # Clearing plays empty the pile, so this only guards stale snapshots
    if is_clear_rank(current_rank):
        return False

    if is_face_rank(next_rank) and not is_face_rank(current_rank):
        return False

    return get_rank_index(next_rank) <= get_rank_index(current_rank)


def can_play_on_top(rank: Rank, state: GameState) -> bool:
    """Legality of ``rank`` against the state's pile and must-play-any flag."""
    return is_valid_next_rank(top_rank(state.pile), rank, state.must_play_any)


def count_rank(pile: List[Card], rank: Rank) -> int:
    return sum(1 for card in pile if card.rank == rank)
