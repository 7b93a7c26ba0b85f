"""
Selection validation for card plays.
"""

from dataclasses import dataclass
from typing import List, Optional

from .comparator import can_play_on_top
from .errors import (
    EMPTY, ILLEGAL, MIXED_RANK, MUST_PLAY_HAND_FIRST, NO_PLAYER,
    NOT_FOUND, NOT_YOUR_TURN
)
from .models import Card, GameState, Player, Rank

ZONE_HAND = 'hand'
ZONE_TABLE_UP = 'table_up'


@dataclass(frozen=True)
class ResolvedCard:
    """A selected card and where it currently sits."""
    card: Card
    zone: str
    slot: Optional[int] = None  # table-up slot index


class ValidationResult:
    """Result of selection validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        rank: Optional[Rank] = None,
        cards: Optional[List[ResolvedCard]] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message
        self.rank = rank
        self.cards = cards or []

    @classmethod
    def success(cls, rank: Rank, cards: List[ResolvedCard]) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True, rank=rank, cards=cards)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


def _find_in_hand(player: Player, card_id: str) -> Optional[ResolvedCard]:
    for card in player.hand:
        if card.id == card_id:
            return ResolvedCard(card=card, zone=ZONE_HAND)
    return None


def _find_in_table_up(player: Player, card_id: str) -> Optional[ResolvedCard]:
    for slot, card in enumerate(player.table_up):
        if card is not None and card.id == card_id:
            return ResolvedCard(card=card, zone=ZONE_TABLE_UP, slot=slot)
    return None


def resolve_selection(player: Player, card_ids: List[str]) -> ValidationResult:
    """
    Resolve card ids against the player's hand, then their table-up slots.

    Table-up cards are only eligible once the hand is empty. Unknown ids
    are skipped and repeated ids count once.
    """
    resolved = []
    seen = set()
    hand_empty = not player.has_cards_in_hand()

    for card_id in card_ids:
        if card_id in seen:
            continue
        seen.add(card_id)

        found = _find_in_hand(player, card_id)
        if found is None:
            found = _find_in_table_up(player, card_id)
            if found is not None and not hand_empty:
                return ValidationResult.error(
                    MUST_PLAY_HAND_FIRST,
                    "Table cards can only be played once the hand is empty"
                )
        if found is not None:
            resolved.append(found)

    if not resolved:
        return ValidationResult.error(NOT_FOUND, "None of the selected cards belong to the player")

    return ValidationResult.success(resolved[0].card.rank, resolved)


def validate_selection(card_ids: List[str], seat: int, state: GameState) -> ValidationResult:
    """
    Validate a play attempt.

    Args:
        card_ids: Selected card ids, in play order
        seat: Seat of the acting player
        state: Current game state

    Returns:
        ValidationResult carrying the shared rank and resolved cards
    """
    player = state.player_at(seat)
    if player is None:
        return ValidationResult.error(NO_PLAYER, f"No player at seat {seat}")

    if state.current_player != seat:
        return ValidationResult.error(
            NOT_YOUR_TURN,
            f"It's not your turn (current turn: seat {state.current_player})"
        )

    if not card_ids:
        return ValidationResult.error(EMPTY, "No cards selected")

    result = resolve_selection(player, card_ids)
    if not result.valid:
        return result

    ranks = {resolved.card.rank for resolved in result.cards}
    if len(ranks) > 1:
        return ValidationResult.error(MIXED_RANK, "All selected cards must share one rank")

    if not can_play_on_top(result.rank, state):
        return ValidationResult.error(
            ILLEGAL,
            f"{result.rank} cannot be played on {state.pile[-1].rank if state.pile else 'an empty pile'}"
        )

    return result
