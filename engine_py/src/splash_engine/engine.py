"""
Rules engine transitions.

``apply_play`` and ``apply_pickup`` mutate the state they are given. The
``start_game``/``play_cards``/``pick_up`` wrappers work on a deep copy and
report named outcomes instead of raising, so a rejected action leaves the
caller's state untouched.
"""

import copy
import random
from dataclasses import dataclass
from typing import List, Optional, Union

from .comparator import count_rank, is_clear_rank
from .constants import TRIPLE_CLEAR_COUNT
from .errors import NO_GAME, NO_PLAYER, NOT_ENOUGH_PLAYERS, NOT_YOUR_TURN, TOO_MANY_PLAYERS
from .models import GameState, Player
from .rules import RuleConfig, default_rules
from .shuffle import build_deck, deal_new_game
from .validate import ZONE_HAND, ValidationResult, validate_selection


@dataclass
class ActionResult:
    """Outcome of an engine action."""
    success: bool
    state: Optional[GameState] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, state: GameState) -> 'ActionResult':
        return cls(success=True, state=state)

    @classmethod
    def fail(cls, error_code: str, error_message: str) -> 'ActionResult':
        return cls(success=False, error_code=error_code, error_message=error_message)


def _clear_pile(state: GameState):
    state.discard.extend(state.pile)
    state.pile = []
    state.must_play_any = True


def _advance_turn(state: GameState):
    state.current_player = (state.current_player + 1) % state.player_count


def apply_play(selection: ValidationResult, state: GameState) -> GameState:
    """
    Move a validated selection onto the pile and resolve clears.

    A ten or joker, or a third same-rank card on the pile, clears it and
    the same seat plays again. Anything else passes the turn on.
    """
    player = state.players[state.current_player]
    hand_ids = {resolved.card.id for resolved in selection.cards if resolved.zone == ZONE_HAND}
    player.hand = [card for card in player.hand if card.id not in hand_ids]

    for resolved in selection.cards:
        if resolved.zone != ZONE_HAND:
            player.table_up[resolved.slot] = None
        state.pile.append(resolved.card)

    if is_clear_rank(selection.rank) or count_rank(state.pile, selection.rank) >= TRIPLE_CLEAR_COUNT:
        _clear_pile(state)
    else:
        state.must_play_any = False
        _advance_turn(state)

    return state


def apply_pickup(seat: int, state: GameState) -> ActionResult:
    """Take the whole pile into the acting player's hand and pass the turn."""
    player = state.player_at(seat)
    if player is None:
        return ActionResult.fail(NO_PLAYER, f"No player at seat {seat}")
    if state.current_player != seat:
        return ActionResult.fail(
            NOT_YOUR_TURN,
            f"It's not your turn (current turn: seat {state.current_player})"
        )

    player.hand.extend(state.pile)
    state.pile = []
    state.must_play_any = True
    _advance_turn(state)
    return ActionResult.ok(state)


def start_game(
    players: List[Player],
    seed: Optional[Union[int, random.Random]] = None,
    rules: RuleConfig = default_rules
) -> ActionResult:
    """Deal a fresh game for copies of ``players`` (names and emojis are kept)."""
    if len(players) < rules.min_players:
        return ActionResult.fail(
            NOT_ENOUGH_PLAYERS,
            f"Need at least {rules.min_players} players (have {len(players)})"
        )
    if not rules.validate_player_count(len(players)):
        return ActionResult.fail(
            TOO_MANY_PLAYERS,
            f"At most {rules.max_players} players can be dealt in (have {len(players)})"
        )

    seats = [Player(name=player.name, emoji=player.emoji) for player in players]
    return ActionResult.ok(deal_new_game(seats, build_deck(seed, rules), rules))


def play_cards(state: Optional[GameState], seat: int, card_ids: List[str]) -> ActionResult:
    if state is None:
        return ActionResult.fail(NO_GAME, "No game in progress")

    draft = copy.deepcopy(state)
    selection = validate_selection(card_ids, seat, draft)
    if not selection.valid:
        return ActionResult.fail(selection.error_code, selection.error_message)

    return ActionResult.ok(apply_play(selection, draft))


def pick_up(state: Optional[GameState], seat: int) -> ActionResult:
    if state is None:
        return ActionResult.fail(NO_GAME, "No game in progress")

    return apply_pickup(seat, copy.deepcopy(state))


def card_census(state: GameState) -> List[str]:
    """Every card id in every zone of the state, duplicates included."""
    ids = [card.id for card in state.deck]
    ids.extend(card.id for card in state.discard)
    ids.extend(card.id for card in state.pile)
    for player in state.players:
        ids.extend(card.id for card in player.hand)
        ids.extend(card.id for card in player.table_up if card is not None)
        ids.extend(card.id for card in player.table_down if card is not None)
    return ids
