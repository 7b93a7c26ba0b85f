"""
Card shuffling and dealing utilities.
"""

import random
from typing import List, Optional, Union

from .constants import CLEAR_RANKS, JOKER, NORMAL_ORDER, SUITS, WILD_SUIT, card_id_for
from .errors import DECK_TOO_SMALL, raise_error
from .models import Card, GameState, Player
from .rules import RuleConfig, default_rules


def create_deck(rules: RuleConfig = default_rules) -> List[Card]:
    """Create the unshuffled deck: every standard deck in suit order, then jokers."""
    deck = []

    for deck_index in range(rules.deck_count):
        for suit in SUITS:
            for rank in NORMAL_ORDER:
                deck.append(Card(id=card_id_for(rank, suit, deck_index), rank=rank, suit=suit))

    for joker_index in range(rules.joker_count):
        deck.append(Card(id=card_id_for(JOKER, WILD_SUIT, joker_index), rank=JOKER, suit=WILD_SUIT))

    return deck


def shuffle_deck(deck: List[Card], seed: Optional[Union[int, random.Random]] = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.

    Args:
        deck: Cards to shuffle
        seed: Optional seed, or a ready ``random.Random``, for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()

    if isinstance(seed, random.Random):
        seed.shuffle(deck_copy)
    elif seed is not None:
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        random.shuffle(deck_copy)

    return deck_copy


def build_deck(seed: Optional[Union[int, random.Random]] = None,
               rules: RuleConfig = default_rules) -> List[Card]:
    """Full shuffled deck: two standard decks plus four jokers by default."""
    return shuffle_deck(create_deck(rules), seed)


def deal_new_game(players: List[Player], deck: List[Card],
                  rules: RuleConfig = default_rules) -> GameState:
    """
    Deal a new game from the tail of ``deck``.

    Every player's zones are reset, then cards go out round-robin:
    table-down slots, then table-up slots, then the hand. One more card
    seeds the pile; a wild seed clears immediately.

    Args:
        players: Seats in order; their hands and table zones are overwritten
        deck: Shuffled deck, consumed from the end

    Returns:
        The dealt game state, with seat 0 to play
    """
    needed = len(players) * rules.cards_per_player() + 1
    if len(deck) < needed:
        raise_error(DECK_TOO_SMALL, f"Deal for {len(players)} players needs {needed} cards, deck has {len(deck)}")

    for player in players:
        player.hand = []
        player.table_up = [None] * rules.table_up_count
        player.table_down = [None] * rules.table_down_count

    for slot in range(rules.table_down_count):
        for player in players:
            player.table_down[slot] = deck.pop()

    for slot in range(rules.table_up_count):
        for player in players:
            player.table_up[slot] = deck.pop()

    for _ in range(rules.hand_size):
        for player in players:
            player.hand.append(deck.pop())

    state = GameState(players=players, deck=deck, current_player=0)
    state.pile.append(deck.pop())

    if state.pile[-1].rank in CLEAR_RANKS:
        state.discard.extend(state.pile)
        state.pile = []
        state.must_play_any = True

    return state
